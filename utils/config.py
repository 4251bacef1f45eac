import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from utils.errors import HomeDirectoryUnresolvable

DB_FILENAME = ".punch.db"
DEFAULT_LOGLEVEL = "WARNING"
LOG_FORMAT = "[%(levelname)s] %(message)s"


@dataclass(frozen=True)
class Settings:
    db_path: Path
    log_level: str = DEFAULT_LOGLEVEL
    log_file: Optional[str] = None

    @classmethod
    def from_env(cls) -> "Settings":
        level = os.getenv("PUNCH_LOGLEVEL", DEFAULT_LOGLEVEL).strip().upper()
        log_file = (os.getenv("PUNCH_LOGFILE") or "").strip() or None
        return cls(db_path=get_db_path(), log_level=level, log_file=log_file)

    @property
    def level(self) -> int:
        level = logging.getLevelName(self.log_level)
        return level if isinstance(level, int) else logging.WARNING


def get_db_path() -> Path:
    override = (os.getenv("PUNCH_DB") or "").strip()
    if override:
        return Path(override).expanduser()
    try:
        home = Path.home()
    except (KeyError, RuntimeError) as exc:
        raise HomeDirectoryUnresolvable(
            "Could not determine home directory; set PUNCH_DB to choose a store"
        ) from exc
    return home / DB_FILENAME


def configure_logging(settings: Settings) -> None:
    handlers = [logging.StreamHandler(sys.stderr)]
    if settings.log_file:
        handlers.append(logging.FileHandler(settings.log_file, encoding="utf-8"))
    logging.basicConfig(level=settings.level, format=LOG_FORMAT, handlers=handlers)
