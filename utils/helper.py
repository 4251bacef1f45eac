import functools
import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, List, Optional, Union

from models.schema import Interval
from utils.errors import StorageFailure

TABLE = "tasks"
REQUIRED_COLUMNS = {"id", "task", "intime", "outtime", "billed"}

CREATE_TABLE = f"""
    CREATE TABLE {TABLE} (
        id INTEGER PRIMARY KEY,
        task TEXT,
        intime TEXT NOT NULL,
        outtime TEXT,
        billed BOOLEAN DEFAULT 'n' NOT NULL
    )
"""


def _storage_call(fn):
    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except sqlite3.Error as exc:
            raise StorageFailure(f"{fn.__name__} failed: {exc}") from exc
    return wrapper


def format_timestamp(ts: datetime) -> str:
    # fixed width so that text order matches chronological order
    return ts.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _to_interval(row: sqlite3.Row) -> Interval:
    try:
        return Interval(
            id=row["id"],
            task=row["task"],
            in_time=row["intime"],
            out_time=row["outtime"],
            billed=row["billed"],
        )
    except ValueError as exc:
        # pydantic's ValidationError is a ValueError too
        raise StorageFailure(f"Corrupt row id={row['id']}: {exc}") from exc


@_storage_call
def connect(path: Union[str, Path]) -> sqlite3.Connection:
    # autocommit; writes are grouped with transaction()
    conn = sqlite3.connect(str(path), isolation_level=None)
    conn.row_factory = sqlite3.Row
    return conn


@contextmanager
def transaction(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """
    Serialize a read-check-write sequence against other writers.
    BEGIN IMMEDIATE takes the write lock up front, so two processes can't
    both observe "no open interval" and both insert.
    """
    try:
        conn.execute("BEGIN IMMEDIATE")
    except sqlite3.Error as exc:
        raise StorageFailure(f"Could not start transaction: {exc}") from exc
    try:
        yield conn
    except BaseException:
        # sqlite may already have rolled back after a failed statement
        if conn.in_transaction:
            conn.execute("ROLLBACK")
        raise
    try:
        conn.execute("COMMIT")
    except sqlite3.Error as exc:
        raise StorageFailure(f"Could not commit: {exc}") from exc


def _table_exists(conn: sqlite3.Connection, name: str) -> bool:
    row = conn.execute(
        "SELECT 1 FROM sqlite_master WHERE type='table' AND name=?",
        (name,),
    ).fetchone()
    return row is not None


def _cols(conn: sqlite3.Connection, table: str) -> set:
    return {r["name"] for r in conn.execute(f"PRAGMA table_info({table})").fetchall()}


@_storage_call
def ensure_schema(conn: sqlite3.Connection) -> bool:
    """Create the intervals table if needed. Returns True if it was created."""
    if _table_exists(conn, TABLE):
        missing = REQUIRED_COLUMNS - _cols(conn, TABLE)
        if missing:
            raise StorageFailure(
                f"Table '{TABLE}' is missing columns: {', '.join(sorted(missing))}"
            )
        return False
    conn.execute(CREATE_TABLE)
    logging.info(f"Created table '{TABLE}'")
    return True


@_storage_call
def find_open_interval(conn: sqlite3.Connection) -> Optional[Interval]:
    row = conn.execute(
        f"""
        SELECT id, task, intime, outtime, billed FROM {TABLE}
        WHERE outtime IS NULL ORDER BY intime DESC LIMIT 1
        """
    ).fetchone()
    return _to_interval(row) if row else None


@_storage_call
def insert_interval(conn: sqlite3.Connection, task: str, in_time: datetime) -> int:
    cur = conn.execute(
        f"INSERT INTO {TABLE} (task, intime, outtime) VALUES (?, ?, NULL)",
        (task, format_timestamp(in_time)),
    )
    return cur.lastrowid


@_storage_call
def close_interval(conn: sqlite3.Connection, interval_id: int, out_time: datetime) -> None:
    conn.execute(
        f"UPDATE {TABLE} SET outtime = ? WHERE id = ? AND outtime IS NULL",
        (format_timestamp(out_time), interval_id),
    )


@_storage_call
def find_by_task(conn: sqlite3.Connection, task: str) -> List[Interval]:
    rows = conn.execute(
        f"SELECT id, task, intime, outtime, billed FROM {TABLE} WHERE task = ? ORDER BY id",
        (task,),
    ).fetchall()
    return [_to_interval(r) for r in rows]


@_storage_call
def count_open_intervals(conn: sqlite3.Connection) -> int:
    row = conn.execute(f"SELECT COUNT(1) AS c FROM {TABLE} WHERE outtime IS NULL").fetchone()
    return int(row["c"])
