from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import List, Optional

from dateutil.parser import isoparse
from pydantic import BaseModel, field_validator


def _as_utc(value) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, str):
        value = isoparse(value)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Interval(BaseModel):
    id: int
    task: str
    in_time: datetime
    out_time: Optional[datetime] = None
    billed: str = "n"

    @field_validator("in_time", "out_time", mode="before")
    @classmethod
    def parse_timestamp(cls, value):
        return _as_utc(value)

    @field_validator("billed", mode="before")
    @classmethod
    def default_billed(cls, value):
        return value or "n"

    @property
    def is_billed(self) -> bool:
        return self.billed == "y"

    @property
    def duration(self) -> timedelta:
        # an open interval counts as zero, not as time elapsed so far
        if self.out_time is None:
            return timedelta(0)
        return self.out_time - self.in_time


class PunchStatus(str, Enum):
    PUNCHED_IN = "punched_in"
    PUNCHED_OUT = "punched_out"
    ALREADY_PUNCHED_IN = "already_punched_in"
    NOT_PUNCHED_IN = "not_punched_in"


class PunchResult(BaseModel):
    status: PunchStatus
    task: Optional[str] = None
    timestamp: Optional[datetime] = None
    duration: Optional[timedelta] = None

    @property
    def ok(self) -> bool:
        return self.status in (PunchStatus.PUNCHED_IN, PunchStatus.PUNCHED_OUT)

    @property
    def minutes(self) -> int:
        if self.duration is None:
            return 0
        return self.duration // timedelta(minutes=1)


class ReportEntry(BaseModel):
    task: str
    in_date: date
    duration: timedelta
    billed: str = "n"


class Report(BaseModel):
    task: str
    show_billed: bool = False
    row_count: int = 0
    entries: List[ReportEntry] = []
    total: timedelta = timedelta(0)

    @property
    def is_empty(self) -> bool:
        # nothing stored for the task; billed rows filtered out still count
        return self.row_count == 0
