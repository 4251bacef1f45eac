import logging
import sqlite3
from datetime import datetime, timedelta, timezone
from typing import Optional

from models.schema import PunchResult, PunchStatus, Report, ReportEntry
from utils.helper import close_interval, find_by_task, find_open_interval, insert_interval, transaction


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _normalize(timestamp: Optional[datetime]) -> datetime:
    if timestamp is None:
        return utc_now()
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=timezone.utc)
    return timestamp.astimezone(timezone.utc)


def punch_in(conn: sqlite3.Connection, task: str, timestamp: Optional[datetime] = None) -> PunchResult:
    if not task or not task.strip():
        raise ValueError("Task name cannot be empty.")
    timestamp = _normalize(timestamp)

    with transaction(conn):
        open_interval = find_open_interval(conn)
        if open_interval:
            logging.warning(
                f"Already punched into '{open_interval.task}' since {open_interval.in_time.isoformat()}"
            )
            return PunchResult(
                status=PunchStatus.ALREADY_PUNCHED_IN,
                task=open_interval.task,
                timestamp=open_interval.in_time,
            )
        interval_id = insert_interval(conn, task, timestamp)

    logging.info(f"Punched into '{task}' (id={interval_id})")
    return PunchResult(status=PunchStatus.PUNCHED_IN, task=task, timestamp=timestamp)


def punch_out(conn: sqlite3.Connection, timestamp: Optional[datetime] = None) -> PunchResult:
    timestamp = _normalize(timestamp)

    with transaction(conn):
        open_interval = find_open_interval(conn)
        if not open_interval:
            logging.warning("Punch out requested with no open interval")
            return PunchResult(status=PunchStatus.NOT_PUNCHED_IN)
        # never close an interval before it opened
        timestamp = max(timestamp, open_interval.in_time)
        close_interval(conn, open_interval.id, timestamp)

    duration = timestamp - open_interval.in_time
    logging.info(f"Punched out of '{open_interval.task}' (id={open_interval.id})")
    return PunchResult(
        status=PunchStatus.PUNCHED_OUT,
        task=open_interval.task,
        timestamp=timestamp,
        duration=duration,
    )


def list_task(conn: sqlite3.Connection, task: str, show_billed: bool = False) -> Report:
    intervals = find_by_task(conn, task)
    entries = []
    total = timedelta(0)

    for interval in intervals:
        if interval.is_billed and not show_billed:
            continue
        total += interval.duration
        entries.append(ReportEntry(
            task=interval.task,
            in_date=interval.in_time.date(),
            duration=interval.duration,
            billed=interval.billed,
        ))

    return Report(
        task=task,
        show_billed=show_billed,
        row_count=len(intervals),
        entries=entries,
        total=total,
    )
