"""CSV event log reader and writer.

An event log is a CSV file with one chamber entry per row:

    mouse_id,chamber,timestamp
    Mouse A,empty,2024-01-01T12:00:00.000
    Mouse A,middle,2024-01-01T12:00:30.000

Timestamps are ISO-8601; chambers are the lowercase ``Chamber`` values.
"""

import csv
from datetime import datetime
import logging
from pathlib import Path
from typing import Iterable, List, Union

from .exceptions import EventLogError
from .models import Chamber, ChamberEvent
from .utils import read_csv, write_csv

logger = logging.getLogger(__name__)

__all__ = ["EVENT_LOG_FIELDS", "read_event_log", "write_event_log"]

EVENT_LOG_FIELDS = ["mouse_id", "chamber", "timestamp"]


def _parse_row(row: dict, line: int) -> ChamberEvent:
    mouse_id = (row.get("mouse_id") or "").strip()
    if not mouse_id:
        raise EventLogError(f"Line {line}: empty mouse_id")

    try:
        chamber = Chamber((row.get("chamber") or "").strip().lower())
    except ValueError as e:
        raise EventLogError(f"Line {line}: unknown chamber {row.get('chamber')!r}") from e

    try:
        timestamp = datetime.fromisoformat((row.get("timestamp") or "").strip())
    except ValueError as e:
        raise EventLogError(f"Line {line}: invalid timestamp {row.get('timestamp')!r}") from e

    return ChamberEvent(mouse_id=mouse_id, chamber=chamber, timestamp=timestamp)


def read_event_log(path: Union[Path, str]) -> List[ChamberEvent]:
    """Load chamber events from a CSV event log.

    Args:
        path: CSV file with ``mouse_id``, ``chamber`` and ``timestamp`` columns

    Returns:
        Events in file order

    Raises:
        FileNotFoundError: If the file does not exist
        EventLogError: If the file is not UTF-8 CSV, a column is missing or a
            row cannot be parsed
    """
    try:
        fieldnames, rows = read_csv(path)
    except (UnicodeDecodeError, csv.Error) as e:
        raise EventLogError(f"Event log {Path(path).name} is not a readable UTF-8 CSV file: {e}") from e

    missing = [field for field in EVENT_LOG_FIELDS if field not in fieldnames]
    if missing:
        raise EventLogError(f"Event log {Path(path).name} is missing columns: {missing}")

    # Header is line 1
    events = [_parse_row(row, line) for line, row in enumerate(rows, start=2)]

    logger.info(f"Loaded {len(events)} events from {Path(path).name}")
    return events


def write_event_log(path: Union[Path, str], events: Iterable[ChamberEvent]) -> None:
    """Write chamber events to a CSV event log, in the given order."""
    rows = [
        {
            "mouse_id": event.mouse_id,
            "chamber": event.chamber.value,
            "timestamp": event.timestamp.isoformat(timespec="microseconds"),
        }
        for event in events
    ]
    write_csv(path, rows, fieldnames=EVENT_LOG_FIELDS)
    logger.info(f"Wrote {len(rows)} events to {Path(path).name}")
