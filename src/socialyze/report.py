"""Delimited text reports for analyzed sessions.

Renders a ``SessionSummary`` into one of two flat report shapes, each with a
comma or tab delimiter:

- **summary**: title, session metadata and a per-mouse metrics table
- **events**: per-chamber ``summary`` rows followed by raw ``event`` rows,
  one column layout for spreadsheet pivoting

Renderers are pure: they return text and perform no I/O. Seconds are
formatted from whole milliseconds with integer arithmetic, so both delimiters
carry byte-identical values.

Example:
--------
>>> text = render_delimited(summary, Delimiter.TAB)
>>> text.splitlines()[0]
'Session Summary Report'
"""

import csv
from datetime import datetime, timedelta
from enum import Enum
import io
import logging
from typing import List, Optional, Sequence, Union

from .models import Chamber, SessionSummary, to_milliseconds

logger = logging.getLogger(__name__)

__all__ = [
    "Delimiter",
    "ReportMode",
    "REPORT_TITLE",
    "METRICS_HEADER",
    "EVENT_EXPORT_HEADER",
    "render_delimited",
    "render_summary_report",
    "render_event_export",
    "format_seconds",
    "format_duration",
    "format_timestamp",
    "export_file_name",
]


class Delimiter(str, Enum):
    """Field separator of a delimited report."""

    COMMA = ","
    TAB = "\t"

    @property
    def extension(self) -> str:
        return "csv" if self is Delimiter.COMMA else "tsv"


class ReportMode(str, Enum):
    """Report shape."""

    SUMMARY = "summary"
    EVENTS = "events"


REPORT_TITLE = "Session Summary Report"

METRICS_HEADER = ["Mouse ID", "Empty (s)", "Middle (s)", "Stranger (s)", "Total Dwell (s)", "Switch Count"]

EVENT_EXPORT_HEADER = ["type", "mouse", "chamber", "duration_seconds", "switch_count", "timestamp_iso8601"]

# Column order of the metrics table
_METRIC_CHAMBERS = (Chamber.EMPTY, Chamber.MIDDLE, Chamber.STRANGER)


# =============================================================================
# Value Formatting
# =============================================================================


def format_seconds(delta: timedelta) -> str:
    """Seconds with exactly three decimals, e.g. ``30.000``.

    Sub-millisecond remainders are truncated.
    """
    return _format_milliseconds(to_milliseconds(delta))


def _format_milliseconds(ms: int) -> str:
    return f"{ms // 1000}.{ms % 1000:03d}"


def format_duration(delta: timedelta) -> str:
    """Human-readable ``HHh MMm SSs``; the hour segment is omitted when zero."""
    total_seconds = delta // timedelta(seconds=1)
    hours, remainder = divmod(total_seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    if hours > 0:
        return f"{hours:02d}h {minutes:02d}m {seconds:02d}s"
    return f"{minutes:02d}m {seconds:02d}s"


def format_timestamp(timestamp: datetime) -> str:
    """ISO-8601 timestamp with millisecond precision."""
    return timestamp.isoformat(timespec="milliseconds")


def export_file_name(kind: str, delimiter: Union[Delimiter, str], now: datetime) -> str:
    """Default file name for an export, e.g. ``socialyze_summary_2024-01-01T12-00-00.csv``."""
    stamp = now.isoformat(timespec="seconds").replace(":", "-")
    return f"socialyze_{kind}_{stamp}.{Delimiter(delimiter).extension}"


# =============================================================================
# Rendering
# =============================================================================


def _write_rows(rows: Sequence[Sequence[str]], delimiter: Delimiter) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, delimiter=delimiter.value, lineterminator="\n")
    writer.writerows(rows)
    return buffer.getvalue()


def render_summary_report(summary: SessionSummary, delimiter: Union[Delimiter, str] = Delimiter.COMMA) -> str:
    """Render metadata and the per-mouse metrics table.

    Args:
        summary: Analyzed session
        delimiter: Field separator (``","`` or ``"\\t"``)

    Returns:
        Report text, one row per line
    """
    delimiter = Delimiter(delimiter)

    rows: List[List[str]] = [
        [REPORT_TITLE],
        [],
        ["Session Start", format_timestamp(summary.session_start)],
        ["Session End", format_timestamp(summary.session_end)],
        ["Total Duration", format_duration(summary.duration)],
        [],
        list(METRICS_HEADER),
    ]

    for mouse_id in sorted(summary.mouse_summaries):
        mouse = summary.mouse_summaries[mouse_id]
        rows.append(
            [mouse_id]
            + [format_seconds(mouse.dwell_time(chamber)) for chamber in _METRIC_CHAMBERS]
            + [_format_milliseconds(mouse.total_dwell_ms), str(mouse.switch_count)]
        )

    return _write_rows(rows, delimiter)


def render_event_export(summary: SessionSummary, delimiter: Union[Delimiter, str] = Delimiter.COMMA) -> str:
    """Render per-chamber summary rows followed by every raw event.

    Summary rows carry ``duration_seconds`` per chamber plus one ``total``
    row with the switch count; event rows carry the ISO timestamp.
    """
    delimiter = Delimiter(delimiter)

    rows: List[List[str]] = [list(EVENT_EXPORT_HEADER)]

    for mouse_id in sorted(summary.mouse_summaries):
        mouse = summary.mouse_summaries[mouse_id]
        for chamber in _METRIC_CHAMBERS:
            rows.append(["summary", mouse_id, chamber.value, format_seconds(mouse.dwell_time(chamber)), "", ""])
        rows.append(["summary", mouse_id, "total", "", str(mouse.switch_count), ""])

    for event in summary.events:
        rows.append(["event", event.mouse_id, event.chamber.value, "", "", format_timestamp(event.timestamp)])

    return _write_rows(rows, delimiter)


def render_delimited(
    summary: SessionSummary,
    delimiter: Union[Delimiter, str] = Delimiter.COMMA,
    mode: Optional[Union[ReportMode, str]] = ReportMode.SUMMARY,
) -> str:
    """Render ``summary`` in the requested shape.

    Args:
        summary: Analyzed session
        delimiter: Field separator
        mode: ``summary`` (metrics table) or ``events`` (summary and event rows)

    Returns:
        Report text
    """
    mode = ReportMode(mode or ReportMode.SUMMARY)
    if mode is ReportMode.EVENTS:
        text = render_event_export(summary, delimiter)
    else:
        text = render_summary_report(summary, delimiter)

    logger.debug(f"Rendered {mode.value} report for {summary.mouse_count} mice")
    return text
