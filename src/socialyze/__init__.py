"""Socialyze: dwell-time and chamber-switch analytics for three-chamber social tests.

Reduces a log of timestamped chamber entries into per-mouse dwell durations
and switch counts, and renders the result as comma- or tab-delimited reports.

Example:
    >>> from socialyze import analyze_session, render_delimited
    >>> summary = analyze_session(events, session_end=end)
    >>> print(render_delimited(summary, "\\t"))
"""

from .analysis import analyze_session
from .exceptions import (
    EmptyInput,
    InvalidSessionBound,
    NegativeDelta,
    SessionBoundTooEarly,
    SocialyzeError,
    UnorderedEvents,
    ValidationError,
)
from .models import Chamber, ChamberEvent, MouseSummary, SessionSummary
from .report import Delimiter, ReportMode, render_delimited, render_event_export, render_summary_report

__version__ = "0.1.0"

__all__ = [
    # Models
    "Chamber",
    "ChamberEvent",
    "MouseSummary",
    "SessionSummary",
    # Analysis
    "analyze_session",
    # Reports
    "Delimiter",
    "ReportMode",
    "render_delimited",
    "render_summary_report",
    "render_event_export",
    # Exceptions
    "SocialyzeError",
    "ValidationError",
    "EmptyInput",
    "InvalidSessionBound",
    "SessionBoundTooEarly",
    "UnorderedEvents",
    "NegativeDelta",
]
