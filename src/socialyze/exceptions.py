"""Exception hierarchy for the socialyze package.

All analyzer failures are input-contract violations and derive from
``ValidationError``. They are deterministic: re-running the same input
reproduces the same failure.

Hierarchy:
----------
- SocialyzeError
  ├── ValidationError
  │   ├── EmptyInput
  │   ├── InvalidSessionBound
  │   ├── SessionBoundTooEarly
  │   ├── UnorderedEvents
  │   └── NegativeDelta
  ├── BindingError
  ├── EventLogError
  └── HistoryError
"""

from typing import Optional

__all__ = [
    "SocialyzeError",
    "ValidationError",
    "EmptyInput",
    "InvalidSessionBound",
    "SessionBoundTooEarly",
    "UnorderedEvents",
    "NegativeDelta",
    "BindingError",
    "EventLogError",
    "HistoryError",
]


class SocialyzeError(Exception):
    """Base error for the socialyze package."""

    pass


class ValidationError(SocialyzeError, ValueError):
    """Event log or session bound violates the analyzer's input contract.

    Attributes:
        mouse_id: Mouse whose events triggered the failure (None for
            session-wide failures)
    """

    def __init__(self, message: str, mouse_id: Optional[str] = None):
        super().__init__(message)
        self.mouse_id = mouse_id


class EmptyInput(ValidationError):
    """No events were supplied."""

    pass


class InvalidSessionBound(ValidationError):
    """Session end precedes the earliest event of the session."""

    pass


class SessionBoundTooEarly(ValidationError):
    """Session end precedes a mouse's last recorded event."""

    pass


class UnorderedEvents(ValidationError):
    """A mouse's events cannot be placed in chronological order."""

    pass


class NegativeDelta(ValidationError):
    """A time step between consecutive events (or the closing tail) is negative."""

    pass


class BindingError(SocialyzeError, ValueError):
    """Key-binding table is inconsistent (duplicate key, unknown mouse, too many mice)."""

    pass


class EventLogError(SocialyzeError):
    """CSV event log is malformed."""

    pass


class HistoryError(SocialyzeError):
    """Session history file cannot be read or has an unexpected layout."""

    pass
