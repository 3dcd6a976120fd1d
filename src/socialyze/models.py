"""Domain models for three-chamber session analytics.

This module defines the immutable Pydantic models exchanged between the
session analyzer and the report renderers:

- ``Chamber``: closed enumeration of the three arena regions
- ``ChamberEvent``: one mouse entering one chamber at one instant
- ``MouseSummary``: per-mouse dwell durations and switch count
- ``SessionSummary``: session bounds, per-mouse summaries and the sorted event log

Key Features:
-------------
- **Immutable**: frozen=True blocks reassignment; mappings are read-only
  proxies and the event log is a tuple
- **Strict Schema**: extra="forbid" rejects unknown fields
- **Exact arithmetic**: durations are ``timedelta`` values, never floats

Display labels for chambers depend on the experimental protocol and live in
``socialyze.protocols``, not here.

Example:
--------
>>> from datetime import datetime
>>> event = ChamberEvent(mouse_id="A", chamber=Chamber.EMPTY, timestamp=datetime(2024, 1, 1, 12))
>>> event.chamber.value
'empty'
"""

from __future__ import annotations

from datetime import datetime, timedelta
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator, model_validator

__all__ = [
    "Chamber",
    "ChamberEvent",
    "MouseSummary",
    "SessionSummary",
    "to_milliseconds",
]


class Chamber(str, Enum):
    """Arena regions of the three-chamber apparatus."""

    EMPTY = "empty"
    MIDDLE = "middle"
    STRANGER = "stranger"


def to_milliseconds(delta: timedelta) -> int:
    """Convert a non-negative duration to whole milliseconds (truncated)."""
    return delta // timedelta(milliseconds=1)


class ChamberEvent(BaseModel):
    """Mouse ``mouse_id`` entered ``chamber`` at ``timestamp``."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    mouse_id: str = Field(..., min_length=1, description="Opaque mouse identifier")
    chamber: Chamber = Field(..., description="Chamber entered")
    timestamp: datetime = Field(..., description="Entry instant")


class MouseSummary(BaseModel):
    """Dwell durations and chamber switches for a single mouse.

    ``last_event`` is the session end rather than the mouse's last raw event,
    so every mouse of a session is closed out at the same instant.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    mouse_id: str = Field(..., min_length=1, description="Opaque mouse identifier")
    dwell_durations: Mapping[Chamber, timedelta] = Field(..., description="Accumulated dwell per chamber")
    switch_count: int = Field(..., ge=0, description="Number of chamber changes between consecutive events")
    first_event: datetime = Field(..., description="First observed event timestamp")
    last_event: datetime = Field(..., description="Session end used to close the final dwell")

    @model_validator(mode="before")
    @classmethod
    def fill_missing_chambers(cls, data: Any) -> Any:
        """Default every chamber absent from ``dwell_durations`` to zero."""
        if isinstance(data, dict) and isinstance(data.get("dwell_durations"), (dict, MappingProxyType)):
            durations = {Chamber(key): value for key, value in data["dwell_durations"].items()}
            for chamber in Chamber:
                durations.setdefault(chamber, timedelta(0))
            data = {**data, "dwell_durations": durations}
        return data

    @field_validator("dwell_durations")
    @classmethod
    def freeze_durations(cls, value: Mapping[Chamber, timedelta]) -> Mapping[Chamber, timedelta]:
        return MappingProxyType(dict(value))

    @field_serializer("dwell_durations")
    def serialize_durations(self, value: Mapping[Chamber, timedelta]) -> Dict[Chamber, timedelta]:
        return dict(value)

    @model_validator(mode="after")
    def validate_dwell_total(self) -> "MouseSummary":
        """Durations must be non-negative and sum to ``last_event - first_event``.

        Raises:
            ValueError: If a duration is negative or the total does not match
                the observed span.
        """
        for chamber, duration in self.dwell_durations.items():
            if duration < timedelta(0):
                raise ValueError(f"Negative dwell for {chamber.value}: {duration}")

        span = self.last_event - self.first_event
        if self.total_dwell != span:
            raise ValueError(f"Dwell total {self.total_dwell} does not match span {span} for mouse {self.mouse_id}")
        return self

    def dwell_time(self, chamber: Chamber) -> timedelta:
        return self.dwell_durations.get(chamber, timedelta(0))

    def dwell_ms(self, chamber: Chamber) -> int:
        return to_milliseconds(self.dwell_time(chamber))

    @property
    def total_dwell(self) -> timedelta:
        """Total time across all chambers."""
        return sum(self.dwell_durations.values(), timedelta(0))

    @property
    def total_dwell_ms(self) -> int:
        """Sum of the per-chamber millisecond values, each truncated first."""
        return sum(self.dwell_ms(chamber) for chamber in Chamber)


class SessionSummary(BaseModel):
    """Session-level analytics across all mice.

    ``mouse_summaries`` is a read-only mapping keyed by mouse id in
    lexicographic order and ``events`` is a tuple holding the full log sorted
    by timestamp (ties in input order).
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    session_start: datetime = Field(..., description="Earliest event timestamp")
    session_end: datetime = Field(..., description="Caller-declared session end")
    mouse_summaries: Mapping[str, MouseSummary] = Field(..., description="Per-mouse summaries")
    events: Tuple[ChamberEvent, ...] = Field(..., description="Sorted event log for audit/export")

    @field_validator("mouse_summaries")
    @classmethod
    def freeze_summaries(cls, value: Mapping[str, MouseSummary]) -> Mapping[str, MouseSummary]:
        return MappingProxyType(dict(value))

    @field_serializer("mouse_summaries")
    def serialize_summaries(self, value: Mapping[str, MouseSummary]) -> Dict[str, MouseSummary]:
        return dict(value)

    @model_validator(mode="after")
    def validate_bounds(self) -> "SessionSummary":
        if self.session_end < self.session_start:
            raise ValueError(f"session_end {self.session_end} precedes session_start {self.session_start}")
        return self

    @property
    def duration(self) -> timedelta:
        return self.session_end - self.session_start

    @property
    def mouse_count(self) -> int:
        return len(self.mouse_summaries)
