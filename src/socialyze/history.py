"""Session history records and JSON-file store.

Completed sessions are persisted as compact records holding millisecond dwell
totals and switch counts per mouse:

    {
      "sessions": [
        {
          "id": 2,
          "protocol": "Social Interaction",
          "startedAt": "2024-01-01T12:00:00",
          "stoppedAt": "2024-01-01T12:01:20",
          "duration": 80000,
          "mouseCount": 2,
          "mouseDwellTimes": {"A": {"empty": 30000, "middle": 20000, "stranger": 30000, "switches": 2}}
        }
      ],
      "nextId": 3
    }

Sessions are stored newest first. A ``MouseSummary`` converts to a
``MouseDwellRecord`` and back; the round trip is lossless for
millisecond-resolution sessions whose ``stoppedAt`` is the session end.
"""

from datetime import datetime, timedelta
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from .exceptions import HistoryError
from .models import Chamber, MouseSummary, SessionSummary, to_milliseconds
from .utils import read_json, write_json

logger = logging.getLogger(__name__)

__all__ = [
    "MouseDwellRecord",
    "SessionHistoryEntry",
    "SessionHistoryStore",
    "mouse_record",
    "entry_from_summary",
    "mouse_summaries_from_entry",
]


# =============================================================================
# Record Models
# =============================================================================


class MouseDwellRecord(BaseModel):
    """Per-mouse dwell totals in milliseconds plus switch count."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    empty: int = Field(..., ge=0, description="Dwell in the empty chamber (ms)")
    middle: int = Field(..., ge=0, description="Dwell in the middle chamber (ms)")
    stranger: int = Field(..., ge=0, description="Dwell in the stranger chamber (ms)")
    switches: int = Field(..., ge=0, description="Chamber switch count")


class SessionHistoryEntry(BaseModel):
    """One persisted session. Field aliases match the on-disk JSON keys."""

    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    id: int = Field(..., ge=1)
    protocol: str = Field(..., description="Protocol display label")
    started_at: datetime = Field(..., alias="startedAt")
    stopped_at: datetime = Field(..., alias="stoppedAt")
    duration: int = Field(..., ge=0, description="Session duration (ms)")
    mouse_count: int = Field(..., ge=0, alias="mouseCount")
    mouse_dwell_times: Dict[str, MouseDwellRecord] = Field(..., alias="mouseDwellTimes")

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# Conversion
# =============================================================================


def mouse_record(summary: MouseSummary) -> MouseDwellRecord:
    return MouseDwellRecord(
        empty=summary.dwell_ms(Chamber.EMPTY),
        middle=summary.dwell_ms(Chamber.MIDDLE),
        stranger=summary.dwell_ms(Chamber.STRANGER),
        switches=summary.switch_count,
    )


def entry_from_summary(
    summary: SessionSummary,
    entry_id: int,
    protocol: str,
    started_at: Optional[datetime] = None,
    stopped_at: Optional[datetime] = None,
) -> SessionHistoryEntry:
    """Build a history entry from an analyzed session.

    Args:
        summary: Analyzed session
        entry_id: Identifier assigned by the store
        protocol: Protocol display label
        started_at: Recording start (default: summary.session_start)
        stopped_at: Recording stop (default: summary.session_end)
    """
    return SessionHistoryEntry(
        id=entry_id,
        protocol=protocol,
        started_at=started_at if started_at is not None else summary.session_start,
        stopped_at=stopped_at if stopped_at is not None else summary.session_end,
        duration=to_milliseconds(summary.duration),
        mouse_count=summary.mouse_count,
        mouse_dwell_times={mouse_id: mouse_record(mouse) for mouse_id, mouse in summary.mouse_summaries.items()},
    )


def mouse_summaries_from_entry(entry: SessionHistoryEntry) -> Dict[str, MouseSummary]:
    """Rebuild per-mouse summaries from a history entry.

    ``last_event`` is the entry's ``stoppedAt``; ``first_event`` follows from
    the dwell invariant as ``last_event - total dwell``.
    """
    summaries = {}
    for mouse_id in sorted(entry.mouse_dwell_times):
        record = entry.mouse_dwell_times[mouse_id]
        dwell = {
            Chamber.EMPTY: timedelta(milliseconds=record.empty),
            Chamber.MIDDLE: timedelta(milliseconds=record.middle),
            Chamber.STRANGER: timedelta(milliseconds=record.stranger),
        }
        total = sum(dwell.values(), timedelta(0))
        summaries[mouse_id] = MouseSummary(
            mouse_id=mouse_id,
            dwell_durations=dwell,
            switch_count=record.switches,
            first_event=entry.stopped_at - total,
            last_event=entry.stopped_at,
        )
    return summaries


# =============================================================================
# File Store
# =============================================================================


class SessionHistoryStore:
    """JSON-file backed session history.

    Every operation reads the file, so several stores (or processes) pointing
    at the same path observe each other's writes. A missing file is an empty
    history.

    Args:
        path: History file location
    """

    def __init__(self, path: Union[Path, str]):
        self.path = Path(path)

    def _load(self) -> Tuple[List[SessionHistoryEntry], int]:
        if not self.path.exists():
            return [], 1

        try:
            data = read_json(self.path)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise HistoryError(f"History file {self.path} is not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise HistoryError(f"History file {self.path} must contain a JSON object")

        try:
            sessions = [SessionHistoryEntry.model_validate(item) for item in data.get("sessions", [])]
        except PydanticValidationError as e:
            raise HistoryError(f"History file {self.path} contains an invalid session record: {e}") from e

        next_id = data.get("nextId", 1)
        if not isinstance(next_id, int) or next_id < 1:
            raise HistoryError(f"History file {self.path} has invalid nextId: {next_id!r}")
        return sessions, next_id

    def _save(self, sessions: List[SessionHistoryEntry], next_id: int) -> None:
        write_json(self.path, {"sessions": [entry.to_json() for entry in sessions], "nextId": next_id})

    def add_session(
        self,
        protocol: str,
        summary: SessionSummary,
        started_at: Optional[datetime] = None,
        stopped_at: Optional[datetime] = None,
    ) -> int:
        """Persist a completed session and return its assigned id."""
        sessions, next_id = self._load()
        entry = entry_from_summary(summary, entry_id=next_id, protocol=protocol, started_at=started_at, stopped_at=stopped_at)
        sessions.insert(0, entry)
        self._save(sessions, next_id + 1)
        logger.info(f"Saved session {entry.id} to {self.path.name} ({entry.mouse_count} mice)")
        return entry.id

    def get_all_sessions(self) -> List[SessionHistoryEntry]:
        sessions, _ = self._load()
        return sessions

    def get_session(self, entry_id: int) -> Optional[SessionHistoryEntry]:
        sessions, _ = self._load()
        return next((entry for entry in sessions if entry.id == entry_id), None)

    def delete_session(self, entry_id: int) -> bool:
        """Remove one session. Returns False if no session has ``entry_id``."""
        sessions, next_id = self._load()
        remaining = [entry for entry in sessions if entry.id != entry_id]
        if len(remaining) == len(sessions):
            return False
        self._save(remaining, next_id)
        logger.info(f"Deleted session {entry_id} from {self.path.name}")
        return True

    def delete_all_sessions(self) -> None:
        """Remove every session and reset id assignment."""
        self._save([], 1)
        logger.info(f"Cleared session history {self.path.name}")
