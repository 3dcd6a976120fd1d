"""Live session recorder.

``SessionRecorder`` is the event source that feeds the analyzer: it collects
chamber entries while a session is recording and, when stopped, closes the
session and runs ``analyze_session``. It has no UI; keys or explicit
``log_event`` calls drive it, and the clock is injected so recordings are
reproducible in tests.

Lifecycle:
----------
idle --start()--> recording --stop()--> idle (CompletedSession returned)

Input while idle is ignored, as is a key with no binding.
"""

from datetime import datetime
import logging
from typing import Callable, List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .analysis import analyze_session
from .bindings import KeyBinding, build_default_key_bindings, lookup_binding
from .models import Chamber, ChamberEvent, SessionSummary
from .protocols import Protocol

logger = logging.getLogger(__name__)

__all__ = ["CompletedSession", "SessionRecorder"]


class CompletedSession(BaseModel):
    """Outcome of one recording: wall-clock bounds plus the analyzed summary."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    protocol: Protocol
    started_at: datetime = Field(..., description="Instant start() was called")
    stopped_at: datetime = Field(..., description="Instant stop() was called")
    summary: SessionSummary


class SessionRecorder:
    """Collects chamber events between start() and stop().

    Args:
        protocol: Protocol recorded with completed sessions
        bindings: Key binding table used by handle_key (default numpad layout)
        clock: Zero-argument callable returning the current instant
    """

    def __init__(
        self,
        protocol: Protocol = Protocol.SOCIAL_INTERACTION,
        bindings: Optional[Sequence[KeyBinding]] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.protocol = Protocol(protocol)
        self.bindings: Tuple[KeyBinding, ...] = tuple(bindings) if bindings is not None else build_default_key_bindings()
        self._clock = clock
        self._events: List[ChamberEvent] = []
        self._started_at: Optional[datetime] = None
        self._recording = False

    @property
    def is_recording(self) -> bool:
        return self._recording

    @property
    def started_at(self) -> Optional[datetime]:
        return self._started_at

    @property
    def events(self) -> Tuple[ChamberEvent, ...]:
        return tuple(self._events)

    def start(self) -> None:
        """Begin a new recording, discarding previously logged events."""
        if self._recording:
            return
        self._started_at = self._clock()
        self._events = []
        self._recording = True
        logger.info(f"Recording started ({self.protocol.value})")

    def log_event(self, mouse_id: str, chamber: Chamber) -> Optional[ChamberEvent]:
        """Record ``mouse_id`` entering ``chamber`` now.

        Returns:
            The logged event, or None when not recording
        """
        if not self._recording:
            logger.debug(f"Ignoring event for {mouse_id}: not recording")
            return None
        event = ChamberEvent(mouse_id=mouse_id, chamber=chamber, timestamp=self._clock())
        self._events.append(event)
        return event

    def handle_key(self, key: str) -> Optional[ChamberEvent]:
        binding = lookup_binding(self.bindings, key)
        if binding is None:
            logger.debug(f"Ignoring unbound key {key}")
            return None
        return self.log_event(binding.mouse_id, binding.chamber)

    def stop(self) -> Optional[CompletedSession]:
        """Stop recording and analyze the logged events.

        The session end is the later of the stop instant and the last logged
        event, so a clock that steps backwards cannot cut a session short.

        Returns:
            CompletedSession, or None if idle or no events were logged

        Raises:
            ValidationError: If the logged events violate the analyzer's contract
        """
        if not self._recording:
            return None

        stopped_at = self._clock()
        self._recording = False

        if not self._events:
            logger.info("Recording stopped with no events")
            return None

        last_timestamp = max(event.timestamp for event in self._events)
        session_end = max(stopped_at, last_timestamp)
        summary = analyze_session(self._events, session_end=session_end)

        logger.info(f"Recording stopped: {len(self._events)} events, {summary.mouse_count} mice")
        return CompletedSession(
            protocol=self.protocol,
            started_at=self._started_at,
            stopped_at=stopped_at,
            summary=summary,
        )

    def clear(self) -> None:
        """Discard events and return to idle; protocol and bindings are kept."""
        self._events = []
        self._started_at = None
        self._recording = False
