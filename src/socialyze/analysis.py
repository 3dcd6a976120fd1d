"""Session analyzer: reduce a chamber event log to dwell and switch statistics.

Provides the single pure reduction ``analyze_session`` that turns an event log
plus a caller-declared session end into a ``SessionSummary``. The analyzer
fails fast on the first input-contract violation and never drops, reorders or
clamps events.

Validation order:
-----------------
1. ``EmptyInput`` - no events
2. ``InvalidSessionBound`` - session end before the earliest event
3. Per mouse, in lexicographic id order:
   ``UnorderedEvents``, ``SessionBoundTooEarly``, ``NegativeDelta``

A zero delta between consecutive events is valid; only negative deltas fail.

Example:
--------
>>> from datetime import datetime, timedelta
>>> from socialyze.models import Chamber, ChamberEvent
>>> start = datetime(2024, 1, 1, 12)
>>> events = [
...     ChamberEvent(mouse_id="A", chamber=Chamber.EMPTY, timestamp=start),
...     ChamberEvent(mouse_id="A", chamber=Chamber.MIDDLE, timestamp=start + timedelta(seconds=30)),
... ]
>>> summary = analyze_session(events, session_end=start + timedelta(seconds=45))
>>> summary.mouse_summaries["A"].switch_count
1
"""

from datetime import datetime, timedelta
import logging
from typing import Dict, Iterable, List, Optional

from .exceptions import EmptyInput, InvalidSessionBound, NegativeDelta, SessionBoundTooEarly, UnorderedEvents
from .models import Chamber, ChamberEvent, MouseSummary, SessionSummary

logger = logging.getLogger(__name__)

__all__ = ["analyze_session", "analyze_mouse", "group_by_mouse"]

_ZERO = timedelta(0)


# =============================================================================
# Grouping and Ordering
# =============================================================================


def group_by_mouse(events: Iterable[ChamberEvent]) -> Dict[str, List[ChamberEvent]]:
    """Group events by mouse id, keys in lexicographic order.

    Each group keeps the events in their input order.
    """
    grouped: Dict[str, List[ChamberEvent]] = {}
    for event in events:
        grouped.setdefault(event.mouse_id, []).append(event)
    return {mouse_id: grouped[mouse_id] for mouse_id in sorted(grouped)}


def _sort_chronologically(events: List[ChamberEvent], mouse_id: Optional[str] = None) -> List[ChamberEvent]:
    """Stable ascending sort by timestamp; ties keep input order."""
    scope = f"mouse {mouse_id}" if mouse_id is not None else "session"
    try:
        ordered = sorted(events, key=lambda e: e.timestamp)
    except TypeError as e:
        # Mixing naive and timezone-aware datetimes
        raise UnorderedEvents(f"Event timestamps for {scope} are not mutually comparable: {e}", mouse_id=mouse_id) from e

    for previous, current in zip(ordered, ordered[1:]):
        if current.timestamp - previous.timestamp < _ZERO:
            raise UnorderedEvents(f"Events for {scope} are out of chronological order at {current.timestamp.isoformat()}", mouse_id=mouse_id)
    return ordered


# =============================================================================
# Per-Mouse Reduction
# =============================================================================


def analyze_mouse(mouse_id: str, events: List[ChamberEvent], session_end: datetime) -> MouseSummary:
    """Accumulate dwell durations and switches for one mouse.

    Args:
        mouse_id: Mouse identifier shared by all ``events``
        events: Non-empty list of the mouse's events, any order
        session_end: Instant closing the final chamber's dwell

    Returns:
        MouseSummary with ``last_event == session_end``

    Raises:
        UnorderedEvents: If the events cannot be ordered chronologically
        SessionBoundTooEarly: If session_end precedes the mouse's last event
        NegativeDelta: If a step or the closing tail is negative
    """
    ordered = _sort_chronologically(events, mouse_id)

    if session_end < ordered[-1].timestamp:
        raise SessionBoundTooEarly(
            f"Session end {session_end.isoformat()} precedes last event {ordered[-1].timestamp.isoformat()} for mouse {mouse_id}",
            mouse_id=mouse_id,
        )

    dwell: Dict[Chamber, timedelta] = {chamber: _ZERO for chamber in Chamber}
    switch_count = 0
    previous = ordered[0]

    for event in ordered[1:]:
        delta = event.timestamp - previous.timestamp
        if delta < _ZERO:
            raise NegativeDelta(f"Negative time step {delta} for mouse {mouse_id}", mouse_id=mouse_id)
        dwell[previous.chamber] += delta
        if event.chamber != previous.chamber:
            switch_count += 1
        previous = event

    tail = session_end - previous.timestamp
    if tail < _ZERO:
        raise NegativeDelta(f"Session end precedes final event for mouse {mouse_id}", mouse_id=mouse_id)
    dwell[previous.chamber] += tail

    return MouseSummary(
        mouse_id=mouse_id,
        dwell_durations=dwell,
        switch_count=switch_count,
        first_event=ordered[0].timestamp,
        last_event=session_end,
    )


# =============================================================================
# Session Reduction
# =============================================================================


def analyze_session(events: Iterable[ChamberEvent], session_end: datetime) -> SessionSummary:
    """Compute dwell times, switch counts and session bounds.

    Args:
        events: Chamber events for all mice, in any order
        session_end: Caller-declared end of the session; must not precede
            any event

    Returns:
        SessionSummary with one MouseSummary per distinct mouse and the full
        event log sorted by timestamp

    Raises:
        EmptyInput: If no events are given
        InvalidSessionBound: If session_end precedes the earliest event
        UnorderedEvents: If timestamps cannot be ordered
        SessionBoundTooEarly: If session_end precedes a mouse's last event
        NegativeDelta: If any accumulated step is negative
    """
    events = list(events)
    if not events:
        raise EmptyInput("At least one event is required to analyze a session")

    sorted_events = _sort_chronologically(events)
    session_start = sorted_events[0].timestamp

    try:
        before_start = session_end < session_start
    except TypeError as e:
        raise InvalidSessionBound(f"Session end {session_end!r} is not comparable with event timestamps: {e}") from e
    if before_start:
        raise InvalidSessionBound(f"Session end {session_end.isoformat()} precedes session start {session_start.isoformat()}")

    summaries = {mouse_id: analyze_mouse(mouse_id, mouse_events, session_end) for mouse_id, mouse_events in group_by_mouse(events).items()}

    summary = SessionSummary(
        session_start=session_start,
        session_end=session_end,
        mouse_summaries=summaries,
        events=sorted_events,
    )

    logger.info(f"Analyzed session: {len(summaries)} mice, {len(sorted_events)} events, duration {summary.duration}")
    return summary
