"""Pytest configuration and shared fixtures for socialyze tests.

Provides:
- A fixed session start instant
- Event builders for the reference scenarios
- Analyzed summaries and temporary history/config paths
"""

from datetime import datetime, timedelta
from pathlib import Path
from typing import List

import pytest

from socialyze.analysis import analyze_session
from socialyze.models import Chamber, ChamberEvent, SessionSummary

# ============================================================================
# Event Builders
# ============================================================================


@pytest.fixture(scope="session")
def session_start() -> datetime:
    """Reference instant all scenario timestamps are offset from."""
    return datetime(2024, 1, 1, 12, 0, 0)


@pytest.fixture
def make_event(session_start: datetime):
    """Build a ChamberEvent ``seconds`` after the session start."""

    def _make(mouse_id: str, chamber: Chamber, seconds: float) -> ChamberEvent:
        return ChamberEvent(mouse_id=mouse_id, chamber=chamber, timestamp=session_start + timedelta(seconds=seconds))

    return _make


@pytest.fixture
def two_mouse_events(make_event) -> List[ChamberEvent]:
    """Mouse A: empty@0 middle@30 stranger@50; mouse B: middle@10 empty@40."""
    return [
        make_event("A", Chamber.EMPTY, 0),
        make_event("A", Chamber.MIDDLE, 30),
        make_event("A", Chamber.STRANGER, 50),
        make_event("B", Chamber.MIDDLE, 10),
        make_event("B", Chamber.EMPTY, 40),
    ]


@pytest.fixture
def two_mouse_summary(two_mouse_events, session_start) -> SessionSummary:
    """Two-mouse session closed 80 s after the start."""
    return analyze_session(two_mouse_events, session_end=session_start + timedelta(seconds=80))


# ============================================================================
# Temporary Files
# ============================================================================


@pytest.fixture
def history_path(tmp_path: Path) -> Path:
    return tmp_path / "history" / "session_history.json"


@pytest.fixture
def cli_env(history_path: Path) -> dict:
    """Environment isolating CLI runs from user settings and log noise."""
    return {
        "SOCIALYZE_HISTORY__PATH": str(history_path),
        "SOCIALYZE_LOGGING__LEVEL": "WARNING",
    }
