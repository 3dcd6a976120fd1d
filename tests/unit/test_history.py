"""Unit tests for history records and the JSON history store."""

from datetime import timedelta
import json

import pytest

from socialyze.exceptions import HistoryError
from socialyze.history import (
    SessionHistoryEntry,
    SessionHistoryStore,
    entry_from_summary,
    mouse_record,
    mouse_summaries_from_entry,
)

pytestmark = pytest.mark.unit

LEGACY_FILE = {
    "sessions": [
        {
            "id": 1,
            "protocol": "Social Interaction",
            "startedAt": "2024-01-01T12:00:00.000",
            "stoppedAt": "2024-01-01T12:01:20.000",
            "duration": 80000,
            "mouseCount": 1,
            "mouseDwellTimes": {"A": {"empty": 30000, "middle": 20000, "stranger": 30000, "switches": 2}},
        }
    ],
    "nextId": 2,
}


class TestConversion:
    def test_Should_StoreMilliseconds_When_RecordBuilt(self, two_mouse_summary):
        record = mouse_record(two_mouse_summary.mouse_summaries["A"])

        assert (record.empty, record.middle, record.stranger, record.switches) == (30000, 20000, 30000, 2)

    def test_Should_UseCamelCaseKeys_When_Serialized(self, two_mouse_summary):
        entry = entry_from_summary(two_mouse_summary, entry_id=1, protocol="Social Interaction")
        data = entry.to_json()

        assert set(data) == {"id", "protocol", "startedAt", "stoppedAt", "duration", "mouseCount", "mouseDwellTimes"}
        assert data["duration"] == 80000
        assert data["mouseCount"] == 2
        assert data["mouseDwellTimes"]["B"] == {"empty": 40000, "middle": 30000, "stranger": 0, "switches": 1}

    def test_Should_RebuildSummaries_When_ConvertedBack(self, two_mouse_summary):
        entry = entry_from_summary(two_mouse_summary, entry_id=1, protocol="Social Interaction")

        assert mouse_summaries_from_entry(entry) == two_mouse_summary.mouse_summaries

    def test_Should_RoundTripJson_When_Reparsed(self, two_mouse_summary):
        entry = entry_from_summary(two_mouse_summary, entry_id=3, protocol="Social Novelty")

        assert SessionHistoryEntry.model_validate(json.loads(json.dumps(entry.to_json()))) == entry

    def test_Should_PreferRecordingBounds_When_Given(self, two_mouse_summary, session_start):
        started = session_start - timedelta(seconds=5)
        entry = entry_from_summary(two_mouse_summary, entry_id=1, protocol="Social Interaction", started_at=started)

        assert entry.started_at == started
        assert entry.stopped_at == two_mouse_summary.session_end


class TestHistoryStore:
    def test_Should_ReturnEmpty_When_FileMissing(self, history_path):
        assert SessionHistoryStore(history_path).get_all_sessions() == []

    def test_Should_AssignIdsNewestFirst_When_SessionsAdded(self, history_path, two_mouse_summary):
        store = SessionHistoryStore(history_path)

        first = store.add_session("Social Interaction", two_mouse_summary)
        second = store.add_session("Social Novelty", two_mouse_summary)

        assert (first, second) == (1, 2)
        assert [entry.id for entry in store.get_all_sessions()] == [2, 1]
        assert json.loads(history_path.read_text())["nextId"] == 3

    def test_Should_ShareState_When_TwoStoresUseSamePath(self, history_path, two_mouse_summary):
        SessionHistoryStore(history_path).add_session("Social Interaction", two_mouse_summary)

        assert SessionHistoryStore(history_path).get_session(1).mouse_count == 2

    def test_Should_DeleteOnce_When_SessionRemoved(self, history_path, two_mouse_summary):
        store = SessionHistoryStore(history_path)
        store.add_session("Social Interaction", two_mouse_summary)

        assert store.delete_session(1) is True
        assert store.delete_session(1) is False
        assert store.get_session(1) is None

    def test_Should_ResetIds_When_AllSessionsDeleted(self, history_path, two_mouse_summary):
        store = SessionHistoryStore(history_path)
        store.add_session("Social Interaction", two_mouse_summary)
        store.add_session("Social Interaction", two_mouse_summary)

        store.delete_all_sessions()

        assert store.get_all_sessions() == []
        assert store.add_session("Social Interaction", two_mouse_summary) == 1

    def test_Should_ReadExistingLayout_When_FileWrittenElsewhere(self, history_path):
        history_path.parent.mkdir(parents=True)
        history_path.write_text(json.dumps(LEGACY_FILE))

        entry = SessionHistoryStore(history_path).get_session(1)

        assert entry.mouse_dwell_times["A"].switches == 2
        assert mouse_summaries_from_entry(entry)["A"].total_dwell == timedelta(seconds=80)

    def test_Should_RaiseHistoryError_When_FileCorrupt(self, history_path):
        history_path.parent.mkdir(parents=True)
        history_path.write_text("{not json")

        with pytest.raises(HistoryError, match="not valid JSON"):
            SessionHistoryStore(history_path).get_all_sessions()

    def test_Should_RaiseHistoryError_When_RecordInvalid(self, history_path):
        history_path.parent.mkdir(parents=True)
        history_path.write_text(json.dumps({"sessions": [{"id": 1}], "nextId": 2}))

        with pytest.raises(HistoryError, match="invalid session record"):
            SessionHistoryStore(history_path).get_all_sessions()
