"""CLI subcommand tests.

Runs the Typer application in-process and checks output, files written and
exit codes.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.main import get_command
from typer.testing import CliRunner

from socialyze.cli import app
from socialyze.events import write_event_log

pytestmark = pytest.mark.cli

runner = CliRunner()

SESSION_END = "2024-01-01T12:01:20"


@pytest.fixture(autouse=True)
def restore_root_logger():
    """The app callback reconfigures the root logger; undo it after each test."""
    import logging

    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def event_log(tmp_path: Path, two_mouse_events) -> Path:
    path = tmp_path / "events.csv"
    write_event_log(path, two_mouse_events)
    return path


class TestCommandRegistration:
    def test_Should_ProvideAllCommands_When_Imported(self):
        commands = get_command(app).commands

        assert {"analyze", "bindings", "history"} <= set(commands)
        assert {"list", "show", "delete", "clear"} <= set(commands["history"].commands)


class TestAnalyzeCommand:
    def test_Should_PrintSummaryReport_When_EventLogValid(self, event_log, cli_env):
        result = runner.invoke(app, ["analyze", str(event_log), "--session-end", SESSION_END], env=cli_env)

        assert result.exit_code == 0, result.output
        assert result.stdout.startswith("Session Summary Report\n")
        assert "A,30.000,20.000,30.000,80.000,2" in result.stdout
        assert "B,40.000,30.000,0.000,70.000,1" in result.stdout

    def test_Should_UseTabs_When_TsvRequested(self, event_log, cli_env):
        result = runner.invoke(app, ["analyze", str(event_log), "--session-end", SESSION_END, "--format", "tsv"], env=cli_env)

        assert result.exit_code == 0, result.output
        assert "A\t30.000\t20.000\t30.000\t80.000\t2" in result.stdout

    def test_Should_UseSettingsDelimiter_When_FormatOmitted(self, event_log, cli_env):
        env = {**cli_env, "SOCIALYZE_EXPORT__DELIMITER": "tab"}

        result = runner.invoke(app, ["analyze", str(event_log), "--session-end", SESSION_END], env=env)

        assert "Total Duration\t01m 20s" in result.stdout

    def test_Should_PrintEventRows_When_EventsMode(self, event_log, cli_env):
        result = runner.invoke(app, ["analyze", str(event_log), "--session-end", SESSION_END, "--mode", "events"], env=cli_env)

        assert result.exit_code == 0, result.output
        assert "summary,A,total,,2," in result.stdout
        assert "event,B,middle,,,2024-01-01T12:00:10.000" in result.stdout

    def test_Should_WriteFileWithBom_When_ExcelTsvRequested(self, event_log, cli_env, tmp_path: Path):
        output = tmp_path / "out" / "report.tsv"
        env = {**cli_env, "SOCIALYZE_EXPORT__EXCEL_BOM": "true"}

        result = runner.invoke(app, ["analyze", str(event_log), "--session-end", SESSION_END, "--format", "tsv", "--output", str(output)], env=env)

        assert result.exit_code == 0, result.output
        assert output.read_bytes().startswith(b"\xef\xbb\xbfSession Summary Report")

    def test_Should_FailWithoutOutput_When_SessionEndTooEarly(self, event_log, cli_env, tmp_path: Path):
        output = tmp_path / "report.csv"

        result = runner.invoke(app, ["analyze", str(event_log), "--session-end", "2024-01-01T12:00:45", "--output", str(output)], env=cli_env)

        assert result.exit_code == 1
        assert "Error" in result.output
        assert not output.exists()

    def test_Should_NameDefaultFile_When_OutputIsDirectory(self, event_log, cli_env, tmp_path: Path):
        out_dir = tmp_path / "exports"
        out_dir.mkdir()

        result = runner.invoke(
            app, ["analyze", str(event_log), "--session-end", SESSION_END, "--format", "tsv", "--output", str(out_dir)], env=cli_env
        )

        assert result.exit_code == 0, result.output
        written = list(out_dir.iterdir())
        assert len(written) == 1
        assert written[0].name.startswith("socialyze_summary_")
        assert written[0].suffix == ".tsv"
        assert written[0].read_text(encoding="utf-8").startswith("Session Summary Report\n")

    def test_Should_FailWithoutOutput_When_HistoryFileCorrupt(self, event_log, cli_env, history_path: Path, tmp_path: Path):
        history_path.parent.mkdir(parents=True)
        history_path.write_text("{not json}", encoding="utf-8")
        output = tmp_path / "report.csv"

        result = runner.invoke(
            app, ["analyze", str(event_log), "--session-end", SESSION_END, "--output", str(output), "--save-history"], env=cli_env
        )

        assert result.exit_code == 1
        assert "Error: History file" in result.output
        assert not output.exists()
        assert history_path.read_text(encoding="utf-8") == "{not json}"

    def test_Should_ReportError_When_EventLogNotUtf8(self, cli_env, tmp_path: Path):
        path = tmp_path / "events.csv"
        path.write_bytes(b"mouse_id,chamber,timestamp\nA,empty,\xff\xfe\n")

        result = runner.invoke(app, ["analyze", str(path), "--session-end", SESSION_END], env=cli_env)

        assert result.exit_code == 1
        assert "Error: Event log events.csv" in result.output

    def test_Should_FailWithNonZeroExit_When_EventLogMissing(self, tmp_path: Path, cli_env):
        result = runner.invoke(app, ["analyze", str(tmp_path / "missing.csv"), "--session-end", SESSION_END], env=cli_env)

        assert result.exit_code == 1
        assert "not found" in result.output.lower()

    def test_Should_RejectSessionEnd_When_NotIsoFormat(self, event_log, cli_env):
        result = runner.invoke(app, ["analyze", str(event_log), "--session-end", "later"], env=cli_env)

        assert result.exit_code != 0

    def test_Should_FailWithNonZeroExit_When_ConfigMissing(self, event_log, cli_env, tmp_path: Path):
        result = runner.invoke(app, ["--config", str(tmp_path / "missing.toml"), "analyze", str(event_log), "--session-end", SESSION_END], env=cli_env)

        assert result.exit_code == 1


class TestHistoryCommands:
    def test_Should_ListSavedSession_When_AnalyzeSavesHistory(self, event_log, cli_env, history_path: Path):
        result = runner.invoke(
            app,
            ["analyze", str(event_log), "--session-end", SESSION_END, "--save-history", "--protocol", "social_novelty"],
            env=cli_env,
        )
        assert result.exit_code == 0, result.output
        assert history_path.exists()

        listed = runner.invoke(app, ["history", "list"], env=cli_env)

        assert listed.exit_code == 0
        assert "Social Novelty" in listed.stdout
        assert "2 mice" in listed.stdout
        assert "01m 20s" in listed.stdout

    def test_Should_PrintJson_When_ShowingSession(self, event_log, cli_env):
        runner.invoke(app, ["analyze", str(event_log), "--session-end", SESSION_END, "--save-history"], env=cli_env)

        result = runner.invoke(app, ["history", "show", "1"], env=cli_env)

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["protocol"] == "Social Interaction"
        assert data["mouseDwellTimes"]["A"]["switches"] == 2

    def test_Should_DeleteSession_When_IdExists(self, event_log, cli_env):
        runner.invoke(app, ["analyze", str(event_log), "--session-end", SESSION_END, "--save-history"], env=cli_env)

        deleted = runner.invoke(app, ["history", "delete", "1"], env=cli_env)
        missing = runner.invoke(app, ["history", "delete", "1"], env=cli_env)

        assert deleted.exit_code == 0
        assert missing.exit_code == 1

    def test_Should_ReportEmptyHistory_When_NothingSaved(self, cli_env):
        result = runner.invoke(app, ["history", "list"], env=cli_env)

        assert result.exit_code == 0
        assert "No saved sessions." in result.stdout

    def test_Should_ClearHistory_When_Confirmed(self, event_log, cli_env):
        runner.invoke(app, ["analyze", str(event_log), "--session-end", SESSION_END, "--save-history"], env=cli_env)

        result = runner.invoke(app, ["history", "clear", "--yes"], env=cli_env)

        assert result.exit_code == 0
        assert "No saved sessions." in runner.invoke(app, ["history", "list"], env=cli_env).stdout


class TestBindingsCommand:
    def test_Should_ListNumpadKeys_When_DefaultProtocol(self, cli_env):
        result = runner.invoke(app, ["bindings"], env=cli_env)

        assert result.exit_code == 0
        assert "Keyboard shortcuts (Social Interaction)" in result.stdout
        assert "Numpad 7 -> Mouse A / Empty" in result.stdout

    def test_Should_UseNoveltyLabels_When_ProtocolGiven(self, cli_env):
        result = runner.invoke(app, ["bindings", "--protocol", "social_novelty"], env=cli_env)

        assert "Numpad 8 -> Mouse B / New Stranger" in result.stdout

    def test_Should_Fail_When_TooManyMiceConfigured(self, cli_env):
        env = {**cli_env, "SOCIALYZE_SESSION__MOUSE_IDS": "A,B,C,D"}

        result = runner.invoke(app, ["bindings"], env=env)

        assert result.exit_code == 1
