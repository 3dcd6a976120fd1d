"""Command line interface for socialyze.

Commands:
---------
- ``analyze``: analyze a CSV event log and print or write a report
- ``bindings``: show the keypad binding table with protocol labels
- ``history list|show|delete|clear``: inspect the saved session history

A global ``--config`` option loads a TOML settings file; environment
variables prefixed ``SOCIALYZE_`` override it.
"""

from datetime import datetime, timedelta
from enum import Enum
import json
from pathlib import Path
from typing import NoReturn, Optional

from pydantic import ValidationError as PydanticValidationError
import typer

from .analysis import analyze_session
from .bindings import build_default_key_bindings
from .config import Settings, load_settings
from .events import read_event_log
from .exceptions import SocialyzeError
from .history import SessionHistoryStore
from .protocols import Protocol, chamber_label, protocol_label
from .report import Delimiter, ReportMode, export_file_name, format_duration, render_delimited
from .utils import configure_logging, write_text

app = typer.Typer(help="Three-chamber social interaction session analytics.", no_args_is_help=True)
history_app = typer.Typer(help="Inspect the saved session history.", no_args_is_help=True)
app.add_typer(history_app, name="history")


class ExportFormat(str, Enum):
    CSV = "csv"
    TSV = "tsv"


def _fail(message: str) -> NoReturn:
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(code=1)


def _settings(ctx: typer.Context) -> Settings:
    return ctx.obj if isinstance(ctx.obj, Settings) else load_settings()


def _parse_instant(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except ValueError as e:
        raise typer.BadParameter(f"not an ISO-8601 timestamp: {value!r}") from e


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="TOML settings file"),
):
    """Load settings and configure logging for every command."""
    try:
        settings = load_settings(config)
    except (FileNotFoundError, PydanticValidationError) as e:
        _fail(str(e))

    configure_logging(settings.logging.level, settings.logging.structured)
    ctx.obj = settings


@app.command()
def analyze(
    ctx: typer.Context,
    events: Path = typer.Argument(..., help="CSV event log (mouse_id, chamber, timestamp)"),
    session_end: str = typer.Option(..., "--session-end", help="ISO-8601 instant closing the session"),
    fmt: Optional[ExportFormat] = typer.Option(None, "--format", help="csv or tsv (default from settings)"),
    mode: Optional[ReportMode] = typer.Option(None, "--mode", help="summary or events (default from settings)"),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Write report here instead of stdout; a directory gets a timestamped file name"
    ),
    protocol: Optional[Protocol] = typer.Option(None, "--protocol", help="Protocol recorded with --save-history"),
    save_history: bool = typer.Option(False, "--save-history", help="Append the session to the history file"),
):
    """Analyze an event log and render a delimited report."""
    settings = _settings(ctx)
    end = _parse_instant(session_end)
    report_mode = ReportMode(mode or settings.export.mode)

    if fmt is None:
        delimiter = settings.export.delimiter_char
    else:
        delimiter = Delimiter.TAB if fmt is ExportFormat.TSV else Delimiter.COMMA

    store = SessionHistoryStore(settings.history.path) if save_history else None
    try:
        summary = analyze_session(read_event_log(events), session_end=end)
        if store is not None:
            # Reject a corrupt history file before any report is written
            store.get_all_sessions()
    except (FileNotFoundError, SocialyzeError) as e:
        _fail(str(e))

    text = render_delimited(summary, delimiter, report_mode)

    if output is None:
        typer.echo(text, nl=False)
    else:
        if output.is_dir():
            output = output / export_file_name(report_mode.value, delimiter, datetime.now())
        write_text(output, text, bom=settings.export.excel_bom and delimiter is Delimiter.TAB)
        typer.echo(f"Wrote report to {output}", err=True)

    if store is not None:
        label = protocol_label(protocol or settings.session.protocol)
        try:
            entry_id = store.add_session(label, summary)
        except SocialyzeError as e:
            _fail(str(e))
        typer.echo(f"Saved session {entry_id} to {store.path}", err=True)


@app.command()
def bindings(
    ctx: typer.Context,
    protocol: Optional[Protocol] = typer.Option(None, "--protocol", help="Protocol used for chamber labels"),
):
    """Show the default keypad bindings."""
    settings = _settings(ctx)
    protocol = protocol or settings.session.protocol

    try:
        table = build_default_key_bindings(settings.session.mouse_ids)
    except SocialyzeError as e:
        _fail(str(e))

    typer.echo(f"Keyboard shortcuts ({protocol_label(protocol)})")
    for binding in table:
        typer.echo(f"{binding.key_label} -> {binding.mouse_id} / {chamber_label(protocol, binding.chamber)}")


@history_app.command("list")
def history_list(ctx: typer.Context):
    """List saved sessions, newest first."""
    store = SessionHistoryStore(_settings(ctx).history.path)
    try:
        sessions = store.get_all_sessions()
    except SocialyzeError as e:
        _fail(str(e))

    if not sessions:
        typer.echo("No saved sessions.")
        return
    for entry in sessions:
        duration = format_duration(timedelta(milliseconds=entry.duration))
        typer.echo(f"{entry.id}\t{entry.started_at.isoformat(timespec='seconds')}\t{entry.protocol}\t{entry.mouse_count} mice\t{duration}")


@history_app.command("show")
def history_show(ctx: typer.Context, entry_id: int = typer.Argument(..., help="Session id")):
    """Print one saved session as JSON."""
    store = SessionHistoryStore(_settings(ctx).history.path)
    try:
        entry = store.get_session(entry_id)
    except SocialyzeError as e:
        _fail(str(e))

    if entry is None:
        _fail(f"Session {entry_id} not found")
    typer.echo(json.dumps(entry.to_json(), indent=2))


@history_app.command("delete")
def history_delete(ctx: typer.Context, entry_id: int = typer.Argument(..., help="Session id")):
    """Delete one saved session."""
    store = SessionHistoryStore(_settings(ctx).history.path)
    try:
        deleted = store.delete_session(entry_id)
    except SocialyzeError as e:
        _fail(str(e))

    if not deleted:
        _fail(f"Session {entry_id} not found")
    typer.echo(f"Deleted session {entry_id}")


@history_app.command("clear")
def history_clear(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Delete every saved session."""
    if not yes:
        typer.confirm("Delete all saved sessions?", abort=True)
    SessionHistoryStore(_settings(ctx).history.path).delete_all_sessions()
    typer.echo("Session history cleared")


if __name__ == "__main__":
    app()
