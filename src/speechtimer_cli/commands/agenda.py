"""Agenda commands: import pasted schedules and edit the running order."""

import sys
from pathlib import Path
from typing import Optional

import typer
from rich.table import Table

from speechtimer_cli.commands.decorators import AppError, command_wrapper
from speechtimer_cli.models.agenda import (
    AgendaImport,
    AgendaItemCreate,
    AgendaItemUpdate,
    SessionCategory,
)
from speechtimer_cli.services.agenda_service import AgendaService
from speechtimer_cli.services.config_service import get_config_service
from speechtimer_cli.utils.agenda_parser import parse_agenda, parse_scheduled_time
from speechtimer_cli.utils.classifier import classify_session
from speechtimer_cli.utils.duration import format_duration, normalize_duration
from speechtimer_cli.utils.exit_codes import ERROR_INVALID_ARGS, ERROR_NOT_FOUND
from speechtimer_cli.utils.typer_helpers import SuggestingGroup
from speechtimer_cli.utils.ui.console import get_console
from speechtimer_cli.utils.ui.formatters import (
    format_error,
    format_output,
    format_success,
    format_warning,
)

app = typer.Typer(cls=SuggestingGroup, help="Agenda import and editing")
console = get_console()

OUTPUT_FORMATS = ("table", "json", "yaml")


def get_agenda_service() -> AgendaService:
    """Agenda service rooted in the configured data directory."""
    return AgendaService(get_config_service().data_dir)


def _read_source(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    try:
        return Path(source).read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise AppError(f"File not found: {source}", ERROR_NOT_FOUND) from e
    except (OSError, UnicodeDecodeError) as e:
        raise AppError(f"Cannot read {source}: {e}", ERROR_INVALID_ARGS) from e


def _check_output(output: str) -> None:
    if output not in OUTPUT_FORMATS:
        raise AppError(
            f"Unknown output format '{output}' (use {', '.join(OUTPUT_FORMATS)})",
            ERROR_INVALID_ARGS,
        )


def _parse_category(value: Optional[str]) -> Optional[SessionCategory]:
    if value is None:
        return None
    try:
        return SessionCategory(value)
    except ValueError as e:
        choices = ", ".join(c.value for c in SessionCategory)
        raise AppError(f"Unknown category '{value}' (use {choices})", ERROR_INVALID_ARGS) from e


def _parse_time_option(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    parsed = parse_scheduled_time(value)
    if parsed is None:
        raise AppError(f"Invalid time '{value}' (use HH:MM)", ERROR_INVALID_ARGS)
    return parsed


def _parse_duration_option(value: str, default: int) -> int:
    seconds = normalize_duration(value, default=default)
    if seconds <= 0:
        raise AppError(f"Duration must be greater than zero: '{value}'", ERROR_INVALID_ARGS)
    return seconds


def _resolve_item_id(service: AgendaService, item_id: str) -> str:
    try:
        return service.get_item(item_id).id
    except KeyError as e:
        raise AppError(e.args[0], ERROR_NOT_FOUND) from e


def render_items(items, title: Optional[str] = None, show_ids: bool = True) -> None:
    """Print agenda items as a table in running order."""
    table = Table(show_header=True, header_style="bold magenta", title=title)
    table.add_column("#", justify="right", style="dim")
    if show_ids:
        table.add_column("ID", style="cyan")
    table.add_column("Time")
    table.add_column("Title", style="bold")
    table.add_column("Duration", justify="right")
    table.add_column("Category")
    table.add_column("Speaker")
    table.add_column("Level", style="dim")

    for position, item in enumerate(items, start=1):
        row = [str(position)]
        if show_ids:
            row.append(item.id)
        row.extend(
            [
                (item.scheduled_time or "-")[:5],
                item.title or "[red](missing)[/red]",
                format_duration(item.duration),
                item.category.label,
                item.speaker or "-",
                item.level or "-",
            ]
        )
        table.add_row(*row)

    console.print(table)


def _report_errors(result: AgendaImport) -> None:
    for error in result.errors:
        format_error(error)
    if not result.items:
        format_warning("No agenda rows recognised")


@app.command("parse")
@command_wrapper
def parse_command(
    source: str = typer.Argument(..., help="File to read, or '-' for stdin"),
    output: str = typer.Option("table", "--output", "-o", help="table, json or yaml"),
) -> None:
    """Preview how pasted agenda text is read, without saving it."""
    _check_output(output)
    config = get_config_service().config
    result = parse_agenda(
        _read_source(source), default_duration=config.parser.default_duration_seconds
    )

    if output == "table":
        if result.items:
            render_items(result.items, title="Parsed agenda", show_ids=False)
        _report_errors(result)
    else:
        format_output(
            {
                "items": [item.model_dump(mode="json") for item in result.items],
                "errors": result.errors,
            },
            output,
        )

    if not result.ok:
        raise typer.Exit(ERROR_INVALID_ARGS)


@app.command("import")
@command_wrapper
def import_command(
    source: str = typer.Argument(..., help="File to read, or '-' for stdin"),
    replace: bool = typer.Option(False, "--replace", help="Replace the current agenda"),
) -> None:
    """Import pasted agenda text. Nothing is saved if any row is invalid."""
    config = get_config_service().config
    service = get_agenda_service()
    result, created = service.import_text(
        _read_source(source),
        replace=replace,
        default_duration=config.parser.default_duration_seconds,
    )

    if not result.ok:
        _report_errors(result)
        format_error("Import cancelled; fix the rows above and try again")
        raise typer.Exit(ERROR_INVALID_ARGS)

    render_items(created, title="Imported")
    format_success(f"Imported {len(created)} agenda items")


@app.command("list")
@command_wrapper
def list_command(
    output: str = typer.Option("table", "--output", "-o", help="table, json or yaml"),
) -> None:
    """List the agenda in running order."""
    _check_output(output)
    items = get_agenda_service().list_items()

    if output != "table":
        format_output([item.model_dump(mode="json") for item in items], output)
        return

    if not items:
        console.print("[yellow]Agenda is empty[/yellow]")
        return

    render_items(items)
    total = sum(item.duration for item in items)
    console.print(f"[dim]{len(items)} items, {format_duration(total)} planned[/dim]")


@app.command("add")
@command_wrapper
def add_command(
    title: str = typer.Argument(..., help="Item title"),
    duration: str = typer.Option("3'", "--duration", "-d", help="Duration, e.g. 5-7' or 3:30"),
    speaker: Optional[str] = typer.Option(None, "--speaker", "-s", help="Speaker name"),
    time: Optional[str] = typer.Option(None, "--time", "-t", help="Planned start (HH:MM)"),
    category: Optional[str] = typer.Option(
        None, "--category", "-c", help="Category; inferred from title when omitted"
    ),
    level: Optional[str] = typer.Option(None, "--level", help="Level tag, e.g. CC"),
    position: Optional[int] = typer.Option(None, "--position", "-p", help="1-based position"),
) -> None:
    """Add an agenda item."""
    if not title.strip():
        raise AppError("Title must not be empty", ERROR_INVALID_ARGS)

    config = get_config_service().config
    seconds = _parse_duration_option(duration, config.parser.default_duration_seconds)
    item = AgendaItemCreate(
        title=title.strip(),
        duration=seconds,
        category=_parse_category(category) or classify_session(title, seconds),
        speaker=speaker,
        scheduled_time=_parse_time_option(time),
        level=level,
    )
    created = get_agenda_service().add_item(item, position=position)
    format_success(
        f"Added '{created.title}' ({format_duration(created.duration)}, "
        f"{created.category.label}) as {created.id}"
    )


@app.command("edit")
@command_wrapper
def edit_command(
    item_id: str = typer.Argument(..., help="Item ID or unique prefix"),
    title: Optional[str] = typer.Option(None, "--title", help="New title"),
    duration: Optional[str] = typer.Option(None, "--duration", "-d", help="New duration"),
    speaker: Optional[str] = typer.Option(None, "--speaker", "-s", help="New speaker"),
    time: Optional[str] = typer.Option(None, "--time", "-t", help="New start (HH:MM)"),
    category: Optional[str] = typer.Option(None, "--category", "-c", help="New category"),
    level: Optional[str] = typer.Option(None, "--level", help="New level tag"),
) -> None:
    """Change fields of an agenda item."""
    service = get_agenda_service()
    resolved = _resolve_item_id(service, item_id)
    config = get_config_service().config

    fields = {}
    if title is not None:
        fields["title"] = title.strip()
    if duration is not None:
        fields["duration"] = _parse_duration_option(
            duration, config.parser.default_duration_seconds
        )
    if speaker is not None:
        fields["speaker"] = speaker or None
    if time is not None:
        fields["scheduled_time"] = _parse_time_option(time)
    if category is not None:
        fields["category"] = _parse_category(category)
    if level is not None:
        fields["level"] = level or None

    if not fields:
        raise AppError("Nothing to change", ERROR_INVALID_ARGS)

    updated = service.update_item(resolved, AgendaItemUpdate(**fields))
    format_success(f"Updated '{updated.title}' ({updated.id})")


@app.command("remove")
@command_wrapper
def remove_command(
    item_id: str = typer.Argument(..., help="Item ID or unique prefix"),
) -> None:
    """Remove an agenda item."""
    service = get_agenda_service()
    removed = service.remove_item(_resolve_item_id(service, item_id))
    format_success(f"Removed '{removed.title}'")


@app.command("move")
@command_wrapper
def move_command(
    item_id: str = typer.Argument(..., help="Item ID or unique prefix"),
    position: int = typer.Argument(..., help="New 1-based position"),
) -> None:
    """Move an agenda item to another position."""
    service = get_agenda_service()
    items = service.move_item(_resolve_item_id(service, item_id), position)
    render_items(items)


@app.command("export")
@command_wrapper
def export_command(
    output_file: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Write to a file instead of stdout"
    ),
) -> None:
    """Export the agenda as tab-delimited text that can be imported again."""
    text = get_agenda_service().export_text()
    if output_file is None:
        print(text)
        return
    output_file.write_text(text + "\n", encoding="utf-8")
    format_success(f"Agenda written to {output_file}")


@app.command("clear")
@command_wrapper
def clear_command(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Remove every agenda item and completion record."""
    if not yes and not typer.confirm("Clear the agenda and its timing records?"):
        format_warning("Cancelled")
        raise typer.Exit(0)

    service = get_agenda_service()
    service.clear()
    service.clear_records()
    format_success("Agenda cleared")
