"""Timer commands: run the stage-signal countdown for agenda items."""

from dataclasses import asdict
from datetime import datetime
from typing import Optional

import typer
from rich.table import Table

from speechtimer_cli.commands.agenda import get_agenda_service
from speechtimer_cli.commands.decorators import AppError, command_wrapper
from speechtimer_cli.models.agenda import SessionCategory
from speechtimer_cli.models.timer.coordinator import TimerCoordinator
from speechtimer_cli.models.timer.engine import schedule_offset
from speechtimer_cli.models.timer.notifier import PhaseNotifier
from speechtimer_cli.models.timer.report import summarize_timing
from speechtimer_cli.models.timer.rules import parse_rules_override
from speechtimer_cli.models.timer.state import FileSnapshotStore, decide_recovery
from speechtimer_cli.models.timer.ui import (
    TimerDisplay,
    show_closed_message,
    show_completion_message,
)
from speechtimer_cli.services.config_service import get_config_service
from speechtimer_cli.utils.duration import format_clock, format_duration
from speechtimer_cli.utils.exit_codes import ERROR_CONFLICT, ERROR_INVALID_ARGS, ERROR_NOT_FOUND
from speechtimer_cli.utils.typer_helpers import SuggestingGroup
from speechtimer_cli.utils.ui.console import get_console
from speechtimer_cli.utils.ui.formatters import format_output, format_success

app = typer.Typer(cls=SuggestingGroup, help="Stage-signal timer for agenda items")
console = get_console()

VERDICT_LABELS = {
    "under_used": "[yellow]under used[/yellow]",
    "well_over": "[red]well over[/red]",
    "slightly_over": "[red]slightly over[/red]",
    "on_time": "[green]on time[/green]",
}


def _now() -> datetime:
    return datetime.now().astimezone()


def get_snapshot_store() -> FileSnapshotStore:
    """Snapshot store in the configured data directory."""
    return FileSnapshotStore(get_config_service().data_dir / "state")


def _find_item(item_id: str):
    try:
        return get_agenda_service().get_item(item_id)
    except KeyError as e:
        raise AppError(e.args[0], ERROR_NOT_FOUND) from e


@app.command("run")
@command_wrapper
def run_command(
    item_id: str = typer.Argument(..., help="Agenda item ID or unique prefix"),
    rules: Optional[str] = typer.Option(
        None, "--rules", help="Custom thresholds in seconds remaining: green,yellow,red[,white]"
    ),
    category: Optional[str] = typer.Option(
        None, "--category", "-c", help="Time this item with another category's preset"
    ),
) -> None:
    """Time an agenda item in a full-screen countdown."""
    item = _find_item(item_id)
    config = get_config_service().config

    custom_rules = None
    if rules:
        try:
            custom_rules = parse_rules_override(rules)
        except ValueError as e:
            raise AppError(f"Invalid --rules: {e}", ERROR_INVALID_ARGS) from e
    if category:
        try:
            item = item.model_copy(update={"category": SessionCategory(category)})
        except ValueError as e:
            raise AppError(f"Unknown category '{category}'", ERROR_INVALID_ARGS) from e

    coordinator = TimerCoordinator(
        get_snapshot_store(),
        staleness_seconds=config.timer.staleness_seconds,
        white_grace_seconds=config.timer.white_grace_seconds,
        white_card_categories=config.timer.white_card_categories,
    )
    timer = coordinator.open(item, _now(), rules=custom_rules)
    if timer is None:
        raise AppError(f"A timer for '{item.title}' is already open", ERROR_CONFLICT)
    decision = coordinator.recovery_for(item.id)
    if decision is not None and decision.action != "none":
        state = "running" if decision.action == "resume_running" else "paused"
        console.print(
            f"[cyan]Recovered {format_clock(decision.elapsed)} of progress ({state})[/cyan]"
        )

    display = TimerDisplay(console, compact=config.output.compact)
    coordinator.subscribe(PhaseNotifier(display.show_cue, enabled=config.timer.sound))
    outcome = display.run_timer(coordinator, item.id, tick_interval=config.timer.tick_interval)

    if outcome != "stopped":
        show_closed_message(timer, console)
        return

    record = coordinator.records[-1]
    get_agenda_service().save_record(record)
    show_completion_message(record, item.title, console)

    if timer.started_at is not None:
        offset = schedule_offset(item.scheduled_time, timer.started_at)
        if offset is not None and offset.is_late:
            console.print(f"[yellow]Started {offset.minutes} min later than planned[/yellow]")
        elif offset is not None and offset.is_early:
            console.print(f"[dim]Started {offset.minutes} min earlier than planned[/dim]")


@app.command("status")
@command_wrapper
def status_command() -> None:
    """Show timers with saved progress and how they would resume."""
    snapshots = get_snapshot_store().list_snapshots()
    if not snapshots:
        console.print("[dim]No saved timer progress[/dim]")
        return

    config = get_config_service().config
    titles = {item.id: item.title for item in get_agenda_service().list_items()}
    now = _now()

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Item", style="cyan")
    table.add_column("Title")
    table.add_column("Elapsed", justify="right")
    table.add_column("State")
    table.add_column("Saved")
    table.add_column("Resumes as")

    for snapshot in snapshots:
        decision = decide_recovery(snapshot, now, config.timer.staleness_seconds)
        state = "running" if snapshot.running else ("paused" if snapshot.has_started else "ready")
        resumes = {
            "resume_running": f"running at {format_clock(decision.elapsed)}",
            "resume_paused": f"paused at {format_clock(decision.elapsed)}",
            "none": "not recovered",
        }[decision.action]
        table.add_row(
            snapshot.item_id,
            titles.get(snapshot.item_id, "[dim](not on agenda)[/dim]"),
            format_clock(snapshot.elapsed),
            state,
            snapshot.snapshot_datetime.strftime("%H:%M:%S"),
            resumes,
        )

    console.print(table)


@app.command("clear")
@command_wrapper
def clear_command(
    item_id: Optional[str] = typer.Argument(None, help="Item whose saved progress to drop"),
    all_items: bool = typer.Option(False, "--all", help="Drop all saved progress"),
) -> None:
    """Discard saved timer progress."""
    store = get_snapshot_store()
    if all_items:
        snapshots = store.list_snapshots()
        for snapshot in snapshots:
            store.delete(snapshot.item_id)
        format_success(f"Cleared {len(snapshots)} saved timers")
        return

    if not item_id:
        raise AppError("Give an item ID or --all", ERROR_INVALID_ARGS)

    if store.load(item_id) is None:
        raise AppError(f"No saved progress for '{item_id}'", ERROR_NOT_FOUND)
    store.delete(item_id)
    format_success(f"Cleared saved progress for {item_id}")


@app.command("report")
@command_wrapper
def report_command(
    output: str = typer.Option("table", "--output", "-o", help="table, json or yaml"),
) -> None:
    """Summarize how well the agenda kept to time."""
    service = get_agenda_service()
    summary = summarize_timing(service.list_items(), service.list_records())

    if output in ("json", "yaml"):
        format_output(asdict(summary), output)
        return
    if output != "table":
        raise AppError(f"Unknown output format '{output}'", ERROR_INVALID_ARGS)

    console.print(
        f"[bold]{summary.recorded_items}[/bold] of {summary.total_items} items timed, "
        f"{format_duration(summary.planned_total)} planned"
    )
    console.print(
        f"On time [green]{summary.on_time_rate}%[/green]  "
        f"Overtime [red]{summary.overtime_rate}%[/red]  "
        f"Under used [yellow]{summary.undertime_rate}%[/yellow]"
    )
    if not summary.items:
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Title")
    table.add_column("Speaker")
    table.add_column("Planned", justify="right")
    table.add_column("Actual", justify="right")
    table.add_column("Usage", justify="right")
    table.add_column("Verdict")
    for analysis in summary.items:
        table.add_row(
            analysis.title,
            analysis.speaker or "-",
            format_clock(analysis.planned),
            format_clock(analysis.actual),
            f"{analysis.usage:.0%}" if analysis.usage is not None else "-",
            VERDICT_LABELS[analysis.verdict],
        )
    console.print(table)
