"""Configuration management commands."""

from typing import Optional

import typer

from speechtimer_cli.commands.decorators import AppError, command_wrapper
from speechtimer_cli.services.config_service import get_config_service
from speechtimer_cli.utils.exit_codes import ERROR_INVALID_ARGS, ERROR_NOT_FOUND
from speechtimer_cli.utils.typer_helpers import SuggestingGroup
from speechtimer_cli.utils.ui.console import get_console
from speechtimer_cli.utils.ui.formatters import format_output, format_success, format_warning

app = typer.Typer(cls=SuggestingGroup, help="Configuration management commands")
console = get_console()


def _unknown_key(key: str) -> AppError:
    keys = ", ".join(get_config_service().keys())
    return AppError(f"Configuration key '{key}' not found (known keys: {keys})", ERROR_NOT_FOUND)


@app.command("show")
@command_wrapper
def show_config(
    output: str = typer.Option("table", "--output", "-o", help="table, json or yaml"),
) -> None:
    """Show the current configuration."""
    svc = get_config_service()
    if output == "table":
        format_output({key: svc.get(key) for key in svc.keys()}, "table")
    else:
        format_output(svc.config.model_dump(), output)


@app.command("get")
@command_wrapper
def get_config(
    key: str = typer.Argument(..., help="Configuration key (e.g., timer.staleness_seconds)"),
) -> None:
    """Get a configuration value."""
    try:
        value = get_config_service().get(key)
    except KeyError as e:
        raise _unknown_key(key) from e
    console.print(value)


@app.command("set")
@command_wrapper
def set_config(
    key: str = typer.Argument(..., help="Configuration key (e.g., timer.sound)"),
    value: str = typer.Argument(..., help="Configuration value"),
) -> None:
    """Set a configuration value."""
    try:
        stored = get_config_service().set(key, value)
    except KeyError as e:
        raise _unknown_key(key) from e
    except ValueError as e:
        raise AppError(f"Invalid value for '{key}': {e}", ERROR_INVALID_ARGS) from e
    format_success(f"Configuration '{key}' set to '{stored}'")


@app.command("reset")
@command_wrapper
def reset_config(
    key: Optional[str] = typer.Argument(None, help="Configuration key to reset"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Reset configuration to defaults."""
    if not yes:
        msg = "entire configuration" if not key else f"'{key}'"
        if not typer.confirm(f"Are you sure you want to reset {msg}?"):
            format_warning("Cancelled")
            raise typer.Exit(0)

    try:
        get_config_service().reset(key)
    except KeyError as e:
        raise _unknown_key(key) from e

    if key:
        format_success(f"Configuration '{key}' reset to default")
    else:
        format_success("Configuration reset to defaults")
