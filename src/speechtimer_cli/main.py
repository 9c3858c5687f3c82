"""Main entry point for SpeechTimer CLI."""

import typer

from speechtimer_cli import __version__
from speechtimer_cli.commands import agenda, config, timer
from speechtimer_cli.services.config_service import get_config_service
from speechtimer_cli.utils.typer_helpers import SuggestingGroup
from speechtimer_cli.utils.ui import formatters
from speechtimer_cli.utils.ui.console import get_console

app = typer.Typer(
    name="speechtimer",
    cls=SuggestingGroup,
    help="Import meeting agendas and time speakers with green, yellow and red cards",
    no_args_is_help=True,
)

console = get_console()

app.add_typer(agenda.app, name="agenda", help="Agenda import and editing")
app.add_typer(timer.app, name="timer", help="Stage-signal timer for agenda items")
app.add_typer(config.app, name="config", help="Configuration management")


@app.callback()
def main_callback(
    no_color: bool = typer.Option(False, "--no-color", help="Disable colored output"),
) -> None:
    """Apply output settings before any command runs."""
    if no_color or not get_config_service().config.output.color:
        get_console().no_color = True
        formatters.console.no_color = True


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"[bold]SpeechTimer CLI[/bold] version [cyan]{__version__}[/cyan]")


def main() -> None:
    """Entry point for the console script."""
    app()


if __name__ == "__main__":
    main()
