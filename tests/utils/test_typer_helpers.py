"""Tests for the command-suggesting Typer group."""

import typer
from typer.testing import CliRunner

from speechtimer_cli.utils.typer_helpers import SuggestingGroup

runner = CliRunner()

app = typer.Typer(cls=SuggestingGroup)


@app.command("import")
def import_command():
    typer.echo("imported")


@app.command("list")
def list_command():
    typer.echo("listed")


class TestSuggestingGroup:
    def test_known_command(self):
        result = runner.invoke(app, ["list"])
        assert result.exit_code == 0
        assert "listed" in result.output

    def test_typo_suggests_command(self):
        result = runner.invoke(app, ["lst"])
        assert result.exit_code == 1
        assert "Did you mean this?" in result.output
        assert "list" in result.output

    def test_unrelated_command_falls_through(self):
        result = runner.invoke(app, ["zzzzzz"])
        assert result.exit_code == 2
        assert "Did you mean" not in result.output
