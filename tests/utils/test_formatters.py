"""Tests for the rich/json/yaml output formatters."""

import json
from io import StringIO
from unittest.mock import patch

import pytest
import yaml
from rich.console import Console

from speechtimer_cli.utils.ui import formatters


@pytest.fixture()
def output():
    buffer = StringIO()
    with patch.object(formatters, "console", Console(file=buffer, width=120)):
        yield buffer


class TestFormatOutput:
    def test_json(self, capsys):
        formatters.format_output({"title": "即兴演讲", "duration": 120}, "json")
        assert json.loads(capsys.readouterr().out) == {"title": "即兴演讲", "duration": 120}

    def test_yaml(self, capsys):
        formatters.format_output([{"id": "a"}], "yaml")
        assert yaml.safe_load(capsys.readouterr().out) == [{"id": "a"}]

    def test_unknown_format(self):
        with pytest.raises(ValueError):
            formatters.format_output({}, "xml")

    def test_table_of_dicts(self, output):
        formatters.format_output([{"item_id": "a1", "running": True}], "table")
        text = output.getvalue()
        assert "Item Id" in text
        assert "a1" in text
        assert "✓" in text

    def test_single_dict(self, output):
        formatters.format_output({"timer.sound": None}, "table")
        assert "-" in output.getvalue()

    def test_empty(self, output):
        formatters.format_output([], "table")
        assert "No data to display" in output.getvalue()


class TestMessages:
    @pytest.mark.parametrize(
        ("func", "label"),
        [
            (formatters.format_error, "Error:"),
            (formatters.format_success, "Success:"),
            (formatters.format_warning, "Warning:"),
        ],
    )
    def test_prefix(self, output, func, label):
        func("hello")
        assert f"{label} hello" in output.getvalue()
