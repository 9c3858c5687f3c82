"""Agenda service - business logic for the current session's agenda.

Items and completion records are stored as JSON documents in the user
data directory. This layer sits between commands and the parser/timer
models.
"""

from __future__ import annotations

import json
import logging
import uuid
from pathlib import Path

from platformdirs import user_data_dir
from pydantic import TypeAdapter, ValidationError

from speechtimer_cli.models.agenda import (
    AgendaImport,
    AgendaItem,
    AgendaItemCreate,
    AgendaItemUpdate,
    CompletionRecord,
)
from speechtimer_cli.utils.agenda_parser import format_agenda_text, parse_agenda
from speechtimer_cli.utils.duration import DEFAULT_DURATION_SECONDS
from speechtimer_cli.utils.logger import get_logger

_ITEMS = TypeAdapter(list[AgendaItem])
_RECORDS = TypeAdapter(list[CompletionRecord])


def new_item_id() -> str:
    """Short opaque identifier for an agenda item."""
    return uuid.uuid4().hex[:8]


class AgendaService:
    """Service for agenda business logic."""

    def __init__(self, data_dir: Path | None = None, logger: logging.Logger | None = None):
        """Initialize the agenda service.

        Args:
            data_dir: Directory holding agenda.json and records.json
            logger: Logger, defaults to the application logger
        """
        self.data_dir = data_dir or Path(user_data_dir("speechtimer_cli"))
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.agenda_path = self.data_dir / "agenda.json"
        self.records_path = self.data_dir / "records.json"
        self._logger = logger or get_logger("agenda")

    # Items

    def list_items(self) -> list[AgendaItem]:
        """Agenda items in running order."""
        return self._read(self.agenda_path, _ITEMS)

    def get_item(self, item_id: str) -> AgendaItem:
        """Get an item by id or unique id prefix.

        Raises:
            KeyError: If no item, or more than one item, matches
        """
        items = self.list_items()
        return items[self._index_of(items, item_id)]

    def import_text(
        self,
        text: str,
        replace: bool = False,
        default_duration: int = DEFAULT_DURATION_SECONDS,
    ) -> tuple[AgendaImport, list[AgendaItem]]:
        """Parse pasted agenda text and store the items.

        Nothing is stored when the parse produced validation errors or no
        items at all.

        Returns:
            Tuple of (parse result, items that were stored)
        """
        result = parse_agenda(text, default_duration=default_duration)
        if not result.ok:
            self._logger.warning(
                "Agenda import blocked: %d items, %d errors", len(result.items), len(result.errors)
            )
            return result, []

        created = [AgendaItem(id=new_item_id(), **item.model_dump()) for item in result.items]
        items = [] if replace else self.list_items()
        self._save_items(items + created)
        self._logger.info("Imported %d agenda items (replace=%s)", len(created), replace)
        return result, created

    def add_item(self, item: AgendaItemCreate, position: int | None = None) -> AgendaItem:
        """Add an item at the end, or at a 1-based position."""
        created = AgendaItem(id=new_item_id(), **item.model_dump())
        items = self.list_items()
        if position is None:
            items.append(created)
        else:
            items.insert(_clamp_position(position, len(items) + 1) - 1, created)
        self._save_items(items)
        return created

    def update_item(self, item_id: str, updates: AgendaItemUpdate) -> AgendaItem:
        """Apply the provided fields to an item."""
        items = self.list_items()
        index = self._index_of(items, item_id)
        data = items[index].model_dump()
        data.update(updates.model_dump(exclude_unset=True))
        items[index] = AgendaItem.model_validate(data)
        self._save_items(items)
        return items[index]

    def remove_item(self, item_id: str) -> AgendaItem:
        items = self.list_items()
        removed = items.pop(self._index_of(items, item_id))
        self._save_items(items)
        return removed

    def move_item(self, item_id: str, position: int) -> list[AgendaItem]:
        """Move an item to a 1-based position; out-of-range positions clamp."""
        items = self.list_items()
        item = items.pop(self._index_of(items, item_id))
        items.insert(_clamp_position(position, len(items) + 1) - 1, item)
        self._save_items(items)
        return items

    def clear(self) -> None:
        """Remove every agenda item."""
        self._save_items([])

    def export_text(self) -> str:
        """Agenda as tab-delimited text that imports back to the same items."""
        return format_agenda_text(self.list_items())

    # Completion records

    def save_record(self, record: CompletionRecord) -> None:
        records = self.list_records()
        records.append(record)
        self._write(self.records_path, _RECORDS.dump_json(records, indent=2))

    def list_records(self) -> list[CompletionRecord]:
        return self._read(self.records_path, _RECORDS)

    def clear_records(self) -> None:
        self._write(self.records_path, b"[]")

    # Storage

    def _index_of(self, items: list[AgendaItem], item_id: str) -> int:
        for index, item in enumerate(items):
            if item.id == item_id:
                return index
        matches = [index for index, item in enumerate(items) if item.id.startswith(item_id)]
        if item_id and len(matches) == 1:
            return matches[0]
        if len(matches) > 1:
            raise KeyError(f"Item id '{item_id}' is ambiguous")
        raise KeyError(f"Agenda item '{item_id}' not found")

    def _save_items(self, items: list[AgendaItem]) -> None:
        self._write(self.agenda_path, _ITEMS.dump_json(items, indent=2))

    def _read(self, path: Path, adapter: TypeAdapter):
        if not path.exists():
            return []
        try:
            return adapter.validate_json(path.read_bytes())
        except (OSError, ValidationError, json.JSONDecodeError) as e:
            self._logger.warning("Ignoring unreadable %s: %s", path.name, e)
            return []

    def _write(self, path: Path, payload: bytes) -> None:
        try:
            path.write_bytes(payload)
        except OSError as e:
            raise RuntimeError(f"Failed to save {path.name}: {e}") from e


def _clamp_position(position: int, upper: int) -> int:
    return max(1, min(position, upper))
