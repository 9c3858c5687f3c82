"""Unit tests for speechtimer_cli.services.agenda_service."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from speechtimer_cli.models.agenda import (
    AgendaItemCreate,
    AgendaItemUpdate,
    CompletionRecord,
    SessionCategory,
)
from speechtimer_cli.services.agenda_service import AgendaService

AGENDA = "\n".join(
    [
        "时间\t项目\t时长\t姓名",
        "19:00\t开场致辞\t3'\t张主席",
        "19:20\t备稿演讲：《科技改变生活》\t5-7'\t陈演讲者",
        "19:28\t即兴演讲环节\t20'\t刘主持人",
    ]
)


@pytest.fixture()
def service(tmp_path):
    return AgendaService(tmp_path / "agenda")


def _add(service, title, **kwargs):
    return service.add_item(AgendaItemCreate(title=title, **kwargs))


class TestImport:
    def test_import_stores_items_in_order(self, service):
        result, created = service.import_text(AGENDA)
        assert result.ok
        assert [item.title for item in service.list_items()] == [
            "开场致辞",
            "备稿演讲：《科技改变生活》",
            "即兴演讲环节",
        ]
        assert len({item.id for item in created}) == 3

    def test_import_appends_by_default(self, service):
        _add(service, "Welcome")
        service.import_text(AGENDA)
        assert len(service.list_items()) == 4

    def test_import_replace(self, service):
        _add(service, "Welcome")
        service.import_text(AGENDA, replace=True)
        assert service.list_items()[0].title == "开场致辞"
        assert len(service.list_items()) == 3

    def test_invalid_import_saves_nothing(self, service):
        _add(service, "Welcome")
        result, created = service.import_text("开场\t0'")
        assert not result.ok
        assert created == []
        assert [item.title for item in service.list_items()] == ["Welcome"]

    def test_empty_import_saves_nothing(self, service):
        result, created = service.import_text("\n\n")
        assert not result.ok
        assert service.list_items() == []

    def test_default_duration(self, service):
        _, created = service.import_text("开场\t???", default_duration=240)
        assert created[0].duration == 240


class TestEditing:
    def test_get_by_prefix(self, service):
        item = _add(service, "Welcome")
        assert service.get_item(item.id[:4]).id == item.id

    def test_get_missing(self, service):
        with pytest.raises(KeyError):
            service.get_item("nothing")

    def test_ambiguous_prefix(self, service):
        _add(service, "A")
        _add(service, "B")
        with pytest.raises(KeyError):
            service.get_item("")

    def test_add_at_position(self, service):
        _add(service, "A")
        _add(service, "C")
        _add(service, "B", position=2)
        _add(service, "Z", position=99)
        assert [i.title for i in service.list_items()] == ["A", "B", "C", "Z"]

    def test_update_only_given_fields(self, service):
        item = _add(service, "Speech", duration=420, speaker="Ann")
        updated = service.update_item(
            item.id, AgendaItemUpdate(duration=300, category=SessionCategory.PREPARED_SPEECH)
        )
        assert updated.duration == 300
        assert updated.speaker == "Ann"
        assert service.get_item(item.id).category == SessionCategory.PREPARED_SPEECH

    def test_remove(self, service):
        item = _add(service, "A")
        assert service.remove_item(item.id).title == "A"
        assert service.list_items() == []

    def test_move(self, service):
        a = _add(service, "A")
        _add(service, "B")
        _add(service, "C")
        assert [i.title for i in service.move_item(a.id, 3)] == ["B", "C", "A"]
        assert [i.title for i in service.move_item(a.id, 0)] == ["A", "B", "C"]

    def test_export_round_trips(self, service, tmp_path):
        service.import_text(AGENDA)
        other = AgendaService(tmp_path / "other")
        _, created = other.import_text(service.export_text())
        exported = [i.model_dump(exclude={"id"}) for i in service.list_items()]
        assert [i.model_dump(exclude={"id"}) for i in created] == exported

    def test_clear(self, service):
        _add(service, "A")
        service.clear()
        assert service.list_items() == []


class TestRecords:
    def test_save_and_list(self, service):
        record = CompletionRecord(
            item_id="a", planned_duration=60, actual_duration=70,
            is_overtime=True, overtime_amount=10,
        )
        service.save_record(record)
        service.save_record(record)
        assert service.list_records() == [record, record]
        service.clear_records()
        assert service.list_records() == []


class TestStorage:
    def test_unreadable_agenda_is_empty(self, tmp_path):
        logger = MagicMock()
        service = AgendaService(tmp_path / "agenda", logger=logger)
        service.agenda_path.write_text("not json", encoding="utf-8")
        assert service.list_items() == []
        logger.warning.assert_called_once()

    def test_write_failure(self, service):
        service.agenda_path.mkdir()
        with pytest.raises(RuntimeError):
            _add(service, "A")
