"""Tests for the menu store domain manager."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from richmenu_studio.core.actions import MessageAction, PostbackAction, UriAction
from richmenu_studio.core.geometry import Bounds, CanvasSize
from richmenu_studio.editor.document_model import DocumentFormatError, MenuDocument, Region
from richmenu_studio.ui.domain.menu_store import MenuStore
from richmenu_studio.ui.events import DocumentChanged, Event, EventBus, SelectionChanged


def _changes(events: list[Event]) -> list[Event]:
    return [event for event in events if isinstance(event, (DocumentChanged, SelectionChanged))]


class TestSelection:
    def test_select_publishes_once(self, recording_bus: EventBus, event_log: list[Event], sample_document: MenuDocument) -> None:
        store = MenuStore(sample_document, event_bus=recording_bus)

        store.select("area-a")
        store.select("area-a")

        assert _changes(event_log) == [SelectionChanged(region_id="area-a")]
        assert store.selected_region is sample_document.regions[0]

    def test_select_unknown_region_raises(self, store: MenuStore) -> None:
        with pytest.raises(KeyError):
            store.select("nope")

    def test_replacing_document_without_selected_region_clears_selection(
        self, recording_bus: EventBus, event_log: list[Event], sample_document: MenuDocument
    ) -> None:
        store = MenuStore(sample_document, event_bus=recording_bus)
        store.select("area-a")
        event_log.clear()

        store.replace_document(sample_document.remove_region("area-a"), reason="delete")

        assert store.selected_id is None
        assert _changes(event_log) == [
            DocumentChanged(region_count=1, reason="delete"),
            SelectionChanged(region_id=None),
        ]

    def test_replacing_with_same_document_is_silent(self, store: MenuStore, event_log: list[Event]) -> None:
        store.replace_document(store.document)

        assert event_log == []


class TestEdits:
    def test_change_action_type_clears_foreign_fields(self, sample_document: MenuDocument) -> None:
        store = MenuStore(sample_document)

        store.change_action_type("area-a", "message")

        action = store.document.find_region("area-a").action
        assert action == MessageAction(text="")
        assert not hasattr(action, "uri")

    def test_update_region_action(self, sample_document: MenuDocument) -> None:
        store = MenuStore(sample_document)

        store.update_region_action("area-b", PostbackAction(data="x=1"))

        assert store.document.regions[1].action == PostbackAction(data="x=1")
        assert sample_document.regions[1].action == MessageAction(text="hello")

    def test_update_region_action_unknown_id(self, store: MenuStore) -> None:
        with pytest.raises(KeyError):
            store.update_region_action("ghost", UriAction())

    def test_update_settings_records_reason(self, store: MenuStore, event_log: list[Event]) -> None:
        store.update_settings(name="Coupons", chat_bar_text="Open coupons now!", selected=False)

        assert store.document.name == "Coupons"
        assert store.document.chat_bar_text == "Open coupons n"
        assert store.document.selected is False
        assert event_log[-1] == DocumentChanged(region_count=0, reason="settings")

    def test_set_canvas_size(self, sample_document: MenuDocument) -> None:
        store = MenuStore(sample_document)

        store.set_canvas_size(CanvasSize.compact())

        assert store.document.size == CanvasSize.compact()

    def test_replace_regions(self, store: MenuStore) -> None:
        region = Region(id="x", bounds=Bounds(0, 0, 50, 50))

        store.replace_regions([region])

        assert store.document.regions == (region,)


class TestImportExport:
    def test_export_to_writes_payload(self, tmp_path: Path, sample_document: MenuDocument) -> None:
        store = MenuStore(sample_document)

        target = store.export_to(tmp_path / "out" / sample_document.export_filename())

        assert target.name == "Shop menu.json"
        assert json.loads(target.read_text(encoding="utf-8")) == sample_document.to_payload()

    def test_import_replaces_document_and_clears_selection(self, tmp_path: Path, sample_document: MenuDocument) -> None:
        path = tmp_path / "menu.json"
        path.write_text(sample_document.to_json(), encoding="utf-8")
        store = MenuStore(sample_document)
        store.select("area-a")

        store.import_from(path)

        assert store.selected_id is None
        assert store.document.to_payload() == sample_document.to_payload()

    def test_import_accepts_byte_order_mark(self, tmp_path: Path, sample_document: MenuDocument) -> None:
        path = tmp_path / "menu.json"
        path.write_bytes(b"\xef\xbb\xbf" + sample_document.to_json().encode("utf-8"))
        store = MenuStore()

        store.import_from(path)

        assert store.document.name == "Shop menu"

    def test_failed_import_leaves_document_untouched(self, sample_document: MenuDocument) -> None:
        store = MenuStore(sample_document)
        store.select("area-b")

        with pytest.raises(DocumentFormatError):
            store.load_json('{"size": {"width": -1, "height": 10}}')

        assert store.document is sample_document
        assert store.selected_id == "area-b"

    def test_problems_reports_invariant_violations(self) -> None:
        store = MenuStore(MenuDocument(regions=(Region(id="x", bounds=Bounds(2400, 0, 200, 10)),)))

        assert store.problems() != []
