"""Qt tests for the main window commands."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
from PySide6.QtWidgets import QCheckBox, QLineEdit

from richmenu_studio.editor.document_model import MenuDocument
from richmenu_studio.services.settings import Settings, SettingsStore
from richmenu_studio.ui.domain.menu_store import MenuStore
from richmenu_studio.ui.events import StatusMessage
from richmenu_studio.ui.presentation.main_window import MSG_EXPORTED, MainWindow, WindowContext


class StubDialogs:
    """Returns canned paths instead of opening native dialogs."""

    def __init__(self) -> None:
        self.save_path: Path | None = None
        self.open_path: Path | None = None
        self.image_path: Path | None = None
        self.suggested: list[Path] = []

    def prompt_save_path(self, suggested: Path) -> Path | None:
        self.suggested.append(suggested)
        return self.save_path

    def prompt_open_path(self, start_dir: Path | None = None) -> Path | None:
        return self.open_path

    def prompt_image_path(self, start_dir: Path | None = None) -> Path | None:
        return self.image_path


class StubPublisher:
    def __init__(self) -> None:
        self.requests: list[tuple[str, str]] = []

    def start(self, image_url: str, access_token: str) -> Any:
        self.requests.append((image_url, access_token))
        return None


@pytest.fixture
def dialogs() -> StubDialogs:
    return StubDialogs()


@pytest.fixture
def publisher() -> StubPublisher:
    return StubPublisher()


@pytest.fixture
def settings_store(tmp_path: Path) -> SettingsStore:
    return SettingsStore(tmp_path / "config" / "settings.json")


@pytest.fixture
def window(
    qtbot,
    tmp_path: Path,
    store: MenuStore,
    sample_document: MenuDocument,
    dialogs: StubDialogs,
    publisher: StubPublisher,
    settings_store: SettingsStore,
) -> MainWindow:
    store.replace_document(sample_document)
    settings = Settings(last_export_dir=str(tmp_path), default_image_url="https://cdn.example.com/menu.png")
    main_window = MainWindow(
        WindowContext(
            store=store,
            publisher=publisher,  # type: ignore[arg-type]
            settings=settings,
            settings_store=settings_store,
            dialogs=dialogs,  # type: ignore[arg-type]
        )
    )
    qtbot.addWidget(main_window)
    return main_window


def test_window_title_follows_menu_name(window: MainWindow, store: MenuStore) -> None:
    assert window.windowTitle() == "Shop menu - Rich Menu Studio"

    store.update_settings(name="")

    assert window.windowTitle() == "Rich Menu Studio"


def test_export_writes_payload_and_remembers_directory(
    window: MainWindow, dialogs: StubDialogs, settings_store: SettingsStore, store: MenuStore, tmp_path: Path
) -> None:
    target = tmp_path / "exports" / "menu.json"
    dialogs.save_path = target

    assert window.export_menu() == target

    assert dialogs.suggested == [tmp_path / "Shop menu.json"]
    assert json.loads(target.read_text(encoding="utf-8")) == store.document.to_payload()
    assert window.settings_panel.status_text == MSG_EXPORTED
    assert window.last_status_message == MSG_EXPORTED
    assert settings_store.load().last_export_dir == str(target.parent)


def test_export_cancel_writes_nothing(window: MainWindow, tmp_path: Path) -> None:
    assert window.export_menu() is None
    assert list(tmp_path.glob("*.json")) == []


def test_import_replaces_document(window: MainWindow, dialogs: StubDialogs, store: MenuStore, tmp_path: Path) -> None:
    source = tmp_path / "incoming.json"
    source.write_text(
        json.dumps(
            {
                "size": {"width": 2500, "height": 843},
                "selected": False,
                "name": "Imported",
                "chatBarText": "Menu",
                "areas": [
                    {
                        "bounds": {"x": 0, "y": 0, "width": 2500, "height": 843},
                        "action": {"type": "message", "text": "hi"},
                    }
                ],
            }
        ),
        encoding="utf-8",
    )
    dialogs.open_path = source

    assert window.import_menu() is True

    assert store.document.name == "Imported"
    assert store.document.region_count == 1
    assert window.last_status_message == "Rich menu imported from incoming.json"
    assert window.settings_panel.preset_button("compact").isChecked()


def test_import_failure_keeps_document(window: MainWindow, dialogs: StubDialogs, store: MenuStore, tmp_path: Path) -> None:
    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    dialogs.open_path = broken
    before = store.document

    assert window.import_menu() is False

    assert store.document is before
    assert window.settings_panel.status_text.startswith("Import failed:")


def _token_input(window: MainWindow) -> QLineEdit:
    edits = window.settings_panel.findChildren(QLineEdit)
    return next(edit for edit in edits if edit.placeholderText() == "Channel access token")


def test_apply_starts_publish_with_form_values(window: MainWindow, publisher: StubPublisher) -> None:
    _token_input(window).setText("channel-token")

    window.apply_menu()

    assert publisher.requests == [("https://cdn.example.com/menu.png", "channel-token")]


def test_remembered_token_is_persisted(window: MainWindow, settings_store: SettingsStore) -> None:
    _token_input(window).setText("keep-me")
    remember = next(box for box in window.settings_panel.findChildren(QCheckBox) if box.text().startswith("Remember"))
    remember.setChecked(True)

    window.apply_menu()

    reloaded = settings_store.load()
    assert reloaded.remember_access_token is True
    assert reloaded.access_token == "keep-me"
    assert "keep-me" not in settings_store.path.read_text(encoding="utf-8")


def test_status_messages_reach_status_bar(window: MainWindow, store: MenuStore) -> None:
    store.event_bus.publish(StatusMessage(message="Rich menu created successfully!", timeout_ms=0))

    assert window.last_status_message == "Rich menu created successfully!"
    assert window.statusBar().currentMessage() == "Rich menu created successfully!"


def test_close_saves_window_geometry(window: MainWindow, settings_store: SettingsStore) -> None:
    window.show()
    window.close()

    assert settings_store.load().window_geometry
