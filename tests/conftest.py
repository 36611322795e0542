"""Shared pytest fixtures."""

from __future__ import annotations

import os
from typing import Iterator

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from richmenu_studio.core.actions import MessageAction, UriAction  # noqa: E402
from richmenu_studio.core.geometry import Bounds, CanvasSize, Viewport  # noqa: E402
from richmenu_studio.editor.document_model import MenuDocument, Region  # noqa: E402
from richmenu_studio.ui.domain.menu_store import MenuStore  # noqa: E402
from richmenu_studio.ui.events import Event, EventBus  # noqa: E402


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch, tmp_path_factory: pytest.TempPathFactory) -> Iterator[None]:
    for name in list(os.environ):
        if name.startswith("RICHMENU_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("RICHMENU_LOG_DIR", str(tmp_path_factory.mktemp("logs")))
    yield


@pytest.fixture
def full_viewport() -> Viewport:
    """Full-size canvas displayed at exactly 1/5 scale."""

    return Viewport(0.0, 0.0, 500.0, 337.2)


@pytest.fixture
def sample_document() -> MenuDocument:
    return MenuDocument(
        size=CanvasSize.full(),
        name="Shop menu",
        chat_bar_text="Tap me",
        regions=(
            Region(id="area-a", bounds=Bounds(0, 0, 1250, 843), action=UriAction(uri="https://example.com/shop")),
            Region(id="area-b", bounds=Bounds(1250, 0, 1250, 843), action=MessageAction(text="hello")),
        ),
    )


@pytest.fixture
def event_log() -> list[Event]:
    return []


@pytest.fixture
def recording_bus(event_log: list[Event]) -> EventBus:
    """Event bus that records every published event in ``event_log``."""

    class _RecordingBus(EventBus):
        __slots__ = ()

        def publish(self, event: Event) -> None:  # type: ignore[override]
            event_log.append(event)
            super().publish(event)

    return _RecordingBus()


@pytest.fixture
def store(recording_bus: EventBus) -> MenuStore:
    return MenuStore(event_bus=recording_bus)
