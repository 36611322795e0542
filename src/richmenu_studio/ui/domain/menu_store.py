"""Menu store domain manager.

Single owner of the menu document and the current selection. Every mutation
swaps in a whole new :class:`MenuDocument` and publishes an event so the
widgets can re-render.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from ...core.actions import Action, switch_action_type
from ...core.geometry import CanvasSize
from ...editor.document_model import MenuDocument, Region, validate_document
from ...utils.file_io import read_text, write_text
from ..events import DocumentChanged, EventBus, SelectionChanged

LOGGER = logging.getLogger(__name__)


class MenuStore:
    """Domain manager for the rich menu being edited.

    Events Emitted:
        - DocumentChanged: after every document swap
        - SelectionChanged: when the selected region changes
    """

    def __init__(self, document: MenuDocument | None = None, *, event_bus: EventBus | None = None) -> None:
        self._document = document or MenuDocument()
        self._selected_id: str | None = None
        self._bus = event_bus or EventBus()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def event_bus(self) -> EventBus:
        return self._bus

    @property
    def document(self) -> MenuDocument:
        return self._document

    @property
    def selected_id(self) -> str | None:
        return self._selected_id

    @property
    def selected_region(self) -> Region | None:
        return self._document.find_region(self._selected_id)

    # ------------------------------------------------------------------
    # Whole-document replacement
    # ------------------------------------------------------------------

    def replace_document(self, document: MenuDocument, *, reason: str = "edit") -> None:
        """Swap in ``document``; selection clears if its region disappeared."""

        if document is self._document:
            return
        self._document = document
        LOGGER.debug("Menu document replaced (%s): %d region(s)", reason, document.region_count)
        self._bus.publish(DocumentChanged(region_count=document.region_count, reason=reason))
        if self._selected_id is not None and document.find_region(self._selected_id) is None:
            self._set_selection(None)

    def replace_regions(self, regions: Iterable[Region], *, reason: str = "edit") -> None:
        self.replace_document(self._document.with_regions(regions), reason=reason)

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def select(self, region_id: str | None) -> None:
        if region_id is not None and self._document.find_region(region_id) is None:
            raise KeyError(f"Unknown region id: {region_id}")
        self._set_selection(region_id)

    def _set_selection(self, region_id: str | None) -> None:
        if region_id == self._selected_id:
            return
        self._selected_id = region_id
        self._bus.publish(SelectionChanged(region_id=region_id))

    # ------------------------------------------------------------------
    # Form-driven edits
    # ------------------------------------------------------------------

    def update_region_action(self, region_id: str, action: Action) -> None:
        region = self._require_region(region_id)
        self.replace_document(self._document.replace_region(region.with_action(action)), reason="action")

    def change_action_type(self, region_id: str, action_type: str) -> None:
        region = self._require_region(region_id)
        self.update_region_action(region_id, switch_action_type(region.action, action_type))

    def update_settings(
        self,
        *,
        name: str | None = None,
        chat_bar_text: str | None = None,
        selected: bool | None = None,
    ) -> None:
        document = self._document.update_settings(name=name, chat_bar_text=chat_bar_text, selected=selected)
        self.replace_document(document, reason="settings")

    def set_canvas_size(self, size: CanvasSize) -> None:
        self.replace_document(self._document.resize_canvas(size), reason="resize-canvas")

    # ------------------------------------------------------------------
    # Import / export
    # ------------------------------------------------------------------

    def export_json(self) -> str:
        return self._document.to_json()

    def export_to(self, path: Path | str) -> Path:
        """Write the exported JSON to ``path`` (atomically) and return the path."""

        target = write_text(path, self.export_json() + "\n")
        LOGGER.info("Exported rich menu %r to %s", self._document.name, target)
        return target

    def load_json(self, text: str) -> None:
        document = MenuDocument.from_json(text)
        self._set_selection(None)
        self.replace_document(document, reason="import")

    def import_from(self, path: Path | str) -> None:
        self.load_json(read_text(path))
        LOGGER.info("Imported rich menu from %s", path)

    def problems(self) -> list[str]:
        return validate_document(self._document)

    def _require_region(self, region_id: str) -> Region:
        region = self._document.find_region(region_id)
        if region is None:
            raise KeyError(f"Unknown region id: {region_id}")
        return region
