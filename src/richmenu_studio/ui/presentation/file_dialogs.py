"""File dialog provider used by the main window.

Wraps :class:`QFileDialog` behind a small object so tests can substitute
canned paths.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

from PySide6.QtWidgets import QFileDialog, QWidget

LOGGER = logging.getLogger(__name__)

JSON_FILTER = "Rich menu JSON (*.json);;All files (*)"
IMAGE_FILTER = "Images (*.png *.jpg *.jpeg);;All files (*)"


class FileDialogProvider:
    """Prompts for menu files and preview images."""

    __slots__ = ("_parent_provider",)

    def __init__(self, *, parent_provider: Callable[[], QWidget | None] | None = None) -> None:
        self._parent_provider = parent_provider

    def prompt_save_path(self, suggested: Path) -> Path | None:
        path, _ = QFileDialog.getSaveFileName(self._parent(), "Export rich menu", str(suggested), JSON_FILTER)
        return _to_path(path)

    def prompt_open_path(self, start_dir: Path | None = None) -> Path | None:
        path, _ = QFileDialog.getOpenFileName(self._parent(), "Import rich menu", str(start_dir or ""), JSON_FILTER)
        return _to_path(path)

    def prompt_image_path(self, start_dir: Path | None = None) -> Path | None:
        path, _ = QFileDialog.getOpenFileName(self._parent(), "Load preview image", str(start_dir or ""), IMAGE_FILTER)
        return _to_path(path)

    def _parent(self) -> QWidget | None:
        return self._parent_provider() if self._parent_provider else None


def _to_path(value: str) -> Path | None:
    if not value:
        LOGGER.debug("File dialog canceled")
        return None
    return Path(value)
