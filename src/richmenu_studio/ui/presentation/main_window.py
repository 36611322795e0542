"""Main window shell.

Creates the canvas, the action editor and the settings form, wires their
buttons to the store and the publish controller, and mirrors status events
into the status bar. Holds no document state of its own.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Optional

from PySide6.QtCore import QByteArray, Qt
from PySide6.QtGui import QAction, QCloseEvent, QKeySequence
from PySide6.QtWidgets import QMainWindow, QScrollArea, QSplitter, QStatusBar, QVBoxLayout, QWidget

from ...editor.document_model import DocumentFormatError
from ...services.settings import Settings, SettingsStore
from ...utils.file_io import unique_export_path
from ..domain.menu_store import MenuStore
from ..events import DocumentChanged, StatusMessage
from ..publish_controller import PublishController
from .action_editor import ActionEditor
from .canvas_widget import MenuCanvas
from .file_dialogs import FileDialogProvider
from .settings_panel import SettingsPanel

LOGGER = logging.getLogger(__name__)

WINDOW_APP_NAME = "Rich Menu Studio"
MSG_EXPORTED = "Rich menu JSON exported successfully!"
MSG_IMPORTED = "Rich menu imported"


@dataclass(slots=True)
class WindowContext:
    """Shared context passed to the main window when constructing the UI."""

    store: MenuStore
    publisher: PublishController
    settings: Optional[Settings] = None
    settings_store: Optional[SettingsStore] = None
    dialogs: Optional[FileDialogProvider] = None


class MainWindow(QMainWindow):
    """Top-level window for the rich menu editor."""

    def __init__(self, context: WindowContext) -> None:
        super().__init__()
        self._context = context
        self._store = context.store
        self._publisher = context.publisher
        self._settings = context.settings or Settings()
        self._dialogs = context.dialogs or FileDialogProvider(parent_provider=lambda: self)
        self._last_status_message = ""

        self._canvas = MenuCanvas(self._store)
        self._action_editor = ActionEditor(self._store, on_delete=self._canvas.interaction.delete_region)
        self._settings_panel = SettingsPanel(
            self._store,
            callbacks={
                "export": self.export_menu,
                "import": self.import_menu,
                "apply": self.apply_menu,
                "load_preview": self.load_preview,
            },
            image_url=self._settings.default_image_url,
            access_token=self._settings.access_token,
            remember_token=self._settings.remember_access_token,
            status_timeout_ms=self._settings.status_timeout_ms,
        )
        self._assemble()
        self._install_actions()

        bus = self._store.event_bus
        bus.subscribe(StatusMessage, self._on_status_message)
        bus.subscribe(DocumentChanged, self._on_document_changed)
        self._restore_geometry()
        self._update_window_title()

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def canvas(self) -> MenuCanvas:
        return self._canvas

    @property
    def action_editor(self) -> ActionEditor:
        return self._action_editor

    @property
    def settings_panel(self) -> SettingsPanel:
        return self._settings_panel

    @property
    def last_status_message(self) -> str:
        return self._last_status_message

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------

    def _assemble(self) -> None:
        sidebar = QWidget()
        sidebar_layout = QVBoxLayout(sidebar)
        sidebar_layout.addWidget(self._action_editor)
        sidebar_layout.addWidget(self._settings_panel)
        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setWidget(sidebar)
        scroll.setMinimumWidth(340)

        splitter = QSplitter(Qt.Orientation.Horizontal)
        splitter.addWidget(self._canvas)
        splitter.addWidget(scroll)
        splitter.setStretchFactor(0, 3)
        splitter.setStretchFactor(1, 1)
        self.setCentralWidget(splitter)
        self.setStatusBar(QStatusBar())
        self.resize(1280, 800)

    def _install_actions(self) -> None:
        menu = self.menuBar().addMenu("&File")
        for text, shortcut, handler in (
            ("&Import JSON…", QKeySequence.StandardKey.Open, self.import_menu),
            ("&Export JSON…", QKeySequence.StandardKey.Save, self.export_menu),
            ("Load &preview image…", None, self.load_preview),
        ):
            action = QAction(text, self)
            if shortcut is not None:
                action.setShortcut(QKeySequence(shortcut))
            action.triggered.connect(handler)
            menu.addAction(action)
        menu.addSeparator()
        quit_action = QAction("&Quit", self)
        quit_action.setShortcut(QKeySequence(QKeySequence.StandardKey.Quit))
        quit_action.triggered.connect(self.close)
        menu.addAction(quit_action)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def export_menu(self) -> Path | None:
        directory = Path(self._settings.last_export_dir or Path.home())
        suggested = unique_export_path(directory, self._store.document.export_filename())
        path = self._dialogs.prompt_save_path(suggested)
        if path is None:
            return None
        try:
            target = self._store.export_to(path)
        except OSError as exc:
            LOGGER.warning("Export to %s failed: %s", path, exc)
            self._settings_panel.show_status("error", f"Export failed: {exc}")
            return None
        self._settings = replace(self._settings, last_export_dir=str(target.parent))
        self._persist_settings()
        self._settings_panel.show_status("success", MSG_EXPORTED)
        self._show_status(MSG_EXPORTED)
        return target

    def import_menu(self) -> bool:
        start_dir = Path(self._settings.last_export_dir) if self._settings.last_export_dir else None
        path = self._dialogs.prompt_open_path(start_dir)
        if path is None:
            return False
        try:
            self._store.import_from(path)
        except (OSError, UnicodeDecodeError, DocumentFormatError) as exc:
            LOGGER.warning("Import from %s failed: %s", path, exc)
            self._settings_panel.show_status("error", f"Import failed: {exc}")
            return False
        self._show_status(f"{MSG_IMPORTED} from {path.name}")
        return True

    def apply_menu(self) -> Any:
        panel = self._settings_panel
        self._remember_token(panel.access_token, panel.remember_token)
        return self._publisher.start(panel.image_url, panel.access_token)

    def load_preview(self) -> bool:
        path = self._dialogs.prompt_image_path()
        if path is None:
            return False
        if not self._canvas.load_background(path):
            self._settings_panel.show_status("error", f"Could not load image {path.name}")
            return False
        return True

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    def _on_status_message(self, event: StatusMessage) -> None:
        self._show_status(event.message, event.timeout_ms)

    def _on_document_changed(self, event: DocumentChanged) -> None:
        del event
        self._update_window_title()

    def _show_status(self, message: str, timeout_ms: int | None = None) -> None:
        self._last_status_message = message
        timeout = self._settings.status_timeout_ms if timeout_ms is None else timeout_ms
        self.statusBar().showMessage(message, timeout)

    def _update_window_title(self) -> None:
        name = self._store.document.name.strip()
        self.setWindowTitle(f"{name} - {WINDOW_APP_NAME}" if name else WINDOW_APP_NAME)

    # ------------------------------------------------------------------
    # Settings persistence
    # ------------------------------------------------------------------

    def _remember_token(self, token: str, remember: bool) -> None:
        stored = token if remember else ""
        if (self._settings.remember_access_token, self._settings.access_token) == (remember, stored):
            return
        self._settings = replace(self._settings, remember_access_token=remember, access_token=stored)
        self._persist_settings()

    def _persist_settings(self) -> None:
        store = self._context.settings_store
        if store is None:
            return
        try:
            store.save(self._settings)
        except OSError as exc:
            LOGGER.warning("Unable to save settings: %s", exc)

    def _restore_geometry(self) -> None:
        encoded = self._settings.window_geometry
        if encoded:
            self.restoreGeometry(QByteArray.fromBase64(encoded.encode("ascii")))

    def closeEvent(self, event: QCloseEvent) -> None:  # noqa: N802 - Qt override
        geometry = bytes(self.saveGeometry().toBase64()).decode("ascii")
        self._settings = replace(self._settings, window_geometry=geometry)
        self._persist_settings()
        bus = self._store.event_bus
        bus.unsubscribe(StatusMessage, self._on_status_message)
        bus.unsubscribe(DocumentChanged, self._on_document_changed)
        event.accept()
