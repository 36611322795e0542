"""Menu settings, background image, and export/apply form."""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping

from PySide6.QtCore import QTimer
from PySide6.QtWidgets import (
    QButtonGroup,
    QCheckBox,
    QFormLayout,
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from ...core.geometry import CanvasSize
from ...editor.document_model import MAX_CHAT_BAR_TEXT
from ..domain.menu_store import MenuStore
from ..events import DocumentChanged, PublishStarted, PublishStatusChanged

LOGGER = logging.getLogger(__name__)

_PRESET_LABELS = {"full": "Full Size", "compact": "Compact"}
_STATUS_STYLES = {
    "success": "color: #047857;",
    "partial": "color: #047857;",
    "error": "color: #b91c1c;",
    "info": "color: #374151;",
}


class SettingsPanel(QWidget):
    """Plain field binding over the store's document settings.

    ``callbacks`` may provide ``export``, ``import``, ``apply`` and
    ``load_preview``; each is invoked without arguments when its button is
    pressed.
    """

    def __init__(
        self,
        store: MenuStore,
        parent: QWidget | None = None,
        *,
        callbacks: Mapping[str, Callable[[], Any]] | None = None,
        image_url: str = "",
        access_token: str = "",
        remember_token: bool = False,
        status_timeout_ms: int = 3000,
    ) -> None:
        super().__init__(parent)
        self._store = store
        self._callbacks = dict(callbacks or {})
        self._syncing = False
        self._busy = False
        self._status_timeout_ms = status_timeout_ms
        self._status_timer = QTimer(self)
        self._status_timer.setSingleShot(True)
        self._status_timer.timeout.connect(self.clear_status)
        self.setObjectName("rm-settings-panel")
        self._build(image_url, access_token, remember_token)

        bus = store.event_bus
        bus.subscribe(DocumentChanged, self._on_document_changed)
        bus.subscribe(PublishStarted, self._on_publish_started)
        bus.subscribe(PublishStatusChanged, self._on_publish_status)
        self.refresh()

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def _build(self, image_url: str, access_token: str, remember_token: bool) -> None:
        layout = QVBoxLayout(self)

        menu_group = QGroupBox("Rich Menu Settings")
        menu_form = QFormLayout(menu_group)
        self._name_input = QLineEdit()
        self._name_input.setPlaceholderText("My Rich Menu")
        self._name_input.textEdited.connect(self._on_name_edited)
        menu_form.addRow("Menu name", self._name_input)

        self._chat_bar_input = QLineEdit()
        self._chat_bar_input.setPlaceholderText("Menu")
        self._chat_bar_input.setMaxLength(MAX_CHAT_BAR_TEXT)
        self._chat_bar_input.textEdited.connect(self._on_chat_bar_edited)
        menu_form.addRow("Chat bar text", self._chat_bar_input)
        menu_form.addRow("", QLabel(f"Maximum {MAX_CHAT_BAR_TEXT} characters"))

        preset_row = QHBoxLayout()
        self._preset_group = QButtonGroup(self)
        self._preset_group.setExclusive(True)
        self._preset_buttons: dict[str, QPushButton] = {}
        for name, size in CanvasSize.presets().items():
            button = QPushButton(f"{_PRESET_LABELS.get(name, name)}\n{size.width}×{size.height}")
            button.setCheckable(True)
            button.clicked.connect(lambda _checked=False, preset=name: self._on_preset_clicked(preset))
            self._preset_group.addButton(button)
            self._preset_buttons[name] = button
            preset_row.addWidget(button)
        menu_form.addRow("Size template", preset_row)

        self._selected_check = QCheckBox("Set as default rich menu")
        self._selected_check.toggled.connect(self._on_selected_toggled)
        menu_form.addRow(self._selected_check)
        layout.addWidget(menu_group)

        image_group = QGroupBox("Background Image")
        image_form = QFormLayout(image_group)
        self._image_url_input = QLineEdit(image_url)
        self._image_url_input.setPlaceholderText("https://example.com/rich-menu-image.jpg")
        image_form.addRow("Image URL", self._image_url_input)
        self._image_hint = QLabel()
        image_form.addRow("", self._image_hint)
        self._preview_button = QPushButton("Load preview…")
        self._preview_button.clicked.connect(lambda: self._invoke("load_preview"))
        image_form.addRow(self._preview_button)
        layout.addWidget(image_group)

        publish_group = QGroupBox("Export & Apply")
        publish_form = QFormLayout(publish_group)
        self._token_input = QLineEdit(access_token)
        self._token_input.setEchoMode(QLineEdit.EchoMode.Password)
        self._token_input.setPlaceholderText("Channel access token")
        publish_form.addRow("Access token", self._token_input)
        self._remember_check = QCheckBox("Remember token on this computer")
        self._remember_check.setChecked(remember_token)
        publish_form.addRow(self._remember_check)

        buttons = QHBoxLayout()
        self._export_button = QPushButton("Export JSON")
        self._export_button.clicked.connect(lambda: self._invoke("export"))
        self._import_button = QPushButton("Import JSON")
        self._import_button.clicked.connect(lambda: self._invoke("import"))
        self._apply_button = QPushButton("Apply to LINE")
        self._apply_button.clicked.connect(lambda: self._invoke("apply"))
        for button in (self._export_button, self._import_button, self._apply_button):
            buttons.addWidget(button)
        publish_form.addRow(buttons)

        self._status_label = QLabel()
        self._status_label.setObjectName("rm-settings-status")
        self._status_label.setWordWrap(True)
        publish_form.addRow(self._status_label)
        layout.addWidget(publish_group)
        layout.addStretch(1)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def image_url(self) -> str:
        return self._image_url_input.text().strip()

    @property
    def access_token(self) -> str:
        return self._token_input.text()

    @property
    def remember_token(self) -> bool:
        return self._remember_check.isChecked()

    @property
    def status_text(self) -> str:
        return self._status_label.text()

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def apply_button(self) -> QPushButton:
        return self._apply_button

    def preset_button(self, name: str) -> QPushButton:
        return self._preset_buttons[name]

    def refresh(self) -> None:
        document = self._store.document
        self._syncing = True
        try:
            if self._name_input.text() != document.name:
                self._name_input.setText(document.name)
            if self._chat_bar_input.text() != document.chat_bar_text:
                self._chat_bar_input.setText(document.chat_bar_text)
            self._selected_check.setChecked(document.selected)
            preset = document.size.preset_name
            # Imported menus may use a size that matches no preset.
            self._preset_group.setExclusive(False)
            for name, button in self._preset_buttons.items():
                button.setChecked(name == preset)
            self._preset_group.setExclusive(True)
            self._image_hint.setText(
                f"Image should be {document.size.width}×{document.size.height} pixels, JPEG or PNG format"
            )
        finally:
            self._syncing = False

    def show_status(self, status: str, message: str) -> None:
        """Show ``message`` until the status timeout elapses."""

        self._status_label.setStyleSheet(_STATUS_STYLES.get(status, _STATUS_STYLES["info"]))
        self._status_label.setText(message)
        if self._status_timeout_ms > 0:
            self._status_timer.start(self._status_timeout_ms)

    def clear_status(self) -> None:
        self._status_timer.stop()
        self._status_label.clear()

    def set_busy(self, busy: bool) -> None:
        self._busy = busy
        self._apply_button.setEnabled(not busy)
        self._apply_button.setText("Applying…" if busy else "Apply to LINE")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _invoke(self, name: str) -> None:
        callback = self._callbacks.get(name)
        if callback is None:
            LOGGER.debug("No callback registered for %s", name)
            return
        callback()

    def _on_name_edited(self, text: str) -> None:
        if not self._syncing:
            self._store.update_settings(name=text)

    def _on_chat_bar_edited(self, text: str) -> None:
        if not self._syncing:
            self._store.update_settings(chat_bar_text=text)

    def _on_selected_toggled(self, checked: bool) -> None:
        if not self._syncing:
            self._store.update_settings(selected=checked)

    def _on_preset_clicked(self, preset: str) -> None:
        if not self._syncing:
            self._store.set_canvas_size(CanvasSize.from_preset(preset))

    def _on_document_changed(self, event: DocumentChanged) -> None:
        del event
        self.refresh()

    def _on_publish_started(self, event: PublishStarted) -> None:
        del event
        self.clear_status()
        self.set_busy(True)

    def _on_publish_status(self, event: PublishStatusChanged) -> None:
        self.set_busy(False)
        self.show_status(event.status, event.message)
