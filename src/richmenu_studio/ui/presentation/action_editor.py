"""Form for editing the action attached to the selected region."""

from __future__ import annotations

import logging
from typing import Any, Callable

from PySide6.QtWidgets import (
    QComboBox,
    QFormLayout,
    QGroupBox,
    QLabel,
    QLineEdit,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from ...core.actions import (
    ACTION_TYPES,
    DATETIME_MODES,
    Action,
    ActionFormatError,
    DatetimePickerAction,
    MessageAction,
    PostbackAction,
    UriAction,
    update_action,
)
from ...editor.document_model import Region
from ..domain.menu_store import MenuStore
from ..events import DocumentChanged, SelectionChanged

LOGGER = logging.getLogger(__name__)

# Field name -> (label, placeholder, action kinds that carry it)
_FIELDS: dict[str, tuple[str, str, tuple[type, ...]]] = {
    "uri": ("URL", "https://example.com", (UriAction,)),
    "text": ("Message text", "Text sent by the user", (MessageAction,)),
    "data": ("Postback data", "action=buy&itemid=123", (PostbackAction, DatetimePickerAction)),
    "display_text": ("Display text", "Shown in the chat (optional)", (PostbackAction,)),
    "initial": ("Initial", "2024-01-01 (optional)", (DatetimePickerAction,)),
    "min": ("Min", "Earliest value (optional)", (DatetimePickerAction,)),
    "max": ("Max", "Latest value (optional)", (DatetimePickerAction,)),
    "label": ("Label", "Accessibility label (optional)", (UriAction, PostbackAction, MessageAction, DatetimePickerAction)),
}
_OPTIONAL_FIELDS = {"display_text", "initial", "min", "max", "label"}


class ActionEditor(QWidget):
    """Binds a small form to the currently selected region's action."""

    def __init__(
        self,
        store: MenuStore,
        parent: QWidget | None = None,
        *,
        on_delete: Callable[[str], Any] | None = None,
    ) -> None:
        super().__init__(parent)
        self._store = store
        self._on_delete = on_delete
        self._syncing = False
        self._region_id: str | None = None
        self._inputs: dict[str, QLineEdit] = {}
        self._rows: dict[str, tuple[QLabel, QWidget]] = {}
        self.setObjectName("rm-action-editor")
        self._build()

        bus = store.event_bus
        bus.subscribe(SelectionChanged, self._on_selection_changed)
        bus.subscribe(DocumentChanged, self._on_document_changed)
        self.refresh()

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def _build(self) -> None:
        layout = QVBoxLayout(self)
        self._empty_label = QLabel("Select an area on the canvas, or drag to draw a new one.")
        self._empty_label.setWordWrap(True)
        layout.addWidget(self._empty_label)

        self._group = QGroupBox("Area")
        form = QFormLayout(self._group)

        self._type_combo = QComboBox()
        for tag, label in ACTION_TYPES:
            self._type_combo.addItem(label, tag)
        self._type_combo.currentIndexChanged.connect(self._on_type_changed)
        form.addRow("Action", self._type_combo)

        self._mode_combo = QComboBox()
        for mode in DATETIME_MODES:
            self._mode_combo.addItem(mode, mode)
        self._mode_combo.currentIndexChanged.connect(self._on_mode_changed)
        mode_label = QLabel("Mode")
        form.addRow(mode_label, self._mode_combo)
        self._rows["mode"] = (mode_label, self._mode_combo)

        for name, (label_text, placeholder, _kinds) in _FIELDS.items():
            field_input = QLineEdit()
            field_input.setObjectName(f"rm-action-{name}")
            field_input.setPlaceholderText(placeholder)
            field_input.textEdited.connect(lambda text, field_name=name: self._on_field_edited(field_name, text))
            label = QLabel(label_text)
            form.addRow(label, field_input)
            self._inputs[name] = field_input
            self._rows[name] = (label, field_input)

        self._bounds_label = QLabel()
        form.addRow("Bounds", self._bounds_label)

        self._delete_button = QPushButton("Delete area")
        self._delete_button.clicked.connect(self._on_delete_clicked)
        form.addRow(self._delete_button)
        layout.addWidget(self._group)
        layout.addStretch(1)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def region_id(self) -> str | None:
        return self._region_id

    def field_input(self, name: str) -> QLineEdit:
        return self._inputs[name]

    @property
    def type_combo(self) -> QComboBox:
        return self._type_combo

    @property
    def mode_combo(self) -> QComboBox:
        return self._mode_combo

    def is_field_visible(self, name: str) -> bool:
        return not self._rows[name][1].isHidden()

    def refresh(self) -> None:
        """Re-read the selected region from the store."""

        region = self._store.selected_region
        self._region_id = region.id if region is not None else None
        self._empty_label.setVisible(region is None)
        self._group.setVisible(region is not None)
        if region is None:
            return
        self._syncing = True
        try:
            self._load_region(region)
        finally:
            self._syncing = False

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _load_region(self, region: Region) -> None:
        action = region.action
        index = self._store.document.index_of(region.id)
        self._group.setTitle(f"Area {index + 1}")
        self._type_combo.setCurrentIndex(self._type_combo.findData(action.type))
        for name, (_label, _placeholder, kinds) in _FIELDS.items():
            applies = isinstance(action, kinds)
            self._set_row_visible(name, applies)
            if applies:
                value = getattr(action, name) or ""
                if self._inputs[name].text() != value:
                    self._inputs[name].setText(value)
        is_picker = isinstance(action, DatetimePickerAction)
        self._set_row_visible("mode", is_picker)
        if is_picker:
            self._mode_combo.setCurrentIndex(self._mode_combo.findData(action.mode))
        bounds = region.bounds
        self._bounds_label.setText(f"x {bounds.x}, y {bounds.y}, {bounds.width} × {bounds.height}")

    def _set_row_visible(self, name: str, visible: bool) -> None:
        label, widget = self._rows[name]
        label.setVisible(visible)
        widget.setVisible(visible)

    def _current_action(self) -> Action | None:
        region = self._store.selected_region
        return region.action if region is not None else None

    def _on_type_changed(self, index: int) -> None:
        if self._syncing or self._region_id is None:
            return
        tag = self._type_combo.itemData(index)
        try:
            self._store.change_action_type(self._region_id, tag)
        except (KeyError, ActionFormatError) as exc:
            LOGGER.warning("Unable to change action type to %r: %s", tag, exc)

    def _on_mode_changed(self, index: int) -> None:
        if self._syncing:
            return
        self._apply_change("mode", self._mode_combo.itemData(index))

    def _on_field_edited(self, name: str, text: str) -> None:
        if self._syncing:
            return
        value: str | None = text
        if name in _OPTIONAL_FIELDS and not text:
            value = None
        self._apply_change(name, value)

    def _apply_change(self, name: str, value: Any) -> None:
        action = self._current_action()
        if action is None or self._region_id is None:
            return
        try:
            updated = update_action(action, **{name: value})
        except (TypeError, ActionFormatError) as exc:
            LOGGER.debug("Ignoring %s edit for %s action: %s", name, action.type, exc)
            return
        self._store.update_region_action(self._region_id, updated)

    def _on_delete_clicked(self) -> None:
        if self._region_id is None or self._on_delete is None:
            return
        self._on_delete(self._region_id)

    def _on_selection_changed(self, event: SelectionChanged) -> None:
        del event
        self.refresh()

    def _on_document_changed(self, event: DocumentChanged) -> None:
        del event
        self.refresh()
