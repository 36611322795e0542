"""Qt widget that paints the menu image with its regions and routes pointer input."""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path

from PySide6.QtCore import QPointF, QRectF, QSize, Qt
from PySide6.QtGui import QBrush, QColor, QFont, QKeyEvent, QMouseEvent, QPainter, QPaintEvent, QPen, QPixmap
from PySide6.QtWidgets import QSizePolicy, QWidget

from ...core.geometry import DraftRect, Point, Viewport, fit_viewport
from ...editor.interaction import CanvasInteraction, GestureState
from ...editor.overlays import OverlayItem, build_overlays
from ..domain.menu_store import MenuStore
from ..events import DocumentChanged, GestureChanged, SelectionChanged

LOGGER = logging.getLogger(__name__)

DELETE_BUTTON_SIZE = 18.0
RESIZE_HANDLE_SIZE = 12.0

_LINE_GREEN = QColor(6, 199, 85)
_NORMAL_FILL = QColor(255, 255, 255, 60)
_SELECTED_FILL = QColor(6, 199, 85, 70)
_DRAFT_FILL = QColor(6, 199, 85, 40)
_DELETE_FILL = QColor(220, 53, 69)
_PLACEHOLDER = QColor(230, 232, 235)


class HitKind(Enum):
    CANVAS = "canvas"
    REGION = "region"
    RESIZE = "resize"
    DELETE = "delete"
    OUTSIDE = "outside"


class MenuCanvas(QWidget):
    """Interactive rich menu canvas.

    The image is letterboxed into the widget at the menu's aspect ratio. The
    :class:`Viewport` describing that rectangle is computed fresh for every
    pointer event and every paint.
    """

    def __init__(self, store: MenuStore, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self._store = store
        self._interaction = CanvasInteraction(store, on_change=self._on_gesture_changed)
        self._pixmap: QPixmap | None = None
        self.setObjectName("rm-menu-canvas")
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)
        self.setMinimumSize(320, 120)

        bus = store.event_bus
        bus.subscribe(DocumentChanged, self._on_document_changed)
        bus.subscribe(SelectionChanged, self._on_selection_changed)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def interaction(self) -> CanvasInteraction:
        return self._interaction

    @property
    def has_background(self) -> bool:
        return self._pixmap is not None and not self._pixmap.isNull()

    def set_background(self, pixmap: QPixmap | None) -> None:
        self._pixmap = pixmap if pixmap is not None and not pixmap.isNull() else None
        self.update()

    def load_background(self, path: Path | str) -> bool:
        """Load a local preview image; returns ``False`` when Qt cannot decode it."""

        pixmap = QPixmap(str(path))
        if pixmap.isNull():
            LOGGER.warning("Unable to load background image %s", path)
            return False
        self.set_background(pixmap)
        return True

    def current_viewport(self) -> Viewport | None:
        return fit_viewport(self.width(), self.height(), self._store.document.size)

    def overlays(self) -> list[OverlayItem]:
        return build_overlays(self._store.document, self._store.selected_id, self._interaction.draft)

    def hit_test(self, position: Point) -> tuple[HitKind, str | None]:
        """Classify a widget position; the top-most region wins."""

        viewport = self.current_viewport()
        if viewport is None or not _contains(_viewport_rect(viewport), position):
            return HitKind.OUTSIDE, None
        selected_id = self._store.selected_id
        for item in reversed(self.overlays()):
            if item.region_id is None:
                continue
            rect = QRectF(*item.rect.to_pixels(viewport))
            if _contains(_delete_button_rect(rect), position):
                return HitKind.DELETE, item.region_id
            if item.region_id == selected_id and _contains(_resize_handle_rect(rect), position):
                return HitKind.RESIZE, item.region_id
            if _contains(rect, position):
                return HitKind.REGION, item.region_id
        return HitKind.CANVAS, None

    def delete_selected(self) -> bool:
        selected_id = self._store.selected_id
        if selected_id is None:
            return False
        return self._interaction.delete_region(selected_id)

    def sizeHint(self) -> QSize:  # noqa: N802 - Qt override
        return QSize(750, 506)

    # ------------------------------------------------------------------
    # Qt event handlers
    # ------------------------------------------------------------------

    def mousePressEvent(self, event: QMouseEvent) -> None:  # noqa: N802 - Qt override
        if event.button() != Qt.MouseButton.LeftButton:
            super().mousePressEvent(event)
            return
        self.setFocus(Qt.FocusReason.MouseFocusReason)
        position = _event_point(event)
        viewport = self.current_viewport()
        kind, region_id = self.hit_test(position)
        if kind is HitKind.DELETE and region_id is not None:
            self._interaction.delete_region(region_id)
        elif kind is HitKind.RESIZE and region_id is not None:
            self._interaction.press_resize_handle(region_id, position, viewport)
        elif kind is HitKind.REGION and region_id is not None:
            self._interaction.press_region(region_id, position, viewport)
        elif kind is HitKind.CANVAS:
            self._interaction.press_canvas(position, viewport)
        event.accept()

    def mouseMoveEvent(self, event: QMouseEvent) -> None:  # noqa: N802 - Qt override
        if self._interaction.state is GestureState.IDLE:
            super().mouseMoveEvent(event)
            return
        self._interaction.move(_event_point(event), self.current_viewport())
        event.accept()

    def mouseReleaseEvent(self, event: QMouseEvent) -> None:  # noqa: N802 - Qt override
        if event.button() != Qt.MouseButton.LeftButton:
            super().mouseReleaseEvent(event)
            return
        self._interaction.release()
        event.accept()

    def keyPressEvent(self, event: QKeyEvent) -> None:  # noqa: N802 - Qt override
        key = event.key()
        if key == Qt.Key.Key_Escape:
            self._interaction.cancel()
        elif key in (Qt.Key.Key_Delete, Qt.Key.Key_Backspace):
            self.delete_selected()
        else:
            super().keyPressEvent(event)
            return
        event.accept()

    def paintEvent(self, event: QPaintEvent) -> None:  # noqa: N802 - Qt override
        del event
        viewport = self.current_viewport()
        if viewport is None:
            return
        painter = QPainter(self)
        try:
            painter.setRenderHint(QPainter.RenderHint.Antialiasing)
            target = _viewport_rect(viewport)
            if self.has_background:
                painter.drawPixmap(target, self._pixmap, QRectF(self._pixmap.rect()))
            else:
                painter.fillRect(target, _PLACEHOLDER)
                painter.setPen(QColor(120, 120, 120))
                painter.drawText(target, Qt.AlignmentFlag.AlignCenter, "Load a menu image to preview")
            for item in self.overlays():
                self._paint_overlay(painter, item, viewport)
        finally:
            painter.end()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _paint_overlay(self, painter: QPainter, item: OverlayItem, viewport: Viewport) -> None:
        rect = QRectF(*item.rect.to_pixels(viewport))
        if item.style == "draft":
            pen = QPen(_LINE_GREEN, 2, Qt.PenStyle.DashLine)
            painter.setPen(pen)
            painter.setBrush(QBrush(_DRAFT_FILL))
            painter.drawRect(rect)
            return

        selected = item.style == "selected"
        painter.setPen(QPen(_LINE_GREEN if selected else QColor(255, 255, 255), 3 if selected else 2))
        painter.setBrush(QBrush(_SELECTED_FILL if selected else _NORMAL_FILL))
        painter.drawRect(rect)

        font = QFont(self.font())
        font.setBold(True)
        painter.setFont(font)
        painter.setPen(QColor(20, 20, 20))
        painter.drawText(rect.adjusted(6, 4, -DELETE_BUTTON_SIZE - 4, -4), Qt.AlignmentFlag.AlignLeft, item.label)

        delete_rect = _delete_button_rect(rect)
        painter.setPen(Qt.PenStyle.NoPen)
        painter.setBrush(QBrush(_DELETE_FILL))
        painter.drawEllipse(delete_rect)
        painter.setPen(QColor(255, 255, 255))
        painter.drawText(delete_rect, Qt.AlignmentFlag.AlignCenter, "×")

        if selected:
            painter.setPen(Qt.PenStyle.NoPen)
            painter.setBrush(QBrush(_LINE_GREEN))
            painter.drawRect(_resize_handle_rect(rect))

    def _on_gesture_changed(self, state: GestureState, draft: DraftRect | None) -> None:
        self._store.event_bus.publish(GestureChanged(state=state.value, has_draft=draft is not None))
        self.update()

    def _on_document_changed(self, event: DocumentChanged) -> None:
        del event
        self.update()

    def _on_selection_changed(self, event: SelectionChanged) -> None:
        del event
        self.update()


def _event_point(event: QMouseEvent) -> Point:
    position = event.position()
    return Point(position.x(), position.y())


def _viewport_rect(viewport: Viewport) -> QRectF:
    return QRectF(viewport.left, viewport.top, viewport.width, viewport.height)


def _contains(rect: QRectF, position: Point) -> bool:
    return rect.contains(QPointF(position.x, position.y))


def _delete_button_rect(region_rect: QRectF) -> QRectF:
    size = min(DELETE_BUTTON_SIZE, region_rect.width(), region_rect.height())
    return QRectF(region_rect.right() - size - 2, region_rect.top() + 2, size, size)


def _resize_handle_rect(region_rect: QRectF) -> QRectF:
    size = min(RESIZE_HANDLE_SIZE, region_rect.width() / 2, region_rect.height() / 2)
    return QRectF(region_rect.right() - size, region_rect.bottom() - size, size, size)
