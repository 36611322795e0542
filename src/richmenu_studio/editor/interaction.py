"""Pointer gesture state machine for the menu canvas.

Translates raw pointer events (screen pixels) into region create, move,
resize and delete operations on a :class:`~richmenu_studio.ui.domain.menu_store.MenuStore`.
The caller passes the canvas :class:`Viewport` measured at event time on
every call; when it is missing the step is dropped without touching the
document.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable

from ..core.actions import default_action
from ..core.geometry import (
    DraftRect,
    Point,
    Viewport,
    clamp_position,
    normalize_rect,
    scale_delta,
    to_logical,
)
from .document_model import MAX_REGIONS, MIN_REGION_SIZE, Region, new_region_id

if TYPE_CHECKING:  # pragma: no cover
    from ..ui.domain.menu_store import MenuStore

__all__ = ["CanvasInteraction", "GestureState", "region_at"]

LOGGER = logging.getLogger(__name__)


class GestureState(Enum):
    IDLE = "idle"
    CREATING = "creating"
    DRAGGING = "dragging"
    RESIZING = "resizing"


@dataclass(slots=True)
class _Gesture:
    """Book-keeping for the gesture in progress."""

    state: GestureState
    region_id: str | None = None
    anchor: Point | None = None
    logical_anchor: Point | None = None
    draft: DraftRect | None = None
    # Sub-pixel remainder of incremental moves, carried between events.
    carry_x: float = 0.0
    carry_y: float = 0.0


class CanvasInteraction:
    """Gesture controller bound to a menu store."""

    def __init__(
        self,
        store: MenuStore,
        *,
        id_factory: Callable[[], str] = new_region_id,
        on_change: Callable[[GestureState, DraftRect | None], None] | None = None,
    ) -> None:
        self._store = store
        self._id_factory = id_factory
        self._on_change = on_change
        self._gesture = _Gesture(GestureState.IDLE)

    @property
    def state(self) -> GestureState:
        return self._gesture.state

    @property
    def draft(self) -> DraftRect | None:
        return self._gesture.draft

    # ------------------------------------------------------------------
    # Pointer down
    # ------------------------------------------------------------------

    def press_canvas(self, screen: Point, viewport: Viewport | None) -> bool:
        """Start drawing a region on empty canvas; ignored when the menu is full."""

        document = self._store.document
        if len(document.regions) >= MAX_REGIONS:
            LOGGER.debug("Ignoring canvas press: %d region limit reached", MAX_REGIONS)
            return False
        logical = to_logical(screen, viewport, document.size)
        if logical is None or not (0 <= logical.x <= document.size.width and 0 <= logical.y <= document.size.height):
            return False
        self._gesture = _Gesture(
            GestureState.CREATING,
            anchor=screen,
            logical_anchor=logical,
            draft=DraftRect(logical.x, logical.y, 0.0, 0.0),
        )
        self._notify()
        return True

    def press_region(self, region_id: str, screen: Point, viewport: Viewport | None) -> bool:
        """Select ``region_id`` and start moving it."""

        return self._begin_edit(GestureState.DRAGGING, region_id, screen, viewport)

    def press_resize_handle(self, region_id: str, screen: Point, viewport: Viewport | None) -> bool:
        """Select ``region_id`` and start resizing it from its bottom-right corner."""

        return self._begin_edit(GestureState.RESIZING, region_id, screen, viewport)

    def _begin_edit(
        self, state: GestureState, region_id: str, screen: Point, viewport: Viewport | None
    ) -> bool:
        if viewport is None or not viewport.is_measured:
            return False
        if self._store.document.find_region(region_id) is None:
            return False
        self._store.select(region_id)
        self._gesture = _Gesture(state, region_id=region_id, anchor=screen)
        self._notify()
        return True

    # ------------------------------------------------------------------
    # Pointer move / up
    # ------------------------------------------------------------------

    def move(self, screen: Point, viewport: Viewport | None) -> bool:
        state = self._gesture.state
        if state is GestureState.CREATING:
            return self._move_draft(screen, viewport)
        if state is GestureState.DRAGGING:
            return self._move_region(screen, viewport)
        if state is GestureState.RESIZING:
            return self._resize_region(screen, viewport)
        return False

    def release(self) -> Region | None:
        """Finish the current gesture; returns the region committed by a draw, if any."""

        gesture = self._gesture
        self._gesture = _Gesture(GestureState.IDLE)
        created: Region | None = None
        if gesture.state is GestureState.CREATING and gesture.draft is not None:
            created = self._commit_draft(gesture.draft)
        if gesture.state is not GestureState.IDLE:
            self._notify()
        return created

    def cancel(self) -> None:
        if self._gesture.state is GestureState.IDLE:
            return
        self._gesture = _Gesture(GestureState.IDLE)
        self._notify()

    def delete_region(self, region_id: str) -> bool:
        """Remove ``region_id``; selection clears only if it was the selected region."""

        document = self._store.document
        if document.find_region(region_id) is None:
            return False
        if self._gesture.region_id == region_id:
            self.cancel()
        self._store.replace_document(document.remove_region(region_id), reason="delete")
        return True

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _move_draft(self, screen: Point, viewport: Viewport | None) -> bool:
        size = self._store.document.size
        current = to_logical(screen, viewport, size)
        if current is None or self._gesture.logical_anchor is None:
            return False
        # The pointer may leave the image while drawing; keep the draft on the canvas.
        current = Point(min(max(current.x, 0.0), size.width), min(max(current.y, 0.0), size.height))
        self._gesture.draft = normalize_rect(self._gesture.logical_anchor, current)
        self._notify()
        return True

    def _commit_draft(self, draft: DraftRect) -> Region | None:
        if not (draft.width > MIN_REGION_SIZE and draft.height > MIN_REGION_SIZE):
            LOGGER.debug("Discarding draft %.1fx%.1f below minimum size", draft.width, draft.height)
            return None
        document = self._store.document
        if len(document.regions) >= MAX_REGIONS:
            return None
        bounds = draft.rounded().clamped_to(document.size)
        region = Region(id=self._id_factory(), bounds=bounds, action=default_action())
        self._store.replace_document(document.add_region(region), reason="create")
        self._store.select(region.id)
        LOGGER.debug("Created region %s at %s", region.id, bounds.to_dict())
        return region

    def _pointer_delta(self, screen: Point, viewport: Viewport | None) -> tuple[float, float] | None:
        gesture = self._gesture
        if gesture.anchor is None:
            return None
        delta = scale_delta(
            screen.x - gesture.anchor.x,
            screen.y - gesture.anchor.y,
            viewport,
            self._store.document.size,
        )
        if delta is None:
            return None
        gesture.anchor = screen
        return delta[0] + gesture.carry_x, delta[1] + gesture.carry_y

    def _move_region(self, screen: Point, viewport: Viewport | None) -> bool:
        region = self._store.document.find_region(self._gesture.region_id)
        if region is None:
            return False
        delta = self._pointer_delta(screen, viewport)
        if delta is None:
            return False
        bounds = region.bounds
        target_x = bounds.x + delta[0]
        target_y = bounds.y + delta[1]
        x, y = clamp_position(target_x, target_y, bounds.width, bounds.height, self._store.document.size)
        self._store_carry(target_x, x, target_y, y)
        if (x, y) != (bounds.x, bounds.y):
            self._replace(region.with_bounds(bounds.moved_to(x, y)), reason="move")
        return True

    def _resize_region(self, screen: Point, viewport: Viewport | None) -> bool:
        region = self._store.document.find_region(self._gesture.region_id)
        if region is None:
            return False
        delta = self._pointer_delta(screen, viewport)
        if delta is None:
            return False
        bounds = region.bounds
        size = self._store.document.size
        target_w = bounds.width + delta[0]
        target_h = bounds.height + delta[1]
        room_w = size.width - bounds.x
        room_h = size.height - bounds.y
        # The minimum size yields to the canvas edge for regions imported close to it.
        width = int(round(min(room_w, max(min(MIN_REGION_SIZE, room_w), target_w))))
        height = int(round(min(room_h, max(min(MIN_REGION_SIZE, room_h), target_h))))
        self._store_carry(target_w, width, target_h, height)
        if (width, height) != (bounds.width, bounds.height):
            self._replace(region.with_bounds(bounds.resized_to(width, height)), reason="resize")
        return True

    def _store_carry(self, target_x: float, actual_x: int, target_y: float, actual_y: int) -> None:
        # Only the rounding remainder is carried; clamped overshoot is dropped.
        remainder_x = target_x - actual_x
        remainder_y = target_y - actual_y
        self._gesture.carry_x = remainder_x if abs(remainder_x) < 1 else 0.0
        self._gesture.carry_y = remainder_y if abs(remainder_y) < 1 else 0.0

    def _replace(self, region: Region, *, reason: str) -> None:
        self._store.replace_document(self._store.document.replace_region(region), reason=reason)

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change(self._gesture.state, self._gesture.draft)


def region_at(regions: tuple[Region, ...], point: Point) -> Region | None:
    """Return the top-most region containing ``point`` (logical units)."""

    for region in reversed(regions):
        if region.bounds.contains(point):
            return region
    return None


