"""Overlay geometry for drawing regions on top of the menu image.

Rectangles are expressed as percentages of the canvas so they line up with the
image at whatever size the canvas is displayed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from ..core.geometry import DraftRect, PercentRect, percent_rect
from .document_model import MenuDocument

OverlayStyle = Literal["selected", "normal", "draft"]


@dataclass(slots=True, frozen=True)
class OverlayItem:
    """A single rectangle to paint over the canvas."""

    region_id: str | None
    label: str
    rect: PercentRect
    style: OverlayStyle


def build_overlays(
    document: MenuDocument,
    selected_id: str | None = None,
    draft: DraftRect | None = None,
) -> list[OverlayItem]:
    """Return overlays in paint order: regions by sequence, then the draft."""

    items = [
        OverlayItem(
            region_id=region.id,
            label=f"Area {index}",
            rect=percent_rect(region.bounds, document.size),
            style="selected" if region.id == selected_id else "normal",
        )
        for index, region in enumerate(document.regions, start=1)
    ]
    if draft is not None:
        items.append(OverlayItem(region_id=None, label="", rect=percent_rect(draft, document.size), style="draft"))
    return items
