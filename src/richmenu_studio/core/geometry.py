"""Coordinate helpers shared by the canvas, the overlays and the document model.

Regions are stored in the fixed logical pixel space of the menu image (for
example ``2500x1686``) while the canvas is displayed at an arbitrary on-screen
size. The helpers here convert between the two spaces; none of them cache a
scale factor, callers pass the current :class:`Viewport` on every call.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Iterator

__all__ = [
    "Bounds",
    "CanvasSize",
    "DraftRect",
    "PercentRect",
    "Point",
    "Viewport",
    "clamp_position",
    "fit_viewport",
    "normalize_rect",
    "percent_rect",
    "scale_delta",
    "to_logical",
]


@dataclass(slots=True, frozen=True)
class Point:
    """A 2D point, either in screen pixels or logical canvas units."""

    x: float
    y: float


@dataclass(slots=True, frozen=True)
class CanvasSize:
    """Logical dimensions of a rich menu image."""

    width: int
    height: int

    def __post_init__(self) -> None:
        width = _coerce_int(self.width, "width")
        height = _coerce_int(self.height, "height")
        if width <= 0 or height <= 0:
            raise ValueError("CanvasSize dimensions must be positive")
        object.__setattr__(self, "width", width)
        object.__setattr__(self, "height", height)

    @classmethod
    def full(cls) -> CanvasSize:
        return cls(2500, 1686)

    @classmethod
    def compact(cls) -> CanvasSize:
        return cls(2500, 843)

    @classmethod
    def presets(cls) -> dict[str, CanvasSize]:
        """Return the named size templates offered by the editor."""

        return {"full": cls.full(), "compact": cls.compact()}

    @classmethod
    def from_preset(cls, name: str) -> CanvasSize:
        try:
            return cls.presets()[(name or "").strip().lower()]
        except KeyError as exc:
            raise ValueError(f"Unknown canvas preset: {name!r}") from exc

    @property
    def preset_name(self) -> str | None:
        for name, size in self.presets().items():
            if size == self:
                return name
        return None

    def to_dict(self) -> dict[str, int]:
        return {"width": self.width, "height": self.height}

    @classmethod
    def from_value(cls, value: Any) -> CanvasSize:
        if isinstance(value, CanvasSize):
            return value
        if isinstance(value, Mapping):
            if "width" not in value or "height" not in value:
                raise ValueError("size mappings require width and height keys")
            return cls(value["width"], value["height"])
        raise TypeError("Unsupported CanvasSize input")


@dataclass(slots=True, frozen=True)
class Bounds:
    """Integer rectangle in logical canvas coordinates."""

    x: int
    y: int
    width: int
    height: int

    def __post_init__(self) -> None:
        for label in ("x", "y", "width", "height"):
            value = _coerce_int(getattr(self, label), label)
            if value < 0:
                raise ValueError(f"Bounds {label} must be non-negative")
            object.__setattr__(self, label, value)

    def __iter__(self) -> Iterator[int]:
        yield self.x
        yield self.y
        yield self.width
        yield self.height

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    def contains(self, point: Point) -> bool:
        """Return ``True`` when ``point`` (logical units) lies inside the rectangle."""

        return self.x <= point.x <= self.right and self.y <= point.y <= self.bottom

    def fits_in(self, size: CanvasSize) -> bool:
        return self.right <= size.width and self.bottom <= size.height

    def moved_to(self, x: int, y: int) -> Bounds:
        return Bounds(x, y, self.width, self.height)

    def resized_to(self, width: int, height: int) -> Bounds:
        return Bounds(self.x, self.y, width, height)

    def clamped_to(self, size: CanvasSize) -> Bounds:
        """Fit the rectangle inside ``size``: move it inward first, then crop."""

        width = min(self.width, size.width)
        height = min(self.height, size.height)
        x, y = clamp_position(self.x, self.y, width, height, size)
        return Bounds(x, y, width, height)

    def to_dict(self) -> dict[str, int]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}

    @classmethod
    def from_value(cls, value: Any) -> Bounds:
        if isinstance(value, Bounds):
            return value
        if isinstance(value, Mapping):
            missing = [key for key in ("x", "y", "width", "height") if key not in value]
            if missing:
                raise ValueError(f"bounds mapping is missing {', '.join(missing)}")
            return cls(value["x"], value["y"], value["width"], value["height"])
        raise TypeError("Unsupported Bounds input")


@dataclass(slots=True, frozen=True)
class DraftRect:
    """Unrounded rectangle tracked while a region is being drawn."""

    x: float
    y: float
    width: float
    height: float

    def rounded(self) -> Bounds:
        return Bounds(round(self.x), round(self.y), round(self.width), round(self.height))


@dataclass(slots=True, frozen=True)
class Viewport:
    """On-screen rectangle the canvas image currently occupies."""

    left: float
    top: float
    width: float
    height: float

    @property
    def is_measured(self) -> bool:
        return self.width > 0 and self.height > 0


@dataclass(slots=True, frozen=True)
class PercentRect:
    """Rectangle expressed as percentages of the canvas dimensions."""

    left: float
    top: float
    width: float
    height: float

    def to_pixels(self, viewport: Viewport) -> tuple[float, float, float, float]:
        """Project the rectangle onto ``viewport`` as ``(x, y, width, height)`` pixels."""

        return (
            viewport.left + viewport.width * self.left / 100.0,
            viewport.top + viewport.height * self.top / 100.0,
            viewport.width * self.width / 100.0,
            viewport.height * self.height / 100.0,
        )


def to_logical(screen: Point, viewport: Viewport | None, size: CanvasSize) -> Point | None:
    """Map a screen position to logical canvas units.

    Returns ``None`` when the viewport has not been laid out yet.
    """

    if viewport is None or not viewport.is_measured:
        return None
    return Point(
        (screen.x - viewport.left) / viewport.width * size.width,
        (screen.y - viewport.top) / viewport.height * size.height,
    )


def scale_delta(
    dx: float, dy: float, viewport: Viewport | None, size: CanvasSize
) -> tuple[float, float] | None:
    """Convert a screen-pixel delta into logical units using the per-axis scale."""

    if viewport is None or not viewport.is_measured:
        return None
    return dx * size.width / viewport.width, dy * size.height / viewport.height


def normalize_rect(anchor: Point, current: Point) -> DraftRect:
    """Return the axis-aligned bounding box spanned by two points."""

    return DraftRect(
        x=min(anchor.x, current.x),
        y=min(anchor.y, current.y),
        width=abs(current.x - anchor.x),
        height=abs(current.y - anchor.y),
    )


def clamp_position(x: float, y: float, width: float, height: float, size: CanvasSize) -> tuple[int, int]:
    """Clamp a top-left corner so the rectangle stays fully inside ``size``."""

    max_x = max(0, size.width - width)
    max_y = max(0, size.height - height)
    return (
        int(round(max(0, min(max_x, x)))),
        int(round(max(0, min(max_y, y)))),
    )


def percent_rect(bounds: Bounds | DraftRect, size: CanvasSize) -> PercentRect:
    return PercentRect(
        left=bounds.x / size.width * 100.0,
        top=bounds.y / size.height * 100.0,
        width=bounds.width / size.width * 100.0,
        height=bounds.height / size.height * 100.0,
    )


def _coerce_int(value: Any, label: str) -> int:
    if isinstance(value, bool):
        raise ValueError(f"{label} must be an integer")
    if isinstance(value, float):
        return int(round(value))
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{label} must be an integer") from exc


def fit_viewport(available_width: float, available_height: float, size: CanvasSize) -> Viewport | None:
    """Return the largest centred rectangle with the canvas aspect ratio.

    ``None`` while the widget has no area yet.
    """

    if available_width <= 0 or available_height <= 0:
        return None
    scale = min(available_width / size.width, available_height / size.height)
    width = size.width * scale
    height = size.height * scale
    return Viewport((available_width - width) / 2.0, (available_height - height) / 2.0, width, height)
