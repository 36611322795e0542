"""Dataclasses representing the rich menu document and its regions."""

from __future__ import annotations

import json
import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional

from ..core.actions import Action, ActionFormatError, action_from_payload, action_to_payload, default_action
from ..core.geometry import Bounds, CanvasSize

__all__ = [
    "DEFAULT_MENU_NAME",
    "MAX_CHAT_BAR_TEXT",
    "MAX_REGIONS",
    "MIN_REGION_SIZE",
    "DocumentFormatError",
    "MenuDocument",
    "Region",
    "new_region_id",
    "validate_document",
]

MAX_REGIONS = 10
MAX_CHAT_BAR_TEXT = 14
MIN_REGION_SIZE = 20
DEFAULT_MENU_NAME = "My Rich Menu"
DEFAULT_CHAT_BAR_TEXT = "Menu"


class DocumentFormatError(ValueError):
    """Raised when an imported menu payload is malformed."""


def new_region_id() -> str:
    """Return a fresh opaque region identifier."""

    return f"area-{uuid.uuid4().hex}"


@dataclass(slots=True, frozen=True)
class Region:
    """A clickable rectangle on the menu with its attached action."""

    id: str
    bounds: Bounds
    action: Action = field(default_factory=default_action)

    def with_bounds(self, bounds: Bounds) -> Region:
        return replace(self, bounds=bounds)

    def with_action(self, action: Action) -> Region:
        return replace(self, action=action)

    def to_payload(self) -> Dict[str, Any]:
        return {"bounds": self.bounds.to_dict(), "action": action_to_payload(self.action)}


@dataclass(slots=True, frozen=True)
class MenuDocument:
    """Full menu snapshot. Every edit produces a new instance."""

    size: CanvasSize = field(default_factory=CanvasSize.full)
    selected: bool = True
    name: str = DEFAULT_MENU_NAME
    chat_bar_text: str = DEFAULT_CHAT_BAR_TEXT
    regions: tuple[Region, ...] = ()

    def __post_init__(self) -> None:
        if not isinstance(self.regions, tuple):
            object.__setattr__(self, "regions", tuple(self.regions))

    # ------------------------------------------------------------------
    # Region sequence
    # ------------------------------------------------------------------

    @property
    def region_count(self) -> int:
        return len(self.regions)

    @property
    def is_full(self) -> bool:
        return len(self.regions) >= MAX_REGIONS

    def find_region(self, region_id: str | None) -> Optional[Region]:
        if region_id is None:
            return None
        for region in self.regions:
            if region.id == region_id:
                return region
        return None

    def index_of(self, region_id: str) -> int:
        for index, region in enumerate(self.regions):
            if region.id == region_id:
                return index
        raise KeyError(region_id)

    def with_regions(self, regions: Iterable[Region]) -> MenuDocument:
        """Swap in a whole new region sequence."""

        return replace(self, regions=tuple(regions))

    def add_region(self, region: Region) -> MenuDocument:
        return self.with_regions((*self.regions, region))

    def replace_region(self, region: Region) -> MenuDocument:
        """Replace the region sharing ``region.id``; the others are untouched."""

        self.index_of(region.id)
        return self.with_regions(region if current.id == region.id else current for current in self.regions)

    def remove_region(self, region_id: str) -> MenuDocument:
        return self.with_regions(region for region in self.regions if region.id != region_id)

    # ------------------------------------------------------------------
    # Menu settings
    # ------------------------------------------------------------------

    def update_settings(
        self,
        *,
        name: str | None = None,
        chat_bar_text: str | None = None,
        selected: bool | None = None,
    ) -> MenuDocument:
        changes: Dict[str, Any] = {}
        if name is not None:
            changes["name"] = name
        if chat_bar_text is not None:
            changes["chat_bar_text"] = chat_bar_text[:MAX_CHAT_BAR_TEXT]
        if selected is not None:
            changes["selected"] = bool(selected)
        return replace(self, **changes) if changes else self

    def resize_canvas(self, size: CanvasSize) -> MenuDocument:
        """Switch the canvas size and pull every region back inside it."""

        if size == self.size:
            return self
        regions = tuple(region.with_bounds(region.bounds.clamped_to(size)) for region in self.regions)
        return replace(self, size=size, regions=regions)

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_payload(self) -> Dict[str, Any]:
        """Return the exported file body, also used as the create request body."""

        return {
            "size": self.size.to_dict(),
            "selected": self.selected,
            "name": self.name,
            "chatBarText": self.chat_bar_text,
            "areas": [region.to_payload() for region in self.regions],
        }

    def to_json(self, *, indent: int | None = 2) -> str:
        return json.dumps(self.to_payload(), indent=indent, ensure_ascii=False)

    def export_filename(self) -> str:
        return f"{self.name.strip() or 'rich-menu'}.json"

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> MenuDocument:
        """Decode an exported payload; areas receive freshly generated ids."""

        if not isinstance(payload, Mapping):
            raise DocumentFormatError("menu payload must be an object")
        try:
            size = CanvasSize.from_value(payload.get("size"))
        except (TypeError, ValueError) as exc:
            raise DocumentFormatError(f"invalid size: {exc}") from exc
        areas = payload.get("areas", [])
        if not isinstance(areas, list):
            raise DocumentFormatError("areas must be a list")
        regions: list[Region] = []
        for index, area in enumerate(areas, start=1):
            if not isinstance(area, Mapping):
                raise DocumentFormatError(f"area {index} must be an object")
            try:
                bounds = Bounds.from_value(area.get("bounds"))
                action = action_from_payload(area.get("action"))  # type: ignore[arg-type]
            except ActionFormatError as exc:
                raise DocumentFormatError(f"area {index}: {exc}") from exc
            except (TypeError, ValueError) as exc:
                raise DocumentFormatError(f"area {index}: invalid bounds: {exc}") from exc
            regions.append(Region(id=new_region_id(), bounds=bounds, action=action))
        selected = payload.get("selected", True)
        name = payload.get("name", DEFAULT_MENU_NAME)
        chat_bar_text = payload.get("chatBarText", DEFAULT_CHAT_BAR_TEXT)
        if not isinstance(selected, bool):
            raise DocumentFormatError("selected must be a boolean")
        if not isinstance(name, str) or not isinstance(chat_bar_text, str):
            raise DocumentFormatError("name and chatBarText must be strings")
        document = cls(
            size=size,
            selected=selected,
            name=name,
            chat_bar_text=chat_bar_text,
            regions=tuple(regions),
        )
        problems = validate_document(document)
        if problems:
            raise DocumentFormatError("; ".join(problems))
        return document

    @classmethod
    def from_json(cls, text: str) -> MenuDocument:
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as exc:
            raise DocumentFormatError(f"menu file is not valid JSON: {exc}") from exc
        return cls.from_payload(payload)


def validate_document(document: MenuDocument) -> list[str]:
    """Return human readable invariant violations; empty when the document is sound."""

    problems: list[str] = []
    if len(document.regions) > MAX_REGIONS:
        problems.append(f"at most {MAX_REGIONS} areas are allowed (found {len(document.regions)})")
    if len(document.chat_bar_text) > MAX_CHAT_BAR_TEXT:
        problems.append(f"chatBarText must be at most {MAX_CHAT_BAR_TEXT} characters")
    seen: set[str] = set()
    for index, region in enumerate(document.regions, start=1):
        if region.id in seen:
            problems.append(f"area {index} reuses id {region.id}")
        seen.add(region.id)
        if not region.bounds.fits_in(document.size):
            problems.append(f"area {index} extends outside the {document.size.width}x{document.size.height} canvas")
    return problems
