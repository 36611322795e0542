"""Event bus used to fan out editor state changes to the Qt widgets.

Domain objects (the menu store, the publish controller) publish small
dataclass events; widgets subscribe and re-render. Keeps the document model
free of any Qt dependency.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Generic, TypeVar
from weakref import WeakMethod

if TYPE_CHECKING:  # pragma: no cover - imports for type checking only
    from typing import DefaultDict

logger = logging.getLogger(__name__)

E = TypeVar("E", bound="Event")

Handler = Callable[[E], None]


@dataclass(slots=True)
class Event:
    """Base class for all editor events."""


# Published on every pointer move; not logged individually.
_QUIET_EVENT_TYPES: set[type] = set()


# =============================================================================
# Document events
# =============================================================================


@dataclass(slots=True)
class DocumentChanged(Event):
    """Emitted after the menu document was swapped for a new snapshot.

    Attributes:
        region_count: Number of regions in the new snapshot.
        reason: Short tag describing the edit (``"create"``, ``"move"`` ...).
    """

    region_count: int
    reason: str = "edit"


@dataclass(slots=True)
class SelectionChanged(Event):
    """Emitted when the selected region changes (``None`` means no selection)."""

    region_id: str | None


@dataclass(slots=True)
class GestureChanged(Event):
    """Emitted when the canvas gesture state machine changes state or draft."""

    state: str
    has_draft: bool = False


_QUIET_EVENT_TYPES.add(GestureChanged)


# =============================================================================
# Publish events
# =============================================================================


@dataclass(slots=True)
class PublishStarted(Event):
    """Emitted when a publish sequence begins."""

    menu_name: str


@dataclass(slots=True)
class PublishStatusChanged(Event):
    """Emitted with the outcome of a publish attempt.

    Attributes:
        status: ``"success"``, ``"partial"`` or ``"error"``.
        message: User facing status text.
        rich_menu_id: Identifier returned by the platform, when one was created.
    """

    status: str
    message: str
    rich_menu_id: str | None = None


@dataclass(slots=True)
class StatusMessage(Event):
    """Transient text for the status bar."""

    message: str
    timeout_ms: int = 3000


class EventBus(Generic[E]):
    """Typed synchronous publish/subscribe bus.

    Bound methods are held through :class:`weakref.WeakMethod` so a widget that
    goes away does not keep receiving events. Not thread-safe; publish from
    the Qt thread only.
    """

    __slots__ = ("_handlers",)

    def __init__(self) -> None:
        self._handlers: DefaultDict[type[Event], list[_HandlerRef]] = defaultdict(list)

    def subscribe(self, event_type: type[E], handler: Handler[E]) -> None:
        self._handlers[event_type].append(_HandlerRef.create(handler))
        logger.debug("Subscribed %s to %s", _handler_name(handler), event_type.__name__)

    def unsubscribe(self, event_type: type[E], handler: Handler[E]) -> None:
        """Remove the first registration of ``handler``; unknown handlers are ignored."""

        handlers = self._handlers.get(event_type)
        if handlers is None:
            return
        for index, handler_ref in enumerate(handlers):
            if handler_ref.matches(handler):
                handlers.pop(index)
                return

    def publish(self, event: E) -> None:
        """Invoke every handler for ``type(event)`` in subscription order.

        A handler raising an exception is logged and the remaining handlers
        still run.
        """

        event_type = type(event)
        handlers = self._handlers.get(event_type)
        if not handlers:
            return
        if event_type not in _QUIET_EVENT_TYPES:
            logger.debug("Publishing %s to %d handler(s)", event_type.__name__, len(handlers))

        dead_indices: list[int] = []
        for index, handler_ref in enumerate(list(handlers)):
            handler = handler_ref.resolve()
            if handler is None:
                dead_indices.append(index)
                continue
            try:
                handler(event)
            except Exception:
                logger.exception(
                    "Handler %s raised exception for event %s",
                    _handler_name(handler),
                    event_type.__name__,
                )

        for index in reversed(dead_indices):
            handlers.pop(index)

    def clear(self) -> None:
        self._handlers.clear()

    def handler_count(self, event_type: type[E] | None = None) -> int:
        if event_type is not None:
            return len(self._handlers.get(event_type, []))
        return sum(len(handlers) for handlers in self._handlers.values())


class _HandlerRef:
    """Weak reference for bound methods, strong reference for plain callables."""

    __slots__ = ("_ref", "_is_weak")

    def __init__(self, handler_ref: Any, is_weak: bool) -> None:
        self._ref = handler_ref
        self._is_weak = is_weak

    @classmethod
    def create(cls, handler: Handler) -> _HandlerRef:
        if hasattr(handler, "__self__") and hasattr(handler, "__func__"):
            try:
                return cls(WeakMethod(handler), is_weak=True)
            except TypeError:
                pass
        return cls(handler, is_weak=False)

    def resolve(self) -> Handler | None:
        if self._is_weak:
            return self._ref()
        return self._ref

    def matches(self, handler: Handler) -> bool:
        resolved = self.resolve()
        return resolved is not None and resolved == handler


def _handler_name(handler: Handler) -> str:
    return getattr(handler, "__qualname__", None) or repr(handler)
