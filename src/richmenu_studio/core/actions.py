"""Action variants that can be attached to a rich menu region.

Each action kind is its own frozen dataclass carrying only the fields that are
valid for that kind, so a leftover ``uri`` on a message action cannot be
represented at all. Wire payloads use the Messaging API's camelCase keys.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any, Literal, Union

__all__ = [
    "ACTION_TYPES",
    "DATETIME_MODES",
    "Action",
    "ActionFormatError",
    "DatetimePickerAction",
    "MessageAction",
    "PostbackAction",
    "UriAction",
    "action_from_payload",
    "action_to_payload",
    "action_type",
    "default_action",
    "switch_action_type",
    "update_action",
]

DEFAULT_URI = "https://example.com"
DatetimeMode = Literal["date", "time", "datetime"]
DATETIME_MODES: tuple[str, ...] = ("date", "time", "datetime")


class ActionFormatError(ValueError):
    """Raised when an action payload cannot be decoded."""


@dataclass(slots=True, frozen=True)
class UriAction:
    """Open a link when the region is tapped."""

    uri: str = DEFAULT_URI
    label: str | None = None

    type = "uri"


@dataclass(slots=True, frozen=True)
class PostbackAction:
    """Send a postback event to the bot, optionally echoing text in the chat."""

    data: str = ""
    display_text: str | None = None
    label: str | None = None

    type = "postback"


@dataclass(slots=True, frozen=True)
class MessageAction:
    """Send ``text`` as a chat message on behalf of the user."""

    text: str = ""
    label: str | None = None

    type = "message"


@dataclass(slots=True, frozen=True)
class DatetimePickerAction:
    """Open a date/time picker and post the selection back with ``data``."""

    mode: DatetimeMode = "date"
    data: str = ""
    initial: str | None = None
    min: str | None = None
    max: str | None = None
    label: str | None = None

    type = "datetimepicker"

    def __post_init__(self) -> None:
        if self.mode not in DATETIME_MODES:
            raise ActionFormatError(f"Unsupported datetime picker mode: {self.mode!r}")


Action = Union[UriAction, PostbackAction, MessageAction, DatetimePickerAction]

_ACTION_CLASSES: dict[str, type] = {
    "uri": UriAction,
    "postback": PostbackAction,
    "message": MessageAction,
    "datetimepicker": DatetimePickerAction,
}

ACTION_TYPES: tuple[tuple[str, str], ...] = (
    ("uri", "Open URL"),
    ("postback", "Postback"),
    ("message", "Send Message"),
    ("datetimepicker", "Date/Time Picker"),
)


def default_action() -> Action:
    """Return the action assigned to freshly drawn regions."""

    return UriAction(uri=DEFAULT_URI)


def action_type(action: Action) -> str:
    return action.type


def switch_action_type(action: Action, new_type: str) -> Action:
    """Return an empty action of ``new_type`` keeping only the shared ``label``."""

    if new_type == action.type:
        return action
    try:
        factory = _ACTION_CLASSES[new_type]
    except KeyError as exc:
        raise ActionFormatError(f"Unknown action type: {new_type!r}") from exc
    if factory is UriAction:
        # The form shows an empty URL field after switching, not the placeholder.
        return UriAction(uri="", label=action.label)
    return factory(label=action.label)


def update_action(action: Action, **changes: Any) -> Action:
    """Return ``action`` with ``changes`` applied; unknown fields raise ``TypeError``."""

    return replace(action, **changes)


def action_to_payload(action: Action) -> dict[str, Any]:
    """Serialize ``action`` into the Messaging API wire shape."""

    payload: dict[str, Any] = {"type": action.type}
    if isinstance(action, UriAction):
        payload["uri"] = action.uri
    elif isinstance(action, PostbackAction):
        payload["data"] = action.data
        _put_optional(payload, "displayText", action.display_text)
    elif isinstance(action, MessageAction):
        payload["text"] = action.text
    elif isinstance(action, DatetimePickerAction):
        payload["data"] = action.data
        payload["mode"] = action.mode
        _put_optional(payload, "initial", action.initial)
        _put_optional(payload, "min", action.min)
        _put_optional(payload, "max", action.max)
    else:  # pragma: no cover - exhaustive over Action
        raise TypeError(f"Unsupported action object: {action!r}")
    _put_optional(payload, "label", action.label)
    return payload


def action_from_payload(payload: Mapping[str, Any]) -> Action:
    """Decode a wire payload, ignoring keys that do not belong to its kind."""

    if not isinstance(payload, Mapping):
        raise ActionFormatError("action must be an object")
    kind = payload.get("type")
    label = _optional_str(payload.get("label"))
    if kind == "uri":
        return UriAction(uri=_required_str(payload, "uri"), label=label)
    if kind == "postback":
        return PostbackAction(
            data=_required_str(payload, "data"),
            display_text=_optional_str(payload.get("displayText")),
            label=label,
        )
    if kind == "message":
        return MessageAction(text=_required_str(payload, "text"), label=label)
    if kind == "datetimepicker":
        return DatetimePickerAction(
            mode=str(payload.get("mode") or "date"),  # type: ignore[arg-type]
            data=_required_str(payload, "data"),
            initial=_optional_str(payload.get("initial")),
            min=_optional_str(payload.get("min")),
            max=_optional_str(payload.get("max")),
            label=label,
        )
    raise ActionFormatError(f"Unknown action type: {kind!r}")


def _put_optional(payload: dict[str, Any], key: str, value: str | None) -> None:
    if value is not None:
        payload[key] = value


def _required_str(payload: Mapping[str, Any], key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str):
        raise ActionFormatError(f"{payload.get('type')} action requires a string {key!r}")
    return value


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ActionFormatError("optional action fields must be strings")
    return value
