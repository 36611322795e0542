"""Publish sequence that turns a menu document into a live rich menu.

The sequence is create, then upload the background image, then (when the
menu is flagged ``selected``) set it as the default menu. Each step waits for
the previous one. Nothing is retried; the first failure ends the run. A
failure of the last step still leaves a usable menu on the platform and is
reported as a partial success.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal

from ..editor.document_model import MenuDocument
from .line_api import GatewayError, RichMenuGateway, TransportError

__all__ = ["PublishOutcome", "PublishRelay", "PublishStatus", "validate_publish_request"]

LOGGER = logging.getLogger(__name__)

PublishStatus = Literal["success", "partial", "error"]

MSG_CREDENTIAL_REQUIRED = "Please enter your LINE channel access token"
MSG_IMAGE_REQUIRED = "Please provide an image URL for the rich menu"
MSG_AREAS_REQUIRED = "Please add at least one action area"
MSG_BUSY = "A publish is already in progress"
MSG_SET_AS_DEFAULT = "Rich menu created and set as default successfully!"
MSG_CREATED = "Rich menu created successfully!"
MSG_NOT_DEFAULT = "Rich menu created successfully! (Not set as default)"

_STEP_NAMES = {1: "create rich menu", 2: "upload image", 3: "set as default"}


@dataclass(slots=True, frozen=True)
class PublishOutcome:
    """Result of one publish run, ready to show as status text."""

    status: PublishStatus
    message: str
    code: str = ""
    rich_menu_id: str | None = None
    step: int | None = None
    http_status: int | None = None

    @property
    def ok(self) -> bool:
        return self.status != "error"


def validate_publish_request(document: MenuDocument, image_url: str, access_token: str) -> PublishOutcome | None:
    """Return an error outcome for the first failed precondition, else ``None``."""

    if not (access_token or "").strip():
        return PublishOutcome("error", MSG_CREDENTIAL_REQUIRED, code="credential_required")
    if not (image_url or "").strip():
        return PublishOutcome("error", MSG_IMAGE_REQUIRED, code="image_required")
    if not document.regions:
        return PublishOutcome("error", MSG_AREAS_REQUIRED, code="areas_required")
    return None


class PublishRelay:
    """Runs the three-step publish sequence against a :class:`RichMenuGateway`."""

    def __init__(self, gateway: RichMenuGateway) -> None:
        self._gateway = gateway
        self._in_flight = False

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def gateway(self) -> RichMenuGateway:
        return self._gateway

    async def publish(self, document: MenuDocument, image_url: str, access_token: str) -> PublishOutcome:
        invalid = validate_publish_request(document, image_url, access_token)
        if invalid is not None:
            LOGGER.info("Publish rejected before any request: %s", invalid.code)
            return invalid
        if self._in_flight:
            return PublishOutcome("error", MSG_BUSY, code="busy")

        self._in_flight = True
        try:
            return await self._run(document, image_url.strip(), access_token)
        finally:
            self._in_flight = False

    async def _run(self, document: MenuDocument, image_url: str, token: str) -> PublishOutcome:
        step = 1
        try:
            rich_menu_id = await self._gateway.create_rich_menu(document.to_payload(), token)
            step = 2
            await self._gateway.upload_image(rich_menu_id, image_url, token)
        except GatewayError as exc:
            return _http_failure(step, exc)
        except TransportError as exc:
            return _transport_failure(step, exc)

        if not document.selected:
            return PublishOutcome("success", MSG_CREATED, code="created", rich_menu_id=rich_menu_id)

        try:
            await self._gateway.set_default(rich_menu_id, token)
        except (GatewayError, TransportError) as exc:
            LOGGER.warning("Rich menu %s created but not set as default: %s", rich_menu_id, exc)
            return PublishOutcome(
                "partial",
                MSG_NOT_DEFAULT,
                code="not_default",
                rich_menu_id=rich_menu_id,
                step=3,
                http_status=getattr(exc, "status_code", None),
            )
        LOGGER.info("Rich menu %s published and set as default", rich_menu_id)
        return PublishOutcome("success", MSG_SET_AS_DEFAULT, code="default_set", rich_menu_id=rich_menu_id)


def _http_failure(step: int, exc: GatewayError) -> PublishOutcome:
    base = exc.message or f"Failed at step {step} ({_STEP_NAMES[step]})"
    message = f"{base} (HTTP {exc.status_code})"
    LOGGER.warning("Publish failed at step %d: %s", step, message)
    return PublishOutcome("error", message, code="http_error", step=step, http_status=exc.status_code)


def _transport_failure(step: int, exc: TransportError) -> PublishOutcome:
    message = f"Failed at step {step} ({_STEP_NAMES[step]}): network error"
    LOGGER.warning("Publish failed at step %d: %s", step, exc.cause)
    return PublishOutcome("error", message, code="network_error", step=step)
