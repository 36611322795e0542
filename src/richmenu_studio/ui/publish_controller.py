"""Coordinates publish runs between the store, the relay and the widgets."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from ..services.relay import MSG_BUSY, PublishOutcome, PublishRelay, validate_publish_request
from .domain.menu_store import MenuStore
from .events import EventBus, PublishStarted, PublishStatusChanged, StatusMessage

LOGGER = logging.getLogger(__name__)


class PublishController:
    """Runs :class:`PublishRelay` for the store's current document.

    Events Emitted:
        - PublishStarted: when a validated run begins
        - PublishStatusChanged: with every outcome, including validation errors
        - StatusMessage: the outcome text, for the status bar
    """

    def __init__(
        self,
        store: MenuStore,
        relay: PublishRelay,
        *,
        event_bus: EventBus | None = None,
        status_timeout_ms: int = 3000,
    ) -> None:
        self._store = store
        self._relay = relay
        self._bus = event_bus or store.event_bus
        self._status_timeout_ms = status_timeout_ms
        self._task: Optional[asyncio.Task[PublishOutcome]] = None
        self._last_outcome: PublishOutcome | None = None

    @property
    def in_flight(self) -> bool:
        return self._relay.in_flight or (self._task is not None and not self._task.done())

    @property
    def last_outcome(self) -> PublishOutcome | None:
        return self._last_outcome

    async def publish(self, image_url: str, access_token: str) -> PublishOutcome:
        """Publish a snapshot of the current document and report the outcome."""

        document = self._store.document
        invalid = validate_publish_request(document, image_url, access_token)
        if invalid is not None:
            return self._report(invalid)
        if self._relay.in_flight:
            return self._report(PublishOutcome("error", MSG_BUSY, code="busy"))

        self._bus.publish(PublishStarted(menu_name=document.name))
        LOGGER.info("Publishing rich menu %r with %d area(s)", document.name, document.region_count)
        try:
            outcome = await self._relay.publish(document, image_url, access_token)
        except Exception as exc:
            LOGGER.exception("Publish failed unexpectedly")
            outcome = PublishOutcome("error", f"Publish failed: {exc}", code="unexpected")
        return self._report(outcome)

    def start(self, image_url: str, access_token: str) -> asyncio.Task[PublishOutcome] | None:
        """Schedule :meth:`publish` on the running loop; ``None`` while one is in flight."""

        if self.in_flight:
            LOGGER.debug("Publish requested while another run is in flight; ignoring")
            return None
        loop = asyncio.get_event_loop()
        self._task = loop.create_task(self.publish(image_url, access_token))
        return self._task

    def _report(self, outcome: PublishOutcome) -> PublishOutcome:
        self._last_outcome = outcome
        self._bus.publish(
            PublishStatusChanged(status=outcome.status, message=outcome.message, rich_menu_id=outcome.rich_menu_id)
        )
        self._bus.publish(StatusMessage(message=outcome.message, timeout_ms=self._status_timeout_ms))
        return outcome
