"""Shared test helpers and stub classes.

Import from here instead of duplicating these classes in individual test files::

    from tests.helpers import FakeGateway
"""

from __future__ import annotations

import asyncio
from typing import Any, Mapping

IMAGE_URL = "https://cdn.example.com/menu.png"


class FakeGateway:
    """In-memory rich menu gateway that records calls and fails on demand.

    ``failures`` maps a step name (``create``, ``upload-image``,
    ``set-default``) to the exception that step raises. Set ``gate`` to an
    :class:`asyncio.Event` to hold ``create`` until the test releases it.
    """

    def __init__(self, *, failures: Mapping[str, BaseException] | None = None, rich_menu_id: str = "rm-123") -> None:
        self.calls: list[tuple[Any, ...]] = []
        self.failures = dict(failures or {})
        self.rich_menu_id = rich_menu_id
        self.gate: asyncio.Event | None = None
        self.closed = False

    @property
    def steps(self) -> list[str]:
        return [call[0] for call in self.calls]

    async def create_rich_menu(self, payload: Mapping[str, Any], access_token: str) -> str:
        self.calls.append(("create", payload, access_token))
        if self.gate is not None:
            await self.gate.wait()
        self._maybe_fail("create")
        return self.rich_menu_id

    async def upload_image(self, rich_menu_id: str, image_url: str, access_token: str) -> None:
        self.calls.append(("upload-image", rich_menu_id, image_url, access_token))
        self._maybe_fail("upload-image")

    async def set_default(self, rich_menu_id: str, access_token: str) -> None:
        self.calls.append(("set-default", rich_menu_id, access_token))
        self._maybe_fail("set-default")

    async def aclose(self) -> None:
        self.closed = True

    def _maybe_fail(self, step: str) -> None:
        failure = self.failures.get(step)
        if failure is not None:
            raise failure
