"""Async gateways for the LINE rich menu endpoints.

Two implementations share the :class:`RichMenuGateway` protocol:

* :class:`LineApiGateway` calls the LINE Messaging API directly. The relay
  server uses it, and the desktop app can use it when no relay is configured.
* :class:`ProxyGateway` calls the relay server's ``?action=`` endpoints.

Gateways only translate HTTP; sequencing and user-facing messages live in
:mod:`richmenu_studio.services.relay`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Protocol

import httpx

__all__ = [
    "FetchedImage",
    "GatewayError",
    "LineApiGateway",
    "ProxyGateway",
    "RichMenuGateway",
    "TransportError",
    "error_message_from_response",
]

LOGGER = logging.getLogger(__name__)
_DEFAULT_IMAGE_TYPE = "image/jpeg"


class GatewayError(Exception):
    """A remote endpoint answered with a non-success status."""

    def __init__(self, step: str, status_code: int, message: str | None = None) -> None:
        self.step = step
        self.status_code = status_code
        self.message = message
        super().__init__(message or f"{step} failed with HTTP {status_code}")


class TransportError(Exception):
    """The request never produced a response (DNS, connection, timeout...)."""

    def __init__(self, step: str, cause: BaseException) -> None:
        self.step = step
        self.cause = cause
        super().__init__(f"{step} failed: {cause}")


@dataclass(slots=True, frozen=True)
class FetchedImage:
    content: bytes
    content_type: str


class RichMenuGateway(Protocol):
    """Operations the publish sequence needs from the platform."""

    async def create_rich_menu(self, payload: Mapping[str, Any], access_token: str) -> str:
        ...

    async def upload_image(self, rich_menu_id: str, image_url: str, access_token: str) -> None:
        ...

    async def set_default(self, rich_menu_id: str, access_token: str) -> None:
        ...

    async def aclose(self) -> None:
        ...


def error_message_from_response(response: httpx.Response) -> str | None:
    """Return the ``message`` (or ``error``) field of a JSON error body, if any."""

    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, Mapping):
        return None
    for key in ("message", "error"):
        value = body.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return None


def _bearer(access_token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {access_token}"}


class _HttpGateway:
    """Shared ``httpx.AsyncClient`` ownership for the gateways."""

    def __init__(self, client: httpx.AsyncClient | None = None, *, timeout: float = 30.0) -> None:
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _send(self, step: str, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            LOGGER.warning("%s request to %s failed: %s", step, url, exc)
            raise TransportError(step, exc) from exc


class LineApiGateway(_HttpGateway):
    """Talks to ``api.line.me`` / ``api-data.line.me`` with the caller's token."""

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        api_base_url: str = "https://api.line.me",
        data_api_base_url: str = "https://api-data.line.me",
        timeout: float = 30.0,
    ) -> None:
        super().__init__(client, timeout=timeout)
        self._api_base = api_base_url.rstrip("/")
        self._data_base = data_api_base_url.rstrip("/")

    async def create_rich_menu(self, payload: Mapping[str, Any], access_token: str) -> str:
        response = await self._send(
            "create",
            "POST",
            f"{self._api_base}/v2/bot/richmenu",
            json=dict(payload),
            headers=_bearer(access_token),
        )
        if not response.is_success:
            raise GatewayError("create", response.status_code, error_message_from_response(response))
        rich_menu_id = _rich_menu_id(response)
        LOGGER.info("Created rich menu %s", rich_menu_id)
        return rich_menu_id

    async def fetch_image(self, image_url: str) -> FetchedImage:
        response = await self._send("fetch-image", "GET", image_url, follow_redirects=True)
        if not response.is_success:
            raise GatewayError("fetch-image", response.status_code, "Failed to fetch image from URL")
        content_type = response.headers.get("content-type", "").split(";")[0].strip() or _DEFAULT_IMAGE_TYPE
        return FetchedImage(content=response.content, content_type=content_type)

    async def upload_image(self, rich_menu_id: str, image_url: str, access_token: str) -> None:
        image = await self.fetch_image(image_url)
        await self.upload_image_bytes(rich_menu_id, image, access_token)

    async def upload_image_bytes(self, rich_menu_id: str, image: FetchedImage, access_token: str) -> None:
        headers = _bearer(access_token)
        headers["Content-Type"] = image.content_type
        response = await self._send(
            "upload-image",
            "POST",
            f"{self._data_base}/v2/bot/richmenu/{rich_menu_id}/content",
            content=image.content,
            headers=headers,
        )
        if not response.is_success:
            raise GatewayError("upload-image", response.status_code, error_message_from_response(response))
        LOGGER.info("Uploaded %d byte image to rich menu %s", len(image.content), rich_menu_id)

    async def set_default(self, rich_menu_id: str, access_token: str) -> None:
        response = await self._send(
            "set-default",
            "POST",
            f"{self._api_base}/v2/bot/user/all/richmenu/{rich_menu_id}",
            headers=_bearer(access_token),
        )
        if not response.is_success:
            raise GatewayError("set-default", response.status_code, error_message_from_response(response))


class ProxyGateway(_HttpGateway):
    """Talks to the relay server (``richmenu-relay``) instead of LINE itself."""

    def __init__(self, relay_url: str, client: httpx.AsyncClient | None = None, *, timeout: float = 30.0) -> None:
        super().__init__(client, timeout=timeout)
        self._relay_url = relay_url

    async def create_rich_menu(self, payload: Mapping[str, Any], access_token: str) -> str:
        response = await self._post("create", access_token, json=dict(payload))
        return _rich_menu_id(response)

    async def upload_image(self, rich_menu_id: str, image_url: str, access_token: str) -> None:
        await self._post("upload-image", access_token, params={"richMenuId": rich_menu_id, "imageUrl": image_url})

    async def set_default(self, rich_menu_id: str, access_token: str) -> None:
        await self._post("set-default", access_token, params={"richMenuId": rich_menu_id})

    async def _post(self, action: str, access_token: str, *, params: Mapping[str, str] | None = None, **kwargs: Any) -> httpx.Response:
        query = {"action": action, **(params or {})}
        response = await self._send(action, "POST", self._relay_url, params=query, headers=_bearer(access_token), **kwargs)
        if not response.is_success:
            raise GatewayError(action, response.status_code, error_message_from_response(response))
        return response


def _rich_menu_id(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError as exc:
        raise GatewayError("create", response.status_code, "Rich menu response was not JSON") from exc
    rich_menu_id = body.get("richMenuId") if isinstance(body, Mapping) else None
    if not isinstance(rich_menu_id, str) or not rich_menu_id:
        raise GatewayError("create", response.status_code, "Rich menu response did not include richMenuId")
    return rich_menu_id
