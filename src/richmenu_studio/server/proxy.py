"""HTTP relay between the editor and the LINE Messaging API.

Browsers and locked-down desktops cannot always reach ``api.line.me``
directly, so the editor posts to this service instead. Every call forwards
the caller's bearer token verbatim; nothing is stored.
"""

from __future__ import annotations

import argparse
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Sequence

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from ..services.line_api import GatewayError, LineApiGateway, TransportError
from ..services.settings import Settings, SettingsStore
from ..utils import logging as logging_utils

LOGGER = logging.getLogger(__name__)

GatewayFactory = Callable[[Settings], LineApiGateway]


def _default_gateway(settings: Settings) -> LineApiGateway:
    return LineApiGateway(
        api_base_url=settings.line_api_base_url,
        data_api_base_url=settings.line_data_api_base_url,
        timeout=settings.request_timeout,
    )


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def create_app(settings: Settings | None = None, gateway_factory: GatewayFactory | None = None) -> FastAPI:
    """Build the relay application."""

    active = settings or Settings()
    gateway = (gateway_factory or _default_gateway)(active)

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        try:
            yield
        finally:
            await gateway.aclose()

    app = FastAPI(title="Rich Menu Studio relay", lifespan=lifespan)
    app.state.gateway = gateway
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(active.cors_origins or ["*"]),
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.get("/api/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.options("/line-richmenu")
    def preflight() -> Response:
        return Response(status_code=200)

    @app.post("/line-richmenu")
    async def line_richmenu(request: Request) -> Any:
        action = request.query_params.get("action")
        if not action:
            return _error(400, "Action parameter is required")
        auth_header = request.headers.get("Authorization")
        if not auth_header:
            return _error(401, "Authorization header is required")
        access_token = auth_header.replace("Bearer ", "", 1)

        try:
            if action == "create":
                return await _create(request, access_token)
            if action == "upload-image":
                return await _upload_image(request, access_token)
            if action == "set-default":
                return await _set_default(request, access_token)
        except TransportError as exc:
            LOGGER.error("Relay %s could not reach upstream: %s", action, exc.cause)
            return _error(502, str(exc))
        except Exception as exc:
            LOGGER.exception("Error in LINE API relay")
            return _error(500, str(exc) or "Internal server error")
        return _error(400, "Invalid action")

    async def _create(request: Request, access_token: str) -> Any:
        try:
            payload = await request.json()
        except ValueError:
            return _error(400, "Request body must be JSON")
        if not isinstance(payload, dict):
            return _error(400, "Request body must be JSON")
        try:
            rich_menu_id = await gateway.create_rich_menu(payload, access_token)
        except GatewayError as exc:
            return _error(exc.status_code, exc.message or f"Failed to create rich menu: {exc.status_code}")
        return {"richMenuId": rich_menu_id}

    async def _upload_image(request: Request, access_token: str) -> Any:
        rich_menu_id = request.query_params.get("richMenuId")
        image_url = request.query_params.get("imageUrl")
        if not rich_menu_id or not image_url:
            return _error(400, "richMenuId and imageUrl parameters are required")
        try:
            image = await gateway.fetch_image(image_url)
        except GatewayError:
            return _error(400, "Failed to fetch image from URL")
        try:
            await gateway.upload_image_bytes(rich_menu_id, image, access_token)
        except GatewayError as exc:
            return _error(exc.status_code, f"Failed to upload image: {exc.status_code}")
        return {"success": True}

    async def _set_default(request: Request, access_token: str) -> Any:
        rich_menu_id = request.query_params.get("richMenuId")
        if not rich_menu_id:
            return _error(400, "richMenuId parameter is required")
        try:
            await gateway.set_default(rich_menu_id, access_token)
        except GatewayError as exc:
            return _error(exc.status_code, f"Failed to set as default: {exc.status_code}")
        return {"success": True}

    return app


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point invoked by the ``richmenu-relay`` console script."""

    parser = argparse.ArgumentParser(description="Run the Rich Menu Studio relay server.")
    parser.add_argument("--host", default=None, help="Interface to bind (defaults to settings.relay_host)")
    parser.add_argument("--port", type=int, default=None, help="Port to bind (defaults to settings.relay_port)")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = parser.parse_args(list(argv) if argv is not None else None)

    settings = SettingsStore().load()
    debug = args.debug or settings.debug_logging
    logging_utils.setup_logging(logging.DEBUG if debug else logging.INFO)
    host = args.host or settings.relay_host
    port = args.port or settings.relay_port
    LOGGER.info("Starting relay on %s:%s", host, port)
    uvicorn.run(create_app(settings), host=host, port=port, log_config=None)


if __name__ == "__main__":  # pragma: no cover
    main()
