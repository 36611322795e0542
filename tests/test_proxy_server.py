"""Tests for the relay HTTP server."""

from __future__ import annotations

import json
from typing import Callable, Iterator

import httpx
import pytest
from fastapi.testclient import TestClient

from richmenu_studio.server import create_app
from richmenu_studio.services.line_api import LineApiGateway
from richmenu_studio.services.settings import Settings

Handler = Callable[[httpx.Request], httpx.Response]
AUTH = {"Authorization": "Bearer channel-token"}


class Upstream:
    """Scripted stand-in for the LINE endpoints and the image host."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.routes: dict[str, Handler] = {}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get(request.url.host)
        if handler is None:
            return httpx.Response(404)
        return handler(request)


@pytest.fixture
def upstream() -> Upstream:
    mock = Upstream()
    mock.routes["api.line.me"] = lambda request: httpx.Response(200, json={"richMenuId": "rm-42"})
    mock.routes["api-data.line.me"] = lambda request: httpx.Response(200, json={})
    mock.routes["cdn.example.com"] = lambda request: httpx.Response(
        200, content=b"jpeg-bytes", headers={"content-type": "image/jpeg"}
    )
    return mock


@pytest.fixture
def client(upstream: Upstream) -> Iterator[TestClient]:
    def factory(settings: Settings) -> LineApiGateway:
        del settings
        return LineApiGateway(httpx.AsyncClient(transport=httpx.MockTransport(upstream)))

    with TestClient(create_app(Settings(), gateway_factory=factory)) as test_client:
        yield test_client


def test_health(client: TestClient) -> None:
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_preflight_allows_cross_origin(client: TestClient) -> None:
    response = client.options(
        "/line-richmenu",
        headers={"Origin": "http://localhost:3000", "Access-Control-Request-Method": "POST"},
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] in {"*", "http://localhost:3000"}


def test_missing_action_is_rejected(client: TestClient) -> None:
    response = client.post("/line-richmenu", headers=AUTH)

    assert response.status_code == 400
    assert response.json() == {"error": "Action parameter is required"}


def test_missing_authorization_is_rejected(client: TestClient, upstream: Upstream) -> None:
    response = client.post("/line-richmenu", params={"action": "create"}, json={})

    assert response.status_code == 401
    assert response.json() == {"error": "Authorization header is required"}
    assert upstream.requests == []


def test_unknown_action_is_rejected(client: TestClient) -> None:
    response = client.post("/line-richmenu", params={"action": "delete"}, headers=AUTH)

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid action"}


class TestCreate:
    def test_forwards_body_and_token(self, client: TestClient, upstream: Upstream) -> None:
        body = {"size": {"width": 2500, "height": 1686}, "areas": []}

        response = client.post("/line-richmenu", params={"action": "create"}, headers=AUTH, json=body)

        assert response.status_code == 200
        assert response.json() == {"richMenuId": "rm-42"}
        forwarded = upstream.requests[0]
        assert forwarded.url.path == "/v2/bot/richmenu"
        assert forwarded.headers["Authorization"] == "Bearer channel-token"
        assert json.loads(forwarded.content) == body

    def test_relays_upstream_status_and_message(self, client: TestClient, upstream: Upstream) -> None:
        upstream.routes["api.line.me"] = lambda request: httpx.Response(
            401, json={"message": "Authentication failed"}
        )

        response = client.post("/line-richmenu", params={"action": "create"}, headers=AUTH, json={})

        assert response.status_code == 401
        assert response.json() == {"error": "Authentication failed"}

    def test_falls_back_to_status_message(self, client: TestClient, upstream: Upstream) -> None:
        upstream.routes["api.line.me"] = lambda request: httpx.Response(503, text="unavailable")

        response = client.post("/line-richmenu", params={"action": "create"}, headers=AUTH, json={})

        assert response.status_code == 503
        assert response.json() == {"error": "Failed to create rich menu: 503"}

    def test_rejects_non_json_body(self, client: TestClient, upstream: Upstream) -> None:
        response = client.post(
            "/line-richmenu", params={"action": "create"}, headers=AUTH, content=b"not json"
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Request body must be JSON"}
        assert upstream.requests == []

    @pytest.mark.parametrize("body", [[1], "menu", 42])
    def test_rejects_json_that_is_not_an_object(self, client: TestClient, upstream: Upstream, body: object) -> None:
        response = client.post("/line-richmenu", params={"action": "create"}, headers=AUTH, json=body)

        assert response.status_code == 400
        assert response.json() == {"error": "Request body must be JSON"}
        assert upstream.requests == []

    def test_unreachable_upstream_is_bad_gateway(self, client: TestClient, upstream: Upstream) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        upstream.routes["api.line.me"] = refuse

        response = client.post("/line-richmenu", params={"action": "create"}, headers=AUTH, json={})

        assert response.status_code == 502
        assert "connection refused" in response.json()["error"]


class TestUploadImage:
    def test_fetches_and_uploads_image(self, client: TestClient, upstream: Upstream) -> None:
        response = client.post(
            "/line-richmenu",
            params={"action": "upload-image", "richMenuId": "rm-42", "imageUrl": "https://cdn.example.com/m.jpg"},
            headers=AUTH,
        )

        assert response.status_code == 200
        assert response.json() == {"success": True}
        fetch, upload = upstream.requests
        assert fetch.url.host == "cdn.example.com"
        assert upload.url.path == "/v2/bot/richmenu/rm-42/content"
        assert upload.headers["Content-Type"] == "image/jpeg"
        assert upload.content == b"jpeg-bytes"

    @pytest.mark.parametrize("params", [{"richMenuId": "rm-42"}, {"imageUrl": "https://cdn.example.com/m.jpg"}])
    def test_requires_both_parameters(self, client: TestClient, params: dict[str, str]) -> None:
        response = client.post("/line-richmenu", params={"action": "upload-image", **params}, headers=AUTH)

        assert response.status_code == 400
        assert response.json() == {"error": "richMenuId and imageUrl parameters are required"}

    def test_unfetchable_image(self, client: TestClient, upstream: Upstream) -> None:
        upstream.routes["cdn.example.com"] = lambda request: httpx.Response(404)

        response = client.post(
            "/line-richmenu",
            params={"action": "upload-image", "richMenuId": "rm-42", "imageUrl": "https://cdn.example.com/x.jpg"},
            headers=AUTH,
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Failed to fetch image from URL"}
        assert all(request.url.host != "api-data.line.me" for request in upstream.requests)

    def test_upload_rejected_upstream(self, client: TestClient, upstream: Upstream) -> None:
        upstream.routes["api-data.line.me"] = lambda request: httpx.Response(413)

        response = client.post(
            "/line-richmenu",
            params={"action": "upload-image", "richMenuId": "rm-42", "imageUrl": "https://cdn.example.com/m.jpg"},
            headers=AUTH,
        )

        assert response.status_code == 413
        assert response.json() == {"error": "Failed to upload image: 413"}


class TestSetDefault:
    def test_sets_default_for_all_users(self, client: TestClient, upstream: Upstream) -> None:
        response = client.post(
            "/line-richmenu", params={"action": "set-default", "richMenuId": "rm-42"}, headers=AUTH
        )

        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert upstream.requests[0].url.path == "/v2/bot/user/all/richmenu/rm-42"

    def test_requires_rich_menu_id(self, client: TestClient) -> None:
        response = client.post("/line-richmenu", params={"action": "set-default"}, headers=AUTH)

        assert response.status_code == 400
        assert response.json() == {"error": "richMenuId parameter is required"}

    def test_relays_failure_status(self, client: TestClient, upstream: Upstream) -> None:
        upstream.routes["api.line.me"] = lambda request: httpx.Response(404, json={"message": "Not found"})

        response = client.post(
            "/line-richmenu", params={"action": "set-default", "richMenuId": "rm-missing"}, headers=AUTH
        )

        assert response.status_code == 404
        assert response.json() == {"error": "Failed to set as default: 404"}
