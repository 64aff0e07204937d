import base64
import json

import httpx
import pytest

from apitester.errors import SendError
from apitester.sender import Sender, enabled_params


def _sender(handler, **kwargs) -> Sender:
    return Sender(transport=httpx.MockTransport(handler), **kwargs)


@pytest.mark.anyio
async def test_json_response_is_decoded():
    seen = {}

    def _handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["body"] = json.loads(request.content)
        seen["headers"] = request.headers
        return httpx.Response(201, request=request, json={"id": 1})

    result = await _sender(_handler).send(
        method="post",
        url="https://example.com/users",
        headers={"X-Test": "true"},
        body={"name": "Ada"},
    )

    assert seen["method"] == "POST"
    assert seen["body"] == {"name": "Ada"}
    assert seen["headers"]["x-test"] == "true"
    assert result["status_code"] == 201
    assert result["json"] == {"id": 1}
    assert result["text"] is None
    assert result["duration_ms"] >= 0


@pytest.mark.anyio
async def test_error_status_is_returned_not_raised():
    def _handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            404, request=request, text="missing", headers={"content-type": "text/plain"}
        )

    result = await _sender(_handler).send(method="GET", url="https://example.com/nope")

    assert result["status_code"] == 404
    assert result["text"] == "missing"
    assert result["json"] is None
    assert result["headers"]["content-type"] == "text/plain"


@pytest.mark.anyio
async def test_invalid_json_falls_back_to_text():
    def _handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200, request=request, text="{broken", headers={"content-type": "application/json"}
        )

    result = await _sender(_handler).send(method="GET", url="https://example.com")

    assert result["json"] is None
    assert result["text"] == "{broken"


@pytest.mark.anyio
async def test_only_enabled_query_params_are_sent():
    seen = {}

    def _handler(request: httpx.Request) -> httpx.Response:
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, request=request, text="ok")

    await _sender(_handler).send(
        method="GET",
        url="https://example.com/search",
        query_params=[
            {"key": "q", "value": "cats", "enabled": True},
            {"key": "debug", "value": "1", "enabled": False},
        ],
    )

    assert seen["params"] == {"q": "cats"}


@pytest.mark.anyio
async def test_bearer_auth_header():
    seen = {}

    def _handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers.get("authorization")
        return httpx.Response(200, request=request, text="ok")

    await _sender(_handler).send(
        method="GET", url="https://example.com", auth={"type": "bearer", "token": "t0k"}
    )

    assert seen["auth"] == "Bearer t0k"


@pytest.mark.anyio
async def test_explicit_authorization_header_wins_over_bearer():
    seen = {}

    def _handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers.get("authorization")
        return httpx.Response(200, request=request, text="ok")

    await _sender(_handler).send(
        method="GET",
        url="https://example.com",
        headers={"Authorization": "Custom abc"},
        auth={"type": "bearer", "token": "t0k"},
    )

    assert seen["auth"] == "Custom abc"


@pytest.mark.anyio
async def test_basic_auth_header():
    seen = {}

    def _handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers.get("authorization")
        return httpx.Response(200, request=request, text="ok")

    await _sender(_handler).send(
        method="GET",
        url="https://example.com",
        auth={"type": "basic", "username": "ada", "password": "secret"},
    )

    expected = base64.b64encode(b"ada:secret").decode()
    assert seen["auth"] == f"Basic {expected}"


@pytest.mark.anyio
async def test_string_body_sent_raw():
    seen = {}

    def _handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = request.content
        return httpx.Response(200, request=request, text="ok")

    await _sender(_handler).send(method="PUT", url="https://example.com", body="plain text")

    assert seen["body"] == b"plain text"


@pytest.mark.anyio
async def test_transport_failure_raises_send_error():
    def _handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Name or service not known", request=request)

    with pytest.raises(SendError, match="ConnectError"):
        await _sender(_handler).send(method="GET", url="https://nowhere.invalid")


@pytest.mark.anyio
async def test_redirect_limit():
    def _handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(302, request=request, headers={"location": "https://example.com/loop"})

    with pytest.raises(SendError, match="TooManyRedirects"):
        await _sender(_handler, max_redirects=2).send(method="GET", url="https://example.com")


def test_enabled_params_defaults_to_enabled():
    assert enabled_params([{"key": "a", "value": "1"}, {"key": "b", "enabled": False}]) == [
        ("a", "1")
    ]
    assert enabled_params(None) == []
