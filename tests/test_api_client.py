import asyncio

import httpx
import pytest

from app.exceptions import ApiError, SessionExpiredError
from app.services import auth_service
from app.services.api_client import ApiClient, check_period


def _call(make_api_client, handler, url="http://api.test/x"):
    async def run():
        async with make_api_client(handler) as client:
            return await client.get(url)

    return asyncio.run(run())


def test_bearer_and_json_headers(make_api_client):
    seen = {}

    def handler(request):
        seen.update(request.headers)
        return httpx.Response(200, json={"ok": True})

    assert _call(make_api_client, handler) == {"ok": True}
    assert seen["authorization"] == "Bearer test-token"
    assert seen["content-type"] == "application/json"


def test_connection_error_names_url(make_api_client):
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(ApiError) as exc:
        _call(make_api_client, handler)
    assert exc.value.message.startswith("Could not connect to http://api.test/x")
    assert exc.value.status_code is None


def test_401_is_session_expired(make_api_client):
    with pytest.raises(SessionExpiredError) as exc:
        _call(make_api_client, lambda r: httpx.Response(401))
    assert exc.value.status_code == 401


def test_html_error_page(make_api_client):
    def handler(request):
        return httpx.Response(
            500, text="<html>oops</html>", headers={"content-type": "text/html"}
        )

    with pytest.raises(ApiError) as exc:
        _call(make_api_client, handler)
    assert "API error 500" in exc.value.message
    assert "HTML page" in exc.value.message


def test_json_error_message_is_surfaced(make_api_client):
    def handler(request):
        return httpx.Response(422, json={"message": "name is required"})

    with pytest.raises(ApiError) as exc:
        _call(make_api_client, handler)
    assert exc.value.message.endswith("name is required")
    assert exc.value.status_code == 422


def test_invalid_json_body(make_api_client):
    with pytest.raises(ApiError) as exc:
        _call(make_api_client, lambda r: httpx.Response(200, text="not json"))
    assert exc.value.message == "Failed to parse API response as JSON."


def test_empty_body_is_empty_dict(make_api_client):
    assert _call(make_api_client, lambda r: httpx.Response(204)) == {}


def test_client_requires_context_manager(context):
    with pytest.raises(RuntimeError):
        asyncio.run(ApiClient(context).get("http://api.test/x"))


def test_check_period():
    assert check_period("month") == "month"
    with pytest.raises(ValueError):
        check_period("week")


def test_login_returns_token(context):
    def handler(request):
        assert request.url.path == "/auth/login"
        assert b"username=admin" in request.content
        return httpx.Response(200, json={"access_token": "abc"})

    token = asyncio.run(
        auth_service.login(context, "admin", "pw", transport=httpx.MockTransport(handler))
    )
    assert token == "abc"


def test_login_bad_credentials(context):
    transport = httpx.MockTransport(lambda r: httpx.Response(401))
    with pytest.raises(ApiError) as exc:
        asyncio.run(auth_service.login(context, "admin", "bad", transport=transport))
    assert exc.value.message == auth_service.INVALID_CREDENTIALS


def test_validate_token(context):
    ok = httpx.MockTransport(lambda r: httpx.Response(200, json={}))
    expired = httpx.MockTransport(lambda r: httpx.Response(401))
    assert asyncio.run(auth_service.validate_token(context, transport=ok))
    assert not asyncio.run(auth_service.validate_token(context, transport=expired))
