"""Tests for the platform HTTP client."""

import httpx
import pytest

from teller.errors import AuthenticationRejected, BackendCallFailed
from teller.platform import PlatformClient

BASE_URL = "https://platform.test"


@pytest.mark.asyncio
async def test_get_sends_bearer_token(fake_platform, platform: PlatformClient):
    fake_platform.add("GET", "/api/auth/me", json={"email": "alice@example.com"})

    data = await platform.get("/api/auth/me", token="user-token")

    assert data == {"email": "alice@example.com"}
    request = fake_platform.requests[0]
    assert request.headers["Authorization"] == "Bearer user-token"
    assert str(request.url) == f"{BASE_URL}/api/auth/me"


@pytest.mark.asyncio
async def test_unauthenticated_call_uses_api_key(
    fake_platform, platform: PlatformClient
):
    fake_platform.add("POST", "/api/auth/email-otp/request", json={"sid": "s"})

    await platform.post("/api/auth/email-otp/request", {"email": "alice@example.com"})

    request = fake_platform.requests[0]
    assert request.headers["Authorization"] == "Bearer platform-key"
    assert request.headers["content-type"] == "application/json"


@pytest.mark.asyncio
async def test_no_credentials_no_authorization_header():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={})

    http = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=BASE_URL)
    client = PlatformClient(BASE_URL, http_client=http)

    await client.get("/api/ping")

    assert "Authorization" not in seen[0].headers


@pytest.mark.asyncio
async def test_error_body_becomes_backend_call_failed(
    fake_platform, platform: PlatformClient
):
    fake_platform.add(
        "POST",
        "/api/transactions/send",
        status=400,
        json={"message": "Insufficient funds", "details": {"available": 3}},
    )

    with pytest.raises(BackendCallFailed) as exc_info:
        await platform.post("/api/transactions/send", {"amount": 10}, token="t")

    error = exc_info.value
    assert not isinstance(error, AuthenticationRejected)
    assert error.message == "Insufficient funds"
    assert error.status_code == 400
    assert error.detail == '{"available": 3}'
    assert "(400)" in str(error)


@pytest.mark.asyncio
async def test_401_is_authentication_rejected(
    fake_platform, platform: PlatformClient
):
    fake_platform.add("POST", "/api/auth/logout", status=401, json={"message": "Unauthorized"})

    with pytest.raises(AuthenticationRejected) as exc_info:
        await platform.post("/api/auth/logout", token="expired")

    assert exc_info.value.status_code == 401


@pytest.mark.asyncio
async def test_error_without_json_body(fake_platform, platform: PlatformClient):
    fake_platform.add("GET", "/api/wallets", status=502, content=b"<html>bad gateway</html>")

    with pytest.raises(BackendCallFailed) as exc_info:
        await platform.get("/api/wallets", token="t")

    assert exc_info.value.status_code == 502
    assert exc_info.value.message == "Bad Gateway"
    assert exc_info.value.detail is None


@pytest.mark.asyncio
async def test_malformed_success_body(fake_platform, platform: PlatformClient):
    fake_platform.add("GET", "/api/wallet/balance", content=b"not json")

    with pytest.raises(BackendCallFailed, match="Malformed response"):
        await platform.get("/api/wallet/balance", token="t")


@pytest.mark.asyncio
async def test_empty_success_body(fake_platform, platform: PlatformClient):
    fake_platform.add("POST", "/api/auth/logout", content=b"")

    assert await platform.post("/api/auth/logout", token="t") == {}


@pytest.mark.asyncio
async def test_network_error_has_unknown_status():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    http = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=BASE_URL)
    client = PlatformClient(BASE_URL, http_client=http)

    with pytest.raises(BackendCallFailed) as exc_info:
        await client.get("/api/wallets")

    assert exc_info.value.status_code is None
    assert "(Unknown)" in str(exc_info.value)


@pytest.mark.asyncio
async def test_timeout():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("too slow", request=request)

    http = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=BASE_URL)
    client = PlatformClient(BASE_URL, http_client=http)

    with pytest.raises(BackendCallFailed, match="timed out"):
        await client.get("/api/wallets")


@pytest.mark.asyncio
async def test_no_retries(fake_platform, platform: PlatformClient):
    fake_platform.add("GET", "/api/wallets", status=500, json={"message": "boom"})

    with pytest.raises(BackendCallFailed):
        await platform.get("/api/wallets", token="t")

    assert fake_platform.calls() == 1
