"""Shared fixtures."""

from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx
import pytest

from teller import conversation_logger
from teller import logging as teller_logging
from teller.platform import PlatformClient
from teller.session import SessionConfig, SessionStore

BASE_URL = "https://platform.test"


class FakePlatform:
    """Routes platform requests to canned responses and records every request."""

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Callable[[httpx.Request], httpx.Response]] = {}
        self.requests: list[httpx.Request] = []

    def add(
        self,
        method: str,
        path: str,
        status: int = 200,
        json: Any = None,
        content: bytes | None = None,
    ) -> None:
        def respond(request: httpx.Request) -> httpx.Response:
            if content is not None:
                return httpx.Response(status, content=content)
            return httpx.Response(status, json=json if json is not None else {})

        self.routes[(method, path)] = respond

    def add_handler(
        self, method: str, path: str, handler: Callable[[httpx.Request], httpx.Response]
    ) -> None:
        self.routes[(method, path)] = handler

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"message": "Not Found"})
        return route(request)

    def calls(self, method: str | None = None, path: str | None = None) -> int:
        return sum(
            1
            for r in self.requests
            if (method is None or r.method == method) and (path is None or r.url.path == path)
        )

    def client(self) -> PlatformClient:
        http = httpx.AsyncClient(
            transport=httpx.MockTransport(self.handler), base_url=BASE_URL
        )
        return PlatformClient(BASE_URL, api_key="platform-key", http_client=http)


@pytest.fixture(autouse=True)
def isolated_logs(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Point the global loggers at a per-test directory."""
    log_dir = tmp_path / "logs"
    monkeypatch.setattr(teller_logging, "_logger", teller_logging.JSONLLogger(log_dir))
    monkeypatch.setattr(
        conversation_logger,
        "_conversation_logger",
        conversation_logger.ConversationLogger(log_dir / "conversations"),
    )
    return log_dir


@pytest.fixture
def fake_platform() -> FakePlatform:
    return FakePlatform()


@pytest.fixture
def platform(fake_platform: FakePlatform) -> PlatformClient:
    return fake_platform.client()


@pytest.fixture
def sessions(tmp_path: Path) -> SessionStore:
    return SessionStore(SessionConfig(sessions_dir=tmp_path / "sessions"))


@pytest.fixture
def logged_in(sessions: SessionStore) -> str:
    """Create a session for alice and return her identity key."""
    sessions.create(
        "alice@example.com",
        {
            "accessToken": "alice-token",
            "accessTokenId": "tid-1",
            "expireAt": "2030-01-01T00:00:00Z",
            "user": {
                "email": "alice@example.com",
                "firstName": "Alice",
                "lastName": "Smith",
                "organizationId": "org-42",
            },
        },
    )
    return "alice@example.com"
