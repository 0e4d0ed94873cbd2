"""HTTP client for the financial platform API."""

import json
import logging
from typing import Any

import httpx

from ..errors import AuthenticationRejected, BackendCallFailed

logger = logging.getLogger(__name__)


def _error_fields(response: httpx.Response) -> tuple[str, str | None]:
    """Extract (message, details) from an error response body."""
    message = response.reason_phrase or "Request failed"
    detail: str | None = None
    try:
        body = response.json()
    except ValueError:
        return message, None

    if isinstance(body, dict):
        message = str(body.get("message") or message)
        details = body.get("details")
        if details:
            detail = details if isinstance(details, str) else json.dumps(details)
    return message, detail


class PlatformClient:
    """Bearer-authenticated JSON client shared by all tool handlers.

    Unauthenticated calls (the OTP handshake) use the platform API key; all
    other calls pass the session's access token explicitly.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._http = http_client or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            headers={"accept": "application/json"},
        )

    def _headers(self, token: str | None) -> dict[str, str]:
        headers = {"content-type": "application/json"}
        bearer = token or self._api_key
        if bearer:
            headers["Authorization"] = f"Bearer {bearer}"
        return headers

    async def request(
        self,
        method: str,
        path: str,
        *,
        token: str | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> Any:
        """Send a request and return the decoded JSON body.

        Raises:
            AuthenticationRejected: The platform answered 401.
            BackendCallFailed: Network failure, other non-2xx status or a body
                that is not JSON.
        """
        try:
            response = await self._http.request(
                method,
                path,
                headers=self._headers(token),
                json=json_body,
            )
        except httpx.TimeoutException as e:
            raise BackendCallFailed("Request timed out") from e
        except httpx.RequestError as e:
            raise BackendCallFailed(f"Request failed: {e}") from e

        if not response.is_success:
            message, detail = _error_fields(response)
            logger.warning(
                "Platform error %s %s -> %s: %s", method, path, response.status_code, message
            )
            if response.status_code == 401:
                raise AuthenticationRejected(message, detail, response.status_code)
            raise BackendCallFailed(message, detail, response.status_code)

        if not response.content:
            return {}

        try:
            return response.json()
        except ValueError as e:
            raise BackendCallFailed(
                "Malformed response from platform", status_code=response.status_code
            ) from e

    async def get(self, path: str, *, token: str | None = None) -> Any:
        return await self.request("GET", path, token=token)

    async def post(
        self,
        path: str,
        json_body: dict[str, Any] | None = None,
        *,
        token: str | None = None,
    ) -> Any:
        return await self.request("POST", path, token=token, json_body=json_body)

    async def aclose(self) -> None:
        """Close the underlying HTTP connection pool."""
        await self._http.aclose()
