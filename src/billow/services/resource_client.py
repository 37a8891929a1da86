"""
HTTP client for the Billow backend.

``ResourceClient`` performs one request against a resource path and either
returns the decoded JSON payload or raises a classified
:class:`billow.errors.SyncError`:

- timeout / connection failure  -> NetworkError (retryable)
- 401 / 403 or missing identity -> AuthError
- any other non-2xx status      -> ServerError (retryable)
- undecodable body              -> DecodeError

It never retries; retry policy belongs to the caller. The current-user
identity is an explicit argument of every call.
"""

import math
from typing import Any, Mapping

import httpx

from billow.errors import AuthError, DecodeError, NetworkError, ServerError
from billow.lib import logs
from billow.models.identity import Identity

LOG = logs.logger(__file__)

_METHODS = {"GET", "POST", "PATCH", "PUT"}


class ResourceClient:
    """
    Thin async wrapper around ``httpx.AsyncClient``.

    Attributes:
        base_url: Backend base URL every path is joined to.
        timeout: Finite per-request timeout in seconds.
        request_count: Number of requests actually sent.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Args:
            base_url: Backend base URL (e.g. http://localhost:8080/api).
            timeout: Request timeout in seconds; must be finite.
            transport: Optional transport (a mock transport in demo mode
                and tests).
        """
        if not math.isfinite(timeout) or timeout <= 0:
            raise ValueError("timeout must be a finite positive number of seconds")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.request_count = 0
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
            transport=transport,
            headers={"Content-Type": "application/json", "Accept": "application/json"},
        )

    async def request(
        self,
        method: str,
        path: str,
        *,
        identity: Identity | None,
        params: Mapping[str, Any] | None = None,
        body: Any = None,
        authenticated: bool = True,
    ) -> Any:
        """
        Perform a request and return the decoded JSON payload.

        Args:
            method: GET, POST, PATCH or PUT.
            path: Resource path relative to the base URL.
            identity: Current user; required when ``authenticated``.
            params: Query parameters; ``None`` values are dropped.
            body: JSON body for mutations.
            authenticated: Whether the endpoint requires an identity.

        Raises:
            AuthError: Missing identity or 401/403 response.
            NetworkError: Timeout or connection failure.
            ServerError: Any other non-2xx response.
            DecodeError: The body is not valid JSON.
        """
        method = method.upper()
        if method not in _METHODS:
            raise ValueError(f"Unsupported method: {method}")
        if authenticated and (identity is None or not identity.is_authenticated):
            raise AuthError(f"Sign in required for {method} {path}")

        query = {k: v for k, v in (params or {}).items() if v is not None}
        headers = identity.headers() if identity else {}
        url = "/" + path.lstrip("/")

        self.request_count += 1
        LOG.debug("request - %s %s params:%s", method, url, query)
        try:
            response = await self._client.request(
                method, url, params=query, json=body, headers=headers
            )
        except httpx.TimeoutException as exc:
            LOG.warning("request timed out - %s %s", method, url)
            raise NetworkError(
                f"{method} {url} timed out after {self.timeout:g}s"
            ) from exc
        except httpx.TransportError as exc:
            LOG.warning("request failed - %s %s: %s", method, url, exc)
            raise NetworkError(f"Could not reach the server: {exc}") from exc

        if response.status_code in (401, 403):
            LOG.warning("request rejected - %s %s %s", method, url, response.status_code)
            raise AuthError(_error_message(response, "Authentication required"))
        if not response.is_success:
            LOG.warning("request error - %s %s %s", method, url, response.status_code)
            raise ServerError(
                _error_message(response, f"Server error {response.status_code}"),
                status_code=response.status_code,
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            LOG.warning("undecodable response - %s %s", method, url)
            raise DecodeError(f"{method} {url} returned malformed JSON") from exc

    async def get(self, path: str, *, identity: Identity | None, **kwargs: Any) -> Any:
        return await self.request("GET", path, identity=identity, **kwargs)

    async def post(self, path: str, *, identity: Identity | None, **kwargs: Any) -> Any:
        return await self.request("POST", path, identity=identity, **kwargs)

    async def aclose(self) -> None:
        """Close the underlying connection pool."""
        await self._client.aclose()

    async def __aenter__(self) -> "ResourceClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()


def _error_message(response: httpx.Response, fallback: str) -> str:
    """Extract the backend's ``error``/``message`` text from an error body."""
    try:
        payload = response.json()
    except ValueError:
        return fallback
    if isinstance(payload, Mapping):
        for key in ("error", "message"):
            value = payload.get(key)
            if isinstance(value, str) and value:
                return value
    return fallback
