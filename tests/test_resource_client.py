"""
Resource client tests: identity headers and error classification.
"""

import asyncio

import httpx
import pytest

from billow.errors import AuthError, DecodeError, ErrorKind, NetworkError, ServerError
from billow.models.identity import Identity


def test_get_returns_payload_and_drops_unset_params(client_factory, identity):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["params"] = dict(request.url.params)
        seen["path"] = request.url.path
        seen["user"] = request.headers.get("X-User-ID")
        return httpx.Response(200, json=[{"id": "INV-001"}])

    client = client_factory(handler)
    payload = asyncio.run(
        client.get("/invoices", identity=identity, params={"search": "x", "status": None})
    )

    assert payload == [{"id": "INV-001"}]
    assert seen == {"params": {"search": "x"}, "path": "/api/invoices", "user": "USR-TEST"}
    assert client.request_count == 1


def test_external_identity_uses_clerk_header(client_factory):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(request.headers)
        return httpx.Response(200, json={})

    client = client_factory(handler)
    asyncio.run(client.get("/dashboard/kpi", identity=Identity(external_id="user_abc")))

    assert seen["x-clerk-id"] == "user_abc"
    assert "x-user-id" not in seen


def test_missing_identity_fails_without_network_call(client_factory):
    calls = []
    client = client_factory(lambda request: calls.append(request))

    with pytest.raises(AuthError) as info:
        asyncio.run(client.get("/invoices", identity=None))

    assert calls == []
    assert client.request_count == 0
    assert info.value.retryable is False


def test_unauthenticated_endpoint_allows_missing_identity(client_factory):
    client = client_factory(lambda request: httpx.Response(200, json={"user": {}}))
    payload = asyncio.run(
        client.post("/auth/sync-user", identity=None, body={}, authenticated=False)
    )
    assert payload == {"user": {}}


@pytest.mark.parametrize("status", [401, 403])
def test_rejected_identity_is_auth_error(client_factory, identity, status):
    client = client_factory(
        lambda request: httpx.Response(status, json={"error": "Invalid user"})
    )
    with pytest.raises(AuthError) as info:
        asyncio.run(client.get("/invoices", identity=identity))
    assert info.value.message == "Invalid user"
    assert info.value.kind is ErrorKind.AUTH


def test_server_error_carries_status_and_backend_message(client_factory, identity):
    client = client_factory(
        lambda request: httpx.Response(500, json={"error": "Failed to fetch invoices"})
    )
    with pytest.raises(ServerError) as info:
        asyncio.run(client.get("/invoices", identity=identity))

    error = info.value
    assert error.status_code == 500
    assert error.retryable is True
    assert error.to_dict() == {
        "kind": "ServerError",
        "message": "Failed to fetch invoices",
        "retryable": True,
        "status_code": 500,
    }


def test_server_error_without_json_body_uses_fallback(client_factory, identity):
    client = client_factory(lambda request: httpx.Response(502, text="Bad gateway"))
    with pytest.raises(ServerError) as info:
        asyncio.run(client.get("/invoices", identity=identity))
    assert info.value.message == "Server error 502"


def test_malformed_json_is_decode_error(client_factory, identity):
    client = client_factory(lambda request: httpx.Response(200, text="{not json"))
    with pytest.raises(DecodeError) as info:
        asyncio.run(client.get("/invoices", identity=identity))
    assert info.value.retryable is False


def test_empty_body_returns_none(client_factory, identity):
    client = client_factory(lambda request: httpx.Response(204))
    assert asyncio.run(client.post("/subscription/change", identity=identity)) is None


def test_timeout_is_retryable_network_error(client_factory, identity):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    client = client_factory(handler, timeout=2.5)
    with pytest.raises(NetworkError) as info:
        asyncio.run(client.get("/invoices", identity=identity))
    assert info.value.retryable is True
    assert "2.5s" in info.value.message


def test_connection_failure_is_network_error(client_factory, identity):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    client = client_factory(handler)
    with pytest.raises(NetworkError):
        asyncio.run(client.get("/invoices", identity=identity))
    assert client.request_count == 1


def test_unsupported_method_is_rejected(client_factory, identity):
    client = client_factory(lambda request: httpx.Response(200, json={}))
    with pytest.raises(ValueError):
        asyncio.run(client.request("DELETE", "/invoices/INV-1", identity=identity))


@pytest.mark.parametrize("timeout", [0, -1.0, float("inf"), float("nan")])
def test_timeout_must_be_finite_and_positive(client_factory, timeout):
    with pytest.raises(ValueError):
        client_factory(lambda request: httpx.Response(200), timeout=timeout)
