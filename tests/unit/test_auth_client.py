"""Unit tests for the hosted auth client"""

import httpx
import pytest

from rentdesk.domain.exceptions import BackendError, NotAuthenticatedError
from rentdesk.infrastructure.clients.auth import AuthClient


def make_client(handler) -> AuthClient:
    return AuthClient(base_url="http://backend.test/", api_key="anon-key", transport=httpx.MockTransport(handler))


async def test_sign_in_password_grant():
    """Test sign-in posts credentials to the token endpoint"""

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/auth/v1/token"
        assert request.url.params.get("grant_type") == "password"
        assert request.headers["apikey"] == "anon-key"
        return httpx.Response(200, json={"access_token": "tok", "user": {"id": "u1"}})

    payload = await make_client(handler).sign_in("admin@example.com", "secret")
    assert payload["access_token"] == "tok"


async def test_sign_in_rejected():
    """Test rejected credentials raise NotAuthenticatedError with the API message"""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"error_description": "Invalid login credentials"})

    with pytest.raises(NotAuthenticatedError, match="Invalid login credentials"):
        await make_client(handler).sign_in("admin@example.com", "wrong")


async def test_sign_in_server_error():
    """Test auth API outages are backend errors"""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503)

    with pytest.raises(BackendError) as exc_info:
        await make_client(handler).sign_in("admin@example.com", "secret")
    assert exc_info.value.status_code == 503


async def test_sign_in_malformed_response():
    """Test a token response without access_token"""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"user": {}})

    with pytest.raises(BackendError, match="Invalid token response"):
        await make_client(handler).sign_in("admin@example.com", "secret")


async def test_get_user():
    """Test the token is introspected and turned into an actor"""

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/auth/v1/user"
        assert request.headers["Authorization"] == "Bearer tok"
        return httpx.Response(200, json={"id": "u1", "email": "fadel@example.com"})

    actor = await make_client(handler).get_user("tok")

    assert actor.user_id == "u1"
    assert actor.access_token == "tok"
    assert actor.name == "fadel"


async def test_get_user_rejected_token():
    """Test expired tokens and missing tokens"""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"msg": "JWT expired"})

    client = make_client(handler)
    with pytest.raises(NotAuthenticatedError, match="Sesi tidak valid"):
        await client.get_user("expired")
    with pytest.raises(NotAuthenticatedError, match="Sesi tidak ditemukan"):
        await client.get_user("")
