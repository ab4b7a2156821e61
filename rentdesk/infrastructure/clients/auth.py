"""Hosted auth API client (/auth/v1) for admin sessions"""

from typing import Any, Dict

import httpx

from rentdesk.config import settings
from rentdesk.domain.exceptions import BackendError, NotAuthenticatedError
from rentdesk.domain.models import Actor
from rentdesk.infrastructure.observability.metrics import backend_failure_counter, backend_latency_histogram


class AuthClient:
    """Client for password sign-in and token introspection"""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.supabase_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.supabase_anon_key
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                with backend_latency_histogram.labels(operation="auth").time():
                    return await client.request(method, f"{self.base_url}/auth/v1{path}", **kwargs)
            except httpx.TimeoutException as e:
                backend_failure_counter.labels(operation="auth").inc()
                raise BackendError(f"Auth API timeout after {self.timeout}s") from e
            except httpx.RequestError as e:
                backend_failure_counter.labels(operation="auth").inc()
                raise BackendError(f"Auth API unreachable: {e}") from e

    async def sign_in(self, email: str, password: str) -> Dict[str, Any]:
        """
        Password grant.

        Returns:
            Token payload (access_token, refresh_token, expires_in, user)

        Raises:
            NotAuthenticatedError: credentials rejected
            BackendError: auth API unavailable or malformed response
        """
        response = await self._request(
            "POST",
            "/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
            headers={"apikey": self.api_key},
        )
        if response.status_code in (400, 401, 422):
            raise NotAuthenticatedError(self._message(response) or "Email atau kata sandi salah.")
        if response.is_error:
            backend_failure_counter.labels(operation="auth").inc()
            raise BackendError(f"Auth API error: {response.status_code}", response.status_code)
        try:
            payload = response.json()
            payload["access_token"]
        except (KeyError, ValueError, TypeError) as e:
            raise BackendError(f"Invalid token response from auth API: {e}") from e
        return payload

    async def get_user(self, access_token: str) -> Actor:
        """
        Resolve the user behind an access token.

        Raises:
            NotAuthenticatedError: token missing, expired or revoked
        """
        if not access_token:
            raise NotAuthenticatedError("Sesi tidak ditemukan.")
        response = await self._request(
            "GET",
            "/user",
            headers={"apikey": self.api_key, "Authorization": f"Bearer {access_token}"},
        )
        if response.status_code in (401, 403):
            raise NotAuthenticatedError("Sesi tidak valid atau kedaluwarsa.")
        if response.is_error:
            backend_failure_counter.labels(operation="auth").inc()
            raise BackendError(f"Auth API error: {response.status_code}", response.status_code)
        try:
            data = response.json()
            return Actor(user_id=data["id"], email=data.get("email") or "", access_token=access_token)
        except (KeyError, ValueError, TypeError) as e:
            raise BackendError(f"Invalid user response from auth API: {e}") from e

    @staticmethod
    def _message(response: httpx.Response) -> str | None:
        try:
            body = response.json()
        except ValueError:
            return None
        if isinstance(body, dict):
            return body.get("error_description") or body.get("msg") or body.get("message")
        return None
