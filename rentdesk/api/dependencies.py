"""Dependency injection for FastAPI endpoints"""

from typing import Optional

from fastapi import Depends, Header, Request

from rentdesk.config import settings
from rentdesk.domain.exceptions import NotAuthenticatedError
from rentdesk.domain.models import Actor
from rentdesk.infrastructure.clients.audit import AuditClient
from rentdesk.infrastructure.clients.auth import AuthClient
from rentdesk.infrastructure.clients.postgrest import PostgrestClient


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_auth_client() -> AuthClient:
    """Provide auth API client instance"""
    return AuthClient()


async def get_actor(
    authorization: Optional[str] = Header(default=None),
    auth_client: AuthClient = Depends(get_auth_client),
) -> Actor:
    """
    Resolve the signed-in admin from the bearer token.

    With auth disabled (local development) requests run as an anonymous
    actor against the anon key and are not audited.
    """
    token = bearer_token(authorization)
    if not settings.auth_required and not token:
        return Actor(user_id="", email="", access_token="")
    if not token:
        raise NotAuthenticatedError("Sesi tidak ditemukan.")
    return await auth_client.get_user(token)


def get_backend(actor: Actor = Depends(get_actor)) -> PostgrestClient:
    """Provide backend client acting with the admin's token (row-level security applies)"""
    return PostgrestClient(access_token=actor.access_token or None)


def get_audit_client(
    actor: Actor = Depends(get_actor),
    backend: PostgrestClient = Depends(get_backend),
) -> AuditClient:
    """Provide audit writer for the signed-in admin"""
    return AuditClient(backend, actor.name)
