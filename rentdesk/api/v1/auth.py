"""POST /v1/auth/login and GET /v1/auth/session - admin sign-in"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request

from rentdesk.api.dependencies import bearer_token, get_auth_client, get_request_id
from rentdesk.api.v1.schemas import LoginRequest, LoginResponse, SessionResponse
from rentdesk.config import settings
from rentdesk.domain.exceptions import DomainException
from rentdesk.domain.models import Actor
from rentdesk.infrastructure.clients.auth import AuthClient

router = APIRouter()


@router.post("/auth/login", response_model=LoginResponse)
async def login(
    body: LoginRequest,
    request: Request,
    auth_client: AuthClient = Depends(get_auth_client),
):
    """Exchange email/password for a backend session token"""
    payload = await auth_client.sign_in(body.email, body.password)
    user = payload.get("user") or {}
    actor = Actor(user_id=user.get("id", ""), email=user.get("email") or body.email, access_token=payload["access_token"])
    logging.info("Admin signed in", extra={"request_id": get_request_id(request), "actor": actor.name})
    return LoginResponse(
        access_token=payload["access_token"],
        refresh_token=payload.get("refresh_token"),
        expires_in=payload.get("expires_in"),
        actor_name=actor.name,
    )


@router.get("/auth/session", response_model=SessionResponse)
async def session_info(
    authorization: Optional[str] = Header(default=None),
    auth_client: AuthClient = Depends(get_auth_client),
):
    """
    Describe the caller's session without failing.

    Returns:
        Whether a backend URL is configured, the token prefix and whether
        the backend accepts the token
    """
    token = bearer_token(authorization)
    actor_name = None
    user_check_ok = False
    if token and settings.supabase_url:
        try:
            actor = await auth_client.get_user(token)
            actor_name = actor.name
            user_check_ok = True
        except DomainException as e:
            logging.info(f"Session check failed: {e}")

    return SessionResponse(
        env_has_url=bool(settings.supabase_url),
        token_present=token is not None,
        access_token_first8=token[:8] if token else None,
        user_check_ok=user_check_ok,
        actor_name=actor_name,
    )
