"""Translation of domain exceptions into HTTP responses"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from rentdesk.api.dependencies import get_request_id
from rentdesk.domain.exceptions import (
    BackendError,
    ConflictError,
    DomainException,
    NotAuthenticatedError,
    NotFoundError,
    OverpayError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def status_for(error: DomainException) -> int:
    if isinstance(error, OverpayError) and error.requires_confirmation:
        return status.HTTP_409_CONFLICT
    if isinstance(error, ValidationError):
        return status.HTTP_422_UNPROCESSABLE_ENTITY
    if isinstance(error, NotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(error, ConflictError):
        return status.HTTP_409_CONFLICT
    if isinstance(error, NotAuthenticatedError):
        return status.HTTP_401_UNAUTHORIZED
    if isinstance(error, BackendError):
        return status.HTTP_502_BAD_GATEWAY
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def error_body(error: DomainException) -> dict:
    body = {"detail": str(error) or error.__class__.__name__}
    if isinstance(error, OverpayError):
        body["limit"] = error.limit
        body["requires_confirmation"] = error.requires_confirmation
    return body


async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    status_code = status_for(exc)
    request_id = get_request_id(request)
    if status_code >= 500:
        logger.error(f"Backend error: {exc}", extra={"request_id": request_id, "path": request.url.path})
    else:
        logger.warning(f"Request rejected: {exc}", extra={"request_id": request_id, "path": request.url.path})

    headers = {"WWW-Authenticate": "Bearer"} if status_code == status.HTTP_401_UNAUTHORIZED else None
    return JSONResponse(status_code=status_code, content=error_body(exc), headers=headers)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainException, domain_exception_handler)
