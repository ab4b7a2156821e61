"""GET /v1/audits - paged audit trail of one month"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from rentdesk.api.dependencies import get_backend
from rentdesk.api.v1.schemas import MONTH_PATTERN, AuditPageResponse, AuditSchema
from rentdesk.config import settings
from rentdesk.infrastructure.clients.audit import AUDIT_ACTIONS
from rentdesk.infrastructure.clients.postgrest import PostgrestClient
from rentdesk.infrastructure.database.repositories import AuditRepository
from rentdesk.utils.date_utils import current_period_iso, iso_to_month, month_bounds_utc

router = APIRouter()


@router.get("/audits", response_model=AuditPageResponse)
async def list_audits(
    month: Optional[str] = Query(None, pattern=MONTH_PATTERN),
    actor: Optional[str] = Query(None, description="Case-insensitive substring of the actor name"),
    house: Optional[str] = Query(None, description="House id"),
    action: Optional[str] = Query(None, description=f"One of: {', '.join(AUDIT_ACTIONS)}"),
    offset: int = Query(0, ge=0),
    backend: PostgrestClient = Depends(get_backend),
):
    """
    Audit records created within the month, newest first.

    Pages hold ``audit_page_size`` records; ``has_more`` is set while a page
    comes back full.
    """
    start, end = month_bounds_utc(month or iso_to_month(current_period_iso()))
    page_size = settings.audit_page_size
    entries = await AuditRepository(backend).list_audits(
        start.isoformat(),
        end.isoformat(),
        offset=offset,
        page_size=page_size,
        house_id=house,
        actor=actor.strip() if actor else None,
        action=action,
    )
    return AuditPageResponse(
        entries=[AuditSchema(**e.__dict__) for e in entries],
        offset=offset,
        has_more=len(entries) == page_size,
    )
