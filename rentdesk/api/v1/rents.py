"""Rent tariffs: list per period, copy forward, effective tariffs, price changes"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request

from rentdesk.api.dependencies import get_audit_client, get_backend, get_request_id
from rentdesk.api.v1.schemas import (
    PERIOD_PATTERN,
    CopyRentsRequest,
    MessageResponse,
    RentListResponse,
    RentSchema,
    RentUpdateRequest,
)
from rentdesk.domain.exceptions import NotFoundError
from rentdesk.domain.money import format_idr, num
from rentdesk.domain.validation import require_positive_amount
from rentdesk.infrastructure.clients.audit import AuditClient, AuditPayload
from rentdesk.infrastructure.clients.postgrest import PostgrestClient
from rentdesk.infrastructure.database.repositories import RentRepository
from rentdesk.utils.date_utils import current_period_iso, next_month_iso

router = APIRouter()


@router.get("/rents", response_model=RentListResponse)
async def list_rents(
    period: Optional[str] = Query(None, pattern=PERIOD_PATTERN),
    backend: PostgrestClient = Depends(get_backend),
):
    """Tariff rows stored for a period, ordered by house"""
    period = period or current_period_iso()
    rents = await RentRepository(backend).list_rents(period)
    return RentListResponse(
        period=period,
        next_period=next_month_iso(period),
        rents=[RentSchema(**r.__dict__) for r in rents],
    )


@router.post("/rents/copy-next", response_model=MessageResponse)
async def copy_rents_to_next(
    body: CopyRentsRequest,
    request: Request,
    backend: PostgrestClient = Depends(get_backend),
):
    """Copy the period's tariffs into the following period"""
    await RentRepository(backend).copy_to_next(body.period)
    next_period = next_month_iso(body.period)
    logging.info(
        "Rents copied",
        extra={"request_id": get_request_id(request), "period": body.period, "next_period": next_period},
    )
    return MessageResponse(message=f"Tarif disalin ke periode {next_period}.")


@router.get("/rents/effective", response_model=List[Dict[str, Any]])
async def effective_rents(
    period: Optional[str] = Query(None, pattern=PERIOD_PATTERN),
    backend: PostgrestClient = Depends(get_backend),
):
    """Tariffs in force for a period; effective-date resolution happens in the backend"""
    return await RentRepository(backend).effective_all(period or current_period_iso())


@router.patch("/rents/{rent_id}", response_model=MessageResponse)
async def change_rent_price(
    rent_id: str,
    body: RentUpdateRequest,
    background_tasks: BackgroundTasks,
    backend: PostgrestClient = Depends(get_backend),
    audit: AuditClient = Depends(get_audit_client),
):
    """Change a tariff amount; the old and new amounts go to the audit trail"""
    amount = require_positive_amount(body.amount)
    rents = RentRepository(backend)
    existing = await rents.get_rent(rent_id)
    if existing is None:
        raise NotFoundError("Tarif tidak ditemukan.")

    await rents.update_amount(rent_id, amount)
    old_amount = num(existing.get("amount"))
    background_tasks.add_task(
        audit.write,
        AuditPayload(
            action="rent_price_change",
            house_id=existing.get("house_id"),
            house_code=(existing.get("houses") or {}).get("code"),
            period=existing.get("period"),
            kind="rent",
            amount=amount,
            note=f"{format_idr(old_amount)} -> {format_idr(amount)}",
        ),
    )
    return MessageResponse(message="Tarif diperbarui.")
