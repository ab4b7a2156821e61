"""Payments page: list, add, edit and void payments of a period"""

import asyncio
from typing import Dict, List, Literal, Optional

from fastapi import APIRouter, Depends, Query, Request

from rentdesk.api.dependencies import get_actor, get_backend, get_request_id
from rentdesk.api.v1.schemas import (
    MONTH_PATTERN,
    DueSchema,
    MessageResponse,
    PaymentCreateRequest,
    PaymentListResponse,
    PaymentSchema,
    PaymentUpdateRequest,
    VoidRequest,
)
from rentdesk.config import settings
from rentdesk.domain.exceptions import BackendError, NotFoundError, ValidationError
from rentdesk.domain.models import BILLED_KINDS, Actor, PeriodStatus
from rentdesk.domain.validation import check_overpay, payment_limit, require_positive_amount
from rentdesk.infrastructure.clients.postgrest import PostgrestClient
from rentdesk.infrastructure.database.repositories import HouseRepository, PaymentRepository, StatusRepository
from rentdesk.infrastructure.observability.logging import log_payment, log_void
from rentdesk.infrastructure.observability.metrics import record_payment, void_counter
from rentdesk.utils.date_utils import current_period_iso, month_to_iso_first

router = APIRouter()

KindFilter = Literal["all", "rent", "water", "repair_contrib", "other"]

VOID_REASONS = {"payments": "void via payments page", "detail": "void via detail drawer"}


async def _status_for(backend: PostgrestClient, kind: str, house_id: str, period: str) -> Optional[PeriodStatus]:
    if kind not in BILLED_KINDS:
        return None
    statuses = await StatusRepository(backend).list_status(kind, period=period)
    return next((s for s in statuses if s.house_id == house_id), None)


def _due_map(statuses: List[PeriodStatus]) -> Dict[str, DueSchema]:
    return {s.house_id: DueSchema(bill=s.bill, paid=s.paid, due=s.due) for s in statuses}


@router.get("/payments", response_model=PaymentListResponse)
async def list_payments(
    month: Optional[str] = Query(None, pattern=MONTH_PATTERN),
    kind: KindFilter = Query("all"),
    include_voided: bool = Query(False),
    backend: PostgrestClient = Depends(get_backend),
):
    """
    Payments of a period, newest first, with the rent/water status of every house.

    Voided payments are hidden unless include_voided is set.
    """
    period = month_to_iso_first(month) if month else current_period_iso()
    statuses = StatusRepository(backend)
    payments, rent, water = await asyncio.gather(
        PaymentRepository(backend).list_payments(period, None if kind == "all" else kind, include_voided),
        statuses.list_status("rent", period=period),
        statuses.list_status("water", period=period),
    )
    return PaymentListResponse(
        period=period,
        payments=[PaymentSchema(**p.__dict__) for p in payments],
        rent_status=_due_map(rent),
        water_status=_due_map(water),
    )


@router.post("/payments", response_model=PaymentSchema, status_code=201)
async def add_payment(
    body: PaymentCreateRequest,
    request: Request,
    actor: Actor = Depends(get_actor),
    backend: PostgrestClient = Depends(get_backend),
):
    """
    Add a payment of any kind.

    Rent and water payments are capped at the remaining due; with overpay
    allowed the caller has to resend with confirm_overpay.
    """
    period = month_to_iso_first(body.month)
    amount = require_positive_amount(body.amount)
    house = await HouseRepository(backend).get_house(body.house_id)
    if house is None:
        raise ValidationError("Pilih rumah terlebih dahulu.")

    status = await _status_for(backend, body.kind, body.house_id, period)
    check_overpay(amount, payment_limit(body.kind, status), settings.payments_allow_overpay, body.confirm_overpay)

    payment = await PaymentRepository(backend).create_payment(
        house_id=body.house_id,
        period=period,
        kind=body.kind,
        amount=amount,
        paid_at=body.paid_at,
        method=body.method,
        note=body.note,
    )
    if payment is None:
        raise BackendError("Pembayaran tidak tersimpan.")

    record_payment(body.kind, amount, source="payments")
    log_payment(get_request_id(request), actor.name, body.house_id, period, body.kind, amount, source="payments")
    return PaymentSchema(**payment.__dict__)


@router.patch("/payments/{payment_id}", response_model=PaymentSchema)
async def edit_payment(
    payment_id: str,
    body: PaymentUpdateRequest,
    backend: PostgrestClient = Depends(get_backend),
):
    """Edit amount, date, method and note; the amount the payment already holds counts toward the cap"""
    payments = PaymentRepository(backend)
    existing = await payments.get_payment(payment_id)
    if existing is None:
        raise NotFoundError("Pembayaran tidak ditemukan.")

    amount = require_positive_amount(body.amount)
    status = await _status_for(backend, existing.kind, existing.house_id, existing.period)
    limit = payment_limit(existing.kind, status, current_amount=existing.amount)
    check_overpay(amount, limit, settings.payments_allow_overpay, body.confirm_overpay)

    updated = await payments.update_payment(
        payment_id,
        {
            "amount": amount,
            "paid_at": body.paid_at or None,
            "method": body.method or None,
            "note": body.note or None,
        },
    )
    if updated is None:
        raise NotFoundError("Pembayaran tidak ditemukan.")
    return PaymentSchema(**updated.__dict__)


@router.post("/payments/{payment_id}/void", response_model=MessageResponse)
async def void_payment(
    payment_id: str,
    request: Request,
    body: Optional[VoidRequest] = None,
    actor: Actor = Depends(get_actor),
    backend: PostgrestClient = Depends(get_backend),
):
    """Void a payment; the row stays with voided_at set"""
    body = body or VoidRequest()
    await PaymentRepository(backend).void_payment(payment_id, VOID_REASONS[body.source])

    void_counter.labels(source=body.source).inc()
    log_void(get_request_id(request), actor.name, body.source, payment_id=payment_id)
    return MessageResponse(message="Pembayaran dibatalkan.")
