"""GET /v1/dashboard, POST /v1/dashboard/payments, POST /v1/dashboard/undo"""

import asyncio
import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request

from rentdesk.api.dependencies import get_actor, get_audit_client, get_backend, get_request_id
from rentdesk.api.v1.schemas import (
    MONTH_PATTERN,
    DashboardPaymentRequest,
    DashboardPaymentResponse,
    DashboardResponse,
    MessageResponse,
    PeriodStatusSchema,
    StatusRowSchema,
    TotalsSchema,
    UndoRequest,
)
from rentdesk.config import settings
from rentdesk.domain.exceptions import NotFoundError
from rentdesk.domain.models import Actor, StatusRow
from rentdesk.domain.status import StatusBoard, action_label, action_name, build_status, default_amount
from rentdesk.domain.validation import check_overpay, require_positive_amount
from rentdesk.infrastructure.clients.audit import AuditClient, AuditPayload
from rentdesk.infrastructure.clients.postgrest import PostgrestClient
from rentdesk.infrastructure.database.repositories import HouseRepository, PaymentRepository, StatusRepository
from rentdesk.infrastructure.observability.logging import log_payment, log_void
from rentdesk.infrastructure.observability.metrics import record_payment, void_counter
from rentdesk.utils.date_utils import current_period_iso, month_to_iso_first, normalize_range

DASHBOARD_OVERPAY_MESSAGE = "Nominal melebihi tunggakan yang tersisa."

router = APIRouter()


async def load_board(
    backend: PostgrestClient,
    period: Optional[str] = None,
    range_from: Optional[str] = None,
    range_to: Optional[str] = None,
) -> StatusBoard:
    """Fetch houses and both status views concurrently and merge them"""
    statuses = StatusRepository(backend)
    houses, rent, water = await asyncio.gather(
        HouseRepository(backend).list_houses(),
        statuses.list_status("rent", period, range_from, range_to),
        statuses.list_status("water", period, range_from, range_to),
    )
    return build_status(houses, rent, water)


def row_schema(row: StatusRow) -> StatusRowSchema:
    return StatusRowSchema(**row.__dict__)


def period_schemas(board: StatusBoard) -> Dict[str, Dict[str, List[PeriodStatusSchema]]]:
    result: Dict[str, Dict[str, List[PeriodStatusSchema]]] = {}
    for kind, by_house in board.maps.items():
        result[kind] = {
            house_id: [
                PeriodStatusSchema(**board.status_for(house_id, kind, p).__dict__)
                for p in board.periods_for(house_id, kind)
            ]
            for house_id in by_house
        }
    return result


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(
    month: Optional[str] = Query(None, pattern=MONTH_PATTERN, description="Single month (YYYY-MM)"),
    range_from: Optional[str] = Query(None, alias="from", pattern=MONTH_PATTERN),
    range_to: Optional[str] = Query(None, alias="to", pattern=MONTH_PATTERN),
    backend: PostgrestClient = Depends(get_backend),
):
    """
    Rent and water status per house for one month or a month range.

    Range mode is used when ``from`` or ``to`` is given; amounts are summed
    over the range and totals exclude repair-fund houses.
    """
    if range_from or range_to:
        start = month_to_iso_first(range_from or range_to)
        end = month_to_iso_first(range_to or range_from)
        start, end = normalize_range(start, end)
        board = await load_board(backend, range_from=start, range_to=end)
        mode = "range"
    else:
        start = end = month_to_iso_first(month) if month else current_period_iso()
        board = await load_board(backend, period=start)
        mode = "single"

    rent_totals = board.totals("rent")
    water_totals = board.totals("water")
    return DashboardResponse(
        mode=mode,
        range_from=start,
        range_to=end,
        rows=[row_schema(r) for r in board.rows],
        rent_totals=TotalsSchema(**rent_totals.__dict__),
        water_totals=TotalsSchema(**water_totals.__dict__),
        periods=period_schemas(board),
    )


@router.post("/dashboard/payments", response_model=DashboardPaymentResponse)
async def record_dashboard_payment(
    body: DashboardPaymentRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(get_actor),
    backend: PostgrestClient = Depends(get_backend),
    audit: AuditClient = Depends(get_audit_client),
):
    """
    Record a full or partial rent/water payment for one period.

    Flow:
    1. Load the period's status to find the remaining due
    2. Full payments default to the due; amounts must be positive
    3. Reject amounts above the due unless overpay is allowed
    4. Insert the payment and schedule the audit record
    5. Return the row as it looks with the payment applied
    """
    request_id = get_request_id(request)
    period = month_to_iso_first(body.month)
    board = await load_board(backend, period=period)
    row = board.row(body.house_id)
    if row is None:
        raise NotFoundError("Rumah tidak ditemukan.")

    due = board.due_for(body.house_id, body.kind, period)
    raw_amount = body.amount
    if body.full and raw_amount in (None, ""):
        raw_amount = default_amount(body.full, due)
    amount = require_positive_amount(raw_amount, "Nominal harus diisi dan lebih besar dari 0.")
    check_overpay(amount, due, settings.payments_allow_overpay, confirmed=True, message=DASHBOARD_OVERPAY_MESSAGE)

    await PaymentRepository(backend).create_payment(
        house_id=body.house_id,
        period=period,
        kind=body.kind,
        amount=amount,
        paid_at=body.paid_at,
        method=body.method,
        note=body.note,
    )

    record_payment(body.kind, amount, source="dashboard")
    log_payment(request_id, actor.name, body.house_id, period, body.kind, amount, source="dashboard")
    background_tasks.add_task(
        audit.write,
        AuditPayload(
            action=action_name(body.kind, body.full),
            house_id=body.house_id,
            house_code=row.code,
            period=period,
            kind=body.kind,
            amount=amount,
            note=body.note,
        ),
    )

    projected = board.apply_payment(body.house_id, body.kind, period, amount)
    status = projected.status_for(body.house_id, body.kind, period)
    return DashboardPaymentResponse(
        message="Pembayaran berhasil disimpan.",
        label=action_label(body.kind, body.full),
        amount=amount,
        row=row_schema(projected.row(body.house_id)),
        period_status=PeriodStatusSchema(period=period, bill=status.bill, paid=status.paid, due=status.due),
    )


@router.post("/dashboard/undo", response_model=MessageResponse)
async def undo_last_payment(
    body: UndoRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(get_actor),
    backend: PostgrestClient = Depends(get_backend),
    audit: AuditClient = Depends(get_audit_client),
):
    """Void the latest active payment of a house/period/kind"""
    period = month_to_iso_first(body.month)
    house = await HouseRepository(backend).get_house(body.house_id)
    if house is None:
        raise NotFoundError("Rumah tidak ditemukan.")

    voided = await PaymentRepository(backend).void_last_payment(
        body.house_id, period, body.kind, reason="undo via dashboard modal"
    )
    if not voided:
        raise NotFoundError("Tidak ada pembayaran untuk dibatalkan.")

    void_counter.labels(source="dashboard_undo").inc()
    log_void(get_request_id(request), actor.name, "dashboard_undo", house_id=body.house_id, period=period, kind=body.kind)

    background_tasks.add_task(
        audit.write,
        AuditPayload(
            action="undo",
            house_id=body.house_id,
            house_code=house.code,
            period=period,
            kind=body.kind,
        ),
    )
    return MessageResponse(message="Pembayaran terakhir dibatalkan.")
