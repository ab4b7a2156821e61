"""GET /v1/houses, house payment history and settling a due"""

from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request

from rentdesk.api.dependencies import get_actor, get_audit_client, get_backend, get_request_id
from rentdesk.api.v1.dashboard import load_board
from rentdesk.api.v1.schemas import (
    MONTH_PATTERN,
    HousePaymentsResponse,
    HouseSchema,
    MessageResponse,
    PaymentSchema,
    SettleRequest,
)
from rentdesk.domain.exceptions import ConflictError, NotFoundError
from rentdesk.domain.models import Actor
from rentdesk.domain.money import format_idr
from rentdesk.domain.status import action_name
from rentdesk.infrastructure.clients.audit import AuditClient, AuditPayload
from rentdesk.infrastructure.clients.postgrest import PostgrestClient
from rentdesk.infrastructure.database.repositories import HouseRepository, PaymentRepository
from rentdesk.infrastructure.observability.logging import log_payment
from rentdesk.infrastructure.observability.metrics import record_payment
from rentdesk.utils.date_utils import current_period_iso, month_to_iso_first, normalize_range

router = APIRouter()


async def _require_house(backend: PostgrestClient, house_id: str):
    house = await HouseRepository(backend).get_house(house_id)
    if house is None:
        raise NotFoundError("Rumah tidak ditemukan.")
    return house


@router.get("/houses", response_model=List[HouseSchema])
async def list_houses(backend: PostgrestClient = Depends(get_backend)):
    houses = await HouseRepository(backend).list_houses()
    return [HouseSchema(**h.__dict__) for h in houses]


@router.get("/houses/{house_id}/payments", response_model=HousePaymentsResponse)
async def house_payments(
    house_id: str,
    month: Optional[str] = Query(None, pattern=MONTH_PATTERN),
    range_from: Optional[str] = Query(None, alias="from", pattern=MONTH_PATTERN),
    range_to: Optional[str] = Query(None, alias="to", pattern=MONTH_PATTERN),
    backend: PostgrestClient = Depends(get_backend),
):
    """Active payments of one house for a month or a month range, newest first"""
    house = await _require_house(backend, house_id)
    payments = PaymentRepository(backend)
    if range_from or range_to:
        start, end = normalize_range(
            month_to_iso_first(range_from or range_to), month_to_iso_first(range_to or range_from)
        )
        rows = await payments.list_house_payments(house_id, range_from=start, range_to=end)
    else:
        period = month_to_iso_first(month) if month else current_period_iso()
        rows = await payments.list_house_payments(house_id, period=period)

    return HousePaymentsResponse(
        house=HouseSchema(**house.__dict__),
        payments=[PaymentSchema(**p.__dict__) for p in rows],
    )


@router.post("/houses/{house_id}/settle", response_model=MessageResponse)
async def settle_due(
    house_id: str,
    body: SettleRequest,
    request: Request,
    background_tasks: BackgroundTasks,
    actor: Actor = Depends(get_actor),
    backend: PostgrestClient = Depends(get_backend),
    audit: AuditClient = Depends(get_audit_client),
):
    """Mark a period paid in full by inserting a payment for the remaining due"""
    period = month_to_iso_first(body.month)
    board = await load_board(backend, period=period)
    row = board.row(house_id)
    if row is None:
        raise NotFoundError("Rumah tidak ditemukan.")

    due = board.due_for(house_id, body.kind, period)
    if due <= 0:
        raise ConflictError("Tidak ada tunggakan.")

    await PaymentRepository(backend).create_payment(
        house_id=house_id, period=period, kind=body.kind, amount=due, paid_at=body.paid_at
    )
    record_payment(body.kind, due, source="detail")
    log_payment(get_request_id(request), actor.name, house_id, period, body.kind, due, source="detail")
    background_tasks.add_task(
        audit.write,
        AuditPayload(
            action=action_name(body.kind, full=True),
            house_id=house_id,
            house_code=row.code,
            period=period,
            kind=body.kind,
            amount=due,
        ),
    )
    return MessageResponse(message=f"Tunggakan ditandai lunas ({format_idr(due)}).")
