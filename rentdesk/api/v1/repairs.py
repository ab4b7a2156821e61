"""Repair fund expenses: list, add, edit, soft delete and restore"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from rentdesk.api.dependencies import get_backend
from rentdesk.api.v1.schemas import MONTH_PATTERN, MessageResponse, RepairListResponse, RepairRequest, RepairSchema
from rentdesk.domain.models import Repair
from rentdesk.domain.validation import validate_repair
from rentdesk.infrastructure.clients.postgrest import PostgrestClient
from rentdesk.infrastructure.database.repositories import RepairRepository
from rentdesk.utils.date_utils import current_period_iso, month_to_iso_first

router = APIRouter()

# Expenses without a house are shared ones
GENERAL_LABEL = "Umum"


def repair_schema(repair: Repair) -> RepairSchema:
    return RepairSchema(**repair.__dict__, house_label=repair.house_code or GENERAL_LABEL)


@router.get("/repairs", response_model=RepairListResponse)
async def list_repairs(
    month: Optional[str] = Query(None, pattern=MONTH_PATTERN),
    backend: PostgrestClient = Depends(get_backend),
):
    """Expenses of a period, newest first; deleted rows are listed but not totalled"""
    period = month_to_iso_first(month) if month else current_period_iso()
    repairs = await RepairRepository(backend).list_repairs(period)
    return RepairListResponse(
        period=period,
        repairs=[repair_schema(r) for r in repairs],
        total_active=sum(r.amount for r in repairs if not r.deleted_at),
    )


@router.post("/repairs", response_model=MessageResponse, status_code=201)
async def create_repair(body: RepairRequest, backend: PostgrestClient = Depends(get_backend)):
    amount, description = validate_repair(body.amount, body.description)
    await RepairRepository(backend).create_repair(
        period=month_to_iso_first(body.month),
        description=description,
        amount=amount,
        house_id=body.house_id or None,
    )
    return MessageResponse(message="Pengeluaran ditambahkan.")


@router.patch("/repairs/{repair_id}", response_model=MessageResponse)
async def update_repair(repair_id: str, body: RepairRequest, backend: PostgrestClient = Depends(get_backend)):
    """Edit through update_repair; an empty house_id moves the expense to the shared fund"""
    amount, description = validate_repair(body.amount, body.description)
    await RepairRepository(backend).update_repair(
        repair_id,
        {
            "period": month_to_iso_first(body.month),
            "description": description,
            "amount": amount,
            "house_id": body.house_id or None,
        },
    )
    return MessageResponse(message="Pengeluaran diperbarui.")


@router.delete("/repairs/{repair_id}", response_model=MessageResponse)
async def delete_repair(repair_id: str, backend: PostgrestClient = Depends(get_backend)):
    await RepairRepository(backend).soft_delete(repair_id)
    return MessageResponse(message="Pengeluaran dihapus.")


@router.post("/repairs/{repair_id}/restore", response_model=MessageResponse)
async def restore_repair(repair_id: str, backend: PostgrestClient = Depends(get_backend)):
    await RepairRepository(backend).restore(repair_id)
    return MessageResponse(message="Pengeluaran dipulihkan.")
