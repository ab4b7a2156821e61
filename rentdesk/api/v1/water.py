"""Water page: meter readings, meter bills and share generation"""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from rentdesk.api.dependencies import get_backend, get_request_id
from rentdesk.api.v1.schemas import (
    MONTH_PATTERN,
    MessageResponse,
    MeterBillsRequest,
    PasteEntrySchema,
    PasteRequest,
    PasteResponse,
    ReadingsRequest,
    WaterResponse,
    WaterRowSchema,
)
from rentdesk.domain.exceptions import ConflictError
from rentdesk.domain.water import build_water_rows, index_readings, parse_paste, reading_pairs, totals_by_meter
from rentdesk.infrastructure.clients.postgrest import PostgrestClient
from rentdesk.infrastructure.database.repositories import HouseRepository, WaterRepository
from rentdesk.utils.date_utils import current_period_iso, month_to_iso_first, prev_month_iso

router = APIRouter()

# Meters whose bills are entered on the water page
BILLED_METERS = ("M1", "M2")


async def load_water(backend: PostgrestClient, period: str):
    """Houses, readings of the period and the one before, shares and meter data"""
    prev_period = prev_month_iso(period)
    water = WaterRepository(backend)
    houses, readings, shares, bills, meter_by_house = await asyncio.gather(
        HouseRepository(backend).list_houses(),
        water.list_readings([prev_period, period]),
        water.shares_by_house(period),
        water.bills_by_meter(period),
        water.meter_by_house(),
    )
    rows = build_water_rows(houses, index_readings(readings), shares, meter_by_house, period, prev_period)
    return prev_period, rows, bills


@router.get("/water", response_model=WaterResponse)
async def get_water(
    month: Optional[str] = Query(None, pattern=MONTH_PATTERN),
    backend: PostgrestClient = Depends(get_backend),
):
    """Readings, usage and share per house plus per-meter bills and sums"""
    period = month_to_iso_first(month) if month else current_period_iso()
    prev_period, rows, bills = await load_water(backend, period)
    return WaterResponse(
        period=period,
        prev_period=prev_period,
        rows=[WaterRowSchema(**r.__dict__) for r in rows],
        meter_bills=bills,
        usage_by_meter=totals_by_meter(rows, "usage"),
        share_by_meter=totals_by_meter(rows, "share"),
    )


@router.post("/water/bills", response_model=MessageResponse)
async def save_meter_bills(
    body: MeterBillsRequest,
    request: Request,
    backend: PostgrestClient = Depends(get_backend),
):
    """
    Store the M1/M2 meter bills of a period and recompute water shares.

    Missing meter amounts are stored as 0.
    """
    period = month_to_iso_first(body.month)
    water = WaterRepository(backend)
    meter_ids = await water.meter_ids()
    if any(code not in meter_ids for code in BILLED_METERS):
        raise ConflictError("Data meter belum siap. Muat ulang halaman.")

    amounts = {meter_ids[code]: body.bills.get(code) or 0 for code in BILLED_METERS}
    await water.upsert_bills(period, amounts)
    await water.generate_shares(period)

    logging.info(
        "Water shares generated",
        extra={"request_id": get_request_id(request), "period": period, "bills": body.bills},
    )
    return MessageResponse(message="Pembagian air berhasil dihitung.")


@router.post("/water/readings", response_model=MessageResponse)
async def save_readings(
    body: ReadingsRequest,
    request: Request,
    backend: PostgrestClient = Depends(get_backend),
):
    """Upsert meter readings (entries that do not parse are skipped) and recompute shares"""
    period = month_to_iso_first(body.month)
    pairs = reading_pairs([r.model_dump() for r in body.readings])
    water = WaterRepository(backend)
    await water.bulk_upsert_readings(period, body.reading_date, pairs)
    await water.generate_shares(period)

    logging.info(
        "Water readings saved",
        extra={"request_id": get_request_id(request), "period": period, "count": len(pairs)},
    )
    return MessageResponse(message="KM tersimpan.")


@router.post("/water/readings/paste", response_model=PasteResponse)
async def preview_paste(
    body: PasteRequest,
    backend: PostgrestClient = Depends(get_backend),
):
    """Parse pasted `CODE value` lines against the houses of the period; nothing is saved"""
    period = month_to_iso_first(body.month)
    _, rows, _ = await load_water(backend, period)
    result = parse_paste(body.text, rows)
    return PasteResponse(
        summary=result.summary,
        entries=[PasteEntrySchema(**e.__dict__) for e in result.entries],
        unmatched=result.unmatched,
    )
