"""GET /v1/reports - owner and repair-fund summaries over a month range"""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from rentdesk.api.dependencies import get_backend, get_request_id
from rentdesk.api.v1.dashboard import load_board, row_schema
from rentdesk.api.v1.schemas import (
    MONTH_PATTERN,
    FundSummarySchema,
    OwnerSummarySchema,
    ReportResponse,
)
from rentdesk.config import settings
from rentdesk.domain.exceptions import BackendError
from rentdesk.domain.reports import ALL_OWNERS, filter_owners, fund_summary, merge_owner_summary
from rentdesk.infrastructure.clients.postgrest import PostgrestClient
from rentdesk.infrastructure.database.repositories import ReportRepository
from rentdesk.utils.date_utils import current_period_iso, month_to_iso_first, normalize_range

router = APIRouter()


async def _optional(coro, label: str, warnings: list, request_id: str):
    """Fund summaries are best effort: a failing procedure counts as 0"""
    try:
        return await coro
    except BackendError as e:
        logging.warning(f"{label} error: {e}", extra={"request_id": request_id})
        warnings.append(f"{label}: {e}")
        return None


@router.get("/reports", response_model=ReportResponse)
async def get_report(
    request: Request,
    range_from: Optional[str] = Query(None, alias="from", pattern=MONTH_PATTERN),
    range_to: Optional[str] = Query(None, alias="to", pattern=MONTH_PATTERN),
    owner: str = Query(ALL_OWNERS),
    backend: PostgrestClient = Depends(get_backend),
):
    """
    Rent and water per owner, repair fund balance and per-house detail.

    Owners are the configured owner list; the owner filter narrows the owner
    table only.
    """
    request_id = get_request_id(request)
    start = month_to_iso_first(range_from) if range_from else current_period_iso()
    end = month_to_iso_first(range_to) if range_to else start
    start, end = normalize_range(start, end)

    reports = ReportRepository(backend)
    warnings: list = []
    board, rent_summary, water_summary, contrib, spent = await asyncio.gather(
        load_board(backend, range_from=start, range_to=end),
        reports.owner_rent_summary(start, end),
        reports.owner_water_summary(start, end),
        _optional(reports.repair_fund_contrib(start, end), "contrib", warnings, request_id),
        _optional(reports.repair_fund_spent(start, end), "spent", warnings, request_id),
    )

    owners = filter_owners(merge_owner_summary(settings.owners, rent_summary, water_summary), owner)
    fund = fund_summary(contrib, spent)
    return ReportResponse(
        range_from=start,
        range_to=end,
        owners=[OwnerSummarySchema(**o.__dict__) for o in owners],
        fund=FundSummarySchema(**fund.__dict__),
        houses=[row_schema(r) for r in board.rows],
        warnings=warnings,
    )
