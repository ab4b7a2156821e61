"""Owner and repair-fund summaries for the reports page"""

from typing import Any, Dict, Iterable, List, Optional

from rentdesk.domain.models import FundSummary, OwnerSummary
from rentdesk.domain.money import num

ALL_OWNERS = "Semua"


def _index_by_owner(rows: Optional[Iterable[Dict[str, Any]]]) -> Dict[str, Dict[str, Any]]:
    return {row.get("owner"): row for row in rows or []}


def merge_owner_summary(
    owners: List[str],
    rent_summary: Optional[Iterable[Dict[str, Any]]],
    water_summary: Optional[Iterable[Dict[str, Any]]],
) -> List[OwnerSummary]:
    """One row per configured owner, in configured order; missing owners get zeros"""
    rent = _index_by_owner(rent_summary)
    water = _index_by_owner(water_summary)
    result = []
    for owner in owners:
        r = rent.get(owner, {})
        w = water.get(owner, {})
        result.append(
            OwnerSummary(
                owner=owner,
                rent_bill=num(r.get("rent_bill")),
                rent_paid=num(r.get("rent_paid")),
                rent_due=num(r.get("rent_due")),
                water_bill=num(w.get("water_bill")),
                water_paid=num(w.get("water_paid")),
                water_due=num(w.get("water_due")),
            )
        )
    return result


def filter_owners(rows: List[OwnerSummary], owner: Optional[str]) -> List[OwnerSummary]:
    if not owner or owner == ALL_OWNERS:
        return rows
    return [row for row in rows if row.owner == owner]


def pick_number(data: Any, key: Optional[str] = None) -> float:
    """
    Extract a number from an RPC result of unknown shape.

    Scalars are returned as-is, objects are read at ``key`` and lists are
    summed (over ``key`` when given).
    """
    if data is None:
        return 0.0
    if isinstance(data, list):
        return sum(num(item.get(key) if key and isinstance(item, dict) else item) for item in data)
    if isinstance(data, dict):
        return num(data.get(key)) if key else 0.0
    return num(data)


def fund_summary(contrib_data: Any, spent_data: Any) -> FundSummary:
    contrib = pick_number(contrib_data, "contrib")
    spent = pick_number(spent_data, "spent")
    return FundSummary(contrib=contrib, spent=spent, balance=contrib - spent)
