"""Rent and water status aggregation across houses and periods"""

import copy
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, List, Optional

from rentdesk.domain.models import RENT, House, PeriodStatus, StatusMap, StatusRow, Totals
from rentdesk.domain.money import num


@dataclass
class StatusBoard:
    """
    Dashboard state: one summed row per house plus per-period detail.

    rows are sorted by house code; maps are keyed ``kind -> house_id -> period``.
    """

    rows: List[StatusRow]
    maps: Dict[str, StatusMap] = field(default_factory=lambda: {"rent": {}, "water": {}})

    def row(self, house_id: str) -> Optional[StatusRow]:
        return next((r for r in self.rows if r.house_id == house_id), None)

    def totals(self, kind: str) -> Totals:
        """Sum bill/paid/due over owner houses; repair-fund houses are excluded"""
        totals = Totals()
        for row in self.rows:
            if row.is_repair_fund:
                continue
            totals.bill += getattr(row, f"{kind}_bill")
            totals.paid += getattr(row, f"{kind}_paid")
            totals.due += getattr(row, f"{kind}_due")
        return totals

    def status_for(self, house_id: str, kind: str, period: str) -> Optional[PeriodStatus]:
        return self.maps.get(kind, {}).get(house_id, {}).get(period)

    def due_for(self, house_id: str, kind: str, period: str) -> float:
        status = self.status_for(house_id, kind, period)
        return status.due if status else 0.0

    def periods_for(self, house_id: str, kind: str) -> List[str]:
        return sorted(self.maps.get(kind, {}).get(house_id, {}))

    def apply_payment(self, house_id: str, kind: str, period: str, amount: float) -> "StatusBoard":
        """
        Project a payment onto the board without touching the backend.

        Returns a new board; paid grows by amount and due shrinks, floored at 0.
        """
        rows = []
        for row in self.rows:
            if row.house_id != house_id:
                rows.append(row)
                continue
            paid = getattr(row, f"{kind}_paid") + amount
            due = max(getattr(row, f"{kind}_due") - amount, 0.0)
            rows.append(replace(row, **{f"{kind}_paid": paid, f"{kind}_due": due}))

        maps = copy.deepcopy(self.maps)
        house_map = maps.setdefault(kind, {}).setdefault(house_id, {})
        existing = house_map.get(period) or PeriodStatus(house_id=house_id, period=period)
        house_map[period] = PeriodStatus(
            house_id=house_id,
            period=period,
            bill=existing.bill,
            paid=existing.paid + amount,
            due=max(existing.due - amount, 0.0),
        )
        return StatusBoard(rows=rows, maps=maps)


def parse_house(row: Dict[str, Any]) -> House:
    return House(
        id=row["id"],
        code=row.get("code") or "",
        owner=row.get("owner") or "",
        is_repair_fund=bool(row.get("is_repair_fund")),
    )


def parse_status(row: Dict[str, Any], kind: str) -> PeriodStatus:
    return PeriodStatus(
        house_id=row.get("house_id"),
        period=row.get("period"),
        bill=num(row.get(f"{kind}_bill")),
        paid=num(row.get(f"{kind}_paid")),
        due=num(row.get(f"{kind}_due")),
    )


def build_status(
    houses: Iterable[House],
    rent_statuses: Iterable[PeriodStatus],
    water_statuses: Iterable[PeriodStatus],
) -> StatusBoard:
    """Merge houses with rent/water status rows; every house gets a row, unknown houses are dropped"""
    base: Dict[str, StatusRow] = {
        h.id: StatusRow(house_id=h.id, code=h.code, owner=h.owner, is_repair_fund=h.is_repair_fund)
        for h in houses
    }
    maps: Dict[str, StatusMap] = {"rent": {}, "water": {}}

    for kind, statuses in (("rent", rent_statuses), ("water", water_statuses)):
        for status in statuses:
            row = base.get(status.house_id)
            if row is None:
                continue
            setattr(row, f"{kind}_bill", getattr(row, f"{kind}_bill") + status.bill)
            setattr(row, f"{kind}_paid", getattr(row, f"{kind}_paid") + status.paid)
            setattr(row, f"{kind}_due", getattr(row, f"{kind}_due") + status.due)
            maps[kind].setdefault(status.house_id, {})[status.period] = status

    rows = sorted(base.values(), key=lambda r: r.code)
    return StatusBoard(rows=rows, maps=maps)


def default_amount(full: bool, due: float) -> str:
    """Prefill for the payment form: the rounded due for full payments, empty otherwise"""
    if full and due > 0:
        return f"{due:.0f}"
    return ""


def action_name(kind: str, full: bool) -> str:
    """Audit action for a dashboard payment, e.g. rent_full / water_partial"""
    return f"{kind}_{'full' if full else 'partial'}"


def action_label(kind: str, full: bool) -> str:
    if kind == RENT:
        return "Sewa Lunas" if full else "Bayar Sewa Sebagian"
    return "Air Lunas" if full else "Bayar Air Sebagian"
