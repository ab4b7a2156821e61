"""Data access layer over the hosted backend tables, views and procedures"""

from typing import Any, Dict, List, Optional

from rentdesk.domain.models import AuditEntry, House, Payment, PeriodStatus, Rent, Repair
from rentdesk.domain.money import num
from rentdesk.domain.status import parse_house, parse_status
from rentdesk.infrastructure.clients.postgrest import PostgrestClient, Query


def _period_window(query: Query, period: Optional[str], range_from: Optional[str], range_to: Optional[str]) -> Query:
    """Single period (eq) or inclusive range (gte/lte)"""
    if period:
        return query.eq("period", period)
    if range_from:
        query.gte("period", range_from)
    if range_to:
        query.lte("period", range_to)
    return query


def _embedded(row: Dict[str, Any], key: str = "houses") -> Dict[str, Any]:
    return row.get(key) or {}


class HouseRepository:
    """Repository for houses"""

    def __init__(self, client: PostgrestClient):
        self.client = client

    async def list_houses(self) -> List[House]:
        rows = await self.client.fetch(Query("houses", "id,code,owner,is_repair_fund").order("code"))
        return [parse_house(row) for row in rows]

    async def get_house(self, house_id: str) -> Optional[House]:
        rows = await self.client.fetch(Query("houses", "id,code,owner,is_repair_fund").eq("id", house_id))
        return parse_house(rows[0]) if rows else None


class StatusRepository:
    """Repository for the v_rent_status / v_water_status views"""

    def __init__(self, client: PostgrestClient):
        self.client = client

    async def list_status(
        self,
        kind: str,
        period: Optional[str] = None,
        range_from: Optional[str] = None,
        range_to: Optional[str] = None,
    ) -> List[PeriodStatus]:
        query = Query(f"v_{kind}_status", f"house_id,period,{kind}_bill,{kind}_paid,{kind}_due")
        rows = await self.client.fetch(_period_window(query, period, range_from, range_to))
        return [parse_status(row, kind) for row in rows]


def parse_payment(row: Dict[str, Any]) -> Payment:
    house = _embedded(row)
    return Payment(
        id=row["id"],
        house_id=row.get("house_id"),
        period=row.get("period"),
        kind=row.get("kind"),
        amount=num(row.get("amount")),
        paid_at=row.get("paid_at"),
        method=row.get("method"),
        note=row.get("note"),
        voided_at=row.get("voided_at"),
        created_at=row.get("created_at"),
        house_code=house.get("code") or row.get("house_code"),
        house_owner=house.get("owner") or row.get("house_owner"),
    )


PAYMENT_COLUMNS = "id,house_id,period,kind,amount,paid_at,method,note,voided_at,created_at,houses:house_id(code,owner)"


class PaymentRepository:
    """Repository for payments and the void procedures"""

    def __init__(self, client: PostgrestClient):
        self.client = client

    async def list_payments(self, period: str, kind: Optional[str] = None, include_voided: bool = False) -> List[Payment]:
        query = Query("payments", PAYMENT_COLUMNS).eq("period", period).order("created_at", desc=True)
        if kind:
            query.eq("kind", kind)
        if not include_voided:
            query.is_("voided_at", None)
        return [parse_payment(row) for row in await self.client.fetch(query)]

    async def list_house_payments(
        self,
        house_id: str,
        period: Optional[str] = None,
        range_from: Optional[str] = None,
        range_to: Optional[str] = None,
    ) -> List[Payment]:
        """Active payments of one house from v_payments_clean"""
        query = Query("v_payments_clean").eq("house_id", house_id).order("created_at", desc=True)
        rows = await self.client.fetch(_period_window(query, period, range_from, range_to))
        return [parse_payment(row) for row in rows]

    async def get_payment(self, payment_id: str) -> Optional[Payment]:
        rows = await self.client.fetch(Query("payments", PAYMENT_COLUMNS).eq("id", payment_id))
        return parse_payment(rows[0]) if rows else None

    async def create_payment(
        self,
        house_id: str,
        period: str,
        kind: str,
        amount: float,
        paid_at: Optional[str] = None,
        method: Optional[str] = None,
        note: Optional[str] = None,
    ) -> Optional[Payment]:
        payload: Dict[str, Any] = {"house_id": house_id, "period": period, "kind": kind, "amount": amount}
        # Unset optional fields are left to backend defaults
        if paid_at:
            payload["paid_at"] = paid_at
        if method:
            payload["method"] = method
        if note:
            payload["note"] = note
        rows = await self.client.insert("payments", payload)
        return parse_payment(rows[0]) if rows else None

    async def update_payment(self, payment_id: str, values: Dict[str, Any]) -> Optional[Payment]:
        rows = await self.client.update("payments", values, id=payment_id)
        return parse_payment(rows[0]) if rows else None

    async def void_payment(self, payment_id: str, reason: str) -> Any:
        return await self.client.rpc("void_payment", {"p_id": payment_id, "p_reason": reason})

    async def void_last_payment(self, house_id: str, period: str, kind: str, reason: str) -> Any:
        """Void the most recent active payment; falsy result means nothing was voided"""
        return await self.client.rpc(
            "void_last_payment",
            {"p_house": house_id, "p_period": period, "p_kind": kind, "p_reason": reason},
        )


class WaterRepository:
    """Repository for meters, readings, bills and shares"""

    def __init__(self, client: PostgrestClient):
        self.client = client

    async def list_readings(self, periods: List[str]) -> List[Dict[str, Any]]:
        return await self.client.fetch(Query("water_readings", "house_id,period,reading_m3").in_("period", periods))

    async def shares_by_house(self, period: str) -> Dict[str, float]:
        rows = await self.client.fetch(Query("water_shares", "house_id,share_amount").eq("period", period))
        return {row["house_id"]: num(row.get("share_amount")) for row in rows}

    async def bills_by_meter(self, period: str) -> Dict[str, float]:
        rows = await self.client.fetch(
            Query("meter_bills", "meter_id,total_amount,period,meters(code)").eq("period", period)
        )
        result = {}
        for row in rows:
            code = _embedded(row, "meters").get("code")
            if code:
                result[code] = num(row.get("total_amount"))
        return result

    async def meter_by_house(self) -> Dict[str, str]:
        rows = await self.client.fetch(Query("meter_house_map", "meter_id,house_id,meters(code)"))
        return {row["house_id"]: _embedded(row, "meters").get("code") or "" for row in rows}

    async def meter_ids(self) -> Dict[str, str]:
        rows = await self.client.fetch(Query("meters", "id,code"))
        return {row["code"]: row["id"] for row in rows}

    async def upsert_bills(self, period: str, amounts: Dict[str, float]) -> List[Dict[str, Any]]:
        """amounts maps meter_id -> total for the period"""
        payloads = [
            {"meter_id": meter_id, "period": period, "total_amount": amount} for meter_id, amount in amounts.items()
        ]
        return await self.client.upsert("meter_bills", payloads, on_conflict="meter_id,period")

    async def bulk_upsert_readings(self, period: str, default_date: Optional[str], pairs: List[Dict[str, Any]]) -> Any:
        return await self.client.rpc(
            "bulk_upsert_water_readings",
            {"p_period": period, "p_default_date": default_date, "p_pairs": pairs},
        )

    async def generate_shares(self, period: str) -> Any:
        return await self.client.rpc("generate_water_shares", {"p_period": period})


class RentRepository:
    """Repository for rent tariffs"""

    def __init__(self, client: PostgrestClient):
        self.client = client

    async def list_rents(self, period: str) -> List[Rent]:
        rows = await self.client.fetch(
            Query("rents", "id,amount,house_id,houses:house_id(code)").eq("period", period).order("house_id")
        )
        return [
            Rent(id=row["id"], house_id=row["house_id"], code=_embedded(row).get("code") or "-", amount=num(row.get("amount")))
            for row in rows
        ]

    async def get_rent(self, rent_id: str) -> Optional[Dict[str, Any]]:
        rows = await self.client.fetch(Query("rents", "id,amount,period,house_id,houses:house_id(code)").eq("id", rent_id))
        return rows[0] if rows else None

    async def update_amount(self, rent_id: str, amount: float) -> List[Dict[str, Any]]:
        return await self.client.update("rents", {"amount": amount}, id=rent_id)

    async def copy_to_next(self, period: str) -> Any:
        return await self.client.rpc("copy_rents_to_next", {"p_current": period})

    async def effective_all(self, period: str) -> List[Dict[str, Any]]:
        """Tariffs in force for a period, resolved by the backend"""
        return await self.client.rpc("rent_effective_all", {"p_period": period}) or []


def parse_repair(row: Dict[str, Any]) -> Repair:
    house = _embedded(row)
    return Repair(
        id=row["id"],
        period=row.get("period"),
        house_id=row.get("house_id"),
        description=row.get("description") or "",
        amount=num(row.get("amount")),
        deleted_at=row.get("deleted_at"),
        house_code=house.get("code"),
        house_owner=house.get("owner"),
    )


class RepairRepository:
    """Repository for repair-fund expenses"""

    def __init__(self, client: PostgrestClient):
        self.client = client

    async def list_repairs(self, period: str) -> List[Repair]:
        rows = await self.client.fetch(
            Query("repairs", "id,period,house_id,description,amount,deleted_at,houses:house_id(code,owner)")
            .eq("period", period)
            .order("created_at", desc=True)
        )
        return [parse_repair(row) for row in rows]

    async def create_repair(self, period: str, description: str, amount: float, house_id: Optional[str]) -> List[Dict[str, Any]]:
        payload: Dict[str, Any] = {"period": period, "description": description, "amount": amount}
        if house_id:
            payload["house_id"] = house_id
        return await self.client.insert("repairs", payload)

    async def update_repair(self, repair_id: str, values: Dict[str, Any]) -> Any:
        return await self.client.rpc("update_repair", {"p_id": repair_id, "p_set": values})

    async def soft_delete(self, repair_id: str) -> Any:
        return await self.client.rpc("soft_delete_repair", {"p_id": repair_id})

    async def restore(self, repair_id: str) -> Any:
        return await self.client.rpc("restore_repair", {"p_id": repair_id})


class ReportRepository:
    """Repository for owner and repair-fund summary procedures"""

    def __init__(self, client: PostgrestClient):
        self.client = client

    async def _summary(self, name: str, range_from: str, range_to: str) -> Any:
        return await self.client.rpc(name, {"range_from": range_from, "range_to": range_to})

    async def owner_rent_summary(self, range_from: str, range_to: str) -> Any:
        return await self._summary("v_owner_rent_summary", range_from, range_to)

    async def owner_water_summary(self, range_from: str, range_to: str) -> Any:
        return await self._summary("v_owner_water_summary", range_from, range_to)

    async def repair_fund_contrib(self, range_from: str, range_to: str) -> Any:
        return await self._summary("v_repair_fund_contrib", range_from, range_to)

    async def repair_fund_spent(self, range_from: str, range_to: str) -> Any:
        return await self._summary("v_repair_fund_spent", range_from, range_to)


class AuditRepository:
    """Repository for the audit trail (log_audit procedure, v_audits view)"""

    def __init__(self, client: PostgrestClient):
        self.client = client

    async def log(self, params: Dict[str, Any]) -> Any:
        return await self.client.rpc("log_audit", params)

    async def list_audits(
        self,
        start_iso: str,
        end_iso: str,
        offset: int,
        page_size: int,
        house_id: Optional[str] = None,
        actor: Optional[str] = None,
        action: Optional[str] = None,
    ) -> List[AuditEntry]:
        query = Query("v_audits").gte("created_at", start_iso).lt("created_at", end_iso)
        if house_id:
            query.eq("house_id", house_id)
        if actor:
            query.ilike("actor_name", f"%{actor}%")
        if action:
            query.eq("action", action)
        query.order("created_at", desc=True).range(offset, offset + page_size - 1)
        rows = await self.client.fetch(query)
        return [
            AuditEntry(
                id=row["id"],
                created_at=row.get("created_at"),
                action=row.get("action"),
                actor_name=row.get("actor_name"),
                period=row.get("period"),
                kind=row.get("kind"),
                amount=None if row.get("amount") is None else num(row.get("amount")),
                note=row.get("note"),
                house_id=row.get("house_id"),
                house_code=row.get("house_code"),
                house_owner=row.get("house_owner"),
            )
            for row in rows
        ]
