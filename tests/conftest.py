"""Pytest fixtures for testing"""

import copy
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from rentdesk.api.dependencies import get_actor, get_backend
from rentdesk.api.main import create_app
from rentdesk.domain.models import Actor
from rentdesk.infrastructure.clients.postgrest import Query

PERIOD = "2025-03-01"
PREV_PERIOD = "2025-02-01"


def _matches(row: Dict[str, Any], column: str, op: str, value: Any) -> bool:
    actual = row.get(column)
    if op == "eq":
        return actual == value
    if op == "is":
        return actual is value
    if op == "in":
        return actual in value
    if op == "ilike":
        return value.strip("%").lower() in (actual or "").lower()
    if actual is None:
        return False
    if op == "gte":
        return actual >= value
    if op == "lte":
        return actual <= value
    if op == "lt":
        return actual < value
    raise AssertionError(f"unsupported filter {op}")


class FakeBackend:
    """
    In-memory stand-in for PostgrestClient.

    Reads evaluate Query filters, ordering and ranges over ``tables``; writes
    and procedure calls are recorded. ``rpc_results`` holds the value (or the
    exception to raise) per procedure name; ``fetch_errors`` makes reads of a
    table fail.
    """

    def __init__(self, tables: Dict[str, List[Dict[str, Any]]]):
        self.tables = tables
        self.queries: List[Query] = []
        self.inserts: List[tuple] = []
        self.updates: List[tuple] = []
        self.upserts: List[tuple] = []
        self.rpc_calls: List[tuple] = []
        self.rpc_results: Dict[str, Any] = {}
        self.fetch_errors: Dict[str, Exception] = {}

    async def fetch(self, query: Query) -> List[Dict[str, Any]]:
        self.queries.append(query)
        if query.table in self.fetch_errors:
            raise self.fetch_errors[query.table]
        rows = [copy.deepcopy(r) for r in self.tables.get(query.table, [])]
        for column, op, value in query.filters:
            rows = [r for r in rows if _matches(r, column, op, value)]
        for column, desc in reversed(query.ordering):
            rows.sort(key=lambda r: (r.get(column) is None, r.get(column) or ""), reverse=desc)
        if query.offset is not None:
            rows = rows[query.offset : query.offset + query.limit]
        return rows

    async def insert(self, table: str, row: Dict[str, Any]) -> List[Dict[str, Any]]:
        self.inserts.append((table, row))
        stored = dict(row, id=f"{table}-{len(self.inserts)}", created_at="2025-03-31T12:00:00+00:00")
        self.tables.setdefault(table, []).append(stored)
        return [copy.deepcopy(stored)]

    async def update(self, table: str, values: Dict[str, Any], **match: Any) -> List[Dict[str, Any]]:
        self.updates.append((table, values, match))
        updated = []
        for row in self.tables.get(table, []):
            if all(row.get(k) == v for k, v in match.items()):
                row.update(values)
                updated.append(copy.deepcopy(row))
        return updated

    async def upsert(self, table: str, rows: List[Dict[str, Any]], on_conflict: str) -> List[Dict[str, Any]]:
        self.upserts.append((table, rows, on_conflict))
        return rows

    async def rpc(self, name: str, params: Optional[Dict[str, Any]] = None) -> Any:
        self.rpc_calls.append((name, params))
        result = self.rpc_results.get(name)
        if isinstance(result, Exception):
            raise result
        return result

    def calls_to(self, name: str) -> List[Dict[str, Any]]:
        return [params for called, params in self.rpc_calls if called == name]


def _payment(id, house_id, kind, amount, created_at, voided_at=None, code="A1", owner="Rahman"):
    return {
        "id": id,
        "house_id": house_id,
        "period": PERIOD,
        "kind": kind,
        "amount": amount,
        "paid_at": created_at[:10],
        "method": "transfer",
        "note": None,
        "voided_at": voided_at,
        "created_at": created_at,
        "houses": {"code": code, "owner": owner},
    }


@pytest.fixture
def tables() -> Dict[str, List[Dict[str, Any]]]:
    """Three houses (one of them the repair fund) with March 2025 activity"""
    payments = [
        _payment("p1", "h1", "rent", 500000, "2025-03-05T10:00:00+00:00"),
        _payment("p2", "h2", "rent", 1200000, "2025-03-02T09:00:00+00:00", code="B2", owner="Dival"),
        _payment("p3", "h1", "water", 20000, "2025-03-06T08:00:00+00:00", voided_at="2025-03-07T08:00:00+00:00"),
    ]
    return {
        "houses": [
            {"id": "h2", "code": "B2", "owner": "Dival", "is_repair_fund": False},
            {"id": "h1", "code": "A1", "owner": "Rahman", "is_repair_fund": False},
            {"id": "h3", "code": "KAS", "owner": "Fadel", "is_repair_fund": True},
        ],
        "v_rent_status": [
            {"house_id": "h1", "period": PERIOD, "rent_bill": 1500000, "rent_paid": 500000, "rent_due": 1000000},
            {"house_id": "h2", "period": PERIOD, "rent_bill": 1200000, "rent_paid": 1200000, "rent_due": 0},
            {"house_id": "h3", "period": PERIOD, "rent_bill": 100000, "rent_paid": 0, "rent_due": 100000},
            {"house_id": "h1", "period": PREV_PERIOD, "rent_bill": 1500000, "rent_paid": 1500000, "rent_due": 0},
        ],
        "v_water_status": [
            {"house_id": "h1", "period": PERIOD, "water_bill": 80000, "water_paid": 0, "water_due": 80000},
        ],
        "payments": payments,
        "v_payments_clean": [copy.deepcopy(p) for p in payments if not p["voided_at"]],
        "water_readings": [
            {"house_id": "h1", "period": PREV_PERIOD, "reading_m3": 100},
            {"house_id": "h1", "period": PERIOD, "reading_m3": 112},
            {"house_id": "h2", "period": PREV_PERIOD, "reading_m3": 50},
            {"house_id": "h2", "period": PERIOD, "reading_m3": 48},
        ],
        "water_shares": [{"house_id": "h1", "period": PERIOD, "share_amount": 80000}],
        "meter_bills": [{"meter_id": "m1", "period": PERIOD, "total_amount": 150000, "meters": {"code": "M1"}}],
        "meter_house_map": [
            {"meter_id": "m1", "house_id": "h1", "meters": {"code": "M1"}},
            {"meter_id": "m2", "house_id": "h2", "meters": {"code": "M2"}},
        ],
        "meters": [{"id": "m1", "code": "M1"}, {"id": "m2", "code": "M2"}],
        "rents": [
            {"id": "r2", "house_id": "h2", "period": PERIOD, "amount": 1200000, "houses": {"code": "B2"}},
            {"id": "r1", "house_id": "h1", "period": PERIOD, "amount": 1500000, "houses": {"code": "A1"}},
        ],
        "repairs": [
            {
                "id": "x1",
                "period": PERIOD,
                "house_id": "h1",
                "description": "Ganti kran",
                "amount": 75000,
                "deleted_at": None,
                "created_at": "2025-03-03T10:00:00+00:00",
                "houses": {"code": "A1", "owner": "Rahman"},
            },
            {
                "id": "x2",
                "period": PERIOD,
                "house_id": None,
                "description": "Cat pagar",
                "amount": 200000,
                "deleted_at": "2025-03-10T10:00:00+00:00",
                "created_at": "2025-03-04T10:00:00+00:00",
                "houses": None,
            },
        ],
        "v_audits": [
            {
                "id": "a1",
                "created_at": "2025-03-05T10:00:00+00:00",
                "action": "rent_partial",
                "actor_name": "admin",
                "period": PERIOD,
                "kind": "rent",
                "amount": 500000,
                "note": None,
                "house_id": "h1",
                "house_code": "A1",
                "house_owner": "Rahman",
            },
            {
                "id": "a2",
                "created_at": "2025-03-06T10:00:00+00:00",
                "action": "undo",
                "actor_name": "dival",
                "period": PERIOD,
                "kind": "rent",
                "amount": None,
                "note": None,
                "house_id": "h2",
                "house_code": "B2",
                "house_owner": "Dival",
            },
            {
                "id": "a3",
                "created_at": "2025-02-20T10:00:00+00:00",
                "action": "rent_full",
                "actor_name": "admin",
                "period": PREV_PERIOD,
                "kind": "rent",
                "amount": 1500000,
                "note": None,
                "house_id": "h1",
                "house_code": "A1",
                "house_owner": "Rahman",
            },
        ],
    }


@pytest.fixture
def backend(tables) -> FakeBackend:
    return FakeBackend(tables)


@pytest.fixture
def actor() -> Actor:
    return Actor(user_id="user-1", email="admin@example.com", access_token="test-token")


@pytest.fixture
def client(backend: FakeBackend, actor: Actor) -> TestClient:
    """Create FastAPI test client acting as a signed-in admin against the fake backend"""
    app = create_app()
    app.dependency_overrides[get_actor] = lambda: actor
    app.dependency_overrides[get_backend] = lambda: backend
    return TestClient(app)
