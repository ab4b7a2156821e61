"""Unit tests for the PostgREST client"""

import json

import httpx
import pytest

from rentdesk.domain.exceptions import BackendError
from rentdesk.infrastructure.clients.postgrest import PostgrestClient, Query

BASE_URL = "http://backend.test"


def make_client(handler, access_token=None) -> PostgrestClient:
    client = PostgrestClient(
        base_url=BASE_URL,
        api_key="anon-key",
        access_token=access_token,
        transport=httpx.MockTransport(handler),
    )
    client.backoff_base = 0
    return client


def test_query_params():
    """Test filters, ordering and range render as PostgREST parameters"""
    query = (
        Query("payments", "id,amount")
        .eq("period", "2025-03-01")
        .is_("voided_at", None)
        .in_("kind", ["rent", "water"])
        .ilike("actor_name", "%div%")
        .order("created_at", desc=True)
        .order("id")
        .range(50, 99)
    )

    assert query.params() == [
        ("select", "id,amount"),
        ("period", "eq.2025-03-01"),
        ("voided_at", "is.null"),
        ("kind", "in.(rent,water)"),
        ("actor_name", "ilike.%div%"),
        ("order", "created_at.desc,id.asc"),
        ("offset", "50"),
        ("limit", "50"),
    ]


async def test_fetch_sends_query_and_auth_headers():
    """Test reads hit /rest/v1/<table> with apikey and the user's token"""
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["period"] = request.url.params.get("period")
        seen["apikey"] = request.headers.get("apikey")
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(200, json=[{"id": "h1"}])

    rows = await make_client(handler, access_token="user-token").fetch(Query("houses").eq("period", "2025-03-01"))

    assert rows == [{"id": "h1"}]
    assert seen == {
        "path": "/rest/v1/houses",
        "period": "eq.2025-03-01",
        "apikey": "anon-key",
        "auth": "Bearer user-token",
    }


async def test_anon_key_used_without_session():
    """Test the anon key doubles as bearer token when no user token is set"""

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["Authorization"] == "Bearer anon-key"
        return httpx.Response(200, json=[])

    assert await make_client(handler).fetch(Query("houses")) == []


async def test_fetch_retries_server_errors():
    """Test reads are retried on 5xx until they succeed"""
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) < 3:
            return httpx.Response(503, json={"message": "unavailable"})
        return httpx.Response(200, json=[{"id": "h1"}])

    rows = await make_client(handler).fetch(Query("houses"))

    assert rows == [{"id": "h1"}]
    assert len(calls) == 3


async def test_fetch_gives_up_after_max_retries():
    """Test the last server error is raised once retries run out"""
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(500, json={"message": "boom"})

    client = make_client(handler)
    with pytest.raises(BackendError) as exc_info:
        await client.fetch(Query("houses"))

    assert exc_info.value.status_code == 500
    assert len(calls) == client.max_retries


async def test_fetch_does_not_retry_client_errors():
    """Test 4xx errors surface immediately with the backend message"""
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(400, json={"message": 'column "nope" does not exist'})

    with pytest.raises(BackendError, match='column "nope" does not exist') as exc_info:
        await make_client(handler).fetch(Query("houses"))

    assert exc_info.value.status_code == 400
    assert len(calls) == 1


async def test_network_failure_becomes_backend_error():
    """Test connection errors are wrapped"""

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(BackendError, match="Backend unreachable"):
        await make_client(handler).rpc("generate_water_shares", {"p_period": "2025-03-01"})


async def test_insert_returns_representation():
    """Test inserts ask for the stored row back"""

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "POST"
        assert request.headers["Prefer"] == "return=representation"
        body = json.loads(request.content)
        return httpx.Response(201, json=[dict(body, id="p9")])

    rows = await make_client(handler).insert("payments", {"house_id": "h1", "amount": 1000})
    assert rows == [{"house_id": "h1", "amount": 1000, "id": "p9"}]


async def test_update_filters_by_match():
    """Test updates PATCH rows matching the given columns"""

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "PATCH"
        assert request.url.params.get("id") == "eq.r1"
        return httpx.Response(200, json=[{"id": "r1", "amount": 1600000}])

    rows = await make_client(handler).update("rents", {"amount": 1600000}, id="r1")
    assert rows[0]["amount"] == 1600000

    with pytest.raises(ValueError):
        await make_client(handler).update("rents", {"amount": 1})


async def test_upsert_merges_on_conflict():
    """Test upserts name the conflict columns and merge duplicates"""

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params.get("on_conflict") == "meter_id,period"
        assert request.headers["Prefer"].startswith("resolution=merge-duplicates")
        return httpx.Response(201, json=json.loads(request.content))

    rows = [{"meter_id": "m1", "period": "2025-03-01", "total_amount": 150000}]
    assert await make_client(handler).upsert("meter_bills", rows, on_conflict="meter_id,period") == rows


async def test_rpc_results():
    """Test procedure calls and empty (void) results"""

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/rest/v1/rpc/void_last_payment":
            assert json.loads(request.content)["p_kind"] == "rent"
            return httpx.Response(200, json=True)
        return httpx.Response(204)

    client = make_client(handler)
    assert await client.rpc("void_last_payment", {"p_kind": "rent"}) is True
    assert await client.rpc("restore_repair", {"p_id": "x1"}) is None


async def test_writes_and_procedures_are_not_retried():
    """Test a server error on a write or procedure call is raised after one attempt"""
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append((request.method, request.url.path))
        return httpx.Response(503, json={"message": "unavailable"})

    client = make_client(handler)
    writes = [
        client.insert("payments", {"house_id": "h1", "amount": 1000}),
        client.update("rents", {"amount": 1600000}, id="r1"),
        client.upsert("meter_bills", [{"meter_id": "m1", "period": "2025-03-01"}], on_conflict="meter_id,period"),
        client.rpc("void_last_payment", {"p_house": "h1"}),
        client.rpc("copy_rents_to_next", {"p_current": "2025-03-01"}),
    ]
    for write in writes:
        with pytest.raises(BackendError) as exc_info:
            await write
        assert exc_info.value.status_code == 503

    assert calls == [
        ("POST", "/rest/v1/payments"),
        ("PATCH", "/rest/v1/rents"),
        ("POST", "/rest/v1/meter_bills"),
        ("POST", "/rest/v1/rpc/void_last_payment"),
        ("POST", "/rest/v1/rpc/copy_rents_to_next"),
    ]
