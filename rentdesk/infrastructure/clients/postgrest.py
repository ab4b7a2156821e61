"""PostgREST client for the hosted backend tables, views and stored procedures"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

import httpx

from rentdesk.config import settings
from rentdesk.domain.exceptions import BackendError
from rentdesk.infrastructure.observability.metrics import backend_failure_counter, backend_latency_histogram

logger = logging.getLogger(__name__)

Filter = Tuple[str, str, Any]


def _literal(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class Query:
    """
    Table/view read, built the way the generated query builder chains filters.

    Example:
        Query("v_rent_status", "house_id,period,rent_due").gte("period", a).lte("period", b)
    """

    def __init__(self, table: str, columns: str = "*"):
        self.table = table
        self.columns = columns
        self.filters: List[Filter] = []
        self.ordering: List[Tuple[str, bool]] = []
        self.offset: Optional[int] = None
        self.limit: Optional[int] = None

    def _add(self, column: str, op: str, value: Any) -> "Query":
        self.filters.append((column, op, value))
        return self

    def eq(self, column: str, value: Any) -> "Query":
        return self._add(column, "eq", value)

    def gte(self, column: str, value: Any) -> "Query":
        return self._add(column, "gte", value)

    def lte(self, column: str, value: Any) -> "Query":
        return self._add(column, "lte", value)

    def lt(self, column: str, value: Any) -> "Query":
        return self._add(column, "lt", value)

    def in_(self, column: str, values: Sequence[Any]) -> "Query":
        return self._add(column, "in", list(values))

    def is_(self, column: str, value: Optional[bool]) -> "Query":
        return self._add(column, "is", value)

    def ilike(self, column: str, pattern: str) -> "Query":
        return self._add(column, "ilike", pattern)

    def order(self, column: str, desc: bool = False) -> "Query":
        self.ordering.append((column, desc))
        return self

    def range(self, start: int, end: int) -> "Query":
        """Inclusive row window, sent as offset/limit parameters"""
        self.offset = start
        self.limit = end - start + 1
        return self

    def params(self) -> List[Tuple[str, str]]:
        params = [("select", self.columns)]
        for column, op, value in self.filters:
            if op == "in":
                rendered = ",".join(_literal(v) for v in value)
                params.append((column, f"in.({rendered})"))
            else:
                params.append((column, f"{op}.{_literal(value)}"))
        if self.ordering:
            params.append(("order", ",".join(f"{c}.{'desc' if d else 'asc'}" for c, d in self.ordering)))
        if self.offset is not None:
            params.append(("offset", str(self.offset)))
        if self.limit is not None:
            params.append(("limit", str(self.limit)))
        return params


class PostgrestClient:
    """Client for the hosted REST endpoint (/rest/v1)"""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        access_token: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or settings.supabase_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.supabase_anon_key
        self.access_token = access_token
        self.timeout = timeout or settings.http_timeout_seconds
        self.max_retries = settings.read_max_retries
        self.backoff_base = settings.read_backoff_base
        self.transport = transport

    @property
    def rest_url(self) -> str:
        return f"{self.base_url}/rest/v1"

    def _headers(self, prefer: Optional[str] = None) -> Dict[str, str]:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.access_token or self.api_key}",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self.transport)

    @staticmethod
    def _error_from_response(response: httpx.Response) -> BackendError:
        try:
            body = response.json()
        except ValueError:
            body = None
        message = None
        if isinstance(body, dict):
            message = body.get("message") or body.get("error_description") or body.get("msg")
        return BackendError(message or f"Backend error: {response.status_code}", response.status_code)

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    async def _send(self, operation: str, method: str, url: str, **kwargs: Any) -> Any:
        async with self._client() as client:
            try:
                with backend_latency_histogram.labels(operation=operation).time():
                    response = await client.request(method, url, **kwargs)
            except httpx.TimeoutException as e:
                backend_failure_counter.labels(operation=operation).inc()
                raise BackendError(f"Backend timeout after {self.timeout}s") from e
            except httpx.RequestError as e:
                backend_failure_counter.labels(operation=operation).inc()
                raise BackendError(f"Backend unreachable: {e}") from e

        if response.is_error:
            backend_failure_counter.labels(operation=operation).inc()
            raise self._error_from_response(response)
        return self._decode(response)

    async def fetch(self, query: Query) -> List[Dict[str, Any]]:
        """
        Run a read query.

        Retry strategy:
        - Exponential backoff: base, 2*base, 4*base...
        - Retries on 5xx errors and network failures, never on 4xx

        Raises:
            BackendError: after the final attempt or on a client error
        """
        attempt = 0
        while True:
            try:
                data = await self._send(
                    "select",
                    "GET",
                    f"{self.rest_url}/{query.table}",
                    params=query.params(),
                    headers=self._headers(),
                )
                return data or []
            except BackendError as e:
                attempt += 1
                retryable = e.status_code is None or e.status_code >= 500
                if not retryable or attempt >= self.max_retries:
                    raise
                backoff = self.backoff_base * (2 ** (attempt - 1))
                logger.warning(
                    f"Backend read failed, retrying in {backoff}s",
                    extra={"table": query.table, "attempt": attempt},
                )
                await asyncio.sleep(backoff)

    async def insert(self, table: str, row: Dict[str, Any]) -> List[Dict[str, Any]]:
        data = await self._send(
            "insert",
            "POST",
            f"{self.rest_url}/{table}",
            json=row,
            headers=self._headers("return=representation"),
        )
        return data or []

    async def update(self, table: str, values: Dict[str, Any], **match: Any) -> List[Dict[str, Any]]:
        """PATCH rows matching every ``column=value`` in match"""
        if not match:
            raise ValueError("update requires at least one filter")
        params = [(column, f"eq.{_literal(value)}") for column, value in match.items()]
        data = await self._send(
            "update",
            "PATCH",
            f"{self.rest_url}/{table}",
            params=params,
            json=values,
            headers=self._headers("return=representation"),
        )
        return data or []

    async def upsert(self, table: str, rows: List[Dict[str, Any]], on_conflict: str) -> List[Dict[str, Any]]:
        data = await self._send(
            "upsert",
            "POST",
            f"{self.rest_url}/{table}",
            params=[("on_conflict", on_conflict)],
            json=rows,
            headers=self._headers("resolution=merge-duplicates,return=representation"),
        )
        return data or []

    async def rpc(self, name: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Call a stored procedure; the result shape is whatever the function returns"""
        return await self._send(
            "rpc",
            "POST",
            f"{self.rest_url}/rpc/{name}",
            json=params or {},
            headers=self._headers(),
        )
