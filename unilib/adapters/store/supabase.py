"""Supabase store adapter: PostgREST table access over HTTP."""

import logging
from typing import Any, Sequence

import httpx
from pydantic_core import to_jsonable_python

from unilib.errors import StoreError
from unilib.ports.auth import Principal
from unilib.ports.realtime import ChangeEvent, ChangeFeedPort, ChangeType
from unilib.ports.store import Filter, Op, Order, Row, StorePort

logger = logging.getLogger(__name__)


def _literal(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    encoded = to_jsonable_python(value)
    return str(encoded)


def filter_param(f: Filter) -> tuple[str, str]:
    """Render a filter as a PostgREST query parameter, e.g. ``("user_id", "eq.42")``."""
    if f.op is Op.IN:
        quoted = ",".join(f'"{_literal(v)}"' for v in f.value)
        return f.column, f"in.({quoted})"
    return f.column, f"{f.op.value}.{_literal(f.value)}"


def order_param(orders: Sequence[Order]) -> str:
    parts = []
    for o in orders:
        part = f"{o.column}.{'asc' if o.ascending else 'desc'}"
        if o.nulls_last:
            part += ".nullslast"
        parts.append(part)
    return ",".join(parts)


class SupabaseStoreAdapter(StorePort):
    """Issue table operations against a hosted Supabase project."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        access_token: str | None = None,
        feed: ChangeFeedPort | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._access_token = access_token
        self._feed = feed
        self._transport = transport

    def for_principal(self, principal: Principal | None) -> StorePort:
        if principal is None or not principal.access_token:
            return self
        return SupabaseStoreAdapter(
            self._base_url,
            self._api_key,
            access_token=principal.access_token,
            feed=self._feed,
            transport=self._transport,
        )

    def _headers(self, prefer: str | None = None) -> dict[str, str]:
        headers = {
            "apikey": self._api_key,
            "Authorization": f"Bearer {self._access_token or self._api_key}",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    async def _request(
        self,
        method: str,
        table: str,
        params: list[tuple[str, str]],
        json: Any = None,
        prefer: str | None = None,
    ) -> list[Row]:
        url = f"{self._base_url}/rest/v1/{table}"
        async with httpx.AsyncClient(transport=self._transport) as client:
            try:
                resp = await client.request(
                    method,
                    url,
                    params=params,
                    json=to_jsonable_python(json) if json is not None else None,
                    headers=self._headers(prefer),
                )
            except httpx.HTTPError as exc:
                logger.error("Supabase %s %s failed: %s", method, table, exc)
                raise StoreError(f"{table}: {exc}") from exc
        if resp.is_error:
            try:
                body = resp.json()
            except ValueError:
                body = None
            message = body.get("message", resp.text) if isinstance(body, dict) else resp.text
            logger.error("Supabase %s %s: %d %s", method, table, resp.status_code, message)
            raise StoreError(f"{table}: {message}")
        if not resp.content:
            return []
        data = resp.json()
        return data if isinstance(data, list) else [data]

    def _publish(self, table: str, change: ChangeType, rows: list[Row]) -> None:
        if self._feed is None:
            return
        for row in rows:
            if change is ChangeType.DELETE:
                self._feed.publish(ChangeEvent(table=table, type=change, old=row))
            else:
                self._feed.publish(ChangeEvent(table=table, type=change, new=row))

    async def select(
        self,
        table: str,
        filters: Sequence[Filter] = (),
        *,
        columns: Sequence[str] | None = None,
        order: Sequence[Order] = (),
        limit: int | None = None,
    ) -> list[Row]:
        params = [("select", ",".join(columns) if columns else "*")]
        params.extend(filter_param(f) for f in filters)
        if order:
            params.append(("order", order_param(order)))
        if limit is not None:
            params.append(("limit", str(limit)))
        rows = await self._request("GET", table, params)
        logger.debug("Supabase select %s: %d rows", table, len(rows))
        return rows

    async def insert(self, table: str, row: Row) -> Row:
        rows = await self._request("POST", table, [], json=row, prefer="return=representation")
        if not rows:
            raise StoreError(f"{table}: insert returned no row")
        logger.info("Supabase insert %s: id=%s", table, rows[0].get("id"))
        self._publish(table, ChangeType.INSERT, rows[:1])
        return rows[0]

    async def update(self, table: str, values: Row, filters: Sequence[Filter]) -> list[Row]:
        params = [filter_param(f) for f in filters]
        rows = await self._request("PATCH", table, params, json=values, prefer="return=representation")
        logger.info("Supabase update %s: %d rows", table, len(rows))
        self._publish(table, ChangeType.UPDATE, rows)
        return rows

    async def delete(self, table: str, filters: Sequence[Filter]) -> list[Row]:
        params = [filter_param(f) for f in filters]
        rows = await self._request("DELETE", table, params, prefer="return=representation")
        logger.info("Supabase delete %s: %d rows", table, len(rows))
        self._publish(table, ChangeType.DELETE, rows)
        return rows

    async def upsert(self, table: str, row: Row, on_conflict: Sequence[str] = ("id",)) -> Row:
        rows = await self._request(
            "POST",
            table,
            [("on_conflict", ",".join(on_conflict))],
            json=row,
            prefer="resolution=merge-duplicates,return=representation",
        )
        if not rows:
            raise StoreError(f"{table}: upsert returned no row")
        self._publish(table, ChangeType.UPDATE, rows[:1])
        return rows[0]
