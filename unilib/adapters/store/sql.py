"""SQLAlchemy store adapter for a directly reachable database (local dev, tests)."""

import logging
import uuid
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Sequence

from sqlalchemy import Date, DateTime, MetaData, Table, and_, delete, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from unilib.domain.models import Base
from unilib.errors import StoreError
from unilib.ports.realtime import ChangeEvent, ChangeFeedPort, ChangeType
from unilib.ports.store import Filter, Op, Order, Row, StorePort

logger = logging.getLogger(__name__)


class SqlStoreAdapter(StorePort):
    """Run store operations against the tables declared in ``unilib.domain.models``."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        feed: ChangeFeedPort | None = None,
        metadata: MetaData = Base.metadata,
    ) -> None:
        self._session_factory = session_factory
        self._feed = feed
        self._metadata = metadata

    # ── Helpers ─────────────────────────────────────

    def _table(self, name: str) -> Table:
        try:
            return self._metadata.tables[name]
        except KeyError:
            raise StoreError(f"Unknown table: {name}") from None

    def _column(self, table: Table, name: str):
        try:
            return table.c[name]
        except KeyError:
            raise StoreError(f"Unknown column {table.name}.{name}") from None

    def _where(self, table: Table, filters: Sequence[Filter]):
        clauses = []
        for f in filters:
            col = self._column(table, f.column)
            if f.op is Op.EQ:
                clauses.append(col == f.value)
            elif f.op is Op.NEQ:
                clauses.append(col != f.value)
            elif f.op is Op.GT:
                clauses.append(col > f.value)
            elif f.op is Op.GTE:
                clauses.append(col >= f.value)
            elif f.op is Op.LT:
                clauses.append(col < f.value)
            elif f.op is Op.LTE:
                clauses.append(col <= f.value)
            elif f.op is Op.IN:
                clauses.append(col.in_(list(f.value)))
            else:
                clauses.append(col.is_(f.value))
        return and_(*clauses) if clauses else None

    def _coerce(self, table: Table, values: Row) -> Row:
        """Convert API-level values (ISO strings, enums, aware datetimes) to column types."""
        out: Row = {}
        for key, value in values.items():
            col = self._column(table, key)
            if isinstance(value, Enum):
                value = value.value
            if isinstance(col.type, DateTime):
                if isinstance(value, str):
                    value = datetime.fromisoformat(value)
                if isinstance(value, datetime) and value.tzinfo is not None:
                    value = value.astimezone(timezone.utc).replace(tzinfo=None)
            elif isinstance(col.type, Date) and isinstance(value, str):
                value = date.fromisoformat(value)
            out[key] = value
        return out

    async def _fetch(self, session: AsyncSession, table: Table, where) -> list[Row]:
        stmt = select(table)
        if where is not None:
            stmt = stmt.where(where)
        result = await session.execute(stmt)
        return [dict(r._mapping) for r in result]

    def _publish(self, table: str, change: ChangeType, new: Row | None = None, old: Row | None = None) -> None:
        if self._feed is not None:
            self._feed.publish(ChangeEvent(table=table, type=change, new=new or {}, old=old or {}))

    # ── StorePort ───────────────────────────────────

    async def select(
        self,
        table: str,
        filters: Sequence[Filter] = (),
        *,
        columns: Sequence[str] | None = None,
        order: Sequence[Order] = (),
        limit: int | None = None,
    ) -> list[Row]:
        tbl = self._table(table)
        targets = [self._column(tbl, c) for c in columns] if columns else [tbl]
        stmt = select(*targets)
        where = self._where(tbl, filters)
        if where is not None:
            stmt = stmt.where(where)
        for o in order:
            col = self._column(tbl, o.column)
            expr = col.asc() if o.ascending else col.desc()
            stmt = stmt.order_by(expr.nulls_last() if o.nulls_last else expr)
        if limit is not None:
            stmt = stmt.limit(limit)
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                rows = [dict(r._mapping) for r in result]
        except SQLAlchemyError as exc:
            raise StoreError(f"{table}: {exc}") from exc
        logger.debug("SQL select %s: %d rows", table, len(rows))
        return rows

    async def insert(self, table: str, row: Row) -> Row:
        tbl = self._table(table)
        values = self._coerce(tbl, row)
        if "id" in tbl.c and values.get("id") is None:
            values["id"] = str(uuid.uuid4())
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    await session.execute(insert(tbl).values(**values))
                stored = await self._fetch(session, tbl, tbl.c.id == values["id"])
        except SQLAlchemyError as exc:
            raise StoreError(f"{table}: {exc}") from exc
        logger.info("SQL insert %s: id=%s", table, values["id"])
        self._publish(table, ChangeType.INSERT, new=stored[0])
        return stored[0]

    async def update(self, table: str, values: Row, filters: Sequence[Filter]) -> list[Row]:
        tbl = self._table(table)
        coerced = self._coerce(tbl, values)
        where = self._where(tbl, filters)
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    before = await self._fetch(session, tbl, where)
                    ids = [r["id"] for r in before]
                    if not ids:
                        return []
                    await session.execute(update(tbl).where(tbl.c.id.in_(ids)).values(**coerced))
                after = await self._fetch(session, tbl, tbl.c.id.in_(ids))
        except SQLAlchemyError as exc:
            raise StoreError(f"{table}: {exc}") from exc
        logger.info("SQL update %s: %d rows", table, len(after))
        old_by_id = {r["id"]: r for r in before}
        for row in after:
            self._publish(table, ChangeType.UPDATE, new=row, old=old_by_id.get(row["id"]))
        return after

    async def delete(self, table: str, filters: Sequence[Filter]) -> list[Row]:
        tbl = self._table(table)
        where = self._where(tbl, filters)
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    removed = await self._fetch(session, tbl, where)
                    if removed:
                        ids = [r["id"] for r in removed]
                        await session.execute(delete(tbl).where(tbl.c.id.in_(ids)))
        except SQLAlchemyError as exc:
            raise StoreError(f"{table}: {exc}") from exc
        logger.info("SQL delete %s: %d rows", table, len(removed))
        for row in removed:
            self._publish(table, ChangeType.DELETE, old=row)
        return removed

    async def upsert(self, table: str, row: Row, on_conflict: Sequence[str] = ("id",)) -> Row:
        keys: dict[str, Any] = {c: row[c] for c in on_conflict if row.get(c) is not None}
        if len(keys) == len(on_conflict):
            existing = await self.select(table, [Filter(c, Op.EQ, v) for c, v in keys.items()], limit=1)
            if existing:
                changes = {k: v for k, v in row.items() if k != "id"}
                updated = await self.update(table, changes, [Filter("id", Op.EQ, existing[0]["id"])])
                return updated[0]
        return await self.insert(table, row)
