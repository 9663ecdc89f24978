"""Server-sent events for row changes, fed by the shared realtime hub."""

import asyncio
import json
import logging
from datetime import date, datetime
from typing import Any, AsyncIterator

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import StreamingResponse
from pydantic_core import to_jsonable_python
from sqlalchemy import Column

from unilib.api.deps import get_realtime_hub
from unilib.api.middleware.auth import get_principal
from unilib.domain.models import Base
from unilib.ports.auth import Principal
from unilib.ports.realtime import ChangeEvent
from unilib.ports.store import Filter, Op, eq
from unilib.services.realtime import RealtimeHub

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/realtime", tags=["Realtime"])

KEEPALIVE_SECONDS = 15.0


def _bad_filter(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def coerce_value(column: Column, value: str) -> Any:
    """Convert the text of a filter value to the column's Python type."""
    try:
        python_type = column.type.python_type
    except NotImplementedError:
        return value

    try:
        if python_type is bool:
            if value.lower() not in ("true", "false"):
                raise ValueError(value)
            return value.lower() == "true"
        if python_type in (int, float):
            return python_type(value)
        # datetime subclasses date, so it is checked first
        if python_type is datetime:
            return datetime.fromisoformat(value)
        if python_type is date:
            return date.fromisoformat(value)
    except ValueError:
        raise _bad_filter(f"Invalid value for {column.name}: {value!r}") from None
    return value


def parse_filter(table: str, expr: str) -> Filter:
    """Parse a ``column=eq.value`` filter expression against ``table``'s columns."""
    name, sep, rest = expr.partition("=")
    op, dot, value = rest.partition(".")
    if not sep or not dot or not name or op != Op.EQ.value:
        raise _bad_filter("Filter must look like column=eq.value")

    columns = Base.metadata.tables[table].c
    if name not in columns:
        raise _bad_filter(f"Unknown column: {name}")
    return eq(name, coerce_value(columns[name], value))


def format_event(event: ChangeEvent) -> str:
    data = json.dumps(to_jsonable_python(event.to_dict()))
    return f"event: {event.type.value}\ndata: {data}\n\n"


@router.get("/{table}")
async def stream_changes(
    table: str,
    request: Request,
    filter_expr: str | None = Query(None, alias="filter"),
    _principal: Principal = Depends(get_principal),
    hub: RealtimeHub = Depends(get_realtime_hub),
) -> StreamingResponse:
    """Stream insert/update/delete events on ``table`` until the client leaves."""
    if table not in Base.metadata.tables:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Unknown table")
    row_filter = parse_filter(table, filter_expr) if filter_expr else None

    async def events() -> AsyncIterator[str]:
        # Subscribe on first iteration; an unsent response holds no channel.
        queue: asyncio.Queue[ChangeEvent] = asyncio.Queue()
        subscription = hub.subscribe(table, queue.put_nowait, row_filter)
        try:
            while not await request.is_disconnected():
                try:
                    event = await asyncio.wait_for(queue.get(), timeout=KEEPALIVE_SECONDS)
                except asyncio.TimeoutError:
                    yield ": keepalive\n\n"
                    continue
                yield format_event(event)
        finally:
            subscription.close()
            logger.debug("Realtime stream on %s closed", table)

    return StreamingResponse(events(), media_type="text/event-stream")
