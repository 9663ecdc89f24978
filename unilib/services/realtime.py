"""
Shared realtime subscriptions.

Consumers subscribe through one hub instead of each opening its own
upstream channel. The hub keeps a single channel per table, counts the
consumers attached to it, and closes the channel when the last one leaves.
"""

import itertools
import logging
from typing import Callable

from unilib.ports.realtime import ChangeEvent, ChangeFeedPort, ChangeType
from unilib.ports.store import Filter, Row

logger = logging.getLogger(__name__)

Callback = Callable[[ChangeEvent], None]


class Subscription:
    """Handle returned by RealtimeHub.subscribe; call close() to detach."""

    def __init__(self, hub: "RealtimeHub", sub_id: int, table: str, callback: Callback, filter: Filter | None) -> None:
        self._hub = hub
        self.id = sub_id
        self.table = table
        self.callback = callback
        self.filter = filter
        self.closed = False

    def wants(self, event: ChangeEvent) -> bool:
        return self.filter is None or self.filter.matches(event.row)

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._hub._detach(self)


class RealtimeHub:
    def __init__(self, feed: ChangeFeedPort) -> None:
        self._feed = feed
        self._consumers: dict[str, dict[int, Subscription]] = {}
        self._ids = itertools.count(1)

    def subscribe(self, table: str, callback: Callback, filter: Filter | None = None) -> Subscription:
        consumers = self._consumers.get(table)
        if consumers is None:
            consumers = self._consumers[table] = {}
            self._feed.open_channel(table, self._dispatch)
        sub = Subscription(self, next(self._ids), table, callback, filter)
        consumers[sub.id] = sub
        logger.debug("Subscribed #%d to %s (%d consumers)", sub.id, table, len(consumers))
        return sub

    def consumer_count(self, table: str) -> int:
        return len(self._consumers.get(table, {}))

    def _detach(self, sub: Subscription) -> None:
        consumers = self._consumers.get(sub.table)
        if consumers is None:
            return
        consumers.pop(sub.id, None)
        if not consumers:
            del self._consumers[sub.table]
            self._feed.close_channel(sub.table)

    def _dispatch(self, event: ChangeEvent) -> None:
        for sub in list(self._consumers.get(event.table, {}).values()):
            if not sub.wants(event):
                continue
            try:
                sub.callback(event)
            except Exception:
                logger.exception("Realtime consumer #%d failed on %s %s", sub.id, event.type.value, event.table)


class LiveCollection:
    """
    A local list of rows kept current by change events.

    Inserts are prepended, updates replace the row with the same id, and
    deletes remove it. Events are applied in delivery order, last write wins.
    """

    def __init__(self, rows: list[Row] | None = None, key: str = "id") -> None:
        self._rows: list[Row] = list(rows or [])
        self._key = key

    @property
    def rows(self) -> list[Row]:
        return list(self._rows)

    def apply(self, event: ChangeEvent) -> None:
        row_id = event.row.get(self._key)
        if event.type is ChangeType.INSERT:
            self._rows.insert(0, event.new)
        elif event.type is ChangeType.UPDATE:
            self._rows = [event.new if r.get(self._key) == row_id else r for r in self._rows]
        else:
            self._rows = [r for r in self._rows if r.get(self._key) != row_id]

    def bind(self, hub: RealtimeHub, table: str, filter: Filter | None = None) -> Subscription:
        return hub.subscribe(table, self.apply, filter)
