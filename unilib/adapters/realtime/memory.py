"""In-process change feed: delivers events published by the store adapters."""

import logging

from unilib.ports.realtime import ChangeEvent, ChangeFeedPort, ChangeHandler

logger = logging.getLogger(__name__)


class InProcessChangeFeed(ChangeFeedPort):
    def __init__(self) -> None:
        self._channels: dict[str, ChangeHandler] = {}

    def open_channel(self, table: str, handler: ChangeHandler) -> None:
        if table in self._channels:
            raise ValueError(f"Channel already open for table: {table}")
        self._channels[table] = handler
        logger.info("Opened change channel: %s", table)

    def close_channel(self, table: str) -> None:
        if self._channels.pop(table, None) is not None:
            logger.info("Closed change channel: %s", table)

    def publish(self, event: ChangeEvent) -> None:
        handler = self._channels.get(event.table)
        if handler is not None:
            handler(event)

    @property
    def open_tables(self) -> set[str]:
        return set(self._channels)
