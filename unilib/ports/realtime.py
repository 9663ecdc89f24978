"""Change-feed port: push notifications for row-level changes."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from unilib.ports.store import Row


class ChangeType(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


@dataclass(frozen=True)
class ChangeEvent:
    table: str
    type: ChangeType
    new: Row = field(default_factory=dict)
    old: Row = field(default_factory=dict)

    @property
    def row(self) -> Row:
        """The row the event is about: ``old`` for deletes, ``new`` otherwise."""
        return self.old if self.type is ChangeType.DELETE else self.new

    def to_dict(self) -> dict[str, Any]:
        return {"table": self.table, "type": self.type.value, "new": self.new, "old": self.old}


ChangeHandler = Callable[[ChangeEvent], None]


class ChangeFeedPort(ABC):
    """One upstream channel per table; the hub multiplexes consumers onto it."""

    @abstractmethod
    def open_channel(self, table: str, handler: ChangeHandler) -> None:
        ...

    @abstractmethod
    def close_channel(self, table: str) -> None:
        ...

    @abstractmethod
    def publish(self, event: ChangeEvent) -> None:
        """Announce a change made through this service."""
        ...
