"""Store port: abstract interface over the backend-as-a-service tables."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Sequence

from unilib.ports.auth import Principal

Row = dict[str, Any]


class Op(str, Enum):
    EQ = "eq"
    NEQ = "neq"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    IN = "in"
    IS = "is"


@dataclass(frozen=True)
class Filter:
    """A single column predicate, combined with the others by AND."""

    column: str
    op: Op
    value: Any

    def matches(self, row: Row) -> bool:
        """Evaluate the predicate against an in-memory row."""
        actual = row.get(self.column)
        if self.op is Op.IS:
            return actual is self.value
        if self.op is Op.IN:
            return actual in self.value
        if actual is None:
            return False
        if self.op is Op.EQ:
            return actual == self.value
        if self.op is Op.NEQ:
            return actual != self.value
        if self.op is Op.GT:
            return actual > self.value
        if self.op is Op.GTE:
            return actual >= self.value
        if self.op is Op.LT:
            return actual < self.value
        return actual <= self.value


def eq(column: str, value: Any) -> Filter:
    return Filter(column, Op.EQ, value)


def neq(column: str, value: Any) -> Filter:
    return Filter(column, Op.NEQ, value)


def gt(column: str, value: Any) -> Filter:
    return Filter(column, Op.GT, value)


def in_(column: str, values: Sequence[Any]) -> Filter:
    return Filter(column, Op.IN, tuple(values))


@dataclass(frozen=True)
class Order:
    column: str
    ascending: bool = True
    nulls_last: bool = False


class StorePort(ABC):
    """Typed CRUD over named tables with filter predicates."""

    def for_principal(self, principal: Principal | None) -> "StorePort":
        """Return a store acting on behalf of ``principal`` (row-level security)."""
        return self

    @abstractmethod
    async def select(
        self,
        table: str,
        filters: Sequence[Filter] = (),
        *,
        columns: Sequence[str] | None = None,
        order: Sequence[Order] = (),
        limit: int | None = None,
    ) -> list[Row]:
        """Return rows matching every filter."""
        ...

    @abstractmethod
    async def insert(self, table: str, row: Row) -> Row:
        """Insert one row and return it as stored."""
        ...

    @abstractmethod
    async def update(self, table: str, values: Row, filters: Sequence[Filter]) -> list[Row]:
        """Apply ``values`` to matching rows and return them."""
        ...

    @abstractmethod
    async def delete(self, table: str, filters: Sequence[Filter]) -> list[Row]:
        """Delete matching rows and return what was removed."""
        ...

    @abstractmethod
    async def upsert(self, table: str, row: Row, on_conflict: Sequence[str] = ("id",)) -> Row:
        """Insert ``row`` or merge it into the row sharing the conflict columns."""
        ...
