"""Backend store adapter contract.

The engine never talks to storage directly. Everything goes through an
``Adapter``: create, find, count, update, delete and transaction grouping
over named models (``content_type``, ``content_item``, ``content_relation``).
Records are plain dicts keyed by snake_case field names.
"""
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Literal, TypeVar

from pydantic import BaseModel

T = TypeVar("T")

Operator = Literal["eq", "ne", "lt", "lte", "gt", "gte", "in"]


class Where(BaseModel):
    """One filter predicate; predicates in a list are AND-ed."""

    model_config = {"frozen": True}

    field: str
    value: Any
    operator: Operator = "eq"


class SortBy(BaseModel):
    """Sort order for ``find_many``."""

    model_config = {"frozen": True}

    field: str
    direction: Literal["asc", "desc"] = "asc"


def eq(field: str, value: Any) -> Where:
    """Shorthand for an equality predicate."""
    return Where(field=field, value=value, operator="eq")


def matches(record: dict[str, Any], where: list[Where] | None) -> bool:
    """Evaluate predicates against an in-memory record."""
    for clause in where or []:
        actual = record.get(clause.field)
        expected = clause.value
        if clause.operator == "eq":
            ok = actual == expected
        elif clause.operator == "ne":
            ok = actual != expected
        elif clause.operator == "in":
            ok = actual in expected
        elif actual is None or expected is None:
            ok = False
        elif clause.operator == "lt":
            ok = actual < expected
        elif clause.operator == "lte":
            ok = actual <= expected
        elif clause.operator == "gt":
            ok = actual > expected
        else:
            ok = actual >= expected
        if not ok:
            return False
    return True


class Adapter(ABC):
    """Base class for backend store adapters."""

    @abstractmethod
    async def create(self, model: str, data: dict[str, Any]) -> dict[str, Any]:
        """Insert a record and return it, including its generated ``id``."""
        pass

    @abstractmethod
    async def find_one(
        self,
        model: str,
        where: list[Where],
        join: dict[str, bool] | None = None,
    ) -> dict[str, Any] | None:
        """Return the first record matching ``where``, or None."""
        pass

    @abstractmethod
    async def find_many(
        self,
        model: str,
        where: list[Where] | None = None,
        limit: int | None = None,
        offset: int | None = None,
        sort_by: SortBy | None = None,
        join: dict[str, bool] | None = None,
    ) -> list[dict[str, Any]]:
        """Return all records matching ``where`` after sorting and slicing."""
        pass

    @abstractmethod
    async def count(self, model: str, where: list[Where] | None = None) -> int:
        """Count records matching ``where``."""
        pass

    @abstractmethod
    async def update(
        self, model: str, where: list[Where], update: dict[str, Any]
    ) -> dict[str, Any] | None:
        """Apply ``update`` to the first matching record and return it."""
        pass

    @abstractmethod
    async def delete(self, model: str, where: list[Where]) -> None:
        """Delete all matching records; storage-level cascades apply."""
        pass

    @abstractmethod
    async def transaction(self, fn: Callable[["Adapter"], Awaitable[T]]) -> T:
        """Run ``fn`` with an adapter whose writes commit or roll back together."""
        pass
