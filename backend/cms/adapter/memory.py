"""In-process adapter used by tests and local development."""
from __future__ import annotations

import asyncio
import copy
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, TypeVar

from cms.adapter.base import Adapter, SortBy, Where, matches
from cms.exceptions import AdapterError, UniqueViolationError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Reference:
    """Foreign key from ``field`` to ``model.id`` with cascading delete."""

    field: str
    model: str


@dataclass(frozen=True)
class ModelSpec:
    """Storage constraints for one model."""

    unique: tuple[str, ...] = ()
    references: tuple[Reference, ...] = ()
    joins: dict[str, str] = field(default_factory=dict)


CMS_MODELS: dict[str, ModelSpec] = {
    "content_type": ModelSpec(unique=("slug",)),
    "content_item": ModelSpec(
        references=(Reference("content_type_id", "content_type"),),
        joins={"content_type": "content_type_id"},
    ),
    "content_relation": ModelSpec(
        references=(
            Reference("source_id", "content_item"),
            Reference("target_id", "content_item"),
        ),
    ),
}


def _sort_key(value: Any) -> tuple[bool, Any]:
    # None sorts after every real value
    if value is None:
        return (True, 0)
    return (False, value)


class MemoryAdapter(Adapter):
    """Dict-backed adapter with unique keys and cascading foreign keys.

    Every operation yields to the event loop once before touching state, so
    concurrent callers interleave the way they would against a real store.
    """

    def __init__(self, models: dict[str, ModelSpec] | None = None):
        self.models = models or CMS_MODELS
        self._tables: dict[str, dict[str, dict[str, Any]]] = {
            name: {} for name in self.models
        }

    def _table(self, model: str) -> dict[str, dict[str, Any]]:
        if model not in self._tables:
            raise AdapterError(f"Unknown model '{model}'")
        return self._tables[model]

    def _check_unique(self, model: str, record: dict[str, Any], skip_id: str | None = None) -> None:
        for unique_field in self.models[model].unique:
            value = record.get(unique_field)
            for existing in self._tables[model].values():
                if existing["id"] != skip_id and existing.get(unique_field) == value:
                    raise UniqueViolationError(
                        f"UNIQUE constraint failed: {model}.{unique_field}",
                        field=unique_field,
                    )

    def _check_references(self, model: str, record: dict[str, Any]) -> None:
        for ref in self.models[model].references:
            value = record.get(ref.field)
            if value is not None and value not in self._tables[ref.model]:
                raise AdapterError(
                    f"FOREIGN KEY constraint failed: {model}.{ref.field}"
                )

    def _with_joins(self, model: str, record: dict[str, Any], join: dict[str, bool] | None) -> dict[str, Any]:
        result = copy.deepcopy(record)
        for name, enabled in (join or {}).items():
            if not enabled:
                continue
            fk = self.models[model].joins.get(name)
            if fk is None:
                raise AdapterError(f"Model '{model}' has no join '{name}'")
            target = self._tables[name].get(record.get(fk))
            result[name] = copy.deepcopy(target) if target else None
        return result

    def _select(
        self,
        model: str,
        where: list[Where] | None,
        sort_by: SortBy | None = None,
    ) -> list[dict[str, Any]]:
        rows = [r for r in self._table(model).values() if matches(r, where)]
        if sort_by is not None:
            rows.sort(
                key=lambda r: _sort_key(r.get(sort_by.field)),
                reverse=sort_by.direction == "desc",
            )
        return rows

    def _cascade(self, model: str, ids: set[str]) -> None:
        for child_model, spec in self.models.items():
            for ref in spec.references:
                if ref.model != model:
                    continue
                doomed = {
                    r["id"]
                    for r in self._tables[child_model].values()
                    if r.get(ref.field) in ids
                }
                if doomed:
                    for doomed_id in doomed:
                        self._tables[child_model].pop(doomed_id, None)
                    self._cascade(child_model, doomed)

    async def create(self, model: str, data: dict[str, Any]) -> dict[str, Any]:
        await asyncio.sleep(0)
        table = self._table(model)
        record = copy.deepcopy(data)
        record.setdefault("id", uuid.uuid4().hex)
        if record["id"] in table:
            raise UniqueViolationError(f"UNIQUE constraint failed: {model}.id", field="id")
        self._check_unique(model, record)
        self._check_references(model, record)
        table[record["id"]] = record
        logger.debug("Created %s %s", model, record["id"])
        return copy.deepcopy(record)

    async def find_one(
        self,
        model: str,
        where: list[Where],
        join: dict[str, bool] | None = None,
    ) -> dict[str, Any] | None:
        await asyncio.sleep(0)
        rows = self._select(model, where)
        if not rows:
            return None
        return self._with_joins(model, rows[0], join)

    async def find_many(
        self,
        model: str,
        where: list[Where] | None = None,
        limit: int | None = None,
        offset: int | None = None,
        sort_by: SortBy | None = None,
        join: dict[str, bool] | None = None,
    ) -> list[dict[str, Any]]:
        await asyncio.sleep(0)
        rows = self._select(model, where, sort_by)
        start = offset or 0
        end = start + limit if limit is not None else None
        return [self._with_joins(model, r, join) for r in rows[start:end]]

    async def count(self, model: str, where: list[Where] | None = None) -> int:
        await asyncio.sleep(0)
        return len(self._select(model, where))

    async def update(
        self, model: str, where: list[Where], update: dict[str, Any]
    ) -> dict[str, Any] | None:
        await asyncio.sleep(0)
        rows = self._select(model, where)
        if not rows:
            return None
        current = rows[0]
        candidate = {**current, **copy.deepcopy(update), "id": current["id"]}
        self._check_unique(model, candidate, skip_id=current["id"])
        self._check_references(model, candidate)
        self._tables[model][current["id"]] = candidate
        return copy.deepcopy(candidate)

    async def delete(self, model: str, where: list[Where]) -> None:
        await asyncio.sleep(0)
        table = self._table(model)
        ids = {r["id"] for r in self._select(model, where)}
        for record_id in ids:
            table.pop(record_id, None)
        if ids:
            self._cascade(model, ids)

    async def transaction(self, fn: Callable[[Adapter], Awaitable[T]]) -> T:
        snapshot = copy.deepcopy(self._tables)
        try:
            return await fn(self)
        except BaseException:
            self._tables = snapshot
            raise
