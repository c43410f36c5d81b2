"""SQLAlchemy-backed adapter."""
from __future__ import annotations

import asyncio
import logging
import operator
from typing import Any, Awaitable, Callable, TypeVar

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from cms.adapter.base import Adapter, SortBy, Where
from cms.exceptions import AdapterError, UniqueViolationError
from cms.models import ContentItem, ContentRelation, ContentType

logger = logging.getLogger(__name__)

T = TypeVar("T")

CMS_MODELS = {
    "content_type": ContentType,
    "content_item": ContentItem,
    "content_relation": ContentRelation,
}

_OPERATORS: dict[str, Callable[[Any, Any], Any]] = {
    "eq": operator.eq,
    "ne": operator.ne,
    "lt": operator.lt,
    "lte": operator.le,
    "gt": operator.gt,
    "gte": operator.ge,
    "in": lambda column, value: column.in_(list(value)),
}


def _to_dict(obj: Any) -> dict[str, Any]:
    return {attr.key: getattr(obj, attr.key) for attr in sa_inspect(obj).mapper.column_attrs}


def _translate_integrity_error(exc: IntegrityError) -> AdapterError:
    message = str(exc.orig) if exc.orig is not None else str(exc)
    lowered = message.lower()
    if "unique constraint" in lowered or "duplicate key" in lowered:
        return UniqueViolationError(message)
    return AdapterError(message)


class SqlAlchemyAdapter(Adapter):
    """Adapter over the CMS ORM models.

    Synchronous session work runs in a worker thread. Outside a transaction
    every call opens its own session and commits; inside ``transaction`` the
    calls share one session that commits once at the end.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        models: dict[str, type] | None = None,
        session: Session | None = None,
    ):
        self.session_factory = session_factory
        self.models = models or CMS_MODELS
        self._session = session

    def _model(self, model: str) -> type:
        if model not in self.models:
            raise AdapterError(f"Unknown model '{model}'")
        return self.models[model]

    def _query(self, db: Session, model: str, where: list[Where] | None):
        cls = self._model(model)
        query = db.query(cls)
        for clause in where or []:
            column = getattr(cls, clause.field, None)
            if column is None:
                raise AdapterError(f"Model '{model}' has no field '{clause.field}'")
            query = query.filter(_OPERATORS[clause.operator](column, clause.value))
        return query

    def _serialize(self, obj: Any, join: dict[str, bool] | None) -> dict[str, Any]:
        record = _to_dict(obj)
        for name, enabled in (join or {}).items():
            if not enabled:
                continue
            if not hasattr(obj, name):
                raise AdapterError(f"Model '{type(obj).__name__}' has no join '{name}'")
            related = getattr(obj, name)
            record[name] = _to_dict(related) if related is not None else None
        return record

    async def _run(self, work: Callable[[Session], T]) -> T:
        if self._session is not None:
            return await asyncio.to_thread(self._run_bound, work)
        return await asyncio.to_thread(self._run_own, work)

    def _run_bound(self, work: Callable[[Session], T]) -> T:
        try:
            result = work(self._session)
            self._session.flush()
            return result
        except IntegrityError as exc:
            raise _translate_integrity_error(exc) from exc
        except SQLAlchemyError as exc:
            raise AdapterError(str(exc)) from exc

    def _run_own(self, work: Callable[[Session], T]) -> T:
        db = self.session_factory()
        try:
            result = work(db)
            db.commit()
            return result
        except IntegrityError as exc:
            db.rollback()
            raise _translate_integrity_error(exc) from exc
        except SQLAlchemyError as exc:
            db.rollback()
            raise AdapterError(str(exc)) from exc
        finally:
            db.close()

    async def create(self, model: str, data: dict[str, Any]) -> dict[str, Any]:
        cls = self._model(model)

        def work(db: Session) -> dict[str, Any]:
            obj = cls(**data)
            db.add(obj)
            db.flush()
            return _to_dict(obj)

        return await self._run(work)

    async def find_one(
        self,
        model: str,
        where: list[Where],
        join: dict[str, bool] | None = None,
    ) -> dict[str, Any] | None:
        def work(db: Session) -> dict[str, Any] | None:
            obj = self._query(db, model, where).first()
            return self._serialize(obj, join) if obj is not None else None

        return await self._run(work)

    async def find_many(
        self,
        model: str,
        where: list[Where] | None = None,
        limit: int | None = None,
        offset: int | None = None,
        sort_by: SortBy | None = None,
        join: dict[str, bool] | None = None,
    ) -> list[dict[str, Any]]:
        cls = self._model(model)

        def work(db: Session) -> list[dict[str, Any]]:
            query = self._query(db, model, where)
            if sort_by is not None:
                column = getattr(cls, sort_by.field)
                query = query.order_by(column.desc() if sort_by.direction == "desc" else column.asc())
            if offset:
                query = query.offset(offset)
            if limit is not None:
                query = query.limit(limit)
            return [self._serialize(obj, join) for obj in query.all()]

        return await self._run(work)

    async def count(self, model: str, where: list[Where] | None = None) -> int:
        return await self._run(lambda db: self._query(db, model, where).count())

    async def update(
        self, model: str, where: list[Where], update: dict[str, Any]
    ) -> dict[str, Any] | None:
        def work(db: Session) -> dict[str, Any] | None:
            obj = self._query(db, model, where).first()
            if obj is None:
                return None
            for field, value in update.items():
                setattr(obj, field, value)
            db.flush()
            return _to_dict(obj)

        return await self._run(work)

    async def delete(self, model: str, where: list[Where]) -> None:
        def work(db: Session) -> None:
            deleted = self._query(db, model, where).delete(synchronize_session=False)
            logger.debug("Deleted %s %s row(s)", deleted, model)

        await self._run(work)

    async def transaction(self, fn: Callable[[Adapter], Awaitable[T]]) -> T:
        if self._session is not None:
            return await fn(self)
        db = self.session_factory()
        bound = SqlAlchemyAdapter(self.session_factory, models=self.models, session=db)
        try:
            result = await fn(bound)
            await asyncio.to_thread(db.commit)
            return result
        except BaseException:
            await asyncio.to_thread(db.rollback)
            raise
        finally:
            db.close()
