"""
Durable store adapter: uniform CRUD over named record collections.

Every manager talks to the database through this class and only ever sees
plain dict records, so the schema stays an implementation detail of the
adapter. Predicates use the filter-dict format of ``app.utils.db.filtering``.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Type

from sqlalchemy import DateTime, bindparam, inspect, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.db import Base, SessionLocal
from app.exceptions import PersistenceError
from app.infra.logging_config import get_logger
from app.models import (
    AdvisorAssignment,
    AdvisorRotation,
    ConversationLog,
    ConversationSession,
    ModeState,
    SaleStatus,
)
from app.utils.db.db_session_helper import db_session
from app.utils.db.filtering import apply_filters, apply_ordering

logger = get_logger("store")

Record = Dict[str, Any]
Predicate = Optional[Mapping[str, Any]]

COLLECTIONS: Dict[str, Type[Base]] = {
    "sessions": ConversationSession,
    "mode_states": ModeState,
    "conversation_logs": ConversationLog,
    "advisor_assignments": AdvisorAssignment,
    "advisor_rotation": AdvisorRotation,
    "sale_status": SaleStatus,
}


def to_record(obj: Any) -> Record:
    """Convert an ORM instance into a plain dict keyed by attribute name."""
    mapper = inspect(obj).mapper
    return {attr.key: getattr(obj, attr.key) for attr in mapper.column_attrs}


class DurableStore:
    """
    Async facade over the relational store. Each call runs its session in a
    worker thread so the event loop keeps serving other conversations. All
    failures surface as PersistenceError.
    """

    def __init__(
        self,
        session_factory: Optional[Callable[[], Session]] = None,
        collections: Optional[Mapping[str, Type[Base]]] = None,
    ) -> None:
        self._session_factory = session_factory or SessionLocal
        self._collections = dict(collections or COLLECTIONS)

    def model_for(self, collection: str) -> Type[Base]:
        try:
            return self._collections[collection]
        except KeyError:
            raise ValueError(f"Unknown collection: {collection}") from None

    async def insert(self, collection: str, fields: Mapping[str, Any]) -> Any:
        model = self.model_for(collection)
        return await self._run("insert", collection, self._insert, model, dict(fields))

    async def update(
        self, collection: str, fields: Mapping[str, Any], predicate: Predicate
    ) -> int:
        """Update every matching row; returns the number of rows touched."""
        model = self.model_for(collection)
        return await self._run(
            "update", collection, self._update, model, dict(fields), dict(predicate or {})
        )

    async def find_one(self, collection: str, predicate: Predicate) -> Optional[Record]:
        model = self.model_for(collection)
        return await self._run(
            "find_one", collection, self._find_one, model, dict(predicate or {})
        )

    async def find_all(
        self,
        collection: str,
        predicate: Predicate = None,
        order_by: Optional[Sequence[str] | str] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[Record]:
        model = self.model_for(collection)
        return await self._run(
            "find_all",
            collection,
            self._find_all,
            model,
            dict(predicate or {}),
            order_by,
            limit,
            offset,
        )

    async def delete(self, collection: str, predicate: Predicate) -> int:
        model = self.model_for(collection)
        return await self._run(
            "delete", collection, self._delete, model, dict(predicate or {})
        )

    async def query(
        self, sql: str, params: Optional[Mapping[str, Any]] = None
    ) -> List[Record]:
        """Raw SQL escape hatch for aggregates and date-range reads."""
        params = dict(params or {})
        statement = text(sql)
        datetime_params = [
            bindparam(name, type_=DateTime(timezone=True))
            for name, value in params.items()
            if isinstance(value, datetime)
        ]
        if datetime_params:
            statement = statement.bindparams(*datetime_params)
        return await self._run("query", "raw", self._query, statement, params)

    async def _run(
        self, operation: str, collection: str, fn: Callable[..., Any], *args: Any
    ) -> Any:
        # Sessions are opened and closed inside the worker thread.
        try:
            return await asyncio.to_thread(fn, *args)
        except SQLAlchemyError as e:
            raise self._wrap(operation, collection, e) from e

    def _insert(self, model: Type[Base], fields: Record) -> Any:
        with db_session(self._session_factory) as db:
            obj = model(**fields)
            db.add(obj)
            db.commit()
            db.refresh(obj)
            return obj.id

    def _update(self, model: Type[Base], fields: Record, predicate: Record) -> int:
        with db_session(self._session_factory) as db:
            rows = apply_filters(db.query(model), model, predicate).all()
            for obj in rows:
                for key, value in fields.items():
                    setattr(obj, key, value)
            db.commit()
            return len(rows)

    def _find_one(self, model: Type[Base], predicate: Record) -> Optional[Record]:
        with db_session(self._session_factory) as db:
            obj = apply_filters(db.query(model), model, predicate).first()
            return to_record(obj) if obj is not None else None

    def _find_all(
        self,
        model: Type[Base],
        predicate: Record,
        order_by: Optional[Sequence[str] | str],
        limit: Optional[int],
        offset: int,
    ) -> List[Record]:
        with db_session(self._session_factory) as db:
            query = apply_filters(db.query(model), model, predicate)
            query = apply_ordering(query, model, order_by)
            if offset:
                query = query.offset(offset)
            if limit is not None:
                query = query.limit(limit)
            return [to_record(obj) for obj in query.all()]

    def _delete(self, model: Type[Base], predicate: Record) -> int:
        with db_session(self._session_factory) as db:
            deleted = apply_filters(db.query(model), model, predicate).delete(
                synchronize_session=False
            )
            db.commit()
            return deleted

    def _query(self, statement: Any, params: Record) -> List[Record]:
        with db_session(self._session_factory) as db:
            result = db.execute(statement, params)
            if not result.returns_rows:
                db.commit()
                return []
            return [dict(row._mapping) for row in result]

    @staticmethod
    def _wrap(operation: str, collection: str, error: Exception) -> PersistenceError:
        logger.warning("Store %s on %s failed: %s", operation, collection, error)
        return PersistenceError(f"{operation} on {collection} failed: {error}")
