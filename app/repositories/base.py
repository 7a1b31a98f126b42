from __future__ import annotations

import logging
from typing import Any, Generic, Sequence, Type, TypeVar

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from app.core.database import Base

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)


class BaseRepository(Generic[ModelT]):
    """Generic CRUD over one mapped table. Commits per call."""

    model: Type[ModelT]

    def __init__(self, db: Session, model: Type[ModelT] | None = None) -> None:
        self.db = db
        if model is not None:
            self.model = model

    def find_by_id(self, entity_id: str) -> ModelT | None:
        return self.db.query(self.model).filter(self.model.id == str(entity_id)).first()

    def _query(self, criteria: tuple[Any, ...], filters: dict[str, Any]) -> Query:
        query = self.db.query(self.model)
        if criteria:
            query = query.filter(*criteria)
        for column, value in filters.items():
            query = query.filter(getattr(self.model, column) == value)
        return query

    def _default_order(self) -> list[Any]:
        created_at = getattr(self.model, "created_at", None)
        return [created_at.desc()] if created_at is not None else []

    def find_where(
        self,
        *criteria: Any,
        order_by: Sequence[Any] | None = None,
        limit: int | None = None,
        offset: int = 0,
        **filters: Any,
    ) -> list[ModelT]:
        """Rows matching every SQL criterion and ``column=value`` filter, newest first by default."""
        query = self._query(criteria, filters).order_by(*(order_by if order_by is not None else self._default_order()))
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def find_all(
        self,
        limit: int | None = None,
        offset: int = 0,
        order_by: Sequence[Any] | None = None,
    ) -> list[ModelT]:
        return self.find_where(order_by=order_by, limit=limit, offset=offset)

    def count(self, *criteria: Any, **filters: Any) -> int:
        return self._query(criteria, filters).count()

    def create(self, **values: Any) -> ModelT:
        entity = self.model(**values)
        self.db.add(entity)
        self.db.commit()
        self.db.refresh(entity)
        return entity

    def update(self, entity_id: str, **values: Any) -> ModelT | None:
        entity = self.find_by_id(entity_id)
        if entity is None:
            return None
        for column, value in values.items():
            setattr(entity, column, value)
        self.db.commit()
        self.db.refresh(entity)
        return entity

    def delete(self, entity_id: str) -> bool:
        entity = self.find_by_id(entity_id)
        if entity is None:
            return False
        self.db.delete(entity)
        self.db.commit()
        return True

    def health_check(self) -> bool:
        try:
            self.db.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError:
            logger.exception("database health check failed")
            return False
