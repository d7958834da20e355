"""
Generic repository over one ORM model.

What:  Insert / fetch / filtered find / partial update / delete for a single
       entity type, all within the session the repository was built with.
How:   Thin wrappers over SQLAlchemy 2.0 `select`, `delete` and ORM attribute
       assignment. Repositories only flush; committing is the unit of work's job.
"""

import uuid
from typing import Any, Generic, Iterable, List, Mapping, Optional, Set, Type, TypeVar

from sqlalchemy import ColumnElement, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from localmarket.database import DocumentMixin

ModelT = TypeVar("ModelT", bound=DocumentMixin)

# Keys a client can never set, whether declared or sent as loose fields
RESERVED_KEYS = frozenset({"id", "_id", "created_at", "extra"})


def column_keys(model: Type[DocumentMixin]) -> Set[str]:
    return {column.key for column in model.__table__.columns} - {"extra"}  # type: ignore[attr-defined]


class Repository(Generic[ModelT]):
    """Base class; subclasses set `model` and add entity-specific queries."""

    model: Type[ModelT]

    def __init__(self, session: AsyncSession):
        self.session = session

    def build(self, fields: Mapping[str, Any], extra: Optional[Mapping[str, Any]] = None) -> ModelT:
        """
        Builds an unsaved entity from declared fields plus loose client fields.

        Loose fields that collide with a column or a reserved key are dropped,
        so an undeclared body field can never overwrite a managed column.
        """
        columns = column_keys(self.model)
        known = {k: v for k, v in fields.items() if k in columns and k not in RESERVED_KEYS}
        loose = {
            k: v for k, v in (extra or {}).items()
            if k not in columns and k not in RESERVED_KEYS
        }
        return self.model(**known, extra=loose)

    async def add(self, entity: ModelT) -> ModelT:
        self.session.add(entity)
        await self.session.flush()
        return entity

    async def get(self, entity_id: uuid.UUID, refresh: bool = False) -> Optional[ModelT]:
        """Fetch by primary key; `refresh` reloads an already-loaded instance."""
        return await self.session.get(self.model, entity_id, populate_existing=refresh)

    async def find(
        self,
        *criteria: ColumnElement[bool],
        order_by: Iterable[Any] = (),
        limit: Optional[int] = None,
    ) -> List[ModelT]:
        query = select(self.model).where(*criteria).order_by(*order_by)
        if limit is not None:
            query = query.limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def find_one(self, *criteria: ColumnElement[bool]) -> Optional[ModelT]:
        result = await self.session.execute(select(self.model).where(*criteria).limit(1))
        return result.scalar_one_or_none()

    async def count(self, *criteria: ColumnElement[bool]) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(self.model).where(*criteria)
        )
        return int(result.scalar() or 0)

    async def update(
        self,
        entity: ModelT,
        values: Mapping[str, Any],
        extra: Optional[Mapping[str, Any]] = None,
    ) -> ModelT:
        """
        Applies a partial update; unknown keys are merged into `extra`.

        `extra` carries unvalidated client fields. Like in `build`, those that
        collide with a column or a reserved key are dropped.
        """
        columns = column_keys(self.model)
        loose = dict(entity.extra or {})
        for key, value in values.items():
            if key in RESERVED_KEYS:
                continue
            if key in columns:
                setattr(entity, key, value)
            else:
                loose[key] = value
        for key, value in (extra or {}).items():
            if key not in columns and key not in RESERVED_KEYS:
                loose[key] = value
        # New dict so the JSON column is flagged dirty
        entity.extra = loose
        await self.session.flush()
        return entity

    async def delete_by_id(self, entity_id: uuid.UUID) -> bool:
        """Deletes one row; returns False when nothing matched."""
        result = await self.session.execute(
            delete(self.model)
            .where(self.model.id == entity_id)
            .execution_options(synchronize_session=False)
        )
        return (result.rowcount or 0) > 0
