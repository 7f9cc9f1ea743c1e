"""
Base Repository - common async database operations for all repositories.

Store errors are translated here: ``IntegrityError`` on a unique column
becomes a 409 ``ConflictError``, anything else from SQLAlchemy becomes a
``DatabaseError``.
"""

import logging
from dataclasses import dataclass
from typing import Any, Generic, Optional, Sequence, Type, TypeVar
from uuid import UUID

from sqlalchemy import func, select, update, Select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ConflictError, DatabaseError
from app.utils.pagination import Pagination, calculate_pagination

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class PaginatedResult(Generic[T]):
    """One page of rows plus its pagination metadata."""
    items: list[T]
    pagination: Pagination


class BaseRepository(Generic[T]):
    model: Type[T]
    # Conflict code raised when a unique constraint fails on insert/update
    conflict_code = "SLUG_EXISTS"
    conflict_message = "A record with this slug already exists"

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _commit(self) -> None:
        try:
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            logger.info("Unique constraint violated on %s: %s", self.model.__tablename__, e.orig)
            raise ConflictError(self.conflict_message, self.conflict_code) from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("Commit failed for %s: %s", self.model.__tablename__, e)
            raise DatabaseError(f"Failed to save {self.model.__name__}", e) from e

    async def _execute(self, stmt):
        try:
            return await self.session.execute(stmt)
        except SQLAlchemyError as e:
            logger.error("Query failed on %s: %s", self.model.__tablename__, e)
            raise DatabaseError(f"Failed to query {self.model.__name__}", e) from e

    async def create(self, **kwargs) -> T:
        entity = self.model(**kwargs)
        self.session.add(entity)
        await self._commit()
        await self.session.refresh(entity)
        logger.debug("Created %s %s", self.model.__name__, entity.id)
        return entity

    async def save(self, entity: T) -> T:
        """Commit pending changes to ``entity`` and reload it."""
        self.session.add(entity)
        await self._commit()
        await self.session.refresh(entity)
        return entity

    async def update(self, entity: T, **fields) -> T:
        for key, value in fields.items():
            setattr(entity, key, value)
        return await self.save(entity)

    async def increment(self, entity_id: UUID, field: str) -> bool:
        """Atomic ``SET field = field + 1``; False when no row matched."""
        column = getattr(self.model, field)
        stmt = (
            update(self.model)
            .where(self.model.id == entity_id)
            .values({column: func.coalesce(column, 0) + 1})
            .execution_options(synchronize_session=False)
        )
        result = await self._execute(stmt)
        await self._commit()
        return result.rowcount > 0

    async def delete(self, entity: T) -> None:
        await self.session.delete(entity)
        await self._commit()

    async def get_by_id(self, entity_id: UUID | str) -> Optional[T]:
        if isinstance(entity_id, str):
            try:
                entity_id = UUID(entity_id)
            except ValueError:
                return None
        result = await self._execute(select(self.model).where(self.model.id == entity_id))
        return result.scalar_one_or_none()

    async def get_by_slug(self, slug: str) -> Optional[T]:
        result = await self._execute(select(self.model).where(self.model.slug == slug))
        return result.scalar_one_or_none()

    async def slug_exists(self, slug: str, exclude_id: Optional[UUID] = None) -> bool:
        stmt = select(func.count()).select_from(self.model).where(self.model.slug == slug)
        if exclude_id is not None:
            stmt = stmt.where(self.model.id != exclude_id)
        result = await self._execute(stmt)
        return (result.scalar() or 0) > 0

    async def count(self, *conditions) -> int:
        stmt = select(func.count()).select_from(self.model)
        if conditions:
            stmt = stmt.where(*conditions)
        result = await self._execute(stmt)
        return result.scalar() or 0

    async def find(self, *conditions, order_by: Sequence[Any] = (), limit: Optional[int] = None) -> list[T]:
        stmt = select(self.model)
        if conditions:
            stmt = stmt.where(*conditions)
        if order_by:
            stmt = stmt.order_by(*order_by)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self._execute(stmt)
        return list(result.scalars().all())

    async def paginate(self, stmt: Select, page: Optional[int], limit: Optional[int]) -> PaginatedResult[T]:
        """Run ``stmt`` (a filtered, ordered select of the model) for one page."""
        count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
        total = (await self._execute(count_stmt)).scalar() or 0
        pagination = calculate_pagination(page, limit, total)

        result = await self._execute(stmt.offset(pagination.offset).limit(pagination.items_per_page))
        return PaginatedResult(items=list(result.scalars().all()), pagination=pagination)
