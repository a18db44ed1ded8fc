"""Base repository shared by the chat features."""
from abc import ABC
from typing import Any, Generic, List, Type, TypeVar

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from api.shared.entities.base import BaseEntity

T = TypeVar("T", bound=BaseEntity)


class BaseRepository(ABC, Generic[T]):
    """Base repository with the CRUD operations every entity needs.

    Entity defaults are computed client-side, so a flush is enough to
    populate ids and timestamps; nothing here refreshes from the store.
    """

    model: Type[T]

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, entity: T) -> T:
        """Create new entity."""
        self.session.add(entity)
        await self.session.flush()
        return entity

    async def get_by_fields(self, **filters: Any) -> List[T]:
        """Get entities by multiple field values."""
        stmt = select(self.model)

        for field_name, value in filters.items():
            field = getattr(self.model, field_name)
            stmt = stmt.where(field == value)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def delete_by_fields(self, **filters: Any) -> int:
        """Delete entities matching all field values; returns rows removed."""
        stmt = delete(self.model)
        for field_name, value in filters.items():
            field = getattr(self.model, field_name)
            stmt = stmt.where(field == value)
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    async def exists(self, **filters: Any) -> bool:
        """Check if an entity matching all field values exists."""
        stmt = select(self.model.id)
        for field_name, value in filters.items():
            field = getattr(self.model, field_name)
            stmt = stmt.where(field == value)
        result = await self.session.execute(stmt.limit(1))
        return result.scalar_one_or_none() is not None
