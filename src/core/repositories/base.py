"""Base repository pattern for data access abstraction (Clean Architecture)."""

import logging
from typing import Any, Generic, TypeVar, Type, Optional, List
from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.base import Base

T = TypeVar('T', bound=Base)
logger = logging.getLogger(__name__)


class BaseRepository(Generic[T]):
    """
    Generic repository for database operations.

    Holds the session and model; subclasses add the queries
    their use cases need.
    """

    def __init__(self, model: Type[T], session: AsyncSession):
        self.model = model
        self.session = session

    async def get_by_id(self, id: Any) -> Optional[T]:
        """Get entity by primary key."""
        return await self._first(select(self.model).where(self.model.id == id))

    async def create(self, entity: T) -> T:
        """Add a new entity and flush it to obtain its primary key."""
        self.session.add(entity)
        await self.session.flush()
        return entity

    async def _all(self, stmt: Select) -> List[T]:
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def _first(self, stmt: Select) -> Optional[T]:
        result = await self.session.execute(stmt)
        return result.scalars().first()
