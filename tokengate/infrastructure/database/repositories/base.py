"""Base repository implementation with common CRUD operations."""
from abc import ABC
from typing import Optional, TypeVar, Generic, Type
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError

T = TypeVar('T')


class RepositoryError(Exception):
    """Repository operation error."""
    pass


class BaseRepository(ABC, Generic[T]):
    """Base repository implementation with common CRUD operations."""

    def __init__(self, session: AsyncSession, model_class: Type[T]):
        self.session = session
        self.model_class = model_class

    async def find_by_id(self, id: UUID) -> Optional[T]:
        """Find entity by ID."""
        return await self.session.get(self.model_class, id)

    async def save(self, entity: T) -> T:
        """Save entity (create or update)."""
        try:
            self.session.add(entity)
            await self.session.flush()
            return entity
        except IntegrityError as e:
            raise RepositoryError(f"Failed to save entity: {str(e)}") from e
