"""Base repository pattern for all data access."""

from typing import Generic, TypeVar, Type, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from ..database import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Base repository shared by the per-model repositories.

    Repositories never commit; the caller owns the transaction.
    """

    def __init__(self, model: Type[ModelType], session: AsyncSession):
        """
        Args:
            model: SQLAlchemy model class
            session: Async database session
        """
        self.model = model
        self.session = session

    async def get(self, id: UUID) -> Optional[ModelType]:
        """Get single record by ID."""
        return await self.session.get(self.model, id)

    async def add(self, instance: ModelType) -> ModelType:
        """Persist an already-built instance."""
        self.session.add(instance)
        await self.session.flush()
        return instance
