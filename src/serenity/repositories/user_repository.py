"""User repository."""

from typing import List

from sqlalchemy import select

from .base import BaseRepository
from ..database import User


class UserRepository(BaseRepository[User]):
    """Repository for User lookups used by the batch jobs."""

    async def list_all(self, limit: int = 1000) -> List[User]:
        """Get users in signup order, capped at ``limit``."""
        result = await self.session.execute(
            select(User).order_by(User.created_at).limit(limit)
        )
        return list(result.scalars().all())
