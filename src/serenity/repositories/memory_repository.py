"""Long-term memory repository."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, and_, func

from .base import BaseRepository
from ..database import LongTermMemory


class LongTermMemoryRepository(BaseRepository[LongTermMemory]):
    """Repository for LongTermMemory facts."""

    async def get_recent(
        self,
        user_id: UUID,
        limit: int = 100,
        since: Optional[datetime] = None,
    ) -> List[LongTermMemory]:
        conditions = [LongTermMemory.user_id == user_id]
        if since is not None:
            conditions.append(LongTermMemory.timestamp >= since)

        result = await self.session.execute(
            select(LongTermMemory)
            .where(and_(*conditions))
            .order_by(LongTermMemory.timestamp.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def find_recent_insight(
        self,
        user_id: UUID,
        keyword: str,
        since: datetime,
    ) -> Optional[LongTermMemory]:
        """Latest 'insight' memory mentioning ``keyword`` (case-insensitive)."""
        result = await self.session.execute(
            select(LongTermMemory)
            .where(
                and_(
                    LongTermMemory.user_id == user_id,
                    LongTermMemory.memory_type == "insight",
                    func.lower(LongTermMemory.content).contains(keyword.lower()),
                    LongTermMemory.timestamp >= since,
                )
            )
            .order_by(LongTermMemory.timestamp.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()
