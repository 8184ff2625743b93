"""Mood repository."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, and_

from .base import BaseRepository
from ..database import Mood


class MoodRepository(BaseRepository[Mood]):
    """Repository for Mood check-ins."""

    async def get_in_range(
        self,
        user_id: UUID,
        start: datetime,
        end: Optional[datetime] = None,
        include_end: bool = True,
        limit: Optional[int] = None,
    ) -> List[Mood]:
        """Get moods from ``start`` up to ``end``, oldest first."""
        conditions = [Mood.user_id == user_id, Mood.timestamp >= start]
        if end is not None:
            conditions.append(Mood.timestamp <= end if include_end else Mood.timestamp < end)

        query = select(Mood).where(and_(*conditions)).order_by(Mood.timestamp.asc())
        if limit is not None:
            query = query.limit(limit)

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def get_recent(self, user_id: UUID, limit: int = 100) -> List[Mood]:
        """Get the latest moods, newest first."""
        result = await self.session.execute(
            select(Mood)
            .where(Mood.user_id == user_id)
            .order_by(Mood.timestamp.desc())
            .limit(limit)
        )
        return list(result.scalars().all())
