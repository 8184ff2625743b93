"""Journal entry repository."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, and_

from .base import BaseRepository
from ..database import JournalEntry


class JournalRepository(BaseRepository[JournalEntry]):
    """Repository for JournalEntry operations."""

    async def get_recent(
        self,
        user_id: UUID,
        limit: int = 50,
        since: Optional[datetime] = None,
    ) -> List[JournalEntry]:
        """Get the latest entries, newest first."""
        conditions = [JournalEntry.user_id == user_id]
        if since is not None:
            conditions.append(JournalEntry.created_at >= since)

        result = await self.session.execute(
            select(JournalEntry)
            .where(and_(*conditions))
            .order_by(JournalEntry.created_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def get_in_range(
        self,
        user_id: UUID,
        start: datetime,
        end: datetime,
    ) -> List[JournalEntry]:
        """Get entries created inside [start, end], oldest first."""
        result = await self.session.execute(
            select(JournalEntry)
            .where(
                and_(
                    JournalEntry.user_id == user_id,
                    JournalEntry.created_at >= start,
                    JournalEntry.created_at <= end,
                )
            )
            .order_by(JournalEntry.created_at.asc())
        )
        return list(result.scalars().all())

    async def get_latest(self, user_id: UUID) -> Optional[JournalEntry]:
        result = await self.session.execute(
            select(JournalEntry)
            .where(JournalEntry.user_id == user_id)
            .order_by(JournalEntry.created_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()
