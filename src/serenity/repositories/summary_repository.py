"""Conversation summary repository."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, and_, delete

from .base import BaseRepository
from ..database import ConversationSummary


class ConversationSummaryRepository(BaseRepository[ConversationSummary]):
    """Repository for ConversationSummary records."""

    async def find_within(
        self,
        user_id: UUID,
        summary_type: str,
        period_start: datetime,
        period_end: datetime,
    ) -> Optional[ConversationSummary]:
        """Summary of this type whose whole period lies inside [period_start, period_end]."""
        result = await self.session.execute(
            select(ConversationSummary)
            .where(
                and_(
                    ConversationSummary.user_id == user_id,
                    ConversationSummary.summary_type == summary_type,
                    ConversationSummary.period_start >= period_start,
                    ConversationSummary.period_start <= period_end,
                    ConversationSummary.period_end >= period_start,
                    ConversationSummary.period_end <= period_end,
                )
            )
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def exists_starting_in(
        self,
        user_id: UUID,
        summary_type: str,
        range_start: datetime,
        range_end: datetime,
    ) -> bool:
        """Whether a summary of this type starts inside [range_start, range_end)."""
        result = await self.session.execute(
            select(ConversationSummary.id)
            .where(
                and_(
                    ConversationSummary.user_id == user_id,
                    ConversationSummary.summary_type == summary_type,
                    ConversationSummary.period_start >= range_start,
                    ConversationSummary.period_start < range_end,
                )
            )
            .limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def get_recent(
        self,
        user_id: UUID,
        limit: int = 4,
        summary_type: Optional[str] = None,
    ) -> List[ConversationSummary]:
        """Latest summaries by period end, optionally of one type."""
        conditions = [ConversationSummary.user_id == user_id]
        if summary_type:
            conditions.append(ConversationSummary.summary_type == summary_type)

        result = await self.session.execute(
            select(ConversationSummary)
            .where(and_(*conditions))
            .order_by(ConversationSummary.period_end.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def delete_created_before(self, cutoff: datetime) -> int:
        """Delete weekly/monthly summaries created before ``cutoff``."""
        result = await self.session.execute(
            delete(ConversationSummary).where(
                and_(
                    ConversationSummary.created_at < cutoff,
                    ConversationSummary.summary_type.in_(["weekly", "monthly"]),
                )
            )
        )
        return result.rowcount or 0
