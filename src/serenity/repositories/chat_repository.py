"""Chat session repository."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, and_, func

from .base import BaseRepository
from ..database import ChatSession


class ChatSessionRepository(BaseRepository[ChatSession]):
    """Repository for ChatSession operations. Messages load eagerly."""

    async def get_recent(
        self,
        user_id: UUID,
        limit: int = 20,
        since: Optional[datetime] = None,
    ) -> List[ChatSession]:
        """Get the latest sessions, newest first."""
        conditions = [ChatSession.user_id == user_id]
        if since is not None:
            conditions.append(ChatSession.start_time >= since)

        result = await self.session.execute(
            select(ChatSession)
            .where(and_(*conditions))
            .order_by(ChatSession.start_time.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def get_in_range(
        self,
        user_id: UUID,
        start: datetime,
        end: datetime,
    ) -> List[ChatSession]:
        """Get sessions started inside [start, end], oldest first."""
        result = await self.session.execute(
            select(ChatSession)
            .where(
                and_(
                    ChatSession.user_id == user_id,
                    ChatSession.start_time >= start,
                    ChatSession.start_time <= end,
                )
            )
            .order_by(ChatSession.start_time.asc())
        )
        return list(result.scalars().all())

    async def count_since(self, user_id: UUID, since: datetime) -> int:
        result = await self.session.execute(
            select(func.count(ChatSession.id)).where(
                and_(
                    ChatSession.user_id == user_id,
                    ChatSession.start_time >= since,
                )
            )
        )
        return result.scalar_one()

    async def get_active_user_ids(self, since: datetime) -> List[UUID]:
        """Distinct users that started a session since ``since``."""
        result = await self.session.execute(
            select(ChatSession.user_id)
            .where(ChatSession.start_time >= since)
            .distinct()
        )
        return list(result.scalars().all())
