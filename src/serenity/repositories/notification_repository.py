"""Notification repository."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, and_

from .base import BaseRepository
from ..database import Notification, WeeklyReport


class NotificationRepository(BaseRepository[Notification]):
    """Repository for Notification records."""

    async def get_since(self, user_id: UUID, since: datetime) -> List[Notification]:
        result = await self.session.execute(
            select(Notification)
            .where(
                and_(
                    Notification.user_id == user_id,
                    Notification.created_at >= since,
                )
            )
            .order_by(Notification.created_at.desc())
        )
        return list(result.scalars().all())

    async def exists_since(
        self,
        user_id: UUID,
        prompt_type: str,
        since: datetime,
        intervention_id: Optional[str] = None,
    ) -> bool:
        """
        Whether a notification with this prompt type was created since ``since``.

        Metadata is matched in Python so the check works the same on SQLite
        JSON and PostgreSQL JSONB.
        """
        for notification in await self.get_since(user_id, since):
            payload = notification.payload or {}
            if payload.get("prompt_type") != prompt_type:
                continue
            if intervention_id is not None and payload.get("intervention_id") != intervention_id:
                continue
            return True
        return False


class WeeklyReportRepository(BaseRepository[WeeklyReport]):
    """Repository for WeeklyReport records."""

    async def get_latest(self, user_id: UUID) -> Optional[WeeklyReport]:
        result = await self.session.execute(
            select(WeeklyReport)
            .where(WeeklyReport.user_id == user_id)
            .order_by(WeeklyReport.created_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()
