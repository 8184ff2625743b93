"""Intervention progress repository."""

from datetime import datetime
from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy import select, and_, or_, func

from .base import BaseRepository
from ..database import InterventionProgress


class InterventionProgressRepository(BaseRepository[InterventionProgress]):
    """Repository for InterventionProgress records."""

    async def get_latest(
        self,
        user_id: UUID,
        intervention_id: str,
        statuses: Optional[Sequence[str]] = None,
        order_by: str = "started_at",
    ) -> Optional[InterventionProgress]:
        """Most recent record for an intervention, optionally limited to some statuses."""
        conditions = [
            InterventionProgress.user_id == user_id,
            InterventionProgress.intervention_id == intervention_id,
        ]
        if statuses:
            conditions.append(InterventionProgress.status.in_(list(statuses)))

        column = getattr(InterventionProgress, order_by)
        result = await self.session.execute(
            select(InterventionProgress)
            .where(and_(*conditions))
            .order_by(column.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def list_active(self, user_id: UUID) -> List[InterventionProgress]:
        """Active interventions, most recently touched first."""
        result = await self.session.execute(
            select(InterventionProgress)
            .where(
                and_(
                    InterventionProgress.user_id == user_id,
                    InterventionProgress.status == "active",
                )
            )
            .order_by(InterventionProgress.last_active_at.desc())
        )
        return list(result.scalars().all())

    async def count_active(self, user_id: UUID) -> int:
        result = await self.session.execute(
            select(func.count(InterventionProgress.id)).where(
                and_(
                    InterventionProgress.user_id == user_id,
                    InterventionProgress.status == "active",
                )
            )
        )
        return result.scalar_one()

    async def list_for_user(
        self,
        user_id: UUID,
        intervention_type: Optional[str] = None,
        since: Optional[datetime] = None,
    ) -> List[InterventionProgress]:
        """All records for a user, newest first."""
        conditions = [InterventionProgress.user_id == user_id]
        if intervention_type:
            conditions.append(InterventionProgress.intervention_type == intervention_type)
        if since is not None:
            conditions.append(InterventionProgress.started_at >= since)

        result = await self.session.execute(
            select(InterventionProgress)
            .where(and_(*conditions))
            .order_by(InterventionProgress.started_at.desc())
        )
        return list(result.scalars().all())

    async def find_recent_of_type(
        self,
        user_id: UUID,
        intervention_type: str,
        since: datetime,
    ) -> Optional[InterventionProgress]:
        """Latest active or completed record of a type created since ``since``."""
        result = await self.session.execute(
            select(InterventionProgress)
            .where(
                and_(
                    InterventionProgress.user_id == user_id,
                    InterventionProgress.intervention_type == intervention_type,
                    InterventionProgress.status.in_(["active", "completed"]),
                    InterventionProgress.created_at >= since,
                )
            )
            .order_by(InterventionProgress.created_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_stale_active(self, before: datetime, limit: int = 100) -> List[InterventionProgress]:
        """Active records untouched since ``before``, oldest first."""
        result = await self.session.execute(
            select(InterventionProgress)
            .where(
                and_(
                    InterventionProgress.status == "active",
                    InterventionProgress.last_active_at < before,
                )
            )
            .order_by(InterventionProgress.last_active_at.asc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def get_unrated_completed(
        self,
        start: datetime,
        end: datetime,
        limit: int = 100,
    ) -> List[InterventionProgress]:
        """Completed in [start, end) and never rated, most recent first."""
        result = await self.session.execute(
            select(InterventionProgress)
            .where(
                and_(
                    InterventionProgress.status == "completed",
                    InterventionProgress.completed_at >= start,
                    InterventionProgress.completed_at < end,
                    or_(
                        InterventionProgress.effectiveness_rating.is_(None),
                        InterventionProgress.effectiveness_rating == 0,
                    ),
                )
            )
            .order_by(InterventionProgress.completed_at.desc())
            .limit(limit)
        )
        return list(result.scalars().all())
