"""Personalization repository with optimistic version checks."""

from typing import Optional
from uuid import UUID

from sqlalchemy import select, inspect
from sqlalchemy.orm.exc import StaleDataError

from .base import BaseRepository
from ..core.exceptions import ConcurrentUpdateError
from ..database import Personalization

# Changes to any of these bump Personalization.version
VERSIONED_FIELDS = ("communication", "behavioral_tendencies", "adaptation_rules", "intent")


def default_personalization_fields() -> dict:
    """Field values for a freshly created profile."""
    return {
        "intent": {"primary_goals": [], "current_focus": [], "priorities": {}},
        "communication": {
            "inferred_style": "gentle",
            "verbosity": "moderate",
            "response_format": "conversational",
            "emoji_usage": "minimal",
            "preferred_topics": [],
            "topics_to_avoid": [],
        },
        "behavioral_tendencies": [],
        "time_patterns": {},
        "engagement": {
            "session_frequency": 0,
            "avg_session_length": 0,
            "avg_messages_per_session": 0,
            "response_quality": 0.5,
            "trend": "stable",
        },
        "adaptation_rules": [],
        "user_overrides": {},
        "explainability": {},
        "data_quality": 0.3,
        "decay_rate": 0.05,
        "personalization_enabled": True,
        "version": 1,
    }


class PersonalizationRepository(BaseRepository[Personalization]):
    """Repository for the per-user Personalization record."""

    async def get_by_user(self, user_id: UUID) -> Optional[Personalization]:
        result = await self.session.execute(
            select(Personalization).where(Personalization.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_or_create(self, user_id: UUID) -> Personalization:
        """Load the profile, creating it with defaults on first use."""
        record = await self.get_by_user(user_id)
        if record is None:
            record = Personalization(user_id=user_id, **default_personalization_fields())
            self.session.add(record)
            await self.session.flush()
        return record

    async def save(self, record: Personalization, force_version_bump: bool = False) -> Personalization:
        """
        Flush pending changes, bumping ``version`` when versioned fields moved.

        Raises:
            ConcurrentUpdateError: the stored row was written by someone else
                since this record was loaded.
        """
        state = inspect(record)
        if state.persistent and (force_version_bump or self._versioned_fields_changed(record)):
            record.version = (record.version or 1) + 1

        try:
            await self.session.flush()
        except StaleDataError as exc:
            raise ConcurrentUpdateError("Personalization", record.user_id, record.version) from exc
        return record

    @staticmethod
    def _versioned_fields_changed(record: Personalization) -> bool:
        state = inspect(record)
        for name in VERSIONED_FIELDS:
            history = state.attrs[name].history
            if history.has_changes() and list(history.added) != list(history.deleted):
                return True
        return False
