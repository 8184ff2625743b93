"""
User-visible notifications raised by background jobs.

Metadata is one of a closed set of shapes selected by ``prompt_type``;
anything else is rejected when parsed. Jobs hand metadata to a
``NotificationSink`` and never depend on how it is delivered.
"""

from datetime import datetime
from typing import Annotated, Literal, Optional, Protocol, Union
from uuid import UUID

from loguru import logger
from pydantic import BaseModel, Field, TypeAdapter
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import Notification, utcnow

SYSTEM_NOTIFICATION_TYPE = "system"


# =============================================================================
# Metadata
# =============================================================================

class EffectivenessPromptMetadata(BaseModel):
    """Asks the user to rate an intervention they completed."""
    prompt_type: Literal["effectiveness"] = "effectiveness"
    message: str
    intervention_id: str
    intervention_name: str
    days_since_completion: Optional[int] = None
    mood_before: Optional[float] = None
    mood_after: Optional[float] = None
    mood_improvement: Optional[float] = None


class InterventionReminderMetadata(BaseModel):
    """Nudge to continue an idle active intervention."""
    prompt_type: Literal["reminder"] = "reminder"
    message: str
    intervention_id: str
    intervention_name: str
    days_since_last_active: int
    current_step: int
    total_steps: int
    progress_percent: int


class JournalReminderMetadata(BaseModel):
    """Nudge to write after a few days without journaling."""
    prompt_type: Literal["journal"] = "journal"
    message: str
    days_since: int


NotificationMetadata = Annotated[
    Union[EffectivenessPromptMetadata, InterventionReminderMetadata, JournalReminderMetadata],
    Field(discriminator="prompt_type"),
]

metadata_adapter = TypeAdapter(NotificationMetadata)

NOTIFICATION_TITLES = {
    "effectiveness": "How did it go?",
    "reminder": "Intervention Reminder",
    "journal": "Journal Reminder",
}


def parse_metadata(payload: dict) -> NotificationMetadata:
    """Validate a stored metadata dict into its typed shape."""
    return metadata_adapter.validate_python(payload)


# =============================================================================
# Sinks
# =============================================================================

class NotificationSink(Protocol):
    async def notify(
        self,
        session: AsyncSession,
        user_id: UUID,
        metadata: NotificationMetadata,
        created_at: Optional[datetime] = None,
    ) -> Notification: ...


class DatabaseNotificationSink:
    """Stores notifications in the ``notifications`` table. The caller commits."""

    async def notify(
        self,
        session: AsyncSession,
        user_id: UUID,
        metadata: NotificationMetadata,
        created_at: Optional[datetime] = None,
    ) -> Notification:
        notification = Notification(
            user_id=user_id,
            actor_id=user_id,
            type=SYSTEM_NOTIFICATION_TYPE,
            title=NOTIFICATION_TITLES[metadata.prompt_type],
            body=metadata.message,
            is_read=False,
            payload=metadata.model_dump(mode="json"),
            created_at=created_at or utcnow(),
        )
        session.add(notification)
        await session.flush()

        logger.info(f"Notification created: {metadata.prompt_type} for user {user_id}")
        return notification
