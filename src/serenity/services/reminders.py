"""
Daily reminder jobs.

``InterventionReminderJob`` nudges users back into interventions they left
idle and asks for ratings on ones they recently finished.
``JournalReminderJob`` nudges users who have stopped journaling. Both send
at most one notification of a kind per day and process every item in its
own session, so one failure never blocks the rest.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID

from loguru import logger
from sqlalchemy.ext.asyncio import async_sessionmaker

from ..config import Settings, settings as default_settings
from ..database import InterventionProgress, JournalEntry, Notification, User, utcnow
from ..interventions.effectiveness import PROMPT_WINDOW_DAYS, prompt_for_effectiveness_rating
from ..repositories import InterventionProgressRepository, JournalRepository, NotificationRepository, UserRepository
from ..utils.dates import start_of_day
from .notifications import (
    DatabaseNotificationSink,
    InterventionReminderMetadata,
    JournalReminderMetadata,
    NotificationSink,
)

BATCH_LIMIT = 100
USER_LIMIT = 1000


@dataclass
class ReminderRunResult:
    sent: int = 0
    skipped: int = 0
    errors: int = 0
    effectiveness_prompts: int = 0

    def as_dict(self) -> dict:
        return {
            "sent": self.sent,
            "skipped": self.skipped,
            "errors": self.errors,
            "effectiveness_prompts": self.effectiveness_prompts,
        }


def progress_percent(current_step: int, total_steps: int) -> int:
    if not total_steps or total_steps <= 0:
        return 0
    return round(current_step / total_steps * 100)


def intervention_reminder_message(name: str, days_inactive: int, current_step: int, total_steps: int) -> str:
    percent = progress_percent(current_step, total_steps)
    if percent == 0:
        return f'You started "{name}" {days_inactive} days ago. Ready to begin step 1?'
    if percent < 50:
        return f'You\'re on step {current_step} of {total_steps} for "{name}". Ready to continue?'
    return f'You\'re {percent}% through "{name}"! Keep going - you\'re doing great!'


def journal_reminder_message(days_since: int) -> str:
    return (
        f"It's been {days_since} days since your last journal entry. "
        f"How has your day been? Take a moment to reflect."
    )


# =============================================================================
# Intervention Reminders
# =============================================================================

class InterventionReminderJob:
    """Reminders for idle interventions plus effectiveness prompts for finished ones."""

    def __init__(
        self,
        session_factory: async_sessionmaker,
        sink: Optional[NotificationSink] = None,
        settings: Optional[Settings] = None,
    ):
        self.session_factory = session_factory
        self.sink = sink or DatabaseNotificationSink()
        self.settings = settings or default_settings

    async def _remind(self, record_id: UUID, now: datetime) -> bool:
        """Send one reminder. Returns False when today's reminder already went out."""
        async with self.session_factory() as session:
            record = await InterventionProgressRepository(InterventionProgress, session).get(record_id)
            if record is None or record.status != "active":
                return False

            already_sent = await NotificationRepository(Notification, session).exists_since(
                record.user_id, "reminder", start_of_day(now), intervention_id=record.intervention_id
            )
            if already_sent:
                return False

            days_inactive = (now - record.last_active_at).days
            current_step = record.current_step or 0
            total_steps = record.total_steps or 0

            metadata = InterventionReminderMetadata(
                message=intervention_reminder_message(
                    record.intervention_name, days_inactive, current_step, total_steps
                ),
                intervention_id=record.intervention_id,
                intervention_name=record.intervention_name,
                days_since_last_active=days_inactive,
                current_step=current_step,
                total_steps=total_steps,
                progress_percent=progress_percent(current_step, total_steps),
            )
            await self.sink.notify(session, record.user_id, metadata, created_at=now)
            await session.commit()

        logger.debug(
            f"Intervention reminder sent to user {record.user_id}: "
            f"{record.intervention_name} ({days_inactive} days inactive)"
        )
        return True

    async def _prompt(self, user_id: UUID, intervention_id: str, intervention_name: str, now: datetime) -> bool:
        async with self.session_factory() as session:
            sent = await prompt_for_effectiveness_rating(
                session, self.sink, user_id, intervention_id, intervention_name, now=now
            )
            if sent:
                await session.commit()
        return sent

    async def run(self, now: Optional[datetime] = None) -> ReminderRunResult:
        now = now or utcnow()
        logger.info("Starting intervention reminder check...")
        result = ReminderRunResult()

        idle_before = now - timedelta(days=self.settings.INTERVENTION_REMINDER_INACTIVE_DAYS)
        async with self.session_factory() as session:
            repo = InterventionProgressRepository(InterventionProgress, session)
            stale = [r.id for r in await repo.get_stale_active(idle_before, limit=BATCH_LIMIT)]
            finished = [
                (r.user_id, r.intervention_id, r.intervention_name)
                for r in await repo.get_unrated_completed(
                    now - timedelta(days=PROMPT_WINDOW_DAYS), now - timedelta(days=1), limit=BATCH_LIMIT
                )
            ]

        for record_id in stale:
            try:
                if await self._remind(record_id, now):
                    result.sent += 1
                else:
                    result.skipped += 1
            except Exception as e:
                result.errors += 1
                logger.warning(f"Error processing intervention reminder {record_id}: {e}")

        for user_id, intervention_id, intervention_name in finished:
            try:
                if await self._prompt(user_id, intervention_id, intervention_name, now):
                    result.effectiveness_prompts += 1
            except Exception as e:
                result.errors += 1
                logger.warning(f"Error sending effectiveness prompt for intervention {intervention_id}: {e}")

        logger.info(
            f"Intervention reminder check completed: {result.sent} reminders sent, "
            f"{result.skipped} skipped (already sent today), "
            f"{result.effectiveness_prompts} effectiveness prompts sent"
        )
        return result


# =============================================================================
# Journal Reminders
# =============================================================================

class JournalReminderJob:
    """Reminds users who journaled before but not in the last few days."""

    def __init__(
        self,
        session_factory: async_sessionmaker,
        sink: Optional[NotificationSink] = None,
        settings: Optional[Settings] = None,
    ):
        self.session_factory = session_factory
        self.sink = sink or DatabaseNotificationSink()
        self.settings = settings or default_settings

    async def remind_user(self, user_id: UUID, now: Optional[datetime] = None) -> bool:
        """
        Returns True when a reminder was sent. Users who never journaled,
        journaled recently or were already reminded today get none.
        """
        now = now or utcnow()
        cutoff = start_of_day(now - timedelta(days=self.settings.JOURNAL_REMINDER_DAYS))

        async with self.session_factory() as session:
            last_entry = await JournalRepository(JournalEntry, session).get_latest(user_id)
            if last_entry is None:
                return False

            last_day = start_of_day(last_entry.created_at)
            if last_day > cutoff:
                return False

            if await NotificationRepository(Notification, session).exists_since(user_id, "journal", start_of_day(now)):
                return False

            days_since = (now - last_day).days
            metadata = JournalReminderMetadata(message=journal_reminder_message(days_since), days_since=days_since)
            await self.sink.notify(session, user_id, metadata, created_at=now)
            await session.commit()

        logger.debug(f"Sent journal reminder to user {user_id} ({days_since} days since last journal)")
        return True

    async def run(self, now: Optional[datetime] = None) -> ReminderRunResult:
        now = now or utcnow()
        logger.info("Starting journal reminder check...")
        result = ReminderRunResult()

        async with self.session_factory() as session:
            user_ids = [u.id for u in await UserRepository(User, session).list_all(limit=USER_LIMIT)]

        for user_id in user_ids:
            try:
                if await self.remind_user(user_id, now=now):
                    result.sent += 1
                else:
                    result.skipped += 1
            except Exception as e:
                result.errors += 1
                logger.warning(f"Error processing journal reminder for user {user_id}: {e}")

        logger.info(
            f"Journal reminder check completed: {result.sent} reminders sent, "
            f"{result.skipped} skipped"
        )
        return result
