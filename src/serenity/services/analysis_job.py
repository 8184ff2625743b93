"""
Periodic personalization analysis.

Walks every user with recent chat activity in fixed-size batches, refreshes
their personalization profile and makes sure the current week and month
have a conversation summary. A failing user is counted and skipped.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..config import Settings, settings as default_settings
from ..database import ChatSession, ConversationSummary, Personalization, utcnow
from ..llm import LLMCaller
from ..repositories import ChatSessionRepository, ConversationSummaryRepository, PersonalizationRepository
from ..utils.dates import start_of_month, start_of_next_month, start_of_week
from .personalization import PersonalizationService
from .personalization_signals import analyze_personalization_signals, analyze_time_patterns
from .summarization import ConversationSummarizer


@dataclass
class AnalysisRunResult:
    total: int = 0
    processed: int = 0
    errors: int = 0

    def as_dict(self) -> dict:
        return {"total": self.total, "processed": self.processed, "errors": self.errors}


class PersonalizationAnalysisJob:
    """Batch runner for the personalization analysis."""

    def __init__(
        self,
        session_factory: async_sessionmaker,
        llm_caller: Optional[LLMCaller] = None,
        settings: Optional[Settings] = None,
        personalization: Optional[PersonalizationService] = None,
        summarizer: Optional[ConversationSummarizer] = None,
    ):
        """
        Args:
            session_factory: Opens one session per user so a failure cannot
                poison another user's transaction.
            llm_caller: Used for conversation summaries.
        """
        self.session_factory = session_factory
        self.settings = settings or default_settings
        self.personalization = personalization or PersonalizationService()
        self.summarizer = summarizer or ConversationSummarizer(llm_caller)

    # -------------------------------------------------------------------------
    # Single User
    # -------------------------------------------------------------------------

    async def analyze_user(self, user_id: UUID, now: Optional[datetime] = None) -> bool:
        """
        Refresh one user's profile and periodic summaries.

        Skips users analyzed less than MIN_DAYS_SINCE_ANALYSIS days ago.
        Returns False when the analysis failed; the error is logged here.
        """
        now = now or utcnow()
        try:
            async with self.session_factory() as session:
                record = await PersonalizationRepository(Personalization, session).get_by_user(user_id)
                if record is not None and record.last_analysis is not None:
                    days_since = (now - record.last_analysis).total_seconds() / 86400
                    if days_since < self.settings.MIN_DAYS_SINCE_ANALYSIS:
                        logger.debug(f"Skipping analysis for user {user_id} - analyzed {days_since:.1f} days ago")
                        return True

                logger.info(f"Analyzing personalization for user {user_id}...")
                days = self.settings.PERSONALIZATION_ANALYSIS_INTERVAL_DAYS
                signals = await analyze_personalization_signals(session, user_id, days=days, now=now)
                logger.debug(f"Found {len(signals)} patterns for user {user_id}")
                time_analysis = await analyze_time_patterns(session, user_id, days=days, now=now)

                if signals or time_analysis.preferred_hours:
                    await self.personalization.update_from_patterns(session, user_id, signals, time_analysis, now=now)
                else:
                    logger.debug(f"No confident patterns found for user {user_id}, skipping update")

                await session.commit()

            await self.generate_periodic_summaries(user_id, now=now)
            return True
        except Exception as e:
            logger.error(f"Error analyzing personalization for user {user_id}: {e}", exc_info=True)
            return False

    async def generate_periodic_summaries(self, user_id: UUID, now: Optional[datetime] = None) -> None:
        """Create the current week's (Sunday start) and month's summaries if missing."""
        now = now or utcnow()
        week_start = start_of_week(now)
        await self._ensure_summary(user_id, "weekly", week_start, week_start + timedelta(days=7))
        await self._ensure_summary(user_id, "monthly", start_of_month(now), start_of_next_month(now))

    async def _ensure_summary(self, user_id: UUID, summary_type: str, start: datetime, end: datetime) -> None:
        # Each summary gets its own session
        try:
            async with self.session_factory() as session:
                repo = ConversationSummaryRepository(ConversationSummary, session)
                if await repo.exists_starting_in(user_id, summary_type, start, end):
                    return
                logger.info(f"Generating {summary_type} summary for user {user_id}...")
                await self.summarizer.generate_period_summary(session, user_id, summary_type, start, end)
                await session.commit()
        except Exception as e:
            logger.error(f"Error generating {summary_type} summary for user {user_id}: {e}", exc_info=True)

    # -------------------------------------------------------------------------
    # All Users
    # -------------------------------------------------------------------------

    async def _active_user_ids(self, now: datetime) -> list[UUID]:
        cutoff = now - timedelta(days=self.settings.PERSONALIZATION_ACTIVE_USER_DAYS)
        async with self.session_factory() as session:
            return await ChatSessionRepository(ChatSession, session).get_active_user_ids(cutoff)

    async def run_for_all_users(self, now: Optional[datetime] = None) -> AnalysisRunResult:
        """
        Analyze every recently active user.

        Users run concurrently within a batch, batches run one after another
        with a fixed pause in between. Nothing is retried.
        """
        now = now or utcnow()
        logger.info("Starting personalization analysis job for all users...")

        user_ids = await self._active_user_ids(now)
        result = AnalysisRunResult(total=len(user_ids))
        logger.info(f"Found {len(user_ids)} active users to analyze")

        batch_size = self.settings.PERSONALIZATION_BATCH_SIZE
        for i in range(0, len(user_ids), batch_size):
            batch = user_ids[i:i + batch_size]
            outcomes = await asyncio.gather(*(self.analyze_user(user_id, now=now) for user_id in batch))
            result.processed += sum(1 for ok in outcomes if ok)
            result.errors += sum(1 for ok in outcomes if not ok)

            if (i + batch_size) % 50 == 0 or i + batch_size >= len(user_ids):
                logger.info(
                    f"Progress: {result.processed + result.errors}/{len(user_ids)} users processed "
                    f"({result.processed} success, {result.errors} errors)"
                )

            if i + batch_size < len(user_ids):
                await asyncio.sleep(self.settings.PERSONALIZATION_BATCH_DELAY_SECONDS)

        logger.info(
            f"Personalization analysis job completed: {result.processed} users analyzed successfully, "
            f"{result.errors} errors"
        )
        return result
