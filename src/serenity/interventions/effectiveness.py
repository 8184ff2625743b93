"""Effectiveness rating prompts and rating intake."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import UUID

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import ValidationException
from ..database import InterventionProgress, Notification, utcnow
from ..repositories import InterventionProgressRepository, NotificationRepository
from ..services.notifications import EffectivenessPromptMetadata, NotificationSink
from ..utils.dates import start_of_day
from .outcomes import measure_intervention_outcome
from .progress import running_average, validate_rating

# Completed interventions stay promptable for this many days
PROMPT_WINDOW_DAYS = 7


@dataclass
class PromptEligibility:
    should_prompt: bool
    reason: str


@dataclass
class RatingResult:
    success: bool
    message: str


async def should_prompt_for_effectiveness(
    session: AsyncSession,
    user_id: UUID,
    intervention_id: str,
    now: Optional[datetime] = None,
) -> PromptEligibility:
    """Prompt for unrated interventions completed within the last week."""
    now = now or utcnow()
    try:
        progress = await InterventionProgressRepository(InterventionProgress, session).get_latest(
            user_id, intervention_id, statuses=("completed",), order_by="completed_at"
        )
    except Exception as e:
        logger.error(f"Failed to check effectiveness prompt eligibility: {e}", exc_info=True)
        return PromptEligibility(False, "Error checking eligibility")

    if progress is None:
        return PromptEligibility(False, "Intervention not completed")

    if progress.effectiveness_rating and progress.effectiveness_rating > 0:
        return PromptEligibility(False, "Already rated")

    if progress.completed_at:
        days = (now - progress.completed_at).days
        if days <= PROMPT_WINDOW_DAYS:
            return PromptEligibility(True, f"Completed {days} day(s) ago, not yet rated")

    return PromptEligibility(False, "Completed more than 7 days ago")


async def prompt_for_effectiveness_rating(
    session: AsyncSession,
    sink: NotificationSink,
    user_id: UUID,
    intervention_id: str,
    intervention_name: str,
    now: Optional[datetime] = None,
) -> bool:
    """
    Send a rating prompt for a completed intervention.

    At most one prompt per intervention per day. When mood improved since
    the intervention started, the prompt leads with that.

    Returns:
        True when a notification was created
    """
    now = now or utcnow()
    try:
        eligibility = await should_prompt_for_effectiveness(session, user_id, intervention_id, now=now)
        if not eligibility.should_prompt:
            logger.debug(f"Skipping effectiveness prompt for user {user_id}, intervention {intervention_id}: {eligibility.reason}")
            return False

        already_sent = await NotificationRepository(Notification, session).exists_since(
            user_id, "effectiveness", start_of_day(now), intervention_id=intervention_id
        )
        if already_sent:
            logger.debug(f"Effectiveness prompt already sent today for user {user_id}, intervention {intervention_id}")
            return False

        outcome = await measure_intervention_outcome(session, user_id, intervention_id, now=now)

        message = (
            f'How effective was "{intervention_name}" for you? '
            f"Rate it 1-10 to help us personalize your future interventions."
        )
        if outcome and outcome.mood_before is not None and outcome.mood_after is not None \
                and outcome.mood_improvement and outcome.mood_improvement > 0:
            message = (
                f"Great progress! Your mood improved from {outcome.mood_before:.1f}/10 to "
                f'{outcome.mood_after:.1f}/10 after "{intervention_name}". '
                f"How effective was it for you? Rate it 1-10."
            )

        metadata = EffectivenessPromptMetadata(
            message=message,
            intervention_id=intervention_id,
            intervention_name=intervention_name,
            days_since_completion=outcome.days_since_completion if outcome else None,
            mood_before=outcome.mood_before if outcome else None,
            mood_after=outcome.mood_after if outcome else None,
            mood_improvement=outcome.mood_improvement if outcome else None,
        )
        await sink.notify(session, user_id, metadata, created_at=now)
    except Exception as e:
        logger.error(f"Failed to send effectiveness prompt for {intervention_id}: {e}", exc_info=True)
        return False

    improved = f" (mood improved {outcome.mood_improvement:.1f} points)" if outcome and outcome.mood_improvement else ""
    logger.info(f"Effectiveness prompt sent to user {user_id} for intervention: {intervention_name}{improved}")
    return True


async def process_effectiveness_rating(
    session: AsyncSession,
    user_id: UUID,
    intervention_id: str,
    rating: int,
) -> RatingResult:
    """
    Record a 1-10 rating on the latest completed run and update its
    running average. Invalid input comes back as an unsuccessful result.
    """
    try:
        validate_rating(rating)
    except ValidationException as e:
        return RatingResult(False, e.message)

    repo = InterventionProgressRepository(InterventionProgress, session)
    try:
        progress = await repo.get_latest(user_id, intervention_id, statuses=("completed",), order_by="completed_at")
        if progress is None:
            return RatingResult(False, "Intervention not found or not completed")

        completions = progress.completions or 0
        progress.effectiveness_rating = rating
        progress.average_effectiveness = running_average(progress.average_effectiveness or 0.0, completions, rating)
        progress.completions = completions + 1
        await session.flush()
    except Exception as e:
        logger.error(f"Failed to process effectiveness rating: {e}", exc_info=True)
        return RatingResult(False, "Failed to save rating")

    logger.info(f"Effectiveness rating recorded: {rating}/10 for user {user_id}, intervention {progress.intervention_name}")
    return RatingResult(True, "Thank you for your feedback! Your rating helps us personalize future interventions.")
