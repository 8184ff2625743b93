"""Mood outcome measurement before and after an intervention."""

from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from typing import List, Optional
from uuid import UUID

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import InterventionProgress, Mood, utcnow
from ..repositories import InterventionProgressRepository, MoodRepository

OUTCOME_WINDOW_DAYS = 7


@dataclass
class OutcomeMeasurement:
    intervention_id: str
    intervention_name: str
    intervention_type: str
    mood_before: Optional[float]  # 1-10
    mood_after: Optional[float]
    mood_improvement: Optional[float]  # after - before
    mood_improvement_percentage: Optional[float]
    days_since_start: int
    days_since_completion: Optional[int]

    def as_dict(self) -> dict:
        return asdict(self)


def _average_mood(moods: List[Mood]) -> Optional[float]:
    if not moods:
        return None
    # 0-100 scores on the 1-10 scale; missing scores count as neutral
    values = [(m.score or 50) / 10 for m in moods]
    return sum(values) / len(values)


async def get_mood_before(
    session: AsyncSession,
    user_id: UUID,
    started_at: datetime,
    days: int = OUTCOME_WINDOW_DAYS,
) -> Optional[float]:
    """Average mood over the ``days`` before ``started_at``. None without samples."""
    try:
        moods = await MoodRepository(Mood, session).get_in_range(
            user_id, started_at - timedelta(days=days), started_at, include_end=False
        )
    except Exception as e:
        logger.warning(f"Failed to get mood before intervention for user {user_id}: {e}")
        return None
    return _average_mood(moods)


async def get_mood_after(
    session: AsyncSession,
    user_id: UUID,
    started_at: datetime,
    completed_at: Optional[datetime],
    now: datetime,
    days: int = OUTCOME_WINDOW_DAYS,
) -> Optional[float]:
    """
    Average mood from the start through ``days`` after completion, or
    through ``now`` while the intervention is still running.
    """
    end = completed_at + timedelta(days=days) if completed_at else now
    try:
        moods = await MoodRepository(Mood, session).get_in_range(user_id, started_at, end)
    except Exception as e:
        logger.warning(f"Failed to get mood after intervention for user {user_id}: {e}")
        return None
    return _average_mood(moods)


async def measure_intervention_outcome(
    session: AsyncSession,
    user_id: UUID,
    intervention_id: str,
    now: Optional[datetime] = None,
) -> Optional[OutcomeMeasurement]:
    """
    Compare mood before and after the most recent run of an intervention.

    Either side is None when its window has no mood entries, and the
    improvement fields are None whenever either side is.
    """
    now = now or utcnow()
    try:
        progress = await InterventionProgressRepository(InterventionProgress, session).get_latest(
            user_id, intervention_id
        )
        if progress is None:
            return None

        started_at = progress.started_at
        completed_at = progress.completed_at

        mood_before = await get_mood_before(session, user_id, started_at)
        mood_after = await get_mood_after(session, user_id, started_at, completed_at, now)

        improvement = None
        percentage = None
        if mood_before is not None and mood_after is not None:
            improvement = mood_after - mood_before
            if mood_before > 0:
                percentage = improvement / mood_before * 100

        return OutcomeMeasurement(
            intervention_id=progress.intervention_id,
            intervention_name=progress.intervention_name,
            intervention_type=progress.intervention_type,
            mood_before=mood_before,
            mood_after=mood_after,
            mood_improvement=improvement,
            mood_improvement_percentage=percentage,
            days_since_start=(now - started_at).days,
            days_since_completion=(now - completed_at).days if completed_at else None,
        )
    except Exception as e:
        logger.error(f"Failed to measure outcome of {intervention_id} for user {user_id}: {e}", exc_info=True)
        return None


async def get_user_intervention_outcomes(
    session: AsyncSession,
    user_id: UUID,
    intervention_type: Optional[str] = None,
    now: Optional[datetime] = None,
) -> List[OutcomeMeasurement]:
    """Outcomes for every intervention the user tried, newest first."""
    try:
        records = await InterventionProgressRepository(InterventionProgress, session).list_for_user(
            user_id, intervention_type=intervention_type
        )
    except Exception as e:
        logger.error(f"Failed to list intervention outcomes for user {user_id}: {e}", exc_info=True)
        return []

    outcomes = []
    for intervention_id in dict.fromkeys(r.intervention_id for r in records):
        outcome = await measure_intervention_outcome(session, user_id, intervention_id, now=now)
        if outcome is not None:
            outcomes.append(outcome)
    return outcomes


def format_outcome_message(outcome: OutcomeMeasurement) -> str:
    """Encouraging one-liner for the user. Declines are phrased gently."""
    name = outcome.intervention_name
    if outcome.mood_before is None or outcome.mood_after is None:
        return f'You\'ve been working on "{name}" for {outcome.days_since_start} days. Keep it up!'

    if outcome.mood_improvement is None:
        return f'Your mood before "{name}" was {outcome.mood_before:.1f}/10.'

    before = f"{outcome.mood_before:.1f}/10"
    after = f"{outcome.mood_after:.1f}/10"
    improvement = outcome.mood_improvement
    percent = outcome.mood_improvement_percentage or 0

    if improvement > 0.5:
        return (
            f"Great progress! Your mood improved from {before} to {after} "
            f'(+{improvement:.1f}, {percent:.0f}% improvement) after completing "{name}". '
            f"This intervention is working well for you!"
        )
    if improvement > 0:
        return f'Good news! Your mood improved from {before} to {after} after "{name}". Keep practicing!'
    if improvement > -0.5:
        return (
            f'Your mood has been stable ({before} -> {after}) while working on "{name}". '
            f"Sometimes stability is progress - keep going!"
        )
    return (
        f'You\'ve been working on "{name}" for {outcome.days_since_start} days. '
        f"Sometimes it takes time to see results. Would you like to try a different approach "
        f"or get additional support?"
    )
