"""
Intervention progress tracking.

Records a user's run through an intervention (start, steps, completion),
aggregates effectiveness history for ranking and renders the time-aware
context block that accompanies chat prompts.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import InvalidRatingError
from ..database import InterventionProgress, utcnow
from ..repositories import InterventionProgressRepository


@dataclass
class InterventionContext:
    """Snapshot of an active intervention with elapsed-time fields."""

    intervention_id: str
    intervention_type: str
    intervention_name: str
    days_since_start: int
    days_since_last_active: int
    hours_since_last_active: int
    current_step: int
    total_steps: int
    status: str
    started_at: datetime
    effectiveness_rating: Optional[int] = None
    last_active_at: Optional[datetime] = None
    expected_duration: Optional[str] = None


@dataclass
class EffectivenessStats:
    intervention_id: str
    intervention_name: str
    attempts: int
    completions: int
    average_effectiveness: float


def validate_rating(rating: Any) -> int:
    """Ratings run from 1 to 10."""
    if isinstance(rating, bool) or not isinstance(rating, (int, float)) or not 1 <= rating <= 10:
        raise InvalidRatingError(rating)
    return rating


def running_average(average: float, completions: int, rating: float) -> float:
    """Fold a new rating into an average over ``completions`` earlier ratings."""
    if completions > 0:
        return ((average * completions) + rating) / (completions + 1)
    return float(rating)


class InterventionProgressService:
    """Start, advance and complete interventions for a user."""

    async def start_intervention(
        self,
        session: AsyncSession,
        user_id: UUID,
        intervention_id: str,
        intervention_type: str,
        intervention_name: str,
        total_steps: int,
        expected_duration: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        now: Optional[datetime] = None,
    ) -> InterventionProgress:
        """
        Begin tracking an intervention.

        Starting an intervention that is already active or completed counts
        as another attempt on the existing record instead of a new one.
        """
        now = now or utcnow()
        repo = InterventionProgressRepository(InterventionProgress, session)

        existing = await repo.get_latest(user_id, intervention_id, statuses=("active", "completed"))
        if existing is not None:
            existing.attempts = (existing.attempts or 0) + 1
            await session.flush()
            logger.debug(f"Intervention {intervention_id} re-attempted by user {user_id} (attempt {existing.attempts})")
            return existing

        progress = await repo.add(InterventionProgress(
            user_id=user_id,
            intervention_id=intervention_id,
            intervention_type=intervention_type,
            intervention_name=intervention_name,
            status="active",
            started_at=now,
            last_active_at=now,
            current_step=1,
            total_steps=total_steps,
            completed_steps=[],
            attempts=1,
            completions=0,
            average_effectiveness=0.0,
            expected_duration=expected_duration,
            context=dict(context or {}),
            created_at=now,
        ))
        logger.info(f"Started intervention tracking for user {user_id}: {intervention_name} ({intervention_id})")
        return progress

    async def update_progress(
        self,
        session: AsyncSession,
        user_id: UUID,
        intervention_id: str,
        step_number: int,
        notes: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Optional[InterventionProgress]:
        """Mark a step done and move the cursor forward. None if not active."""
        repo = InterventionProgressRepository(InterventionProgress, session)
        progress = await repo.get_latest(user_id, intervention_id, statuses=("active",))
        if progress is None:
            logger.warning(f"No active intervention found for user {user_id}, intervention {intervention_id}")
            return None

        completed = list(progress.completed_steps or [])
        if step_number not in completed:
            completed.append(step_number)
            progress.completed_steps = completed

        if step_number >= (progress.current_step or 1):
            progress.current_step = step_number + 1

        if notes:
            progress.notes = notes

        progress.last_active_at = now or utcnow()
        await session.flush()

        logger.debug(f"Updated intervention progress for user {user_id}, step {step_number}")
        return progress

    async def complete_intervention(
        self,
        session: AsyncSession,
        user_id: UUID,
        intervention_id: str,
        effectiveness_rating: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> Optional[InterventionProgress]:
        """
        Mark the active run completed, optionally folding in a rating.

        Raises:
            InvalidRatingError: rating given but outside 1-10
        """
        if effectiveness_rating is not None:
            validate_rating(effectiveness_rating)

        now = now or utcnow()
        repo = InterventionProgressRepository(InterventionProgress, session)
        progress = await repo.get_latest(user_id, intervention_id, statuses=("active",))
        if progress is None:
            logger.warning(f"No active intervention found for user {user_id}, intervention {intervention_id}")
            return None

        progress.status = "completed"
        progress.completed_at = now
        progress.last_active_at = now

        if effectiveness_rating is not None:
            completions = progress.completions or 0
            average = progress.average_effectiveness or 0.0
            progress.effectiveness_rating = effectiveness_rating
            progress.average_effectiveness = running_average(average, completions, effectiveness_rating)
            progress.completions = completions + 1

        await session.flush()
        logger.info(f"Completed intervention for user {user_id}: {progress.intervention_name}")
        return progress

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def get_active_interventions(
        self,
        session: AsyncSession,
        user_id: UUID,
        now: Optional[datetime] = None,
    ) -> List[InterventionContext]:
        """Active interventions, most recently touched first. Empty on error."""
        now = now or utcnow()
        try:
            records = await InterventionProgressRepository(InterventionProgress, session).list_active(user_id)
        except Exception as e:
            logger.error(f"Failed to get active interventions for user {user_id}: {e}", exc_info=True)
            return []

        contexts = []
        for record in records:
            last_active = record.last_active_at or record.started_at
            elapsed = (now - last_active).total_seconds()
            contexts.append(InterventionContext(
                intervention_id=record.intervention_id,
                intervention_type=record.intervention_type,
                intervention_name=record.intervention_name,
                days_since_start=record.days_since_start or 0,
                days_since_last_active=int(elapsed // 86400),
                hours_since_last_active=int(elapsed // 3600),
                current_step=record.current_step or 1,
                total_steps=record.total_steps or 0,
                status=record.status,
                started_at=record.started_at,
                effectiveness_rating=record.effectiveness_rating,
                last_active_at=record.last_active_at,
                expected_duration=record.expected_duration,
            ))
        return contexts

    async def get_intervention_effectiveness(
        self,
        session: AsyncSession,
        user_id: UUID,
        intervention_type: Optional[str] = None,
    ) -> List[EffectivenessStats]:
        """
        Per-intervention attempts, completions and mean rating.

        The mean covers runs that carry a rating; unrated interventions
        report 0. Empty on error.
        """
        try:
            records = await InterventionProgressRepository(InterventionProgress, session).list_for_user(
                user_id, intervention_type=intervention_type
            )
        except Exception as e:
            logger.error(f"Failed to get intervention effectiveness for user {user_id}: {e}", exc_info=True)
            return []

        records.sort(key=lambda r: r.average_effectiveness or 0.0, reverse=True)

        stats: Dict[str, Dict[str, Any]] = {}
        for record in records:
            entry = stats.setdefault(record.intervention_id, {
                "name": record.intervention_name,
                "attempts": 0,
                "completions": 0,
                "total": 0.0,
                "rated": 0,
            })
            entry["attempts"] += record.attempts or 1
            entry["completions"] += record.completions or 0
            if record.effectiveness_rating:
                entry["total"] += record.effectiveness_rating
                entry["rated"] += 1

        return [
            EffectivenessStats(
                intervention_id=intervention_id,
                intervention_name=entry["name"],
                attempts=entry["attempts"],
                completions=entry["completions"],
                average_effectiveness=entry["total"] / entry["rated"] if entry["rated"] else 0.0,
            )
            for intervention_id, entry in stats.items()
        ]

    async def get_effectiveness_map(
        self,
        session: AsyncSession,
        user_id: UUID,
        intervention_type: Optional[str] = None,
    ) -> Dict[str, float]:
        """intervention id -> mean rating, rated interventions only."""
        history = await self.get_intervention_effectiveness(session, user_id, intervention_type)
        return {s.intervention_id: s.average_effectiveness for s in history if s.average_effectiveness > 0}


# =============================================================================
# Prompt Context
# =============================================================================

TIME_CONTEXT_TEMPLATE = """
--- CURRENT TIME CONTEXT (Accurate) ---
Today is {date}{timezone_note}
Current time: {time} ({time_of_day})

This temporal context helps you:
- Reference the day of week when relevant (e.g., "Monday mornings can be tough")
- Consider time of day for appropriate responses (e.g., bedtime routines, morning energy)
- Use natural time references ("this week", "today", "tonight") accurately
- Adjust tone based on time (e.g., more energetic in morning, calmer at night)

IMPORTANT: All times and dates are accurate. Use them precisely in your responses.
"""

ACTIVE_INTERVENTIONS_TEMPLATE = """{time_context}
--- ACTIVE INTERVENTIONS (Time Awareness) ---
The user is currently working on these interventions:
{lines}

When appropriate, you can:
- Acknowledge their progress with time awareness: "I see you've been working on [intervention] for [X] days - you're [X days/weeks] into this. How's it going?"
- Provide encouragement based on duration and phase: "You're [X] days in - that's the [early/building/establishing] phase where [typical experience]"
- Adjust expectations based on timeline: "Most people start seeing results after [Y] days/weeks, so you're [ahead/on track/just beginning]"
- Reference their progress naturally: "Since you started [intervention] [X days/weeks] ago, what's changed?"
- Use time-aware language: "How has [intervention] been feeling [this week/today/recently]?"

IMPORTANT: Be time-aware in your responses:
- If it's Monday morning, acknowledge the week ahead
- If it's late night, be mindful of sleep/preparation
- If it's been several weeks on an intervention, check for progress/plateaus
- Reference the actual day/time when it's natural and helpful

Use this context naturally - don't force it into every response.
"""


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"


def time_of_day_label(hour: int) -> str:
    if hour < 6:
        return "night (late)"
    if hour < 12:
        return "morning"
    if hour < 17:
        return "afternoon"
    if hour < 21:
        return "evening"
    return "night (bedtime)"


def started_ago(days_since_start: int) -> str:
    weeks, days = divmod(days_since_start, 7)
    if weeks == 0:
        return f"{_plural(days_since_start, 'day')} ago"
    if days:
        return f"{_plural(weeks, 'week')} and {_plural(days, 'day')} ago"
    return f"{_plural(weeks, 'week')} ago"


def last_interaction(days: int, hours: int) -> str:
    if days == 0:
        if hours < 1:
            return " (last active: just now)"
        if hours < 24:
            return f" (last active: {_plural(hours, 'hour')} ago)"
        return ""
    if days == 1:
        return " (last active: yesterday)"
    if days < 7:
        return f" (last active: {days} days ago)"
    return f" (last active: {_plural(days // 7, 'week')} ago)"


def intervention_phase(days_since_start: int) -> str:
    if days_since_start < 3:
        return " (just started - early phase)"
    if days_since_start < 14:
        return " (first 2 weeks - building habits)"
    if days_since_start < 30:
        return " (approaching 1 month - establishing routines)"
    return f" ({_plural(days_since_start // 30, 'month')} in - long-term practice)"


def _format_line(context: InterventionContext) -> str:
    progress = ""
    if context.total_steps > 0:
        percent = round(context.current_step / context.total_steps * 100)
        progress = f" (step {context.current_step} of {context.total_steps} - {percent}% complete)"

    duration = f" [Expected duration: {context.expected_duration}]" if context.expected_duration else ""
    return (
        f"- {context.intervention_name}: Started {started_ago(context.days_since_start)}{progress}"
        f"{last_interaction(context.days_since_last_active, context.hours_since_last_active)}"
        f"{intervention_phase(context.days_since_start)}{duration}"
    )


def format_intervention_context_for_ai(
    active: List[InterventionContext],
    now: Optional[datetime] = None,
    user_timezone: Optional[str] = None,
) -> str:
    """
    Current date/time block plus one line per active intervention.

    ``now`` is naive UTC. An unknown ``user_timezone`` falls back to UTC.
    """
    zone = ZoneInfo("UTC")
    if user_timezone:
        try:
            zone = ZoneInfo(user_timezone)
        except (ZoneInfoNotFoundError, ValueError):
            logger.debug(f"Unknown timezone {user_timezone!r}, using UTC")
            user_timezone = None

    local = (now or utcnow()).replace(tzinfo=ZoneInfo("UTC")).astimezone(zone)
    hour12 = local.hour % 12 or 12
    time_context = TIME_CONTEXT_TEMPLATE.format(
        date=f"{local:%A}, {local:%B} {local.day}, {local.year}",
        timezone_note=f" (User's timezone: {user_timezone})" if user_timezone else " (UTC)",
        time=f"{hour12}:{local:%M} {'AM' if local.hour < 12 else 'PM'}",
        time_of_day=time_of_day_label(local.hour),
    )

    if not active:
        return time_context

    return ACTIVE_INTERVENTIONS_TEMPLATE.format(
        time_context=time_context,
        lines="\n".join(_format_line(context) for context in active),
    )


# Global instance
intervention_progress_service = InterventionProgressService()
