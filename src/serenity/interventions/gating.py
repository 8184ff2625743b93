"""
Intervention gating.

Decides whether a detected need should turn into a suggestion right now.
Three checks are counted and at least two must pass:

1. time of day suits the intervention type
2. the mention is serious or explicit, not casual
3. nothing of this type was started, completed or noted in the last 7 days

Engagement is reported alongside but never gates. Any unexpected error
lets the suggestion through.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional, Sequence
from uuid import UUID

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import ChatSession, InterventionProgress, LongTermMemory, utcnow
from ..repositories import ChatSessionRepository, InterventionProgressRepository, LongTermMemoryRepository
from .classifiers import KeywordSeriousnessClassifier, Message, SeriousnessClassifier

TOTAL_CRITERIA = 3
MINIMUM_REQUIRED = 2
COOLDOWN_DAYS = 7
ENGAGEMENT_WINDOW_DAYS = 7

SLEEP_BEDTIME_HOURS = (20, 21, 22, 23, 0, 1)

Clock = Callable[[], datetime]


@dataclass
class TimeCheck:
    is_appropriate: bool
    time_of_day: str


@dataclass
class RecentCheck:
    recent: bool
    last_suggested: Optional[datetime] = None
    days_ago: Optional[int] = None


@dataclass
class GatingResult:
    should_suggest: bool
    reason: str
    passed_criteria: int
    total_criteria: int = TOTAL_CRITERIA
    context: Dict[str, str] = field(default_factory=dict)


def check_time_appropriate(intervention_type: str, hour: int) -> TimeCheck:
    """
    Sleep exercises fit the evening and night (18:00-02:00), focus
    exercises the day (06:00-22:00). Other types fit any hour.
    """
    if intervention_type == "sleep":
        evening = hour >= 18 or hour < 2
        if hour in SLEEP_BEDTIME_HOURS:
            label = "bedtime (ideal)"
        elif evening:
            label = "evening/night (appropriate)"
        else:
            label = "daytime (not ideal for sleep)"
        return TimeCheck(evening, label)

    if intervention_type == "focus":
        daytime = 6 <= hour < 22
        return TimeCheck(daytime, "daytime (appropriate for focus)" if daytime else "night (not ideal for focus)")

    return TimeCheck(True, "any time (no restriction)")


def engagement_level(recent_sessions: int, active_interventions: int) -> tuple:
    """Score chat activity and active interventions into low / medium / high."""
    score = 0
    if recent_sessions >= 7:
        score += 3
    elif recent_sessions >= 3:
        score += 2
    elif recent_sessions >= 1:
        score += 1

    if active_interventions >= 2:
        score += 2
    elif active_interventions == 1:
        score += 1

    if score >= 4:
        return "high", score
    if score >= 2:
        return "medium", score
    return "low", score


class InterventionGate:
    """
    Suggestion gate.

    Args:
        seriousness_classifier: judges how seriously the need was mentioned
        clock: returns the current naive-UTC time; the hour drives the
            time-of-day check
    """

    def __init__(
        self,
        seriousness_classifier: Optional[SeriousnessClassifier] = None,
        clock: Optional[Clock] = None,
    ):
        self.seriousness = seriousness_classifier or KeywordSeriousnessClassifier()
        self.clock = clock or utcnow

    async def check_recent_suggestions(
        self,
        session: AsyncSession,
        user_id: UUID,
        intervention_type: str,
        now: datetime,
    ) -> RecentCheck:
        """Recent progress of this type, or an insight memory naming it."""
        since = now - timedelta(days=COOLDOWN_DAYS)
        try:
            progress = await InterventionProgressRepository(InterventionProgress, session).find_recent_of_type(
                user_id, intervention_type, since
            )
            if progress is not None:
                return RecentCheck(True, progress.created_at, (now - progress.created_at).days)

            memory = await LongTermMemoryRepository(LongTermMemory, session).find_recent_insight(
                user_id, intervention_type, since
            )
            if memory is not None:
                return RecentCheck(True, memory.timestamp, (now - memory.timestamp).days)
        except Exception as e:
            logger.warning(f"Failed to check recent suggestions for user {user_id}: {e}")

        return RecentCheck(False)

    async def assess_engagement(self, session: AsyncSession, user_id: UUID, now: datetime) -> str:
        try:
            sessions = await ChatSessionRepository(ChatSession, session).count_since(
                user_id, now - timedelta(days=ENGAGEMENT_WINDOW_DAYS)
            )
            active = await InterventionProgressRepository(InterventionProgress, session).count_active(user_id)
        except Exception as e:
            logger.warning(f"Failed to assess user engagement for user {user_id}: {e}")
            return "medium"

        level, _ = engagement_level(sessions, active)
        return level

    async def should_suggest(
        self,
        session: AsyncSession,
        user_id: UUID,
        intervention_type: str,
        message: str,
        recent_messages: Sequence[Message] = (),
    ) -> GatingResult:
        try:
            now = self.clock()

            time_check = check_time_appropriate(intervention_type, now.hour)
            seriousness = self.seriousness.assess(message, recent_messages, intervention_type)
            recent = await self.check_recent_suggestions(session, user_id, intervention_type, now)
            engagement = await self.assess_engagement(session, user_id, now)

            checks = [time_check.is_appropriate, seriousness.passes, not recent.recent]
            passed = sum(1 for check in checks if check)
            should_suggest = passed >= MINIMUM_REQUIRED

            if should_suggest:
                reason = f"Gating passed: {passed}/{TOTAL_CRITERIA} criteria met"
            else:
                failures = []
                if not time_check.is_appropriate:
                    failures.append(f"Not ideal time ({time_check.time_of_day})")
                if not seriousness.passes:
                    failures.append("Casual mention (not serious)")
                if recent.recent:
                    failures.append(f"Recently suggested ({recent.days_ago} days ago)")
                reason = f"Gating failed: {', '.join(failures)}. Need {MINIMUM_REQUIRED} criteria to pass."

            return GatingResult(
                should_suggest=should_suggest,
                reason=reason,
                passed_criteria=passed,
                context={
                    "time_of_day": time_check.time_of_day,
                    "mention_seriousness": seriousness.seriousness,
                    "recent_suggestions": f"Yes ({recent.days_ago} days ago)" if recent.recent else "No",
                    "user_engagement": engagement,
                },
            )
        except Exception as e:
            logger.error(f"Failed to evaluate intervention gating for user {user_id}: {e}", exc_info=True)
            return GatingResult(
                should_suggest=True,
                reason="Gating check failed - defaulting to allow",
                passed_criteria=MINIMUM_REQUIRED,
            )
