"""
Turn a detected need into concrete intervention suggestions.

Each need type maps its indicators onto the arguments of its catalog's
selector. The selected exercises are then ranked by how well the user
rated them before (a stable sort, so unrated exercises keep catalog
order) and the top two are returned.
"""

from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence
from uuid import UUID

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from .catalog import (
    Intervention,
    recommend_anxiety_interventions,
    recommend_breakup_interventions,
    recommend_depression_interventions,
    recommend_focus_interventions,
    recommend_grief_interventions,
    recommend_sleep_interventions,
    recommend_stress_interventions,
)
from .classifiers import DetectedNeed
from .progress import InterventionProgressService

SUGGESTION_LIMIT = 2
PREVIEW_STEPS = 3
MIN_CONFIDENCE = 0.5
# A past rating at or above this is quoted back to the user
PROVEN_RATING = 7

WHY_NOW = {
    "sleep": "You mentioned sleep difficulties. {name} has been shown to help improve sleep quality.",
    "depression": (
        "I noticed signs that might benefit from structured support. "
        "{name} is an evidence-based approach that helps many people."
    ),
    "anxiety": "You mentioned feeling anxious or worried. {name} has been shown to help reduce anxiety effectively.",
    "stress": "You mentioned feeling stressed or overwhelmed. {name} can help you manage stress more effectively.",
    "breakup": "You mentioned going through a breakup. {name} has been shown to help people heal from relationship loss.",
    "grief": "You mentioned experiencing loss. {name} can help you navigate grief and honor your loved one's memory.",
    "focus": "You mentioned struggling with focus or discipline. {name} can help you build better focus habits.",
}


@dataclass
class InterventionSuggestion:
    intervention: Intervention
    why_now: str
    next_steps: List[str]

    @property
    def intervention_id(self) -> str:
        return self.intervention.id

    @property
    def intervention_name(self) -> str:
        return self.intervention.name

    @property
    def description(self) -> str:
        return self.intervention.description


# =============================================================================
# Catalog Selection
# =============================================================================

def _first_match(indicators: Sequence[str], mapping: Sequence[tuple], default: str) -> str:
    for indicator, value in mapping:
        if indicator in indicators:
            return value
    return default


def select_for_need(need: DetectedNeed, experience_level: str = "beginner") -> List[Intervention]:
    """Catalog candidates for a need, before ranking."""
    indicators = need.indicators
    timeframe = need.timeframe

    if need.type == "sleep":
        # Indicators are not refined into a specific sleep problem
        return recommend_sleep_interventions("difficulty_falling_asleep", need.severity, experience_level)

    if need.type == "depression":
        symptom = _first_match(
            indicators,
            [("social withdrawal", "isolation"), ("hopelessness", "self_criticism")],
            "low_mood",
        )
        return recommend_depression_interventions(need.severity, symptom, experience_level)

    if need.type == "anxiety":
        anxiety_type = _first_match(
            indicators,
            [("panic attacks", "panic"), ("social anxiety", "social"), ("excessive worry", "worries")],
            "general",
        )
        return recommend_anxiety_interventions(anxiety_type, need.severity, experience_level)

    if need.type == "stress":
        source = _first_match(
            indicators,
            [("work stress", "work"), ("time pressure", "time_pressure"), ("relationship stress", "relationships")],
            "general",
        )
        return recommend_stress_interventions(source, need.severity, experience_level)

    if need.type == "breakup":
        days_since = (timeframe.days_since if timeframe else None) or 0
        challenge = _first_match(
            indicators,
            [("contact urges", "contact_urges"), ("loneliness", "loneliness"), ("identity", "identity_loss")],
            "emotional_pain",
        )
        return recommend_breakup_interventions(days_since, challenge, experience_level)

    if need.type == "grief":
        months_since = (timeframe.months_since if timeframe else None) or 0
        challenge = _first_match(
            indicators,
            [("overwhelmed", "emotional_overwhelm"), ("loneliness", "loneliness"), ("meaning", "meaning_loss")],
            "emotional_overwhelm",
        )
        return recommend_grief_interventions(months_since, challenge, experience_level)

    if need.type == "focus":
        challenge = _first_match(
            indicators,
            [("procrastination", "procrastination"), ("distractions", "distractions"), ("no routine", "lack_of_routine")],
            "procrastination",
        )
        return recommend_focus_interventions(challenge, experience_level)

    return []


# =============================================================================
# Ranking
# =============================================================================

def rank_by_effectiveness(
    interventions: Sequence[Intervention],
    effectiveness: Mapping[str, float],
) -> List[Intervention]:
    """Highest past rating first; unrated count as 0 and ties keep their order."""
    return sorted(interventions, key=lambda i: effectiveness.get(i.id, 0), reverse=True)


def build_suggestions(
    need: DetectedNeed,
    experience_level: str = "beginner",
    effectiveness: Optional[Mapping[str, float]] = None,
    limit: int = SUGGESTION_LIMIT,
) -> List[InterventionSuggestion]:
    """Pure ranking step: no suggestions for unknown or low-confidence needs."""
    if need.type not in WHY_NOW or need.confidence <= MIN_CONFIDENCE:
        return []

    effectiveness = effectiveness or {}
    ranked = rank_by_effectiveness(select_for_need(need, experience_level), effectiveness)

    suggestions = []
    for intervention in ranked[:limit]:
        rating = effectiveness.get(intervention.id)
        if rating and rating >= PROVEN_RATING:
            why_now = f'You\'ve rated "{intervention.name}" {rating:.1f}/10 before - it worked well for you!'
        else:
            why_now = WHY_NOW[need.type].format(name=intervention.name)
        suggestions.append(InterventionSuggestion(
            intervention=intervention,
            why_now=why_now,
            next_steps=list(intervention.steps[:PREVIEW_STEPS]),
        ))
    return suggestions


async def generate_intervention_suggestions(
    session: AsyncSession,
    need: DetectedNeed,
    experience_level: str = "beginner",
    user_id: Optional[UUID] = None,
    progress_service: Optional[InterventionProgressService] = None,
) -> List[InterventionSuggestion]:
    """
    Suggestions personalised by the user's effectiveness history.

    Without a ``user_id``, or when the history cannot be loaded, ranking
    falls back to catalog order.
    """
    effectiveness: Dict[str, float] = {}
    if user_id is not None and need.type is not None:
        progress_service = progress_service or InterventionProgressService()
        try:
            effectiveness = await progress_service.get_effectiveness_map(session, user_id, need.type)
        except Exception as e:
            logger.warning(f"Failed to get effectiveness history for personalization: {e}")

    return build_suggestions(need, experience_level, effectiveness)
