"""Static intervention catalogs, one module per need."""

from typing import Dict, List, Optional

from .base import (
    DIFFICULTY_LEVELS,
    Intervention,
    dedupe,
    filter_by_difficulty,
    format_intervention_for_ai,
)
from .anxiety import ANXIETY_INTERVENTIONS, ANXIETY_TYPES, recommend_anxiety_interventions
from .breakup import BREAKUP_CHALLENGES, BREAKUP_INTERVENTIONS, breakup_timeframe, recommend_breakup_interventions
from .depression import DEPRESSION_INTERVENTIONS, DEPRESSION_SYMPTOMS, recommend_depression_interventions
from .focus import FOCUS_CHALLENGES, FOCUS_INTERVENTIONS, recommend_focus_interventions
from .grief import GRIEF_CHALLENGES, GRIEF_INTERVENTIONS, grief_timeframe, recommend_grief_interventions
from .sleep import SLEEP_INTERVENTIONS, SLEEP_PROBLEMS, recommend_sleep_interventions
from .stress import STRESS_INTERVENTIONS, STRESS_SOURCES, recommend_stress_interventions

# Evaluation order of the detector
INTERVENTION_TYPES = ("sleep", "depression", "anxiety", "stress", "breakup", "grief", "focus")

CATALOGS: Dict[str, List[Intervention]] = {
    "sleep": SLEEP_INTERVENTIONS,
    "depression": DEPRESSION_INTERVENTIONS,
    "anxiety": ANXIETY_INTERVENTIONS,
    "stress": STRESS_INTERVENTIONS,
    "breakup": BREAKUP_INTERVENTIONS,
    "grief": GRIEF_INTERVENTIONS,
    "focus": FOCUS_INTERVENTIONS,
}


def all_interventions() -> List[Intervention]:
    return [intervention for catalog in CATALOGS.values() for intervention in catalog]


def get_intervention(intervention_id: str) -> Optional[Intervention]:
    """Look an intervention up by id across every catalog."""
    for catalog in CATALOGS.values():
        for intervention in catalog:
            if intervention.id == intervention_id:
                return intervention
    return None


__all__ = [
    "DIFFICULTY_LEVELS",
    "INTERVENTION_TYPES",
    "CATALOGS",
    "Intervention",
    "all_interventions",
    "get_intervention",
    "dedupe",
    "filter_by_difficulty",
    "format_intervention_for_ai",
    "ANXIETY_TYPES",
    "BREAKUP_CHALLENGES",
    "DEPRESSION_SYMPTOMS",
    "FOCUS_CHALLENGES",
    "GRIEF_CHALLENGES",
    "SLEEP_PROBLEMS",
    "STRESS_SOURCES",
    "breakup_timeframe",
    "grief_timeframe",
    "recommend_anxiety_interventions",
    "recommend_breakup_interventions",
    "recommend_depression_interventions",
    "recommend_focus_interventions",
    "recommend_grief_interventions",
    "recommend_sleep_interventions",
    "recommend_stress_interventions",
]
