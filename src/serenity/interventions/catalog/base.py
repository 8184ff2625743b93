"""Shared intervention definition and selection helpers."""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

DIFFICULTY_LEVELS = ("beginner", "intermediate", "advanced")


@dataclass(frozen=True)
class Intervention:
    """A step-by-step therapeutic exercise from one of the catalogs."""

    id: str
    name: str
    description: str
    steps: List[str]
    duration: str
    technique: str
    difficulty: str  # beginner, intermediate, advanced
    category: str = ""
    timeframe: Optional[str] = None  # grief and breakup exercises target a stage
    tags: List[str] = field(default_factory=list)

    @property
    def total_steps(self) -> int:
        return len(self.steps)


def pick(catalog: Sequence[Intervention], *ids: str) -> List[Intervention]:
    """Catalog entries for ``ids`` in the order given."""
    by_id = {i.id: i for i in catalog}
    return [by_id[i] for i in ids]


def filter_by_difficulty(interventions: Iterable[Intervention], experience_level: str) -> List[Intervention]:
    """
    Beginners see beginner exercises only, intermediates everything but
    advanced, advanced users see all.
    """
    if experience_level == "beginner":
        return [i for i in interventions if i.difficulty == "beginner"]
    if experience_level == "intermediate":
        return [i for i in interventions if i.difficulty != "advanced"]
    return list(interventions)


def dedupe(interventions: Iterable[Intervention]) -> List[Intervention]:
    """Drop repeated ids, keeping the first occurrence."""
    seen = set()
    unique = []
    for intervention in interventions:
        if intervention.id not in seen:
            seen.add(intervention.id)
            unique.append(intervention)
    return unique


def select(interventions: Iterable[Intervention], experience_level: str) -> List[Intervention]:
    return filter_by_difficulty(dedupe(interventions), experience_level)


def format_intervention_for_ai(intervention: Intervention) -> str:
    steps = "\n".join(f"{idx}. {step}" for idx, step in enumerate(intervention.steps, start=1))
    return (
        f"**{intervention.name}** ({intervention.duration})\n"
        f"{intervention.description}\n\n"
        f"Steps:\n{steps}"
    )
