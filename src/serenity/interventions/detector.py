"""Detect which structured intervention, if any, a conversation calls for."""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence

from .classifiers import DetectedNeed, KeywordNeedClassifier, Message, NeedClassifier

# Mood samples considered for the low-mood override, newest first
MOOD_WINDOW = 7
LOW_MOOD_THRESHOLD = 4
SEVERE_MOOD_THRESHOLD = 3


@dataclass
class MoodSample:
    mood: float  # 1-10
    timestamp: Optional[datetime] = None


def low_mood_need(mood_samples: Sequence[MoodSample]) -> Optional[DetectedNeed]:
    """Synthetic depression need when the recent average mood is below 4/10."""
    if not mood_samples:
        return None

    recent = [sample.mood for sample in mood_samples[:MOOD_WINDOW]]
    average = sum(recent) / len(recent)
    if average >= LOW_MOOD_THRESHOLD:
        return None

    return DetectedNeed(
        type="depression",
        severity="severe" if average < SEVERE_MOOD_THRESHOLD else "moderate",
        confidence=0.7,
        indicators=[f"Low mood pattern (avg: {average:.1f}/10)"],
    )


def pick_strongest(needs: Sequence[DetectedNeed]) -> DetectedNeed:
    """Highest confidence wins; on a tie the earliest candidate is kept."""
    if not needs:
        return DetectedNeed.none()

    strongest = needs[0]
    for need in needs[1:]:
        if need.confidence > strongest.confidence:
            strongest = need
    return strongest


def detect_intervention_needs(
    message: str,
    recent_messages: Sequence[Message] = (),
    mood_samples: Optional[Sequence[MoodSample]] = None,
    classifier: Optional[NeedClassifier] = None,
) -> DetectedNeed:
    """
    Classify the conversation and return the single most confident need.

    Args:
        message: the user's latest message
        recent_messages: prior turns as ``{"role", "content"}`` mappings
        mood_samples: mood history on a 1-10 scale, newest first
        classifier: need classifier; keyword matching by default

    Returns:
        DetectedNeed with ``type=None`` when nothing matched
    """
    classifier = classifier or KeywordNeedClassifier()
    needs: List[DetectedNeed] = list(classifier.classify(message, recent_messages))

    if not any(need.type == "depression" for need in needs):
        override = low_mood_need(mood_samples or [])
        if override is not None:
            needs.append(override)

    return pick_strongest(needs)
