"""
Structured interventions.

Detects when a conversation calls for a structured exercise, gates the
suggestion, ranks catalog exercises by the user's past ratings and tracks
progress, outcomes and effectiveness ratings.
"""

from .classifiers import DetectedNeed, KeywordNeedClassifier, KeywordSeriousnessClassifier
from .detector import MoodSample, detect_intervention_needs
from .gating import GatingResult, InterventionGate
from .recommendation import InterventionSuggestion, build_suggestions, generate_intervention_suggestions

__all__ = [
    "DetectedNeed",
    "KeywordNeedClassifier",
    "KeywordSeriousnessClassifier",
    "MoodSample",
    "detect_intervention_needs",
    "GatingResult",
    "InterventionGate",
    "InterventionSuggestion",
    "build_suggestions",
    "generate_intervention_suggestions",
]
