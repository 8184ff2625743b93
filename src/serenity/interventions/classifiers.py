"""
Keyword classifiers for intervention needs and mention seriousness.

Both the detector and the gate depend on the ``NeedClassifier`` and
``SeriousnessClassifier`` protocols only, so a model-backed classifier can
replace the keyword lists without touching either caller. The keyword
implementations below are deliberately literal: plain substring checks over
the lower-cased conversation, evaluated in a fixed category order.
"""

import re
from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Protocol, Sequence

Message = Mapping[str, str]


@dataclass
class NeedTimeframe:
    days_since: Optional[int] = None  # breakup
    months_since: Optional[int] = None  # grief


@dataclass
class DetectedNeed:
    """Result of need detection. ``type`` is None when nothing matched."""

    type: Optional[str]
    severity: str = "mild"
    confidence: float = 0.0
    indicators: List[str] = field(default_factory=list)
    timeframe: Optional[NeedTimeframe] = None

    @classmethod
    def none(cls) -> "DetectedNeed":
        return cls(type=None, severity="mild", confidence=0.0, indicators=[])


@dataclass
class SeriousnessAssessment:
    seriousness: str  # casual, serious, explicit
    confidence: float

    @property
    def passes(self) -> bool:
        return self.seriousness != "casual"


class NeedClassifier(Protocol):
    def classify(self, message: str, recent_messages: Sequence[Message]) -> List[DetectedNeed]: ...


class SeriousnessClassifier(Protocol):
    def assess(
        self,
        message: str,
        recent_messages: Sequence[Message],
        intervention_type: str,
    ) -> SeriousnessAssessment: ...


def combined_text(message: str, recent_messages: Sequence[Message]) -> str:
    """Current message followed by the recent history, lower-cased."""
    parts = [message or ""] + [m.get("content") or "" for m in recent_messages]
    return " ".join(parts).lower()


def _any(text: str, phrases: Sequence[str]) -> bool:
    return any(phrase in text for phrase in phrases)


# =============================================================================
# Need keywords
# =============================================================================

SLEEP_SIGNALS = (
    "can't sleep", "insomnia", "trouble sleeping", "wake up", "waking up",
    "sleep", "slept", "tired", "exhausted", "sleepy", "bedtime",
    "awake", "sleeping", "sleep schedule", "sleep quality",
)
SLEEP_PROBLEMS = (
    "difficulty falling asleep", "can't fall asleep", "takes hours to sleep",
    "wake up frequently", "waking up at night", "keep waking up",
    "wake up too early", "early morning waking", "can't stay asleep",
)

DEPRESSION_SIGNALS = (
    "depressed", "depression", "sad", "hopeless", "empty", "numb",
    "nothing matters", "no point", "don't care", "can't enjoy",
    "lost interest", "no motivation", "exhausted", "overwhelmed",
)
DEPRESSION_SYMPTOMS = (
    "no energy", "can't get out of bed", "don't want to do anything",
    "nothing helps", "feel like giving up", "better off without me",
)

ANXIETY_SIGNALS = (
    "anxious", "anxiety", "worried", "nervous", "panicked", "panic",
    "overwhelmed", "racing thoughts", "can't stop worrying",
    "restless", "on edge", "stressed", "afraid", "scared",
)
ANXIETY_SYMPTOMS = (
    "panic attack", "can't breathe", "heart racing", "feeling dizzy",
    "can't calm down", "worried all the time", "afraid something bad will happen",
)

STRESS_SIGNALS = (
    "stressed", "stress", "overwhelmed", "burnout", "exhausted",
    "too much to do", "can't keep up", "pulled in different directions",
    "pressure", "deadline", "workload", "demands",
)
STRESS_SYMPTOMS = (
    "burned out", "completely overwhelmed", "can't handle it",
    "too much stress", "constantly stressed",
)

# "ex" matches inside longer words as well; kept as-is
BREAKUP_SIGNALS = (
    "breakup", "broke up", "ex", "ex-boyfriend", "ex-girlfriend", "ex-partner",
    "relationship ended", "we split", "we broke up", "dumped", "got dumped",
    "single again", "just broke up", "relationship over",
)

GRIEF_SIGNALS = (
    "died", "death", "passed away", "loss", "lost", "grief", "grieving",
    "funeral", "mourning", "deceased", "parent died", "family member died",
    "loved one died", "friend died", "grandma", "grandpa", "father", "mother",
)

FOCUS_SIGNALS = (
    "can't focus", "distracted", "procrastinate", "procrastination", "lazy",
    "no motivation", "no discipline", "can't concentrate", "hard to focus",
    "struggling to stay focused", "losing focus", "keep getting distracted",
    "can't get things done", "hard to start", "can't finish",
)

BREAKUP_AGO_RE = re.compile(r"(\d+)\s*(days|day|weeks|week)\s*ago")
GRIEF_AGO_RE = re.compile(r"(\d+)\s*(months|month|weeks|week)\s*ago")


def extract_days_since(text: str) -> Optional[int]:
    """'3 days ago' -> 3, '2 weeks ago' -> 14; None when absent or zero."""
    match = BREAKUP_AGO_RE.search(text)
    if not match:
        return None
    amount = int(match.group(1))
    days = amount * 7 if "week" in match.group(2) else amount
    return days or None


def extract_months_since(text: str) -> Optional[int]:
    """'4 months ago' -> 4, '6 weeks ago' -> 1 (weeks / 4, floored)."""
    match = GRIEF_AGO_RE.search(text)
    if not match:
        return None
    amount = int(match.group(1))
    months = amount / 4 if "week" in match.group(2) else amount
    if not months:
        return None
    return int(months)


class KeywordNeedClassifier:
    """
    Substring-matching need classifier.

    ``classify`` returns every matching need in evaluation order: sleep,
    depression, anxiety, stress, breakup, grief, focus.
    """

    def classify(self, message: str, recent_messages: Sequence[Message]) -> List[DetectedNeed]:
        text = combined_text(message, recent_messages)
        candidates = [
            self._sleep(text),
            self._depression(text),
            self._anxiety(text),
            self._stress(text),
            self._breakup(text),
            self._grief(text),
            self._focus(text),
        ]
        return [need for need in candidates if need is not None]

    # -------------------------------------------------------------------------
    # Categories
    # -------------------------------------------------------------------------

    def _sleep(self, text: str) -> Optional[DetectedNeed]:
        mentions = _any(text, SLEEP_SIGNALS)
        problem = _any(text, SLEEP_PROBLEMS)
        if not (mentions or problem):
            return None

        indicators = []
        if "can't fall asleep" in text or "difficulty falling asleep" in text:
            indicators.append("difficulty falling asleep")
        if "wake up" in text or "waking up" in text:
            indicators.append("sleep disruption")
        if "tired" in text or "exhausted" in text:
            indicators.append("fatigue from poor sleep")
        if not indicators:
            return None

        return DetectedNeed(
            type="sleep",
            severity="moderate" if problem else "mild",
            confidence=0.8 if problem else 0.6,
            indicators=indicators,
        )

    def _depression(self, text: str) -> Optional[DetectedNeed]:
        mentions = _any(text, DEPRESSION_SIGNALS)
        severe = _any(text, DEPRESSION_SYMPTOMS)
        if not (mentions or severe):
            return None

        indicators = []
        if "hopeless" in text or "no point" in text:
            indicators.append("hopelessness")
        if "lost interest" in text or "can't enjoy" in text:
            indicators.append("anhedonia (loss of pleasure)")
        if "no energy" in text or "exhausted" in text:
            indicators.append("fatigue")
        if "isolation" in text or "don't want to see anyone" in text:
            indicators.append("social withdrawal")
        if not indicators:
            return None

        if severe:
            severity, confidence = "severe", 0.9
        elif mentions:
            severity, confidence = "moderate", 0.7
        else:
            severity, confidence = "mild", 0.5
        return DetectedNeed(type="depression", severity=severity, confidence=confidence, indicators=indicators)

    def _anxiety(self, text: str) -> Optional[DetectedNeed]:
        mentions = _any(text, ANXIETY_SIGNALS)
        symptoms = _any(text, ANXIETY_SYMPTOMS)
        if not (mentions or symptoms):
            return None

        indicators = []
        if "panic" in text:
            indicators.append("panic attacks")
        if "worried" in text or "worrying" in text:
            indicators.append("excessive worry")
        if "racing thoughts" in text or "can't stop thinking" in text:
            indicators.append("racing thoughts")
        if "social" in text and ("anxious" in text or "nervous" in text):
            indicators.append("social anxiety")
        if not indicators and not mentions:
            return None

        if symptoms:
            severity, confidence = "severe", 0.85
        elif mentions:
            severity, confidence = "moderate", 0.7
        else:
            severity, confidence = "mild", 0.5
        return DetectedNeed(
            type="anxiety",
            severity=severity,
            confidence=confidence,
            indicators=indicators or ["anxiety symptoms"],
        )

    def _stress(self, text: str) -> Optional[DetectedNeed]:
        # Worry and fear belong to anxiety; stress only counts without them
        if not _any(text, STRESS_SIGNALS) or _any(text, ANXIETY_SIGNALS):
            return None
        symptoms = _any(text, STRESS_SYMPTOMS)

        indicators = []
        if "work" in text or "job" in text or "deadline" in text:
            indicators.append("work stress")
        if "time" in text or "schedule" in text or "busy" in text:
            indicators.append("time pressure")
        if "relationships" in text or "family" in text or "people" in text:
            indicators.append("relationship stress")
        if not indicators and not symptoms:
            return None

        return DetectedNeed(
            type="stress",
            severity="severe" if symptoms else "moderate",
            confidence=0.8 if symptoms else 0.65,
            indicators=indicators or ["stress symptoms"],
        )

    def _breakup(self, text: str) -> Optional[DetectedNeed]:
        if not _any(text, BREAKUP_SIGNALS):
            return None

        if _any(text, ("recently", "just", "yesterday", "today", "week")):
            indicator = "recent breakup"
        elif _any(text, ("months", "weeks", "ago")):
            indicator = "past breakup (ongoing grief)"
        else:
            return None

        days_since = extract_days_since(text)
        return DetectedNeed(
            type="breakup",
            severity="moderate" if indicator == "recent breakup" else "mild",
            confidence=0.85,
            indicators=[indicator],
            timeframe=NeedTimeframe(days_since=days_since) if days_since else None,
        )

    def _grief(self, text: str) -> Optional[DetectedNeed]:
        if not _any(text, GRIEF_SIGNALS):
            return None

        if _any(text, ("recently", "just", "yesterday", "today")):
            indicator = "recent loss"
        elif _any(text, ("months", "weeks")):
            indicator = "ongoing grief"
        else:
            return None

        months_since = extract_months_since(text)
        return DetectedNeed(
            type="grief",
            severity="severe" if indicator == "recent loss" else "moderate",
            confidence=0.9,
            indicators=[indicator],
            timeframe=NeedTimeframe(months_since=months_since) if months_since is not None else None,
        )

    def _focus(self, text: str) -> Optional[DetectedNeed]:
        if not _any(text, FOCUS_SIGNALS):
            return None

        indicators = []
        if "can't focus" in text or "distracted" in text:
            indicators.append("attention issues")
        if "procrastinate" in text or "can't start" in text:
            indicators.append("procrastination")
        if not indicators:
            return None

        return DetectedNeed(type="focus", severity="moderate", confidence=0.75, indicators=indicators)


# =============================================================================
# Seriousness keywords
# =============================================================================

EXPLICIT_SIGNALS = {
    "sleep": ("can't sleep", "insomnia", "trouble sleeping", "can't fall asleep", "wake up", "sleeping"),
    "depression": ("depressed", "depression", "hopeless", "can't get out of bed", "nothing matters"),
    "anxiety": ("anxious", "anxiety", "panic", "panic attack", "can't calm down", "worried"),
    "stress": ("stressed", "overwhelmed", "burnout", "can't handle", "too much"),
    "breakup": ("broke up", "breakup", "ex", "relationship ended", "we split"),
    "grief": ("died", "death", "passed away", "lost", "grief", "funeral"),
    "focus": ("can't focus", "distracted", "procrastinate", "can't concentrate"),
}

SERIOUS_SIGNALS = {
    "sleep": ("sleep", "tired", "exhausted", "bedtime", "sleepy"),
    "depression": ("sad", "down", "low", "empty", "numb"),
    "anxiety": ("nervous", "worried", "scared", "on edge"),
    "stress": ("pressure", "deadline", "workload", "busy"),
    "breakup": ("relationship", "dating", "single"),
    "grief": ("loss", "mourning", "miss"),
    "focus": ("hard to focus", "losing focus", "distraction"),
}

# A single moderate signal counts as serious in a message longer than this
SERIOUS_MESSAGE_LENGTH = 50


class KeywordSeriousnessClassifier:
    """Explicit keyword -> explicit; two moderate hits, or one in a long message -> serious."""

    def assess(
        self,
        message: str,
        recent_messages: Sequence[Message],
        intervention_type: str,
    ) -> SeriousnessAssessment:
        text = combined_text(message, recent_messages)

        if _any(text, EXPLICIT_SIGNALS.get(intervention_type, ())):
            return SeriousnessAssessment("explicit", 0.9)

        hits = sum(1 for signal in SERIOUS_SIGNALS.get(intervention_type, ()) if signal in text)
        if hits >= 2 or (hits == 1 and len(message or "") > SERIOUS_MESSAGE_LENGTH):
            return SeriousnessAssessment("serious", 0.7)

        return SeriousnessAssessment("casual", 0.4)
