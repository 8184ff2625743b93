"""
User pattern extraction.

Each extractor reads one data source, computes simple aggregate
statistics and emits ``UserPattern`` records with fixed confidences.
The extractors are pure functions over already-loaded rows;
``PatternAnalyzer`` loads the rows and assembles a ``PatternContext``.
"""

import math
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Sequence
from uuid import UUID

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import (
    ChatSession,
    InterventionProgress,
    JournalEntry,
    LongTermMemory,
    Mood,
    utcnow,
)
from ..repositories import (
    ChatSessionRepository,
    InterventionProgressRepository,
    JournalRepository,
    LongTermMemoryRepository,
    MoodRepository,
)


# =============================================================================
# Types
# =============================================================================

@dataclass
class UserPattern:
    """A single observed pattern about the user."""

    type: str  # emotional, behavioral, temporal, trigger, coping, communication
    pattern: str
    confidence: float
    evidence: List[str] = field(default_factory=list)
    insight: Optional[str] = None
    frequency: Optional[str] = None


@dataclass
class PatternContext:
    """All patterns for a user grouped by category, plus the strongest five."""

    emotional: List[UserPattern] = field(default_factory=list)
    behavioral: List[UserPattern] = field(default_factory=list)
    temporal: List[UserPattern] = field(default_factory=list)
    trigger: List[UserPattern] = field(default_factory=list)
    coping: List[UserPattern] = field(default_factory=list)
    communication: List[UserPattern] = field(default_factory=list)
    top_patterns: List[UserPattern] = field(default_factory=list)

    def all_patterns(self) -> List[UserPattern]:
        return [
            *self.emotional,
            *self.behavioral,
            *self.temporal,
            *self.trigger,
            *self.coping,
            *self.communication,
        ]


@dataclass
class JournalPatterns:
    emotional: List[UserPattern] = field(default_factory=list)
    temporal: List[UserPattern] = field(default_factory=list)
    triggers: List[UserPattern] = field(default_factory=list)


@dataclass
class MemoryPatterns:
    emotional: List[UserPattern] = field(default_factory=list)
    triggers: List[UserPattern] = field(default_factory=list)
    coping: List[UserPattern] = field(default_factory=list)


# =============================================================================
# Keyword Tables
# =============================================================================

JOURNAL_THEME_KEYWORDS = {
    "anxiety": ["anxious", "worried", "nervous", "panic", "stress"],
    "sadness": ["sad", "depressed", "down", "hopeless", "empty"],
    "anger": ["angry", "frustrated", "irritated", "mad", "annoyed"],
    "fear": ["afraid", "scared", "fear", "worried", "nervous"],
}

LOW_MOOD_KEYWORDS = ["sad", "depressed", "down", "hopeless", "empty", "anxious", "worried"]

MIN_MOOD_SAMPLES = 5
MIN_JOURNAL_SAMPLES = 5
MIN_INTERVENTION_SAMPLES = 2
MIN_CHAT_SESSIONS = 5
MIN_MEMORY_SAMPLES = 5
TOP_PATTERN_COUNT = 5


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)


def _num(value: float) -> str:
    """Render a number without trailing zeros (6.0 -> '6', 5.25 -> '5.25')."""
    return f"{round(value, 2):g}"


def _round_half_up(value: float) -> int:
    """Whole-number rounding with .5 going up (62.5 -> 63), unlike round()."""
    return math.floor(value + 0.5)


def mood_value(mood: Mood) -> float:
    """Mood score on a 1-10 scale. Missing scores count as neutral."""
    return (mood.score or 50) / 10


# =============================================================================
# Extractors
# =============================================================================

def extract_mood_patterns(moods: Sequence[Mood]) -> List[UserPattern]:
    """Low average, volatility, time-of-day and weekday patterns."""
    patterns: List[UserPattern] = []
    if len(moods) < MIN_MOOD_SAMPLES:
        return patterns

    values = [mood_value(m) for m in moods]
    avg_mood = _mean(values)
    mood_range = max(values) - min(values)

    if avg_mood < 4 and len(moods) >= 10:
        patterns.append(UserPattern(
            type="emotional",
            pattern=f"Tends to experience low mood (average: {avg_mood:.1f}/10)",
            confidence=0.8,
            evidence=[f"{len(moods)} mood entries over the past month with average of {avg_mood:.1f}"],
            insight="May be experiencing ongoing emotional difficulties",
            frequency="Consistent pattern",
        ))

    if mood_range > 5 and len(moods) >= 10:
        patterns.append(UserPattern(
            type="emotional",
            pattern=f"Mood fluctuates significantly (range: {_num(mood_range)} points)",
            confidence=0.75,
            evidence=[f"Mood swings between {_num(min(values))} and {_num(max(values))}"],
            insight="May benefit from stability-focused interventions or mood regulation techniques",
            frequency="Frequent fluctuations",
        ))

    morning = [mood_value(m) for m in moods if 6 <= m.timestamp.hour < 12]
    evening = [mood_value(m) for m in moods if m.timestamp.hour >= 18 or m.timestamp.hour < 6]
    if len(morning) >= 3 and len(evening) >= 3:
        morning_avg = _mean(morning)
        evening_avg = _mean(evening)
        if abs(morning_avg - evening_avg) > 2:
            better = "mornings" if morning_avg > evening_avg else "evenings"
            patterns.append(UserPattern(
                type="temporal",
                pattern=f"Mood tends to be better in {better}",
                confidence=0.7,
                evidence=[
                    f"Morning mood: {morning_avg:.1f}/10",
                    f"Evening mood: {evening_avg:.1f}/10",
                ],
                insight=f"May want to schedule important activities during {better}",
                frequency="Consistent pattern",
            ))

    by_day: dict[str, List[float]] = {}
    for m in moods:
        by_day.setdefault(m.timestamp.strftime("%A"), []).append(mood_value(m))

    for day, day_values in by_day.items():
        if len(day_values) < 3:
            continue
        day_avg = _mean(day_values)
        if day_avg < 4 and abs(day_avg - avg_mood) > 1.5:
            patterns.append(UserPattern(
                type="temporal",
                pattern=f"Mood tends to be lower on {day}s",
                confidence=0.65,
                evidence=[f"Average mood on {day}s: {day_avg:.1f}/10"],
                insight=f"May want to plan self-care or support activities for {day}s",
                frequency=f"Weekly pattern ({day})",
            ))

    return patterns


def extract_journal_patterns(journals: Sequence[JournalEntry]) -> JournalPatterns:
    """Recurring themes, preferred journaling hour and candidate trigger words."""
    result = JournalPatterns()
    if len(journals) < MIN_JOURNAL_SAMPLES:
        return result

    theme_counts: Counter = Counter()
    for journal in journals:
        content = (journal.content or "").lower()
        for theme, keywords in JOURNAL_THEME_KEYWORDS.items():
            if any(kw in content for kw in keywords):
                theme_counts[theme] += 1

    for theme, count in theme_counts.items():
        percentage = count / len(journals) * 100
        if percentage > 40:
            result.emotional.append(UserPattern(
                type="emotional",
                pattern=f"Frequently writes about {theme} ({_round_half_up(percentage)}% of entries)",
                confidence=0.75,
                evidence=[f"{count} out of {len(journals)} journal entries mention {theme}"],
                insight=f"May benefit from interventions specifically addressing {theme}",
                frequency="Recurring theme",
            ))

    hour_counts = Counter(journal.created_at.hour for journal in journals)
    # Counter preserves first-seen order, so ties resolve to the most recent entry's hour
    hour, hour_count = max(hour_counts.items(), key=lambda item: item[1])
    if hour_count >= 3:
        label = "evening" if hour >= 18 else "afternoon" if hour >= 12 else "morning"
        result.temporal.append(UserPattern(
            type="temporal",
            pattern=f"Tends to journal most often in the {label}",
            confidence=0.7,
            evidence=[f"Most journal entries at {hour}:00 ({hour_count} entries)"],
            insight=f"May find it easier to engage in reflection during {label}",
            frequency="Consistent pattern",
        ))

    low_mood = [
        journal for journal in journals
        if any(kw in (journal.content or "").lower() for kw in LOW_MOOD_KEYWORDS)
    ]
    if len(low_mood) >= 3:
        words = Counter(
            word
            for journal in low_mood
            for word in (journal.content or "").lower().split()
            if len(word) > 4
        )
        for word, count in words.items():
            if count < 3:
                continue
            result.triggers.append(UserPattern(
                type="trigger",
                pattern=f'"{word}" appears frequently in low-mood journal entries',
                confidence=0.6,
                evidence=[f"Appears {count} times in {len(low_mood)} low-mood entries"],
                insight="This may be a trigger or stressor worth exploring",
                frequency="Recurring pattern",
            ))
            if len(result.triggers) >= 3:
                break

    return result


def extract_intervention_patterns(interventions: Sequence[InterventionProgress]) -> List[UserPattern]:
    """Preferred intervention type, completion rate and well-rated interventions."""
    patterns: List[UserPattern] = []
    total = len(interventions)
    if total < MIN_INTERVENTION_SAMPLES:
        return patterns

    type_counts = Counter(i.intervention_type for i in interventions)
    top_type, top_count = max(type_counts.items(), key=lambda item: item[1])
    if top_count >= 2:
        patterns.append(UserPattern(
            type="coping",
            pattern=f"Tends to prefer {top_type}-focused interventions",
            confidence=0.7,
            evidence=[f"{top_count} out of {total} interventions are {top_type}-focused"],
            insight=f"May find {top_type} interventions most helpful",
            frequency="Consistent preference",
        ))

    completed = sum(1 for i in interventions if i.status == "completed")
    completion_rate = completed / total * 100
    if completion_rate < 30 and total >= 3:
        patterns.append(UserPattern(
            type="behavioral",
            pattern="Struggles to complete interventions (low completion rate)",
            confidence=0.65,
            evidence=[f"Only {_round_half_up(completion_rate)}% completion rate ({completed}/{total})"],
            insight="May benefit from shorter interventions or more support/accountability",
            frequency="Recurring pattern",
        ))
    elif completion_rate > 70 and total >= 3:
        patterns.append(UserPattern(
            type="behavioral",
            pattern="High completion rate on interventions",
            confidence=0.7,
            evidence=[f"{_round_half_up(completion_rate)}% completion rate ({completed}/{total})"],
            insight="Shows commitment and follows through well - may benefit from more challenging interventions",
            frequency="Consistent pattern",
        ))

    well_rated = sorted(
        (i for i in interventions if (i.effectiveness_rating or 0) >= 7),
        key=lambda i: i.effectiveness_rating,
        reverse=True,
    )[:3]
    if len(well_rated) >= 2:
        avg_rating = _mean([i.effectiveness_rating for i in well_rated])
        patterns.append(UserPattern(
            type="coping",
            pattern=f"Responds well to interventions with average rating of {avg_rating:.1f}/10",
            confidence=0.8,
            evidence=[f"{i.intervention_name}: {i.effectiveness_rating}/10" for i in well_rated],
            insight="These types of interventions work well - consider suggesting similar ones",
            frequency="Consistent effectiveness",
        ))

    return patterns


def extract_chat_patterns(
    sessions: Sequence[ChatSession],
    now: Optional[datetime] = None,
) -> List[UserPattern]:
    """Message length style and session frequency."""
    patterns: List[UserPattern] = []
    if len(sessions) < MIN_CHAT_SESSIONS:
        return patterns
    now = now or utcnow()

    lengths = [
        len(message.content or "")
        for session in sessions
        for message in session.messages
        if message.role == "user"
    ]
    if len(lengths) >= 10:
        avg_length = _mean(lengths)
        if avg_length < 50:
            patterns.append(UserPattern(
                type="communication",
                pattern="Tends to send brief messages",
                confidence=0.7,
                evidence=[f"Average message length: {_round_half_up(avg_length)} characters"],
                insight="May prefer concise responses or might be struggling to express themselves",
                frequency="Consistent pattern",
            ))
        elif avg_length > 300:
            patterns.append(UserPattern(
                type="communication",
                pattern="Tends to send detailed, longer messages",
                confidence=0.7,
                evidence=[f"Average message length: {_round_half_up(avg_length)} characters"],
                insight="Values thorough communication and detail - may benefit from detailed responses",
                frequency="Consistent pattern",
            ))

    recent = [s for s in sessions if now - s.start_time <= timedelta(days=14)]
    if len(recent) >= 10:
        patterns.append(UserPattern(
            type="behavioral",
            pattern="Very engaged with chat (frequent sessions)",
            confidence=0.75,
            evidence=[f"{len(recent)} sessions in the past 2 weeks"],
            insight="Highly engaged - chat is an important support tool",
            frequency="High engagement",
        ))

    return patterns


def extract_memory_patterns(memories: Sequence[LongTermMemory]) -> MemoryPatterns:
    """One aggregate pattern per memory bucket that is large enough."""
    result = MemoryPatterns()
    if len(memories) < MIN_MEMORY_SAMPLES:
        return result

    emotional = [m for m in memories if m.memory_type == "emotional_theme"]
    triggers = [m for m in memories if m.memory_type == "trigger"]
    coping = [m for m in memories if m.memory_type == "coping_pattern"]

    if len(emotional) >= 3:
        result.emotional.append(UserPattern(
            type="emotional",
            pattern="Has recurring emotional themes in long-term memory",
            confidence=0.7,
            evidence=[f"{len(emotional)} emotional themes stored"],
            insight="These themes are important to the user - acknowledge them",
            frequency="Recurring themes",
        ))

    if len(triggers) >= 2:
        result.triggers.append(UserPattern(
            type="trigger",
            pattern=f"Has {len(triggers)} identified triggers stored",
            confidence=0.75,
            evidence=[m.content for m in triggers[:3]],
            insight="These triggers are known to the user - help them navigate them",
            frequency="Identified patterns",
        ))

    if len(coping) >= 2:
        result.coping.append(UserPattern(
            type="coping",
            pattern=f"Uses specific coping strategies ({len(coping)} identified)",
            confidence=0.7,
            evidence=[m.content for m in coping[:3]],
            insight="These coping strategies work for the user - reference them when helpful",
            frequency="Effective strategies",
        ))

    return result


def select_top_patterns(patterns: Iterable[UserPattern], limit: int = TOP_PATTERN_COUNT) -> List[UserPattern]:
    """Highest confidence first; equal confidences keep their input order."""
    return sorted(patterns, key=lambda p: p.confidence, reverse=True)[:limit]


def build_pattern_context(
    moods: Sequence[Mood],
    journals: Sequence[JournalEntry],
    interventions: Sequence[InterventionProgress],
    sessions: Sequence[ChatSession],
    memories: Sequence[LongTermMemory],
    now: Optional[datetime] = None,
) -> PatternContext:
    """Run every extractor and group the results by category."""
    context = PatternContext()

    context.emotional.extend(extract_mood_patterns(moods))

    journal = extract_journal_patterns(journals)
    context.behavioral.extend(journal.emotional)
    context.temporal.extend(journal.temporal)
    context.trigger.extend(journal.triggers)

    intervention_patterns = extract_intervention_patterns(interventions)
    context.behavioral.extend(intervention_patterns)
    context.coping.extend(p for p in intervention_patterns if p.type == "coping")

    context.communication.extend(extract_chat_patterns(sessions, now=now))

    memory = extract_memory_patterns(memories)
    context.emotional.extend(memory.emotional)
    context.trigger.extend(memory.triggers)
    context.coping.extend(memory.coping)

    context.top_patterns = select_top_patterns(context.all_patterns())
    return context


def format_patterns_for_ai(context: PatternContext) -> str:
    """Render the strongest patterns as a prompt block. Empty when there are none."""
    if not context.top_patterns:
        return ""

    lines = "\n".join(
        f"- {p.pattern}{f' ({p.insight})' if p.insight else ''}"
        for p in context.top_patterns
    )

    return f"""

--- USER PATTERNS (Understanding & Empathy) ---
To help the user feel understood, acknowledge these patterns when relevant:

{lines}

When using these patterns:
1. Be empathetic: "I've noticed you tend to..." (not clinical or judgmental)
2. Validate their experience: "That makes sense given..." or "I can see why..."
3. Reference patterns naturally: "Like you mentioned before..." or "Similar to when..."
4. Use patterns to personalize: "Since you find [X] helpful, you might also benefit from..."
5. Don't overuse - only mention when relevant to the conversation
6. Make them feel heard: "It sounds like..." or "I understand that..."

Remember: The goal is to make the user feel truly understood, not to analyze or diagnose them.
"""


# =============================================================================
# Pattern Analyzer
# =============================================================================

class PatternAnalyzer:
    """Loads a user's history and runs the extractors over it."""

    async def analyze_user_patterns(
        self,
        session: AsyncSession,
        user_id: UUID,
        days: int = 30,
        now: Optional[datetime] = None,
    ) -> PatternContext:
        """
        Build the pattern context for a user.

        Mood, journal, chat and memory rows are limited to the last ``days``
        days; intervention history is used in full. Any failure yields an
        empty context.
        """
        now = now or utcnow()
        since = now - timedelta(days=days)

        try:
            moods = await MoodRepository(Mood, session).get_in_range(user_id, since, now)
            journals = await JournalRepository(JournalEntry, session).get_recent(user_id, limit=50, since=since)
            interventions = await InterventionProgressRepository(
                InterventionProgress, session
            ).list_for_user(user_id)
            sessions = await ChatSessionRepository(ChatSession, session).get_recent(user_id, limit=20, since=since)
            memories = await LongTermMemoryRepository(LongTermMemory, session).get_recent(
                user_id, limit=100, since=since
            )
        except Exception as e:
            logger.error(f"Failed to analyze user patterns for {user_id}: {e}", exc_info=True)
            return PatternContext()

        context = build_pattern_context(moods, journals, interventions, sessions, memories, now=now)
        logger.debug(
            f"Pattern analysis for {user_id}: {len(context.all_patterns())} patterns, "
            f"top={len(context.top_patterns)}"
        )
        return context
