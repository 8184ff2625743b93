"""
Personalization signal analysis.

Turns recent chat sessions and journals into a handful of
``PersonalizationSignal`` records (communication style, verbosity, topic
preference, engagement) plus a ``TimeAnalysis`` of when the user chats.
"""

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional, Sequence, Tuple
from uuid import UUID

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import ChatSession, JournalEntry, utcnow
from ..repositories import ChatSessionRepository, JournalRepository

TOPIC_KEYWORDS = {
    "anxiety": ["anxious", "worry", "nervous", "stress", "panic"],
    "depression": ["sad", "down", "depressed", "hopeless", "empty"],
    "relationships": ["friend", "family", "partner", "relationship", "love"],
    "work": ["work", "job", "career", "boss", "colleague"],
    "health": ["health", "sleep", "exercise", "physical", "body"],
    "goals": ["goal", "achieve", "plan", "future", "target"],
    "mindfulness": ["mindful", "meditation", "breath", "present", "aware"],
}

MIN_SIGNAL_CONFIDENCE = 0.5
MIN_SIGNAL_SAMPLES = 3


@dataclass
class PersonalizationSignal:
    """
    One inferred preference.

    ``value`` is the inferred setting (e.g. "direct", "concise", the topic
    list or the engagement level); ``evidence`` is the human-readable
    justification used as the behavioral tendency key.
    """

    type: str  # communication_style, verbosity, topic_preference, engagement
    value: object
    evidence: List[str]
    confidence: float
    frequency: float
    sample_size: int


@dataclass
class TimeAnalysis:
    preferred_hours: List[int] = field(default_factory=list)
    preferred_days: List[int] = field(default_factory=list)  # 0 = Sunday
    average_session_duration: float = 0.0
    typical_range: Tuple[float, float] = (0.0, 0.0)


def _all_messages(sessions: Sequence[ChatSession]):
    return [message for session in sessions for message in session.messages]


def analyze_communication_style(sessions: Sequence[ChatSession]) -> Optional[PersonalizationSignal]:
    """Infer gentle / direct / supportive from the user's own messages."""
    messages = _all_messages(sessions)
    if len(messages) < 5:
        return None

    user_messages = [m for m in messages if m.role == "user"]
    total = len(user_messages)
    if total == 0:
        return None

    questions = statements = short = long = formal = casual = 0
    for message in user_messages:
        content = (message.content or "").lower()
        if "?" in content or "what" in content or "how" in content:
            questions += 1
        else:
            statements += 1
        if len(content) < 50:
            short += 1
        if len(content) > 200:
            long += 1
        if "please" in content or "thank" in content or "would you" in content:
            formal += 1
        elif "hey" in content or "yeah" in content or "ok" in content:
            casual += 1

    if questions / total > 0.6 and formal / total > 0.3:
        style, evidence = "gentle", "High question frequency with formal tone"
    elif short / total > 0.5 and statements / total > 0.6:
        style, evidence = "direct", "Prefers short, direct statements"
    elif long / total > 0.4 and casual / total > 0.3:
        style, evidence = "supportive", "Detailed messages with casual, friendly tone"
    else:
        return None

    return PersonalizationSignal(
        type="communication_style",
        value=style,
        evidence=[evidence],
        confidence=min(0.9, 0.5 + (total / 50) * 0.4),
        frequency=(questions + statements) / total,
        sample_size=total,
    )


def analyze_verbosity(sessions: Sequence[ChatSession]) -> Optional[PersonalizationSignal]:
    """Infer verbosity from assistant reply lengths (1 token ~ 4 characters)."""
    messages = _all_messages(sessions)
    if len(messages) < 5:
        return None

    replies = [m for m in messages if m.role == "assistant"]
    total = len(replies)
    if total == 0:
        return None

    concise = moderate = detailed = 0
    for reply in replies:
        tokens = len(reply.content or "") / 4
        if tokens < 150:
            concise += 1
        elif tokens <= 400:
            moderate += 1
        else:
            detailed += 1

    concise_ratio = concise / total
    moderate_ratio = moderate / total
    detailed_ratio = detailed / total

    if concise_ratio > 0.6:
        verbosity, evidence = "concise", "User often receives concise responses"
    elif detailed_ratio > 0.4:
        verbosity, evidence = "detailed", "User prefers detailed explanations"
    else:
        verbosity, evidence = "moderate", "User balanced between concise and detailed"

    return PersonalizationSignal(
        type="verbosity",
        value=verbosity,
        evidence=[evidence],
        confidence=min(0.85, 0.5 + (total / 30) * 0.35),
        frequency=max(concise_ratio, moderate_ratio, detailed_ratio),
        sample_size=total,
    )


def analyze_topic_preferences(
    sessions: Sequence[ChatSession],
    journals: Sequence[JournalEntry],
) -> Optional[PersonalizationSignal]:
    """Top three topics by keyword hits across user messages and journals."""
    contents = [m.content or "" for m in _all_messages(sessions) if m.role == "user"]
    contents += [f"{j.title or ''} {j.content or ''}" for j in journals]
    if len(contents) < 3:
        return None

    topic_counts: Counter = Counter()
    for content in contents:
        lowered = content.lower()
        for topic, keywords in TOPIC_KEYWORDS.items():
            matches = sum(1 for k in keywords if k in lowered)
            if matches:
                topic_counts[topic] += matches

    preferred = [topic for topic, _ in topic_counts.most_common(3)]
    if not preferred:
        return None

    total_mentions = sum(topic_counts.values())
    return PersonalizationSignal(
        type="topic_preference",
        value=preferred,
        evidence=[f"Most discussed topics: {', '.join(preferred)}"],
        confidence=min(0.8, 0.5 + (total_mentions / 20) * 0.3),
        frequency=topic_counts[preferred[0]] / total_mentions,
        sample_size=len(contents),
    )


def _duration_minutes(session: ChatSession) -> float:
    if session.end_time and session.start_time:
        return (session.end_time - session.start_time).total_seconds() / 60
    return 0.0


def analyze_engagement(sessions: Sequence[ChatSession]) -> Optional[PersonalizationSignal]:
    """High / medium / low engagement from session length and message count."""
    if len(sessions) < 3:
        return None

    avg_messages = sum(len(s.messages) for s in sessions) / len(sessions)
    avg_duration = sum(_duration_minutes(s) for s in sessions) / len(sessions)

    if avg_messages > 10 and avg_duration > 15:
        level, evidence, frequency = "high", "Long sessions with many messages indicate high engagement", 0.8
    elif avg_messages < 3 or avg_duration < 5:
        level, evidence, frequency = "low", "Short sessions with few messages indicate lower engagement", 0.2
    else:
        level, evidence, frequency = "medium", "Moderate engagement with balanced session length", 0.5

    return PersonalizationSignal(
        type="engagement",
        value=level,
        evidence=[evidence],
        confidence=min(0.75, 0.5 + (len(sessions) / 20) * 0.25),
        frequency=frequency,
        sample_size=len(sessions),
    )


def collect_signals(
    sessions: Sequence[ChatSession],
    journals: Sequence[JournalEntry],
) -> List[PersonalizationSignal]:
    """Run every signal analyzer and keep the confident, well-sampled results."""
    candidates = [
        analyze_communication_style(sessions),
        analyze_verbosity(sessions),
        analyze_topic_preferences(sessions, journals),
        analyze_engagement(sessions),
    ]
    return [
        s for s in candidates
        if s is not None and s.confidence > MIN_SIGNAL_CONFIDENCE and s.sample_size >= MIN_SIGNAL_SAMPLES
    ]


def compute_time_patterns(sessions: Sequence[ChatSession]) -> TimeAnalysis:
    """Preferred hours/days and session-duration statistics."""
    if not sessions:
        return TimeAnalysis()

    hour_counts: Counter = Counter()
    day_counts: Counter = Counter()
    durations: List[float] = []

    for session in sessions:
        hour_counts[session.start_time.hour] += 1
        # Python weekday() is Monday=0; stored days use Sunday=0
        day_counts[(session.start_time.weekday() + 1) % 7] += 1
        if session.end_time:
            minutes = _duration_minutes(session)
            if 0 < minutes < 180:
                durations.append(minutes)

    total = len(sessions)
    preferred_hours = sorted(
        (h for h, c in hour_counts.items() if c / total >= 0.2),
        key=lambda h: (-hour_counts[h], h),
    )
    preferred_days = sorted(
        (d for d, c in day_counts.items() if c / total >= 0.25),
        key=lambda d: (-day_counts[d], d),
    )

    average = sum(durations) / len(durations) if durations else 0.0
    durations.sort()
    typical_range = (
        (durations[int(len(durations) * 0.25)], durations[int(len(durations) * 0.75)])
        if durations else (0.0, 0.0)
    )

    return TimeAnalysis(
        preferred_hours=preferred_hours[:6],
        preferred_days=preferred_days[:4],
        average_session_duration=average,
        typical_range=typical_range,
    )


async def analyze_personalization_signals(
    session: AsyncSession,
    user_id: UUID,
    days: int = 30,
    now: Optional[datetime] = None,
) -> List[PersonalizationSignal]:
    """Load the user's recent history and return confident signals. Errors yield []."""
    since = (now or utcnow()) - timedelta(days=days)
    try:
        sessions = await ChatSessionRepository(ChatSession, session).get_recent(user_id, limit=50, since=since)
        journals = await JournalRepository(JournalEntry, session).get_recent(user_id, limit=30, since=since)
    except Exception as e:
        logger.error(f"Error analyzing personalization signals for {user_id}: {e}", exc_info=True)
        return []

    return collect_signals(sessions, journals)


async def analyze_time_patterns(
    session: AsyncSession,
    user_id: UUID,
    days: int = 30,
    now: Optional[datetime] = None,
) -> TimeAnalysis:
    """Time-of-use analysis over sessions started in the last ``days`` days."""
    since = (now or utcnow()) - timedelta(days=days)
    try:
        sessions = await ChatSessionRepository(ChatSession, session).get_recent(user_id, limit=1000, since=since)
    except Exception as e:
        logger.error(f"Error analyzing time patterns for {user_id}: {e}", exc_info=True)
        return TimeAnalysis()

    return compute_time_patterns(sessions)
