"""Unit tests for the pattern extractors."""

from datetime import datetime, timedelta

from serenity.database import ChatMessage, ChatSession, InterventionProgress, JournalEntry, LongTermMemory, Mood
from serenity.services.patterns import (
    PatternContext,
    UserPattern,
    build_pattern_context,
    extract_chat_patterns,
    extract_intervention_patterns,
    extract_journal_patterns,
    extract_memory_patterns,
    extract_mood_patterns,
    format_patterns_for_ai,
    select_top_patterns,
)

SUNDAY = datetime(2026, 3, 1, 10, 0)
NOW = datetime(2026, 3, 31, 12, 0)


def _mood(score, when):
    return Mood(score=score, timestamp=when)


def _progress(intervention_type, status="active", rating=None, name="Exercise"):
    return InterventionProgress(
        intervention_id=f"{intervention_type}-{name}",
        intervention_type=intervention_type,
        intervention_name=name,
        status=status,
        effectiveness_rating=rating,
    )


# ============================================================================
# Moods
# ============================================================================

def test_too_few_moods():
    assert extract_mood_patterns([_mood(10, SUNDAY)] * 4) == []


def test_low_average_mood():
    moods = [_mood(30, SUNDAY + timedelta(days=i)) for i in range(10)]
    patterns = extract_mood_patterns(moods)

    assert [p.pattern for p in patterns] == ["Tends to experience low mood (average: 3.0/10)"]
    assert patterns[0].confidence == 0.8
    assert patterns[0].evidence == ["10 mood entries over the past month with average of 3.0"]


def test_volatile_mood():
    moods = [_mood(10 if i % 2 else 90, SUNDAY + timedelta(days=i)) for i in range(10)]
    patterns = extract_mood_patterns(moods)

    assert patterns[0].pattern == "Mood fluctuates significantly (range: 8 points)"
    assert patterns[0].evidence == ["Mood swings between 1 and 9"]


def test_better_in_mornings():
    moods = [_mood(80, SUNDAY.replace(hour=9) + timedelta(days=i)) for i in range(3)]
    moods += [_mood(40, SUNDAY.replace(hour=20) + timedelta(days=i + 3)) for i in range(3)]

    patterns = extract_mood_patterns(moods)

    assert [p.pattern for p in patterns] == ["Mood tends to be better in mornings"]
    assert patterns[0].type == "temporal"
    assert patterns[0].evidence == ["Morning mood: 8.0/10", "Evening mood: 4.0/10"]


def test_low_weekday():
    mondays = [_mood(20, datetime(2026, 3, 2, 10) + timedelta(weeks=i)) for i in range(5)]
    others = [_mood(80, datetime(2026, 3, 3, 10) + timedelta(days=i)) for i in range(5)]

    patterns = extract_mood_patterns(mondays + others)
    monday = next(p for p in patterns if "Monday" in p.pattern)

    assert monday.pattern == "Mood tends to be lower on Mondays"
    assert monday.evidence == ["Average mood on Mondays: 2.0/10"]
    assert monday.frequency == "Weekly pattern (Monday)"


# ============================================================================
# Journals
# ============================================================================

def _journals():
    evening = SUNDAY.replace(hour=21)
    return [
        JournalEntry(content="Feeling anxious about the deadline", created_at=evening),
        JournalEntry(content="Anxious again, deadline looming", created_at=evening + timedelta(days=1)),
        JournalEntry(content="worried about deadline tomorrow", created_at=evening + timedelta(days=2)),
        JournalEntry(content="Nice walk in the park", created_at=SUNDAY.replace(hour=9)),
        JournalEntry(content="Cooked dinner", created_at=SUNDAY.replace(hour=12)),
    ]


def test_journal_themes_hour_and_triggers():
    result = extract_journal_patterns(_journals())

    assert [p.pattern for p in result.emotional] == ["Frequently writes about anxiety (60% of entries)"]
    assert [p.pattern for p in result.temporal] == ["Tends to journal most often in the evening"]
    assert result.temporal[0].evidence == ["Most journal entries at 21:00 (3 entries)"]
    assert [p.pattern for p in result.triggers] == ['"deadline" appears frequently in low-mood journal entries']
    assert result.triggers[0].evidence == ["Appears 3 times in 3 low-mood entries"]


def test_theme_percentage_rounds_half_up():
    start = SUNDAY.replace(hour=8)
    journals = [
        JournalEntry(content="Feeling anxious again", created_at=start + timedelta(days=i, hours=i))
        for i in range(5)
    ] + [
        JournalEntry(content="Quiet day at home", created_at=start + timedelta(days=5 + i, hours=5 + i))
        for i in range(3)
    ]

    result = extract_journal_patterns(journals)

    assert [p.pattern for p in result.emotional] == ["Frequently writes about anxiety (63% of entries)"]
    assert result.emotional[0].evidence == ["5 out of 8 journal entries mention anxiety"]


def test_too_few_journals():
    result = extract_journal_patterns(_journals()[:4])
    assert result.emotional == [] and result.temporal == [] and result.triggers == []


# ============================================================================
# Interventions
# ============================================================================

def test_preferred_type_and_well_rated():
    patterns = extract_intervention_patterns([
        _progress("sleep", "completed", 8, "Sleep Hygiene"),
        _progress("sleep", "completed", 9, "Bedtime Routine"),
        _progress("anxiety"),
    ])

    assert [p.pattern for p in patterns] == [
        "Tends to prefer sleep-focused interventions",
        "Responds well to interventions with average rating of 8.5/10",
    ]
    assert patterns[0].evidence == ["2 out of 3 interventions are sleep-focused"]
    assert patterns[1].evidence == ["Bedtime Routine: 9/10", "Sleep Hygiene: 8/10"]


def test_low_completion_rate():
    patterns = extract_intervention_patterns([
        _progress("sleep"), _progress("anxiety"), _progress("stress"), _progress("focus"),
    ])
    assert [p.pattern for p in patterns] == ["Struggles to complete interventions (low completion rate)"]
    assert patterns[0].evidence == ["Only 0% completion rate (0/4)"]


def test_high_completion_rate():
    patterns = extract_intervention_patterns([
        _progress("sleep", "completed"), _progress("anxiety", "completed"), _progress("stress", "completed"),
    ])
    assert [p.pattern for p in patterns] == ["High completion rate on interventions"]


def test_completion_rate_rounds_half_up():
    types = ["sleep", "anxiety", "stress", "focus", "grief", "breakup", "depression"]
    patterns = extract_intervention_patterns(
        [_progress(t, "completed") for t in types] + [_progress("sleep", name="Unfinished")]
    )
    high = [p for p in patterns if p.pattern == "High completion rate on interventions"]
    assert high[0].evidence == ["88% completion rate (7/8)"]


# ============================================================================
# Chat and memories
# ============================================================================

def _chat(start, user_texts):
    return ChatSession(
        start_time=start,
        messages=[ChatMessage(role="user", content=text) for text in user_texts],
    )


def test_brief_messages():
    sessions = [_chat(NOW - timedelta(days=1), ["short one", "short two"]) for _ in range(5)]
    patterns = extract_chat_patterns(sessions, now=NOW)

    assert [p.pattern for p in patterns] == ["Tends to send brief messages"]
    assert patterns[0].evidence == ["Average message length: 9 characters"]


def test_frequent_sessions():
    sessions = [_chat(NOW - timedelta(days=i), []) for i in range(12)]
    patterns = extract_chat_patterns(sessions, now=NOW)

    assert [p.pattern for p in patterns] == ["Very engaged with chat (frequent sessions)"]
    assert patterns[0].evidence == ["12 sessions in the past 2 weeks"]


def test_memory_buckets():
    memories = [LongTermMemory(memory_type="emotional_theme", content=f"theme {i}") for i in range(3)]
    memories += [LongTermMemory(memory_type="trigger", content=f"trigger {i}") for i in range(2)]

    result = extract_memory_patterns(memories)

    assert [p.pattern for p in result.emotional] == ["Has recurring emotional themes in long-term memory"]
    assert [p.pattern for p in result.triggers] == ["Has 2 identified triggers stored"]
    assert result.triggers[0].evidence == ["trigger 0", "trigger 1"]
    assert result.coping == []


# ============================================================================
# Context
# ============================================================================

def test_top_patterns_keep_input_order_on_ties():
    first = UserPattern(type="emotional", pattern="a", confidence=0.7)
    second = UserPattern(type="temporal", pattern="b", confidence=0.7)
    strong = UserPattern(type="coping", pattern="c", confidence=0.9)

    assert select_top_patterns([first, second, strong]) == [strong, first, second]
    assert len(select_top_patterns([first] * 8)) == 5


def test_journal_themes_are_grouped_as_behavioral():
    context = build_pattern_context([], _journals(), [], [], [], now=NOW)

    assert [p.pattern for p in context.behavioral] == ["Frequently writes about anxiety (60% of entries)"]
    assert context.emotional == []
    assert len(context.trigger) == 1


def test_coping_interventions_appear_in_two_groups():
    interventions = [
        _progress("sleep", "completed", 8, "Sleep Hygiene"),
        _progress("sleep", "completed", 9, "Bedtime Routine"),
    ]
    context = build_pattern_context([], [], interventions, [], [], now=NOW)

    assert len(context.coping) == 2
    assert all(p in context.behavioral for p in context.coping)


def test_format_patterns_for_ai():
    assert format_patterns_for_ai(PatternContext()) == ""

    context = PatternContext(top_patterns=[
        UserPattern(type="emotional", pattern="Feels low on Mondays", confidence=0.7, insight="Plan self-care"),
        UserPattern(type="temporal", pattern="Journals at night", confidence=0.6),
    ])
    block = format_patterns_for_ai(context)

    assert "--- USER PATTERNS (Understanding & Empathy) ---" in block
    assert "- Feels low on Mondays (Plan self-care)\n- Journals at night\n" in block
