"""Integration tests for intervention gating."""

from datetime import datetime, timedelta

from serenity.database import ChatSession, InterventionProgress, LongTermMemory
from serenity.interventions.gating import InterventionGate

EVENING = datetime(2026, 3, 10, 21, 0)
MORNING = datetime(2026, 3, 10, 10, 0)


def _gate(now):
    return InterventionGate(clock=lambda: now)


async def _add_recent_sleep_progress(session, user, created_at):
    session.add(InterventionProgress(
        user_id=user.id,
        intervention_id="sleep-hygiene-basics",
        intervention_type="sleep",
        intervention_name="Sleep Hygiene Basics",
        status="active",
        started_at=created_at,
        last_active_at=created_at,
        created_at=created_at,
    ))
    await session.commit()


async def test_explicit_mention_at_bedtime_passes_all(session, user):
    result = await _gate(EVENING).should_suggest(session, user.id, "sleep", "I can't sleep again")

    assert result.should_suggest
    assert result.passed_criteria == 3
    assert result.reason == "Gating passed: 3/3 criteria met"
    assert result.context == {
        "time_of_day": "bedtime (ideal)",
        "mention_seriousness": "explicit",
        "recent_suggestions": "No",
        "user_engagement": "low",
    }


async def test_daytime_sleep_mention_still_passes_two(session, user):
    result = await _gate(MORNING).should_suggest(session, user.id, "sleep", "I can't sleep again")

    assert result.should_suggest
    assert result.passed_criteria == 2
    assert result.context["time_of_day"] == "daytime (not ideal for sleep)"


async def test_casual_daytime_mention_after_recent_suggestion_fails(session, user):
    await _add_recent_sleep_progress(session, user, MORNING - timedelta(days=2))

    result = await _gate(MORNING).should_suggest(session, user.id, "sleep", "bit tired")

    assert not result.should_suggest
    assert result.passed_criteria == 0
    assert result.reason == (
        "Gating failed: Not ideal time (daytime (not ideal for sleep)), Casual mention (not serious), "
        "Recently suggested (2 days ago). Need 2 criteria to pass."
    )


async def test_old_progress_does_not_block(session, user):
    await _add_recent_sleep_progress(session, user, MORNING - timedelta(days=10))

    result = await _gate(MORNING).should_suggest(session, user.id, "sleep", "bit tired")

    assert result.context["recent_suggestions"] == "No"
    assert result.passed_criteria == 1
    assert not result.should_suggest


async def test_insight_memory_counts_as_recent(session, user):
    session.add(LongTermMemory(
        user_id=user.id,
        memory_type="insight",
        content="Suggested a sleep routine",
        timestamp=EVENING - timedelta(days=1),
    ))
    await session.commit()

    result = await _gate(EVENING).should_suggest(session, user.id, "sleep", "I can't sleep again")

    assert result.passed_criteria == 2
    assert result.context["recent_suggestions"] == "Yes (1 days ago)"


async def test_engagement_reported_but_not_gating(session, user):
    session.add_all([
        ChatSession(user_id=user.id, start_time=EVENING - timedelta(days=i)) for i in range(3)
    ])
    await session.commit()

    result = await _gate(EVENING).should_suggest(session, user.id, "anxiety", "I feel anxious")

    assert result.context["user_engagement"] == "medium"
    assert result.context["time_of_day"] == "any time (no restriction)"


class _BrokenClassifier:
    def assess(self, message, recent_messages, intervention_type):
        raise RuntimeError("classifier down")


async def test_gate_fails_open(session, user):
    gate = InterventionGate(seriousness_classifier=_BrokenClassifier(), clock=lambda: MORNING)

    result = await gate.should_suggest(session, user.id, "sleep", "I can't sleep")

    assert result.should_suggest
    assert result.passed_criteria == 2
    assert result.reason == "Gating check failed - defaulting to allow"
