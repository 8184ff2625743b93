"""
Integration tests for the intervention lifecycle.

Covers start, step progress, completion, ratings, outcome measurement
and effectiveness prompts against a real (SQLite) database.
"""

from datetime import datetime, timedelta

import pytest

from serenity.core.exceptions import InvalidRatingError
from serenity.database import Mood, Notification
from serenity.interventions.classifiers import DetectedNeed
from serenity.interventions.effectiveness import (
    process_effectiveness_rating,
    prompt_for_effectiveness_rating,
    should_prompt_for_effectiveness,
)
from serenity.interventions.outcomes import get_user_intervention_outcomes, measure_intervention_outcome
from serenity.interventions.progress import InterventionProgressService
from serenity.interventions.recommendation import generate_intervention_suggestions
from serenity.repositories import NotificationRepository
from serenity.services.notifications import EffectivenessPromptMetadata

NOW = datetime(2026, 3, 10, 12, 0)


@pytest.fixture
def service():
    return InterventionProgressService()


async def _start(service, session, user, intervention_id="box-breathing", now=NOW, **kwargs):
    progress = await service.start_intervention(
        session,
        user.id,
        intervention_id,
        kwargs.pop("intervention_type", "anxiety"),
        kwargs.pop("intervention_name", "Box Breathing"),
        kwargs.pop("total_steps", 4),
        now=now,
        **kwargs,
    )
    await session.commit()
    return progress


# ============================================================================
# Lifecycle
# ============================================================================

async def test_start_progress_complete(service, session, user):
    progress = await _start(service, session, user, expected_duration="5 minutes", context={"source": "chat"})

    assert progress.status == "active"
    assert progress.current_step == 1
    assert progress.attempts == 1
    assert progress.context == {"source": "chat"}

    updated = await service.update_progress(
        session, user.id, "box-breathing", 1, notes="felt calmer", now=NOW + timedelta(days=2)
    )
    await session.commit()

    assert updated.completed_steps == [1]
    assert updated.current_step == 2
    assert updated.notes == "felt calmer"
    assert updated.days_since_start == 2

    completed = await service.complete_intervention(
        session, user.id, "box-breathing", effectiveness_rating=8, now=NOW + timedelta(days=3)
    )
    await session.commit()

    assert completed.status == "completed"
    assert completed.completed_at == NOW + timedelta(days=3)
    assert completed.effectiveness_rating == 8
    assert completed.average_effectiveness == 8.0
    assert completed.completions == 1


async def test_repeated_step_is_recorded_once(service, session, user):
    await _start(service, session, user)
    await service.update_progress(session, user.id, "box-breathing", 2, now=NOW)
    progress = await service.update_progress(session, user.id, "box-breathing", 2, now=NOW)
    assert progress.completed_steps == [2]
    assert progress.current_step == 3

    # Going back does not move the cursor
    progress = await service.update_progress(session, user.id, "box-breathing", 1, now=NOW)
    assert progress.completed_steps == [2, 1]
    assert progress.current_step == 3


async def test_restart_counts_as_attempt(service, session, user):
    first = await _start(service, session, user)
    again = await _start(service, session, user)

    assert again.id == first.id
    assert again.attempts == 2


async def test_progress_without_active_run(service, session, user):
    assert await service.update_progress(session, user.id, "box-breathing", 1) is None
    assert await service.complete_intervention(session, user.id, "box-breathing") is None


async def test_complete_rejects_bad_rating(service, session, user):
    await _start(service, session, user)
    with pytest.raises(InvalidRatingError):
        await service.complete_intervention(session, user.id, "box-breathing", effectiveness_rating=11)

    progress = await service.update_progress(session, user.id, "box-breathing", 1)
    assert progress.status == "active"


async def test_active_interventions_report_elapsed_time(service, session, user):
    await _start(service, session, user, now=NOW - timedelta(days=3, hours=5))

    active = await service.get_active_interventions(session, user.id, now=NOW)

    assert len(active) == 1
    assert active[0].days_since_last_active == 3
    assert active[0].hours_since_last_active == 77
    assert active[0].total_steps == 4


# ============================================================================
# Ratings
# ============================================================================

async def test_rating_updates_running_average(service, session, user):
    progress = await _start(service, session, user)
    await service.complete_intervention(session, user.id, "box-breathing", now=NOW)
    progress.completions = 2
    progress.average_effectiveness = 6.0
    await session.commit()

    result = await process_effectiveness_rating(session, user.id, "box-breathing", 9)
    await session.commit()

    assert result.success
    assert progress.average_effectiveness == 7.0
    assert progress.completions == 3
    assert progress.effectiveness_rating == 9


async def test_invalid_rating_changes_nothing(service, session, user):
    progress = await _start(service, session, user)
    await service.complete_intervention(session, user.id, "box-breathing", effectiveness_rating=6, now=NOW)
    await session.commit()

    result = await process_effectiveness_rating(session, user.id, "box-breathing", 0)

    assert not result.success
    assert result.message == "Rating must be between 1 and 10"
    assert progress.average_effectiveness == 6.0
    assert progress.effectiveness_rating == 6


async def test_rating_requires_completed_run(service, session, user):
    await _start(service, session, user)
    result = await process_effectiveness_rating(session, user.id, "box-breathing", 7)

    assert not result.success
    assert result.message == "Intervention not found or not completed"


async def test_effectiveness_history_ranks_suggestions(service, session, user):
    await _start(service, session, user, "bedtime-routine", intervention_type="sleep",
                 intervention_name="Personalized Bedtime Routine Builder", total_steps=8)
    await service.complete_intervention(session, user.id, "bedtime-routine", effectiveness_rating=9, now=NOW)
    await session.commit()

    history = await service.get_effectiveness_map(session, user.id, "sleep")
    assert history == {"bedtime-routine": 9.0}

    need = DetectedNeed(type="sleep", severity="mild", confidence=0.6, indicators=["fatigue from poor sleep"])
    suggestions = await generate_intervention_suggestions(session, need, "beginner", user_id=user.id)

    assert [s.intervention_id for s in suggestions] == ["bedtime-routine", "sleep-hygiene-basics"]


# ============================================================================
# Outcomes
# ============================================================================

async def test_outcome_without_moods(service, session, user):
    await _start(service, session, user)
    outcome = await measure_intervention_outcome(session, user.id, "box-breathing", now=NOW)

    assert outcome.mood_before is None
    assert outcome.mood_after is None
    assert outcome.mood_improvement is None


async def test_outcome_compares_mood_windows(service, session, user):
    started = NOW - timedelta(days=5)
    await _start(service, session, user, now=started)
    session.add_all([
        Mood(user_id=user.id, score=40, timestamp=started - timedelta(days=2)),
        Mood(user_id=user.id, score=40, timestamp=started - timedelta(days=1)),
        Mood(user_id=user.id, score=60, timestamp=started + timedelta(days=1)),
        Mood(user_id=user.id, score=80, timestamp=started + timedelta(days=2)),
        # Outside the before window
        Mood(user_id=user.id, score=10, timestamp=started - timedelta(days=9)),
    ])
    await session.commit()

    outcome = await measure_intervention_outcome(session, user.id, "box-breathing", now=NOW)

    assert outcome.mood_before == pytest.approx(4.0)
    assert outcome.mood_after == pytest.approx(7.0)
    assert outcome.mood_improvement == pytest.approx(3.0)
    assert outcome.mood_improvement_percentage == pytest.approx(75.0)
    assert outcome.days_since_start == 5
    assert outcome.days_since_completion is None


async def test_outcomes_listed_once_per_intervention(service, session, user):
    await _start(service, session, user)
    await _start(service, session, user, "grounding-techniques", intervention_name="Grounding")

    outcomes = await get_user_intervention_outcomes(session, user.id, now=NOW)
    assert sorted(o.intervention_id for o in outcomes) == ["box-breathing", "grounding-techniques"]


async def test_unknown_intervention_has_no_outcome(session, user):
    assert await measure_intervention_outcome(session, user.id, "nope", now=NOW) is None


# ============================================================================
# Effectiveness prompts
# ============================================================================

async def _completed(service, session, user, completed_at):
    await _start(service, session, user, now=completed_at - timedelta(days=1))
    await service.complete_intervention(session, user.id, "box-breathing", now=completed_at)
    await session.commit()


async def test_prompt_eligibility(service, session, user):
    eligibility = await should_prompt_for_effectiveness(session, user.id, "box-breathing", now=NOW)
    assert eligibility.reason == "Intervention not completed"

    await _completed(service, session, user, NOW - timedelta(days=2))
    eligibility = await should_prompt_for_effectiveness(session, user.id, "box-breathing", now=NOW)
    assert eligibility.should_prompt
    assert eligibility.reason == "Completed 2 day(s) ago, not yet rated"


async def test_prompt_window_closes_after_a_week(service, session, user):
    await _completed(service, session, user, NOW - timedelta(days=8))
    eligibility = await should_prompt_for_effectiveness(session, user.id, "box-breathing", now=NOW)
    assert not eligibility.should_prompt


async def test_prompt_sent_once_per_day(service, session, user, recording_sink):
    await _completed(service, session, user, NOW - timedelta(days=2))

    first = await prompt_for_effectiveness_rating(session, recording_sink, user.id, "box-breathing", "Box Breathing", now=NOW)
    await session.commit()
    second = await prompt_for_effectiveness_rating(
        session, recording_sink, user.id, "box-breathing", "Box Breathing", now=NOW + timedelta(hours=3)
    )

    assert first is True
    assert second is False
    assert len(recording_sink.sent) == 1

    metadata = recording_sink.sent[0][1]
    assert isinstance(metadata, EffectivenessPromptMetadata)
    assert metadata.message.startswith('How effective was "Box Breathing" for you?')
    assert metadata.days_since_completion == 2

    stored = await NotificationRepository(Notification, session).get_since(user.id, NOW - timedelta(days=1))
    assert stored[0].payload["prompt_type"] == "effectiveness"
    assert stored[0].title == "How did it go?"

    # Next day another prompt is allowed
    assert await prompt_for_effectiveness_rating(
        session, recording_sink, user.id, "box-breathing", "Box Breathing", now=NOW + timedelta(days=1)
    )


async def test_prompt_mentions_mood_improvement(service, session, user, recording_sink):
    completed_at = NOW - timedelta(days=1)
    await _completed(service, session, user, completed_at)
    started = completed_at - timedelta(days=1)
    session.add_all([
        Mood(user_id=user.id, score=30, timestamp=started - timedelta(days=1)),
        Mood(user_id=user.id, score=70, timestamp=started + timedelta(hours=2)),
    ])
    await session.commit()

    assert await prompt_for_effectiveness_rating(session, recording_sink, user.id, "box-breathing", "Box Breathing", now=NOW)

    metadata = recording_sink.sent[0][1]
    assert metadata.message.startswith("Great progress! Your mood improved from 3.0/10 to 7.0/10")
    assert metadata.mood_improvement == pytest.approx(4.0)


async def test_prompt_delivery_failure_is_reported(service, session, user, failing_sink):
    await _completed(service, session, user, NOW - timedelta(days=2))
    assert await prompt_for_effectiveness_rating(
        session, failing_sink, user.id, "box-breathing", "Box Breathing", now=NOW
    ) is False


async def test_rated_intervention_not_prompted(service, session, user, recording_sink):
    await _completed(service, session, user, NOW - timedelta(days=2))
    await process_effectiveness_rating(session, user.id, "box-breathing", 7)
    await session.commit()

    assert not await prompt_for_effectiveness_rating(
        session, recording_sink, user.id, "box-breathing", "Box Breathing", now=NOW
    )
    assert recording_sink.sent == []
