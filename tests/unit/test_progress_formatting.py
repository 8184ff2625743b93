"""Unit tests for progress math, prompt context and outcome wording."""

from datetime import datetime

import pytest

from serenity.core.exceptions import InvalidRatingError
from serenity.interventions.outcomes import OutcomeMeasurement, format_outcome_message
from serenity.interventions.progress import (
    InterventionContext,
    format_intervention_context_for_ai,
    intervention_phase,
    last_interaction,
    running_average,
    started_ago,
    time_of_day_label,
    validate_rating,
)

NOW = datetime(2026, 3, 2, 14, 5)  # Monday


# ============================================================================
# Ratings
# ============================================================================

@pytest.mark.parametrize("rating", [1, 5, 10, 7.5])
def test_valid_ratings(rating):
    assert validate_rating(rating) == rating


@pytest.mark.parametrize("rating", [0, 11, -3, "7", None, True])
def test_invalid_ratings(rating):
    with pytest.raises(InvalidRatingError) as exc_info:
        validate_rating(rating)
    assert exc_info.value.message == "Rating must be between 1 and 10"


def test_running_average():
    assert running_average(0.0, 0, 8) == 8.0
    assert running_average(6.0, 2, 9) == 7.0


# ============================================================================
# Elapsed-time phrases
# ============================================================================

def test_started_ago():
    assert started_ago(0) == "0 days ago"
    assert started_ago(1) == "1 day ago"
    assert started_ago(7) == "1 week ago"
    assert started_ago(15) == "2 weeks and 1 day ago"


def test_last_interaction():
    assert last_interaction(0, 0) == " (last active: just now)"
    assert last_interaction(0, 1) == " (last active: 1 hour ago)"
    assert last_interaction(0, 5) == " (last active: 5 hours ago)"
    assert last_interaction(1, 30) == " (last active: yesterday)"
    assert last_interaction(4, 100) == " (last active: 4 days ago)"
    assert last_interaction(14, 336) == " (last active: 2 weeks ago)"


def test_intervention_phase():
    assert intervention_phase(2) == " (just started - early phase)"
    assert intervention_phase(10) == " (first 2 weeks - building habits)"
    assert intervention_phase(20) == " (approaching 1 month - establishing routines)"
    assert intervention_phase(65) == " (2 months in - long-term practice)"


def test_time_of_day_label():
    assert time_of_day_label(3) == "night (late)"
    assert time_of_day_label(9) == "morning"
    assert time_of_day_label(14) == "afternoon"
    assert time_of_day_label(19) == "evening"
    assert time_of_day_label(22) == "night (bedtime)"


# ============================================================================
# Context block
# ============================================================================

def _context(**overrides):
    fields = dict(
        intervention_id="box-breathing",
        intervention_type="anxiety",
        intervention_name="Box Breathing",
        days_since_start=1,
        days_since_last_active=0,
        hours_since_last_active=3,
        current_step=2,
        total_steps=4,
        status="active",
        started_at=datetime(2026, 3, 1, 9, 0),
        expected_duration="5 minutes",
    )
    fields.update(overrides)
    return InterventionContext(**fields)


def test_time_context_without_interventions():
    block = format_intervention_context_for_ai([], now=NOW)

    assert "Today is Monday, March 2, 2026 (UTC)" in block
    assert "Current time: 2:05 PM (afternoon)" in block
    assert "ACTIVE INTERVENTIONS" not in block


def test_time_context_in_user_timezone():
    block = format_intervention_context_for_ai([], now=NOW, user_timezone="America/New_York")

    assert "(User's timezone: America/New_York)" in block
    assert "Current time: 9:05 AM (morning)" in block


def test_unknown_timezone_falls_back_to_utc():
    block = format_intervention_context_for_ai([], now=NOW, user_timezone="Mars/Olympus")
    assert "(UTC)" in block


def test_active_intervention_line():
    block = format_intervention_context_for_ai([_context()], now=NOW)

    assert (
        "- Box Breathing: Started 1 day ago (step 2 of 4 - 50% complete)"
        " (last active: 3 hours ago) (just started - early phase) [Expected duration: 5 minutes]"
    ) in block


def test_line_without_steps_or_duration():
    block = format_intervention_context_for_ai(
        [_context(total_steps=0, expected_duration=None, days_since_start=20, hours_since_last_active=0)],
        now=NOW,
    )
    assert (
        "- Box Breathing: Started 2 weeks and 6 days ago (last active: just now)"
        " (approaching 1 month - establishing routines)\n"
    ) in block


# ============================================================================
# Outcome messages
# ============================================================================

def _outcome(before, after):
    improvement = after - before if before is not None and after is not None else None
    percentage = improvement / before * 100 if improvement is not None and before else None
    return OutcomeMeasurement(
        intervention_id="box-breathing",
        intervention_name="Box Breathing",
        intervention_type="anxiety",
        mood_before=before,
        mood_after=after,
        mood_improvement=improvement,
        mood_improvement_percentage=percentage,
        days_since_start=10,
        days_since_completion=2,
    )


def test_outcome_great_progress():
    message = format_outcome_message(_outcome(4.0, 6.0))
    assert message.startswith("Great progress! Your mood improved from 4.0/10 to 6.0/10 (+2.0, 50% improvement)")


def test_outcome_small_gain():
    assert format_outcome_message(_outcome(5.0, 5.3)).startswith("Good news!")


def test_outcome_stable():
    assert "stable (5.0/10 -> 4.8/10)" in format_outcome_message(_outcome(5.0, 4.8))


def test_outcome_decline_is_gentle():
    message = format_outcome_message(_outcome(6.0, 4.0))
    assert "Sometimes it takes time to see results" in message


def test_outcome_without_data():
    message = format_outcome_message(_outcome(None, None))
    assert message == 'You\'ve been working on "Box Breathing" for 10 days. Keep it up!'
