"""Unit tests for the pure gating rules."""

import pytest

from serenity.interventions.gating import check_time_appropriate, engagement_level


@pytest.mark.parametrize("hour", [18, 19, 20, 23, 0, 1])
def test_sleep_fits_evening_and_night(hour):
    assert check_time_appropriate("sleep", hour).is_appropriate


@pytest.mark.parametrize("hour", [2, 6, 10, 17])
def test_sleep_not_ideal_during_day(hour):
    check = check_time_appropriate("sleep", hour)
    assert not check.is_appropriate
    assert check.time_of_day == "daytime (not ideal for sleep)"


def test_sleep_labels():
    assert check_time_appropriate("sleep", 21).time_of_day == "bedtime (ideal)"
    assert check_time_appropriate("sleep", 19).time_of_day == "evening/night (appropriate)"


def test_focus_window():
    assert check_time_appropriate("focus", 6).is_appropriate
    assert check_time_appropriate("focus", 21).is_appropriate
    assert not check_time_appropriate("focus", 22).is_appropriate
    assert not check_time_appropriate("focus", 3).is_appropriate


def test_other_types_any_time():
    check = check_time_appropriate("anxiety", 3)
    assert check.is_appropriate
    assert check.time_of_day == "any time (no restriction)"


@pytest.mark.parametrize(
    "sessions,active,expected",
    [
        (0, 0, ("low", 0)),
        (1, 0, ("low", 1)),
        (3, 0, ("medium", 2)),
        (1, 1, ("medium", 2)),
        (7, 0, ("medium", 3)),
        (7, 1, ("high", 4)),
        (3, 2, ("high", 4)),
        (10, 5, ("high", 5)),
    ],
)
def test_engagement_level(sessions, active, expected):
    assert engagement_level(sessions, active) == expected
