"""Unit tests for weekly report metrics and the template report."""

from datetime import datetime, timedelta

from serenity.database import JournalEntry, Mood
from serenity.services.weekly_report import (
    WeeklyData,
    calculate_mood_trend,
    count_active_days,
    extract_progress_highlights,
    extract_top_emotions,
    generate_ai_weekly_report,
    generate_fallback_weekly_report,
)

START = datetime(2026, 3, 1, 0, 0)
END = START + timedelta(days=7)


def _moods(*scores):
    return [Mood(score=score, timestamp=START + timedelta(days=i)) for i, score in enumerate(scores)]


def _journal(content="", emotional_state=None, day=0):
    return JournalEntry(content=content, emotional_state=emotional_state, created_at=START + timedelta(days=day))


def test_mood_trend():
    assert calculate_mood_trend(_moods(40, 40, 70, 70)) == "improving"
    assert calculate_mood_trend(_moods(70, 70, 40, 40)) == "declining"
    assert calculate_mood_trend(_moods(50, 52, 54)) == "stable"
    assert calculate_mood_trend(_moods(30)) == "stable"


def test_missing_score_counts_as_neutral():
    assert calculate_mood_trend(_moods(None, 50)) == "stable"


def test_top_emotions_by_frequency():
    journals = [
        _journal(emotional_state="calm"),
        _journal(emotional_state="anxious"),
        _journal(emotional_state="calm"),
        _journal(emotional_state=None),
        _journal(emotional_state="hopeful"),
        _journal(emotional_state="anxious"),
        _journal(emotional_state="calm"),
        _journal(emotional_state="tired"),
    ]
    assert extract_top_emotions(journals) == ["calm", "anxious", "hopeful"]


def test_active_days_merges_moods_and_journals():
    moods = _moods(50, 60)  # days 0 and 1
    journals = [_journal(day=1), _journal(day=3)]
    assert count_active_days(moods, journals) == 3


def test_highlights_are_deduplicated():
    journals = [
        _journal("I'm grateful for my sister"),
        _journal("So thankful today, feeling calm"),
        _journal("Making progress"),
    ]
    highlights = extract_progress_highlights(journals, _moods(30, 50))

    assert highlights == [
        "Practiced gratitude",
        "Found moments of peace",
        "Noticed personal growth",
        "Mood improved throughout the week",
    ]


def test_small_mood_gain_is_not_a_highlight():
    assert extract_progress_highlights([], _moods(50, 58)) == []


def test_fallback_report_with_data():
    data = WeeklyData(
        moods=_moods(40, 80),
        journals=[_journal("grateful")],
        average_mood=6.0,
        mood_trend="improving",
        active_days=2,
        highlights=["Practiced gratitude"],
    )
    report = generate_fallback_weekly_report(data, "Sam", START, END)

    assert report.startswith("**Weekly Wellness Report - 2026-03-01 to 2026-03-08**")
    assert "Hey Sam, here's a quick look at how your week unfolded." in report
    assert "Your average mood this week was 6.0/10. I can see your mood improved" in report
    assert "Some highlights from your week:\n- Practiced gratitude" in report
    assert "You were active 2 days this week - that's consistency!" in report
    assert "For next week, try these small things:" in report
    assert report.endswith("Keep caring for yourself in small ways - they add up.")


def test_fallback_report_without_mood_skips_mood_line():
    data = WeeklyData(journals=[_journal("hello")], active_days=1)
    report = generate_fallback_weekly_report(data, "Sam", START, END)

    assert "average mood" not in report
    assert "highlights" not in report


def test_fallback_report_without_data():
    report = generate_fallback_weekly_report(WeeklyData(), "Sam", START, END)

    assert "I don't have much data from this week" in report
    assert "For next week, consider:" in report


async def test_ai_report_prompt_carries_metrics(fake_llm):
    llm = fake_llm(response="  Your week was great.  ")
    data = WeeklyData(
        moods=_moods(60),
        average_mood=6.0,
        mood_trend="stable",
        top_emotions=["calm"],
        active_days=1,
    )

    report = await generate_ai_weekly_report(data, "Sam", llm)

    assert report == "Your week was great."
    prompt = llm.prompts[0]
    assert "User: Sam" in prompt
    assert "- Average mood: 6.0/10" in prompt
    assert "- Top emotions: calm" in prompt
    assert "- Progress highlights: None noted" in prompt
    assert "- Therapy sessions: 0" in prompt
