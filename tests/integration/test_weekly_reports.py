"""Integration tests for scheduled weekly reports."""

from datetime import datetime, timedelta

import pytest
from sqlalchemy import select

from serenity.database import ChatSession, JournalEntry, Mood, WeeklyReport
from serenity.services.background_queue import BackgroundQueue
from serenity.services.weekly_report import WeeklyReportScheduler
from serenity.utils.dates import to_iso

# Saturday midnight, when the beat schedule fires
NOW = datetime(2026, 3, 14, 0, 0)
WEEK_START = NOW - timedelta(days=7)


async def _add_week(session_factory, user):
    async with session_factory() as s:
        s.add_all([
            Mood(user_id=user.id, score=40, timestamp=WEEK_START + timedelta(days=1)),
            Mood(user_id=user.id, score=60, timestamp=WEEK_START + timedelta(days=3)),
            Mood(user_id=user.id, score=80, timestamp=WEEK_START + timedelta(days=5)),
            JournalEntry(user_id=user.id, content="Feeling calm and grateful today",
                         emotional_state="calm", created_at=WEEK_START + timedelta(days=5, hours=2)),
        ])
        await s.commit()


async def _reports(session_factory, user):
    async with session_factory() as s:
        result = await s.execute(select(WeeklyReport).where(WeeklyReport.user_id == user.id))
        return list(result.scalars().all())


@pytest.fixture
def queue():
    return BackgroundQueue(concurrency=1)


async def test_run_once_queues_a_job_per_user(session_factory, make_user, queue, fake_llm):
    active = await make_user(name="Alex")
    quiet = await make_user(name="Sam")
    await _add_week(session_factory, active)
    llm = fake_llm("Great week, Alex!")

    scheduler = WeeklyReportScheduler(session_factory, queue, llm_caller=llm)
    assert await scheduler.run_once(now=NOW) == 2
    await queue.join()

    assert queue.completed == 2
    assert queue.failed == 0

    reports = await _reports(session_factory, active)
    assert len(reports) == 1
    assert reports[0].content == "Great week, Alex!"
    assert reports[0].payload["week_start"] == to_iso(WEEK_START)
    assert reports[0].payload["week_end"] == to_iso(NOW)
    assert "generated_at" in reports[0].payload

    # No activity, no report
    assert await _reports(session_factory, quiet) == []


async def test_prompt_carries_week_metrics(session_factory, user, queue, fake_llm):
    await _add_week(session_factory, user)
    llm = fake_llm("Nice work.")

    await WeeklyReportScheduler(session_factory, queue, llm_caller=llm).generate_for_user(user.id, now=NOW)

    prompt = llm.prompts[0]
    assert "User: Alex" in prompt
    assert "- Average mood: 6.0/10" in prompt
    assert "- Mood trend: improving" in prompt
    assert "- Top emotions: calm" in prompt
    assert "- Activity streak: 3 days" in prompt
    assert "Practiced gratitude" in prompt
    assert "- Journal entries: 1" in prompt


async def test_llm_failure_uses_template(session_factory, user, queue, fake_llm):
    await _add_week(session_factory, user)
    scheduler = WeeklyReportScheduler(session_factory, queue, llm_caller=fake_llm(error=RuntimeError("down")))

    report = await scheduler.generate_for_user(user.id, now=NOW)

    assert report.content.startswith("**Weekly Wellness Report - 2026-03-07 to 2026-03-14**")
    assert "Hey Alex" in report.content
    assert "I can see your mood improved throughout the week" in report.content
    assert "- Mood improved throughout the week" in report.content


async def test_no_llm_uses_template(session_factory, user, queue):
    await _add_week(session_factory, user)
    report = await WeeklyReportScheduler(session_factory, queue).generate_for_user(user.id, now=NOW)
    assert "You were active 3 days this week" in report.content


async def test_recent_report_blocks_another(session_factory, user, queue, fake_llm):
    await _add_week(session_factory, user)
    async with session_factory() as s:
        s.add(WeeklyReport(user_id=user.id, content="earlier", created_at=NOW - timedelta(days=3)))
        await s.commit()
    llm = fake_llm("Nice work.")

    assert await WeeklyReportScheduler(session_factory, queue, llm_caller=llm).generate_for_user(user.id, now=NOW) is None
    assert llm.prompts == []


async def test_report_older_than_a_week_does_not_block(session_factory, user, queue):
    await _add_week(session_factory, user)
    async with session_factory() as s:
        s.add(WeeklyReport(user_id=user.id, content="last week", created_at=NOW - timedelta(days=8)))
        await s.commit()

    assert await WeeklyReportScheduler(session_factory, queue).generate_for_user(user.id, now=NOW) is not None
    assert len(await _reports(session_factory, user)) == 2


async def test_chat_alone_is_not_enough_data(session_factory, user, queue):
    async with session_factory() as s:
        s.add(ChatSession(user_id=user.id, start_time=NOW - timedelta(days=2)))
        await s.commit()

    assert await WeeklyReportScheduler(session_factory, queue).generate_for_user(user.id, now=NOW) is None


async def test_failing_job_is_dropped_by_queue(session_factory, make_user, queue):
    await make_user()

    class _BrokenScheduler(WeeklyReportScheduler):
        async def generate_for_user(self, user_id, now=None):
            raise RuntimeError("storage offline")

    assert await _BrokenScheduler(session_factory, queue).run_once(now=NOW) == 1
    await queue.join()

    assert queue.failed == 1
    assert queue.completed == 0
