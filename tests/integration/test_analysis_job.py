"""Integration tests for the periodic personalization analysis job."""

from datetime import datetime, timedelta

from serenity.database import ChatMessage, ChatSession, ConversationSummary, Personalization
from serenity.repositories import ConversationSummaryRepository, PersonalizationRepository
from serenity.services.analysis_job import PersonalizationAnalysisJob

# Tuesday; the week started on Sunday 2026-03-08
NOW = datetime(2026, 3, 10, 12, 0)


async def _chat(session_factory, user, start_time, text="I keep worrying about work"):
    async with session_factory() as s:
        s.add(ChatSession(
            user_id=user.id,
            start_time=start_time,
            end_time=start_time + timedelta(minutes=20),
            messages=[
                ChatMessage(role="user", content=text, timestamp=start_time),
                ChatMessage(role="assistant", content="Tell me more", timestamp=start_time + timedelta(minutes=1)),
            ],
        ))
        await s.commit()


async def _active_user(make_user, session_factory):
    user = await make_user()
    for start in (datetime(2026, 3, 8, 20, 0), datetime(2026, 3, 9, 20, 30), datetime(2026, 3, 10, 9, 0)):
        await _chat(session_factory, user, start)
    return user


async def _profile(session_factory, user):
    async with session_factory() as s:
        return await PersonalizationRepository(Personalization, s).get_by_user(user.id)


async def test_run_analyzes_active_users(make_user, session_factory, test_settings, fake_llm):
    user = await _active_user(make_user, session_factory)
    llm = fake_llm("The user realized that rest matters.")
    job = PersonalizationAnalysisJob(session_factory, llm_caller=llm, settings=test_settings)

    result = await job.run_for_all_users(now=NOW)

    assert result.as_dict() == {"total": 1, "processed": 1, "errors": 0}

    profile = await _profile(session_factory, user)
    assert profile.last_analysis == NOW
    assert profile.time_patterns["hour_of_day"] == [20, 9]
    assert profile.time_patterns["session_duration"]["average"] == 20.0

    async with session_factory() as s:
        repo = ConversationSummaryRepository(ConversationSummary, s)
        assert await repo.exists_starting_in(user.id, "weekly", datetime(2026, 3, 8), datetime(2026, 3, 15))
        assert await repo.exists_starting_in(user.id, "monthly", datetime(2026, 3, 1), datetime(2026, 4, 1))
    assert len(llm.prompts) == 2


async def test_inactive_users_are_not_counted(make_user, session_factory, test_settings):
    active = await _active_user(make_user, session_factory)
    idle = await make_user(name="Sam")
    await _chat(session_factory, idle, NOW - timedelta(days=60))

    result = await PersonalizationAnalysisJob(session_factory, settings=test_settings).run_for_all_users(now=NOW)

    assert result.total == 1
    assert await _profile(session_factory, idle) is None
    assert await _profile(session_factory, active) is not None


async def test_recently_analyzed_user_is_skipped(make_user, session_factory, test_settings):
    user = await _active_user(make_user, session_factory)
    job = PersonalizationAnalysisJob(session_factory, settings=test_settings)

    await job.analyze_user(user.id, now=NOW)
    assert await job.analyze_user(user.id, now=NOW + timedelta(days=1)) is True

    profile = await _profile(session_factory, user)
    assert profile.last_analysis == NOW

    await job.analyze_user(user.id, now=NOW + timedelta(days=4))
    profile = await _profile(session_factory, user)
    assert profile.last_analysis == NOW + timedelta(days=4)


async def test_summaries_are_not_duplicated(make_user, session_factory, test_settings, fake_llm):
    user = await _active_user(make_user, session_factory)
    llm = fake_llm("A calm week.")
    job = PersonalizationAnalysisJob(session_factory, llm_caller=llm, settings=test_settings)

    await job.generate_periodic_summaries(user.id, now=NOW)
    await job.generate_periodic_summaries(user.id, now=NOW + timedelta(days=1))

    assert len(llm.prompts) == 2


class _ExplodingPersonalization:
    async def update_from_patterns(self, *args, **kwargs):
        raise RuntimeError("database went away")


async def test_failures_are_counted_and_do_not_stop_the_run(make_user, session_factory, test_settings):
    await _active_user(make_user, session_factory)
    await _active_user(make_user, session_factory)
    job = PersonalizationAnalysisJob(
        session_factory, settings=test_settings, personalization=_ExplodingPersonalization()
    )

    result = await job.run_for_all_users(now=NOW)

    assert result.as_dict() == {"total": 2, "processed": 0, "errors": 2}


async def test_no_active_users(session_factory, test_settings):
    result = await PersonalizationAnalysisJob(session_factory, settings=test_settings).run_for_all_users(now=NOW)
    assert result.as_dict() == {"total": 0, "processed": 0, "errors": 0}


class _WeeklyFailsSummarizer:
    def __init__(self):
        self.generated = []

    async def generate_period_summary(self, session, user_id, summary_type, start, end):
        if summary_type == "weekly":
            session.add(ConversationSummary(user_id=user_id, summary_type="weekly"))
            await session.flush()  # violates NOT NULL columns
        self.generated.append(summary_type)
        session.add(ConversationSummary(
            user_id=user_id, summary_type=summary_type, period_start=start, period_end=end, summary="ok",
        ))


async def test_failed_weekly_summary_does_not_block_monthly(make_user, session_factory, test_settings):
    user = await _active_user(make_user, session_factory)
    summarizer = _WeeklyFailsSummarizer()
    job = PersonalizationAnalysisJob(session_factory, settings=test_settings, summarizer=summarizer)

    await job.generate_periodic_summaries(user.id, now=NOW)

    assert summarizer.generated == ["monthly"]
    async with session_factory() as s:
        repo = ConversationSummaryRepository(ConversationSummary, s)
        assert not await repo.exists_starting_in(user.id, "weekly", datetime(2026, 3, 8), datetime(2026, 3, 15))
        assert await repo.exists_starting_in(user.id, "monthly", datetime(2026, 3, 1), datetime(2026, 4, 1))
