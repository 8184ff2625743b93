"""Integration tests for the personalization profile and its build step."""

from datetime import datetime, timedelta

import pytest

from serenity.core.exceptions import ConcurrentUpdateError, InvalidPreferenceError, RecordNotFoundError
from serenity.database import ConversationSummary, Personalization
from serenity.repositories import PersonalizationRepository
from serenity.services.personalization import PersonalizationService
from serenity.services.personalization_builder import build_enforcement_rules, build_personalization_context
from serenity.services.personalization_signals import PersonalizationSignal, TimeAnalysis

NOW = datetime(2026, 3, 10, 12, 0)


@pytest.fixture
def service():
    return PersonalizationService()


def _signal(signal_type, value, confidence=0.8, evidence=None, frequency=0.5, sample_size=20):
    return PersonalizationSignal(
        type=signal_type,
        value=value,
        evidence=evidence or [f"{signal_type} evidence"],
        confidence=confidence,
        frequency=frequency,
        sample_size=sample_size,
    )


async def test_profile_created_with_defaults(service, session, user):
    record = await service.get_or_create(session, user.id)
    await session.commit()

    assert record.version == 1
    assert record.communication["inferred_style"] == "gentle"
    assert record.data_quality == 0.3
    assert service.describe(record)["communication"]["style"] == "gentle"


async def test_update_from_patterns(service, session, user):
    signals = [
        _signal("communication_style", "direct"),
        _signal("verbosity", "concise", confidence=0.55),
        _signal("topic_preference", ["work", "health"], confidence=0.6),
        _signal("engagement", "high", frequency=0.8),
    ]
    time_analysis = TimeAnalysis(preferred_hours=[20], preferred_days=[1], average_session_duration=25.0,
                                 typical_range=(20.0, 30.0))

    record = await service.update_from_patterns(session, user.id, signals, time_analysis, now=NOW)
    await session.commit()

    assert record.communication["inferred_style"] == "direct"
    # Below the 0.6 bar
    assert record.communication["verbosity"] == "moderate"
    assert record.communication["preferred_topics"] == ["work", "health"]
    assert record.engagement["trend"] == "increasing"
    assert record.time_patterns["hour_of_day"] == [20]
    assert record.time_patterns["session_duration"] == {"average": 25.0, "typical_range": [20.0, 30.0]}
    assert record.last_analysis == NOW
    assert record.data_quality == pytest.approx(min(1.0, 0.3 + 0.8 * 0.7))
    assert [t["pattern"] for t in record.behavioral_tendencies][0] == "communication_style evidence"


async def test_overrides_survive_inferred_updates(service, session, user):
    await service.update_preferences(session, user.id, communication={"style": "supportive"})
    await session.commit()

    record = await service.update_from_patterns(
        session, user.id, [_signal("communication_style", "direct")], TimeAnalysis(), now=NOW
    )
    await session.commit()

    assert record.user_overrides["communication_style"] == "supportive"
    assert record.communication["inferred_style"] == "gentle"
    assert service.describe(record)["communication"]["style"] == "supportive"


async def test_update_preferences_validates_values(service, session, user):
    record = await service.update_preferences(
        session,
        user.id,
        intent={"primary_goals": [f"goal {i}" for i in range(12)], "current_focus": "not a list"},
        communication={"style": "shouty", "verbosity": "concise", "topics_to_avoid": ["ex"]},
        personalization_enabled=False,
    )
    await session.commit()

    assert len(record.intent["primary_goals"]) == 10
    assert record.intent["current_focus"] == []
    assert "communication_style" not in record.user_overrides
    assert record.user_overrides["verbosity"] == "concise"
    assert record.user_overrides["topics_to_avoid"] == ["ex"]
    assert record.personalization_enabled is False
    assert record.version == 2


async def test_engagement_signal_tracking(service, session, user):
    await service.get_or_create(session, user.id)
    await session.commit()

    await service.track_engagement_signal(session, user.id, session_length=10, messages_count=10, feedback="positive")
    await session.commit()

    record = await PersonalizationRepository(Personalization, session).get_by_user(user.id)
    assert record.engagement["avg_messages_per_session"] == pytest.approx(3.0)
    assert record.engagement["avg_session_length"] == pytest.approx(3.0)
    assert record.engagement["trend"] == "increasing"
    assert record.engagement["response_quality"] == pytest.approx(0.3 * 0.8 + 0.7 * 0.5)
    assert record.engagement["session_frequency"] == 1


async def test_engagement_tracking_ignores_missing_profile(service, session, user):
    await service.track_engagement_signal(session, user.id, session_length=5, messages_count=2)
    assert await PersonalizationRepository(Personalization, session).get_by_user(user.id) is None


# ============================================================================
# Reset and explainability
# ============================================================================

async def test_reset_inferred_keeps_explicit_choices(service, session, user):
    record = await service.get_or_create(session, user.id)
    record.communication = {**record.communication, "preferred_topics": ["work", "sleep"], "inferred_style": "direct"}
    record.user_overrides = {"preferred_topics": ["sleep"]}
    record.behavioral_tendencies = [{"pattern": "x", "confidence": 0.9}]
    record.adaptation_rules = [
        {"condition": "a", "action": "b", "source": "user_explicit"},
        {"condition": "c", "action": "d", "source": "inferred"},
    ]
    await session.commit()
    version = record.version

    record = await service.reset_personalization(session, user.id, "inferred")
    await session.commit()

    assert record.communication["preferred_topics"] == ["sleep"]
    assert "inferred_style" not in record.communication
    assert record.behavioral_tendencies == []
    assert [r["condition"] for r in record.adaptation_rules] == ["a"]
    assert record.version == version + 1


async def test_reset_communication_drops_style_override(service, session, user):
    await service.update_preferences(session, user.id, communication={"style": "direct", "verbosity": "detailed"})
    await session.commit()

    record = await service.reset_personalization(session, user.id, "communication")

    assert "communication_style" not in record.user_overrides
    assert record.communication["verbosity"] == "detailed"


async def test_reset_rejects_unknown_type(service, session, user):
    with pytest.raises(InvalidPreferenceError):
        await service.reset_personalization(session, user.id, "everything")


async def test_reset_and_explain_need_a_profile(service, session, user):
    with pytest.raises(RecordNotFoundError):
        await service.reset_personalization(session, user.id, "all")
    with pytest.raises(RecordNotFoundError):
        await service.get_explainability(session, user.id)


async def test_explainability_sources(service, session, user):
    await service.update_preferences(session, user.id, communication={"verbosity": "concise"})
    record = await service.get_or_create(session, user.id)
    record.behavioral_tendencies = [
        {"pattern": "strong", "confidence": 0.8, "frequency": 0.5, "sample_size": 10},
        {"pattern": "weak", "confidence": 0.3},
    ]
    await session.commit()

    report = await service.get_explainability(session, user.id)

    assert report["communication"]["verbosity"] == {"value": "concise", "source": "user_explicit"}
    assert report["communication"]["style"]["source"] == "system_default"
    assert [t["pattern"] for t in report["behavioral_tendencies"]] == ["strong"]


# ============================================================================
# Concurrency
# ============================================================================

async def test_concurrent_update_is_detected(service, session_factory, user):
    async with session_factory() as setup:
        await service.get_or_create(setup, user.id)
        await setup.commit()

    async with session_factory() as first, session_factory() as second:
        stale = await PersonalizationRepository(Personalization, first).get_by_user(user.id)
        fresh = await PersonalizationRepository(Personalization, second).get_by_user(user.id)

        fresh.intent = {"primary_goals": ["sleep better"]}
        await PersonalizationRepository(Personalization, second).save(fresh)
        await second.commit()

        stale.intent = {"primary_goals": ["run a marathon"]}
        with pytest.raises(ConcurrentUpdateError):
            await PersonalizationRepository(Personalization, first).save(stale)

    async with session_factory() as check:
        record = await PersonalizationRepository(Personalization, check).get_by_user(user.id)
        assert record.intent == {"primary_goals": ["sleep better"]}
        assert record.version == 2


async def test_unversioned_field_changes_keep_version(service, session, user):
    record = await service.get_or_create(session, user.id)
    await session.commit()

    record.time_patterns = {"hour_of_day": [9]}
    await PersonalizationRepository(Personalization, session).save(record)
    await session.commit()

    assert record.version == 1


# ============================================================================
# Context builder
# ============================================================================

async def test_build_context_with_summaries(service, session, user):
    await service.update_preferences(session, user.id, communication={"style": "direct"})
    session.add(ConversationSummary(
        user_id=user.id,
        summary_type="weekly",
        period_start=NOW - timedelta(days=7),
        period_end=NOW,
        summary="Talked about work stress.",
        key_topics=["work"],
    ))
    await session.commit()

    context = await build_personalization_context(session, user.id, now=NOW)

    assert context.communication.style == "direct"
    assert context.summaries == [{
        "period": "weekly (2026-03-03 - 2026-03-10)",
        "summary": "Talked about work stress.",
        "key_topics": ["work"],
    }]
    assert "You MUST communicate in a direct style" in build_enforcement_rules(context)


async def test_no_context_when_disabled_or_missing(service, session, user):
    assert await build_personalization_context(session, user.id) is None

    await service.update_preferences(session, user.id, personalization_enabled=False)
    await session.commit()
    assert await build_personalization_context(session, user.id) is None
