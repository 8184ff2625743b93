"""
Personalization service.

Owns every write to the per-user ``Personalization`` record: merging the
periodic analysis results, engagement tracking after chat turns, and the
user-facing preference, reset and explainability operations.

Explicit user overrides are never touched by inferred updates.
"""

from copy import deepcopy
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import InvalidPreferenceError, RecordNotFoundError
from ..database import Personalization, utcnow
from ..repositories import PersonalizationRepository
from ..utils.dates import to_iso
from .personalization_builder import effective_communication
from .personalization_signals import PersonalizationSignal, TimeAnalysis

COMMUNICATION_STYLES = ("gentle", "direct", "supportive")
VERBOSITY_LEVELS = ("concise", "moderate", "detailed")
RESET_TYPES = ("all", "inferred", "communication", "behavioral")

MAX_GOALS = 10
MAX_FOCUS = 5
MAX_TOPICS = 10
MAX_TENDENCIES = 20

ENGAGEMENT_ALPHA = 0.3
FEEDBACK_QUALITY = {"positive": 0.8, "negative": 0.2, "neutral": 0.5}


def _find_signal(signals: Sequence[PersonalizationSignal], signal_type: str) -> Optional[PersonalizationSignal]:
    return next((s for s in signals if s.type == signal_type), None)


def _empty_explainability(now: datetime) -> Dict[str, Any]:
    return {"active_rules": [], "inferred_patterns": [], "last_explained": to_iso(now)}


def merge_tendencies(
    existing: List[Dict[str, Any]],
    signals: Sequence[PersonalizationSignal],
    now: datetime,
) -> List[Dict[str, Any]]:
    """
    Merge signals into behavioral tendencies keyed by their joined evidence.

    Known tendencies average their frequency, keep the higher confidence
    and accumulate sample sizes; unknown ones are added only above 0.6
    confidence. The result keeps the 20 most confident.
    """
    tendencies = deepcopy(existing)
    observed = to_iso(now)

    for signal in signals:
        key = "; ".join(signal.evidence)
        match = next((t for t in tendencies if t.get("pattern") == key), None)
        if match is not None:
            match["frequency"] = (match.get("frequency", 0) + signal.frequency) / 2
            match["confidence"] = max(match.get("confidence", 0), signal.confidence)
            match["last_observed"] = observed
            match["sample_size"] = match.get("sample_size", 0) + signal.sample_size
        elif signal.confidence > 0.6:
            tendencies.append({
                "pattern": key,
                "frequency": signal.frequency,
                "confidence": signal.confidence,
                "first_observed": observed,
                "last_observed": observed,
                "sample_size": signal.sample_size,
            })

    tendencies.sort(key=lambda t: t.get("confidence", 0), reverse=True)
    return tendencies[:MAX_TENDENCIES]


def data_quality_for(signals: Sequence[PersonalizationSignal]) -> float:
    total_samples = sum(s.sample_size for s in signals)
    return min(1.0, 0.3 + (total_samples / 100) * 0.7)


class PersonalizationService:
    """Reads and writes the per-user personalization profile."""

    # -------------------------------------------------------------------------
    # Periodic Analysis
    # -------------------------------------------------------------------------

    async def update_from_patterns(
        self,
        session: AsyncSession,
        user_id: UUID,
        signals: Sequence[PersonalizationSignal],
        time_analysis: TimeAnalysis,
        now: Optional[datetime] = None,
    ) -> Personalization:
        """
        Merge analysis results into the profile, creating it if needed.

        Raises:
            ConcurrentUpdateError: the profile changed underneath this update.
        """
        now = now or utcnow()
        repo = PersonalizationRepository(Personalization, session)
        record = await repo.get_or_create(user_id)
        overrides = record.user_overrides or {}

        record.time_patterns = {
            "hour_of_day": list(time_analysis.preferred_hours),
            "day_of_week": list(time_analysis.preferred_days),
            "session_duration": {
                "average": time_analysis.average_session_duration,
                "typical_range": list(time_analysis.typical_range),
            },
            "last_active_time": to_iso(now),
        }

        communication = deepcopy(record.communication or {})

        style = _find_signal(signals, "communication_style")
        if style and style.confidence > 0.6 and not overrides.get("communication_style"):
            communication["inferred_style"] = style.value

        verbosity = _find_signal(signals, "verbosity")
        if verbosity and verbosity.confidence > 0.6 and not overrides.get("verbosity"):
            communication["verbosity"] = verbosity.value

        topics = _find_signal(signals, "topic_preference")
        if topics and topics.confidence > 0.5:
            merged = list(dict.fromkeys([
                *(communication.get("preferred_topics") or []),
                *(t.strip() for t in topics.value),
            ]))
            communication["preferred_topics"] = merged[:MAX_TOPICS]

        record.communication = communication

        engagement_signal = _find_signal(signals, "engagement")
        if engagement_signal:
            engagement = deepcopy(record.engagement or {})
            if engagement_signal.frequency > 0.7:
                engagement["trend"] = "increasing"
            elif engagement_signal.frequency < 0.3:
                engagement["trend"] = "decreasing"
            else:
                engagement["trend"] = "stable"
            record.engagement = engagement

        record.behavioral_tendencies = merge_tendencies(record.behavioral_tendencies or [], signals, now)
        record.data_quality = data_quality_for(signals)
        record.last_analysis = now

        await repo.save(record)
        logger.info(f"Updated personalization for user {user_id} with {len(signals)} patterns")
        return record

    # -------------------------------------------------------------------------
    # Engagement
    # -------------------------------------------------------------------------

    async def track_engagement_signal(
        self,
        session: AsyncSession,
        user_id: UUID,
        session_length: float,
        messages_count: int,
        feedback: Optional[str] = None,
    ) -> None:
        """
        Fold one chat turn into the engagement averages.

        Non-critical: users without a profile are ignored and any failure is
        logged, never raised.
        """
        try:
            repo = PersonalizationRepository(Personalization, session)
            record = await repo.get_by_user(user_id)
            if record is None:
                return

            engagement = deepcopy(record.engagement or {})
            previous_messages = engagement.get("avg_messages_per_session") or 0
            previous_length = engagement.get("avg_session_length") or 0

            engagement["avg_session_length"] = (
                ENGAGEMENT_ALPHA * session_length + (1 - ENGAGEMENT_ALPHA) * previous_length
            )
            engagement["avg_messages_per_session"] = (
                ENGAGEMENT_ALPHA * messages_count + (1 - ENGAGEMENT_ALPHA) * previous_messages
            )
            engagement["last_engagement"] = to_iso(utcnow())

            current = engagement["avg_messages_per_session"]
            if current > previous_messages * 1.1:
                engagement["trend"] = "increasing"
            elif current < previous_messages * 0.9:
                engagement["trend"] = "decreasing"
            else:
                engagement["trend"] = "stable"

            if feedback:
                quality = FEEDBACK_QUALITY.get(feedback, 0.5)
                engagement["response_quality"] = (
                    ENGAGEMENT_ALPHA * quality
                    + (1 - ENGAGEMENT_ALPHA) * (engagement.get("response_quality") or 0.5)
                )

            engagement["session_frequency"] = (engagement.get("session_frequency") or 0) + 1
            record.engagement = engagement

            await repo.save(record)
            logger.debug(f"Updated engagement metrics for user {user_id}")
        except Exception as e:
            logger.error(f"Error tracking engagement signal for user {user_id}: {e}", exc_info=True)

    # -------------------------------------------------------------------------
    # User Control
    # -------------------------------------------------------------------------

    async def get_or_create(self, session: AsyncSession, user_id: UUID) -> Personalization:
        return await PersonalizationRepository(Personalization, session).get_or_create(user_id)

    def describe(self, record: Personalization) -> Dict[str, Any]:
        """Stored profile with the effective (override-aware) communication settings."""
        snapshot = {
            "communication": record.communication or {},
            "user_overrides": record.user_overrides or {},
        }
        effective = effective_communication(snapshot)
        communication = dict(record.communication or {})
        communication.update(
            style=effective.style,
            verbosity=effective.verbosity,
            topics_to_avoid=effective.topics_to_avoid,
            preferred_topics=effective.preferred_topics,
        )
        return {
            "intent": record.intent or {},
            "communication": communication,
            "behavioral_tendencies": record.behavioral_tendencies or [],
            "time_patterns": record.time_patterns or {},
            "engagement": record.engagement or {},
            "user_overrides": record.user_overrides or {},
            "last_analysis": record.last_analysis,
            "data_quality": record.data_quality,
            "personalization_enabled": record.personalization_enabled,
            "explainability": record.explainability or {},
            "version": record.version,
        }

    async def update_preferences(
        self,
        session: AsyncSession,
        user_id: UUID,
        intent: Optional[Dict[str, Any]] = None,
        communication: Optional[Dict[str, Any]] = None,
        user_overrides: Optional[Dict[str, Any]] = None,
        personalization_enabled: Optional[bool] = None,
    ) -> Personalization:
        """
        Apply explicit user preferences.

        Communication choices land in ``user_overrides`` so they win over
        anything inferred. Unknown style or verbosity values are ignored.
        """
        now = utcnow()
        repo = PersonalizationRepository(Personalization, session)
        record = await repo.get_or_create(user_id)

        if intent:
            updated_intent = deepcopy(record.intent or {})
            if "primary_goals" in intent:
                goals = intent["primary_goals"]
                updated_intent["primary_goals"] = list(goals)[:MAX_GOALS] if isinstance(goals, list) else []
            if "current_focus" in intent:
                focus = intent["current_focus"]
                updated_intent["current_focus"] = list(focus)[:MAX_FOCUS] if isinstance(focus, list) else []
            if isinstance(intent.get("priorities"), dict):
                updated_intent["priorities"] = dict(intent["priorities"])
            updated_intent["last_goals_update"] = to_iso(now)
            record.intent = updated_intent

        overrides = deepcopy(record.user_overrides or {})
        if communication:
            if communication.get("style") in COMMUNICATION_STYLES:
                overrides["communication_style"] = communication["style"]
            if communication.get("verbosity") in VERBOSITY_LEVELS:
                overrides["verbosity"] = communication["verbosity"]
            for key in ("topics_to_avoid", "preferred_topics"):
                if key in communication:
                    value = communication[key]
                    overrides[key] = list(value)[:MAX_TOPICS] if isinstance(value, list) else []
        if user_overrides:
            overrides.update(user_overrides)
        record.user_overrides = overrides

        if personalization_enabled is not None:
            record.personalization_enabled = bool(personalization_enabled)

        await repo.save(record)
        logger.info(f"Updated personalization for user {user_id}")
        return record

    async def reset_personalization(
        self,
        session: AsyncSession,
        user_id: UUID,
        reset_type: str = "inferred",
    ) -> Personalization:
        """
        Forget inferred data.

        ``all`` clears every inferred field, ``inferred`` keeps topics the user
        chose explicitly, ``communication`` drops the style settings and
        ``behavioral`` drops tendencies. User-authored adaptation rules
        always survive. The version is bumped unconditionally.

        Raises:
            InvalidPreferenceError: unknown ``reset_type``.
            RecordNotFoundError: the user has no profile.
        """
        if reset_type not in RESET_TYPES:
            raise InvalidPreferenceError("reset_type", reset_type, f"expected one of {', '.join(RESET_TYPES)}")

        now = utcnow()
        repo = PersonalizationRepository(Personalization, session)
        record = await repo.get_by_user(user_id)
        if record is None:
            raise RecordNotFoundError("Personalization", user_id)

        communication = deepcopy(record.communication or {})
        overrides = deepcopy(record.user_overrides or {})
        explicit_rules = [r for r in record.adaptation_rules or [] if r.get("source") == "user_explicit"]

        if reset_type in ("all", "inferred", "behavioral"):
            record.behavioral_tendencies = []
            record.adaptation_rules = explicit_rules

        if reset_type == "all":
            communication.pop("inferred_style", None)
            communication["preferred_topics"] = []
            communication["topics_to_avoid"] = []
            record.time_patterns = {}
            record.data_quality = 0.3
            record.explainability = _empty_explainability(now)
        elif reset_type == "inferred":
            communication.pop("inferred_style", None)
            for key in ("preferred_topics", "topics_to_avoid"):
                chosen = overrides.get(key) or []
                communication[key] = [t for t in communication.get(key) or [] if t in chosen]
        elif reset_type == "communication":
            communication.pop("inferred_style", None)
            communication["verbosity"] = overrides.get("verbosity") or "moderate"
            overrides.pop("communication_style", None)
            record.user_overrides = overrides

        record.communication = communication
        record.last_analysis = now
        await repo.save(record, force_version_bump=True)

        logger.info(f"Reset personalization for user {user_id} (type: {reset_type})")
        return record

    async def get_explainability(self, session: AsyncSession, user_id: UUID) -> Dict[str, Any]:
        """
        Report what personalization is applied and where each setting came from.

        Raises:
            RecordNotFoundError: the user has no profile.
        """
        record = await PersonalizationRepository(Personalization, session).get_by_user(user_id)
        if record is None:
            raise RecordNotFoundError("Personalization", user_id)

        explainability = record.explainability or {}
        communication = record.communication or {}
        overrides = record.user_overrides or {}

        return {
            "active_rules": explainability.get("active_rules") or [],
            "inferred_patterns": explainability.get("inferred_patterns") or [],
            "last_explained": explainability.get("last_explained") or to_iso(utcnow()),
            "communication": {
                "style": {
                    "value": overrides.get("communication_style") or communication.get("inferred_style") or "gentle",
                    "source": "user_explicit" if overrides.get("communication_style") else "system_default",
                    "inferred": communication.get("inferred_style"),
                },
                "verbosity": {
                    "value": overrides.get("verbosity") or communication.get("verbosity") or "moderate",
                    "source": "user_explicit" if overrides.get("verbosity") else "system_default",
                },
            },
            "behavioral_tendencies": [
                {
                    "pattern": t.get("pattern"),
                    "confidence": t.get("confidence"),
                    "frequency": t.get("frequency"),
                    "sample_size": t.get("sample_size"),
                    "last_observed": t.get("last_observed"),
                }
                for t in record.behavioral_tendencies or []
                if t.get("confidence", 0) > 0.5
            ][:10],
            "data_quality": record.data_quality,
            "last_analysis": record.last_analysis,
            "version": record.version,
        }


# Global instance
personalization_service = PersonalizationService()
