"""
Personalization context builder.

Turns a stored ``Personalization`` record into the context handed to the
chat prompt: time decay is applied first, explicit user overrides win
over inferred values, and the result can be rendered as mandatory prompt
rules or a profile summary.
"""

from copy import deepcopy
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import ConversationSummary, Personalization, utcnow
from ..repositories import ConversationSummaryRepository, PersonalizationRepository
from ..utils.dates import parse_iso, weeks_between

STYLE_INSTRUCTIONS = {
    "gentle": "Use soft, empathetic language. Be patient and understanding. Ask gentle questions.",
    "direct": "Be straightforward and concise. Get to the point. Use clear, direct statements.",
    "supportive": "Be encouraging and warm. Validate feelings. Provide emotional support.",
}

VERBOSITY_INSTRUCTIONS = {
    "concise": "Limit to 2-3 sentences unless user explicitly asks for more detail.",
    "detailed": "Provide comprehensive explanations with examples when helpful.",
}
DEFAULT_VERBOSITY_INSTRUCTION = "Provide balanced, moderate-length responses (4-6 sentences typically)."

FORMAT_INSTRUCTIONS = {
    "structured": "**Format:** Structure responses with clear sections or bullet points when appropriate.",
    "conversational": "**Format:** Keep responses natural and conversational, avoiding rigid structures.",
}

EMOJI_INSTRUCTIONS = {
    "none": "**Emojis:** Do NOT use emojis or emoticons in responses.",
    "minimal": "**Emojis:** Use emojis very sparingly, only when they add meaningful emphasis.",
    "frequent": "**Emojis:** Feel free to use emojis to add warmth and expressiveness.",
}


@dataclass
class CommunicationProfile:
    style: str = "gentle"
    verbosity: str = "moderate"
    response_format: str = "conversational"
    emoji_usage: str = "minimal"
    topics_to_avoid: List[str] = field(default_factory=list)
    preferred_topics: List[str] = field(default_factory=list)


@dataclass
class IntentProfile:
    primary_goals: List[str] = field(default_factory=list)
    current_focus: List[str] = field(default_factory=list)
    priorities: Dict[str, float] = field(default_factory=dict)


@dataclass
class PersonalizationContext:
    """Effective personalization for one chat request."""

    intent: IntentProfile = field(default_factory=IntentProfile)
    communication: CommunicationProfile = field(default_factory=CommunicationProfile)
    behavioral_tendencies: List[Dict[str, Any]] = field(default_factory=list)
    preferred_hours: List[int] = field(default_factory=list)
    preferred_days: List[int] = field(default_factory=list)
    adaptation_rules: List[Dict[str, Any]] = field(default_factory=list)
    summaries: List[Dict[str, Any]] = field(default_factory=list)
    active_rules: List[str] = field(default_factory=list)
    inferred_patterns: List[str] = field(default_factory=list)
    version: int = 1
    data_quality: float = 0.3


# =============================================================================
# Decay
# =============================================================================

def _decay_factor(last_seen: Optional[datetime], now: datetime, decay_rate: float) -> float:
    return max(0.0, 1 - weeks_between(last_seen or now, now) * decay_rate)


def apply_decay(profile: Dict[str, Any], now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Return a decayed copy of a profile snapshot.

    Confidence (and frequency/effectiveness) shrink linearly by
    ``decay_rate`` per week since each item was last observed or applied.
    Tendencies at or below 0.2 confidence and rules at or below 0.3 are
    dropped. ``data_quality`` decays by the weeks since the last analysis.
    """
    now = now or utcnow()
    decayed = deepcopy(profile)
    decay_rate = profile.get("decay_rate") or 0.05

    tendencies = []
    for tendency in decayed.get("behavioral_tendencies") or []:
        factor = _decay_factor(parse_iso(tendency.get("last_observed")), now, decay_rate)
        tendency["confidence"] = tendency.get("confidence", 0) * factor
        tendency["frequency"] = tendency.get("frequency", 0) * factor
        if tendency["confidence"] > 0.2:
            tendencies.append(tendency)
    decayed["behavioral_tendencies"] = sorted(tendencies, key=lambda t: t["confidence"], reverse=True)

    rules = []
    for rule in decayed.get("adaptation_rules") or []:
        factor = _decay_factor(parse_iso(rule.get("last_applied")), now, decay_rate)
        rule["confidence"] = rule.get("confidence", 0) * factor
        rule["effectiveness"] = rule.get("effectiveness", 0) * factor
        if rule["confidence"] > 0.3:
            rules.append(rule)
    decayed["adaptation_rules"] = sorted(rules, key=lambda r: r.get("priority", 0), reverse=True)

    decayed["data_quality"] = (profile.get("data_quality") or 0) * _decay_factor(
        parse_iso(profile.get("last_analysis")), now, decay_rate
    )
    return decayed


def snapshot(record: Personalization) -> Dict[str, Any]:
    """Plain-dict copy of the fields the builder reads."""
    return {
        "intent": deepcopy(record.intent or {}),
        "communication": deepcopy(record.communication or {}),
        "behavioral_tendencies": deepcopy(record.behavioral_tendencies or []),
        "time_patterns": deepcopy(record.time_patterns or {}),
        "adaptation_rules": deepcopy(record.adaptation_rules or []),
        "user_overrides": deepcopy(record.user_overrides or {}),
        "explainability": deepcopy(record.explainability or {}),
        "last_analysis": record.last_analysis,
        "data_quality": record.data_quality,
        "decay_rate": record.decay_rate,
        "version": record.version,
    }


# =============================================================================
# Context
# =============================================================================

def effective_communication(profile: Dict[str, Any]) -> CommunicationProfile:
    """Overrides take priority; topic lists are override entries followed by inferred ones."""
    communication = profile.get("communication") or {}
    overrides = profile.get("user_overrides") or {}
    return CommunicationProfile(
        style=overrides.get("communication_style") or communication.get("inferred_style") or "gentle",
        verbosity=overrides.get("verbosity") or communication.get("verbosity") or "moderate",
        response_format=communication.get("response_format") or "conversational",
        emoji_usage=communication.get("emoji_usage") or "minimal",
        topics_to_avoid=[
            *(overrides.get("topics_to_avoid") or []),
            *(communication.get("topics_to_avoid") or []),
        ],
        preferred_topics=[
            *(overrides.get("preferred_topics") or []),
            *(communication.get("preferred_topics") or []),
        ],
    )


def context_from_profile(profile: Dict[str, Any], now: Optional[datetime] = None) -> PersonalizationContext:
    """Decay a profile snapshot and build the request context from it."""
    decayed = apply_decay(profile, now=now)
    intent = decayed.get("intent") or {}
    time_patterns = decayed.get("time_patterns") or {}
    explainability = decayed.get("explainability") or {}

    rules = sorted(
        (r for r in decayed["adaptation_rules"] if r.get("confidence", 0) > 0.4),
        key=lambda r: r.get("priority", 0),
        reverse=True,
    )[:20]

    return PersonalizationContext(
        intent=IntentProfile(
            primary_goals=list(intent.get("primary_goals") or []),
            current_focus=list(intent.get("current_focus") or []),
            priorities=dict(intent.get("priorities") or {}),
        ),
        communication=effective_communication(decayed),
        behavioral_tendencies=[
            {"pattern": t["pattern"], "confidence": t["confidence"]}
            for t in decayed["behavioral_tendencies"]
            if t["confidence"] > 0.5
        ][:10],
        preferred_hours=list(time_patterns.get("hour_of_day") or []),
        preferred_days=list(time_patterns.get("day_of_week") or []),
        adaptation_rules=[
            {
                "rule_type": r.get("rule_type"),
                "condition": r.get("condition"),
                "action": r.get("action"),
                "priority": r.get("priority", 0),
                "source": r.get("source"),
            }
            for r in rules
        ],
        active_rules=list(explainability.get("active_rules") or []),
        inferred_patterns=list(explainability.get("inferred_patterns") or []),
        version=decayed.get("version") or 1,
        data_quality=decayed.get("data_quality") or 0.3,
    )


def format_summary_period(summary: ConversationSummary) -> str:
    return f"{summary.summary_type} ({summary.period_start:%Y-%m-%d} - {summary.period_end:%Y-%m-%d})"


async def build_personalization_context(
    session: AsyncSession,
    user_id: UUID,
    include_summaries: bool = True,
    now: Optional[datetime] = None,
) -> Optional[PersonalizationContext]:
    """
    Build the personalization context for a chat request.

    Returns None when the user has no profile, has disabled
    personalization, or anything fails while loading.
    """
    try:
        record = await PersonalizationRepository(Personalization, session).get_by_user(user_id)
        if record is None or not record.personalization_enabled:
            logger.debug(f"No personalization found for user {user_id}, using defaults")
            return None

        context = context_from_profile(snapshot(record), now=now)

        if include_summaries:
            summaries = await ConversationSummaryRepository(ConversationSummary, session).get_recent(user_id, limit=4)
            context.summaries = [
                {
                    "period": format_summary_period(s),
                    "summary": s.summary or "",
                    "key_topics": list(s.key_topics or []),
                }
                for s in summaries
            ]
        return context
    except Exception as e:
        logger.error(f"Error building personalization context for user {user_id}: {e}", exc_info=True)
        return None


# =============================================================================
# Prompt Rendering
# =============================================================================

def build_enforcement_rules(context: Optional[PersonalizationContext]) -> str:
    """Mandatory prompt rules derived from the context. Empty without a context."""
    if context is None:
        return ""

    communication = context.communication
    lines = ["", "**=== MANDATORY PERSONALIZATION RULES (ENFORCE STRICTLY) ===**", ""]

    style_line = f"**Communication Style:** You MUST communicate in a {communication.style} style. "
    lines.append(style_line + STYLE_INSTRUCTIONS.get(communication.style, ""))

    lines.append(
        f"**Response Length:** You MUST keep responses {communication.verbosity}. "
        + VERBOSITY_INSTRUCTIONS.get(communication.verbosity, DEFAULT_VERBOSITY_INSTRUCTION)
    )

    if communication.response_format in FORMAT_INSTRUCTIONS:
        lines.append(FORMAT_INSTRUCTIONS[communication.response_format])
    if communication.emoji_usage in EMOJI_INSTRUCTIONS:
        lines.append(EMOJI_INSTRUCTIONS[communication.emoji_usage])

    if communication.topics_to_avoid:
        lines.append(f"**Topics to Avoid:** Do NOT bring up or focus on: {', '.join(communication.topics_to_avoid)}")
    if communication.preferred_topics:
        lines.append(f"**Preferred Topics:** When relevant, focus on: {', '.join(communication.preferred_topics)}")

    if context.intent.primary_goals:
        lines.append(f"**Long-term Goals:** Keep these goals in mind: {', '.join(context.intent.primary_goals)}")
    if context.intent.current_focus:
        lines.append(f"**Current Focus:** Current priorities: {', '.join(context.intent.current_focus)}")

    if context.behavioral_tendencies:
        observed = ", ".join(t["pattern"] for t in context.behavioral_tendencies[:3])
        lines.append(f"**Observed Patterns:** User typically: {observed}")

    high_priority = [r for r in context.adaptation_rules if r["priority"] > 0.7]
    if high_priority:
        lines.extend(["", "**High-Priority Adaptation Rules:**"])
        for idx, rule in enumerate(high_priority[:5], start=1):
            lines.append(f"{idx}. IF {rule['condition']} THEN {rule['action']}")

    lines.extend(["", "**=== END PERSONALIZATION RULES ===**", "", ""])
    rules = "\n".join(lines)

    if context.data_quality < 0.5:
        rules += (
            "**Note:** Personalization data quality is moderate - prefer general approaches "
            "until more patterns emerge.\n\n"
        )
    return rules


def build_user_profile_summary(context: Optional[PersonalizationContext]) -> str:
    """Readable profile block for context injection. Empty without a context."""
    if context is None:
        return ""

    communication = context.communication
    intent = context.intent
    parts = ["\n**=== USER PROFILE SUMMARY (for context) ===**\n\n"]

    if intent.primary_goals or intent.current_focus:
        parts.append("**User Intent & Goals:**\n")
        if intent.primary_goals:
            parts.append(f"- Long-term goals: {', '.join(intent.primary_goals)}\n")
        if intent.current_focus:
            parts.append(f"- Current focus: {', '.join(intent.current_focus)}\n")
        parts.append("\n")

    parts.append("**Communication Preferences:**\n")
    parts.append(f"- Style: {communication.style}\n")
    parts.append(f"- Verbosity: {communication.verbosity}\n")
    parts.append(f"- Format: {communication.response_format}\n")
    parts.append(f"- Emoji usage: {communication.emoji_usage}\n")
    if communication.preferred_topics:
        parts.append(f"- Preferred topics: {', '.join(communication.preferred_topics[:5])}\n")
    parts.append("\n")

    confident = [t for t in context.behavioral_tendencies if t["confidence"] > 0.7]
    if confident:
        parts.append("**Observed Behavioral Patterns (High Confidence):**\n")
        for idx, tendency in enumerate(confident[:5], start=1):
            parts.append(f"{idx}. {tendency['pattern']} (confidence: {tendency['confidence'] * 100:.0f}%)\n")
        parts.append("\n")

    if context.summaries:
        parts.append("**Recent Conversation Summaries:**\n")
        for idx, item in enumerate(context.summaries[:2], start=1):
            text = item["summary"]
            ellipsis = "..." if len(text) > 150 else ""
            parts.append(f"{idx}. {item['period']}: {text[:150]}{ellipsis}\n")
            if item["key_topics"]:
                parts.append(f"   Topics: {', '.join(item['key_topics'][:3])}\n")
        parts.append("\n")

    parts.append("**=== END PROFILE SUMMARY ===**\n\n")
    return "".join(parts)
