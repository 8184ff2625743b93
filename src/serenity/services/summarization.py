"""
Conversation summarization.

Compresses a period of chat history into a ``ConversationSummary``: an
LLM-written summary when a model is available, otherwise a deterministic
keyword summary. Topics, emotional themes, insights and action items are
then pulled out of the text with fixed keyword tables and phrase patterns.
"""

import math
import re
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import ChatMessage, ChatSession, ConversationSummary, utcnow
from ..llm import LLMCaller, parse_llm_json
from ..repositories import ChatSessionRepository, ConversationSummaryRepository

MAX_CONVERSATION_CHARS = 50_000


# =============================================================================
# Summarization Prompt
# =============================================================================

SUMMARY_PROMPT = '''You are a therapist's assistant analyzing a {summary_type} summary of therapy conversations.

Analyze the following conversation history and create a concise, structured summary. Focus on:

1. **Key Topics**: Main themes discussed (mental health topics, life events, challenges, goals)
2. **Emotional Patterns**: Recurring emotional states or themes (anxiety, depression, hope, progress, etc.)
3. **Key Insights**: Important realizations, breakthroughs, or patterns identified
4. **Action Items**: Goals set, techniques recommended, homework assigned, or commitments made
5. **Communication Style**: How the user communicates (direct, gentle, detailed, brief, etc.)
6. **Progress Indicators**: Notable improvements, setbacks, or changes in user's state

**Important Guidelines:**
- Keep the summary under 800 words
- Focus on patterns and insights, not individual message details
- Avoid storing sensitive personal information beyond general themes
- Maintain therapeutic context without verbatim quotes
- Highlight what's most relevant for future sessions

Conversation History:
{conversation}

Generate a comprehensive but concise summary following the structure above:'''


# =============================================================================
# Keyword Tables
# =============================================================================

SUMMARY_TOPIC_KEYWORDS = {
    "anxiety": ["anxious", "worry", "nervous", "stress", "panic", "anxiety"],
    "depression": ["sad", "depressed", "hopeless", "empty", "down", "depression"],
    "relationships": ["friend", "family", "partner", "relationship", "love", "social"],
    "work": ["work", "job", "career", "boss", "colleague", "professional"],
    "health": ["health", "sleep", "exercise", "physical", "body", "wellness"],
    "goals": ["goal", "achieve", "plan", "future", "target", "objective"],
    "mindfulness": ["mindful", "meditation", "breath", "present", "aware", "mindfulness"],
    "coping": ["coping", "strategy", "technique", "skill", "tool"],
    "trauma": ["trauma", "past", "memory", "experience", "event"],
    "selfesteem": ["self-esteem", "confidence", "worth", "value", "self-worth"],
}

EMOTION_KEYWORDS = {
    "positive": ["happy", "joy", "hope", "grateful", "proud", "excited", "content", "peaceful"],
    "negative": ["sad", "anxious", "angry", "frustrated", "overwhelmed", "lonely", "guilty"],
    "neutral": ["calm", "focused", "reflective", "contemplative"],
    "mixed": ["conflicted", "uncertain", "ambivalent"],
}

INSIGHT_PATTERNS = [
    re.compile(r"realized that (.+?)(?:\.|$)", re.IGNORECASE),
    re.compile(r"understood that (.+?)(?:\.|$)", re.IGNORECASE),
    re.compile(r"learned that (.+?)(?:\.|$)", re.IGNORECASE),
    re.compile(r"discovered (.+?)(?:\.|$)", re.IGNORECASE),
    re.compile(r"insight: (.+?)(?:\.|$)", re.IGNORECASE),
    re.compile(r"key insight: (.+?)(?:\.|$)", re.IGNORECASE),
]

ACTION_PATTERNS = [
    re.compile(r"goals?: (.+?)(?:\.|$)", re.IGNORECASE),
    re.compile(r"actions?: (.+?)(?:\.|$)", re.IGNORECASE),
    re.compile(r"homework: (.+?)(?:\.|$)", re.IGNORECASE),
    re.compile(r"commitments?: (.+?)(?:\.|$)", re.IGNORECASE),
    re.compile(r"plans?: (.+?)(?:\.|$)", re.IGNORECASE),
    re.compile(r"will (.+?)(?:\.|$)", re.IGNORECASE),
]


# =============================================================================
# Text Extraction
# =============================================================================

def estimate_tokens(text: str) -> int:
    """Rough token count: one token per four characters."""
    return math.ceil(len(text or "") / 4)


def extract_topics(text: str) -> List[str]:
    """Up to five topics ranked by how many of their keywords appear."""
    lowered = (text or "").lower()
    found = {}
    for topic, keywords in SUMMARY_TOPIC_KEYWORDS.items():
        matches = sum(1 for k in keywords if k in lowered)
        if matches:
            found[topic] = matches
    # sorted() is stable, so equal counts keep table order
    return [topic for topic, _ in sorted(found.items(), key=lambda item: item[1], reverse=True)][:5]


def extract_emotional_themes(text: str) -> List[str]:
    lowered = (text or "").lower()
    return [emotion for emotion, keywords in EMOTION_KEYWORDS.items() if any(k in lowered for k in keywords)]


def _extract_phrases(text: str, patterns: Sequence[re.Pattern]) -> List[str]:
    phrases = []
    for pattern in patterns:
        for match in pattern.finditer(text or ""):
            if match.group(1) and len(match.group(1)) < 200:
                phrases.append(match.group(1).strip())
    return phrases[:5]


def extract_insights(text: str) -> List[str]:
    return _extract_phrases(text, INSIGHT_PATTERNS)


def extract_action_items(text: str) -> List[str]:
    return _extract_phrases(text, ACTION_PATTERNS)


def extract_patterns_from_summary(text: str) -> Dict[str, Any]:
    """Personalization hints (style, topics, engagement level) read off a summary."""
    lowered = (text or "").lower()

    communication_style = None
    if any(k in lowered for k in ("direct", "brief", "concise")):
        communication_style = "direct"
    elif any(k in lowered for k in ("gentle", "soft", "careful")):
        communication_style = "gentle"
    elif any(k in lowered for k in ("supportive", "encouraging", "warm")):
        communication_style = "supportive"

    if any(k in lowered for k in ("high engagement", "very active", "frequent")):
        engagement_level = "high"
    elif any(k in lowered for k in ("low engagement", "rare", "infrequent")):
        engagement_level = "low"
    else:
        engagement_level = "medium"

    return {
        "communication_style": communication_style,
        "preferred_topics": extract_topics(text),
        "avoidance_patterns": [],
        "engagement_level": engagement_level,
    }


def format_conversation(messages: Sequence[ChatMessage]) -> str:
    text = "\n\n".join(
        f"{'User' if m.role == 'user' else 'Assistant'}: {m.content or ''}"
        for m in messages
        if m.role in ("user", "assistant")
    )
    return text[:MAX_CONVERSATION_CHARS]


def build_basic_summary(summary_type: str, sessions: Sequence[ChatSession], messages: Sequence[ChatMessage]) -> str:
    """Deterministic summary used when no model answer is available."""
    user_messages = [m for m in messages if m.role == "user"]
    ai_messages = [m for m in messages if m.role == "assistant"]
    topics = extract_topics(" ".join((m.content or "").lower() for m in user_messages))
    return (
        f"This {summary_type} summary covers {len(sessions)} therapy sessions with "
        f"{len(user_messages)} user messages and {len(ai_messages)} AI responses. "
        f"Main topics discussed include: {', '.join(topics)}."
    )


# =============================================================================
# Summarizer
# =============================================================================

class ConversationSummarizer:
    """Creates and maintains period summaries."""

    def __init__(self, llm_caller: Optional[LLMCaller] = None):
        """
        Args:
            llm_caller: async (prompt) -> text. Without one, every summary
                uses the keyword fallback.
        """
        self.llm_caller = llm_caller

    async def _generate_ai_summary(self, messages: Sequence[ChatMessage], summary_type: str) -> Optional[Dict[str, Any]]:
        if not self.llm_caller:
            logger.warning("No LLM configured, using basic summary")
            return None

        prompt = SUMMARY_PROMPT.format(summary_type=summary_type, conversation=format_conversation(messages))
        try:
            response = await self.llm_caller(prompt)
        except Exception as e:
            logger.error(f"Error generating AI summary: {e}")
            return None

        if not response or not response.strip():
            return None

        # Some models answer with a JSON envelope; accept it when it carries a summary
        parsed = parse_llm_json(response) if response.lstrip().startswith(("{", "```")) else None
        if parsed and isinstance(parsed.get("summary"), str) and parsed["summary"].strip():
            return {
                "summary": parsed["summary"].strip(),
                "confidence": parsed.get("confidence") or 0.8,
                "completeness": parsed.get("completeness") or 0.75,
            }
        return {"summary": response.strip(), "confidence": 0.8, "completeness": 0.75}

    async def generate_period_summary(
        self,
        session: AsyncSession,
        user_id: UUID,
        summary_type: str,
        period_start: datetime,
        period_end: datetime,
    ) -> Optional[ConversationSummary]:
        """
        Return the summary for a period, creating it when none exists.

        Returns None when the period has no messages or on error.
        """
        try:
            repo = ConversationSummaryRepository(ConversationSummary, session)
            existing = await repo.find_within(user_id, summary_type, period_start, period_end)
            if existing is not None and existing.version > 0:
                logger.info(f"Summary already exists for user {user_id}, period {summary_type}")
                return existing

            sessions = await ChatSessionRepository(ChatSession, session).get_in_range(user_id, period_start, period_end)
            if not sessions:
                logger.info(f"No sessions found for user {user_id} in period {summary_type}")
                return None

            messages = [m for s in sessions for m in s.messages]
            if not messages:
                return None

            original_tokens = estimate_tokens("\n".join(m.content or "" for m in messages))
            generated = await self._generate_ai_summary(messages, summary_type)

            if generated is None:
                logger.warning(f"Failed to generate AI summary for user {user_id}")
                text = build_basic_summary(summary_type, sessions, messages)
                fields = {
                    "summary": text,
                    "key_topics": extract_topics(" ".join((m.content or "") for m in messages if m.role == "user")),
                    "emotional_themes": [],
                    "insights": [],
                    "action_items": [],
                    "extracted_patterns": {},
                    "confidence": 0.5,
                    "completeness": 0.5,
                }
            else:
                text = generated["summary"]
                fields = {
                    "summary": text,
                    "key_topics": extract_topics(text),
                    "emotional_themes": extract_emotional_themes(text),
                    "insights": extract_insights(text),
                    "action_items": extract_action_items(text),
                    "extracted_patterns": extract_patterns_from_summary(text),
                    "confidence": generated["confidence"],
                    "completeness": generated["completeness"],
                }

            summary_tokens = estimate_tokens(text)
            compression_ratio = original_tokens / summary_tokens if original_tokens > 0 and summary_tokens else 0.0

            summary = await repo.add(ConversationSummary(
                user_id=user_id,
                summary_type=summary_type,
                period_start=period_start,
                period_end=period_end,
                message_count=len(messages),
                token_count=original_tokens,
                summary_tokens=summary_tokens,
                compression_ratio=compression_ratio,
                version=(existing.version if existing else 0) + 1,
                **fields,
            ))

            logger.info(
                f"Generated {summary_type} summary for user {user_id}: {compression_ratio:.2f}x compression"
            )
            return summary
        except Exception as e:
            logger.error(f"Error generating {summary_type} summary for user {user_id}: {e}", exc_info=True)
            return None

    async def get_recent_summaries(
        self,
        session: AsyncSession,
        user_id: UUID,
        limit: int = 4,
        summary_type: Optional[str] = None,
    ) -> List[ConversationSummary]:
        """Latest summaries by period end. Errors yield []."""
        try:
            return await ConversationSummaryRepository(ConversationSummary, session).get_recent(
                user_id, limit=limit, summary_type=summary_type
            )
        except Exception as e:
            logger.error(f"Error fetching recent summaries for user {user_id}: {e}", exc_info=True)
            return []

    async def cleanup_old_summaries(self, session: AsyncSession, days_to_keep: int = 365) -> int:
        """Delete weekly and monthly summaries older than ``days_to_keep`` days."""
        try:
            cutoff = utcnow() - timedelta(days=days_to_keep)
            deleted = await ConversationSummaryRepository(ConversationSummary, session).delete_created_before(cutoff)
            logger.info(f"Cleaned up {deleted} old summaries")
            return deleted
        except Exception as e:
            logger.error(f"Error cleaning up old summaries: {e}", exc_info=True)
            return 0
