"""Database models and connection for Serenity."""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    TypeDecorator,
    CHAR,
    event,
)
from sqlalchemy.dialects.postgresql import UUID as PGUUID, JSONB
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    mapped_column,
    relationship,
)

from .config import settings

DATABASE_URL = settings.DATABASE_URL

# Check if using PostgreSQL
IS_POSTGRES = DATABASE_URL.startswith("postgresql")

JSONType = JSONB if IS_POSTGRES else JSON


def utcnow() -> datetime:
    """Naive UTC timestamp, the storage convention for every DateTime column."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class GUID(TypeDecorator):
    """Platform-independent GUID type.

    Uses PostgreSQL's UUID type when available, otherwise uses CHAR(36).
    """
    impl = CHAR(36)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == 'postgresql':
            return dialect.type_descriptor(PGUUID(as_uuid=True))
        else:
            return dialect.type_descriptor(CHAR(36))

    def process_bind_param(self, value, dialect):
        if value is not None:
            if dialect.name == 'postgresql':
                return value
            else:
                if isinstance(value, UUID):
                    return str(value)
                return value
        return value

    def process_result_value(self, value, dialect):
        if value is not None:
            if not isinstance(value, UUID):
                return UUID(value)
        return value


# Create async engine
if DATABASE_URL.startswith("sqlite"):
    engine = create_async_engine(DATABASE_URL, echo=False)
else:
    engine = create_async_engine(DATABASE_URL, echo=False, pool_pre_ping=True)

# Session factory
async_session_maker = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


# =============================================================================
# Source Data (read by the analyzers)
# =============================================================================

class User(Base):
    """User account model."""

    __tablename__ = "users"

    id: Mapped[UUID] = mapped_column(GUID(), primary_key=True, default=uuid4)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class Mood(Base):
    """Mood check-in. Score is stored on a 0-100 scale."""

    __tablename__ = "moods"

    id: Mapped[UUID] = mapped_column(GUID(), primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        GUID(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    score: Mapped[Optional[int]] = mapped_column(Integer, default=50, nullable=True)
    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)


class JournalEntry(Base):
    """Free-text journal entry."""

    __tablename__ = "journal_entries"

    id: Mapped[UUID] = mapped_column(GUID(), primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        GUID(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    mood: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # 1-6
    tags: Mapped[list] = mapped_column(JSONType, default=list)
    emotional_state: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    key_themes: Mapped[list] = mapped_column(JSONType, default=list)
    insights: Mapped[list] = mapped_column(JSONType, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)


class ChatSession(Base):
    """Therapy chat session."""

    __tablename__ = "chat_sessions"

    id: Mapped[UUID] = mapped_column(GUID(), primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        GUID(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    session_id: Mapped[str] = mapped_column(String(64), default=lambda: uuid4().hex, unique=True)
    start_time: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)
    end_time: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="active", nullable=False)

    # Relationships
    messages: Mapped[list["ChatMessage"]] = relationship(
        "ChatMessage", back_populates="session", cascade="all, delete-orphan",
        order_by="ChatMessage.timestamp", lazy="selectin"
    )


class ChatMessage(Base):
    """Chat message model."""

    __tablename__ = "chat_messages"

    id: Mapped[UUID] = mapped_column(GUID(), primary_key=True, default=uuid4)
    session_id: Mapped[UUID] = mapped_column(
        GUID(), ForeignKey("chat_sessions.id", ondelete="CASCADE"), nullable=False
    )
    role: Mapped[str] = mapped_column(String(20), nullable=False)  # 'user' or 'assistant'
    content: Mapped[str] = mapped_column(Text, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    # Relationships
    session: Mapped["ChatSession"] = relationship("ChatSession", back_populates="messages")


class LongTermMemory(Base):
    """Atomic fact remembered about the user."""

    __tablename__ = "long_term_memories"

    id: Mapped[UUID] = mapped_column(GUID(), primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        GUID(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # 'emotional_theme', 'coping_pattern', 'goal', 'trigger', 'insight', 'preference',
    # 'person', 'school', 'organization', 'user_summary'
    memory_type: Mapped[str] = mapped_column(String(50), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    importance: Mapped[int] = mapped_column(Integer, default=5)  # 1-10
    tags: Mapped[list] = mapped_column(JSONType, default=list)
    context: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)


# =============================================================================
# Engine Output
# =============================================================================

class Notification(Base):
    """User-visible notification. Metadata shape is keyed by its prompt_type."""

    __tablename__ = "notifications"

    id: Mapped[UUID] = mapped_column(GUID(), primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        GUID(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    actor_id: Mapped[Optional[UUID]] = mapped_column(GUID(), nullable=True)
    type: Mapped[str] = mapped_column(String(30), default="system", nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    payload: Mapped[dict] = mapped_column("metadata", JSONType, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)


class InterventionProgress(Base):
    """A user's run through one intervention."""

    __tablename__ = "intervention_progress"

    id: Mapped[UUID] = mapped_column(GUID(), primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        GUID(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    intervention_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    # 'sleep', 'depression', 'anxiety', 'stress', 'breakup', 'grief', 'focus', 'coping', ...
    intervention_type: Mapped[str] = mapped_column(String(30), nullable=False)
    intervention_name: Mapped[str] = mapped_column(String(255), nullable=False)

    # 'active', 'completed', 'paused', 'abandoned'
    status: Mapped[str] = mapped_column(String(20), default="active", nullable=False)
    started_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    last_active_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)

    current_step: Mapped[int] = mapped_column(Integer, default=1)
    total_steps: Mapped[int] = mapped_column(Integer, default=0)
    completed_steps: Mapped[list] = mapped_column(JSONType, default=list)

    effectiveness_rating: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    attempts: Mapped[int] = mapped_column(Integer, default=1)
    completions: Mapped[int] = mapped_column(Integer, default=0)
    average_effectiveness: Mapped[float] = mapped_column(Float, default=0.0)

    days_since_start: Mapped[int] = mapped_column(Integer, default=0)
    expected_duration: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    # original_context, related_chat_message_id, session_id
    context: Mapped[dict] = mapped_column(JSONType, default=dict)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


@event.listens_for(InterventionProgress, "before_insert")
@event.listens_for(InterventionProgress, "before_update")
def _recompute_days_since_start(mapper, connection, target: InterventionProgress) -> None:
    if target.started_at and target.last_active_at:
        target.days_since_start = max(0, (target.last_active_at - target.started_at).days)


class Personalization(Base):
    """Per-user communication and behavior profile.

    ``version`` doubles as the optimistic-lock column: a flush whose version
    no longer matches the stored row raises ``StaleDataError``.
    """

    __tablename__ = "personalizations"

    id: Mapped[UUID] = mapped_column(GUID(), primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        GUID(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True
    )

    intent: Mapped[dict] = mapped_column(JSONType, default=dict)
    communication: Mapped[dict] = mapped_column(JSONType, default=dict)
    behavioral_tendencies: Mapped[list] = mapped_column(JSONType, default=list)
    time_patterns: Mapped[dict] = mapped_column(JSONType, default=dict)
    engagement: Mapped[dict] = mapped_column(JSONType, default=dict)
    adaptation_rules: Mapped[list] = mapped_column(JSONType, default=list)
    user_overrides: Mapped[dict] = mapped_column(JSONType, default=dict)
    explainability: Mapped[dict] = mapped_column(JSONType, default=dict)

    last_analysis: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    data_quality: Mapped[float] = mapped_column(Float, default=0.3)
    decay_rate: Mapped[float] = mapped_column(Float, default=0.05)
    personalization_enabled: Mapped[bool] = mapped_column(Boolean, default=True)
    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow)

    __mapper_args__ = {"version_id_col": version, "version_id_generator": False}


class ConversationSummary(Base):
    """Compressed view of a period of chat history."""

    __tablename__ = "conversation_summaries"

    id: Mapped[UUID] = mapped_column(GUID(), primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        GUID(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    session_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    summary_type: Mapped[str] = mapped_column(String(20), nullable=False)  # weekly, monthly, session, topic
    period_start: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    period_end: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    summary: Mapped[str] = mapped_column(Text, nullable=False)
    key_topics: Mapped[list] = mapped_column(JSONType, default=list)
    emotional_themes: Mapped[list] = mapped_column(JSONType, default=list)
    insights: Mapped[list] = mapped_column(JSONType, default=list)
    action_items: Mapped[list] = mapped_column(JSONType, default=list)

    message_count: Mapped[int] = mapped_column(Integer, default=0)
    token_count: Mapped[int] = mapped_column(Integer, default=0)
    summary_tokens: Mapped[int] = mapped_column(Integer, default=0)
    compression_ratio: Mapped[float] = mapped_column(Float, default=0.0)

    # communication_style, preferred_topics, avoidance_patterns, engagement_level
    extracted_patterns: Mapped[dict] = mapped_column(JSONType, default=dict)
    confidence: Mapped[float] = mapped_column(Float, default=0.7)
    completeness: Mapped[float] = mapped_column(Float, default=0.7)
    version: Mapped[int] = mapped_column(Integer, default=1)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


class WeeklyReport(Base):
    """Generated weekly wellness report."""

    __tablename__ = "weekly_reports"

    id: Mapped[UUID] = mapped_column(GUID(), primary_key=True, default=uuid4)
    user_id: Mapped[UUID] = mapped_column(
        GUID(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    # week_start, week_end, generated_at
    payload: Mapped[dict] = mapped_column("metadata", JSONType, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow)


async def init_db():
    """Initialize database tables."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
