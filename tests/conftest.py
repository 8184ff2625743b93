"""Pytest configuration and shared fixtures."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from serenity.config import Settings
from serenity.database import Base, Notification, User
from serenity.services.notifications import DatabaseNotificationSink


# ============================================================================
# Database
# ============================================================================

@pytest.fixture
async def engine(tmp_path):
    """File-backed SQLite so every session sees committed data."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'serenity_test.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_user(session_factory):
    """Factory that persists a user and returns it."""
    counter = {"n": 0}

    async def _factory(name: Optional[str] = "Alex", created_at: Optional[datetime] = None) -> User:
        counter["n"] += 1
        async with session_factory() as s:
            user = User(email=f"user{counter['n']}@example.com", name=name)
            if created_at is not None:
                user.created_at = created_at
            s.add(user)
            await s.commit()
            return user

    return _factory


@pytest.fixture
async def user(make_user):
    return await make_user()


@pytest.fixture
def test_settings():
    """Settings with sequential batches and no pauses."""
    return Settings(
        PERSONALIZATION_BATCH_SIZE=1,
        PERSONALIZATION_BATCH_DELAY_SECONDS=0,
    )


# ============================================================================
# LLM
# ============================================================================

class FakeLLM:
    """Async LLM caller double that records prompts."""

    def __init__(self, response: str = "", error: Optional[Exception] = None):
        self.response = response
        self.error = error
        self.prompts: List[str] = []

    async def __call__(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def fake_llm():
    return FakeLLM


# ============================================================================
# Notifications
# ============================================================================

class RecordingSink(DatabaseNotificationSink):
    """Database sink that also keeps the metadata it was given."""

    def __init__(self):
        self.sent = []

    async def notify(self, session, user_id: UUID, metadata, created_at=None) -> Notification:
        notification = await super().notify(session, user_id, metadata, created_at=created_at)
        self.sent.append((user_id, metadata))
        return notification


class FailingSink:
    async def notify(self, session, user_id, metadata, created_at=None):
        raise RuntimeError("delivery failed")


@pytest.fixture
def recording_sink():
    return RecordingSink()


@pytest.fixture
def failing_sink():
    return FailingSink()
