"""Repository layer for data access."""

from .base import BaseRepository
from .user_repository import UserRepository
from .mood_repository import MoodRepository
from .journal_repository import JournalRepository
from .chat_repository import ChatSessionRepository
from .memory_repository import LongTermMemoryRepository
from .intervention_repository import InterventionProgressRepository
from .personalization_repository import PersonalizationRepository, default_personalization_fields
from .summary_repository import ConversationSummaryRepository
from .notification_repository import NotificationRepository, WeeklyReportRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
    "MoodRepository",
    "JournalRepository",
    "ChatSessionRepository",
    "LongTermMemoryRepository",
    "InterventionProgressRepository",
    "PersonalizationRepository",
    "default_personalization_fields",
    "ConversationSummaryRepository",
    "NotificationRepository",
    "WeeklyReportRepository",
]
