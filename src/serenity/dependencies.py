"""Dependency injection for FastAPI endpoints."""

from typing import AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from .database import async_session_maker
from .interventions.gating import InterventionGate
from .interventions.progress import InterventionProgressService, intervention_progress_service
from .llm import LLMCaller, ollama_llm_caller
from .services.analysis_job import PersonalizationAnalysisJob
from .services.personalization import PersonalizationService, personalization_service
from .services.summarization import ConversationSummarizer


def get_session_factory() -> async_sessionmaker:
    return async_session_maker


# Database session dependency
async def get_session(
    session_factory: async_sessionmaker = Depends(get_session_factory),
) -> AsyncGenerator[AsyncSession, None]:
    """Get database session."""
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_llm_caller() -> LLMCaller:
    return ollama_llm_caller


# Service dependencies
def get_personalization_service() -> PersonalizationService:
    return personalization_service


def get_progress_service() -> InterventionProgressService:
    return intervention_progress_service


def get_intervention_gate() -> InterventionGate:
    return InterventionGate()


def get_summarizer(llm_caller: LLMCaller = Depends(get_llm_caller)) -> ConversationSummarizer:
    return ConversationSummarizer(llm_caller)


def get_analysis_job(
    session_factory: async_sessionmaker = Depends(get_session_factory),
    llm_caller: LLMCaller = Depends(get_llm_caller),
) -> PersonalizationAnalysisJob:
    return PersonalizationAnalysisJob(session_factory, llm_caller=llm_caller)
