"""Personalization API endpoints."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import ConcurrentUpdateError, InvalidPreferenceError, RecordNotFoundError
from ..dependencies import (
    get_analysis_job,
    get_personalization_service,
    get_session,
    get_summarizer,
)
from ..schemas import (
    AnalysisResponse,
    PersonalizationReset,
    PersonalizationResponse,
    PersonalizationUpdate,
    SummaryListResponse,
    SummaryResponse,
)
from ..services.analysis_job import PersonalizationAnalysisJob
from ..services.personalization import PersonalizationService
from ..services.summarization import ConversationSummarizer


router = APIRouter(prefix="/users/{user_id}/personalization", tags=["Personalization"])


@router.get("", response_model=PersonalizationResponse)
async def get_personalization(
    user_id: UUID,
    session: AsyncSession = Depends(get_session),
    service: PersonalizationService = Depends(get_personalization_service),
):
    """
    Get the user's personalization profile.

    A default profile is created on first access. Communication settings
    reflect explicit overrides where the user set them.
    """
    record = await service.get_or_create(session, user_id)
    await session.commit()
    return PersonalizationResponse(**service.describe(record))


@router.patch("", response_model=PersonalizationResponse)
async def update_personalization(
    user_id: UUID,
    updates: PersonalizationUpdate,
    session: AsyncSession = Depends(get_session),
    service: PersonalizationService = Depends(get_personalization_service),
):
    """Apply explicit preferences. They take precedence over inferred settings."""
    data = updates.model_dump(exclude_unset=True)
    try:
        record = await service.update_preferences(
            session,
            user_id,
            intent=data.get("intent"),
            communication=data.get("communication"),
            user_overrides=data.get("user_overrides"),
            personalization_enabled=data.get("personalization_enabled"),
        )
        await session.commit()
    except ConcurrentUpdateError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)

    return PersonalizationResponse(**service.describe(record))


@router.post("/reset", response_model=PersonalizationResponse)
async def reset_personalization(
    user_id: UUID,
    request: PersonalizationReset,
    session: AsyncSession = Depends(get_session),
    service: PersonalizationService = Depends(get_personalization_service),
):
    """
    Forget inferred personalization.

    reset_type is one of all, inferred, communication or behavioral.
    """
    try:
        record = await service.reset_personalization(session, user_id, request.reset_type)
        await session.commit()
    except InvalidPreferenceError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except ConcurrentUpdateError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)

    return PersonalizationResponse(**service.describe(record))


@router.get("/explainability")
async def get_explainability(
    user_id: UUID,
    session: AsyncSession = Depends(get_session),
    service: PersonalizationService = Depends(get_personalization_service),
):
    """Which settings are applied and whether each was chosen or inferred."""
    try:
        return await service.get_explainability(session, user_id)
    except RecordNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)


@router.post("/analyze", response_model=AnalysisResponse)
async def trigger_analysis(
    user_id: UUID,
    job: PersonalizationAnalysisJob = Depends(get_analysis_job),
):
    """Run the periodic analysis for this user now."""
    success = await job.analyze_user(user_id)
    return AnalysisResponse(
        success=success,
        message="Personalization analysis completed" if success else "Personalization analysis failed",
    )


@router.get("/summaries", response_model=SummaryListResponse)
async def get_summaries(
    user_id: UUID,
    limit: int = Query(4, ge=1, le=50),
    summary_type: Optional[str] = Query(None),
    session: AsyncSession = Depends(get_session),
    summarizer: ConversationSummarizer = Depends(get_summarizer),
):
    """Most recent conversation summaries."""
    summaries = await summarizer.get_recent_summaries(session, user_id, limit=limit, summary_type=summary_type)
    return SummaryListResponse(
        summaries=[SummaryResponse.model_validate(s) for s in summaries],
        total=len(summaries),
    )
