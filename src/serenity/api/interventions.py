"""Intervention API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import InvalidRatingError
from ..database import Mood
from ..dependencies import get_intervention_gate, get_progress_service, get_session
from ..interventions.catalog import get_intervention
from ..interventions.detector import MOOD_WINDOW, MoodSample, detect_intervention_needs
from ..interventions.effectiveness import process_effectiveness_rating
from ..interventions.gating import InterventionGate
from ..interventions.outcomes import format_outcome_message, measure_intervention_outcome
from ..interventions.progress import InterventionProgressService
from ..interventions.recommendation import generate_intervention_suggestions
from ..repositories import MoodRepository
from ..schemas import (
    ActiveInterventionListResponse,
    ActiveInterventionResponse,
    CompleteInterventionRequest,
    DetectedNeedResponse,
    GatingResponse,
    InterventionProgressResponse,
    OutcomeResponse,
    ProgressUpdateRequest,
    RatingRequest,
    RatingResponse,
    StartInterventionRequest,
    SuggestionResponse,
    SuggestRequest,
    SuggestResponse,
)


router = APIRouter(prefix="/users/{user_id}/interventions", tags=["Interventions"])


@router.post("/suggest", response_model=SuggestResponse)
async def suggest_interventions(
    user_id: UUID,
    request: SuggestRequest,
    session: AsyncSession = Depends(get_session),
    gate: InterventionGate = Depends(get_intervention_gate),
    progress_service: InterventionProgressService = Depends(get_progress_service),
):
    """
    Detect a need in the conversation, gate it and suggest up to two exercises.

    Suggestions are empty when nothing was detected or the gate declined.
    """
    recent_messages = [turn.model_dump() for turn in request.recent_messages]

    mood_samples = []
    if request.include_mood_history:
        moods = await MoodRepository(Mood, session).get_recent(user_id, limit=MOOD_WINDOW)
        mood_samples = [MoodSample(mood=(m.score if m.score is not None else 50) / 10, timestamp=m.timestamp) for m in moods]

    need = detect_intervention_needs(request.message, recent_messages, mood_samples=mood_samples)
    need_response = DetectedNeedResponse(
        type=need.type,
        severity=need.severity,
        confidence=need.confidence,
        indicators=need.indicators,
        days_since=need.timeframe.days_since if need.timeframe else None,
        months_since=need.timeframe.months_since if need.timeframe else None,
    )
    if need.type is None:
        return SuggestResponse(need=need_response, suggestions=[])

    gating = await gate.should_suggest(session, user_id, need.type, request.message, recent_messages)
    gating_response = GatingResponse(
        should_suggest=gating.should_suggest,
        reason=gating.reason,
        passed_criteria=gating.passed_criteria,
        total_criteria=gating.total_criteria,
        context=gating.context,
    )
    if not gating.should_suggest:
        return SuggestResponse(need=need_response, gating=gating_response, suggestions=[])

    suggestions = await generate_intervention_suggestions(
        session, need, request.experience_level, user_id=user_id, progress_service=progress_service
    )
    return SuggestResponse(
        need=need_response,
        gating=gating_response,
        suggestions=[
            SuggestionResponse(
                intervention_id=s.intervention_id,
                intervention_name=s.intervention_name,
                description=s.description,
                duration=s.intervention.duration,
                difficulty=s.intervention.difficulty,
                total_steps=s.intervention.total_steps,
                why_now=s.why_now,
                next_steps=s.next_steps,
            )
            for s in suggestions
        ],
    )


@router.post("", response_model=InterventionProgressResponse, status_code=status.HTTP_201_CREATED)
async def start_intervention(
    user_id: UUID,
    request: StartInterventionRequest,
    session: AsyncSession = Depends(get_session),
    progress_service: InterventionProgressService = Depends(get_progress_service),
):
    """Start a catalog intervention, or count another attempt of one already started."""
    intervention = get_intervention(request.intervention_id)
    if intervention is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Intervention {request.intervention_id} not found"
        )

    progress = await progress_service.start_intervention(
        session,
        user_id,
        intervention.id,
        intervention.category,
        intervention.name,
        intervention.total_steps,
        expected_duration=intervention.duration,
        context=request.context,
    )
    await session.commit()
    return InterventionProgressResponse.model_validate(progress)


@router.post("/{intervention_id}/progress", response_model=InterventionProgressResponse)
async def update_progress(
    user_id: UUID,
    intervention_id: str,
    request: ProgressUpdateRequest,
    session: AsyncSession = Depends(get_session),
    progress_service: InterventionProgressService = Depends(get_progress_service),
):
    progress = await progress_service.update_progress(
        session, user_id, intervention_id, request.step_number, notes=request.notes
    )
    if progress is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No active intervention found"
        )
    await session.commit()
    return InterventionProgressResponse.model_validate(progress)


@router.post("/{intervention_id}/complete", response_model=InterventionProgressResponse)
async def complete_intervention(
    user_id: UUID,
    intervention_id: str,
    request: CompleteInterventionRequest,
    session: AsyncSession = Depends(get_session),
    progress_service: InterventionProgressService = Depends(get_progress_service),
):
    """Complete the active run, optionally with a 1-10 effectiveness rating."""
    try:
        progress = await progress_service.complete_intervention(
            session, user_id, intervention_id, effectiveness_rating=request.effectiveness_rating
        )
    except InvalidRatingError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)

    if progress is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No active intervention found"
        )
    await session.commit()
    return InterventionProgressResponse.model_validate(progress)


@router.post("/{intervention_id}/rating", response_model=RatingResponse)
async def rate_intervention(
    user_id: UUID,
    intervention_id: str,
    request: RatingRequest,
    session: AsyncSession = Depends(get_session),
):
    """
    Rate a completed intervention.

    Out-of-range ratings are rejected with 422 by the request schema; a
    missing or unfinished run comes back as ``success: false``.
    """
    result = await process_effectiveness_rating(session, user_id, intervention_id, request.rating)
    if result.success:
        await session.commit()
    return RatingResponse(success=result.success, message=result.message)


@router.get("/active", response_model=ActiveInterventionListResponse)
async def list_active_interventions(
    user_id: UUID,
    session: AsyncSession = Depends(get_session),
    progress_service: InterventionProgressService = Depends(get_progress_service),
):
    active = await progress_service.get_active_interventions(session, user_id)
    return ActiveInterventionListResponse(
        interventions=[ActiveInterventionResponse.model_validate(a) for a in active],
        total=len(active),
    )


@router.get("/{intervention_id}/outcome", response_model=OutcomeResponse)
async def get_outcome(
    user_id: UUID,
    intervention_id: str,
    session: AsyncSession = Depends(get_session),
):
    """Mood before and after the intervention with an encouraging summary."""
    outcome = await measure_intervention_outcome(session, user_id, intervention_id)
    if outcome is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Intervention not found"
        )
    return OutcomeResponse(**outcome.as_dict(), message=format_outcome_message(outcome))
