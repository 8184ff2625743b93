"""Pydantic schemas for the Serenity API."""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field


# =============================================================================
# Personalization
# =============================================================================

class IntentUpdate(BaseModel):
    """Explicit goals. Lists are truncated server-side."""
    primary_goals: Optional[List[str]] = None
    current_focus: Optional[List[str]] = None
    priorities: Optional[Dict[str, float]] = None


class CommunicationUpdate(BaseModel):
    style: Optional[str] = Field(None, description="gentle, direct or supportive")
    verbosity: Optional[str] = Field(None, description="concise, moderate or detailed")
    topics_to_avoid: Optional[List[str]] = None
    preferred_topics: Optional[List[str]] = None


class PersonalizationUpdate(BaseModel):
    intent: Optional[IntentUpdate] = None
    communication: Optional[CommunicationUpdate] = None
    user_overrides: Optional[Dict[str, Any]] = None
    personalization_enabled: Optional[bool] = None


class PersonalizationReset(BaseModel):
    reset_type: str = "inferred"


class PersonalizationResponse(BaseModel):
    intent: Dict[str, Any]
    communication: Dict[str, Any]
    behavioral_tendencies: List[Dict[str, Any]]
    time_patterns: Dict[str, Any]
    engagement: Dict[str, Any]
    user_overrides: Dict[str, Any]
    last_analysis: Optional[datetime] = None
    data_quality: float
    personalization_enabled: bool
    explainability: Dict[str, Any]
    version: int


class AnalysisResponse(BaseModel):
    success: bool
    message: str


class SummaryResponse(BaseModel):
    id: UUID
    summary_type: str
    period_start: datetime
    period_end: datetime
    summary: str
    key_topics: List[str]
    emotional_themes: List[str]
    insights: List[str]
    action_items: List[str]
    message_count: int
    confidence: float

    class Config:
        from_attributes = True


class SummaryListResponse(BaseModel):
    summaries: List[SummaryResponse]
    total: int


# =============================================================================
# Interventions
# =============================================================================

class ChatTurn(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class SuggestRequest(BaseModel):
    message: str = Field(..., min_length=1)
    recent_messages: List[ChatTurn] = Field(default_factory=list)
    experience_level: Literal["beginner", "intermediate", "advanced"] = "beginner"
    include_mood_history: bool = True


class DetectedNeedResponse(BaseModel):
    type: Optional[str] = None
    severity: str
    confidence: float
    indicators: List[str]
    days_since: Optional[int] = None
    months_since: Optional[int] = None


class GatingResponse(BaseModel):
    should_suggest: bool
    reason: str
    passed_criteria: int
    total_criteria: int
    context: Dict[str, str]


class SuggestionResponse(BaseModel):
    intervention_id: str
    intervention_name: str
    description: str
    duration: str
    difficulty: str
    total_steps: int
    why_now: str
    next_steps: List[str]


class SuggestResponse(BaseModel):
    need: DetectedNeedResponse
    gating: Optional[GatingResponse] = None
    suggestions: List[SuggestionResponse]


class StartInterventionRequest(BaseModel):
    intervention_id: str
    context: Dict[str, Any] = Field(default_factory=dict)


class ProgressUpdateRequest(BaseModel):
    step_number: int = Field(..., ge=1)
    notes: Optional[str] = None


class CompleteInterventionRequest(BaseModel):
    # Range is checked by the service so the message stays consistent
    effectiveness_rating: Optional[int] = None


class RatingRequest(BaseModel):
    rating: int = Field(..., ge=1, le=10)


class RatingResponse(BaseModel):
    success: bool
    message: str


class InterventionProgressResponse(BaseModel):
    id: UUID
    intervention_id: str
    intervention_type: str
    intervention_name: str
    status: str
    started_at: datetime
    completed_at: Optional[datetime] = None
    last_active_at: datetime
    current_step: int
    total_steps: int
    completed_steps: List[int]
    effectiveness_rating: Optional[int] = None
    attempts: int
    completions: int
    average_effectiveness: float
    days_since_start: int

    class Config:
        from_attributes = True


class ActiveInterventionResponse(BaseModel):
    intervention_id: str
    intervention_type: str
    intervention_name: str
    days_since_start: int
    days_since_last_active: int
    hours_since_last_active: int
    current_step: int
    total_steps: int
    status: str
    started_at: datetime
    expected_duration: Optional[str] = None

    class Config:
        from_attributes = True


class ActiveInterventionListResponse(BaseModel):
    interventions: List[ActiveInterventionResponse]
    total: int


class OutcomeResponse(BaseModel):
    intervention_id: str
    intervention_name: str
    intervention_type: str
    mood_before: Optional[float] = None
    mood_after: Optional[float] = None
    mood_improvement: Optional[float] = None
    mood_improvement_percentage: Optional[float] = None
    days_since_start: int
    days_since_completion: Optional[int] = None
    message: str


class HealthResponse(BaseModel):
    status: str = "ok"
