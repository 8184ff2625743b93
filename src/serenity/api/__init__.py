"""API endpoints."""

from .interventions import router as interventions_router
from .personalization import router as personalization_router

__all__ = [
    "interventions_router",
    "personalization_router",
]
