"""
Domain-specific exception hierarchy for Serenity.

All custom exceptions inherit from SerenityException for consistent error handling.
"""

from typing import Any


class SerenityException(Exception):
    """
    Base exception for all Serenity errors.

    Attributes:
        message: Human-readable error message
        context: Additional context for debugging
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        self.message = message
        self.context = context or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message


# ============================================================================
# LLM Exceptions
# ============================================================================

class LLMException(SerenityException):
    """Base class for LLM service errors."""
    pass


class LLMConnectionError(LLMException):
    """Cannot reach LLM service."""

    def __init__(self, url: str, original_error: Exception):
        super().__init__(
            f"Cannot connect to LLM service at {url}",
            context={"url": url, "original": str(original_error)}
        )
        self.url = url
        self.original_error = original_error


class LLMTimeoutError(LLMException):
    """LLM request exceeded timeout."""

    def __init__(self, timeout_seconds: float, url: str):
        super().__init__(
            f"LLM request to {url} exceeded {timeout_seconds}s timeout",
            context={"timeout": timeout_seconds, "url": url}
        )
        self.timeout_seconds = timeout_seconds
        self.url = url


class LLMResponseError(LLMException):
    """Empty, invalid or non-200 LLM response."""

    def __init__(self, status_code: int, response_text: str, url: str):
        truncated = response_text[:200] + "..." if len(response_text) > 200 else response_text
        super().__init__(
            f"LLM HTTP {status_code} from {url}: {truncated}",
            context={"status_code": status_code, "url": url}
        )
        self.status_code = status_code
        self.response_text = response_text


# ============================================================================
# Persistence Exceptions
# ============================================================================

class PersistenceException(SerenityException):
    """Base class for storage errors."""
    pass


class ConcurrentUpdateError(PersistenceException):
    """A record changed underneath a read-modify-write cycle."""

    def __init__(self, record_type: str, record_id: Any, expected_version: int | None = None):
        super().__init__(
            f"{record_type} {record_id} was modified concurrently",
            context={"record": record_type, "id": record_id, "expected_version": expected_version}
        )
        self.record_type = record_type
        self.record_id = record_id
        self.expected_version = expected_version


class RecordNotFoundError(PersistenceException):
    """Requested record does not exist."""

    def __init__(self, record_type: str, lookup: Any):
        super().__init__(
            f"{record_type} not found",
            context={"record": record_type, "lookup": lookup}
        )
        self.record_type = record_type
        self.lookup = lookup


# ============================================================================
# Validation Exceptions
# ============================================================================

class ValidationException(SerenityException):
    """Base class for rejected user input."""
    pass


class InvalidRatingError(ValidationException):
    """Effectiveness rating outside the 1-10 scale."""

    def __init__(self, rating: Any):
        super().__init__(
            "Rating must be between 1 and 10",
            context={"rating": rating}
        )
        self.rating = rating


class InvalidPreferenceError(ValidationException):
    """Unknown personalization preference value."""

    def __init__(self, field: str, value: Any, reason: str):
        super().__init__(
            f"Invalid value for {field}: {reason}",
            context={"field": field, "value": value}
        )
        self.field = field
        self.value = value
