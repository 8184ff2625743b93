"""Unit tests for exception hierarchy."""

from serenity.core.exceptions import (
    ConcurrentUpdateError,
    InvalidPreferenceError,
    InvalidRatingError,
    LLMConnectionError,
    LLMException,
    LLMResponseError,
    LLMTimeoutError,
    PersistenceException,
    RecordNotFoundError,
    SerenityException,
    ValidationException,
)


def test_serenity_exception_base():
    """Test base exception with context."""
    exc = SerenityException("test error", context={"key": "value"})
    assert exc.message == "test error"
    assert exc.context == {"key": "value"}
    assert "key=value" in str(exc)


def test_base_exception_without_context():
    assert str(SerenityException("plain")) == "plain"


def test_llm_connection_error():
    """Test LLM connection error creation."""
    original = ConnectionError("Network unreachable")
    exc = LLMConnectionError("http://localhost:11434", original)

    assert exc.url == "http://localhost:11434"
    assert exc.original_error is original
    assert "localhost:11434" in str(exc)


def test_llm_timeout_error():
    """Test LLM timeout error."""
    exc = LLMTimeoutError(30.0, "http://localhost:11434")

    assert exc.timeout_seconds == 30.0
    assert "30" in str(exc)


def test_llm_response_error_truncates_body():
    exc = LLMResponseError(500, "x" * 500, "http://localhost:11434/api/generate")

    assert exc.status_code == 500
    assert len(exc.response_text) == 500
    assert exc.message.endswith("...")
    assert len(exc.message) < 300


def test_concurrent_update_error():
    exc = ConcurrentUpdateError("Personalization", "abc", expected_version=3)

    assert exc.record_type == "Personalization"
    assert exc.expected_version == 3
    assert "modified concurrently" in str(exc)


def test_record_not_found_error():
    exc = RecordNotFoundError("Personalization", {"user_id": "abc"})
    assert exc.message == "Personalization not found"


def test_invalid_rating_error():
    exc = InvalidRatingError(11)
    assert exc.rating == 11
    assert exc.message == "Rating must be between 1 and 10"


def test_invalid_preference_error():
    exc = InvalidPreferenceError("reset_type", "everything", "unknown reset type")
    assert exc.field == "reset_type"
    assert "unknown reset type" in str(exc)


def test_exception_inheritance():
    """Test exception hierarchy."""
    assert issubclass(LLMConnectionError, LLMException)
    assert issubclass(LLMException, SerenityException)
    assert issubclass(ConcurrentUpdateError, PersistenceException)
    assert issubclass(RecordNotFoundError, PersistenceException)
    assert issubclass(InvalidRatingError, ValidationException)
    assert issubclass(InvalidPreferenceError, ValidationException)
