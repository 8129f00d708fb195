"""
CaseCraft Custom Exceptions

Provides a hierarchy of exceptions for proper error handling
throughout the resolution engine and the generation pipeline.
"""

from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    """Stable names for every failure a caller can observe."""

    ELEMENT_NOT_FOUND = "ElementNotFound"
    NO_STRATEGY_MATCHED = "NoStrategyMatched"
    ALL_CANDIDATES_EXHAUSTED = "AllCandidatesExhausted"
    ACTION_FAILED = "ActionFailed"
    AI_RESPONSE_NO_JSON = "AIResponseNoJSON"
    AI_RESPONSE_MALFORMED_JSON = "AIResponseMalformedJSON"
    VALIDATION_FAILED = "ValidationFailed"
    IMAGE_RESIZE_FAILED = "ImageResizeFailed"
    IMAGE_READ_FAILED = "ImageReadFailed"
    CAPTURE_FAILED = "CaptureFailed"
    LLM_FAILED = "LLMFailed"
    INTERNAL = "Internal"


class CaseCraftError(Exception):
    """Base exception for all CaseCraft errors."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# Resolution errors
class ResolutionError(CaseCraftError):
    """Base exception for action resolution failures."""
    pass


class AllCandidatesExhaustedError(ResolutionError):
    """Every candidate selector failed; carries the full attempt log."""

    kind = ErrorKind.ALL_CANDIDATES_EXHAUSTED

    def __init__(
        self,
        message: str,
        outcome: Any = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.outcome = outcome


# Generation errors
class GenerationError(CaseCraftError):
    """Base exception for the screenshot-to-test-case pipeline."""
    pass


class AIResponseNoJSONError(GenerationError):
    """The AI reply contained no JSON object."""

    kind = ErrorKind.AI_RESPONSE_NO_JSON


class AIResponseMalformedJSONError(GenerationError):
    """A JSON span was found in the AI reply but did not parse."""

    kind = ErrorKind.AI_RESPONSE_MALFORMED_JSON


class ValidationFailedError(GenerationError):
    """The candidate test case did not have the required shape."""

    kind = ErrorKind.VALIDATION_FAILED

    def __init__(
        self,
        message: str,
        issues: Optional[list] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.issues = list(issues or [])

    def __str__(self) -> str:
        if not self.issues:
            return super().__str__()
        lines = "\n".join(f"  - {issue}" for issue in self.issues)
        return f"{self.message}\n{lines}"


class CaptureError(GenerationError):
    """The page screenshot could not be captured."""

    kind = ErrorKind.CAPTURE_FAILED


# Image errors
class ImageError(CaseCraftError):
    """Base exception for screenshot preprocessing."""
    pass


class ImageResizeFailedError(ImageError):
    """Resizing failed; callers degrade to the original image."""

    kind = ErrorKind.IMAGE_RESIZE_FAILED


class ImageReadFailedError(ImageError):
    """Neither the resized nor the original image bytes could be read."""

    kind = ErrorKind.IMAGE_READ_FAILED


# LLM-related errors
class LLMError(CaseCraftError):
    """Base exception for LLM-related errors."""

    kind = ErrorKind.LLM_FAILED


class LLMConnectionError(LLMError):
    """Failed to connect to the LLM provider."""
    pass


class LLMRateLimitError(LLMError):
    """Rate limit exceeded for LLM API."""

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        retry_after: Optional[float] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.retry_after = retry_after


class LLMResponseError(LLMError):
    """Invalid or unexpected response from LLM."""
    pass


class LLMTimeoutError(LLMError):
    """LLM request timed out."""
    pass


class LLMConfigurationError(LLMError):
    """LLM configuration error (e.g., missing API key)."""
    pass


# Tool-related errors
class ToolError(CaseCraftError):
    """Base exception for tool-related errors."""

    def __init__(
        self,
        message: str,
        tool_name: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, details)
        self.tool_name = tool_name


class BrowserError(ToolError):
    """Error with browser operations."""

    kind = ErrorKind.ACTION_FAILED


class BrowserTimeoutError(BrowserError):
    """Browser operation timed out."""
    pass


class BrowserNavigationError(BrowserError):
    """Failed to navigate to URL."""
    pass


# Validation errors
class ValidationError(CaseCraftError):
    """Base exception for input validation errors."""
    pass


class TestCaseLoadError(ValidationError):
    """A test case file or mapping could not be loaded."""

    __test__ = False
    kind = ErrorKind.VALIDATION_FAILED


# Retryable error marker
class RetryableError(CaseCraftError):
    """
    Marker class for errors that can be retried.

    Any exception inheriting from this (in addition to its specific type)
    indicates the operation can be safely retried.
    """
    pass


class RetryableConnectionError(LLMConnectionError, RetryableError):
    """Connection error that can be retried."""
    pass


class RetryableRateLimitError(LLMRateLimitError, RetryableError):
    """Rate limit error that can be retried after waiting."""
    pass


class RetryableTimeoutError(LLMTimeoutError, RetryableError):
    """Timeout error that can be retried."""
    pass


def is_retryable(error: Exception) -> bool:
    """
    Check if an error is retryable.

    Args:
        error: The exception to check

    Returns:
        True if the error can be retried
    """
    if isinstance(error, RetryableError):
        return True
    if isinstance(error, CaseCraftError):
        return False

    # Also check for common transient errors from underlying libraries
    error_type = type(error).__name__.lower()
    error_msg = str(error).lower()

    retryable_patterns = [
        "rate limit",
        "rate_limit",
        "429",
        "503",
        "502",
        "connection",
        "timeout",
        "temporary",
        "overloaded",
    ]

    return any(pattern in error_type or pattern in error_msg for pattern in retryable_patterns)
