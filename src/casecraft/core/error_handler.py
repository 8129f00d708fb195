"""
CaseCraft Error Handler

Turns exceptions and failed resolution outcomes into user-visible error
records carrying the full attempt log and, where one exists, a fallback
suggestion.
"""

import logging
import traceback
from typing import Any, Optional

from casecraft.core.exceptions import (
    AllCandidatesExhaustedError,
    BrowserError,
    CaptureError,
    CaseCraftError,
    ErrorKind,
    LLMConfigurationError,
    LLMError,
    ValidationFailedError,
    is_retryable,
)
from casecraft.core.models import ResolutionOutcome

logger = logging.getLogger(__name__)


def suggest_fallback(error: Exception) -> Optional[str]:
    """
    Suggest a next step for failures that come from a network or DOM step.

    Returns None for failures the user has to fix in the input itself.
    """
    if isinstance(error, LLMConfigurationError):
        return (
            "Configure an API key for the selected provider (see `casecraft config`), "
            "or rerun with --fallback to build a basic test case from URL patterns."
        )
    if isinstance(error, LLMError):
        return "The AI provider call failed; retry later or rerun with --fallback to use a URL-pattern test case."
    if isinstance(error, CaptureError):
        return "Check that the URL is reachable and Playwright browsers are installed (`playwright install chromium`)."
    if isinstance(error, AllCandidatesExhaustedError):
        return "Add an alternative selector separated by a comma, or set elementType to disambiguate matches."
    if isinstance(error, BrowserError):
        return "Check that the page finished loading; raise the action timeout if the element appears late."
    return None


class ErrorRecord:
    """Record of a failure, ready to be shown to a user or serialized."""

    def __init__(
        self,
        error_type: str,
        kind: ErrorKind,
        message: str,
        component: str,
        is_retryable: bool = False,
        stack_trace: str = "",
        details: Optional[dict[str, Any]] = None,
        attempts: Optional[list[dict[str, Any]]] = None,
        issues: Optional[list[str]] = None,
        suggestion: Optional[str] = None,
    ):
        self.error_type = error_type
        self.kind = kind
        self.message = message
        self.component = component
        self.is_retryable = is_retryable
        self.stack_trace = stack_trace
        self.details = details or {}
        self.attempts = attempts or []
        self.issues = issues or []
        self.suggestion = suggestion

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for reports."""
        data = {
            "error_type": self.error_type,
            "kind": self.kind.value,
            "message": self.message,
            "component": self.component,
            "is_retryable": self.is_retryable,
            "details": self.details,
        }
        if self.attempts:
            data["attempts"] = self.attempts
        if self.issues:
            data["issues"] = self.issues
        if self.suggestion:
            data["suggestion"] = self.suggestion
        return data

    def render(self) -> str:
        """Plain-text rendering with the attempt log."""
        lines = [f"[{self.kind.value}] {self.message}"]
        for issue in self.issues:
            lines.append(f"  - {issue}")
        for i, attempt in enumerate(self.attempts, start=1):
            line = f"  {i}. {attempt['candidate']}: {attempt['status']}"
            if attempt.get("message"):
                line += f" ({attempt['message']})"
            lines.append(line)
            if attempt.get("strategies_tried"):
                lines.append(f"     strategies: {', '.join(attempt['strategies_tried'])}")
            if attempt.get("available_options"):
                pairs = ", ".join(
                    f"{o['value']!r}/{o['label']!r}" for o in attempt["available_options"]
                )
                lines.append(f"     options (value/label): {pairs}")
        if self.suggestion:
            lines.append(f"Suggestion: {self.suggestion}")
        return "\n".join(lines)

    @classmethod
    def from_exception(cls, error: Exception, component: str) -> "ErrorRecord":
        """Create an ErrorRecord from an exception."""
        details: dict[str, Any] = {}
        attempts: list[dict[str, Any]] = []
        issues: list[str] = []
        kind = ErrorKind.INTERNAL

        if isinstance(error, CaseCraftError):
            details = error.details
            kind = error.kind
        if isinstance(error, AllCandidatesExhaustedError) and error.outcome is not None:
            attempts = [a.to_dict() for a in error.outcome.attempts]
        if isinstance(error, ValidationFailedError):
            issues = [str(issue) for issue in error.issues]

        return cls(
            error_type=type(error).__name__,
            kind=kind,
            message=getattr(error, "message", str(error)),
            component=component,
            is_retryable=is_retryable(error),
            stack_trace=traceback.format_exc(),
            details=details,
            attempts=attempts,
            issues=issues,
            suggestion=suggest_fallback(error),
        )

    @classmethod
    def from_outcome(cls, outcome: ResolutionOutcome, component: str = "resolver") -> "ErrorRecord":
        """Create an ErrorRecord from a failed resolution outcome."""
        if outcome.no_candidates:
            message = "No candidate selectors to try"
        else:
            message = outcome.error_message or "All candidate selectors failed"
        return cls(
            error_type="ResolutionOutcome",
            kind=outcome.error or ErrorKind.ALL_CANDIDATES_EXHAUSTED,
            message=message,
            component=component,
            attempts=[a.to_dict() for a in outcome.attempts],
            suggestion=suggest_fallback(AllCandidatesExhaustedError(message, outcome=outcome)),
        )


def handle_error(error: Exception, component: str) -> ErrorRecord:
    """Log an error and return its record."""
    record = ErrorRecord.from_exception(error, component)
    logger.error(
        f"{component} failed: {record.message}",
        extra={
            "component": component,
            "error_type": record.error_type,
            "is_retryable": record.is_retryable,
        },
    )
    return record
