"""Tests for user-visible error records."""

from casecraft.core.error_handler import ErrorRecord, handle_error, suggest_fallback
from casecraft.core.exceptions import (
    AIResponseNoJSONError,
    AllCandidatesExhaustedError,
    CaptureError,
    ErrorKind,
    LLMConfigurationError,
    ValidationFailedError,
)
from casecraft.core.models import (
    AttemptStatus,
    CandidateAttempt,
    MatchStrategy,
    ResolutionOutcome,
    SelectOption,
)
from casecraft.generation.validator import ValidationIssue


def failed_outcome():
    return ResolutionOutcome(
        success=False,
        error=ErrorKind.ELEMENT_NOT_FOUND,
        error_message="No element matches '#b'",
        attempts=(
            CandidateAttempt(
                candidate="#a",
                status=AttemptStatus.NO_STRATEGY_MATCHED,
                error=ErrorKind.NO_STRATEGY_MATCHED,
                message="No option matches 'x'",
                strategies_tried=tuple(MatchStrategy),
                attempted_value="x",
                available_options=(SelectOption("v1", "Label 1"),),
            ),
            CandidateAttempt(
                candidate="#b",
                status=AttemptStatus.ELEMENT_NOT_FOUND,
                error=ErrorKind.ELEMENT_NOT_FOUND,
                message="No element matches '#b'",
            ),
        ),
    )


def test_outcome_record_renders_attempt_log():
    record = ErrorRecord.from_outcome(failed_outcome())
    text = record.render()

    assert record.kind == ErrorKind.ELEMENT_NOT_FOUND
    assert "1. #a: no_strategy_matched" in text
    assert "exact-value, exact-label, case-insensitive-value, case-insensitive-label" in text
    assert "'v1'/'Label 1'" in text
    assert "2. #b: element_not_found" in text
    assert record.suggestion


def test_no_candidates_record():
    record = ErrorRecord.from_outcome(
        ResolutionOutcome(success=False, error=ErrorKind.ALL_CANDIDATES_EXHAUSTED, no_candidates=True)
    )
    assert record.message == "No candidate selectors to try"
    assert record.kind == ErrorKind.ALL_CANDIDATES_EXHAUSTED


def test_exhausted_error_carries_attempts():
    error = AllCandidatesExhaustedError("could not resolve", outcome=failed_outcome())

    record = handle_error(error, "resolver")

    assert record.kind == ErrorKind.ALL_CANDIDATES_EXHAUSTED
    assert [a["candidate"] for a in record.to_dict()["attempts"]] == ["#a", "#b"]


def test_validation_record_lists_issues():
    error = ValidationFailedError("bad", issues=[ValidationIssue("Missing description", action_index=2)])

    record = ErrorRecord.from_exception(error, "generate")

    assert record.issues == ["Action 3: Missing description"]
    assert "  - Action 3: Missing description" in record.render()
    assert record.suggestion is None


def test_suggestions_only_for_network_and_dom_failures():
    assert suggest_fallback(LLMConfigurationError("no key"))
    assert suggest_fallback(CaptureError("offline"))
    assert suggest_fallback(AIResponseNoJSONError("prose")) is None


def test_unknown_exception_is_internal():
    record = ErrorRecord.from_exception(RuntimeError("boom"), "cli")
    assert record.kind == ErrorKind.INTERNAL
    assert record.error_type == "RuntimeError"
