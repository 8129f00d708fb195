"""
CaseCraft Test Case Validator

Checks a candidate test case mapping against the required shape. All
problems are collected rather than stopping at the first.
"""

from dataclasses import dataclass
from typing import Any, Optional

from casecraft.core.models import VALUE_REQUIRED_ACTIONS, ActionType


@dataclass(frozen=True)
class ValidationIssue:
    """One problem found in a candidate test case."""

    message: str
    action_index: Optional[int] = None  # 0-based
    field: Optional[str] = None

    def __str__(self) -> str:
        if self.action_index is None:
            return self.message
        return f"Action {self.action_index + 1}: {self.message}"


def _present(mapping: dict[str, Any], key: str) -> bool:
    value = mapping.get(key)
    return value is not None and value != ""


def validate_test_case(candidate: Any, strict_types: bool = True) -> list[ValidationIssue]:
    """
    Validate a candidate test case.

    Args:
        candidate: Parsed JSON, expected to be a test case mapping
        strict_types: Also reject action types outside ActionType

    Returns:
        List of issues; empty when the candidate is valid
    """
    if not isinstance(candidate, dict):
        return [ValidationIssue("Test case must be an object")]

    issues: list[ValidationIssue] = []

    if not _present(candidate, "name") or not isinstance(candidate["name"], str):
        issues.append(ValidationIssue("Missing or invalid test name", field="name"))

    if not _present(candidate, "url") or not isinstance(candidate["url"], str):
        issues.append(ValidationIssue("Missing or invalid test URL", field="url"))

    actions = candidate.get("actions")
    if not isinstance(actions, list):
        issues.append(ValidationIssue("Actions must be an array", field="actions"))
        return issues

    known_types = ActionType.values()
    for index, action in enumerate(actions):
        if not isinstance(action, dict):
            issues.append(ValidationIssue("Action must be an object", action_index=index))
            continue

        action_type = action.get("type")
        if not _present(action, "type"):
            issues.append(ValidationIssue("Missing action type", action_index=index, field="type"))
        elif not isinstance(action_type, str):
            issues.append(ValidationIssue("Action type must be a string", action_index=index, field="type"))
            action_type = None
        elif strict_types and action_type not in known_types:
            issues.append(
                ValidationIssue(f"Unknown action type {action_type!r}", action_index=index, field="type")
            )

        if not _present(action, "description"):
            issues.append(ValidationIssue("Missing description", action_index=index, field="description"))

        if action_type in VALUE_REQUIRED_ACTIONS and not _present(action, "value"):
            issues.append(
                ValidationIssue(
                    f"Missing value for {action_type} action", action_index=index, field="value"
                )
            )

    return issues
