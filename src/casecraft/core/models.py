"""
CaseCraft Data Model

Defines the test case descriptors produced by the generation pipeline and
the resolution outcomes produced when those descriptors are executed.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, ClassVar, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from casecraft.core.exceptions import ErrorKind


class ActionType(str, Enum):
    """Recognized action types."""

    NAVIGATE = "navigate"
    FILL = "fill"
    CLICK = "click"
    SELECT = "select"
    WAIT = "wait"
    ASSERT_VISIBLE = "assert_visible"
    ASSERT_TEXT = "assert_text"
    CHECK = "check"
    UNCHECK = "uncheck"
    HOVER = "hover"
    SCROLL = "scroll"
    VERIFY = "verify"

    @classmethod
    def values(cls) -> set[str]:
        return {member.value for member in cls}


# Actions that must carry a non-empty value
VALUE_REQUIRED_ACTIONS = frozenset({ActionType.FILL.value, ActionType.SELECT.value})


class ActionDescriptor(BaseModel):
    """A single step of a test case."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    type: str
    selector: Optional[str] = None
    locator: Optional[str] = None
    value: Optional[str] = None
    element_type: Optional[str] = Field(default=None, alias="elementType")
    description: str = ""
    timeout: Optional[int] = None  # milliseconds

    @field_validator("value", "selector", "locator", mode="before")
    @classmethod
    def _coerce_scalar(cls, v: Any) -> Any:
        # LLMs emit wait durations and option values as bare numbers
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @property
    def action_type(self) -> Optional[ActionType]:
        try:
            return ActionType(self.type)
        except ValueError:
            return None

    @property
    def target(self) -> Optional[str]:
        """The selector expression, honouring the legacy locator field."""
        return self.selector or self.locator

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class TestCaseDescriptor(BaseModel):
    """The validated, executable representation of a test case."""

    __test__: ClassVar[bool] = False

    model_config = ConfigDict(extra="ignore")

    name: str
    description: str = ""
    url: str
    actions: list[ActionDescriptor] = Field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "url": self.url,
            "actions": [a.to_dict() for a in self.actions],
        }


class MatchStrategy(str, Enum):
    """Rules for matching a target value against a select option."""

    EXACT_VALUE = "exact-value"
    EXACT_LABEL = "exact-label"
    CASE_INSENSITIVE_VALUE = "case-insensitive-value"
    CASE_INSENSITIVE_LABEL = "case-insensitive-label"


class AttemptStatus(str, Enum):
    """Result of trying one candidate selector."""

    MATCHED = "matched"
    ELEMENT_NOT_FOUND = "element_not_found"
    NO_STRATEGY_MATCHED = "no_strategy_matched"
    TIMEOUT = "timeout"
    ACTION_FAILED = "action_failed"


@dataclass(frozen=True)
class SelectOption:
    """One option of a select element."""

    value: str
    label: str

    def to_dict(self) -> dict[str, str]:
        return {"value": self.value, "label": self.label}


@dataclass(frozen=True)
class CandidateAttempt:
    """Log entry for one candidate selector."""

    candidate: str
    status: AttemptStatus
    error: Optional[ErrorKind] = None
    message: str = ""
    strategy: Optional[MatchStrategy] = None
    strategies_tried: tuple[MatchStrategy, ...] = ()
    attempted_value: Optional[str] = None
    available_options: tuple[SelectOption, ...] = ()
    elapsed_ms: int = 0

    @property
    def succeeded(self) -> bool:
        return self.status == AttemptStatus.MATCHED

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "candidate": self.candidate,
            "status": self.status.value,
            "elapsed_ms": self.elapsed_ms,
        }
        if self.error:
            data["error"] = self.error.value
        if self.message:
            data["message"] = self.message
        if self.strategy:
            data["strategy"] = self.strategy.value
        if self.strategies_tried:
            data["strategies_tried"] = [s.value for s in self.strategies_tried]
        if self.attempted_value is not None:
            data["attempted_value"] = self.attempted_value
        if self.available_options:
            data["available_options"] = [o.to_dict() for o in self.available_options]
        return data


@dataclass(frozen=True)
class ResolutionOutcome:
    """
    Result of resolving one action against the DOM.

    Created fresh for every action execution and never mutated.
    """

    success: bool
    matched_candidate: Optional[str] = None
    matched_strategy: Optional[MatchStrategy] = None
    matched_value: Optional[str] = None
    error: Optional[ErrorKind] = None
    error_message: Optional[str] = None
    attempts: tuple[CandidateAttempt, ...] = ()
    no_candidates: bool = False

    @property
    def last_attempt(self) -> Optional[CandidateAttempt]:
        return self.attempts[-1] if self.attempts else None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "success": self.success,
            "attempts": [a.to_dict() for a in self.attempts],
        }
        if self.matched_candidate is not None:
            data["matchedCandidate"] = self.matched_candidate
        if self.matched_strategy is not None:
            data["matchedStrategy"] = self.matched_strategy.value
        if self.matched_value is not None:
            data["matchedValue"] = self.matched_value
        if self.error is not None:
            data["error"] = self.error.value
        if self.error_message:
            data["errorMessage"] = self.error_message
        if self.no_candidates:
            data["noCandidates"] = True
        return data


class StepStatus(str, Enum):
    """Status of an executed test step."""

    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class StepResult:
    """Result of executing one action of a test case."""

    index: int
    action_type: str
    description: str
    status: StepStatus
    message: str = ""
    duration_ms: int = 0
    outcome: Optional[ResolutionOutcome] = None

    @property
    def passed(self) -> bool:
        return self.status == StepStatus.PASSED

    def to_dict(self) -> dict[str, Any]:
        data = {
            "step": self.index + 1,
            "type": self.action_type,
            "description": self.description,
            "status": self.status.value,
            "message": self.message,
            "duration_ms": self.duration_ms,
        }
        if self.outcome is not None:
            data["outcome"] = self.outcome.to_dict()
        return data


@dataclass
class TestRunResult:
    """Result of executing a whole test case."""

    __test__: ClassVar[bool] = False

    name: str
    url: str
    steps: list[StepResult] = field(default_factory=list)
    error_message: Optional[str] = None
    screenshot_path: Optional[str] = None
    started_at: datetime = field(default_factory=datetime.now)
    duration_ms: int = 0

    @property
    def passed(self) -> bool:
        return self.error_message is None and all(
            step.status != StepStatus.FAILED for step in self.steps
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "url": self.url,
            "status": "passed" if self.passed else "failed",
            "error": self.error_message,
            "screenshot": self.screenshot_path,
            "started_at": self.started_at.isoformat(),
            "duration_ms": self.duration_ms,
            "steps": [s.to_dict() for s in self.steps],
        }
