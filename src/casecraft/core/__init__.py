"""
CaseCraft Core Module

Contains the data model, configuration, error hierarchy and shared
utilities used across the resolution engine and the generation pipeline.
"""

from casecraft.core.config import settings, LLMProvider, BrowserType
from casecraft.core.models import (
    ActionType,
    ActionDescriptor,
    TestCaseDescriptor,
    MatchStrategy,
    AttemptStatus,
    SelectOption,
    CandidateAttempt,
    ResolutionOutcome,
    StepStatus,
    StepResult,
    TestRunResult,
)
from casecraft.core.exceptions import (
    ErrorKind,
    CaseCraftError,
    ResolutionError,
    GenerationError,
    ImageError,
    LLMError,
    ToolError,
    ValidationError,
)
from casecraft.core.error_handler import ErrorRecord, handle_error

__all__ = [
    # Config
    "settings",
    "LLMProvider",
    "BrowserType",
    # Models
    "ActionType",
    "ActionDescriptor",
    "TestCaseDescriptor",
    "MatchStrategy",
    "AttemptStatus",
    "SelectOption",
    "CandidateAttempt",
    "ResolutionOutcome",
    "StepStatus",
    "StepResult",
    "TestRunResult",
    # Exceptions
    "ErrorKind",
    "CaseCraftError",
    "ResolutionError",
    "GenerationError",
    "ImageError",
    "LLMError",
    "ToolError",
    "ValidationError",
    # Error handling
    "ErrorRecord",
    "handle_error",
]
