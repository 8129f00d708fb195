"""
CaseCraft Generation Module

Pure helpers that turn a free-form AI reply into a test case mapping:
JSON extraction, shape validation and selector normalization.
"""

from casecraft.generation.extractor import extract_json_span, parse_json_payload
from casecraft.generation.validator import ValidationIssue, validate_test_case
from casecraft.generation.normalizer import normalize_action, normalize_actions

__all__ = [
    "extract_json_span",
    "parse_json_payload",
    "ValidationIssue",
    "validate_test_case",
    "normalize_action",
    "normalize_actions",
]
