"""
CaseCraft Instruction Parser

Converts line-oriented natural-language test instructions into a test
case. InstructionAgent asks the LLM first and falls back to the rule
based InstructionParser when the model is unavailable or its reply is
unusable.
"""

import logging
import re
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from casecraft.agents.base import BaseAgent
from casecraft.core.exceptions import CaseCraftError, ValidationFailedError
from casecraft.core.models import TestCaseDescriptor
from casecraft.generation.extractor import parse_json_payload
from casecraft.generation.normalizer import normalize_actions
from casecraft.generation.validator import validate_test_case
from casecraft.tools.selectors import TEXT_PREFIX

logger = logging.getLogger(__name__)

DEFAULT_TEST_NAME = "Parsed Test"
DEFAULT_URL = "https://example.com"
DEFAULT_SELECT_SELECTOR = 'select, [role="combobox"], [role="listbox"]'
DEFAULT_SUGGEST_SELECTOR = 'input[type="text"]'
TEXT_CLICK_TIMEOUT_MS = 90000
SUGGESTION_CLICK_TIMEOUT_MS = 10000

_URL = re.compile(r"https?://\S+")
_QUOTED = re.compile(r"[\"']([^\"']+)[\"']")
_DIGITS = re.compile(r"\d+")
_CLICK_TEXT = re.compile(r"click\s+(.+?)\s+(button|link)", re.IGNORECASE)
_DROPDOWN_FIELD = (
    re.compile(r"from\s+the\s+(.+?)\s+dropdown", re.IGNORECASE),
    re.compile(r"from\s+(.+?)\s+dropdown", re.IGNORECASE),
)
_SUGGEST_FIELD = (
    re.compile(r"from\s+the\s+(.+?)\s+suggestion", re.IGNORECASE),
    re.compile(r"in\s+the\s+(.+?)\s+field", re.IGNORECASE),
    re.compile(r"search\s+(.+?)\s+for", re.IGNORECASE),
)


def to_pascal_case(text: str) -> str:
    words = re.split(r"[\s_-]+", re.sub(r"[^a-zA-Z0-9\s]", " ", text))
    return "".join(w[:1].upper() + w[1:].lower() for w in words if w)


def _quoted(line: str) -> list[str]:
    return [m.strip() for m in _QUOTED.findall(line)]


def _first_match(patterns, line: str) -> str:
    for pattern in patterns:
        match = pattern.search(line)
        if match:
            return match.group(1).strip()
    return ""


def is_suggest_action(lower: str) -> bool:
    return (
        "suggestion" in lower
        or "autocomplete" in lower
        or ("search" in lower and "select" in lower)
    )


def is_dropdown_action(lower: str) -> bool:
    if is_suggest_action(lower):
        return False
    return "dropdown" in lower or any(word in lower for word in ("select", "choose", "pick"))


def is_input_action(lower: str) -> bool:
    if is_dropdown_action(lower) or is_suggest_action(lower):
        return False
    return any(word in lower for word in ("type in", "type into", "enter", "input", "fill"))


def parse_select_instruction(line: str) -> tuple[str, str]:
    """(selector, value) for a dropdown instruction."""
    quoted = _quoted(line)
    value = quoted[0] if quoted else ""
    field = _first_match(_DROPDOWN_FIELD, line)
    selector = f"#{to_pascal_case(field)}" if field else DEFAULT_SELECT_SELECTOR
    return selector, value


def parse_suggest_instruction(line: str) -> tuple[str, str, Optional[str]]:
    """
    (selector, value, search_term) for an autocomplete instruction.

    The last quoted string is the suggestion to pick; an earlier quoted
    string, when present, is what gets typed.
    """
    quoted = _quoted(line)
    value = quoted[-1] if quoted else ""
    search_term = quoted[0] if len(quoted) > 1 and quoted[0] != value else None
    field = _first_match(_SUGGEST_FIELD, line)
    selector = f"#{to_pascal_case(field)}" if field else DEFAULT_SUGGEST_SELECTOR
    return selector, value, search_term


def extract_selector(line: str, default: str) -> str:
    """Selector named by an instruction line, or the default."""
    quoted = _quoted(line)
    if quoted:
        first = quoted[0]
        if any(ch in first for ch in "#.["):
            return first
        return f"{TEXT_PREFIX}{first}"

    lower = line.lower()
    if "button" in lower or "link" in lower:
        match = _CLICK_TEXT.search(line)
        if match:
            return f"{TEXT_PREFIX}{match.group(1).strip()}"

    if lower.startswith("click "):
        rest = line[6:].strip()
        if rest:
            return f"{TEXT_PREFIX}{rest}"

    return default


def extract_value(line: str) -> str:
    quoted = _quoted(line)
    return quoted[-1] if quoted else ""


class InstructionParser:
    """Rule-based instruction parser; needs no LLM."""

    def parse_line(self, line: str) -> list[dict[str, Any]]:
        """Actions for one instruction line; empty if nothing is recognized."""
        lower = line.lower()

        if "click" in lower:
            selector = extract_selector(line, "button")
            action: dict[str, Any] = {"type": "click", "selector": selector, "description": line}
            if "button" in lower:
                action["elementType"] = "button"
            elif "link" in lower:
                action["elementType"] = "link"
            if selector.startswith(TEXT_PREFIX):
                action["timeout"] = TEXT_CLICK_TIMEOUT_MS
            return [action]

        if is_suggest_action(lower):
            selector, value, search_term = parse_suggest_instruction(line)
            typed = search_term or value
            return [
                {"type": "fill", "selector": selector, "value": typed,
                 "description": f'Type "{typed}" in search field'},
                {"type": "wait", "value": "1000", "description": "Wait for suggestions to load"},
                {"type": "click", "selector": f"{TEXT_PREFIX}{value}",
                 "description": f'Select "{value}" from suggestions',
                 "timeout": SUGGESTION_CLICK_TIMEOUT_MS},
            ]

        if is_dropdown_action(lower):
            selector, value = parse_select_instruction(line)
            return [{"type": "select", "selector": selector, "value": value, "description": line}]

        if is_input_action(lower):
            return [{
                "type": "fill",
                "selector": extract_selector(line, "input"),
                "value": extract_value(line),
                "description": line,
            }]

        if "wait" in lower:
            digits = _DIGITS.search(line)
            return [{"type": "wait", "value": digits.group(0) if digits else "2000", "description": line}]

        if re.search(r"\buncheck\b", lower):
            return [{"type": "uncheck", "selector": extract_selector(line, 'input[type="checkbox"]'),
                     "description": line}]

        if re.search(r"\bcheck\b", lower):
            return [{"type": "check", "selector": extract_selector(line, 'input[type="checkbox"]'),
                     "description": line}]

        if "scroll" in lower:
            return [{"type": "scroll", "description": line}]

        return []

    def parse(self, instructions: str) -> TestCaseDescriptor:
        """
        Parse instruction text into a test case.

        URL lines set the test URL, "name:" or "test:" lines the test name;
        every other line contributes zero or more actions.

        Raises:
            ValidationFailedError: If a fill or select line names no value
        """
        name = DEFAULT_TEST_NAME
        url = ""
        actions: list[dict[str, Any]] = []

        for raw in instructions.splitlines():
            line = raw.strip()
            if not line:
                continue

            url_match = _URL.search(line)
            if url_match:
                url = url_match.group(0)
                continue

            lower = line.lower()
            if "test:" in lower or "name:" in lower:
                name = line.split(":", 1)[1].strip() or name
                continue

            parsed = self.parse_line(line)
            if not parsed:
                logger.debug(f"Unrecognized instruction: {line!r}")
            actions.extend(parsed)

        description = instructions.strip()
        if len(description) > 100:
            description = description[:100] + "..."

        candidate = {
            "name": name,
            "description": description,
            "url": url or DEFAULT_URL,
            "actions": normalize_actions(actions),
        }
        issues = validate_test_case(candidate)
        if issues:
            raise ValidationFailedError("Instructions produced an invalid test case", issues=issues)
        return TestCaseDescriptor.model_validate(candidate)


INSTRUCTION_SYSTEM_PROMPT = """You are a web testing expert. Parse natural language test instructions and convert them to structured test actions.

Return ONLY a JSON object of the form:
{"testCase": {"name": "...", "description": "...", "url": "...", "actions": [{"type": "...", "selector": "...", "value": "...", "elementType": "...", "description": "..."}]}}

Action types: navigate, click, fill, select, wait, check, uncheck, hover, scroll, verify, assert_visible, assert_text.
fill and select actions need a value. Use "text=Visible Text" selectors for buttons and links named by their text."""


class InstructionAgent(BaseAgent):
    """Parses instructions with the LLM, falling back to InstructionParser."""

    name = "instructions"
    role = "Instruction Parser"

    def __init__(self, parser: Optional[InstructionParser] = None, **kwargs: Any):
        super().__init__(**kwargs)
        self.parser = parser or InstructionParser()

    @property
    def system_prompt(self) -> str:
        return INSTRUCTION_SYSTEM_PROMPT

    async def parse(self, instructions: str, use_llm: bool = True) -> TestCaseDescriptor:
        """
        Parse instruction text into a test case.

        Any LLM or reply failure is logged and the rule parser is used.
        """
        if use_llm:
            try:
                return await self._parse_with_llm(instructions)
            except (CaseCraftError, PydanticValidationError) as e:
                logger.warning(f"LLM instruction parsing failed, using rule parser: {e}")
        return self.parser.parse(instructions)

    async def _parse_with_llm(self, instructions: str) -> TestCaseDescriptor:
        reply = await self.invoke_llm(instructions)
        payload = parse_json_payload(reply)
        candidate = payload.get("testCase", payload)

        issues = validate_test_case(candidate)
        if issues:
            raise ValidationFailedError("LLM returned an invalid test case", issues=issues)

        candidate = {**candidate, "actions": normalize_actions(candidate["actions"])}
        return TestCaseDescriptor.model_validate(candidate)
