"""
CaseCraft Selector Expressions

A selector expression is a comma-separated list of candidate selectors,
tried left to right by the resolution engine.
"""

from dataclasses import dataclass
from typing import Iterator, Optional

TEXT_PREFIX = "text="


@dataclass(frozen=True)
class SelectorExpression:
    """Parsed selector expression."""

    raw: str
    candidates: tuple[str, ...]

    def __iter__(self) -> Iterator[str]:
        return iter(self.candidates)

    def __len__(self) -> int:
        return len(self.candidates)

    def __bool__(self) -> bool:
        return bool(self.candidates)

    @classmethod
    def parse(cls, raw: Optional[str]) -> "SelectorExpression":
        return parse_selector_expression(raw)


def parse_selector_expression(raw: Optional[str]) -> SelectorExpression:
    """
    Split a raw selector string into its candidate selectors.

    Candidates are trimmed, empty ones are dropped, order and duplicates
    are kept. Selector syntax is not checked: an invalid candidate simply
    matches nothing.

    Args:
        raw: The selector string, e.g. "#grade, select[name=grade]"

    Returns:
        SelectorExpression with the ordered candidates
    """
    if not raw:
        return SelectorExpression(raw=raw or "", candidates=())

    candidates = tuple(part.strip() for part in raw.split(",") if part.strip())
    return SelectorExpression(raw=raw, candidates=candidates)


def is_text_query(candidate: str) -> bool:
    """Whether the candidate uses Playwright's text engine."""
    return candidate.startswith(TEXT_PREFIX)
