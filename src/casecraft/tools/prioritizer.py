"""
CaseCraft Element Type Prioritizer

Orders the elements a text query matched so that the one the test author
most likely meant comes first: buttons before links before anything else,
unless an element-type hint says otherwise.
"""

import logging
from enum import Enum
from typing import Optional, Sequence, TypeVar

logger = logging.getLogger(__name__)


class ElementCategory(str, Enum):
    """Coarse element categories used for tie-breaking."""

    BUTTON = "button"
    LINK = "link"
    SELECT = "select"
    INPUT = "input"
    OTHER = "other"


# Default rank when no hint is given; lower ranks first
DEFAULT_RANK = {
    ElementCategory.BUTTON: 0,
    ElementCategory.LINK: 1,
}
OTHER_RANK = 2

BUTTON_INPUT_TYPES = {"submit", "button", "reset", "image"}
SELECT_ROLES = {"combobox", "listbox", "option"}

HINT_ALIASES = {
    "btn": ElementCategory.BUTTON,
    "a": ElementCategory.LINK,
    "anchor": ElementCategory.LINK,
    "dropdown": ElementCategory.SELECT,
    "option": ElementCategory.SELECT,
    "textbox": ElementCategory.INPUT,
    "field": ElementCategory.INPUT,
}


def categorize(
    tag_name: str,
    role: Optional[str] = None,
    input_type: Optional[str] = None,
) -> ElementCategory:
    """
    Map DOM facts about an element onto a category.

    Args:
        tag_name: Lower- or upper-case tag name
        role: The ARIA role attribute, if any
        input_type: The type attribute for <input> elements

    Returns:
        The ElementCategory
    """
    tag = (tag_name or "").lower()
    role = (role or "").lower()
    input_type = (input_type or "").lower()

    if tag == "button" or role == "button":
        return ElementCategory.BUTTON
    if tag == "input" and input_type in BUTTON_INPUT_TYPES:
        return ElementCategory.BUTTON
    if tag == "a" or role == "link":
        return ElementCategory.LINK
    if tag in ("select", "option") or role in SELECT_ROLES:
        return ElementCategory.SELECT
    if tag in ("input", "textarea") or role == "textbox":
        return ElementCategory.INPUT
    return ElementCategory.OTHER


def parse_hint(hint: Optional[str]) -> Optional[ElementCategory]:
    """Turn an elementType hint into a category; unknown hints mean no hint."""
    if not hint:
        return None
    key = hint.strip().lower()
    if key == "generic":
        return None
    try:
        return ElementCategory(key)
    except ValueError:
        pass
    if key in HINT_ALIASES:
        return HINT_ALIASES[key]
    logger.debug(f"Ignoring unknown element type hint: {hint!r}")
    return None


E = TypeVar("E")


def prioritize(
    matches: Sequence[E],
    hint: Optional[str] = None,
    category_of=lambda element: element.category,
) -> list[E]:
    """
    Order matched elements by category priority.

    Without a hint: buttons, then links, then everything else. With a hint:
    elements of the hinted category first, then the rest in default order.
    Document order is kept inside every group.

    Args:
        matches: Elements in document order
        hint: Optional elementType hint ("button", "link", "select", ...)
        category_of: Returns an element's ElementCategory

    Returns:
        A new list, highest priority first
    """
    preferred = parse_hint(hint)

    def sort_key(item: tuple[int, E]) -> tuple[int, int, int]:
        position, element = item
        category = category_of(element)
        hinted = 0 if preferred is not None and category == preferred else 1
        return (hinted, DEFAULT_RANK.get(category, OTHER_RANK), position)

    ordered = sorted(enumerate(matches), key=sort_key)
    return [element for _, element in ordered]
