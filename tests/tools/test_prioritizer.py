"""Tests for element type prioritization."""

import pytest

from casecraft.tools.prioritizer import ElementCategory, categorize, parse_hint, prioritize
from tests.conftest import element


@pytest.mark.parametrize(
    "tag,role,input_type,expected",
    [
        ("button", None, None, ElementCategory.BUTTON),
        ("input", None, "submit", ElementCategory.BUTTON),
        ("div", "button", None, ElementCategory.BUTTON),
        ("A", None, None, ElementCategory.LINK),
        ("span", "link", None, ElementCategory.LINK),
        ("select", None, None, ElementCategory.SELECT),
        ("div", "combobox", None, ElementCategory.SELECT),
        ("input", None, "text", ElementCategory.INPUT),
        ("textarea", None, None, ElementCategory.INPUT),
        ("span", None, None, ElementCategory.OTHER),
    ],
)
def test_categorize(tag, role, input_type, expected):
    assert categorize(tag, role, input_type) == expected


def handles(elements):
    return [e.handle for e in elements]


def test_default_order_buttons_links_then_rest():
    matches = [
        element("span1", tag="span"),
        element("link1", tag="a"),
        element("btn1", tag="button"),
        element("link2", tag="a"),
        element("btn2", tag="input", input_type="submit"),
    ]
    assert handles(prioritize(matches)) == ["btn1", "btn2", "link1", "link2", "span1"]


def test_hint_promotes_category_then_default_order():
    matches = [
        element("btn", tag="button"),
        element("span", tag="span"),
        element("link", tag="a"),
    ]
    assert handles(prioritize(matches, "link")) == ["link", "btn", "span"]


@pytest.mark.parametrize("hint", [None, "generic", "unknown-thing", ""])
def test_no_or_unknown_hint_uses_default_order(hint):
    matches = [element("link", tag="a"), element("btn", tag="button")]
    assert handles(prioritize(matches, hint)) == ["btn", "link"]


def test_hint_is_case_insensitive():
    assert parse_hint("BUTTON") == ElementCategory.BUTTON
    assert parse_hint("dropdown") == ElementCategory.SELECT


def test_prioritize_does_not_mutate_input():
    matches = [element("link", tag="a"), element("btn", tag="button")]
    prioritize(matches)
    assert handles(matches) == ["link", "btn"]
