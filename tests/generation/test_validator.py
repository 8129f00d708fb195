"""Tests for test case validation."""

import pytest

from casecraft.generation.validator import validate_test_case


def well_formed():
    return {
        "name": "Login",
        "description": "Log in",
        "url": "https://example.test",
        "actions": [
            {"type": "fill", "selector": "#user", "value": "bob", "description": "user"},
            {"type": "select", "selector": "#role", "value": "admin", "description": "role"},
            {"type": "click", "selector": "text=Login", "description": "submit"},
        ],
    }


def test_well_formed_has_no_issues():
    assert validate_test_case(well_formed()) == []


def test_select_without_value_yields_one_issue_with_index():
    candidate = well_formed()
    del candidate["actions"][1]["value"]

    issues = validate_test_case(candidate)

    assert len(issues) == 1
    assert issues[0].action_index == 1
    assert str(issues[0]) == "Action 2: Missing value for select action"


def test_issues_accumulate():
    issues = validate_test_case({"name": 3, "actions": [{"value": "x"}]})
    assert [str(i) for i in issues] == [
        "Missing or invalid test name",
        "Missing or invalid test URL",
        "Action 1: Missing action type",
        "Action 1: Missing description",
    ]


def test_actions_not_a_list_skips_per_action_checks():
    candidate = well_formed()
    candidate["actions"] = {"type": "click"}

    issues = validate_test_case(candidate)

    assert [i.field for i in issues] == ["actions"]


def test_non_object_action_and_unknown_type():
    candidate = well_formed()
    candidate["actions"] = ["click it", {"type": "teleport", "description": "?"}]

    issues = validate_test_case(candidate)

    assert [(i.action_index, i.field) for i in issues] == [(0, None), (1, "type")]
    assert validate_test_case(candidate, strict_types=False)[1:] == []


def test_non_object_candidate():
    assert len(validate_test_case(["not", "a", "dict"])) == 1


@pytest.mark.parametrize("action_type", [["fill"], {"k": 1}, 7])
def test_non_string_type_is_an_issue(action_type):
    candidate = well_formed()
    candidate["actions"] = [{"type": action_type, "description": "d"}]

    issues = validate_test_case(candidate)

    assert [str(i) for i in issues] == ["Action 1: Action type must be a string"]
    assert issues[0].field == "type"
