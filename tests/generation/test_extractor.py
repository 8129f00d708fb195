"""Tests for JSON extraction from AI replies."""

import pytest

from casecraft.core.exceptions import AIResponseMalformedJSONError, AIResponseNoJSONError
from casecraft.generation.extractor import extract_json_span, parse_json_payload


@pytest.mark.parametrize(
    "text",
    [
        '{"a": 1}',
        'Here you go: {"a": 1}',
        '{"a": 1} hope this helps',
        'Sure!\n```json\n{"a": 1}\n```\nLet me know.',
    ],
)
def test_single_block_found_regardless_of_position(text):
    assert extract_json_span(text) == '{"a": 1}'


@pytest.mark.parametrize("text", ["no braces at all", "", None, "} backwards {"])
def test_no_span(text):
    assert extract_json_span(text) is None


def test_span_is_greedy():
    assert extract_json_span('{"a": {"b": 1}} and {"c": 2}') == '{"a": {"b": 1}} and {"c": 2}'


def test_parse_nested_payload():
    payload = parse_json_payload('Result:\n{"testCase": {"name": "x", "actions": []}}')
    assert payload == {"testCase": {"name": "x", "actions": []}}


def test_parse_without_json_is_distinct_from_malformed():
    with pytest.raises(AIResponseNoJSONError):
        parse_json_payload("I could not analyze the image.")
    with pytest.raises(AIResponseMalformedJSONError):
        parse_json_payload("{name: 'unquoted'}")


def test_fenced_block_is_used_when_greedy_span_fails():
    text = 'Example {like this}. Answer:\n```json\n{"testCase": {"name": "x"}}\n```'
    assert parse_json_payload(text) == {"testCase": {"name": "x"}}


def test_array_reply_yields_the_object_inside_it():
    assert extract_json_span('[{"a": 1}]') == '{"a": 1}'
    assert parse_json_payload('[{"a": 1}]') == {"a": 1}
