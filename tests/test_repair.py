"""
Tests for the model-output repair pipeline.

Each step is checked on its own, then parse_test_cases end to end:
1. Clean JSON arrays pass through unchanged
2. Code fences are stripped
3. Prose around the array is discarded
4. Trailing commas are removed
5. One missing closing bracket is appended
6. A single object is wrapped in a list
7. Unrecoverable output raises with the repaired text attached
"""
import json

import pytest

from errors import UnparseableOutputError
from repair import (
    REPAIR_STEPS,
    balance_brackets,
    extract_array_span,
    parse_test_cases,
    remove_trailing_commas,
    strip_code_fences,
)

CLEAN = '[{"Test Case ID": "TC-001", "Title": "Login"}, {"Test Case ID": "TC-002", "Title": "Logout"}]'


def test_clean_array_is_returned_unchanged():
    assert parse_test_cases(CLEAN) == json.loads(CLEAN)


def test_steps_are_idempotent_on_clean_input():
    for step in REPAIR_STEPS:
        assert step(CLEAN) == CLEAN


@pytest.mark.parametrize(
    "fenced",
    [
        f"```json\n{CLEAN}\n```",
        f"```JSON\n{CLEAN}\n```",
        f"```\n{CLEAN}\n```",
        f"  ```json\n{CLEAN}\n```  \n",
    ],
)
def test_fenced_output_matches_unfenced(fenced):
    assert strip_code_fences(fenced) == CLEAN
    assert parse_test_cases(fenced) == parse_test_cases(CLEAN)


def test_strip_code_fences_twice_is_same_as_once():
    once = strip_code_fences(f"```json\n{CLEAN}\n```")
    assert strip_code_fences(once) == once


def test_array_is_extracted_from_surrounding_prose():
    text = 'Here you go:\n[{"a":1}]\nThanks!'
    assert extract_array_span(text) == '[{"a":1}]'
    assert parse_test_cases(text) == [{"a": 1}]


def test_extract_array_span_leaves_text_without_brackets():
    assert extract_array_span('{"a": 1}') == '{"a": 1}'


def test_trailing_comma_before_closing_bracket_is_removed():
    assert remove_trailing_commas('[{"a":1},]') == '[{"a":1}]'
    assert remove_trailing_commas('[{"a":1,\n}]') == '[{"a":1}]'
    assert parse_test_cases('[{"a":1},]') == [{"a": 1}]


def test_truncated_array_gets_one_closing_bracket():
    text = '[{"a":1},{"a":2}'
    assert balance_brackets(text) == '[{"a":1},{"a":2}]'
    assert parse_test_cases(text) == [{"a": 1}, {"a": 2}]


def test_balance_brackets_appends_at_most_one_of_each():
    assert balance_brackets("[[{") == "[[{]}"


def test_single_object_is_wrapped():
    assert parse_test_cases('{"Title": "Only One"}') == [{"Title": "Only One"}]
    assert parse_test_cases('```json\n{"Title": "Only One"}\n```') == [{"Title": "Only One"}]


def test_combined_noise_is_repaired():
    text = 'Sure! Here are the cases:\n```json\n[{"a": 1,}, {"a": 2},]\n```\nLet me know.'
    assert parse_test_cases(text) == [{"a": 1}, {"a": 2}]


def test_unparseable_output_carries_repaired_text():
    with pytest.raises(UnparseableOutputError) as info:
        parse_test_cases("```json\nI could not generate anything\n```")
    assert info.value.text == "I could not generate anything"


def test_scalar_json_is_unparseable():
    with pytest.raises(UnparseableOutputError):
        parse_test_cases("42")
    with pytest.raises(UnparseableOutputError):
        parse_test_cases('"just a string"')
