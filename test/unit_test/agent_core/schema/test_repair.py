from __future__ import annotations

from typing import Any, Optional, Tuple

import pytest

from weaver_ai.agent_core.schema.repair import parse_broken_json


@pytest.mark.parametrize(
    "text,expected",
    [
        ('{"a": 1}', {"a": 1}),
        ("  [1, 2, 3]  ", [1, 2, 3]),
        ("42", 42),
        ('"hello"', "hello"),
    ],
)
def test_valid_json_is_parsed_strictly(text: str, expected: Any) -> None:
    assert parse_broken_json(text) == expected


def test_trailing_comma_is_repaired() -> None:
    assert parse_broken_json('{"a": 1,}') == {"a": 1}


def test_unquoted_keys_are_repaired() -> None:
    assert parse_broken_json("{a: 1}") == {"a": 1}


def test_unbalanced_brackets_are_closed() -> None:
    assert parse_broken_json('{"a": [1, 2') == {"a": [1, 2]}


def test_truncated_string_is_closed() -> None:
    assert parse_broken_json('{"a": "hel') == {"a": "hel"}


def test_plain_prose_yields_none() -> None:
    assert parse_broken_json("not json at all") is None


@pytest.mark.parametrize("text", [None, "", "   \n"])
def test_empty_input_yields_none(text: Optional[str]) -> None:
    assert parse_broken_json(text) is None


def test_pair_extracts_first_balanced_span() -> None:
    assert parse_broken_json('prefix {"a":1} suffix', pair=("{", "}")) == {"a": 1}


def test_pair_ignores_delimiters_inside_strings() -> None:
    text = 'The answer is {"text": "use } carefully", "n": 2} as shown {"b": 3}'
    assert parse_broken_json(text, pair=("{", "}")) == {"text": "use } carefully", "n": 2}


def test_unclosed_pair_falls_back_to_remainder() -> None:
    assert parse_broken_json('Result: {"a": 1, "b": 2', pair=("{", "}")) == {"a": 1, "b": 2}


@pytest.mark.parametrize(
    "text,pair",
    [
        ("no braces here", ("{", "}")),
        ("still nothing", ("[", "]")),
    ],
)
def test_pair_without_any_delimiter_and_prose_yields_none(text: str, pair: Tuple[str, str]) -> None:
    assert parse_broken_json(text, pair=pair) is None


def test_never_raises_for_odd_input() -> None:
    assert parse_broken_json(12345) is None  # type: ignore[arg-type]


def test_markdown_fenced_json_is_unwrapped() -> None:
    assert parse_broken_json('```json\n{"a": 1}\n```') == {"a": 1}


def test_json_after_leading_prose_is_recovered() -> None:
    assert parse_broken_json('Sure, here it is: {"a": [1, 2]}') == {"a": [1, 2]}
