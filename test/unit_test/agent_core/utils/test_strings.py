from __future__ import annotations

import pytest

from weaver_ai.agent_core.utils.strings import find_first_pair


def test_finds_outermost_balanced_span() -> None:
    span = find_first_pair("a {b {c}} d", ("{", "}"))

    assert span is not None
    assert span.start == 2
    assert span.end == 9
    assert span.outer == "{b {c}}"
    assert span.inner == "b {c}"


def test_delimiters_inside_strings_are_ignored() -> None:
    span = find_first_pair('x {"k": "}{"} y', ("{", "}"))
    assert span is not None
    assert span.outer == '{"k": "}{"}'


def test_escaped_quotes_do_not_end_a_string() -> None:
    span = find_first_pair('{"k": "a \\" } b"}', ("{", "}"))
    assert span is not None
    assert span.outer == '{"k": "a \\" } b"}'


def test_multi_character_delimiters() -> None:
    span = find_first_pair("before <<x <<y>> z>> after", ("<<", ">>"))
    assert span is not None
    assert span.inner == "x <<y>> z"


def test_identical_open_and_close() -> None:
    span = find_first_pair("x ```code``` y", ("```", "```"))
    assert span is not None
    assert span.inner == "code"


def test_missing_or_unclosed_pair_returns_none() -> None:
    assert find_first_pair("nothing here", ("{", "}")) is None
    assert find_first_pair("open { never closed", ("{", "}")) is None


def test_empty_delimiters_are_rejected() -> None:
    with pytest.raises(ValueError):
        find_first_pair("text", ("", "}"))
