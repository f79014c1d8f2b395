from __future__ import annotations

import pytest

from gemini_gateway.common.validation import PromptErrorKind, trim_prompt, validate_prompt


@pytest.mark.parametrize("candidate", [None, "", 0, 0.0, False])
def test_falsy_is_missing(candidate: object) -> None:
    assert validate_prompt(candidate).reason is PromptErrorKind.MISSING


@pytest.mark.parametrize("candidate", [42, True, ["hello"], {"a": 1}, [], {}])
def test_non_string_is_wrong_type(candidate: object) -> None:
    assert validate_prompt(candidate).reason is PromptErrorKind.WRONG_TYPE


@pytest.mark.parametrize("candidate", [" ", "   ", "\n\t ", " " * 20_000])
def test_whitespace_only_is_empty(candidate: str) -> None:
    result = validate_prompt(candidate)
    assert not result.valid
    assert result.reason is PromptErrorKind.EMPTY
    assert result.message == "Prompt cannot be empty"


def test_too_short_and_too_long() -> None:
    assert validate_prompt("Hi").reason is PromptErrorKind.TOO_SHORT
    assert validate_prompt("a").reason is PromptErrorKind.TOO_SHORT
    assert validate_prompt("a" * 10_001).reason is PromptErrorKind.TOO_LONG


def test_bounds_use_untrimmed_length() -> None:
    # trimmed "a" is one character, raw length is three
    assert validate_prompt(" a ").valid
    assert validate_prompt("a" + " " * 10_000).reason is PromptErrorKind.TOO_LONG


@pytest.mark.parametrize("length", [3, 4, 500, 10_000])
def test_lengths_in_range_are_valid(length: int) -> None:
    result = validate_prompt("x" * length)
    assert result.valid
    assert result.reason is None
    assert result.message is None


@pytest.mark.parametrize("candidate", ["\ufeff" * 3, "\u00a0\u2028\u2029", "\u3000 \t"])
def test_javascript_whitespace_is_empty(candidate: str) -> None:
    assert validate_prompt(candidate).reason is PromptErrorKind.EMPTY


def test_separator_controls_are_not_whitespace() -> None:
    # str.isspace() treats U+001C..U+001F and U+0085 as whitespace; trim() does not
    assert validate_prompt("\x1c\x1d\x1f").valid
    assert validate_prompt("\x85\x85\x85").valid
    assert trim_prompt("\x1cabc\x1f") == "\x1cabc\x1f"


def test_trim_prompt_strips_both_ends() -> None:
    assert trim_prompt("\ufeff Tell me a joke \u00a0\n") == "Tell me a joke"
