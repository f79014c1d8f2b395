"""Prompt validation for the /generate endpoint."""
from __future__ import annotations
import math
from dataclasses import dataclass
from enum import Enum

MIN_PROMPT_LENGTH = 3
MAX_PROMPT_LENGTH = 10_000

# What JavaScript's String.prototype.trim removes: WhiteSpace (tab, VT, FF,
# space, NBSP, BOM, category Zs) and LineTerminator. str.isspace() differs on
# U+001C..U+001F, U+0085 and U+FEFF.
_TRIM_CHARS = (
    "\t\n\v\f\r \u00a0\u1680"
    "\u2000\u2001\u2002\u2003\u2004\u2005\u2006\u2007\u2008\u2009\u200a"
    "\u2028\u2029\u202f\u205f\u3000\ufeff"
)


def trim_prompt(prompt: str) -> str:
    """Strip leading/trailing whitespace the way JavaScript's trim() does."""
    return prompt.strip(_TRIM_CHARS)


class PromptErrorKind(str, Enum):
    MISSING = "MissingPrompt"
    WRONG_TYPE = "WrongType"
    EMPTY = "EmptyPrompt"
    TOO_LONG = "TooLong"
    TOO_SHORT = "TooShort"


PROMPT_ERROR_MESSAGES: dict[PromptErrorKind, str] = {
    PromptErrorKind.MISSING: "Prompt is required",
    PromptErrorKind.WRONG_TYPE: "Prompt must be a string",
    PromptErrorKind.EMPTY: "Prompt cannot be empty",
    PromptErrorKind.TOO_LONG: "Prompt is too long (maximum 10,000 characters)",
    PromptErrorKind.TOO_SHORT: "Prompt is too short (minimum 3 characters)",
}


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    reason: PromptErrorKind | None = None

    @property
    def message(self) -> str | None:
        return PROMPT_ERROR_MESSAGES[self.reason] if self.reason else None


def _is_missing(candidate: object) -> bool:
    """JSON-level falsiness: null, false, 0 and "" count as missing; [] and {} do not."""
    if candidate is None or candidate is False:
        return True
    if isinstance(candidate, str):
        return candidate == ""
    if isinstance(candidate, (int, float)) and not isinstance(candidate, bool):
        return candidate == 0 or math.isnan(candidate)
    return False


def validate_prompt(candidate: object) -> ValidationResult:
    """
    Validate a prompt taken from a request body.

    Emptiness is judged on the trimmed value, length bounds on the raw value,
    so a whitespace-only string is always EMPTY, never TOO_SHORT.

    Args:
        candidate: Raw ``prompt`` value, ``None`` when absent.

    Returns:
        ValidationResult with ``reason`` set to the first rule that failed.
    """
    if _is_missing(candidate):
        return ValidationResult(False, PromptErrorKind.MISSING)
    if not isinstance(candidate, str):
        return ValidationResult(False, PromptErrorKind.WRONG_TYPE)
    if not trim_prompt(candidate):
        return ValidationResult(False, PromptErrorKind.EMPTY)
    if len(candidate) > MAX_PROMPT_LENGTH:
        return ValidationResult(False, PromptErrorKind.TOO_LONG)
    if len(candidate) < MIN_PROMPT_LENGTH:
        return ValidationResult(False, PromptErrorKind.TOO_SHORT)
    return ValidationResult(True)
