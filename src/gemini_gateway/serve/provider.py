"""Adapter around the Gemini text-generation API.

One request per call, no retries, no streaming. Provider failures are
re-raised as ProviderError with a best-effort classification.
"""
from __future__ import annotations
import logging
from enum import Enum
from typing import Any

import google.generativeai as genai

LOGGER = logging.getLogger("gemini_gateway.serve.provider")


class ProviderErrorKind(str, Enum):
    AUTH = "AuthError"
    QUOTA_EXCEEDED = "QuotaExceeded"
    CONTENT_FILTERED = "ContentFiltered"
    UNKNOWN = "UnknownProviderError"


# Checked in order; the SDK exposes no stable error codes, so this is best-effort.
_MESSAGE_MARKERS: tuple[tuple[str, ProviderErrorKind], ...] = (
    ("API_KEY", ProviderErrorKind.AUTH),
    ("quota", ProviderErrorKind.QUOTA_EXCEEDED),
    ("safety", ProviderErrorKind.CONTENT_FILTERED),
)


def classify_provider_message(message: str) -> ProviderErrorKind:
    """
    Classify a provider error message by case-sensitive substring match.

    Args:
        message: Error text reported by the SDK.

    Returns:
        The first matching kind, UNKNOWN if none match.
    """
    for marker, kind in _MESSAGE_MARKERS:
        if marker in message:
            return kind
    return ProviderErrorKind.UNKNOWN


class ProviderError(Exception):
    """A classified failure of the upstream generation call."""

    def __init__(self, kind: ProviderErrorKind, detail: str) -> None:
        super().__init__(detail)
        self.kind = kind
        self.detail = detail

    @classmethod
    def from_exception(cls, exc: BaseException) -> "ProviderError":
        detail = str(exc)
        return cls(classify_provider_message(detail), detail)


def _block_reason(response: Any) -> Any:
    feedback = getattr(response, "prompt_feedback", None)
    return getattr(feedback, "block_reason", None) if feedback is not None else None


class GenerationClient:
    """Calls ``generate_content`` on a fixed Gemini model."""

    def __init__(self, api_key: str, model_id: str) -> None:
        genai.configure(api_key=api_key)
        self.model_id = model_id
        self._model = genai.GenerativeModel(model_id)

    async def generate(self, sanitized_prompt: str) -> str:
        """
        Generate text for an already validated and trimmed prompt.

        Raises:
            ProviderError: on any SDK failure, or when the prompt is blocked.
        """
        try:
            response = await self._model.generate_content_async(sanitized_prompt)
        except Exception as e:
            LOGGER.error("Generation error: %s", e)
            raise ProviderError.from_exception(e) from e

        if _block_reason(response):
            LOGGER.warning("Prompt blocked by provider: %s", _block_reason(response))
            raise ProviderError(
                ProviderErrorKind.CONTENT_FILTERED,
                f"Prompt blocked for safety reasons: {_block_reason(response)}",
            )

        try:
            return response.text
        except Exception as e:
            # The text accessor raises when no candidate part came back.
            LOGGER.error("Generation error: %s", e)
            raise ProviderError.from_exception(e) from e
