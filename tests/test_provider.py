from __future__ import annotations

import asyncio
from types import SimpleNamespace
from typing import Any

import pytest

import gemini_gateway.serve.provider as provider_mod
from gemini_gateway.serve.provider import (
    GenerationClient,
    ProviderError,
    ProviderErrorKind,
    classify_provider_message,
)


def test_classification_order_and_case() -> None:
    assert classify_provider_message("API_KEY_INVALID") is ProviderErrorKind.AUTH
    assert classify_provider_message("API_KEY and quota") is ProviderErrorKind.AUTH
    assert classify_provider_message("quota hit, safety too") is ProviderErrorKind.QUOTA_EXCEEDED
    assert classify_provider_message("safety") is ProviderErrorKind.CONTENT_FILTERED
    assert classify_provider_message("Quota") is ProviderErrorKind.UNKNOWN
    assert classify_provider_message("api_key") is ProviderErrorKind.UNKNOWN
    assert classify_provider_message("") is ProviderErrorKind.UNKNOWN


class _FakeModel:
    def __init__(self, response: Any = None, error: Exception | None = None) -> None:
        self.response = response
        self.error = error
        self.calls: list[str] = []

    async def generate_content_async(self, prompt: str) -> Any:
        self.calls.append(prompt)
        if self.error is not None:
            raise self.error
        return self.response


class _BlockedText:
    prompt_feedback = None

    @property
    def text(self) -> str:
        raise ValueError("response was blocked by safety filters")


def _client_with(monkeypatch: pytest.MonkeyPatch, model: _FakeModel) -> GenerationClient:
    configured: dict[str, str] = {}
    monkeypatch.setattr(provider_mod.genai, "configure", lambda **kw: configured.update(kw))
    monkeypatch.setattr(provider_mod.genai, "GenerativeModel", lambda model_id: model)
    client = GenerationClient("k" * 24, "gemini-1.5-flash")
    assert configured == {"api_key": "k" * 24}
    return client


def test_generate_returns_text(monkeypatch: pytest.MonkeyPatch) -> None:
    model = _FakeModel(response=SimpleNamespace(text="Hello test", prompt_feedback=None))
    client = _client_with(monkeypatch, model)
    assert asyncio.run(client.generate("Tell me a joke")) == "Hello test"
    assert model.calls == ["Tell me a joke"]


def test_sdk_error_is_classified_once(monkeypatch: pytest.MonkeyPatch) -> None:
    model = _FakeModel(error=RuntimeError("429 You exceeded your current quota"))
    client = _client_with(monkeypatch, model)
    with pytest.raises(ProviderError) as info:
        asyncio.run(client.generate("Tell me a joke"))
    assert info.value.kind is ProviderErrorKind.QUOTA_EXCEEDED
    assert len(model.calls) == 1


def test_blocked_prompt_feedback_is_content_filtered(monkeypatch: pytest.MonkeyPatch) -> None:
    response = SimpleNamespace(text="", prompt_feedback=SimpleNamespace(block_reason="SAFETY"))
    client = _client_with(monkeypatch, _FakeModel(response=response))
    with pytest.raises(ProviderError) as info:
        asyncio.run(client.generate("Tell me a joke"))
    assert info.value.kind is ProviderErrorKind.CONTENT_FILTERED


def test_text_accessor_failure_is_classified(monkeypatch: pytest.MonkeyPatch) -> None:
    client = _client_with(monkeypatch, _FakeModel(response=_BlockedText()))
    with pytest.raises(ProviderError) as info:
        asyncio.run(client.generate("Tell me a joke"))
    assert info.value.kind is ProviderErrorKind.CONTENT_FILTERED
