"""Tests for the LiteLLM client wrapper."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from veritas.providers.llm_client import (
    api_key_env,
    complete,
    embed,
    provider_of,
    validate_api_key,
)


# ------------------------------------------------------------------
# provider_of / validate_api_key
# ------------------------------------------------------------------


def test_provider_of_prefixed_model():
    assert provider_of("gemini/gemini-embedding-001") == "gemini"


def test_provider_of_bare_model_is_openai():
    assert provider_of("text-embedding-3-small") == "openai"


def test_api_key_env():
    assert api_key_env("gemini") == "GEMINI_API_KEY"
    assert api_key_env("Gemini") == "GEMINI_API_KEY"
    assert api_key_env("ollama") is None
    assert api_key_env("acme") == "ACME_API_KEY"


def test_validate_api_key_raises_if_missing(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    with pytest.raises(EnvironmentError, match="GEMINI_API_KEY"):
        validate_api_key("gemini/gemini-embedding-001")


def test_validate_api_key_passes_if_set(monkeypatch):
    monkeypatch.setenv("GEMINI_API_KEY", "test-key")
    validate_api_key("gemini/gemini-embedding-001")


def test_validate_api_key_ollama_no_key_required():
    validate_api_key("ollama/nomic-embed-text")


def test_validate_api_key_unknown_provider_uses_upper_name(monkeypatch):
    monkeypatch.delenv("ACME_API_KEY", raising=False)
    with pytest.raises(EnvironmentError, match="ACME_API_KEY"):
        validate_api_key("acme/model")


# ------------------------------------------------------------------
# complete()
# ------------------------------------------------------------------


def test_complete_returns_content():
    mock_response = MagicMock()
    mock_response.choices[0].message.content = '{"title": "x"}'
    with patch("veritas.providers.llm_client.litellm.completion", return_value=mock_response):
        result = complete("gemini/gemini-2.0-flash-lite", [{"role": "user", "content": "hi"}])
    assert result == '{"title": "x"}'


def test_complete_passes_timeout_and_retries():
    mock_response = MagicMock()
    mock_response.choices[0].message.content = "ok"
    with patch(
        "veritas.providers.llm_client.litellm.completion", return_value=mock_response
    ) as mock_completion:
        complete("gemini/x", [], timeout=12.0, num_retries=0)
    kwargs = mock_completion.call_args.kwargs
    assert kwargs["timeout"] == 12.0
    assert kwargs["num_retries"] == 0
    assert "response_format" not in kwargs


def test_complete_json_mode_sets_response_format():
    mock_response = MagicMock()
    mock_response.choices[0].message.content = "{}"
    with patch(
        "veritas.providers.llm_client.litellm.completion", return_value=mock_response
    ) as mock_completion:
        complete("gemini/x", [], json_mode=True)
    assert mock_completion.call_args.kwargs["response_format"] == {"type": "json_object"}


def test_complete_none_content_returns_empty_string():
    mock_response = MagicMock()
    mock_response.choices[0].message.content = None
    with patch("veritas.providers.llm_client.litellm.completion", return_value=mock_response):
        assert complete("gemini/x", []) == ""


# ------------------------------------------------------------------
# embed()
# ------------------------------------------------------------------


def test_embed_returns_vector():
    mock_response = MagicMock()
    mock_response.data = [{"embedding": [0.1, 0.2, 0.3]}]
    with patch(
        "veritas.providers.llm_client.litellm.embedding", return_value=mock_response
    ) as mock_embedding:
        result = embed("gemini/gemini-embedding-001", "cold email", timeout=5.0)
    assert result == [0.1, 0.2, 0.3]
    kwargs = mock_embedding.call_args.kwargs
    assert kwargs["input"] == ["cold email"]
    assert kwargs["timeout"] == 5.0


def test_embed_propagates_provider_error():
    with patch(
        "veritas.providers.llm_client.litellm.embedding",
        side_effect=RuntimeError("quota exceeded"),
    ):
        with pytest.raises(RuntimeError, match="quota"):
            embed("gemini/gemini-embedding-001", "x")
