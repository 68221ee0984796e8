"""LiteLLM client wrapper with timeouts and API key validation.

All extraction + embedding calls route through this module. Retries default
to zero: retry policy belongs to the caller, and a timed-out call must fail
the request instead of hanging it.
"""

from __future__ import annotations

import os

import litellm

# Disable LiteLLM verbose logging unless explicitly enabled
litellm.suppress_debug_info = True
litellm.set_verbose = False  # type: ignore[assignment]


# ------------------------------------------------------------------
# Provider → env var mapping for API key validation
# ------------------------------------------------------------------

_PROVIDER_ENV: dict[str, str | None] = {
    "gemini": "GEMINI_API_KEY",
    "vertex_ai": None,  # Uses application default credentials
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "azure": "AZURE_API_KEY",
    "cohere": "COHERE_API_KEY",
    "mistral": "MISTRAL_API_KEY",
    "voyage": "VOYAGE_API_KEY",
    "ollama": None,  # Local, no key required
    "ollama_chat": None,
}


def provider_of(model: str) -> str:
    """Return the provider prefix of a 'provider/model' string ('openai' if absent)."""
    return model.split("/")[0].lower() if "/" in model else "openai"


def api_key_env(provider: str) -> str | None:
    """Return the env var holding the API key for *provider* (None if keyless)."""
    provider = provider.lower()
    return _PROVIDER_ENV.get(provider, f"{provider.upper()}_API_KEY")


def validate_api_key(model: str) -> None:
    """Check that the required API key env var is set for *model*.

    Args:
        model: LiteLLM model string in 'provider/model' format.

    Raises:
        EnvironmentError: If the required key is missing from environment.
    """
    provider = provider_of(model)
    env_var = api_key_env(provider)

    if env_var is None:
        return

    if not os.getenv(env_var):
        raise EnvironmentError(
            f"API key not found for provider '{provider}'. "
            f"Set the {env_var} environment variable."
        )


def complete(
    model: str,
    messages: list[dict],
    max_tokens: int = 1024,
    temperature: float = 0.0,
    timeout: float | None = None,
    num_retries: int = 0,
    json_mode: bool = False,
) -> str:
    """Call litellm.completion(). Returns content string.

    Args:
        model: LiteLLM model string (provider/model format).
        messages: OpenAI-style message list.
        max_tokens: Maximum output tokens.
        temperature: Sampling temperature.
        timeout: Seconds before the call is abandoned (None = provider default).
        num_retries: Number of retries on transient errors.
        json_mode: Ask the provider for a JSON object response.

    Returns:
        The text content of the first choice.

    Raises:
        litellm.exceptions.APIError: On API failure.
        litellm.exceptions.Timeout: When *timeout* elapses.
    """
    kwargs: dict = {}
    if json_mode:
        kwargs["response_format"] = {"type": "json_object"}
    response = litellm.completion(
        model=model,
        messages=messages,
        max_tokens=max_tokens,
        temperature=temperature,
        timeout=timeout,
        num_retries=num_retries,
        **kwargs,
    )
    return response.choices[0].message.content or ""


def embed(
    model: str,
    text: str,
    timeout: float | None = None,
    num_retries: int = 0,
) -> list[float]:
    """Call litellm.embedding(). Returns embedding vector.

    Args:
        model: LiteLLM embedding model string (provider/model format).
        text: Text to embed.
        timeout: Seconds before the call is abandoned (None = provider default).
        num_retries: Number of retries on transient errors.

    Returns:
        Embedding as a list of floats.
    """
    response = litellm.embedding(
        model=model,
        input=[text],
        timeout=timeout,
        num_retries=num_retries,
    )
    return list(response.data[0]["embedding"])
