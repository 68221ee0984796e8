"""Embedding provider interface and the LiteLLM-backed implementation."""

from __future__ import annotations

from abc import ABC, abstractmethod

import structlog

from veritas.config import EmbeddingCfg
from veritas.errors import UpstreamServiceError
from veritas.providers import llm_client

log = structlog.get_logger()


class Embedder(ABC):
    """Abstract base class for embedding generation.

    Subclasses set ``model`` and implement ``embed``. Vectors from one
    embedder are only comparable with vectors from the same ``model``.
    """

    model: str

    @abstractmethod
    def embed(self, text: str) -> list[float]:
        """Generate an embedding vector for *text*.

        Raises:
            UpstreamServiceError: If the provider fails or times out.
        """
        ...


class LiteLLMEmbedder(Embedder):
    """Embed text through ``litellm.embedding()`` with a bounded timeout.

    Args:
        config: Embedding section of the Veritas config (model, dimensions,
            timeout, num_retries).
    """

    def __init__(self, config: EmbeddingCfg | None = None) -> None:
        self._config = config or EmbeddingCfg()
        self.model = self._config.model

    def embed(self, text: str) -> list[float]:
        try:
            vector = llm_client.embed(
                self._config.model,
                text,
                timeout=self._config.timeout,
                num_retries=self._config.num_retries,
            )
        except Exception as exc:
            log.error("embedding provider failed", model=self.model, error=str(exc))
            raise UpstreamServiceError(str(exc) or type(exc).__name__) from exc

        if len(vector) != self._config.dimensions:
            raise UpstreamServiceError(
                f"Embedding model '{self.model}' returned {len(vector)} dimensions, "
                f"expected {self._config.dimensions}."
            )
        return vector
