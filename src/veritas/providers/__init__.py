"""AI provider capabilities: embedding generation and content extraction."""

from veritas.providers.embedder import Embedder, LiteLLMEmbedder
from veritas.providers.extractor import ContentExtractor, Extractor

__all__ = ["Embedder", "LiteLLMEmbedder", "Extractor", "ContentExtractor"]
