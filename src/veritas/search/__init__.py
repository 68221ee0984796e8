"""Semantic search core: query cache, vector index, orchestrator."""

from veritas.search.cache import QueryCache
from veritas.search.index import MatchResult, VectorIndex, cosine_similarity
from veritas.search.orchestrator import SearchOrchestrator, SearchResponse
from veritas.search.query import EVERGREEN, normalize_query, parse_temporal_filter
from veritas.search.service import open_orchestrator

__all__ = [
    "EVERGREEN",
    "MatchResult",
    "QueryCache",
    "SearchOrchestrator",
    "SearchResponse",
    "VectorIndex",
    "cosine_similarity",
    "normalize_query",
    "open_orchestrator",
    "parse_temporal_filter",
]
