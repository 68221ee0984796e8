"""Search orchestrator — query text → ranked content matches.

Pipeline per request (strictly sequential):
  validate → normalize → cache lookup → (miss: embed + best-effort cache put)
  → similarity search (threshold, cap, optional recency) → return as ranked

The orchestrator holds no mutable state; the cache and the vector index are
external stores, so several orchestrators may share them.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import structlog

from veritas.config import RetrievalCfg
from veritas.errors import DataStoreError, SearchError, UpstreamServiceError
from veritas.providers.embedder import Embedder
from veritas.search.cache import QueryCache
from veritas.search.index import MatchResult, VectorIndex
from veritas.search.query import parse_temporal_filter, validate_query

log = structlog.get_logger()


@dataclass
class SearchResponse:
    """Successful search result. ``matches`` may be empty."""

    query: str
    matches: list[MatchResult] = field(default_factory=list)
    cache_hit: bool = False

    def to_dict(self) -> dict:
        return {"success": True, "matches": [m.to_dict() for m in self.matches]}


class SearchOrchestrator:
    """Resolve a query embedding and run the similarity search.

    Args:
        embedder: Embedding provider used on cache misses.
        cache:    Query embedding cache.
        index:    Vector index over content embeddings.
        config:   Threshold and result cap (defaults: 0.5 and 5).
    """

    def __init__(
        self,
        embedder: Embedder,
        cache: QueryCache,
        index: VectorIndex,
        config: RetrievalCfg | None = None,
    ) -> None:
        self._embedder = embedder
        self._cache = cache
        self._index = index
        self._config = config or RetrievalCfg()

    def search(
        self, query: str, temporal_filter: str | int | None = None
    ) -> SearchResponse:
        """Return content matching *query*, best first.

        Args:
            query: Free-text query; must be non-empty after trimming.
            temporal_filter: ``"evergreen"``/None for no recency restriction,
                otherwise a number of days.

        Raises:
            QueryValidationError: Empty query or malformed temporal filter.
                Raised before any cache, provider or index call.
            UpstreamServiceError: The embedding provider failed or timed out.
            DataStoreError: The vector index could not be queried.
        """
        normalized = validate_query(query)
        days = parse_temporal_filter(temporal_filter)

        embedding, cache_hit = self._resolve_embedding(normalized)

        try:
            matches = self._index.match(
                embedding,
                threshold=self._config.match_threshold,
                limit=self._config.match_count,
                days_filter=days,
            )
        except SearchError:
            raise
        except Exception as exc:
            raise DataStoreError(str(exc) or type(exc).__name__) from exc

        log.info(
            "search completed",
            query=normalized,
            cache_hit=cache_hit,
            days_filter=days,
            matches=len(matches),
        )
        return SearchResponse(query=normalized, matches=matches, cache_hit=cache_hit)

    def _resolve_embedding(self, normalized: str) -> tuple[list[float], bool]:
        cached = self._cache.get(normalized)
        if cached is not None:
            return cached, True

        try:
            embedding = self._embedder.embed(normalized)
        except SearchError:
            raise
        except Exception as exc:
            log.error("embedding provider failed", query=normalized, error=str(exc))
            raise UpstreamServiceError(str(exc) or type(exc).__name__) from exc

        self._cache.put(normalized, embedding)
        return embedding, False
