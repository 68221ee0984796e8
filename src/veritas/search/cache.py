"""Query embedding cache backed by the ``query_cache`` table.

The cache is a performance optimization, not a correctness dependency:
read failures count as a miss, write failures are logged and swallowed.
"""

from __future__ import annotations

import structlog

from veritas.db.repository import Repository

log = structlog.get_logger()


class QueryCache:
    """Normalized query text → embedding, scoped to one embedding model.

    Entries written by a different embedding model are treated as misses and
    overwritten on the next put, so a model change never mixes vector spaces.

    Args:
        repo:  Repository over the shared store.
        model: Embedding model the cached vectors must come from.
    """

    def __init__(self, repo: Repository, model: str) -> None:
        self._repo = repo
        self._model = model

    def get(self, key: str) -> list[float] | None:
        """Return the cached vector for *key*, or None on a miss or read failure."""
        try:
            entry = self._repo.get_cached_query(key)
        except Exception as exc:
            log.warning("query cache read failed", query=key, error=str(exc))
            return None
        if entry is None:
            return None
        if entry.embedding_model != self._model:
            log.debug(
                "query cache entry from another model",
                query=key,
                cached_model=entry.embedding_model,
                model=self._model,
            )
            return None
        return entry.embedding

    def put(self, key: str, vector: list[float]) -> bool:
        """Upsert *vector* for *key*. Returns False (and logs) on failure."""
        try:
            self._repo.upsert_cached_query(key, vector, self._model)
        except Exception as exc:
            log.warning("query cache write failed", query=key, error=str(exc))
            return False
        return True
