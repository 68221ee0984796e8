"""Vector index over content embeddings (sqlite-vec, cosine metric).

Candidate retrieval is a KNN query against the ``vec0`` table. Each
candidate is then re-scored with an exact float64 cosine similarity, so the
threshold gate and the ranking do not depend on float32 distance rounding:

    sim(a, b) = dot(a, b) / (|a| * |b|)          eligible iff sim >= threshold
"""

from __future__ import annotations

import math
import sqlite3
from collections.abc import Callable, Sequence
from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta, timezone

import structlog

from veritas.db.models import ContentItem, ContentTag, format_timestamp
from veritas.db.repository import Repository
from veritas.errors import DataStoreError

log = structlog.get_logger()


@dataclass
class MatchResult:
    """A content item matched by a query, with its cosine similarity.

    Built per query and never persisted.
    """

    content_id: str
    title: str
    similarity: float
    category: str = ""
    takeaways: list[str] = field(default_factory=list)
    tags: list[ContentTag] = field(default_factory=list)
    published_at: str | None = None

    @classmethod
    def from_item(cls, item: ContentItem, similarity: float) -> MatchResult:
        return cls(
            content_id=item.id,
            title=item.title,
            similarity=similarity,
            category=item.category,
            takeaways=list(item.takeaways),
            tags=list(item.tags),
            published_at=item.published_at,
        )

    def to_dict(self) -> dict:
        """JSON-ready row: ``id``, ``title``, ``similarity`` plus metadata."""
        return {
            "id": self.content_id,
            "title": self.title,
            "similarity": self.similarity,
            "category": self.category,
            "takeaways": list(self.takeaways),
            "content_tags": [asdict(t) for t in self.tags],
            "published_at": self.published_at,
        }


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Return the cosine similarity of *a* and *b* in [-1, 1].

    A zero-length vector has no direction; its similarity to anything is 0.0.
    """
    if len(a) != len(b):
        raise ValueError(f"Vector dimensions differ: {len(a)} != {len(b)}")
    dot = math.fsum(x * y for x, y in zip(a, b))
    norm_sq = math.fsum(x * x for x in a) * math.fsum(y * y for y in b)
    if norm_sq == 0.0:
        return 0.0
    return max(-1.0, min(1.0, dot / math.sqrt(norm_sq)))


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class VectorIndex:
    """Similarity search over one per-model vec table.

    Without a recency window, candidates are the ``candidate_pool`` nearest
    neighbours from the vec0 KNN query. With one, every item published inside
    the window is scored, so older near neighbours cannot crowd out recent
    matches.

    Args:
        repo:           Repository over the content store.
        vec_table:      Name of the vec table (see ensure_vec_table()).
        candidate_pool: Number of nearest neighbours fetched before exact
            re-scoring and threshold filtering.
        clock:          Returns the current time; injectable for tests.
    """

    def __init__(
        self,
        repo: Repository,
        vec_table: str,
        candidate_pool: int = 100,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._repo = repo
        self._vec_table = vec_table
        self._candidate_pool = candidate_pool
        self._clock = clock

    def match(
        self,
        query_embedding: list[float],
        threshold: float,
        limit: int,
        days_filter: int | None = None,
    ) -> list[MatchResult]:
        """Return up to *limit* items with similarity >= *threshold*, best first.

        Args:
            query_embedding: Vector from the same model as the indexed items.
            threshold: Minimum cosine similarity (inclusive).
            limit: Maximum number of results.
            days_filter: Only items published within this many days of now;
                None disables the recency restriction.

        Raises:
            DataStoreError: If the index cannot be queried.
        """
        if limit < 1:
            return []

        cutoff = self._cutoff(days_filter)
        try:
            if cutoff is None:
                rowids = [
                    rowid
                    for rowid, _distance in self._repo.search_vec(
                        self._vec_table,
                        query_embedding,
                        limit=max(self._candidate_pool, limit),
                    )
                ]
            else:
                rowids = self._repo.list_rowids_published_since(format_timestamp(cutoff))
            scored = self._score(rowids, query_embedding)
        except sqlite3.Error as exc:
            log.error("vector index query failed", table=self._vec_table, error=str(exc))
            raise DataStoreError(f"Vector index query failed: {exc}") from exc

        eligible = [m for m in scored if m.similarity >= threshold]
        eligible.sort(key=lambda m: m.similarity, reverse=True)
        return eligible[:limit]

    def _cutoff(self, days_filter: int | None) -> datetime | None:
        if days_filter is None:
            return None
        try:
            return self._clock() - timedelta(days=days_filter)
        except OverflowError:
            # Earlier than datetime.min: every item is inside the window.
            return None

    def _score(self, rowids: list[int], query_embedding: list[float]) -> list[MatchResult]:
        results: list[MatchResult] = []
        for rowid in rowids:
            vector = self._repo.get_embedding(self._vec_table, rowid)
            if vector is None:
                continue
            item = self._repo.get_content_item_by_rowid(rowid)
            if item is None:
                continue
            results.append(
                MatchResult.from_item(item, cosine_similarity(query_embedding, vector))
            )
        return results
