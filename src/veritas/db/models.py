"""Domain models for the Veritas database layer."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone


@dataclass
class ContentTag:
    """A weighted topic slug with the share of runtime that discusses it.

    Segment ranges of different tags may overlap; weights may tie.
    """

    tag: str
    weight: int
    segment_start_pct: int = 0
    segment_end_pct: int = 100


@dataclass
class ExtractedContent:
    """Bounded structured summary produced by the extraction stage."""

    title: str
    category: str
    takeaways: list[str] = field(default_factory=list)
    tags: list[ContentTag] = field(default_factory=list)

    @property
    def tag_slugs(self) -> list[str]:
        return [t.tag for t in self.tags]


@dataclass
class ContentItem:
    id: str
    title: str
    category: str
    canonical_text: str
    embedding_model: str
    takeaways: list[str] = field(default_factory=list)
    tags: list[ContentTag] = field(default_factory=list)
    published_at: str | None = None  # "YYYY-MM-DD HH:MM:SS" UTC; None = now
    indexed_at: str | None = None
    rowid: int | None = None  # set after upsert; vec table key

    @property
    def takeaways_json(self) -> str:
        return json.dumps(self.takeaways)


@dataclass
class CacheEntry:
    query_text: str
    embedding: list[float]
    embedding_model: str
    updated_at: str | None = None


# ------------------------------------------------------------------
# Timestamp helpers (SQLite datetime('now') format, UTC)
# ------------------------------------------------------------------

_TS_FORMAT = "%Y-%m-%d %H:%M:%S"


def format_timestamp(value: datetime) -> str:
    """Return *value* as a UTC 'YYYY-MM-DD HH:MM:SS' string (naive = UTC)."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.strftime(_TS_FORMAT)


def parse_timestamp(value: str) -> datetime:
    """Parse a stored timestamp into an aware UTC datetime.

    Accepts the SQLite format and ISO 8601 (``T`` separator, optional offset).
    """
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)
