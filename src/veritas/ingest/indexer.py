"""Content indexer — extraction → canonical text → embedding → vector index.

For each content item:
1. Run the extraction stage on the raw text (``Extractor.extract``).
2. Build the canonical string from the extracted fields only.
3. Embed the canonical string (``Embedder.embed``).
4. Upsert the item + tags and replace its vec row.

Raw text is never passed to the embedder. Embedding happens before any
write, so a provider failure leaves the stored item untouched.
"""

from __future__ import annotations

from datetime import datetime

import structlog

from veritas.db.models import (
    ContentItem,
    ExtractedContent,
    format_timestamp,
    parse_timestamp,
)
from veritas.db.repository import Repository
from veritas.db.vectors import ensure_vec_table, model_to_slug
from veritas.ingest.canonical import build_canonical_text, is_canonical_text
from veritas.providers.embedder import Embedder
from veritas.providers.extractor import Extractor

log = structlog.get_logger()


class ContentIndexer:
    """Index content items into the per-model vec table.

    Args:
        repo:       Open Repository instance.
        embedder:   Embedding provider; its ``model`` selects the vec table.
        dimensions: Vector length produced by *embedder*.
        extractor:  Extraction stage; required for ``index_raw``.
    """

    def __init__(
        self,
        repo: Repository,
        embedder: Embedder,
        dimensions: int,
        extractor: Extractor | None = None,
    ) -> None:
        self._repo = repo
        self._embedder = embedder
        self._extractor = extractor
        self._vec_table = ensure_vec_table(
            repo.conn, model_to_slug(embedder.model), dimensions
        )

    @property
    def vec_table(self) -> str:
        return self._vec_table

    def index_raw(
        self,
        content_id: str,
        raw_text: str,
        title: str | None = None,
        published_at: datetime | str | None = None,
    ) -> ContentItem:
        """Extract structured content from *raw_text*, then index it."""
        if self._extractor is None:
            raise RuntimeError("ContentIndexer.index_raw() requires an extractor.")
        extracted = self._extractor.extract(raw_text, title=title)
        return self.index_extracted(content_id, extracted, published_at=published_at)

    def index_extracted(
        self,
        content_id: str,
        extracted: ExtractedContent,
        published_at: datetime | str | None = None,
    ) -> ContentItem:
        """Embed the canonical form of *extracted* and persist the item."""
        canonical = build_canonical_text(extracted)
        if not is_canonical_text(canonical):
            raise ValueError(
                f"Content '{content_id}' does not produce a bounded canonical string."
            )

        if isinstance(published_at, str):
            published_at = parse_timestamp(published_at)
        if isinstance(published_at, datetime):
            published_at = format_timestamp(published_at)

        embedding = self._embedder.embed(canonical)
        item = ContentItem(
            id=content_id,
            title=extracted.title,
            category=extracted.category,
            takeaways=list(extracted.takeaways),
            tags=list(extracted.tags),
            canonical_text=canonical,
            embedding_model=self._embedder.model,
            published_at=published_at,
        )
        rowid = self._repo.upsert_content_item(item)
        self._repo.set_embedding(self._vec_table, rowid, embedding)
        log.info("indexed content item", content_id=content_id, rowid=rowid)
        return item
