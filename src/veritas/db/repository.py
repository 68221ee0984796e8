"""Repository pattern for all Veritas database operations.

Single interface for: content items, content tags, vec embeddings, query cache.
Vec tables are model-managed (ensure_vec_table); repository handles read + write.
"""

from __future__ import annotations

import json
import sqlite3

from veritas.db.models import CacheEntry, ContentItem, ContentTag


class Repository:
    """Data access layer for all Veritas database entities.

    Wraps an open sqlite3.Connection and provides typed methods for content
    items, their tags and embeddings, and the query embedding cache. The
    connection is owned by the caller and must be closed after use.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        """Initialise with an open database connection.

        Args:
            conn: An open sqlite3.Connection with sqlite-vec loaded and schema
                initialised (see veritas.db.schema.initialize).
        """
        self._conn = conn

    @property
    def conn(self) -> sqlite3.Connection:
        return self._conn

    # ------------------------------------------------------------------
    # Content items
    # ------------------------------------------------------------------

    def upsert_content_item(self, item: ContentItem) -> int:
        """Insert or replace a content item and its tags. Returns the item rowid.

        The rowid is stable across re-indexing of the same ``item.id``, so the
        vec table row for the item can be replaced in place.
        """
        self._conn.execute(
            """
            INSERT INTO content_items
                (id, title, category, takeaways, canonical_text, embedding_model, published_at)
            VALUES (?, ?, ?, ?, ?, ?, COALESCE(?, datetime('now')))
            ON CONFLICT(id) DO UPDATE SET
                title = excluded.title,
                category = excluded.category,
                takeaways = excluded.takeaways,
                canonical_text = excluded.canonical_text,
                embedding_model = excluded.embedding_model,
                published_at = excluded.published_at,
                indexed_at = datetime('now')
            """,
            (
                item.id,
                item.title,
                item.category,
                item.takeaways_json,
                item.canonical_text,
                item.embedding_model,
                item.published_at,
            ),
        )
        self._conn.execute("DELETE FROM content_tags WHERE content_id = ?", (item.id,))
        self._conn.executemany(
            """
            INSERT INTO content_tags
                (content_id, tag, weight, segment_start_pct, segment_end_pct)
            VALUES (?, ?, ?, ?, ?)
            """,
            [
                (item.id, t.tag, t.weight, t.segment_start_pct, t.segment_end_pct)
                for t in item.tags
            ],
        )
        self._conn.commit()
        rowid = self._conn.execute(
            "SELECT rowid FROM content_items WHERE id = ?", (item.id,)
        ).fetchone()[0]
        item.rowid = rowid
        return rowid

    def get_content_item(self, content_id: str) -> ContentItem | None:
        """Return a content item by ID, or None if not found."""
        row = self._conn.execute(
            f"{_SELECT_ITEM} WHERE id = ?", (content_id,)
        ).fetchone()
        return self._with_tags(_row_to_item(row)) if row else None

    def get_content_item_by_rowid(self, rowid: int) -> ContentItem | None:
        """Return a content item by its SQLite rowid (the vec table key)."""
        row = self._conn.execute(
            f"{_SELECT_ITEM} WHERE rowid = ?", (rowid,)
        ).fetchone()
        return self._with_tags(_row_to_item(row)) if row else None

    def list_content_items(self) -> list[ContentItem]:
        """Return all content items, newest publication first."""
        rows = self._conn.execute(
            f"{_SELECT_ITEM} ORDER BY published_at DESC"
        ).fetchall()
        return [self._with_tags(_row_to_item(r)) for r in rows]

    def list_rowids_published_since(self, cutoff: str) -> list[int]:
        """Return rowids of items published at or after *cutoff* (UTC timestamp)."""
        rows = self._conn.execute(
            "SELECT rowid FROM content_items "
            "WHERE datetime(published_at) >= datetime(?) ORDER BY rowid",
            (cutoff,),
        ).fetchall()
        return [r[0] for r in rows]

    def count_content_items(self) -> int:
        return self._conn.execute("SELECT COUNT(*) FROM content_items").fetchone()[0]

    def _with_tags(self, item: ContentItem) -> ContentItem:
        rows = self._conn.execute(
            """
            SELECT tag, weight, segment_start_pct, segment_end_pct
            FROM content_tags WHERE content_id = ?
            ORDER BY weight DESC, tag
            """,
            (item.id,),
        ).fetchall()
        item.tags = [
            ContentTag(
                tag=r["tag"],
                weight=r["weight"],
                segment_start_pct=r["segment_start_pct"],
                segment_end_pct=r["segment_end_pct"],
            )
            for r in rows
        ]
        return item

    # ------------------------------------------------------------------
    # Vec embeddings
    # ------------------------------------------------------------------

    def set_embedding(self, table: str, rowid: int, embedding: list[float]) -> None:
        """Store *embedding* for *rowid*, replacing any previous vector."""
        self._conn.execute(f"DELETE FROM {table} WHERE rowid = ?", (rowid,))
        self._conn.execute(
            f"INSERT INTO {table}(rowid, embedding) VALUES (?, ?)",
            (rowid, json.dumps(embedding)),
        )
        self._conn.commit()

    def get_embedding(self, table: str, rowid: int) -> list[float] | None:
        """Return the stored vector for *rowid*, or None if it has none."""
        row = self._conn.execute(
            f"SELECT vec_to_json(embedding) AS embedding FROM {table} WHERE rowid = ?",
            (rowid,),
        ).fetchone()
        return json.loads(row["embedding"]) if row else None

    def search_vec(
        self, table: str, embedding: list[float], limit: int = 100
    ) -> list[tuple[int, float]]:
        """Nearest-neighbour search. Returns (rowid, cosine distance) sorted by distance."""
        rows = self._conn.execute(
            f"SELECT rowid, distance FROM {table} WHERE embedding MATCH ? ORDER BY distance LIMIT ?",
            (json.dumps(embedding), limit),
        ).fetchall()
        return [(r["rowid"], r["distance"]) for r in rows]

    def count_embeddings(self, table: str) -> int:
        return self._conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]

    # ------------------------------------------------------------------
    # Query cache
    # ------------------------------------------------------------------

    def get_cached_query(self, query_text: str) -> CacheEntry | None:
        """Return the cache row for *query_text*, or None if missing."""
        row = self._conn.execute(
            """
            SELECT query_text, embedding, embedding_model, updated_at
            FROM query_cache WHERE query_text = ?
            """,
            (query_text,),
        ).fetchone()
        if row is None:
            return None
        return CacheEntry(
            query_text=row["query_text"],
            embedding=json.loads(row["embedding"]),
            embedding_model=row["embedding_model"],
            updated_at=row["updated_at"],
        )

    def upsert_cached_query(
        self, query_text: str, embedding: list[float], embedding_model: str
    ) -> None:
        """Upsert the embedding for *query_text*; conflict target is query_text.

        Last write wins. Concurrent writers for the same key never raise a
        uniqueness error.
        """
        self._conn.execute(
            """
            INSERT INTO query_cache (query_text, embedding, embedding_model)
            VALUES (?, ?, ?)
            ON CONFLICT(query_text) DO UPDATE SET
                embedding = excluded.embedding,
                embedding_model = excluded.embedding_model,
                updated_at = datetime('now')
            """,
            (query_text, json.dumps(embedding), embedding_model),
        )
        self._conn.commit()

    def count_cached_queries(self) -> int:
        return self._conn.execute("SELECT COUNT(*) FROM query_cache").fetchone()[0]


# ------------------------------------------------------------------
# Row → model helpers
# ------------------------------------------------------------------

_SELECT_ITEM = """
SELECT rowid, id, title, category, takeaways, canonical_text, embedding_model,
       published_at, indexed_at
FROM content_items
"""


def _row_to_item(row: sqlite3.Row) -> ContentItem:
    return ContentItem(
        rowid=row["rowid"],
        id=row["id"],
        title=row["title"],
        category=row["category"],
        takeaways=json.loads(row["takeaways"]),
        canonical_text=row["canonical_text"],
        embedding_model=row["embedding_model"],
        published_at=row["published_at"],
        indexed_at=row["indexed_at"],
    )
