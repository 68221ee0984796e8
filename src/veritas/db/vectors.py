"""Content embedding tables (sqlite-vec ``vec0``), one per embedding model.

Vectors from different models live in different vector spaces, so each
model gets its own ``vec_content_{slug}`` table. Rows are keyed by
``content_items.rowid`` and compared with the cosine distance metric.
A table's dimension is fixed at creation; a config that asks for another
dimension is rejected instead of silently mixing shapes.
"""

from __future__ import annotations

import re
import sqlite3

VEC_TABLE_PREFIX = "vec_content_"

_SLUG_RE = re.compile(r"[a-z0-9_]+")
_DIMS_RE = re.compile(r"float\[(\d+)\]")


def model_to_slug(model: str) -> str:
    """'gemini/gemini-embedding-001' -> 'gemini_gemini_embedding_001'."""
    return re.sub(r"[^a-z0-9]", "_", model.lower())


def vec_table_name(model_slug: str) -> str:
    return f"{VEC_TABLE_PREFIX}{model_slug}"


def vec_table_dimensions(conn: sqlite3.Connection, table: str) -> int | None:
    """Return the vector length declared for *table*, or None if it does not exist."""
    row = conn.execute(
        "SELECT sql FROM sqlite_master WHERE type='table' AND name=?", (table,)
    ).fetchone()
    if row is None:
        return None
    match = _DIMS_RE.search(row[0] or "")
    return int(match.group(1)) if match else None


def list_vec_tables(conn: sqlite3.Connection) -> list[str]:
    """Return all content vec0 tables, skipping the shadow tables sqlite-vec creates."""
    rows = conn.execute(
        "SELECT name FROM sqlite_master "
        "WHERE type='table' AND name LIKE ? AND sql LIKE 'CREATE VIRTUAL TABLE%' "
        "ORDER BY name",
        (f"{VEC_TABLE_PREFIX}%",),
    ).fetchall()
    return [r[0] for r in rows]


def ensure_vec_table(conn: sqlite3.Connection, model_slug: str, dimensions: int) -> str:
    """Create the vec table for *model_slug* if missing and return its name.

    Raises:
        ValueError: Unsafe slug, non-positive *dimensions*, or an existing
            table declared with a different dimension.
    """
    if not _SLUG_RE.fullmatch(model_slug):
        raise ValueError(
            f"Invalid model_slug '{model_slug}': use model_to_slug() to sanitize."
        )
    if dimensions < 1:
        raise ValueError(f"dimensions must be >= 1, got {dimensions}")

    table = vec_table_name(model_slug)
    existing = vec_table_dimensions(conn, table)
    if existing is None:
        conn.execute(
            f"CREATE VIRTUAL TABLE {table} USING "
            f"vec0(embedding float[{dimensions}] distance_metric=cosine)"
        )
        conn.commit()
    elif existing != dimensions:
        raise ValueError(
            f"{table} stores {existing}-dimensional vectors but embedding.dimensions "
            f"is {dimensions}. Restore the setting or re-index into a new database."
        )
    return table
