"""Forward-only migration runner for the Veritas database schema.

Vec tables (vec_content_*) are NOT migration-managed — use ensure_vec_table().
"""

from __future__ import annotations

import sqlite3

# schema_version is the bootstrap table, created before migrations run.
_CREATE_SCHEMA_VERSION = """
CREATE TABLE IF NOT EXISTS schema_version (
    version     INTEGER NOT NULL,
    applied_at  DATETIME NOT NULL DEFAULT (datetime('now'))
)
"""

_V1_SQL = """
CREATE TABLE IF NOT EXISTS content_items (
    id              TEXT PRIMARY KEY,
    title           TEXT NOT NULL,
    category        TEXT NOT NULL,
    takeaways       TEXT NOT NULL DEFAULT '[]',
    canonical_text  TEXT NOT NULL,
    embedding_model TEXT NOT NULL,
    published_at    DATETIME NOT NULL DEFAULT (datetime('now')),
    indexed_at      DATETIME NOT NULL DEFAULT (datetime('now'))
);

CREATE INDEX IF NOT EXISTS idx_content_items_published_at
    ON content_items (published_at);

CREATE TABLE IF NOT EXISTS content_tags (
    content_id          TEXT NOT NULL REFERENCES content_items(id) ON DELETE CASCADE,
    tag                 TEXT NOT NULL,
    weight              INTEGER NOT NULL CHECK (weight BETWEEN 1 AND 10),
    segment_start_pct   INTEGER NOT NULL CHECK (segment_start_pct BETWEEN 0 AND 100),
    segment_end_pct     INTEGER NOT NULL CHECK (segment_end_pct BETWEEN 0 AND 100),
    PRIMARY KEY (content_id, tag)
);

CREATE TABLE IF NOT EXISTS query_cache (
    query_text      TEXT PRIMARY KEY,
    embedding       TEXT NOT NULL,
    embedding_model TEXT NOT NULL,
    updated_at      DATETIME NOT NULL DEFAULT (datetime('now'))
);
"""

# Append-only. Each entry: (version: int, sql: str).
# executescript() issues an implicit COMMIT before running.
MIGRATIONS: list[tuple[int, str]] = [
    (1, _V1_SQL),
]


def run_migrations(conn: sqlite3.Connection) -> None:
    """Apply all pending migrations in ascending version order.

    Idempotent: safe to call on a database at any version.
    Vec tables are NOT managed here — use ensure_vec_table() instead.
    """
    conn.execute(_CREATE_SCHEMA_VERSION)
    conn.commit()

    row = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
    current = row[0] if row[0] is not None else 0

    for version, sql in MIGRATIONS:
        if version > current:
            conn.executescript(sql)
            conn.execute(
                "INSERT INTO schema_version (version) VALUES (?)", (version,)
            )
            conn.commit()
