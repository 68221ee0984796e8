"""Wire a SearchOrchestrator to the SQLite store for one unit of work."""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager

from veritas.config import VeritasConfig
from veritas.db.connection import Database
from veritas.db.repository import Repository
from veritas.db.schema import initialize
from veritas.db.vectors import ensure_vec_table, model_to_slug
from veritas.errors import DataStoreError
from veritas.providers.embedder import Embedder, LiteLLMEmbedder
from veritas.search.cache import QueryCache
from veritas.search.index import VectorIndex
from veritas.search.orchestrator import SearchOrchestrator


@contextmanager
def open_orchestrator(
    cfg: VeritasConfig,
    embedder: Embedder | None = None,
    **index_kwargs,
) -> Iterator[SearchOrchestrator]:
    """Yield an orchestrator on its own connection; the connection closes on exit.

    Each request (or thread) should open its own orchestrator. Extra keyword
    arguments are passed to VectorIndex (e.g. ``clock``).

    Raises:
        DataStoreError: If the database cannot be opened or initialised.
    """
    embedder = embedder or LiteLLMEmbedder(cfg.embedding)
    try:
        conn = Database(cfg.database.path, timeout=cfg.database.timeout).connect()
    except sqlite3.Error as exc:
        raise DataStoreError(f"Cannot open database '{cfg.database.path}': {exc}") from exc

    try:
        try:
            initialize(conn)
            vec_table = ensure_vec_table(
                conn, model_to_slug(embedder.model), cfg.embedding.dimensions
            )
        except (sqlite3.Error, ValueError) as exc:
            raise DataStoreError(f"Cannot initialise database: {exc}") from exc

        repo = Repository(conn)
        yield SearchOrchestrator(
            embedder=embedder,
            cache=QueryCache(repo, embedder.model),
            index=VectorIndex(
                repo,
                vec_table,
                candidate_pool=cfg.retrieval.candidate_pool,
                **index_kwargs,
            ),
            config=cfg.retrieval,
        )
    finally:
        conn.close()
