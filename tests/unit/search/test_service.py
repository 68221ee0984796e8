"""End-to-end search over a real store with a deterministic embedder."""

from __future__ import annotations

import threading
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from veritas.config import DatabaseCfg, EmbeddingCfg, VeritasConfig
from veritas.db.connection import Database
from veritas.db.models import ContentTag, ExtractedContent
from veritas.db.repository import Repository
from veritas.db.schema import initialize
from veritas.errors import DataStoreError
from veritas.ingest.indexer import ContentIndexer
from veritas.providers.extractor import Extractor
from veritas.search.service import open_orchestrator
from veritas.search.spam_probe import SAMPLE_SPAM_QUERY, stuffed_transcript

_NOW = datetime(2024, 6, 30, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def cfg(tmp_path, stub_embedder):
    return VeritasConfig(
        embedding=EmbeddingCfg(model=stub_embedder.model, dimensions=stub_embedder.dimensions),
        database=DatabaseCfg(path=str(tmp_path / ".veritas.db")),
    )


def _index(cfg, embedder, content_id, content, published_at):
    with Database(cfg.database.path) as conn:
        initialize(conn)
        indexer = ContentIndexer(Repository(conn), embedder, cfg.embedding.dimensions)
        indexer.index_extracted(content_id, content, published_at=published_at)


def _pasta() -> ExtractedContent:
    return ExtractedContent(
        title="Best Pasta Recipe",
        category="Cooking",
        takeaways=["Use fresh tomatoes", "salt the water", "al dente is best"],
        tags=[ContentTag("pasta", 10), ContentTag("italian_food", 8)],
    )


def _cold_email() -> ExtractedContent:
    return ExtractedContent(
        title="Cold Email Playbook",
        category="Sales",
        takeaways=["Keep a cold email under 100 words", "One clear ask per email"],
        tags=[ContentTag("cold_email", 10), ContentTag("outreach", 8)],
    )


@pytest.fixture
def populated(cfg, stub_embedder):
    _index(cfg, stub_embedder, "pasta", _pasta(), "2024-06-25 00:00:00")
    _index(cfg, stub_embedder, "cold-email", _cold_email(), "2024-01-15 00:00:00")
    stub_embedder.calls.clear()
    return cfg


def test_relevant_item_found(populated, stub_embedder):
    with open_orchestrator(populated, stub_embedder) as orchestrator:
        response = orchestrator.search("cold email")
    assert [m.content_id for m in response.matches] == ["cold-email"]


def test_spam_query_does_not_match_stuffed_transcript(cfg, stub_embedder):
    extractor = MagicMock(spec=Extractor)
    extractor.extract.return_value = _pasta()
    with Database(cfg.database.path) as conn:
        initialize(conn)
        indexer = ContentIndexer(
            Repository(conn), stub_embedder, cfg.embedding.dimensions, extractor=extractor
        )
        indexer.index_raw("pasta", stuffed_transcript(SAMPLE_SPAM_QUERY))

    with open_orchestrator(cfg, stub_embedder) as orchestrator:
        response = orchestrator.search(SAMPLE_SPAM_QUERY)
    assert response.matches == []
    assert response.to_dict() == {"success": True, "matches": []}


def test_repeated_query_served_from_cache(populated, stub_embedder):
    with open_orchestrator(populated, stub_embedder) as orchestrator:
        first = orchestrator.search("Cold Email")
        second = orchestrator.search("  cold email ")
    assert stub_embedder.calls == ["cold email"]
    assert first.cache_hit is False
    assert second.cache_hit is True
    assert [m.content_id for m in second.matches] == [m.content_id for m in first.matches]


def test_cache_survives_new_connection(populated, stub_embedder):
    with open_orchestrator(populated, stub_embedder) as orchestrator:
        orchestrator.search("cold email")
    with open_orchestrator(populated, stub_embedder) as orchestrator:
        assert orchestrator.search("cold email").cache_hit is True
    assert stub_embedder.calls == ["cold email"]


def test_thirty_day_filter_keeps_recent_content(populated, stub_embedder):
    with open_orchestrator(populated, stub_embedder, clock=lambda: _NOW) as orchestrator:
        matches = orchestrator.search("best pasta recipe italian food", "30").matches
    assert [m.content_id for m in matches] == ["pasta"]


def test_evergreen_includes_old_content(populated, stub_embedder):
    with open_orchestrator(populated, stub_embedder, clock=lambda: _NOW) as orchestrator:
        matches = orchestrator.search("cold email", "evergreen").matches
    assert [m.content_id for m in matches] == ["cold-email"]


def test_window_beyond_any_date_matches_old_content(populated, stub_embedder):
    with open_orchestrator(populated, stub_embedder, clock=lambda: _NOW) as orchestrator:
        matches = orchestrator.search("cold email", "1000000").matches
    assert [m.content_id for m in matches] == ["cold-email"]


def test_thirty_day_filter_excludes_old_content(populated, stub_embedder):
    with open_orchestrator(populated, stub_embedder, clock=lambda: _NOW) as orchestrator:
        matches = orchestrator.search("cold email", "30").matches
    assert matches == []


def test_concurrent_misses_leave_one_cache_row(populated, stub_embedder):
    barrier = threading.Barrier(2)
    errors: list[BaseException] = []

    def worker() -> None:
        try:
            with open_orchestrator(populated, stub_embedder) as orchestrator:
                barrier.wait(timeout=10)
                orchestrator.search("one clear ask")
        except BaseException as exc:  # noqa: BLE001
            errors.append(exc)

    threads = [threading.Thread(target=worker) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    with Database(populated.database.path) as conn:
        rows = conn.execute(
            "SELECT COUNT(*) FROM query_cache WHERE query_text = ?", ("one clear ask",)
        ).fetchone()[0]
    assert rows == 1


def test_unopenable_database_raises_datastore_error(tmp_path, stub_embedder):
    cfg = VeritasConfig(
        embedding=EmbeddingCfg(model=stub_embedder.model, dimensions=stub_embedder.dimensions),
        database=DatabaseCfg(path=str(tmp_path / "missing-dir" / "x.db")),
    )
    with pytest.raises(DataStoreError):
        with open_orchestrator(cfg, stub_embedder):
            pass


def test_dimension_change_raises_datastore_error(populated, stub_embedder):
    populated.embedding.dimensions = stub_embedder.dimensions * 2
    with pytest.raises(DataStoreError, match="dimensional"):
        with open_orchestrator(populated, stub_embedder):
            pass
