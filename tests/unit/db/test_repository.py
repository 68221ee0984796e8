"""Tests for the Repository pattern."""

from __future__ import annotations

import pytest

from veritas.db.models import ContentItem, ContentTag
from veritas.db.repository import Repository
from veritas.db.vectors import ensure_vec_table


@pytest.fixture
def repo(tmp_db):
    return Repository(tmp_db)


@pytest.fixture
def vec_table(tmp_db):
    return ensure_vec_table(tmp_db, "stub_model", 4)


def _item(id="vid-1", title="Best Pasta Recipe", published_at="2024-01-01 00:00:00", tags=None):
    return ContentItem(
        id=id,
        title=title,
        category="Cooking",
        canonical_text=f"Title: {title} | Category: Cooking | Key Insights:  | Topics: ",
        embedding_model="stub/model",
        takeaways=["Use fresh tomatoes", "Salt the water"],
        tags=tags if tags is not None else [ContentTag("pasta", 10, 0, 60)],
        published_at=published_at,
    )


# ------------------------------------------------------------------
# Content items
# ------------------------------------------------------------------


def test_upsert_and_get_content_item(repo):
    rowid = repo.upsert_content_item(_item())
    result = repo.get_content_item("vid-1")
    assert result is not None
    assert result.rowid == rowid
    assert result.title == "Best Pasta Recipe"
    assert result.takeaways == ["Use fresh tomatoes", "Salt the water"]
    assert result.tags == [ContentTag("pasta", 10, 0, 60)]
    assert result.published_at == "2024-01-01 00:00:00"


def test_upsert_sets_item_rowid(repo):
    item = _item()
    rowid = repo.upsert_content_item(item)
    assert item.rowid == rowid


def test_get_content_item_not_found(repo):
    assert repo.get_content_item("missing") is None


def test_list_rowids_published_since(repo):
    old = repo.upsert_content_item(_item("old", published_at="2024-01-01 00:00:00"))
    edge = repo.upsert_content_item(_item("edge", published_at="2024-05-31 12:00:00"))
    new = repo.upsert_content_item(_item("new", published_at="2024-06-20T08:00:00+00:00"))
    assert repo.list_rowids_published_since("2024-05-31 12:00:00") == [edge, new]
    assert old not in repo.list_rowids_published_since("2024-02-01 00:00:00")


def test_upsert_keeps_rowid_on_reindex(repo):
    first = repo.upsert_content_item(_item())
    second = repo.upsert_content_item(_item(title="Better Pasta Recipe"))
    assert first == second
    assert repo.get_content_item("vid-1").title == "Better Pasta Recipe"
    assert repo.count_content_items() == 1


def test_upsert_replaces_tags(repo):
    repo.upsert_content_item(_item())
    repo.upsert_content_item(_item(tags=[ContentTag("italian_food", 8)]))
    assert repo.get_content_item("vid-1").tags == [ContentTag("italian_food", 8, 0, 100)]


def test_tags_ordered_by_weight(repo):
    repo.upsert_content_item(
        _item(tags=[ContentTag("b_tag", 5), ContentTag("a_tag", 10), ContentTag("c_tag", 8)])
    )
    assert [t.tag for t in repo.get_content_item("vid-1").tags] == ["a_tag", "c_tag", "b_tag"]


def test_published_at_defaults_when_missing(repo):
    repo.upsert_content_item(_item(published_at=None))
    assert repo.get_content_item("vid-1").published_at is not None


def test_get_content_item_by_rowid(repo):
    rowid = repo.upsert_content_item(_item())
    assert repo.get_content_item_by_rowid(rowid).id == "vid-1"
    assert repo.get_content_item_by_rowid(rowid + 100) is None


def test_list_content_items_newest_first(repo):
    repo.upsert_content_item(_item(id="old", published_at="2023-01-01 00:00:00"))
    repo.upsert_content_item(_item(id="new", published_at="2024-06-01 00:00:00"))
    assert [i.id for i in repo.list_content_items()] == ["new", "old"]


# ------------------------------------------------------------------
# Vec embeddings
# ------------------------------------------------------------------


def test_set_and_get_embedding(repo, vec_table):
    rowid = repo.upsert_content_item(_item())
    repo.set_embedding(vec_table, rowid, [1.0, 0.0, 1.0, 0.0])
    assert repo.get_embedding(vec_table, rowid) == [1.0, 0.0, 1.0, 0.0]


def test_set_embedding_replaces_vector(repo, vec_table):
    rowid = repo.upsert_content_item(_item())
    repo.set_embedding(vec_table, rowid, [1.0, 0.0, 0.0, 0.0])
    repo.set_embedding(vec_table, rowid, [0.0, 1.0, 0.0, 0.0])
    assert repo.get_embedding(vec_table, rowid) == [0.0, 1.0, 0.0, 0.0]
    assert repo.count_embeddings(vec_table) == 1


def test_get_embedding_missing(repo, vec_table):
    assert repo.get_embedding(vec_table, 42) is None


def test_search_vec_orders_by_distance(repo, vec_table):
    near = repo.upsert_content_item(_item(id="near"))
    far = repo.upsert_content_item(_item(id="far"))
    repo.set_embedding(vec_table, near, [1.0, 0.1, 0.0, 0.0])
    repo.set_embedding(vec_table, far, [0.0, 0.0, 1.0, 0.0])
    results = repo.search_vec(vec_table, [1.0, 0.0, 0.0, 0.0], limit=10)
    assert [rowid for rowid, _ in results] == [near, far]
    assert results[0][1] < results[1][1]


def test_search_vec_respects_limit(repo, vec_table):
    for i in range(3):
        rowid = repo.upsert_content_item(_item(id=f"vid-{i}"))
        repo.set_embedding(vec_table, rowid, [1.0, float(i), 0.0, 0.0])
    assert len(repo.search_vec(vec_table, [1.0, 0.0, 0.0, 0.0], limit=2)) == 2


# ------------------------------------------------------------------
# Query cache
# ------------------------------------------------------------------


def test_cached_query_missing(repo):
    assert repo.get_cached_query("cold email") is None


def test_upsert_and_get_cached_query(repo):
    repo.upsert_cached_query("cold email", [0.5, 0.25], "stub/model")
    entry = repo.get_cached_query("cold email")
    assert entry.embedding == [0.5, 0.25]
    assert entry.embedding_model == "stub/model"
    assert entry.updated_at is not None


def test_upsert_cached_query_last_write_wins(repo):
    repo.upsert_cached_query("cold email", [0.5, 0.25], "stub/model")
    repo.upsert_cached_query("cold email", [1.0, 0.0], "other/model")
    entry = repo.get_cached_query("cold email")
    assert entry.embedding == [1.0, 0.0]
    assert entry.embedding_model == "other/model"
    assert repo.count_cached_queries() == 1
