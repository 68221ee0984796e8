"""Shared pytest fixtures."""

from __future__ import annotations

import re

import pytest

from veritas.db.connection import Database
from veritas.db.schema import initialize
from veritas.providers.embedder import Embedder

_TOKEN_RE = re.compile(r"[a-z0-9]+")


class StubEmbedder(Embedder):
    """Deterministic bag-of-words embedder.

    Each distinct token gets its own axis (in order of first appearance), so
    texts sharing no words are orthogonal. Counts calls for assertions.
    """

    def __init__(self, dimensions: int = 128, model: str = "stub/bag-of-words") -> None:
        self.model = model
        self.dimensions = dimensions
        self.calls: list[str] = []
        self._vocab: dict[str, int] = {}

    def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        vector = [0.0] * self.dimensions
        for token in _TOKEN_RE.findall(text.lower()):
            index = self._vocab.setdefault(token, len(self._vocab)) % self.dimensions
            vector[index] += 1.0
        return vector


@pytest.fixture
def tmp_db(tmp_path):
    """File-based DB in tmp_path with schema initialized, closed after test."""
    db = Database(tmp_path / ".veritas.db")
    conn = db.connect()
    initialize(conn)
    yield conn
    conn.close()


@pytest.fixture
def stub_embedder():
    return StubEmbedder()


@pytest.fixture
def project_dir(tmp_path, monkeypatch):
    """Run in an empty project dir with no global config and no env overrides."""
    monkeypatch.setattr("veritas.config._GLOBAL_CONFIG_PATH", tmp_path / "home" / "config.yaml")
    for var in ("VERITAS_EMBEDDING_MODEL", "VERITAS_EXTRACTION_MODEL", "VERITAS_DB"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path
