"""Tests for the SQLite connection layer."""

from __future__ import annotations

import sqlite3

import pytest

from veritas.db.connection import Database


def test_connect_creates_file(tmp_path):
    path = tmp_path / ".veritas.db"
    conn = Database(path).connect()
    conn.close()
    assert path.exists()


def test_sqlite_vec_loaded(tmp_path):
    conn = Database(tmp_path / "x.db").connect()
    version = conn.execute("SELECT vec_version()").fetchone()[0]
    assert version
    conn.close()


def test_row_factory_is_row(tmp_path):
    conn = Database(tmp_path / "x.db").connect()
    row = conn.execute("SELECT 1 AS one").fetchone()
    assert isinstance(row, sqlite3.Row)
    assert row["one"] == 1
    conn.close()


def test_foreign_keys_and_wal_enabled(tmp_path):
    conn = Database(tmp_path / "x.db").connect()
    assert conn.execute("PRAGMA foreign_keys").fetchone()[0] == 1
    assert conn.execute("PRAGMA journal_mode").fetchone()[0] == "wal"
    conn.close()


def test_context_manager_closes_connection(tmp_path):
    db = Database(tmp_path / "x.db")
    with db as conn:
        conn.execute("SELECT 1")
    assert db._conn is None
    with pytest.raises(sqlite3.ProgrammingError):
        conn.execute("SELECT 1")


def test_timeout_stored(tmp_path):
    db = Database(tmp_path / "x.db", timeout=1.5)
    assert db.timeout == 1.5


def test_exists_reflects_file(tmp_path):
    db = Database(tmp_path / "x.db")
    assert not db.exists
    db.connect().close()
    assert db.exists
