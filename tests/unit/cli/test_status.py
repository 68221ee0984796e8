"""Tests for veritas status command."""

from __future__ import annotations

from typer.testing import CliRunner

from veritas.cli.main import app
from veritas.db.connection import Database
from veritas.db.repository import Repository
from veritas.db.schema import initialize
from veritas.db.vectors import ensure_vec_table

runner = CliRunner()


def test_status_without_db_suggests_init(project_dir):
    result = runner.invoke(app, ["status"])
    assert result.exit_code == 0
    assert "No database found" in result.output
    assert "veritas init" in result.output


def test_status_shows_configuration(project_dir):
    result = runner.invoke(app, ["status"])
    assert "gemini/gemini-embedding-001" in result.output
    assert "gemini/gemini-2.0-flash-lite" in result.output


def test_status_reports_counts_and_missing_vec_table(project_dir):
    with Database(project_dir / ".veritas.db") as conn:
        initialize(conn)
        Repository(conn).upsert_cached_query("cold email", [1.0], "x/y")
    result = runner.invoke(app, ["status"])
    assert result.exit_code == 0
    assert "Content items" in result.output
    assert "Cached queries" in result.output
    assert "missing" in result.output


def test_status_lists_active_vec_table(project_dir):
    with Database(project_dir / ".veritas.db") as conn:
        initialize(conn)
        ensure_vec_table(conn, "gemini_gemini_embedding_001", 4)
    result = runner.invoke(app, ["status"])
    assert result.exit_code == 0
    assert "vec_content_gemini_gemini_embedding_001" in result.output
    assert "missing" not in result.output
    assert "_chunks" not in result.output
