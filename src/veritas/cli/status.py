"""veritas status — database, index and cache overview."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.panel import Panel

from veritas.cli.errors import err_config
from veritas.config import ConfigError, load_config
from veritas.db.connection import Database
from veritas.db.repository import Repository
from veritas.db.schema import initialize, schema_version
from veritas.db.vectors import (
    list_vec_tables,
    model_to_slug,
    vec_table_dimensions,
    vec_table_name,
)

console = Console()


def status_cmd(
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Path to .veritas.db (default: database.path)."),
    ] = None,
) -> None:
    """Show database, vector index and query cache status."""
    try:
        cfg = load_config()
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1)
    db_path = db if db is not None else Path(cfg.database.path)

    lines = [
        f"Embedding:  [bold]{cfg.embedding.model}[/] ({cfg.embedding.dimensions} dims)",
        f"Extraction: [bold]{cfg.extraction.model}[/]",
        f"Matching:   threshold {cfg.retrieval.match_threshold}  |  "
        f"top {cfg.retrieval.match_count}",
    ]
    console.print(Panel("\n".join(lines), title="[bold]Configuration[/]", expand=False))

    if not Database(db_path).exists:
        console.print(
            Panel(
                "[yellow]No database found.[/]\n"
                "  Run:  veritas init",
                title="[bold]Index[/]",
                expand=False,
            )
        )
        return

    conn = _open_db(db_path)
    try:
        _show_index_panel(db_path, conn, cfg.embedding.model)
    finally:
        conn.close()


def _show_index_panel(db_path: Path, conn: sqlite3.Connection, model: str) -> None:
    repo = Repository(conn)
    size_mb = db_path.stat().st_size / (1024 * 1024)
    lines = [
        f"Database:      {db_path} ({size_mb:.1f} MB, schema v{schema_version(conn)})",
        f"Content items: [bold]{repo.count_content_items():,}[/]",
        f"Cached queries: [bold]{repo.count_cached_queries():,}[/]",
    ]

    active = vec_table_name(model_to_slug(model))
    tables = list_vec_tables(conn)
    for name in tables:
        marker = "[green]●[/]" if name == active else "[dim]○[/]"
        lines.append(
            f"  {marker} {name} ({repo.count_embeddings(name):,} vectors, "
            f"{vec_table_dimensions(conn, name)} dims)"
        )
    if active not in tables:
        lines.append(f"  [yellow]✗ {active} missing[/] — run: veritas ingest")

    console.print(Panel("\n".join(lines), title="[bold]Index[/]", expand=False))


# ---------------------------------------------------------------------------
# DB helpers
# ---------------------------------------------------------------------------


def _open_db(db_path: Path) -> sqlite3.Connection:
    conn = Database(db_path).connect()
    initialize(conn)
    return conn
