"""veritas search — run a semantic search from the command line.

Usage:
  veritas search "cold email"
  veritas search "cold email" --temporal 30
  veritas search "cold email" --json
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from veritas.cli.errors import (
    err_config,
    err_datastore,
    err_invalid_query,
    err_no_api_key,
    err_no_db,
    err_upstream,
)
from veritas.config import ConfigError, load_config
from veritas.db.connection import Database
from veritas.errors import DataStoreError, QueryValidationError, UpstreamServiceError
from veritas.providers.llm_client import provider_of, validate_api_key
from veritas.search.service import open_orchestrator

console = Console()


def search_cmd(
    query: Annotated[str, typer.Argument(help="Free-text search query.")],
    temporal: Annotated[
        str,
        typer.Option(
            "--temporal",
            "-t",
            help="'evergreen' (no restriction) or a number of days.",
        ),
    ] = "evergreen",
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Path to .veritas.db (default: database.path)."),
    ] = None,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print the raw JSON response."),
    ] = False,
) -> None:
    """Search indexed content by meaning."""
    try:
        cfg = load_config()
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1)

    if db is not None:
        cfg.database.path = str(db)
    if not Database(cfg.database.path).exists:
        console.print(err_no_db(cfg.database.path))
        raise typer.Exit(1)

    try:
        validate_api_key(cfg.embedding.model)
    except EnvironmentError:
        console.print(err_no_api_key(provider_of(cfg.embedding.model)))
        raise typer.Exit(1)

    try:
        with open_orchestrator(cfg) as orchestrator:
            response = orchestrator.search(query, temporal)
    except QueryValidationError as exc:
        console.print(err_invalid_query(str(exc)))
        raise typer.Exit(2)
    except UpstreamServiceError as exc:
        console.print(err_upstream(str(exc)))
        raise typer.Exit(1)
    except DataStoreError as exc:
        console.print(err_datastore(str(exc)))
        raise typer.Exit(1)

    if as_json:
        typer.echo(json.dumps(response.to_dict(), indent=2))
        return

    if not response.matches:
        console.print(f"[yellow]No matches[/] for '{response.query}'.")
        return

    table = Table(title=f"Matches for '{response.query}'")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Similarity", justify="right")
    table.add_column("Title", style="bold")
    table.add_column("Category")
    table.add_column("Published", style="dim")
    for i, match in enumerate(response.matches, start=1):
        table.add_row(
            str(i),
            f"{match.similarity:.3f}",
            match.title,
            match.category,
            (match.published_at or "")[:10],
        )
    console.print(table)
    if response.cache_hit:
        console.print("[dim]Query embedding served from cache.[/]")
