"""veritas ingest — index content items into .veritas.db.

Source dispatch by extension:
  .txt .md .srt .vtt  → raw transcript → extraction stage → index
  .json               → already-extracted summary (title, category, takeaways,
                        content_tags) → sanitized → index

Either way only the canonical string built from extracted fields is embedded.
The content id defaults to the file stem.
"""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from veritas.cli.errors import (
    err_config,
    err_datastore,
    err_no_api_key,
    err_unsupported_source,
    err_upstream,
)
from veritas.config import ConfigError, load_config
from veritas.db.connection import Database
from veritas.db.repository import Repository
from veritas.db.schema import initialize
from veritas.errors import ExtractionError, UpstreamServiceError
from veritas.ingest.indexer import ContentIndexer
from veritas.providers.embedder import LiteLLMEmbedder
from veritas.providers.extractor import ContentExtractor, sanitize_extraction
from veritas.providers.llm_client import provider_of, validate_api_key

console = Console()

_TEXT_EXTS = {".txt", ".md", ".srt", ".vtt", ".text"}
_JSON_EXTS = {".json"}


def ingest_cmd(
    sources: Annotated[
        list[Path],
        typer.Argument(help="Transcript (.txt/.md/.srt/.vtt) or summary (.json) files."),
    ],
    db: Annotated[
        Path | None,
        typer.Option("--db", help="Path to .veritas.db (default: database.path)."),
    ] = None,
    content_id: Annotated[
        str | None,
        typer.Option("--id", help="Content id (single source only; default: file stem)."),
    ] = None,
    title: Annotated[
        str | None,
        typer.Option("--title", help="Known title; overrides the extracted title."),
    ] = None,
    published_at: Annotated[
        datetime | None,
        typer.Option("--published-at", help="Publication time (default: now)."),
    ] = None,
) -> None:
    """Extract, embed and index content items."""
    if content_id and len(sources) > 1:
        console.print("[red]Error:[/] --id can only be used with a single source.")
        raise typer.Exit(1)

    try:
        cfg = load_config()
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1)
    if db is not None:
        cfg.database.path = str(db)

    models = {cfg.embedding.model}
    if any(p.suffix.lower() in _TEXT_EXTS for p in sources):
        models.add(cfg.extraction.model)
    for model in sorted(models):
        try:
            validate_api_key(model)
        except EnvironmentError:
            console.print(err_no_api_key(provider_of(model)))
            raise typer.Exit(1)

    conn = Database(cfg.database.path, timeout=cfg.database.timeout).connect()
    try:
        initialize(conn)
        indexer = ContentIndexer(
            Repository(conn),
            LiteLLMEmbedder(cfg.embedding),
            cfg.embedding.dimensions,
            extractor=ContentExtractor(cfg.extraction),
        )
    except (sqlite3.Error, ValueError) as exc:
        conn.close()
        console.print(err_datastore(str(exc)))
        raise typer.Exit(1)

    failures = 0
    try:
        for path in sources:
            if not _process_source(path, indexer, content_id, title, published_at):
                failures += 1
    finally:
        conn.close()

    if failures:
        console.print(f"\n[red]{failures} source(s) failed.[/]")
        raise typer.Exit(1)


# ------------------------------------------------------------------
# Per-source pipeline
# ------------------------------------------------------------------


def _process_source(
    path: Path,
    indexer: ContentIndexer,
    content_id: str | None,
    title: str | None,
    published_at: datetime | None,
) -> bool:
    """Index a single source. Returns False if it failed."""
    console.print(f"\n[bold]→ {path}[/]")
    suffix = path.suffix.lower()
    if not path.is_file() or suffix not in _TEXT_EXTS | _JSON_EXTS:
        console.print(err_unsupported_source(str(path)))
        return False

    try:
        if suffix in _JSON_EXTS:
            data = json.loads(path.read_text(encoding="utf-8"))
            if not isinstance(data, dict):
                raise ExtractionError("Summary file must contain a JSON object.")
            extracted = sanitize_extraction(data, title=title)
            item = indexer.index_extracted(
                content_id or str(data.get("id") or path.stem),
                extracted,
                published_at=published_at or data.get("published_at"),
            )
        else:
            raw_text = path.read_text(encoding="utf-8", errors="replace")
            item = indexer.index_raw(
                content_id or path.stem, raw_text, title=title, published_at=published_at
            )
    except ExtractionError as exc:
        console.print(f"  [red]✗ Extraction failed:[/] {exc}")
        return False
    except UpstreamServiceError as exc:
        console.print(err_upstream(str(exc)))
        return False
    except json.JSONDecodeError as exc:
        console.print(f"  [red]✗ Invalid JSON:[/] {exc}")
        return False
    except ValueError as exc:
        console.print(f"  [red]✗ Invalid value:[/] {exc}")
        return False
    except sqlite3.Error as exc:
        console.print(err_datastore(str(exc)))
        return False

    console.print(f"  [green]✓[/] {item.id}: {item.title} [dim]({item.category})[/]")
    console.print(f"  [dim]{item.canonical_text}[/]")
    return True
