"""veritas init — create the database and project config.

Creates:
  .veritas.db              — empty index with schema and the vec table for
                             the configured embedding model
  veritas.yaml             — project config (skipped if present)
  ~/.veritas/config.yaml   — global model config (created once, mode 0o600)
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from veritas.cli.errors import err_config, err_datastore
from veritas.config import ConfigError, ensure_global_config, load_config
from veritas.db.connection import Database
from veritas.db.schema import initialize
from veritas.db.vectors import ensure_vec_table, model_to_slug

console = Console()

_PROJECT_YAML = """\
# Veritas project configuration.
# API keys belong in environment variables, never in this file.

embedding:
  model: {embedding_model}
  dimensions: {dimensions}
  timeout: 30

extraction:
  model: {extraction_model}

retrieval:
  match_threshold: 0.5
  match_count: 5

database:
  path: .veritas.db
"""


def init_cmd(
    project_dir: Annotated[
        Path,
        typer.Argument(help="Directory to initialize. Defaults to current directory."),
    ] = Path("."),
    global_config: Annotated[
        bool,
        typer.Option("--global-config/--no-global-config", help="Create ~/.veritas/config.yaml."),
    ] = True,
) -> None:
    """Initialize a Veritas search index in PROJECT_DIR."""
    project_dir = project_dir.resolve()
    project_dir.mkdir(parents=True, exist_ok=True)

    try:
        cfg = load_config(project_dir)
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1)

    yaml_path = project_dir / "veritas.yaml"
    if yaml_path.exists():
        console.print(f"  [dim]–[/] {yaml_path.name} exists, kept")
    else:
        yaml_path.write_text(
            _PROJECT_YAML.format(
                embedding_model=cfg.embedding.model,
                dimensions=cfg.embedding.dimensions,
                extraction_model=cfg.extraction.model,
            ),
            encoding="utf-8",
        )
        console.print(f"  [green]✓[/] {yaml_path.name}")

    db_path = Path(cfg.database.path)
    if not db_path.is_absolute():
        db_path = project_dir / db_path
    try:
        with Database(db_path) as conn:
            initialize(conn)
            table = ensure_vec_table(
                conn, model_to_slug(cfg.embedding.model), cfg.embedding.dimensions
            )
    except ValueError as exc:
        console.print(err_datastore(str(exc)))
        raise typer.Exit(1)
    console.print(f"  [green]✓[/] {db_path.name} ({table})")

    if global_config:
        cfg_path = ensure_global_config()
        console.print(f"  [green]✓[/] {cfg_path} (global config)")

    console.print("\n[bold green]✓ Veritas initialized.[/]")
    console.print("\nNext steps:")
    console.print("  1. export GEMINI_API_KEY=...")
    console.print("  2. veritas ingest transcript.txt   (extract + index content)")
    console.print('  3. veritas search "your query"     (semantic search)')
