"""veritas red-team — probe the index for keyword-stuffing leaks.

Embeds a canonical string and a spam query with the configured embedding
model and reports whether the spam query stays below the match threshold.
"""

from __future__ import annotations

from typing import Annotated

import typer
from rich.console import Console

from veritas.cli.errors import err_config, err_no_api_key, err_upstream
from veritas.config import ConfigError, load_config
from veritas.errors import UpstreamServiceError
from veritas.providers.embedder import LiteLLMEmbedder
from veritas.providers.llm_client import provider_of, validate_api_key
from veritas.search.spam_probe import (
    SAMPLE_CANONICAL_TEXT,
    SAMPLE_SPAM_QUERY,
    run_spam_probe,
    stuffed_transcript,
)

console = Console()


def redteam_cmd(
    spam_query: Annotated[
        str,
        typer.Option("--query", "-q", help="Spam query to probe with."),
    ] = SAMPLE_SPAM_QUERY,
    canonical_text: Annotated[
        str,
        typer.Option("--canonical", help="Canonical content string under test."),
    ] = SAMPLE_CANONICAL_TEXT,
    raw: Annotated[
        bool,
        typer.Option("--raw", help="Also embed a stuffed raw transcript for comparison."),
    ] = False,
) -> None:
    """Check that a stuffed spam query cannot match canonical content."""
    try:
        cfg = load_config()
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1)

    try:
        validate_api_key(cfg.embedding.model)
    except EnvironmentError:
        console.print(err_no_api_key(provider_of(cfg.embedding.model)))
        raise typer.Exit(1)

    try:
        report = run_spam_probe(
            LiteLLMEmbedder(cfg.embedding),
            canonical_text=canonical_text,
            spam_query=spam_query,
            threshold=cfg.retrieval.match_threshold,
            raw_text=stuffed_transcript(spam_query) if raw else None,
        )
    except ValueError as exc:
        console.print(f"[red]Error:[/] {exc}")
        raise typer.Exit(1)
    except UpstreamServiceError as exc:
        console.print(err_upstream(str(exc)))
        raise typer.Exit(1)

    console.print(f"Canonical: [dim]{report.canonical_text}[/]")
    console.print(f"Query:     '{report.spam_query}'")
    console.print(
        f"Similarity {report.similarity:.4f} (threshold {report.threshold:.2f})"
    )
    if report.raw_similarity is not None:
        console.print(f"Raw stuffed transcript similarity {report.raw_similarity:.4f}")

    if report.blocked:
        console.print("[bold green]✓ Blocked:[/] spam query does not match.")
        return
    console.print("[bold red]✗ Leak:[/] spam query matches the canonical embedding.")
    raise typer.Exit(1)
