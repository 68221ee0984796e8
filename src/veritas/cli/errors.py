"""Veritas rich error messages — actionable feedback.

Every error shown to the user must contain:
  1. What went wrong (clear cause)
  2. The exact action the user should take to fix it

Usage:
    from veritas.cli.errors import err_no_api_key, err_no_db
    console.print(err_no_api_key("gemini"))
    raise typer.Exit(1)
"""

from __future__ import annotations

from veritas.providers.llm_client import api_key_env


def err_no_api_key(provider: str) -> str:
    """No API key for *provider*.

    Example:
        No API key for 'gemini'. Set:  export GEMINI_API_KEY=...
    """
    env_var = api_key_env(provider) or f"{provider.upper()}_API_KEY"
    return (
        f"[red]Error:[/] No API key for '{provider}'.\n"
        f"  Set:  export {env_var}=..."
    )


def err_no_db(db_path: str = ".veritas.db") -> str:
    """No .veritas.db found."""
    return (
        f"[red]Error:[/] No database found at '{db_path}'.\n"
        "  Run:  veritas init"
    )


def err_invalid_query(message: str) -> str:
    """Query or temporal filter rejected before any provider call."""
    return (
        f"[red]Error:[/] {message}\n"
        "  Example:  veritas search \"cold email\" --temporal 30"
    )


def err_upstream(message: str) -> str:
    """Embedding or extraction provider failed."""
    return (
        f"[red]Error:[/] AI provider request failed: {message}\n"
        "  Check your API key and network, or raise embedding.timeout in veritas.yaml."
    )


def err_datastore(message: str) -> str:
    """Vector index or database failure."""
    return (
        f"[red]Error:[/] Database request failed: {message}\n"
        "  If the embedding model or dimensions changed, re-run:  veritas ingest"
    )


def err_config(message: str) -> str:
    """Config file rejected."""
    return f"[red]Error:[/] Invalid configuration.\n  {message}"


def err_unsupported_source(path: str) -> str:
    """File type not accepted by veritas ingest."""
    return (
        f"[red]✗ Unsupported source:[/] '{path}'\n"
        "  Use a transcript (.txt, .md, .srt, .vtt) or an extracted summary (.json)."
    )
