"""Veritas CLI entry point."""

from __future__ import annotations

import importlib.metadata
import logging
import sys
from typing import Annotated

import structlog
import typer

from veritas.cli.ingest import ingest_cmd
from veritas.cli.init import init_cmd
from veritas.cli.redteam import redteam_cmd
from veritas.cli.search import search_cmd
from veritas.cli.serve import serve_cmd
from veritas.cli.status import status_cmd

_DIST_NAME = "veritas-search"


def _installed_version() -> str:
    try:
        return importlib.metadata.version(_DIST_NAME)
    except importlib.metadata.PackageNotFoundError:
        return "dev"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"veritas {_installed_version()}")
        raise typer.Exit()


def _stderr_logger(*args: object) -> structlog.PrintLogger:
    # stdout carries command output only (e.g. --json).
    return structlog.PrintLogger(sys.stderr)


def get_log_level(level: str) -> int:
    """Map a level name to a logging level, falling back to WARNING."""
    level_name = logging.getLevelName(level.upper())
    if isinstance(level_name, int):
        return level_name
    return logging.WARNING


app = typer.Typer(
    name="veritas",
    help=(
        "Veritas — semantic search over extracted content summaries.\n\n"
        "  veritas ingest   Extract and index transcripts.\n"
        "  veritas search   Query the index by meaning."
    ),
    add_completion=False,
)


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
    log_level: Annotated[
        str,
        typer.Option("--log-level", envvar="VERITAS_LOG_LEVEL", help="Log level."),
    ] = "WARNING",
) -> None:
    """Veritas — semantic search over extracted content summaries."""
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(get_log_level(log_level)),
        logger_factory=_stderr_logger,
    )


app.command("init")(init_cmd)
app.command("ingest")(ingest_cmd)
app.command("search")(search_cmd)
app.command("status")(status_cmd)
app.command("red-team")(redteam_cmd)
app.command("serve")(serve_cmd)


@app.command("version")
def version_cmd() -> None:
    """Show the installed Veritas version."""
    typer.echo(f"veritas {_installed_version()}")


if __name__ == "__main__":
    app()
