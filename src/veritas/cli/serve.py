"""veritas serve — run the HTTP search API (Flask development server)."""

from __future__ import annotations

from typing import Annotated

import typer
from rich.console import Console

from veritas.api.app import create_app
from veritas.cli.errors import err_config
from veritas.config import ConfigError, load_config

console = Console()


def serve_cmd(
    host: Annotated[
        str | None, typer.Option("--host", help="Bind address (default: server.host).")
    ] = None,
    port: Annotated[
        int | None, typer.Option("--port", help="Port (default: server.port).")
    ] = None,
    debug: Annotated[bool, typer.Option("--debug", help="Flask debug mode.")] = False,
) -> None:
    """Serve POST /search over HTTP."""
    try:
        cfg = load_config()
    except ConfigError as exc:
        console.print(err_config(str(exc)))
        raise typer.Exit(1)

    app = create_app(cfg)
    app.run(
        host=host or cfg.server.host,
        port=port or cfg.server.port,
        debug=debug,
    )
