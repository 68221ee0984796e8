"""Tests for veritas serve command."""

from __future__ import annotations

from unittest.mock import MagicMock

from typer.testing import CliRunner

from veritas.cli.main import app

runner = CliRunner()


def test_serve_uses_configured_host_and_port(project_dir, monkeypatch):
    flask_app = MagicMock()
    monkeypatch.setattr("veritas.cli.serve.create_app", lambda cfg: flask_app)
    result = runner.invoke(app, ["serve"])
    assert result.exit_code == 0, result.output
    flask_app.run.assert_called_once_with(host="127.0.0.1", port=5001, debug=False)


def test_serve_flags_override_config(project_dir, monkeypatch):
    flask_app = MagicMock()
    monkeypatch.setattr("veritas.cli.serve.create_app", lambda cfg: flask_app)
    runner.invoke(app, ["serve", "--host", "0.0.0.0", "--port", "8080"])
    flask_app.run.assert_called_once_with(host="0.0.0.0", port=8080, debug=False)
