"""Veritas configuration loader.

Priority (high → low):
  1. CLI flags           (handled at call site — not in this module)
  2. Environment variables  (VERITAS_EMBEDDING_MODEL, VERITAS_EXTRACTION_MODEL, VERITAS_DB)
  3. Per-project veritas.yaml  (next to .veritas.db)
  4. Global ~/.veritas/config.yaml  (model defaults only — no API keys)
  5. Hardcoded defaults

Global config must never contain API keys; use environment variables instead.
All YAML reads use yaml.safe_load() — never yaml.load().
"""

from __future__ import annotations

import os
import re
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator

import yaml


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_GLOBAL_CONFIG_DIR: Path = Path.home() / ".veritas"
_GLOBAL_CONFIG_PATH: Path = _GLOBAL_CONFIG_DIR / "config.yaml"
_PROJECT_CONFIG_NAME: str = "veritas.yaml"

# Matches: api_key, apikey, api-key, api_secret, _token (suffix), standalone token,
# standalone secret, _secret (suffix), password, passwd, credential(s).
# Does NOT match legitimate config keys like max_tokens or match_count.
_API_KEY_RE: re.Pattern[str] = re.compile(
    r"api[_\-]?(?:key|secret)"
    r"|_token$"
    r"|^token$"
    r"|_secret$"
    r"|^secret$"
    r"|passw(?:ord|d)"
    r"|credential",
    re.IGNORECASE,
)

_KNOWN_SECTIONS: frozenset[str] = frozenset(
    ["embedding", "extraction", "retrieval", "database", "server"]
)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(ValueError):
    """Raised when a config file contains an invalid or forbidden value."""


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass
class EmbeddingCfg:
    """Embedding provider configuration (veritas.yaml: embedding:).

    Attributes:
        model: LiteLLM embedding model string (provider/model format).
        dimensions: Vector length produced by *model*.
        timeout: Seconds before a provider call is abandoned.
        num_retries: LiteLLM retries per call. Zero keeps retry policy with
            the caller.
    """

    model: str = "gemini/gemini-embedding-001"
    dimensions: int = 3072
    timeout: float = 30.0
    num_retries: int = 0


@dataclass
class ExtractionCfg:
    """Content extraction configuration (veritas.yaml: extraction:)."""

    model: str = "gemini/gemini-2.0-flash-lite"
    max_chars: int = 25_000
    temperature: float = 0.3
    timeout: float = 60.0


@dataclass
class RetrievalCfg:
    """Similarity search configuration (veritas.yaml: retrieval:)."""

    match_threshold: float = 0.5
    match_count: int = 5
    candidate_pool: int = 100


@dataclass
class DatabaseCfg:
    """SQLite store configuration (veritas.yaml: database:)."""

    path: str = ".veritas.db"
    timeout: float = 5.0


@dataclass
class ServerCfg:
    """HTTP server configuration (veritas.yaml: server:)."""

    host: str = "127.0.0.1"
    port: int = 5001


@dataclass
class VeritasConfig:
    """Root configuration object, built by load_config() from merged YAML layers."""

    embedding: EmbeddingCfg = field(default_factory=EmbeddingCfg)
    extraction: ExtractionCfg = field(default_factory=ExtractionCfg)
    retrieval: RetrievalCfg = field(default_factory=RetrievalCfg)
    database: DatabaseCfg = field(default_factory=DatabaseCfg)
    server: ServerCfg = field(default_factory=ServerCfg)


# ---------------------------------------------------------------------------
# Reading layers
# ---------------------------------------------------------------------------


def _iter_key_paths(data: Any, prefix: str = "") -> Iterator[tuple[str, str]]:
    """Yield (dotted path, key) for every mapping key in *data*, depth first."""
    if not isinstance(data, dict):
        return
    for key, value in data.items():
        path = f"{prefix}.{key}" if prefix else str(key)
        yield path, str(key)
        yield from _iter_key_paths(value, path)


def _reject_secrets(data: dict[str, Any], source: Path) -> None:
    """Raise ConfigError if any key in *data* looks like a credential."""
    for path, key in _iter_key_paths(data):
        if _API_KEY_RE.search(key):
            env_var = key.upper().replace("-", "_")
            raise ConfigError(
                f"'{source}' contains a forbidden key '{path}'.\n"
                f"  Credentials belong in environment variables, not config files.\n"
                f"  Remove '{path}' and run:  export {env_var}=<value>"
            )


def _read_layer(path: Path, *, allow_secrets: bool) -> dict[str, Any]:
    """Load one YAML layer. Missing file → empty layer."""
    if not path.exists():
        return {}
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"'{path}' must contain a YAML mapping, got {type(data).__name__}.")
    if not allow_secrets:
        _reject_secrets(data, path)
    for key in data.keys() - _KNOWN_SECTIONS:
        warnings.warn(
            f"Unknown config section '{key}' in '{path}' (ignored).",
            UserWarning,
            stacklevel=3,
        )
    return data


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Return a new dict that is *base* deep-merged with *override*."""
    result = dict(base)
    for k, v in override.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


# ---------------------------------------------------------------------------
# Build + validate
# ---------------------------------------------------------------------------


def _cfg_from_dict(data: dict[str, Any]) -> VeritasConfig:
    """Build a *VeritasConfig* from a merged raw YAML dict."""
    cfg = VeritasConfig()

    if "embedding" in data:
        e = data["embedding"] or {}
        cfg.embedding = EmbeddingCfg(
            model=str(e.get("model", cfg.embedding.model)),
            dimensions=int(e.get("dimensions", cfg.embedding.dimensions)),
            timeout=float(e.get("timeout", cfg.embedding.timeout)),
            num_retries=int(e.get("num_retries", cfg.embedding.num_retries)),
        )

    if "extraction" in data:
        x = data["extraction"] or {}
        cfg.extraction = ExtractionCfg(
            model=str(x.get("model", cfg.extraction.model)),
            max_chars=int(x.get("max_chars", cfg.extraction.max_chars)),
            temperature=float(x.get("temperature", cfg.extraction.temperature)),
            timeout=float(x.get("timeout", cfg.extraction.timeout)),
        )

    if "retrieval" in data:
        r = data["retrieval"] or {}
        cfg.retrieval = RetrievalCfg(
            match_threshold=float(
                r.get("match_threshold", cfg.retrieval.match_threshold)
            ),
            match_count=int(r.get("match_count", cfg.retrieval.match_count)),
            candidate_pool=int(r.get("candidate_pool", cfg.retrieval.candidate_pool)),
        )

    if "database" in data:
        d = data["database"] or {}
        cfg.database = DatabaseCfg(
            path=str(d.get("path", cfg.database.path)),
            timeout=float(d.get("timeout", cfg.database.timeout)),
        )

    if "server" in data:
        s = data["server"] or {}
        cfg.server = ServerCfg(
            host=str(s.get("host", cfg.server.host)),
            port=int(s.get("port", cfg.server.port)),
        )

    return cfg


def _apply_env_overrides(cfg: VeritasConfig) -> VeritasConfig:
    """Apply VERITAS_* environment variable overrides."""
    if model := os.environ.get("VERITAS_EMBEDDING_MODEL"):
        cfg.embedding.model = model
    if model := os.environ.get("VERITAS_EXTRACTION_MODEL"):
        cfg.extraction.model = model
    if db_path := os.environ.get("VERITAS_DB"):
        cfg.database.path = db_path
    return cfg


def _validate(cfg: VeritasConfig) -> None:
    """Raise ConfigError for values the search core cannot work with."""
    if cfg.embedding.dimensions < 1:
        raise ConfigError(
            f"embedding.dimensions must be >= 1, got {cfg.embedding.dimensions}"
        )
    if not -1.0 <= cfg.retrieval.match_threshold <= 1.0:
        raise ConfigError(
            "retrieval.match_threshold must be within [-1, 1], "
            f"got {cfg.retrieval.match_threshold}"
        )
    if cfg.retrieval.match_count < 1:
        raise ConfigError(
            f"retrieval.match_count must be >= 1, got {cfg.retrieval.match_count}"
        )
    if cfg.retrieval.candidate_pool < cfg.retrieval.match_count:
        raise ConfigError(
            "retrieval.candidate_pool must be >= retrieval.match_count "
            f"({cfg.retrieval.candidate_pool} < {cfg.retrieval.match_count})"
        )
    for name, value in (
        ("embedding.timeout", cfg.embedding.timeout),
        ("extraction.timeout", cfg.extraction.timeout),
        ("database.timeout", cfg.database.timeout),
    ):
        if value <= 0:
            raise ConfigError(f"{name} must be > 0 seconds, got {value}")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(
    project_dir: Path | None = None,
    *,
    global_config_path: Path | None = None,
) -> VeritasConfig:
    """Load and return a merged *VeritasConfig*.

    Layers: defaults → global config → ``veritas.yaml`` in *project_dir*
    (default: CWD) → ``VERITAS_*`` env vars. CLI flags are applied by the
    caller on the returned object.

    Args:
        global_config_path: Override the global config path (for testing).

    Raises:
        ConfigError: A file is not a mapping, the global file holds a
            credential-like key, or a value is out of range.
    """
    global_path = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    project_path = (project_dir or Path.cwd()) / _PROJECT_CONFIG_NAME

    merged = _deep_merge(
        _read_layer(global_path, allow_secrets=False),
        _read_layer(project_path, allow_secrets=True),
    )
    cfg = _apply_env_overrides(_cfg_from_dict(merged))
    _validate(cfg)
    return cfg


def ensure_global_config(
    global_config_path: Path | None = None,
) -> Path:
    """Create ``~/.veritas/config.yaml`` with defaults if it does not exist.

    Creates parent directory with mode 0o700 and the config file with
    mode 0o600 (owner-readable only).

    Args:
        global_config_path: Override path (for testing).

    Returns:
        Path to the global config file.
    """
    target = global_config_path if global_config_path is not None else _GLOBAL_CONFIG_PATH
    target.parent.mkdir(mode=0o700, parents=True, exist_ok=True)

    if not target.exists():
        content = (
            "# Veritas global configuration: model defaults only.\n"
            "# NEVER store API keys here. Use environment variables:\n"
            "#   export GEMINI_API_KEY=...\n"
            "\n"
            "embedding:\n"
            "  model: gemini/gemini-embedding-001\n"
            "  dimensions: 3072\n"
            "\n"
            "extraction:\n"
            "  model: gemini/gemini-2.0-flash-lite\n"
        )
        target.write_text(content, encoding="utf-8")
        target.chmod(0o600)

    return target
