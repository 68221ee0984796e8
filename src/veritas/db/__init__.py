"""Veritas database layer."""

from veritas.db.connection import Database
from veritas.db.migrations import MIGRATIONS, run_migrations
from veritas.db.schema import initialize
from veritas.db.vectors import (
    ensure_vec_table,
    list_vec_tables,
    model_to_slug,
    vec_table_dimensions,
    vec_table_name,
)

__all__ = [
    "Database",
    "initialize",
    "run_migrations",
    "MIGRATIONS",
    "ensure_vec_table",
    "model_to_slug",
    "vec_table_name",
    "vec_table_dimensions",
    "list_vec_tables",
]
