"""Veritas ingest pipeline — canonical text builder and content indexer."""

from veritas.ingest.canonical import build_canonical_text, is_canonical_text
from veritas.ingest.indexer import ContentIndexer

__all__ = [
    "ContentIndexer",
    "build_canonical_text",
    "is_canonical_text",
]
