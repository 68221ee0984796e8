"""Search-bomb probe: does keyword stuffing leak into the content embedding?

An attacker stuffs a transcript about cooking with thousands of "crypto
casino" repetitions. The indexer only embeds the canonical string built from
extracted fields, so the spam query must stay below the match threshold
against that embedding. Optionally the stuffed raw text is embedded too, to
show what an unsanitized index would have matched.
"""

from __future__ import annotations

from dataclasses import dataclass

from veritas.ingest.canonical import is_canonical_text
from veritas.providers.embedder import Embedder
from veritas.search.index import cosine_similarity
from veritas.search.query import normalize_query

SAMPLE_CANONICAL_TEXT = (
    "Title: Best Pasta Recipe | Category: Cooking | Key Insights: Use fresh tomatoes, "
    "salt the water, al dente is best | Topics: pasta italian_food"
)
SAMPLE_SPAM_QUERY = "crypto casino"


def stuffed_transcript(spam: str = SAMPLE_SPAM_QUERY, repeats: int = 5000) -> str:
    """Return a cooking transcript with *spam* repeated *repeats* times."""
    body = (
        "Today we make the best pasta. Use fresh tomatoes, salt the water "
        "generously and cook until al dente. "
    )
    return body + " ".join([spam] * repeats)


@dataclass
class SpamProbeReport:
    canonical_text: str
    spam_query: str
    threshold: float
    similarity: float
    raw_similarity: float | None = None

    @property
    def blocked(self) -> bool:
        """True if the spam query would not match the indexed embedding."""
        return self.similarity < self.threshold


def run_spam_probe(
    embedder: Embedder,
    canonical_text: str = SAMPLE_CANONICAL_TEXT,
    spam_query: str = SAMPLE_SPAM_QUERY,
    threshold: float = 0.5,
    raw_text: str | None = None,
) -> SpamProbeReport:
    """Embed *canonical_text* and *spam_query* and compare them.

    Raises:
        ValueError: If *canonical_text* is not a canonical embedding string.
        UpstreamServiceError: If the embedding provider fails.
    """
    if not is_canonical_text(canonical_text):
        raise ValueError("canonical_text is not a canonical embedding string.")

    content_vec = embedder.embed(canonical_text)
    query_vec = embedder.embed(normalize_query(spam_query))

    raw_similarity = None
    if raw_text is not None:
        raw_similarity = cosine_similarity(embedder.embed(raw_text), query_vec)

    return SpamProbeReport(
        canonical_text=canonical_text,
        spam_query=spam_query,
        threshold=threshold,
        similarity=cosine_similarity(content_vec, query_vec),
        raw_similarity=raw_similarity,
    )
