"""Canonical text for content embeddings.

The only string ever embedded for a content item:

    Title: {title} | Category: {category} | Key Insights: {t1, t2, t3} | Topics: {slug1 slug2}

It is assembled exclusively from extracted fields, so raw source text (and
anything stuffed into it) never reaches the vector index directly.
"""

from __future__ import annotations

import re

from veritas.db.models import ExtractedContent
from veritas.providers.extractor import (
    MAX_CATEGORY_CHARS,
    MAX_TAG_CHARS,
    MAX_TAGS,
    MAX_TAKEAWAY_CHARS,
    MAX_TAKEAWAYS,
    MAX_TITLE_CHARS,
)

_SEPARATOR = " | "

# Upper bound: labels + separators + every field at its maximum length.
MAX_CANONICAL_CHARS = (
    len("Title: Category: Key Insights: Topics: ")
    + 3 * len(_SEPARATOR)
    + MAX_TITLE_CHARS
    + MAX_CATEGORY_CHARS
    + MAX_TAKEAWAYS * (MAX_TAKEAWAY_CHARS + 2)
    + MAX_TAGS * (MAX_TAG_CHARS + 1)
)

_CANONICAL_RE = re.compile(
    r"Title: (?P<title>[^|]+?) \| "
    r"Category: (?P<category>[^|]+?) \| "
    r"Key Insights: (?P<insights>[^|]*?) \| "
    r"Topics: (?P<topics>[a-z0-9_ ]*)"
)


def _field(value: str) -> str:
    # '|' is the field separator; keep it out of field values.
    return value.replace("|", "/").strip()


def build_canonical_text(content: ExtractedContent) -> str:
    """Return the canonical embedding string for *content*."""
    insights = ", ".join(_field(t) for t in content.takeaways[:MAX_TAKEAWAYS])
    topics = " ".join(content.tag_slugs[:MAX_TAGS])
    return _SEPARATOR.join(
        [
            f"Title: {_field(content.title)}",
            f"Category: {_field(content.category)}",
            f"Key Insights: {insights}",
            f"Topics: {topics}",
        ]
    )


def is_canonical_text(text: str) -> bool:
    """Return True if *text* has the canonical shape and bounded length.

    A False result means the string did not come from build_canonical_text()
    and must not be embedded for indexing.
    """
    if len(text) > MAX_CANONICAL_CHARS:
        return False
    match = _CANONICAL_RE.fullmatch(text)
    if match is None:
        return False
    return len(match.group("topics").split()) <= MAX_TAGS
