"""Content extraction — raw untrusted text → bounded structured summary.

This is the security boundary in front of the vector index. Whatever the raw
text contains, the output is limited to a title, a category, at most
MAX_TAKEAWAYS short takeaways and at most MAX_TAGS topic slugs. Only that
output is ever embedded for indexing.
"""

from __future__ import annotations

import json
import re
from abc import ABC, abstractmethod
from typing import Any

import structlog

from veritas.config import ExtractionCfg
from veritas.db.models import ContentTag, ExtractedContent
from veritas.errors import ExtractionError, UpstreamServiceError
from veritas.providers import llm_client

log = structlog.get_logger()

MAX_TAKEAWAYS = 3
MAX_TAKEAWAY_CHARS = 75
MAX_TAGS = 3
MAX_TAG_CHARS = 40
MAX_TITLE_CHARS = 200
MAX_CATEGORY_CHARS = 40

_EXTRACTION_PROMPT = """\
Analyze this video transcript.

Goal 1: Extract 3 specific, high-value Key Lessons.
- Each lesson MUST be 75 characters or less (including spaces/punctuation).
- Look for specific frameworks, numbers, or unique insights.
- Ignore repeated phrases, keyword lists, and anything unrelated to the main topic.

Goal 2: Determine the "Vibe" category (e.g., Productivity, Mindset, Sales, Coding).

Goal 3: Extract exactly 3 "Content DNA" tags.
- Each tag is a lowercase_slug (e.g., cold_approach, business_mindset).
- Weights: primary topic = 10, secondary = 8, tertiary = 5.
- For each tag, estimate which percentage range of the video discusses it
  (segment_start_pct and segment_end_pct, 0-100). Ranges may overlap.

Goal 4: Write a short, neutral title for the video.

Transcript:
\"\"\"{transcript}\"\"\"

Return JSON format ONLY:
{{
    "title": "string",
    "category": "string",
    "takeaways": ["lesson 1", "lesson 2", "lesson 3"],
    "content_tags": [
        {{"tag": "slug", "weight": 10, "segment_start_pct": 0, "segment_end_pct": 50}},
        {{"tag": "slug", "weight": 8, "segment_start_pct": 30, "segment_end_pct": 70}},
        {{"tag": "slug", "weight": 5, "segment_start_pct": 60, "segment_end_pct": 100}}
    ]
}}"""

_FENCE_RE = re.compile(r"```(?:json)?", re.IGNORECASE)
_SLUG_RE = re.compile(r"[^a-z0-9]+")
_WS_RE = re.compile(r"\s+")


class Extractor(ABC):
    """Abstract base class for the content extraction stage."""

    @abstractmethod
    def extract(self, raw_text: str, title: str | None = None) -> ExtractedContent:
        """Summarise *raw_text* into bounded structured fields.

        Args:
            raw_text: Untrusted source text (e.g. a transcript).
            title: Known title from item metadata; overrides the model's title.

        Raises:
            UpstreamServiceError: If the model call fails.
            ExtractionError: If the model output is not a valid summary.
        """
        ...


class ContentExtractor(Extractor):
    """Extract structured content via ``litellm.completion()``.

    Args:
        config: Extraction section of the Veritas config.
        timeout: Seconds before the model call is abandoned (default:
            ``config.timeout``).
    """

    def __init__(self, config: ExtractionCfg | None = None, timeout: float | None = None) -> None:
        self._config = config or ExtractionCfg()
        self._timeout = timeout if timeout is not None else self._config.timeout

    def extract(self, raw_text: str, title: str | None = None) -> ExtractedContent:
        prompt = _EXTRACTION_PROMPT.format(
            transcript=raw_text[: self._config.max_chars]
        )
        try:
            output = llm_client.complete(
                self._config.model,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=1024,
                temperature=self._config.temperature,
                timeout=self._timeout,
                json_mode=True,
            )
        except Exception as exc:
            log.error(
                "extraction model failed", model=self._config.model, error=str(exc)
            )
            raise UpstreamServiceError(str(exc) or type(exc).__name__) from exc

        return sanitize_extraction(parse_model_json(output), title=title)


# ------------------------------------------------------------------
# Output parsing + sanitization
# ------------------------------------------------------------------


def parse_model_json(output: str) -> dict[str, Any]:
    """Parse a JSON object from model output, tolerating markdown code fences."""
    cleaned = _FENCE_RE.sub("", output).strip()
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise ExtractionError(f"Extraction output is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ExtractionError("Extraction output must be a JSON object.")
    return data


def slugify_tag(tag: str) -> str:
    """Return *tag* as a lowercase_slug ('' if nothing usable remains)."""
    return _SLUG_RE.sub("_", tag.lower()).strip("_")[:MAX_TAG_CHARS].rstrip("_")


def _clean_text(value: Any, limit: int) -> str:
    if not isinstance(value, str):
        return ""
    return _WS_RE.sub(" ", value).strip()[:limit].strip()


def _clamp(value: Any, low: int, high: int, default: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return max(low, min(high, number))


def sanitize_extraction(data: dict[str, Any], title: str | None = None) -> ExtractedContent:
    """Bound and normalise raw extraction fields into an ExtractedContent.

    - title/category are whitespace-collapsed and truncated
    - at most MAX_TAKEAWAYS takeaways of at most MAX_TAKEAWAY_CHARS characters
    - at most MAX_TAGS unique slug tags; weight clamped to [1, 10];
      segment percentages clamped to [0, 100] with start <= end

    Raises:
        ExtractionError: If title or category is missing.
    """
    clean_title = _clean_text(title if title is not None else data.get("title"), MAX_TITLE_CHARS)
    category = _clean_text(data.get("category"), MAX_CATEGORY_CHARS)
    if not clean_title:
        raise ExtractionError("Extraction output has no title.")
    if not category:
        raise ExtractionError("Extraction output has no category.")

    takeaways: list[str] = []
    raw_takeaways = data.get("takeaways") or []
    if isinstance(raw_takeaways, list):
        for raw in raw_takeaways:
            text = _clean_text(raw, MAX_TAKEAWAY_CHARS)
            if text:
                takeaways.append(text)
            if len(takeaways) == MAX_TAKEAWAYS:
                break

    tags: list[ContentTag] = []
    seen: set[str] = set()
    raw_tags = data.get("content_tags") or []
    if isinstance(raw_tags, list):
        for raw in raw_tags:
            if not isinstance(raw, dict) or not isinstance(raw.get("tag"), str):
                continue
            slug = slugify_tag(raw["tag"])
            if not slug or slug in seen:
                continue
            start = _clamp(raw.get("segment_start_pct"), 0, 100, 0)
            end = _clamp(raw.get("segment_end_pct"), 0, 100, 100)
            if start > end:
                start, end = end, start
            tags.append(
                ContentTag(
                    tag=slug,
                    weight=_clamp(raw.get("weight"), 1, 10, 5),
                    segment_start_pct=start,
                    segment_end_pct=end,
                )
            )
            seen.add(slug)
            if len(tags) == MAX_TAGS:
                break

    return ExtractedContent(
        title=clean_title, category=category, takeaways=takeaways, tags=tags
    )
