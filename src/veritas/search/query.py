"""Query normalization and request parameter parsing."""

from __future__ import annotations

from veritas.errors import QueryValidationError

EVERGREEN = "evergreen"
# Longer windows reach past any stored publication date.
MAX_TEMPORAL_DAYS = 36_500


def normalize_query(raw: str) -> str:
    """Return the canonical form of a query: stripped and lowercased.

    Idempotent. Used as the query cache key.
    """
    return raw.strip().lower()


def validate_query(raw: str | None) -> str:
    """Return the normalized query or raise QueryValidationError if it is empty."""
    if raw is None or not isinstance(raw, str) or not raw.strip():
        raise QueryValidationError("Query is required")
    return normalize_query(raw)


def parse_temporal_filter(value: str | int | None) -> int | None:
    """Return the recency window in days, or None for no restriction.

    ``None``, ``""`` and ``"evergreen"`` (any case) mean no restriction.
    Anything else must be a non-negative integer number of days. Windows
    longer than MAX_TEMPORAL_DAYS are treated as no restriction.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise QueryValidationError(f"Invalid temporalFilter: {value!r}")
    if isinstance(value, int):
        days = value
    else:
        text = str(value).strip()
        if not text or text.lower() == EVERGREEN:
            return None
        try:
            days = int(text)
        except ValueError:
            raise QueryValidationError(
                f"Invalid temporalFilter: {value!r}. Use 'evergreen' or a number of days."
            ) from None
    if days < 0:
        raise QueryValidationError(f"temporalFilter must be >= 0 days, got {days}")
    if days > MAX_TEMPORAL_DAYS:
        return None
    return days
