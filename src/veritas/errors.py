"""Exception taxonomy for the search core.

Callers catch ``SearchError`` to handle every failure of a search request.
An empty match list is a successful result, not an error.
"""

from __future__ import annotations


class SearchError(Exception):
    """Base class for failures surfaced by the search core."""


class QueryValidationError(SearchError):
    """The request is malformed (e.g. empty query). No side effects were performed."""


class UpstreamServiceError(SearchError):
    """An AI provider (embedding or extraction) failed, errored, or timed out."""


class DataStoreError(SearchError):
    """The vector index or cache store could not be read or written."""


class ExtractionError(UpstreamServiceError):
    """The extraction model returned output that is not a valid content summary."""
