"""Search failure taxonomy.

Every fatal search error is a SearchError ("Search failed") with the
upstream exception chained as __cause__. Ids that no longer resolve to
an approved site are not errors and never show up here.
"""


class SearchError(Exception):
    """A search call failed as a whole."""

    stage = "search"

    def __init__(self, message: str = "Search failed"):
        super().__init__(message)


class EmbeddingFailure(SearchError):
    """The embedding provider could not produce a query vector."""

    stage = "embed"


class UpstreamQueryFailure(SearchError):
    """The vector index or a catalog query failed."""

    def __init__(self, stage: str, message: str = "Search failed"):
        super().__init__(message)
        self.stage = stage


class SearchTimeout(SearchError):
    """The caller's deadline passed before both paths finished."""

    stage = "timeout"


class SearchCancelled(SearchError):
    """The caller's cancellation signal fired mid-search."""

    stage = "cancelled"
