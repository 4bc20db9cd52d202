"""Hybrid semantic + substring search over approved catalog entries."""

from site_showcase.search.errors import (
    EmbeddingFailure,
    SearchCancelled,
    SearchError,
    SearchTimeout,
    UpstreamQueryFailure,
)
from site_showcase.search.hybrid_search import HybridSearcher
from site_showcase.search.results import (
    ResultSource,
    SearchResultItem,
    SemanticHit,
    TextHit,
    merge_hits,
)
from site_showcase.search.similar import find_similar_sites

__all__ = [
    "EmbeddingFailure",
    "HybridSearcher",
    "ResultSource",
    "SearchCancelled",
    "SearchError",
    "SearchResultItem",
    "SearchTimeout",
    "SemanticHit",
    "TextHit",
    "UpstreamQueryFailure",
    "find_similar_sites",
    "merge_hits",
]
