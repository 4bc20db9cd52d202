"""Request handlers for the search endpoints.

Framework-free: each handler takes parsed query parameters and returns
a (status_code, json_body) pair for whatever HTTP layer hosts it.
Search failures become a 500 body; handlers never raise them.
"""

import logging

from site_showcase.search.errors import SearchError
from site_showcase.search.similar import find_similar_sites

logger = logging.getLogger(__name__)


def _error_body(error: SearchError) -> dict:
    cause = error.__cause__ or error
    return {"error": "Search failed", "details": str(cause), "sites": []}


def _parse_limit(raw) -> int | None:
    """Parse an optional positive integer 'limit' parameter."""
    if raw is None or raw == "":
        return None
    limit = int(raw)
    if limit < 1:
        raise ValueError("limit must be a positive integer")
    return limit


def handle_search(params: dict, searcher) -> tuple[int, dict]:
    """GET /api/search?q=...&limit=...

    Args:
        params: Query parameters ('q', optional 'limit').
        searcher: HybridSearcher.

    Returns:
        (status, body). An absent or blank query is a 200 with no sites.
    """
    query = params.get("q") or ""
    if not query.strip():
        return 200, {"sites": [], "query": query, "count": 0}

    try:
        limit = _parse_limit(params.get("limit"))
    except ValueError:
        return 400, {"error": "Invalid limit parameter", "sites": []}

    try:
        results = searcher.search(query, limit=limit)
    except SearchError as e:
        logger.error(f"Search failed for {query!r}: {e.__cause__ or e}")
        return 500, _error_body(e)

    sites = [r.to_dict() for r in results]
    return 200, {"sites": sites, "query": query, "count": len(sites)}


def handle_similar(site_id: str, searcher, limit: int | None = None) -> tuple[int, dict]:
    """GET /api/sites/<id>/similar

    Uses the searcher's collaborators so both endpoints share one
    embedder, index and catalog.
    """
    limit = limit or searcher.config.similar_limit
    try:
        results = find_similar_sites(
            site_id,
            limit,
            catalog=searcher.catalog,
            embedder=searcher.embedder,
            vector_index=searcher.vector_index,
        )
    except SearchError as e:
        logger.error(f"Similar-sites lookup failed for {site_id}: {e.__cause__ or e}")
        return 500, _error_body(e)

    return 200, {"sites": [r.to_dict() for r in results]}
