"""Find sites similar to a given site.

Embeds a short probe built from the site's name, tagline and category,
asks the vector index for one extra neighbour (the site itself usually
ranks first) and hydrates the rest in rank order.
"""

import logging

from site_showcase.catalog.models import ModerationStatus
from site_showcase.embeddings.embed import build_similarity_text
from site_showcase.search.errors import EmbeddingFailure, UpstreamQueryFailure
from site_showcase.search.results import SearchResultItem, order_semantic_hits

logger = logging.getLogger(__name__)


def find_similar_sites(
    site_id: str,
    limit: int = 5,
    *,
    catalog,
    embedder,
    vector_index,
) -> list[SearchResultItem]:
    """Return up to ``limit`` approved sites closest to ``site_id``.

    Args:
        site_id: The site to find neighbours for (any moderation status).
        limit: Maximum neighbours to return.
        catalog: Catalog store with get() and get_many().
        embedder: Embedding provider with embed().
        vector_index: Vector index with query().

    Returns:
        Semantic results in vector rank order, excluding the site itself.
        An unknown site_id gives an empty list.
    """
    try:
        site = catalog.get(site_id)
    except Exception as e:
        raise UpstreamQueryFailure("catalog_get") from e
    if site is None:
        logger.debug(f"Similar sites: {site_id} not found")
        return []

    try:
        vector = embedder.embed(build_similarity_text(site))
    except Exception as e:
        raise EmbeddingFailure() from e

    try:
        matches = list(vector_index.query(vector, limit + 1))
    except Exception as e:
        raise UpstreamQueryFailure("vector_query") from e

    neighbours = [m for m in matches if m.id != site_id][:limit]
    if not neighbours:
        return []

    try:
        records = catalog.get_many([m.id for m in neighbours], status=ModerationStatus.APPROVED)
    except Exception as e:
        raise UpstreamQueryFailure("hydrate") from e

    hits = order_semantic_hits(neighbours, [r for r in records if r.is_approved])
    logger.info(f"Similar sites for {site_id}: {len(hits)}")
    return [SearchResultItem.from_hit(h) for h in hits]
