"""Result types for hybrid search and the merge policy.

Retrieval paths produce SemanticHit / TextHit values; merge_hits turns
them into one ordered list of SearchResultItem with provenance.
"""

from dataclasses import dataclass
from enum import Enum

from site_showcase.catalog.models import CatalogEntry


class ResultSource(str, Enum):
    SEMANTIC = "semantic"
    TEXT = "text"


@dataclass(frozen=True)
class SemanticHit:
    """A vector-index hit that hydrated to an approved entry."""

    id: str
    score: float
    record: CatalogEntry


@dataclass(frozen=True)
class TextHit:
    """A substring match from the catalog store."""

    id: str
    record: CatalogEntry


@dataclass
class SearchResultItem:
    """One merged result: the catalog entry plus where it came from."""

    entry: CatalogEntry
    source: ResultSource
    score: float | None = None

    @property
    def id(self) -> str:
        return self.entry.id

    def to_dict(self) -> dict:
        """Entry fields plus 'source', and 'score' for semantic hits only."""
        data = self.entry.to_dict()
        data["source"] = self.source.value
        if self.score is not None:
            data["score"] = self.score
        return data

    @classmethod
    def from_hit(cls, hit: SemanticHit | TextHit) -> "SearchResultItem":
        if isinstance(hit, SemanticHit):
            return cls(entry=hit.record, source=ResultSource.SEMANTIC, score=hit.score)
        return cls(entry=hit.record, source=ResultSource.TEXT)


def order_semantic_hits(
    matches: list, records: list[CatalogEntry]
) -> list[SemanticHit]:
    """Re-assemble hydrated records in vector rank order.

    Args:
        matches: Vector matches (objects with .id and .score), best first.
        records: Hydrated entries in any order; ids without a record are
            dropped.

    Returns:
        SemanticHits in the order of ``matches``.
    """
    by_id = {r.id: r for r in records}
    hits = []
    for match in matches:
        record = by_id.get(match.id)
        if record is None:
            continue
        hits.append(SemanticHit(id=match.id, score=match.score, record=record))
    return hits


def merge_hits(
    semantic: list[SemanticHit],
    text: list[TextHit],
    limit: int | None = None,
) -> list[SearchResultItem]:
    """Merge semantic and text hits into one deduplicated list.

    Semantic hits come first in the order given, then text hits whose id
    was not already seen, in the order given. The first occurrence of an
    id wins, so an entry found by both paths keeps its semantic
    provenance and score. ``limit`` truncates after merging.
    """
    seen: set[str] = set()
    merged: list[SearchResultItem] = []
    for hit in [*semantic, *text]:
        if hit.id in seen:
            continue
        seen.add(hit.id)
        merged.append(SearchResultItem.from_hit(hit))

    if limit is not None:
        merged = merged[:limit]
    return merged
