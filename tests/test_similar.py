"""Tests for find_similar_sites."""

import pytest

from conftest import FakeCatalog, FakeEmbedder, FakeVectorIndex, make_entry
from site_showcase.catalog.models import ModerationStatus
from site_showcase.search.errors import EmbeddingFailure
from site_showcase.search.results import ResultSource
from site_showcase.search.similar import find_similar_sites


def _find(site_id, entries, matches, limit=5, embedder=None):
    index = FakeVectorIndex(matches)
    result = find_similar_sites(
        site_id,
        limit,
        catalog=FakeCatalog(entries),
        embedder=embedder or FakeEmbedder(),
        vector_index=index,
    )
    return result, index


class TestFindSimilarSites:
    def test_excludes_self_and_keeps_rank_order(self):
        entries = [make_entry(i) for i in ("A", "B", "C")]
        results, index = _find("A", entries, [("A", 1.0), ("C", 0.9), ("B", 0.8)])

        assert [r.id for r in results] == ["C", "B"]
        assert all(r.source == ResultSource.SEMANTIC for r in results)
        assert index.calls[0][1] == 6

    def test_respects_limit(self):
        entries = [make_entry(i) for i in ("A", "B", "C", "D")]
        results, _ = _find("A", entries, [("B", 0.9), ("C", 0.8), ("D", 0.7)], limit=2)
        assert [r.id for r in results] == ["B", "C"]

    def test_unknown_site(self):
        embedder = FakeEmbedder()
        results, index = _find("nope", [], [], embedder=embedder)
        assert results == []
        assert embedder.calls == []
        assert index.calls == []

    def test_pending_source_site_allowed(self):
        entries = [make_entry("A", status=ModerationStatus.PENDING), make_entry("B")]
        results, _ = _find("A", entries, [("A", 1.0), ("B", 0.6)])
        assert [r.id for r in results] == ["B"]

    def test_unapproved_neighbours_dropped(self):
        entries = [
            make_entry("A"),
            make_entry("R", status=ModerationStatus.REJECTED),
            make_entry("B"),
        ]
        results, _ = _find("A", entries, [("R", 0.9), ("B", 0.8)])
        assert [r.id for r in results] == ["B"]

    def test_embedding_failure_raises(self):
        with pytest.raises(EmbeddingFailure):
            _find("A", [make_entry("A")], [], embedder=FakeEmbedder(error=RuntimeError("x")))
