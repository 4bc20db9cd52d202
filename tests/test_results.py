"""Tests for the merge policy and result shaping."""

from conftest import make_entry
from site_showcase.embeddings.vector_index import VectorMatch
from site_showcase.search.results import (
    ResultSource,
    SearchResultItem,
    SemanticHit,
    TextHit,
    merge_hits,
    order_semantic_hits,
)


def _sem(site_id, score):
    return SemanticHit(id=site_id, score=score, record=make_entry(site_id))


def _txt(site_id):
    return TextHit(id=site_id, record=make_entry(site_id))


class TestOrderSemanticHits:
    def test_follows_match_order_not_record_order(self):
        matches = [VectorMatch("A", 0.9), VectorMatch("B", 0.8), VectorMatch("C", 0.7)]
        records = [make_entry("C"), make_entry("A"), make_entry("B")]

        hits = order_semantic_hits(matches, records)
        assert [(h.id, h.score) for h in hits] == [("A", 0.9), ("B", 0.8), ("C", 0.7)]

    def test_unresolved_ids_dropped(self):
        matches = [VectorMatch("A", 0.9), VectorMatch("X", 0.8)]
        hits = order_semantic_hits(matches, [make_entry("A")])
        assert [h.id for h in hits] == ["A"]


class TestMergeHits:
    def test_semantic_then_text(self):
        merged = merge_hits([_sem("A", 0.9)], [_txt("B"), _txt("C")])
        assert [(r.id, r.source) for r in merged] == [
            ("A", ResultSource.SEMANTIC),
            ("B", ResultSource.TEXT),
            ("C", ResultSource.TEXT),
        ]

    def test_overlap_keeps_semantic(self):
        merged = merge_hits([_sem("A", 0.5)], [_txt("A"), _txt("B")])
        assert [r.id for r in merged] == ["A", "B"]
        assert merged[0].score == 0.5

    def test_limit_truncates_after_merge(self):
        merged = merge_hits([_sem("A", 0.9)], [_txt("B"), _txt("C")], limit=2)
        assert [r.id for r in merged] == ["A", "B"]

    def test_empty_inputs(self):
        assert merge_hits([], []) == []


class TestSearchResultItem:
    def test_semantic_dict_has_score(self):
        item = SearchResultItem.from_hit(_sem("A", 0.75))
        data = item.to_dict()
        assert data["source"] == "semantic"
        assert data["score"] == 0.75
        assert data["id"] == "A"
        assert data["status"] == "approved"

    def test_text_dict_omits_score(self):
        data = SearchResultItem.from_hit(_txt("B")).to_dict()
        assert data["source"] == "text"
        assert "score" not in data

    def test_zero_score_kept(self):
        data = SearchResultItem.from_hit(_sem("A", 0.0)).to_dict()
        assert data["score"] == 0.0
