"""Tests for the Neo4j vector index client.

Unit tests mock the driver. Integration tests need a running Neo4j 5.x.
"""

from unittest.mock import MagicMock, patch

import pytest

from site_showcase.config import Config
from site_showcase.embeddings.vector_index import VectorIndex, VectorMatch


@pytest.fixture()
def index():
    with patch("site_showcase.embeddings.vector_index.GraphDatabase") as mock_gdb:
        idx = VectorIndex(Config())
        idx.driver = mock_gdb.driver.return_value
        yield idx


class TestQuery:
    def test_returns_matches_in_driver_order(self, index):
        index.driver.execute_query.return_value = (
            [
                {"id": "B", "score": 0.93, "metadata": {"name": "Bee"}},
                {"id": "A", "score": 0.71, "metadata": None},
            ],
            None,
            None,
        )

        matches = index.query([0.1, 0.2], top_k=20)

        assert matches == [
            VectorMatch(id="B", score=0.93, metadata={"name": "Bee"}),
            VectorMatch(id="A", score=0.71, metadata={}),
        ]
        _, kwargs = index.driver.execute_query.call_args
        assert kwargs["top_k"] == 20
        assert kwargs["index_name"] == "site_embeddings"

    def test_driver_error_propagates(self, index):
        index.driver.execute_query.side_effect = RuntimeError("unavailable")
        with pytest.raises(RuntimeError):
            index.query([0.1], top_k=5)


class TestWrites:
    def test_upsert_merges_on_site_id(self, index):
        index.upsert(42, [0.1], {"name": "x"})

        query, = index.driver.execute_query.call_args.args
        kwargs = index.driver.execute_query.call_args.kwargs
        assert "MERGE (n:SiteEmbedding {site_id: $site_id})" in query
        assert kwargs["site_id"] == "42"
        assert kwargs["metadata"] == {"name": "x"}

    def test_delete_empty_is_noop(self, index):
        assert index.delete([]) == 0
        index.driver.execute_query.assert_not_called()

    def test_delete_returns_count(self, index):
        index.driver.execute_query.return_value = ([{"removed": 2}], None, None)
        assert index.delete(["a", "b"]) == 2


class TestEnsureIndex:
    def test_creates_when_missing(self, index):
        index.driver.execute_query.return_value = ([], None, None)
        assert index.ensure_index() is True
        created = index.driver.execute_query.call_args_list[-1].args[0].text
        assert "CREATE VECTOR INDEX site_embeddings" in created

    def test_skips_when_present(self, index):
        index.driver.execute_query.return_value = ([{"name": "site_embeddings"}], None, None)
        assert index.ensure_index() is False


# ------------------------------------------------------------------ #
#  Integration tests (require Neo4j)                                  #
# ------------------------------------------------------------------ #

TEST_PREFIX = "TEST_VEC_"


def _neo4j_available(config: Config) -> bool:
    from neo4j import GraphDatabase

    try:
        driver = GraphDatabase.driver(
            config.neo4j_uri,
            auth=(config.neo4j_user, config.neo4j_password),
        )
        driver.verify_connectivity()
        driver.close()
        return True
    except Exception:
        return False


@pytest.mark.integration
def test_upsert_query_delete_roundtrip():
    config = Config()
    config.embedding_dimensions = 3
    config.vector_index_name = "test_site_embeddings"
    config.vector_label = "TestSiteEmbedding"
    if not _neo4j_available(config):
        pytest.skip("Neo4j not available")

    index = VectorIndex(config)
    try:
        index.ensure_index()
        index.upsert(f"{TEST_PREFIX}near", [1.0, 0.0, 0.0], {"name": "near"})
        index.upsert(f"{TEST_PREFIX}far", [0.0, 1.0, 0.0], {"name": "far"})

        matches = index.query([1.0, 0.1, 0.0], top_k=2)
        assert [m.id for m in matches] == [f"{TEST_PREFIX}near", f"{TEST_PREFIX}far"]
        assert matches[0].score >= matches[1].score
    finally:
        index.delete([f"{TEST_PREFIX}near", f"{TEST_PREFIX}far"])
        index.close()
