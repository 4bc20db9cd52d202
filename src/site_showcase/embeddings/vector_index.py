"""Neo4j vector index holding one embedding per catalog entry.

Each site is a (:SiteEmbedding {site_id}) node carrying its vector and
a little display metadata. Nearest-neighbour queries go through
db.index.vector.queryNodes, which returns nodes ordered by similarity.

All writes use MERGE so re-embedding a site replaces its vector.
"""

import logging
from dataclasses import dataclass, field

from neo4j import GraphDatabase
from neo4j import Query

from site_showcase.config import Config

logger = logging.getLogger(__name__)


@dataclass
class VectorMatch:
    """One nearest-neighbour hit, in the order the index returned it."""

    id: str
    score: float
    metadata: dict = field(default_factory=dict)


class VectorIndex:
    """Vector index client.

    Args:
        config: Application configuration with Neo4j credentials and
            index settings.
    """

    def __init__(self, config: Config):
        self.config = config
        self.index_name = config.vector_index_name
        self.label = config.vector_label
        self.driver = GraphDatabase.driver(
            config.neo4j_uri,
            auth=(config.neo4j_user, config.neo4j_password),
        )

    def close(self) -> None:
        """Close the Neo4j driver."""
        self.driver.close()

    def ensure_index(self) -> bool:
        """Create the key constraint and cosine vector index if missing.

        Returns:
            True if the vector index was created, False if it existed.
        """
        records, _, _ = self.driver.execute_query("SHOW INDEXES")
        existing = {r["name"] for r in records}

        self.driver.execute_query(
            Query(
                f"CREATE CONSTRAINT {self.label}_site_id IF NOT EXISTS "
                f"FOR (n:{self.label}) REQUIRE n.site_id IS UNIQUE"
            )
        )

        if self.index_name in existing:
            logger.debug(f"Vector index already exists: {self.index_name}")
            return False

        query = (
            f"CREATE VECTOR INDEX {self.index_name} IF NOT EXISTS "
            f"FOR (n:{self.label}) ON (n.embedding) "
            f"OPTIONS {{indexConfig: {{"
            f"`vector.dimensions`: {self.config.embedding_dimensions}, "
            f"`vector.similarity_function`: 'cosine'"
            f"}}}}"
        )
        self.driver.execute_query(Query(query))
        logger.info(f"Created vector index: {self.index_name}")
        return True

    def upsert(self, site_id: str, vector: list[float], metadata: dict | None = None) -> None:
        """Store (or replace) the vector for a site."""
        self.driver.execute_query(
            f"MERGE (n:{self.label} {{site_id: $site_id}}) "
            "SET n.embedding = $vector, n += $metadata",
            site_id=str(site_id),
            vector=vector,
            metadata=metadata or {},
        )

    def delete(self, site_ids: list[str]) -> int:
        """Remove vectors for the given sites. Returns the count removed."""
        if not site_ids:
            return 0
        records, _, _ = self.driver.execute_query(
            f"MATCH (n:{self.label}) WHERE n.site_id IN $ids "
            "DETACH DELETE n RETURN count(*) AS removed",
            ids=[str(i) for i in site_ids],
        )
        return records[0]["removed"] if records else 0

    def query(self, vector: list[float], top_k: int) -> list[VectorMatch]:
        """Return the top_k nearest sites, most similar first."""
        records, _, _ = self.driver.execute_query(
            "CALL db.index.vector.queryNodes($index_name, $top_k, $vector) "
            "YIELD node, score "
            "RETURN node.site_id AS id, score, "
            "node {.name, .url, .category} AS metadata",
            index_name=self.index_name,
            top_k=top_k,
            vector=vector,
        )
        return [
            VectorMatch(id=r["id"], score=float(r["score"]), metadata=dict(r["metadata"] or {}))
            for r in records
        ]
