"""Central configuration for the Site Showcase service."""

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field

# Load .env file from project root
load_dotenv()


class Config(BaseModel):
    """All configuration for the Site Showcase service.

    Every component receives a Config explicitly; nothing reads
    module-level settings. Credentials should be overridden via
    environment or .env file.
    """

    # Catalog (SQLite)
    catalog_db_path: Path = Field(
        default=Path(os.getenv("CATALOG_DB_PATH", "data/catalog.db"))
    )

    # Neo4j (vector index)
    neo4j_uri: str = Field(default=os.getenv("NEO4J_URI", "bolt://localhost:7687"))
    neo4j_user: str = Field(default=os.getenv("NEO4J_USER", "neo4j"))
    neo4j_password: str = Field(default=os.getenv("NEO4J_PASSWORD", "password"))
    vector_index_name: str = Field(
        default=os.getenv("VECTOR_INDEX_NAME", "site_embeddings")
    )
    vector_label: str = "SiteEmbedding"

    # Embeddings (Ollama)
    ollama_host: str = Field(default=os.getenv("OLLAMA_HOST", "http://localhost:11434"))
    embedding_model: str = Field(
        default=os.getenv("EMBEDDING_MODEL", "nomic-embed-text")
    )
    embedding_dimensions: int = 768
    embedding_workers: int = 2
    backfill_batch_size: int = 50

    # Search
    vector_top_k: int = 20
    text_top_k: int = 20
    default_limit: int | None = None
    search_timeout: float | None = 30.0
    isolate_failures: bool = False
    similar_limit: int = 5
