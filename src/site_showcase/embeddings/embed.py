"""Generate embeddings via Ollama.

Produces dense vectors (768d for nomic-embed-text) for semantic search
through the Neo4j vector index.

Two layers:
  1. Low-level helpers: embed_text(), embed_batch()
  2. OllamaEmbedder: the embedding provider handed to search and sync,
     bound to a configured Ollama host.
"""

import logging

import ollama

from site_showcase.catalog.models import CatalogEntry
from site_showcase.config import Config

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "nomic-embed-text"


# ------------------------------------------------------------------ #
#  Low-level embedding helpers                                        #
# ------------------------------------------------------------------ #


def embed_text(text: str, config: Config | None = None, client=None) -> list[float]:
    """Generate an embedding vector for a text string.

    Args:
        text: The text to embed.
        config: Optional configuration (uses defaults if not provided).
        client: Optional ollama.Client; the module-level API otherwise.

    Returns:
        Dense float vector.
    """
    model = config.embedding_model if config else DEFAULT_MODEL
    response = (client or ollama).embed(model=model, input=text)
    return list(response.embeddings[0])


def embed_batch(
    texts: list[str], config: Config | None = None, client=None
) -> list[list[float]]:
    """Generate embeddings for a batch of texts.

    Args:
        texts: List of text strings to embed.
        config: Optional configuration.
        client: Optional ollama.Client.

    Returns:
        One vector per input text, in input order.
    """
    if not texts:
        return []
    model = config.embedding_model if config else DEFAULT_MODEL
    response = (client or ollama).embed(model=model, input=texts)
    return [list(emb) for emb in response.embeddings]


def build_site_text(entry: CatalogEntry) -> str:
    """Build the text that represents a site in the vector index.

    Concatenates the text fields with category and tags, so that an
    edit to any of them changes the embedding input.
    """
    return (
        f"{entry.name}. {entry.short_description}. {entry.description}. "
        f"Category: {entry.category}. Tags: {', '.join(entry.tags)}"
    )


def build_similarity_text(entry: CatalogEntry) -> str:
    """Shorter probe text used to find sites similar to an entry."""
    return f"{entry.name} {entry.short_description} {entry.category}".strip()


# ------------------------------------------------------------------ #
#  Embedding provider                                                 #
# ------------------------------------------------------------------ #


class OllamaEmbedder:
    """Embedding provider backed by an Ollama server.

    Args:
        config: Application configuration (ollama_host, embedding_model).
    """

    def __init__(self, config: Config):
        self.config = config
        self.client = ollama.Client(host=config.ollama_host)

    def embed(self, text: str) -> list[float]:
        return embed_text(text, self.config, client=self.client)

    def embed_many(self, texts: list[str]) -> list[list[float]]:
        return embed_batch(texts, self.config, client=self.client)
