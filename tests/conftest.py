"""Shared fixtures: in-memory stand-ins for the search collaborators."""

import threading

import pytest

from site_showcase.catalog.models import CatalogEntry, ModerationStatus
from site_showcase.config import Config
from site_showcase.embeddings.vector_index import VectorMatch


def make_entry(site_id: str, name: str | None = None, **kwargs) -> CatalogEntry:
    """Build an approved CatalogEntry with sensible defaults."""
    kwargs.setdefault("status", ModerationStatus.APPROVED)
    return CatalogEntry(
        id=site_id,
        name=name or f"Site {site_id}",
        url=kwargs.pop("url", f"https://{site_id.lower()}.example.com"),
        category=kwargs.pop("category", "saas"),
        **kwargs,
    )


class FakeEmbedder:
    """Returns a fixed vector per text; can be told to fail or block."""

    def __init__(self, vector=None, error: Exception | None = None):
        self.vector = vector or [0.1, 0.2, 0.3]
        self.error = error
        self.calls: list[str] = []
        self.gate: threading.Event | None = None

    def embed(self, text):
        self.calls.append(text)
        if self.gate is not None:
            self.gate.wait(5)
        if self.error:
            raise self.error
        return list(self.vector)

    def embed_many(self, texts):
        return [self.embed(t) for t in texts]


class FakeVectorIndex:
    """Returns preset matches in the given order."""

    def __init__(self, matches=None, error: Exception | None = None):
        self.matches = [VectorMatch(id=i, score=s) for i, s in (matches or [])]
        self.error = error
        self.calls: list[tuple] = []
        self.upserts: dict[str, list[float]] = {}
        self.deleted: list[str] = []
        self.closed = False

    def query(self, vector, top_k):
        self.calls.append((vector, top_k))
        if self.error:
            raise self.error
        return self.matches[:top_k]

    def upsert(self, site_id, vector, metadata=None):
        if self.error:
            raise self.error
        self.upserts[site_id] = vector

    def delete(self, site_ids):
        if self.error:
            raise self.error
        self.deleted.extend(site_ids)
        return len(site_ids)

    def close(self):
        self.closed = True


class FakeCatalog:
    """Catalog store over a list of entries.

    search_text does a case-insensitive substring match in list order;
    get_many returns records in reverse list order so tests notice if
    the engine relies on database row order.
    """

    def __init__(self, entries=None, text_error=None, hydrate_error=None):
        self.entries: list[CatalogEntry] = list(entries or [])
        self.text_error = text_error
        self.hydrate_error = hydrate_error
        self.text_calls: list[tuple] = []
        self.hydrate_calls: list[list[str]] = []
        self.gate: threading.Event | None = None

    def get(self, site_id):
        return next((e for e in self.entries if e.id == site_id), None)

    def search_text(self, text, status=ModerationStatus.APPROVED, limit=20):
        self.text_calls.append((text, status, limit))
        if self.gate is not None:
            self.gate.wait(5)
        if self.text_error:
            raise self.text_error
        needle = text.lower()
        found = []
        for e in self.entries:
            if e.status != status:
                continue
            haystack = [e.name, e.description, e.short_description, ",".join(e.tags)]
            if any(needle in h.lower() for h in haystack):
                found.append(e)
        return found[:limit]

    def get_many(self, site_ids, status=ModerationStatus.APPROVED):
        self.hydrate_calls.append(list(site_ids))
        if self.hydrate_error:
            raise self.hydrate_error
        wanted = set(site_ids)
        rows = [
            e for e in self.entries
            if e.id in wanted and (status is None or e.status == status)
        ]
        return list(reversed(rows))


@pytest.fixture()
def config():
    cfg = Config()
    cfg.search_timeout = 5.0
    cfg.default_limit = None
    cfg.isolate_failures = False
    return cfg
