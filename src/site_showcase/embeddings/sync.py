"""Keep the vector index in step with the catalog.

Embedding maintenance is best effort: a failure to embed or index a
site is logged and reported as a False / failed count, never raised to
the write that triggered it. A stale or missing vector only means the
site is found by text search alone until the next successful upsert.

Two layers:
  1. SiteEmbedder: synchronous upsert / delete / backfill.
  2. EmbeddingScheduler: runs SiteEmbedder work on a background pool
     so catalog writes return immediately.
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor

from tqdm import tqdm

from site_showcase.catalog.models import CatalogEntry, ModerationStatus
from site_showcase.embeddings.embed import build_site_text

logger = logging.getLogger(__name__)


def _site_metadata(entry: CatalogEntry) -> dict:
    return {
        "name": entry.name,
        "url": entry.url,
        "category": entry.category or "",
        "thumbnail_url": entry.thumbnail_url or "",
    }


class SiteEmbedder:
    """Generates site embeddings and writes them to the vector index.

    Args:
        embedder: Embedding provider with embed() and embed_many().
        vector_index: VectorIndex (or compatible) with upsert()/delete().
        catalog: CatalogStore, needed only for backfill().
    """

    def __init__(self, embedder, vector_index, catalog=None):
        self.embedder = embedder
        self.vector_index = vector_index
        self.catalog = catalog

    def upsert_site(self, entry: CatalogEntry) -> bool:
        """Embed one site and store its vector. Returns success."""
        try:
            logger.debug(f"Generating embedding for site {entry.id}")
            vector = self.embedder.embed(build_site_text(entry))
            self.vector_index.upsert(entry.id, vector, _site_metadata(entry))
        except Exception as e:
            logger.error(f"Failed to upsert embedding for site {entry.id}: {e}")
            return False
        logger.info(f"Stored embedding for site {entry.id}")
        return True

    def delete_site(self, site_id: str) -> bool:
        """Remove a site's vector. Returns success."""
        try:
            self.vector_index.delete([site_id])
        except Exception as e:
            logger.error(f"Failed to delete embedding for site {site_id}: {e}")
            return False
        logger.info(f"Deleted embedding for site {site_id}")
        return True

    def backfill(
        self,
        statuses: tuple[ModerationStatus, ...] = (ModerationStatus.APPROVED,),
        batch_size: int = 50,
        show_progress: bool = True,
    ) -> dict:
        """(Re)generate embeddings for every site with the given statuses.

        Embeds in batches; a failing batch marks its sites failed and the
        run continues with the next batch.

        Returns:
            Dict with 'total', 'embedded', 'failed' counts and an
            'errors' list of {'id', 'name', 'error'}.
        """
        if self.catalog is None:
            raise ValueError("backfill requires a catalog store")

        entries: list[CatalogEntry] = []
        for status in statuses:
            entries.extend(self.catalog.list_by_status(status))

        stats = {"total": len(entries), "embedded": 0, "failed": 0, "errors": []}
        if not entries:
            logger.info("Backfill: no sites to embed")
            return stats

        logger.info(f"Backfill: {len(entries)} sites to embed")

        batches = range(0, len(entries), batch_size)
        for i in tqdm(batches, desc="Embedding sites", disable=not show_progress):
            batch = entries[i : i + batch_size]
            try:
                vectors = self.embedder.embed_many([build_site_text(e) for e in batch])
            except Exception as e:
                logger.error(f"Backfill batch {i // batch_size + 1} failed: {e}")
                for entry in batch:
                    stats["failed"] += 1
                    stats["errors"].append({"id": entry.id, "name": entry.name, "error": str(e)})
                continue

            for entry, vector in zip(batch, vectors):
                try:
                    self.vector_index.upsert(entry.id, vector, _site_metadata(entry))
                except Exception as e:
                    logger.error(f"Backfill: failed to store site {entry.id}: {e}")
                    stats["failed"] += 1
                    stats["errors"].append({"id": entry.id, "name": entry.name, "error": str(e)})
                    continue
                stats["embedded"] += 1

        logger.info(
            f"Backfill complete: {stats['embedded']} embedded, {stats['failed']} failed"
        )
        return stats


class EmbeddingScheduler:
    """Runs embedding maintenance in the background.

    Submitted work gets its own failure channel: exceptions are logged
    from a done-callback and never reach the caller that scheduled them.

    Args:
        site_embedder: The SiteEmbedder doing the work.
        max_workers: Background thread count.
    """

    def __init__(self, site_embedder: SiteEmbedder, max_workers: int = 2):
        self.site_embedder = site_embedder
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="embedding"
        )

    @staticmethod
    def _log_failure(future: Future) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.error(f"Background embedding task failed: {exc}")

    def _submit(self, fn, *args) -> Future:
        future = self._executor.submit(fn, *args)
        future.add_done_callback(self._log_failure)
        return future

    def schedule_upsert(self, entry: CatalogEntry) -> Future:
        return self._submit(self.site_embedder.upsert_site, entry)

    def schedule_delete(self, site_id: str) -> Future:
        return self._submit(self.site_embedder.delete_site, site_id)

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting work; optionally wait for queued tasks."""
        self._executor.shutdown(wait=wait)
