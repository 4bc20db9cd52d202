"""Combined vector similarity + substring search.

Fires both retrieval paths at once and merges the results:

  semantic path:  embed query -> vector top-K -> hydrate approved sites
  text path:      approved sites whose text fields contain the query

Semantic hits keep the vector index's rank order; text-only hits are
appended after them in catalog order. No site appears twice.
"""

import logging
import threading
import time
from concurrent.futures import (
    ALL_COMPLETED,
    FIRST_EXCEPTION,
    Future,
    ThreadPoolExecutor,
    wait,
)

from site_showcase.catalog.models import ModerationStatus
from site_showcase.catalog.store import CatalogStore
from site_showcase.config import Config
from site_showcase.embeddings.embed import OllamaEmbedder
from site_showcase.embeddings.vector_index import VectorIndex
from site_showcase.search.errors import (
    EmbeddingFailure,
    SearchCancelled,
    SearchTimeout,
    UpstreamQueryFailure,
)
from site_showcase.search.results import (
    SearchResultItem,
    SemanticHit,
    TextHit,
    merge_hits,
    order_semantic_hits,
)

logger = logging.getLogger(__name__)

# How often to check a cancellation event while waiting on the paths.
_CANCEL_POLL_SECONDS = 0.05

# Marks an argument the caller did not pass, so None keeps its own meaning.
_FROM_CONFIG = object()


class HybridSearcher:
    """Combines vector search and substring search over approved sites.

    Collaborators default to the real implementations built from the
    config; pass fakes to test the merge policy in isolation.

    Args:
        config: Application configuration.
        embedder: Embedding provider with embed(text).
        vector_index: Vector index with query(vector, top_k).
        catalog: Catalog store with search_text() and get_many().
    """

    def __init__(self, config: Config, embedder=None, vector_index=None, catalog=None):
        self.config = config
        self.embedder = embedder or OllamaEmbedder(config)
        self._owns_index = vector_index is None
        self.vector_index = vector_index or VectorIndex(config)
        self.catalog = catalog or CatalogStore(config)

    def search(
        self,
        query: str,
        limit: int | None = None,
        timeout: float | None = _FROM_CONFIG,
        cancel: threading.Event | None = None,
    ) -> list[SearchResultItem]:
        """Execute a hybrid search.

        Args:
            query: Free-text query. Empty or whitespace-only returns []
                without calling any collaborator.
            limit: Truncate the merged list to this many items. Defaults
                to config.default_limit (None = no truncation).
            timeout: Seconds to wait for both paths. Defaults to
                config.search_timeout; pass None to wait indefinitely.
            cancel: Optional event; setting it aborts the search.

        Returns:
            Semantic hits in vector rank order, then text-only hits.

        Raises:
            ValueError: limit is negative.
            EmbeddingFailure: The query could not be embedded.
            UpstreamQueryFailure: The vector index or catalog failed.
            SearchTimeout / SearchCancelled: Deadline or cancel fired.
        """
        if limit is None:
            limit = self.config.default_limit
        if limit is not None and limit < 0:
            raise ValueError(f"limit must be non-negative, got {limit}")
        if timeout is _FROM_CONFIG:
            timeout = self.config.search_timeout

        if not query or not query.strip():
            return []

        logger.info(f"Search query: {query!r}")

        executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="search")
        try:
            semantic_future = executor.submit(self._semantic_path, query)
            text_future = executor.submit(self._text_path, query)
            self._await([semantic_future, text_future], timeout, cancel)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        semantic, text = self._collect(semantic_future, text_future)
        results = merge_hits(semantic, text, limit)

        logger.info(
            f"Search merged {len(results)} results "
            f"({len(semantic)} semantic, {len(text)} text)"
        )
        return results

    def close(self) -> None:
        """Release the vector index connection if this searcher created it."""
        if self._owns_index:
            self.vector_index.close()

    # ------------------------------------------------------------------ #
    #  Retrieval paths                                                    #
    # ------------------------------------------------------------------ #

    def _semantic_path(self, query: str) -> list[SemanticHit]:
        try:
            vector = self.embedder.embed(query)
        except Exception as e:
            logger.error(f"Failed to embed search query: {e}")
            raise EmbeddingFailure() from e

        try:
            matches = list(self.vector_index.query(vector, self.config.vector_top_k))
            ids = list(dict.fromkeys(m.id for m in matches))
        except Exception as e:
            logger.error(f"Vector index query failed: {e}")
            raise UpstreamQueryFailure("vector_query") from e

        logger.info(f"Vector results: {len(matches)}")
        if not matches:
            return []

        try:
            records = self.catalog.get_many(ids, status=ModerationStatus.APPROVED)
        except Exception as e:
            logger.error(f"Catalog hydration failed: {e}")
            raise UpstreamQueryFailure("hydrate") from e

        records = [r for r in records if r.is_approved]
        hits = order_semantic_hits(matches, records)

        resolved = {h.id for h in hits}
        dropped = [i for i in ids if i not in resolved]
        if dropped:
            logger.debug(f"Dropped {len(dropped)} vector hits not approved: {dropped}")
        return hits

    def _text_path(self, query: str) -> list[TextHit]:
        try:
            records = self.catalog.search_text(
                query,
                status=ModerationStatus.APPROVED,
                limit=self.config.text_top_k,
            )
        except Exception as e:
            logger.error(f"Catalog text search failed: {e}")
            raise UpstreamQueryFailure("text_query") from e

        logger.info(f"Text results: {len(records)}")
        return [TextHit(id=r.id, record=r) for r in records if r.is_approved]

    # ------------------------------------------------------------------ #
    #  Fan-in                                                             #
    # ------------------------------------------------------------------ #

    def _await(
        self,
        futures: list[Future],
        timeout: float | None,
        cancel: threading.Event | None,
    ) -> None:
        """Block until both paths finish, the deadline passes or cancel fires.

        In strict mode the wait ends at the first failure. With isolated
        failures, a deadline that passes after one path has succeeded
        returns normally and the unfinished path counts as failed.
        """
        return_when = ALL_COMPLETED if self.config.isolate_failures else FIRST_EXCEPTION
        deadline = None if timeout is None else time.monotonic() + timeout

        while True:
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            step = remaining
            if cancel is not None:
                step = _CANCEL_POLL_SECONDS
                if remaining is not None:
                    step = min(remaining, _CANCEL_POLL_SECONDS)

            done, not_done = wait(futures, timeout=step, return_when=return_when)

            if not not_done:
                return
            if return_when == FIRST_EXCEPTION and any(f.exception() for f in done):
                return
            if cancel is not None and cancel.is_set():
                for f in not_done:
                    f.cancel()
                logger.warning("Search cancelled by caller")
                raise SearchCancelled()
            if deadline is not None and time.monotonic() >= deadline:
                for f in not_done:
                    f.cancel()
                if self.config.isolate_failures and any(
                    f.exception() is None for f in done
                ):
                    logger.warning(f"Search path timed out after {timeout}s")
                    return
                logger.error(f"Search timed out after {timeout}s")
                raise SearchTimeout()

    def _collect(
        self, semantic_future: Future, text_future: Future
    ) -> tuple[list[SemanticHit], list[TextHit]]:
        """Apply the failure policy to the finished paths.

        Strict (default): any failure fails the call, the semantic
        path's error taking precedence. Isolated: a single failing or
        timed-out path is logged and the other path's results are returned.
        """
        semantic_error = self._error_of(semantic_future)
        text_error = self._error_of(text_future)

        if self.config.isolate_failures:
            if not semantic_future.done():
                semantic_error = SearchTimeout()
            if not text_future.done():
                text_error = SearchTimeout()

        if semantic_error and (text_error or not self.config.isolate_failures):
            raise semantic_error
        if text_error and not self.config.isolate_failures:
            raise text_error

        if semantic_error:
            logger.warning(
                f"Semantic path failed ({semantic_error.stage}); "
                "returning text results only"
            )
            return [], text_future.result()
        if text_error:
            logger.warning(
                f"Text path failed ({text_error.stage}); "
                "returning semantic results only"
            )
            return semantic_future.result(), []
        return semantic_future.result(), text_future.result()

    @staticmethod
    def _error_of(future: Future):
        if not future.done():
            return None
        return future.exception()
