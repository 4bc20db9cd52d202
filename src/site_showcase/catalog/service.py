"""Site submission, editing and moderation.

Writes go to the catalog first; embedding upkeep is handed to the
EmbeddingScheduler and never blocks or fails the write.
"""

import logging
import uuid

from site_showcase.catalog.models import CatalogEntry, ModerationStatus, now_ms
from site_showcase.catalog.store import (
    CatalogStore,
    DuplicateSiteError,
    InvalidSiteError,
    SiteNotFoundError,
)

logger = logging.getLogger(__name__)

REQUIRED_FIELDS: tuple[str, ...] = ("name", "url", "category")

# Fields a submitter may change after creation.
EDITABLE_FIELDS: set[str] = {
    "name",
    "url",
    "description",
    "short_description",
    "category",
    "tags",
    "thumbnail_url",
}


def _clean_tags(tags) -> list[str]:
    if not tags:
        return []
    if isinstance(tags, str):
        tags = tags.split(",")
    return [t.strip() for t in tags if isinstance(t, str) and t.strip()]


class SiteService:
    """Catalog writes with embedding side effects.

    Args:
        store: The catalog store.
        scheduler: EmbeddingScheduler for background (re)embedding, or
            None to skip embedding upkeep.
    """

    def __init__(self, store: CatalogStore, scheduler=None):
        self.store = store
        self.scheduler = scheduler

    def _schedule_upsert(self, entry: CatalogEntry) -> None:
        if self.scheduler is not None:
            self.scheduler.schedule_upsert(entry)

    def submit(self, data: dict, user_id: str | None = None) -> CatalogEntry:
        """Create a pending site from a submission.

        Raises:
            InvalidSiteError: A required field is missing.
            DuplicateSiteError: The URL was already submitted.
        """
        missing = [f for f in REQUIRED_FIELDS if not str(data.get(f) or "").strip()]
        if missing:
            raise InvalidSiteError(f"Missing required fields: {', '.join(missing)}")

        url = data["url"].strip()
        if self.store.get_by_url(url) is not None:
            raise DuplicateSiteError(f"This URL has already been submitted: {url}")

        now = now_ms()
        entry = CatalogEntry(
            id=uuid.uuid4().hex,
            name=data["name"].strip(),
            url=url,
            category=data["category"].strip(),
            description=(data.get("description") or "").strip(),
            short_description=(data.get("short_description") or "").strip(),
            tags=_clean_tags(data.get("tags")),
            status=ModerationStatus.PENDING,
            thumbnail_url=data.get("thumbnail_url") or None,
            user_id=user_id,
            created_at=now,
            updated_at=now,
        )
        self.store.insert(entry)
        logger.info(f"Site submitted for review: {entry.id} ({entry.name})")

        self._schedule_upsert(entry)
        return entry

    def update(self, site_id: str, changes: dict) -> CatalogEntry:
        """Apply edits to a site and schedule re-embedding.

        Unknown keys are ignored. The moderation status is unchanged.
        """
        entry = self.store.get(site_id)
        if entry is None:
            raise SiteNotFoundError(site_id)

        for key, value in changes.items():
            if key not in EDITABLE_FIELDS:
                continue
            if key == "tags":
                value = _clean_tags(value)
            elif isinstance(value, str):
                value = value.strip()
            setattr(entry, key, value)

        for f in REQUIRED_FIELDS:
            if not str(getattr(entry, f) or "").strip():
                raise InvalidSiteError(f"Missing required field: {f}")

        entry.updated_at = now_ms()
        self.store.update(entry)
        logger.info(f"Site updated: {site_id}")

        self._schedule_upsert(entry)
        return entry

    def approve(self, site_id: str) -> None:
        self._set_status(site_id, ModerationStatus.APPROVED)

    def reject(self, site_id: str) -> None:
        self._set_status(site_id, ModerationStatus.REJECTED)

    def _set_status(self, site_id: str, status: ModerationStatus) -> None:
        if not self.store.set_status(site_id, status, now_ms()):
            raise SiteNotFoundError(site_id)
        logger.info(f"Site {site_id} -> {status.value}")

    def delete(self, site_id: str) -> None:
        """Delete a site and schedule removal of its vector."""
        if not self.store.delete(site_id):
            raise SiteNotFoundError(site_id)
        logger.info(f"Site deleted: {site_id}")
        if self.scheduler is not None:
            self.scheduler.schedule_delete(site_id)

    def pending(self) -> list[CatalogEntry]:
        """The moderation queue, newest first."""
        return self.store.list_by_status(ModerationStatus.PENDING)
