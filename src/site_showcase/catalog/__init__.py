"""Catalog entries, the SQLite store and the moderation service."""

from site_showcase.catalog.models import CatalogEntry, ModerationStatus
from site_showcase.catalog.store import (
    CatalogError,
    CatalogStore,
    DuplicateSiteError,
    InvalidSiteError,
    SiteNotFoundError,
)

__all__ = [
    "CatalogEntry",
    "CatalogError",
    "CatalogStore",
    "DuplicateSiteError",
    "InvalidSiteError",
    "ModerationStatus",
    "SiteNotFoundError",
]
