"""SQLite catalog store.

Holds catalog entries and answers the two read queries hybrid search
needs: a substring match over the text fields and a hydrate-by-id
lookup, both filtered by moderation status.

A fresh connection is opened per operation so the store can be used
from the search thread pool without sharing a connection across threads.
"""

import json
import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path

from site_showcase.catalog.models import CatalogEntry, ModerationStatus
from site_showcase.config import Config

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS sites (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    url TEXT NOT NULL UNIQUE,
    description TEXT DEFAULT '',
    short_description TEXT DEFAULT '',
    category TEXT,
    tags TEXT,  -- JSON array
    thumbnail_url TEXT,
    user_id TEXT,
    status TEXT NOT NULL DEFAULT 'pending',
    created_at INTEGER,
    updated_at INTEGER
);

CREATE INDEX IF NOT EXISTS idx_sites_status ON sites(status);
CREATE INDEX IF NOT EXISTS idx_sites_category ON sites(category);
"""

# Columns matched by the substring search.
TEXT_SEARCH_FIELDS: tuple[str, ...] = ("name", "description", "short_description", "tags")

_COLUMNS = (
    "id, name, url, description, short_description, category, tags, "
    "thumbnail_url, user_id, status, created_at, updated_at"
)


class CatalogError(Exception):
    """Base class for catalog errors."""


class InvalidSiteError(CatalogError):
    """A submission is missing required fields."""


class DuplicateSiteError(CatalogError):
    """A site with the same URL already exists."""


class SiteNotFoundError(CatalogError):
    """No site with the given id."""


def _like_pattern(text: str) -> str:
    """Wrap text for a literal substring LIKE match."""
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class CatalogStore:
    """Relational store for catalog entries.

    Args:
        config: Application configuration (uses catalog_db_path).
        db_path: Optional override for the database file.
    """

    def __init__(self, config: Config, db_path: Path | str | None = None):
        self.config = config
        self.db_path = Path(db_path) if db_path else Path(config.catalog_db_path)

    @contextmanager
    def _connect(self):
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def init_schema(self) -> None:
        """Create tables and indexes. Idempotent."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            conn.executescript(SCHEMA)
        logger.info(f"Catalog schema ready at {self.db_path}")

    # ------------------------------------------------------------------ #
    #  Writes                                                             #
    # ------------------------------------------------------------------ #

    def insert(self, entry: CatalogEntry) -> None:
        """Insert a new entry.

        Raises:
            DuplicateSiteError: If the id or URL already exists.
        """
        try:
            with self._connect() as conn:
                conn.execute(
                    f"INSERT INTO sites ({_COLUMNS}) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    (
                        entry.id,
                        entry.name,
                        entry.url,
                        entry.description,
                        entry.short_description,
                        entry.category,
                        json.dumps(entry.tags, ensure_ascii=False),
                        entry.thumbnail_url,
                        entry.user_id,
                        entry.status.value,
                        entry.created_at,
                        entry.updated_at,
                    ),
                )
        except sqlite3.IntegrityError as e:
            raise DuplicateSiteError(f"Site already exists: {entry.url}") from e

    def update(self, entry: CatalogEntry) -> None:
        """Overwrite the editable fields of an existing entry.

        Raises:
            SiteNotFoundError: No entry with this id.
            DuplicateSiteError: The new URL belongs to another entry.
        """
        try:
            self._update(entry)
        except sqlite3.IntegrityError as e:
            raise DuplicateSiteError(f"Site already exists: {entry.url}") from e

    def _update(self, entry: CatalogEntry) -> None:
        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE sites SET name = ?, url = ?, description = ?, "
                "short_description = ?, category = ?, tags = ?, "
                "thumbnail_url = ?, status = ?, updated_at = ? WHERE id = ?",
                (
                    entry.name,
                    entry.url,
                    entry.description,
                    entry.short_description,
                    entry.category,
                    json.dumps(entry.tags, ensure_ascii=False),
                    entry.thumbnail_url,
                    entry.status.value,
                    entry.updated_at,
                    entry.id,
                ),
            )
            if cursor.rowcount == 0:
                raise SiteNotFoundError(entry.id)

    def set_status(self, site_id: str, status: ModerationStatus, updated_at: int) -> bool:
        """Change an entry's moderation status. Returns False if not found."""
        with self._connect() as conn:
            cursor = conn.execute(
                "UPDATE sites SET status = ?, updated_at = ? WHERE id = ?",
                (status.value, updated_at, site_id),
            )
            return cursor.rowcount > 0

    def delete(self, site_id: str) -> bool:
        """Delete an entry. Returns False if not found."""
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM sites WHERE id = ?", (site_id,))
            return cursor.rowcount > 0

    # ------------------------------------------------------------------ #
    #  Reads                                                              #
    # ------------------------------------------------------------------ #

    def get(self, site_id: str) -> CatalogEntry | None:
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM sites WHERE id = ?", (site_id,)
            ).fetchone()
        return CatalogEntry.from_row(row) if row else None

    def get_by_url(self, url: str) -> CatalogEntry | None:
        with self._connect() as conn:
            row = conn.execute(
                f"SELECT {_COLUMNS} FROM sites WHERE url = ?", (url,)
            ).fetchone()
        return CatalogEntry.from_row(row) if row else None

    def list_by_status(self, status: ModerationStatus) -> list[CatalogEntry]:
        """All entries with a status, newest first."""
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT {_COLUMNS} FROM sites WHERE status = ? "
                "ORDER BY created_at DESC, rowid DESC",
                (status.value,),
            ).fetchall()
        return [CatalogEntry.from_row(r) for r in rows]

    def search_text(
        self,
        text: str,
        status: ModerationStatus = ModerationStatus.APPROVED,
        limit: int = 20,
    ) -> list[CatalogEntry]:
        """Substring match over name, descriptions and tags.

        Matching is SQLite LIKE (case-insensitive for ASCII) with
        wildcards escaped, so the query text is matched literally. Tags
        are stored as unescaped JSON so non-ASCII tags match as written.
        Rows come back in insertion order.
        """
        pattern = _like_pattern(text)
        where = " OR ".join(f"{col} LIKE ? ESCAPE '\\'" for col in TEXT_SEARCH_FIELDS)
        sql = (
            f"SELECT {_COLUMNS} FROM sites WHERE status = ? AND ({where}) "
            "ORDER BY rowid LIMIT ?"
        )
        params = [status.value, *([pattern] * len(TEXT_SEARCH_FIELDS)), limit]
        with self._connect() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [CatalogEntry.from_row(r) for r in rows]

    def get_many(
        self,
        site_ids: list[str],
        status: ModerationStatus | None = ModerationStatus.APPROVED,
    ) -> list[CatalogEntry]:
        """Fetch entries by id, optionally filtered by status.

        Returns the subset of ids that exist (and match the status), in
        no particular order. Callers that care about order re-sort.
        """
        if not site_ids:
            return []
        placeholders = ",".join("?" for _ in site_ids)
        sql = f"SELECT {_COLUMNS} FROM sites WHERE id IN ({placeholders})"
        params: list = list(site_ids)
        if status is not None:
            sql += " AND status = ?"
            params.append(status.value)
        with self._connect() as conn:
            rows = conn.execute(sql, params).fetchall()
        return [CatalogEntry.from_row(r) for r in rows]
