"""Catalog entry model and moderation status."""

import json
import time
from dataclasses import dataclass, field
from enum import Enum


class ModerationStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


def now_ms() -> int:
    """Current time in epoch milliseconds (the catalog's timestamp unit)."""
    return int(time.time() * 1000)


def _parse_tags(raw) -> list[str]:
    """Decode the tags column.

    Stored as a JSON array; older rows may hold a comma-separated string.
    """
    if not raw:
        return []
    if isinstance(raw, list):
        return [str(t) for t in raw]
    try:
        value = json.loads(raw)
    except (TypeError, json.JSONDecodeError):
        return [t.strip() for t in str(raw).split(",") if t.strip()]
    if isinstance(value, list):
        return [str(t) for t in value]
    return [str(value)]


@dataclass
class CatalogEntry:
    """One showcased site."""

    id: str
    name: str
    url: str
    category: str
    description: str = ""
    short_description: str = ""
    tags: list[str] = field(default_factory=list)
    status: ModerationStatus = ModerationStatus.PENDING
    thumbnail_url: str | None = None
    user_id: str | None = None
    created_at: int = 0
    updated_at: int = 0

    @property
    def is_approved(self) -> bool:
        return self.status == ModerationStatus.APPROVED

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "url": self.url,
            "category": self.category,
            "description": self.description,
            "short_description": self.short_description,
            "tags": list(self.tags),
            "status": self.status.value,
            "thumbnail_url": self.thumbnail_url,
            "user_id": self.user_id,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_row(cls, row) -> "CatalogEntry":
        """Build an entry from a sqlite3.Row (or any mapping)."""
        return cls(
            id=row["id"],
            name=row["name"],
            url=row["url"],
            category=row["category"] or "",
            description=row["description"] or "",
            short_description=row["short_description"] or "",
            tags=_parse_tags(row["tags"]),
            status=ModerationStatus(row["status"]),
            thumbnail_url=row["thumbnail_url"],
            user_id=row["user_id"],
            created_at=row["created_at"] or 0,
            updated_at=row["updated_at"] or 0,
        )
