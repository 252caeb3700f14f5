"""Catalog data models."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime

from reconciler.utils.dates import utc_now

SOURCE_LEGACY_BACKFILL = "legacy-backfill"
SOURCE_COMMUNITY = "community"


@dataclass(slots=True)
class CatalogItem:
    id: str
    brand: str
    model: str
    category: str
    image_url: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def label(self) -> str:
        return f"{self.brand} {self.model}".strip() or self.id


@dataclass(slots=True)
class ItemFilter:
    has_image: bool | None = None
    category: str | None = None


@dataclass(slots=True)
class PhotoAsset:
    item_id: str
    url: str
    is_primary: bool = False
    likes_count: int = 0
    source: str = SOURCE_COMMUNITY
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=utc_now)

    @classmethod
    def legacy_backfill(cls, item: CatalogItem) -> PhotoAsset:
        if not item.image_url:
            raise ValueError(f"Item {item.id} has no legacy image")
        return cls(
            item_id=item.id,
            url=item.image_url,
            is_primary=True,
            likes_count=0,
            source=SOURCE_LEGACY_BACKFILL,
        )


@dataclass(slots=True)
class PriceLink:
    id: str
    item_id: str
    retailer: str
    raw_url: str
    canonical_url: str | None = None
    needs_review: bool = False
    updated_at: datetime | None = None
