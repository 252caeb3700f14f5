"""SQLAlchemy implementation of the catalog store."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from typing import Any

from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.sql import text

from reconciler.store.base import (
    DuplicateAssetError,
    EnumerationError,
    PersistenceError,
    StoreError,
)
from reconciler.store.models import (
    SOURCE_LEGACY_BACKFILL,
    CatalogItem,
    ItemFilter,
    PhotoAsset,
    PriceLink,
)
from reconciler.utils.dates import parse_timestamp, to_iso, utc_now

logger = logging.getLogger(__name__)

PAGE_SIZE = int(os.environ.get("ITEM_PAGE_SIZE", 200))
UNIQUE_VIOLATION = "23505"


class SqlCatalogStore:
    """Catalog store over plain SQL; pages are keyset-ordered by id."""

    def __init__(self, engine: Engine, *, page_size: int = PAGE_SIZE) -> None:
        self.engine = engine
        self.page_size = page_size

    def list_items(self, item_filter: ItemFilter | None = None) -> Iterator[CatalogItem]:
        item_filter = item_filter or ItemFilter()
        clauses = ["id > :after"]
        params: dict[str, Any] = {}
        if item_filter.has_image is True:
            clauses.append("image_url IS NOT NULL")
        elif item_filter.has_image is False:
            clauses.append("image_url IS NULL")
        if item_filter.category:
            clauses.append("category = :category")
            params["category"] = item_filter.category
        query = text(
            f"""
            SELECT id, brand, model, category, image_url, created_at, updated_at
            FROM catalog_items
            WHERE {' AND '.join(clauses)}
            ORDER BY id
            LIMIT :limit
            """
        )
        for row in self._paginate(query, params, "catalog_items"):
            yield CatalogItem(
                id=row["id"],
                brand=row["brand"],
                model=row["model"],
                category=row["category"],
                image_url=row["image_url"],
                created_at=parse_timestamp(row["created_at"]),
                updated_at=parse_timestamp(row["updated_at"]),
            )

    def list_assets(self, item_id: str) -> list[PhotoAsset]:
        query = text(
            """
            SELECT id, item_id, url, is_primary, likes_count, source, created_at
            FROM photo_assets
            WHERE item_id = :item_id
            ORDER BY created_at, id
            """
        )
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(query, {"item_id": item_id}).mappings().all()
        except SQLAlchemyError as exc:
            raise StoreError(f"Could not read photo assets for {item_id}: {exc}") from exc
        return [
            PhotoAsset(
                id=row["id"],
                item_id=row["item_id"],
                url=row["url"],
                is_primary=bool(row["is_primary"]),
                likes_count=int(row["likes_count"] or 0),
                source=row["source"],
                created_at=parse_timestamp(row["created_at"]),
            )
            for row in rows
        ]

    def insert_asset(self, asset: PhotoAsset) -> PhotoAsset:
        try:
            with self.engine.begin() as conn:
                conn.execute(
                    text(
                        """
                        INSERT INTO photo_assets (id, item_id, url, is_primary, likes_count, source, created_at)
                        VALUES (:id, :item_id, :url, :is_primary, :likes_count, :source, :created_at)
                        """
                    ),
                    {
                        "id": asset.id,
                        "item_id": asset.item_id,
                        "url": asset.url,
                        "is_primary": asset.is_primary,
                        "likes_count": asset.likes_count,
                        "source": asset.source,
                        "created_at": to_iso(asset.created_at),
                    },
                )
        except IntegrityError as exc:
            if asset.source == SOURCE_LEGACY_BACKFILL and _is_unique_violation(exc):
                raise DuplicateAssetError(f"Photo asset for {asset.item_id} already exists: {asset.url}") from exc
            raise PersistenceError(f"Insert rejected for {asset.item_id}: {exc}") from exc
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Insert failed for {asset.item_id}: {exc}") from exc
        return asset

    def list_links(self, retailer: str | None = None) -> Iterator[PriceLink]:
        clauses = ["id > :after"]
        params: dict[str, Any] = {}
        if retailer:
            clauses.append("retailer = :retailer")
            params["retailer"] = retailer
        query = text(
            f"""
            SELECT id, item_id, retailer, raw_url, canonical_url, needs_review, updated_at
            FROM price_links
            WHERE {' AND '.join(clauses)}
            ORDER BY id
            LIMIT :limit
            """
        )
        for row in self._paginate(query, params, "price_links"):
            yield PriceLink(
                id=row["id"],
                item_id=row["item_id"],
                retailer=row["retailer"],
                raw_url=row["raw_url"],
                canonical_url=row["canonical_url"],
                needs_review=bool(row["needs_review"]),
                updated_at=parse_timestamp(row["updated_at"]),
            )

    def update_link(self, link: PriceLink) -> None:
        link.updated_at = utc_now()
        try:
            with self.engine.begin() as conn:
                result = conn.execute(
                    text(
                        """
                        UPDATE price_links
                        SET canonical_url = :canonical_url,
                            needs_review = :needs_review,
                            updated_at = :updated_at
                        WHERE id = :id
                        """
                    ),
                    {
                        "id": link.id,
                        "canonical_url": link.canonical_url,
                        "needs_review": link.needs_review,
                        "updated_at": to_iso(link.updated_at),
                    },
                )
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Update failed for link {link.id}: {exc}") from exc
        if result.rowcount == 0:
            raise PersistenceError(f"Price link {link.id} no longer exists")

    def clear_item_image(self, item_id: str) -> None:
        try:
            with self.engine.begin() as conn:
                conn.execute(
                    text("UPDATE catalog_items SET image_url = NULL, updated_at = :ts WHERE id = :id"),
                    {"id": item_id, "ts": to_iso(utc_now())},
                )
        except SQLAlchemyError as exc:
            raise PersistenceError(f"Could not clear image for {item_id}: {exc}") from exc

    def _paginate(self, query, params: dict[str, Any], table: str) -> Iterator[dict[str, Any]]:
        after = ""
        while True:
            try:
                with self.engine.connect() as conn:
                    rows = conn.execute(
                        query, {**params, "after": after, "limit": self.page_size}
                    ).mappings().all()
            except SQLAlchemyError as exc:
                raise EnumerationError(f"Could not enumerate {table}: {exc}") from exc
            logger.debug("Fetched %s rows from %s after %r", len(rows), table, after)
            for row in rows:
                yield dict(row)
            if len(rows) < self.page_size:
                return
            after = rows[-1]["id"]


def _is_unique_violation(exc: IntegrityError) -> bool:
    # psycopg exposes the SQLSTATE; sqlite3 only reports it in the message.
    orig = exc.orig
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if code:
        return code == UNIQUE_VIOLATION
    return "UNIQUE constraint failed" in str(orig)
