"""Store access contract shared by the reconciliation passes."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Protocol

from reconciler.store.models import CatalogItem, ItemFilter, PhotoAsset, PriceLink


class StoreError(Exception):
    """Base class for catalog store failures."""


class EnumerationError(StoreError):
    """The source set could not be read. Fatal for a pass."""


class PersistenceError(StoreError):
    """A single-row write failed. Recorded and skipped by a pass."""


class DuplicateAssetError(PersistenceError):
    """The legacy backfill row already exists for this item and URL."""


class CatalogStore(Protocol):
    def list_items(self, item_filter: ItemFilter) -> Iterator[CatalogItem]:
        ...

    def list_assets(self, item_id: str) -> list[PhotoAsset]:
        ...

    def insert_asset(self, asset: PhotoAsset) -> PhotoAsset:
        ...

    def list_links(self, retailer: str | None = None) -> Iterator[PriceLink]:
        ...

    def update_link(self, link: PriceLink) -> None:
        ...

    def clear_item_image(self, item_id: str) -> None:
        ...
