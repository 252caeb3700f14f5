"""Promote legacy catalog images into the photo repository."""

from __future__ import annotations

import asyncio
import logging

from reconciler.store.base import CatalogStore, DuplicateAssetError, StoreError
from reconciler.store.models import CatalogItem, ItemFilter, PhotoAsset
from reconciler.utils.batch import DEFAULT_CONCURRENCY, run_batched
from reconciler.utils.report import PassSummary
from reconciler.utils.retry import call_store

logger = logging.getLogger(__name__)

ITEM_FAILURES = (StoreError, OSError, asyncio.TimeoutError)


class MediaReconciler:
    """Backfills one primary photo per item that still relies on ``image_url``.

    An item that already owns any photo asset, whatever its source, counts
    as migrated and is left alone. That existence check is the only dedup
    key, so community uploads take precedence over the legacy image.
Placeholder values are promoted like any other URL; display resolution
skips them and the cleanup pass clears them.
    """

    def __init__(
        self,
        store: CatalogStore,
        *,
        concurrency: int = DEFAULT_CONCURRENCY,
        dry_run: bool = False,
        timeout: float | None = None,
    ) -> None:
        self.store = store
        self.concurrency = concurrency
        self.dry_run = dry_run
        self.timeout = timeout

    async def run(self) -> PassSummary:
        summary = PassSummary(name="photo-backfill", changed_label="migrated", dry_run=self.dry_run)
        items = self.store.list_items(ItemFilter(has_image=True))

        async def handle(item: CatalogItem) -> None:
            await self._reconcile_item(item, summary)

        await run_batched(items, handle, concurrency=self.concurrency, timeout=self.timeout)
        logger.info("Photo backfill finished: %s", summary.as_dict())
        return summary

    async def _reconcile_item(self, item: CatalogItem, summary: PassSummary) -> None:
        summary.processed += 1
        try:
            assets = await call_store(self.store.list_assets, item.id, timeout=self.timeout)
            if assets:
                summary.skipped += 1
                return
            asset = PhotoAsset.legacy_backfill(item)
            if self.dry_run:
                logger.info("Would promote %s for %s", asset.url, item.label)
            else:
                await call_store(self.store.insert_asset, asset, timeout=self.timeout)
                logger.info("Promoted legacy image for %s (%s)", item.label, item.id)
        except DuplicateAssetError as exc:
            logger.info("Skipping %s: %s", item.id, exc)
            summary.skipped += 1
            return
        except ITEM_FAILURES as exc:
            logger.warning("Backfill failed for %s: %r", item.id, exc)
            summary.record_error(item.id, exc)
            return
        summary.changed += 1
