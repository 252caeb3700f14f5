"""Clear placeholder values from the legacy image field."""

from __future__ import annotations

import asyncio
import logging

from reconciler.media.display import is_placeholder
from reconciler.store.base import CatalogStore, StoreError
from reconciler.store.models import CatalogItem, ItemFilter
from reconciler.utils.batch import DEFAULT_CONCURRENCY, run_batched
from reconciler.utils.report import PassSummary
from reconciler.utils.retry import call_store

logger = logging.getLogger(__name__)


class PlaceholderCleanup:
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
        summary = PassSummary(name="placeholder-cleanup", changed_label="cleared", dry_run=self.dry_run)
        items = self.store.list_items(ItemFilter(has_image=True))

        async def handle(item: CatalogItem) -> None:
            summary.processed += 1
            if not is_placeholder(item.image_url):
                summary.skipped += 1
                return
            if self.dry_run:
                logger.info("Would clear %s from %s", item.image_url, item.label)
                summary.changed += 1
                return
            try:
                await call_store(self.store.clear_item_image, item.id, timeout=self.timeout)
            except (StoreError, OSError, asyncio.TimeoutError) as exc:
                logger.warning("Could not clear image for %s: %r", item.id, exc)
                summary.record_error(item.id, exc)
                return
            summary.changed += 1

        await run_batched(items, handle, concurrency=self.concurrency, timeout=self.timeout)
        logger.info("Placeholder cleanup finished: %s", summary.as_dict())
        return summary
