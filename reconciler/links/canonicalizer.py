"""Rewrite scraped price links to canonical retailer URLs."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace

from reconciler.links import RuleSetNotFound, load_retailer_rules, rules_for
from reconciler.links.rules import CanonicalMatch, RetailerRules
from reconciler.store.base import CatalogStore, StoreError
from reconciler.store.models import PriceLink
from reconciler.utils.batch import DEFAULT_CONCURRENCY, run_batched
from reconciler.utils.report import PassSummary
from reconciler.utils.retry import call_store

logger = logging.getLogger(__name__)


class LinkCanonicalizer:
    def __init__(
        self,
        store: CatalogStore,
        rule_sets: dict[str, RetailerRules] | None = None,
        *,
        concurrency: int = DEFAULT_CONCURRENCY,
        dry_run: bool = False,
        timeout: float | None = None,
    ) -> None:
        self.store = store
        self.rule_sets = rule_sets if rule_sets is not None else load_retailer_rules()
        self.concurrency = concurrency
        self.dry_run = dry_run
        self.timeout = timeout

    async def run(self, retailer: str | None = None) -> PassSummary:
        """Canonicalize every link of ``retailer``, or of all configured retailers.

        Raises ``RuleSetNotFound`` before touching the store when
        ``retailer`` has no rule set.
        """
        summary = PassSummary(name="link-canonicalization", changed_label="canonicalized", dry_run=self.dry_run)
        if retailer:
            links = self.store.list_links(rules_for(self.rule_sets, retailer).retailer)
        else:
            links = self.store.list_links(None)

        async def handle(link: PriceLink) -> None:
            await self._reconcile_link(link, summary)

        await run_batched(links, handle, concurrency=self.concurrency, timeout=self.timeout)
        logger.info("Link canonicalization finished: %s", summary.as_dict())
        return summary

    async def _reconcile_link(self, link: PriceLink, summary: PassSummary) -> None:
        summary.processed += 1
        try:
            rules = rules_for(self.rule_sets, link.retailer)
        except RuleSetNotFound:
            logger.debug("No rules for retailer %r (link %s)", link.retailer, link.id)
            summary.skipped += 1
            return

        outcome = rules.canonicalize(link.raw_url)
        if isinstance(outcome, CanonicalMatch):
            if link.canonical_url == outcome.url and not link.needs_review:
                summary.skipped += 1
                return
            updated = replace(link, canonical_url=outcome.url, needs_review=False)
            flagged = False
        else:
            if not outcome.is_listing and rules.is_canonical(link.canonical_url):
                # A canonical value is only dropped once the raw URL is a listing page.
                summary.skipped += 1
                return
            logger.info("Link %s needs review (%s): %s", link.id, outcome.reason, link.raw_url)
            if link.needs_review and link.canonical_url is None:
                summary.flagged += 1
                return
            updated = replace(link, canonical_url=None, needs_review=True)
            flagged = True

        if not self.dry_run:
            try:
                await call_store(self.store.update_link, updated, timeout=self.timeout)
            except (StoreError, OSError, asyncio.TimeoutError) as exc:
                logger.warning("Could not update link %s: %r", link.id, exc)
                summary.record_error(link.id, exc)
                return
        if flagged:
            summary.flagged += 1
        else:
            summary.changed += 1
