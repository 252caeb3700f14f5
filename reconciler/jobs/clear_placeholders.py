"""Placeholder image cleanup job."""

from __future__ import annotations

import sys

from dotenv import load_dotenv

from reconciler.jobs.runner import base_parser, execute
from reconciler.media.cleanup import PlaceholderCleanup
from reconciler.store import create_store_from_env
from reconciler.store.base import CatalogStore
from reconciler.utils.batch import DEFAULT_CONCURRENCY
from reconciler.utils.logs import setup_logging
from reconciler.utils.report import PassSummary


async def run_cleanup(
    *,
    store: CatalogStore | None = None,
    dry_run: bool = False,
    concurrency: int | None = None,
) -> PassSummary:
    cleanup = PlaceholderCleanup(
        store or create_store_from_env(),
        concurrency=concurrency or DEFAULT_CONCURRENCY,
        dry_run=dry_run,
    )
    return await cleanup.run()


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    setup_logging()
    args = base_parser("Clear placeholder URLs from legacy item images.").parse_args(argv)
    return execute(run_cleanup(dry_run=args.dry_run, concurrency=args.concurrency))


if __name__ == "__main__":
    sys.exit(main())
