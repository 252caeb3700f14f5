"""Shared command-line plumbing for reconciliation passes."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Coroutine
from typing import Any

from reconciler.store.base import EnumerationError
from reconciler.utils.report import PassSummary

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_CONFIG = 2


def base_parser(description: str) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=description)
    parser.add_argument("--dry-run", action="store_true", help="report what would change without writing")
    parser.add_argument("--concurrency", type=int, default=None, help="items processed in parallel")
    return parser


def execute(job: Coroutine[Any, Any, PassSummary]) -> int:
    """Run a pass and print its summary.

    Per-row errors are part of the summary and leave the exit status at 0.
    Only a failed enumeration aborts with a non-zero status.
    """
    try:
        summary = asyncio.run(job)
    except EnumerationError as exc:
        logger.error("Aborting run: %s", exc)
        print(f"Fatal: {exc}", file=sys.stderr)
        return EXIT_FATAL
    print(summary.render())
    return EXIT_OK
