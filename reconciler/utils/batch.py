"""Bounded fan-out over a lazily enumerated working set."""

from __future__ import annotations

import asyncio
import os
from collections.abc import Awaitable, Callable, Iterable
from typing import TypeVar

from reconciler.store.base import EnumerationError
from reconciler.utils.retry import run_blocking

T = TypeVar("T")

DEFAULT_CONCURRENCY = int(os.environ.get("RECONCILE_CONCURRENCY", 1))

_EXHAUSTED = object()


async def run_batched(
    rows: Iterable[T],
    handler: Callable[[T], Awaitable[None]],
    *,
    concurrency: int = DEFAULT_CONCURRENCY,
    timeout: float | None = None,
) -> None:
    """Apply ``handler`` to every row with at most ``concurrency`` in flight.

    Rows are pulled from ``rows`` one chunk at a time so enumeration stays
    lazy. Each pull runs in the executor under ``timeout``; a pull that
    times out raises ``EnumerationError``. Other exceptions raised while
    enumerating propagate to the caller.
    """
    concurrency = max(1, concurrency)
    semaphore = asyncio.Semaphore(concurrency)
    iterator = iter(rows)

    async def _guarded(row: T) -> None:
        async with semaphore:
            await handler(row)

    chunk: list[T] = []
    while True:
        try:
            row = await run_blocking(next, iterator, _EXHAUSTED, timeout=timeout)
        except asyncio.TimeoutError as exc:
            raise EnumerationError("Timed out while enumerating rows") from exc
        if row is _EXHAUSTED:
            break
        chunk.append(row)
        if len(chunk) >= concurrency * 4:
            await asyncio.gather(*(_guarded(r) for r in chunk))
            chunk = []
    if chunk:
        await asyncio.gather(*(_guarded(r) for r in chunk))
