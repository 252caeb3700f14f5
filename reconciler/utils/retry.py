"""Retry and timeout helpers for blocking store calls."""

from __future__ import annotations

import asyncio
import functools
import os
import random
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

T = TypeVar("T")

RETRY_EXCEPTIONS = (OSError, asyncio.TimeoutError)
RETRY_ATTEMPTS = int(os.environ.get("STORE_RETRY_ATTEMPTS", 3))
RETRY_DELAY = float(os.environ.get("STORE_RETRY_DELAY", 1.0))
STORE_TIMEOUT = float(os.environ.get("STORE_TIMEOUT", 10.0))


def retry_async(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        delay = RETRY_DELAY
        attempts = max(1, RETRY_ATTEMPTS)
        for attempt in range(attempts):
            try:
                return await func(*args, **kwargs)
            except RETRY_EXCEPTIONS:
                if attempt == attempts - 1:
                    raise
                if delay:
                    await asyncio.sleep(delay + random.random() * delay)
                delay *= 2
    return wrapper


async def run_blocking(func: Callable[..., T], *args: Any, timeout: float | None = None) -> T:
    """Run a blocking call in the default executor, bounded by a timeout.

    A timed-out call keeps running in its worker thread; only the caller
    stops waiting for it.
    """
    loop = asyncio.get_running_loop()
    future = loop.run_in_executor(None, functools.partial(func, *args))
    return await asyncio.wait_for(future, timeout or STORE_TIMEOUT)


async def call_store(func: Callable[..., T], *args: Any, timeout: float | None = None) -> T:
    return await retry_async(run_blocking)(func, *args, timeout=timeout)
