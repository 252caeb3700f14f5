"""Celery configuration for scheduled reconciliation passes."""

from __future__ import annotations

import os

from celery import Celery
from celery.schedules import crontab

from reconciler.utils.dates import timezone_name

broker_url = os.environ.get("REDIS_URL", "redis://redis:6379/0")
backend_url = os.environ.get("REDIS_URL", "redis://redis:6379/0")

RECONCILE_HOUR = int(os.environ.get("RECONCILE_HOUR", "3"))
RECONCILE_MINUTE = int(os.environ.get("RECONCILE_MINUTE", "15"))

celery_app = Celery("reconciler", broker=broker_url, backend=backend_url)
celery_app.conf.timezone = timezone_name()
celery_app.conf.beat_schedule = {
    "photo-backfill": {
        "task": "reconciler.jobs.backfill_photos.run",
        "schedule": crontab(hour=RECONCILE_HOUR, minute=RECONCILE_MINUTE),
    },
    "link-canonicalization": {
        "task": "reconciler.jobs.canonicalize_links.run",
        "schedule": crontab(hour=RECONCILE_HOUR, minute=(RECONCILE_MINUTE + 30) % 60),
    },
}


@celery_app.task(name="reconciler.jobs.backfill_photos.run")
def run_backfill_task() -> dict[str, int]:  # pragma: no cover - executed by worker
    import asyncio

    from reconciler.jobs.backfill_photos import run_backfill

    return asyncio.run(run_backfill()).as_dict()


@celery_app.task(name="reconciler.jobs.canonicalize_links.run")
def run_canonicalize_task(retailer: str | None = None) -> dict[str, int]:  # pragma: no cover - executed by worker
    import asyncio

    from reconciler.jobs.canonicalize_links import run_canonicalize

    return asyncio.run(run_canonicalize(retailer)).as_dict()
