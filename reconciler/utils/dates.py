"""Datetime helpers."""

from __future__ import annotations

import os
from datetime import datetime

import pendulum

DEFAULT_TZ = "America/Los_Angeles"


def timezone_name() -> str:
    return os.environ.get("TIMEZONE", DEFAULT_TZ)


def now_in_tz() -> pendulum.DateTime:
    tz = pendulum.timezone(timezone_name())
    return pendulum.now(tz)


def utc_now() -> pendulum.DateTime:
    return pendulum.now("UTC")


def to_iso(value: datetime | None) -> str | None:
    if value is None:
        return None
    return pendulum.instance(value).to_iso8601_string()


def parse_timestamp(value: object) -> datetime | None:
    """Normalize a timestamp column value, which SQLite hands back as text."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return pendulum.instance(value)
    return pendulum.parse(str(value))


def format_timestamp(value: datetime) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S %Z")
