"""Catalog store access."""

from __future__ import annotations

from reconciler.db.session import create_engine_from_env
from reconciler.store.sql import SqlCatalogStore


def create_store_from_env() -> SqlCatalogStore:
    return SqlCatalogStore(create_engine_from_env())
