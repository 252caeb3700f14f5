import time

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.pool import StaticPool

from reconciler.db.migrate import run_migrations
from reconciler.store.base import EnumerationError, PersistenceError
from reconciler.store.models import CatalogItem, PhotoAsset, PriceLink
from reconciler.store.sql import SqlCatalogStore
from reconciler.utils import retry


@pytest.fixture(autouse=True)
def fast_retries(monkeypatch):
    monkeypatch.setattr(retry, "RETRY_DELAY", 0.0)


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    run_migrations(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def store(engine):
    return SqlCatalogStore(engine, page_size=2)


def insert_items(engine, items):
    with engine.begin() as conn:
        conn.execute(
            text(
                """
                INSERT INTO catalog_items (id, brand, model, category, image_url)
                VALUES (:id, :brand, :model, :category, :image_url)
                """
            ),
            items,
        )


def insert_links(engine, links):
    with engine.begin() as conn:
        conn.execute(
            text(
                """
                INSERT INTO price_links (id, item_id, retailer, raw_url, canonical_url, needs_review)
                VALUES (:id, :item_id, :retailer, :raw_url, :canonical_url, :needs_review)
                """
            ),
            [{"canonical_url": None, "needs_review": False, **link} for link in links],
        )


def fetch_all(engine, query, **params):
    with engine.connect() as conn:
        return [dict(row) for row in conn.execute(text(query), params).mappings()]


@pytest.fixture()
def seeded_engine(engine):
    insert_items(
        engine,
        [
            {"id": "X", "brand": "Ping", "model": "G430", "category": "driver", "image_url": "https://img/a.jpg"},
            {"id": "Y", "brand": "Titleist", "model": "T100", "category": "irons", "image_url": "https://img/b.jpg"},
            {"id": "Z", "brand": "Cobra", "model": "Aerojet", "category": "driver", "image_url": None},
            {"id": "W", "brand": "Odyssey", "model": "Ai-One", "category": "putter",
             "image_url": "https://via.placeholder.com/300"},
            {"id": "V", "brand": "Callaway", "model": "Paradym", "category": "driver", "image_url": "https://img/c.jpg"},
        ],
    )
    return engine


class FakeStore:
    """In-memory store with failure injection."""

    def __init__(self, items=(), assets=(), links=()):
        self.items = {item.id: item for item in items}
        self.assets = list(assets)
        self.links = {link.id: link for link in links}
        self.fail_enumeration = False
        self.fail_insert_for = set()
        self.fail_update_for = set()
        self.slow_items = set()
        self.delay = 0.0
        self.enumeration_delay = 0.0
        self.inserts = 0
        self.updates = 0

    def list_items(self, item_filter):
        if self.fail_enumeration:
            raise EnumerationError("catalog_items unavailable")
        for item_id in sorted(self.items):
            item = self.items[item_id]
            if item_filter.has_image and item.image_url is None:
                continue
            time.sleep(self.enumeration_delay)
            yield item

    def list_assets(self, item_id):
        if item_id in self.slow_items:
            time.sleep(self.delay)
        return [asset for asset in self.assets if asset.item_id == item_id]

    def insert_asset(self, asset):
        if asset.item_id in self.fail_insert_for:
            raise PersistenceError(f"insert rejected for {asset.item_id}")
        self.inserts += 1
        self.assets.append(asset)
        return asset

    def list_links(self, retailer=None):
        for link_id in sorted(self.links):
            link = self.links[link_id]
            if retailer is None or link.retailer == retailer:
                yield link

    def update_link(self, link):
        if link.id in self.fail_update_for:
            raise PersistenceError(f"update rejected for {link.id}")
        self.updates += 1
        self.links[link.id] = link

    def clear_item_image(self, item_id):
        self.items[item_id].image_url = None


@pytest.fixture()
def fake_store():
    return FakeStore()


@pytest.fixture()
def make_item():
    def _make(item_id, image_url="https://img/a.jpg", **kwargs):
        data = {"brand": "Ping", "model": "G430", "category": "driver", **kwargs}
        return CatalogItem(id=item_id, image_url=image_url, **data)

    return _make


@pytest.fixture()
def make_link():
    def _make(link_id, raw_url, **kwargs):
        return PriceLink(id=link_id, item_id=kwargs.pop("item_id", "X"), retailer=kwargs.pop("retailer", "Amazon"),
                         raw_url=raw_url, **kwargs)

    return _make


@pytest.fixture()
def make_asset():
    def _make(item_id, url, **kwargs):
        return PhotoAsset(item_id=item_id, url=url, **kwargs)

    return _make
