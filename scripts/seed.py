"""Seed a development database with demo catalog rows."""

from __future__ import annotations

from dotenv import load_dotenv
from sqlalchemy import text

from reconciler.db.migrate import run_migrations
from reconciler.db.session import create_engine_from_env
from reconciler.utils.dates import to_iso, utc_now


DEMO_ITEMS = [
    {"id": "driver-stealth2", "brand": "TaylorMade", "model": "Stealth 2", "category": "driver",
     "image_url": "https://cdn.example.com/equipment/stealth2.jpg"},
    {"id": "putter-newport2", "brand": "Scotty Cameron", "model": "Special Select Newport 2", "category": "putter",
     "image_url": "https://via.placeholder.com/400x400?text=Newport"},
    {"id": "wedge-sm9", "brand": "Titleist", "model": "Vokey SM9", "category": "wedge", "image_url": None},
]

DEMO_LINKS = [
    {"id": "link-1", "item_id": "putter-newport2", "retailer": "Amazon",
     "raw_url": "https://www.amazon.com/Titleist-Scotty-Cameron-Special-Newport/dp/B0BVP8MFYC"},
    {"id": "link-2", "item_id": "driver-stealth2", "retailer": "Amazon",
     "raw_url": "https://www.amazon.com/s?k=taylormade+stealth+2+driver"},
]


def main() -> None:
    load_dotenv()
    engine = create_engine_from_env()
    run_migrations(engine)
    ts = to_iso(utc_now())
    with engine.begin() as conn:
        for item in DEMO_ITEMS:
            conn.execute(
                text(
                    """
                    INSERT INTO catalog_items (id, brand, model, category, image_url, created_at, updated_at)
                    VALUES (:id, :brand, :model, :category, :image_url, :ts, :ts)
                    ON CONFLICT (id) DO NOTHING
                    """
                ),
                {**item, "ts": ts},
            )
        for link in DEMO_LINKS:
            conn.execute(
                text(
                    """
                    INSERT INTO price_links (id, item_id, retailer, raw_url, needs_review, updated_at)
                    VALUES (:id, :item_id, :retailer, :raw_url, FALSE, :ts)
                    ON CONFLICT (id) DO NOTHING
                    """
                ),
                {**link, "ts": ts},
            )
    print("Seed complete")


if __name__ == "__main__":
    main()
