"""Photo selection policy used by catalog readers."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timezone

from reconciler.store.models import CatalogItem, PhotoAsset

PLACEHOLDER_MARKERS = ("placehold",)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def is_placeholder(url: str | None) -> bool:
    if not url:
        return True
    lowered = url.lower()
    return any(marker in lowered for marker in PLACEHOLDER_MARKERS)


def resolve_display_photo(item: CatalogItem, assets: Sequence[PhotoAsset]) -> str | None:
    """Pick the photo shown for an item.

    Precedence: explicit primary asset, then the most liked asset, then the
    legacy ``image_url``. Placeholder URLs never win a tier. Returns ``None``
    when nothing usable exists, which readers render as brand initials.
    """
    usable = [asset for asset in assets if asset.item_id == item.id and not is_placeholder(asset.url)]
    primaries = [asset for asset in usable if asset.is_primary]
    if primaries:
        return _earliest(primaries).url
    if usable:
        best = max(asset.likes_count for asset in usable)
        return _earliest([asset for asset in usable if asset.likes_count == best]).url
    if not is_placeholder(item.image_url):
        return item.image_url
    return None


def _earliest(assets: Sequence[PhotoAsset]) -> PhotoAsset:
    return min(assets, key=lambda asset: (_sort_time(asset.created_at), asset.id))


def _sort_time(value: datetime | None) -> datetime:
    if value is None:
        return _EPOCH
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
