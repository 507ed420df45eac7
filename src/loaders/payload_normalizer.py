# src/loaders/payload_normalizer.py

"""Normalise heterogeneous backend product payloads into ``Product``.

The backend has shipped three image layouts over time:

* ``nested``      – ``images: {primary, gallery}``
* ``tagged rows`` – ``product_images: [{image_url, image_type}]``
* ``legacy``      – a single ``image_url`` / ``image`` field

Each payload is classified once by structural inspection and handed to
the resolver for its shape.  Every other field goes through the same
per-field defaulting regardless of shape.
"""

import logging
import math
import re
from enum import Enum
from typing import Any

from bs4 import BeautifulSoup

from src.config.settings import Settings
from src.models.product import Category, Product, ProductImages, format_category_name

logger = logging.getLogger("storefront.loader")

_LEGACY_IMAGE_KEYS: tuple[str, ...] = ("image_url", "image", "imageUrl")
_LEGACY_GALLERY_KEYS: tuple[str, ...] = ("hoverImage", "hover_image")
_MALFORMED_REFS: frozenset[str] = frozenset({"null", "undefined", "none"})
_UPLOADS_PREFIX_RE = re.compile(r"(https?://)?localhost:\d+/uploads/+")
_MULTI_SLASH_RE = re.compile(r"/{2,}")
_WHITESPACE_RE = re.compile(r"\s+")


class PayloadShape(Enum):
    """Known product payload layouts, in resolution precedence order."""

    NESTED = "nested"
    TAGGED_ROWS = "tagged_rows"
    LEGACY = "legacy"
    BARE = "bare"


# ── Scalar coercion ──────────────────────────────────────


def _first(raw: dict[str, Any], *keys: str) -> Any:
    """Return the first present, non-None value among *keys*."""
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return None


def to_float(value: Any, default: float = 0.0) -> float:
    """Coerce numbers and numeric strings; negatives clamp to 0."""
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(str(value).replace(",", "").strip())
    except ValueError:
        return default
    if not math.isfinite(number):
        return default
    return max(number, 0.0)


def to_int(value: Any, default: int = 0) -> int:
    """Coerce to a non-negative integer."""
    return int(to_float(value, float(default)))


def to_bool(value: Any, default: bool = False) -> bool:
    """Interpret booleans, 0/1 and "true"/"false" strings."""
    if value is None:
        return default
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "1", "yes", "t"):
            return True
        if lowered in ("false", "0", "no", "f", ""):
            return False
        return default
    return bool(value)


def extract_id(raw: dict[str, Any]) -> str | None:
    """Return the record's identifier as a string, or None if absent."""
    value = _first(raw, "id", "_id", "product_id")
    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip()
    return text or None


# ── Images ───────────────────────────────────────────────


def sanitize_image_url(url: Any) -> str | None:
    """Clean an image reference; return None when it is unusable.

    Oversized inline data-URIs are treated as malformed so one bad
    upload cannot inflate every page that lists the product.
    """
    if not isinstance(url, str):
        return None
    url = url.strip()
    if not url or url.lower() in _MALFORMED_REFS:
        return None

    if url.startswith("data:"):
        if (
            "data:image/" in url
            and len(url) > Settings.INLINE_IMAGE_MAX_LENGTH
        ):
            logger.debug("Dropping oversized inline image (%d chars)", len(url))
            return None
        return url

    cleaned = _UPLOADS_PREFIX_RE.sub("", url)
    if cleaned.startswith(("http://", "https://")):
        return cleaned

    cleaned = _MULTI_SLASH_RE.sub("/", cleaned).lstrip("/")
    if not cleaned:
        return None
    if not cleaned.startswith("images/"):
        cleaned = f"images/{cleaned}"
    return cleaned


def _gallery(primary: str, candidates: list[Any]) -> tuple[str, ...]:
    """Sanitise gallery candidates, dropping blanks, dupes, the primary
    and the placeholder."""
    gallery: list[str] = []
    for candidate in candidates:
        url = sanitize_image_url(candidate)
        if (
            url
            and url not in (primary, Settings.PLACEHOLDER_IMAGE)
            and url not in gallery
        ):
            gallery.append(url)
    return tuple(gallery)


def _legacy_primary(raw: dict[str, Any]) -> str | None:
    return sanitize_image_url(_first(raw, *_LEGACY_IMAGE_KEYS))


def detect_shape(raw: dict[str, Any]) -> PayloadShape:
    """Classify a payload by the image layout it carries."""
    images = raw.get("images")
    if isinstance(images, dict) and "primary" in images:
        return PayloadShape.NESTED
    rows = raw.get("product_images")
    if isinstance(rows, list) and rows:
        return PayloadShape.TAGGED_ROWS
    if _first(raw, *_LEGACY_IMAGE_KEYS) is not None:
        return PayloadShape.LEGACY
    return PayloadShape.BARE


def _resolve_nested(raw: dict[str, Any]) -> ProductImages:
    images: dict[str, Any] = raw["images"]
    primary = sanitize_image_url(images.get("primary")) or Settings.PLACEHOLDER_IMAGE
    gallery = images.get("gallery")
    candidates = list(gallery) if isinstance(gallery, (list, tuple)) else []
    return ProductImages(primary=primary, gallery=_gallery(primary, candidates))


def _resolve_tagged_rows(raw: dict[str, Any]) -> ProductImages:
    rows = [r for r in raw["product_images"] if isinstance(r, dict)]
    primary_row = next(
        (r for r in rows if r.get("image_type") == "primary"), None
    )
    primary = None
    if primary_row is not None:
        primary = sanitize_image_url(primary_row.get("image_url"))
    if primary is None:
        primary = _legacy_primary(raw) or Settings.PLACEHOLDER_IMAGE
    candidates = [
        r.get("image_url") for r in rows if r is not primary_row
    ]
    return ProductImages(primary=primary, gallery=_gallery(primary, candidates))


def _resolve_legacy(raw: dict[str, Any]) -> ProductImages:
    primary = _legacy_primary(raw) or Settings.PLACEHOLDER_IMAGE
    candidates = [raw.get(key) for key in _LEGACY_GALLERY_KEYS]
    return ProductImages(primary=primary, gallery=_gallery(primary, candidates))


def _resolve_bare(raw: dict[str, Any]) -> ProductImages:
    return ProductImages(primary=Settings.PLACEHOLDER_IMAGE)


_IMAGE_RESOLVERS = {
    PayloadShape.NESTED: _resolve_nested,
    PayloadShape.TAGGED_ROWS: _resolve_tagged_rows,
    PayloadShape.LEGACY: _resolve_legacy,
    PayloadShape.BARE: _resolve_bare,
}


def resolve_images(raw: dict[str, Any]) -> ProductImages:
    """Resolve primary + gallery images for any known payload shape."""
    return _IMAGE_RESOLVERS[detect_shape(raw)](raw)


# ── Text & categories ────────────────────────────────────


def clean_description(value: Any) -> str:
    """Reduce rich-text descriptions to plain, single-spaced text."""
    if not isinstance(value, str) or not value.strip():
        return ""
    text = value
    if "<" in text and ">" in text:
        text = BeautifulSoup(text, "lxml").get_text(" ", strip=True)
    return _WHITESPACE_RE.sub(" ", text).strip()


def _category_key(value: Any) -> str | None:
    if isinstance(value, dict):
        value = _first(value, "id", "slug", "name")
    if value is None or isinstance(value, bool):
        return None
    text = str(value).strip()
    return text or None


def extract_categories(raw: dict[str, Any]) -> tuple[str, ...]:
    """Collect category identifiers from any of the known spellings."""
    values: list[Any] = []
    listed = raw.get("categories")
    if isinstance(listed, (list, tuple)):
        values.extend(listed)
    elif listed is not None:
        values.append(listed)
    for key in ("category", "category_id", "categoryId"):
        if raw.get(key) is not None:
            values.append(raw[key])

    keys: list[str] = []
    for value in values:
        key = _category_key(value)
        if key and key not in keys:
            keys.append(key)
    return tuple(keys)


# ── Availability ─────────────────────────────────────────


def _availability(raw: dict[str, Any], quantity_raw: Any) -> bool:
    """In stock unless flagged false or the stock count is explicitly 0."""
    flagged = to_bool(_first(raw, "inStock", "in_stock"), default=True)
    if quantity_raw is not None and to_float(quantity_raw, 1.0) <= 0:
        return False
    return flagged


# ── Entry points ─────────────────────────────────────────


def normalize_product(raw: dict[str, Any]) -> Product | None:
    """Build a canonical ``Product``; None if the record has no id."""
    product_id = extract_id(raw)
    if product_id is None:
        return None

    name = str(_first(raw, "name", "title") or "").strip()
    price = to_float(raw.get("price"))
    old_price: float | None = to_float(
        _first(raw, "oldPrice", "old_price", "compare_price", "compareAtPrice")
    )
    if not old_price or old_price < price:
        old_price = None

    quantity_raw = _first(raw, "quantity", "stock", "stock_quantity")

    return Product(
        id=product_id,
        name=name or Settings.PLACEHOLDER_NAME,
        price=price,
        description=clean_description(raw.get("description")),
        old_price=old_price,
        categories=extract_categories(raw),
        images=resolve_images(raw),
        in_stock=_availability(raw, quantity_raw),
        quantity=to_int(quantity_raw),
        trending=to_bool(raw.get("trending")),
        best_seller=to_bool(
            _first(raw, "best_seller", "bestSeller", "bestseller")
        ),
        new_arrival=to_bool(_first(raw, "new_arrival", "newArrival")),
        rating=min(to_float(raw.get("rating")), 5.0),
        review_count=to_int(
            _first(raw, "review_count", "reviewCount", "reviews_count")
        ),
    )


def normalize_category(raw: dict[str, Any]) -> Category | None:
    """Build a ``Category``; the name falls back to the title-cased slug."""
    key = _category_key(raw)
    if key is None:
        return None
    slug = str(raw.get("slug") or "").strip()
    name = str(raw.get("name") or "").strip()
    return Category(
        id=key,
        name=name or format_category_name(slug or key),
        slug=slug,
        description=str(raw.get("description") or ""),
    )


def unwrap_envelope(body: Any) -> Any:
    """Return ``body["data"]`` for ``{success, data}`` envelopes, else body."""
    if isinstance(body, dict) and "data" in body:
        return body["data"]
    return body
