# src/loaders/catalog_loader.py

"""Catalog Loader: backend payloads in, canonical records out."""

import logging
from dataclasses import dataclass, field
from typing import Any

from src.config.settings import Settings
from src.filters.product_validator import ProductValidator
from src.loaders.api_client import ApiClient
from src.loaders.errors import CatalogError, MalformedPayloadError
from src.loaders.payload_normalizer import (
    normalize_category,
    normalize_product,
    unwrap_envelope,
)
from src.loaders.seed_catalog import SEED_CATEGORIES, SEED_PRODUCTS
from src.models.product import Category, Product
from src.models.query import DataSource, QuerySignature

logger = logging.getLogger("storefront.loader")


@dataclass
class CatalogLoad:
    """Products returned by one load, tagged with where they came from."""

    products: list[Product] = field(
        default_factory=lambda: list[Product]()
    )
    source: DataSource = DataSource.LIVE
    dropped: int = 0

    @property
    def degraded(self) -> bool:
        """True when the bundled seed catalog was served."""
        return self.source is DataSource.FALLBACK


def _normalize_records(records: list[Any]) -> tuple[list[Product], int]:
    """Validate then normalise raw records, preserving backend order."""
    valid, dropped = ProductValidator.validate(records)
    products: list[Product] = []
    for record in valid:
        product = normalize_product(record)
        if product is None:
            dropped += 1
            continue
        products.append(product)
    return products, dropped


def _matches_selectors(product: Product, signature: QuerySignature) -> bool:
    """Apply the backend-side selectors to a seed product."""
    if signature.trending and not product.trending:
        return False
    if signature.best_seller and not product.best_seller:
        return False
    if signature.new_arrival and not product.new_arrival:
        return False
    if signature.categories and not (
        signature.categories & set(product.categories)
    ):
        return False
    if signature.search_term:
        haystack = f"{product.name} {product.description}".lower()
        if not all(t in haystack for t in signature.search_term.split()):
            return False
    return True


class CatalogLoader:
    """Fetch and normalise catalog data, degrading to the seed catalog.

    None of the public methods raise on backend trouble: a transport
    failure or unusable envelope yields the seed data tagged
    ``DataSource.FALLBACK`` so the caller can show degraded mode.
    """

    def __init__(self, client: ApiClient | None = None) -> None:
        self.settings = Settings()
        self.client = client or ApiClient()

    # ── Fallback data ────────────────────────────────────

    def fallback_products(
        self, signature: QuerySignature | None = None,
    ) -> list[Product]:
        """Seed products narrowed by the signature's backend selectors."""
        products, _ = _normalize_records(list(SEED_PRODUCTS))
        if signature is None:
            return products
        selected = [p for p in products if _matches_selectors(p, signature)]
        if signature.page_size:
            start = (signature.page - 1) * signature.page_size
            selected = selected[start:start + signature.page_size]
        return selected

    @staticmethod
    def fallback_categories() -> list[Category]:
        """Seed category list."""
        categories = [normalize_category(c) for c in SEED_CATEGORIES]
        return [c for c in categories if c is not None]

    # ── Loads ────────────────────────────────────────────

    def load(
        self, signature: QuerySignature | None = None,
    ) -> CatalogLoad:
        """Load the product list for *signature* (default: everything)."""
        signature = signature or QuerySignature()
        params = signature.backend_params()
        try:
            body = self.client.get_json(
                self.settings.PRODUCTS_ENDPOINT, params or None
            )
            records = unwrap_envelope(body)
            if not isinstance(records, list):
                raise MalformedPayloadError(
                    f"expected a product array, got {type(records).__name__}"
                )
            if isinstance(body, dict) and body.get("success") is False:
                raise MalformedPayloadError("backend reported success=false")
        except CatalogError as exc:
            logger.warning(
                "Catalog load failed (%s); serving fallback catalog", exc
            )
            return CatalogLoad(
                products=self.fallback_products(signature),
                source=DataSource.FALLBACK,
            )

        products, dropped = _normalize_records(records)
        logger.info(
            "Loaded %d products from backend (params=%s, dropped=%d)",
            len(products),
            params,
            dropped,
        )
        return CatalogLoad(
            products=products, source=DataSource.LIVE, dropped=dropped
        )

    def load_product(
        self, product_id: str,
    ) -> tuple[Product | None, DataSource]:
        """Load a single product; falls back to the seed record by id."""
        path = f"{self.settings.PRODUCTS_ENDPOINT}/{product_id}"
        try:
            record = unwrap_envelope(self.client.get_json(path))
            if not isinstance(record, dict):
                raise MalformedPayloadError("expected a product object")
            product = normalize_product(record)
            if product is None:
                raise MalformedPayloadError("product record has no id")
            return product, DataSource.LIVE
        except CatalogError as exc:
            logger.warning(
                "Product %s load failed (%s); trying fallback catalog",
                product_id,
                exc,
            )
        for product in self.fallback_products():
            if product.id == str(product_id):
                return product, DataSource.FALLBACK
        return None, DataSource.FALLBACK

    def load_categories(self) -> tuple[list[Category], DataSource]:
        """Load the category list; falls back to the seed categories."""
        try:
            records = unwrap_envelope(
                self.client.get_json(self.settings.CATEGORIES_ENDPOINT)
            )
            if not isinstance(records, list) or not records:
                raise MalformedPayloadError("empty or non-array category payload")
        except CatalogError as exc:
            logger.warning(
                "Category load failed (%s); serving fallback categories", exc
            )
            return self.fallback_categories(), DataSource.FALLBACK

        categories = [
            c for c in (
                normalize_category(r) for r in records if isinstance(r, dict)
            )
            if c is not None
        ]
        logger.info("Loaded %d categories from backend", len(categories))
        return categories, DataSource.LIVE
