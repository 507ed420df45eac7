# src/filters/product_filter.py

"""Conjunctive facet predicates over the in-memory catalog."""

import logging

from src.models.product import Product
from src.models.query import FilterState

logger = logging.getLogger("storefront.filters")


class ProductFilter:
    """Filter products by the shop page's active facets."""

    @staticmethod
    def matches(product: Product, state: FilterState) -> bool:
        """True when *product* satisfies every active facet."""
        if state.categories and not any(
            cat in state.categories for cat in product.categories
        ):
            return False
        if product.price < state.price_min:
            return False
        if state.price_max is not None and product.price > state.price_max:
            return False
        if state.in_stock and not product.in_stock:
            return False
        if state.on_sale and not product.old_price:
            return False
        if state.new_arrival and not product.new_arrival:
            return False
        return True

    @staticmethod
    def filter_by_facets(
        products: list[Product],
        state: FilterState,
    ) -> tuple[list[Product], int]:
        """Keep products matching every facet, preserving order.

        Returns the filtered list and the count of excluded products.
        """
        kept = [p for p in products if ProductFilter.matches(p, state)]
        excluded = len(products) - len(kept)

        if excluded:
            logger.debug(
                "Facets excluded %d of %d products",
                excluded,
                len(products),
            )

        return kept, excluded
