# src/filters/facet_engine.py

"""Facet filter, sort and pagination engine for the shop page.

``apply`` is a pure reducer: products + filter state in, one page out.
``FacetEngine`` wraps it in the shop page's state machine, where every
facet, sort or page change synchronously recomputes the current page
from scratch.
"""

import logging
import math
from collections.abc import Iterable, Mapping

from src.config.settings import Settings
from src.filters.product_filter import ProductFilter
from src.models.product import Category, Product, format_category_name
from src.models.query import DataSource, FilterState, PageResult, SortOrder

logger = logging.getLogger("storefront.facets")


def sort_products(
    products: list[Product], order: SortOrder | str,
) -> list[Product]:
    """Return a new list in *order*; ``default`` keeps catalog order."""
    order = SortOrder(order)
    if order is SortOrder.PRICE_LOW:
        return sorted(products, key=lambda p: p.price)
    if order is SortOrder.PRICE_HIGH:
        return sorted(products, key=lambda p: p.price, reverse=True)
    if order is SortOrder.NAME_ASC:
        return sorted(products, key=lambda p: p.name.casefold())
    if order is SortOrder.NAME_DESC:
        return sorted(products, key=lambda p: p.name.casefold(), reverse=True)
    if order is SortOrder.NEWEST:
        return sorted(products, key=lambda p: not p.new_arrival)
    return list(products)


def total_pages(count: int, page_size: int) -> int:
    """``max(1, ceil(count / page_size))``."""
    return max(1, math.ceil(count / page_size))


def paginate(
    products: list[Product], page: int, page_size: int,
) -> tuple[list[Product], int, int]:
    """Slice one page; out-of-range pages clamp back to page 1.

    Returns ``(items, page, total_pages)``.
    """
    pages = total_pages(len(products), page_size)
    if page > pages or page < 1:
        page = 1
    start = (page - 1) * page_size
    return products[start:start + page_size], page, pages


def apply(
    products: list[Product],
    state: FilterState,
    page_size: int = Settings.PAGE_SIZE,
    source: DataSource = DataSource.LIVE,
) -> PageResult:
    """Filter conjunctively, sort, then paginate *products*."""
    filtered, _ = ProductFilter.filter_by_facets(products, state)
    ordered = sort_products(filtered, state.sort_order)
    items, page, pages = paginate(ordered, state.page, page_size)
    return PageResult(
        items=items,
        total_count=len(ordered),
        total_pages=pages,
        page=page,
        source=source,
    )


def category_facets(
    products: Iterable[Product],
    category_names: Mapping[str, str] | None = None,
) -> list[Category]:
    """Count category membership over the *unfiltered* catalog.

    Computed once per catalog load; counts reflect the whole catalog,
    not the currently filtered subset.
    """
    names = category_names or {}
    facets: dict[str, Category] = {}
    for product in products:
        for cat in product.categories:
            if cat not in facets:
                facets[cat] = Category(
                    id=cat,
                    name=names.get(cat) or format_category_name(cat),
                )
            facets[cat].count += 1
    return list(facets.values())


def price_ceiling(products: Iterable[Product]) -> float:
    """Whole-number ceiling of the most expensive product (0 if empty)."""
    prices = (p.price for p in products if math.isfinite(p.price))
    return float(math.ceil(max(prices, default=0.0)))


class FacetEngine:
    """Single source of truth for the shop page's current result set.

    Holds a borrowed reference to the current catalog snapshot plus the
    filter state.  Every mutator recomputes :attr:`result`
    synchronously; there is no incremental patching.
    """

    def __init__(
        self,
        products: list[Product] | None = None,
        category_names: Mapping[str, str] | None = None,
        page_size: int = Settings.PAGE_SIZE,
        source: DataSource = DataSource.LIVE,
    ) -> None:
        self.page_size = page_size
        self.state = FilterState()
        self.products: list[Product] = []
        self.ranked: list[Product] | None = None
        self.categories: list[Category] = []
        self.max_price: float = 0.0
        self.source = source
        self._category_names: Mapping[str, str] = category_names or {}
        self.result = PageResult(items=[], total_count=0, total_pages=1, page=1)
        self.replace_products(products or [], source=source)

    # ── Catalog snapshot ─────────────────────────────────

    def replace_products(
        self,
        products: list[Product],
        category_names: Mapping[str, str] | None = None,
        source: DataSource = DataSource.LIVE,
    ) -> PageResult:
        """Swap in a new catalog snapshot and rebuild facet options.

        Any search ranking belonged to the old snapshot and is dropped.
        """
        if category_names is not None:
            self._category_names = category_names
        self.products = products
        self.ranked = None
        self.source = source
        self.categories = category_facets(products, self._category_names)
        self.max_price = price_ceiling(products)
        return self._recompute()

    # ── Transitions ──────────────────────────────────────

    def set_ranking(self, ranked: list[Product] | None) -> PageResult:
        """Restrict results to a search-ranked subset, in rank order.

        ``None`` restores the whole catalog.  Facet options and the
        price ceiling keep describing the whole catalog either way.
        """
        self.ranked = ranked
        return self._recompute(reset_page=True)

    def set_categories(self, categories: Iterable[str]) -> PageResult:
        self.state.categories = list(dict.fromkeys(categories))
        return self._recompute(reset_page=True)

    def toggle_category(self, category_id: str) -> PageResult:
        """Add or remove one category from the selection."""
        if category_id in self.state.categories:
            self.state.categories.remove(category_id)
        else:
            self.state.categories.append(category_id)
        return self._recompute(reset_page=True)

    def set_price_range(
        self, price_min: float, price_max: float | None,
    ) -> PageResult:
        self.state.price_min = max(price_min, 0.0)
        self.state.price_max = price_max
        return self._recompute(reset_page=True)

    def set_in_stock(self, enabled: bool) -> PageResult:
        self.state.in_stock = enabled
        return self._recompute(reset_page=True)

    def set_on_sale(self, enabled: bool) -> PageResult:
        self.state.on_sale = enabled
        return self._recompute(reset_page=True)

    def set_new_arrival(self, enabled: bool) -> PageResult:
        self.state.new_arrival = enabled
        return self._recompute(reset_page=True)

    def set_sort(self, order: SortOrder | str) -> PageResult:
        self.state.sort_order = SortOrder(order)
        return self._recompute(reset_page=True)

    def go_to_page(self, page: int) -> PageResult:
        """Move to *page*; beyond the last page clamps to page 1."""
        self.state.page = page
        return self._recompute()

    def reset(self) -> PageResult:
        """Restore default facets with the full price range."""
        self.state = FilterState()
        return self._recompute()

    # ── Internal ─────────────────────────────────────────

    def _recompute(self, reset_page: bool = False) -> PageResult:
        if reset_page:
            self.state.page = 1
        products = self.products if self.ranked is None else self.ranked
        self.result = apply(products, self.state, self.page_size, self.source)
        self.state.page = self.result.page
        logger.debug(
            "Facets recomputed: %d matches, page %d/%d",
            self.result.total_count,
            self.result.page,
            self.result.total_pages,
        )
        return self.result
