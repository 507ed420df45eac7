# src/models/query.py

"""Query state, cache signatures and result slices."""

from dataclasses import dataclass, field, replace
from enum import Enum

from src.models.product import Product


class SortOrder(str, Enum):
    """Sort orders accepted by the facet engine."""

    DEFAULT = "default"
    PRICE_LOW = "price-low"
    PRICE_HIGH = "price-high"
    NAME_ASC = "name-asc"
    NAME_DESC = "name-desc"
    NEWEST = "newest"


class SearchSort(str, Enum):
    """Sort orders offered on the search results page."""

    RELEVANCE = "relevance"
    PRICE_LOW = "price-low"
    PRICE_HIGH = "price-high"
    NEWEST = "newest"


class DataSource(str, Enum):
    """Where a product list came from."""

    LIVE = "live"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class QuerySignature:
    """Canonical, hashable identity of a catalog query.

    Two signatures are equal iff every field is equal; equality is the
    cache key.
    """

    categories: frozenset[str] = frozenset()
    price_min: float = 0.0
    price_max: float | None = None
    in_stock: bool = False
    on_sale: bool = False
    new_arrival: bool = False
    search_term: str = ""
    sort_order: str = SortOrder.DEFAULT.value
    page: int = 1
    page_size: int = 0
    trending: bool = False
    best_seller: bool = False

    @property
    def is_unfiltered(self) -> bool:
        """True for the plain "all products" landing query."""
        return self == QuerySignature()

    def backend_params(self) -> dict[str, str]:
        """Translate to ``GET /api/products`` query parameters."""
        params: dict[str, str] = {}
        if len(self.categories) == 1:
            params["category"] = next(iter(self.categories))
        if self.trending:
            params["trending"] = "true"
        if self.best_seller:
            params["best_seller"] = "true"
        if self.new_arrival:
            params["new_arrival"] = "true"
        if self.search_term:
            params["search"] = self.search_term
        if self.page_size:
            params["limit"] = str(self.page_size)
            offset = (self.page - 1) * self.page_size
            if offset:
                params["offset"] = str(offset)
        return params


@dataclass
class FilterState:
    """The shop page's facet, sort and page selection.

    Lives for one session only; never persisted.
    """

    categories: list[str] = field(
        default_factory=lambda: list[str]()
    )
    price_min: float = 0.0
    price_max: float | None = None
    in_stock: bool = True
    on_sale: bool = False
    new_arrival: bool = False
    sort_order: SortOrder = SortOrder.DEFAULT
    page: int = 1

    def signature(
        self, search_term: str = "", page_size: int = 0,
    ) -> QuerySignature:
        """Freeze this state into a cache signature."""
        return QuerySignature(
            categories=frozenset(self.categories),
            price_min=self.price_min,
            price_max=self.price_max,
            in_stock=self.in_stock,
            on_sale=self.on_sale,
            new_arrival=self.new_arrival,
            search_term=search_term.strip().lower(),
            sort_order=self.sort_order.value,
            page=self.page,
            page_size=page_size,
        )

    def copy(self, **changes: object) -> "FilterState":
        """Return a copy with *changes* applied."""
        clone = replace(self, categories=list(self.categories))
        for key, value in changes.items():
            setattr(clone, key, value)
        return clone


@dataclass
class PageResult:
    """One rendered page of a filtered, sorted product list."""

    items: list[Product]
    total_count: int
    total_pages: int
    page: int
    source: DataSource = DataSource.LIVE

    @property
    def is_empty(self) -> bool:
        """True when nothing matched (a valid terminal state)."""
        return self.total_count == 0

    @property
    def is_fallback(self) -> bool:
        """True when the page was cut from the bundled seed catalog."""
        return self.source is DataSource.FALLBACK
