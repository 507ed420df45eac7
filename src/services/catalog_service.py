# src/services/catalog_service.py

"""Coordinates the loader, cache, ranker and facet engine."""

import asyncio
import logging
import time
from dataclasses import dataclass, field

from src.config.settings import Settings
from src.filters import facet_engine
from src.filters.search_ranker import ScoredProduct, SearchRanker
from src.loaders.catalog_loader import CatalogLoad, CatalogLoader
from src.models.product import Category, Product
from src.models.query import (
    DataSource,
    FilterState,
    PageResult,
    QuerySignature,
    SearchSort,
)
from src.storage.browsing_history import BrowsingHistory
from src.storage.query_cache import CacheEntry, QueryCache

logger = logging.getLogger("storefront.service")


@dataclass
class SearchResult:
    """Container for a completed catalog search."""

    query: str
    results: list[ScoredProduct] = field(
        default_factory=lambda: list[ScoredProduct]()
    )
    related: list[str] = field(
        default_factory=lambda: list[str]()
    )
    source: DataSource = DataSource.LIVE
    cache_hit: bool = False

    @property
    def products(self) -> list[Product]:
        return [s.product for s in self.results]

    @property
    def total_count(self) -> int:
        return len(self.results)


class CatalogService:
    """Session-scoped query engine over one cache and one loader.

    Collaborators are injected so a session owns exactly one cache; the
    service itself holds no process-wide state.  Only backend loads
    suspend (they run in a worker thread); ranking, filtering and
    pagination are synchronous reductions over the cached snapshot.

    Fallback (seed) results are returned but never cached, so the next
    load retries the backend and a live answer replaces degraded mode.
    """

    def __init__(
        self,
        loader: CatalogLoader,
        cache: QueryCache,
        history: BrowsingHistory | None = None,
        page_size: int = Settings.PAGE_SIZE,
    ) -> None:
        self.loader = loader
        self.cache = cache
        self.history = history
        self.page_size = page_size
        self._categories: list[Category] | None = None
        self._categories_at: float = 0.0
        self._category_names: dict[str, str] = {}
        # Pages computed from one landing entry, keyed by full signature
        self._pages: dict[QuerySignature, PageResult] = {}
        self._pages_source: CacheEntry | None = None

    # ── Private helpers ──────────────────────────────────

    async def _fetch(self, signature: QuerySignature) -> CatalogLoad:
        """Invoke the loader off the event loop."""
        return await asyncio.to_thread(self.loader.load, signature)

    def _remember_categories(self, categories: list[Category]) -> None:
        self._categories = categories
        self._categories_at = time.time()
        self._pages.clear()
        names: dict[str, str] = {}
        for cat in categories:
            names[cat.id] = cat.name
            if cat.slug:
                names.setdefault(cat.slug, cat.name)
        self._category_names = names

    # ── Catalog loads ────────────────────────────────────

    async def load_products(
        self, signature: QuerySignature | None = None,
    ) -> CatalogLoad:
        """Return the product list for *signature*, through the cache."""
        signature = signature or QuerySignature()
        cached = self.cache.get(signature)
        if cached is not None:
            return CatalogLoad(
                products=list(cached.products), source=cached.source
            )

        loaded = await self._fetch(signature)
        if loaded.source is DataSource.LIVE:
            self.cache.put(signature, loaded.products, loaded.source)
        else:
            logger.warning(
                "Serving %d fallback products (degraded mode)",
                len(loaded.products),
            )
        return loaded

    async def load_catalog(self) -> CatalogLoad:
        """The unfiltered catalog used by the shop and search pages."""
        await self.load_categories()
        return await self.load_products(QuerySignature())

    async def load_categories(self) -> list[Category]:
        """Backend category list (display names for facets and search).

        A live list is reused for the cache TTL, then fetched again.
        """
        if (
            self._categories is not None
            and time.time() - self._categories_at < self.cache.ttl
        ):
            return self._categories
        categories, source = await asyncio.to_thread(
            self.loader.load_categories
        )
        if source is DataSource.LIVE:
            self._remember_categories(categories)
        else:
            # Use fallback names for this call only; retry next time
            self._category_names = {c.id: c.name for c in categories}
        return categories

    @property
    def category_names(self) -> dict[str, str]:
        """Category id/slug → display name, from the last category load."""
        return dict(self._category_names)

    # ── Shop page ────────────────────────────────────────

    async def browse(
        self, state: FilterState, search_term: str = "",
    ) -> PageResult:
        """Filter, sort and paginate the catalog for the shop page.

        With a *search_term* the catalog is ranked first, so the
        ``default`` sort order keeps relevance order.  Pages cut from a
        live catalog are reused until that catalog entry is replaced.
        """
        catalog = await self.load_catalog()
        landing = self.cache.get_all()
        if landing is not self._pages_source:
            self._pages.clear()
            self._pages_source = landing
        signature = state.signature(search_term, self.page_size)
        if landing is not None and signature in self._pages:
            return self._pages[signature]

        products = catalog.products
        if search_term.strip():
            ranked = SearchRanker.search(
                products, search_term, self._category_names
            )
            products = [s.product for s in ranked]
        result = facet_engine.apply(
            products, state, self.page_size, catalog.source
        )
        if landing is not None and catalog.source is DataSource.LIVE:
            self._pages[signature] = result
        return result

    async def facets(self) -> list[Category]:
        """Category facet options counted over the unfiltered catalog."""
        catalog = await self.load_catalog()
        return facet_engine.category_facets(
            catalog.products, self._category_names
        )

    async def _section(
        self, limit: int, **selectors: bool,
    ) -> list[Product]:
        signature = QuerySignature(page_size=limit, **selectors)
        loaded = await self.load_products(signature)
        return loaded.products[:limit]

    async def trending(self, limit: int = 4) -> list[Product]:
        return await self._section(limit, trending=True)

    async def best_sellers(self, limit: int = 4) -> list[Product]:
        return await self._section(limit, best_seller=True)

    async def new_arrivals(self, limit: int = 4) -> list[Product]:
        return await self._section(limit, new_arrival=True)

    # ── Search ───────────────────────────────────────────

    async def search(
        self,
        query: str,
        sort: SearchSort | str = SearchSort.RELEVANCE,
        record: bool = True,
    ) -> SearchResult:
        """Rank the catalog against *query* for the search results page.

        Queries below SEARCH_MIN_LENGTH return an empty result.
        """
        query = query.strip()
        result = SearchResult(query=query)
        if len(query) < Settings.SEARCH_MIN_LENGTH:
            return result

        result.cache_hit = self.cache.get_all() is not None
        catalog = await self.load_catalog()
        result.source = catalog.source

        ranked = SearchRanker.search(
            catalog.products, query, self._category_names
        )
        result.results = SearchRanker.sort_results(ranked, sort)
        result.related = SearchRanker.related_searches(
            ranked, query, self._category_names
        )
        if record and self.history is not None:
            self.history.add_search(query)
        return result

    async def suggest(self, query: str) -> list[ScoredProduct]:
        """Type-ahead suggestions for *query*."""
        if len(query.strip()) < Settings.SEARCH_MIN_LENGTH:
            return []
        catalog = await self.load_catalog()
        return SearchRanker.suggest(
            catalog.products, query, self._category_names
        )

    # ── Product detail ───────────────────────────────────

    async def get_product(
        self, product_id: str, record_view: bool = True,
    ) -> Product | None:
        """Look up one product, preferring the cached catalog."""
        product_id = str(product_id)
        product: Product | None = None
        landing = self.cache.get_all()
        if landing is not None:
            product = next(
                (p for p in landing.products if p.id == product_id), None
            )
        if product is None:
            product, _ = await asyncio.to_thread(
                self.loader.load_product, product_id
            )
        if product is not None and record_view and self.history is not None:
            self.history.add_viewed(product.id)
        return product

    async def recently_viewed(self, exclude: str | None = None) -> list[Product]:
        """Resolve recently viewed ids against the catalog, in view order."""
        if self.history is None:
            return []
        catalog = await self.load_catalog()
        by_id = {p.id: p for p in catalog.products}
        return [
            by_id[pid]
            for pid in self.history.recently_viewed()
            if pid in by_id and pid != exclude
        ]

    # ── Invalidation ─────────────────────────────────────

    def invalidate(self) -> int:
        """Drop cached products and categories (e.g. after an admin write)."""
        self._categories = None
        self._category_names = {}
        self._pages.clear()
        self._pages_source = None
        return self.cache.invalidate_all()
