# src/ui/app.py

"""Terminal UI for browsing the storefront catalog."""

import logging
from typing import cast

from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal
from textual.widgets import (
    Checkbox,
    DataTable,
    Footer,
    Header,
    Input,
    Select,
    Static,
)

from src.config.settings import Settings
from src.filters.facet_engine import FacetEngine
from src.filters.search_ranker import SearchRanker
from src.loaders.catalog_loader import CatalogLoader
from src.models.product import Category, Product
from src.models.query import DataSource, PageResult
from src.services.catalog_service import CatalogService
from src.services.debouncer import Debouncer
from src.storage.browsing_history import BrowsingHistory
from src.storage.client_storage import ClientStorage
from src.storage.query_cache import QueryCache

logger = logging.getLogger("storefront.ui")

_FACET_TOGGLES = {
    "toggle_in_stock": "set_in_stock",
    "toggle_on_sale": "set_on_sale",
    "toggle_new": "set_new_arrival",
}


class StorefrontApp(App[object]):
    """Terminal UI for the storefront catalog query engine."""

    CSS = """
    #search_bar { height: auto; }
    #search_input { width: 1fr; }
    #sort_select { width: 30; }
    #facet_toggles, #category_toggles { height: auto; }
    #status { padding: 0 1; color: $text-muted; }
    #results_table { height: 1fr; }
    """

    AUTO_FOCUS = "#results_table"

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("n", "next_page", "Next Page"),
        Binding("b", "prev_page", "Prev Page"),
        Binding("r", "reset_filters", "Reset"),
        Binding("i", "invalidate_cache", "Refresh"),
        Binding("slash", "focus_search", "Search", show=False),
    ]

    def __init__(
        self,
        service: CatalogService | None = None,
        debouncer: Debouncer | None = None,
    ) -> None:
        super().__init__()
        self.settings = Settings()
        self._storage: ClientStorage | None = None
        if service is None:
            self._storage = ClientStorage()
            service = CatalogService(
                loader=CatalogLoader(),
                cache=QueryCache(storage=self._storage),
                history=BrowsingHistory(self._storage),
            )
        self.service = service
        self.debouncer = debouncer or Debouncer()
        self.engine = FacetEngine(page_size=service.page_size)
        self.source: DataSource = DataSource.LIVE
        self.search_term: str = ""
        self._category_ids: list[str] = []

    def compose(self) -> ComposeResult:
        """Build the widget tree for the TUI."""
        sort_options = [
            (opt["label"], opt["id"]) for opt in self.settings.SORT_OPTIONS
        ]

        yield Header()
        yield Container(
            Static("🛍  Storefront Catalog", id="title"),

            # Search bar + sort
            Horizontal(
                Input(
                    placeholder="Search products...", id="search_input"
                ),
                Select(
                    sort_options,
                    value="default",
                    allow_blank=False,
                    id="sort_select",
                ),
                Input(
                    placeholder="Max price",
                    type="number",
                    id="max_price_input",
                ),
                id="search_bar",
            ),

            # Boolean facets
            Horizontal(
                Checkbox("In stock", value=True, id="toggle_in_stock"),
                Checkbox("On sale", value=False, id="toggle_on_sale"),
                Checkbox("New arrivals", value=False, id="toggle_new"),
                id="facet_toggles",
            ),

            # Category facets (mounted once the catalog loads)
            Horizontal(id="category_toggles"),

            Static("Loading catalog...", id="status"),
            cast(
                DataTable[str | Text],
                DataTable(
                    id="results_table",
                    zebra_stripes=True,
                    cursor_type="row",
                ),
            ),
            id="main_container",
        )
        yield Footer()

    async def on_mount(self) -> None:
        """Configure the results table and load the catalog."""
        table = cast(
            DataTable[str | Text],
            self.query_one("#results_table", DataTable),
        )
        table.add_columns("Name", "Price", "Was", "Categories", "Stock")
        await self.load_catalog()

    def on_unmount(self) -> None:
        self.debouncer.cancel()
        if self._storage is not None:
            self._storage.close()

    # ── Catalog loading ──────────────────────────────────

    async def load_catalog(self) -> None:
        """Fetch the catalog snapshot and rebuild facets and results."""
        loaded = await self.service.load_catalog()
        self.source = loaded.source
        self.engine.replace_products(
            loaded.products, self.service.category_names, loaded.source
        )
        self.query_one("#max_price_input", Input).placeholder = (
            f"Max price (up to ${self.engine.max_price:,.0f})"
        )
        if loaded.degraded:
            self.notify(
                "Backend unavailable; showing the bundled catalog",
                severity="warning",
            )
        await self._mount_category_toggles(self.engine.categories)
        self._apply_search(self.search_term)

    async def _mount_category_toggles(self, facets: list[Category]) -> None:
        container = self.query_one("#category_toggles", Horizontal)
        await container.remove_children()
        self._category_ids = [cat.id for cat in facets]
        selected = set(self.engine.state.categories)
        await container.mount_all(
            Checkbox(
                f"{cat.name} ({cat.count})",
                value=cat.id in selected,
                id=f"cat_{idx}",
            )
            for idx, cat in enumerate(facets)
        )

    # ── Search ───────────────────────────────────────────

    def _apply_search(self, query: str) -> PageResult:
        """Rank the catalog for *query* and push it through the facets."""
        self.search_term = query.strip()
        ranked: list[Product] | None = None
        if self.search_term:
            scored = SearchRanker.search(
                self.engine.products,
                self.search_term,
                self.service.category_names,
            )
            ranked = [s.product for s in scored]
        result = self.engine.set_ranking(ranked)
        self.render_page(result)
        return result

    def on_input_changed(self, event: Input.Changed) -> None:
        """Debounce the search box; apply the price cap at once."""
        if event.input.id == "max_price_input":
            self._apply_max_price(event.value)
            return
        if event.input.id != "search_input":
            return
        query = event.value.strip()
        task = self.debouncer.schedule(query, self._apply_search)
        if task is None and self.search_term:
            # Below the minimum length no term is active
            self._apply_search("")

    def _apply_max_price(self, raw: str) -> None:
        try:
            price_max = float(raw) if raw.strip() else None
        except ValueError:
            return
        state = self.engine.state
        self.render_page(self.engine.set_price_range(state.price_min, price_max))

    def on_input_submitted(self, event: Input.Submitted) -> None:
        """Enter runs the search immediately and records it."""
        if event.input.id != "search_input":
            return
        self.debouncer.cancel()
        query = event.value.strip()
        self.debouncer.live_query = query
        self._apply_search(query)
        history = self.service.history
        if history is not None and query:
            history.add_search(query)

    # ── Facets, sort, pages ──────────────────────────────

    def on_checkbox_changed(self, event: Checkbox.Changed) -> None:
        """Route a facet checkbox to the matching engine transition."""
        checkbox_id = event.checkbox.id or ""
        if checkbox_id in _FACET_TOGGLES:
            transition = getattr(self.engine, _FACET_TOGGLES[checkbox_id])
            self.render_page(transition(event.value))
        elif checkbox_id.startswith("cat_"):
            idx = int(checkbox_id.removeprefix("cat_"))
            self.render_page(
                self.engine.toggle_category(self._category_ids[idx])
            )

    def on_select_changed(self, event: Select.Changed) -> None:
        if event.select.id == "sort_select" and isinstance(event.value, str):
            self.render_page(self.engine.set_sort(event.value))

    def action_next_page(self) -> None:
        self.render_page(self.engine.go_to_page(self.engine.state.page + 1))

    def action_prev_page(self) -> None:
        self.render_page(self.engine.go_to_page(self.engine.state.page - 1))

    def action_focus_search(self) -> None:
        self.query_one("#search_input", Input).focus()

    def action_reset_filters(self) -> None:
        """Restore default facets and sort; the search term is kept."""
        result = self.engine.reset()
        with self.prevent(Checkbox.Changed, Select.Changed, Input.Changed):
            self.query_one("#max_price_input", Input).value = ""
            self.query_one("#toggle_in_stock", Checkbox).value = True
            self.query_one("#toggle_on_sale", Checkbox).value = False
            self.query_one("#toggle_new", Checkbox).value = False
            for checkbox in self.query("#category_toggles Checkbox"):
                cast(Checkbox, checkbox).value = False
            self.query_one("#sort_select", Select).value = "default"
        self.render_page(result)

    async def action_invalidate_cache(self) -> None:
        """Drop cached catalog data and reload from the backend."""
        count = self.service.invalidate()
        logger.info("Cache invalidated: %d entries removed", count)
        self.notify(f"Cache cleared ({count} entries)")
        await self.load_catalog()

    # ── Rendering ────────────────────────────────────────

    def render_page(self, result: PageResult) -> None:
        """Fill the DataTable and status line from *result*."""
        table = cast(
            DataTable[str | Text],
            self.query_one("#results_table", DataTable),
        )
        table.clear()
        names = self.service.category_names
        for p in result.items:
            price_style = "bold green" if p.on_sale else ""
            name = Text(p.name[:60])
            for start, end in SearchRanker.highlight_spans(
                name.plain, self.search_term
            ):
                name.stylize("bold yellow", start, end)
            table.add_row(
                name,
                Text(f"${p.price:,.2f}", style=price_style),
                (
                    f"${p.old_price:,.2f} (-{p.discount_percent}%)"
                    if p.on_sale and p.old_price
                    else ""
                ),
                ", ".join(names.get(c, c) for c in p.categories),
                "✓" if p.in_stock else "✗",
                key=p.id,
            )

        status = self.query_one("#status", Static)
        if result.is_empty:
            text = "❌ No products match the current filters"
        else:
            text = (
                f"✅ {result.total_count} products"
                f" · page {result.page}/{result.total_pages}"
            )
        if self.search_term:
            text += f" · search '{self.search_term}'"
        if result.is_fallback:
            text += " · ⚠ offline catalog"
        status.update(text)

    async def on_data_table_row_selected(
        self, event: DataTable.RowSelected
    ) -> None:
        """Record the view and show the product's details."""
        product_id = event.row_key.value
        if product_id is None:
            return
        product = await self.service.get_product(product_id)
        if product is None:
            self.notify("Product not found", severity="warning")
            return
        summary = product.description or product.name
        self.notify(summary[:200], title=product.name, markup=False)
