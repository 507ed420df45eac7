# src/cli/runner.py

"""Headless CLI runner, reusing the async catalog service."""

import json
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.table import Table

from src.loaders.catalog_loader import CatalogLoader
from src.models.product import Category, Product
from src.models.query import FilterState, PageResult, SortOrder
from src.services.catalog_service import CatalogService
from src.storage.browsing_history import BrowsingHistory
from src.storage.client_storage import ClientStorage
from src.storage.query_cache import QueryCache

logger = logging.getLogger("storefront.cli")

# Stderr console for status messages so stdout stays clean for JSON
_err = Console(stderr=True)


def build_service(
    storage: ClientStorage,
    loader: CatalogLoader | None = None,
) -> CatalogService:
    """Wire one session's cache, history and loader together."""
    return CatalogService(
        loader=loader or CatalogLoader(),
        cache=QueryCache(storage=storage),
        history=BrowsingHistory(storage),
    )


def build_filter_state(
    categories: list[str] | None = None,
    min_price: float | None = None,
    max_price: float | None = None,
    on_sale: bool = False,
    new_arrivals: bool = False,
    include_out_of_stock: bool = False,
    sort: str = SortOrder.DEFAULT.value,
    page: int = 1,
) -> FilterState:
    """Translate CLI flags into the shop page's filter state."""
    return FilterState(
        categories=list(categories or []),
        price_min=max(min_price or 0.0, 0.0),
        price_max=max_price,
        in_stock=not include_out_of_stock,
        on_sale=on_sale,
        new_arrival=new_arrivals,
        sort_order=SortOrder(sort),
        page=page,
    )


def _products_to_dicts(products: list[Product]) -> list[dict[str, object]]:
    """Serialise a product list to plain dicts for JSON output."""
    return [
        {
            "id": p.id,
            "name": p.name,
            "price": p.price,
            "old_price": p.old_price,
            "on_sale": p.on_sale,
            "discount_percent": p.discount_percent,
            "categories": list(p.categories),
            "in_stock": p.in_stock,
            "new_arrival": p.new_arrival,
            "image": p.images.primary,
        }
        for p in products
    ]


def _page_to_dict(result: PageResult) -> dict[str, object]:
    return {
        "page": result.page,
        "total_pages": result.total_pages,
        "total_count": result.total_count,
        "source": result.source.value,
        "items": _products_to_dicts(result.items),
    }


def _print_table(
    result: PageResult,
    category_names: dict[str, str],
    page_size: int,
) -> None:
    """Render a Rich table of one page to stdout."""
    table = Table(
        title=(
            f"Products — page {result.page} of {result.total_pages}"
            f" ({result.total_count} matches)"
        ),
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("#", style="dim", width=4)
    table.add_column("Name", max_width=50)
    table.add_column("Price", justify="right", style="green")
    table.add_column("Was", justify="right", style="dim")
    table.add_column("Categories", style="magenta")
    table.add_column("Stock", justify="center")

    offset = (result.page - 1) * page_size
    for idx, p in enumerate(result.items, 1):
        was = (
            f"${p.old_price:,.2f} (-{p.discount_percent}%)"
            if p.on_sale and p.old_price
            else "—"
        )
        stock = "[green]✓[/green]" if p.in_stock else "[red]✗[/red]"
        table.add_row(
            str(offset + idx),
            p.name[:50],
            f"${p.price:,.2f}",
            was,
            ", ".join(category_names.get(c, c) for c in p.categories),
            stock,
        )

    Console().print(table)


def _print_json(payload: object) -> None:
    json.dump(payload, sys.stdout, ensure_ascii=False, indent=2)
    sys.stdout.write("\n")


def _warn_if_degraded(result: PageResult) -> None:
    if result.is_fallback:
        _err.print(
            "[yellow]Backend unavailable; showing the bundled "
            "catalog.[/yellow]"
        )


async def cli_browse(
    service: CatalogService,
    state: FilterState,
    query: str | None,
    output_format: str,
) -> int:
    """Print one slice of the catalog; exit code 0=results, 1=empty."""
    query = (query or "").strip()
    if query:
        _err.print(f"[bold]Searching:[/bold] {query}")
        search = await service.search(query)
        if search.related:
            _err.print(
                f"[dim]Related: {' · '.join(search.related)}[/dim]"
            )

    result = await service.browse(state, search_term=query)
    _warn_if_degraded(result)

    if result.is_empty:
        _err.print("[yellow]No products found.[/yellow]")
        if output_format == "json":
            _print_json(_page_to_dict(result))
        return 1

    _err.print(
        f"[green]✓ {result.total_count} products, "
        f"page {result.page}/{result.total_pages}[/green]"
    )
    if output_format == "table":
        _print_table(result, service.category_names, service.page_size)
    else:
        _print_json(_page_to_dict(result))
    return 0


def _categories_to_dicts(categories: list[Category]) -> list[dict[str, object]]:
    return [
        {"id": c.id, "name": c.name, "count": c.count}
        for c in categories
    ]


async def cli_categories(service: CatalogService, output_format: str) -> int:
    """List category facets with counts over the whole catalog."""
    facets = await service.facets()
    if not facets:
        _err.print("[yellow]No categories found.[/yellow]")
        return 1

    if output_format == "json":
        _print_json(_categories_to_dicts(facets))
        return 0

    table = Table(title="Categories", title_style="bold cyan")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="bold")
    table.add_column("Products", justify="right")
    for cat in facets:
        table.add_row(cat.id, cat.name, str(cat.count))
    Console().print(table)
    return 0


def cli_recent(service: CatalogService) -> int:
    """Print recent searches, most recent first."""
    terms = service.history.recent_searches() if service.history else []
    if not terms:
        _err.print("[dim]No recent searches.[/dim]")
        return 1
    for term in terms:
        Console().print(term)
    return 0


async def run_catalog_command(
    query: str | None,
    state: FilterState,
    output_format: str,
    list_categories: bool = False,
    show_recent: bool = False,
    db_path: Path | None = None,
) -> int:
    """Open client storage, run one CLI command, then close storage."""
    storage = ClientStorage(db_path)
    try:
        service = build_service(storage)
        if show_recent:
            return cli_recent(service)
        if list_categories:
            return await cli_categories(service, output_format)
        return await cli_browse(service, state, query, output_format)
    finally:
        storage.close()


async def run_health_check() -> int:
    """Run a connectivity check against the backend endpoints."""
    from src.services.health_checker import HealthChecker

    _err.print("[bold]Running backend health check...[/bold]")
    checker = HealthChecker()
    results = await checker.check_all()

    table = Table(
        title="Backend Health Check",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("Endpoint", style="bold")
    table.add_column("Status", justify="center")
    table.add_column("Latency", justify="right")
    table.add_column("Notes", style="dim")

    any_down = False
    for r in results:
        if r.status == "ok":
            status = "[green]✅ OK[/green]"
        elif r.status == "slow":
            status = "[yellow]⚠️  SLOW[/yellow]"
        else:
            status = "[red]❌ DOWN[/red]"
            any_down = True

        latency = (
            f"{r.latency_ms:.0f}ms"
            if r.latency_ms > 0
            else "—"
        )
        table.add_row(
            r.endpoint, status, latency, r.message,
        )

    Console().print(table)
    return 1 if any_down else 0
