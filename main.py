# main.py

"""Entry point for the storefront catalog browser (TUI or headless CLI)."""

import argparse
import asyncio
import logging
import sys

from src.config.logging_config import setup_logging
from src.config.settings import Settings

logger = logging.getLogger("storefront.main")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    sort_ids = [s["id"] for s in Settings.SORT_OPTIONS]

    parser = argparse.ArgumentParser(
        prog="storefront",
        description="Browse, search and filter the storefront catalog.",
        epilog=f"Backend: {Settings.API_BASE_URL}",
    )
    parser.add_argument(
        "query",
        nargs="?",
        default=None,
        help="Search query. Omit (with no other flags) for the TUI.",
    )
    parser.add_argument(
        "-c",
        "--category",
        action="append",
        default=None,
        dest="categories",
        metavar="ID",
        help="Category facet; repeat to match any of several.",
    )
    parser.add_argument(
        "--min-price",
        type=float,
        default=None,
        help="Lower price bound (inclusive).",
    )
    parser.add_argument(
        "--max-price",
        type=float,
        default=None,
        help="Upper price bound (inclusive).",
    )
    parser.add_argument(
        "--on-sale",
        action="store_true",
        default=False,
        help="Only discounted products.",
    )
    parser.add_argument(
        "--new-arrivals",
        action="store_true",
        default=False,
        help="Only new arrivals.",
    )
    parser.add_argument(
        "--include-out-of-stock",
        action="store_true",
        default=False,
        help="Also list products that are out of stock.",
    )
    parser.add_argument(
        "--sort",
        choices=sort_ids,
        default="default",
        help="Sort order (default: catalog order / relevance).",
    )
    parser.add_argument(
        "-p",
        "--page",
        type=int,
        default=1,
        help="Page number; out-of-range pages show page 1.",
    )
    parser.add_argument(
        "-f",
        "--format",
        choices=["json", "table"],
        default="json",
        dest="output_format",
        help="Output format (default: json).",
    )
    parser.add_argument(
        "--categories",
        action="store_true",
        default=False,
        dest="list_categories",
        help="List category facets with product counts.",
    )
    parser.add_argument(
        "--recent",
        action="store_true",
        default=False,
        help="Print recent searches.",
    )
    parser.add_argument(
        "--health",
        action="store_true",
        default=False,
        help="Run a connectivity health check on the backend.",
    )
    return parser


def _wants_cli(args: argparse.Namespace) -> bool:
    """True when any flag asks for a headless slice."""
    return bool(
        args.query is not None
        or args.categories
        or args.min_price is not None
        or args.max_price is not None
        or args.on_sale
        or args.new_arrivals
        or args.include_out_of_stock
        or args.sort != "default"
        or args.page != 1
        or args.list_categories
        or args.recent
    )


def _run_tui() -> None:
    """Launch the interactive Textual TUI."""
    from src.ui.app import StorefrontApp

    try:
        app = StorefrontApp()
        app.run()
    except Exception:
        logger.critical("Fatal error during TUI run", exc_info=True)
        raise
    finally:
        logger.info("storefront TUI shutting down")


def _run_cli(args: argparse.Namespace) -> None:
    """Run a headless catalog command and exit."""
    from src.cli.runner import build_filter_state, run_catalog_command

    state = build_filter_state(
        categories=args.categories,
        min_price=args.min_price,
        max_price=args.max_price,
        on_sale=args.on_sale,
        new_arrivals=args.new_arrivals,
        include_out_of_stock=args.include_out_of_stock,
        sort=args.sort,
        page=args.page,
    )
    exit_code = asyncio.run(
        run_catalog_command(
            query=args.query,
            state=state,
            output_format=args.output_format,
            list_categories=args.list_categories,
            show_recent=args.recent,
        )
    )
    sys.exit(exit_code)


def _run_health_check() -> None:
    """Run backend connectivity health check."""
    from src.cli.runner import run_health_check

    exit_code = asyncio.run(run_health_check())
    sys.exit(exit_code)


def main() -> None:
    """Route to TUI (no args) or headless CLI (query or flags)."""
    log_file = setup_logging()
    logger.info("storefront starting, log file: %s", log_file)

    parser = _build_parser()
    args = parser.parse_args()

    if args.health:
        _run_health_check()
    elif _wants_cli(args):
        _run_cli(args)
    else:
        _run_tui()


if __name__ == "__main__":
    main()
