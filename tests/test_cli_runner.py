# tests/test_cli_runner.py

"""Tests for the headless CLI runner."""

import io
import json
import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

from src.cli.runner import (
    build_filter_state,
    build_service,
    cli_browse,
    cli_categories,
    cli_recent,
    run_catalog_command,
)
from src.loaders.catalog_loader import CatalogLoad
from src.models.product import Category, Product
from src.models.query import DataSource, SortOrder
from src.storage.client_storage import ClientStorage


def _loader(source: DataSource = DataSource.LIVE) -> MagicMock:
    loader = MagicMock()
    loader.load.return_value = CatalogLoad(
        products=[
            Product(id="1", name="Wireless Headphones", price=199.0,
                    categories=("electronics",)),
            Product(id="2", name="Cotton Shirt", price=25.0,
                    old_price=40.0, categories=("clothing",)),
            Product(id="3", name="Wireless Mouse", price=29.0,
                    categories=("electronics",), in_stock=False),
        ],
        source=source,
    )
    loader.load_categories.return_value = (
        [
            Category(id="electronics", name="Electronics"),
            Category(id="clothing", name="Clothing"),
        ],
        DataSource.LIVE,
    )
    return loader


class TestBuildFilterState(unittest.TestCase):
    """CLI flag translation."""

    def test_defaults(self) -> None:
        state = build_filter_state()
        self.assertEqual(state.categories, [])
        self.assertTrue(state.in_stock)
        self.assertIsNone(state.price_max)
        self.assertEqual(state.sort_order, SortOrder.DEFAULT)

    def test_flags(self) -> None:
        state = build_filter_state(
            categories=["electronics"],
            min_price=-5.0,
            max_price=100.0,
            on_sale=True,
            include_out_of_stock=True,
            sort="price-high",
            page=3,
        )
        self.assertEqual(state.price_min, 0.0)
        self.assertEqual(state.price_max, 100.0)
        self.assertFalse(state.in_stock)
        self.assertTrue(state.on_sale)
        self.assertEqual(state.sort_order, SortOrder.PRICE_HIGH)
        self.assertEqual(state.page, 3)


class TestCliCommands(unittest.IsolatedAsyncioTestCase):
    """cli_browse / cli_categories / cli_recent output and exit codes."""

    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.db_path = Path(self._tmp.name) / "state.db"
        self.storage = ClientStorage(self.db_path)

    def tearDown(self) -> None:
        self.storage.close()
        self._tmp.cleanup()

    async def test_browse_json_output(self) -> None:
        service = build_service(self.storage, loader=_loader())
        with patch("sys.stdout", new_callable=io.StringIO) as out:
            code = await cli_browse(
                service, build_filter_state(), None, "json"
            )
        self.assertEqual(code, 0)
        payload = json.loads(out.getvalue())
        self.assertEqual(payload["total_count"], 2)
        self.assertEqual(payload["source"], "live")
        self.assertEqual([p["id"] for p in payload["items"]], ["1", "2"])
        self.assertTrue(payload["items"][1]["on_sale"])
        self.assertEqual(payload["items"][1]["discount_percent"], 38)

    async def test_browse_with_query_records_search(self) -> None:
        service = build_service(self.storage, loader=_loader())
        state = build_filter_state(include_out_of_stock=True)
        with patch("sys.stdout", new_callable=io.StringIO) as out:
            code = await cli_browse(service, state, "wireless", "json")
        self.assertEqual(code, 0)
        payload = json.loads(out.getvalue())
        self.assertEqual([p["id"] for p in payload["items"]], ["1", "3"])
        assert service.history is not None
        self.assertEqual(service.history.recent_searches(), ["wireless"])

    async def test_browse_empty_exits_one(self) -> None:
        service = build_service(self.storage, loader=_loader())
        state = build_filter_state(min_price=1000.0)
        with patch("sys.stdout", new_callable=io.StringIO) as out:
            code = await cli_browse(service, state, None, "json")
        self.assertEqual(code, 1)
        payload = json.loads(out.getvalue())
        self.assertEqual(payload["items"], [])
        self.assertEqual(payload["total_pages"], 1)

    async def test_browse_fallback_source_reported(self) -> None:
        service = build_service(
            self.storage, loader=_loader(DataSource.FALLBACK)
        )
        with patch("sys.stdout", new_callable=io.StringIO) as out:
            await cli_browse(service, build_filter_state(), None, "json")
        self.assertEqual(json.loads(out.getvalue())["source"], "fallback")

    async def test_browse_table_output(self) -> None:
        service = build_service(self.storage, loader=_loader())
        with patch("sys.stdout", new_callable=io.StringIO) as out:
            code = await cli_browse(
                service, build_filter_state(), None, "table"
            )
        self.assertEqual(code, 0)
        self.assertIn("Wireless Headphones", out.getvalue())

    async def test_categories_json(self) -> None:
        service = build_service(self.storage, loader=_loader())
        with patch("sys.stdout", new_callable=io.StringIO) as out:
            code = await cli_categories(service, "json")
        self.assertEqual(code, 0)
        self.assertEqual(
            json.loads(out.getvalue()),
            [
                {"id": "electronics", "name": "Electronics", "count": 2},
                {"id": "clothing", "name": "Clothing", "count": 1},
            ],
        )

    def test_recent_empty_exits_one(self) -> None:
        service = build_service(self.storage, loader=_loader())
        self.assertEqual(cli_recent(service), 1)

    async def test_run_catalog_command_closes_storage(self) -> None:
        with patch("src.cli.runner.CatalogLoader", return_value=_loader()), \
                patch("sys.stdout", new_callable=io.StringIO):
            code = await run_catalog_command(
                query="shirt",
                state=build_filter_state(),
                output_format="json",
                db_path=self.db_path,
            )
        self.assertEqual(code, 0)
        self.assertEqual(self.storage.get_json("recentSearches"), ["shirt"])


if __name__ == "__main__":
    unittest.main()
