# tests/test_client_storage.py

"""Tests for the SQLite key/value client storage."""

import tempfile
import unittest
from pathlib import Path

from src.storage.client_storage import ClientStorage


class TestClientStorage(unittest.TestCase):
    """ClientStorage unit tests against a temporary database."""

    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.db_path = Path(self._tmp.name) / "nested" / "state.db"
        self.storage = ClientStorage(self.db_path)

    def tearDown(self) -> None:
        self.storage.close()
        self._tmp.cleanup()

    def test_creates_parent_directory(self) -> None:
        self.assertTrue(self.db_path.exists())

    def test_set_and_get_item(self) -> None:
        self.storage.set_item("a", "1")
        self.assertEqual(self.storage.get_item("a"), "1")

    def test_missing_item_is_none(self) -> None:
        self.assertIsNone(self.storage.get_item("missing"))

    def test_set_item_overwrites(self) -> None:
        self.storage.set_item("a", "1")
        self.storage.set_item("a", "2")
        self.assertEqual(self.storage.get_item("a"), "2")
        self.assertEqual(self.storage.keys(), ["a"])

    def test_remove_item(self) -> None:
        self.storage.set_item("a", "1")
        self.storage.remove_item("a")
        self.assertIsNone(self.storage.get_item("a"))

    def test_remove_prefix(self) -> None:
        self.storage.set_item("cache:1", "x")
        self.storage.set_item("cache:2", "y")
        self.storage.set_item("other", "z")
        self.assertEqual(self.storage.remove_prefix("cache:"), 2)
        self.assertEqual(self.storage.keys(), ["other"])

    def test_remove_prefix_treats_wildcards_literally(self) -> None:
        self.storage.set_item("a_b", "1")
        self.storage.set_item("axb", "2")
        self.assertEqual(self.storage.remove_prefix("a_"), 1)
        self.assertEqual(self.storage.keys(), ["axb"])

    def test_keys_with_prefix(self) -> None:
        self.storage.set_item("p:1", "x")
        self.storage.set_item("q:1", "y")
        self.assertEqual(self.storage.keys("p:"), ["p:1"])

    def test_clear(self) -> None:
        self.storage.set_item("a", "1")
        self.storage.clear()
        self.assertEqual(self.storage.keys(), [])

    def test_json_round_trip(self) -> None:
        self.storage.set_json("list", ["a", "b"])
        self.assertEqual(self.storage.get_json("list"), ["a", "b"])

    def test_get_json_default_when_missing(self) -> None:
        self.assertEqual(self.storage.get_json("x", default=[]), [])

    def test_corrupt_json_dropped(self) -> None:
        """Unparseable values read as the default and are removed."""
        self.storage.set_item("bad", "[unterminated")
        with self.assertLogs("storefront.storage", level="WARNING"):
            self.assertEqual(self.storage.get_json("bad", default=[]), [])
        self.assertIsNone(self.storage.get_item("bad"))

    def test_values_survive_reopen(self) -> None:
        self.storage.set_item("a", "1")
        self.storage.close()
        self.storage = ClientStorage(self.db_path)
        self.assertEqual(self.storage.get_item("a"), "1")


if __name__ == "__main__":
    unittest.main()
