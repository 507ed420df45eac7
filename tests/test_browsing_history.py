# tests/test_browsing_history.py

"""Tests for recent searches and recently viewed products."""

import tempfile
import unittest
from pathlib import Path

from src.storage.browsing_history import (
    RECENT_SEARCHES_KEY,
    RECENTLY_VIEWED_KEY,
    BrowsingHistory,
)
from src.storage.client_storage import ClientStorage


class TestBrowsingHistory(unittest.TestCase):
    """BrowsingHistory unit tests."""

    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.storage = ClientStorage(Path(self._tmp.name) / "state.db")
        self.history = BrowsingHistory(self.storage)

    def tearDown(self) -> None:
        self.storage.close()
        self._tmp.cleanup()

    # ── Recent searches ──────────────────────────────────

    def test_empty_by_default(self) -> None:
        self.assertEqual(self.history.recent_searches(), [])
        self.assertEqual(self.history.recently_viewed(), [])

    def test_most_recent_first(self) -> None:
        self.history.add_search("mouse")
        self.history.add_search("headphones")
        self.assertEqual(
            self.history.recent_searches(), ["headphones", "mouse"]
        )

    def test_duplicate_search_moves_to_front(self) -> None:
        """Dedupe is case-insensitive and keeps the latest spelling."""
        self.history.add_search("mouse")
        self.history.add_search("bag")
        self.history.add_search("Mouse")
        self.assertEqual(self.history.recent_searches(), ["Mouse", "bag"])

    def test_searches_capped_at_five(self) -> None:
        for term in ["aa", "bb", "cc", "dd", "ee", "ff"]:
            self.history.add_search(term)
        self.assertEqual(
            self.history.recent_searches(), ["ff", "ee", "dd", "cc", "bb"]
        )

    def test_short_terms_not_recorded(self) -> None:
        self.history.add_search(" a ")
        self.assertEqual(self.history.recent_searches(), [])

    def test_clear_searches(self) -> None:
        self.history.add_search("mouse")
        self.history.clear_searches()
        self.assertEqual(self.history.recent_searches(), [])

    def test_searches_persist_across_instances(self) -> None:
        self.history.add_search("mouse")
        self.assertEqual(
            BrowsingHistory(self.storage).recent_searches(), ["mouse"]
        )

    # ── Recently viewed ──────────────────────────────────

    def test_viewed_dedupes_and_caps(self) -> None:
        for pid in range(12):
            self.history.add_viewed(str(pid))
        self.history.add_viewed("5")
        viewed = self.history.recently_viewed()
        self.assertEqual(len(viewed), 10)
        self.assertEqual(viewed[0], "5")
        self.assertEqual(viewed.count("5"), 1)

    # ── Corruption ───────────────────────────────────────

    def test_corrupt_value_reads_empty(self) -> None:
        self.storage.set_item(RECENT_SEARCHES_KEY, "not json")
        self.assertEqual(self.history.recent_searches(), [])

    def test_non_list_value_reset(self) -> None:
        self.storage.set_json(RECENTLY_VIEWED_KEY, {"id": 1})
        with self.assertLogs("storefront.storage", level="WARNING"):
            self.assertEqual(self.history.recently_viewed(), [])
        self.assertIsNone(self.storage.get_item(RECENTLY_VIEWED_KEY))


if __name__ == "__main__":
    unittest.main()
