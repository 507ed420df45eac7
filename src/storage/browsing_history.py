# src/storage/browsing_history.py

"""Recent search terms and recently viewed products."""

import logging

from src.config.settings import Settings
from src.storage.client_storage import ClientStorage

logger = logging.getLogger("storefront.storage")

RECENT_SEARCHES_KEY = "recentSearches"
RECENTLY_VIEWED_KEY = "recentlyViewed"


def _push_front(
    items: list[str], value: str, cap: int, casefold: bool = False,
) -> list[str]:
    """Move *value* to the front, dropping duplicates and the overflow."""
    def key(item: str) -> str:
        return item.casefold() if casefold else item

    target = key(value)
    kept = [item for item in items if key(item) != target]
    return [value, *kept][:cap]


class BrowsingHistory:
    """Bounded, most-recent-first lists persisted in client storage."""

    def __init__(
        self,
        storage: ClientStorage,
        max_searches: int = Settings.MAX_RECENT_SEARCHES,
        max_viewed: int = Settings.MAX_RECENTLY_VIEWED,
    ) -> None:
        self._storage = storage
        self._max_searches = max_searches
        self._max_viewed = max_viewed

    def _read_list(self, key: str) -> list[str]:
        value = self._storage.get_json(key, default=[])
        if not isinstance(value, list):
            logger.warning("Stored '%s' is not a list; resetting", key)
            self._storage.remove_item(key)
            return []
        return [str(v) for v in value]

    # ── Recent searches ──────────────────────────────────

    def recent_searches(self) -> list[str]:
        """Most-recent-first search terms."""
        return self._read_list(RECENT_SEARCHES_KEY)[: self._max_searches]

    def add_search(self, term: str) -> list[str]:
        """Record *term* (case-insensitive dedupe) and return the list."""
        term = term.strip()
        if len(term) < Settings.SEARCH_MIN_LENGTH:
            return self.recent_searches()
        updated = _push_front(
            self.recent_searches(), term, self._max_searches, casefold=True,
        )
        self._storage.set_json(RECENT_SEARCHES_KEY, updated)
        return updated

    def clear_searches(self) -> None:
        self._storage.remove_item(RECENT_SEARCHES_KEY)

    # ── Recently viewed ──────────────────────────────────

    def recently_viewed(self) -> list[str]:
        """Most-recent-first product ids."""
        return self._read_list(RECENTLY_VIEWED_KEY)[: self._max_viewed]

    def add_viewed(self, product_id: str) -> list[str]:
        """Record a product view and return the list."""
        updated = _push_front(
            self.recently_viewed(), str(product_id), self._max_viewed,
        )
        self._storage.set_json(RECENTLY_VIEWED_KEY, updated)
        return updated
