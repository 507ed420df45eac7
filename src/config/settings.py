# src/config/settings.py

"""Central configuration for the storefront catalog engine."""

import os
from pathlib import Path

from curl_cffi.requests import BrowserTypeLiteral
from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Central configuration for the storefront catalog engine."""

    # --- Backend API ---
    API_BASE_URL: str = os.getenv(
        "CATALOG_API_BASE", "http://localhost:3002"
    ).rstrip("/")
    PRODUCTS_ENDPOINT: str = "/api/products"
    CATEGORIES_ENDPOINT: str = "/api/categories"
    REQUEST_DELAY: float = 0.5          # Base back-off between retries
    REQUEST_TIMEOUT: int = 10           # Seconds before a request times out
    MAX_RETRIES: int = 2                # Attempts per transport

    # --- Resilience ---
    CIRCUIT_BREAKER_THRESHOLD: int = 3  # Consecutive failed loads to trip
    CIRCUIT_BREAKER_COOLDOWN: float = 30.0
    MAX_DELAY_MULTIPLIER: int = 8       # Cap for adaptive backoff

    # --- Browser Impersonation ---
    IMPERSONATE_BROWSER: BrowserTypeLiteral = "chrome131"
    DEFAULT_HEADERS: dict[str, str] = {
        "Accept": "application/json",
        "Accept-Language": "en-US,en;q=0.9",
        "Content-Type": "application/json",
    }

    # --- Cache ---
    QUERY_CACHE_TTL: float = 300.0      # 5 minutes

    # --- Catalog normalisation ---
    PLACEHOLDER_IMAGE: str = "images/placeholder.jpg"
    PLACEHOLDER_NAME: str = "Untitled product"
    INLINE_IMAGE_MAX_LENGTH: int = 100  # Longer data-URIs are dropped

    # --- Shop / search ---
    PAGE_SIZE: int = 9
    SEARCH_MIN_LENGTH: int = 2
    SEARCH_DELAY: float = 0.3           # Debounce window (secs)
    MAX_SUGGESTIONS: int = 6
    MAX_RELATED_SEARCHES: int = 8
    MAX_RECENT_SEARCHES: int = 5
    MAX_RECENTLY_VIEWED: int = 10

    # --- Relevance weights ---
    NAME_WEIGHT: int = 10
    NAME_PREFIX_BONUS: int = 15
    DESCRIPTION_WEIGHT: int = 5
    CATEGORY_WEIGHT: int = 7

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    DATA_DIR: Path = BASE_DIR / "data"
    CLIENT_DB_PATH: Path = DATA_DIR / "client_state.db"
    LOGS_DIR: Path = BASE_DIR / "logs"
    LOG_RETENTION: int = 20              # Run logs kept in LOGS_DIR
    LOG_LEVEL: str = os.getenv("STOREFRONT_LOG_LEVEL", "WARNING")

    # --- Sort options (registry shared by CLI and TUI) ---
    SORT_OPTIONS: list[dict[str, str]] = [
        {"id": "default", "label": "Featured"},
        {"id": "price-low", "label": "Price: Low to High"},
        {"id": "price-high", "label": "Price: High to Low"},
        {"id": "name-asc", "label": "Name: A to Z"},
        {"id": "name-desc", "label": "Name: Z to A"},
        {"id": "newest", "label": "Newest"},
    ]
