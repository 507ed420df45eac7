# src/loaders/errors.py

"""Catalog loading failures.

These never escape the loader: callers receive the seed catalog
tagged as fallback instead.
"""


class CatalogError(Exception):
    """Base error for catalog loading."""


class BackendUnavailableError(CatalogError):
    """Network error, non-2xx status, or an open circuit breaker."""


class MalformedPayloadError(CatalogError):
    """The response body is not a usable catalog envelope."""
