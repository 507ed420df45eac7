# src/services/health_checker.py

"""Backend endpoint connectivity health checker."""

import asyncio
import logging
import time
from dataclasses import dataclass

from src.config.settings import Settings
from src.loaders.api_client import ApiClient

logger = logging.getLogger("storefront.health")

_HEALTH_TIMEOUT = 10  # seconds per endpoint
_SLOW_MS = 2000


@dataclass
class HealthResult:
    """Result of a single endpoint health check."""

    endpoint: str
    status: str  # "ok", "slow", "down"
    latency_ms: float
    message: str


def default_endpoints() -> list[dict[str, str]]:
    """The catalog endpoints the storefront depends on."""
    return [
        {
            "id": "products",
            "path": Settings.PRODUCTS_ENDPOINT,
            "query": "limit=1",
        },
        {"id": "categories", "path": Settings.CATEGORIES_ENDPOINT, "query": ""},
    ]


def check_endpoint(
    client: ApiClient, endpoint: dict[str, str],
) -> HealthResult:
    """Issue one GET against *endpoint* and classify the outcome."""
    endpoint_id = endpoint["id"]
    url = client.url_for(endpoint["path"])
    if endpoint.get("query"):
        url = f"{url}?{endpoint['query']}"

    start = time.monotonic()
    try:
        resp = client.session.get(
            url,
            headers=client.settings.DEFAULT_HEADERS,
            timeout=_HEALTH_TIMEOUT,
        )
        elapsed_ms = (time.monotonic() - start) * 1000

        if not 200 <= resp.status_code < 300:
            return HealthResult(
                endpoint=endpoint_id,
                status="down",
                latency_ms=elapsed_ms,
                message=f"HTTP {resp.status_code}",
            )

        if elapsed_ms > _SLOW_MS:
            return HealthResult(
                endpoint=endpoint_id,
                status="slow",
                latency_ms=elapsed_ms,
                message="High latency",
            )

        return HealthResult(
            endpoint=endpoint_id,
            status="ok",
            latency_ms=elapsed_ms,
            message="",
        )

    except Exception as exc:
        elapsed_ms = (time.monotonic() - start) * 1000
        return HealthResult(
            endpoint=endpoint_id,
            status="down",
            latency_ms=elapsed_ms,
            message=str(exc)[:80],
        )


class HealthChecker:
    """Runs concurrent checks against the backend catalog endpoints."""

    def __init__(
        self,
        client: ApiClient | None = None,
        endpoints: list[dict[str, str]] | None = None,
    ) -> None:
        self.client = client or ApiClient()
        self.endpoints = endpoints or default_endpoints()

    async def check_all(self) -> list[HealthResult]:
        """Check every endpoint concurrently."""
        tasks = [
            asyncio.to_thread(check_endpoint, self.client, ep)
            for ep in self.endpoints
        ]
        results: list[HealthResult] = list(
            await asyncio.gather(*tasks)
        )
        for r in results:
            logger.info(
                "Health check %s: %s (%.0fms) %s",
                r.endpoint,
                r.status,
                r.latency_ms,
                r.message,
            )
        return results
