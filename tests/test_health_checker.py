# tests/test_health_checker.py

"""Tests for the backend endpoint health checker."""

import unittest
from unittest.mock import MagicMock, patch

from src.loaders.api_client import ApiClient
from src.services.health_checker import (
    HealthChecker,
    default_endpoints,
    check_endpoint,
)


def _client(status: int = 200, error: Exception | None = None) -> ApiClient:
    """ApiClient whose session is a MagicMock."""
    with patch("src.loaders.api_client.curl_requests.Session"):
        client = ApiClient("http://api.test")
    session = MagicMock()
    if error is not None:
        session.get.side_effect = error
    else:
        resp = MagicMock()
        resp.status_code = status
        session.get.return_value = resp
    client.session = session
    return client


_PRODUCTS = {"id": "products", "path": "/api/products", "query": "limit=1"}


class TestCheckEndpoint(unittest.TestCase):
    """Tests for the per-endpoint check."""

    def test_ok_status(self) -> None:
        client = _client(200)
        result = check_endpoint(client, _PRODUCTS)
        self.assertEqual(result.status, "ok")
        self.assertEqual(result.endpoint, "products")
        url = client.session.get.call_args[0][0]
        self.assertEqual(url, "http://api.test/api/products?limit=1")

    def test_down_on_http_error(self) -> None:
        result = check_endpoint(_client(503), _PRODUCTS)
        self.assertEqual(result.status, "down")
        self.assertIn("503", result.message)

    def test_down_on_exception(self) -> None:
        result = check_endpoint(
            _client(error=ConnectionError("Connection refused")), _PRODUCTS
        )
        self.assertEqual(result.status, "down")
        self.assertIn("refused", result.message)

    @patch("src.services.health_checker.time.monotonic")
    def test_slow_status(self, mock_monotonic: MagicMock) -> None:
        mock_monotonic.side_effect = [0.0, 3.0]
        result = check_endpoint(_client(200), _PRODUCTS)
        self.assertEqual(result.status, "slow")
        self.assertEqual(result.latency_ms, 3000.0)


class TestHealthChecker(unittest.IsolatedAsyncioTestCase):
    """Tests for the concurrent checker."""

    def test_default_endpoints(self) -> None:
        ids = [e["id"] for e in default_endpoints()]
        self.assertEqual(ids, ["products", "categories"])

    async def test_check_all_covers_every_endpoint(self) -> None:
        client = _client(200)
        checker = HealthChecker(client=client)
        results = await checker.check_all()
        self.assertEqual(
            [r.endpoint for r in results], ["products", "categories"]
        )
        self.assertTrue(all(r.status == "ok" for r in results))
        self.assertEqual(client.session.get.call_count, 2)


if __name__ == "__main__":
    unittest.main()
