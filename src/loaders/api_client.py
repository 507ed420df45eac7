# src/loaders/api_client.py

"""HTTP transport for the backend catalog API."""

import json
import logging
import time
from typing import Any

import httpx
from curl_cffi import requests as curl_requests

from src.config.settings import Settings
from src.loaders.errors import BackendUnavailableError, MalformedPayloadError

logger = logging.getLogger("storefront.api")


class ClientRejectedError(Exception):
    """The backend answered with a definitive 4xx (other than 429)."""

    def __init__(self, status: int, url: str) -> None:
        super().__init__(f"HTTP {status} from {url}")
        self.status = status


class LoadBreaker:
    """Counts consecutive failed ``get_json`` calls.

    A call fails when neither transport produced a usable body.  After
    ``threshold`` such calls in a row every call is refused until
    ``cooldown`` seconds have passed; the next call then goes through
    and its outcome decides whether the breaker re-arms.
    """

    def __init__(self, threshold: int, cooldown: float) -> None:
        self.threshold = threshold
        self.cooldown = cooldown
        self.failures = 0
        self.open_until: float | None = None

    @property
    def is_open(self) -> bool:
        return self.open_until is not None

    def allows(self, now: float) -> bool:
        """Return False while the breaker refuses calls."""
        if self.open_until is None:
            return True
        if now < self.open_until:
            return False
        logger.info("Backend breaker cooled down, letting one call through")
        self.open_until = None
        return True

    def succeeded(self) -> None:
        self.failures = 0
        self.open_until = None

    def failed(self, now: float) -> None:
        self.failures += 1
        if self.failures >= self.threshold and self.open_until is None:
            self.open_until = now + self.cooldown
            logger.error(
                "Backend breaker open for %.0fs after %d failed loads",
                self.cooldown,
                self.failures,
            )


class ApiClient:
    """Blocking JSON client with retries, back-off and a load breaker.

    curl_cffi is the primary transport.  When it is exhausted the
    request is replayed once through a plain httpx client (no browser
    impersonation).  A 4xx answer other than 429 is final and is never
    replayed.  If both transports fail the call raises
    :class:`BackendUnavailableError`.
    """

    def __init__(self, base_url: str | None = None) -> None:
        self.settings = Settings()
        self.base_url = (base_url or self.settings.API_BASE_URL).rstrip("/")
        self.session = curl_requests.Session(
            impersonate=self.settings.IMPERSONATE_BROWSER
        )
        self.breaker = LoadBreaker(
            self.settings.CIRCUIT_BREAKER_THRESHOLD,
            self.settings.CIRCUIT_BREAKER_COOLDOWN,
        )
        self.retry_delay: float = self.settings.REQUEST_DELAY

    def url_for(self, path: str) -> str:
        """Join *path* onto the configured base URL."""
        return f"{self.base_url}/{path.lstrip('/')}"

    def _back_off(self, status: int) -> None:
        """Double the retry delay on a 429, capped, and wait it out."""
        ceiling = self.settings.REQUEST_DELAY * self.settings.MAX_DELAY_MULTIPLIER
        self.retry_delay = min(self.retry_delay * 2, ceiling)
        logger.warning(
            "HTTP %d, waiting %.1fs before retrying", status, self.retry_delay
        )
        time.sleep(self.retry_delay)

    def _fetch_get(
        self,
        url: str,
        params: dict[str, str] | None,
    ) -> str | None:
        """GET through curl_cffi with retries; return the body or None.

        Raises:
            ClientRejectedError: the backend refused the request itself.
        """
        for attempt in range(1, self.settings.MAX_RETRIES + 1):
            try:
                resp = self.session.get(
                    url,
                    params=params,
                    headers=self.settings.DEFAULT_HEADERS,
                    timeout=self.settings.REQUEST_TIMEOUT,
                )
            except Exception as exc:
                logger.warning(
                    "Request error on attempt %d for %s: %s",
                    attempt,
                    url,
                    exc,
                    exc_info=True,
                )
                time.sleep(self.retry_delay * attempt)
                continue

            status = resp.status_code
            if 200 <= status < 300:
                return resp.text
            if status == 429:
                self._back_off(status)
            elif 400 <= status < 500:
                raise ClientRejectedError(status, url)
            else:
                logger.warning(
                    "HTTP %d from %s on attempt %d", status, url, attempt
                )
        return None

    def _fetch_fallback(
        self,
        url: str,
        params: dict[str, str] | None,
    ) -> str | None:
        """Replay the GET through httpx; return the body or None."""
        logger.info("curl_cffi exhausted for %s, falling back to httpx", url)
        try:
            with httpx.Client(timeout=self.settings.REQUEST_TIMEOUT) as client:
                resp = client.get(
                    url,
                    params=params,
                    headers=self.settings.DEFAULT_HEADERS,
                )
        except httpx.HTTPError as exc:
            logger.error("httpx fallback also failed: %s", exc, exc_info=True)
            return None
        if 200 <= resp.status_code < 300:
            return resp.text
        logger.warning("httpx got HTTP %d from %s", resp.status_code, url)
        return None

    def get_json(
        self,
        path: str,
        params: dict[str, str] | None = None,
    ) -> Any:
        """GET *path* and decode the JSON body.

        Raises:
            BackendUnavailableError: breaker open, transport failure or
                non-2xx answer.
            MalformedPayloadError: the body is not JSON.
        """
        url = self.url_for(path)
        if not self.breaker.allows(time.time()):
            raise BackendUnavailableError(f"breaker open, skipping {url}")

        try:
            body = self._fetch_get(url, params)
        except ClientRejectedError as exc:
            # The backend is up; it just has nothing for this request
            self.breaker.succeeded()
            raise BackendUnavailableError(str(exc)) from exc
        if body is None:
            body = self._fetch_fallback(url, params)
        if body is None:
            self.breaker.failed(time.time())
            raise BackendUnavailableError(f"no usable response from {url}")

        self.breaker.succeeded()
        self.retry_delay = self.settings.REQUEST_DELAY
        try:
            return json.loads(body)
        except ValueError as exc:
            raise MalformedPayloadError(
                f"non-JSON body from {url}"
            ) from exc
