# src/services/debouncer.py

"""Cancellable delayed evaluation for search-as-you-type."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from src.config.settings import Settings

logger = logging.getLogger("storefront.debounce")

SearchCallback = Callable[[str], Awaitable[Any] | Any]


def _log_failure(task: asyncio.Task[Any]) -> None:
    """Surface a callback error instead of leaving it unretrieved."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error("Debounced search failed", exc_info=exc)


class Debouncer:
    """Coalesce rapid input into one evaluation of the settled query.

    Holds at most one pending task.  Every :meth:`schedule` cancels the
    pending task and starts a new delay.  When the delay elapses the
    captured query is compared with the live one; a superseded query
    is discarded instead of evaluated.
    """

    def __init__(
        self,
        delay: float = Settings.SEARCH_DELAY,
        min_length: int = Settings.SEARCH_MIN_LENGTH,
    ) -> None:
        self.delay = delay
        self.min_length = min_length
        self.live_query: str = ""
        self._pending: asyncio.Task[Any] | None = None

    @property
    def pending(self) -> bool:
        """True while an evaluation is scheduled but not yet run."""
        return self._pending is not None and not self._pending.done()

    def cancel(self) -> None:
        """Drop the pending evaluation, if any."""
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None

    def schedule(
        self, query: str, callback: SearchCallback,
    ) -> asyncio.Task[Any] | None:
        """Record *query* as live and (re)schedule *callback* for it.

        Queries shorter than ``min_length`` only cancel the pending
        evaluation.  Must be called from a running event loop.
        """
        query = query.strip()
        self.live_query = query
        self.cancel()
        if len(query) < self.min_length:
            return None
        self._pending = asyncio.get_running_loop().create_task(
            self._run(query, callback)
        )
        self._pending.add_done_callback(_log_failure)
        return self._pending

    async def _run(self, query: str, callback: SearchCallback) -> Any:
        await asyncio.sleep(self.delay)
        if query != self.live_query:
            logger.debug(
                "Discarding superseded query '%s' (live: '%s')",
                query,
                self.live_query,
            )
            return None
        result = callback(query)
        if asyncio.iscoroutine(result):
            result = await result
        # A newer query may have gone live while the callback awaited
        if query != self.live_query:
            logger.debug("Discarding late result for '%s'", query)
            return None
        return result
