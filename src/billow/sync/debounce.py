"""
Debounced parameter changes for search-as-you-type views.
"""

import asyncio
from typing import Any

from billow.config import DEFAULT_DEBOUNCE_MS
from billow.lib import logs
from billow.sync.query_cache import EntrySnapshot, QueryCacheEntry

LOG = logs.logger(__file__)


class DebouncedQueryController:
    """
    Feeds parameter changes into a query cache entry after a quiet window.

    The first change the controller sees (the page's initial load) is
    issued immediately. Every later change restarts the window and only the
    latest parameters are fetched once it elapses. A result is applied only
    while its parameters are still the latest ones.

    Attributes:
        entry: Entry receiving the fetches.
        delay: Quiet window in seconds.
        latest: Most recent parameters passed to ``update``.
        closed: True after ``close``.
    """

    def __init__(
        self, entry: QueryCacheEntry, delay: float = DEFAULT_DEBOUNCE_MS / 1000
    ) -> None:
        if delay < 0:
            raise ValueError("delay must not be negative")
        self.entry = entry
        self.delay = delay
        self.latest: Any = None
        self.closed = False
        self._started = False
        self._timer: asyncio.TimerHandle | None = None
        self._task: asyncio.Task | None = None

    @property
    def pending(self) -> bool:
        """True while a change is waiting for its window to elapse."""
        return self._timer is not None

    def update(self, params: Any) -> None:
        """Record a parameter change. Must run inside the event loop."""
        if self.closed:
            return
        self.latest = params
        # Only the initial load skips the window, even after a long quiet period.
        if not self._started:
            self._started = True
            self._issue()
            return
        self._cancel_timer()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.delay, self._fire)

    async def flush(self) -> EntrySnapshot:
        """Fire a pending change now and wait for its result."""
        if self._timer is not None:
            self._cancel_timer()
            self._issue()
        return await self.join()

    async def join(self) -> EntrySnapshot:
        """Wait for the most recently issued fetch to finish."""
        if self._task is not None:
            await self._task
        return self.entry.snapshot()

    def close(self) -> None:
        """Cancel the pending timer; later results are ignored."""
        self.closed = True
        self._cancel_timer()

    def _fire(self) -> None:
        self._timer = None
        if not self.closed:
            self._issue()

    def _issue(self) -> None:
        params = self.latest
        if self.entry.is_ready_for(params):
            LOG.debug("debounce - %s already ready for params", self.entry.name)
            return
        self._task = asyncio.ensure_future(
            self.entry.fetch(params, guard=self._is_latest)
        )

    def _is_latest(self, params: Any) -> bool:
        if self.closed:
            return False
        return self.entry.key_for(params) == self.entry.key_for(self.latest)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
