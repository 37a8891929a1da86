"""
Per-resource query cache entries.

A ``QueryCacheEntry`` is the state machine behind one resource view:

    IDLE -> LOADING -> READY(data, params) | FAILED(error, params)

Rules it enforces:

- at most one in-flight fetch per parameter key; a duplicate fetch awaits
  the load already running
- a fetch for different parameters supersedes the running one, whose
  result is discarded when it arrives (generation counter)
- ``data`` keeps the last good result while a new load is in flight and
  after a failure
- after ``close()`` nothing is applied and no listener is notified
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Generic, Hashable, TypeVar

from billow.errors import SyncError
from billow.lib import logs

LOG = logs.logger(__file__)

T = TypeVar("T")

Loader = Callable[[Any], Awaitable[T]]
Guard = Callable[[Any], bool]


class EntryStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class EntrySnapshot(Generic[T]):
    """
    Immutable view of an entry handed to listeners and pages.

    Attributes:
        status: Current state.
        data: Last good result (kept while loading and after failures).
        params: Parameters of the current state.
        error: Classified error when FAILED, else None.
    """

    status: EntryStatus
    data: T | None = None
    params: Any = None
    error: SyncError | None = None

    @property
    def is_loading(self) -> bool:
        return self.status is EntryStatus.LOADING

    @property
    def is_ready(self) -> bool:
        return self.status is EntryStatus.READY

    @property
    def is_failed(self) -> bool:
        return self.status is EntryStatus.FAILED


def param_key(params: Any) -> Hashable:
    """Cache-equivalence key for a parameter tuple."""
    key = getattr(params, "key", None)
    return key() if callable(key) else params


class QueryCacheEntry(Generic[T]):
    """
    Cached state of one resource view.

    Attributes:
        name: Resource name used in logs.
        status: Current state.
        data: Last good result.
        params: Parameters of the current state.
        error: Classified error of the last failed load.
        closed: True once the owning page tore the entry down.
    """

    def __init__(
        self,
        name: str,
        loader: Loader,
        key: Callable[[Any], Hashable] = param_key,
    ) -> None:
        """
        Args:
            name: Resource name used in logs.
            loader: Coroutine function loading the data for a parameter tuple.
            key: Maps a parameter tuple to its cache-equivalence key.
        """
        self.name = name
        self.status = EntryStatus.IDLE
        self.data: T | None = None
        self.params: Any = None
        self.error: SyncError | None = None
        self.closed = False
        self._loader = loader
        self._key = key
        self._generation = 0
        self._task: asyncio.Task | None = None
        self._task_key: Hashable = None
        self._listeners: list[Callable[[EntrySnapshot[T]], None]] = []

    def key_for(self, params: Any) -> Hashable:
        return self._key(params)

    def snapshot(self) -> EntrySnapshot[T]:
        return EntrySnapshot(self.status, self.data, self.params, self.error)

    def subscribe(self, listener: Callable[[EntrySnapshot[T]], None]) -> Callable[[], None]:
        """Register a change listener; returns a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def is_ready_for(self, params: Any) -> bool:
        """True when the entry holds a READY result for equivalent params."""
        return (
            self.status is EntryStatus.READY
            and self._key(self.params) == self._key(params)
        )

    async def fetch(
        self, params: Any = None, *, guard: Guard | None = None, force: bool = False
    ) -> EntrySnapshot[T]:
        """
        Load data for ``params`` and return the resulting snapshot.

        Classified errors end in FAILED and are never raised.

        Args:
            params: Parameter tuple passed to the loader.
            guard: Applied to ``params`` when the result arrives; the result
                is dropped unless it returns True.
            force: Start a new load even if one for the same key is running.
        """
        if self.closed:
            return self.snapshot()
        key = self._key(params)
        running = self._task is not None and not self._task.done()
        if running and not force and key == self._task_key:
            LOG.debug("fetch - %s duplicate of in-flight load, awaiting it", self.name)
            await asyncio.shield(self._task)
            return self.snapshot()

        self._generation += 1
        generation = self._generation
        self._task_key = key
        self._transition(EntryStatus.LOADING, params=params, error=None)
        task = asyncio.ensure_future(self._load(params, generation, guard))
        self._task = task
        await asyncio.shield(task)
        return self.snapshot()

    async def refetch(self) -> EntrySnapshot[T]:
        """Reload the current parameters, bypassing duplicate suppression."""
        return await self.fetch(self.params, force=True)

    async def retry(self) -> EntrySnapshot[T]:
        """Re-issue the failed load for the parameters that failed."""
        if self.status is not EntryStatus.FAILED:
            return self.snapshot()
        LOG.info("retry - %s", self.name)
        return await self.fetch(self.params, force=True)

    def close(self) -> None:
        """Stop applying results and notifying listeners."""
        self.closed = True
        self._listeners.clear()

    async def _load(self, params: Any, generation: int, guard: Guard | None) -> None:
        try:
            result = await self._loader(params)
        except SyncError as exc:
            if self._accepts(params, generation, guard):
                LOG.warning("load failed - %s: %r", self.name, exc)
                self._transition(EntryStatus.FAILED, params=params, error=exc)
            return
        if self._accepts(params, generation, guard):
            self.data = result
            self._transition(EntryStatus.READY, params=params, error=None)

    def _accepts(self, params: Any, generation: int, guard: Guard | None) -> bool:
        if self.closed:
            LOG.debug("discarding response - %s closed", self.name)
            return False
        if generation != self._generation:
            LOG.debug("discarding response - %s superseded", self.name)
            return False
        if guard is not None and not guard(params):
            LOG.debug("discarding response - %s rejected by guard", self.name)
            return False
        return True

    def _transition(
        self, status: EntryStatus, *, params: Any, error: SyncError | None
    ) -> None:
        self.status = status
        self.params = params
        self.error = error
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)
