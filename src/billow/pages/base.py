"""
Shared page lifecycle.

A page owns every query cache entry, debounced controller and mutation
coordinator it creates, and tears them all down on ``unmount``. Fetch
failures stay on the entries as structured errors; nothing raises into
the caller.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable

import pydantic

from billow.config import DEFAULT_DEBOUNCE_MS
from billow.lib import logs
from billow.models.identity import Identity
from billow.services.billow_service import BillowService
from billow.sync import (
    DebouncedQueryController,
    EntrySnapshot,
    MutationCoordinator,
    QueryCacheEntry,
)

LOG = logs.logger(__file__)


class Page(ABC):
    """
    Base class for page controllers.

    Attributes:
        service: Backend service every entry loads through.
        identity: Current user, passed explicitly to every call.
        debounce: Quiet window for debounced controllers, in seconds.
        mounted: True between ``mount`` and ``unmount``.
    """

    name = "page"

    def __init__(
        self,
        service: BillowService,
        identity: Identity,
        debounce: float = DEFAULT_DEBOUNCE_MS / 1000,
    ) -> None:
        self.service = service
        self.identity = identity
        self.debounce = debounce
        self.mounted = False
        self._entries: list[QueryCacheEntry] = []
        self._controllers: list[DebouncedQueryController] = []
        self._coordinators: list[MutationCoordinator] = []
        self._tasks: set[asyncio.Task] = set()

    def entry(self, name: str, loader: Callable[[Any], Awaitable]) -> QueryCacheEntry:
        """Create an owned entry whose changes call ``on_change``."""
        entry = QueryCacheEntry(f"{self.name}.{name}", loader)
        entry.subscribe(lambda snapshot: self.on_change(entry, snapshot))
        self._entries.append(entry)
        return entry

    def controller(self, entry: QueryCacheEntry) -> DebouncedQueryController:
        controller = DebouncedQueryController(entry, delay=self.debounce)
        self._controllers.append(controller)
        return controller

    def coordinator(
        self,
        name: str,
        draft_model: type[pydantic.BaseModel],
        submitter: Callable[[Any], Awaitable],
        refresh: tuple[QueryCacheEntry, ...] = (),
    ) -> MutationCoordinator:
        coordinator = MutationCoordinator(
            f"{self.name}.{name}", draft_model, submitter, refresh
        )
        self._coordinators.append(coordinator)
        return coordinator

    def spawn(self, coro: Awaitable) -> asyncio.Task:
        """Run a background load owned by this page."""
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def on_change(self, entry: QueryCacheEntry, snapshot: EntrySnapshot) -> None:
        """Recompute derived values after an entry changed."""

    async def mount(self) -> None:
        LOG.info("mount - %s user:%s", self.name, self.identity.label)
        self.mounted = True
        await self.load()

    @abstractmethod
    async def load(self) -> None:
        """Issue the page's initial loads; called by ``mount``."""

    def unmount(self) -> None:
        """Tear down every owned entry, controller and coordinator."""
        LOG.info("unmount - %s", self.name)
        self.mounted = False
        for controller in self._controllers:
            controller.close()
        for entry in self._entries:
            entry.close()
        for coordinator in self._coordinators:
            coordinator.close()

    async def settle(self) -> None:
        """Wait for background loads started by this page."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def retry(self) -> None:
        """Retry every failed entry of the page."""
        await asyncio.gather(
            *(entry.retry() for entry in self._entries if entry.snapshot().is_failed)
        )

    @property
    def errors(self) -> list[dict[str, Any]]:
        """Structured errors of the failed entries, for rendering."""
        return [
            entry.error.to_dict()
            for entry in self._entries
            if entry.snapshot().is_failed and entry.error is not None
        ]

    @property
    def is_loading(self) -> bool:
        return any(entry.snapshot().is_loading for entry in self._entries)
