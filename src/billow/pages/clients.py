"""
Clients page: debounced search, create-client form and per-client revenue
sparklines.
"""

import asyncio
from typing import Any, Mapping, Sequence

from billow.analytics import payment_rate, sparkline_points
from billow.errors import SyncError
from billow.lib import logs
from billow.models.client import Client, ClientDraft, ClientRevenue
from billow.models.common import QueryParams
from billow.pages.base import Page
from billow.sync import EntrySnapshot, MutationOutcome, QueryCacheEntry

LOG = logs.logger(__file__)

SPARKLINE_MONTHS = 7


class ClientsPage(Page):
    """
    Client list plus one revenue series per listed client.

    Revenue lookups run concurrently whenever the list becomes ready; a
    failed lookup leaves an empty series for that client only.

    Attributes:
        params: Latest search parameters.
        revenue: Revenue series keyed by client id.
        selected: Client shown in the detail panel, if any.
    """

    name = "clients"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.params = QueryParams()
        self.clients = self.entry(
            "clients", lambda params: self.service.list_clients(self.identity, params)
        )
        self.search = self.controller(self.clients)
        self.create = self.coordinator(
            "create_client",
            ClientDraft,
            lambda draft: self.service.create_client(self.identity, draft),
            refresh=(self.clients,),
        )
        self.revenue: dict[str, ClientRevenue] = {}
        self._revenue_generation = 0
        self.selected: Client | None = None

    async def load(self) -> None:
        self.search.update(self.params)
        await self.search.join()
        await self.settle()

    def on_change(self, entry: QueryCacheEntry, snapshot: EntrySnapshot) -> None:
        if entry is self.clients and snapshot.is_ready:
            self.spawn(self.load_revenue(snapshot.data or []))

    async def load_revenue(self, clients: Sequence[Client]) -> None:
        """
        Fetch every client's revenue series concurrently.

        Only the load started for the latest client list is applied; an
        older load that finishes late is dropped.
        """
        self._revenue_generation += 1
        generation = self._revenue_generation
        series = await asyncio.gather(*(self._client_revenue(c.id) for c in clients))
        if not self.mounted or generation != self._revenue_generation:
            LOG.debug("revenue load dropped - generation:%s", generation)
            return
        self.revenue = {item.client_id: item for item in series}

    async def _client_revenue(self, client_id: str) -> ClientRevenue:
        try:
            revenue = await self.service.client_revenue(
                self.identity, client_id, SPARKLINE_MONTHS
            )
        except SyncError as exc:
            LOG.warning("client revenue unavailable - %s: %r", client_id, exc)
            return ClientRevenue.empty(client_id, SPARKLINE_MONTHS)
        # Older backends omit the id in the payload.
        if revenue.client_id != client_id:
            revenue = ClientRevenue(client_id, revenue.months, revenue.values)
        return revenue

    def set_search(self, text: str) -> None:
        self.params = self.params.replace(search=text)
        self.search.update(self.params)

    async def submit_search(self) -> None:
        await self.search.flush()

    @property
    def rows(self) -> list[Client]:
        return list(self.clients.data or [])

    @property
    def is_empty(self) -> bool:
        snapshot = self.clients.snapshot()
        return snapshot.is_failed or (snapshot.is_ready and not self.rows)

    @property
    def empty_message(self) -> str:
        if self.clients.snapshot().is_failed:
            return "Could not load clients"
        if self.params.search:
            return "No clients match your search"
        return "No clients yet"

    def paid_percentage(self, client: Client) -> int:
        return payment_rate(client.total_paid, client.total_invoiced)

    def sparkline(self, client_id: str) -> list[tuple[float, float]]:
        series = self.revenue.get(client_id)
        return sparkline_points(series.values) if series else []

    def select(self, client_id: str | None) -> Client | None:
        self.selected = next((c for c in self.rows if c.id == client_id), None)
        return self.selected

    async def create_client(self, values: Mapping[str, Any]) -> MutationOutcome:
        return await self.create.submit(values)
