"""
Dashboard page: KPI cards, revenue chart, top clients and recent invoices.
"""

import asyncio

from billow.analytics import KPICard, kpi_cards, top_n
from billow.models.dashboard import RevenuePoint, TopClient
from billow.models.invoice import Invoice
from billow.pages.base import Page
from billow.sync import EntrySnapshot, QueryCacheEntry

TOP_CLIENTS = 5
RECENT_INVOICES = 5


class DashboardPage(Page):
    """
    Four independent entries loaded concurrently on mount.

    ``cards`` is rebuilt whenever the KPI or revenue entry changes.
    """

    name = "dashboard"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.kpi = self.entry("kpi", lambda _: self.service.kpi(self.identity))
        self.revenue = self.entry(
            "revenue", lambda _: self.service.revenue_chart(self.identity)
        )
        self.top = self.entry(
            "top_clients", lambda _: self.service.top_clients(self.identity)
        )
        self.recent = self.entry(
            "recent_invoices",
            lambda _: self.service.recent_invoices(self.identity, RECENT_INVOICES),
        )
        self.cards: list[KPICard] = []

    async def load(self) -> None:
        await asyncio.gather(
            self.kpi.fetch(),
            self.revenue.fetch(),
            self.top.fetch(),
            self.recent.fetch(),
        )

    def on_change(self, entry: QueryCacheEntry, snapshot: EntrySnapshot) -> None:
        if entry in (self.kpi, self.revenue):
            kpi = self.kpi.data
            self.cards = kpi_cards(kpi, self.revenue.data or []) if kpi else []

    @property
    def revenue_series(self) -> list[RevenuePoint]:
        return list(self.revenue.data or [])

    @property
    def top_clients(self) -> list[TopClient]:
        return top_n(self.top.data or [], TOP_CLIENTS)

    @property
    def recent_invoices(self) -> list[Invoice]:
        return list(self.recent.data or [])[:RECENT_INVOICES]

    @property
    def currency(self) -> str | None:
        """Currency every dashboard figure is expressed in."""
        return self.kpi.data.primary_currency if self.kpi.data else None
