"""
Reports page: backend summary plus highlights derived from clients and the
revenue series.
"""

import asyncio

from billow.analytics import (
    most_delayed_client,
    most_valuable_client,
    top_revenue_month,
)
from billow.models.client import Client
from billow.models.dashboard import RevenuePoint
from billow.pages.base import Page


class ReportsPage(Page):
    name = "reports"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.summary = self.entry(
            "summary", lambda _: self.service.reports_summary(self.identity)
        )
        self.clients = self.entry(
            "clients", lambda _: self.service.list_clients(self.identity)
        )
        self.revenue = self.entry(
            "revenue", lambda _: self.service.revenue_chart(self.identity)
        )

    async def load(self) -> None:
        await asyncio.gather(
            self.summary.fetch(), self.clients.fetch(), self.revenue.fetch()
        )

    @property
    def most_valuable_client(self) -> Client | None:
        return most_valuable_client(self.clients.data or [])

    @property
    def most_delayed_client(self) -> Client | None:
        return most_delayed_client(self.clients.data or [])

    @property
    def top_revenue_month(self) -> RevenuePoint | None:
        return top_revenue_month(self.revenue.data or [])
