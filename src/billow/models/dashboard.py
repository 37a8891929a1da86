"""
Dashboard and report models.

Every number here is already currency-normalized by the backend. The
``primary_currency`` carried by a snapshot or summary is the currency those
numbers are expressed in, and the only one they are formatted with.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Mapping

from billow.models.common import expect_list, first_of, money, to_int, wrap
from billow.utils import DEFAULT_CURRENCY


def _currency(value: Any) -> str:
    return str(value or DEFAULT_CURRENCY).strip().upper()


@dataclass(frozen=True, slots=True)
class KPISnapshot:
    """Point-in-time aggregate for the current user."""

    total_invoiced: Decimal
    total_paid: Decimal
    outstanding: Decimal
    client_count: int
    primary_currency: str = DEFAULT_CURRENCY

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "KPISnapshot":
        b = wrap(payload, "kpi")
        return cls(
            total_invoiced=money(b, "total_invoiced", "totalInvoiced"),
            total_paid=money(b, "total_paid", "totalPaid"),
            outstanding=money(b, "outstanding"),
            client_count=to_int(
                first_of(b, "client_count", "clientCount", default=0), "client_count"
            ),
            primary_currency=_currency(first_of(b, "primary_currency", "primaryCurrency")),
        )


@dataclass(frozen=True, slots=True)
class RevenuePoint:
    """One (month, revenue) point of a chronological revenue series."""

    month: str
    revenue: Decimal

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "RevenuePoint":
        b = wrap(payload, "revenue point")
        return cls(month=str(first_of(b, "month", default="")), revenue=money(b, "revenue"))


def parse_revenue_series(payload: Any) -> list[RevenuePoint]:
    """Decode a revenue series, preserving its order."""
    return [
        RevenuePoint.from_dict(item) for item in expect_list(payload, "revenue series")
    ]


@dataclass(frozen=True, slots=True)
class TopClient:
    """A client name with its revenue, as ranked for the dashboard."""

    name: str
    revenue: Decimal

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "TopClient":
        b = wrap(payload, "top client")
        return cls(name=str(first_of(b, "name", default="")), revenue=money(b, "revenue"))


def parse_top_clients(payload: Any) -> list[TopClient]:
    """Decode the top-clients list."""
    return [TopClient.from_dict(item) for item in expect_list(payload, "top clients")]


@dataclass(frozen=True, slots=True)
class ReportsSummary:
    """Backend summary behind the reports page."""

    total_revenue: Decimal
    collection_rate: Decimal
    client_count: int
    average_per_client: Decimal
    top_client: str
    top_client_revenue: Decimal
    top_revenue_month: str
    primary_currency: str = DEFAULT_CURRENCY

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ReportsSummary":
        b = wrap(payload, "reports summary")
        return cls(
            total_revenue=money(b, "total_revenue"),
            collection_rate=money(b, "collection_rate"),
            client_count=to_int(first_of(b, "client_count", default=0), "client_count"),
            average_per_client=money(b, "average_per_client"),
            top_client=str(first_of(b, "top_client", default="")),
            top_client_revenue=money(b, "top_client_revenue"),
            top_revenue_month=str(first_of(b, "top_revenue_month", default="")),
            primary_currency=_currency(first_of(b, "primary_currency")),
        )
