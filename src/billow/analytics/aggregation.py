"""
Derived values shown on the dashboard, clients and reports pages.

All helpers are pure functions of already-fetched data. Currency amounts
are formatted with the currency the backend declared for them; nothing
here converts between currencies.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Iterable, Sequence, TypeVar

from billow.models.client import Client
from billow.models.dashboard import KPISnapshot, RevenuePoint, TopClient
from billow.models.settings import UNLIMITED
from billow.utils import format_currency

T = TypeVar("T")

Number = Decimal | int | float

_HUNDRED = Decimal(100)
_TENTH = Decimal("0.1")


def _dec(value: Number) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def percentage_change(current: Number, previous: Number) -> Decimal:
    """
    Percentage change from ``previous`` to ``current``.

    A zero ``previous`` yields 100 when ``current`` is positive and 0
    otherwise.
    """
    current, previous = _dec(current), _dec(previous)
    if previous == 0:
        return _HUNDRED if current > 0 else Decimal(0)
    return (current - previous) / previous * _HUNDRED


def format_change(current: Number, previous: Number) -> str:
    """
    Format a percentage change as ``+X.X%`` or ``-X.X%``.

    The zero-previous cases format as ``+100%`` and ``0%`` exactly.
    """
    if _dec(previous) == 0:
        return "+100%" if _dec(current) > 0 else "0%"
    change = percentage_change(current, previous).quantize(_TENTH, ROUND_HALF_UP)
    sign = "-" if change < 0 else "+"
    return f"{sign}{abs(change)}%"


def top_n(
    items: Iterable[T], n: int, key: Callable[[T], Number] = lambda item: item.revenue
) -> list[T]:
    """
    Return the ``n`` items with the highest key, highest first.

    Ties keep their input order; fewer than ``n`` items returns them all.
    """
    if n <= 0:
        return []
    return sorted(items, key=key, reverse=True)[:n]


def payment_rate(paid: Number, invoiced: Number) -> int:
    """Paid share of invoiced as a whole percentage, rounded half up."""
    paid, invoiced = _dec(paid), _dec(invoiced)
    if invoiced == 0:
        return 0
    return int((paid / invoiced * _HUNDRED).quantize(Decimal(1), ROUND_HALF_UP))


def usage_percentage(current: int, limit: int) -> Decimal:
    """Share of a plan limit used, capped at 100; unlimited plans show 0."""
    if limit == UNLIMITED:
        return Decimal(0)
    if limit <= 0:
        return _HUNDRED if current > 0 else Decimal(0)
    return min(_dec(current) / _dec(limit) * _HUNDRED, _HUNDRED)


def month_over_month(series: Sequence[RevenuePoint]) -> str:
    """Formatted change between the last two points of a revenue series."""
    if len(series) < 2:
        return "0%"
    return format_change(series[-1].revenue, series[-2].revenue)


@dataclass(frozen=True, slots=True)
class KPICard:
    """One dashboard card."""

    title: str
    value: str
    change: str | None = None

    @property
    def positive(self) -> bool:
        return not (self.change or "").startswith("-")


def kpi_cards(snapshot: KPISnapshot, series: Sequence[RevenuePoint] = ()) -> list[KPICard]:
    """Build the four dashboard cards in the snapshot's primary currency."""
    currency = snapshot.primary_currency
    return [
        KPICard(
            "Total Invoiced",
            format_currency(snapshot.total_invoiced, currency),
            month_over_month(series) if series else None,
        ),
        KPICard("Total Paid", format_currency(snapshot.total_paid, currency)),
        KPICard("Outstanding", format_currency(snapshot.outstanding, currency)),
        KPICard("Active Clients", str(snapshot.client_count)),
    ]


def most_valuable_client(clients: Sequence[Client]) -> Client | None:
    """Client with the highest total invoiced, first seen on ties."""
    return max(clients, key=lambda client: client.total_invoiced, default=None)


def most_delayed_client(clients: Sequence[Client]) -> Client | None:
    """Client with the longest payment delay, first seen on ties."""
    return max(clients, key=lambda client: client.payment_delay, default=None)


def top_revenue_month(series: Sequence[RevenuePoint]) -> RevenuePoint | None:
    """Revenue point with the highest revenue, first seen on ties."""
    return max(series, key=lambda point: point.revenue, default=None)


def top_clients(clients: Sequence[TopClient], n: int = 5) -> list[TopClient]:
    return top_n(clients, n)


def sparkline_points(values: Sequence[Number]) -> list[tuple[float, float]]:
    """
    Normalize a series into (x, y) points on a 100x100 canvas.

    ``y`` grows downwards; a flat series is drawn along the bottom edge.
    """
    if not values:
        return []
    numbers = [float(value) for value in values]
    low, high = min(numbers), max(numbers)
    spread = (high - low) or 1.0
    last = max(len(numbers) - 1, 1)
    return [
        (index / last * 100, 100 - (value - low) / spread * 100)
        for index, value in enumerate(numbers)
    ]
