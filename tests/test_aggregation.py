"""
Derived dashboard and report values.
"""

from decimal import Decimal

import pytest

from billow.analytics import (
    KPICard,
    format_change,
    format_currency,
    kpi_cards,
    month_over_month,
    most_delayed_client,
    most_valuable_client,
    payment_rate,
    percentage_change,
    sparkline_points,
    top_clients,
    top_n,
    top_revenue_month,
    usage_percentage,
)
from billow.models import Client, KPISnapshot, RevenuePoint, TopClient
from billow.models.settings import UNLIMITED


def test_currency_formatting_is_idempotent():
    first = format_currency(Decimal("1234.5"), "eur")
    assert first == format_currency(Decimal("1234.5"), "eur")
    assert first == "EUR 1,234.50"
    assert format_currency(0, "") == "USD 0.00"


@pytest.mark.parametrize(
    "current, previous, expected",
    [
        (50, 0, "+100%"),
        (0, 0, "0%"),
        (80, 100, "-20.0%"),
        (150, 100, "+50.0%"),
        (100, 100, "+0.0%"),
        (Decimal("1"), Decimal("3"), "-66.7%"),
    ],
)
def test_format_change(current, previous, expected):
    assert format_change(current, previous) == expected


def test_percentage_change_zero_previous():
    assert percentage_change(50, 0) == 100
    assert percentage_change(-5, 0) == 0


@pytest.mark.parametrize(
    "paid, invoiced, expected",
    [(0, 0, 0), (50, 0, 0), (1, 8, 13), (2, 3, 67), (750, 1000, 75)],
)
def test_payment_rate(paid, invoiced, expected):
    assert payment_rate(paid, invoiced) == expected


class TestTopN:
    def test_fewer_items_than_requested(self):
        clients = [TopClient("a", Decimal(1)), TopClient("b", Decimal(3)), TopClient("c", Decimal(2))]
        assert [client.name for client in top_clients(clients, 5)] == ["b", "c", "a"]

    def test_ties_keep_input_order(self):
        items = [("x", 5), ("y", 9), ("z", 5)]
        assert top_n(items, 2, key=lambda item: item[1]) == [("y", 9), ("x", 5)]

    def test_non_positive_n_is_empty(self):
        assert top_n([TopClient("a", Decimal(1))], 0) == []


def test_usage_percentage():
    assert usage_percentage(3, 10) == 30
    assert usage_percentage(15, 10) == 100
    assert usage_percentage(99, UNLIMITED) == 0
    assert usage_percentage(0, 0) == 0


def test_month_over_month_uses_last_two_points():
    series = [
        RevenuePoint("Apr", Decimal(10)),
        RevenuePoint("May", Decimal(0)),
        RevenuePoint("Jun", Decimal(40)),
    ]
    assert month_over_month(series) == "+100%"
    assert month_over_month(series[:1]) == "0%"


def test_kpi_cards_use_snapshot_currency():
    snapshot = KPISnapshot(
        total_invoiced=Decimal(1000),
        total_paid=Decimal(600),
        outstanding=Decimal(400),
        client_count=3,
        primary_currency="GBP",
    )
    series = [RevenuePoint("May", Decimal(100)), RevenuePoint("Jun", Decimal(80))]
    cards = kpi_cards(snapshot, series)

    assert [card.title for card in cards] == [
        "Total Invoiced",
        "Total Paid",
        "Outstanding",
        "Active Clients",
    ]
    assert cards[0] == KPICard("Total Invoiced", "GBP 1,000.00", "-20.0%")
    assert not cards[0].positive
    assert cards[2].value == "GBP 400.00"
    assert cards[3].value == "3"
    assert kpi_cards(snapshot)[0].change is None


def test_report_highlights():
    clients = [
        Client("1", "Alpha", "a@x.io", total_invoiced=Decimal(500), payment_delay=3),
        Client("2", "Beta", "b@x.io", total_invoiced=Decimal(900), payment_delay=20),
        Client("3", "Gamma", "c@x.io", total_invoiced=Decimal(900), payment_delay=20),
    ]
    assert most_valuable_client(clients).name == "Beta"
    assert most_delayed_client(clients).name == "Beta"
    assert most_valuable_client([]) is None

    series = [RevenuePoint("Jan", Decimal(5)), RevenuePoint("Feb", Decimal(7))]
    assert top_revenue_month(series).month == "Feb"
    assert top_revenue_month([]) is None


def test_sparkline_points():
    assert sparkline_points([1, 2, 3]) == [(0.0, 100.0), (50.0, 50.0), (100.0, 0.0)]
    assert sparkline_points([5, 5]) == [(0.0, 100.0), (100.0, 100.0)]
    assert sparkline_points([]) == []
