"""
Seed records for the demo backend, in backend wire format.

Invoice dates are laid out relative to ``today`` so the twelve-month
revenue chart always has data to show.
"""

from datetime import date, datetime, time, timedelta, timezone

DEMO_USER = {
    "id": "USR-DEMO-0001",
    "email": "owner@billow.example",
    "display_name": "Demo Owner",
    "profile_image": "",
}

DEMO_PREFERENCES = {
    "theme": "light",
    "language": "en",
    "email_notifications": True,
    "push_notifications": True,
    "weekly_reports": True,
    "security_alerts": True,
    "currency": "USD",
    "timezone": "UTC",
}

DEMO_PLANS = [
    {
        "id": "free",
        "name": "Free",
        "price": 0,
        "currency": "USD",
        "interval": "month",
        "features": ["Up to 10 invoices", "Up to 5 clients", "Basic exports (CSV)"],
        "invoice_limit": 10,
        "client_limit": 5,
    },
    {
        "id": "pro",
        "name": "Pro",
        "price": 19,
        "currency": "USD",
        "interval": "month",
        "popular": True,
        "features": ["Unlimited invoices", "Up to 100 clients", "Advanced analytics"],
        "invoice_limit": -1,
        "client_limit": 100,
    },
    {
        "id": "business",
        "name": "Business",
        "price": 49,
        "currency": "USD",
        "interval": "month",
        "features": ["Unlimited everything", "API access", "White label"],
        "invoice_limit": -1,
        "client_limit": -1,
    },
]

DEMO_CLIENTS = [
    {
        "id": "CLI-001",
        "name": "TechCorp Solutions",
        "email": "billing@techcorp.example",
        "company": "TechCorp Solutions Ltd",
        "payment_delay": 4,
    },
    {
        "id": "CLI-002",
        "name": "Digital Dynamics",
        "email": "accounts@digitaldynamics.example",
        "payment_delay": 12,
    },
    {
        "id": "CLI-003",
        "name": "Innovation Labs",
        "email": "finance@innovationlabs.example",
        "payment_delay": 7,
    },
    {
        "id": "CLI-004",
        "name": "Creative Studios",
        "email": "hello@creativestudios.example",
        "payment_delay": 21,
    },
    {
        "id": "CLI-005",
        "name": "Growth Partners",
        "email": "ap@growthpartners.example",
        "payment_delay": 2,
    },
    {
        "id": "CLI-006",
        "name": "Northwind Traders",
        "email": "invoices@northwind.example",
        "payment_delay": 0,
    },
]

# (client id, months ago, day of month, amount, currency, status)
_INVOICE_PLAN = [
    ("CLI-001", 11, 5, 12500, "USD", "paid"),
    ("CLI-002", 10, 12, 8750, "USD", "paid"),
    ("CLI-003", 9, 3, 15200, "USD", "paid"),
    ("CLI-001", 8, 18, 9800, "USD", "paid"),
    ("CLI-004", 7, 9, 6400, "EUR", "paid"),
    ("CLI-005", 6, 22, 4300, "USD", "paid"),
    ("CLI-002", 5, 14, 11200, "USD", "paid"),
    ("CLI-003", 4, 7, 7300, "GBP", "paid"),
    ("CLI-001", 3, 11, 13900, "USD", "overdue"),
    ("CLI-004", 2, 16, 5200, "EUR", "unpaid"),
    ("CLI-005", 1, 4, 6100, "USD", "processing"),
    ("CLI-002", 0, 1, 9400, "USD", "unpaid"),
]


def _months_ago(today: date, months: int, day: int) -> date:
    year, month = today.year, today.month - months
    while month <= 0:
        month += 12
        year -= 1
    return date(year, month, min(day, 28))


def demo_invoices(today: date) -> list[dict]:
    """Return the seed invoices with dates relative to ``today``."""
    invoices = []
    for index, (client_id, ago, day, amount, currency, status) in enumerate(
        _INVOICE_PLAN, start=1
    ):
        invoice_date = _months_ago(today, ago, day)
        created = datetime.combine(invoice_date, time(9, 0), tzinfo=timezone.utc)
        invoices.append(
            {
                "id": f"INV-{index:03d}",
                "client_id": client_id,
                "invoice_date": invoice_date.isoformat(),
                "due_date": (invoice_date + timedelta(days=30)).isoformat(),
                "amount": amount,
                "currency_type": currency,
                "status": status,
                "created_at": created.isoformat(),
                "updated_at": created.isoformat(),
            }
        )
    return invoices
