"""
Utility functions for Billow data manipulation and formatting.

Provides helpers for:
- Date parsing (multiple formats supported)
- Currency formatting
- Search query normalization and matching
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Iterable

DEFAULT_CURRENCY = "USD"


def parse_datetime(value: str | None) -> datetime | None:
    """
    Parse a timestamp string to a datetime object.

    Accepts ISO 8601 (with or without a trailing ``Z``) and the m/d/y
    formats some backend revisions emit.

    Args:
        value: Timestamp string, or None.

    Returns:
        datetime object if parsing succeeds, None otherwise.
    """
    if value:
        value = value.strip()
    if not value:
        return None

    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        pass

    # Try m/d/y format (e.g., "12/25/2024", "1/5/2024")
    for fmt in ("%m/%d/%Y", "%m/%d/%y"):
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            pass

    return None


def parse_date(value: str | date | None) -> date | None:
    """Parse a calendar date, dropping any time component."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    parsed = parse_datetime(value)
    return parsed.date() if parsed else None


def format_currency(value: Decimal | float | int, currency: str) -> str:
    """
    Format a currency amount with the currency code prefix.

    The currency is always the one the backend declared for the number;
    no conversion happens here.

    Args:
        value: Numeric amount to format.
        currency: Currency code (e.g., 'USD', 'EUR').

    Returns:
        Formatted string like 'USD 1,234.56'.
    """
    code = (currency or DEFAULT_CURRENCY).strip().upper()
    return f"{code} {Decimal(str(value)):,.2f}"


def format_date(value: date | None) -> str:
    """Format a date for display or return the N/A label."""
    if not value:
        return "N/A"
    return value.strftime("%b %d, %Y")


def normalize_query(query: str | None) -> str:
    """Collapse runs of whitespace and strip the ends of a search string."""
    return " ".join((query or "").split())


def matches_query(terms: Iterable[str], query: str | None) -> bool:
    """
    Check if any of the searchable terms contains the query.

    Matching is case-insensitive substring matching; an empty query
    matches everything.
    """
    normalized = normalize_query(query).lower()
    if not normalized:
        return True
    return any(normalized in term.lower() for term in terms if term)
