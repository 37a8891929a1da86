"""
Common models and payload helpers shared by every Billow resource.

This module defines:

- Query parameter tuples (search text, filters, ranges) whose ``key()``
  decides cache equivalence
- Boundary helpers that wrap raw JSON payloads in a benedict and pick,
  by dotted keypath, the first present value among the field-name
  variants different backend revisions use

Parsing failures raise :class:`billow.errors.DecodeError` so a malformed
payload fails the fetch that received it and nothing else.
"""

import re
from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping

from benedict import benedict

from billow.errors import DecodeError
from billow.lib import objects
from billow.utils import normalize_query, parse_date

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def wrap(payload: Any, resource: str) -> benedict:
    """
    Wrap a decoded JSON object in a benedict for dotted keypath access.

    Args:
        payload: Decoded JSON value expected to be an object.
        resource: Resource name used in the error message.

    Raises:
        DecodeError: If the payload is not a JSON object.
    """
    if not isinstance(payload, Mapping):
        raise DecodeError(
            f"Expected an object for {resource}, got {type(payload).__name__}"
        )
    try:
        return benedict(dict(payload), keyattr_dynamic=True)
    except ValueError as exc:
        raise DecodeError(f"Malformed keys in {resource}: {exc}") from exc


def expect_list(payload: Any, resource: str) -> list:
    """Return the payload if it is a JSON array, else raise DecodeError."""
    if not isinstance(payload, list):
        raise DecodeError(
            f"Expected a list for {resource}, got {type(payload).__name__}"
        )
    return payload


def first_of(b: benedict, *keypaths: str, default: Any = None) -> Any:
    """Return the first non-null value among the keypath variants."""
    for keypath in keypaths:
        value = b.get(keypath)
        if value is not None:
            return value
    return default


def to_decimal(value: Any, name: str) -> Decimal:
    """
    Convert a JSON number (or numeric string) to Decimal.

    Raises:
        DecodeError: If the value is not numeric.
    """
    if value is None or isinstance(value, bool):
        raise DecodeError(f"Field {name} is not a number: {value!r}")
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise DecodeError(f"Field {name} is not a number: {value!r}") from exc
    if not result.is_finite():
        raise DecodeError(f"Field {name} is not finite: {value!r}")
    return result


def to_int(value: Any, name: str) -> int:
    """Convert a JSON number to int, raising DecodeError when impossible."""
    return int(to_decimal(value, name))


def money(b: benedict, *keys: str) -> Decimal:
    """Pick a monetary field, defaulting to zero when absent."""
    return to_decimal(first_of(b, *keys, default=0), keys[0])


@dataclass(frozen=True, slots=True)
class DateRange:
    """Inclusive calendar date range; either bound may be open."""

    start: date | None = None
    end: date | None = None

    def contains(self, value: date | None) -> bool:
        """Return True if the date falls inside the range."""
        if self.start is None and self.end is None:
            return True
        if value is None:
            return False
        if self.start is not None and value < self.start:
            return False
        if self.end is not None and value > self.end:
            return False
        return True


@dataclass(frozen=True, slots=True)
class AmountRange:
    """Inclusive amount range; either bound may be open."""

    minimum: Decimal | None = None
    maximum: Decimal | None = None

    def contains(self, value: Decimal) -> bool:
        """Return True if the amount falls inside the range."""
        if self.minimum is not None and value < self.minimum:
            return False
        if self.maximum is not None and value > self.maximum:
            return False
        return True


@dataclass(frozen=True, slots=True)
class QueryParams:
    """
    Parameter tuple selecting a sub-view of a collection.

    Search text is whitespace-normalized and currency codes upper-cased on
    construction, so tuples that select the same view compare equal and
    share a ``key()``.

    Attributes:
        search: Free-text search.
        status: Invoice status filter, or None for all.
        currency: Currency filter, or None for all.
        date_range: Invoice date range.
        amount_range: Amount range.
        limit: Maximum number of rows, or None for all.
    """

    search: str = ""
    status: str | None = None
    currency: str | None = None
    date_range: DateRange = field(default_factory=DateRange)
    amount_range: AmountRange = field(default_factory=AmountRange)
    limit: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "search", normalize_query(self.search))
        status = (self.status or "").strip().lower()
        object.__setattr__(self, "status", None if status in {"", "all"} else status)
        currency = (self.currency or "").strip().upper()
        object.__setattr__(
            self, "currency", None if currency in {"", "ALL"} else currency
        )

    def to_query(self) -> dict[str, str]:
        """Return the URL query parameters, omitting unset filters."""
        query = {
            "search": self.search or None,
            "status": self.status,
            "currency": self.currency,
            "date_from": _iso(self.date_range.start),
            "date_to": _iso(self.date_range.end),
            "min_amount": _str(self.amount_range.minimum),
            "max_amount": _str(self.amount_range.maximum),
            "limit": _str(self.limit),
        }
        return {key: value for key, value in query.items() if value is not None}

    def key(self) -> str:
        """Stable cache-equivalence key for this tuple."""
        return objects.hash(self.to_query()).hexdigest()

    def replace(self, **changes: Any) -> "QueryParams":
        """Return a copy with the given fields changed."""
        return replace(self, **changes)

    @property
    def is_filtered(self) -> bool:
        """True when any filter beyond the row limit is active."""
        return bool(set(self.to_query()) - {"limit"})

    @classmethod
    def from_query(cls, query: Mapping[str, str]) -> "QueryParams":
        """Rebuild parameters from URL query values (inverse of to_query)."""
        try:
            return cls(
                search=query.get("search", ""),
                status=query.get("status"),
                currency=query.get("currency"),
                date_range=DateRange(
                    parse_date(query.get("date_from")), parse_date(query.get("date_to"))
                ),
                amount_range=AmountRange(
                    _decimal_or_none(query.get("min_amount")),
                    _decimal_or_none(query.get("max_amount")),
                ),
                limit=int(query["limit"]) if query.get("limit") else None,
            )
        except (InvalidOperation, ValueError) as exc:
            raise ValueError(f"Invalid query parameters: {dict(query)}") from exc


def _iso(value: date | None) -> str | None:
    return value.isoformat() if value else None


def _str(value: Any) -> str | None:
    return None if value is None else str(value)


def _decimal_or_none(value: str | None) -> Decimal | None:
    return Decimal(value) if value else None
