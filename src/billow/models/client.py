"""
Client models.

Aggregate financial fields (totals, counts, averages, payment delay) are
computed by the backend and only ever displayed here; the one derived value
is the display-only percentage paid.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator

from billow.errors import DecodeError
from billow.models.common import (
    EMAIL_RE,
    expect_list,
    first_of,
    money,
    to_decimal,
    to_int,
    wrap,
)


@dataclass(frozen=True, slots=True)
class Client:
    """A client with backend-supplied aggregates."""

    id: str
    name: str
    email: str
    phone: str = ""
    company: str = ""
    address: str = ""
    avatar: str = ""
    total_invoiced: Decimal = Decimal(0)
    total_paid: Decimal = Decimal(0)
    invoice_count: int = 0
    average_invoice: Decimal = Decimal(0)
    payment_delay: int = 0

    @property
    def initial(self) -> str:
        """Upper-cased first letter of the name, for avatar placeholders."""
        return self.name[:1].upper() or "?"

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Client":
        """
        Build a Client from a backend payload.

        Accepts both snake_case and camelCase aggregate names.

        Raises:
            DecodeError: If the id or name is missing or a number is malformed.
        """
        b = wrap(payload, "client")
        client_id = first_of(b, "id", "client_id")
        name = first_of(b, "name", default="")
        if client_id in (None, "") or not name:
            raise DecodeError("Client payload needs an id and a name")
        return cls(
            id=str(client_id),
            name=str(name),
            email=str(first_of(b, "email", default="")),
            phone=str(first_of(b, "phone", default="")),
            company=str(first_of(b, "company", default="")),
            address=str(first_of(b, "address", default="")),
            avatar=str(first_of(b, "avatar", "profile_image", default="")),
            total_invoiced=money(b, "total_invoiced", "totalInvoiced"),
            total_paid=money(b, "total_paid", "totalPaid"),
            invoice_count=to_int(
                first_of(b, "invoice_count", "invoiceCount", default=0), "invoice_count"
            ),
            average_invoice=money(b, "average_invoice", "averageInvoice"),
            payment_delay=to_int(
                first_of(b, "payment_delay", "paymentDelay", default=0), "payment_delay"
            ),
        )


def parse_clients(payload: Any) -> list[Client]:
    """Decode a list payload into clients."""
    return [Client.from_dict(item) for item in expect_list(payload, "clients")]


@dataclass(frozen=True, slots=True)
class ClientRevenue:
    """Monthly revenue values for one client, oldest first."""

    client_id: str
    months: int
    values: tuple[Decimal, ...]

    @classmethod
    def empty(cls, client_id: str, months: int = 0) -> "ClientRevenue":
        """Placeholder used when a per-client lookup failed."""
        return cls(client_id=client_id, months=months, values=())

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "ClientRevenue":
        b = wrap(payload, "client revenue")
        raw = first_of(b, "revenue_data", "revenueData", default=[])
        values = tuple(
            to_decimal(value, "revenue_data") for value in expect_list(raw, "revenue_data")
        )
        return cls(
            client_id=str(first_of(b, "client_id", default="")),
            months=to_int(first_of(b, "months", default=len(values)), "months"),
            values=values,
        )


class ClientDraft(BaseModel):
    """Create-client form values."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(default="", validate_default=True)
    email: str = Field(default="", validate_default=True)
    phone: str = ""
    company: str = ""
    address: str = ""

    @field_validator("name")
    @classmethod
    def _name_required(cls, value: str) -> str:
        if not value:
            raise ValueError("Name is required")
        return value

    @field_validator("email")
    @classmethod
    def _email_pattern(cls, value: str) -> str:
        if not EMAIL_RE.match(value):
            raise ValueError("Enter a valid email address")
        return value

    def to_payload(self) -> dict[str, str]:
        """Return the JSON body for ``POST /clients``, omitting blank extras."""
        payload = {"name": self.name, "email": self.email}
        for key in ("phone", "company", "address"):
            value = getattr(self, key)
            if value:
                payload[key] = value
        return payload
