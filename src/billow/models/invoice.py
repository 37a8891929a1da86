"""
Invoice models and serialization helpers.

``Invoice`` is the canonical, read-only shape of an invoice as fetched from
the backend. ``from_dict`` is the single place where the naming variants of
different backend revisions are reconciled:

    id                  id | invoice_id
    client reference    client_id | client.id, client_name | client.name | client
    amount              amount | amount_due
    currency            currency_type | currency (default USD)

``InvoiceDraft`` is the create-invoice form payload; it validates locally
before anything is sent.
"""

import re
from dataclasses import asdict, dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from billow.errors import DecodeError
from billow.models.common import expect_list, first_of, money, wrap
from billow.utils import (
    DEFAULT_CURRENCY,
    format_currency,
    format_date,
    parse_date,
    parse_datetime,
)

_CURRENCY_RE = re.compile(r"^[A-Z]{3}$")


class InvoiceStatus(str, Enum):
    """Backend-owned invoice status."""

    UNPAID = "unpaid"
    PAID = "paid"
    OVERDUE = "overdue"
    PROCESSING = "processing"

    @classmethod
    def parse(cls, value: Any) -> "InvoiceStatus":
        """Parse a wire value, raising DecodeError for unknown statuses."""
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            raise DecodeError(f"Unknown invoice status: {value!r}") from exc

    @property
    def label(self) -> str:
        """Capitalized label for display."""
        return self.value.capitalize()


@dataclass(frozen=True, slots=True)
class Invoice:
    """Primary dataclass for invoices."""

    id: str
    client_id: str
    client_name: str
    invoice_date: date | None
    due_date: date | None
    amount: Decimal
    currency: str
    status: InvoiceStatus
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def client_label(self) -> str:
        """Client name for display, falling back to the client id."""
        return self.client_name or self.client_id

    def formatted_amount(self) -> str:
        """Return the amount formatted in the invoice's own currency."""
        return format_currency(self.amount, self.currency)

    def formatted_invoice_date(self) -> str:
        """Return the invoice date formatted for display."""
        return format_date(self.invoice_date)

    def formatted_due_date(self) -> str:
        """Return the due date formatted for display or the N/A label."""
        return format_date(self.due_date)

    def to_dict(self) -> dict:
        """Convert to a JSON serializable dictionary."""
        data = asdict(self)
        data["amount"] = str(self.amount)
        data["status"] = self.status.value
        for key in ("invoice_date", "due_date", "created_at", "updated_at"):
            value = getattr(self, key)
            data[key] = value.isoformat() if value else None
        return data

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Invoice":
        """
        Build an Invoice from a backend payload.

        Raises:
            DecodeError: If required fields are missing or malformed.
        """
        b = wrap(payload, "invoice")
        invoice_id = first_of(b, "id", "invoice_id")
        if invoice_id in (None, ""):
            raise DecodeError("Invoice payload has no id")
        client = b.get("client")
        client_name = first_of(b, "client_name", "client.name", default="")
        if not client_name and isinstance(client, str):
            client_name = client
        currency = str(first_of(b, "currency_type", "currency", default="")).strip()
        return cls(
            id=str(invoice_id),
            client_id=str(first_of(b, "client_id", "client.id", default="")),
            client_name=str(client_name),
            invoice_date=parse_date(first_of(b, "invoice_date", "invoiceDate")),
            due_date=parse_date(first_of(b, "due_date", "dueDate")),
            amount=money(b, "amount", "amount_due"),
            currency=(currency or DEFAULT_CURRENCY).upper(),
            status=InvoiceStatus.parse(first_of(b, "status", default="")),
            created_at=parse_datetime(first_of(b, "created_at", "createdAt")),
            updated_at=parse_datetime(first_of(b, "updated_at", "updatedAt")),
        )


def parse_invoices(payload: Any) -> list[Invoice]:
    """Decode a list payload into invoices."""
    return [Invoice.from_dict(item) for item in expect_list(payload, "invoices")]


class InvoiceDraft(BaseModel):
    """
    Create-invoice form values.

    Either ``client_id`` (existing client) or ``client_name`` (legacy
    free-text client, created on the fly by the backend) is required.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    client_id: str = Field(default="", validate_default=True)
    client_name: str = Field(default="", validate_default=True)
    amount: Decimal = Field(ge=0)
    currency: str = DEFAULT_CURRENCY
    status: InvoiceStatus = InvoiceStatus.UNPAID
    invoice_date: date | None = None
    due_date: date | None = None

    @field_validator("client_name")
    @classmethod
    def _client_required(cls, value: str, info: ValidationInfo) -> str:
        if not value and not info.data.get("client_id"):
            raise ValueError("Client is required")
        return value

    @field_validator("amount")
    @classmethod
    def _finite_amount(cls, value: Decimal) -> Decimal:
        if not value.is_finite():
            raise ValueError("Amount must be a finite number")
        return value

    @field_validator("currency")
    @classmethod
    def _currency_code(cls, value: str) -> str:
        value = value.upper()
        if not _CURRENCY_RE.match(value):
            raise ValueError("Currency must be a 3-letter ISO 4217 code")
        return value

    @field_validator("due_date")
    @classmethod
    def _due_after_invoice(cls, value: date | None, info: ValidationInfo) -> date | None:
        invoice_date = info.data.get("invoice_date")
        if value and invoice_date and value < invoice_date:
            raise ValueError("Due date cannot be before the invoice date")
        return value

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON body for ``POST /invoices``."""
        payload: dict[str, Any] = {
            "amount": float(self.amount),
            "currency_type": self.currency,
            "status": self.status.value,
            "invoice_date": self.invoice_date.isoformat() if self.invoice_date else "",
            "due_date": self.due_date.isoformat() if self.due_date else "",
        }
        if self.client_id:
            payload["client_id"] = self.client_id
        if self.client_name:
            payload["client_name"] = self.client_name
        return payload
