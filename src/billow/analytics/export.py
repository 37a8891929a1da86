"""
CSV export of invoices.

Rows are written with the ``csv`` module, so fields containing commas,
quotes or newlines are quoted as needed.
"""

import csv
import io
from datetime import date
from pathlib import Path
from typing import Iterable

from billow.lib import logs
from billow.models.invoice import Invoice

LOG = logs.logger(__file__)

CSV_HEADER = (
    "Invoice ID",
    "Client",
    "Invoice Date",
    "Amount",
    "Currency",
    "Status",
    "Due Date",
    "Created At",
)


def _iso(value) -> str:
    return value.isoformat() if value else ""


def invoice_row(invoice: Invoice) -> list[str]:
    return [
        invoice.id,
        invoice.client_label,
        _iso(invoice.invoice_date),
        f"{invoice.amount:.2f}",
        invoice.currency,
        invoice.status.value,
        _iso(invoice.due_date),
        _iso(invoice.created_at),
    ]


def invoices_to_csv(invoices: Iterable[Invoice]) -> str:
    """Render invoices as CSV text, header first."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    writer.writerows(invoice_row(invoice) for invoice in invoices)
    return buffer.getvalue()


def invoice_filename(invoice: Invoice) -> str:
    """File name for a single-invoice export."""
    return f"{invoice.id}.csv"


def bulk_filename(user_label: str, on: date | None = None) -> str:
    """File name for a bulk export: ``{user}_{ISO-date}.csv``."""
    return f"{user_label}_{(on or date.today()).isoformat()}.csv"


def write_csv(path: str | Path, invoices: Iterable[Invoice]) -> Path:
    """Write invoices to ``path`` and return it."""
    path = Path(path)
    path.write_text(invoices_to_csv(invoices), encoding="utf-8", newline="")
    LOG.info("write_csv - path:%s", path)
    return path
