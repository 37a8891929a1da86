"""
CSV export of invoices.
"""

import csv
import io
from datetime import date, datetime, timezone
from decimal import Decimal

from billow.analytics import (
    CSV_HEADER,
    bulk_filename,
    invoice_filename,
    invoices_to_csv,
    write_csv,
)
from billow.models import Invoice, InvoiceStatus


def _invoice(**overrides) -> Invoice:
    values = dict(
        id="INV-001",
        client_id="CLI-001",
        client_name="TechCorp Solutions",
        invoice_date=date(2025, 6, 1),
        due_date=date(2025, 7, 1),
        amount=Decimal("1250.5"),
        currency="EUR",
        status=InvoiceStatus.PAID,
        created_at=datetime(2025, 6, 1, 9, 0, tzinfo=timezone.utc),
    )
    values.update(overrides)
    return Invoice(**values)


def test_header_and_row_layout():
    text = invoices_to_csv([_invoice()])
    lines = text.splitlines()

    assert lines[0] == ",".join(CSV_HEADER)
    assert lines[1] == (
        "INV-001,TechCorp Solutions,2025-06-01,1250.50,EUR,paid,2025-07-01,"
        "2025-06-01T09:00:00+00:00"
    )


def test_fields_with_commas_and_quotes_are_quoted():
    text = invoices_to_csv([_invoice(client_name='Smith, "Jones" & Co')])
    rows = list(csv.reader(io.StringIO(text)))

    assert '"Smith, ""Jones"" & Co"' in text
    assert rows[1][1] == 'Smith, "Jones" & Co'


def test_missing_dates_are_blank_and_client_id_is_fallback():
    row = list(
        csv.reader(
            io.StringIO(
                invoices_to_csv(
                    [_invoice(client_name="", invoice_date=None, due_date=None, created_at=None)]
                )
            )
        )
    )[1]
    assert row[1] == "CLI-001"
    assert row[2] == row[6] == row[7] == ""


def test_empty_export_is_header_only():
    assert invoices_to_csv([]) == ",".join(CSV_HEADER) + "\n"


def test_filenames():
    assert invoice_filename(_invoice()) == "INV-001.csv"
    assert bulk_filename("USR-DEMO-0001", date(2025, 6, 15)) == "USR-DEMO-0001_2025-06-15.csv"


def test_write_csv(tmp_path):
    path = write_csv(tmp_path / "out.csv", [_invoice(), _invoice(id="INV-002")])
    rows = list(csv.reader(path.open(encoding="utf-8", newline="")))
    assert [row[0] for row in rows] == ["Invoice ID", "INV-001", "INV-002"]
