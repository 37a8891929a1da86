"""
Invoices page: debounced search and filters, create-invoice form and CSV
export.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Mapping

from billow.analytics import bulk_filename, invoice_filename, invoices_to_csv
from billow.errors import SyncError
from billow.lib import logs
from billow.models.client import Client
from billow.models.common import AmountRange, DateRange, QueryParams
from billow.models.invoice import Invoice, InvoiceDraft
from billow.pages.base import Page
from billow.sync import MutationOutcome

LOG = logs.logger(__file__)


class InvoicesPage(Page):
    """
    Invoice list driven by a debounced parameter tuple.

    Attributes:
        params: Latest parameter tuple entered by the user.
        export_error: Error of the last failed single-invoice export.
    """

    name = "invoices"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.params = QueryParams()
        self.invoices = self.entry(
            "invoices", lambda params: self.service.list_invoices(self.identity, params)
        )
        self.clients = self.entry(
            "clients", lambda _: self.service.list_clients(self.identity)
        )
        self.search = self.controller(self.invoices)
        self.create = self.coordinator(
            "create_invoice",
            InvoiceDraft,
            lambda draft: self.service.create_invoice(self.identity, draft),
            refresh=(self.invoices,),
        )
        self.export_error: SyncError | None = None

    async def load(self) -> None:
        self.search.update(self.params)
        await self.search.join()

    async def load_clients(self) -> list[Client]:
        """Load the client picker of the create form."""
        snapshot = await self.clients.fetch()
        return list(snapshot.data or [])

    # Filters

    def _change(self, **changes: Any) -> None:
        self.params = self.params.replace(**changes)
        self.search.update(self.params)

    def set_search(self, text: str) -> None:
        self._change(search=text)

    def set_status(self, status: str | None) -> None:
        self._change(status=status)

    def set_currency(self, currency: str | None) -> None:
        self._change(currency=currency)

    def set_date_range(self, start: date | None, end: date | None) -> None:
        self._change(date_range=DateRange(start, end))

    def set_amount_range(self, minimum: Decimal | None, maximum: Decimal | None) -> None:
        self._change(amount_range=AmountRange(minimum, maximum))

    def clear_filters(self) -> None:
        self._change(
            search="",
            status=None,
            currency=None,
            date_range=DateRange(),
            amount_range=AmountRange(),
        )

    async def submit_search(self) -> None:
        """Fire the pending search immediately (Enter key)."""
        await self.search.flush()

    # View

    @property
    def rows(self) -> list[Invoice]:
        return list(self.invoices.data or [])

    @property
    def result_summary(self) -> str:
        """Generate summary text for search results."""
        total = len(self.rows)
        noun = "invoice" if total == 1 else "invoices"
        base = f"{total} {noun} found"
        if self.params.search:
            return f'{base} for "{self.params.search}"'
        return base

    @property
    def is_empty(self) -> bool:
        """Check if empty state should be shown."""
        snapshot = self.invoices.snapshot()
        return snapshot.is_failed or (snapshot.is_ready and not self.rows)

    @property
    def empty_message(self) -> str:
        if self.invoices.snapshot().is_failed:
            return "Could not load invoices"
        if self.params.is_filtered:
            return "No invoices match your filters"
        return "No invoices found"

    # Mutations

    async def create_invoice(self, values: Mapping[str, Any]) -> MutationOutcome:
        return await self.create.submit(values)

    # Export

    def export_csv(self, on: date | None = None) -> tuple[str, str]:
        """Return ``(filename, csv_text)`` for the invoices in view."""
        return bulk_filename(self.identity.label, on), invoices_to_csv(self.rows)

    async def export_invoice(self, invoice_id: str) -> tuple[str, str] | None:
        """Return ``(filename, csv_text)`` for one invoice, or None on failure."""
        self.export_error = None
        try:
            invoice = await self.service.get_invoice(self.identity, invoice_id)
        except SyncError as exc:
            LOG.warning("export_invoice failed - %s: %r", invoice_id, exc)
            self.export_error = exc
            return None
        return invoice_filename(invoice), invoices_to_csv([invoice])
