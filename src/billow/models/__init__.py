"""
Data models and payload decoding for Billow.

This package provides:
- Entity models (Invoice, Client, dashboard aggregates, settings)
- Form drafts validated locally before any mutation is sent
- Query parameter tuples that decide cache equivalence
- The opaque current-user Identity

Entity models are frozen dataclasses built once, at the service boundary,
through their ``from_dict`` constructors.
"""

from billow.models.client import (
    Client,
    ClientDraft,
    ClientRevenue,
    parse_clients,
)
from billow.models.common import AmountRange, DateRange, QueryParams
from billow.models.dashboard import (
    KPISnapshot,
    ReportsSummary,
    RevenuePoint,
    TopClient,
    parse_revenue_series,
    parse_top_clients,
)
from billow.models.identity import Identity
from billow.models.invoice import (
    Invoice,
    InvoiceDraft,
    InvoiceStatus,
    parse_invoices,
)
from billow.models.settings import (
    Plan,
    PlanChange,
    PreferencesDraft,
    ProfileDraft,
    Subscription,
    UsageMetrics,
    UserPreferences,
    UserProfile,
    parse_plans,
)

__all__ = [
    "AmountRange",
    "Client",
    "ClientDraft",
    "ClientRevenue",
    "DateRange",
    "Identity",
    "Invoice",
    "InvoiceDraft",
    "InvoiceStatus",
    "KPISnapshot",
    "Plan",
    "PlanChange",
    "PreferencesDraft",
    "ProfileDraft",
    "QueryParams",
    "ReportsSummary",
    "RevenuePoint",
    "Subscription",
    "TopClient",
    "UsageMetrics",
    "UserPreferences",
    "UserProfile",
    "parse_clients",
    "parse_invoices",
    "parse_plans",
    "parse_revenue_series",
    "parse_top_clients",
]
