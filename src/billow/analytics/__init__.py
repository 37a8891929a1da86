"""
Derived views and exports computed from fetched data.
"""

from billow.analytics.aggregation import (
    KPICard,
    format_change,
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
from billow.analytics.export import (
    CSV_HEADER,
    bulk_filename,
    invoice_filename,
    invoices_to_csv,
    write_csv,
)
from billow.utils import format_currency

__all__ = [
    "CSV_HEADER",
    "KPICard",
    "bulk_filename",
    "format_change",
    "format_currency",
    "invoice_filename",
    "invoices_to_csv",
    "kpi_cards",
    "month_over_month",
    "most_delayed_client",
    "most_valuable_client",
    "payment_rate",
    "percentage_change",
    "sparkline_points",
    "top_clients",
    "top_n",
    "top_revenue_month",
    "usage_percentage",
    "write_csv",
]
