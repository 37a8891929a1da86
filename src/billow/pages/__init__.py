"""
Framework-agnostic page controllers.

Each page owns its query cache entries, debounced controllers and
mutation coordinators for as long as it is mounted.
"""

from billow.pages.base import Page
from billow.pages.clients import ClientsPage
from billow.pages.dashboard import DashboardPage
from billow.pages.invoices import InvoicesPage
from billow.pages.reports import ReportsPage
from billow.pages.session import UserSession
from billow.pages.settings import SettingsPage

__all__ = [
    "ClientsPage",
    "DashboardPage",
    "InvoicesPage",
    "Page",
    "ReportsPage",
    "SettingsPage",
    "UserSession",
]
