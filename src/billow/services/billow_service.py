"""
Typed access to the Billow backend resources.

``BillowService`` has one method per backend endpoint. Each call goes
through :class:`ResourceClient`, takes the current identity explicitly and
decodes the payload into the canonical model, so pages never see raw JSON
and a mis-shaped payload surfaces as a ``DecodeError`` of that one call.
"""

from typing import Any, Callable, TypeVar

from billow.errors import DecodeError
from billow.lib import logs
from billow.models.client import Client, ClientDraft, ClientRevenue, parse_clients
from billow.models.common import QueryParams, wrap
from billow.models.dashboard import (
    KPISnapshot,
    ReportsSummary,
    RevenuePoint,
    TopClient,
    parse_revenue_series,
    parse_top_clients,
)
from billow.models.identity import Identity
from billow.models.invoice import Invoice, InvoiceDraft, parse_invoices
from billow.models.settings import (
    Plan,
    PreferencesDraft,
    ProfileDraft,
    Subscription,
    UsageMetrics,
    UserPreferences,
    UserProfile,
    parse_plans,
)
from billow.services.resource_client import ResourceClient
from billow.utils import DEFAULT_CURRENCY

LOG = logs.logger(__file__)

T = TypeVar("T")


def _decode(decoder: Callable[[Any], T], payload: Any, resource: str) -> T:
    """Run a model decoder, classifying unexpected shape errors."""
    try:
        return decoder(payload)
    except DecodeError:
        raise
    except (TypeError, ValueError, KeyError, AttributeError) as exc:
        raise DecodeError(f"Unexpected {resource} payload: {exc}") from exc


class BillowService:
    """
    Backend resource API consumed by the sync layer.

    Attributes:
        client: The resource client all calls go through.
    """

    def __init__(self, client: ResourceClient) -> None:
        self.client = client

    # Invoices

    async def list_invoices(
        self, identity: Identity, params: QueryParams | None = None
    ) -> list[Invoice]:
        """Return invoices matching the parameter tuple."""
        query = (params or QueryParams()).to_query()
        payload = await self.client.get("/invoices", identity=identity, params=query)
        return _decode(parse_invoices, payload, "invoices")

    async def get_invoice(self, identity: Identity, invoice_id: str) -> Invoice:
        payload = await self.client.get(f"/invoices/{invoice_id}", identity=identity)
        return _decode(Invoice.from_dict, payload, "invoice")

    async def create_invoice(self, identity: Identity, draft: InvoiceDraft) -> Invoice:
        LOG.info("create_invoice - user:%s", identity.label)
        payload = await self.client.post(
            "/invoices", identity=identity, body=draft.to_payload()
        )
        return _decode(Invoice.from_dict, payload, "invoice")

    # Clients

    async def list_clients(
        self, identity: Identity, params: QueryParams | None = None
    ) -> list[Client]:
        """Return clients whose name or email matches the search text."""
        search = (params or QueryParams()).search
        payload = await self.client.get(
            "/clients", identity=identity, params={"search": search or None}
        )
        return _decode(parse_clients, payload, "clients")

    async def create_client(self, identity: Identity, draft: ClientDraft) -> Client:
        LOG.info("create_client - user:%s", identity.label)
        payload = await self.client.post(
            "/clients", identity=identity, body=draft.to_payload()
        )
        return _decode(Client.from_dict, payload, "client")

    async def client_revenue(
        self, identity: Identity, client_id: str, months: int = 7
    ) -> ClientRevenue:
        payload = await self.client.get(
            f"/clients/{client_id}/revenue-data",
            identity=identity,
            params={"months": months},
        )
        return _decode(ClientRevenue.from_dict, payload, "client revenue")

    # Dashboard

    async def kpi(self, identity: Identity) -> KPISnapshot:
        payload = await self.client.get("/dashboard/kpi", identity=identity)
        return _decode(KPISnapshot.from_dict, payload, "kpi")

    async def revenue_chart(self, identity: Identity) -> list[RevenuePoint]:
        payload = await self.client.get("/dashboard/revenue-chart", identity=identity)
        return _decode(parse_revenue_series, payload, "revenue chart")

    async def top_clients(self, identity: Identity) -> list[TopClient]:
        payload = await self.client.get("/dashboard/top-clients", identity=identity)
        return _decode(parse_top_clients, payload, "top clients")

    async def recent_invoices(self, identity: Identity, limit: int = 5) -> list[Invoice]:
        payload = await self.client.get(
            "/dashboard/recent-invoices", identity=identity, params={"limit": limit}
        )
        return _decode(parse_invoices, payload, "recent invoices")

    async def reports_summary(self, identity: Identity) -> ReportsSummary:
        payload = await self.client.get("/dashboard/reports-summary", identity=identity)
        return _decode(ReportsSummary.from_dict, payload, "reports summary")

    async def primary_currency(self, identity: Identity) -> str:
        payload = await self.client.get("/dashboard/primary-currency", identity=identity)
        b = _decode(lambda p: wrap(p, "primary currency"), payload, "primary currency")
        return str(b.get("primary_currency") or DEFAULT_CURRENCY).upper()

    # Auth

    async def sync_user(self, identity: Identity) -> UserProfile:
        """Upsert the identity-provider user into the backend."""
        LOG.info("sync_user - external_id:%s", identity.external_id)
        payload = await self.client.post(
            "/auth/sync-user",
            identity=identity,
            body=identity.sync_payload(),
            authenticated=False,
        )
        return _decode(UserProfile.from_dict, payload, "synced user")

    # Settings

    async def get_profile(self, identity: Identity) -> UserProfile:
        payload = await self.client.get("/settings/profile", identity=identity)
        return _decode(UserProfile.from_dict, payload, "profile")

    async def update_profile(self, identity: Identity, draft: ProfileDraft) -> UserProfile:
        payload = await self.client.post(
            "/settings/profile", identity=identity, body=draft.to_payload()
        )
        return _decode(UserProfile.from_dict, payload, "profile")

    async def get_preferences(self, identity: Identity) -> UserPreferences:
        payload = await self.client.get("/settings/preferences", identity=identity)
        return _decode(UserPreferences.from_dict, payload, "preferences")

    async def update_preferences(
        self, identity: Identity, draft: PreferencesDraft
    ) -> UserPreferences:
        payload = await self.client.post(
            "/settings/preferences", identity=identity, body=draft.to_payload()
        )
        return _decode(UserPreferences.from_dict, payload, "preferences")

    async def subscription_status(self, identity: Identity) -> Subscription | None:
        payload = await self.client.get("/subscription/status", identity=identity)
        return _decode(Subscription.from_dict, payload, "subscription")

    async def usage_metrics(self, identity: Identity) -> UsageMetrics:
        payload = await self.client.get("/subscription/usage", identity=identity)
        return _decode(UsageMetrics.from_dict, payload, "usage")

    async def available_plans(self, identity: Identity) -> list[Plan]:
        payload = await self.client.get("/subscription/plans", identity=identity)
        return _decode(parse_plans, payload, "plans")

    async def change_plan(self, identity: Identity, plan_id: str) -> None:
        LOG.info("change_plan - user:%s plan:%s", identity.label, plan_id)
        await self.client.post(
            "/subscription/change", identity=identity, body={"plan_id": plan_id}
        )

    async def aclose(self) -> None:
        await self.client.aclose()
