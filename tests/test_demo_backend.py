"""
Demo backend routes, filters and aggregates.
"""

import asyncio
from decimal import Decimal

import httpx
import pytest

from billow.errors import ServerError
from billow.models import ClientDraft, Identity, InvoiceDraft, QueryParams
from billow.services.demo_backend import DemoBackend

from conftest import BASE_URL, TODAY


def _raw(backend: DemoBackend, method: str, path: str, **kwargs) -> httpx.Response:
    async def send():
        async with httpx.AsyncClient(
            base_url=BASE_URL, transport=backend.transport()
        ) as client:
            return await client.request(method, path, **kwargs)

    return asyncio.run(send())


class TestRouting:
    def test_authenticated_route_requires_identity(self, backend):
        response = _raw(backend, "GET", "/invoices")
        assert response.status_code == 401
        assert response.json() == {"error": "Authentication required"}

    def test_unknown_route_is_404(self, backend):
        response = _raw(backend, "GET", "/nope", headers={"X-User-ID": "U"})
        assert response.status_code == 404

    def test_create_answers_201(self, backend):
        response = _raw(
            backend,
            "POST",
            "/clients",
            headers={"X-Clerk-ID": "user_1"},
            json={"name": "Acme", "email": "a@acme.example"},
        )
        assert response.status_code == 201
        assert response.json()["id"] == "CLI-007"

    def test_malformed_body_is_400(self, backend):
        response = _raw(
            backend, "POST", "/clients", headers={"X-User-ID": "U"}, content=b"[1, 2]"
        )
        assert response.status_code == 400

    def test_unknown_preference_is_400(self, backend):
        response = _raw(
            backend,
            "POST",
            "/settings/preferences",
            headers={"X-User-ID": "U"},
            json={"font": "comic"},
        )
        assert response.status_code == 400
        assert "font" in response.json()["error"]


class TestInvoices:
    def test_status_filter_newest_first(self, service, identity):
        invoices = asyncio.run(service.list_invoices(identity, QueryParams(status="paid")))
        assert len(invoices) == 8
        assert invoices[0].id == "INV-008"
        assert {invoice.status.value for invoice in invoices} == {"paid"}

    def test_search_matches_client_name(self, service, identity):
        invoices = asyncio.run(service.list_invoices(identity, QueryParams(search="techcorp")))
        assert [invoice.id for invoice in invoices] == ["INV-009", "INV-004", "INV-001"]
        assert invoices[0].client_name == "TechCorp Solutions"

    def test_currency_and_limit(self, service, identity):
        eur = asyncio.run(service.list_invoices(identity, QueryParams(currency="eur")))
        assert [invoice.id for invoice in eur] == ["INV-010", "INV-005"]
        latest = asyncio.run(service.list_invoices(identity, QueryParams(limit=2)))
        assert [invoice.id for invoice in latest] == ["INV-012", "INV-011"]

    def test_create_with_new_client_name(self, service, identity, backend):
        draft = InvoiceDraft(client_name="Fresh Co", amount="250", currency="cad")
        invoice = asyncio.run(service.create_invoice(identity, draft))
        assert invoice.id == "INV-013"
        assert invoice.client_name == "Fresh Co"
        assert invoice.currency == "CAD"
        assert invoice.invoice_date == TODAY
        assert invoice.client_id in backend.clients

    def test_create_with_unknown_client_is_rejected(self, service, identity):
        draft = InvoiceDraft(client_id="CLI-999", amount=1)
        with pytest.raises(ServerError) as info:
            asyncio.run(service.create_invoice(identity, draft))
        assert info.value.status_code == 400
        assert info.value.message == "Invalid client selected"

    def test_get_invoice(self, service, identity):
        invoice = asyncio.run(service.get_invoice(identity, "INV-005"))
        assert invoice.amount == Decimal(6400)
        with pytest.raises(ServerError):
            asyncio.run(service.get_invoice(identity, "INV-404"))


class TestClients:
    def test_list_has_aggregates(self, service, identity):
        clients = asyncio.run(service.list_clients(identity))
        techcorp = clients[0]
        assert len(clients) == 6
        assert techcorp.invoice_count == 3
        assert techcorp.total_invoiced == Decimal(36200)
        assert techcorp.total_paid == Decimal(22300)

    def test_search_by_email(self, service, identity):
        clients = asyncio.run(service.list_clients(identity, QueryParams(search="northwind")))
        assert [client.id for client in clients] == ["CLI-006"]

    def test_server_side_email_check(self, service, identity):
        draft = ClientDraft.model_construct(name="Acme", email="nope")
        with pytest.raises(ServerError) as info:
            asyncio.run(service.create_client(identity, draft))
        assert info.value.message == "Invalid email address"

    def test_revenue_data_is_zero_padded(self, service, identity):
        revenue = asyncio.run(service.client_revenue(identity, "CLI-001", months=3))
        assert revenue.values == (Decimal(9800), Decimal(12500), Decimal(0))
        assert revenue.months == 3


class TestDashboard:
    def test_kpi_in_primary_currency(self, service, identity):
        kpi = asyncio.run(service.kpi(identity))
        assert kpi.primary_currency == "USD"
        assert kpi.client_count == 6
        assert kpi.outstanding == kpi.total_invoiced - kpi.total_paid

    def test_revenue_chart_covers_twelve_months(self, service, identity):
        series = asyncio.run(service.revenue_chart(identity))
        assert len(series) == 12
        assert (series[0].month, series[-1].month) == ("Jul", "Jun")
        assert series[0].revenue == Decimal(12500)
        assert series[-1].revenue == 0

    def test_top_clients_ranked_by_converted_paid_revenue(self, service, identity):
        top = asyncio.run(service.top_clients(identity))
        assert [client.name for client in top] == [
            "Innovation Labs",
            "TechCorp Solutions",
            "Digital Dynamics",
            "Creative Studios",
            "Growth Partners",
        ]

    def test_reports_summary(self, service, identity):
        summary = asyncio.run(service.reports_summary(identity))
        assert summary.top_client == "Innovation Labs"
        assert summary.top_revenue_month == "September 2024"
        assert summary.client_count == 6

    def test_recent_invoices_and_primary_currency(self, service, identity):
        recent = asyncio.run(service.recent_invoices(identity, limit=3))
        assert [invoice.id for invoice in recent] == ["INV-012", "INV-011", "INV-010"]
        assert asyncio.run(service.primary_currency(identity)) == "USD"

    def test_empty_account(self, service, identity, backend):
        backend.invoices.clear()
        backend.clients.clear()
        kpi = asyncio.run(service.kpi(identity))
        summary = asyncio.run(service.reports_summary(identity))
        assert kpi.total_invoiced == 0
        assert summary.collection_rate == 0
        assert summary.top_client == ""


class TestAccount:
    def test_sync_user_without_backend_id(self, service):
        external = Identity(external_id="user_42", email="new@billow.example")
        profile = asyncio.run(service.sync_user(external))
        assert profile.email == "new@billow.example"

    def test_change_plan_updates_subscription_and_usage(self, service, identity):
        asyncio.run(service.change_plan(identity, "pro"))
        subscription = asyncio.run(service.subscription_status(identity))
        usage = asyncio.run(service.usage_metrics(identity))
        assert subscription.plan_id == "pro"
        assert subscription.plan.name == "Pro"
        assert usage.invoice_limit == -1
        assert usage.invoices_created == 12

    def test_unknown_plan_is_rejected(self, service, identity):
        with pytest.raises(ServerError) as info:
            asyncio.run(service.change_plan(identity, "gold"))
        assert info.value.message == "Unknown plan: gold"
