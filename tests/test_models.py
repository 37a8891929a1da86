"""
Payload decoding, parameter tuples and form drafts.
"""

from datetime import date
from decimal import Decimal

import pydantic
import pytest

from billow.errors import DecodeError
from billow.models import (
    Client,
    ClientDraft,
    ClientRevenue,
    Identity,
    Invoice,
    InvoiceDraft,
    InvoiceStatus,
    KPISnapshot,
    QueryParams,
    Subscription,
    UsageMetrics,
    UserPreferences,
    UserProfile,
    parse_invoices,
    parse_plans,
)
from billow.models.common import AmountRange, DateRange, first_of, wrap


class TestInvoiceDecoding:
    def test_canonical_payload(self):
        invoice = Invoice.from_dict(
            {
                "id": "INV-001",
                "client_id": "CLI-001",
                "client_name": "TechCorp Solutions",
                "invoice_date": "2025-01-15",
                "due_date": "2025-02-14",
                "amount": 1250.5,
                "currency_type": "eur",
                "status": "Paid",
                "created_at": "2025-01-15T09:00:00Z",
            }
        )
        assert invoice.id == "INV-001"
        assert invoice.amount == Decimal("1250.5")
        assert invoice.currency == "EUR"
        assert invoice.status is InvoiceStatus.PAID
        assert invoice.invoice_date == date(2025, 1, 15)
        assert invoice.created_at.year == 2025
        assert invoice.formatted_amount() == "EUR 1,250.50"
        assert invoice.formatted_due_date() == "Feb 14, 2025"

    def test_naming_variants(self):
        invoice = Invoice.from_dict(
            {
                "invoice_id": 7,
                "client": {"id": "CLI-009", "name": "Acme"},
                "amount_due": "99.99",
                "currency": "inr",
                "status": "overdue",
            }
        )
        assert invoice.id == "7"
        assert invoice.client_id == "CLI-009"
        assert invoice.client_name == "Acme"
        assert invoice.amount == Decimal("99.99")
        assert invoice.currency == "INR"
        assert invoice.due_date is None
        assert invoice.formatted_due_date() == "N/A"

    def test_legacy_client_string_and_default_currency(self):
        invoice = Invoice.from_dict(
            {"id": "INV-2", "client": "Legacy Co", "amount": 10, "status": "unpaid"}
        )
        assert invoice.client_name == "Legacy Co"
        assert invoice.client_label == "Legacy Co"
        assert invoice.currency == "USD"

    def test_unknown_status_is_decode_error(self):
        with pytest.raises(DecodeError):
            Invoice.from_dict({"id": "INV-3", "amount": 1, "status": "void"})

    def test_missing_id_is_decode_error(self):
        with pytest.raises(DecodeError):
            Invoice.from_dict({"amount": 1, "status": "paid"})

    def test_non_numeric_amount_is_decode_error(self):
        with pytest.raises(DecodeError):
            Invoice.from_dict({"id": "INV-4", "amount": "lots", "status": "paid"})

    def test_list_payload_must_be_a_list(self):
        with pytest.raises(DecodeError):
            parse_invoices({"invoices": []})

    def test_to_dict_is_json_ready(self):
        invoice = Invoice.from_dict({"id": "INV-5", "amount": 3, "status": "processing"})
        data = invoice.to_dict()
        assert data["amount"] == "3"
        assert data["status"] == "processing"
        assert data["invoice_date"] is None


class TestClientDecoding:
    def test_camel_case_aggregates(self):
        client = Client.from_dict(
            {
                "id": "CLI-1",
                "name": "acme",
                "email": "a@acme.example",
                "totalInvoiced": 1000,
                "totalPaid": 750,
                "invoiceCount": 4,
                "averageInvoice": 250,
                "paymentDelay": 12,
            }
        )
        assert client.total_invoiced == Decimal(1000)
        assert client.total_paid == Decimal(750)
        assert client.invoice_count == 4
        assert client.payment_delay == 12
        assert client.initial == "A"

    def test_missing_name_is_decode_error(self):
        with pytest.raises(DecodeError):
            Client.from_dict({"id": "CLI-1", "email": "x@y.z"})

    def test_revenue_series(self):
        revenue = ClientRevenue.from_dict(
            {"client_id": "CLI-1", "months": 3, "revenue_data": [100, 0, 25.5]}
        )
        assert revenue.values == (Decimal(100), Decimal(0), Decimal("25.5"))
        assert ClientRevenue.empty("CLI-2", 7).values == ()


class TestAccountDecoding:
    def test_kpi_defaults_currency(self):
        kpi = KPISnapshot.from_dict(
            {"total_invoiced": 10, "total_paid": 4, "outstanding": 6, "client_count": 2}
        )
        assert kpi.primary_currency == "USD"
        assert kpi.outstanding == Decimal(6)

    def test_profile_unwraps_user(self):
        profile = UserProfile.from_dict(
            {"message": "ok", "user": {"id": "U1", "email": "e@x.io", "display_name": "E"}}
        )
        assert profile.display_name == "E"

    def test_preferences_fill_defaults(self):
        prefs = UserPreferences.from_dict({"preferences": {"theme": "dark", "currency": "eur"}})
        assert prefs.theme == "dark"
        assert prefs.currency == "EUR"
        assert prefs.timezone == "UTC"

    def test_no_subscription_is_none(self):
        assert Subscription.from_dict({"subscription": None}) is None

    def test_subscription_with_plan(self):
        subscription = Subscription.from_dict(
            {
                "subscription": {
                    "id": "SUB-1",
                    "plan_id": "pro",
                    "status": "active",
                    "plan": {"id": "pro", "name": "Pro", "price": 19},
                }
            }
        )
        assert subscription.plan.name == "Pro"
        assert subscription.plan.price == Decimal(19)

    def test_usage_nested_fields(self):
        usage = UsageMetrics.from_dict(
            {
                "current_usage": {"invoices_created": 3, "clients_created": 1},
                "limits": {"invoice_limit": 10, "client_limit": -1},
                "period": {"start": "2025-06-01"},
            }
        )
        assert (usage.invoices_created, usage.invoice_limit, usage.client_limit) == (3, 10, -1)

    def test_plans_accept_wrapped_or_bare_lists(self):
        plan = {"id": "free", "name": "Free", "price": 0}
        assert parse_plans({"plans": [plan]})[0].id == "free"
        assert parse_plans([plan])[0].name == "Free"


class TestQueryParams:
    def test_normalization_makes_equivalent_keys(self):
        a = QueryParams(search="  acme   corp ", status="ALL", currency="usd")
        b = QueryParams(search="acme corp", currency="USD")
        assert a == b
        assert a.key() == b.key()
        assert a.status is None

    def test_distinct_filters_have_distinct_keys(self):
        assert QueryParams(status="paid").key() != QueryParams(status="unpaid").key()

    def test_to_query_omits_unset_values(self):
        params = QueryParams(
            search="tech",
            date_range=DateRange(date(2025, 1, 1), None),
            amount_range=AmountRange(Decimal("100"), None),
        )
        assert params.to_query() == {
            "search": "tech",
            "date_from": "2025-01-01",
            "min_amount": "100",
        }
        assert params.is_filtered
        assert not QueryParams(limit=5).is_filtered

    def test_from_query_inverts_to_query(self):
        params = QueryParams(
            search="x", status="paid", amount_range=AmountRange(None, Decimal("50")), limit=3
        )
        assert QueryParams.from_query(params.to_query()) == params

    def test_from_query_rejects_bad_numbers(self):
        with pytest.raises(ValueError):
            QueryParams.from_query({"min_amount": "cheap"})

    def test_ranges_are_inclusive(self):
        span = DateRange(date(2025, 1, 1), date(2025, 1, 31))
        assert span.contains(date(2025, 1, 31))
        assert not span.contains(None)
        assert DateRange().contains(None)
        assert AmountRange(Decimal(1), Decimal(2)).contains(Decimal(2))


class TestDrafts:
    def test_invoice_draft_payload(self):
        draft = InvoiceDraft(
            client_id="CLI-1",
            amount="120.50",
            currency="eur",
            invoice_date="2025-06-01",
            due_date="2025-07-01",
        )
        assert draft.to_payload() == {
            "amount": 120.5,
            "currency_type": "EUR",
            "status": "unpaid",
            "invoice_date": "2025-06-01",
            "due_date": "2025-07-01",
            "client_id": "CLI-1",
        }

    @pytest.mark.parametrize(
        "values, field",
        [
            ({"amount": 10}, "client_name"),
            ({"client_id": "C", "amount": -1}, "amount"),
            ({"client_id": "C", "amount": 1, "currency": "EURO"}, "currency"),
            ({"client_id": "C", "amount": 1, "status": "void"}, "status"),
            (
                {
                    "client_id": "C",
                    "amount": 1,
                    "invoice_date": "2025-06-10",
                    "due_date": "2025-06-01",
                },
                "due_date",
            ),
        ],
    )
    def test_invoice_draft_rejects(self, values, field):
        with pytest.raises(pydantic.ValidationError) as info:
            InvoiceDraft(**values)
        assert field in {error["loc"][0] for error in info.value.errors()}

    def test_client_draft_strips_and_omits_blank_extras(self):
        draft = ClientDraft(name="  Acme ", email="billing@acme.example", phone="")
        assert draft.to_payload() == {"name": "Acme", "email": "billing@acme.example"}

    def test_client_draft_requires_name_and_email(self):
        with pytest.raises(pydantic.ValidationError) as info:
            ClientDraft(name="", email="nope")
        fields = {error["loc"][0] for error in info.value.errors()}
        assert fields == {"name", "email"}


def test_identity_sync_payload_defaults_display_name():
    identity = Identity(external_id="user_1", email="e@x.io")
    assert identity.sync_payload()["display_name"] == "User"
    assert identity.label == "user_1"
    assert not Identity().is_authenticated


def test_wrapped_payloads_resolve_keypath_variants():
    b = wrap({"client": {"name": "Acme"}, "flat": "x", "email": None}, "client")
    assert b.get("client.name") == "Acme"
    assert first_of(b, "client_name", "client.name") == "Acme"
    assert first_of(b, "flat.name", default="missing") == "missing"
    assert first_of(b, "email", default="") == ""
    assert first_of(b, "absent") is None


def test_wrap_rejects_dotted_keys():
    with pytest.raises(DecodeError):
        wrap({"client.name": "Acme"}, "invoice")
