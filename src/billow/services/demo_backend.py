"""
In-memory Billow backend served through ``httpx.MockTransport``.

This backend is useful for:
- Local development without a running server
- Testing the sync layer end to end through the real ResourceClient
- Demonstrating the pages from the command line

Routes mirror the live backend. Authenticated routes answer 401 without an
identity header and bad input answers 400 with ``{"error": ...}``.
Aggregates are computed like the live backend: amounts are converted to
USD with fixed demo rates, then into the primary currency (the most
frequent invoice currency).
"""

import asyncio
import json
import re
from collections import Counter
from datetime import date, datetime, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Callable

import httpx

from billow.data.demo_data import (
    DEMO_CLIENTS,
    DEMO_PLANS,
    DEMO_PREFERENCES,
    DEMO_USER,
    demo_invoices,
)
from billow.lib import logs
from billow.models.common import EMAIL_RE, QueryParams
from billow.models.identity import EXTERNAL_ID_HEADER, USER_ID_HEADER
from billow.models.invoice import InvoiceStatus
from billow.utils import DEFAULT_CURRENCY, matches_query, parse_date

LOG = logs.logger(__file__)

USD_RATES = {
    "USD": Decimal("1.0"),
    "EUR": Decimal("1.09"),
    "GBP": Decimal("1.27"),
    "INR": Decimal("0.012"),
    "CAD": Decimal("0.74"),
    "AUD": Decimal("0.66"),
}

_CENT = Decimal("0.01")


class DemoHTTPError(Exception):
    """Raised by a route handler to answer with an error status."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message


def _number(value: Decimal) -> float:
    return float(value.quantize(_CENT, rounding=ROUND_HALF_UP))


def _amount(invoice: dict) -> Decimal:
    return Decimal(str(invoice["amount"]))


def _currency(invoice: dict) -> str:
    return (invoice.get("currency_type") or DEFAULT_CURRENCY).upper()


def _month_key(value: date) -> tuple[int, int]:
    return value.year, value.month


def _route(
    method: str, pattern: str, handler: Callable, authenticated: bool = True
) -> tuple[str, re.Pattern, Callable, bool]:
    return method, re.compile(pattern), handler, authenticated


class DemoBackend:
    """
    Callable request handler holding one demo account in memory.

    Attributes:
        today: Reference date for relative data and the revenue chart.
        latency: Artificial delay per request, in seconds.
        clients: Client records keyed by id.
        invoices: Invoice records in insertion order.
    """

    def __init__(
        self, today: date | None = None, latency: float = 0.0, prefix: str = "/api"
    ) -> None:
        """
        Args:
            today: Reference date, or None for the current date.
            latency: Seconds to sleep before answering each request.
            prefix: Base path of the mounted API.
        """
        self.today = today or date.today()
        self.latency = latency
        self.prefix = prefix.rstrip("/")
        self.clients: dict[str, dict] = {c["id"]: dict(c) for c in DEMO_CLIENTS}
        self.invoices: list[dict] = demo_invoices(self.today)
        self.profile = dict(DEMO_USER)
        self.preferences = dict(DEMO_PREFERENCES)
        self.plans = [dict(plan) for plan in DEMO_PLANS]
        self.plan_id = "free"
        self._routes: list[tuple[str, re.Pattern, Callable, bool]] = [
            _route("GET", "/invoices", self._list_invoices),
            _route("POST", "/invoices", self._create_invoice),
            _route("GET", "/invoices/(?P<id>[^/]+)", self._get_invoice),
            _route("GET", "/clients", self._list_clients),
            _route("POST", "/clients", self._create_client),
            _route("GET", "/clients/(?P<id>[^/]+)/revenue-data", self._client_revenue),
            _route("GET", "/dashboard/kpi", self._kpi),
            _route("GET", "/dashboard/revenue-chart", self._revenue_chart),
            _route("GET", "/dashboard/top-clients", self._top_clients),
            _route("GET", "/dashboard/recent-invoices", self._recent_invoices),
            _route("GET", "/dashboard/reports-summary", self._reports_summary),
            _route("GET", "/dashboard/primary-currency", self._primary_currency_route),
            _route("POST", "/auth/sync-user", self._sync_user, authenticated=False),
            _route("GET", "/settings/profile", self._get_profile),
            _route("POST", "/settings/profile", self._update_profile),
            _route("GET", "/settings/preferences", self._get_preferences),
            _route("POST", "/settings/preferences", self._update_preferences),
            _route("GET", "/subscription/status", self._subscription),
            _route("GET", "/subscription/usage", self._usage),
            _route("GET", "/subscription/plans", self._plans),
            _route("POST", "/subscription/change", self._change_plan),
        ]

    def transport(self) -> httpx.MockTransport:
        """Return a mock transport answering from this backend."""
        return httpx.MockTransport(self)

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        if self.latency:
            await asyncio.sleep(self.latency)
        path = request.url.path
        if self.prefix and path.startswith(self.prefix):
            path = path[len(self.prefix) :]
        path = "/" + path.strip("/")

        for method, pattern, handler, authenticated in self._routes:
            match = pattern.fullmatch(path)
            if match is None or method != request.method:
                continue
            if authenticated and not (
                request.headers.get(USER_ID_HEADER)
                or request.headers.get(EXTERNAL_ID_HEADER)
            ):
                return httpx.Response(401, json={"error": "Authentication required"})
            try:
                payload = handler(request, **match.groupdict())
            except DemoHTTPError as exc:
                LOG.debug("demo %s %s -> %s", request.method, path, exc.status_code)
                return httpx.Response(exc.status_code, json={"error": exc.message})
            status = 201 if method == "POST" and path in {"/invoices", "/clients"} else 200
            return httpx.Response(status, json=payload)
        return httpx.Response(404, json={"error": f"No route for {request.method} {path}"})

    # Aggregation helpers

    def primary_currency(self) -> str:
        """Most frequent invoice currency, first seen on ties."""
        counts = Counter(_currency(inv) for inv in self.invoices)
        if not counts:
            return DEFAULT_CURRENCY
        return counts.most_common(1)[0][0]

    def convert(self, invoice: dict, primary: str) -> Decimal:
        """Convert an invoice amount into the primary currency via USD."""
        usd = _amount(invoice) * USD_RATES.get(_currency(invoice), Decimal(1))
        return usd / USD_RATES.get(primary, Decimal(1))

    def _client_out(self, client: dict) -> dict:
        mine = [inv for inv in self.invoices if inv["client_id"] == client["id"]]
        total = sum((_amount(inv) for inv in mine), Decimal(0))
        paid = sum(
            (_amount(inv) for inv in mine if inv["status"] == "paid"), Decimal(0)
        )
        average = total / len(mine) if mine else Decimal(0)
        return {
            **client,
            "total_invoiced": _number(total),
            "total_paid": _number(paid),
            "invoice_count": len(mine),
            "average_invoice": _number(average),
        }

    def _invoice_out(self, invoice: dict) -> dict:
        client = self.clients.get(invoice["client_id"], {})
        return {**invoice, "client_name": client.get("name", "")}

    def _newest_first(self, invoices: list[dict]) -> list[dict]:
        return sorted(invoices, key=lambda inv: inv["created_at"], reverse=True)

    # Invoices

    def _list_invoices(self, request: httpx.Request) -> list[dict]:
        try:
            params = QueryParams.from_query(dict(request.url.params))
        except ValueError as exc:
            raise DemoHTTPError(400, str(exc)) from exc
        rows = []
        for invoice in self._newest_first(self.invoices):
            row = self._invoice_out(invoice)
            if not matches_query([row["id"], row["client_name"]], params.search):
                continue
            if params.status and row["status"] != params.status:
                continue
            if params.currency and _currency(row) != params.currency:
                continue
            if not params.date_range.contains(parse_date(row["invoice_date"])):
                continue
            if not params.amount_range.contains(_amount(row)):
                continue
            rows.append(row)
        return rows[: params.limit] if params.limit is not None else rows

    def _get_invoice(self, request: httpx.Request, id: str) -> dict:
        for invoice in self.invoices:
            if invoice["id"] == id:
                return self._invoice_out(invoice)
        raise DemoHTTPError(404, "Invoice not found")

    def _create_invoice(self, request: httpx.Request) -> dict:
        body = _json_body(request)
        client_id = str(body.get("client_id") or "")
        client_name = str(body.get("client_name") or "").strip()
        if client_id:
            if client_id not in self.clients:
                raise DemoHTTPError(400, "Invalid client selected")
        elif client_name:
            client_id = self._find_or_create_client(client_name)
        else:
            raise DemoHTTPError(400, "Client is required")

        try:
            amount = Decimal(str(body.get("amount")))
        except InvalidOperation as exc:
            raise DemoHTTPError(400, "Amount must be a number") from exc
        if not amount.is_finite() or amount < 0:
            raise DemoHTTPError(400, "Amount must be a non-negative number")
        status = str(body.get("status") or InvoiceStatus.UNPAID.value).lower()
        if status not in {s.value for s in InvoiceStatus}:
            raise DemoHTTPError(400, f"Unknown status: {status}")
        invoice_date = parse_date(body.get("invoice_date")) or self.today
        due_date = parse_date(body.get("due_date"))

        now = datetime.now(timezone.utc).isoformat()
        invoice = {
            "id": f"INV-{len(self.invoices) + 1:03d}",
            "client_id": client_id,
            "invoice_date": invoice_date.isoformat(),
            "due_date": due_date.isoformat() if due_date else "",
            "amount": float(amount),
            "currency_type": str(body.get("currency_type") or DEFAULT_CURRENCY).upper(),
            "status": status,
            "created_at": now,
            "updated_at": now,
        }
        self.invoices.append(invoice)
        LOG.info("demo create_invoice - id:%s client:%s", invoice["id"], client_id)
        return self._invoice_out(invoice)

    def _find_or_create_client(self, name: str) -> str:
        for client in self.clients.values():
            if client["name"].lower() == name.lower():
                return client["id"]
        client_id = f"CLI-{len(self.clients) + 1:03d}"
        self.clients[client_id] = {"id": client_id, "name": name, "email": ""}
        return client_id

    # Clients

    def _list_clients(self, request: httpx.Request) -> list[dict]:
        search = request.url.params.get("search")
        return [
            self._client_out(client)
            for client in self.clients.values()
            if matches_query([client["name"], client.get("email", "")], search)
        ]

    def _create_client(self, request: httpx.Request) -> dict:
        body = _json_body(request)
        name = str(body.get("name") or "").strip()
        email = str(body.get("email") or "").strip()
        if not name or not email:
            raise DemoHTTPError(400, "Name and email are required")
        if not EMAIL_RE.match(email):
            raise DemoHTTPError(400, "Invalid email address")
        client_id = f"CLI-{len(self.clients) + 1:03d}"
        client = {"id": client_id, "name": name, "email": email}
        for key in ("phone", "company", "address"):
            if body.get(key):
                client[key] = str(body[key])
        self.clients[client_id] = client
        LOG.info("demo create_client - id:%s", client_id)
        return self._client_out(client)

    def _client_revenue(self, request: httpx.Request, id: str) -> dict:
        try:
            months = int(request.url.params.get("months", 7))
        except ValueError:
            months = 7
        paid = [
            inv
            for inv in self.invoices
            if inv["client_id"] == id and inv["status"] == "paid"
        ]
        paid.sort(key=lambda inv: inv["invoice_date"], reverse=True)
        values = [float(_amount(inv)) for inv in paid[:months]]
        values += [0.0] * (months - len(values))
        return {"client_id": id, "months": months, "revenue_data": values}

    # Dashboard

    def _kpi(self, request: httpx.Request) -> dict:
        primary = self.primary_currency()
        invoiced = sum((self.convert(inv, primary) for inv in self.invoices), Decimal(0))
        paid = sum(
            (self.convert(inv, primary) for inv in self.invoices if inv["status"] == "paid"),
            Decimal(0),
        )
        return {
            "total_invoiced": _number(invoiced),
            "total_paid": _number(paid),
            "outstanding": _number(invoiced - paid),
            "client_count": len(self.clients),
            "primary_currency": primary,
        }

    def _revenue_chart(self, request: httpx.Request) -> list[dict]:
        primary = self.primary_currency()
        months = []
        year, month = self.today.year, self.today.month
        for _ in range(12):
            months.append((year, month))
            year, month = (year, month - 1) if month > 1 else (year - 1, 12)
        months.reverse()

        totals = {key: Decimal(0) for key in months}
        for invoice in self.invoices:
            invoice_date = parse_date(invoice["invoice_date"])
            if invoice["status"] != "paid" or invoice_date is None:
                continue
            key = _month_key(invoice_date)
            if key in totals:
                totals[key] += self.convert(invoice, primary)
        return [
            {"month": date(y, m, 1).strftime("%b"), "revenue": _number(totals[(y, m)])}
            for y, m in months
        ]

    def _paid_by_client(self, primary: str) -> list[tuple[str, Decimal]]:
        revenue = []
        for client in self.clients.values():
            total = sum(
                (
                    self.convert(inv, primary)
                    for inv in self.invoices
                    if inv["client_id"] == client["id"] and inv["status"] == "paid"
                ),
                Decimal(0),
            )
            revenue.append((client["name"], total))
        return revenue

    def _top_clients(self, request: httpx.Request) -> list[dict]:
        ranked = sorted(
            self._paid_by_client(self.primary_currency()),
            key=lambda item: item[1],
            reverse=True,
        )
        return [{"name": name, "revenue": _number(total)} for name, total in ranked[:5]]

    def _recent_invoices(self, request: httpx.Request) -> list[dict]:
        try:
            limit = int(request.url.params.get("limit", 5))
        except ValueError as exc:
            raise DemoHTTPError(400, "limit must be an integer") from exc
        return [self._invoice_out(inv) for inv in self._newest_first(self.invoices)[:limit]]

    def _reports_summary(self, request: httpx.Request) -> dict:
        primary = self.primary_currency()
        total = sum((self.convert(inv, primary) for inv in self.invoices), Decimal(0))
        paid = sum(
            (self.convert(inv, primary) for inv in self.invoices if inv["status"] == "paid"),
            Decimal(0),
        )
        top_name, top_revenue = "", Decimal(0)
        for name, revenue in self._paid_by_client(primary):
            if revenue > top_revenue:
                top_name, top_revenue = name, revenue

        monthly: dict[tuple[int, int], Decimal] = {}
        for invoice in self.invoices:
            invoice_date = parse_date(invoice["invoice_date"])
            if invoice["status"] == "paid" and invoice_date is not None:
                key = _month_key(invoice_date)
                monthly[key] = monthly.get(key, Decimal(0)) + self.convert(invoice, primary)
        top_month = ""
        if monthly:
            y, m = max(monthly, key=lambda key: monthly[key])
            top_month = date(y, m, 1).strftime("%B %Y")

        count = len(self.clients)
        return {
            "total_revenue": _number(total),
            "collection_rate": _number(paid / total * 100) if total else 0.0,
            "client_count": count,
            "average_per_client": _number(total / count) if count else 0.0,
            "top_client": top_name,
            "top_client_revenue": _number(top_revenue),
            "top_revenue_month": top_month,
            "primary_currency": primary,
        }

    def _primary_currency_route(self, request: httpx.Request) -> dict:
        return {"primary_currency": self.primary_currency()}

    # Auth and settings

    def _sync_user(self, request: httpx.Request) -> dict:
        body = _json_body(request)
        if not body.get("clerk_id") and not body.get("email"):
            raise DemoHTTPError(400, "clerk_id or email is required")
        for key in ("email", "display_name", "profile_image"):
            if body.get(key):
                self.profile[key] = str(body[key])
        return {"user": dict(self.profile)}

    def _get_profile(self, request: httpx.Request) -> dict:
        return dict(self.profile)

    def _update_profile(self, request: httpx.Request) -> dict:
        body = _json_body(request)
        if not str(body.get("display_name") or "").strip():
            raise DemoHTTPError(400, "Display name is required")
        for key in ("display_name", "email", "profile_image"):
            if key in body:
                self.profile[key] = str(body[key])
        return {"message": "Profile updated successfully", "user": dict(self.profile)}

    def _get_preferences(self, request: httpx.Request) -> dict:
        return dict(self.preferences)

    def _update_preferences(self, request: httpx.Request) -> dict:
        body = _json_body(request)
        unknown = set(body) - set(self.preferences)
        if unknown:
            raise DemoHTTPError(400, f"Unknown preferences: {', '.join(sorted(unknown))}")
        self.preferences.update(body)
        return {
            "message": "Preferences updated successfully",
            "preferences": dict(self.preferences),
        }

    def _current_plan(self) -> dict:
        return next(plan for plan in self.plans if plan["id"] == self.plan_id)

    def _subscription(self, request: httpx.Request) -> dict:
        period_end = datetime.combine(
            self.today + timedelta(days=30), datetime.min.time(), tzinfo=timezone.utc
        )
        return {
            "subscription": {
                "id": f"SUB-{self.profile['id']}",
                "plan_id": self.plan_id,
                "status": "active",
                "current_period_end": period_end.isoformat(),
                "plan": self._current_plan(),
            }
        }

    def _usage(self, request: httpx.Request) -> dict:
        plan = self._current_plan()
        start = self.today.replace(day=1)
        return {
            "current_usage": {
                "invoices_created": len(self.invoices),
                "clients_created": len(self.clients),
            },
            "limits": {
                "invoice_limit": plan["invoice_limit"],
                "client_limit": plan["client_limit"],
            },
            "period": {"start": start.isoformat(), "end": self.today.isoformat()},
        }

    def _plans(self, request: httpx.Request) -> dict:
        return {"plans": [dict(plan) for plan in self.plans]}

    def _change_plan(self, request: httpx.Request) -> dict:
        plan_id = str(_json_body(request).get("plan_id") or "")
        if plan_id not in {plan["id"] for plan in self.plans}:
            raise DemoHTTPError(400, f"Unknown plan: {plan_id or '(none)'}")
        self.plan_id = plan_id
        LOG.info("demo change_plan - plan:%s", plan_id)
        return {"message": "Plan changed successfully", "plan_id": plan_id}


def _json_body(request: httpx.Request) -> dict[str, Any]:
    """Decode a JSON object body, answering 400 otherwise."""
    try:
        body = json.loads(request.content or b"{}")
    except ValueError as exc:
        raise DemoHTTPError(400, "Invalid request body") from exc
    if not isinstance(body, dict):
        raise DemoHTTPError(400, "Request body must be an object")
    return body
