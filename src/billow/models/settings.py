"""
Account settings models: profile, preferences and subscription.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator

from billow.models.common import EMAIL_RE, expect_list, first_of, money, to_int, wrap
from billow.utils import DEFAULT_CURRENCY, parse_datetime

UNLIMITED = -1


@dataclass(frozen=True, slots=True)
class UserProfile:
    id: str
    email: str
    display_name: str
    profile_image: str = ""

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "UserProfile":
        b = wrap(payload, "profile")
        # POST /settings/profile answers {"user": {...}}
        if isinstance(b.get("user"), Mapping):
            b = wrap(b["user"], "profile")
        return cls(
            id=str(first_of(b, "id", default="")),
            email=str(first_of(b, "email", default="")),
            display_name=str(first_of(b, "display_name", "displayName", default="")),
            profile_image=str(first_of(b, "profile_image", "avatar", default="")),
        )


class ProfileDraft(BaseModel):
    """Profile form values."""

    model_config = ConfigDict(str_strip_whitespace=True)

    display_name: str = Field(default="", validate_default=True)
    email: str = Field(default="", validate_default=True)
    profile_image: str = ""

    @field_validator("display_name")
    @classmethod
    def _name_required(cls, value: str) -> str:
        if not value:
            raise ValueError("Display name is required")
        return value

    @field_validator("email")
    @classmethod
    def _email_pattern(cls, value: str) -> str:
        if not EMAIL_RE.match(value):
            raise ValueError("Enter a valid email address")
        return value

    def to_payload(self) -> dict[str, str]:
        return self.model_dump()


@dataclass(frozen=True, slots=True)
class UserPreferences:
    theme: str = "light"
    language: str = "en"
    email_notifications: bool = True
    push_notifications: bool = True
    weekly_reports: bool = True
    security_alerts: bool = True
    currency: str = DEFAULT_CURRENCY
    timezone: str = "UTC"

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "UserPreferences":
        b = wrap(payload, "preferences")
        if isinstance(b.get("preferences"), Mapping):
            b = wrap(b["preferences"], "preferences")
        defaults = cls()
        values = {
            key: first_of(b, key, default=getattr(defaults, key))
            for key in defaults.to_dict()
        }
        values["currency"] = str(values["currency"]).upper()
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class PreferencesDraft(BaseModel):
    """Preferences form values."""

    theme: str = "light"
    language: str = "en"
    email_notifications: bool = True
    push_notifications: bool = True
    weekly_reports: bool = True
    security_alerts: bool = True
    currency: str = DEFAULT_CURRENCY
    timezone: str = "UTC"

    @field_validator("theme")
    @classmethod
    def _known_theme(cls, value: str) -> str:
        if value not in {"light", "dark"}:
            raise ValueError("Theme must be light or dark")
        return value

    @field_validator("currency")
    @classmethod
    def _currency_code(cls, value: str) -> str:
        value = value.strip().upper()
        if len(value) != 3 or not value.isalpha():
            raise ValueError("Currency must be a 3-letter ISO 4217 code")
        return value

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump()


@dataclass(frozen=True, slots=True)
class Plan:
    """A subscription plan."""

    id: str
    name: str
    price: Decimal
    currency: str
    interval: str
    features: tuple[str, ...] = ()
    popular: bool = False
    invoice_limit: int = UNLIMITED
    client_limit: int = UNLIMITED

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Plan":
        b = wrap(payload, "plan")
        return cls(
            id=str(first_of(b, "id", default="")),
            name=str(first_of(b, "name", default="")),
            price=money(b, "price"),
            currency=str(first_of(b, "currency", default=DEFAULT_CURRENCY)).upper(),
            interval=str(first_of(b, "interval", default="month")),
            features=tuple(str(f) for f in first_of(b, "features", default=[])),
            popular=bool(first_of(b, "popular", default=False)),
            invoice_limit=to_int(
                first_of(b, "invoice_limit", default=UNLIMITED), "invoice_limit"
            ),
            client_limit=to_int(first_of(b, "client_limit", default=UNLIMITED), "client_limit"),
        )


def parse_plans(payload: Any) -> list[Plan]:
    """Decode ``{"plans": [...]}`` (or a bare list) into plans."""
    if isinstance(payload, Mapping):
        payload = payload.get("plans")
    return [Plan.from_dict(item) for item in expect_list(payload, "plans")]


@dataclass(frozen=True, slots=True)
class Subscription:
    id: str
    plan_id: str
    status: str
    current_period_end: datetime | None
    plan: Plan | None = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Subscription | None":
        """Decode ``{"subscription": {...}}``; None when the user has none."""
        b = wrap(payload, "subscription")
        if "subscription" in b:
            if b["subscription"] is None:
                return None
            b = wrap(b["subscription"], "subscription")
        plan = b.get("plan")
        return cls(
            id=str(first_of(b, "id", default="")),
            plan_id=str(first_of(b, "plan_id", default="")),
            status=str(first_of(b, "status", default="")),
            current_period_end=parse_datetime(first_of(b, "current_period_end")),
            plan=Plan.from_dict(plan) if isinstance(plan, Mapping) else None,
        )


@dataclass(frozen=True, slots=True)
class UsageMetrics:
    invoices_created: int
    clients_created: int
    invoice_limit: int = UNLIMITED
    client_limit: int = UNLIMITED
    period: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "UsageMetrics":
        b = wrap(payload, "usage")
        period = b.get("period") or {}
        return cls(
            invoices_created=to_int(
                first_of(b, "current_usage.invoices_created", default=0), "invoices_created"
            ),
            clients_created=to_int(
                first_of(b, "current_usage.clients_created", default=0), "clients_created"
            ),
            invoice_limit=to_int(
                first_of(b, "limits.invoice_limit", default=UNLIMITED), "invoice_limit"
            ),
            client_limit=to_int(
                first_of(b, "limits.client_limit", default=UNLIMITED), "client_limit"
            ),
            period={str(k): str(v) for k, v in dict(period).items()},
        )


class PlanChange(BaseModel):
    """Change-plan form values."""

    model_config = ConfigDict(str_strip_whitespace=True)

    plan_id: str = Field(default="", validate_default=True)

    @field_validator("plan_id")
    @classmethod
    def _plan_required(cls, value: str) -> str:
        if not value:
            raise ValueError("Choose a plan")
        return value
