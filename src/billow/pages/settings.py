"""
Settings page: profile, preferences, subscription, usage and plans.
"""

import asyncio
from decimal import Decimal
from typing import Any, Mapping

from billow.analytics import usage_percentage
from billow.models.settings import (
    Plan,
    PlanChange,
    PreferencesDraft,
    ProfileDraft,
)
from billow.pages.base import Page
from billow.sync import MutationOutcome


class SettingsPage(Page):
    """
    Account settings.

    Each form has its own coordinator; changing plan refetches both the
    subscription and the usage metrics before it settles.
    """

    name = "settings"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        svc, who = self.service, self.identity
        self.profile = self.entry("profile", lambda _: svc.get_profile(who))
        self.preferences = self.entry("preferences", lambda _: svc.get_preferences(who))
        self.subscription = self.entry(
            "subscription", lambda _: svc.subscription_status(who)
        )
        self.usage = self.entry("usage", lambda _: svc.usage_metrics(who))
        self.plans = self.entry("plans", lambda _: svc.available_plans(who))

        self.profile_form = self.coordinator(
            "update_profile",
            ProfileDraft,
            lambda draft: svc.update_profile(who, draft),
            refresh=(self.profile,),
        )
        self.preferences_form = self.coordinator(
            "update_preferences",
            PreferencesDraft,
            lambda draft: svc.update_preferences(who, draft),
            refresh=(self.preferences,),
        )
        self.plan_form = self.coordinator(
            "change_plan",
            PlanChange,
            lambda draft: svc.change_plan(who, draft.plan_id),
            refresh=(self.subscription, self.usage),
        )

    async def load(self) -> None:
        await asyncio.gather(
            self.profile.fetch(),
            self.preferences.fetch(),
            self.subscription.fetch(),
            self.usage.fetch(),
            self.plans.fetch(),
        )

    async def update_profile(self, values: Mapping[str, Any]) -> MutationOutcome:
        return await self.profile_form.submit(values)

    async def update_preferences(self, values: Mapping[str, Any]) -> MutationOutcome:
        return await self.preferences_form.submit(values)

    async def change_plan(self, plan_id: str) -> MutationOutcome:
        return await self.plan_form.submit({"plan_id": plan_id})

    @property
    def current_plan(self) -> Plan | None:
        subscription = self.subscription.data
        if subscription is None:
            return None
        if subscription.plan is not None:
            return subscription.plan
        return next(
            (p for p in self.plans.data or [] if p.id == subscription.plan_id), None
        )

    @property
    def invoice_usage(self) -> Decimal:
        usage = self.usage.data
        if usage is None:
            return Decimal(0)
        return usage_percentage(usage.invoices_created, usage.invoice_limit)

    @property
    def client_usage(self) -> Decimal:
        usage = self.usage.data
        if usage is None:
            return Decimal(0)
        return usage_percentage(usage.clients_created, usage.client_limit)
