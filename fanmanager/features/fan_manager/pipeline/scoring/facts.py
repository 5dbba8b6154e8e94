"""
Derived facts for one relationship snapshot.

Everything the classifiers consume is computed here once, from the nested
children of a ``FanRecord`` and a single ``now``. Missing data becomes
``None`` (timestamps, recencies) or ``0`` (amounts); nothing raises.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from fanmanager.features.fan_manager.domain.models import (
    SUBSCRIPTION_GRANT_TYPES,
    AccessGrant,
    ExtraPurchase,
    FanRecord,
)
from fanmanager.features.fan_manager.domain.recency import (
    days_since,
    days_until,
    ensure_utc,
    latest_visible_message_at,
    min_recency,
)

RECENT_SPEND_WINDOW_DAYS = 30


@dataclass(slots=True)
class FanFacts:
    now: datetime
    last_message_at: datetime | None
    last_creator_message_at: datetime | None
    last_purchase_at: datetime | None
    days_since_last_message: int | None
    days_since_last_purchase: int | None
    days_since_last_interaction: int | None
    has_active_grant: bool
    has_active_subscription: bool
    has_active_monthly: bool
    has_active_special: bool
    has_active_trial: bool
    active_grant_type: str | None
    days_to_expiry: int | None
    subscription_days_to_expiry: int | None
    lifetime_value: float
    recent_30d_spend: float
    lifetime_extra_spend: float
    extra_spend_last_30d: float
    extras_count: int
    is_new_flag: bool


def _is_paid(purchase: ExtraPurchase) -> bool:
    return (purchase.amount or 0) > 0 and not purchase.archived


def _latest_active_grant(
    grants: list[AccessGrant], now: datetime, types: frozenset[str] | None = None
) -> AccessGrant | None:
    active = [
        grant
        for grant in grants
        if ensure_utc(grant.expires_at) > now
        and (types is None or (grant.type or "").lower() in types)
    ]
    if not active:
        return None
    return max(active, key=lambda grant: ensure_utc(grant.expires_at))


def build_fan_facts(fan: FanRecord, now: datetime) -> FanFacts:
    """Compute recency deltas and monetary aggregates relative to ``now``."""
    now = ensure_utc(now)
    window_start = now - timedelta(days=RECENT_SPEND_WINDOW_DAYS)

    last_message_at = latest_visible_message_at(fan.messages)
    last_creator_message_at = latest_visible_message_at(fan.messages, sender="creator")

    paid = [purchase for purchase in fan.extra_purchases if _is_paid(purchase)]
    last_purchase_at = max((ensure_utc(p.created_at) for p in paid), default=None)

    extras = [purchase for purchase in fan.extra_purchases if purchase.counts_as_extra]
    lifetime_extra_spend = sum(p.amount for p in extras)
    extra_spend_last_30d = sum(p.amount for p in extras if ensure_utc(p.created_at) >= window_start)

    recent_30d_spend = fan.recent_30d_spend or 0.0
    if not recent_30d_spend:
        recent_30d_spend = sum(p.amount for p in paid if ensure_utc(p.created_at) >= window_start)

    active_types = {
        (grant.type or "").lower() for grant in fan.access_grants if ensure_utc(grant.expires_at) > now
    }
    latest_grant = _latest_active_grant(fan.access_grants, now)
    # Renewal timing only follows monthly/special packs; a trial must not mask it
    latest_subscription = _latest_active_grant(fan.access_grants, now, SUBSCRIPTION_GRANT_TYPES)

    days_since_last_message = days_since(last_message_at, now)
    days_since_last_purchase = days_since(last_purchase_at, now)

    return FanFacts(
        now=now,
        last_message_at=last_message_at,
        last_creator_message_at=last_creator_message_at,
        last_purchase_at=last_purchase_at,
        days_since_last_message=days_since_last_message,
        days_since_last_purchase=days_since_last_purchase,
        days_since_last_interaction=min_recency(days_since_last_message, days_since_last_purchase),
        has_active_grant=latest_grant is not None,
        has_active_subscription=bool(active_types & SUBSCRIPTION_GRANT_TYPES),
        has_active_monthly="monthly" in active_types,
        has_active_special="special" in active_types,
        has_active_trial=bool(active_types & {"trial", "welcome"}),
        active_grant_type=(latest_grant.type or "").lower() if latest_grant else None,
        days_to_expiry=days_until(latest_grant.expires_at, now) if latest_grant else None,
        subscription_days_to_expiry=(
            days_until(latest_subscription.expires_at, now) if latest_subscription else None
        ),
        lifetime_value=max(fan.lifetime_value or 0.0, 0.0),
        recent_30d_spend=recent_30d_spend,
        lifetime_extra_spend=lifetime_extra_spend,
        extra_spend_last_30d=extra_spend_last_30d,
        extras_count=len(extras),
        is_new_flag=bool(fan.is_new),
    )
