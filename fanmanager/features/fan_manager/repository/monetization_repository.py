"""
Monetization rollup for a single fan.

Purchases are split by kind (extra / tip / gift, unknown kinds count as
extras); the subscription block reflects the active monthly or special
grant with the latest expiry.
"""

from datetime import datetime, timedelta
from typing import Any

from fanmanager.config import settings
from fanmanager.db.helpers import fetch_all, fetch_one
from fanmanager.features.fan_manager.domain.models import (
    SUBSCRIPTION_GRANT_TYPES,
    MonetizationRollup,
)
from fanmanager.features.fan_manager.domain.recency import days_until
from fanmanager.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

PURCHASE_KINDS = ("extra", "tip", "gift")


def normalize_kind(kind: str | None) -> str:
    lowered = (kind or "").strip().lower()
    return lowered if lowered in PURCHASE_KINDS else "extra"


def build_rollup(
    purchase_rows: list[dict[str, Any]],
    subscription_row: dict[str, Any] | None,
    recent_30d_spent: float,
    now: datetime,
) -> MonetizationRollup:
    totals = {kind: [0, 0.0] for kind in PURCHASE_KINDS}
    last_purchase_at = None
    for row in purchase_rows:
        bucket = totals[normalize_kind(row.get("kind"))]
        bucket[0] += int(row.get("purchase_count") or 0)
        bucket[1] += float(row.get("purchase_total") or 0)
        latest = row.get("last_purchase_at")
        if latest and (last_purchase_at is None or latest > last_purchase_at):
            last_purchase_at = latest

    rollup = MonetizationRollup(
        extras_count=totals["extra"][0],
        extras_total=totals["extra"][1],
        tips_count=totals["tip"][0],
        tips_total=totals["tip"][1],
        gifts_count=totals["gift"][0],
        gifts_total=totals["gift"][1],
        total_spent=sum(bucket[1] for bucket in totals.values()),
        recent_30d_spent=recent_30d_spent,
        last_purchase_at=last_purchase_at,
    )

    if subscription_row:
        grant_type = (subscription_row.get("type") or "").lower()
        rollup.subscription_active = grant_type in SUBSCRIPTION_GRANT_TYPES
        rollup.subscription_price = settings.pack_price(grant_type)
        rollup.subscription_days_left = days_until(subscription_row.get("expires_at"), now)

    return rollup


class MonetizationRepository:
    """Aggregates what a fan has paid, per purchase kind and subscription."""

    @staticmethod
    async def fetch_rollup(fan_id: str, now: datetime) -> MonetizationRollup:
        purchase_rows = await fetch_all(
            """
            SELECT LOWER(COALESCE(kind, 'extra')) AS kind,
                   COUNT(*) AS purchase_count,
                   COALESCE(SUM(amount), 0) AS purchase_total,
                   MAX(created_at) AS last_purchase_at
            FROM extra_purchases
            WHERE fan_id = %s
              AND amount > 0
              AND is_archived = false
            GROUP BY LOWER(COALESCE(kind, 'extra'))
            """,
            (fan_id,),
        )
        recent_row = await fetch_one(
            """
            SELECT COALESCE(SUM(amount), 0) AS recent_total
            FROM extra_purchases
            WHERE fan_id = %s
              AND amount > 0
              AND is_archived = false
              AND created_at >= %s
            """,
            (fan_id, now - timedelta(days=30)),
        )
        subscription_row = await fetch_one(
            """
            SELECT type, expires_at
            FROM access_grants
            WHERE fan_id = %s
              AND LOWER(type) IN ('monthly', 'special')
              AND expires_at > %s
            ORDER BY expires_at DESC
            LIMIT 1
            """,
            (fan_id, now),
        )

        recent_total = float((recent_row or {}).get("recent_total") or 0)
        rollup = build_rollup(purchase_rows, subscription_row, recent_total, now)

        logger.debug(
            "Monetization rollup computed",
            fan_id=fan_id,
            total_spent=rollup.total_spent,
            subscription_active=rollup.subscription_active,
        )
        return rollup
