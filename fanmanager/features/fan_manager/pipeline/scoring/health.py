"""
Health score, risk level and segment classifiers.

All three are pure functions of their arguments. Conventions for missing
recency (``None``):

* health sub-scores: no evidence scores 0 points;
* segment NEW: no evidence never qualifies as "recent";
* segment DORMANT: no evidence counts as infinitely stale.
"""

from __future__ import annotations

from fanmanager.features.fan_manager.domain.models import RiskLevel, Segment
from fanmanager.features.fan_manager.domain.recency import min_recency

# Segment / risk thresholds
VIP_LTV_THRESHOLD = 200
VIP_MIN_HEALTH = 50
LOYAL_LTV_THRESHOLD = 50
LOYAL_MIN_HEALTH = 60
AT_RISK_HEALTH_MAX = 39
MEDIUM_HEALTH_MAX = 74
SEGMENT_DORMANT_DAYS = 60
NEW_FAN_DAYS = 7
PACK_EXPIRY_AT_RISK_DAYS = 3
PACK_EXPIRY_WINDOW_DAYS = 7

HEALTH_MIN = 0
HEALTH_MAX = 100


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def chat_recency_points(days_since_last_message: int | None) -> int:
    if days_since_last_message is None:
        return 0
    if days_since_last_message <= 1:
        return 30
    if days_since_last_message <= 3:
        return 20
    if days_since_last_message <= 7:
        return 10
    return 0


def purchase_recency_points(days_since_last_purchase: int | None) -> int:
    if days_since_last_purchase is None:
        return 0
    if days_since_last_purchase <= 7:
        return 30
    if days_since_last_purchase <= 30:
        return 20
    return 10


def lifetime_value_points(lifetime_value: float) -> int:
    if lifetime_value >= 100:
        return 20
    if lifetime_value >= 30:
        return 10
    if lifetime_value > 0:
        return 5
    return 0


def expiry_points(has_active_monthly_or_special: bool, days_to_expiry: int | None) -> int:
    if not has_active_monthly_or_special or days_to_expiry is None:
        return 0
    if days_to_expiry > 7:
        return 20
    if days_to_expiry >= 3:
        return 10
    if days_to_expiry >= 1:
        return 5
    return 0


def calculate_health_score(
    *,
    days_since_last_message: int | None,
    days_since_last_purchase: int | None,
    lifetime_value: float,
    has_active_monthly_or_special: bool,
    days_to_expiry: int | None,
) -> int:
    """
    Sum four capped sub-scores into a 0-100 health score.

    Chat recency (0-30), purchase recency (0-30), lifetime value tier (0-20)
    and expiry proximity (0-20, only with an active monthly/special pack).
    """
    total = (
        chat_recency_points(days_since_last_message)
        + purchase_recency_points(days_since_last_purchase)
        + lifetime_value_points(lifetime_value or 0)
        + expiry_points(has_active_monthly_or_special, days_to_expiry)
    )
    return _clamp(total, HEALTH_MIN, HEALTH_MAX)


def calculate_risk_level(health_score: int, days_to_expiry: int | None) -> RiskLevel:
    """
    Map health to risk; an active grant expiring within the window lifts LOW to MEDIUM.

    ``days_to_expiry`` is only defined while a grant is active, so ``None``
    means there is nothing to expire and no override applies.
    """
    if health_score <= AT_RISK_HEALTH_MAX:
        return RiskLevel.HIGH
    if health_score <= MEDIUM_HEALTH_MAX:
        return RiskLevel.MEDIUM
    if days_to_expiry is not None and days_to_expiry <= PACK_EXPIRY_WINDOW_DAYS:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def calculate_segment(
    *,
    health_score: int,
    lifetime_value: float,
    days_to_expiry: int | None,
    days_since_last_message: int | None,
    days_since_last_purchase: int | None,
) -> Segment:
    """First matching rule wins; LIGHT catches everything else."""
    has_history = lifetime_value > 0
    last_interaction = min_recency(days_since_last_message, days_since_last_purchase)

    if not has_history and last_interaction is not None and last_interaction <= NEW_FAN_DAYS:
        return Segment.NEW

    if has_history and (last_interaction is None or last_interaction > SEGMENT_DORMANT_DAYS):
        return Segment.DORMANT

    if lifetime_value >= VIP_LTV_THRESHOLD and health_score >= VIP_MIN_HEALTH:
        return Segment.VIP

    expiry_soon = days_to_expiry is not None and days_to_expiry <= PACK_EXPIRY_AT_RISK_DAYS
    if expiry_soon or (health_score <= AT_RISK_HEALTH_MAX and has_history):
        return Segment.AT_RISK

    if lifetime_value >= LOYAL_LTV_THRESHOLD and health_score >= LOYAL_MIN_HEALTH:
        return Segment.LOYAL_STABLE

    return Segment.LIGHT
