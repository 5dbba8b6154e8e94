"""
Relationship stage, communication tone and personalization hints.
"""

from __future__ import annotations

from types import MappingProxyType

from fanmanager.features.fan_manager.domain.models import (
    CommunicationTone,
    RelationshipStage,
    RiskLevel,
    Segment,
)

from .health import AT_RISK_HEALTH_MAX, PACK_EXPIRY_WINDOW_DAYS, VIP_LTV_THRESHOLD

LOYAL_HEALTH_MIN = 75
LOYAL_RECENT_SPEND_MIN = 50
PLAYFUL_HEALTH_MIN = 70

STAGE_LABELS = MappingProxyType(
    {
        RelationshipStage.NEW: "New",
        RelationshipStage.WARMING: "Warming up",
        RelationshipStage.LOYAL: "Loyal",
        RelationshipStage.RISK: "At risk",
    }
)


def infer_relationship_stage(
    *,
    risk_level: RiskLevel,
    health_score: int,
    days_to_expiry: int | None,
    is_new_flag: bool,
    segment: Segment,
    lifetime_value: float,
    recent_30d_spend: float,
) -> RelationshipStage:
    expiring = days_to_expiry is not None and days_to_expiry <= PACK_EXPIRY_WINDOW_DAYS
    if risk_level == RiskLevel.HIGH or health_score <= AT_RISK_HEALTH_MAX or expiring:
        return RelationshipStage.RISK
    if is_new_flag or segment == Segment.NEW:
        return RelationshipStage.NEW
    if (
        segment in (Segment.VIP, Segment.LOYAL_STABLE)
        or health_score >= LOYAL_HEALTH_MIN
        or lifetime_value >= VIP_LTV_THRESHOLD
        or recent_30d_spend >= LOYAL_RECENT_SPEND_MIN
    ):
        return RelationshipStage.LOYAL
    return RelationshipStage.WARMING


def infer_communication_tone(
    *,
    stage: RelationshipStage,
    segment: Segment,
    health_score: int,
    lifetime_value: float,
) -> CommunicationTone:
    if stage == RelationshipStage.RISK or segment == Segment.AT_RISK:
        return CommunicationTone.DIRECT
    if stage == RelationshipStage.NEW:
        return CommunicationTone.CLOSE
    if (
        segment == Segment.VIP
        or health_score >= PLAYFUL_HEALTH_MIN
        or lifetime_value >= VIP_LTV_THRESHOLD
    ):
        return CommunicationTone.PLAYFUL
    return CommunicationTone.SERIOUS


# Keyed by (stage, tone, has_recent_spend)
_PERSONALIZATION_HINTS = MappingProxyType(
    {
        (RelationshipStage.RISK, CommunicationTone.DIRECT, True): (
            "Still spending but slipping: name what changed and offer one clear next step."
        ),
        (RelationshipStage.RISK, CommunicationTone.DIRECT, False): (
            "Be brief and honest; ask whether they still want this before offering anything."
        ),
        (RelationshipStage.NEW, CommunicationTone.CLOSE, True): (
            "They already bought something: thank them by name and ask what they liked most."
        ),
        (RelationshipStage.NEW, CommunicationTone.CLOSE, False): (
            "Warm welcome, one open question about what they are looking for."
        ),
        (RelationshipStage.LOYAL, CommunicationTone.PLAYFUL, True): (
            "Keep the banter going and reference their latest purchase."
        ),
        (RelationshipStage.LOYAL, CommunicationTone.PLAYFUL, False): (
            "Light and playful check-in; remind them of a shared running joke or topic."
        ),
        (RelationshipStage.LOYAL, CommunicationTone.SERIOUS, True): (
            "Acknowledge their support plainly and keep offers concrete."
        ),
        (RelationshipStage.LOYAL, CommunicationTone.SERIOUS, False): (
            "Steady regular: ask for feedback before proposing something new."
        ),
        (RelationshipStage.WARMING, CommunicationTone.PLAYFUL, True): (
            "Momentum is good; match their energy and suggest a small next piece."
        ),
        (RelationshipStage.WARMING, CommunicationTone.PLAYFUL, False): (
            "Flirty but low pressure; build rapport before any offer."
        ),
        (RelationshipStage.WARMING, CommunicationTone.SERIOUS, True): (
            "Recent buyer still warming up: follow up on what they bought."
        ),
        (RelationshipStage.WARMING, CommunicationTone.SERIOUS, False): (
            "Keep it simple and personal; learn one more thing about them."
        ),
    }
)

_STAGE_FALLBACK_HINTS = MappingProxyType(
    {
        RelationshipStage.NEW: "Introduce yourself and ask what they are looking for.",
        RelationshipStage.WARMING: "Build rapport before proposing anything paid.",
        RelationshipStage.LOYAL: "Treat them as a regular; reference your history together.",
        RelationshipStage.RISK: "Reconnect first; sell later.",
    }
)


def select_personalization_hint(
    stage: RelationshipStage, tone: CommunicationTone, has_recent_spend: bool
) -> str:
    hint = _PERSONALIZATION_HINTS.get((stage, tone, bool(has_recent_spend)))
    if hint is not None:
        return hint
    return _STAGE_FALLBACK_HINTS[stage]
