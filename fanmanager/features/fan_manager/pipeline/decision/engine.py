"""
Next-best-action decision engine.

An ordered cascade over a rule context; the first matching rule wins.
Dormancy here uses its own, shorter threshold (21 days without contact)
than the 60-day DORMANT segment, so the engine can intervene earlier.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType

from fanmanager.features.fan_manager.domain.models import (
    FocusButton,
    ManagerAction,
    NextBestActionId,
    RelationshipStage,
    RiskLevel,
    Segment,
)
from fanmanager.features.fan_manager.pipeline.scoring.service import ScoredFan

from .copy import ACTION_COPY, PRIORITY_REASON_COPY

EXPIRY_HARD_DAYS = 3
EXPIRY_SOFT_DAYS = 7
HIGH_SPENDER_TOTAL = 150
DECISION_DORMANT_DAYS = 21
MAX_SUGGESTIONS = 3


@dataclass(frozen=True, slots=True)
class RuleContext:
    has_active_subscription: bool
    days_to_expiry: int | None
    is_new_fan: bool
    is_dormant: bool
    lifetime_extra_spend: float
    extra_spend_last_30d: float
    last_paid_action_days_ago: int | None
    risk_level: RiskLevel
    health_score: int
    relationship_stage: RelationshipStage


@dataclass(frozen=True, slots=True)
class Decision:
    id: NextBestActionId
    label: str
    priority_reason: str
    button_to_highlight: FocusButton | None
    suggestions: tuple[str, ...]


_FOCUS_BUTTONS = MappingProxyType(
    {
        NextBestActionId.RENEW_HARD: FocusButton.RENEWAL,
        NextBestActionId.RENEW_SOFT: FocusButton.RENEWAL,
        NextBestActionId.RECOVER_TOP_FAN: FocusButton.SPECIAL_PACK,
        NextBestActionId.FIRST_WELCOME: FocusButton.GREETING,
        NextBestActionId.FIRST_EXTRA: FocusButton.QUICK_EXTRA,
        NextBestActionId.WAKE_DORMANT: FocusButton.GREETING,
        NextBestActionId.NEUTRAL: None,
    }
)

_COARSE_ACTIONS = MappingProxyType(
    {
        NextBestActionId.RENEW_HARD: ManagerAction.RENEW_PACK,
        NextBestActionId.RENEW_SOFT: ManagerAction.RENEW_PACK,
        NextBestActionId.RECOVER_TOP_FAN: ManagerAction.OFFER_EXTRA,
        NextBestActionId.FIRST_EXTRA: ManagerAction.OFFER_EXTRA,
        NextBestActionId.FIRST_WELCOME: ManagerAction.WELCOME,
        NextBestActionId.WAKE_DORMANT: ManagerAction.REACTIVATE_DORMANT,
        NextBestActionId.NEUTRAL: ManagerAction.NEUTRAL,
    }
)

DEFAULT_MANAGER_ACTION = ManagerAction.NEUTRAL


def is_dormant_for_decision(days_since_last_interaction: int | None) -> bool:
    """No contact evidence at all counts as infinitely stale."""
    return days_since_last_interaction is None or days_since_last_interaction > DECISION_DORMANT_DAYS


def build_rule_context(scored: ScoredFan) -> RuleContext:
    facts = scored.facts
    return RuleContext(
        has_active_subscription=facts.has_active_subscription,
        days_to_expiry=facts.subscription_days_to_expiry,
        is_new_fan=facts.is_new_flag or scored.segment == Segment.NEW,
        is_dormant=is_dormant_for_decision(facts.days_since_last_interaction),
        lifetime_extra_spend=facts.lifetime_extra_spend,
        extra_spend_last_30d=facts.extra_spend_last_30d,
        last_paid_action_days_ago=facts.days_since_last_purchase,
        risk_level=scored.risk_level,
        health_score=scored.health_score,
        relationship_stage=scored.stage,
    )


def build_decision(action_id: NextBestActionId) -> Decision:
    action_copy = ACTION_COPY[action_id]
    reason_copy = PRIORITY_REASON_COPY.get(action_id)
    return Decision(
        id=action_id,
        label=action_copy.label,
        priority_reason=reason_copy.description if reason_copy else action_copy.manager_text,
        button_to_highlight=_FOCUS_BUTTONS[action_id],
        suggestions=action_copy.suggestions[:MAX_SUGGESTIONS],
    )


def select_action_id(ctx: RuleContext) -> NextBestActionId:
    expiry = ctx.days_to_expiry

    if ctx.has_active_subscription and expiry is not None and expiry <= EXPIRY_HARD_DAYS:
        return NextBestActionId.RENEW_HARD

    if (
        ctx.has_active_subscription
        and expiry is not None
        and EXPIRY_HARD_DAYS < expiry <= EXPIRY_SOFT_DAYS
    ):
        return NextBestActionId.RENEW_SOFT

    if (
        not ctx.has_active_subscription
        and ctx.lifetime_extra_spend >= HIGH_SPENDER_TOTAL
        and not ctx.is_dormant
    ):
        return NextBestActionId.RECOVER_TOP_FAN

    if ctx.is_new_fan:
        return NextBestActionId.FIRST_WELCOME

    if ctx.has_active_subscription and ctx.lifetime_extra_spend == 0 and not ctx.is_dormant:
        return NextBestActionId.FIRST_EXTRA

    if ctx.is_dormant:
        return NextBestActionId.WAKE_DORMANT

    return NextBestActionId.NEUTRAL


def decide_next_best_action(ctx: RuleContext) -> Decision:
    return build_decision(select_action_id(ctx))


def to_manager_action(
    action_id: NextBestActionId, segment: Segment | None = None
) -> ManagerAction:
    """
    Collapse a fine-grained decision into its coarse display category.

    Total over every ``NextBestActionId``; a quiet (NEUTRAL) VIP is surfaced
    as CARE_VIP. Anything unmapped falls back to ``DEFAULT_MANAGER_ACTION``.
    """
    coarse = _COARSE_ACTIONS.get(action_id, DEFAULT_MANAGER_ACTION)
    if coarse == ManagerAction.NEUTRAL and segment == Segment.VIP:
        return ManagerAction.CARE_VIP
    return coarse
