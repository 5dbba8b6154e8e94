"""
Fan scoring service - turns one relationship snapshot into scores and labels.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from fanmanager.features.fan_manager.domain.models import (
    CommunicationTone,
    FanRecord,
    RelationshipStage,
    RiskLevel,
    Segment,
)

from .facts import FanFacts, build_fan_facts
from .health import calculate_health_score, calculate_risk_level, calculate_segment
from .stage import infer_communication_tone, infer_relationship_stage


@dataclass(slots=True)
class ScoredFan:
    fan_id: str
    display_name: str
    facts: FanFacts
    health_score: int
    risk_level: RiskLevel
    segment: Segment
    stage: RelationshipStage
    tone: CommunicationTone


class FanScoringService:
    """Stateless: the same snapshot and ``now`` always produce the same result."""

    def score(self, fan: FanRecord, now: datetime) -> ScoredFan:
        facts = build_fan_facts(fan, now)

        health_score = calculate_health_score(
            days_since_last_message=facts.days_since_last_message,
            days_since_last_purchase=facts.days_since_last_purchase,
            lifetime_value=facts.lifetime_value,
            has_active_monthly_or_special=facts.has_active_subscription,
            days_to_expiry=facts.subscription_days_to_expiry,
        )
        risk_level = calculate_risk_level(health_score, facts.days_to_expiry)
        segment = calculate_segment(
            health_score=health_score,
            lifetime_value=facts.lifetime_value,
            days_to_expiry=facts.days_to_expiry,
            days_since_last_message=facts.days_since_last_message,
            days_since_last_purchase=facts.days_since_last_purchase,
        )
        stage = infer_relationship_stage(
            risk_level=risk_level,
            health_score=health_score,
            days_to_expiry=facts.days_to_expiry,
            is_new_flag=facts.is_new_flag,
            segment=segment,
            lifetime_value=facts.lifetime_value,
            recent_30d_spend=facts.recent_30d_spend,
        )
        tone = infer_communication_tone(
            stage=stage,
            segment=segment,
            health_score=health_score,
            lifetime_value=facts.lifetime_value,
        )

        return ScoredFan(
            fan_id=fan.id,
            display_name=fan.display_name,
            facts=facts,
            health_score=health_score,
            risk_level=risk_level,
            segment=segment,
            stage=stage,
            tone=tone,
        )


fan_scoring_service = FanScoringService()
