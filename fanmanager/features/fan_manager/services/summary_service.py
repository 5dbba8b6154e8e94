"""
Per-relationship summary builder.

Fetches one fan snapshot, runs scoring and the decision cascade, enriches the
result with queue rank, monetization and narrative copy, then refreshes the
cached scores on the fan row (best-effort).
"""

from __future__ import annotations

import re
from datetime import datetime

from fanmanager.db.helpers import DatabaseError
from fanmanager.features.fan_manager.domain.models import FanNote, MonetizationRollup
from fanmanager.features.fan_manager.domain.recency import utc_now
from fanmanager.features.fan_manager.pipeline.decision import (
    Decision,
    build_rule_context,
    decide_next_best_action,
    to_manager_action,
)
from fanmanager.features.fan_manager.pipeline.decision.copy import ACTION_OBJECTIVES
from fanmanager.features.fan_manager.pipeline.scoring.service import (
    FanScoringService,
    ScoredFan,
    fan_scoring_service,
)
from fanmanager.features.fan_manager.pipeline.scoring.stage import (
    STAGE_LABELS,
    select_personalization_hint,
)
from fanmanager.features.fan_manager.repository.fan_repository import FanRepository
from fanmanager.features.fan_manager.repository.monetization_repository import (
    MonetizationRepository,
)
from fanmanager.features.fan_manager.schemas import RelationshipSummary, validate_contract
from fanmanager.infrastructure.observability.logging import get_logger

from .cache_refresh import refresh_cached_scores
from .narrative import build_narrative
from .queue_service import FanQueueService, fan_queue_service

logger = get_logger(__name__)

LAST_TOPIC_MAX_CHARS = 140
_WHITESPACE = re.compile(r"\s+")


class FanNotFoundError(Exception):
    """Fan does not exist or belongs to another creator."""

    def __init__(self, fan_id: str, creator_id: str):
        super().__init__(f"Fan {fan_id} not found for creator {creator_id}")
        self.fan_id = fan_id
        self.creator_id = creator_id


def extract_last_topic(note: FanNote | None) -> str | None:
    if note is None or not note.content:
        return None
    collapsed = _WHITESPACE.sub(" ", note.content).strip()
    if not collapsed:
        return None
    return collapsed[:LAST_TOPIC_MAX_CHARS]


def personalize(text: str, display_name: str) -> str:
    return text.replace("{name}", display_name or "")


def build_message_suggestions(decision: Decision, display_name: str) -> list[dict]:
    return [
        {
            "id": f"{decision.id.value.lower()}_{index}",
            "label": decision.label,
            "text": personalize(text, display_name),
        }
        for index, text in enumerate(decision.suggestions, start=1)
    ]


def monetization_payload(rollup: MonetizationRollup | None) -> dict | None:
    if rollup is None:
        return None
    return {
        "subscription": {
            "active": rollup.subscription_active,
            "price": rollup.subscription_price,
            "days_left": rollup.subscription_days_left,
        },
        "extras": {"count": rollup.extras_count, "total": rollup.extras_total},
        "tips": {"count": rollup.tips_count, "total": rollup.tips_total},
        "gifts": {"count": rollup.gifts_count, "total": rollup.gifts_total},
        "total_spent": rollup.total_spent,
        "recent_30d_spent": rollup.recent_30d_spent,
        "last_purchase_at": rollup.last_purchase_at,
    }


def ai_context_payload(scored: ScoredFan, narrative: dict[str, str]) -> dict:
    facts = scored.facts
    return {
        "fan_id": scored.fan_id,
        "display_name": scored.display_name,
        "segment": scored.segment,
        "stage_label": STAGE_LABELS[scored.stage],
        "risk_level": scored.risk_level,
        "health_score": scored.health_score,
        "lifetime_spent": facts.lifetime_value,
        "spent_last_30_days": facts.recent_30d_spend,
        "extras_count": facts.extras_count,
        "days_since_last_message": facts.days_since_last_message,
        "days_to_renewal": facts.subscription_days_to_expiry,
        "has_active_monthly": facts.has_active_monthly,
        "has_active_trial": facts.has_active_trial,
        "has_active_special_pack": facts.has_active_special,
        "summary": narrative,
    }


class FanSummaryService:
    def __init__(
        self,
        scoring: FanScoringService = fan_scoring_service,
        queue: FanQueueService = fan_queue_service,
    ):
        self.scoring = scoring
        self.queue = queue

    async def _priority_rank(self, creator_id: str, fan_id: str, now: datetime) -> int | None:
        try:
            rows = await self.queue.build_queue(creator_id, now=now, refresh_cache=False)
        except Exception as e:
            logger.warning(
                "Priority rank unavailable",
                creator_id=creator_id,
                fan_id=fan_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return None
        for index, row in enumerate(rows, start=1):
            if row.id == fan_id:
                return index
        return None

    async def _monetization(self, fan_id: str, now: datetime) -> MonetizationRollup | None:
        try:
            return await MonetizationRepository.fetch_rollup(fan_id, now)
        except DatabaseError as e:
            logger.warning(
                "Monetization rollup unavailable",
                fan_id=fan_id,
                operation=e.operation,
                error=str(e),
            )
            return None

    async def build_summary(
        self,
        creator_id: str,
        fan_id: str,
        *,
        now: datetime | None = None,
        refresh_cache: bool = True,
    ) -> RelationshipSummary:
        """
        Build the full relationship report for one fan.

        Args:
            creator_id: Creator (operator) that must own the fan
            fan_id: Fan ID
            now: Evaluation instant; defaults to the current UTC time
            refresh_cache: Write derived scores back onto the fan row (best-effort)

        Returns:
            Validated RelationshipSummary

        Raises:
            FanNotFoundError: Fan is missing or owned by another creator
        """
        now = now or utc_now()

        fan = await FanRepository.fetch_fan(fan_id)
        if fan is None or fan.creator_id != creator_id:
            logger.info("Fan not found for creator", creator_id=creator_id, fan_id=fan_id)
            raise FanNotFoundError(fan_id, creator_id)

        scored = self.scoring.score(fan, now)
        decision = decide_next_best_action(build_rule_context(scored))
        manager_action = to_manager_action(decision.id, scored.segment)

        priority_rank = await self._priority_rank(creator_id, fan_id, now)
        rollup = await self._monetization(fan_id, now)
        narrative = build_narrative(scored, decision.id)

        facts = scored.facts
        summary = validate_contract(
            RelationshipSummary,
            {
                "fan_id": scored.fan_id,
                "display_name": scored.display_name,
                "segment": scored.segment,
                "risk_level": scored.risk_level,
                "health_score": scored.health_score,
                "has_active_pack": facts.has_active_grant,
                "days_to_expiry": facts.days_to_expiry,
                "recent_30d_spend": facts.recent_30d_spend,
                "lifetime_value": facts.lifetime_value,
                "priority_rank": priority_rank,
                "priority_reason": decision.priority_reason,
                "next_best_action": manager_action,
                "next_best_action_id": decision.id,
                "action_label": decision.label,
                "recommended_buttons": (
                    [decision.button_to_highlight] if decision.button_to_highlight else []
                ),
                "objective_today": ACTION_OBJECTIVES[manager_action],
                "message_suggestions": build_message_suggestions(decision, scored.display_name),
                "relationship_stage": scored.stage,
                "communication_tone": scored.tone,
                "last_topic": extract_last_topic(fan.latest_note),
                "personalization_hints": select_personalization_hint(
                    scored.stage, scored.tone, facts.recent_30d_spend > 0
                ),
                "summary": narrative,
                "ai_context": ai_context_payload(scored, narrative),
                "monetization": monetization_payload(rollup),
            },
        )

        if refresh_cache:
            await refresh_cached_scores(scored)

        logger.info(
            "Fan summary built",
            creator_id=creator_id,
            fan_id=fan_id,
            segment=scored.segment.value,
            health_score=scored.health_score,
            next_best_action=decision.id.value,
            priority_rank=priority_rank,
        )
        return summary


fan_summary_service = FanSummaryService()
