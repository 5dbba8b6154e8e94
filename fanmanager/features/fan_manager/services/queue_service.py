"""
Priority queue service - ranks every relationship of a creator.
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime
from types import MappingProxyType

from fanmanager.config import settings
from fanmanager.features.fan_manager.domain.models import Segment
from fanmanager.features.fan_manager.domain.recency import is_new_within_days, utc_now
from fanmanager.features.fan_manager.pipeline.scoring.health import PACK_EXPIRY_WINDOW_DAYS
from fanmanager.features.fan_manager.pipeline.scoring.service import (
    FanScoringService,
    ScoredFan,
    fan_scoring_service,
)
from fanmanager.features.fan_manager.repository.fan_repository import FanRepository
from fanmanager.features.fan_manager.schemas import (
    ActiveQueueResult,
    CreatorSnapshot,
    QueueRow,
    validate_contract,
)
from fanmanager.infrastructure.observability.logging import get_logger

from .cache_refresh import refresh_cached_scores

logger = get_logger(__name__)

SEGMENT_PRIORITY_ORDER = (
    Segment.AT_RISK,
    Segment.VIP,
    Segment.LOYAL_STABLE,
    Segment.NEW,
    Segment.DORMANT,
    Segment.LIGHT,
)
SEGMENT_PRIORITY = MappingProxyType(
    {segment: index for index, segment in enumerate(SEGMENT_PRIORITY_ORDER)}
)
TOP_PRIORITIES = 3


def queue_sort_key(row: QueueRow) -> tuple:
    """
    Segment priority first. AT_RISK rows then order by lifetime value
    descending; every other segment by health ascending, then lifetime
    value descending. Used with a stable sort, so full ties keep input order.
    """
    priority = SEGMENT_PRIORITY[row.segment]
    if row.segment == Segment.AT_RISK:
        return (priority, -row.lifetime_value)
    return (priority, row.health_score, -row.lifetime_value)


def rank_rows(rows: list[QueueRow]) -> list[QueueRow]:
    return sorted(rows, key=queue_sort_key)


def to_queue_row(scored: ScoredFan) -> QueueRow:
    return validate_contract(
        QueueRow,
        {
            "id": scored.fan_id,
            "display_name": scored.display_name,
            "segment": scored.segment,
            "risk_level": scored.risk_level,
            "health_score": scored.health_score,
            "days_to_expiry": scored.facts.days_to_expiry,
            "subscription_days_to_expiry": scored.facts.subscription_days_to_expiry,
            "lifetime_value": scored.facts.lifetime_value,
            "recent_30d_spend": scored.facts.recent_30d_spend,
            "relationship_stage": scored.stage,
        },
    )


class FanQueueService:
    def __init__(self, scoring: FanScoringService = fan_scoring_service):
        self.scoring = scoring

    async def build_queue(
        self,
        creator_id: str,
        *,
        now: datetime | None = None,
        refresh_cache: bool = True,
    ) -> list[QueueRow]:
        """
        Score every fan of a creator and return them in priority order.

        Args:
            creator_id: Creator (operator) ID
            now: Evaluation instant; defaults to the current UTC time
            refresh_cache: Write derived scores back onto fan rows (best-effort)

        Returns:
            Queue rows sorted by the priority comparator
        """
        now = now or utc_now()
        fans = await FanRepository.fetch_fans_for_creator(creator_id)
        scored = [self.scoring.score(fan, now) for fan in fans]
        ranked = rank_rows([to_queue_row(item) for item in scored])

        if refresh_cache and scored:
            await refresh_cached_scores(scored)

        logger.info(
            "Fan priority queue built",
            creator_id=creator_id,
            fan_count=len(ranked),
            refreshed=refresh_cache,
        )
        return ranked

    async def build_active_queue(
        self, creator_id: str, *, now: datetime | None = None
    ) -> ActiveQueueResult:
        """Ranked queue without archived or blocked fans, tagged with the newness flag."""
        now = now or utc_now()
        ranked = await self.build_queue(creator_id, now=now)

        unique: list[QueueRow] = []
        seen: set[str] = set()
        for row in ranked:
            if not row.id or row.id in seen:
                continue
            seen.add(row.id)
            unique.append(row)

        if not unique:
            return ActiveQueueResult(active_queue=[], archived_count=0, blocked_count=0)

        statuses = await FanRepository.fetch_statuses([row.id for row in unique])
        window_days = settings.NEW_FAN_FLAG_WINDOW_DAYS

        active_rows: list[dict] = []
        archived_count = 0
        blocked_count = 0
        for row in unique:
            status = statuses.get(row.id)
            if status is None:
                continue
            if status.is_archived:
                archived_count += 1
                continue
            if status.is_blocked:
                blocked_count += 1
                continue
            is_new_30d = is_new_within_days(
                status.invite_created_at, status.invite_used_at, window_days, now
            )
            active_rows.append({**row.model_dump(), "flags": {"is_new_30d": is_new_30d}})

        result = validate_contract(
            ActiveQueueResult,
            {
                "active_queue": active_rows,
                "archived_count": archived_count,
                "blocked_count": blocked_count,
            },
        )
        logger.info(
            "Active fan queue built",
            creator_id=creator_id,
            active=len(result.active_queue),
            archived=archived_count,
            blocked=blocked_count,
        )
        return result

    async def build_creator_snapshot(
        self, creator_id: str, *, now: datetime | None = None
    ) -> CreatorSnapshot:
        """Creator-level rollup of the ranked queue."""
        ranked = await self.build_queue(creator_id, now=now, refresh_cache=False)
        counts = Counter(row.segment for row in ranked)

        return validate_contract(
            CreatorSnapshot,
            {
                "creator_id": creator_id,
                "total_fans": len(ranked),
                "segment_counts": {segment: counts.get(segment, 0) for segment in Segment},
                "vip_count": counts.get(Segment.VIP, 0),
                "fans_at_risk": counts.get(Segment.AT_RISK, 0),
                "renewals_next_7_days": sum(
                    1
                    for row in ranked
                    if row.subscription_days_to_expiry is not None
                    and row.subscription_days_to_expiry <= PACK_EXPIRY_WINDOW_DAYS
                ),
                "recent_30d_spend_total": sum(row.recent_30d_spend for row in ranked),
                "top_priorities": [row.model_dump() for row in ranked[:TOP_PRIORITIES]],
            },
        )


fan_queue_service = FanQueueService()
