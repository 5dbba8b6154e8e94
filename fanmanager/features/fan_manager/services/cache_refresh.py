"""
Best-effort write-back of derived scores onto fan rows.

The cache is a convenience for list views; the engine never reads it back
for correctness. Failures are logged and reported as ``False``.
"""

from collections.abc import Iterable

from fanmanager.db.helpers import DatabaseError
from fanmanager.features.fan_manager.pipeline.scoring.service import ScoredFan
from fanmanager.features.fan_manager.repository.fan_repository import (
    CachedScores,
    FanRepository,
)
from fanmanager.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)


def to_cached_scores(scored: ScoredFan) -> CachedScores:
    return CachedScores(
        fan_id=scored.fan_id,
        health_score=scored.health_score,
        segment=scored.segment.value,
        risk_level=scored.risk_level.value,
        last_message_at=scored.facts.last_message_at,
        last_creator_message_at=scored.facts.last_creator_message_at,
        last_purchase_at=scored.facts.last_purchase_at,
    )


async def refresh_cached_scores(scored: ScoredFan | Iterable[ScoredFan]) -> bool:
    """Persist cached scores for one or many fans. Never raises."""
    if isinstance(scored, ScoredFan):
        items = [scored]
    else:
        items = list(scored)
    if not items:
        return True

    try:
        if len(items) == 1:
            await FanRepository.update_cached_scores(to_cached_scores(items[0]))
        else:
            await FanRepository.update_cached_scores_batch(to_cached_scores(i) for i in items)
        return True
    except DatabaseError as e:
        logger.warning(
            "Cached score refresh failed",
            fan_count=len(items),
            operation=e.operation,
            error=str(e),
        )
    except Exception as e:
        logger.warning(
            "Cached score refresh failed unexpectedly",
            fan_count=len(items),
            error=str(e),
            error_type=type(e).__name__,
        )
    return False
