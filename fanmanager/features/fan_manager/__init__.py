"""
Fan manager feature package.

This vertical slice keeps every layer of the relationship scoring engine
co-located (domain snapshot, scoring and decision pipeline, repositories,
services and output contracts) so contributors can navigate the feature
without hunting through global folders.

The repositories read through the shared PostgreSQL pool, which the host
application owns:

    await db_pool.initialize()   # startup
    summary = await fan_summary_service.build_summary(creator_id, fan_id)
    await db_pool.close()        # shutdown
"""

from fanmanager.db.pool import db_pool  # noqa: F401

# Re-export the primary building blocks for easy access.
from .domain.models import FanRecord, ManagerAction, NextBestActionId, Segment  # noqa: F401
from .schemas import ContractViolationError, QueueRow, RelationshipSummary  # noqa: F401
from .services.queue_service import FanQueueService, fan_queue_service  # noqa: F401
from .services.summary_service import (  # noqa: F401
    FanNotFoundError,
    FanSummaryService,
    fan_summary_service,
)
