"""
Service layer for the fan manager feature.
"""

from .cache_refresh import refresh_cached_scores
from .queue_service import FanQueueService, fan_queue_service
from .summary_service import FanNotFoundError, FanSummaryService, fan_summary_service

__all__ = [
    "FanNotFoundError",
    "FanQueueService",
    "FanSummaryService",
    "fan_queue_service",
    "fan_summary_service",
    "refresh_cached_scores",
]
