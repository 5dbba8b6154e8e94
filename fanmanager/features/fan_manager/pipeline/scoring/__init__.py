"""
Scoring package for the fan manager.

Health score, risk, segment, stage and tone for a single relationship.
"""

from .service import FanScoringService, ScoredFan, fan_scoring_service

__all__ = ["FanScoringService", "ScoredFan", "fan_scoring_service"]
