"""
Storage collaborators for the fan manager feature.
"""

from .fan_repository import CachedScores, FanRepository
from .monetization_repository import MonetizationRepository

__all__ = ["CachedScores", "FanRepository", "MonetizationRepository"]
