"""
Domain subpackage for the fan manager feature.
"""

from .models import (
    AccessGrant,
    CommunicationTone,
    ExtraPurchase,
    FanNote,
    FanRecord,
    FanStatus,
    FocusButton,
    ManagerAction,
    Message,
    MonetizationRollup,
    NextBestActionId,
    RelationshipStage,
    RiskLevel,
    Segment,
)

__all__ = [
    "AccessGrant",
    "CommunicationTone",
    "ExtraPurchase",
    "FanNote",
    "FanRecord",
    "FanStatus",
    "FocusButton",
    "ManagerAction",
    "Message",
    "MonetizationRollup",
    "NextBestActionId",
    "RelationshipStage",
    "RiskLevel",
    "Segment",
]
