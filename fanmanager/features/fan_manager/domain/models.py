"""
Domain models for the fan manager feature.

The dataclasses describe an already-fetched snapshot of one creator/fan
relationship. They carry no business logic so the repositories, the
scoring pipeline and the services can share them freely.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class Segment(str, Enum):
    VIP = "VIP"
    LOYAL_STABLE = "LOYAL_STABLE"
    AT_RISK = "AT_RISK"
    NEW = "NEW"
    DORMANT = "DORMANT"
    LIGHT = "LIGHT"


class RiskLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class RelationshipStage(str, Enum):
    NEW = "NEW"
    WARMING = "WARMING"
    LOYAL = "LOYAL"
    RISK = "RISK"


class CommunicationTone(str, Enum):
    CLOSE = "CLOSE"
    DIRECT = "DIRECT"
    PLAYFUL = "PLAYFUL"
    SERIOUS = "SERIOUS"


class NextBestActionId(str, Enum):
    """Fine-grained decisions produced by the rule cascade."""

    RENEW_HARD = "RENEW_HARD"
    RENEW_SOFT = "RENEW_SOFT"
    RECOVER_TOP_FAN = "RECOVER_TOP_FAN"
    FIRST_WELCOME = "FIRST_WELCOME"
    FIRST_EXTRA = "FIRST_EXTRA"
    WAKE_DORMANT = "WAKE_DORMANT"
    NEUTRAL = "NEUTRAL"


class ManagerAction(str, Enum):
    """Coarse action categories shown to the creator."""

    RENEW_PACK = "RENEW_PACK"
    CARE_VIP = "CARE_VIP"
    WELCOME = "WELCOME"
    REACTIVATE_DORMANT = "REACTIVATE_DORMANT"
    OFFER_EXTRA = "OFFER_EXTRA"
    NEUTRAL = "NEUTRAL"


class FocusButton(str, Enum):
    GREETING = "GREETING"
    RENEWAL = "RENEWAL"
    QUICK_EXTRA = "QUICK_EXTRA"
    SPECIAL_PACK = "SPECIAL_PACK"
    OPEN_EXTRAS = "OPEN_EXTRAS"


SUBSCRIPTION_GRANT_TYPES = frozenset({"monthly", "special"})


@dataclass(slots=True)
class AccessGrant:
    """A time-bounded pack entitlement. Active while expires_at > now."""

    type: str
    created_at: datetime
    expires_at: datetime


@dataclass(slots=True)
class ExtraPurchase:
    amount: float
    created_at: datetime
    kind: str = "extra"  # "extra", "tip" or "gift"
    tier: str | None = None
    archived: bool = False

    @property
    def counts_as_extra(self) -> bool:
        """Only live, paid extras count toward lifetime extra spend."""
        return self.kind == "extra" and self.amount > 0 and not self.archived


@dataclass(slots=True)
class Message:
    sender: str  # "fan", "creator" or anything else
    timestamp: datetime
    audience: str | None = None  # "FAN", "CREATOR", "INTERNAL" or legacy "CREATOR_ONLY"
    type: str | None = None  # "SYSTEM" for automated notes


@dataclass(slots=True)
class FanNote:
    content: str
    created_at: datetime


@dataclass(slots=True)
class FanRecord:
    """Snapshot of one relationship with its nested children."""

    id: str
    creator_id: str
    display_name: str
    lifetime_value: float = 0.0
    recent_30d_spend: float = 0.0
    is_new: bool = False

    # Cached derivations, refreshed best-effort after every evaluation
    health_score: int | None = None
    segment: str | None = None
    risk_level: str | None = None

    last_message_at: datetime | None = None
    last_creator_message_at: datetime | None = None
    last_purchase_at: datetime | None = None

    access_grants: list[AccessGrant] = field(default_factory=list)
    extra_purchases: list[ExtraPurchase] = field(default_factory=list)
    messages: list[Message] = field(default_factory=list)
    latest_note: FanNote | None = None


@dataclass(slots=True)
class FanStatus:
    """Queue filtering facts kept outside the scoring snapshot."""

    fan_id: str
    is_archived: bool = False
    is_blocked: bool = False
    invite_created_at: datetime | None = None
    invite_used_at: datetime | None = None


@dataclass(slots=True)
class MonetizationRollup:
    """Monetary summary returned by the monetization collaborator."""

    subscription_active: bool = False
    subscription_price: float = 0.0
    subscription_days_left: int | None = None
    extras_count: int = 0
    extras_total: float = 0.0
    tips_count: int = 0
    tips_total: float = 0.0
    gifts_count: int = 0
    gifts_total: float = 0.0
    total_spent: float = 0.0
    recent_30d_spent: float = 0.0
    last_purchase_at: datetime | None = None
