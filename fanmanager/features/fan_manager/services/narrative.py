"""
Three-line narrative (profile / recent / opportunity) for a relationship.

Each line is looked up in a static copy table keyed by a bucket derived
from the scored relationship.
"""

from enum import Enum
from types import MappingProxyType

from fanmanager.features.fan_manager.domain.models import (
    NextBestActionId,
    RelationshipStage,
    RiskLevel,
    Segment,
)
from fanmanager.features.fan_manager.pipeline.scoring.health import PACK_EXPIRY_WINDOW_DAYS
from fanmanager.features.fan_manager.pipeline.scoring.service import ScoredFan

ACTIVE_CHAT_DAYS = 3
ACTIVE_PURCHASE_DAYS = 7
NO_PURCHASE_LONG_DAYS = 30


class ProfileBucket(str, Enum):
    NEW_TRIAL = "NEW_TRIAL"
    NEW_ENGAGED = "NEW_ENGAGED"
    VIP_CORE = "VIP_CORE"
    LOYAL = "LOYAL"
    AT_RISK = "AT_RISK"
    DEFAULT = "DEFAULT"


class RecentBucket(str, Enum):
    EXPIRY_SOON = "EXPIRY_SOON"
    ACTIVE_CHAT = "ACTIVE_CHAT"
    NO_PURCHASE_LONG = "NO_PURCHASE_LONG"
    RISK_ZONE = "RISK_ZONE"
    DEFAULT = "DEFAULT"


PROFILE_COPY = MappingProxyType(
    {
        ProfileBucket.NEW_TRIAL: "New fan on a trial; still getting to know your content.",
        ProfileBucket.NEW_ENGAGED: "New but already invested; has bought extras since arriving.",
        ProfileBucket.VIP_CORE: (
            "Key fan by spend and consistency; looking after them directly affects your income."
        ),
        ProfileBucket.LOYAL: "Regular fan who usually responds well to concrete proposals.",
        ProfileBucket.AT_RISK: "Fan showing risk signals; needs novelty and care to stay.",
        ProfileBucket.DEFAULT: "Active member of your community; watch their replies to personalise.",
    }
)

RECENT_COPY = MappingProxyType(
    {
        RecentBucket.EXPIRY_SOON: (
            "Their access expires in a few days; a good moment to recall the value received."
        ),
        RecentBucket.ACTIVE_CHAT: (
            "Recently active in chat or purchases; the conversation is warm."
        ),
        RecentBucket.NO_PURCHASE_LONG: (
            "Nothing bought in a long while; the relationship has cooled and needs something different."
        ),
        RecentBucket.RISK_ZONE: "In the risk zone of leaving unless something new happens soon.",
        RecentBucket.DEFAULT: "Stable activity; stay alert for signals to adjust the pace.",
    }
)

OPPORTUNITY_COPY = MappingProxyType(
    {
        NextBestActionId.RENEW_HARD: (
            "Critical renewal moment: be direct, spell out what they would lose and give a clear way forward."
        ),
        NextBestActionId.RENEW_SOFT: (
            "Soft renewal opportunity: reinforce the value received and offer continuity."
        ),
        NextBestActionId.FIRST_EXTRA: (
            "Good moment to propose a small, concrete extra so they try something new."
        ),
        NextBestActionId.RECOVER_TOP_FAN: (
            "Win back a formerly strong fan; appeal to shared history rather than discounts."
        ),
        NextBestActionId.FIRST_WELCOME: (
            "Welcome them and guide them quickly to the first step that makes sense."
        ),
        NextBestActionId.WAKE_DORMANT: (
            "Reactivate with a warm, no-pressure gesture before proposing anything paid."
        ),
        NextBestActionId.NEUTRAL: (
            "No clear priority: listen and decide whether to go deeper, sell or just keep them company."
        ),
    }
)


def profile_bucket(scored: ScoredFan) -> ProfileBucket:
    facts = scored.facts
    if scored.stage == RelationshipStage.NEW:
        if facts.lifetime_extra_spend > 0:
            return ProfileBucket.NEW_ENGAGED
        return ProfileBucket.NEW_TRIAL
    if scored.segment == Segment.AT_RISK or scored.stage == RelationshipStage.RISK:
        return ProfileBucket.AT_RISK
    if scored.segment == Segment.VIP:
        return ProfileBucket.VIP_CORE
    if scored.segment == Segment.LOYAL_STABLE or scored.stage == RelationshipStage.LOYAL:
        return ProfileBucket.LOYAL
    return ProfileBucket.DEFAULT


def recent_bucket(scored: ScoredFan) -> RecentBucket:
    facts = scored.facts
    if facts.days_to_expiry is not None and facts.days_to_expiry <= PACK_EXPIRY_WINDOW_DAYS:
        return RecentBucket.EXPIRY_SOON
    chat = facts.days_since_last_message
    purchase = facts.days_since_last_purchase
    if (chat is not None and chat <= ACTIVE_CHAT_DAYS) or (
        purchase is not None and purchase <= ACTIVE_PURCHASE_DAYS
    ):
        return RecentBucket.ACTIVE_CHAT
    if facts.lifetime_value > 0 and (purchase is None or purchase > NO_PURCHASE_LONG_DAYS):
        return RecentBucket.NO_PURCHASE_LONG
    if scored.risk_level == RiskLevel.HIGH:
        return RecentBucket.RISK_ZONE
    return RecentBucket.DEFAULT


def build_narrative(scored: ScoredFan, action_id: NextBestActionId) -> dict[str, str]:
    return {
        "profile": PROFILE_COPY[profile_bucket(scored)],
        "recent": RECENT_COPY[recent_bucket(scored)],
        "opportunity": OPPORTUNITY_COPY[action_id],
    }
