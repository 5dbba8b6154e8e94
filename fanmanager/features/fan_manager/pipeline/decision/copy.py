"""
Static creator-facing copy for the next-best-action engine.

Tables are read-only mappings built at import time. Suggestions may contain
``{name}`` which the summary builder fills with the fan's display name.
"""

from dataclasses import dataclass
from types import MappingProxyType

from fanmanager.features.fan_manager.domain.models import ManagerAction, NextBestActionId


@dataclass(frozen=True, slots=True)
class ActionCopy:
    label: str
    manager_text: str
    suggestions: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class ReasonCopy:
    title: str
    description: str


PRIORITY_REASON_COPY = MappingProxyType(
    {
        NextBestActionId.RENEW_HARD: ReasonCopy(
            title="Urgent renewal",
            description=(
                "Their subscription expires in 3 days or less. Without action you lose a paying fan."
            ),
        ),
        NextBestActionId.RENEW_SOFT: ReasonCopy(
            title="Prepare renewal",
            description=(
                "Subscription renews within 7 days. Good moment to remind them of the value received."
            ),
        ),
        NextBestActionId.RECOVER_TOP_FAN: ReasonCopy(
            title="Recover top fan",
            description=(
                "Strong buyer with no active pack right now. Worth a careful offer to bring them back."
            ),
        ),
        NextBestActionId.FIRST_WELCOME: ReasonCopy(
            title="Guided welcome",
            description="New fan still deciding whether this space is for them.",
        ),
        NextBestActionId.FIRST_EXTRA: ReasonCopy(
            title="Offer a first extra",
            description=(
                "Subscribed but never tried an extra. A clean upsell opportunity."
            ),
        ),
        NextBestActionId.WAKE_DORMANT: ReasonCopy(
            title="Wake a dormant fan",
            description=(
                "You have not talked in a while. Before selling, find out if they are still interested."
            ),
        ),
        NextBestActionId.NEUTRAL: ReasonCopy(
            title="No clear priority",
            description="Nothing urgent right now. Keep the conversation going naturally.",
        ),
    }
)

ACTION_COPY = MappingProxyType(
    {
        NextBestActionId.RENEW_HARD: ActionCopy(
            label="Urgent renewal",
            manager_text=PRIORITY_REASON_COPY[NextBestActionId.RENEW_HARD].description,
            suggestions=(
                "Hi {name}, quick check-in: what did you enjoy most this month? "
                "If you want to keep going, I'll drop the renewal link here.",
                "Offer to adjust pace or type of content in exchange for renewing; "
                "keep the price, personalise the message.",
            ),
        ),
        NextBestActionId.RENEW_SOFT: ActionCopy(
            label="Prepare renewal",
            manager_text=PRIORITY_REASON_COPY[NextBestActionId.RENEW_SOFT].description,
            suggestions=(
                "Hey {name}, what has been your favourite part so far? "
                "The renewal link is coming in a few days.",
                "Reinforce one or two concrete benefits they value before proposing the renewal.",
            ),
        ),
        NextBestActionId.RECOVER_TOP_FAN: ActionCopy(
            label="Recover top fan",
            manager_text=PRIORITY_REASON_COPY[NextBestActionId.RECOVER_TOP_FAN].description,
            suggestions=(
                "{name}, you've backed my content more than almost anyone. "
                "I put together a limited special pack just for people like you.",
                "Avoid aggressive discounts: lead with personalisation and closeness.",
            ),
        ),
        NextBestActionId.FIRST_WELCOME: ActionCopy(
            label="Guided welcome",
            manager_text=PRIORITY_REASON_COPY[NextBestActionId.FIRST_WELCOME].description,
            suggestions=(
                "Hi {name}, thanks for joining! Before I suggest anything, "
                "what are you looking for here?",
                "Tell me in one sentence what you'd love to get from me and I'll point you to the right pack.",
            ),
        ),
        NextBestActionId.FIRST_EXTRA: ActionCopy(
            label="Offer a first extra",
            manager_text=PRIORITY_REASON_COPY[NextBestActionId.FIRST_EXTRA].description,
            suggestions=(
                "{name}, I have a small extra I think you'd like: one photo or one short video, "
                "just to show you how I do special content.",
                "Tie the extra to something they already told you they like (check your notes).",
            ),
        ),
        NextBestActionId.WAKE_DORMANT: ActionCopy(
            label="Wake a dormant fan",
            manager_text=PRIORITY_REASON_COPY[NextBestActionId.WAKE_DORMANT].description,
            suggestions=(
                "Hi {name}, it's been a while and you crossed my mind. How have you been?",
                "If they reply, then propose a pack or extra based on where you left off.",
            ),
        ),
        NextBestActionId.NEUTRAL: ActionCopy(
            label="No clear priority",
            manager_text=PRIORITY_REASON_COPY[NextBestActionId.NEUTRAL].description,
            suggestions=(
                "Listen to what they share and decide whether to go deeper, sell, or simply keep them company.",
            ),
        ),
    }
)

ACTION_OBJECTIVES = MappingProxyType(
    {
        ManagerAction.RENEW_PACK: (
            "Confirm whether they want to continue and close the renewal in a warm, non-pushy tone."
        ),
        ManagerAction.CARE_VIP: "Make them feel preferred and listen to what they want next.",
        ManagerAction.WELCOME: (
            "Break the ice, understand what they want and guide them to the pack that fits."
        ),
        ManagerAction.REACTIVATE_DORMANT: (
            "Knock on the door with a light message to see if they are still around, no pressure."
        ),
        ManagerAction.OFFER_EXTRA: (
            "Offer one concrete extra aligned with what they have already bought."
        ),
        ManagerAction.NEUTRAL: "Carry on the normal conversation, listen and reply.",
    }
)
