"""
Recency helpers.

Recency is modelled as an optional number of whole days: ``None`` means
"no evidence" (the timestamp is absent), never zero and never infinity.
Each classifier decides explicitly how to treat ``None``.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from datetime import UTC, datetime, timedelta

from .models import Message

SECONDS_PER_DAY = 86_400

VISIBLE_AUDIENCES = frozenset({"FAN", "CREATOR"})
_AUDIENCE_VALUES = ("FAN", "CREATOR", "INTERNAL")


def utc_now() -> datetime:
    return datetime.now(UTC)


def ensure_utc(value: datetime | None) -> datetime | None:
    """Treat naive timestamps as UTC so arithmetic never mixes kinds."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def days_since(value: datetime | None, now: datetime) -> int | None:
    """Whole days elapsed since ``value`` (floored), or None without a timestamp."""
    value = ensure_utc(value)
    if value is None:
        return None
    elapsed = (ensure_utc(now) - value).total_seconds()
    return math.floor(elapsed / SECONDS_PER_DAY)


def days_until(value: datetime | None, now: datetime) -> int | None:
    """Whole days left until ``value`` (ceiled), or None without a timestamp."""
    value = ensure_utc(value)
    if value is None:
        return None
    remaining = (value - ensure_utc(now)).total_seconds()
    return math.ceil(remaining / SECONDS_PER_DAY)


def min_recency(*values: int | None) -> int | None:
    """Most recent of several optional recencies; None when none is known."""
    known = [value for value in values if value is not None]
    return min(known) if known else None


def normalize_sender(value: str | None) -> str:
    lowered = (value or "").strip().lower()
    if lowered in ("fan", "creator"):
        return lowered
    return "other"


def normalize_audience(value: str | None) -> str | None:
    if not value:
        return None
    upper = value.strip().upper()
    if upper == "CREATOR_ONLY":
        return "CREATOR"
    return upper if upper in _AUDIENCE_VALUES else None


def derive_audience(message: Message) -> str:
    explicit = normalize_audience(message.audience)
    if explicit:
        return explicit
    sender = normalize_sender(message.sender)
    if sender == "fan":
        return "FAN"
    if sender == "creator":
        return "CREATOR"
    return "INTERNAL"


def is_visible_to_fan(message: Message) -> bool:
    """Internal-only notes never count toward recency."""
    if message.type == "SYSTEM":
        return normalize_audience(message.audience) != "INTERNAL"
    return derive_audience(message) in VISIBLE_AUDIENCES


def latest_visible_message_at(
    messages: Iterable[Message], sender: str | None = None
) -> datetime | None:
    latest: datetime | None = None
    for message in messages:
        if message.timestamp is None or not is_visible_to_fan(message):
            continue
        if sender is not None and normalize_sender(message.sender) != sender:
            continue
        timestamp = ensure_utc(message.timestamp)
        if latest is None or timestamp > latest:
            latest = timestamp
    return latest


def is_new_within_days(
    invite_created_at: datetime | None,
    invite_used_at: datetime | None,
    days: int,
    now: datetime,
) -> bool:
    """True when the relationship started inside the trailing ``days`` window."""
    if days <= 0:
        return False
    started_at = ensure_utc(invite_created_at) or ensure_utc(invite_used_at)
    if started_at is None:
        return False
    return started_at >= ensure_utc(now) - timedelta(days=days)
