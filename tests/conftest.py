from datetime import UTC, datetime, timedelta

import pytest

from fanmanager.features.fan_manager.domain.models import (
    AccessGrant,
    ExtraPurchase,
    FanNote,
    FanRecord,
    Message,
)

NOW = datetime(2025, 3, 15, 12, 0, tzinfo=UTC)


def days_ago(days: float) -> datetime:
    return NOW - timedelta(days=days)


def days_ahead(days: float) -> datetime:
    return NOW + timedelta(days=days)


def grant(grant_type: str, expires_in_days: float, created_days_ago: float = 30) -> AccessGrant:
    return AccessGrant(
        type=grant_type,
        created_at=days_ago(created_days_ago),
        expires_at=days_ahead(expires_in_days),
    )


def purchase(amount: float, created_days_ago: float, kind: str = "extra", **kwargs) -> ExtraPurchase:
    return ExtraPurchase(amount=amount, created_at=days_ago(created_days_ago), kind=kind, **kwargs)


def message(sender: str, sent_days_ago: float, **kwargs) -> Message:
    return Message(sender=sender, timestamp=days_ago(sent_days_ago), **kwargs)


def build_fan(**overrides) -> FanRecord:
    fan = FanRecord(id="fan-1", creator_id="creator-1", display_name="Alex")
    for key, value in overrides.items():
        setattr(fan, key, value)
    return fan


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def new_fan():
    """No money spent, no grants, talked two days ago."""
    return build_fan(messages=[message("fan", 2)])


@pytest.fixture
def expiring_vip():
    """Big spender on a monthly pack that lapses in two days."""
    return build_fan(
        id="fan-vip",
        display_name="Sam",
        lifetime_value=300.0,
        access_grants=[grant("monthly", 2)],
        extra_purchases=[purchase(50.0, 2)],
        messages=[message("fan", 1), message("creator", 1)],
        latest_note=FanNote(content="Asked about the  beach\nshoot", created_at=days_ago(1)),
    )
