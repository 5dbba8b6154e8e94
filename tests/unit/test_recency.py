from datetime import datetime, timedelta

from conftest import NOW, build_fan, days_ago, grant, message, purchase

from fanmanager.features.fan_manager.domain.models import Message
from fanmanager.features.fan_manager.domain.recency import (
    days_since,
    days_until,
    derive_audience,
    is_new_within_days,
    is_visible_to_fan,
    latest_visible_message_at,
    min_recency,
)
from fanmanager.features.fan_manager.pipeline.scoring.facts import build_fan_facts


def test_days_since_floors_and_handles_missing():
    assert days_since(NOW - timedelta(hours=47), NOW) == 1
    assert days_since(NOW - timedelta(days=2), NOW) == 2
    assert days_since(None, NOW) is None


def test_days_until_ceils():
    assert days_until(NOW + timedelta(hours=25), NOW) == 2
    assert days_until(NOW + timedelta(days=2), NOW) == 2
    assert days_until(NOW - timedelta(hours=12), NOW) == 0
    assert days_until(None, NOW) is None


def test_naive_timestamps_are_treated_as_utc():
    naive = datetime(2025, 3, 13, 12, 0)
    assert days_since(naive, NOW) == 2


def test_min_recency_ignores_missing():
    assert min_recency(None, None) is None
    assert min_recency(5, None) == 5
    assert min_recency(5, 2) == 2


def test_audience_derivation():
    assert derive_audience(Message(sender="fan", timestamp=NOW)) == "FAN"
    assert derive_audience(Message(sender="Creator", timestamp=NOW)) == "CREATOR"
    assert derive_audience(Message(sender="bot", timestamp=NOW)) == "INTERNAL"
    assert derive_audience(Message(sender="fan", timestamp=NOW, audience="CREATOR_ONLY")) == (
        "CREATOR"
    )


def test_internal_messages_are_invisible():
    assert is_visible_to_fan(Message(sender="creator", timestamp=NOW, audience="INTERNAL")) is False
    assert is_visible_to_fan(Message(sender="other", timestamp=NOW)) is False
    assert is_visible_to_fan(Message(sender="other", timestamp=NOW, type="SYSTEM")) is True
    assert (
        is_visible_to_fan(Message(sender="other", timestamp=NOW, type="SYSTEM", audience="INTERNAL"))
        is False
    )


def test_latest_visible_message_skips_internal_notes():
    messages = [
        message("fan", 5),
        message("creator", 3),
        message("creator", 1, audience="INTERNAL"),
    ]
    assert latest_visible_message_at(messages) == days_ago(3)
    assert latest_visible_message_at(messages, sender="creator") == days_ago(3)
    assert latest_visible_message_at(messages, sender="fan") == days_ago(5)
    assert latest_visible_message_at([]) is None


def test_newness_window():
    assert is_new_within_days(days_ago(10), None, 30, NOW) is True
    assert is_new_within_days(None, days_ago(10), 30, NOW) is True
    assert is_new_within_days(days_ago(31), days_ago(1), 30, NOW) is False
    assert is_new_within_days(None, None, 30, NOW) is False
    assert is_new_within_days(days_ago(1), None, 0, NOW) is False


def test_facts_use_latest_expiring_active_grant():
    fan = build_fan(
        access_grants=[grant("trial", 2), grant("monthly", 12), grant("special", -3)],
    )
    facts = build_fan_facts(fan, NOW)

    assert facts.has_active_grant is True
    assert facts.has_active_subscription is True
    assert facts.has_active_monthly is True
    assert facts.has_active_special is False
    assert facts.has_active_trial is True
    assert facts.active_grant_type == "monthly"
    assert facts.days_to_expiry == 12
    assert facts.subscription_days_to_expiry == 12


def test_trial_only_is_not_a_subscription():
    facts = build_fan_facts(build_fan(access_grants=[grant("trial", 2)]), NOW)

    assert facts.has_active_grant is True
    assert facts.has_active_subscription is False
    assert facts.days_to_expiry == 2


def test_facts_without_any_data():
    facts = build_fan_facts(build_fan(), NOW)

    assert facts.days_since_last_message is None
    assert facts.days_since_last_purchase is None
    assert facts.days_since_last_interaction is None
    assert facts.days_to_expiry is None
    assert facts.lifetime_extra_spend == 0
    assert facts.recent_30d_spend == 0


def test_extra_spend_counts_only_live_paid_extras():
    fan = build_fan(
        extra_purchases=[
            purchase(40.0, 5),
            purchase(100.0, 45),
            purchase(30.0, 2, kind="tip"),
            purchase(70.0, 3, archived=True),
            purchase(0.0, 1),
        ]
    )
    facts = build_fan_facts(fan, NOW)

    assert facts.lifetime_extra_spend == 140.0
    assert facts.extra_spend_last_30d == 40.0
    assert facts.extras_count == 2
    assert facts.days_since_last_purchase == 2


def test_recent_spend_falls_back_to_purchases():
    fan = build_fan(extra_purchases=[purchase(40.0, 5), purchase(30.0, 2, kind="tip")])
    assert build_fan_facts(fan, NOW).recent_30d_spend == 70.0

    stored = build_fan(recent_30d_spend=12.0, extra_purchases=[purchase(40.0, 5)])
    assert build_fan_facts(stored, NOW).recent_30d_spend == 12.0


def test_subscription_expiry_ignores_longer_trial():
    fan = build_fan(access_grants=[grant("monthly", 2), grant("trial", 20)])
    facts = build_fan_facts(fan, NOW)

    assert facts.days_to_expiry == 20
    assert facts.active_grant_type == "trial"
    assert facts.subscription_days_to_expiry == 2


def test_trial_only_has_no_subscription_expiry():
    facts = build_fan_facts(build_fan(access_grants=[grant("trial", 4)]), NOW)

    assert facts.days_to_expiry == 4
    assert facts.subscription_days_to_expiry is None
