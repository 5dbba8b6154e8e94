from unittest.mock import AsyncMock

import pytest
from conftest import NOW, days_ago, days_ahead

from fanmanager.features.fan_manager.repository.monetization_repository import (
    MonetizationRepository,
    build_rollup,
    normalize_kind,
)

MODULE = "fanmanager.features.fan_manager.repository.monetization_repository"


def test_normalize_kind():
    assert normalize_kind("TIP") == "tip"
    assert normalize_kind(" gift ") == "gift"
    assert normalize_kind(None) == "extra"
    assert normalize_kind("bundle") == "extra"


def test_rollup_splits_by_kind():
    rows = [
        {"kind": "extra", "purchase_count": 2, "purchase_total": 60, "last_purchase_at": days_ago(4)},
        {"kind": "tip", "purchase_count": 1, "purchase_total": 10, "last_purchase_at": days_ago(1)},
        {"kind": "bundle", "purchase_count": 1, "purchase_total": 15, "last_purchase_at": None},
    ]

    rollup = build_rollup(rows, None, 25.0, NOW)

    assert rollup.extras_count == 3
    assert rollup.extras_total == 75.0
    assert rollup.tips_count == 1
    assert rollup.gifts_count == 0
    assert rollup.total_spent == 85.0
    assert rollup.recent_30d_spent == 25.0
    assert rollup.last_purchase_at == days_ago(1)
    assert rollup.subscription_active is False
    assert rollup.subscription_price == 0.0
    assert rollup.subscription_days_left is None


def test_rollup_subscription_block():
    rollup = build_rollup([], {"type": "Special", "expires_at": days_ahead(4)}, 0.0, NOW)

    assert rollup.subscription_active is True
    assert rollup.subscription_price == 49.0
    assert rollup.subscription_days_left == 4


@pytest.mark.asyncio
async def test_fetch_rollup_runs_three_queries(monkeypatch):
    fetch_all_mock = AsyncMock(
        return_value=[{"kind": "gift", "purchase_count": 1, "purchase_total": 20}]
    )
    fetch_one_mock = AsyncMock(
        side_effect=[{"recent_total": 20}, {"type": "monthly", "expires_at": days_ahead(10)}]
    )
    monkeypatch.setattr(f"{MODULE}.fetch_all", fetch_all_mock)
    monkeypatch.setattr(f"{MODULE}.fetch_one", fetch_one_mock)

    rollup = await MonetizationRepository.fetch_rollup("fan-1", NOW)

    assert rollup.gifts_total == 20.0
    assert rollup.recent_30d_spent == 20.0
    assert rollup.subscription_price == 25.0
    assert rollup.subscription_days_left == 10
    assert fetch_one_mock.await_count == 2
    fetch_all_mock.assert_awaited_once()
