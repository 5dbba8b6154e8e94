from unittest.mock import AsyncMock

import pytest
from conftest import NOW, build_fan, days_ago, grant, message, purchase

from fanmanager.db.helpers import DatabaseError
from fanmanager.features.fan_manager.domain.models import (
    FanStatus,
    RelationshipStage,
    RiskLevel,
    Segment,
)
from fanmanager.features.fan_manager.schemas import QueueRow
from fanmanager.features.fan_manager.services.queue_service import (
    SEGMENT_PRIORITY_ORDER,
    FanQueueService,
    rank_rows,
)

REPO = "fanmanager.features.fan_manager.services.queue_service.FanRepository"


def _row(row_id, segment, health=50, ltv=0.0, **overrides):
    params = {
        "id": row_id,
        "display_name": row_id,
        "segment": segment,
        "risk_level": RiskLevel.MEDIUM,
        "health_score": health,
        "days_to_expiry": None,
        "lifetime_value": ltv,
        "recent_30d_spend": 0.0,
        "relationship_stage": RelationshipStage.WARMING,
    }
    params.update(overrides)
    return QueueRow(**params)


def test_segment_priority_order():
    rows = [_row(segment.value, segment) for segment in reversed(SEGMENT_PRIORITY_ORDER)]
    ranked = rank_rows(rows)
    assert [row.segment for row in ranked] == list(SEGMENT_PRIORITY_ORDER)


def test_at_risk_orders_by_lifetime_value_only():
    ranked = rank_rows(
        [
            _row("low", Segment.AT_RISK, health=10, ltv=20.0),
            _row("high", Segment.AT_RISK, health=35, ltv=300.0),
        ]
    )
    assert [row.id for row in ranked] == ["high", "low"]


def test_other_segments_order_by_health_then_value():
    ranked = rank_rows(
        [
            _row("healthy", Segment.LIGHT, health=60, ltv=500.0),
            _row("weak-small", Segment.LIGHT, health=45, ltv=5.0),
            _row("weak-big", Segment.LIGHT, health=45, ltv=40.0),
        ]
    )
    assert [row.id for row in ranked] == ["weak-big", "weak-small", "healthy"]


def test_full_ties_keep_input_order():
    rows = [_row(f"fan-{i}", Segment.LIGHT, health=50, ltv=10.0) for i in range(5)]
    assert [row.id for row in rank_rows(rows)] == [row.id for row in rows]


@pytest.mark.asyncio
async def test_build_queue_scores_and_refreshes_cache(monkeypatch):
    fans = [
        build_fan(id="light", display_name="Light", messages=[message("fan", 40)]),
        build_fan(
            id="vip",
            display_name="Vip",
            lifetime_value=300.0,
            access_grants=[grant("monthly", 20)],
            extra_purchases=[purchase(60.0, 3)],
            messages=[message("fan", 1)],
        ),
        build_fan(
            id="risky",
            display_name="Risky",
            lifetime_value=80.0,
            messages=[message("fan", 30)],
            extra_purchases=[purchase(80.0, 50)],
        ),
    ]
    fetch_mock = AsyncMock(return_value=fans)
    batch_mock = AsyncMock()
    monkeypatch.setattr(f"{REPO}.fetch_fans_for_creator", fetch_mock)
    monkeypatch.setattr(f"{REPO}.update_cached_scores_batch", batch_mock)

    rows = await FanQueueService().build_queue("creator-1", now=NOW)

    assert [row.id for row in rows] == ["risky", "vip", "light"]
    assert rows[0].segment == Segment.AT_RISK
    assert rows[1].segment == Segment.VIP
    fetch_mock.assert_awaited_once_with("creator-1")
    batch_mock.assert_awaited_once()


@pytest.mark.asyncio
async def test_build_queue_without_refresh_skips_write(monkeypatch):
    batch_mock = AsyncMock()
    single_mock = AsyncMock()
    monkeypatch.setattr(
        f"{REPO}.fetch_fans_for_creator", AsyncMock(return_value=[build_fan()])
    )
    monkeypatch.setattr(f"{REPO}.update_cached_scores_batch", batch_mock)
    monkeypatch.setattr(f"{REPO}.update_cached_scores", single_mock)

    rows = await FanQueueService().build_queue("creator-1", now=NOW, refresh_cache=False)

    assert len(rows) == 1
    batch_mock.assert_not_awaited()
    single_mock.assert_not_awaited()


@pytest.mark.asyncio
async def test_build_queue_survives_cache_failure(monkeypatch):
    monkeypatch.setattr(
        f"{REPO}.fetch_fans_for_creator",
        AsyncMock(return_value=[build_fan(id="a"), build_fan(id="b")]),
    )
    monkeypatch.setattr(
        f"{REPO}.update_cached_scores_batch",
        AsyncMock(side_effect=DatabaseError("boom", operation="transaction")),
    )

    rows = await FanQueueService().build_queue("creator-1", now=NOW)

    assert {row.id for row in rows} == {"a", "b"}


@pytest.mark.asyncio
async def test_active_queue_filters_and_flags(monkeypatch):
    fans = [
        build_fan(id="keep", messages=[message("fan", 2)]),
        build_fan(id="keep", messages=[message("fan", 2)]),
        build_fan(id="archived"),
        build_fan(id="blocked"),
        build_fan(id="old", lifetime_value=20.0, messages=[message("fan", 5)]),
        build_fan(id="ghost"),
    ]
    statuses = {
        "keep": FanStatus(fan_id="keep", invite_created_at=days_ago(5)),
        "archived": FanStatus(fan_id="archived", is_archived=True, is_blocked=True),
        "blocked": FanStatus(fan_id="blocked", is_blocked=True),
        "old": FanStatus(fan_id="old", invite_used_at=days_ago(45)),
    }
    status_mock = AsyncMock(return_value=statuses)
    monkeypatch.setattr(f"{REPO}.fetch_fans_for_creator", AsyncMock(return_value=fans))
    monkeypatch.setattr(f"{REPO}.fetch_statuses", status_mock)
    monkeypatch.setattr(f"{REPO}.update_cached_scores_batch", AsyncMock())

    result = await FanQueueService().build_active_queue("creator-1", now=NOW)

    # "old" is AT_RISK (paid, low health) so it ranks ahead of the NEW fan
    assert [row.id for row in result.active_queue] == ["old", "keep"]
    flags = {row.id: row.flags.is_new_30d for row in result.active_queue}
    assert flags == {"old": False, "keep": True}
    assert result.archived_count == 1
    assert result.blocked_count == 1
    requested_ids = status_mock.await_args.args[0]
    assert sorted(requested_ids) == ["archived", "blocked", "ghost", "keep", "old"]


@pytest.mark.asyncio
async def test_active_queue_empty_creator(monkeypatch):
    status_mock = AsyncMock()
    monkeypatch.setattr(f"{REPO}.fetch_fans_for_creator", AsyncMock(return_value=[]))
    monkeypatch.setattr(f"{REPO}.fetch_statuses", status_mock)

    result = await FanQueueService().build_active_queue("creator-1", now=NOW)

    assert result.active_queue == []
    assert result.archived_count == 0
    assert result.blocked_count == 0
    status_mock.assert_not_awaited()


@pytest.mark.asyncio
async def test_creator_snapshot(monkeypatch):
    fans = [
        build_fan(
            id="vip",
            lifetime_value=300.0,
            recent_30d_spend=60.0,
            access_grants=[grant("monthly", 5)],
            extra_purchases=[purchase(60.0, 1)],
            messages=[message("fan", 0.5)],
        ),
        build_fan(id="new", messages=[message("fan", 1)]),
        build_fan(id="dormant", lifetime_value=30.0, messages=[message("fan", 90)]),
        build_fan(id="light"),
    ]
    batch_mock = AsyncMock()
    monkeypatch.setattr(f"{REPO}.fetch_fans_for_creator", AsyncMock(return_value=fans))
    monkeypatch.setattr(f"{REPO}.update_cached_scores_batch", batch_mock)

    snapshot = await FanQueueService().build_creator_snapshot("creator-1", now=NOW)

    assert snapshot.total_fans == 4
    assert snapshot.vip_count == 1
    assert snapshot.fans_at_risk == 0
    assert snapshot.renewals_next_7_days == 1
    assert snapshot.recent_30d_spend_total == 60.0
    assert snapshot.segment_counts[Segment.NEW] == 1
    assert snapshot.segment_counts[Segment.DORMANT] == 1
    assert snapshot.segment_counts[Segment.LIGHT] == 1
    assert snapshot.segment_counts[Segment.AT_RISK] == 0
    assert [row.id for row in snapshot.top_priorities] == ["vip", "new", "dormant"]
    batch_mock.assert_not_awaited()


@pytest.mark.asyncio
async def test_snapshot_renewals_skip_trial_expiries(monkeypatch):
    fans = [
        build_fan(id="trial", access_grants=[grant("trial", 3)], messages=[message("fan", 1)]),
        build_fan(
            id="monthly",
            lifetime_value=40.0,
            access_grants=[grant("monthly", 4), grant("trial", 2)],
            messages=[message("fan", 1)],
        ),
        build_fan(id="later", lifetime_value=40.0, access_grants=[grant("special", 12)]),
    ]
    monkeypatch.setattr(f"{REPO}.fetch_fans_for_creator", AsyncMock(return_value=fans))

    snapshot = await FanQueueService().build_creator_snapshot("creator-1", now=NOW)

    assert snapshot.renewals_next_7_days == 1
