"""
Repository helpers for relationship snapshots.

Reads a fan with its nested grants, purchases, visible messages and latest
note, and writes the cached derivations back onto the fan row.
"""

from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from fanmanager.db.helpers import (
    execute_query,
    execute_transaction,
    fetch_all,
    fetch_one,
    with_db_retry,
)
from fanmanager.features.fan_manager.domain.models import (
    AccessGrant,
    ExtraPurchase,
    FanNote,
    FanRecord,
    FanStatus,
    Message,
)
from fanmanager.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

_FAN_COLUMNS = """
    id, creator_id, COALESCE(NULLIF(display_name, ''), name, 'Fan') AS display_name,
    lifetime_value, recent_30d_spend, is_new,
    health_score, segment, risk_level,
    last_message_at, last_creator_message_at, last_purchase_at
"""

_UPDATE_CACHE_QUERY = """
    UPDATE fans
    SET health_score = %s,
        segment = %s,
        risk_level = %s,
        last_message_at = %s,
        last_creator_message_at = %s,
        last_purchase_at = %s,
        updated_at = NOW()
    WHERE id = %s
"""


@dataclass(slots=True)
class CachedScores:
    fan_id: str
    health_score: int
    segment: str
    risk_level: str
    last_message_at: datetime | None
    last_creator_message_at: datetime | None
    last_purchase_at: datetime | None

    def as_params(self) -> tuple:
        return (
            self.health_score,
            self.segment,
            self.risk_level,
            self.last_message_at,
            self.last_creator_message_at,
            self.last_purchase_at,
            self.fan_id,
        )


def _row_to_fan(row: dict[str, Any]) -> FanRecord:
    return FanRecord(
        id=str(row["id"]),
        creator_id=str(row["creator_id"]),
        display_name=row.get("display_name") or "Fan",
        lifetime_value=float(row.get("lifetime_value") or 0),
        recent_30d_spend=float(row.get("recent_30d_spend") or 0),
        is_new=bool(row.get("is_new")),
        health_score=row.get("health_score"),
        segment=row.get("segment"),
        risk_level=row.get("risk_level"),
        last_message_at=row.get("last_message_at"),
        last_creator_message_at=row.get("last_creator_message_at"),
        last_purchase_at=row.get("last_purchase_at"),
    )


def _row_to_grant(row: dict[str, Any]) -> AccessGrant:
    return AccessGrant(
        type=(row.get("type") or "").lower(),
        created_at=row["created_at"],
        expires_at=row["expires_at"],
    )


def _row_to_purchase(row: dict[str, Any]) -> ExtraPurchase:
    return ExtraPurchase(
        amount=float(row.get("amount") or 0),
        created_at=row["created_at"],
        kind=(row.get("kind") or "extra").lower(),
        tier=row.get("tier"),
        archived=bool(row.get("is_archived")),
    )


def _row_to_message(row: dict[str, Any]) -> Message:
    return Message(
        sender=row.get("sender") or "other",
        timestamp=row["created_at"],
        audience=row.get("audience"),
        type=row.get("type"),
    )


def _row_to_note(row: dict[str, Any]) -> FanNote:
    return FanNote(content=row.get("content") or "", created_at=row["created_at"])


class FanRepository:
    """Thin wrappers for fetching relationship snapshots and caching scores."""

    @staticmethod
    @with_db_retry(max_retries=3, base_delay=0.1)
    async def fetch_fan(fan_id: str) -> FanRecord | None:
        row = await fetch_one(f"SELECT {_FAN_COLUMNS} FROM fans WHERE id = %s", (fan_id,))
        if not row:
            return None
        fans = await FanRepository._attach_children([_row_to_fan(row)])
        return fans[0]

    @staticmethod
    @with_db_retry(max_retries=3, base_delay=0.1)
    async def fetch_fans_for_creator(creator_id: str) -> list[FanRecord]:
        rows = await fetch_all(
            f"SELECT {_FAN_COLUMNS} FROM fans WHERE creator_id = %s ORDER BY id",
            (creator_id,),
        )
        fans = [_row_to_fan(row) for row in rows]
        if not fans:
            return []
        return await FanRepository._attach_children(fans)

    @staticmethod
    async def _attach_children(fans: list[FanRecord]) -> list[FanRecord]:
        """Load nested children for many fans with one query per child table."""
        fan_ids = [fan.id for fan in fans]

        grant_rows = await fetch_all(
            """
            SELECT fan_id, type, created_at, expires_at
            FROM access_grants
            WHERE fan_id = ANY(%s)
            """,
            (fan_ids,),
        )
        purchase_rows = await fetch_all(
            """
            SELECT fan_id, amount, tier, kind, created_at, is_archived
            FROM extra_purchases
            WHERE fan_id = ANY(%s)
              AND amount > 0
              AND is_archived = false
            """,
            (fan_ids,),
        )
        message_rows = await fetch_all(
            """
            SELECT fan_id, sender, audience, type, created_at
            FROM messages
            WHERE fan_id = ANY(%s)
              AND (audience IS NULL OR UPPER(audience) <> 'INTERNAL')
            """,
            (fan_ids,),
        )
        note_rows = await fetch_all(
            """
            SELECT DISTINCT ON (fan_id) fan_id, content, created_at
            FROM fan_notes
            WHERE fan_id = ANY(%s)
            ORDER BY fan_id, created_at DESC
            """,
            (fan_ids,),
        )

        grants: dict[str, list[AccessGrant]] = defaultdict(list)
        for row in grant_rows:
            grants[str(row["fan_id"])].append(_row_to_grant(row))

        purchases: dict[str, list[ExtraPurchase]] = defaultdict(list)
        for row in purchase_rows:
            purchases[str(row["fan_id"])].append(_row_to_purchase(row))

        messages: dict[str, list[Message]] = defaultdict(list)
        for row in message_rows:
            messages[str(row["fan_id"])].append(_row_to_message(row))

        notes = {str(row["fan_id"]): _row_to_note(row) for row in note_rows}

        for fan in fans:
            fan.access_grants = grants.get(fan.id, [])
            fan.extra_purchases = purchases.get(fan.id, [])
            fan.messages = messages.get(fan.id, [])
            fan.latest_note = notes.get(fan.id)
        return fans

    @staticmethod
    @with_db_retry(max_retries=3, base_delay=0.1)
    async def fetch_statuses(fan_ids: Sequence[str]) -> dict[str, FanStatus]:
        if not fan_ids:
            return {}
        rows = await fetch_all(
            """
            SELECT id, is_archived, is_blocked, invite_created_at, invite_used_at
            FROM fans
            WHERE id = ANY(%s)
            """,
            (list(fan_ids),),
        )
        return {
            str(row["id"]): FanStatus(
                fan_id=str(row["id"]),
                is_archived=row.get("is_archived") is True,
                is_blocked=row.get("is_blocked") is True,
                invite_created_at=row.get("invite_created_at"),
                invite_used_at=row.get("invite_used_at"),
            )
            for row in rows
        }

    @staticmethod
    async def update_cached_scores(scores: CachedScores) -> None:
        await execute_query(_UPDATE_CACHE_QUERY, scores.as_params())
        logger.debug("Cached fan scores updated", fan_id=scores.fan_id)

    @staticmethod
    async def update_cached_scores_batch(scores: Iterable[CachedScores]) -> None:
        """Batch update cached scores for many fans in a single transaction."""
        scores_list = list(scores)
        if not scores_list:
            return

        await execute_transaction(
            [(_UPDATE_CACHE_QUERY, item.as_params()) for item in scores_list]
        )

        logger.debug("Batch updated cached fan scores", fan_count=len(scores_list))
