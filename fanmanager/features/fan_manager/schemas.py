"""
Output contracts for the fan manager.

Every object the services hand to a transport layer is validated against
these models. A failure means the decision cascade and its declared output
drifted apart: a programming error, not a user-facing one.
"""

from datetime import datetime
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from fanmanager.config import settings
from fanmanager.features.fan_manager.domain.models import (
    CommunicationTone,
    FocusButton,
    ManagerAction,
    NextBestActionId,
    RelationshipStage,
    RiskLevel,
    Segment,
)
from fanmanager.infrastructure.observability.logging import log_contract_violation

ModelT = TypeVar("ModelT", bound=BaseModel)


class ContractViolationError(Exception):
    """Engine output does not match its declared schema."""

    def __init__(self, model: str, errors: list[dict[str, Any]]):
        super().__init__(f"{model} failed validation with {len(errors)} error(s)")
        self.model = model
        self.errors = errors


class MessageSuggestion(BaseModel):
    id: str
    label: str
    text: str


class NarrativeSummary(BaseModel):
    profile: str
    recent: str
    opportunity: str


class SubscriptionSummary(BaseModel):
    active: bool
    price: float = Field(ge=0)
    days_left: int | None = None


class CountTotal(BaseModel):
    count: int = Field(ge=0)
    total: float = Field(ge=0)


class MonetizationSummary(BaseModel):
    subscription: SubscriptionSummary
    extras: CountTotal
    tips: CountTotal
    gifts: CountTotal
    total_spent: float = Field(ge=0)
    recent_30d_spent: float = Field(ge=0)
    last_purchase_at: datetime | None = None


class FanAiContext(BaseModel):
    """Compact context block handed to assistant prompts."""

    fan_id: str
    display_name: str
    segment: Segment
    stage_label: str
    risk_level: RiskLevel
    health_score: int | None = Field(default=None, ge=0, le=100)
    lifetime_spent: float | None = None
    spent_last_30_days: float | None = None
    extras_count: int | None = None
    days_since_last_message: int | None = None
    days_to_renewal: int | None = None
    has_active_monthly: bool
    has_active_trial: bool
    has_active_special_pack: bool
    summary: NarrativeSummary


class RelationshipSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    fan_id: str
    display_name: str
    segment: Segment
    risk_level: RiskLevel
    health_score: int = Field(ge=0, le=100)
    has_active_pack: bool
    days_to_expiry: int | None = None
    recent_30d_spend: float = Field(ge=0)
    lifetime_value: float = Field(ge=0)
    priority_rank: int | None = Field(default=None, ge=1)
    priority_reason: str
    next_best_action: ManagerAction
    next_best_action_id: NextBestActionId
    action_label: str
    recommended_buttons: list[FocusButton]
    objective_today: str
    message_suggestions: list[MessageSuggestion] = Field(max_length=3)
    relationship_stage: RelationshipStage
    communication_tone: CommunicationTone
    last_topic: str | None = None
    personalization_hints: str | None = None
    summary: NarrativeSummary
    ai_context: FanAiContext
    monetization: MonetizationSummary | None = None


class QueueRow(BaseModel):
    id: str
    display_name: str
    segment: Segment
    risk_level: RiskLevel
    health_score: int = Field(ge=0, le=100)
    days_to_expiry: int | None = None
    subscription_days_to_expiry: int | None = None
    lifetime_value: float = Field(ge=0)
    recent_30d_spend: float = Field(ge=0)
    relationship_stage: RelationshipStage


class QueueRowFlags(BaseModel):
    is_new_30d: bool = False


class ActiveQueueRow(QueueRow):
    flags: QueueRowFlags


class ActiveQueueResult(BaseModel):
    active_queue: list[ActiveQueueRow]
    archived_count: int = Field(ge=0)
    blocked_count: int = Field(ge=0)


class CreatorSnapshot(BaseModel):
    creator_id: str
    total_fans: int = Field(ge=0)
    segment_counts: dict[Segment, int]
    vip_count: int = Field(ge=0)
    fans_at_risk: int = Field(ge=0)
    renewals_next_7_days: int = Field(ge=0)
    recent_30d_spend_total: float = Field(ge=0)
    top_priorities: list[QueueRow] = Field(max_length=3)


def validate_contract(model: type[ModelT], payload: dict[str, Any]) -> ModelT:
    """
    Validate ``payload`` against ``model``.

    Raises ContractViolationError when contracts are strict (development and
    test by default). Otherwise the violation is logged and the payload is
    returned unvalidated.
    """
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        errors = exc.errors(include_url=False)
        strict = settings.strict_contracts()
        log_contract_violation(model.__name__, errors, strict)
        if strict:
            raise ContractViolationError(model.__name__, errors) from exc
        return model.model_construct(**payload)
