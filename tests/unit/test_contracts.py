import pytest

from fanmanager.config import settings
from fanmanager.features.fan_manager.domain.models import RelationshipStage, RiskLevel, Segment
from fanmanager.features.fan_manager.schemas import (
    ContractViolationError,
    QueueRow,
    validate_contract,
)


def _payload(**overrides):
    payload = {
        "id": "fan-1",
        "display_name": "Alex",
        "segment": "VIP",
        "risk_level": "LOW",
        "health_score": 80,
        "days_to_expiry": None,
        "lifetime_value": 250.0,
        "recent_30d_spend": 0.0,
        "relationship_stage": "LOYAL",
    }
    payload.update(overrides)
    return payload


def test_valid_payload_is_coerced_to_enums():
    row = validate_contract(QueueRow, _payload())

    assert row.segment == Segment.VIP
    assert row.risk_level == RiskLevel.LOW
    assert row.relationship_stage == RelationshipStage.LOYAL


def test_violation_raises_when_strict(monkeypatch):
    monkeypatch.setattr(settings, "STRICT_CONTRACTS", True)

    with pytest.raises(ContractViolationError) as exc_info:
        validate_contract(QueueRow, _payload(health_score=140))

    assert exc_info.value.model == "QueueRow"
    assert exc_info.value.errors


def test_violation_raises_for_unknown_segment(monkeypatch):
    monkeypatch.setattr(settings, "STRICT_CONTRACTS", None)
    monkeypatch.setattr(settings, "environment", "test")

    with pytest.raises(ContractViolationError):
        validate_contract(QueueRow, _payload(segment="WHALE"))


def test_violation_is_logged_and_passed_through_in_production(monkeypatch):
    monkeypatch.setattr(settings, "STRICT_CONTRACTS", None)
    monkeypatch.setattr(settings, "environment", "production")
    logged = []
    monkeypatch.setattr(
        "fanmanager.features.fan_manager.schemas.log_contract_violation",
        lambda model, errors, strict: logged.append((model, strict)),
    )

    row = validate_contract(QueueRow, _payload(health_score=140))

    assert row.health_score == 140
    assert logged == [("QueueRow", False)]


def test_explicit_setting_wins_over_environment(monkeypatch):
    monkeypatch.setattr(settings, "environment", "production")
    monkeypatch.setattr(settings, "STRICT_CONTRACTS", True)
    assert settings.strict_contracts() is True

    monkeypatch.setattr(settings, "environment", "development")
    monkeypatch.setattr(settings, "STRICT_CONTRACTS", False)
    assert settings.strict_contracts() is False
