"""
Tests for Guardian data models.

Tests cover:
- camelCase wire format and snake_case construction
- Insert defaults
- Address validation
- Severity escalation mapping
- Scan report helpers
"""

import pytest
from pydantic import ValidationError

from guardian.models import (
    Alert,
    AlertCreate,
    AlertSeverity,
    Contract,
    ContractCreate,
    ContractStatus,
    ContractType,
    EventCreate,
)
from guardian.models.scan import VulnerabilityCount, VulnerabilitySeverity


class TestWireFormat:
    """Models serialize with camelCase keys."""

    def test_contract_dump_uses_camel_case(self) -> None:
        contract = Contract(
            id=1,
            name="Guardian Feed",
            address="0xea1Ad2Ebf76b490a327eF1885863c9209994F015",
            type=ContractType.FEED,
        )

        data = contract.model_dump(by_alias=True, mode="json")

        assert "addedAt" in data
        assert "added_at" not in data
        assert data["type"] == "FEED"
        assert data["status"] == "HEALTHY"
        assert data["abi"] is None

    def test_alert_accepts_both_key_styles(self) -> None:
        """Populate by alias (wire) or by field name (code)."""
        from_wire = AlertCreate.model_validate(
            {"contractId": 2, "severity": "HIGH", "title": "t", "description": "d"}
        )
        from_code = AlertCreate(
            contract_id=2, severity=AlertSeverity.HIGH, title="t", description="d"
        )

        assert from_wire == from_code
        assert from_wire.ai_analysis is None

    def test_alert_defaults(self) -> None:
        alert = Alert(
            id=1,
            contract_id=1,
            severity=AlertSeverity.LOW,
            title="Test",
            description="Test alert",
        )

        assert alert.resolved is False
        assert alert.created_at.tzinfo is not None
        assert alert.model_dump(by_alias=True)["aiAnalysis"] is None


class TestContractCreate:
    """Validation for new contracts."""

    def test_valid_contract(self) -> None:
        data = ContractCreate(
            name="Token",
            address="0x1234567890abcdef1234567890abcdef12345678",
            type=ContractType.DAO,
        )
        assert data.status == ContractStatus.HEALTHY
        assert data.abi is None

    @pytest.mark.parametrize(
        "address",
        [
            "",
            "1234567890abcdef1234567890abcdef12345678",
            "0x1234",
            "0xZZ34567890abcdef1234567890abcdef12345678",
        ],
    )
    def test_invalid_address_rejected(self, address: str) -> None:
        with pytest.raises(ValidationError):
            ContractCreate(name="Token", address=address, type=ContractType.FEED)

    def test_unknown_type_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ContractCreate.model_validate(
                {"name": "Token", "address": "0x" + "a" * 40, "type": "VAULT"}
            )


class TestEventCreate:

    def test_negative_block_rejected(self) -> None:
        with pytest.raises(ValidationError):
            EventCreate(
                contract_id=1,
                event_name="Vote",
                block_number=-1,
                transaction_hash="0x00",
            )

    def test_timestamp_optional(self) -> None:
        event = EventCreate(
            contract_id=1,
            event_name="Vote",
            block_number=1,
            transaction_hash="0x00",
        )
        assert event.timestamp is None
        assert event.event_data == {}


class TestAlertSeverity:
    """Contract status implied by each severity."""

    @pytest.mark.parametrize(
        ("severity", "expected"),
        [
            (AlertSeverity.LOW, None),
            (AlertSeverity.MEDIUM, ContractStatus.WARNING),
            (AlertSeverity.HIGH, ContractStatus.ALERT),
            (AlertSeverity.CRITICAL, ContractStatus.ALERT),
        ],
    )
    def test_escalates_to(self, severity: AlertSeverity, expected: ContractStatus | None) -> None:
        assert severity.escalates_to == expected


class TestScanModels:

    def test_severity_rank_orders_most_severe_first(self) -> None:
        ranks = [s.rank for s in VulnerabilitySeverity]
        assert ranks == sorted(ranks)
        assert VulnerabilitySeverity.CRITICAL.rank < VulnerabilitySeverity.INFO.rank

    def test_vulnerability_count_total(self) -> None:
        counts = VulnerabilityCount(critical=1, high=2, medium=3, low=4, info=5)
        assert counts.total == 15
