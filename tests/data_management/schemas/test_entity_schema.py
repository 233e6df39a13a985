"""Tests for Check, VerificationRequest and comparison schemas."""

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from bgv_system.data_management.schemas import (
    Check,
    CheckStatus,
    CheckType,
    ComparisonResult,
    Discrepancy,
    OutreachEvent,
    OutreachEventType,
    ResponseChannel,
    RuleConfig,
    Severity,
    VerificationRequest,
    Zone,
    request_id_for_check,
    strip_request_suffix,
)


class TestCheck:
    def test_defaults(self):
        check = Check(check_id="CHK_1", check_type=CheckType.CRIME)
        assert check.status == CheckStatus.PENDING
        assert check.zone == Zone.UNSET
        assert check.risk_score is None
        assert check.version == 0

    def test_risk_score_bounds(self):
        with pytest.raises(ValidationError):
            Check(check_id="CHK_1", check_type=CheckType.CRIME, risk_score=101)

    def test_record_round_trip(self):
        check = Check(
            check_id="CHK_1",
            check_type=CheckType.EMPLOYMENT,
            zone=Zone.GREEN,
            risk_score=20,
            discrepancies=[Discrepancy(field="salary", severity=Severity.HIGH, weight=20)],
        )
        record = check.to_record()
        assert record["riskScore"] == 20
        assert record["discrepancies"][0]["field"] == "salary"
        assert Check.from_record(record) == check


class TestZone:
    def test_terminal_zones(self):
        assert Zone.GREEN.is_terminal
        assert Zone.YELLOW.is_terminal
        assert Zone.RED.is_terminal
        assert not Zone.PENDING.is_terminal
        assert not Zone.UNSET.is_terminal


class TestVerificationRequest:
    def test_request_ids(self):
        assert request_id_for_check("CHK_EMP_1") == "CHK_EMP_1_EMP"
        assert strip_request_suffix("CHK_EMP_1_EMP") == "CHK_EMP_1"
        assert strip_request_suffix("REQ_1") == "REQ_1"

    def test_correlation_key(self):
        owned = VerificationRequest(request_id="CHK_1_EMP", check_id="CHK_1")
        standalone = VerificationRequest(request_id="REQ_1")
        assert owned.correlation_key == "CHK_1"
        assert standalone.correlation_key == "REQ_1"

    def test_known_channel(self):
        assert not VerificationRequest(request_id="R").has_known_channel
        assert VerificationRequest(request_id="R", contact_address="hr@x").has_known_channel
        assert VerificationRequest(
            request_id="R", response_channel=ResponseChannel(document_id="sheet_1")
        ).has_known_channel

    def test_event_counters(self):
        t = datetime(2025, 1, 6, tzinfo=timezone.utc)
        request = VerificationRequest(
            request_id="R",
            events=[
                OutreachEvent(type=OutreachEventType.INITIAL, timestamp=t),
                OutreachEvent(type=OutreachEventType.reminder(1), timestamp=t),
                OutreachEvent(type=OutreachEventType.reminder(2), timestamp=t),
            ],
        )
        assert request.reminder_count() == 2
        assert not request.has_escalated()
        assert request.last_event.type == "REMINDER_2"

    def test_reminder_tags(self):
        assert OutreachEventType.reminder(3) == "REMINDER_3"
        assert OutreachEventType.is_reminder("REMINDER_1")
        assert not OutreachEventType.is_reminder("ESCALATION")


class TestComparisonSchemas:
    def test_zone_thresholds(self):
        rules = RuleConfig()
        assert rules.zone_for(29) == Zone.GREEN
        assert rules.zone_for(30) == Zone.YELLOW
        assert rules.zone_for(60) == Zone.RED

    def test_thresholds_must_be_ordered(self):
        with pytest.raises(ValidationError):
            RuleConfig(green_zone_threshold=70, red_zone_threshold=40)

    def test_result_shape(self):
        result = ComparisonResult(risk_score=20, zone=Zone.GREEN, match_rate=50.0)
        record = result.to_record()
        assert record["riskScore"] == 20
        assert record["matchRate"] == 50.0
        assert "comparedAt" in record
