"""Activity log schemas with one explicit payload shape per action.

ActivityLogEntry is write-once. Its metadata is a tagged union keyed on
``action`` so consumers (the message registry, audit views) read typed
fields instead of probing a free-form bag.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import Field

from bgv_system.data_management.schemas.base_schema import CamelModel
from bgv_system.data_management.schemas.comparison_schema import Zone
from bgv_system.data_management.schemas.entity_schema import CheckStatus
from bgv_system.data_management.schemas.fact_schema import FactRecord, ResponseMethod


class EntityType(str, Enum):
    CLIENT = "client"
    CASE = "case"
    CHECK = "check"
    REQUEST = "request"


class ActivityAction(str, Enum):
    EMAIL_SENT = "EMAIL_SENT"
    HR_RESPONDED = "HR_RESPONDED"
    COMPARISON_COMPLETED = "COMPARISON_COMPLETED"
    SUPERVISOR_REVIEW = "SUPERVISOR_REVIEW"
    ZONE_REASSIGNED = "ZONE_REASSIGNED"
    CHECK_STARTED = "CHECK_STARTED"
    CHECK_FAILED = "CHECK_FAILED"
    CASE_OPENED = "CASE_OPENED"
    TIER_CHANGED = "TIER_CHANGED"


class EmailSentPayload(CamelModel):
    action: Literal["EMAIL_SENT"] = "EMAIL_SENT"
    message_id: str = Field(..., description="Outbound message id returned by the notifier")
    to: str
    subject: str
    request_id: str
    outreach_type: str = Field(default="INITIAL", description="INITIAL | REMINDER_<n> | ESCALATION")
    document_url: Optional[str] = None
    manual: bool = False


class HrRespondedPayload(CamelModel):
    action: Literal["HR_RESPONDED"] = "HR_RESPONDED"
    hr_email: Optional[str] = None
    source: str = Field(default="EMAIL_REPLY", description="EMAIL_REPLY | SPREADSHEET | MANUAL")
    response_method: Optional[ResponseMethod] = None
    response_data: FactRecord = Field(default_factory=FactRecord)
    matched_fields: list[str] = Field(default_factory=list)
    freeform_note: Optional[str] = None
    inbound_message_id: Optional[str] = None
    correlation_strategy: Optional[str] = None
    received_at: Optional[str] = None


class ComparisonCompletedPayload(CamelModel):
    action: Literal["COMPARISON_COMPLETED"] = "COMPARISON_COMPLETED"
    risk_score: int
    zone: Zone
    discrepancies_count: int
    match_rate: float
    service_tier: str


class SupervisorReviewPayload(CamelModel):
    action: Literal["SUPERVISOR_REVIEW"] = "SUPERVISOR_REVIEW"
    decision: str
    notes: str = ""
    reviewed_by: str
    previous_zone: Zone
    new_zone: Zone
    previous_status: CheckStatus
    new_status: CheckStatus


class ZoneReassignedPayload(CamelModel):
    action: Literal["ZONE_REASSIGNED"] = "ZONE_REASSIGNED"
    previous_zone: Zone
    new_zone: Zone
    reason: str = "Manual reassignment"
    assigned_by: str = "System"
    previous_status: CheckStatus
    new_status: CheckStatus


class CheckStartedPayload(CamelModel):
    action: Literal["CHECK_STARTED"] = "CHECK_STARTED"
    check_type: str
    previous_status: CheckStatus


class CheckFailedPayload(CamelModel):
    action: Literal["CHECK_FAILED"] = "CHECK_FAILED"
    error: str
    stage: str


class CaseOpenedPayload(CamelModel):
    action: Literal["CASE_OPENED"] = "CASE_OPENED"
    client_id: str
    check_ids: list[str] = Field(default_factory=list)


class TierChangedPayload(CamelModel):
    action: Literal["TIER_CHANGED"] = "TIER_CHANGED"
    previous_tier: str
    new_tier: str


ActivityPayload = Annotated[
    Union[
        EmailSentPayload,
        HrRespondedPayload,
        ComparisonCompletedPayload,
        SupervisorReviewPayload,
        ZoneReassignedPayload,
        CheckStartedPayload,
        CheckFailedPayload,
        CaseOpenedPayload,
        TierChangedPayload,
    ],
    Field(discriminator="action"),
]


class ActivityLogEntry(CamelModel):
    """Immutable audit record."""

    log_id: str = Field(default_factory=lambda: f"LOG_{uuid.uuid4().hex[:12].upper()}")
    entity_type: EntityType
    entity_id: str
    action: ActivityAction
    note: str = ""
    metadata: ActivityPayload
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = {"frozen": True}
