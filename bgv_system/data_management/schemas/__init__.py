"""Schema package for employment verification records.

Pydantic models for everything the core persists or exchanges. All of them
serialize with camelCase keys (employeeName, riskScore, matchRate) so the
stored JSON keeps the field names downstream consumers read.

Primary exports:
- FactRecord: Claimed or verified employment facts
- ComparisonResult: Risk score, zone and discrepancies for one comparison
- Check / Case / Client: Verification job entities
- VerificationRequest: One outreach attempt with its append-only event list
- ActivityLogEntry: Immutable audit record with a typed payload

Usage:
    from bgv_system.data_management.schemas import FactRecord, RuleConfig
    claimed = FactRecord(employee_name="Jane Doe", salary="12 LPA")
"""

from bgv_system.data_management.schemas.fact_schema import (
    FACT_FIELDS,
    FactRecord,
    NormalizedReply,
    ResponseMethod,
    field_key,
)
from bgv_system.data_management.schemas.comparison_schema import (
    AdvisoryAnalysis,
    ComparisonResult,
    ComparisonSummary,
    Discrepancy,
    FieldWeights,
    RuleConfig,
    Severity,
    Zone,
)
from bgv_system.data_management.schemas.entity_schema import (
    Case,
    CaseStatus,
    Check,
    CheckStatus,
    CheckType,
    ClaimedEmployment,
    Client,
    ServiceTier,
    SupervisorReview,
)
from bgv_system.data_management.schemas.request_schema import (
    OutreachEvent,
    OutreachEventType,
    RequestStatus,
    ResponseChannel,
    VerificationRequest,
    request_id_for_check,
    strip_request_suffix,
)
from bgv_system.data_management.schemas.activity_schema import (
    ActivityAction,
    ActivityLogEntry,
    ActivityPayload,
    CaseOpenedPayload,
    CheckFailedPayload,
    CheckStartedPayload,
    ComparisonCompletedPayload,
    EmailSentPayload,
    EntityType,
    HrRespondedPayload,
    SupervisorReviewPayload,
    TierChangedPayload,
    ZoneReassignedPayload,
)

__all__ = [
    # Facts
    "FACT_FIELDS",
    "FactRecord",
    "NormalizedReply",
    "ResponseMethod",
    "field_key",
    # Comparison
    "AdvisoryAnalysis",
    "ComparisonResult",
    "ComparisonSummary",
    "Discrepancy",
    "FieldWeights",
    "RuleConfig",
    "Severity",
    "Zone",
    # Entities
    "Case",
    "CaseStatus",
    "Check",
    "CheckStatus",
    "CheckType",
    "ClaimedEmployment",
    "Client",
    "ServiceTier",
    "SupervisorReview",
    # Requests
    "OutreachEvent",
    "OutreachEventType",
    "RequestStatus",
    "ResponseChannel",
    "VerificationRequest",
    "request_id_for_check",
    "strip_request_suffix",
    # Activity log
    "ActivityAction",
    "ActivityLogEntry",
    "ActivityPayload",
    "CaseOpenedPayload",
    "CheckFailedPayload",
    "CheckStartedPayload",
    "ComparisonCompletedPayload",
    "EmailSentPayload",
    "EntityType",
    "HrRespondedPayload",
    "SupervisorReviewPayload",
    "TierChangedPayload",
    "ZoneReassignedPayload",
]
