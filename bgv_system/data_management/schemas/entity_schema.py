"""Client, Case and Check schemas.

A Case is one candidate's verification job for a Client and owns one Check
per verifiable fact domain. Checks carry the lifecycle state; risk score and
zone are only ever written together with the comparison they came from.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import Field

from bgv_system.data_management.schemas.base_schema import CamelModel
from bgv_system.data_management.schemas.comparison_schema import (
    ComparisonResult,
    Discrepancy,
    Zone,
)
from bgv_system.data_management.schemas.fact_schema import FactRecord


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ServiceTier(str, Enum):
    """Client service tier; selects the comparator rule configuration."""

    BASIC = "BASIC"
    STANDARD = "STANDARD"
    PREMIUM = "PREMIUM"
    ENTERPRISE = "ENTERPRISE"


class CheckType(str, Enum):
    EMPLOYMENT = "EMPLOYMENT"
    EDUCATION = "EDUCATION"
    CRIME = "CRIME"


class CheckStatus(str, Enum):
    """Check lifecycle status.

    PENDING: Created or waiting for the employer's answer.
    IN_PROGRESS: Execution running.
    COMPLETED: Comparison persisted.
    FAILED: Unrecoverable execution error; eligible for manual retry.
    VERIFIED / REJECTED: Supervisor decision.
    NEEDS_REVIEW: Set explicitly on zone reassignment.
    """

    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    VERIFIED = "VERIFIED"
    REJECTED = "REJECTED"
    NEEDS_REVIEW = "NEEDS_REVIEW"


class CaseStatus(str, Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


class Client(CamelModel):
    """Organization purchasing verification services."""

    client_id: str
    display_name: str
    service_tier: ServiceTier = ServiceTier.STANDARD
    contact_person: Optional[str] = None
    email: Optional[str] = None
    created_at: datetime = Field(default_factory=_utcnow)


class ClaimedEmployment(CamelModel):
    """One previous employment as submitted at intake."""

    company_name: str
    designation: Optional[str] = None
    employment_dates: Optional[str] = None
    salary: Optional[str] = None
    hr_email: Optional[str] = None
    reason_for_leaving: Optional[str] = None


class Case(CamelModel):
    """One candidate's verification job."""

    case_id: str
    client_id: str
    employee_name: str
    status: CaseStatus = CaseStatus.PENDING
    overall_risk_level: Optional[str] = None
    average_risk_score: Optional[float] = None
    check_ids: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class SupervisorReview(CamelModel):
    reviewed_by: str
    reviewed_at: datetime = Field(default_factory=_utcnow)
    decision: str
    notes: str = ""
    previous_zone: Zone
    previous_status: CheckStatus


class Check(CamelModel):
    """One verifiable fact domain within a Case."""

    check_id: str
    case_id: Optional[str] = None
    check_type: CheckType
    claimed_facts: FactRecord = Field(default_factory=FactRecord)
    contact_address: Optional[str] = Field(
        default=None, description="HR mailbox for EMPLOYMENT checks"
    )
    status: CheckStatus = CheckStatus.PENDING
    zone: Zone = Zone.UNSET
    risk_score: Optional[int] = Field(default=None, ge=0, le=100)
    discrepancies: list[Discrepancy] = Field(default_factory=list)
    verified_facts: Optional[FactRecord] = None
    comparison: Optional[ComparisonResult] = None
    request_id: Optional[str] = None
    supervisor_review: Optional[SupervisorReview] = None
    notes: Optional[str] = None
    version: int = Field(default=0, ge=0, description="Compare-and-set token")
    created_at: datetime = Field(default_factory=_utcnow)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Check":
        return cls.model_validate(record)
