"""Comparison domain schemas: rule configuration, discrepancies and results.

The deterministic comparator is the system of record for riskScore and
zone. AdvisoryAnalysis is attached to a result for human readers only and
carries no authority over either value.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import Field, model_validator

from bgv_system.data_management.schemas.base_schema import CamelModel


class Severity(str, Enum):
    """Discrepancy severity, highest first."""

    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class Zone(str, Enum):
    """Risk bucket of a check.

    UNSET: Never compared.
    PENDING: Executed but still waiting for the employer's answer.
    GREEN / YELLOW / RED: Derived from riskScore via the rule thresholds,
    or set by an explicit supervisor action.
    """

    UNSET = "UNSET"
    PENDING = "PENDING"
    GREEN = "GREEN"
    YELLOW = "YELLOW"
    RED = "RED"

    @property
    def is_terminal(self) -> bool:
        return self in (Zone.GREEN, Zone.YELLOW, Zone.RED)


class FieldWeights(CamelModel):
    """Risk points added per rule violation."""

    name_mismatch: int = Field(default=30, ge=0, le=100)
    salary_mismatch: int = Field(default=20, ge=0, le=100)
    not_eligible_for_rehire: int = Field(default=30, ge=0, le=100)
    low_performance: int = Field(default=15, ge=0, le=100)
    dates_mismatch: int = Field(default=15, ge=0, le=100)
    designation_mismatch: int = Field(default=10, ge=0, le=100)


class RuleConfig(CamelModel):
    """Tolerances, zone thresholds and weights applied by the comparator."""

    salary_tolerance_percent: float = Field(default=10.0, ge=0.0)
    dates_tolerance_days: int = Field(default=31, ge=0)
    green_zone_threshold: int = Field(
        default=30, ge=0, le=100, description="riskScore at or above this is YELLOW"
    )
    red_zone_threshold: int = Field(
        default=60, ge=0, le=100, description="riskScore at or above this is RED"
    )
    field_weights: FieldWeights = Field(default_factory=FieldWeights)

    @model_validator(mode="after")
    def check_threshold_order(self) -> "RuleConfig":
        if self.red_zone_threshold < self.green_zone_threshold:
            raise ValueError(
                "redZoneThreshold must be greater than or equal to greenZoneThreshold"
            )
        return self

    def zone_for(self, risk_score: int) -> Zone:
        """Zone derived from a risk score under these thresholds."""
        if risk_score >= self.red_zone_threshold:
            return Zone.RED
        if risk_score >= self.green_zone_threshold:
            return Zone.YELLOW
        return Zone.GREEN


class Discrepancy(CamelModel):
    """One field where the verified value contradicts the claim."""

    field: str = Field(..., description="camelCase FactRecord key")
    severity: Severity
    claimed_value: Optional[str] = None
    verified_value: Optional[str] = None
    difference: Optional[str] = Field(
        default=None, description="Human-readable delta, e.g. '12.0%' or '45 days'"
    )
    weight: int = Field(default=0, ge=0, description="Risk points this entry contributed")


class ComparisonSummary(CamelModel):
    """Human-readable outcome attached to every comparison."""

    status: str
    message: str
    details: str
    action: str
    degraded: bool = Field(
        default=False, description="True when the advisory stage failed or was unavailable"
    )


class AdvisoryAnalysis(CamelModel):
    """Qualitative narrative about the discrepancies. Advisory only."""

    reasoning: str
    risk_level: str = Field(default="LOW", description="LOW | MEDIUM | HIGH")
    recommendations: list[str] = Field(default_factory=list)
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    suggested_zone: Optional[str] = None


class ComparisonResult(CamelModel):
    """Deterministic reconciliation of a claimed and a verified FactRecord."""

    risk_score: int = Field(..., ge=0, le=100)
    zone: Zone
    discrepancies: list[Discrepancy] = Field(default_factory=list)
    matches: list[str] = Field(default_factory=list)
    match_rate: float = Field(..., ge=0.0, le=100.0)
    skipped: list[str] = Field(
        default_factory=list,
        description="Fields present but not comparable (missing side or parse failure)",
    )
    summary: Optional[ComparisonSummary] = None
    advisory: Optional[AdvisoryAnalysis] = None
    compared_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "riskScore": 20,
                    "zone": "GREEN",
                    "discrepancies": [
                        {
                            "field": "salary",
                            "severity": "HIGH",
                            "claimedValue": "₹10,00,000",
                            "verifiedValue": "₹11,20,000",
                            "difference": "12.0%",
                            "weight": 20,
                        }
                    ],
                    "matches": ["employeeName"],
                    "matchRate": 50.0,
                }
            ]
        }
    }
