"""Fact record schemas shared by the claimed and verified sides.

A FactRecord is deliberately loose: every field is an optional string, and
an absent field means "not compared" rather than "mismatched". Values are
kept exactly as supplied; parsing happens in the comparator.
"""

from enum import Enum
from typing import Optional

from pydantic import Field
from pydantic.alias_generators import to_camel

from bgv_system.data_management.schemas.base_schema import CamelModel


class FactRecord(CamelModel):
    """Normalized set of comparable employment attributes."""

    employee_name: Optional[str] = Field(default=None, description="Employee full name")
    company_name: Optional[str] = Field(default=None, description="Employer name")
    designation: Optional[str] = Field(default=None, description="Role or title held")
    employment_dates: Optional[str] = Field(
        default=None, description="Employment period, e.g. 'Jan 2020 - Mar 2023'"
    )
    salary: Optional[str] = Field(
        default=None, description="Salary/CTC as written, e.g. '₹10,00,000' or '12 LPA'"
    )
    eligible_for_rehire: Optional[str] = Field(
        default=None, description="Rehire eligibility as written"
    )
    performance_rating: Optional[str] = Field(
        default=None, description="Performance rating, usually 1-5"
    )
    reason_for_leaving: Optional[str] = Field(
        default=None, description="Stated reason for leaving"
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "employeeName": "Jane Doe",
                    "companyName": "Tech Corp",
                    "designation": "Senior Developer",
                    "employmentDates": "Jan 2020 - Mar 2023",
                    "salary": "₹10,00,000",
                    "eligibleForRehire": "Yes",
                    "performanceRating": "4",
                }
            ]
        }
    }

    def present_fields(self) -> list[str]:
        """Python attribute names of the non-empty fields."""
        return [
            name
            for name in FACT_FIELDS
            if (getattr(self, name) or "").strip()
        ]

    def merged_with(self, other: "FactRecord") -> "FactRecord":
        """Return a copy with other's non-empty values layered on top."""
        updates = {name: getattr(other, name) for name in other.present_fields()}
        return self.model_copy(update=updates)

    def is_empty(self) -> bool:
        return not self.present_fields()


# Attribute order used for extraction, comparison and sheet layout
FACT_FIELDS: tuple[str, ...] = (
    "employee_name",
    "company_name",
    "designation",
    "employment_dates",
    "salary",
    "eligible_for_rehire",
    "performance_rating",
    "reason_for_leaving",
)


def field_key(attribute: str) -> str:
    """Persisted (camelCase) key for a FactRecord attribute name."""
    return to_camel(attribute)


class ResponseMethod(str, Enum):
    """How an HR reply delivered its answer.

    STRUCTURED_LINK: Reply points at the collaborative spreadsheet, which is authoritative.
    FREE_TEXT: Labeled fields were found in the reply prose.
    UNSTRUCTURED: Nothing recognizable; a human must read the note.
    """

    STRUCTURED_LINK = "STRUCTURED_LINK"
    FREE_TEXT = "FREE_TEXT"
    UNSTRUCTURED = "UNSTRUCTURED"


class NormalizedReply(CamelModel):
    """Output of the fact normalizer for one inbound reply body."""

    facts: FactRecord = Field(default_factory=FactRecord)
    response_method: ResponseMethod = Field(...)
    matched_fields: list[str] = Field(
        default_factory=list,
        description="camelCase keys of the fields read from the reply",
    )
    document_reference: Optional[str] = Field(
        default=None, description="Spreadsheet/document id when the reply links one"
    )
    document_url: Optional[str] = Field(default=None)
    reference_id: Optional[str] = Field(
        default=None,
        description="Check/request identifier quoted in the reply, _EMP suffix removed",
    )
    freeform_note: Optional[str] = Field(
        default=None, description="Retained text kept for human review when UNSTRUCTURED"
    )
    confidence: str = Field(
        default="none",
        description="'asserted' for FREE_TEXT values, 'document' for links, 'none' otherwise",
    )
