"""Verification request schemas.

A VerificationRequest is one outreach attempt to an employer. Its event
list is append-only and is the only record of how many reminders were sent;
there is no separate counter to drift out of sync.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import Field

from bgv_system.data_management.schemas.base_schema import CamelModel
from bgv_system.data_management.schemas.fact_schema import FactRecord, ResponseMethod

REQUEST_ID_SUFFIX = "_EMP"


def request_id_for_check(check_id: str) -> str:
    """Request id used for the outreach of an EMPLOYMENT check."""
    return f"{check_id}{REQUEST_ID_SUFFIX}"


def strip_request_suffix(identifier: str) -> str:
    """Turn a request id back into its correlation key (check id)."""
    if identifier.endswith(REQUEST_ID_SUFFIX):
        return identifier[: -len(REQUEST_ID_SUFFIX)]
    return identifier


class RequestStatus(str, Enum):
    """PENDING until the employer answers on any channel."""

    PENDING = "PENDING"
    RESPONDED = "RESPONDED"
    COMPLETED = "COMPLETED"


class OutreachEventType:
    """Outreach event type tags. Reminders are numbered REMINDER_1, REMINDER_2, ..."""

    INITIAL = "INITIAL"
    ESCALATION = "ESCALATION"
    REMINDER_PREFIX = "REMINDER_"

    @classmethod
    def reminder(cls, number: int) -> str:
        return f"{cls.REMINDER_PREFIX}{number}"

    @classmethod
    def is_reminder(cls, event_type: str) -> bool:
        return event_type.startswith(cls.REMINDER_PREFIX)


class OutreachEvent(CamelModel):
    """One notification sent for a request."""

    type: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    message_id: Optional[str] = None
    manual: bool = False


class ResponseChannel(CamelModel):
    """Collaborative document the employer can fill in."""

    document_id: str
    document_url: Optional[str] = None


class VerificationRequest(CamelModel):
    """Outward-facing unit of a single outreach attempt."""

    request_id: str
    check_id: Optional[str] = Field(
        default=None, description="Owning EMPLOYMENT check; None for standalone requests"
    )
    claimed_facts: FactRecord = Field(default_factory=FactRecord)
    contact_address: Optional[str] = None
    response_channel: Optional[ResponseChannel] = None
    status: RequestStatus = RequestStatus.PENDING
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    events: list[OutreachEvent] = Field(default_factory=list)
    verified_facts: Optional[FactRecord] = None
    response_method: Optional[ResponseMethod] = None
    freeform_note: Optional[str] = None
    responded_at: Optional[datetime] = None
    needs_manual_follow_up: bool = False
    version: int = Field(default=0, ge=0)

    @property
    def correlation_key(self) -> str:
        """Identifier inbound replies resolve to."""
        return self.check_id or self.request_id

    @property
    def has_known_channel(self) -> bool:
        return self.response_channel is not None or bool(self.contact_address)

    @property
    def last_event(self) -> Optional[OutreachEvent]:
        return self.events[-1] if self.events else None

    def reminder_count(self) -> int:
        return sum(1 for e in self.events if OutreachEventType.is_reminder(e.type))

    def has_escalated(self) -> bool:
        return any(e.type == OutreachEventType.ESCALATION for e in self.events)
