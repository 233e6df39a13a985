"""Outbound verification messages: render, send, record.

Every send goes through OutreachDispatcher.send(), which in order:
1. renders subject/body/headers for the outreach type
2. sends through the Notifier (failure -> OutreachDispatchError)
3. logs EMAIL_SENT with the outbound message id
4. appends exactly one OutreachEvent to the request
5. rebuilds the message registry so replies to this message correlate

Each message carries the correlation key twice: a "[Check: <id>]" subject tag
and an X-Check-ID header. The correlator reads the subject tag; the header
is for mail tooling that preserves custom headers.
"""

from datetime import datetime, timezone
from typing import Callable, Optional

from bgv_system.config.settings import settings
from bgv_system.correlation.message_registry import MessageRegistry
from bgv_system.data_management.activity_log import ActivityLog
from bgv_system.data_management.schemas import (
    FACT_FIELDS,
    EmailSentPayload,
    EntityType,
    OutreachEvent,
    OutreachEventType,
    VerificationRequest,
)
from bgv_system.data_management.verification_store import VerificationStore
from bgv_system.integrations.notifier import Notifier
from bgv_system.utils.logging import get_structured_logger

CHECK_ID_HEADER = "X-Check-ID"
REQUEST_ID_HEADER = "X-Request-ID"

_FIELD_LABELS = {
    "employee_name": "Employee Name",
    "company_name": "Company Name",
    "designation": "Designation",
    "employment_dates": "Employment Dates",
    "salary": "Salary",
    "eligible_for_rehire": "Eligible for Rehire",
    "performance_rating": "Performance Rating",
    "reason_for_leaving": "Reason for Leaving",
}


class OutreachDispatchError(RuntimeError):
    """Raised when the notifier fails to send a verification message."""

    def __init__(self, request_id: str, outreach_type: str, cause: Exception) -> None:
        super().__init__(f"Failed to send {outreach_type} for {request_id}: {cause}")
        self.request_id = request_id
        self.outreach_type = outreach_type
        self.cause = cause


def subject_tag(correlation_key: str) -> str:
    return f"[Check: {correlation_key}]"


def render_subject(request: VerificationRequest, outreach_type: str) -> str:
    name = request.claimed_facts.employee_name or "Candidate"
    tag = subject_tag(request.correlation_key)
    if outreach_type == OutreachEventType.ESCALATION:
        return f"URGENT: Employment Verification Pending - {name} {tag}"
    if OutreachEventType.is_reminder(outreach_type):
        number = outreach_type[len(OutreachEventType.REMINDER_PREFIX):]
        return f"Reminder #{number}: Employment Verification Request - {name} {tag}"
    return f"Employment Verification Request - {name} {tag}"


def render_body(request: VerificationRequest, outreach_type: str) -> str:
    name = request.claimed_facts.employee_name or "the candidate"
    lines = ["Dear HR Team,", ""]

    if outreach_type == OutreachEventType.ESCALATION:
        lines.append(
            f"We have not yet received a response to our verification request for {name}. "
            "Please treat this as urgent; our team will follow up by phone."
        )
    elif OutreachEventType.is_reminder(outreach_type):
        lines.append(f"This is a reminder about our pending verification request for {name}.")
    else:
        lines.append(
            f"{name} has listed your organization as a previous employer. "
            "Please confirm or correct the details below."
        )
    lines.append("")

    lines.append("Details provided by the candidate:")
    for attribute in FACT_FIELDS:
        value = getattr(request.claimed_facts, attribute)
        if value:
            lines.append(f"  {_FIELD_LABELS[attribute]}: {value}")
    lines.append("")

    if request.response_channel and request.response_channel.document_url:
        lines.append("Please fill in the 'HR Verified Value' column of this sheet:")
        lines.append(f"  {request.response_channel.document_url}")
    else:
        lines.append("Please reply to this email with the verified value for each field,")
        lines.append("one per line, e.g. 'Designation: Senior Developer'.")
    lines.append("")

    lines.append(f"Check ID: {request.correlation_key}")
    lines.append(f"Request ID: {request.request_id}")
    lines.append("")
    lines.append("Thank you,")
    lines.append("Background Verification Team")
    return "\n".join(lines)


def render_headers(request: VerificationRequest) -> dict[str, str]:
    return {
        CHECK_ID_HEADER: request.correlation_key,
        REQUEST_ID_HEADER: request.request_id,
    }


class OutreachDispatcher:
    """Sends outreach for VerificationRequests and records every send."""

    def __init__(
        self,
        store: VerificationStore,
        activity_log: ActivityLog,
        notifier: Notifier,
        registry: MessageRegistry,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.store = store
        self.activity_log = activity_log
        self.notifier = notifier
        self.registry = registry
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.logger = get_structured_logger("OutreachDispatcher")

    async def send(
        self,
        request: VerificationRequest,
        outreach_type: str,
        manual: bool = False,
    ) -> VerificationRequest:
        """
        Send one outreach message and record it.

        Args:
            request: Request to send for (must have a contact address)
            outreach_type: INITIAL, REMINDER_<n> or ESCALATION
            manual: True when triggered by an operator

        Returns:
            The request with the new event appended

        Raises:
            OutreachDispatchError: No contact address, or the notifier failed.
                Nothing is logged or appended in that case.
        """
        if not request.contact_address:
            raise OutreachDispatchError(
                request.request_id, outreach_type, ValueError("no contact address")
            )

        subject = render_subject(request, outreach_type)
        body = render_body(request, outreach_type)
        headers = render_headers(request)

        try:
            message_id = await self.notifier.send(
                request.contact_address, subject, body, headers
            )
        except Exception as e:
            self.logger.error(
                "outreach_send_failed",
                request_id=request.request_id,
                outreach_type=outreach_type,
                error=str(e),
            )
            raise OutreachDispatchError(request.request_id, outreach_type, e) from e

        entity_type = EntityType.CHECK if request.check_id else EntityType.REQUEST
        await self.activity_log.append(
            entity_type,
            request.correlation_key,
            EmailSentPayload(
                message_id=message_id,
                to=request.contact_address,
                subject=subject,
                request_id=request.request_id,
                outreach_type=outreach_type,
                document_url=(
                    request.response_channel.document_url if request.response_channel else None
                ),
                manual=manual,
            ),
            note=f"{outreach_type} verification email sent to {request.contact_address}",
        )

        updated = await self.store.append_outreach_event(
            request.request_id,
            OutreachEvent(
                type=outreach_type,
                timestamp=self.clock(),
                message_id=message_id,
                manual=manual,
            ),
        )
        await self.registry.rebuild(self.activity_log)

        self.logger.info(
            "outreach_sent",
            request_id=request.request_id,
            to=request.contact_address,
            outreach_type=outreach_type,
            message_id=message_id,
            sender=settings.sender_address,
        )
        return updated
