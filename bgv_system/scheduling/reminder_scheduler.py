"""Reminder and escalation ladder for unanswered verification requests.

For each PENDING request with a known response channel, once per sweep:

    answered (status or spreadsheet)          -> skip
    last outreach younger than the interval   -> skip
    REMINDER_* events >= max_reminders        -> one ESCALATION (never repeated),
                                                 request flagged for manual follow-up
    otherwise                                 -> REMINDER_<count + 1>

The request's event list is the only counter. Decisions are re-made under
the request lock against a fresh read, so overlapping sweeps cannot send the
same step twice.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Optional

from loguru import logger

from bgv_system.config.settings import settings
from bgv_system.data_management.schemas import (
    OutreachEventType,
    RequestStatus,
    VerificationRequest,
)
from bgv_system.scheduling.periodic import PeriodicTask, utc_now
from bgv_system.utils.logging import get_correlation_id


class ReminderAction(str, Enum):
    SEND_REMINDER = "SEND_REMINDER"
    ESCALATE = "ESCALATE"
    SKIP_ANSWERED = "SKIP_ANSWERED"
    SKIP_TOO_SOON = "SKIP_TOO_SOON"
    SKIP_ESCALATED = "SKIP_ESCALATED"
    SKIP_NO_HISTORY = "SKIP_NO_HISTORY"


@dataclass(frozen=True)
class ReminderDecision:
    action: ReminderAction
    outreach_type: Optional[str] = None
    hours_since_last: Optional[float] = None


def decide_next_step(
    request: VerificationRequest,
    now: datetime,
    interval_hours: float,
    max_reminders: int,
) -> ReminderDecision:
    """
    Pure ladder decision for one request at time now.

    Args:
        request: Request with its full event list
        now: Current time (timezone-aware)
        interval_hours: Minimum hours since the last outreach event
        max_reminders: Reminders sent before escalating

    Returns:
        ReminderDecision; outreach_type is set for the two send actions
    """
    if request.status != RequestStatus.PENDING:
        return ReminderDecision(ReminderAction.SKIP_ANSWERED)

    last = request.last_event
    if last is None:
        return ReminderDecision(ReminderAction.SKIP_NO_HISTORY)

    hours = (now - last.timestamp).total_seconds() / 3600
    if hours < interval_hours:
        return ReminderDecision(ReminderAction.SKIP_TOO_SOON, hours_since_last=hours)

    count = request.reminder_count()
    if count >= max_reminders:
        if request.has_escalated():
            return ReminderDecision(ReminderAction.SKIP_ESCALATED, hours_since_last=hours)
        return ReminderDecision(
            ReminderAction.ESCALATE, OutreachEventType.ESCALATION, hours_since_last=hours
        )

    return ReminderDecision(
        ReminderAction.SEND_REMINDER,
        OutreachEventType.reminder(count + 1),
        hours_since_last=hours,
    )


@dataclass
class SweepReport:
    """Outcome counts for one sweep."""

    examined: int = 0
    reminders_sent: int = 0
    escalations_sent: int = 0
    skipped: dict[str, int] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)

    def count_skip(self, reason: str) -> None:
        self.skipped[reason] = self.skipped.get(reason, 0) + 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "examined": self.examined,
            "reminders_sent": self.reminders_sent,
            "escalations_sent": self.escalations_sent,
            "skipped": dict(self.skipped),
            "error_count": len(self.errors),
        }


@dataclass
class ManualReminderResult:
    success: bool
    message: str
    request: Optional[VerificationRequest] = None


class ReminderScheduler:
    """
    Periodic reminder sweep over pending verification requests.

    Usage:
        scheduler = ReminderScheduler(store, dispatcher, spreadsheets)
        report = await scheduler.sweep()
        task = scheduler.as_periodic_task()
        await task.start()
    """

    def __init__(
        self,
        store: "VerificationStore",  # noqa: F821
        dispatcher: "OutreachDispatcher",  # noqa: F821
        spreadsheets: Optional["SpreadsheetService"] = None,  # noqa: F821
        controller: Optional["LifecycleController"] = None,  # noqa: F821
        interval_hours: Optional[float] = None,
        max_reminders: Optional[int] = None,
        clock: Optional[Callable[[], datetime]] = None,
        enabled: Optional[bool] = None,
    ):
        """
        Initialize ReminderScheduler.

        Args:
            store: VerificationStore holding the requests
            dispatcher: OutreachDispatcher used for every send
            spreadsheets: Consulted for "has responded" when a request has a sheet
            controller: When given, responded sheets are handed to it for resolution
            interval_hours: Defaults to settings.reminder_interval_hours
            max_reminders: Defaults to settings.max_reminders
            clock: Current UTC time. Defaults to datetime.now(timezone.utc).
            enabled: Defaults to settings.reminder_enabled
        """
        self.store = store
        self.dispatcher = dispatcher
        self.spreadsheets = spreadsheets
        self.controller = controller
        self.interval_hours = (
            settings.reminder_interval_hours if interval_hours is None else interval_hours
        )
        self.max_reminders = settings.max_reminders if max_reminders is None else max_reminders
        self.clock = clock or utc_now
        self.enabled = settings.reminder_enabled if enabled is None else enabled
        self.logger = logger.bind(component="ReminderScheduler")

    async def sweep(self) -> SweepReport:
        """Run one pass of the ladder over every PENDING request."""
        report = SweepReport()
        if not self.enabled:
            self.logger.info("Reminder sweep disabled")
            return report

        sweep_id = get_correlation_id()
        requests = await self.store.list_requests(status=RequestStatus.PENDING)
        self.logger.info("Reminder sweep started", sweep_id=sweep_id, pending=len(requests))

        for request in requests:
            report.examined += 1
            try:
                await self._process(request, report)
            except Exception as e:
                report.errors.append(f"{request.request_id}: {e}")
                self.logger.opt(exception=e).error(
                    "Reminder processing failed for {}", request.request_id
                )

        self.logger.info("Reminder sweep complete", sweep_id=sweep_id, **report.to_dict())
        return report

    async def _process(self, request: VerificationRequest, report: SweepReport) -> None:
        if not request.has_known_channel:
            report.count_skip("no_channel")
            return

        if await self._sheet_answered(request):
            report.count_skip(ReminderAction.SKIP_ANSWERED.value)
            if self.controller is not None:
                await self.controller.collect_spreadsheet_response(request.request_id)
            return

        if not request.contact_address:
            report.count_skip("no_contact_address")
            return

        async with self.store.request_lock(request.request_id):
            current = await self.store.require_request(request.request_id)
            decision = decide_next_step(
                current, self.clock(), self.interval_hours, self.max_reminders
            )

            if decision.outreach_type is None:
                report.count_skip(decision.action.value)
                return

            updated = await self.dispatcher.send(current, decision.outreach_type)
            if decision.action == ReminderAction.ESCALATE:
                await self.store.update_request(updated, needs_manual_follow_up=True)
                report.escalations_sent += 1
                self.logger.warning(
                    "Request escalated for manual follow-up", request_id=request.request_id
                )
            else:
                report.reminders_sent += 1

    async def _sheet_answered(self, request: VerificationRequest) -> bool:
        if self.spreadsheets is None or request.response_channel is None:
            return False
        return await self.spreadsheets.has_responded(request.response_channel.document_id)

    async def send_manual_reminder(self, request_id: str) -> ManualReminderResult:
        """
        Send the next-numbered reminder now, regardless of the interval.

        Refuses when the employer has already answered.

        Raises:
            RecordNotFoundError: Unknown request
            OutreachDispatchError: Send failed
        """
        request = await self.store.require_request(request_id)
        if request.status != RequestStatus.PENDING or await self._sheet_answered(request):
            return ManualReminderResult(False, "HR has already responded", request)

        async with self.store.request_lock(request_id):
            current = await self.store.require_request(request_id)
            outreach_type = OutreachEventType.reminder(current.reminder_count() + 1)
            updated = await self.dispatcher.send(current, outreach_type, manual=True)

        self.logger.info("Manual reminder sent", request_id=request_id, outreach_type=outreach_type)
        return ManualReminderResult(True, "Reminder sent successfully", updated)

    def as_periodic_task(self, interval_seconds: Optional[float] = None) -> PeriodicTask:
        """Wrap sweep() in a PeriodicTask (default: settings.reminder_sweep_minutes)."""
        return PeriodicTask(
            "reminder_sweep",
            self.sweep,
            settings.reminder_sweep_minutes * 60 if interval_seconds is None else interval_seconds,
            clock=self.clock,
        )
