"""
Inbound reply pipeline.

Wires Mailbox -> FactNormalizer -> ReplyCorrelator -> LifecycleController:

    list_unread(subject keywords)
      -> fetch
      -> normalize body (quote strip, link detect, field extract)
      -> correlate (thread, subject tag, body reference)
      -> record_reply on the resolved check or request
      -> mark_read

Unresolved messages are consumed too; they write no activity log entry and
show up in the poll report as unmatched. A message whose processing raised
is left unread so the next poll retries it.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from loguru import logger

from bgv_system.config.settings import settings
from bgv_system.correlation.reply_correlator import CorrelationResult
from bgv_system.data_management.record_store import RecordNotFoundError
from bgv_system.scheduling.periodic import PeriodicTask


@dataclass
class PollReport:
    """Outcome of one inbox poll."""

    processed: int = 0
    matched: list[str] = field(default_factory=list)
    unmatched: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "processed": self.processed,
            "matched": len(self.matched),
            "unmatched": len(self.unmatched),
            "failed": len(self.failed),
            "error_count": len(self.errors),
        }


class ReplyPipeline:
    """
    Polls the mailbox and routes HR replies to their checks.

    Usage:
        pipeline = ReplyPipeline(mailbox, controller=controller)
        report = await pipeline.poll()
        print(f"Matched {len(report.matched)} replies")

    Attributes:
        mailbox: Mailbox collaborator
        controller: LifecycleController receiving the replies
        subject_keywords: Subject filter for list_unread
    """

    def __init__(
        self,
        mailbox: "Mailbox",  # noqa: F821
        controller: Optional["LifecycleController"] = None,  # noqa: F821
        correlator: Optional["ReplyCorrelator"] = None,  # noqa: F821
        normalizer: Optional["FactNormalizer"] = None,  # noqa: F821
        subject_keywords: Optional[list[str]] = None,
    ):
        """
        Initialize the reply pipeline.

        Args:
            mailbox: Source of inbound messages
            controller: LifecycleController. Auto-creates if None.
            correlator: ReplyCorrelator. Built over the controller's registry if None.
            normalizer: FactNormalizer. Auto-creates if None.
            subject_keywords: Defaults to settings.reply_subject_keywords
        """
        self.mailbox = mailbox
        self._controller = controller
        self._correlator = correlator
        self._normalizer = normalizer
        self.subject_keywords = (
            list(settings.reply_subject_keywords)
            if subject_keywords is None
            else subject_keywords
        )
        self.logger = logger.bind(component="ReplyPipeline")

    @property
    def controller(self):
        """Lazy-load LifecycleController on first access."""
        if self._controller is None:
            from bgv_system.lifecycle import LifecycleController
            self._controller = LifecycleController()
        return self._controller

    @property
    def correlator(self):
        """Lazy-load a ReplyCorrelator sharing the controller's registry."""
        if self._correlator is None:
            from bgv_system.correlation import ReplyCorrelator
            self._correlator = ReplyCorrelator(self.controller.registry)
        return self._correlator

    @property
    def normalizer(self):
        """Lazy-load FactNormalizer on first access."""
        if self._normalizer is None:
            from bgv_system.extraction import FactNormalizer
            self._normalizer = FactNormalizer()
        return self._normalizer

    async def poll(self) -> PollReport:
        """
        Process every unread message matching the subject keywords.

        Returns:
            PollReport with matched, unmatched and failed message ids
        """
        report = PollReport()
        message_ids = await self.mailbox.list_unread(self.subject_keywords)
        if not message_ids:
            self.logger.debug("No unread replies")
            return report

        self.logger.info("Processing unread replies", count=len(message_ids))

        for message_id in message_ids:
            report.processed += 1
            try:
                await self._process_message(message_id, report)
            except Exception as e:
                report.failed.append(message_id)
                report.errors.append(f"{message_id}: {e}")
                self.logger.opt(exception=e).error("Reply {} failed; left unread", message_id)

        self.logger.info("Inbox poll complete", **report.to_dict())
        return report

    async def _process_message(self, message_id: str, report: PollReport) -> None:
        message = await self.mailbox.fetch(message_id)
        reply = self.normalizer.normalize(message.body)
        result: CorrelationResult = self.correlator.correlate(message)

        if not result.resolved:
            await self.mailbox.mark_read(message_id)
            report.unmatched.append(message_id)
            self.logger.warning(
                "Reply could not be correlated",
                message_id=message_id,
                subject=message.subject,
            )
            return

        try:
            await self.controller.record_reply(
                result.check_id, reply, message=message, strategy=result.strategy.value
            )
        except RecordNotFoundError:
            # correlation key that names no stored check or request
            await self.mailbox.mark_read(message_id)
            report.unmatched.append(message_id)
            self.logger.warning(
                "Correlated reply names unknown record",
                message_id=message_id,
                correlation_key=result.check_id,
            )
            return

        await self.mailbox.mark_read(message_id)
        report.matched.append(message_id)
        self.logger.info(
            "Reply recorded",
            message_id=message_id,
            correlation_key=result.check_id,
            strategy=result.strategy.value,
            response_method=reply.response_method.value,
        )

    def as_periodic_task(self, interval_seconds: Optional[float] = None) -> PeriodicTask:
        """Wrap poll() in a PeriodicTask (default: settings.inbox_poll_minutes)."""
        return PeriodicTask(
            "inbox_poll",
            self.poll,
            settings.inbox_poll_minutes * 60 if interval_seconds is None else interval_seconds,
        )
