"""Outbound notification collaborator.

send(to, subject, body, headers) returns the outbound message id that the
message registry later maps back to a check. Transport failures surface as
exceptions; the outreach dispatcher turns them into OutreachDispatchError.
"""

import asyncio
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from loguru import logger


@dataclass
class SentMessage:
    message_id: str
    to: str
    subject: str
    body: str
    headers: dict[str, str] = field(default_factory=dict)
    sent_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class Notifier(ABC):
    """Outbound message interface."""

    @abstractmethod
    async def send(
        self,
        to: str,
        subject: str,
        body: str,
        headers: Optional[dict[str, str]] = None,
    ) -> str:
        """Send one message and return its message id."""


class InMemoryNotifier(Notifier):
    """Records sent messages; optionally fails to exercise dispatch errors."""

    def __init__(self, domain: str = "trustcheck.ai") -> None:
        self.domain = domain
        self.sent: list[SentMessage] = []
        self.fail_with: Optional[Exception] = None
        self._lock = asyncio.Lock()
        self.logger = logger.bind(component="InMemoryNotifier")

    async def send(
        self,
        to: str,
        subject: str,
        body: str,
        headers: Optional[dict[str, str]] = None,
    ) -> str:
        if self.fail_with is not None:
            raise self.fail_with

        message_id = f"<{uuid.uuid4().hex}@{self.domain}>"
        async with self._lock:
            self.sent.append(
                SentMessage(
                    message_id=message_id,
                    to=to,
                    subject=subject,
                    body=body,
                    headers=dict(headers or {}),
                )
            )
        self.logger.info("Message sent", to=to, message_id=message_id)
        return message_id

    def messages_to(self, address: str) -> list[SentMessage]:
        return [m for m in self.sent if m.to == address]
