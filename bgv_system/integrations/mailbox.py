"""Mailbox collaborator: list unread candidate replies, fetch, mark read.

The production mailbox (Gmail API or IMAP) lives outside this package. The
core depends only on the Mailbox interface; InMemoryMailbox backs tests
and local runs.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from email.message import Message
from typing import Optional

from loguru import logger

from bgv_system.data_management.record_store import RecordNotFoundError


@dataclass
class InboundMessage:
    """Headers and plain-text body of one received message."""

    message_id: str
    subject: str = ""
    sender: str = ""
    date: Optional[str] = None
    in_reply_to: Optional[str] = None
    references: Optional[str] = None
    body: str = ""
    headers: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_email(cls, msg: Message, message_id: Optional[str] = None) -> "InboundMessage":
        """
        Build from a parsed RFC 822 message.

        Only the first text/plain part is kept; attachments and HTML are
        ignored.

        Args:
            msg: email.message.Message (e.g. from email.message_from_bytes)
            message_id: Mailbox id; defaults to the Message-ID header
        """
        body = ""
        parts = msg.walk() if msg.is_multipart() else [msg]
        for part in parts:
            if part.get_content_type() != "text/plain" or part.get_filename():
                continue
            payload = part.get_payload(decode=True)
            if payload is None:
                continue
            charset = part.get_content_charset() or "utf-8"
            body = payload.decode(charset, errors="replace")
            break

        return cls(
            message_id=message_id or (msg.get("Message-ID") or "").strip(),
            subject=str(msg.get("Subject", "")),
            sender=str(msg.get("From", "")),
            date=msg.get("Date"),
            in_reply_to=msg.get("In-Reply-To"),
            references=msg.get("References"),
            body=body,
            headers={key: str(value) for key, value in msg.items()},
        )


class Mailbox(ABC):
    """Inbound mailbox interface."""

    @abstractmethod
    async def list_unread(self, subject_keywords: list[str]) -> list[str]:
        """Ids of unread messages whose subject contains any keyword."""

    @abstractmethod
    async def fetch(self, message_id: str) -> InboundMessage:
        """Full message (headers and plain-text body)."""

    @abstractmethod
    async def mark_read(self, message_id: str) -> None:
        """Mark a message consumed so it is not listed again."""


class InMemoryMailbox(Mailbox):
    """Mailbox holding delivered messages in memory."""

    def __init__(self) -> None:
        self._messages: dict[str, InboundMessage] = {}
        self._unread: list[str] = []
        self._lock = asyncio.Lock()
        self.logger = logger.bind(component="InMemoryMailbox")

    async def deliver(self, message: InboundMessage) -> None:
        async with self._lock:
            self._messages[message.message_id] = message
            if message.message_id not in self._unread:
                self._unread.append(message.message_id)
        self.logger.debug(f"Delivered {message.message_id}")

    async def list_unread(self, subject_keywords: list[str]) -> list[str]:
        keywords = [k.lower() for k in subject_keywords]
        async with self._lock:
            return [
                message_id
                for message_id in self._unread
                if not keywords
                or any(k in self._messages[message_id].subject.lower() for k in keywords)
            ]

    async def fetch(self, message_id: str) -> InboundMessage:
        async with self._lock:
            if message_id not in self._messages:
                raise RecordNotFoundError("mailbox", message_id)
            return self._messages[message_id]

    async def mark_read(self, message_id: str) -> None:
        async with self._lock:
            if message_id in self._unread:
                self._unread.remove(message_id)

    async def is_unread(self, message_id: str) -> bool:
        async with self._lock:
            return message_id in self._unread
