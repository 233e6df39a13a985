"""Resolves which open check an inbound reply belongs to.

Strategies, first hit wins:
1. Thread linkage: In-Reply-To, then References newest-first, looked up in
   the message registry
2. Subject tag: "[Check: <id>]" (case-insensitive, tolerant of "#" and spaces)
3. Body pattern: "Check ID | Verification ID | Request ID | Case ID" followed
   by an identifier, searched over the whole body including quoted history

Identifiers from strategies 2 and 3 have a trailing "_EMP" removed.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from bgv_system.correlation.message_registry import MessageRegistry, normalize_message_id
from bgv_system.data_management.schemas import strip_request_suffix
from bgv_system.utils.logging import get_structured_logger

SUBJECT_TAG = re.compile(
    r"\[\s*check(?:\s*id)?\s*[:#]?\s*#?\s*(?P<id>[A-Za-z0-9][A-Za-z0-9_-]*)\s*\]",
    re.IGNORECASE,
)
BODY_REFERENCE = re.compile(
    r"\b(?:check|verification|request|case)\s*id[:#\s]+(?P<id>[A-Za-z0-9][A-Za-z0-9_-]*)",
    re.IGNORECASE,
)
_MESSAGE_ID = re.compile(r"<[^<>\s]+>|[^<>\s]+")


class CorrelationStrategy(str, Enum):
    THREAD = "THREAD"
    SUBJECT_TAG = "SUBJECT_TAG"
    BODY_PATTERN = "BODY_PATTERN"
    UNRESOLVED = "UNRESOLVED"


@dataclass(frozen=True)
class CorrelationResult:
    check_id: Optional[str]
    strategy: CorrelationStrategy
    matched_on: Optional[str] = None

    @property
    def resolved(self) -> bool:
        return self.check_id is not None

    @classmethod
    def unresolved(cls) -> "CorrelationResult":
        return cls(check_id=None, strategy=CorrelationStrategy.UNRESOLVED)


def parse_references(header: Optional[str]) -> list[str]:
    """Message ids in a References header, newest first."""
    if not header:
        return []
    ids = [normalize_message_id(token) for token in _MESSAGE_ID.findall(header)]
    return [message_id for message_id in reversed(ids) if message_id]


def subject_tag_id(subject: Optional[str]) -> Optional[str]:
    """Identifier from a "[Check: <id>]" subject tag, suffix removed."""
    match = SUBJECT_TAG.search(subject or "")
    return strip_request_suffix(match.group("id")) if match else None


def body_reference_id(body: Optional[str]) -> Optional[str]:
    """First labeled identifier in a body, suffix removed."""
    match = BODY_REFERENCE.search(body or "")
    return strip_request_suffix(match.group("id")) if match else None


class ReplyCorrelator:
    """Maps inbound messages to correlation keys using the current registry snapshot."""

    def __init__(self, registry: MessageRegistry) -> None:
        self.registry = registry
        self.logger = get_structured_logger("ReplyCorrelator")

    def correlate(self, message) -> CorrelationResult:
        """Correlate an InboundMessage."""
        return self.resolve(
            in_reply_to=message.in_reply_to,
            references=message.references,
            subject=message.subject,
            body=message.body,
        )

    def resolve(
        self,
        in_reply_to: Optional[str] = None,
        references: Optional[str] = None,
        subject: Optional[str] = None,
        body: Optional[str] = None,
    ) -> CorrelationResult:
        """
        Run the strategies in order against raw header and body values.

        Returns:
            CorrelationResult; strategy UNRESOLVED when nothing matched
        """
        snapshot = self.registry.snapshot

        thread_ids = []
        if in_reply_to:
            thread_ids.append(normalize_message_id(in_reply_to))
        thread_ids.extend(parse_references(references))
        for message_id in thread_ids:
            key = snapshot.lookup(message_id)
            if key:
                return self._hit(key, CorrelationStrategy.THREAD, message_id, snapshot.version)

        tagged = subject_tag_id(subject)
        if tagged:
            return self._hit(tagged, CorrelationStrategy.SUBJECT_TAG, subject, snapshot.version)

        referenced = body_reference_id(body)
        if referenced:
            return self._hit(referenced, CorrelationStrategy.BODY_PATTERN, None, snapshot.version)

        self.logger.info("correlation_unresolved", subject=subject, registry_version=snapshot.version)
        return CorrelationResult.unresolved()

    def _hit(
        self,
        key: str,
        strategy: CorrelationStrategy,
        matched_on: Optional[str],
        registry_version: int,
    ) -> CorrelationResult:
        self.logger.debug(
            "correlation_resolved",
            check_id=key,
            strategy=strategy.value,
            registry_version=registry_version,
        )
        return CorrelationResult(check_id=key, strategy=strategy, matched_on=matched_on)
