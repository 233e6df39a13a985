"""Outbound message id -> correlation key registry.

The registry is derived entirely from EMAIL_SENT entries in the activity
log. A rebuild computes a fresh mapping and swaps it in as one immutable
snapshot, so a lookup running during a rebuild sees either the old or the
new mapping and never a partially built one.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from bgv_system.data_management.schemas import (
    ActivityAction,
    ActivityLogEntry,
    EmailSentPayload,
    EntityType,
)
from bgv_system.utils.logging import get_structured_logger

_CORRELATABLE_ENTITIES = (EntityType.CHECK, EntityType.REQUEST)


def normalize_message_id(message_id: str) -> str:
    """Message id without surrounding whitespace or angle brackets."""
    return message_id.strip().strip("<>").strip()


def build_registry_mapping(entries: Iterable[ActivityLogEntry]) -> dict[str, str]:
    """
    Replay EMAIL_SENT entries into a message id -> correlation key mapping.

    Pure function of its input: replaying the same entries always yields the
    same mapping.

    Args:
        entries: Activity log entries in append order (any actions)

    Returns:
        Mapping of normalized outbound message id to check id (or, for
        standalone requests, request id)
    """
    mapping: dict[str, str] = {}
    for entry in entries:
        if entry.action != ActivityAction.EMAIL_SENT:
            continue
        if entry.entity_type not in _CORRELATABLE_ENTITIES:
            continue
        payload = entry.metadata
        if not isinstance(payload, EmailSentPayload) or not payload.message_id:
            continue
        mapping[normalize_message_id(payload.message_id)] = entry.entity_id
    return mapping


@dataclass(frozen=True)
class RegistrySnapshot:
    """Immutable view of the registry at one version."""

    mapping: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    version: int = 0
    built_at: Optional[datetime] = None

    def lookup(self, message_id: str) -> Optional[str]:
        return self.mapping.get(normalize_message_id(message_id))

    def __len__(self) -> int:
        return len(self.mapping)


class MessageRegistry:
    """Holds the current RegistrySnapshot and rebuilds it from the activity log."""

    def __init__(self) -> None:
        self._snapshot = RegistrySnapshot()
        self._rebuild_lock = asyncio.Lock()
        self.logger = get_structured_logger("MessageRegistry")

    @property
    def snapshot(self) -> RegistrySnapshot:
        return self._snapshot

    @property
    def version(self) -> int:
        return self._snapshot.version

    def lookup(self, message_id: str) -> Optional[str]:
        """Correlation key for an outbound message id, or None."""
        return self._snapshot.lookup(message_id)

    async def rebuild(self, activity_log) -> RegistrySnapshot:
        """
        Replace the snapshot with one rebuilt from the activity log.

        On failure the previous snapshot stays in place and is returned.

        Args:
            activity_log: ActivityLog (anything with list_by_action)

        Returns:
            The snapshot in effect after the call
        """
        async with self._rebuild_lock:
            try:
                entries = await activity_log.list_by_action(ActivityAction.EMAIL_SENT)
                mapping = build_registry_mapping(entries)
            except Exception as e:
                self.logger.error(
                    "registry_rebuild_failed",
                    error=str(e),
                    version=self._snapshot.version,
                    exc_info=True,
                )
                return self._snapshot

            snapshot = RegistrySnapshot(
                mapping=MappingProxyType(mapping),
                version=self._snapshot.version + 1,
                built_at=datetime.now(timezone.utc),
            )
            self._snapshot = snapshot

        self.logger.info("registry_rebuilt", entries=len(snapshot), version=snapshot.version)
        return snapshot
