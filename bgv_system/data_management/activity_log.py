"""Append-only activity log keyed by (entity_type, entity_id).

The log is the audit trail for every check and the source the message
registry is rebuilt from, so entries are never edited or removed.

Usage:
    from bgv_system.data_management.activity_log import ActivityLog

    log = ActivityLog()
    await log.append(EntityType.CHECK, "CHK_1", payload, note="Verification email sent")
    entries = await log.list(EntityType.CHECK, None)
"""

import asyncio
import json
from pathlib import Path
from typing import Optional

from bgv_system.data_management.schemas import (
    ActivityAction,
    ActivityLogEntry,
    ActivityPayload,
    EntityType,
)
from bgv_system.utils.logging import get_structured_logger


class ActivityLog:
    """Write-once audit store with optional JSON persistence."""

    def __init__(self, persistence_path: Optional[str] = None) -> None:
        """Initialize ActivityLog.

        Args:
            persistence_path: Optional path to JSON file for persistence.
                            If None, storage is memory-only.
        """
        self._entries: list[ActivityLogEntry] = []
        self._lock = asyncio.Lock()
        self._persistence_path = Path(persistence_path) if persistence_path else None
        self._logger = get_structured_logger("ActivityLog")

        if self._persistence_path and self._persistence_path.exists():
            self._load_from_file()

    async def append(
        self,
        entity_type: EntityType,
        entity_id: str,
        payload: ActivityPayload,
        note: str = "",
    ) -> ActivityLogEntry:
        """Append one entry. The action tag comes from the payload variant.

        Args:
            entity_type: Kind of entity the entry is about.
            entity_id: Identifier of that entity.
            payload: Typed payload (EmailSentPayload, HrRespondedPayload, ...).
            note: Free-text description for audit views.

        Returns:
            The stored entry.
        """
        entry = ActivityLogEntry(
            entity_type=entity_type,
            entity_id=entity_id,
            action=ActivityAction(payload.action),
            note=note,
            metadata=payload,
        )
        async with self._lock:
            self._entries.append(entry)
            if self._persistence_path:
                self._save_to_file()

        self._logger.info(
            "activity_logged",
            action=entry.action.value,
            entity_type=entity_type.value,
            entity_id=entity_id,
        )
        return entry

    async def list_by_action(self, action: ActivityAction) -> list[ActivityLogEntry]:
        """All entries with an action, across entity types."""
        async with self._lock:
            return [e for e in self._entries if e.action == action]

    async def list(
        self,
        entity_type: EntityType,
        entity_id: Optional[str] = None,
        action: Optional[ActivityAction] = None,
    ) -> list[ActivityLogEntry]:
        """Entries for an entity type, optionally narrowed to one entity/action.

        Args:
            entity_type: Entity type to list.
            entity_id: Specific entity, or None for all entities of the type.
            action: Optional action filter.

        Returns:
            Entries in append order.
        """
        async with self._lock:
            return [
                e
                for e in self._entries
                if e.entity_type == entity_type
                and (entity_id is None or e.entity_id == entity_id)
                and (action is None or e.action == action)
            ]

    async def count(self) -> int:
        async with self._lock:
            return len(self._entries)

    def _save_to_file(self) -> None:
        """Save to JSON file (synchronous)."""
        if not self._persistence_path:
            return
        try:
            self._persistence_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._persistence_path, "w") as f:
                json.dump([e.to_record() for e in self._entries], f, indent=2, default=str)
        except Exception as e:
            self._logger.error("persistence_failed", error=str(e))

    def _load_from_file(self) -> None:
        try:
            with open(self._persistence_path, "r") as f:
                data = json.load(f)
            self._entries = [ActivityLogEntry.model_validate(item) for item in data]
            self._logger.info("activity_log_loaded", entries=len(self._entries))
        except Exception as e:
            self._logger.error("load_failed", error=str(e), exc_info=True)
            self._entries = []
