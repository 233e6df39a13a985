"""Generic JSON record store with collection-scoped persistence.

Stands in for the document database the service runs against: opaque JSON
records keyed by identifier, grouped into collections, with simple
equality-filtered lookup.

Features:
- In-memory storage with optional JSON persistence for beta
- Whole-record replacement guarded by a version token (compare-and-set)
- Atomic list appends for append-only fields
- Per-record asyncio locks so callers can serialize read-modify-write cycles

Usage:
    from bgv_system.data_management.record_store import RecordStore

    store = RecordStore()
    await store.put("checks", "CHK_1", {"checkId": "CHK_1", "version": 0})
    updated = await store.replace("checks", "CHK_1", record, expected_version=0)
"""

import asyncio
import copy
import json
from pathlib import Path
from typing import Any, Optional

from bgv_system.utils.logging import get_structured_logger


class RecordNotFoundError(KeyError):
    """Raised when a record id does not exist in its collection."""

    def __init__(self, collection: str, record_id: str) -> None:
        super().__init__(f"{collection}/{record_id} not found")
        self.collection = collection
        self.record_id = record_id


class ConcurrentUpdateError(RuntimeError):
    """Raised when a compare-and-set write sees a newer version."""

    def __init__(self, collection: str, record_id: str, expected: int, actual: int) -> None:
        super().__init__(
            f"{collection}/{record_id} is at version {actual}, expected {expected}"
        )
        self.expected = expected
        self.actual = actual


class RecordStore:
    """Storage for JSON records organized by collection.

    Data structure:
    {
        collection: {
            record_id: {..., "version": int},
            ...
        },
        ...
    }
    """

    VERSION_KEY = "version"

    def __init__(self, persistence_path: Optional[str] = None) -> None:
        """Initialize RecordStore.

        Args:
            persistence_path: Optional path to JSON file for persistence.
                            If None, storage is memory-only.
        """
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        self._lock = asyncio.Lock()
        self._record_locks: dict[tuple[str, str], asyncio.Lock] = {}
        self._persistence_path = Path(persistence_path) if persistence_path else None
        self._logger = get_structured_logger("RecordStore")

        if self._persistence_path and self._persistence_path.exists():
            self._load_from_file()

    def record_lock(self, collection: str, record_id: str) -> asyncio.Lock:
        """Lock serializing multi-step updates of one record.

        Writers hold it across read, compute and replace so two concurrent
        transitions of the same entity cannot interleave.
        """
        key = (collection, record_id)
        lock = self._record_locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._record_locks[key] = lock
        return lock

    async def put(self, collection: str, record_id: str, record: dict[str, Any]) -> dict[str, Any]:
        """Insert or overwrite a record.

        Args:
            collection: Collection name.
            record_id: Record identifier.
            record: JSON-compatible dict.

        Returns:
            Copy of the stored record.
        """
        async with self._lock:
            stored = copy.deepcopy(record)
            stored.setdefault(self.VERSION_KEY, 0)
            self._collections.setdefault(collection, {})[record_id] = stored

            self._logger.debug("record_saved", collection=collection, record_id=record_id)

            if self._persistence_path:
                self._save_to_file()
            return copy.deepcopy(stored)

    async def get(self, collection: str, record_id: str) -> Optional[dict[str, Any]]:
        """Get a record by id, or None."""
        async with self._lock:
            record = self._collections.get(collection, {}).get(record_id)
            return copy.deepcopy(record) if record is not None else None

    async def find(self, collection: str, **filters: Any) -> list[dict[str, Any]]:
        """Records whose top-level keys equal every filter value.

        Args:
            collection: Collection name.
            **filters: camelCase key -> expected value.

        Returns:
            Matching records in insertion order.
        """
        async with self._lock:
            records = self._collections.get(collection, {}).values()
            return [
                copy.deepcopy(r)
                for r in records
                if all(r.get(key) == value for key, value in filters.items())
            ]

    async def replace(
        self,
        collection: str,
        record_id: str,
        record: dict[str, Any],
        expected_version: Optional[int] = None,
    ) -> dict[str, Any]:
        """Atomically replace a whole record, bumping its version.

        Args:
            collection: Collection name.
            record_id: Record identifier.
            record: New record contents.
            expected_version: When given, the stored version must match.

        Returns:
            Copy of the stored record with its new version.

        Raises:
            RecordNotFoundError: Record does not exist.
            ConcurrentUpdateError: Stored version differs from expected_version.
        """
        async with self._lock:
            current = self._require(collection, record_id)
            current_version = current.get(self.VERSION_KEY, 0)
            if expected_version is not None and current_version != expected_version:
                raise ConcurrentUpdateError(
                    collection, record_id, expected_version, current_version
                )

            stored = copy.deepcopy(record)
            stored[self.VERSION_KEY] = current_version + 1
            self._collections[collection][record_id] = stored

            if self._persistence_path:
                self._save_to_file()
            return copy.deepcopy(stored)

    async def append_to_list(
        self,
        collection: str,
        record_id: str,
        key: str,
        item: Any,
    ) -> dict[str, Any]:
        """Atomically append one item to a list field, bumping the version.

        Raises:
            RecordNotFoundError: Record does not exist.
        """
        async with self._lock:
            current = self._require(collection, record_id)
            current.setdefault(key, []).append(copy.deepcopy(item))
            current[self.VERSION_KEY] = current.get(self.VERSION_KEY, 0) + 1

            if self._persistence_path:
                self._save_to_file()
            return copy.deepcopy(current)

    async def count(self, collection: str) -> int:
        async with self._lock:
            return len(self._collections.get(collection, {}))

    def _require(self, collection: str, record_id: str) -> dict[str, Any]:
        record = self._collections.get(collection, {}).get(record_id)
        if record is None:
            raise RecordNotFoundError(collection, record_id)
        return record

    def _save_to_file(self) -> None:
        """Save to JSON file (synchronous)."""
        if not self._persistence_path:
            return
        try:
            self._persistence_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._persistence_path, "w") as f:
                json.dump(self._collections, f, indent=2, default=str)
        except Exception as e:
            self._logger.error("persistence_failed", error=str(e))

    def _load_from_file(self) -> None:
        """Load collections from the JSON file."""
        try:
            with open(self._persistence_path, "r") as f:
                data = json.load(f)
            self._collections = {
                collection: dict(records) for collection, records in data.items()
            }
            self._logger.info(
                "records_loaded",
                path=str(self._persistence_path),
                collections=len(self._collections),
            )
        except Exception as e:
            self._logger.error("load_failed", error=str(e), exc_info=True)
            self._collections = {}
