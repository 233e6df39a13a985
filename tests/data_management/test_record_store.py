"""Tests for RecordStore.

Tests cover:
- Put/get/find with camelCase equality filters
- Version-checked replace and atomic list append
- Copies returned, never internal state
- JSON persistence round trip
"""

import json

import pytest

from bgv_system.data_management.record_store import (
    ConcurrentUpdateError,
    RecordNotFoundError,
    RecordStore,
)


# ── Fixtures ──────────────────────────────────────────────────────────────


@pytest.fixture
def store() -> RecordStore:
    return RecordStore()


# ── Basic storage ─────────────────────────────────────────────────────────


class TestPutGetFind:
    @pytest.mark.asyncio
    async def test_put_defaults_version(self, store: RecordStore) -> None:
        stored = await store.put("checks", "CHK_1", {"checkId": "CHK_1"})
        assert stored["version"] == 0
        assert await store.get("checks", "CHK_1") == {"checkId": "CHK_1", "version": 0}

    @pytest.mark.asyncio
    async def test_get_missing(self, store: RecordStore) -> None:
        assert await store.get("checks", "nope") is None
        assert await store.get("unknown_collection", "nope") is None

    @pytest.mark.asyncio
    async def test_find_filters(self, store: RecordStore) -> None:
        await store.put("checks", "A", {"caseId": "C1", "status": "PENDING"})
        await store.put("checks", "B", {"caseId": "C1", "status": "COMPLETED"})
        await store.put("checks", "C", {"caseId": "C2", "status": "PENDING"})

        assert len(await store.find("checks")) == 3
        assert len(await store.find("checks", caseId="C1")) == 2
        pending = await store.find("checks", caseId="C1", status="PENDING")
        assert pending == [{"caseId": "C1", "status": "PENDING", "version": 0}]

    @pytest.mark.asyncio
    async def test_returns_copies(self, store: RecordStore) -> None:
        await store.put("requests", "R1", {"events": []})
        record = await store.get("requests", "R1")
        record["events"].append("tampered")
        assert (await store.get("requests", "R1"))["events"] == []

    @pytest.mark.asyncio
    async def test_count(self, store: RecordStore) -> None:
        await store.put("cases", "A", {})
        await store.put("cases", "B", {})
        assert await store.count("cases") == 2
        assert await store.count("clients") == 0


# ── Versioned writes ──────────────────────────────────────────────────────


class TestVersionedWrites:
    @pytest.mark.asyncio
    async def test_replace_bumps_version(self, store: RecordStore) -> None:
        await store.put("checks", "CHK_1", {"status": "PENDING"})
        stored = await store.replace("checks", "CHK_1", {"status": "IN_PROGRESS"}, expected_version=0)
        assert stored == {"status": "IN_PROGRESS", "version": 1}

    @pytest.mark.asyncio
    async def test_stale_writer_rejected(self, store: RecordStore) -> None:
        await store.put("checks", "CHK_1", {"status": "PENDING"})
        await store.replace("checks", "CHK_1", {"status": "IN_PROGRESS"}, expected_version=0)

        with pytest.raises(ConcurrentUpdateError) as exc_info:
            await store.replace("checks", "CHK_1", {"status": "FAILED"}, expected_version=0)

        assert exc_info.value.expected == 0
        assert exc_info.value.actual == 1
        assert (await store.get("checks", "CHK_1"))["status"] == "IN_PROGRESS"

    @pytest.mark.asyncio
    async def test_unconditional_replace(self, store: RecordStore) -> None:
        await store.put("checks", "CHK_1", {"status": "PENDING"})
        stored = await store.replace("checks", "CHK_1", {"status": "COMPLETED"})
        assert stored["version"] == 1

    @pytest.mark.asyncio
    async def test_replace_missing(self, store: RecordStore) -> None:
        with pytest.raises(RecordNotFoundError):
            await store.replace("checks", "nope", {})

    @pytest.mark.asyncio
    async def test_append_to_list(self, store: RecordStore) -> None:
        await store.put("requests", "R1", {"requestId": "R1"})
        await store.append_to_list("requests", "R1", "events", {"type": "INITIAL"})
        stored = await store.append_to_list("requests", "R1", "events", {"type": "REMINDER_1"})

        assert [e["type"] for e in stored["events"]] == ["INITIAL", "REMINDER_1"]
        assert stored["version"] == 2

    @pytest.mark.asyncio
    async def test_append_to_missing(self, store: RecordStore) -> None:
        with pytest.raises(RecordNotFoundError) as exc_info:
            await store.append_to_list("requests", "nope", "events", {})
        assert exc_info.value.collection == "requests"

    def test_record_lock_is_per_record(self, store: RecordStore) -> None:
        assert store.record_lock("checks", "A") is store.record_lock("checks", "A")
        assert store.record_lock("checks", "A") is not store.record_lock("checks", "B")
        assert store.record_lock("checks", "A") is not store.record_lock("requests", "A")


# ── Persistence ───────────────────────────────────────────────────────────


class TestPersistence:
    @pytest.mark.asyncio
    async def test_round_trip(self, tmp_path) -> None:
        path = tmp_path / "data" / "records.json"
        store = RecordStore(str(path))
        await store.put("checks", "CHK_1", {"status": "PENDING"})
        await store.replace("checks", "CHK_1", {"status": "COMPLETED"}, expected_version=0)

        reloaded = RecordStore(str(path))

        assert await reloaded.get("checks", "CHK_1") == {"status": "COMPLETED", "version": 1}

    @pytest.mark.asyncio
    async def test_corrupt_file_starts_empty(self, tmp_path) -> None:
        path = tmp_path / "records.json"
        path.write_text("{not json")

        store = RecordStore(str(path))

        assert await store.find("checks") == []

    @pytest.mark.asyncio
    async def test_file_is_plain_json(self, tmp_path) -> None:
        path = tmp_path / "records.json"
        store = RecordStore(str(path))
        await store.put("clients", "CL_1", {"displayName": "Acme"})

        data = json.loads(path.read_text())
        assert data == {"clients": {"CL_1": {"displayName": "Acme", "version": 0}}}
