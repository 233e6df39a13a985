"""Tests for the append-only ActivityLog."""

import pytest
from pydantic import ValidationError

from bgv_system.data_management import ActivityLog
from bgv_system.data_management.schemas import (
    ActivityAction,
    CheckFailedPayload,
    CheckStartedPayload,
    CheckStatus,
    EmailSentPayload,
    EntityType,
    HrRespondedPayload,
)


# ── Fixtures ──────────────────────────────────────────────────────────────


@pytest.fixture
def log() -> ActivityLog:
    return ActivityLog()


def _sent(message_id: str) -> EmailSentPayload:
    return EmailSentPayload(
        message_id=message_id, to="hr@acme.com", subject="s", request_id="CHK_1_EMP"
    )


# ── Appending ─────────────────────────────────────────────────────────────


class TestAppend:
    @pytest.mark.asyncio
    async def test_action_comes_from_payload(self, log: ActivityLog) -> None:
        entry = await log.append(EntityType.CHECK, "CHK_1", _sent("<m1@x>"), note="sent")

        assert entry.action == ActivityAction.EMAIL_SENT
        assert entry.entity_type == EntityType.CHECK
        assert entry.note == "sent"
        assert entry.log_id.startswith("LOG_")
        assert entry.metadata.message_id == "<m1@x>"

    @pytest.mark.asyncio
    async def test_entries_are_frozen(self, log: ActivityLog) -> None:
        entry = await log.append(EntityType.CHECK, "CHK_1", _sent("<m1@x>"))
        with pytest.raises(ValidationError):
            entry.note = "edited"

    @pytest.mark.asyncio
    async def test_count(self, log: ActivityLog) -> None:
        await log.append(EntityType.CHECK, "CHK_1", _sent("<m1@x>"))
        await log.append(
            EntityType.CHECK, "CHK_1", CheckFailedPayload(error="boom", stage="outreach")
        )
        assert await log.count() == 2


# ── Listing ───────────────────────────────────────────────────────────────


class TestListing:
    @pytest.mark.asyncio
    async def test_list_filters(self, log: ActivityLog) -> None:
        await log.append(EntityType.CHECK, "CHK_1", _sent("<m1@x>"))
        await log.append(
            EntityType.CHECK,
            "CHK_1",
            CheckStartedPayload(check_type="EMPLOYMENT", previous_status=CheckStatus.PENDING),
        )
        await log.append(EntityType.CHECK, "CHK_2", _sent("<m2@x>"))
        await log.append(EntityType.REQUEST, "REQ_1", _sent("<m3@x>"))

        assert len(await log.list(EntityType.CHECK)) == 3
        assert len(await log.list(EntityType.CHECK, "CHK_1")) == 2
        sent = await log.list(EntityType.CHECK, "CHK_1", ActivityAction.EMAIL_SENT)
        assert [e.metadata.message_id for e in sent] == ["<m1@x>"]

    @pytest.mark.asyncio
    async def test_list_by_action_spans_entity_types(self, log: ActivityLog) -> None:
        await log.append(EntityType.CHECK, "CHK_1", _sent("<m1@x>"))
        await log.append(EntityType.REQUEST, "REQ_1", _sent("<m2@x>"))
        await log.append(EntityType.CHECK, "CHK_1", HrRespondedPayload(source="MANUAL"))

        sent = await log.list_by_action(ActivityAction.EMAIL_SENT)
        assert [e.entity_id for e in sent] == ["CHK_1", "REQ_1"]


# ── Persistence ───────────────────────────────────────────────────────────


class TestPersistence:
    @pytest.mark.asyncio
    async def test_round_trip_keeps_payload_types(self, tmp_path) -> None:
        path = str(tmp_path / "activity_log.json")
        log = ActivityLog(path)
        await log.append(EntityType.CHECK, "CHK_1", _sent("<m1@x>"))
        await log.append(
            EntityType.CHECK, "CHK_1", CheckFailedPayload(error="boom", stage="outreach")
        )

        reloaded = ActivityLog(path)
        entries = await reloaded.list(EntityType.CHECK, "CHK_1")

        assert [e.action for e in entries] == [
            ActivityAction.EMAIL_SENT,
            ActivityAction.CHECK_FAILED,
        ]
        assert isinstance(entries[0].metadata, EmailSentPayload)
        assert entries[1].metadata.stage == "outreach"
