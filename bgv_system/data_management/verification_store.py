"""Typed storage for clients, cases, checks and verification requests.

Follows same patterns as the activity log:
- Entity-scoped collections on a shared RecordStore
- O(1) lookup by identifier, equality-filtered listing
- Version-checked whole-record writes for checks and requests
- Optional JSON persistence through the underlying RecordStore

Usage:
    from bgv_system.data_management.verification_store import VerificationStore

    store = VerificationStore()
    await store.save_check(check)
    check = await store.get_check("CHK_EMP_20250101_ABC_C1")
"""

from typing import Optional

from bgv_system.data_management.record_store import RecordNotFoundError, RecordStore
from bgv_system.data_management.schemas import (
    Case,
    Check,
    CheckStatus,
    Client,
    OutreachEvent,
    RequestStatus,
    VerificationRequest,
)
from bgv_system.utils.logging import get_structured_logger

CLIENTS = "clients"
CASES = "cases"
CHECKS = "checks"
REQUESTS = "requests"


class VerificationStore:
    """Repository mapping verification entities onto RecordStore collections.

    Checks and requests are written whole, with the version they were read
    at; a stale writer gets ConcurrentUpdateError instead of a torn record.
    """

    def __init__(self, record_store: Optional[RecordStore] = None) -> None:
        """Initialize VerificationStore.

        Args:
            record_store: Backing record store. Memory-only store if None.
        """
        self.records = record_store or RecordStore()
        self._logger = get_structured_logger("VerificationStore")

    # ── Clients ─────────────────────────────────────────────────────────

    async def save_client(self, client: Client) -> Client:
        stored = await self.records.put(CLIENTS, client.client_id, client.to_record())
        return Client.model_validate(stored)

    async def get_client(self, client_id: str) -> Optional[Client]:
        record = await self.records.get(CLIENTS, client_id)
        return Client.model_validate(record) if record else None

    async def list_clients(self) -> list[Client]:
        return [Client.model_validate(r) for r in await self.records.find(CLIENTS)]

    # ── Cases ───────────────────────────────────────────────────────────

    def case_lock(self, case_id: str):
        """Per-case lock for serializing case aggregation."""
        return self.records.record_lock(CASES, case_id)

    async def save_case(self, case: Case) -> Case:
        stored = await self.records.put(CASES, case.case_id, case.to_record())
        return Case.model_validate(stored)

    async def get_case(self, case_id: str) -> Optional[Case]:
        record = await self.records.get(CASES, case_id)
        return Case.model_validate(record) if record else None

    async def list_cases(self, client_id: Optional[str] = None) -> list[Case]:
        filters = {"clientId": client_id} if client_id else {}
        return [Case.model_validate(r) for r in await self.records.find(CASES, **filters)]

    # ── Checks ──────────────────────────────────────────────────────────

    def check_lock(self, check_id: str):
        """Per-check lock for serializing lifecycle transitions."""
        return self.records.record_lock(CHECKS, check_id)

    async def save_check(self, check: Check) -> Check:
        """Insert a new check (or overwrite unconditionally)."""
        stored = await self.records.put(CHECKS, check.check_id, check.to_record())
        return Check.model_validate(stored)

    async def get_check(self, check_id: str) -> Optional[Check]:
        record = await self.records.get(CHECKS, check_id)
        return Check.model_validate(record) if record else None

    async def require_check(self, check_id: str) -> Check:
        check = await self.get_check(check_id)
        if check is None:
            raise RecordNotFoundError(CHECKS, check_id)
        return check

    async def list_checks(
        self,
        case_id: Optional[str] = None,
        status: Optional[CheckStatus] = None,
    ) -> list[Check]:
        filters = {}
        if case_id:
            filters["caseId"] = case_id
        if status:
            filters["status"] = status.value
        return [Check.model_validate(r) for r in await self.records.find(CHECKS, **filters)]

    async def update_check(self, check: Check, **changes) -> Check:
        """Write check with changes applied as one atomic, version-checked update.

        Args:
            check: Check as read by the caller (its version is the CAS token).
            **changes: Attribute updates, applied together.

        Returns:
            The stored check with its new version.

        Raises:
            ConcurrentUpdateError: Another writer updated the check first.
        """
        updated = check.model_copy(update=changes)
        stored = await self.records.replace(
            CHECKS, check.check_id, updated.to_record(), expected_version=check.version
        )
        self._logger.debug(
            "check_updated",
            check_id=check.check_id,
            fields=sorted(changes),
            version=stored["version"],
        )
        return Check.model_validate(stored)

    # ── Verification requests ───────────────────────────────────────────

    def request_lock(self, request_id: str):
        """Per-request lock for deduplicating outreach sends."""
        return self.records.record_lock(REQUESTS, request_id)

    async def save_request(self, request: VerificationRequest) -> VerificationRequest:
        stored = await self.records.put(REQUESTS, request.request_id, request.to_record())
        return VerificationRequest.model_validate(stored)

    async def get_request(self, request_id: str) -> Optional[VerificationRequest]:
        record = await self.records.get(REQUESTS, request_id)
        return VerificationRequest.model_validate(record) if record else None

    async def require_request(self, request_id: str) -> VerificationRequest:
        request = await self.get_request(request_id)
        if request is None:
            raise RecordNotFoundError(REQUESTS, request_id)
        return request

    async def find_request_for_check(self, check_id: str) -> Optional[VerificationRequest]:
        records = await self.records.find(REQUESTS, checkId=check_id)
        return VerificationRequest.model_validate(records[-1]) if records else None

    async def list_requests(
        self, status: Optional[RequestStatus] = None
    ) -> list[VerificationRequest]:
        filters = {"status": status.value} if status else {}
        return [
            VerificationRequest.model_validate(r)
            for r in await self.records.find(REQUESTS, **filters)
        ]

    async def update_request(
        self, request: VerificationRequest, **changes
    ) -> VerificationRequest:
        """Version-checked update of request fields other than events."""
        if "events" in changes:
            raise ValueError("events are append-only; use append_outreach_event")
        current = await self.require_request(request.request_id)
        # events may have grown since the caller read the request
        updated = request.model_copy(update={**changes, "events": current.events})
        stored = await self.records.replace(
            REQUESTS,
            request.request_id,
            updated.to_record(),
            expected_version=current.version,
        )
        return VerificationRequest.model_validate(stored)

    async def append_outreach_event(
        self, request_id: str, event: OutreachEvent
    ) -> VerificationRequest:
        """Append exactly one outreach event to a request's event list."""
        stored = await self.records.append_to_list(
            REQUESTS, request_id, "events", event.to_record()
        )
        self._logger.info(
            "outreach_event_appended",
            request_id=request_id,
            event_type=event.type,
            total_events=len(stored["events"]),
        )
        return VerificationRequest.model_validate(stored)
