"""Lifecycle controller: the only writer of Check status, zone and risk score.

Owns the Check state machine and the verification request it may spawn:

    create_client / open_case        intake
    issue_request                    (none) -> PENDING request, INITIAL outreach
    execute_check                    PENDING|FAILED -> IN_PROGRESS -> COMPLETED | FAILED,
                                     or back to PENDING (zone PENDING) while waiting
    record_reply                     inbound HR reply -> HR_RESPONDED, re-execute
    submit_verified_facts            facts supplied by an operator or another agent
    supervisor_review / reassign_zone  explicit overrides, always logged

Every multi-step change to a Check runs under that Check's lock, and the
final write is one version-checked update carrying status, zone, riskScore
and discrepancies together.
"""

import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from loguru import logger

from bgv_system.comparison.advisory import AdvisoryAnalyzer
from bgv_system.comparison.comparator import Comparator
from bgv_system.config.rules import rules_for_tier
from bgv_system.config.settings import settings
from bgv_system.data_management.record_store import RecordNotFoundError
from bgv_system.data_management.schemas import (
    Case,
    CaseOpenedPayload,
    CaseStatus,
    Check,
    CheckFailedPayload,
    CheckStartedPayload,
    CheckStatus,
    CheckType,
    ClaimedEmployment,
    Client,
    ComparisonCompletedPayload,
    EntityType,
    FactRecord,
    HrRespondedPayload,
    NormalizedReply,
    OutreachEventType,
    RequestStatus,
    ResponseChannel,
    ResponseMethod,
    RuleConfig,
    ServiceTier,
    SupervisorReview,
    SupervisorReviewPayload,
    TierChangedPayload,
    VerificationRequest,
    Zone,
    ZoneReassignedPayload,
    request_id_for_check,
)
from bgv_system.lifecycle.outreach import OutreachDispatcher, OutreachDispatchError
from bgv_system.lifecycle.state_machine import (
    InvalidTransitionError,
    ensure_transition,
    is_terminal,
)
from bgv_system.utils.logging import check_context

HIGH_RISK_AVERAGE = 70
MEDIUM_RISK_AVERAGE = 40

SUPERVISOR_DECISIONS: dict[str, tuple[CheckStatus, Zone]] = {
    "APPROVED": (CheckStatus.VERIFIED, Zone.GREEN),
    "REJECTED": (CheckStatus.REJECTED, Zone.RED),
}

_CHECK_ID_PREFIX = {
    CheckType.EMPLOYMENT: "CHK_EMP",
    CheckType.EDUCATION: "CHK_EDU",
    CheckType.CRIME: "CHK_CRM",
}


def overall_risk_level(average_score: Optional[float]) -> str:
    """Case-level risk bucket for an average check risk score."""
    if average_score is None:
        return "UNKNOWN"
    if average_score >= HIGH_RISK_AVERAGE:
        return "HIGH_RISK"
    if average_score >= MEDIUM_RISK_AVERAGE:
        return "MEDIUM_RISK"
    return "LOW_RISK"


def _data_file(name: str) -> Optional[str]:
    """Path under settings.data_dir, or None for memory-only storage."""
    return str(Path(settings.data_dir) / name) if settings.data_dir else None


def _short_token() -> str:
    return uuid.uuid4().hex[:6].upper()


class LifecycleController:
    """
    Drives Checks and VerificationRequests through their lifecycle.

    Collaborators are created lazily when not supplied, so a bare
    LifecycleController() runs fully in memory.

    Usage:
        controller = LifecycleController()
        client = await controller.create_client("Acme Staffing")
        case, checks = await controller.open_case(client.client_id, "Jane Doe", employments)
        check = await controller.execute_check(checks[-1].check_id)
    """

    def __init__(
        self,
        store: Optional["VerificationStore"] = None,  # noqa: F821
        activity_log: Optional["ActivityLog"] = None,  # noqa: F821
        notifier: Optional["Notifier"] = None,  # noqa: F821
        registry: Optional["MessageRegistry"] = None,  # noqa: F821
        spreadsheets: Optional["SpreadsheetService"] = None,  # noqa: F821
        advisory: Optional[AdvisoryAnalyzer] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize LifecycleController.

        Args:
            store: VerificationStore. Auto-creates if None.
            activity_log: ActivityLog. Auto-creates if None.
            notifier: Outbound Notifier. InMemoryNotifier if None.
            registry: MessageRegistry shared with the correlator. Auto-creates if None.
            spreadsheets: SpreadsheetService. Requests get no sheet if None.
            advisory: AdvisoryAnalyzer. Settings-driven analyzer if None.
            clock: Returns the current UTC time. Defaults to datetime.now(timezone.utc).
        """
        self._store = store
        self._activity_log = activity_log
        self._notifier = notifier
        self._registry = registry
        self._dispatcher: Optional[OutreachDispatcher] = None
        self.spreadsheets = spreadsheets
        self.advisory = advisory or AdvisoryAnalyzer()
        self.clock = clock or (lambda: datetime.now(timezone.utc))

        self.logger = logger.bind(component="LifecycleController")

    @property
    def store(self):
        """Lazy-load VerificationStore on first access."""
        if self._store is None:
            from bgv_system.data_management.record_store import RecordStore
            from bgv_system.data_management.verification_store import VerificationStore
            self._store = VerificationStore(RecordStore(_data_file("records.json")))
        return self._store

    @property
    def activity_log(self):
        """Lazy-load ActivityLog on first access."""
        if self._activity_log is None:
            from bgv_system.data_management.activity_log import ActivityLog
            self._activity_log = ActivityLog(_data_file("activity_log.json"))
        return self._activity_log

    @property
    def notifier(self):
        """Lazy-load InMemoryNotifier on first access."""
        if self._notifier is None:
            from bgv_system.integrations.notifier import InMemoryNotifier
            self._notifier = InMemoryNotifier()
        return self._notifier

    @property
    def registry(self):
        """Lazy-load MessageRegistry on first access."""
        if self._registry is None:
            from bgv_system.correlation.message_registry import MessageRegistry
            self._registry = MessageRegistry()
        return self._registry

    @property
    def dispatcher(self) -> OutreachDispatcher:
        if self._dispatcher is None:
            self._dispatcher = OutreachDispatcher(
                self.store, self.activity_log, self.notifier, self.registry, clock=self.clock
            )
        return self._dispatcher

    # ── Intake ─────────────────────────────────────────────────────────

    async def create_client(
        self,
        display_name: str,
        service_tier: Optional[ServiceTier] = None,
        contact_person: Optional[str] = None,
        email: Optional[str] = None,
        client_id: Optional[str] = None,
    ) -> Client:
        """Create a client; tier defaults to settings.default_service_tier."""
        client = Client(
            client_id=client_id or f"CLIENT_{self.clock():%Y%m%d}_{_short_token()}",
            display_name=display_name,
            service_tier=service_tier or ServiceTier(settings.default_service_tier),
            contact_person=contact_person,
            email=email,
            created_at=self.clock(),
        )
        client = await self.store.save_client(client)
        self.logger.info("Client created", client_id=client.client_id, tier=client.service_tier.value)
        return client

    async def update_client_tier(self, client_id: str, service_tier: ServiceTier) -> Client:
        """Change a client's service tier. Only future comparisons are affected."""
        client = await self.store.get_client(client_id)
        if client is None:
            raise RecordNotFoundError("clients", client_id)

        previous = client.service_tier
        client = await self.store.save_client(client.model_copy(update={"service_tier": service_tier}))
        await self.activity_log.append(
            EntityType.CLIENT,
            client_id,
            TierChangedPayload(previous_tier=previous.value, new_tier=service_tier.value),
            note=f"Service tier changed from {previous.value} to {service_tier.value}",
        )
        return client

    async def open_case(
        self,
        client_id: str,
        employee_name: str,
        employments: list[ClaimedEmployment],
        include_education: bool = True,
        include_crime: bool = True,
    ) -> tuple[Case, list[Check]]:
        """
        Open a case with one EDUCATION, one CRIME and one EMPLOYMENT check per employment.

        Args:
            client_id: Owning client
            employee_name: Candidate name, copied into every check's claimed facts
            employments: Claimed previous employments
            include_education: Create the EDUCATION check
            include_crime: Create the CRIME check

        Returns:
            (case, checks), all checks PENDING with zone UNSET
        """
        if await self.store.get_client(client_id) is None:
            raise RecordNotFoundError("clients", client_id)

        now = self.clock()
        day = f"{now:%Y%m%d}"
        case_id = f"CASE_{day}_EMP{_short_token()}"

        checks: list[Check] = []
        if include_education:
            checks.append(self._new_check(case_id, CheckType.EDUCATION, employee_name, day, now))
        if include_crime:
            checks.append(self._new_check(case_id, CheckType.CRIME, employee_name, day, now))

        token = _short_token()
        for index, employment in enumerate(employments, start=1):
            checks.append(
                Check(
                    check_id=f"{_CHECK_ID_PREFIX[CheckType.EMPLOYMENT]}_{day}_{token}_C{index}",
                    case_id=case_id,
                    check_type=CheckType.EMPLOYMENT,
                    claimed_facts=FactRecord(
                        employee_name=employee_name,
                        company_name=employment.company_name,
                        designation=employment.designation,
                        employment_dates=employment.employment_dates,
                        salary=employment.salary,
                        reason_for_leaving=employment.reason_for_leaving,
                    ),
                    contact_address=employment.hr_email,
                    created_at=now,
                )
            )

        for check in checks:
            await self.store.save_check(check)

        case = await self.store.save_case(
            Case(
                case_id=case_id,
                client_id=client_id,
                employee_name=employee_name,
                check_ids=[c.check_id for c in checks],
                created_at=now,
                updated_at=now,
            )
        )
        await self.activity_log.append(
            EntityType.CASE,
            case_id,
            CaseOpenedPayload(client_id=client_id, check_ids=case.check_ids),
            note=f"Case opened for {employee_name} with {len(checks)} checks",
        )
        self.logger.info("Case opened", case_id=case_id, checks=len(checks))
        return case, checks

    def _new_check(
        self, case_id: str, check_type: CheckType, employee_name: str, day: str, now: datetime
    ) -> Check:
        return Check(
            check_id=f"{_CHECK_ID_PREFIX[check_type]}_{day}_{_short_token()}",
            case_id=case_id,
            check_type=check_type,
            claimed_facts=FactRecord(employee_name=employee_name),
            created_at=now,
        )

    # ── Requests ───────────────────────────────────────────────────────

    async def issue_request(
        self,
        check_id: Optional[str] = None,
        *,
        claimed: Optional[FactRecord] = None,
        contact_address: Optional[str] = None,
        request_id: Optional[str] = None,
    ) -> VerificationRequest:
        """
        Issue the verification request for an EMPLOYMENT check, or a standalone one.

        Idempotent: an existing request that already sent its INITIAL message
        is returned unchanged.

        Args:
            check_id: EMPLOYMENT check to issue for
            claimed: Claimed facts for a standalone request (no check_id)
            contact_address: HR address for a standalone request
            request_id: Identifier for a standalone request

        Raises:
            OutreachDispatchError: The INITIAL message could not be sent
        """
        if check_id is None:
            if claimed is None or not contact_address:
                raise ValueError("standalone requests need claimed facts and a contact address")
            request = VerificationRequest(
                request_id=request_id or f"REQ_{self.clock():%Y%m%d}_{_short_token()}",
                claimed_facts=claimed,
                contact_address=contact_address,
                created_at=self.clock(),
            )
            return await self._dispatch_initial(request)

        async with self.store.check_lock(check_id):
            check = await self.store.require_check(check_id)
            _, request = await self._ensure_request(check)
            return request

    async def _ensure_request(self, check: Check) -> tuple[Check, VerificationRequest]:
        """Create and send the check's request if needed. Caller holds the check lock."""
        if check.check_type != CheckType.EMPLOYMENT:
            raise ValueError(f"{check.check_type.value} checks have no outreach channel")

        request = await self.store.find_request_for_check(check.check_id)
        if request is None:
            request = VerificationRequest(
                request_id=request_id_for_check(check.check_id),
                check_id=check.check_id,
                claimed_facts=check.claimed_facts,
                contact_address=check.contact_address,
                created_at=self.clock(),
            )
        request = await self._dispatch_initial(request)

        if check.request_id != request.request_id:
            check = await self.store.update_check(check, request_id=request.request_id)
        return check, request

    async def _dispatch_initial(self, request: VerificationRequest) -> VerificationRequest:
        async with self.store.request_lock(request.request_id):
            existing = await self.store.get_request(request.request_id)
            if existing is not None and existing.events:
                return existing

            if existing is None:
                if self.spreadsheets is not None and request.response_channel is None:
                    request = request.model_copy(
                        update={"response_channel": await self._create_sheet(request)}
                    )
                existing = await self.store.save_request(request)

            return await self.dispatcher.send(existing, OutreachEventType.INITIAL)

    async def _create_sheet(self, request: VerificationRequest) -> Optional[ResponseChannel]:
        try:
            return await self.spreadsheets.create_sheet(request.request_id, request.claimed_facts)
        except Exception as e:
            # email-only request; the reply can still be free text
            self.logger.warning(
                "Spreadsheet creation failed", request_id=request.request_id, error=str(e)
            )
            return None

    # ── Execution ──────────────────────────────────────────────────────

    async def execute_check(self, check_id: str) -> Check:
        """
        Run a check: compare if verified facts exist, otherwise wait.

        PENDING or FAILED -> IN_PROGRESS, then COMPLETED (with comparison),
        PENDING with zone PENDING (waiting for the employer), or FAILED.

        Raises:
            RecordNotFoundError: Unknown check
            InvalidTransitionError: Check is not PENDING or FAILED
            OutreachDispatchError: EMPLOYMENT request could not be sent (check left FAILED)
        """
        with check_context(check_id):
            async with self.store.check_lock(check_id):
                check = await self.store.require_check(check_id)
                ensure_transition(check_id, check.status, CheckStatus.IN_PROGRESS)

                previous_status = check.status
                check = await self.store.update_check(
                    check, status=CheckStatus.IN_PROGRESS, started_at=self.clock()
                )
                await self.activity_log.append(
                    EntityType.CHECK,
                    check_id,
                    CheckStartedPayload(
                        check_type=check.check_type.value, previous_status=previous_status
                    ),
                    note=f"{check.check_type.value} check started",
                )

                try:
                    check, verified = await self._collect_verified_facts(check)
                except OutreachDispatchError as e:
                    await self._fail(check_id, e, stage="outreach")
                    raise
                except Exception as e:
                    await self._fail(check_id, e, stage="verification")
                    raise

                if verified is None:
                    check = await self.store.update_check(
                        check,
                        status=CheckStatus.PENDING,
                        zone=Zone.PENDING,
                        risk_score=0,
                    )
                    self.logger.info("Check waiting for verified data", check_id=check_id)
                else:
                    try:
                        check = await self._resolve(check, verified)
                    except Exception as e:
                        await self._fail(check_id, e, stage="comparison")
                        raise

            await self._refresh_case(check.case_id)
        return check

    async def _collect_verified_facts(
        self, check: Check
    ) -> tuple[Check, Optional[FactRecord]]:
        if check.verified_facts and not check.verified_facts.is_empty():
            return check, check.verified_facts

        if check.check_type != CheckType.EMPLOYMENT:
            return check, None

        check, request = await self._ensure_request(check)
        if request.verified_facts and not request.verified_facts.is_empty():
            return check, request.verified_facts

        if request.response_channel and self.spreadsheets is not None:
            facts = await self.spreadsheets.read_verified_facts(
                request.response_channel.document_id
            )
            if facts is not None and not facts.is_empty():
                await self._record_spreadsheet_response(request, facts)
                return check, facts

        return check, None

    async def _resolve(self, check: Check, verified: FactRecord) -> Check:
        rules = await self.rules_for_check(check)
        result = Comparator(rules).compare(check.claimed_facts, verified)
        result = await self.advisory.annotate(check.claimed_facts, verified, result)

        check = await self.store.update_check(
            check,
            status=CheckStatus.COMPLETED,
            zone=result.zone,
            risk_score=result.risk_score,
            discrepancies=result.discrepancies,
            comparison=result,
            verified_facts=verified,
            completed_at=self.clock(),
        )

        tier = await self._tier_for_check(check)
        await self.activity_log.append(
            EntityType.CHECK,
            check.check_id,
            ComparisonCompletedPayload(
                risk_score=result.risk_score,
                zone=result.zone,
                discrepancies_count=len(result.discrepancies),
                match_rate=result.match_rate,
                service_tier=tier.value,
            ),
            note=f"Comparison completed: {result.zone.value} ({result.risk_score}/100)",
        )
        self.logger.info(
            "Check completed",
            check_id=check.check_id,
            zone=result.zone.value,
            risk_score=result.risk_score,
        )
        return check

    async def _fail(self, check_id: str, error: Exception, stage: str) -> None:
        """Move a check to FAILED with no zone. Caller holds the check lock."""
        current = await self.store.require_check(check_id)
        await self.store.update_check(
            current,
            status=CheckStatus.FAILED,
            zone=Zone.UNSET,
            risk_score=None,
            notes=f"{stage}: {error}",
        )
        await self.activity_log.append(
            EntityType.CHECK,
            check_id,
            CheckFailedPayload(error=str(error), stage=stage),
            note=f"Check failed during {stage}",
        )
        self.logger.error("Check failed", check_id=check_id, stage=stage, error=str(error))
        await self._refresh_case(current.case_id)

    async def _tier_for_check(self, check: Check) -> ServiceTier:
        if check.case_id:
            case = await self.store.get_case(check.case_id)
            if case is not None:
                client = await self.store.get_client(case.client_id)
                if client is not None:
                    return client.service_tier
        return ServiceTier(settings.default_service_tier)

    async def rules_for_check(self, check: Check) -> RuleConfig:
        """Rule configuration of the tier of the client owning the check."""
        return rules_for_tier(await self._tier_for_check(check))

    # ── Responses ──────────────────────────────────────────────────────

    async def submit_verified_facts(
        self,
        check_id: str,
        facts: FactRecord,
        source: str = "MANUAL",
        execute: bool = True,
    ) -> Check:
        """
        Record verified facts for any check type.

        New values are layered over previously recorded ones. A check that is
        waiting for data is executed again unless execute is False.
        """
        check = await self._merge_verified_facts(check_id, facts)
        await self.activity_log.append(
            EntityType.CHECK,
            check_id,
            HrRespondedPayload(
                source=source,
                response_data=facts,
                matched_fields=facts.present_fields(),
                received_at=self.clock().isoformat(),
            ),
            note=f"Verified facts submitted ({source})",
        )

        if execute and check.status == CheckStatus.PENDING:
            return await self.execute_check(check_id)
        return check

    async def _merge_verified_facts(self, check_id: str, facts: FactRecord) -> Check:
        async with self.store.check_lock(check_id):
            check = await self.store.require_check(check_id)
            merged = (check.verified_facts or FactRecord()).merged_with(facts)
            return await self.store.update_check(check, verified_facts=merged)

    async def record_reply(
        self,
        correlation_key: str,
        reply: NormalizedReply,
        message: Optional["InboundMessage"] = None,  # noqa: F821
        strategy: Optional[str] = None,
    ) -> Optional[Check]:
        """
        Record an inbound HR reply against a check (or standalone request).

        Logs HR_RESPONDED and stores facts and note on the request. FREE_TEXT
        and UNSTRUCTURED replies mark it RESPONDED; a STRUCTURED_LINK reply
        leaves it PENDING until the spreadsheet has responded, so reminders
        continue. FREE_TEXT and STRUCTURED_LINK replies re-execute a check
        that is waiting for data.

        Args:
            correlation_key: Check id, or request id for standalone requests
            reply: Normalized reply body
            message: Source message, for audit metadata
            strategy: Correlation strategy that produced the key

        Returns:
            The check after any re-execution, or None for standalone requests

        Raises:
            RecordNotFoundError: Key matches neither a check nor a request
        """
        check = await self.store.get_check(correlation_key)
        if check is not None:
            request = await self.store.find_request_for_check(correlation_key)
            entity_type = EntityType.CHECK
        else:
            request = await self.store.get_request(correlation_key)
            if request is None:
                raise RecordNotFoundError("checks", correlation_key)
            entity_type = EntityType.REQUEST

        if request is not None:
            await self._store_reply_on_request(request, reply)

        await self.activity_log.append(
            entity_type,
            correlation_key,
            HrRespondedPayload(
                hr_email=message.sender if message else None,
                source="EMAIL_REPLY",
                response_method=reply.response_method,
                response_data=reply.facts,
                matched_fields=reply.matched_fields,
                freeform_note=reply.freeform_note,
                inbound_message_id=message.message_id if message else None,
                correlation_strategy=strategy,
                received_at=(message.date if message and message.date else self.clock().isoformat()),
            ),
            note=f"HR responded via email ({reply.response_method.value})",
        )

        if check is None:
            return None

        if reply.response_method == ResponseMethod.UNSTRUCTURED:
            self.logger.info("Unstructured reply needs manual review", check_id=correlation_key)
            return check

        if request is None and reply.response_method == ResponseMethod.FREE_TEXT:
            # checks without outreach keep replied facts on the check itself
            await self._merge_verified_facts(correlation_key, reply.facts)

        current = await self.store.require_check(correlation_key)
        if current.status == CheckStatus.PENDING:
            return await self.execute_check(correlation_key)
        return current

    async def _store_reply_on_request(
        self, request: VerificationRequest, reply: NormalizedReply
    ) -> VerificationRequest:
        async with self.store.request_lock(request.request_id):
            current = await self.store.require_request(request.request_id)
            changes: dict = {
                "response_method": reply.response_method,
                "responded_at": self.clock(),
            }
            # a sheet link is not an answer until the sheet itself has responded
            if reply.response_method != ResponseMethod.STRUCTURED_LINK:
                changes["status"] = RequestStatus.RESPONDED
            if reply.response_method == ResponseMethod.FREE_TEXT:
                changes["verified_facts"] = (current.verified_facts or FactRecord()).merged_with(
                    reply.facts
                )
            if reply.freeform_note:
                changes["freeform_note"] = reply.freeform_note
            if reply.document_reference and current.response_channel is None:
                changes["response_channel"] = ResponseChannel(
                    document_id=reply.document_reference, document_url=reply.document_url
                )
            return await self.store.update_request(current, **changes)

    async def collect_spreadsheet_response(self, request_id: str) -> Optional[Check]:
        """
        Pull verified facts from a responded spreadsheet and resolve the check.

        Returns:
            The check after re-execution, or None when the sheet has not been
            answered or the request is standalone
        """
        request = await self.store.require_request(request_id)
        if request.response_channel is None or self.spreadsheets is None:
            return None

        facts = await self.spreadsheets.read_verified_facts(request.response_channel.document_id)
        if facts is None or facts.is_empty():
            return None

        await self._record_spreadsheet_response(request, facts)
        if request.check_id is None:
            return None

        check = await self.store.require_check(request.check_id)
        if check.status == CheckStatus.PENDING:
            return await self.execute_check(request.check_id)
        return check

    async def _record_spreadsheet_response(
        self, request: VerificationRequest, facts: FactRecord
    ) -> None:
        async with self.store.request_lock(request.request_id):
            current = await self.store.require_request(request.request_id)
            if current.status != RequestStatus.PENDING and current.verified_facts == facts:
                return
            await self.store.update_request(
                current,
                status=RequestStatus.RESPONDED,
                response_method=ResponseMethod.STRUCTURED_LINK,
                verified_facts=facts,
                responded_at=self.clock(),
            )

        entity_type = EntityType.CHECK if request.check_id else EntityType.REQUEST
        await self.activity_log.append(
            entity_type,
            request.correlation_key,
            HrRespondedPayload(
                hr_email=request.contact_address,
                source="SPREADSHEET",
                response_method=ResponseMethod.STRUCTURED_LINK,
                response_data=facts,
                matched_fields=facts.present_fields(),
                received_at=self.clock().isoformat(),
            ),
            note="HR filled the verification spreadsheet",
        )

    # ── Supervisor actions ─────────────────────────────────────────────

    async def supervisor_review(
        self,
        check_id: str,
        decision: str,
        reviewed_by: str,
        notes: str = "",
    ) -> Check:
        """
        Apply a supervisor decision.

        APPROVED -> VERIFIED / GREEN, REJECTED -> REJECTED / RED. The risk
        score is left as computed; the zone is an explicit override.

        Raises:
            ValueError: Unknown decision
            InvalidTransitionError: Check has not been compared yet
        """
        decision = decision.upper()
        if decision not in SUPERVISOR_DECISIONS:
            raise ValueError(f"decision must be one of {sorted(SUPERVISOR_DECISIONS)}")
        new_status, new_zone = SUPERVISOR_DECISIONS[decision]

        async with self.store.check_lock(check_id):
            check = await self.store.require_check(check_id)
            ensure_transition(check_id, check.status, new_status)

            review = SupervisorReview(
                reviewed_by=reviewed_by,
                reviewed_at=self.clock(),
                decision=decision,
                notes=notes,
                previous_zone=check.zone,
                previous_status=check.status,
            )
            updated = await self.store.update_check(
                check, status=new_status, zone=new_zone, supervisor_review=review
            )
            await self.activity_log.append(
                EntityType.CHECK,
                check_id,
                SupervisorReviewPayload(
                    decision=decision,
                    notes=notes,
                    reviewed_by=reviewed_by,
                    previous_zone=check.zone,
                    new_zone=new_zone,
                    previous_status=check.status,
                    new_status=new_status,
                ),
                note=f"Supervisor {decision.lower()} check",
            )

        await self._refresh_case(updated.case_id)
        return updated

    async def reassign_zone(
        self,
        check_id: str,
        new_zone: Zone,
        reason: str = "Manual reassignment",
        assigned_by: str = "System",
        status: Optional[CheckStatus] = None,
    ) -> Check:
        """
        Move a compared check to another zone.

        Only allowed when the current zone is GREEN, YELLOW or RED. Status is
        unchanged unless one is supplied.

        Raises:
            ValueError: new_zone is not GREEN, YELLOW or RED
            InvalidTransitionError: Check has no terminal zone, or bad status
        """
        if not new_zone.is_terminal:
            raise ValueError("zones can only be reassigned to GREEN, YELLOW or RED")

        async with self.store.check_lock(check_id):
            check = await self.store.require_check(check_id)
            if not check.zone.is_terminal:
                raise InvalidTransitionError(
                    check_id,
                    check.status,
                    status or check.status,
                    reason=f"zone {check.zone.value} cannot be reassigned",
                )
            new_status = status or check.status
            ensure_transition(check_id, check.status, new_status)

            updated = await self.store.update_check(check, zone=new_zone, status=new_status)
            await self.activity_log.append(
                EntityType.CHECK,
                check_id,
                ZoneReassignedPayload(
                    previous_zone=check.zone,
                    new_zone=new_zone,
                    reason=reason,
                    assigned_by=assigned_by,
                    previous_status=check.status,
                    new_status=new_status,
                ),
                note=f"Zone reassigned {check.zone.value} -> {new_zone.value}",
            )

        await self._refresh_case(updated.case_id)
        return updated

    # ── Case aggregation ───────────────────────────────────────────────

    async def _refresh_case(self, case_id: Optional[str]) -> Optional[Case]:
        if not case_id:
            return None

        async with self.store.case_lock(case_id):
            case = await self.store.get_case(case_id)
            if case is None:
                return None

            checks = await self.store.list_checks(case_id=case_id)
            if checks and all(is_terminal(c.status) for c in checks):
                scores = [c.risk_score for c in checks if c.risk_score is not None]
                average = round(sum(scores) / len(scores), 2) if scores else None
                updates = {
                    "status": CaseStatus.COMPLETED,
                    "average_risk_score": average,
                    "overall_risk_level": overall_risk_level(average),
                }
            elif any(c.status != CheckStatus.PENDING or c.started_at for c in checks):
                updates = {"status": CaseStatus.IN_PROGRESS}
            else:
                updates = {"status": CaseStatus.PENDING}

            updates["updated_at"] = self.clock()
            case = await self.store.save_case(case.model_copy(update=updates))

        if case.status == CaseStatus.COMPLETED:
            self.logger.info(
                "Case completed",
                case_id=case_id,
                overall_risk_level=case.overall_risk_level,
                average_risk_score=case.average_risk_score,
            )
        return case
