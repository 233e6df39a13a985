"""Collaborative verification spreadsheet collaborator.

Fixed 20-row layout on a single sheet:

    A: question label   B: claimed value (read-only)   C: verified value (HR)   D: comments

Row 1 is the header. Rows 2-9 hold the eight comparable facts in FactRecord
order, the remaining rows hold context the reviewer reads but the comparator
does not. Hints such as "Yes/No" go in column D so column C starts empty.

"Has responded" means at least 3 column-C cells are non-empty and not "N/A".
"""

import asyncio
import uuid
from abc import ABC, abstractmethod
from typing import Optional

from loguru import logger

from bgv_system.data_management.record_store import RecordNotFoundError
from bgv_system.data_management.schemas import FACT_FIELDS, FactRecord, ResponseChannel

SHEET_ROWS = 20
SHEET_COLUMNS = 4
CLAIMED_COLUMN = 1
VERIFIED_COLUMN = 2
COMMENTS_COLUMN = 3
RESPONDED_MIN_CELLS = 3
PLACEHOLDER = "N/A"

HEADER_ROW = ["Field", "Candidate Claims", "HR Verified Value", "Comments"]

# (label, FactRecord attribute or None, hint for column D)
SHEET_LAYOUT: tuple[tuple[str, Optional[str], str], ...] = (
    ("Employee Name", "employee_name", ""),
    ("Company Name", "company_name", ""),
    ("Designation/Role", "designation", ""),
    ("Employment Dates", "employment_dates", "e.g. Jan 2020 - Mar 2023"),
    ("Salary/CTC", "salary", "Annual CTC"),
    ("Eligible for Rehire?", "eligible_for_rehire", "Yes/No"),
    ("Performance Rating", "performance_rating", "1-5"),
    ("Reason for Leaving", "reason_for_leaving", ""),
    ("Department", None, ""),
    ("Employee ID", None, ""),
    ("Reporting Manager", None, ""),
    ("Exit Formalities Completed?", None, "Yes/No"),
    ("Disciplinary Issues?", None, "Yes/No"),
    ("", None, ""),
    ("Verification Reference", None, "Do not edit"),
    ("HR Name", None, ""),
    ("HR Email", None, ""),
    ("HR Designation", None, ""),
    ("Verification Date", None, "YYYY-MM-DD"),
)

REFERENCE_LABEL = "Verification Reference"


def build_sheet_rows(request_id: str, claimed: FactRecord) -> list[list[str]]:
    """Initial 20x4 grid for a request."""
    rows = [list(HEADER_ROW)]
    for label, attribute, hint in SHEET_LAYOUT:
        claimed_value = ""
        if attribute:
            claimed_value = getattr(claimed, attribute) or ""
        elif label == REFERENCE_LABEL:
            claimed_value = request_id
        rows.append([label, claimed_value, "", hint])
    return rows


def _cell(rows: list[list[str]], row: int, column: int) -> str:
    if row >= len(rows) or column >= len(rows[row]):
        return ""
    return (rows[row][column] or "").strip()


def _is_filled(value: str) -> bool:
    return bool(value) and value.upper() != PLACEHOLDER


def has_responded(rows: list[list[str]]) -> bool:
    """At least RESPONDED_MIN_CELLS verified cells hold a real value."""
    filled = sum(
        1 for row in range(1, SHEET_ROWS) if _is_filled(_cell(rows, row, VERIFIED_COLUMN))
    )
    return filled >= RESPONDED_MIN_CELLS


def verified_facts_from_rows(rows: list[list[str]]) -> FactRecord:
    """FactRecord from column C of the fact rows; "N/A" and blanks are absent."""
    values = {}
    for offset, attribute in enumerate(FACT_FIELDS, start=1):
        value = _cell(rows, offset, VERIFIED_COLUMN)
        if _is_filled(value):
            values[attribute] = value
    return FactRecord(**values)


class SpreadsheetService(ABC):
    """Collaborative-document interface."""

    @abstractmethod
    async def create_sheet(
        self, request_id: str, claimed: FactRecord
    ) -> ResponseChannel:
        """Create a sheet pre-filled with claimed values and return its channel."""

    @abstractmethod
    async def read_rows(self, document_id: str) -> list[list[str]]:
        """Current grid contents."""

    async def has_responded(self, document_id: str) -> bool:
        return has_responded(await self.read_rows(document_id))

    async def read_verified_facts(self, document_id: str) -> Optional[FactRecord]:
        """Verified facts once the sheet counts as responded, else None."""
        rows = await self.read_rows(document_id)
        if not has_responded(rows):
            return None
        return verified_facts_from_rows(rows)


class InMemorySpreadsheetService(SpreadsheetService):
    """Sheets held in memory; fill_verified() plays the employer's part."""

    def __init__(self) -> None:
        self._sheets: dict[str, list[list[str]]] = {}
        self._lock = asyncio.Lock()
        self.logger = logger.bind(component="InMemorySpreadsheetService")

    async def create_sheet(self, request_id: str, claimed: FactRecord) -> ResponseChannel:
        document_id = f"sheet_{uuid.uuid4().hex[:16]}"
        async with self._lock:
            self._sheets[document_id] = build_sheet_rows(request_id, claimed)
        self.logger.info(f"Created verification sheet {document_id} for {request_id}")
        return ResponseChannel(
            document_id=document_id,
            document_url=f"https://docs.google.com/spreadsheets/d/{document_id}/edit",
        )

    async def read_rows(self, document_id: str) -> list[list[str]]:
        async with self._lock:
            if document_id not in self._sheets:
                raise RecordNotFoundError("spreadsheets", document_id)
            return [list(row) for row in self._sheets[document_id]]

    async def fill_verified(self, document_id: str, facts: FactRecord) -> None:
        """Write facts into column C of the fact rows."""
        async with self._lock:
            if document_id not in self._sheets:
                raise RecordNotFoundError("spreadsheets", document_id)
            rows = self._sheets[document_id]
            for offset, attribute in enumerate(FACT_FIELDS, start=1):
                value = getattr(facts, attribute)
                if value is not None:
                    rows[offset][VERIFIED_COLUMN] = value
