"""Tests for FactNormalizer: quote stripping, link detection and classification."""

import pytest

from bgv_system.data_management.schemas import ResponseMethod
from bgv_system.extraction import FactNormalizer, find_document_link, normalize_reply


# ── Fixtures ──────────────────────────────────────────────────────────────


@pytest.fixture
def normalizer() -> FactNormalizer:
    return FactNormalizer()


FREE_TEXT_REPLY = """Hi,

Please find the details below:

Employee Name: Jane Doe
Designation: Senior Developer
Salary: ₹11,20,000
Eligible for Rehire: Yes

Check ID: CHK_EMP_20250101_AB12_C1_EMP

Regards,
HR Team

On Mon, 6 Jan 2025 at 10:00, Verification Team <noreply@trustcheck.ai> wrote:
> Employee Name: Jane Doe
> Salary: ₹10,00,000
> Performance Rating: [To be filled]
"""


# ── Classification ────────────────────────────────────────────────────────


class TestClassification:
    def test_free_text(self, normalizer: FactNormalizer) -> None:
        reply = normalizer.normalize(FREE_TEXT_REPLY)

        assert reply.response_method == ResponseMethod.FREE_TEXT
        assert reply.confidence == "asserted"
        assert reply.facts.salary == "₹11,20,000"
        assert reply.facts.eligible_for_rehire == "Yes"
        assert reply.matched_fields == [
            "employeeName",
            "designation",
            "salary",
            "eligibleForRehire",
        ]
        assert reply.reference_id == "CHK_EMP_20250101_AB12_C1"

    def test_quoted_text_never_read(self, normalizer: FactNormalizer) -> None:
        reply = normalizer.normalize(FREE_TEXT_REPLY)
        assert reply.facts.performance_rating is None
        assert "10,00,000" not in (reply.facts.salary or "")

    def test_only_quoted_facts_is_unstructured(self, normalizer: FactNormalizer) -> None:
        body = (
            "Thanks, we will revert shortly.\n"
            "\n"
            "-----Original Message-----\n"
            "Employee Name: Jane Doe\n"
            "Salary: 10 LPA\n"
        )
        reply = normalizer.normalize(body)

        assert reply.response_method == ResponseMethod.UNSTRUCTURED
        assert reply.facts.is_empty()
        assert reply.freeform_note == "Thanks, we will revert shortly."
        assert reply.confidence == "none"

    def test_unstructured_keeps_reference(self, normalizer: FactNormalizer) -> None:
        reply = normalizer.normalize("Check ID abc123_EMP\nWe will fill the form soon.")
        assert reply.response_method == ResponseMethod.UNSTRUCTURED
        assert reply.reference_id == "abc123"

    def test_empty_body(self, normalizer: FactNormalizer) -> None:
        reply = normalizer.normalize("")
        assert reply.response_method == ResponseMethod.UNSTRUCTURED
        assert reply.freeform_note is None

    def test_convenience_wrapper(self) -> None:
        assert normalize_reply("Salary: 12 LPA").response_method == ResponseMethod.FREE_TEXT

    def test_labels_separated_by_spaces(self, normalizer: FactNormalizer) -> None:
        reply = normalizer.normalize("Designation Senior Engineer\nSalary 12 LPA\n")

        assert reply.response_method == ResponseMethod.FREE_TEXT
        assert reply.facts.designation == "Senior Engineer"
        assert reply.facts.salary == "12 LPA"
        assert reply.freeform_note is None


# ── Document links ────────────────────────────────────────────────────────


class TestDocumentLinks:
    def test_google_sheet_link(self, normalizer: FactNormalizer) -> None:
        body = (
            "We have filled the sheet: "
            "https://docs.google.com/spreadsheets/d/1AbC_dEf-123/edit#gid=0\n"
            "Salary: 12 LPA"
        )
        reply = normalizer.normalize(body)

        assert reply.response_method == ResponseMethod.STRUCTURED_LINK
        assert reply.document_reference == "1AbC_dEf-123"
        assert reply.document_url.startswith("https://docs.google.com/spreadsheets/d/1AbC_dEf-123")
        assert reply.confidence == "document"
        # the sheet is authoritative; prose values are not read
        assert reply.facts.is_empty()

    def test_sharepoint_link(self) -> None:
        url = (
            "https://acme.sharepoint.com/:x:/r/sites/hr/_layouts/15/Doc.aspx"
            "?sourcedoc=ABC-123&file=verify.xlsx"
        )
        link = find_document_link(f"See {url}.")
        assert link == ("ABC-123", url)

    def test_link_only_in_quote_ignored(self, normalizer: FactNormalizer) -> None:
        body = (
            "Will do.\n"
            "On Tue, HR wrote:\n"
            "> https://docs.google.com/spreadsheets/d/XYZ123/edit\n"
        )
        reply = normalizer.normalize(body)
        assert reply.response_method == ResponseMethod.UNSTRUCTURED
        assert reply.document_reference is None

    def test_no_link(self) -> None:
        assert find_document_link("https://example.com/form") is None
