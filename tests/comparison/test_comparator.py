"""Tests for the deterministic Comparator.

Tests cover:
- Identical records score 0 / GREEN with a 100% match rate
- Salary tolerance in both directions and Indian units
- Name, rehire, performance, dates and designation rules
- Missing or unparsable fields are skipped, never penalized
- Score clamping, zone thresholds and tier rule tables
"""

import pytest

from bgv_system.comparison import Comparator, build_summary, compare_facts
from bgv_system.config.rules import TIER_RULES, rules_for_tier
from bgv_system.data_management.schemas import (
    FactRecord,
    RuleConfig,
    ServiceTier,
    Severity,
    Zone,
)


# ── Fixtures ──────────────────────────────────────────────────────────────


@pytest.fixture
def comparator() -> Comparator:
    return Comparator()


@pytest.fixture
def full_record() -> FactRecord:
    return FactRecord(
        employee_name="Jane Doe",
        company_name="Tech Corp",
        designation="Senior Developer",
        employment_dates="Jan 2020 - Mar 2023",
        salary="₹10,00,000",
        eligible_for_rehire="Yes",
        performance_rating="4",
        reason_for_leaving="Career growth",
    )


def _salary_pair(claimed: str, verified: str) -> tuple[FactRecord, FactRecord]:
    return FactRecord(salary=claimed), FactRecord(salary=verified)


# ── Whole-record behaviour ────────────────────────────────────────────────


class TestWholeRecord:
    def test_identical_records_are_clean(
        self, comparator: Comparator, full_record: FactRecord
    ) -> None:
        result = comparator.compare(full_record, full_record.model_copy())
        assert result.risk_score == 0
        assert result.zone == Zone.GREEN
        assert result.discrepancies == []
        assert result.match_rate == 100.0

    def test_identical_records_match_every_compared_field(
        self, comparator: Comparator, full_record: FactRecord
    ) -> None:
        result = comparator.compare(full_record, full_record.model_copy())
        assert result.matches == [
            "employeeName",
            "designation",
            "employmentDates",
            "salary",
            "eligibleForRehire",
            "performanceRating",
        ]

    def test_jane_doe_salary_twelve_percent(self, comparator: Comparator) -> None:
        claimed = FactRecord(employee_name="Jane Doe", salary="₹10,00,000")
        verified = FactRecord(employee_name="jane doe", salary="₹11,20,000")

        result = comparator.compare(claimed, verified)

        assert result.risk_score == 20
        assert result.zone == Zone.GREEN
        assert len(result.discrepancies) == 1
        salary = result.discrepancies[0]
        assert salary.field == "salary"
        assert salary.severity == Severity.HIGH
        assert salary.difference == "12.0%"
        assert result.matches == ["employeeName"]
        assert result.match_rate == 50.0

    def test_empty_records(self, comparator: Comparator) -> None:
        result = comparator.compare(FactRecord(), FactRecord())
        assert result.risk_score == 0
        assert result.zone == Zone.GREEN
        assert result.match_rate == 100.0
        assert result.skipped == []

    def test_score_clamped_to_hundred(self, comparator: Comparator) -> None:
        claimed = FactRecord(
            employee_name="Jane Doe",
            designation="Software Engineer",
            employment_dates="Jan 2020 - Mar 2023",
            salary="10 LPA",
        )
        verified = FactRecord(
            employee_name="John Smith",
            designation="Accountant",
            employment_dates="Jan 2018 - Mar 2019",
            salary="20 LPA",
            eligible_for_rehire="No",
            performance_rating="1",
        )

        result = comparator.compare(claimed, verified)

        assert result.risk_score == 100
        assert result.zone == Zone.RED
        assert len(result.discrepancies) == 6
        assert result.match_rate == 0.0

    def test_discrepancies_follow_evaluation_order(self, comparator: Comparator) -> None:
        claimed = FactRecord(employee_name="Jane Doe", salary="100000")
        verified = FactRecord(
            employee_name="John Smith",
            salary="150000",
            eligible_for_rehire="No",
        )
        result = comparator.compare(claimed, verified)
        assert [d.field for d in result.discrepancies] == [
            "employeeName",
            "salary",
            "eligibleForRehire",
        ]

    def test_match_rate_bounds(self, comparator: Comparator, full_record: FactRecord) -> None:
        verified = full_record.model_copy(update={"performance_rating": "2"})
        result = comparator.compare(full_record, verified)
        assert 0.0 <= result.match_rate <= 100.0
        # 5 matches out of 6 compared
        assert result.match_rate == pytest.approx(83.33)

    def test_compare_facts_wrapper(self, full_record: FactRecord) -> None:
        result = compare_facts(full_record, full_record)
        assert result.risk_score == 0


# ── Salary ────────────────────────────────────────────────────────────────


class TestSalary:
    @pytest.mark.parametrize("verified", ["91000", "109000"])
    def test_nine_percent_either_way_matches(
        self, comparator: Comparator, verified: str
    ) -> None:
        result = comparator.compare(*_salary_pair("100000", verified))
        assert result.discrepancies == []
        assert result.matches == ["salary"]

    @pytest.mark.parametrize("verified", ["89000", "111000"])
    def test_eleven_percent_either_way_mismatches(
        self, comparator: Comparator, verified: str
    ) -> None:
        result = comparator.compare(*_salary_pair("100000", verified))
        assert len(result.discrepancies) == 1
        assert result.discrepancies[0].severity == Severity.HIGH
        assert result.risk_score == 20

    def test_percentage_relative_to_claimed(self, comparator: Comparator) -> None:
        result = comparator.compare(*_salary_pair("100000", "150000"))
        assert result.discrepancies[0].difference == "50.0%"

    def test_lpa_and_rupee_amount_equivalent(self, comparator: Comparator) -> None:
        result = comparator.compare(*_salary_pair("12 LPA", "₹12,00,000"))
        assert result.matches == ["salary"]

    def test_lakhs_per_annum(self, comparator: Comparator) -> None:
        result = comparator.compare(*_salary_pair("12.5 lakhs per annum", "1250000"))
        assert result.matches == ["salary"]

    def test_unparsable_salary_skipped(self, comparator: Comparator) -> None:
        result = comparator.compare(*_salary_pair("confidential", "₹11,20,000"))
        assert result.discrepancies == []
        assert result.skipped == ["salary"]

    def test_one_sided_salary_skipped(self, comparator: Comparator) -> None:
        result = comparator.compare(FactRecord(salary="10 LPA"), FactRecord())
        assert result.discrepancies == []
        assert result.skipped == ["salary"]


# ── Name ──────────────────────────────────────────────────────────────────


class TestName:
    def test_case_and_whitespace_insensitive(self, comparator: Comparator) -> None:
        result = comparator.compare(
            FactRecord(employee_name="  Jane   Doe "), FactRecord(employee_name="JANE DOE")
        )
        assert result.matches == ["employeeName"]

    def test_substring_matches(self, comparator: Comparator) -> None:
        result = comparator.compare(
            FactRecord(employee_name="Jane Doe"), FactRecord(employee_name="Jane Doe Smith")
        )
        assert result.matches == ["employeeName"]

    def test_different_name_is_critical(self, comparator: Comparator) -> None:
        result = comparator.compare(
            FactRecord(employee_name="Jane Doe"), FactRecord(employee_name="John Smith")
        )
        assert result.discrepancies[0].severity == Severity.CRITICAL
        assert result.risk_score == 30
        assert result.zone == Zone.YELLOW


# ── Verified-only rules ───────────────────────────────────────────────────


class TestRehireAndPerformance:
    @pytest.mark.parametrize("value", ["No", "Not eligible", "NO - policy"])
    def test_rehire_negative_is_critical(self, comparator: Comparator, value: str) -> None:
        result = comparator.compare(FactRecord(), FactRecord(eligible_for_rehire=value))
        assert result.discrepancies[0].field == "eligibleForRehire"
        assert result.discrepancies[0].severity == Severity.CRITICAL
        assert result.risk_score == 30

    def test_rehire_yes_matches(self, comparator: Comparator) -> None:
        result = comparator.compare(FactRecord(), FactRecord(eligible_for_rehire="Yes"))
        assert result.matches == ["eligibleForRehire"]

    def test_low_rating_is_medium(self, comparator: Comparator) -> None:
        result = comparator.compare(FactRecord(), FactRecord(performance_rating="2"))
        assert result.discrepancies[0].severity == Severity.MEDIUM
        assert result.risk_score == 15

    @pytest.mark.parametrize("value", ["3", "4/5", "5 out of 5"])
    def test_adequate_rating_matches(self, comparator: Comparator, value: str) -> None:
        result = comparator.compare(FactRecord(), FactRecord(performance_rating=value))
        assert result.matches == ["performanceRating"]

    def test_non_numeric_rating_skipped(self, comparator: Comparator) -> None:
        result = comparator.compare(FactRecord(), FactRecord(performance_rating="Excellent"))
        assert result.discrepancies == []
        assert result.skipped == ["performanceRating"]

    def test_rating_number_inside_prose_skipped(self, comparator: Comparator) -> None:
        result = comparator.compare(
            FactRecord(), FactRecord(performance_rating="Below average (2)")
        )
        assert result.discrepancies == []
        assert result.risk_score == 0
        assert result.skipped == ["performanceRating"]


# ── Dates and designation ─────────────────────────────────────────────────


class TestDatesAndDesignation:
    def test_dates_within_tolerance(self, comparator: Comparator) -> None:
        result = comparator.compare(
            FactRecord(employment_dates="Jan 2020 - Mar 2023"),
            FactRecord(employment_dates="January 2020 to March 2023"),
        )
        assert result.matches == ["employmentDates"]

    def test_dates_beyond_tolerance(self, comparator: Comparator) -> None:
        result = comparator.compare(
            FactRecord(employment_dates="Jan 2020 - Mar 2023"),
            FactRecord(employment_dates="Jan 2020 - Jun 2023"),
        )
        discrepancy = result.discrepancies[0]
        assert discrepancy.field == "employmentDates"
        assert discrepancy.severity == Severity.MEDIUM
        assert discrepancy.difference == "92 days"
        assert result.risk_score == 15

    def test_unparsable_dates_skipped(self, comparator: Comparator) -> None:
        result = comparator.compare(
            FactRecord(employment_dates="a long time"),
            FactRecord(employment_dates="Jan 2020 - Mar 2023"),
        )
        assert result.discrepancies == []
        assert result.skipped == ["employmentDates"]

    def test_designation_abbreviation_contained(self, comparator: Comparator) -> None:
        result = comparator.compare(
            FactRecord(designation="Software Engineer"),
            FactRecord(designation="Senior Software Engineer"),
        )
        assert result.matches == ["designation"]

    def test_designation_unrelated_is_medium(self, comparator: Comparator) -> None:
        result = comparator.compare(
            FactRecord(designation="Software Engineer"),
            FactRecord(designation="Accountant"),
        )
        assert result.discrepancies[0].severity == Severity.MEDIUM
        assert result.discrepancies[0].difference.startswith("similarity ")
        assert result.risk_score == 10


# ── Rule configuration ────────────────────────────────────────────────────


class TestRules:
    def test_zone_thresholds(self) -> None:
        rules = RuleConfig()
        assert rules.zone_for(29) == Zone.GREEN
        assert rules.zone_for(30) == Zone.YELLOW
        assert rules.zone_for(59) == Zone.YELLOW
        assert rules.zone_for(60) == Zone.RED

    def test_threshold_order_validated(self) -> None:
        with pytest.raises(ValueError):
            RuleConfig(green_zone_threshold=70, red_zone_threshold=40)

    def test_custom_tolerance(self) -> None:
        comparator = Comparator(RuleConfig(salary_tolerance_percent=20.0))
        result = comparator.compare(*_salary_pair("100000", "115000"))
        assert result.matches == ["salary"]

    def test_enterprise_tier_is_stricter(self) -> None:
        pair = _salary_pair("100000", "107000")
        assert Comparator(rules_for_tier(ServiceTier.STANDARD)).compare(*pair).risk_score == 0
        assert Comparator(rules_for_tier(ServiceTier.ENTERPRISE)).compare(*pair).risk_score == 20

    def test_basic_tier_is_looser(self) -> None:
        pair = _salary_pair("100000", "112000")
        assert Comparator(rules_for_tier("BASIC")).compare(*pair).discrepancies == []

    def test_unknown_tier_falls_back_to_standard(self) -> None:
        assert rules_for_tier("PLATINUM") == TIER_RULES[ServiceTier.STANDARD]
        assert rules_for_tier(None) == RuleConfig()

    def test_rules_for_tier_returns_copy(self) -> None:
        rules = rules_for_tier(ServiceTier.PREMIUM)
        rules.salary_tolerance_percent = 99.0
        assert TIER_RULES[ServiceTier.PREMIUM].salary_tolerance_percent == 7.5


# ── Summary ───────────────────────────────────────────────────────────────


class TestSummary:
    def test_green_is_approved(self) -> None:
        summary = build_summary(Zone.GREEN, 20, 1)
        assert summary.status == "APPROVED"
        assert "20/100" in summary.details

    @pytest.mark.parametrize("zone", [Zone.YELLOW, Zone.RED])
    def test_other_zones_need_review(self, zone: Zone) -> None:
        assert build_summary(zone, 45, 2).status == "NEEDS_REVIEW"

    def test_result_serializes_camel_case(self, comparator: Comparator) -> None:
        result = comparator.compare(*_salary_pair("100000", "150000"))
        record = result.to_record()
        assert record["riskScore"] == 20
        assert record["matchRate"] == 0.0
        assert record["discrepancies"][0]["claimedValue"] == "100000"
        assert record["discrepancies"][0]["verifiedValue"] == "150000"
