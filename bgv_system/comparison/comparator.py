"""Deterministic comparison of claimed and verified employment facts.

The comparator is the only component that assigns riskScore and zone. Rules
are additive: each violation contributes its configured weight, and the total
is clamped to [0, 100] once at the end. A field that cannot be read on either
side is skipped, never counted as a mismatch.

Rules:
- Name: case-insensitive equality or containment -> match, else CRITICAL
- Designation: similarity below 0.5 -> MEDIUM
- Employment dates: a boundary shifted beyond the tolerance -> MEDIUM
- Salary: deviation strictly above the tolerance (relative to claimed) -> HIGH
- Rehire: verified value containing "no" -> CRITICAL
- Performance: verified rating below 3 -> MEDIUM

Usage:
    from bgv_system.comparison.comparator import Comparator

    result = Comparator().compare(claimed, verified)
    print(result.risk_score, result.zone)
"""

from typing import Optional

from bgv_system.comparison import value_parsers
from bgv_system.data_management.schemas import (
    ComparisonResult,
    ComparisonSummary,
    Discrepancy,
    FactRecord,
    RuleConfig,
    Severity,
    Zone,
    field_key,
)
from bgv_system.utils.logging import get_structured_logger

DESIGNATION_SIMILARITY_THRESHOLD = 0.5
LOW_PERFORMANCE_BELOW = 3


class _Tally:
    """Accumulates per-field outcomes in evaluation order."""

    def __init__(self) -> None:
        self.matches: list[str] = []
        self.discrepancies: list[Discrepancy] = []
        self.skipped: list[str] = []
        self.score = 0

    def match(self, attribute: str) -> None:
        self.matches.append(field_key(attribute))

    def skip(self, attribute: str) -> None:
        self.skipped.append(field_key(attribute))

    def mismatch(
        self,
        attribute: str,
        severity: Severity,
        weight: int,
        claimed: Optional[str],
        verified: Optional[str],
        difference: Optional[str] = None,
    ) -> None:
        self.discrepancies.append(
            Discrepancy(
                field=field_key(attribute),
                severity=severity,
                claimed_value=claimed,
                verified_value=verified,
                difference=difference,
                weight=weight,
            )
        )
        self.score += weight


def _present(value: Optional[str]) -> bool:
    return bool(value and value.strip())


class Comparator:
    """Reconciles two partially overlapping FactRecords into a ComparisonResult."""

    def __init__(self, rules: Optional[RuleConfig] = None) -> None:
        """
        Initialize Comparator.

        Args:
            rules: Tolerances, thresholds and weights. Defaults to RuleConfig().
        """
        self.rules = rules or RuleConfig()
        self.logger = get_structured_logger("Comparator")

    def compare(self, claimed: FactRecord, verified: FactRecord) -> ComparisonResult:
        """
        Compare claimed facts against verified facts.

        Args:
            claimed: Applicant-reported facts
            verified: Employer-supplied facts

        Returns:
            ComparisonResult with score, zone, ordered discrepancies and summary
        """
        tally = _Tally()

        self._compare_name(claimed, verified, tally)
        self._compare_designation(claimed, verified, tally)
        self._compare_dates(claimed, verified, tally)
        self._compare_salary(claimed, verified, tally)
        self._check_rehire(verified, tally)
        self._check_performance(verified, tally)

        risk_score = max(0, min(100, tally.score))
        zone = self.rules.zone_for(risk_score)
        compared = len(tally.matches) + len(tally.discrepancies)
        if not tally.discrepancies:
            match_rate = 100.0
        else:
            match_rate = round(len(tally.matches) / compared * 100, 2)

        result = ComparisonResult(
            risk_score=risk_score,
            zone=zone,
            discrepancies=tally.discrepancies,
            matches=tally.matches,
            match_rate=match_rate,
            skipped=tally.skipped,
            summary=build_summary(zone, risk_score, len(tally.discrepancies)),
        )

        self.logger.info(
            "comparison_completed",
            risk_score=risk_score,
            zone=zone.value,
            discrepancies=len(tally.discrepancies),
            matches=len(tally.matches),
            skipped=len(tally.skipped),
        )
        return result

    # ── Rules ──────────────────────────────────────────────────────────

    def _compare_name(self, claimed: FactRecord, verified: FactRecord, tally: _Tally) -> None:
        attr = "employee_name"
        left, right = claimed.employee_name, verified.employee_name
        if not (_present(left) and _present(right)):
            if _present(left) or _present(right):
                tally.skip(attr)
            return

        a = value_parsers.normalize_text(left)
        b = value_parsers.normalize_text(right)
        if a == b or a in b or b in a:
            tally.match(attr)
        else:
            tally.mismatch(
                attr,
                Severity.CRITICAL,
                self.rules.field_weights.name_mismatch,
                left,
                right,
            )

    def _compare_designation(
        self, claimed: FactRecord, verified: FactRecord, tally: _Tally
    ) -> None:
        attr = "designation"
        left, right = claimed.designation, verified.designation
        if not (_present(left) and _present(right)):
            if _present(left) or _present(right):
                tally.skip(attr)
            return

        similarity = value_parsers.text_similarity(left, right)
        if similarity >= DESIGNATION_SIMILARITY_THRESHOLD:
            tally.match(attr)
        else:
            tally.mismatch(
                attr,
                Severity.MEDIUM,
                self.rules.field_weights.designation_mismatch,
                left,
                right,
                difference=f"similarity {similarity:.2f}",
            )

    def _compare_dates(self, claimed: FactRecord, verified: FactRecord, tally: _Tally) -> None:
        attr = "employment_dates"
        left, right = claimed.employment_dates, verified.employment_dates
        if not (_present(left) and _present(right)):
            if _present(left) or _present(right):
                tally.skip(attr)
            return

        if value_parsers.normalize_text(left) == value_parsers.normalize_text(right):
            tally.match(attr)
            return

        claimed_range = value_parsers.parse_date_range(left)
        verified_range = value_parsers.parse_date_range(right)
        if claimed_range is None or verified_range is None:
            self.logger.debug("dates_unparsable", claimed=left, verified=right)
            tally.skip(attr)
            return

        shift = value_parsers.max_boundary_shift_days(claimed_range, verified_range)
        if shift > self.rules.dates_tolerance_days:
            tally.mismatch(
                attr,
                Severity.MEDIUM,
                self.rules.field_weights.dates_mismatch,
                left,
                right,
                difference=f"{shift} days",
            )
        else:
            tally.match(attr)

    def _compare_salary(self, claimed: FactRecord, verified: FactRecord, tally: _Tally) -> None:
        attr = "salary"
        left, right = claimed.salary, verified.salary
        if not (_present(left) and _present(right)):
            if _present(left) or _present(right):
                tally.skip(attr)
            return

        claimed_amount = value_parsers.parse_money(left)
        verified_amount = value_parsers.parse_money(right)
        if claimed_amount is None or verified_amount is None:
            self.logger.debug("salary_unparsable", claimed=left, verified=right)
            tally.skip(attr)
            return

        percent = value_parsers.percent_difference(claimed_amount, verified_amount)
        if percent is None:
            tally.skip(attr)
            return

        if percent > self.rules.salary_tolerance_percent:
            tally.mismatch(
                attr,
                Severity.HIGH,
                self.rules.field_weights.salary_mismatch,
                left,
                right,
                difference=f"{percent:.1f}%",
            )
        else:
            tally.match(attr)

    def _check_rehire(self, verified: FactRecord, tally: _Tally) -> None:
        attr = "eligible_for_rehire"
        value = verified.eligible_for_rehire
        if not _present(value):
            return

        if "no" in value.lower():
            tally.mismatch(
                attr,
                Severity.CRITICAL,
                self.rules.field_weights.not_eligible_for_rehire,
                None,
                value,
            )
        else:
            tally.match(attr)

    def _check_performance(self, verified: FactRecord, tally: _Tally) -> None:
        attr = "performance_rating"
        value = verified.performance_rating
        if not _present(value):
            return

        rating = value_parsers.parse_rating(value)
        if rating is None:
            tally.skip(attr)
            return

        if rating < LOW_PERFORMANCE_BELOW:
            tally.mismatch(
                attr,
                Severity.MEDIUM,
                self.rules.field_weights.low_performance,
                None,
                value,
                difference=f"rating {value.strip()}",
            )
        else:
            tally.match(attr)


def build_summary(zone: Zone, risk_score: int, discrepancy_count: int) -> ComparisonSummary:
    """Human-readable outcome for a zone."""
    if zone == Zone.GREEN:
        return ComparisonSummary(
            status="APPROVED",
            message="Verification passed all checks. Data matches with acceptable tolerance.",
            details=f"Risk Score: {risk_score}/100. {discrepancy_count} minor discrepancies found.",
            action="Auto-approved for processing",
        )
    return ComparisonSummary(
        status="NEEDS_REVIEW",
        message="Verification flagged for manual review due to discrepancies.",
        details=f"Risk Score: {risk_score}/100. {discrepancy_count} discrepancies found.",
        action="Requires supervisor review",
    )


def compare_facts(
    claimed: FactRecord,
    verified: FactRecord,
    rules: Optional[RuleConfig] = None,
) -> ComparisonResult:
    """Convenience wrapper around Comparator(rules).compare()."""
    return Comparator(rules).compare(claimed, verified)
