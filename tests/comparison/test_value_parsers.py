"""Tests for the lenient value parsers used by the comparator."""

from datetime import date

import pytest

from bgv_system.comparison.value_parsers import (
    DateRange,
    max_boundary_shift_days,
    normalize_text,
    parse_date_range,
    parse_money,
    parse_rating,
    percent_difference,
    text_similarity,
)


class TestParseMoney:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("₹10,00,000", 1_000_000),
            ("$95,000", 95_000),
            ("12 LPA", 1_200_000),
            ("12.5 lakhs per annum", 1_250_000),
            ("8 lakh", 800_000),
            ("1.2 crore", 12_000_000),
            ("1.5 Cr", 15_000_000),
            ("85k", 85_000),
            ("INR 4,50,000 per annum", 450_000),
        ],
    )
    def test_magnitudes(self, value: str, expected: float) -> None:
        assert parse_money(value) == pytest.approx(expected)

    @pytest.mark.parametrize("value", [None, "", "confidential", "N/A"])
    def test_unreadable(self, value) -> None:
        assert parse_money(value) is None


class TestPercentDifference:
    def test_relative_to_claimed(self) -> None:
        assert percent_difference(100.0, 150.0) == pytest.approx(50.0)
        assert percent_difference(150.0, 100.0) == pytest.approx(33.333, rel=1e-3)

    def test_zero_claimed(self) -> None:
        assert percent_difference(0.0, 100.0) is None


class TestParseRating:
    def test_first_number(self) -> None:
        assert parse_rating("4") == 4.0
        assert parse_rating("2/5") == 2.0
        assert parse_rating("3.5 out of 5") == 3.5

    def test_no_number(self) -> None:
        assert parse_rating("Good") is None

    def test_number_must_lead(self) -> None:
        assert parse_rating("Below average (2)") is None
        assert parse_rating("Rated 4 of 5") is None
        assert parse_rating("  4 - very good") == 4.0


class TestParseDateRange:
    def test_month_year_range(self) -> None:
        assert parse_date_range("Jan 2020 - Mar 2023") == DateRange(
            date(2020, 1, 1), date(2023, 3, 1)
        )

    @pytest.mark.parametrize(
        "value",
        ["Jan 2020 to Mar 2023", "Jan 2020 – Mar 2023", "Jan 2020-Mar 2023", "January 2020 till March 2023"],
    )
    def test_separators(self, value: str) -> None:
        assert parse_date_range(value) == DateRange(date(2020, 1, 1), date(2023, 3, 1))

    def test_present_resolves_to_today(self) -> None:
        result = parse_date_range("Jun 2021 - Present")
        assert result is not None
        assert result.start == date(2021, 6, 1)
        assert result.end == date.today()

    @pytest.mark.parametrize("value", [None, "", "2020", "since forever", "Jan 2020 - whenever"])
    def test_unparsable(self, value) -> None:
        assert parse_date_range(value) is None

    def test_boundary_shift(self) -> None:
        claimed = DateRange(date(2020, 1, 1), date(2023, 3, 1))
        verified = DateRange(date(2020, 1, 15), date(2023, 5, 1))
        assert max_boundary_shift_days(claimed, verified) == 61


class TestText:
    def test_normalize(self) -> None:
        assert normalize_text("  Senior   DEVELOPER ") == "senior developer"
        assert normalize_text(None) == ""

    def test_similarity_containment(self) -> None:
        assert text_similarity("Developer", "Senior Developer") == 1.0

    def test_similarity_empty(self) -> None:
        assert text_similarity("", "Developer") == 0.0

    def test_similarity_partial(self) -> None:
        assert 0.5 < text_similarity("Software Engineer", "Software Engineering Lead") <= 1.0
