"""Lenient parsers for the free-form values employers and applicants write.

Every parser returns None when it cannot read a value. A None is never a
mismatch; the comparator skips the field instead.
"""

import re
from datetime import date, datetime
from difflib import SequenceMatcher
from typing import NamedTuple, Optional

from dateutil import parser as date_parser

_NUMBER = re.compile(r"\d+(?:\.\d+)?")
_LEADING_RATING = re.compile(r"\s*(?P<rating>\d+(?:\.\d+)?)")

# Checked in order; "crore" before "lakh" before a "k" suffix
_MULTIPLIERS: tuple[tuple[re.Pattern, int], ...] = (
    (re.compile(r"\bcr(?:ore)?s?\b"), 10_000_000),
    (re.compile(r"\blpa\b|\blakhs?\b|\blacs?\b"), 100_000),
    (re.compile(r"\d\s*k\b"), 1_000),
)

_PRESENT = re.compile(r"^(present|current|now|date|till date|to date|ongoing)$", re.IGNORECASE)
_RANGE_SPACED = re.compile(r"\s+(?:-|–|—|to|till|until)\s+", re.IGNORECASE)
_RANGE_DASH = re.compile(r"\s*[–—]\s*")
_DATE_DEFAULT = datetime(2000, 1, 1)


class DateRange(NamedTuple):
    start: date
    end: date


def normalize_text(value: Optional[str]) -> str:
    """Lowercase and collapse internal whitespace."""
    return " ".join((value or "").lower().split())


def parse_money(value: Optional[str]) -> Optional[float]:
    """
    Parse a currency-like magnitude.

    Handles symbols and grouping commas ("₹10,00,000", "$95,000"), Indian
    units ("12 LPA", "12.5 lakhs per annum", "1.2 crore") and a "k" suffix.

    Args:
        value: Salary as written

    Returns:
        Magnitude in base currency units, or None when no number is present
    """
    if not value:
        return None

    text = value.lower().replace(",", "")
    match = _NUMBER.search(text)
    if not match:
        return None

    amount = float(match.group())
    for pattern, multiplier in _MULTIPLIERS:
        if pattern.search(text):
            return amount * multiplier
    return amount


def percent_difference(claimed: float, verified: float) -> Optional[float]:
    """|verified - claimed| as a percentage of the claimed value."""
    if claimed == 0:
        return None
    return abs(verified - claimed) / claimed * 100


def parse_rating(value: Optional[str]) -> Optional[float]:
    """Leading number of a rating such as "4", "2/5" or "3 out of 5".

    A number that does not open the value ("Below average (2)") is not read.
    """
    if not value:
        return None
    match = _LEADING_RATING.match(value)
    return float(match.group("rating")) if match else None


def _parse_boundary(text: str) -> Optional[date]:
    text = text.strip(" .,")
    if not text:
        return None
    if _PRESENT.match(text):
        return date.today()
    try:
        return date_parser.parse(text, default=_DATE_DEFAULT).date()
    except (ValueError, OverflowError):
        return None


def _split_range(text: str) -> Optional[tuple[str, str]]:
    for pattern in (_RANGE_SPACED, _RANGE_DASH):
        parts = pattern.split(text, maxsplit=1)
        if len(parts) == 2:
            return parts[0], parts[1]
    # "Jan 2020-Mar 2023": only unambiguous when exactly one hyphen is present
    if text.count("-") == 1:
        start, end = text.split("-")
        return start, end
    return None


def parse_date_range(value: Optional[str]) -> Optional[DateRange]:
    """
    Parse an employment period like "Jan 2020 - Mar 2023".

    Missing day/month components default to the first. "Present" and
    similar words resolve to today.

    Returns:
        DateRange, or None when either boundary cannot be read
    """
    if not value:
        return None
    parts = _split_range(value.strip())
    if parts is None:
        return None

    start = _parse_boundary(parts[0])
    end = _parse_boundary(parts[1])
    if start is None or end is None:
        return None
    return DateRange(start, end)


def max_boundary_shift_days(claimed: DateRange, verified: DateRange) -> int:
    """Largest absolute difference in days between matching boundaries."""
    return max(
        abs((verified.start - claimed.start).days),
        abs((verified.end - claimed.end).days),
    )


def text_similarity(a: Optional[str], b: Optional[str]) -> float:
    """
    Similarity in [0, 1] after case and whitespace normalization.

    A normalized value contained in the other counts as 1.0.
    """
    left, right = normalize_text(a), normalize_text(b)
    if not left or not right:
        return 0.0
    if left in right or right in left:
        return 1.0
    return SequenceMatcher(None, left, right).ratio()
