"""Ordered label-value rules for reading facts out of reply prose.

Each FieldRule pairs a FactRecord attribute with a line-anchored matcher of
the form ``<label synonyms><separator><value to end of line>`` and a
validator that rejects values which cannot be what the label promises
(a salary without digits, a rating without a number, "N/A" anywhere).
Rules run in order over text that has already had quoted history removed.
"""

import re
from dataclasses import dataclass, field
from typing import Callable, Optional

from bgv_system.data_management.schemas import FactRecord, strip_request_suffix
from bgv_system.extraction.quote_stripper import is_quote_line

REFERENCE_FIELD = "reference_id"

_PLACEHOLDERS = {
    "n/a", "na", "nil", "none", "-", "--", "---", "not applicable",
    "not available", "tbd", "to be filled", "[to be filled]", "?",
}
_REHIRE_WORDS = re.compile(r"\b(yes|no|not|eligible|ineligible|true|false|y|n)\b", re.IGNORECASE)
_HAS_LETTER = re.compile(r"[A-Za-z]")
_HAS_DIGIT = re.compile(r"\d")
_REFERENCE_TOKEN = re.compile(r"[A-Za-z0-9][A-Za-z0-9_-]{3,}")


def _label_pattern(labels: str, separator: str) -> re.Pattern:
    # optional bullet and markdown emphasis around the label
    return re.compile(
        rf"^[ \t]*(?:[-*•]\s+|\d+[.)]\s+)?[*_]*(?:{labels})[*_]*{separator}(?P<value>[^\n]*?)[ \t]*$",
        re.IGNORECASE | re.MULTILINE,
    )


# A bare whitespace separator ("Salary 12 LPA") may not run into a sentence,
# so "Name of the company: Acme" is not read as an employee name.
_PROSE_LEAD = (
    r"(?:of|for|the|a|an|is|was|are|were|be|been|has|have|had|will|would|can|could|"
    r"should|may|does|do|did|and|or|to|in|on|at|as|by|from|with|that|this|these|those|"
    r"i|we|you|they|he|she|our|your|their|his|her|details?|information)\b"
)
_FACT_SEPARATOR = rf"(?:[ \t]*[:#][ \t]*|[ \t]+-[ \t]+|[ \t]+(?![ \t])(?!{_PROSE_LEAD}))"
# Reference ids are commonly written without punctuation ("Check ID ABC123").
_REFERENCE_SEPARATOR = r"[:#\s]+"


def _clean(value: str) -> str:
    return value.strip().strip("*_").strip().rstrip(".,;").strip()


def _not_placeholder(value: str) -> bool:
    return bool(value) and value.lower() not in _PLACEHOLDERS


def _is_name(value: str) -> bool:
    return _not_placeholder(value) and bool(_HAS_LETTER.search(value)) and "@" not in value and len(value) <= 100


def _has_letter(value: str) -> bool:
    return _not_placeholder(value) and bool(_HAS_LETTER.search(value))


def _has_digit(value: str) -> bool:
    return _not_placeholder(value) and bool(_HAS_DIGIT.search(value))


def _is_dates(value: str) -> bool:
    return _has_digit(value) or "present" in value.lower()


def _is_rehire(value: str) -> bool:
    return _not_placeholder(value) and bool(_REHIRE_WORDS.search(value))


def _is_reference(value: str) -> bool:
    return bool(_REFERENCE_TOKEN.match(value)) and bool(re.search(r"[\d_]", value))


@dataclass(frozen=True)
class FieldRule:
    """One extraction rule: target attribute, matcher, validator."""

    field: str
    matcher: re.Pattern
    validator: Callable[[str], bool]
    transform: Callable[[str], str] = _clean


def _reference_value(raw: str) -> str:
    token = _REFERENCE_TOKEN.match(raw.strip())
    return strip_request_suffix(token.group(0)) if token else ""


FIELD_RULES: tuple[FieldRule, ...] = (
    FieldRule(
        "employee_name",
        _label_pattern(
            r"employee(?:'s)?\s+name|candidate(?:'s)?\s+name|name\s+of\s+(?:the\s+)?employee|full\s+name|name",
            _FACT_SEPARATOR,
        ),
        _is_name,
    ),
    FieldRule(
        "company_name",
        _label_pattern(
            r"company\s+name|name\s+of\s+(?:the\s+)?company|employer\s+name|company|employer|organi[sz]ation",
            _FACT_SEPARATOR,
        ),
        _has_letter,
    ),
    FieldRule(
        "designation",
        _label_pattern(r"designation|position|job\s+title|title|role", _FACT_SEPARATOR),
        _has_letter,
    ),
    FieldRule(
        "employment_dates",
        _label_pattern(
            r"employment\s+dates|employment\s+period|dates?\s+of\s+employment|period\s+of\s+employment|tenure|duration|dates|period",
            _FACT_SEPARATOR,
        ),
        _is_dates,
    ),
    FieldRule(
        "salary",
        _label_pattern(
            r"(?:last\s+drawn\s+|annual\s+|gross\s+|final\s+)?(?:salary|ctc|compensation)",
            _FACT_SEPARATOR,
        ),
        _has_digit,
    ),
    FieldRule(
        "eligible_for_rehire",
        _label_pattern(
            r"eligible\s+for\s+re-?hire|eligibility\s+for\s+re-?hire|re-?hire\s+eligibility|re-?hire\s+eligible|re-?hire",
            _FACT_SEPARATOR,
        ),
        _is_rehire,
    ),
    FieldRule(
        "performance_rating",
        _label_pattern(r"performance\s+rating|performance|rating", _FACT_SEPARATOR),
        _has_digit,
    ),
    FieldRule(
        "reason_for_leaving",
        _label_pattern(
            r"reason\s+for\s+(?:leaving|exit|separation|resignation)|reason",
            _FACT_SEPARATOR,
        ),
        _has_letter,
    ),
    FieldRule(
        REFERENCE_FIELD,
        _label_pattern(r"(?:check|verification|request|case)\s*id", _REFERENCE_SEPARATOR),
        _is_reference,
        _reference_value,
    ),
)


@dataclass
class ExtractedFields:
    """Values read by the field rules."""

    facts: FactRecord = field(default_factory=FactRecord)
    matched_fields: list[str] = field(default_factory=list)
    reference_id: Optional[str] = None

    @property
    def fact_count(self) -> int:
        return len(self.matched_fields)


def _in_quoted_context(lines: list[str], line_index: int) -> bool:
    if is_quote_line(lines[line_index]):
        return True
    return line_index > 0 and is_quote_line(lines[line_index - 1])


class FieldExtractor:
    """Applies FIELD_RULES in order; the first valid candidate per field wins."""

    def __init__(self, rules: tuple[FieldRule, ...] = FIELD_RULES) -> None:
        self.rules = rules

    def extract(self, text: str) -> ExtractedFields:
        """
        Read labeled values from already-sanitized text.

        Args:
            text: Reply text with quoted history removed

        Returns:
            ExtractedFields with FactRecord values, matched attribute names in
            rule order, and the quoted reference id (suffix stripped) if any
        """
        lines = text.split("\n")
        values: dict[str, str] = {}
        matched: list[str] = []
        reference_id: Optional[str] = None

        for rule in self.rules:
            value = self._first_valid(rule, text, lines)
            if value is None:
                continue
            if rule.field == REFERENCE_FIELD:
                reference_id = value
            else:
                values[rule.field] = value
                matched.append(rule.field)

        return ExtractedFields(
            facts=FactRecord(**values),
            matched_fields=matched,
            reference_id=reference_id,
        )

    def _first_valid(self, rule: FieldRule, text: str, lines: list[str]) -> Optional[str]:
        for match in rule.matcher.finditer(text):
            line_index = text.count("\n", 0, match.start())
            if _in_quoted_context(lines, line_index):
                continue
            value = rule.transform(match.group("value"))
            if value and rule.validator(value):
                return value
        return None
