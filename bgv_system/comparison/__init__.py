"""Comparison engine: deterministic scoring plus optional advisory narrative.

- Comparator: claimed vs verified FactRecord -> ComparisonResult
- AdvisoryAnalyzer: attaches a qualitative analysis, never changes score or zone
- value_parsers: salary, rating and date-range parsing helpers
"""

from bgv_system.comparison.advisory import AdvisoryAnalyzer
from bgv_system.comparison.comparator import Comparator, build_summary, compare_facts

__all__ = ["AdvisoryAnalyzer", "Comparator", "build_summary", "compare_facts"]
