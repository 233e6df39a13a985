"""Prompt templates for the advisory narrative stage.

The advisory stage never decides a score or zone; its prompt asks only for
a qualitative reading of discrepancies the comparator already found.

Modules:
    advisory_prompts: Discrepancy analysis prompt
"""

from bgv_system.config.prompts.advisory_prompts import DISCREPANCY_ANALYSIS_PROMPT

__all__ = ["DISCREPANCY_ANALYSIS_PROMPT"]
