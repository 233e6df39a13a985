"""Optional qualitative analysis of comparison discrepancies.

Runs after the deterministic comparator and only annotates its result. The
riskScore and zone of the returned result are always the comparator's. Any
failure (no key, network, blocked prompt, malformed JSON) leaves the result
as it was, with the summary marked degraded.
"""

import asyncio
import json
import re
from typing import Any, Optional

from pydantic import ValidationError

from bgv_system.config.prompts import DISCREPANCY_ANALYSIS_PROMPT
from bgv_system.config.settings import settings
from bgv_system.data_management.schemas import (
    AdvisoryAnalysis,
    ComparisonResult,
    ComparisonSummary,
    FactRecord,
)
from bgv_system.utils.logging import get_structured_logger


class AdvisoryAnalyzer:
    """
    Attaches an AdvisoryAnalysis narrative to ComparisonResults.

    The Gemini client is created on first use, and only when the stage is
    enabled. Tests inject a client with a generate_content(prompt) method.
    """

    def __init__(self, client: Any = None, enabled: Optional[bool] = None) -> None:
        """
        Initialize AdvisoryAnalyzer.

        Args:
            client: Object with generate_content(prompt) -> str. Lazily built if None.
            enabled: Overrides settings.advisory_enabled
        """
        self._client = client
        self.enabled = settings.advisory_enabled if enabled is None else enabled
        self.logger = get_structured_logger("AdvisoryAnalyzer")

    def _get_client(self) -> Any:
        if self._client is None:
            from bgv_system.llm.gemini_client import GeminiClient

            self._client = GeminiClient()
        return self._client

    async def annotate(
        self,
        claimed: FactRecord,
        verified: FactRecord,
        result: ComparisonResult,
    ) -> ComparisonResult:
        """
        Return result with an advisory narrative attached.

        Args:
            claimed: Applicant-reported facts
            verified: Employer-confirmed facts
            result: Deterministic comparison result

        Returns:
            Copy of result; riskScore and zone are unchanged
        """
        if not self.enabled:
            return result

        if not result.discrepancies:
            advisory = AdvisoryAnalysis(
                reasoning="No discrepancies found. All compared data matches.",
                risk_level="LOW",
                recommendations=["Approve verification"],
                confidence=1.0,
                suggested_zone=result.zone.value,
            )
            return result.model_copy(update={"advisory": advisory})

        try:
            client = self._get_client()
            prompt = DISCREPANCY_ANALYSIS_PROMPT.format(
                claimed=json.dumps(claimed.to_record(), indent=2),
                verified=json.dumps(verified.to_record(), indent=2),
                risk_score=result.risk_score,
                zone=result.zone.value,
                discrepancies=json.dumps(
                    [d.to_record() for d in result.discrepancies], indent=2
                ),
            )
            response_text = await asyncio.to_thread(client.generate_content, prompt)
            advisory = self._parse_response(response_text)
        except Exception as e:
            self.logger.warning("advisory_failed", error=str(e), zone=result.zone.value)
            return result.model_copy(update={"summary": _degraded(result.summary, str(e))})

        if advisory is None:
            self.logger.warning("advisory_unparsable", response_length=len(response_text))
            return result.model_copy(
                update={"summary": _degraded(result.summary, "unparsable advisory response")}
            )

        self.logger.info(
            "advisory_attached",
            risk_level=advisory.risk_level,
            suggested_zone=advisory.suggested_zone,
            zone=result.zone.value,
        )
        return result.model_copy(update={"advisory": advisory})

    def _parse_response(self, response_text: str) -> Optional[AdvisoryAnalysis]:
        """Extract the JSON object from an LLM response, handling markdown blocks."""
        text = (response_text or "").strip()

        block = re.search(r"```(?:json)?\s*([\s\S]*?)```", text)
        if block:
            text = block.group(1).strip()

        obj = re.search(r"\{[\s\S]*\}", text)
        if not obj:
            return None

        try:
            data = json.loads(obj.group(0))
            return AdvisoryAnalysis.model_validate(data)
        except (json.JSONDecodeError, ValidationError) as e:
            self.logger.debug("advisory_json_invalid", error=str(e))
            return None


def _degraded(summary: Optional[ComparisonSummary], reason: str) -> ComparisonSummary:
    if summary is None:
        return ComparisonSummary(
            status="NEEDS_REVIEW",
            message="Advisory analysis unavailable.",
            details=reason,
            action="Requires supervisor review",
            degraded=True,
        )
    return summary.model_copy(
        update={
            "degraded": True,
            "details": f"{summary.details} Advisory analysis unavailable: {reason}",
        }
    )
