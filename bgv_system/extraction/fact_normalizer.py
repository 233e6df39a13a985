"""Turns a raw HR reply body into a NormalizedReply.

Steps, in order:
1. Strip quoted history (quote_stripper)
2. A collaborative-document link in what remains -> STRUCTURED_LINK; the
   spreadsheet is authoritative, so no prose is read
3. Apply the ordered field rules (field_extractor)
4. One or more facts -> FREE_TEXT (values asserted); none -> UNSTRUCTURED,
   with the retained text kept as a note for a human reader

Extraction never raises on odd input; ambiguity degrades to a partial
record or UNSTRUCTURED.
"""

import re
from typing import Optional

from bgv_system.data_management.schemas import NormalizedReply, ResponseMethod, field_key
from bgv_system.extraction.field_extractor import FieldExtractor
from bgv_system.extraction.quote_stripper import split_reply
from bgv_system.utils.logging import get_structured_logger

# Known collaborative-document services; group "doc_id" is the document reference
DOCUMENT_LINK_PATTERNS: tuple[re.Pattern, ...] = (
    re.compile(
        r"https?://docs\.google\.com/(?:spreadsheets|document)/d/(?P<doc_id>[A-Za-z0-9_-]+)[^\s<>\"')\]]*",
        re.IGNORECASE,
    ),
    re.compile(
        r"https?://(?:[A-Za-z0-9-]+\.)*(?:sharepoint\.com|onedrive\.live\.com|1drv\.ms)/[^\s<>\"')\]]+",
        re.IGNORECASE,
    ),
)

_SHAREPOINT_ID = re.compile(r"(?:resid|id|sourcedoc)=(?P<doc_id>[^&\s]+)", re.IGNORECASE)


def find_document_link(text: str) -> Optional[tuple[str, str]]:
    """
    First collaborative-document link in text.

    Returns:
        (document_reference, url) or None
    """
    for pattern in DOCUMENT_LINK_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        url = match.group(0).rstrip(".,;")
        doc_id = match.groupdict().get("doc_id")
        if not doc_id:
            id_match = _SHAREPOINT_ID.search(url)
            doc_id = id_match.group("doc_id") if id_match else url
        return doc_id, url
    return None


class FactNormalizer:
    """Classifies and extracts one reply body."""

    def __init__(self, extractor: Optional[FieldExtractor] = None) -> None:
        self.extractor = extractor or FieldExtractor()
        self.logger = get_structured_logger("FactNormalizer")

    def normalize(self, body: Optional[str]) -> NormalizedReply:
        """
        Normalize a plain-text reply body.

        Args:
            body: Raw body including any quoted history

        Returns:
            NormalizedReply; never raises for malformed text
        """
        stripped = split_reply(body)
        retained = stripped.retained

        link = find_document_link(retained)
        if link:
            doc_id, url = link
            self.logger.info("reply_structured_link", document_reference=doc_id)
            return NormalizedReply(
                response_method=ResponseMethod.STRUCTURED_LINK,
                document_reference=doc_id,
                document_url=url,
                reference_id=self.extractor.extract(retained).reference_id,
                confidence="document",
            )

        extracted = self.extractor.extract(retained)
        if extracted.fact_count:
            self.logger.info(
                "reply_free_text",
                fields=extracted.matched_fields,
                had_quote=stripped.had_quote,
            )
            return NormalizedReply(
                facts=extracted.facts,
                response_method=ResponseMethod.FREE_TEXT,
                matched_fields=[field_key(name) for name in extracted.matched_fields],
                reference_id=extracted.reference_id,
                confidence="asserted",
            )

        self.logger.info("reply_unstructured", retained_length=len(retained))
        return NormalizedReply(
            response_method=ResponseMethod.UNSTRUCTURED,
            reference_id=extracted.reference_id,
            freeform_note=retained or None,
            confidence="none",
        )


def normalize_reply(body: Optional[str]) -> NormalizedReply:
    """Convenience wrapper around FactNormalizer().normalize()."""
    return FactNormalizer().normalize(body)
