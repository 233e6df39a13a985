"""Free-text extraction for inbound HR replies.

- quote_stripper: discard quoted history before anything is read
- field_extractor: ordered label/value rules with per-field validators
- fact_normalizer: STRUCTURED_LINK / FREE_TEXT / UNSTRUCTURED classification
"""

from bgv_system.extraction.fact_normalizer import (
    FactNormalizer,
    find_document_link,
    normalize_reply,
)
from bgv_system.extraction.field_extractor import (
    FIELD_RULES,
    ExtractedFields,
    FieldExtractor,
    FieldRule,
)
from bgv_system.extraction.quote_stripper import StrippedText, split_reply, strip_quoted

__all__ = [
    "FIELD_RULES",
    "ExtractedFields",
    "FactNormalizer",
    "FieldExtractor",
    "FieldRule",
    "StrippedText",
    "find_document_link",
    "normalize_reply",
    "split_reply",
    "strip_quoted",
]
