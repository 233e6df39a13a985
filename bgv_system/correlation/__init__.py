"""Reply correlation: which open check does an inbound message answer?

- MessageRegistry: immutable message id -> check id snapshots rebuilt from the activity log
- ReplyCorrelator: thread linkage, subject tag, then body pattern
"""

from bgv_system.correlation.message_registry import (
    MessageRegistry,
    RegistrySnapshot,
    build_registry_mapping,
    normalize_message_id,
)
from bgv_system.correlation.reply_correlator import (
    CorrelationResult,
    CorrelationStrategy,
    ReplyCorrelator,
    body_reference_id,
    parse_references,
    subject_tag_id,
)

__all__ = [
    "CorrelationResult",
    "CorrelationStrategy",
    "MessageRegistry",
    "RegistrySnapshot",
    "ReplyCorrelator",
    "body_reference_id",
    "build_registry_mapping",
    "normalize_message_id",
    "parse_references",
    "subject_tag_id",
]
