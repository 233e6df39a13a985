"""Shared Pydantic base for JSON-facing records.

Persisted and exchanged shapes use camelCase keys (employeeName, riskScore,
claimedValue). Python code works with snake_case attributes; both spellings
are accepted on input.
"""

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serializing to camelCase keys."""

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
    }

    def to_record(self) -> dict:
        """JSON-compatible dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)
