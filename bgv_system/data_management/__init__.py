"""Data management package for the verification core.

Provides storage adapters and schemas for:
- Clients, cases and checks - verification job entities
- Verification requests - outreach attempts with append-only event lists
- Activity log - immutable audit trail

Storage adapters:
- RecordStore: JSON record collections with version-checked writes
- VerificationStore: Typed repository over RecordStore
- ActivityLog: Append-only audit store
"""

from bgv_system.data_management.activity_log import ActivityLog
from bgv_system.data_management.record_store import (
    ConcurrentUpdateError,
    RecordNotFoundError,
    RecordStore,
)
from bgv_system.data_management.verification_store import VerificationStore

__all__ = [
    "ActivityLog",
    "ConcurrentUpdateError",
    "RecordNotFoundError",
    "RecordStore",
    "VerificationStore",
]
