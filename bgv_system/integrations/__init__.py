"""Narrow interfaces to external collaborators, with in-memory implementations.

- Mailbox: inbound replies (list unread, fetch, mark read)
- Notifier: outbound messages with custom headers
- SpreadsheetService: collaborative verification sheets
"""

from bgv_system.integrations.mailbox import InboundMessage, InMemoryMailbox, Mailbox
from bgv_system.integrations.notifier import InMemoryNotifier, Notifier, SentMessage
from bgv_system.integrations.spreadsheet import (
    InMemorySpreadsheetService,
    SpreadsheetService,
    build_sheet_rows,
    has_responded,
    verified_facts_from_rows,
)

__all__ = [
    "InMemoryMailbox",
    "InMemoryNotifier",
    "InMemorySpreadsheetService",
    "InboundMessage",
    "Mailbox",
    "Notifier",
    "SentMessage",
    "SpreadsheetService",
    "build_sheet_rows",
    "has_responded",
    "verified_facts_from_rows",
]
