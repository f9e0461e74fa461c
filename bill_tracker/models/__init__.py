"""
Data Models Package

This package contains all Pydantic models used by Bill Tracker.
All ledger data flowing through the system must conform to these schemas.
"""

from bill_tracker.models.ledger import (
    BillDefinition,
    BillOccurrence,
    BillPayment,
    BillSummary,
    Frequency,
    LedgerEntry,
    MatchDetails,
    MatchScore,
    Transaction,
    TransactionBillMatch,
    dump_ledger,
    load_ledger,
)
from bill_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "BillDefinition",
    "BillOccurrence",
    "BillPayment",
    "BillSummary",
    "Frequency",
    "LedgerEntry",
    "MatchDetails",
    "MatchScore",
    "Transaction",
    "TransactionBillMatch",
    "dump_ledger",
    "load_ledger",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
