"""
Storage Services Package

Provides abstract interfaces and concrete implementations for ledger storage.
Currently implements a local JSON file as the backend, but designed to be swappable.
"""

from bill_tracker.services.storage.interface import (
    AuditStorageInterface,
    CorruptLedgerError,
    LedgerStorageInterface,
    StorageConnectionError,
    StorageError,
)
from bill_tracker.services.storage.json_file import (
    JsonFileLedgerStorage,
    JsonLinesAuditStorage,
)
from bill_tracker.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryLedgerStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "LedgerStorageInterface",
    # Exceptions
    "CorruptLedgerError",
    "StorageConnectionError",
    "StorageError",
    # JSON file implementation
    "JsonFileLedgerStorage",
    "JsonLinesAuditStorage",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryLedgerStorage",
]
