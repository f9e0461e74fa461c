"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep the ledger in a local JSON file today
2. Use in-memory storage for testing
3. Swap in another key-value store without touching the matching code

The ledger is always read and written as a whole: one JSON blob under
one key. There is no partial update and no query API.
"""

from abc import ABC, abstractmethod
from uuid import UUID

from bill_tracker.models.audit import AuditEvent
from bill_tracker.models.ledger import LedgerEntry


class LedgerStorageInterface(ABC):
    """
    Abstract interface for ledger storage.

    Any storage implementation must round-trip every ledger field,
    including payments and match links.
    """

    @abstractmethod
    def load_entries(self) -> list[LedgerEntry]:
        """
        Load the whole ledger.

        Returns:
            All entries (transactions and bills) in stored order,
            or an empty list if nothing has been saved yet

        Raises:
            CorruptLedgerError: If the stored blob cannot be parsed
            StorageError: If the backend cannot be read
        """
        pass

    @abstractmethod
    def save_entries(self, entries: list[LedgerEntry]) -> bool:
        """
        Replace the stored ledger with `entries`.

        Returns:
            True if saved successfully

        Raises:
            StorageError: If save fails
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Args:
            event: The audit event to log

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (e.g., one reconcile-and-save).

        Returns:
            List of related events in chronological order
        """
        pass

    @abstractmethod
    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class CorruptLedgerError(StorageError):
    """The stored ledger blob is not valid ledger JSON."""
    pass


class StorageConnectionError(StorageError):
    """Could not open the storage backend."""
    pass
