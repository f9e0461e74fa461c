"""
In-memory storage, used by tests and when no data path is configured.

The ledger is still serialized to a JSON string on save, so code running
against this backend sees exactly what a file round trip would produce.
"""

from typing import Optional
from uuid import UUID

from bill_tracker.models.audit import AuditEvent
from bill_tracker.models.ledger import LedgerEntry, dump_ledger, load_ledger
from bill_tracker.services.storage.interface import (
    AuditStorageInterface,
    LedgerStorageInterface,
)


class InMemoryLedgerStorage(LedgerStorageInterface):
    """Key-value dict holding the ledger blob."""

    def __init__(
        self,
        entries: Optional[list[LedgerEntry]] = None,
        key: str = "transactions",
    ):
        self._store: dict[str, str] = {}
        self._key = key
        if entries is not None:
            self.save_entries(entries)

    @property
    def raw(self) -> Optional[str]:
        """The stored JSON blob, if anything was saved."""
        return self._store.get(self._key)

    def load_entries(self) -> list[LedgerEntry]:
        blob = self._store.get(self._key)
        if blob is None:
            return []
        return load_ledger(blob)

    def save_entries(self, entries: list[LedgerEntry]) -> bool:
        self._store[self._key] = dump_ledger(entries)
        return True


class InMemoryAuditStorage(AuditStorageInterface):

    def __init__(self):
        self.events: list[AuditEvent] = []

    def append_event(self, event: AuditEvent) -> bool:
        self.events.append(event)
        return True

    def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        return [e for e in self.events if e.correlation_id == correlation_id]

    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        return list(reversed(self.events))[:limit]
