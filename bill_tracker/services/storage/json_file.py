"""
JSON File Storage Implementation

DESIGN DECISION: The ledger lives in a local JSON key-value file because:
1. It mirrors how the app has always persisted state (one blob per key)
2. No database setup required
3. Users can inspect and back up a single file

TRADEOFFS:
- The whole ledger is rewritten on every save (fine for personal use)
- No concurrent writers (the app is single-user, single-process)

Writes go to a temporary file that is then renamed over the original,
so a crash mid-write leaves the previous ledger intact.
"""

import json
import os
from pathlib import Path
from typing import Optional
from uuid import UUID

from pydantic import ValidationError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from bill_tracker.config import get_settings
from bill_tracker.models.audit import AuditEvent
from bill_tracker.models.ledger import LedgerEntry, dump_ledger, load_ledger
from bill_tracker.services.storage.interface import (
    AuditStorageInterface,
    CorruptLedgerError,
    LedgerStorageInterface,
    StorageConnectionError,
    StorageError,
)


_io_retry = retry(
    retry=retry_if_exception_type(OSError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.1, min=0.1, max=1),
    reraise=True,
)


class JsonFileLedgerStorage(LedgerStorageInterface):
    """
    Ledger stored as one JSON string under one key of a JSON object file.

    Other keys in the same file are preserved on save.
    """

    def __init__(
        self,
        path: Optional[Path] = None,
        key: Optional[str] = None,
    ):
        if path is None or key is None:
            settings = get_settings().storage
            path = path or settings.data_path
            key = key or settings.storage_key
        self._path = Path(path)
        self._key = key

    @property
    def path(self) -> Path:
        return self._path

    @_io_retry
    def _read_store(self) -> dict:
        if not self._path.exists():
            return {}
        text = self._path.read_text(encoding="utf-8")
        if not text.strip():
            return {}
        try:
            store = json.loads(text)
        except json.JSONDecodeError as e:
            raise CorruptLedgerError(f"{self._path} is not valid JSON: {e}")
        if not isinstance(store, dict):
            raise CorruptLedgerError(f"{self._path} does not hold a JSON object")
        return store

    @_io_retry
    def _write_store(self, store: dict) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        tmp_path.write_text(json.dumps(store, indent=2), encoding="utf-8")
        os.replace(tmp_path, self._path)

    def load_entries(self) -> list[LedgerEntry]:
        try:
            store = self._read_store()
        except OSError as e:
            raise StorageConnectionError(f"Failed to read ledger from {self._path}: {e}")

        blob = store.get(self._key)
        if blob is None:
            return []

        try:
            return load_ledger(blob)
        except ValidationError as e:
            raise CorruptLedgerError(
                f"Ledger under key '{self._key}' failed validation: {e}"
            )

    def save_entries(self, entries: list[LedgerEntry]) -> bool:
        try:
            store = self._read_store()
            store[self._key] = dump_ledger(entries)
            self._write_store(store)
        except OSError as e:
            raise StorageError(f"Failed to save ledger to {self._path}: {e}")
        return True


class JsonLinesAuditStorage(AuditStorageInterface):
    """Append-only audit log, one JSON event per line."""

    def __init__(self, path: Optional[Path] = None):
        self._path = Path(path or get_settings().storage.audit_log_path)

    @_io_retry
    def append_event(self, event: AuditEvent) -> bool:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(event.to_json_line() + "\n")
        return True

    @_io_retry
    def _read_events(self) -> list[AuditEvent]:
        if not self._path.exists():
            return []
        with self._path.open(encoding="utf-8") as handle:
            return [
                AuditEvent.model_validate_json(line)
                for line in handle
                if line.strip()
            ]

    def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        return [
            event for event in self._read_events()
            if event.correlation_id == correlation_id
        ]

    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        return list(reversed(self._read_events()))[:limit]
