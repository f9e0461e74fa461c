"""
Main Orchestrator for Bill Tracker

This module ties together storage, settings, the matching core and the
audit trail, and defines the flows the UI calls:
1. View (load -> generate occurrences / suggestions)
2. Reconcile (load -> auto-match -> save)
3. User actions (load -> manual match / unmatch / toggle paid -> save)

DESIGN DECISION: The matching core is pure; this layer owns all I/O.
- Every flow loads the ledger, replaces it wholesale and saves it
- A failed user action saves nothing (the core never mutates its input)
- Every change is audited, including rejected manual matches
"""

from datetime import date
from decimal import Decimal
from typing import Optional, Union
from uuid import UUID

from bill_tracker.audit import AuditLogger, create_correlation_id
from bill_tracker.config import BillMatchingSettings, get_settings
from bill_tracker.matching import (
    MatchingError,
    find_auto_matches,
    find_payment,
    generate_bill_occurrences,
    get_suggested_matches,
    get_unmatched_expense_transactions,
    get_unpaid_bill_occurrences,
    manual_match,
    summarize_bill_occurrences,
    toggle_occurrence_paid,
    unmatch,
)
from bill_tracker.matching.manual import as_date, find_bill, find_transaction
from bill_tracker.matching.reconcile import apply_matches
from bill_tracker.models.ledger import (
    BillDefinition,
    BillOccurrence,
    BillSummary,
    LedgerEntry,
    Transaction,
    TransactionBillMatch,
)
from bill_tracker.services.storage import (
    InMemoryLedgerStorage,
    JsonFileLedgerStorage,
    JsonLinesAuditStorage,
    LedgerStorageInterface,
    StorageError,
)


class BillMatchingFlow:
    """
    Orchestrates every ledger operation the UI performs.

    Flow for a change:
    1. Load -> whole ledger from storage
    2. Apply -> pure matching function returns a new ledger
    3. Save -> replace the stored ledger
    4. Audit -> one event per change, sharing a correlation id

    Errors from the matching core (not found, amount mismatch) are
    audited and re-raised unchanged; nothing is saved.
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        settings: Optional[BillMatchingSettings] = None,
        audit_logger: Optional[AuditLogger] = None,
        manual_tolerance: Optional[Decimal] = None,
        suggestion_floor: Optional[int] = None,
    ):
        self._storage = storage
        self._audit_logger = audit_logger

        if settings is None or manual_tolerance is None or suggestion_floor is None:
            app_settings = get_settings()
            settings = settings or app_settings.matching
            if manual_tolerance is None:
                manual_tolerance = app_settings.app.manual_match_tolerance
            if suggestion_floor is None:
                suggestion_floor = app_settings.app.suggestion_floor_score

        self._settings = settings
        self._manual_tolerance = manual_tolerance
        self._suggestion_floor = suggestion_floor

    @property
    def settings(self) -> BillMatchingSettings:
        return self._settings

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def load_entries(self, correlation_id: Optional[UUID] = None) -> list[LedgerEntry]:
        try:
            entries = self._storage.load_entries()
        except StorageError as e:
            if self._audit_logger:
                self._audit_logger.log_error(
                    error_type=type(e).__name__,
                    error_message=str(e),
                    details={"operation": "load_entries"},
                    correlation_id=correlation_id,
                )
            raise

        if self._audit_logger:
            self._audit_logger.log_ledger_loaded(
                entry_count=len(entries),
                bill_count=sum(1 for e in entries if isinstance(e, BillDefinition)),
                correlation_id=correlation_id,
            )
        return entries

    def _save(self, entries: list[LedgerEntry], correlation_id: UUID) -> None:
        try:
            self._storage.save_entries(entries)
        except StorageError as e:
            if self._audit_logger:
                self._audit_logger.log_save_failed(
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

        if self._audit_logger:
            self._audit_logger.log_ledger_saved(
                entry_count=len(entries),
                correlation_id=correlation_id,
            )

    def replace_entries(
        self,
        entries: list[LedgerEntry],
        year: int,
        month: int,
        correlation_id: Optional[UUID] = None,
    ) -> list[LedgerEntry]:
        """
        Store an edited ledger (e.g., after an import) and refresh auto-matches.

        Returns the reconciled ledger that was saved.
        """
        correlation_id = correlation_id or create_correlation_id()
        updated = self._reconcile(entries, year, month, correlation_id)
        self._save(updated, correlation_id)
        return updated

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    def bill_occurrences(self, year: int, month: int) -> list[BillOccurrence]:
        return generate_bill_occurrences(self.load_entries(), year, month)

    def bill_summary(self, year: int, month: int) -> BillSummary:
        return summarize_bill_occurrences(self.bill_occurrences(year, month))

    def unpaid_occurrences(self, year: int, month: int) -> list[BillOccurrence]:
        return get_unpaid_bill_occurrences(self.load_entries(), year, month)

    def unmatched_expenses(self, year: int, month: int) -> list[Transaction]:
        return get_unmatched_expense_transactions(self.load_entries(), year, month)

    def suggested_matches(self, year: int, month: int) -> list[TransactionBillMatch]:
        return get_suggested_matches(
            self.load_entries(),
            year,
            month,
            self._settings,
            floor=self._suggestion_floor,
        )

    # -------------------------------------------------------------------------
    # Reconciliation
    # -------------------------------------------------------------------------

    def _reconcile(
        self,
        entries: list[LedgerEntry],
        year: int,
        month: int,
        correlation_id: UUID,
    ) -> list[LedgerEntry]:
        matches = find_auto_matches(entries, year, month, self._settings)
        if self._audit_logger:
            self._audit_logger.log_reconciliation(
                year=year,
                month=month,
                matches=[_match_summary(m) for m in matches],
                correlation_id=correlation_id,
            )
        if not matches:
            return list(entries)
        return apply_matches(entries, matches)

    def reconcile_month(
        self,
        year: int,
        month: int,
        correlation_id: Optional[UUID] = None,
    ) -> list[LedgerEntry]:
        """Auto-match the stored ledger and save the result."""
        correlation_id = correlation_id or create_correlation_id()
        entries = self.load_entries(correlation_id)
        updated = self._reconcile(entries, year, month, correlation_id)
        if updated != entries:
            self._save(updated, correlation_id)
        return updated

    # -------------------------------------------------------------------------
    # User actions
    # -------------------------------------------------------------------------

    def manual_match(
        self,
        transaction_id: str,
        bill_id: str,
        occurrence_date: Union[date, str],
        tolerance: Optional[Decimal] = None,
        correlation_id: Optional[UUID] = None,
    ) -> list[LedgerEntry]:
        correlation_id = correlation_id or create_correlation_id()
        occurrence_date = as_date(occurrence_date)
        entries = self.load_entries(correlation_id)

        try:
            updated = manual_match(
                entries,
                transaction_id,
                bill_id,
                occurrence_date,
                tolerance=tolerance if tolerance is not None else self._manual_tolerance,
            )
        except MatchingError as e:
            if self._audit_logger:
                self._audit_logger.log_manual_match_rejected(
                    transaction_id=transaction_id,
                    bill_id=bill_id,
                    reason=str(e),
                    correlation_id=correlation_id,
                )
            raise

        self._save(updated, correlation_id)
        if self._audit_logger:
            self._audit_logger.log_manual_match(
                transaction_id=transaction_id,
                bill_id=bill_id,
                occurrence_date=occurrence_date,
                correlation_id=correlation_id,
            )
        return updated

    def _reject(
        self,
        action: str,
        entity_type: str,
        entity_id: str,
        error: MatchingError,
        correlation_id: UUID,
    ) -> None:
        if self._audit_logger:
            self._audit_logger.log_action_rejected(
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                reason=str(error),
                correlation_id=correlation_id,
            )

    def unmatch(
        self,
        transaction_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> list[LedgerEntry]:
        correlation_id = correlation_id or create_correlation_id()
        entries = self.load_entries(correlation_id)

        try:
            _, transaction = find_transaction(entries, transaction_id)
            updated = unmatch(entries, transaction_id)
        except MatchingError as e:
            self._reject("unmatch", "transaction", transaction_id, e, correlation_id)
            raise

        if not transaction.is_matched:
            return updated

        self._save(updated, correlation_id)
        if self._audit_logger:
            self._audit_logger.log_unmatched(
                transaction_id=transaction_id,
                bill_id=transaction.matched_to_bill_id,
                correlation_id=correlation_id,
            )
        return updated

    def toggle_paid(
        self,
        bill_id: str,
        occurrence_date: Union[date, str],
        correlation_id: Optional[UUID] = None,
    ) -> list[LedgerEntry]:
        correlation_id = correlation_id or create_correlation_id()
        occurrence_date = as_date(occurrence_date)
        entries = self.load_entries(correlation_id)

        try:
            updated = toggle_occurrence_paid(entries, bill_id, occurrence_date)
        except MatchingError as e:
            self._reject("toggle_paid", "bill", bill_id, e, correlation_id)
            raise

        _, bill = find_bill(updated, bill_id)
        paid = find_payment(bill, occurrence_date) is not None

        self._save(updated, correlation_id)
        if self._audit_logger:
            self._audit_logger.log_occurrence_toggled(
                bill_id=bill_id,
                occurrence_date=occurrence_date,
                paid=paid,
                correlation_id=correlation_id,
            )
        return updated


def _match_summary(match: TransactionBillMatch) -> dict:
    return {
        "transaction_id": match.transaction.transaction_key,
        "bill_id": match.matched_bill.bill_id,
        "occurrence_date": match.matched_bill.occurrence_date.isoformat(),
        "score": match.match_score,
    }


def create_app_components(
    use_storage: bool = True,
) -> BillMatchingFlow:
    """
    Factory function to create the application flow.

    Args:
        use_storage: Whether to use the configured JSON files.
                    Set to False for an in-memory ledger (tests, demos).
    """
    if use_storage:
        settings = get_settings().storage
        storage = JsonFileLedgerStorage(settings.data_path, settings.storage_key)
        audit_logger = AuditLogger(JsonLinesAuditStorage(settings.audit_log_path))
    else:
        storage = InMemoryLedgerStorage()
        audit_logger = AuditLogger()  # Local-only logging

    return BillMatchingFlow(
        storage=storage,
        audit_logger=audit_logger,
    )
