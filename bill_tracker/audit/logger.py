"""
Audit Logger

DESIGN DECISION: Every ledger-changing action is logged.
This provides:
1. A record of which payments were auto-matched and which were manual
2. Debugging capability when a match looks wrong
3. History the user can review

The audit logger:
- Is synchronous, like the rest of the system (no suspension points)
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

from datetime import date
from typing import Optional
from uuid import UUID, uuid4

import structlog

from bill_tracker.models.audit import AuditEvent, AuditEventBuilder
from bill_tracker.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence and user visibility)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger(__name__)

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        elif event.severity.value == "debug":
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def log_ledger_loaded(
        self,
        entry_count: int,
        bill_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.ledger_loaded(
            entry_count=entry_count,
            bill_count=bill_count,
            correlation_id=correlation_id,
        ))

    def log_ledger_saved(
        self,
        entry_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.ledger_saved(
            entry_count=entry_count,
            correlation_id=correlation_id,
        ))

    def log_save_failed(
        self,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.save_failed(
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    def log_reconciliation(
        self,
        year: int,
        month: int,
        matches: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a completed reconciliation pass with the matches it applied."""
        self.log(AuditEventBuilder.reconciliation_completed(
            year=year,
            month=month,
            matches=matches,
            correlation_id=correlation_id,
        ))

    def log_manual_match(
        self,
        transaction_id: str,
        bill_id: str,
        occurrence_date: date,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.manual_match_applied(
            transaction_id=transaction_id,
            bill_id=bill_id,
            occurrence_date=occurrence_date,
            correlation_id=correlation_id,
        ))

    def log_manual_match_rejected(
        self,
        transaction_id: str,
        bill_id: str,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.manual_match_rejected(
            transaction_id=transaction_id,
            bill_id=bill_id,
            reason=reason,
            correlation_id=correlation_id,
        ))

    def log_action_rejected(
        self,
        action: str,
        entity_type: str,
        entity_id: str,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.action_rejected(
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            reason=reason,
            correlation_id=correlation_id,
        ))

    def log_unmatched(
        self,
        transaction_id: str,
        bill_id: Optional[str],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.transaction_unmatched(
            transaction_id=transaction_id,
            bill_id=bill_id,
            correlation_id=correlation_id,
        ))

    def log_occurrence_toggled(
        self,
        bill_id: str,
        occurrence_date: date,
        paid: bool,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.occurrence_toggled(
            bill_id=bill_id,
            occurrence_date=occurrence_date,
            paid=paid,
            correlation_id=correlation_id,
        ))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., a manual match).
    Pass it through all subsequent operations.
    """
    return uuid4()
