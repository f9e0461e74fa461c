"""
Audit Models for Bill Tracker

Every user-visible change to the ledger is logged for audit purposes.
This provides:
1. Traceability of which payments were auto-matched and which were manual
2. Debugging information when a match looks wrong
3. The ability to reconstruct how a bill came to be marked paid

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Every ledger-changing operation has its own event type.
    """
    # Persistence
    LEDGER_LOADED = "ledger_loaded"
    LEDGER_SAVED = "ledger_saved"
    SAVE_FAILED = "save_failed"

    # Automatic matching
    RECONCILIATION_COMPLETED = "reconciliation_completed"

    # User actions
    MANUAL_MATCH_APPLIED = "manual_match_applied"
    MANUAL_MATCH_REJECTED = "manual_match_rejected"
    ACTION_REJECTED = "action_rejected"
    TRANSACTION_UNMATCHED = "transaction_unmatched"
    OCCURRENCE_MARKED_PAID = "occurrence_marked_paid"
    OCCURRENCE_MARKED_UNPAID = "occurrence_marked_unpaid"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'bill', 'transaction', 'ledger')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="Ledger id of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., load, reconcile, save)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )

    # Additional data (event-specific)
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_code: Optional[str] = None
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_json_line(self) -> str:
        """Serialize as one line of the JSON lines audit log."""
        return json.dumps(self.model_dump(mode="json"), sort_keys=True)


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.manual_match_applied(transaction_id, bill_id, ...)
        event = AuditEventBuilder.ledger_saved(entry_count, correlation_id)
    """

    @staticmethod
    def ledger_loaded(
        entry_count: int,
        bill_count: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_LOADED,
            severity=AuditSeverity.DEBUG,
            entity_type="ledger",
            correlation_id=correlation_id,
            description=f"Ledger loaded: {entry_count} entries ({bill_count} bills)",
            details={
                "entry_count": entry_count,
                "bill_count": bill_count,
            },
        )

    @staticmethod
    def ledger_saved(
        entry_count: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_SAVED,
            entity_type="ledger",
            correlation_id=correlation_id,
            description=f"Ledger saved: {entry_count} entries",
            details={
                "entry_count": entry_count,
            },
        )

    @staticmethod
    def save_failed(
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="ledger",
            correlation_id=correlation_id,
            description="Ledger could not be saved",
            error_message=error_message,
        )

    @staticmethod
    def reconciliation_completed(
        year: int,
        month: int,
        matches: list[dict],
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECONCILIATION_COMPLETED,
            entity_type="ledger",
            correlation_id=correlation_id,
            description=f"Reconciled {year}-{month:02d}: {len(matches)} new auto-matches",
            details={
                "year": year,
                "month": month,
                "matches": matches,
            },
        )

    @staticmethod
    def manual_match_applied(
        transaction_id: str,
        bill_id: str,
        occurrence_date: date,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MANUAL_MATCH_APPLIED,
            entity_type="bill",
            entity_id=bill_id,
            correlation_id=correlation_id,
            description=f"Transaction {transaction_id} linked to bill occurrence {occurrence_date.isoformat()}",
            details={
                "transaction_id": transaction_id,
                "occurrence_date": occurrence_date.isoformat(),
            },
            is_user_action=True,
        )

    @staticmethod
    def manual_match_rejected(
        transaction_id: str,
        bill_id: str,
        reason: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MANUAL_MATCH_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type="bill",
            entity_id=bill_id,
            correlation_id=correlation_id,
            description="Manual match rejected",
            details={
                "transaction_id": transaction_id,
            },
            error_message=reason,
            is_user_action=True,
        )

    @staticmethod
    def action_rejected(
        action: str,
        entity_type: str,
        entity_id: str,
        reason: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        """A user action (unmatch, toggle paid) the matching core refused."""
        return AuditEvent(
            event_type=AuditEventType.ACTION_REJECTED,
            severity=AuditSeverity.WARNING,
            entity_type=entity_type,
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"{action} rejected",
            details={
                "action": action,
            },
            error_message=reason,
            is_user_action=True,
        )

    @staticmethod
    def transaction_unmatched(
        transaction_id: str,
        bill_id: Optional[str],
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_UNMATCHED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Transaction {transaction_id} unlinked from its bill",
            details={
                "bill_id": bill_id,
            },
            is_user_action=True,
        )

    @staticmethod
    def occurrence_toggled(
        bill_id: str,
        occurrence_date: date,
        paid: bool,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        event_type = (
            AuditEventType.OCCURRENCE_MARKED_PAID
            if paid
            else AuditEventType.OCCURRENCE_MARKED_UNPAID
        )
        return AuditEvent(
            event_type=event_type,
            entity_type="bill",
            entity_id=bill_id,
            correlation_id=correlation_id,
            description=(
                f"Occurrence {occurrence_date.isoformat()} marked "
                f"{'paid' if paid else 'unpaid'}"
            ),
            details={
                "occurrence_date": occurrence_date.isoformat(),
            },
            is_user_action=True,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
