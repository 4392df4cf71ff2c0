"""
Audit Models for Bookkeeper

Every significant action (parsing a note, confirming it, saving or
deleting a record, building a statement) is logged for audit purposes.

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Magic notes
    NOTE_PARSED = "note_parsed"
    NOTE_PARSE_FAILED = "note_parse_failed"

    # Human confirmation
    USER_CONFIRMED = "user_confirmed"
    USER_REJECTED = "user_rejected"

    # Validation
    VALIDATION_FAILED = "validation_failed"

    # Persistence
    SALE_SAVED = "sale_saved"
    SALE_UPDATED = "sale_updated"
    SALE_DELETED = "sale_deleted"
    EXPENSE_SAVED = "expense_saved"
    CREDIT_SAVED = "credit_saved"
    CREDIT_UPDATED = "credit_updated"
    CREDIT_DELETED = "credit_deleted"
    CREDIT_PAYMENT_RECORDED = "credit_payment_recorded"

    # Reads
    LEDGER_BUILT = "ledger_built"
    REPORT_GENERATED = "report_generated"

    # System events
    SYSTEM_ERROR = "system_error"
    STORAGE_ERROR = "storage_error"


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
        description="Type of entity (e.g., 'sale', 'credit', 'note')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="ID of the record this event relates to"
    )

    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., parse, confirm, save)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

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
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.note_parsed("sale", "500", correlation_id)
        event = AuditEventBuilder.record_saved("sale", sale.id, "500", correlation_id)
    """

    @staticmethod
    def note_parsed(
        kind: str,
        amount: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.NOTE_PARSED,
            entity_type="note",
            correlation_id=correlation_id,
            description=f"Magic note parsed as {kind} of {amount}",
            details={
                "kind": kind,
                "amount": amount,
            },
            is_user_action=True,
        )

    @staticmethod
    def note_parse_failed(
        reason: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.NOTE_PARSE_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="note",
            correlation_id=correlation_id,
            description=f"Magic note could not be parsed: {reason}",
            details={
                "reason": reason,
            },
            is_user_action=True,
        )

    @staticmethod
    def user_confirmed(
        kind: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_CONFIRMED,
            entity_type="note",
            correlation_id=correlation_id,
            description=f"User confirmed parsed {kind}",
            details={
                "kind": kind,
            },
            is_user_action=True,
        )

    @staticmethod
    def user_rejected(
        reason: Optional[str],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.USER_REJECTED,
            entity_type="note",
            correlation_id=correlation_id,
            description="User rejected parsed transaction",
            details={
                "reason": reason or "No reason provided",
            },
            is_user_action=True,
        )

    @staticmethod
    def validation_failed(
        entity_type: str,
        issues: list[dict],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type=entity_type,
            correlation_id=correlation_id,
            description=f"Validation failed with {len(issues)} issues",
            details={
                "issues": issues,
            },
        )

    @staticmethod
    def record_saved(
        entity_type: str,
        entity_id: str,
        amount: str,
        correlation_id: UUID
    ) -> AuditEvent:
        event_type = {
            "sale": AuditEventType.SALE_SAVED,
            "expense": AuditEventType.EXPENSE_SAVED,
            "credit": AuditEventType.CREDIT_SAVED,
        }[entity_type]
        return AuditEvent(
            event_type=event_type,
            entity_type=entity_type,
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"{entity_type.capitalize()} saved: {amount}",
            details={
                "amount": amount,
            },
        )

    @staticmethod
    def sale_updated(
        sale_id: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SALE_UPDATED,
            entity_type="sale",
            entity_id=sale_id,
            correlation_id=correlation_id,
            description="Sale updated",
            is_user_action=True,
        )

    @staticmethod
    def sale_deleted(
        sale_id: str,
        linked_credit_ids: list[str],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SALE_DELETED,
            severity=AuditSeverity.WARNING,
            entity_type="sale",
            entity_id=sale_id,
            correlation_id=correlation_id,
            description=(
                f"Sale deleted with {len(linked_credit_ids)} linked credits"
            ),
            details={
                "linked_credit_ids": linked_credit_ids,
            },
            is_user_action=True,
        )

    @staticmethod
    def credit_updated(
        credit_id: str,
        amount: str,
        status: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CREDIT_UPDATED,
            entity_type="credit",
            entity_id=credit_id,
            correlation_id=correlation_id,
            description=f"Credit updated to {amount}, now {status}",
            details={
                "amount": amount,
                "status": status,
            },
            is_user_action=True,
        )

    @staticmethod
    def credit_deleted(
        credit_id: str,
        sale_id: Optional[str],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CREDIT_DELETED,
            severity=AuditSeverity.WARNING,
            entity_type="credit",
            entity_id=credit_id,
            correlation_id=correlation_id,
            description=(
                f"Credit deleted with sale {sale_id}" if sale_id else "Credit deleted"
            ),
            details={
                "linked_sale_id": sale_id,
            },
            is_user_action=True,
        )

    @staticmethod
    def credit_payment_recorded(
        credit_id: str,
        amount: str,
        status: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CREDIT_PAYMENT_RECORDED,
            entity_type="credit",
            entity_id=credit_id,
            correlation_id=correlation_id,
            description=f"Payment of {amount} recorded, credit now {status}",
            details={
                "amount": amount,
                "status": status,
            },
            is_user_action=True,
        )

    @staticmethod
    def ledger_built(
        party_name: str,
        party_role: str,
        entry_count: int,
        final_balance: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_BUILT,
            severity=AuditSeverity.DEBUG,
            entity_type="party",
            correlation_id=correlation_id,
            description=f"Statement built for {party_role} {party_name}",
            details={
                "entry_count": entry_count,
                "final_balance": final_balance,
            },
        )

    @staticmethod
    def report_generated(
        date_from: Optional[str],
        date_to: Optional[str],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REPORT_GENERATED,
            severity=AuditSeverity.DEBUG,
            entity_type="report",
            correlation_id=correlation_id,
            description="Period report generated",
            details={
                "date_from": date_from,
                "date_to": date_to,
            },
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

    @staticmethod
    def storage_error(
        operation: str,
        error_message: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"Record store error during {operation}",
            error_message=error_message,
            details={
                "operation": operation,
            },
            correlation_id=correlation_id,
        )
