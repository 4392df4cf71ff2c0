"""
Audit Logger

Every parse, confirmation, save, edit, deletion and repayment becomes an
AuditEvent. Events from one user action share a correlation ID, so a
deleted sale can be traced together with the linked credits removed with it.

Events always go to the structured log. Writing to the audit store is
best effort: a store failure is logged and reported as False, and the
bookkeeping operation that caused the event still completes.
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from bookkeeper.config import get_settings
from bookkeeper.models.audit import AuditEvent, AuditEventBuilder
from bookkeeper.models.ledger import PartyStatement
from bookkeeper.services.storage import AuditStorageInterface


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


def configure_logging(level: Optional[str] = None) -> None:
    """Route structlog output through stdlib logging at the configured level."""
    logging.basicConfig(
        format="%(message)s",
        level=level or get_settings().app.log_level,
    )


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An audit store, when one is configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("bookkeeper.audit")

    async def log(self, event: AuditEvent) -> bool:
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
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_note_parsed(
        self,
        kind: str,
        amount: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.note_parsed(kind, amount, correlation_id))

    async def log_note_parse_failed(
        self,
        reason: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.note_parse_failed(reason, correlation_id))

    async def log_user_confirmed(
        self,
        kind: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.user_confirmed(kind, correlation_id))

    async def log_user_rejected(
        self,
        reason: Optional[str],
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.user_rejected(reason, correlation_id))

    async def log_validation_failed(
        self,
        entity_type: str,
        issues: list[dict],
        correlation_id: UUID,
    ) -> None:
        await self.log(
            AuditEventBuilder.validation_failed(entity_type, issues, correlation_id)
        )

    async def log_record_saved(
        self,
        entity_type: str,
        entity_id: str,
        amount: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(
            AuditEventBuilder.record_saved(entity_type, entity_id, amount, correlation_id)
        )

    async def log_sale_updated(
        self,
        sale_id: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.sale_updated(sale_id, correlation_id))

    async def log_sale_deleted(
        self,
        sale_id: str,
        linked_credit_ids: list[str],
        correlation_id: UUID,
    ) -> None:
        await self.log(
            AuditEventBuilder.sale_deleted(sale_id, linked_credit_ids, correlation_id)
        )

    async def log_credit_updated(
        self,
        credit_id: str,
        amount: str,
        status: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(
            AuditEventBuilder.credit_updated(credit_id, amount, status, correlation_id)
        )

    async def log_credit_deleted(
        self,
        credit_id: str,
        sale_id: Optional[str],
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.credit_deleted(credit_id, sale_id, correlation_id))

    async def log_credit_payment(
        self,
        credit_id: str,
        amount: str,
        status: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(
            AuditEventBuilder.credit_payment_recorded(
                credit_id, amount, status, correlation_id
            )
        )

    async def log_ledger_built(
        self,
        statement: PartyStatement,
        correlation_id: UUID,
    ) -> None:
        await self.log(
            AuditEventBuilder.ledger_built(
                party_name=statement.party_name,
                party_role=statement.party_role.value if statement.party_role else "unknown",
                entry_count=len(statement.entries),
                final_balance=str(statement.final_balance),
                correlation_id=correlation_id,
            )
        )

    async def log_report_generated(
        self,
        date_from: Optional[str],
        date_to: Optional[str],
        correlation_id: UUID,
    ) -> None:
        await self.log(
            AuditEventBuilder.report_generated(date_from, date_to, correlation_id)
        )

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        event = AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_storage_error(
        self,
        operation: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(
            AuditEventBuilder.storage_error(operation, error_message, correlation_id)
        )


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., typing a magic note).
    Pass it through all subsequent operations.
    """
    return uuid4()
