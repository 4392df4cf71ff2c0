"""
Main Orchestrator for Bookkeeper

This module ties together all the components and defines the
end-to-end flows for:
1. Magic notes (text → parse → confirm → validate → save)
2. Sales (form input → validate → save / update / delete)
3. Credit repayments, edits and deletes
4. Statements, receivables and period reports

DESIGN DECISION: The orchestrator enforces the boundaries:
- No parsed note persists without human confirmation
- No invalid record reaches the store
- No sale is deleted (with its linked credits) without explicit confirmation
- No credit is deleted without explicit confirmation, and a credit linked
  to a sale changes only through that sale
- Every step is audited

The core modules it calls are pure; this is the only layer that talks to
the store.
"""

from datetime import date
from decimal import Decimal
from typing import Optional, Union
from uuid import UUID

import structlog

from bookkeeper.audit import AuditLogger, configure_logging, create_correlation_id
from bookkeeper.ledger import (
    build_party_statement,
    plan_sale_deletion,
    summarize_receivables,
)
from bookkeeper.models.ledger import (
    PartyRole,
    PartyStatement,
    ReceivablesSummary,
    SaleDeletionPlan,
)
from bookkeeper.models.parsing import ParsedTransaction, ParseFailure
from bookkeeper.models.records import (
    CreditDirection,
    CreditRecord,
    ExpenseRecord,
    PaymentMethod,
    SaleRecord,
    ValidationResult,
)
from bookkeeper.models.report import PeriodSummary
from bookkeeper.parsing import NoteParser, failure_guidance
from bookkeeper.queries import ReportExecutor
from bookkeeper.recording import (
    DELETE_LINKED_MESSAGE,
    EDIT_LINKED_MESSAGE,
    LinkedCreditError,
    apply_credit_payment,
    build_record,
    ensure_not_linked,
    prepare_sale,
    resolve_amount_input,
    revise_credit,
    revise_sale,
)
from bookkeeper.services.storage import (
    AuditStorageInterface,
    InMemoryAuditStorage,
    InMemoryRecordStore,
    NotFoundError,
    RecordStoreInterface,
    StorageError,
)
from bookkeeper.validation import RecordValidationError, RecordValidator


logger = structlog.get_logger(__name__)


def _issue_dicts(result: ValidationResult) -> list[dict]:
    return [
        {"field": i.field, "type": i.issue_type, "message": i.message}
        for i in result.issues
    ]


class MagicNoteFlow:
    """
    Orchestrates the magic note flow.

    Flow:
    1. Parse → NoteParser proposes a transaction (or explains the failure)
    2. Review → Present to user (PAUSE - require confirmation)
    3. Confirm → User explicitly approves
    4. Validate → Two-stage validation of the built record
    5. Save → Hand the record to the store

    Human confirmation (step 3) is MANDATORY.
    The system NEVER auto-saves.
    """

    def __init__(
        self,
        store: RecordStoreInterface,
        parser: Optional[NoteParser] = None,
        validator: Optional[RecordValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._parser = parser or NoteParser()
        self._validator = validator or RecordValidator()
        self._audit_logger = audit_logger

    async def parse(
        self,
        text: str,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Union[ParsedTransaction, ParseFailure], str]:
        """
        Parse a note against the current product catalog.

        Returns:
            (result, user_message)
        """
        correlation_id = correlation_id or create_correlation_id()

        snapshot = await self._store.load_snapshot()
        result = self._parser.parse(text, snapshot.products)

        if isinstance(result, ParseFailure):
            if self._audit_logger:
                await self._audit_logger.log_note_parse_failed(
                    reason=result.reason.value,
                    correlation_id=correlation_id,
                )
            return result, failure_guidance(result)

        if self._audit_logger:
            await self._audit_logger.log_note_parsed(
                kind=result.kind.value,
                amount=str(result.amount),
                correlation_id=correlation_id,
            )
        return result, self.describe(result)

    @staticmethod
    def describe(parsed: ParsedTransaction) -> str:
        """One-line confirmation prompt for the parsed transaction."""
        parts = [f"{parsed.kind.value.capitalize()} of {parsed.amount}"]
        if parsed.party:
            parts.append(f"with {parsed.party}")
        if parsed.category:
            parts.append(f"({parsed.category})")
        if parsed.credit_direction:
            parts.append(f"[{parsed.credit_direction.value}]")
        parts.append(f"via {parsed.payment_method.value}")
        return " ".join(parts) + ". Save this?"

    async def confirm_and_save(
        self,
        parsed: ParsedTransaction,
        on_date: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Union[SaleRecord, ExpenseRecord, CreditRecord], ValidationResult]:
        """
        Build, validate and save the confirmed transaction.

        CRITICAL: This is called ONLY after explicit user confirmation.

        Raises:
            RecordValidationError: The record failed validation; nothing saved
            StorageError: The store rejected the record
        """
        correlation_id = correlation_id or create_correlation_id()

        if self._audit_logger:
            await self._audit_logger.log_user_confirmed(
                kind=parsed.kind.value,
                correlation_id=correlation_id,
            )

        record = build_record(parsed, on_date=on_date)
        entity_type, result = self._validate(record)

        if not result.is_valid:
            if self._audit_logger:
                await self._audit_logger.log_validation_failed(
                    entity_type=entity_type,
                    issues=_issue_dicts(result),
                    correlation_id=correlation_id,
                )
            raise RecordValidationError(result)

        try:
            if entity_type == "sale":
                await self._store.save_sale(record)
            elif entity_type == "expense":
                await self._store.save_expense(record)
            else:
                await self._store.save_credit(record)
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_storage_error(
                    operation=f"save_{entity_type}",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

        if self._audit_logger:
            await self._audit_logger.log_record_saved(
                entity_type=entity_type,
                entity_id=record.id,
                amount=str(parsed.amount),
                correlation_id=correlation_id,
            )
        return record, result

    async def reject(
        self,
        reason: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """
        Record that user rejected the parsed transaction.

        This is called when user chooses not to save after reviewing.
        """
        correlation_id = correlation_id or create_correlation_id()

        if self._audit_logger:
            await self._audit_logger.log_user_rejected(
                reason=reason,
                correlation_id=correlation_id,
            )

    def _validate(
        self,
        record: Union[SaleRecord, ExpenseRecord, CreditRecord],
    ) -> tuple[str, ValidationResult]:
        if isinstance(record, SaleRecord):
            return "sale", self._validator.validate_sale(
                record.total_amount,
                record.paid_amount,
                record.counterparty_name,
                record.date,
            )
        if isinstance(record, ExpenseRecord):
            return "expense", self._validator.validate_expense(
                record.amount,
                record.date,
            )
        return "credit", self._validator.validate_credit(
            record.amount,
            record.party,
            record.date,
        )


class SaleRecordingFlow:
    """
    Orchestrates creating, editing and deleting sales.

    A partially paid sale is saved as a sale only. Its unpaid part is
    derived on read, so nothing else has to be written or kept in sync.
    Only credits written by older versions (linked by sale id) need
    removing when their sale is deleted.
    """

    def __init__(
        self,
        store: RecordStoreInterface,
        validator: Optional[RecordValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._validator = validator or RecordValidator()
        self._audit_logger = audit_logger

    async def create_sale(
        self,
        total_input: Union[str, int, Decimal],
        paid_input: Union[str, int, Decimal, None] = None,
        customer_name: str = "",
        sale_date: Optional[date] = None,
        payment_method: PaymentMethod = PaymentMethod.CASH,
        note: str = "",
        invoice_number: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[SaleRecord, ValidationResult]:
        """
        Validate and save a new sale.

        Raises:
            RecordValidationError: Input failed validation; nothing saved
        """
        correlation_id = correlation_id or create_correlation_id()

        sale, result = prepare_sale(
            total_input=total_input,
            paid_input=paid_input,
            customer_name=customer_name,
            sale_date=sale_date,
            payment_method=payment_method,
            note=note,
            invoice_number=invoice_number,
            validator=self._validator,
        )
        await self._reject_if_invalid(sale, result, correlation_id)

        await self._store.save_sale(sale)

        if self._audit_logger:
            await self._audit_logger.log_record_saved(
                entity_type="sale",
                entity_id=sale.id,
                amount=str(sale.total_amount),
                correlation_id=correlation_id,
            )
        return sale, result

    async def update_sale(
        self,
        sale_id: str,
        total_input: Union[str, int, Decimal, None] = None,
        paid_input: Union[str, int, Decimal, None] = None,
        customer_name: Optional[str] = None,
        sale_date: Optional[date] = None,
        payment_method: Optional[PaymentMethod] = None,
        note: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[SaleRecord, ValidationResult]:
        """
        Apply an edit to a stored sale.

        Raises:
            NotFoundError: No sale with this id
            RecordValidationError: The edit failed validation; nothing saved
        """
        correlation_id = correlation_id or create_correlation_id()

        existing = await self._store.get_sale(sale_id)
        if existing is None:
            raise NotFoundError(f"Sale {sale_id} not found")

        sale, result = revise_sale(
            existing,
            total_input=total_input,
            paid_input=paid_input,
            customer_name=customer_name,
            sale_date=sale_date,
            payment_method=payment_method,
            note=note,
            validator=self._validator,
        )
        await self._reject_if_invalid(sale, result, correlation_id)

        await self._store.update_sale(sale)

        if self._audit_logger:
            await self._audit_logger.log_sale_updated(
                sale_id=sale.id,
                correlation_id=correlation_id,
            )
        return sale, result

    async def plan_deletion(self, sale_id: str) -> SaleDeletionPlan:
        """
        What deleting this sale removes, with the confirmation to show.

        Raises:
            NotFoundError: No sale with this id
        """
        snapshot = await self._store.load_snapshot()
        sale = next((s for s in snapshot.sales if s.id == sale_id), None)
        if sale is None:
            raise NotFoundError(f"Sale {sale_id} not found")
        return plan_sale_deletion(sale, snapshot.credits)

    async def delete_sale(
        self,
        sale_id: str,
        confirmed: bool = False,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """
        Delete a sale and any legacy credits linked to it.

        Nothing is deleted unless `confirmed` is True. The sale goes first,
        then its linked credits: if the sale cannot be deleted nothing has
        changed, and a credit left behind by a later failure still shows
        its full opening amount and repayments. A failed delete is
        reported, never retried.

        Returns:
            True if the sale was deleted
        """
        correlation_id = correlation_id or create_correlation_id()

        if not confirmed:
            logger.info("sale_deletion_not_confirmed", sale_id=sale_id)
            return False

        plan = await self.plan_deletion(sale_id)

        try:
            deleted = await self._store.delete_sale(sale_id)
        except StorageError as e:
            await self._storage_failed("delete_sale", e, correlation_id)
            raise
        if not deleted:
            return False

        if self._audit_logger:
            await self._audit_logger.log_sale_deleted(
                sale_id=sale_id,
                linked_credit_ids=list(plan.linked_credit_ids),
                correlation_id=correlation_id,
            )

        for credit_id in plan.linked_credit_ids:
            try:
                await self._store.delete_credit(credit_id)
            except StorageError as e:
                await self._storage_failed("delete_credit", e, correlation_id)
                raise
            if self._audit_logger:
                await self._audit_logger.log_credit_deleted(
                    credit_id=credit_id,
                    sale_id=sale_id,
                    correlation_id=correlation_id,
                )
        return True

    async def _storage_failed(
        self,
        operation: str,
        error: StorageError,
        correlation_id: UUID,
    ) -> None:
        if self._audit_logger:
            await self._audit_logger.log_storage_error(
                operation=operation,
                error_message=str(error),
                correlation_id=correlation_id,
            )

    async def _reject_if_invalid(
        self,
        sale: Optional[SaleRecord],
        result: ValidationResult,
        correlation_id: UUID,
    ) -> None:
        if sale is not None and result.is_valid:
            return
        if self._audit_logger:
            await self._audit_logger.log_validation_failed(
                entity_type="sale",
                issues=_issue_dicts(result),
                correlation_id=correlation_id,
            )
        raise RecordValidationError(result)


class CreditFlow:
    """Orchestrates repayments, edits and deletes of stored credits."""

    def __init__(
        self,
        store: RecordStoreInterface,
        validator: Optional[RecordValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._validator = validator or RecordValidator()
        self._audit_logger = audit_logger

    async def record_payment(
        self,
        credit_id: str,
        amount_input: Union[str, int, Decimal],
        payment_date: Optional[date] = None,
        payment_method: PaymentMethod = PaymentMethod.CASH,
        note: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> CreditRecord:
        """
        Apply a repayment and save the updated credit.

        Raises:
            NotFoundError: No credit with this id
            RecordValidationError: Amount is invalid or exceeds what is owed
        """
        correlation_id = correlation_id or create_correlation_id()

        credit = await self._store.get_credit(credit_id)
        if credit is None:
            raise NotFoundError(f"Credit {credit_id} not found")

        amount = resolve_amount_input(amount_input)
        amount = amount if isinstance(amount, Decimal) else None
        result = self._validator.validate_credit_payment(credit, amount, payment_date)
        if not result.is_valid:
            if self._audit_logger:
                await self._audit_logger.log_validation_failed(
                    entity_type="credit",
                    issues=_issue_dicts(result),
                    correlation_id=correlation_id,
                )
            raise RecordValidationError(result)

        updated = apply_credit_payment(
            credit,
            amount,
            payment_date=payment_date,
            payment_method=payment_method,
            note=note,
        )
        await self._store.update_credit(updated)

        if self._audit_logger:
            await self._audit_logger.log_credit_payment(
                credit_id=updated.id,
                amount=str(amount),
                status=updated.status.value,
                correlation_id=correlation_id,
            )
        return updated

    async def update_credit(
        self,
        credit_id: str,
        amount_input: Union[str, int, Decimal, None] = None,
        party: Optional[str] = None,
        direction: Optional[CreditDirection] = None,
        credit_date: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[CreditRecord, ValidationResult]:
        """
        Apply an edit to a stored credit.

        Raises:
            NotFoundError: No credit with this id
            LinkedCreditError: The credit belongs to a sale; edit the sale
            RecordValidationError: The edit failed validation; nothing saved
        """
        correlation_id = correlation_id or create_correlation_id()

        credit = await self._get_credit(credit_id)
        self._refuse_linked(credit, EDIT_LINKED_MESSAGE)

        revised, result = revise_credit(
            credit,
            amount_input=amount_input,
            party=party,
            direction=direction,
            credit_date=credit_date,
            validator=self._validator,
        )
        if revised is None or not result.is_valid:
            if self._audit_logger:
                await self._audit_logger.log_validation_failed(
                    entity_type="credit",
                    issues=_issue_dicts(result),
                    correlation_id=correlation_id,
                )
            raise RecordValidationError(result)

        await self._store.update_credit(revised)

        if self._audit_logger:
            await self._audit_logger.log_credit_updated(
                credit_id=revised.id,
                amount=str(revised.amount),
                status=revised.status.value,
                correlation_id=correlation_id,
            )
        return revised, result

    async def delete_credit(
        self,
        credit_id: str,
        confirmed: bool = False,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """
        Delete a credit that does not belong to a sale.

        A linked credit is refused before confirmation is considered.
        Nothing is deleted unless `confirmed` is True.

        Returns:
            True if the credit was deleted

        Raises:
            NotFoundError: No credit with this id
            LinkedCreditError: The credit belongs to a sale; delete the sale
        """
        correlation_id = correlation_id or create_correlation_id()

        credit = await self._get_credit(credit_id)
        self._refuse_linked(credit, DELETE_LINKED_MESSAGE)

        if not confirmed:
            logger.info("credit_deletion_not_confirmed", credit_id=credit_id)
            return False

        try:
            deleted = await self._store.delete_credit(credit_id)
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_storage_error(
                    operation="delete_credit",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

        if deleted and self._audit_logger:
            await self._audit_logger.log_credit_deleted(
                credit_id=credit_id,
                sale_id=None,
                correlation_id=correlation_id,
            )
        return deleted

    async def _get_credit(self, credit_id: str) -> CreditRecord:
        credit = await self._store.get_credit(credit_id)
        if credit is None:
            raise NotFoundError(f"Credit {credit_id} not found")
        return credit

    @staticmethod
    def _refuse_linked(credit: CreditRecord, message: str) -> None:
        try:
            ensure_not_linked(credit, message)
        except LinkedCreditError:
            logger.warning(
                "linked_credit_change_refused",
                credit_id=credit.id,
                sale_id=credit.linked_sale_id,
            )
            raise


class LedgerFlow:
    """
    Read-only views: party statements, receivables and period reports.

    Every call reads a fresh snapshot, so results always reflect the
    store as it is now.
    """

    def __init__(
        self,
        store: RecordStoreInterface,
        report_executor: Optional[ReportExecutor] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._store = store
        self._report_executor = report_executor or ReportExecutor()
        self._audit_logger = audit_logger

    async def party_statement(
        self,
        party_name: str,
        party_role: Union[PartyRole, str],
        correlation_id: Optional[UUID] = None,
    ) -> PartyStatement:
        correlation_id = correlation_id or create_correlation_id()

        snapshot = await self._store.load_snapshot()
        statement = build_party_statement(snapshot, party_name, party_role)

        if self._audit_logger:
            await self._audit_logger.log_ledger_built(statement, correlation_id)
        return statement

    async def receivables(self) -> ReceivablesSummary:
        snapshot = await self._store.load_snapshot()
        return summarize_receivables(snapshot)

    async def period_summary(
        self,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> PeriodSummary:
        correlation_id = correlation_id or create_correlation_id()

        snapshot = await self._store.load_snapshot()
        summary = self._report_executor.summarize_period(snapshot, date_from, date_to)

        if self._audit_logger:
            await self._audit_logger.log_report_generated(
                date_from=date_from.isoformat() if date_from else None,
                date_to=date_to.isoformat() if date_to else None,
                correlation_id=correlation_id,
            )
        return summary


def create_app_components(
    store: Optional[RecordStoreInterface] = None,
    audit_storage: Optional[AuditStorageInterface] = None,
) -> tuple[MagicNoteFlow, SaleRecordingFlow, CreditFlow, LedgerFlow]:
    """
    Factory function to create all application components.

    Args:
        store: The record store. Defaults to an empty in-memory store.
        audit_storage: Where audit events are kept. Defaults to in-memory.

    Returns:
        (magic_note_flow, sale_flow, credit_flow, ledger_flow)
    """
    configure_logging()
    store = store or InMemoryRecordStore()
    audit_logger = AuditLogger(audit_storage or InMemoryAuditStorage())
    validator = RecordValidator()

    magic_note_flow = MagicNoteFlow(
        store=store,
        validator=validator,
        audit_logger=audit_logger,
    )
    sale_flow = SaleRecordingFlow(
        store=store,
        validator=validator,
        audit_logger=audit_logger,
    )
    credit_flow = CreditFlow(
        store=store,
        validator=validator,
        audit_logger=audit_logger,
    )
    ledger_flow = LedgerFlow(
        store=store,
        audit_logger=audit_logger,
    )

    return magic_note_flow, sale_flow, credit_flow, ledger_flow
