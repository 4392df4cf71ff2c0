"""
Record Factory

Turns confirmed input into records ready for the store:
- a confirmed ParsedTransaction from a magic note (`build_record`)
- a sale typed into the sale form, whose amount fields accept
  arithmetic such as "50*8" (`prepare_sale`, `revise_sale`)
- an edit to a stored credit (`revise_credit`)

CRITICAL: Only call `build_record` AFTER the user has confirmed the
parsed transaction.

Creating or editing a sale never creates a credit. The unpaid part of a
sale is derived on read by `bookkeeper.ledger.reconciliation`.
"""

import re
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional, Union
from uuid import uuid4

import structlog

from bookkeeper.config import get_settings
from bookkeeper.models.parsing import (
    ExpressionError,
    ExpressionErrorKind,
    ParsedTransaction,
    TransactionKind,
)
from bookkeeper.models.records import (
    CreditDirection,
    CreditRecord,
    ExpenseRecord,
    PaymentMethod,
    SaleRecord,
    ValidationIssue,
    ValidationResult,
)
from bookkeeper.parsing.expression import ExpressionEvaluator
from bookkeeper.parsing.note_parser import DEFAULT_EXPENSE_CATEGORY
from bookkeeper.validation.validator import RecordValidator


logger = structlog.get_logger(__name__)

_PLAIN_NUMBER = re.compile(r"^\d+(?:\.\d+)?$")

AnyRecord = Union[SaleRecord, ExpenseRecord, CreditRecord]


def new_record_id() -> str:
    return uuid4().hex


def resolve_amount_input(
    value: Union[str, int, Decimal, None],
    evaluator: Optional[ExpressionEvaluator] = None,
) -> Union[Decimal, ExpressionError, None]:
    """
    Read an amount field.

    Returns:
        None for a blank field, a Decimal for a plain number or a valid
        expression, ExpressionError otherwise
    """
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        return Decimal(value)

    text = str(value).strip()
    if not text:
        return None
    if _PLAIN_NUMBER.match(text):
        try:
            return Decimal(text)
        except InvalidOperation:
            pass
    return (evaluator or ExpressionEvaluator()).evaluate(text)


def _expression_issue(field: str, error: ExpressionError) -> ValidationResult:
    message = (
        "Amount is too large to calculate"
        if error.kind == ExpressionErrorKind.NON_FINITE_RESULT
        else f"Could not calculate '{error.expression}'"
    )
    issue = ValidationIssue(
        field=field,
        issue_type="invalid_value",
        message=message,
        severity="error",
        suggested_fix="Use numbers with + - * / and brackets, e.g. 50*8",
    )
    return ValidationResult(is_valid=False, issues=[issue])


def prepare_sale(
    total_input: Union[str, int, Decimal, None],
    paid_input: Union[str, int, Decimal, None] = None,
    customer_name: str = "",
    sale_date: Optional[date] = None,
    payment_method: PaymentMethod = PaymentMethod.CASH,
    note: str = "",
    invoice_number: Optional[str] = None,
    record_id: Optional[str] = None,
    validator: Optional[RecordValidator] = None,
    evaluator: Optional[ExpressionEvaluator] = None,
) -> tuple[Optional[SaleRecord], ValidationResult]:
    """
    Validate sale form input and build the SaleRecord to create.

    A blank paid field means the sale was paid in full.

    Returns:
        (sale, result); sale is None when result has errors
    """
    total = resolve_amount_input(total_input, evaluator)
    if isinstance(total, ExpressionError):
        return None, _expression_issue("total_amount", total)

    paid = resolve_amount_input(paid_input, evaluator)
    if isinstance(paid, ExpressionError):
        return None, _expression_issue("paid_amount", paid)

    sale_date = sale_date or date.today()
    validator = validator or RecordValidator()
    result = validator.validate_sale(total, paid, customer_name, sale_date)
    if not result.is_valid:
        return None, result

    sale = SaleRecord(
        id=record_id or new_record_id(),
        date=sale_date,
        counterparty_name=customer_name,
        total_amount=total,
        paid_amount=total if paid is None else paid,
        payment_method=payment_method,
        note=note,
        invoice_number=invoice_number,
    )
    return sale, result


def revise_sale(
    existing: SaleRecord,
    total_input: Union[str, int, Decimal, None] = None,
    paid_input: Union[str, int, Decimal, None] = None,
    customer_name: Optional[str] = None,
    sale_date: Optional[date] = None,
    payment_method: Optional[PaymentMethod] = None,
    note: Optional[str] = None,
    validator: Optional[RecordValidator] = None,
    evaluator: Optional[ExpressionEvaluator] = None,
) -> tuple[Optional[SaleRecord], ValidationResult]:
    """
    Apply an edit to an existing sale.

    Fields left as None keep their current value. The sale keeps its id
    and invoice number.
    """
    return prepare_sale(
        total_input=existing.total_amount if total_input is None else total_input,
        paid_input=existing.paid_amount if paid_input is None else paid_input,
        customer_name=existing.counterparty_name if customer_name is None else customer_name,
        sale_date=sale_date or existing.date,
        payment_method=payment_method or existing.payment_method,
        note=existing.note if note is None else note,
        invoice_number=existing.invoice_number,
        record_id=existing.id,
        validator=validator,
        evaluator=evaluator,
    )


def revise_credit(
    existing: CreditRecord,
    amount_input: Union[str, int, Decimal, None] = None,
    party: Optional[str] = None,
    direction: Optional[CreditDirection] = None,
    credit_date: Optional[date] = None,
    validator: Optional[RecordValidator] = None,
    evaluator: Optional[ExpressionEvaluator] = None,
) -> tuple[Optional[CreditRecord], ValidationResult]:
    """
    Apply an edit to an existing credit.

    Fields left as None keep their current value. Repayments are kept and
    the status is re-derived from the new amount. Callers must refuse
    credits with a `linked_sale_id` before getting here.

    Returns:
        (credit, result); credit is None when result has errors
    """
    amount = resolve_amount_input(
        existing.amount if amount_input is None else amount_input,
        evaluator,
    )
    if isinstance(amount, ExpressionError):
        return None, _expression_issue("amount", amount)

    party = existing.party if party is None else party
    credit_date = credit_date or existing.date
    validator = validator or RecordValidator()
    result = validator.validate_credit(
        amount,
        party,
        credit_date,
        already_paid=existing.paid_amount,
    )
    if not result.is_valid:
        return None, result

    credit = CreditRecord.model_validate({
        **existing.model_dump(),
        "amount": amount,
        "party": party.strip(),
        "direction": direction or existing.direction,
        "date": credit_date,
        "status": CreditRecord.settlement_status(amount, existing.paid_amount),
    })
    return credit, result


def build_record(
    parsed: ParsedTransaction,
    record_id: Optional[str] = None,
    on_date: Optional[date] = None,
) -> AnyRecord:
    """
    Turn a CONFIRMED parsed transaction into a record.

    Missing parties get the configured defaults: walk-in customer for
    sales, unknown party for credits. Expenses keep an empty vendor.
    """
    settings = get_settings().ledger
    record_id = record_id or new_record_id()
    on_date = on_date or date.today()

    if parsed.kind == TransactionKind.SALE:
        record = SaleRecord(
            id=record_id,
            date=on_date,
            counterparty_name=parsed.party or settings.default_customer_name,
            total_amount=parsed.amount,
            paid_amount=parsed.amount if parsed.paid_amount is None else parsed.paid_amount,
            payment_method=parsed.payment_method,
            note=parsed.note or "",
        )
    elif parsed.kind == TransactionKind.EXPENSE:
        record = ExpenseRecord(
            id=record_id,
            date=on_date,
            counterparty_name=parsed.party or "",
            category=parsed.category or DEFAULT_EXPENSE_CATEGORY,
            amount=parsed.amount,
            note=parsed.note or "",
            payment_method=parsed.payment_method,
        )
    else:
        record = CreditRecord(
            id=record_id,
            date=on_date,
            party=parsed.party or settings.default_credit_party,
            direction=parsed.credit_direction or CreditDirection.GIVEN,
            amount=parsed.amount,
        )

    logger.debug(
        "record_built",
        kind=parsed.kind.value,
        record_id=record_id,
    )
    return record
