"""
Parsing Models

Results of the magic-note parser and the arithmetic evaluator.

CRITICAL: A ParsedTransaction is a PROPOSAL. The caller shows it to the
user, and only a confirmed proposal is turned into a record. Failures are
values (ParseFailure, ExpressionError), never exceptions.
"""

from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from bookkeeper.models.records import CreditDirection, PaymentMethod


class TransactionKind(str, Enum):
    """What kind of record a note describes."""
    SALE = "sale"
    EXPENSE = "expense"
    CREDIT = "credit"


class ParseFailureReason(str, Enum):
    """Why a note could not be turned into a transaction."""
    EMPTY_INPUT = "empty_input"
    NOTE_TOO_LONG = "note_too_long"
    UNKNOWN_INTENT = "unknown_intent"
    MISSING_AMOUNT = "missing_amount"
    INTERNAL_ERROR = "internal_error"


class ExpressionErrorKind(str, Enum):
    """Why an arithmetic expression was rejected."""
    INVALID_EXPRESSION = "invalid_expression"
    NON_FINITE_RESULT = "non_finite_result"


class ParsedTransaction(BaseModel):
    """A structured transaction extracted from free text."""
    model_config = ConfigDict(frozen=True)

    kind: TransactionKind
    amount: Decimal = Field(..., gt=0)
    paid_amount: Optional[Decimal] = Field(
        default=None,
        ge=0,
        description="Sales only: amount paid now (notes describe fully paid sales)"
    )
    party: Optional[str] = Field(
        default=None,
        description="Counter-party; None when the note names nobody"
    )
    category: Optional[str] = None
    payment_method: PaymentMethod = PaymentMethod.CASH
    credit_direction: Optional[CreditDirection] = None
    note: Optional[str] = None
    quantity: Optional[Decimal] = None
    product_id: Optional[str] = None


class ParseFailure(BaseModel):
    """
    The note could not be parsed.

    Carries no partial data: the caller shows retry guidance instead.
    """
    model_config = ConfigDict(frozen=True)

    reason: ParseFailureReason
    message: str


class ExpressionError(BaseModel):
    """An arithmetic expression that could not be evaluated."""
    model_config = ConfigDict(frozen=True)

    kind: ExpressionErrorKind
    message: str
    expression: str
