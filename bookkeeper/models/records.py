"""
Record Models for Bookkeeper

These models define the canonical shapes of the records owned by the
external store. The core only reads snapshots of them and returns new
derived values; it never mutates a record in place.

DESIGN DECISION: Legacy shapes (records carrying only `amount`, or only one
of `totalAmount`/`paidAmount`) never reach these models directly. They are
normalised once by `bookkeeper.snapshot.migration`, so consumers never branch
on field presence.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class PaymentMethod(str, Enum):
    """
    How money changed hands.

    Older data stored "UPI"; migration maps it to DIGITAL.
    """
    CASH = "Cash"
    DIGITAL = "Digital"


class CreditDirection(str, Enum):
    """Who owes whom on a credit record."""
    GIVEN = "given"  # Business lent money / goods, party owes the business
    TAKEN = "taken"  # Business borrowed, business owes the party


class CreditStatus(str, Enum):
    """Settlement status of a credit."""
    PENDING = "pending"
    PAID = "paid"


# =============================================================================
# PERSISTED RECORDS
# =============================================================================

class SaleRecord(BaseModel):
    """
    A sale to a customer.

    `paid_amount` is what the customer paid at the time of the sale.
    Anything less than `total_amount` is an outstanding obligation; it is
    derived on read (see `bookkeeper.ledger.reconciliation`), never stored
    as a separate credit.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(..., min_length=1)
    date: date
    counterparty_name: str = Field(
        default="",
        max_length=200,
        description="Customer name (empty for anonymous walk-in sales)"
    )
    total_amount: Decimal = Field(..., ge=0)
    paid_amount: Decimal = Field(..., ge=0)
    payment_method: PaymentMethod = PaymentMethod.CASH
    note: str = Field(default="", max_length=1000)
    invoice_number: Optional[str] = Field(default=None, max_length=50)

    @model_validator(mode='after')
    def validate_paid_amount(self) -> 'SaleRecord':
        """Paid amount is bounded by the total."""
        if self.paid_amount > self.total_amount:
            raise ValueError("Paid amount cannot exceed total amount")
        return self

    @property
    def outstanding_amount(self) -> Decimal:
        return self.total_amount - self.paid_amount


class ExpenseRecord(BaseModel):
    """Money the business paid out, optionally to a named vendor."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(..., min_length=1)
    date: date
    counterparty_name: str = Field(
        default="",
        max_length=200,
        description="Vendor name"
    )
    category: str = Field(default="Other", min_length=1, max_length=50)
    amount: Decimal = Field(..., ge=0)
    note: str = Field(default="", max_length=1000)
    payment_method: PaymentMethod = PaymentMethod.CASH


class CreditPayment(BaseModel):
    """A single repayment recorded against a credit."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0)
    date: date
    payment_method: PaymentMethod = PaymentMethod.CASH
    note: Optional[str] = Field(default=None, max_length=500)


class CreditRecord(BaseModel):
    """
    Money lent to (given) or borrowed from (taken) a party.

    `paid_amount` is the cumulative total of repayments. The status is
    fully determined by the amounts: PAID iff paid_amount >= amount.

    `linked_sale_id` only appears on credits written by older versions that
    materialised partial-payment sales as credits. New code never sets it.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(..., min_length=1)
    date: date
    party: str = Field(..., min_length=1, max_length=200)
    direction: CreditDirection
    amount: Decimal = Field(..., ge=0)
    paid_amount: Decimal = Field(default=Decimal("0"), ge=0)
    status: CreditStatus = CreditStatus.PENDING
    payments: list[CreditPayment] = Field(default_factory=list)
    linked_sale_id: Optional[str] = None

    @staticmethod
    def settlement_status(amount: Decimal, paid_amount: Decimal) -> CreditStatus:
        """Status implied by the amounts."""
        return CreditStatus.PAID if paid_amount >= amount else CreditStatus.PENDING

    @model_validator(mode='after')
    def validate_settlement(self) -> 'CreditRecord':
        """Keep paid amount and status consistent."""
        if self.paid_amount > self.amount:
            raise ValueError("Paid amount cannot exceed credit amount")
        expected = self.settlement_status(self.amount, self.paid_amount)
        if self.status != expected:
            raise ValueError(
                f"Credit status must be '{expected.value}' when "
                f"{self.paid_amount} of {self.amount} is paid"
            )
        return self

    @property
    def remaining_amount(self) -> Decimal:
        return self.amount - self.paid_amount


class Product(BaseModel):
    """Catalog item used to price magic notes like '3 rice'."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=200)
    unit_price: Decimal = Field(..., ge=0)
    stock: Optional[int] = None


class RecordSnapshot(BaseModel):
    """
    Immutable, fully normalised view of everything the store holds.

    Every core operation takes one of these explicitly; nothing reads a
    global. Use `RecordSnapshot.from_raw` for data that may contain legacy
    shapes.
    """
    model_config = ConfigDict(frozen=True)

    sales: tuple[SaleRecord, ...] = ()
    expenses: tuple[ExpenseRecord, ...] = ()
    credits: tuple[CreditRecord, ...] = ()
    products: tuple[Product, ...] = ()

    @classmethod
    def from_raw(
        cls,
        sales: Optional[list[dict]] = None,
        expenses: Optional[list[dict]] = None,
        credits: Optional[list[dict]] = None,
        products: Optional[list[dict]] = None,
    ) -> 'RecordSnapshot':
        """Build a snapshot from raw store payloads, migrating legacy shapes."""
        from bookkeeper.snapshot.migration import load_snapshot

        return load_snapshot(
            sales=sales or [],
            expenses=expenses or [],
            credits=credits or [],
            products=products or [],
        )


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'suspicious_value')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """
    Result of validating a record before it is handed to the store.

    Errors block the save; warnings are shown but do not block.
    """

    is_valid: bool = Field(
        ...,
        description="True when there are no error-level issues"
    )
    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )
    warnings: list[str] = Field(
        default_factory=list,
        description="Non-blocking warnings"
    )

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")
