"""
Credit Repayments and Guards

Records are never changed in place: applying a payment returns a NEW
CreditRecord with the payment appended, the cumulative paid amount
updated and the status re-derived.

Credits linked to a sale may be repaid, but never edited or deleted on
their own (see `ensure_not_linked`).
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from bookkeeper.models.records import (
    CreditPayment,
    CreditRecord,
    PaymentMethod,
)
from bookkeeper.recording.factory import new_record_id


class CreditPaymentError(ValueError):
    """A repayment that cannot be applied to the credit."""
    pass


class LinkedCreditError(ValueError):
    """
    A credit written for a sale by an older version.

    It can only change through its sale: editing the sale changes what is
    owed, deleting the sale removes the credit.
    """

    def __init__(self, credit: CreditRecord, message: str):
        self.credit_id = credit.id
        self.sale_id = credit.linked_sale_id
        super().__init__(message)


EDIT_LINKED_MESSAGE = (
    "This credit was created from a partial payment sale. Edit the sale instead."
)
DELETE_LINKED_MESSAGE = (
    "This credit is linked to a sale. Delete the sale to remove this credit."
)


def ensure_not_linked(credit: CreditRecord, message: str) -> None:
    """
    Raises:
        LinkedCreditError: `credit` belongs to a sale
    """
    if credit.linked_sale_id is not None:
        raise LinkedCreditError(credit, message)


def apply_credit_payment(
    credit: CreditRecord,
    amount: Decimal,
    payment_date: Optional[date] = None,
    payment_method: PaymentMethod = PaymentMethod.CASH,
    payment_id: Optional[str] = None,
    note: Optional[str] = None,
) -> CreditRecord:
    """
    Return `credit` with one more repayment applied.

    Raises:
        CreditPaymentError: amount is not positive or exceeds what is
                            still owed
    """
    if amount <= 0:
        raise CreditPaymentError("Payment amount must be greater than zero")
    if amount > credit.remaining_amount:
        raise CreditPaymentError(
            f"Payment ({amount}) exceeds the remaining balance "
            f"({credit.remaining_amount})"
        )

    payment = CreditPayment(
        id=payment_id or new_record_id(),
        amount=amount,
        date=payment_date or date.today(),
        payment_method=payment_method,
        note=note,
    )
    paid = credit.paid_amount + amount

    return CreditRecord(
        id=credit.id,
        date=credit.date,
        party=credit.party,
        direction=credit.direction,
        amount=credit.amount,
        paid_amount=paid,
        status=CreditRecord.settlement_status(credit.amount, paid),
        payments=[*credit.payments, payment],
        linked_sale_id=credit.linked_sale_id,
    )
