"""
Partial-Payment Reconciliation

When a sale is paid only in part, the unpaid remainder is money the
customer owes, exactly like a "given" credit.

DESIGN DECISION: The remainder is derived VIRTUALLY on every read. No
credit record is ever created for it:
- create / update of a sale only writes the sale
- the ledger builder's sale expansion (invoice CREDIT, payment DEBIT)
  already yields the remainder as the party's balance
- receivable totals come from `summarize_receivables` below

Older versions DID persist a credit with `linked_sale_id` for each partial
sale. Those records are still honoured so nothing is counted twice:
- the ledger skips their opening entry (the sale provides it) but keeps
  their repayments
- receivables use the linked credit's remaining amount instead of the
  sale's outstanding amount
- deleting the sale cascades to them (see `plan_sale_deletion`)
"""

from decimal import Decimal
from typing import Iterable, Optional

from bookkeeper.models.ledger import (
    ImplicitCredit,
    ReceivablesSummary,
    SaleDeletionPlan,
)
from bookkeeper.models.records import (
    CreditDirection,
    CreditRecord,
    CreditStatus,
    RecordSnapshot,
    SaleRecord,
)


ZERO = Decimal("0")


def outstanding_amount(sale: SaleRecord) -> Decimal:
    """What the customer still owes on this sale as recorded."""
    return max(sale.total_amount - sale.paid_amount, ZERO)


def is_partially_paid(sale: SaleRecord) -> bool:
    return outstanding_amount(sale) > ZERO


def derive_implicit_credit(sale: SaleRecord) -> Optional[ImplicitCredit]:
    """The credit a partial sale implies, or None when it is fully paid."""
    remainder = outstanding_amount(sale)
    if remainder <= ZERO:
        return None
    return ImplicitCredit(
        sale_id=sale.id,
        party=sale.counterparty_name,
        date=sale.date,
        direction=CreditDirection.GIVEN,
        amount=remainder,
    )


def implicit_credits(sales: Iterable[SaleRecord]) -> list[ImplicitCredit]:
    return [
        credit
        for credit in (derive_implicit_credit(sale) for sale in sales)
        if credit is not None
    ]


def linked_credits(sale_id: str, credits: Iterable[CreditRecord]) -> list[CreditRecord]:
    """Legacy credits persisted for `sale_id`."""
    return [credit for credit in credits if credit.linked_sale_id == sale_id]


def plan_sale_deletion(
    sale: SaleRecord,
    credits: Iterable[CreditRecord],
) -> SaleDeletionPlan:
    """
    Work out what deleting `sale` removes.

    The plan is shown to the user for an explicit, destructive
    confirmation before anything is deleted.
    """
    linked_ids = tuple(credit.id for credit in linked_credits(sale.id, credits))
    if linked_ids:
        message = "This will also delete any linked credit. Continue?"
    else:
        message = "Delete this sale? This cannot be undone."
    return SaleDeletionPlan(
        sale_id=sale.id,
        linked_credit_ids=linked_ids,
        confirmation_message=message,
    )


def summarize_receivables(snapshot: RecordSnapshot) -> ReceivablesSummary:
    """
    Outstanding money across all parties.

    pending_given = remaining on open given credits
                  + outstanding on partial sales without a legacy linked credit
    pending_taken = remaining on open taken credits
    """
    linked_sale_ids = {
        credit.linked_sale_id
        for credit in snapshot.credits
        if credit.linked_sale_id is not None
    }

    pending_given = ZERO
    pending_taken = ZERO
    open_sales = 0
    open_credits = 0

    for implied in implicit_credits(snapshot.sales):
        if implied.sale_id in linked_sale_ids:
            continue
        pending_given += implied.amount
        open_sales += 1

    for credit in snapshot.credits:
        if credit.status == CreditStatus.PAID:
            continue
        open_credits += 1
        if credit.direction == CreditDirection.GIVEN:
            pending_given += credit.remaining_amount
        else:
            pending_taken += credit.remaining_amount

    return ReceivablesSummary(
        pending_given=pending_given,
        pending_taken=pending_taken,
        open_sale_count=open_sales,
        open_credit_count=open_credits,
    )
