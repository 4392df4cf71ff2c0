"""
Ledger Builder

Expands a party's sales, expenses and credits into ledger entries.

RULES:
- Customer: each sale is a CREDIT of its total (the customer owes it),
  followed by a DEBIT for whatever was paid at sale time:
  "Payment received" when partial, "Full payment" when settled.
- Vendor: each expense is a DEBIT (the business paid the vendor).
- Any role: each credit record is an opening entry (CREDIT when given,
  DEBIT when taken) followed by one opposite entry per repayment.

Zero-amount payments are never emitted. A sale with nothing paid (or a
zero total) contributes only its invoice line.

The output is in expansion order, NOT chronological. Sorting and balances
belong to `bookkeeper.ledger.balance`.
"""

from decimal import Decimal
from typing import Iterable, Union

from bookkeeper.models.ledger import EntryPolarity, LedgerEntry, PartyRole
from bookkeeper.models.records import (
    CreditDirection,
    CreditRecord,
    ExpenseRecord,
    SaleRecord,
)


ZERO = Decimal("0")


def same_party(name: str, other: str) -> bool:
    """Names match ignoring surrounding whitespace and case."""
    return name.strip().casefold() == other.strip().casefold()


def expand_sale(sale: SaleRecord) -> list[LedgerEntry]:
    """Invoice line plus the payment taken at sale time, if any."""
    entries = [
        LedgerEntry(
            id=sale.id,
            date=sale.date,
            description=f"Invoice {sale.invoice_number or sale.id[-6:]}",
            polarity=EntryPolarity.CREDIT,
            amount=sale.total_amount,
            payment_method=sale.payment_method,
            source_id=sale.id,
        )
    ]

    if sale.paid_amount <= ZERO:
        return entries

    if sale.paid_amount < sale.total_amount:
        entry_id, description = f"{sale.id}-payment", "Payment received"
    else:
        entry_id, description = f"{sale.id}-paid", "Full payment"

    entries.append(
        LedgerEntry(
            id=entry_id,
            date=sale.date,
            description=description,
            polarity=EntryPolarity.DEBIT,
            amount=sale.paid_amount,
            payment_method=sale.payment_method,
            source_id=sale.id,
        )
    )
    return entries


def expand_expense(expense: ExpenseRecord) -> LedgerEntry:
    return LedgerEntry(
        id=expense.id,
        date=expense.date,
        description=expense.category or "Expense",
        polarity=EntryPolarity.DEBIT,
        amount=expense.amount,
        payment_method=expense.payment_method,
        source_id=expense.id,
    )


def expand_credit(
    credit: CreditRecord,
    include_opening: bool = True,
) -> list[LedgerEntry]:
    """
    Opening entry plus one entry per repayment.

    Args:
        credit: The credit record
        include_opening: False for legacy credits linked to a sale that is
                         already expanded, so the obligation is not
                         counted twice. Repayments are always included.
    """
    given = credit.direction == CreditDirection.GIVEN
    entries = []

    if include_opening:
        entries.append(
            LedgerEntry(
                id=credit.id,
                date=credit.date,
                description="Credit given" if given else "Credit taken",
                polarity=EntryPolarity.CREDIT if given else EntryPolarity.DEBIT,
                amount=credit.amount,
                source_id=credit.id,
            )
        )

    for payment in credit.payments:
        entries.append(
            LedgerEntry(
                id=payment.id,
                date=payment.date,
                description="Payment received" if given else "Payment made",
                polarity=EntryPolarity.DEBIT if given else EntryPolarity.CREDIT,
                amount=payment.amount,
                payment_method=payment.payment_method,
                source_id=credit.id,
            )
        )
    return entries


def build_ledger_entries(
    sales: Iterable[SaleRecord],
    expenses: Iterable[ExpenseRecord],
    credits: Iterable[CreditRecord],
    party_name: str,
    party_role: Union[PartyRole, str],
) -> list[LedgerEntry]:
    """
    Expand every record involving `party_name` into ledger entries.

    Pure and deterministic: the same inputs always give the same list in
    the same order (sales, then expenses, then credits, each in input order).
    """
    role = PartyRole(party_role)
    entries: list[LedgerEntry] = []
    expanded_sale_ids: set[str] = set()

    if role == PartyRole.CUSTOMER:
        for sale in sales:
            if same_party(sale.counterparty_name, party_name):
                entries.extend(expand_sale(sale))
                expanded_sale_ids.add(sale.id)

    if role == PartyRole.VENDOR:
        for expense in expenses:
            if same_party(expense.counterparty_name, party_name):
                entries.append(expand_expense(expense))

    for credit in credits:
        if not same_party(credit.party, party_name):
            continue
        already_derived = credit.linked_sale_id in expanded_sale_ids
        entries.extend(expand_credit(credit, include_opening=not already_derived))

    return entries
