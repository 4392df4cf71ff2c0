"""
Balance Calculator

Orders ledger entries chronologically and folds them into a running
balance.

ORDERING: ascending by date; entries on the same date keep the order in
which the builder produced them (their index in the input). The sort key
is explicit so the order never depends on incidental iteration order.

SIGN CONVENTION: credit adds, debit subtracts.
- Customer: balance >= 0 means they owe you, < 0 means you owe them.
- Vendor:   balance >= 0 is shown as "Balance", < 0 as "You owe".
"""

from decimal import Decimal
from typing import Iterable, Union

import structlog

from bookkeeper.ledger.builder import build_ledger_entries
from bookkeeper.models.ledger import (
    EntryPolarity,
    LedgerEntry,
    LedgerStatement,
    PartyRole,
    PartyStatement,
)
from bookkeeper.models.records import RecordSnapshot


logger = structlog.get_logger(__name__)

ZERO = Decimal("0")


def with_running_balance(entries: Iterable[LedgerEntry]) -> LedgerStatement:
    """
    Sort entries and attach the running balance to each.

    Returns:
        LedgerStatement where final_balance == total_credit - total_debit
        == the last entry's running_balance (0 when there are no entries)
    """
    ordered = sorted(enumerate(entries), key=lambda pair: (pair[1].date, pair[0]))

    balance = ZERO
    total_credit = ZERO
    total_debit = ZERO
    with_balance = []

    for _, entry in ordered:
        if entry.polarity == EntryPolarity.CREDIT:
            balance += entry.amount
            total_credit += entry.amount
        else:
            balance -= entry.amount
            total_debit += entry.amount
        with_balance.append(entry.model_copy(update={"running_balance": balance}))

    return LedgerStatement(
        entries=tuple(with_balance),
        total_credit=total_credit,
        total_debit=total_debit,
        final_balance=total_credit - total_debit,
    )


def describe_balance(final_balance: Decimal, party_role: Union[PartyRole, str]) -> str:
    """Wording for the balance card on a party statement."""
    role = PartyRole(party_role)
    if final_balance >= 0:
        return "They owe you" if role == PartyRole.CUSTOMER else "Balance"
    return "You owe them" if role == PartyRole.CUSTOMER else "You owe"


def build_party_statement(
    snapshot: RecordSnapshot,
    party_name: str,
    party_role: Union[PartyRole, str],
) -> PartyStatement:
    """
    Full statement for one party.

    An unknown role or an unexpected fault while building is logged and
    degrades to an empty statement so the screen can still render. An
    unknown role leaves `party_role` as None.
    """
    try:
        role = PartyRole(party_role)
    except ValueError:
        logger.error(
            "unknown_party_role",
            party_name=party_name,
            party_role=str(party_role),
        )
        return PartyStatement(party_name=party_name, party_role=None, balance_label="")

    try:
        entries = build_ledger_entries(
            snapshot.sales,
            snapshot.expenses,
            snapshot.credits,
            party_name,
            role,
        )
        statement = with_running_balance(entries)
    except Exception as e:
        logger.exception(
            "party_statement_failed",
            party_name=party_name,
            party_role=role.value,
            error=str(e),
        )
        statement = LedgerStatement()

    return PartyStatement(
        entries=statement.entries,
        total_credit=statement.total_credit,
        total_debit=statement.total_debit,
        final_balance=statement.final_balance,
        party_name=party_name,
        party_role=role,
        balance_label=describe_balance(statement.final_balance, role),
    )
