"""Ledger building, balances and partial-payment reconciliation."""

from bookkeeper.ledger.balance import (
    build_party_statement,
    describe_balance,
    with_running_balance,
)
from bookkeeper.ledger.builder import (
    build_ledger_entries,
    expand_credit,
    expand_expense,
    expand_sale,
    same_party,
)
from bookkeeper.ledger.reconciliation import (
    derive_implicit_credit,
    implicit_credits,
    is_partially_paid,
    linked_credits,
    outstanding_amount,
    plan_sale_deletion,
    summarize_receivables,
)

__all__ = [
    "build_ledger_entries",
    "build_party_statement",
    "derive_implicit_credit",
    "describe_balance",
    "expand_credit",
    "expand_expense",
    "expand_sale",
    "implicit_credits",
    "is_partially_paid",
    "linked_credits",
    "outstanding_amount",
    "plan_sale_deletion",
    "same_party",
    "summarize_receivables",
    "with_running_balance",
]
