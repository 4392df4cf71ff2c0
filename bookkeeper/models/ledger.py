"""
Ledger Models

Derived values only. Nothing here is ever persisted: a LedgerEntry is
created fresh on every ledger build and has no identity beyond the call
that produced it.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from bookkeeper.models.records import CreditDirection, PaymentMethod


class PartyRole(str, Enum):
    """Which side of the business a party is on."""
    CUSTOMER = "customer"
    VENDOR = "vendor"


class EntryPolarity(str, Enum):
    """
    Direction of a ledger entry.

    CREDIT increases what the party owes the business,
    DEBIT decreases it.
    """
    CREDIT = "credit"
    DEBIT = "debit"


class LedgerEntry(BaseModel):
    """A single dated, signed line on a party's statement."""
    model_config = ConfigDict(frozen=True)

    id: str
    date: date
    description: str
    polarity: EntryPolarity
    amount: Decimal = Field(..., ge=0)
    payment_method: Optional[PaymentMethod] = None
    source_id: Optional[str] = Field(
        default=None,
        description="ID of the record this entry was expanded from"
    )
    running_balance: Optional[Decimal] = Field(
        default=None,
        description="Balance after this entry; set by the balance calculator"
    )

    @property
    def signed_amount(self) -> Decimal:
        return self.amount if self.polarity == EntryPolarity.CREDIT else -self.amount


class LedgerStatement(BaseModel):
    """Chronological entries with running balance plus totals."""
    model_config = ConfigDict(frozen=True)

    entries: tuple[LedgerEntry, ...] = ()
    total_credit: Decimal = Decimal("0")
    total_debit: Decimal = Decimal("0")
    final_balance: Decimal = Decimal("0")


class PartyStatement(LedgerStatement):
    """A ledger statement for one named party, ready for display or export."""

    party_name: str
    party_role: Optional[PartyRole] = Field(
        default=None,
        description="None when the requested role was not recognised"
    )
    balance_label: str


class ImplicitCredit(BaseModel):
    """
    The obligation implied by a partially paid sale.

    Derived on read, never persisted.
    """
    model_config = ConfigDict(frozen=True)

    sale_id: str
    party: str
    date: date
    direction: CreditDirection = CreditDirection.GIVEN
    amount: Decimal = Field(..., gt=0)


class ReceivablesSummary(BaseModel):
    """Outstanding money in both directions across all parties."""
    model_config = ConfigDict(frozen=True)

    pending_given: Decimal = Decimal("0")
    pending_taken: Decimal = Decimal("0")
    open_sale_count: int = 0
    open_credit_count: int = 0

    @property
    def net_position(self) -> Decimal:
        return self.pending_given - self.pending_taken


class SaleDeletionPlan(BaseModel):
    """
    What must be removed when a sale is deleted.

    `linked_credit_ids` lists credits persisted by older versions with
    `linked_sale_id` pointing at this sale. They go with the sale.
    """
    model_config = ConfigDict(frozen=True)

    sale_id: str
    linked_credit_ids: tuple[str, ...] = ()
    confirmation_message: str

    @property
    def cascades(self) -> bool:
        return bool(self.linked_credit_ids)
