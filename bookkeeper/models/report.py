"""
Report Models

Aggregates over a date range. Computed deterministically from a snapshot;
formatting and charting are left to the caller.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class DailyTotal(BaseModel):
    """Sales collected on a single day."""
    model_config = ConfigDict(frozen=True)

    day: date
    amount: Decimal


class PeriodSummary(BaseModel):
    """
    Money in and out over a period.

    Income is cash-basis: what was collected at sale time plus repayments
    received on given credits. Outflow is expenses plus repayments made on
    taken credits.
    """
    model_config = ConfigDict(frozen=True)

    date_from: Optional[date] = None
    date_to: Optional[date] = None

    sale_count: int = Field(default=0, ge=0)
    expense_count: int = Field(default=0, ge=0)

    total_billed: Decimal = Decimal("0")
    total_sales: Decimal = Decimal("0")
    total_expenses: Decimal = Decimal("0")
    credit_received: Decimal = Decimal("0")
    credit_paid: Decimal = Decimal("0")

    total_income: Decimal = Decimal("0")
    total_outflow: Decimal = Decimal("0")
    net_profit: Decimal = Decimal("0")
    profit_margin_pct: Decimal = Decimal("0")

    expenses_by_category: dict[str, Decimal] = Field(default_factory=dict)
    daily_sales: tuple[DailyTotal, ...] = ()

    query_description: str = ""
