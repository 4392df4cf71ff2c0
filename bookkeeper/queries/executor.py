"""
Report Execution

DESIGN DECISION: Reports are DETERMINISTIC.
Every figure is computed from the snapshot passed in. Nothing is
estimated, cached or read from anywhere else.

Income is what was actually collected (paid at sale time plus repayments
received on given credits); outflow is expenses plus repayments made on
taken credits.
"""

from collections import defaultdict
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, TypeVar

import structlog

from bookkeeper.models.records import (
    CreditDirection,
    RecordSnapshot,
)
from bookkeeper.models.report import DailyTotal, PeriodSummary


logger = structlog.get_logger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")

_Dated = TypeVar("_Dated")


class ReportExecutor:
    """
    Computes period summaries from a snapshot.

    GUARANTEES:
    - Only counts records in the snapshot
    - Date range is inclusive on both ends; an open end is unbounded
    - An empty period gives an all-zero summary, never an error
    """

    def summarize_period(
        self,
        snapshot: RecordSnapshot,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> PeriodSummary:
        sales = self._in_range(snapshot.sales, date_from, date_to)
        expenses = self._in_range(snapshot.expenses, date_from, date_to)
        credits = self._in_range(snapshot.credits, date_from, date_to)

        total_billed = sum((sale.total_amount for sale in sales), ZERO)
        total_sales = sum((sale.paid_amount for sale in sales), ZERO)
        total_expenses = sum((expense.amount for expense in expenses), ZERO)

        credit_received = sum(
            (c.paid_amount for c in credits if c.direction == CreditDirection.GIVEN),
            ZERO,
        )
        credit_paid = sum(
            (c.paid_amount for c in credits if c.direction == CreditDirection.TAKEN),
            ZERO,
        )

        total_income = total_sales + credit_received
        total_outflow = total_expenses + credit_paid
        net_profit = total_income - total_outflow

        if total_income > 0:
            margin = (net_profit / total_income * HUNDRED).quantize(
                Decimal("0.1"), rounding=ROUND_HALF_UP
            )
        else:
            margin = ZERO

        by_category: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for expense in expenses:
            by_category[expense.category] += expense.amount

        by_day: dict[date, Decimal] = defaultdict(lambda: ZERO)
        for sale in sales:
            by_day[sale.date] += sale.paid_amount

        summary = PeriodSummary(
            date_from=date_from,
            date_to=date_to,
            sale_count=len(sales),
            expense_count=len(expenses),
            total_billed=total_billed,
            total_sales=total_sales,
            total_expenses=total_expenses,
            credit_received=credit_received,
            credit_paid=credit_paid,
            total_income=total_income,
            total_outflow=total_outflow,
            net_profit=net_profit,
            profit_margin_pct=margin,
            expenses_by_category=dict(sorted(by_category.items())),
            daily_sales=tuple(
                DailyTotal(day=day, amount=amount)
                for day, amount in sorted(by_day.items())
            ),
            query_description=self._describe(date_from, date_to),
        )
        logger.debug(
            "period_summarized",
            sale_count=summary.sale_count,
            expense_count=summary.expense_count,
            net_profit=str(summary.net_profit),
        )
        return summary

    @staticmethod
    def _in_range(
        records: tuple[_Dated, ...],
        date_from: Optional[date],
        date_to: Optional[date],
    ) -> list[_Dated]:
        return [
            record
            for record in records
            if (date_from is None or record.date >= date_from)
            and (date_to is None or record.date <= date_to)
        ]

    def _describe(
        self,
        date_from: Optional[date],
        date_to: Optional[date],
    ) -> str:
        range_str = self._date_range_str(date_from, date_to)
        return f"Summary {range_str}" if range_str else "Summary of all records"

    def _date_range_str(
        self,
        date_from: Optional[date],
        date_to: Optional[date],
    ) -> str:
        """Format date range for description."""
        if date_from and date_to:
            if date_from == date_to:
                return f"on {date_from.strftime('%d %b %Y')}"
            elif date_from.month == date_to.month and date_from.year == date_to.year:
                return f"for {date_from.strftime('%d')} to {date_to.strftime('%d %b %Y')}"
            else:
                return f"from {date_from.strftime('%d %b %Y')} to {date_to.strftime('%d %b %Y')}"
        elif date_from:
            return f"from {date_from.strftime('%d %b %Y')}"
        elif date_to:
            return f"until {date_to.strftime('%d %b %Y')}"
        return ""
