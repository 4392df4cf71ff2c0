"""Tests for period reports."""

import pytest
from datetime import date
from decimal import Decimal

from bookkeeper.models.records import (
    CreditDirection,
    CreditRecord,
    ExpenseRecord,
    RecordSnapshot,
    SaleRecord,
)
from bookkeeper.queries.executor import ReportExecutor


@pytest.fixture
def snapshot():
    return RecordSnapshot(
        sales=(
            SaleRecord(id="s1", date=date(2024, 3, 1), counterparty_name="Rahul",
                       total_amount=Decimal("1000"), paid_amount=Decimal("400")),
            SaleRecord(id="s2", date=date(2024, 3, 1),
                       total_amount=Decimal("600"), paid_amount=Decimal("600")),
            SaleRecord(id="s3", date=date(2024, 3, 4),
                       total_amount=Decimal("200"), paid_amount=Decimal("200")),
            SaleRecord(id="s-old", date=date(2024, 1, 15),
                       total_amount=Decimal("999"), paid_amount=Decimal("999")),
        ),
        expenses=(
            ExpenseRecord(id="e1", date=date(2024, 3, 2), category="food",
                          amount=Decimal("150")),
            ExpenseRecord(id="e2", date=date(2024, 3, 3), category="rent",
                          amount=Decimal("500")),
            ExpenseRecord(id="e3", date=date(2024, 3, 5), category="food",
                          amount=Decimal("50")),
        ),
        credits=(
            CreditRecord(id="c1", date=date(2024, 3, 2), party="Amit",
                         direction=CreditDirection.GIVEN, amount=Decimal("500"),
                         paid_amount=Decimal("100")),
            CreditRecord(id="c2", date=date(2024, 3, 2), party="Suresh",
                         direction=CreditDirection.TAKEN, amount=Decimal("800"),
                         paid_amount=Decimal("300")),
        ),
    )


class TestSummarizePeriod:
    """Money in and out over a range."""

    def test_march_summary(self, snapshot):
        """Test every figure for a month."""
        summary = ReportExecutor().summarize_period(
            snapshot, date(2024, 3, 1), date(2024, 3, 31)
        )

        assert summary.sale_count == 3
        assert summary.expense_count == 3
        assert summary.total_billed == Decimal("1800")
        assert summary.total_sales == Decimal("1200")
        assert summary.total_expenses == Decimal("700")
        assert summary.credit_received == Decimal("100")
        assert summary.credit_paid == Decimal("300")
        assert summary.total_income == Decimal("1300")
        assert summary.total_outflow == Decimal("1000")
        assert summary.net_profit == Decimal("300")
        assert summary.profit_margin_pct == Decimal("23.1")

    def test_expenses_by_category(self, snapshot):
        """Test category breakdown."""
        summary = ReportExecutor().summarize_period(snapshot, date(2024, 3, 1))
        assert summary.expenses_by_category == {
            "food": Decimal("200"),
            "rent": Decimal("500"),
        }

    def test_daily_sales(self, snapshot):
        """Test the daily trend is sorted and uses collected amounts."""
        summary = ReportExecutor().summarize_period(snapshot, date(2024, 3, 1))
        assert [(d.day, d.amount) for d in summary.daily_sales] == [
            (date(2024, 3, 1), Decimal("1000")),
            (date(2024, 3, 4), Decimal("200")),
        ]

    def test_range_is_inclusive(self, snapshot):
        """Test both ends of the range are included."""
        summary = ReportExecutor().summarize_period(
            snapshot, date(2024, 3, 4), date(2024, 3, 5)
        )
        assert summary.sale_count == 1
        assert summary.expense_count == 1

    def test_open_range(self, snapshot):
        """Test that no range means everything."""
        summary = ReportExecutor().summarize_period(snapshot)
        assert summary.sale_count == 4
        assert summary.query_description == "Summary of all records"

    def test_empty_period(self, snapshot):
        """Test a period with nothing in it."""
        summary = ReportExecutor().summarize_period(
            snapshot, date(2023, 1, 1), date(2023, 1, 31)
        )
        assert summary.total_income == Decimal("0")
        assert summary.profit_margin_pct == Decimal("0")
        assert summary.daily_sales == ()

    def test_description(self, snapshot):
        """Test the human-readable range."""
        executor = ReportExecutor()
        single = executor.summarize_period(snapshot, date(2024, 3, 1), date(2024, 3, 1))
        assert single.query_description == "Summary on 01 Mar 2024"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
