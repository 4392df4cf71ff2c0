"""Tests for snapshot loading and legacy-shape migration."""

import pytest
from datetime import date, datetime
from decimal import Decimal

from bookkeeper.models.records import (
    CreditDirection,
    CreditStatus,
    PaymentMethod,
    SaleRecord,
)
from bookkeeper.snapshot.migration import (
    load_snapshot,
    normalize_credit,
    normalize_expense,
    normalize_sale,
    parse_date,
    parse_payment_method,
    resolve_sale_amounts,
    to_decimal,
)


class TestSaleAmountFallbacks:
    """total = totalAmount ?? paidAmount ?? amount ?? 0 (and the mirror for paid)."""

    @pytest.mark.parametrize(
        "total, paid, legacy, expected",
        [
            (1000, 400, None, (Decimal("1000"), Decimal("400"))),
            (1000, None, None, (Decimal("1000"), Decimal("1000"))),
            (None, 400, None, (Decimal("400"), Decimal("400"))),
            (None, None, 250, (Decimal("250"), Decimal("250"))),
            (None, None, None, (Decimal("0"), Decimal("0"))),
            (1000, 0, 999, (Decimal("1000"), Decimal("0"))),
        ],
    )
    def test_resolution(self, total, paid, legacy, expected):
        """Test each combination of present fields."""
        assert resolve_sale_amounts(total, paid, legacy) == expected

    def test_nan_treated_as_missing(self):
        """Test that NaN amounts fall through to the next field."""
        assert resolve_sale_amounts("NaN", 400) == (Decimal("400"), Decimal("400"))


class TestNormalizeSale:
    """Raw sale payloads."""

    def test_camel_case_payload(self):
        """Test a payload from the mobile app."""
        sale = normalize_sale({
            "id": "s1",
            "date": "2024-03-01T10:30:00.000Z",
            "customerName": " Rahul ",
            "totalAmount": 1000,
            "paidAmount": 400,
            "paymentMethod": "UPI",
            "invoiceNumber": "INV-1",
        })
        assert sale.date == date(2024, 3, 1)
        assert sale.counterparty_name == "Rahul"
        assert sale.outstanding_amount == Decimal("600")
        assert sale.payment_method == PaymentMethod.DIGITAL
        assert sale.invoice_number == "INV-1"

    def test_legacy_amount_only(self):
        """Test a sale carrying only 'amount'."""
        sale = normalize_sale({"id": "s1", "date": "2024-03-01", "amount": "250"})
        assert sale.total_amount == Decimal("250")
        assert sale.paid_amount == Decimal("250")

    def test_overpaid_sale_clamped(self):
        """Test paid > total is clamped to total."""
        sale = normalize_sale({
            "id": "s1", "date": "2024-03-01", "totalAmount": 100, "paidAmount": 150,
        })
        assert sale.paid_amount == Decimal("100")

    def test_model_passes_through(self):
        """Test already-normalised records are returned unchanged."""
        record = SaleRecord(
            id="s1",
            date=date(2024, 3, 1),
            total_amount=Decimal("1"),
            paid_amount=Decimal("1"),
        )
        assert normalize_sale(record) is record


class TestNormalizeOthers:
    """Raw expense and credit payloads."""

    def test_expense_snake_case(self):
        """Test a snake_case expense payload."""
        expense = normalize_expense({
            "id": "e1",
            "date": "2024-03-02",
            "amount": 120.5,
            "category": "food",
            "vendor_name": "Cafe",
        })
        assert expense.amount == Decimal("120.5")
        assert expense.counterparty_name == "Cafe"

    def test_credit_status_rederived(self):
        """Test a stale stored status is replaced by the derived one."""
        credit = normalize_credit({
            "id": "c1",
            "date": "2024-03-01",
            "party": "Amit",
            "type": "given",
            "amount": 500,
            "paidAmount": 500,
            "status": "pending",
        })
        assert credit.status == CreditStatus.PAID

    def test_credit_paid_from_payments(self):
        """Test the paid amount falls back to the sum of repayments."""
        credit = normalize_credit({
            "id": "c1",
            "date": "2024-03-01",
            "party": "Suresh",
            "type": "taken",
            "amount": 800,
            "payments": [
                {"id": "p1", "amount": 300, "date": "2024-03-04"},
                {"amount": 0, "date": "2024-03-05"},
                {"amount": 100},
            ],
        })
        assert credit.direction == CreditDirection.TAKEN
        assert credit.paid_amount == Decimal("400")
        assert credit.status == CreditStatus.PENDING
        assert [p.id for p in credit.payments] == ["p1", "c1-payment-3"]
        assert credit.payments[1].date == date(2024, 3, 1)

    def test_legacy_linked_sale_id(self):
        """Test the legacy link is kept."""
        credit = normalize_credit({
            "id": "c1", "date": "2024-03-01", "party": "Rahul",
            "type": "given", "amount": 600, "linkedSaleId": "s1",
        })
        assert credit.linked_sale_id == "s1"


class TestLoadSnapshot:
    """Whole-snapshot loading."""

    def test_unreadable_records_skipped(self):
        """Test that records without an id or date are dropped, not fatal."""
        snapshot = load_snapshot(
            sales=[
                {"id": "s1", "date": "2024-03-01", "totalAmount": 10},
                {"date": "2024-03-01", "totalAmount": 10},
                {"id": "s3", "date": "not a date", "totalAmount": 10},
            ],
            credits=[{"id": "c1", "date": "2024-03-01", "type": "sideways", "amount": 5}],
        )
        assert [s.id for s in snapshot.sales] == ["s1"]
        assert snapshot.credits == ()

    def test_products(self):
        """Test product payloads."""
        snapshot = load_snapshot(products=[{"id": "p1", "name": "Rice", "price": "40"}])
        assert snapshot.products[0].unit_price == Decimal("40")


class TestHelpers:
    """Coercion helpers."""

    def test_to_decimal(self):
        """Test numeric coercion."""
        assert to_decimal("12.50") == Decimal("12.50")
        assert to_decimal(None) is None
        assert to_decimal("abc") is None
        assert to_decimal(True) is None

    def test_parse_date(self):
        """Test accepted date shapes."""
        assert parse_date(datetime(2024, 3, 1, 9, 0)) == date(2024, 3, 1)
        assert parse_date("2024-03-01") == date(2024, 3, 1)
        with pytest.raises(ValueError):
            parse_date("")

    def test_parse_payment_method(self):
        """Test payment method aliases."""
        assert parse_payment_method("upi") == PaymentMethod.DIGITAL
        assert parse_payment_method("Cash") == PaymentMethod.CASH
        assert parse_payment_method(None) == PaymentMethod.CASH
        assert parse_payment_method("barter") == PaymentMethod.CASH


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
