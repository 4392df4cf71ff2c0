"""Tests for building records from confirmed input."""

import pytest
from datetime import date
from decimal import Decimal

from bookkeeper.models.parsing import (
    ExpressionError,
    ParsedTransaction,
    TransactionKind,
)
from bookkeeper.models.records import (
    CreditDirection,
    CreditRecord,
    CreditStatus,
    ExpenseRecord,
    PaymentMethod,
    SaleRecord,
)
from bookkeeper.recording.credits import (
    DELETE_LINKED_MESSAGE,
    CreditPaymentError,
    LinkedCreditError,
    apply_credit_payment,
    ensure_not_linked,
)
from bookkeeper.recording.factory import (
    build_record,
    prepare_sale,
    resolve_amount_input,
    revise_credit,
    revise_sale,
)
from bookkeeper.validation import RecordValidator


ON = date(2024, 3, 1)


@pytest.fixture
def validator():
    return RecordValidator(max_reasonable_amount=Decimal("1000000"))


@pytest.fixture
def open_credit():
    return CreditRecord(
        id="c1",
        date=ON,
        party="Amit",
        direction=CreditDirection.GIVEN,
        amount=Decimal("500"),
    )


class TestResolveAmountInput:
    """Amount fields accept numbers and arithmetic."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("400", Decimal("400")),
            (" 12.75 ", Decimal("12.75")),
            ("50*8", Decimal("400")),
            (250, Decimal("250")),
            (Decimal("9.5"), Decimal("9.5")),
        ],
    )
    def test_values(self, value, expected):
        """Test plain numbers and expressions."""
        assert resolve_amount_input(value) == expected

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_blank(self, value):
        """Test that a blank field is None."""
        assert resolve_amount_input(value) is None

    def test_invalid(self):
        """Test that a bad expression is reported."""
        assert isinstance(resolve_amount_input("50*"), ExpressionError)


class TestPrepareSale:
    """Sale form input."""

    def test_full_payment_default(self, validator):
        """Test that a blank paid field means paid in full."""
        sale, result = prepare_sale("50*8", None, sale_date=ON, validator=validator)

        assert result.is_valid
        assert sale.total_amount == Decimal("400")
        assert sale.paid_amount == Decimal("400")

    def test_partial_sale_is_only_a_sale(self, validator):
        """Test that a partial sale produces a sale record and nothing else."""
        sale, result = prepare_sale(
            "1000", "400", customer_name="Rahul", sale_date=ON,
            record_id="s1", validator=validator,
        )
        assert isinstance(sale, SaleRecord)
        assert sale.id == "s1"
        assert sale.outstanding_amount == Decimal("600")

    def test_invalid_expression(self, validator):
        """Test that a bad expression is a validation error, not an exception."""
        sale, result = prepare_sale("50*", None, sale_date=ON, validator=validator)
        assert sale is None
        assert result.has_errors
        assert result.issues[0].field == "total_amount"

    def test_partial_without_customer(self, validator):
        """Test that partial sales need a customer."""
        sale, result = prepare_sale("1000", "400", sale_date=ON, validator=validator)
        assert sale is None
        assert result.issues[0].field == "customer_name"

    def test_revise_keeps_identity(self, validator):
        """Test that an edit keeps id and invoice number."""
        existing = SaleRecord(
            id="s1",
            date=ON,
            counterparty_name="Rahul",
            total_amount=Decimal("1000"),
            paid_amount=Decimal("400"),
            invoice_number="INV-3",
        )
        revised, result = revise_sale(existing, paid_input="1000", validator=validator)

        assert result.is_valid
        assert revised.id == "s1"
        assert revised.invoice_number == "INV-3"
        assert revised.paid_amount == Decimal("1000")
        assert revised.total_amount == Decimal("1000")


class TestBuildRecord:
    """Confirmed magic notes become records."""

    def test_sale(self):
        """Test a parsed sale."""
        parsed = ParsedTransaction(
            kind=TransactionKind.SALE,
            amount=Decimal("500"),
            paid_amount=Decimal("500"),
            party="Rahul",
            note="Sold 500 to Rahul",
        )
        record = build_record(parsed, record_id="s1", on_date=ON)

        assert isinstance(record, SaleRecord)
        assert record.counterparty_name == "Rahul"
        assert record.paid_amount == Decimal("500")

    def test_sale_without_party_is_walk_in(self):
        """Test the default customer label."""
        parsed = ParsedTransaction(kind=TransactionKind.SALE, amount=Decimal("20"))
        record = build_record(parsed, on_date=ON)
        assert record.counterparty_name == "Walk-in"
        assert record.paid_amount == Decimal("20")

    def test_expense(self):
        """Test a parsed expense."""
        parsed = ParsedTransaction(
            kind=TransactionKind.EXPENSE,
            amount=Decimal("200"),
            category="food",
            payment_method=PaymentMethod.DIGITAL,
        )
        record = build_record(parsed, on_date=ON)

        assert isinstance(record, ExpenseRecord)
        assert record.category == "food"
        assert record.payment_method == PaymentMethod.DIGITAL

    def test_credit(self):
        """Test a parsed credit starts pending."""
        parsed = ParsedTransaction(
            kind=TransactionKind.CREDIT,
            amount=Decimal("2000"),
            party="Suresh",
            credit_direction=CreditDirection.TAKEN,
        )
        record = build_record(parsed, on_date=ON)

        assert isinstance(record, CreditRecord)
        assert record.direction == CreditDirection.TAKEN
        assert record.status == CreditStatus.PENDING
        assert record.linked_sale_id is None

    def test_credit_without_party(self):
        """Test the default credit party."""
        parsed = ParsedTransaction(kind=TransactionKind.CREDIT, amount=Decimal("10"))
        assert build_record(parsed, on_date=ON).party == "Unknown"


class TestApplyCreditPayment:
    """Repayments produce new credit records."""

    def test_partial_repayment(self, open_credit):
        """Test a partial repayment keeps the credit pending."""
        updated = apply_credit_payment(open_credit, Decimal("200"), ON, payment_id="p1")

        assert updated.paid_amount == Decimal("200")
        assert updated.status == CreditStatus.PENDING
        assert [p.id for p in updated.payments] == ["p1"]
        assert open_credit.payments == []

    def test_settling_repayment(self, open_credit):
        """Test paying the remainder marks the credit paid."""
        first = apply_credit_payment(open_credit, Decimal("200"), ON)
        settled = apply_credit_payment(first, Decimal("300"), ON)

        assert settled.status == CreditStatus.PAID
        assert settled.remaining_amount == Decimal("0")
        assert len(settled.payments) == 2

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-1"), Decimal("501")])
    def test_rejected(self, open_credit, amount):
        """Test non-positive and excessive repayments."""
        with pytest.raises(CreditPaymentError):
            apply_credit_payment(open_credit, amount, ON)


class TestReviseCredit:
    """Edits to stored credits."""

    def test_keeps_repayments(self, open_credit, validator):
        """Test raising the amount keeps payments and reopens a settled credit."""
        settled = apply_credit_payment(open_credit, Decimal("500"), ON)
        revised, result = revise_credit(settled, amount_input="700", validator=validator)

        assert result.is_valid
        assert revised.id == "c1"
        assert revised.paid_amount == Decimal("500")
        assert len(revised.payments) == 1
        assert revised.status == CreditStatus.PENDING

    def test_expression_amount(self, open_credit, validator):
        """Test the amount field accepts arithmetic."""
        revised, _ = revise_credit(open_credit, amount_input="50*8", validator=validator)
        assert revised.amount == Decimal("400")

    def test_direction_and_party(self, open_credit, validator):
        """Test changing who owes whom."""
        revised, _ = revise_credit(
            open_credit,
            party="Amit K",
            direction=CreditDirection.TAKEN,
            validator=validator,
        )
        assert revised.party == "Amit K"
        assert revised.direction == CreditDirection.TAKEN
        assert revised.amount == Decimal("500")

    def test_below_repaid(self, open_credit, validator):
        """Test the amount cannot drop below what was repaid."""
        paid = apply_credit_payment(open_credit, Decimal("300"), ON)
        revised, result = revise_credit(paid, amount_input="200", validator=validator)

        assert revised is None
        assert result.issues[0].field == "amount"
        assert "already been repaid" in result.issues[0].message

    def test_bad_expression(self, open_credit, validator):
        """Test an unreadable amount."""
        revised, result = revise_credit(open_credit, amount_input="9*", validator=validator)
        assert revised is None
        assert result.is_valid is False


class TestLinkedCredits:
    """Credits that belong to a sale."""

    def test_unlinked_passes(self, open_credit):
        """Test a standalone credit is not refused."""
        ensure_not_linked(open_credit, DELETE_LINKED_MESSAGE)

    def test_linked_refused(self, open_credit):
        """Test the error names the credit and its sale."""
        linked = open_credit.model_copy(update={"linked_sale_id": "sale-9"})

        with pytest.raises(LinkedCreditError) as excinfo:
            ensure_not_linked(linked, DELETE_LINKED_MESSAGE)
        assert excinfo.value.credit_id == "c1"
        assert excinfo.value.sale_id == "sale-9"
        assert str(excinfo.value) == DELETE_LINKED_MESSAGE


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
