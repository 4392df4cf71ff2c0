"""Tests for the magic note parser."""

import pytest
from decimal import Decimal

from bookkeeper.models.parsing import (
    ParsedTransaction,
    ParseFailure,
    ParseFailureReason,
    TransactionKind,
)
from bookkeeper.models.records import CreditDirection, PaymentMethod, Product
from bookkeeper.parsing.note_parser import (
    EXAMPLE_PHRASES,
    NoteParser,
    classify_intent,
    extract_party,
    failure_guidance,
    parse_note,
)


@pytest.fixture
def parser():
    return NoteParser(max_note_length=200)


@pytest.fixture
def catalog():
    return [
        Product(id="p-rice", name="rice", unit_price=Decimal("40")),
        Product(id="p-basmati", name="basmati rice", unit_price=Decimal("90")),
        Product(id="p-soap", name="soap", unit_price=Decimal("25")),
    ]


class TestSales:
    """Notes describing sales."""

    def test_simple_sale(self, parser):
        """Test the canonical sale example."""
        result = parser.parse("Sold 500 to Rahul", [])

        assert isinstance(result, ParsedTransaction)
        assert result.kind == TransactionKind.SALE
        assert result.amount == Decimal("500")
        assert result.paid_amount == Decimal("500")
        assert result.party == "Rahul"
        assert result.payment_method == PaymentMethod.CASH

    def test_sale_priced_from_catalog(self, parser, catalog):
        """Test '<qty> <product>' is priced from the catalog."""
        result = parser.parse("Sold 3 rice to Priya upi", catalog)

        assert isinstance(result, ParsedTransaction)
        assert result.amount == Decimal("120")
        assert result.quantity == Decimal("3")
        assert result.product_id == "p-rice"
        assert result.note == "3 x rice"
        assert result.party == "Priya"
        assert result.payment_method == PaymentMethod.DIGITAL

    def test_longest_product_name_wins(self, parser, catalog):
        """Test that 'basmati rice' is preferred over 'rice'."""
        result = parser.parse("Sold 2 basmati rice", catalog)
        assert result.product_id == "p-basmati"
        assert result.amount == Decimal("180")

    def test_plural_product_name(self, parser, catalog):
        """Test that a plural product name still matches."""
        result = parser.parse("sold 4 soaps", catalog)
        assert result.product_id == "p-soap"
        assert result.amount == Decimal("100")

    def test_sale_with_arithmetic(self, parser):
        """Test that arithmetic in the note is evaluated."""
        result = parser.parse("Sold 50*8 to Rahul", [])
        assert result.amount == Decimal("400")

    def test_party_name_is_capitalised(self, parser):
        """Test that a lower-case name is capitalised."""
        result = parser.parse("sold 500 to rahul", [])
        assert result.party == "Rahul"

    def test_multi_word_party(self, parser):
        """Test that adjacent capitalised words extend the name."""
        result = parser.parse("Sold 500 to Rahul Sharma", [])
        assert result.party == "Rahul Sharma"

    @pytest.mark.parametrize(
        "text, party",
        [
            ("Sold 500 to José", "José"),
            ("Sold 500 to O'Brien", "O'Brien"),
            ("Sold 500 to Zoë Müller", "Zoë Müller"),
            ("sold 500 to émile", "Émile"),
        ],
    )
    def test_non_ascii_and_apostrophe_names(self, parser, text, party):
        """Test that accented and apostrophe names are kept whole."""
        result = parser.parse(text, [])
        assert result.party == party
        assert result.amount == Decimal("500")

    def test_received_is_a_sale(self, parser):
        """Test that 'received' records a sale."""
        result = parser.parse("Received 300 from Meena upi", [])
        assert result.kind == TransactionKind.SALE
        assert result.party == "Meena"
        assert result.payment_method == PaymentMethod.DIGITAL

    def test_catalog_not_used_for_expenses(self, parser, catalog):
        """Test that expenses never take their amount from the catalog."""
        result = parser.parse("Bought 3 rice for 150", catalog)
        assert result.kind == TransactionKind.EXPENSE
        assert result.product_id is None


class TestExpenses:
    """Notes describing expenses."""

    def test_simple_expense(self, parser):
        """Test the canonical expense example."""
        result = parser.parse("Spent 200 on Lunch", [])

        assert isinstance(result, ParsedTransaction)
        assert result.kind == TransactionKind.EXPENSE
        assert result.amount == Decimal("200")
        assert result.category == "food"
        assert result.party is None
        assert result.paid_amount is None
        assert result.payment_method == PaymentMethod.CASH

    def test_expense_with_arithmetic(self, parser):
        """Test arithmetic and category inference together."""
        result = parser.parse("Paid 50*4 for petrol", [])
        assert result.amount == Decimal("200")
        assert result.category == "transport"

    def test_unknown_category_defaults(self, parser):
        """Test the fallback category."""
        result = parser.parse("Spent 75 on stuff", [])
        assert result.category == "Other"

    def test_broken_arithmetic_falls_back_to_integer(self, parser):
        """Test that an unreadable expression falls back to the first integer."""
        result = parser.parse("Paid 5+ for tea", [])

        assert isinstance(result, ParsedTransaction)
        assert result.amount == Decimal("5")
        assert result.category == "food"

    def test_digital_payment(self, parser):
        """Test that 'online' marks the payment as digital."""
        result = parser.parse("Paid 999 online for internet", [])
        assert result.payment_method == PaymentMethod.DIGITAL
        assert result.category == "phone"


class TestCredits:
    """Notes describing credits."""

    def test_credit_given(self, parser):
        """Test 'lent' produces a given credit."""
        result = parser.parse("Lent 1000 to Amit", [])
        assert result.kind == TransactionKind.CREDIT
        assert result.credit_direction == CreditDirection.GIVEN
        assert result.party == "Amit"

    def test_credit_taken(self, parser):
        """Test 'borrowed' produces a taken credit."""
        result = parser.parse("Borrowed 2000 from Suresh", [])
        assert result.credit_direction == CreditDirection.TAKEN
        assert result.party == "Suresh"
        assert result.amount == Decimal("2000")

    def test_owe_is_taken(self, parser):
        """Test 'owe' produces a taken credit."""
        result = parser.parse("I owe 300 to Meena", [])
        assert result.credit_direction == CreditDirection.TAKEN


class TestIntent:
    """Intent classification."""

    def test_first_keyword_wins(self, parser):
        """Test that the earliest intent keyword decides."""
        assert parser.parse("Paid 300 for stock sold", []).kind == TransactionKind.EXPENSE
        assert parser.parse("Sold 100 and paid", []).kind == TransactionKind.SALE

    def test_classify_intent_none(self):
        """Test that notes without a keyword have no intent."""
        assert classify_intent(["hello", "500"]) is None

    def test_extract_party_skips_non_names(self):
        """Test that pronouns and articles are not taken as names."""
        assert extract_party(["Spent", "200", "from", "the", "shop"]) is None


class TestFailures:
    """Notes that cannot be parsed."""

    @pytest.mark.parametrize("text", ["", "   ", None])
    def test_empty_input(self, parser, text):
        """Test that empty notes fail cleanly."""
        result = parser.parse(text, [])
        assert isinstance(result, ParseFailure)
        assert result.reason == ParseFailureReason.EMPTY_INPUT

    def test_unknown_intent(self, parser):
        """Test notes without any intent keyword."""
        result = parser.parse("500 to Rahul", [])
        assert isinstance(result, ParseFailure)
        assert result.reason == ParseFailureReason.UNKNOWN_INTENT

    def test_missing_amount(self, parser):
        """Test notes without a number."""
        result = parser.parse("Sold rice to Rahul", [])
        assert isinstance(result, ParseFailure)
        assert result.reason == ParseFailureReason.MISSING_AMOUNT

    def test_zero_amount(self, parser):
        """Test that a zero amount is not accepted."""
        result = parser.parse("Sold 0 to Rahul", [])
        assert isinstance(result, ParseFailure)
        assert result.reason == ParseFailureReason.MISSING_AMOUNT

    def test_note_too_long(self):
        """Test that oversized notes are rejected without parsing."""
        result = NoteParser(max_note_length=20).parse("Sold 500 to Rahul " * 5, [])
        assert isinstance(result, ParseFailure)
        assert result.reason == ParseFailureReason.NOTE_TOO_LONG

    def test_internal_error_is_contained(self):
        """Test that an unexpected fault becomes a ParseFailure."""

        class ExplodingEvaluator:
            def evaluate(self, expression):
                raise RuntimeError("boom")

        parser = NoteParser(evaluator=ExplodingEvaluator(), max_note_length=200)
        result = parser.parse("Sold 500 to Rahul", [])

        assert isinstance(result, ParseFailure)
        assert result.reason == ParseFailureReason.INTERNAL_ERROR

    def test_failure_guidance_lists_examples(self):
        """Test that retry guidance includes example phrases."""
        failure = ParseFailure(
            reason=ParseFailureReason.MISSING_AMOUNT,
            message="Could not find a positive amount in this note",
        )
        guidance = failure_guidance(failure)
        for phrase in EXAMPLE_PHRASES:
            assert phrase in guidance


class TestParseNoteHelper:
    """Module-level helper."""

    def test_parse_note_defaults(self):
        """Test parse_note with default settings."""
        result = parse_note("Sold 500 to Rahul")
        assert isinstance(result, ParsedTransaction)
        assert result.party == "Rahul"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
