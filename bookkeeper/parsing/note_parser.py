"""
Magic Note Parser

Turns a line of free text such as "Sold 3 rice to Rahul upi" or
"Spent 50*4 on petrol" into a ParsedTransaction.

FLOW:
1. Classify intent from verb keywords (first keyword in the note wins)
2. Extract the counter-party after "to" / "from"
3. Extract the amount: catalog pricing (sales), then arithmetic, then
   the first plain integer
4. Infer payment method and, for expenses, a category

The parser only PROPOSES a transaction. The caller must show it to the
user and build a record only after confirmation.

IMPORTANT: parse() never raises. Anything it cannot handle comes back as
a ParseFailure with no partial data.
"""

import re
from decimal import Decimal
from typing import Iterable, Optional, Union

import structlog

from bookkeeper.config import get_settings
from bookkeeper.models.parsing import (
    ParsedTransaction,
    ParseFailure,
    ParseFailureReason,
    TransactionKind,
)
from bookkeeper.models.records import CreditDirection, PaymentMethod, Product
from bookkeeper.parsing.expression import ExpressionEvaluator


logger = structlog.get_logger(__name__)


# =============================================================================
# KEYWORD TABLES
# =============================================================================

INTENT_KEYWORDS: dict[str, tuple[TransactionKind, Optional[CreditDirection]]] = {
    "sold": (TransactionKind.SALE, None),
    "sale": (TransactionKind.SALE, None),
    "received": (TransactionKind.SALE, None),
    "spent": (TransactionKind.EXPENSE, None),
    "paid": (TransactionKind.EXPENSE, None),
    "bought": (TransactionKind.EXPENSE, None),
    "expense": (TransactionKind.EXPENSE, None),
    "lent": (TransactionKind.CREDIT, CreditDirection.GIVEN),
    "gave": (TransactionKind.CREDIT, CreditDirection.GIVEN),
    "credit": (TransactionKind.CREDIT, CreditDirection.GIVEN),
    "due": (TransactionKind.CREDIT, CreditDirection.GIVEN),
    "borrowed": (TransactionKind.CREDIT, CreditDirection.TAKEN),
    "owe": (TransactionKind.CREDIT, CreditDirection.TAKEN),
}

DIGITAL_PAYMENT_KEYWORDS = frozenset({"upi", "online", "digital"})

EXPENSE_CATEGORY_KEYWORDS: dict[str, str] = {
    # Transport
    "fuel": "transport",
    "petrol": "transport",
    "diesel": "transport",
    "taxi": "transport",
    "cab": "transport",
    "auto": "transport",
    "bus": "transport",
    "train": "transport",
    "parking": "transport",
    # Food
    "lunch": "food",
    "dinner": "food",
    "breakfast": "food",
    "food": "food",
    "snacks": "food",
    "tea": "food",
    "coffee": "food",
    # Business
    "stock": "stock",
    "inventory": "stock",
    "salary": "salary",
    "wages": "salary",
    "electricity": "utilities",
    "water": "utilities",
    "gas": "utilities",
    "rent": "rent",
    "repair": "maintenance",
    "maintenance": "maintenance",
    # Personal
    "clothes": "shopping",
    "shopping": "shopping",
    "groceries": "shopping",
    "phone": "phone",
    "recharge": "phone",
    "internet": "phone",
    "wifi": "phone",
    "medicine": "health",
    "doctor": "health",
    "hospital": "health",
    "fees": "education",
    "books": "education",
}

DEFAULT_EXPENSE_CATEGORY = "Other"

PARTY_PREPOSITIONS = frozenset({"to", "from"})

# Words that can follow "to"/"from" without being a name.
_NOT_A_NAME = (
    frozenset({
        "the", "a", "an", "my", "our", "his", "her", "their",
        "me", "him", "them", "us", "you", "i", "it",
        "for", "on", "by", "via", "with", "at", "in", "of",
        "to", "from", "and", "cash", "today", "yesterday",
    })
    | DIGITAL_PAYMENT_KEYWORDS
    | frozenset(INTENT_KEYWORDS)
)

EXAMPLE_PHRASES = (
    "Sold 500 to Rahul",
    "Sold 3 rice to Priya upi",
    "Spent 200 on lunch",
    "Paid 50*4 for petrol",
    "Lent 1000 to Amit",
    "Borrowed 2000 from Suresh",
)

_WORD = r"[^\W\d_]+(?:['\u2019][^\W\d_]+)*"
_TOKEN = re.compile(_WORD + r"|\d+(?:\.\d+)?")
_NAME = re.compile(_WORD)
_ARITHMETIC_RUN = re.compile(r"[0-9+\-*/().\s]{2,}")
_INTEGER_LITERAL = re.compile(r"\b\d+\b")


class NoteParser:
    """
    Parses magic notes into proposed transactions.

    Stateless apart from configuration; safe to share between callers.
    """

    def __init__(
        self,
        evaluator: Optional[ExpressionEvaluator] = None,
        max_note_length: Optional[int] = None,
    ):
        self._evaluator = evaluator or ExpressionEvaluator()
        if max_note_length is None:
            max_note_length = get_settings().parser.max_note_length
        self._max_note_length = max_note_length

    def parse(
        self,
        text: str,
        product_catalog: Iterable[Product] = (),
    ) -> Union[ParsedTransaction, ParseFailure]:
        """
        Parse a magic note.

        Args:
            text: The note as typed by the user
            product_catalog: Products used to price "<qty> <product>" sales

        Returns:
            ParsedTransaction on success, ParseFailure otherwise
        """
        try:
            return self._parse(text, tuple(product_catalog))
        except Exception as e:
            logger.exception("note_parse_internal_error", error=str(e))
            return ParseFailure(
                reason=ParseFailureReason.INTERNAL_ERROR,
                message="Something went wrong while reading this note",
            )

    def _parse(
        self,
        text: str,
        catalog: tuple[Product, ...],
    ) -> Union[ParsedTransaction, ParseFailure]:
        stripped = (text or "").strip()
        if not stripped:
            return ParseFailure(
                reason=ParseFailureReason.EMPTY_INPUT,
                message="The note is empty",
            )
        if len(stripped) > self._max_note_length:
            return ParseFailure(
                reason=ParseFailureReason.NOTE_TOO_LONG,
                message=f"Notes are limited to {self._max_note_length} characters",
            )

        tokens = [match.group() for match in _TOKEN.finditer(stripped)]
        lowered = [token.lower() for token in tokens]

        intent = classify_intent(lowered)
        if intent is None:
            return ParseFailure(
                reason=ParseFailureReason.UNKNOWN_INTENT,
                message="Could not tell if this is a sale, an expense or a credit",
            )
        kind, direction = intent

        quantity = None
        product = None
        amount = None
        if kind == TransactionKind.SALE:
            priced = price_from_catalog(stripped, catalog)
            if priced is not None:
                product, quantity, amount = priced

        if amount is None:
            amount = self._extract_amount(stripped)

        if amount is None or not amount.is_finite() or amount <= 0:
            return ParseFailure(
                reason=ParseFailureReason.MISSING_AMOUNT,
                message="Could not find a positive amount in this note",
            )

        if product is not None:
            note = f"{quantity} x {product.name}"
        else:
            note = stripped

        result = ParsedTransaction(
            kind=kind,
            amount=amount,
            paid_amount=amount if kind == TransactionKind.SALE else None,
            party=extract_party(tokens),
            category=infer_category(lowered) if kind == TransactionKind.EXPENSE else None,
            payment_method=infer_payment_method(lowered),
            credit_direction=direction,
            note=note,
            quantity=quantity,
            product_id=product.id if product is not None else None,
        )
        logger.debug(
            "note_parsed",
            kind=result.kind.value,
            amount=str(result.amount),
            has_party=result.party is not None,
        )
        return result

    def _extract_amount(self, text: str) -> Optional[Decimal]:
        """Longest arithmetic run first, then the first plain integer."""
        runs = [
            match.group()
            for match in _ARITHMETIC_RUN.finditer(text)
            if any(char.isdigit() for char in match.group())
        ]
        if runs:
            longest = max(runs, key=len)
            value = self._evaluator.evaluate(longest)
            if isinstance(value, Decimal):
                return value

        literal = _INTEGER_LITERAL.search(text)
        if literal:
            return Decimal(literal.group())
        return None


# =============================================================================
# EXTRACTION HELPERS
# =============================================================================

def classify_intent(
    words: list[str],
) -> Optional[tuple[TransactionKind, Optional[CreditDirection]]]:
    """Return the intent of the first keyword in `words` (lower-cased tokens)."""
    for word in words:
        if word in INTENT_KEYWORDS:
            return INTENT_KEYWORDS[word]
    return None


def extract_party(tokens: list[str]) -> Optional[str]:
    """
    First name-like word after "to"/"from".

    Adjacent capitalised words extend the name ("to Rahul Sharma").
    """
    for index, token in enumerate(tokens[:-1]):
        if token.lower() not in PARTY_PREPOSITIONS:
            continue
        candidate = tokens[index + 1]
        if not _is_name_like(candidate):
            continue

        parts = [candidate]
        for follower in tokens[index + 2:]:
            if not (_is_name_like(follower) and follower[0].isupper()):
                break
            parts.append(follower)
        return " ".join(part[:1].upper() + part[1:] for part in parts)
    return None


def _is_name_like(token: str) -> bool:
    return _NAME.fullmatch(token) is not None and token.lower() not in _NOT_A_NAME


def infer_payment_method(words: list[str]) -> PaymentMethod:
    if any(word in DIGITAL_PAYMENT_KEYWORDS for word in words):
        return PaymentMethod.DIGITAL
    return PaymentMethod.CASH


def infer_category(words: list[str]) -> str:
    for word in words:
        category = EXPENSE_CATEGORY_KEYWORDS.get(word)
        if category:
            return category
    return DEFAULT_EXPENSE_CATEGORY


def price_from_catalog(
    text: str,
    catalog: tuple[Product, ...],
) -> Optional[tuple[Product, Decimal, Decimal]]:
    """
    Price "<qty> <product>" against the catalog.

    Longer product names are tried first so "basmati rice" beats "rice".

    Returns:
        (product, quantity, amount) or None when nothing positive matches
    """
    lowered = text.lower()
    for product in sorted(catalog, key=lambda p: len(p.name), reverse=True):
        pattern = (
            r"(?<![\w.])(\d+(?:\.\d+)?)\s*(?:x\s*)?"
            + re.escape(product.name.lower())
            + r"(?:s|es)?\b"
        )
        match = re.search(pattern, lowered)
        if not match:
            continue
        quantity = Decimal(match.group(1))
        amount = quantity * product.unit_price
        if amount > 0:
            return product, quantity, amount
    return None


def parse_note(
    text: str,
    product_catalog: Iterable[Product] = (),
) -> Union[ParsedTransaction, ParseFailure]:
    """Parse with default settings. See NoteParser.parse."""
    return NoteParser().parse(text, product_catalog)


def failure_guidance(failure: ParseFailure) -> str:
    """
    User-facing retry message for a failed parse.

    This is what we show to non-technical users.
    """
    lines = [f"❌ {failure.message}.", "", "Try something like:"]
    for phrase in EXAMPLE_PHRASES:
        lines.append(f"   • {phrase}")
    return "\n".join(lines)
