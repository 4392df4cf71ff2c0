"""
Arithmetic Expression Evaluator

Evaluates the shorthand users type into amount fields and magic notes,
e.g. "50*8", "120 + 35.5", "(3+2)*40".

DESIGN DECISION: This is a small recursive-descent parser over a fixed
grammar. Nothing is ever handed to eval() or any general-purpose
evaluator, so there is no code-execution path at all.

GRAMMAR:
    expression := term (('+' | '-') term)*
    term       := factor (('*' | '/') factor)*
    factor     := ('+' | '-') factor | '(' expression ')' | number
    number     := digits ['.' digits] | '.' digits

The character whitelist is checked before parsing begins. Addition,
subtraction and multiplication are exact: a result that would need more
than 28 significant digits is rejected instead of rounded. Division is
rounded to 28 significant digits ("10/3").
"""

from decimal import (
    Context,
    Decimal,
    DivisionByZero,
    Inexact,
    InvalidOperation,
    Overflow,
    localcontext,
)
from typing import Optional, Union

from bookkeeper.config import get_settings
from bookkeeper.models.parsing import ExpressionError, ExpressionErrorKind


ALLOWED_CHARACTERS = frozenset("0123456789+-*/().")

_DIGITS = frozenset("0123456789")

_ARITHMETIC_CONTEXT = Context(
    prec=28,
    traps=[Overflow, DivisionByZero, InvalidOperation],
)

_EXACT_CONTEXT = Context(
    prec=28,
    traps=[Overflow, DivisionByZero, InvalidOperation, Inexact],
)


class _Rejected(Exception):
    """Internal signal; converted to an ExpressionError at the boundary."""

    def __init__(self, kind: ExpressionErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message


class _ExpressionParser:
    """Single-use parser over an already whitelisted, whitespace-free string."""

    def __init__(self, text: str):
        self._text = text
        self._pos = 0

    def parse(self) -> Decimal:
        value = self._expression()
        if self._pos != len(self._text):
            raise _Rejected(
                ExpressionErrorKind.INVALID_EXPRESSION,
                f"Unexpected '{self._text[self._pos]}' at position {self._pos}",
            )
        return value

    def _peek(self) -> Optional[str]:
        if self._pos < len(self._text):
            return self._text[self._pos]
        return None

    def _advance(self) -> str:
        char = self._text[self._pos]
        self._pos += 1
        return char

    def _expression(self) -> Decimal:
        value = self._term()
        while self._peek() in ("+", "-"):
            operator = self._advance()
            right = self._term()
            with localcontext(_EXACT_CONTEXT):
                value = value + right if operator == "+" else value - right
            _ensure_finite(value)
        return value

    def _term(self) -> Decimal:
        value = self._factor()
        while self._peek() in ("*", "/"):
            operator = self._advance()
            right = self._factor()
            if operator == "*":
                with localcontext(_EXACT_CONTEXT):
                    value = value * right
            else:
                if right == 0:
                    raise _Rejected(
                        ExpressionErrorKind.NON_FINITE_RESULT,
                        "Division by zero",
                    )
                value = value / right
            _ensure_finite(value)
        return value

    def _factor(self) -> Decimal:
        char = self._peek()
        if char in ("+", "-"):
            self._advance()
            operand = self._factor()
            return operand if char == "+" else operand.copy_negate()
        if char == "(":
            self._advance()
            value = self._expression()
            if self._peek() != ")":
                raise _Rejected(
                    ExpressionErrorKind.INVALID_EXPRESSION,
                    "Missing closing parenthesis",
                )
            self._advance()
            return value
        return self._number()

    def _number(self) -> Decimal:
        start = self._pos
        while self._peek() in _DIGITS:
            self._advance()
        if self._peek() == ".":
            self._advance()
            while self._peek() in _DIGITS:
                self._advance()

        literal = self._text[start:self._pos]
        if literal in ("", "."):
            where = "end of input" if self._peek() is None else f"position {start}"
            raise _Rejected(
                ExpressionErrorKind.INVALID_EXPRESSION,
                f"Expected a number at {where}",
            )
        return Decimal(literal)


def _ensure_finite(value: Decimal) -> None:
    if not value.is_finite():
        raise _Rejected(
            ExpressionErrorKind.NON_FINITE_RESULT,
            "Result is not a finite number",
        )


class ExpressionEvaluator:
    """
    Evaluates restricted arithmetic strings.

    GUARANTEES:
    - Never raises; failures come back as ExpressionError
    - Rejects any character outside digits, + - * / ( ) and '.'
    - Rejects empty or incomplete input rather than returning a partial value
    """

    def __init__(self, max_length: Optional[int] = None):
        """
        Args:
            max_length: Longest accepted expression (after whitespace is
                        removed). Defaults to the parser settings.
        """
        if max_length is None:
            max_length = get_settings().parser.max_expression_length
        self._max_length = max_length

    def evaluate(self, expression: str) -> Union[Decimal, ExpressionError]:
        """Evaluate `expression`, returning a Decimal or an ExpressionError."""
        cleaned = "".join(expression.split())

        if not cleaned:
            return self._error(
                ExpressionErrorKind.INVALID_EXPRESSION,
                "Expression is empty",
                expression,
            )

        disallowed = sorted({char for char in cleaned if char not in ALLOWED_CHARACTERS})
        if disallowed:
            return self._error(
                ExpressionErrorKind.INVALID_EXPRESSION,
                f"Disallowed characters: {''.join(disallowed)}",
                expression,
            )

        if len(cleaned) > self._max_length:
            return self._error(
                ExpressionErrorKind.INVALID_EXPRESSION,
                f"Expression longer than {self._max_length} characters",
                expression,
            )

        try:
            with localcontext(_ARITHMETIC_CONTEXT):
                result = _ExpressionParser(cleaned).parse()
        except _Rejected as e:
            return self._error(e.kind, e.message, expression)
        except (Overflow, DivisionByZero, InvalidOperation):
            return self._error(
                ExpressionErrorKind.NON_FINITE_RESULT,
                "Result is not a finite number",
                expression,
            )
        except Inexact:
            return self._error(
                ExpressionErrorKind.NON_FINITE_RESULT,
                "Result has more than 28 significant digits",
                expression,
            )

        return result

    @staticmethod
    def _error(
        kind: ExpressionErrorKind,
        message: str,
        expression: str,
    ) -> ExpressionError:
        return ExpressionError(kind=kind, message=message, expression=expression)


def evaluate_expression(expression: str) -> Union[Decimal, ExpressionError]:
    """Evaluate with default settings. See ExpressionEvaluator.evaluate."""
    return ExpressionEvaluator().evaluate(expression)
