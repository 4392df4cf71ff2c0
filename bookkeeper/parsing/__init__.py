"""Magic-note and arithmetic parsing package."""

from bookkeeper.parsing.expression import (
    ALLOWED_CHARACTERS,
    ExpressionEvaluator,
    evaluate_expression,
)
from bookkeeper.parsing.note_parser import (
    DEFAULT_EXPENSE_CATEGORY,
    EXAMPLE_PHRASES,
    EXPENSE_CATEGORY_KEYWORDS,
    INTENT_KEYWORDS,
    NoteParser,
    failure_guidance,
    parse_note,
)

__all__ = [
    "ALLOWED_CHARACTERS",
    "DEFAULT_EXPENSE_CATEGORY",
    "EXAMPLE_PHRASES",
    "EXPENSE_CATEGORY_KEYWORDS",
    "INTENT_KEYWORDS",
    "ExpressionEvaluator",
    "NoteParser",
    "evaluate_expression",
    "failure_guidance",
    "parse_note",
]
