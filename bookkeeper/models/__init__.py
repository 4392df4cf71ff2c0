"""
Data Models Package

This package contains all Pydantic models used in Bookkeeper.
All data flowing through the core must conform to these schemas.
"""

from bookkeeper.models.records import (
    CreditDirection,
    CreditPayment,
    CreditRecord,
    CreditStatus,
    ExpenseRecord,
    PaymentMethod,
    Product,
    RecordSnapshot,
    SaleRecord,
    ValidationIssue,
    ValidationResult,
)
from bookkeeper.models.ledger import (
    EntryPolarity,
    ImplicitCredit,
    LedgerEntry,
    LedgerStatement,
    PartyRole,
    PartyStatement,
    ReceivablesSummary,
    SaleDeletionPlan,
)
from bookkeeper.models.parsing import (
    ExpressionError,
    ExpressionErrorKind,
    ParseFailure,
    ParseFailureReason,
    ParsedTransaction,
    TransactionKind,
)
from bookkeeper.models.report import DailyTotal, PeriodSummary
from bookkeeper.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Record models
    "CreditDirection",
    "CreditPayment",
    "CreditRecord",
    "CreditStatus",
    "ExpenseRecord",
    "PaymentMethod",
    "Product",
    "RecordSnapshot",
    "SaleRecord",
    "ValidationIssue",
    "ValidationResult",
    # Ledger models
    "EntryPolarity",
    "ImplicitCredit",
    "LedgerEntry",
    "LedgerStatement",
    "PartyRole",
    "PartyStatement",
    "ReceivablesSummary",
    "SaleDeletionPlan",
    # Parsing models
    "ExpressionError",
    "ExpressionErrorKind",
    "ParseFailure",
    "ParseFailureReason",
    "ParsedTransaction",
    "TransactionKind",
    # Report models
    "DailyTotal",
    "PeriodSummary",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
