"""
Two-Stage Record Validation

Runs before a sale, expense, credit or repayment is handed to the store.

STAGE 1 - SCHEMA VALIDATION (errors, block the save):
- Amount must be positive
- Paid amount cannot exceed the total
- A partially paid sale needs a customer name (someone has to owe it)
- A credit needs a party, and an edited credit cannot drop below its repayments
- A repayment cannot exceed what is still owed

STAGE 2 - SEMANTIC VALIDATION (warnings, shown but never blocking):
- Unusually large amounts
- Dates in the future

IMPORTANT: Validation NEVER silently fixes issues.
It reports them for human review.
"""

from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from bookkeeper.config import get_settings
from bookkeeper.models.records import (
    CreditRecord,
    ValidationIssue,
    ValidationResult,
)


ZERO = Decimal("0")


class RecordValidationError(ValueError):
    """Raised when an invalid record is about to be persisted."""

    def __init__(self, result: ValidationResult):
        self.result = result
        messages = "; ".join(
            issue.message for issue in result.issues if issue.severity == "error"
        )
        super().__init__(messages or "Record failed validation")


class RecordValidator:
    """
    Validates record inputs through a two-stage pipeline.

    Stage 2 only runs when stage 1 passes.
    """

    def __init__(
        self,
        max_reasonable_amount: Optional[Decimal] = None,
        future_date_tolerance_days: Optional[int] = None,
    ):
        settings = get_settings().ledger
        if max_reasonable_amount is None:
            max_reasonable_amount = Decimal(str(settings.max_reasonable_amount))
        if future_date_tolerance_days is None:
            future_date_tolerance_days = settings.future_date_tolerance_days
        self._max_amount = max_reasonable_amount
        self._future_days = future_date_tolerance_days

    # -------------------------------------------------------------------------
    # Stage 1 helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _check_positive(
        field: str,
        amount: Optional[Decimal],
        label: str,
    ) -> list[ValidationIssue]:
        if amount is None:
            return [ValidationIssue(
                field=field,
                issue_type="missing",
                message=f"{label} is required",
                severity="error",
                suggested_fix="Please enter a valid amount",
            )]
        if not amount.is_finite() or amount <= ZERO:
            return [ValidationIssue(
                field=field,
                issue_type="invalid_value",
                message=f"{label} must be greater than zero",
                severity="error",
                suggested_fix="Please enter a valid amount",
            )]
        return []

    # -------------------------------------------------------------------------
    # Stage 2 helpers
    # -------------------------------------------------------------------------

    def _check_semantics(
        self,
        amount: Decimal,
        record_date: Optional[date],
        today: Optional[date],
    ) -> list[ValidationIssue]:
        issues = []

        if amount > self._max_amount:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=f"Amount ({amount:,}) seems unusually high",
                severity="warning",
                suggested_fix="Please verify this amount is correct",
            ))

        today = today or date.today()
        if record_date and record_date > today + timedelta(days=self._future_days):
            issues.append(ValidationIssue(
                field="date",
                issue_type="future_date",
                message=f"Date ({record_date}) is in the future",
                severity="warning",
                suggested_fix="Please verify the date is correct",
            ))

        return issues

    def _finish(
        self,
        schema_issues: list[ValidationIssue],
        amount: Optional[Decimal],
        record_date: Optional[date],
        today: Optional[date],
    ) -> ValidationResult:
        issues = list(schema_issues)
        schema_valid = not any(issue.severity == "error" for issue in issues)
        if schema_valid and amount is not None:
            issues.extend(self._check_semantics(amount, record_date, today))

        return ValidationResult(
            is_valid=schema_valid,
            issues=issues,
            warnings=[issue.message for issue in issues if issue.severity == "warning"],
        )

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def validate_sale(
        self,
        total_amount: Optional[Decimal],
        paid_amount: Optional[Decimal],
        customer_name: str = "",
        sale_date: Optional[date] = None,
        today: Optional[date] = None,
    ) -> ValidationResult:
        """
        Validate a sale before it is created or updated.

        `paid_amount` of None means "paid in full".
        """
        issues = self._check_positive("total_amount", total_amount, "Total amount")

        if not issues and paid_amount is not None:
            if not paid_amount.is_finite() or paid_amount < ZERO:
                issues.append(ValidationIssue(
                    field="paid_amount",
                    issue_type="invalid_value",
                    message="Paid amount cannot be negative",
                    severity="error",
                ))
            elif paid_amount > total_amount:
                issues.append(ValidationIssue(
                    field="paid_amount",
                    issue_type="invalid_value",
                    message="Paid amount cannot exceed total amount",
                    severity="error",
                    suggested_fix="Enter at most the total amount",
                ))
            elif paid_amount < total_amount and not (customer_name or "").strip():
                issues.append(ValidationIssue(
                    field="customer_name",
                    issue_type="missing",
                    message="Customer name is required for partial payments",
                    severity="error",
                    suggested_fix="Enter who owes the remaining amount",
                ))

        return self._finish(issues, total_amount, sale_date, today)

    def validate_expense(
        self,
        amount: Optional[Decimal],
        expense_date: Optional[date] = None,
        today: Optional[date] = None,
    ) -> ValidationResult:
        issues = self._check_positive("amount", amount, "Amount")
        return self._finish(issues, amount, expense_date, today)

    def validate_credit(
        self,
        amount: Optional[Decimal],
        party: str,
        credit_date: Optional[date] = None,
        today: Optional[date] = None,
        already_paid: Decimal = ZERO,
    ) -> ValidationResult:
        """
        Validate a new or edited credit.

        `already_paid` is what has been repaid on the credit being edited;
        the amount cannot drop below it.
        """
        issues = self._check_positive("amount", amount, "Amount")
        if not issues and amount < already_paid:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message=(
                    f"Amount ({amount}) is less than what has already "
                    f"been repaid ({already_paid})"
                ),
                severity="error",
                suggested_fix="Enter at least the amount already repaid",
            ))
        if not (party or "").strip():
            issues.append(ValidationIssue(
                field="party",
                issue_type="missing",
                message="Please enter a party name",
                severity="error",
            ))
        return self._finish(issues, amount, credit_date, today)

    def validate_credit_payment(
        self,
        credit: CreditRecord,
        amount: Optional[Decimal],
        payment_date: Optional[date] = None,
        today: Optional[date] = None,
    ) -> ValidationResult:
        """A repayment must be positive and no more than what is still owed."""
        issues = self._check_positive("amount", amount, "Payment amount")
        if not issues and amount > credit.remaining_amount:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message=(
                    f"Payment ({amount}) exceeds the remaining "
                    f"balance ({credit.remaining_amount})"
                ),
                severity="error",
                suggested_fix="Enter at most the remaining balance",
            ))
        return self._finish(issues, amount, payment_date, today)

    def get_user_friendly_summary(
        self,
        result: ValidationResult,
    ) -> str:
        """
        Generate a user-friendly summary of validation results.

        This is what we show to non-technical users.
        """
        if result.is_valid and not result.warnings:
            return "✅ All checks passed!"

        lines = []

        if result.has_errors:
            lines.append("❌ Please fix the following:")
            for issue in result.issues:
                if issue.severity == "error":
                    lines.append(f"   • {issue.message}")
                    if issue.suggested_fix:
                        lines.append(f"     💡 {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("⚠️ Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)
