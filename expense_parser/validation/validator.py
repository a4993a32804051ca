"""
Pre-save Validation

Parsing never fails, so a parsed record may still be unfit to store:
an amount of 0, the "could not infer" sentinel, an absurd amount.
The validator REPORTS these for the caller; it never fixes or raises.

Rules mirror what the expense domain requires before saving:
- items must be non-empty
- amount must be positive
- the sentinel amount must be confirmed by the user
Plus a few sanity warnings (huge amount, future date, unknown unit).
"""

from datetime import date, timedelta
from typing import Callable, Optional

from expense_parser.config import AppSettings, get_settings
from expense_parser.models.expense import (
    ExtractionResult,
    ValidationIssue,
    ValidationResult,
)


class ExpenseValidator:
    """
    Checks an ExtractionResult before it is persisted.
    """

    def __init__(
        self,
        settings: Optional[AppSettings] = None,
        today: Callable[[], date] = date.today,
    ):
        self._settings = settings or get_settings().app
        self._today = today

    def validate(self, result: ExtractionResult) -> ValidationResult:
        """
        Validate a parsed record.

        Returns:
            ValidationResult; is_valid is False when any error-level
            issue was found.
        """
        issues: list[ValidationIssue] = []

        if not result.items.strip():
            issues.append(ValidationIssue(
                field="items",
                issue_type="missing",
                message="Items cannot be empty",
                severity="error",
                suggested_fix="Describe what the money was spent on",
            ))

        if result.amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be positive",
                severity="error",
                suggested_fix="Include an amount such as '150k' or '2 triệu'",
            ))
        elif not result.amount_inferred:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="not_inferred",
                message="No amount could be found in the message",
                severity="error",
                suggested_fix="Include an amount such as '150k' or '2 triệu'",
            ))
        elif result.amount > self._settings.max_reasonable_amount_vnd:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=f"Amount {result.amount:,} VND is unusually large",
                severity="warning",
                suggested_fix="Check the multiplier (k / triệu / tỷ)",
            ))

        latest = self._today() + timedelta(days=self._settings.future_date_tolerance_days)
        if result.paid_date > latest:
            issues.append(ValidationIssue(
                field="paid_date",
                issue_type="future_date",
                message=f"Paid date {result.paid_date.isoformat()} is in the future",
                severity="warning",
            ))

        if result.unit and not result.base_unit:
            issues.append(ValidationIssue(
                field="unit",
                issue_type="unrecognized_unit",
                message=f"Unit '{result.unit}' has no base unit; it will not be aggregated",
                severity="info",
            ))

        has_errors = any(issue.severity == "error" for issue in issues)
        return ValidationResult(is_valid=not has_errors, issues=issues)

    def get_user_friendly_summary(self, result: ValidationResult) -> str:
        """Render validation issues as short lines for the user."""
        if not result.issues:
            return "✅ Looks good"

        icons = {"error": "❌", "warning": "⚠️", "info": "ℹ️"}
        lines = []
        for issue in result.issues:
            line = f"{icons[issue.severity]} {issue.message}"
            if issue.suggested_fix:
                line += f" ({issue.suggested_fix})"
            lines.append(line)
        return "\n".join(lines)
