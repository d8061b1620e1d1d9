"""
Expense Form Validation

DESIGN DECISION: Validation happens in two distinct stages, as for any
user-entered record:

STAGE 1 - REQUIRED FIELDS:
- Amount present, numeric and greater than zero
- Category chosen
- Description not blank
- Date present
Any failure here refuses the save; the form stays open.

STAGE 2 - CONSISTENCY WARNINGS:
- Category not in the active scope (it may have been deleted)
- Date in the future
These never block the save, they are shown next to the form.

IMPORTANT: Validation NEVER silently fixes issues.
It reports them and lets the user decide.
"""

import re
from datetime import date
from decimal import Decimal
from typing import Optional

from pocketbook.models.expense import (
    HEX_COLOR_PATTERN,
    Category,
    ExpenseDraft,
    ValidationIssue,
    ValidationResult,
    to_money,
)


class ExpenseValidator:
    """Validates expense drafts before they become records."""

    def _validate_required(self, draft: ExpenseDraft) -> list[ValidationIssue]:
        """Stage 1: required fields."""
        issues = []

        if not draft.amount:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="missing",
                message="Amount is required",
                severity="error",
            ))
        else:
            try:
                amount = to_money(draft.amount)
            except ValueError:
                issues.append(ValidationIssue(
                    field="amount",
                    issue_type="invalid_format",
                    message=f"'{draft.amount}' is not a valid amount",
                    severity="error",
                ))
            else:
                if amount <= Decimal("0"):
                    issues.append(ValidationIssue(
                        field="amount",
                        issue_type="invalid_value",
                        message="Amount must be greater than zero",
                        severity="error",
                    ))

        if not draft.category_id:
            issues.append(ValidationIssue(
                field="category_id",
                issue_type="missing",
                message="Choose a category",
                severity="error",
            ))

        if not draft.description:
            issues.append(ValidationIssue(
                field="description",
                issue_type="missing",
                message="Description is required",
                severity="error",
            ))

        if draft.spent_on is None:
            issues.append(ValidationIssue(
                field="spent_on",
                issue_type="missing",
                message="Date is required",
                severity="error",
            ))

        return issues

    def _validate_consistency(
        self,
        draft: ExpenseDraft,
        categories: list[Category],
        today: date,
    ) -> list[ValidationIssue]:
        """Stage 2: warnings that do not block the save."""
        issues = []

        known_ids = {category.id for category in categories}
        if draft.category_id and draft.category_id not in known_ids:
            issues.append(ValidationIssue(
                field="category_id",
                issue_type="unknown_reference",
                message="Category does not exist in this scope",
                severity="warning",
            ))

        if draft.spent_on and draft.spent_on > today:
            issues.append(ValidationIssue(
                field="spent_on",
                issue_type="future_date",
                message=f"Date ({draft.spent_on.isoformat()}) is in the future",
                severity="warning",
            ))

        return issues

    def validate(
        self,
        draft: ExpenseDraft,
        categories: list[Category],
        today: Optional[date] = None,
    ) -> ValidationResult:
        """
        Run both stages.

        Stage 2 only runs when stage 1 found nothing blocking.
        """
        today = today or date.today()

        issues = self._validate_required(draft)
        if not issues:
            issues.extend(self._validate_consistency(draft, categories, today))

        return ValidationResult(
            is_valid=not any(issue.severity == "error" for issue in issues),
            issues=issues,
        )


def validate_category_input(name: Optional[str], color: Optional[str]) -> list[ValidationIssue]:
    """Check the fields of a new category."""
    issues = []

    if not name or not name.strip():
        issues.append(ValidationIssue(
            field="name",
            issue_type="missing",
            message="Category name is required",
            severity="error",
        ))

    if not color or not re.match(HEX_COLOR_PATTERN, color):
        issues.append(ValidationIssue(
            field="color",
            issue_type="invalid_format",
            message="Colour must be a hex value such as #3B82F6",
            severity="error",
        ))

    return issues
