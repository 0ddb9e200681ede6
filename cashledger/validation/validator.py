"""
Transaction Validation

DESIGN DECISION: Validation happens in two distinct stages, both before
any remote call:

STAGE 1 - FIELD VALIDATION:
- Positive amount, non-empty description
- On edit only: description of at least 3 characters, and a date no
  more than a year in the future

STAGE 2 - REFERENTIAL VALIDATION:
- The category must exist in the taxonomy with the transaction's type
- An income transaction filed under an expense-only category is rejected,
  never silently re-typed

IMPORTANT: Validation NEVER silently fixes issues.
It reports them so the caller can show them to the user.
"""

from datetime import date, timedelta
from typing import Optional

from cashledger.config import LedgerSettings, get_settings
from cashledger.errors import TransactionValidationError
from cashledger.models.ledger import (
    TransactionDraft,
    ValidationIssue,
    ValidationResult,
)
from cashledger.taxonomy import TaxonomyStore


class TransactionValidator:
    """
    Validates transactions (new or edited) against field rules and the taxonomy.
    """

    def __init__(
        self,
        taxonomy: TaxonomyStore,
        settings: Optional[LedgerSettings] = None,
    ):
        self._taxonomy = taxonomy
        self._settings = settings or get_settings().ledger

    def _validate_fields(
        self,
        transaction: TransactionDraft,
        is_edit: bool,
        today: date,
    ) -> list[ValidationIssue]:
        """
        Stage 1: field validation.

        Returns: list_of_issues
        """
        issues = []

        if transaction.amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be greater than zero",
                severity="error",
            ))

        description = transaction.description.strip()
        if not description:
            issues.append(ValidationIssue(
                field="description",
                issue_type="missing",
                message="Description is required",
                severity="error",
            ))
        elif is_edit and len(description) < self._settings.min_description_length:
            issues.append(ValidationIssue(
                field="description",
                issue_type="too_short",
                message=(
                    f"Description must be at least "
                    f"{self._settings.min_description_length} characters"
                ),
                severity="error",
            ))

        if is_edit:
            max_date = today + timedelta(days=self._settings.max_future_days)
            if transaction.date > max_date:
                issues.append(ValidationIssue(
                    field="date",
                    issue_type="future_date",
                    message=f"Date ({transaction.date}) is more than a year in the future",
                    severity="error",
                ))

        return issues

    def validate(
        self,
        transaction: TransactionDraft,
        is_edit: bool = False,
        today: Optional[date] = None,
    ) -> ValidationResult:
        """
        Run stage 1 and report every issue found.

        Args:
            transaction: New draft or edited transaction
            is_edit: Apply the stricter edit-time rules
            today: Reference date for the future-date rule
        """
        today = today or date.today()
        return ValidationResult(
            issues=self._validate_fields(transaction, is_edit, today),
        )

    def check(
        self,
        transaction: TransactionDraft,
        is_edit: bool = False,
        today: Optional[date] = None,
    ) -> None:
        """
        Run both stages, raising on the first failing stage.

        Raises:
            TransactionValidationError: Stage 1 found errors
            InvalidCategoryError: Stage 2, category/type mismatch
        """
        result = self.validate(transaction, is_edit=is_edit, today=today)
        if result.has_errors:
            raise TransactionValidationError(result)

        self._taxonomy.require_category(transaction.category, transaction.type)
