"""
Form Validation

DESIGN DECISION: Every form is validated in the client before any
request is sent. A submission with error-level issues never reaches the
backend.

IMPORTANT: Validation NEVER silently fixes issues, with one documented
exception: blank or unparsable budget amounts are read as zero, which
the budget manager then drops on save.
"""

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional, Union
from uuid import UUID

from expense_tracker.models.expense import MAX_AMOUNT
from expense_tracker.models.validation import ValidationIssue, ValidationResult


REQUIRED_FIELDS_MESSAGE = "Please fill in all required fields"
MIN_PASSWORD_LENGTH = 6

AmountInput = Union[str, int, float, Decimal, None]


class ValidationError(Exception):
    """Raised when a form submission has error-level issues."""

    def __init__(self, result: ValidationResult):
        self.result = result
        super().__init__(result.first_error or "Invalid input")

    @property
    def issues(self) -> list[ValidationIssue]:
        return self.result.issues


def parse_amount(raw: AmountInput) -> Optional[Decimal]:
    """Parse a user-entered amount. Returns None if blank or unparsable."""
    if raw is None:
        return None
    text = str(raw).strip()
    if not text:
        return None
    try:
        value = Decimal(text)
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    return value


def parse_budget_amount(raw: AmountInput) -> Decimal:
    """
    Parse a budget cell.

    Blank or unparsable input reads as zero. Negative amounts and amounts
    above MAX_AMOUNT are rejected.

    Raises:
        ValidationError: If the amount is negative or too large
    """
    value = parse_amount(raw)
    if value is None:
        return Decimal("0")
    if value < 0:
        raise ValidationError(ValidationResult(issues=[
            ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Budget amount cannot be negative",
            )
        ]))
    if value > MAX_AMOUNT:
        raise ValidationError(ValidationResult(issues=[
            ValidationIssue(
                field="amount",
                issue_type="too_large",
                message="Budget amount is too large",
            )
        ]))
    return value.quantize(Decimal("0.01"))


class FormValidator:
    """
    Validates the expense, category, date-range and sign-in forms.

    Each validate_* method returns a ValidationResult; require() turns an
    invalid result into a ValidationError.
    """

    def __init__(self, today: Optional[date] = None):
        self._today = today

    @property
    def today(self) -> date:
        return self._today or date.today()

    @staticmethod
    def require(result: ValidationResult) -> ValidationResult:
        """Raise ValidationError if the result has error-level issues."""
        if result.has_errors:
            raise ValidationError(result)
        return result

    def validate_expense(
        self,
        amount: AmountInput,
        category_id: Optional[UUID],
        expense_date: Optional[date],
        description: Optional[str] = None,
    ) -> ValidationResult:
        """
        Validate the add-expense form.

        Checks:
        - Amount, category and date present
        - Amount is a positive number, at most MAX_AMOUNT, with at most two decimals
        - Description length
        - Date not in the future (warning only)
        """
        issues = []
        value = parse_amount(amount)

        if value is None or category_id is None or expense_date is None:
            issues.append(ValidationIssue(
                field="form",
                issue_type="missing",
                message=REQUIRED_FIELDS_MESSAGE,
            ))
            return ValidationResult(issues=issues)

        if value <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be greater than zero",
            ))
        elif value > MAX_AMOUNT:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="too_large",
                message="Amount is too large",
            ))
        elif value != value.quantize(Decimal("0.01")):
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount can have at most two decimal places",
            ))

        if description and len(description.strip()) > 500:
            issues.append(ValidationIssue(
                field="description",
                issue_type="too_long",
                message="Description must be at most 500 characters",
            ))

        if expense_date > self.today:
            issues.append(ValidationIssue(
                field="date",
                issue_type="future_date",
                message=f"Expense date ({expense_date}) is in the future",
                severity="warning",
            ))

        return ValidationResult(issues=issues)

    def validate_category(
        self,
        name: Optional[str],
        icon: Optional[str],
    ) -> ValidationResult:
        """Name and icon must be non-empty once trimmed."""
        issues = []
        name = (name or "").strip()
        icon = (icon or "").strip()

        if not name:
            issues.append(ValidationIssue(
                field="name",
                issue_type="missing",
                message="Category name is required",
            ))
        elif len(name) > 100:
            issues.append(ValidationIssue(
                field="name",
                issue_type="too_long",
                message="Category name must be at most 100 characters",
            ))

        if not icon:
            issues.append(ValidationIssue(
                field="icon",
                issue_type="missing",
                message="Category icon is required",
            ))
        elif len(icon) > 50:
            issues.append(ValidationIssue(
                field="icon",
                issue_type="too_long",
                message="Category icon must be at most 50 characters",
            ))

        return ValidationResult(issues=issues)

    def validate_date_range(
        self,
        start_date: Optional[date],
        end_date: Optional[date],
    ) -> ValidationResult:
        issues = []
        if start_date and end_date and end_date < start_date:
            issues.append(ValidationIssue(
                field="end_date",
                issue_type="inconsistent",
                message="End date cannot be before start date",
            ))
        return ValidationResult(issues=issues)

    def validate_credentials(
        self,
        email: Optional[str],
        password: Optional[str],
    ) -> ValidationResult:
        issues = []
        email = (email or "").strip()
        if not email or "@" not in email:
            issues.append(ValidationIssue(
                field="email",
                issue_type="invalid_value",
                message="Please enter a valid email address",
            ))
        if not password or len(password) < MIN_PASSWORD_LENGTH:
            issues.append(ValidationIssue(
                field="password",
                issue_type="too_short",
                message=f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
            ))
        return ValidationResult(issues=issues)
