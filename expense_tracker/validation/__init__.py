"""Form validation package."""

from expense_tracker.validation.validator import (
    REQUIRED_FIELDS_MESSAGE,
    AmountInput,
    FormValidator,
    ValidationError,
    parse_amount,
    parse_budget_amount,
)

__all__ = [
    "REQUIRED_FIELDS_MESSAGE",
    "AmountInput",
    "FormValidator",
    "ValidationError",
    "parse_amount",
    "parse_budget_amount",
]
