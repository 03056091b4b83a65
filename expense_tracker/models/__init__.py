"""
Data Models Package

This package contains all Pydantic models used in the Expense Tracker.
All data flowing through the system must conform to these schemas.
"""

from expense_tracker.models.expense import (
    DEFAULT_CATEGORIES,
    MAX_AMOUNT,
    Budget,
    Category,
    Expense,
    ExpenseFilter,
    ExpensePage,
    default_categories,
    page_bounds,
    utcnow,
)
from expense_tracker.models.activity import (
    ActivityAction,
    ActivityEntryBuilder,
    ActivityLogEntry,
    EntityType,
    ExpenseStatus,
    fold_expense_status,
)
from expense_tracker.models.user import UserAccount, UserSession
from expense_tracker.models.validation import ValidationIssue, ValidationResult

__all__ = [
    # Expense models
    "DEFAULT_CATEGORIES",
    "MAX_AMOUNT",
    "Budget",
    "Category",
    "Expense",
    "ExpenseFilter",
    "ExpensePage",
    "default_categories",
    "page_bounds",
    "utcnow",
    # Activity models
    "ActivityAction",
    "ActivityEntryBuilder",
    "ActivityLogEntry",
    "EntityType",
    "ExpenseStatus",
    "fold_expense_status",
    # Identity
    "UserAccount",
    "UserSession",
    # Validation
    "ValidationIssue",
    "ValidationResult",
]
