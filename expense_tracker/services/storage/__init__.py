"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Google Sheets is the hosted backend; the in-memory store backs tests and
the local demo mode.
"""

from expense_tracker.services.storage.interface import (
    ActivityStorageInterface,
    BudgetStorageInterface,
    CategoryStorageInterface,
    ConnectionError,
    DuplicateError,
    ExpenseStorageInterface,
    NotFoundError,
    StorageBackend,
    StorageError,
    UserStorageInterface,
)
from expense_tracker.services.storage.memory import create_memory_backend
from expense_tracker.services.storage.google_sheets import (
    GoogleSheetsActivityStorage,
    GoogleSheetsBudgetStorage,
    GoogleSheetsCategoryStorage,
    GoogleSheetsClient,
    GoogleSheetsExpenseStorage,
    GoogleSheetsUserStorage,
    create_sheets_backend,
)

__all__ = [
    # Interfaces
    "ActivityStorageInterface",
    "BudgetStorageInterface",
    "CategoryStorageInterface",
    "ExpenseStorageInterface",
    "StorageBackend",
    "UserStorageInterface",
    # Exceptions
    "ConnectionError",
    "DuplicateError",
    "NotFoundError",
    "StorageError",
    # In-memory implementation
    "create_memory_backend",
    # Google Sheets implementation
    "GoogleSheetsActivityStorage",
    "GoogleSheetsBudgetStorage",
    "GoogleSheetsCategoryStorage",
    "GoogleSheetsClient",
    "GoogleSheetsExpenseStorage",
    "GoogleSheetsUserStorage",
    "create_sheets_backend",
]
