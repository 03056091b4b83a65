"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep Google Sheets as the hosted store without binding views to it
2. Use in-memory storage for testing and local demos
3. Keep access control in one layer above storage

Storage knows nothing about who is asking. Owner filters are plain
parameters; the authorization layer (expense_tracker.access) decides
which values are passed and checks every row that comes back.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Optional
from uuid import UUID

from expense_tracker.models.activity import ActivityLogEntry
from expense_tracker.models.expense import Budget, Category, Expense
from expense_tracker.models.user import UserAccount


class CategoryStorageInterface(ABC):
    """Abstract interface for the categories table."""

    @abstractmethod
    async def insert_category(self, category: Category) -> Category:
        """
        Insert a new category.

        Raises:
            DuplicateError: If the id already exists
        """
        pass

    @abstractmethod
    async def get_category(self, category_id: UUID) -> Optional[Category]:
        """Return the category, or None if it doesn't exist."""
        pass

    @abstractmethod
    async def list_categories(self) -> list[Category]:
        """Return every category, ordered by name."""
        pass

    @abstractmethod
    async def update_category(self, category: Category) -> Category:
        """
        Replace a stored category.

        Raises:
            NotFoundError: If the category doesn't exist
        """
        pass

    @abstractmethod
    async def delete_category(self, category_id: UUID) -> bool:
        """Delete a category. Returns False if it didn't exist."""
        pass


class ExpenseStorageInterface(ABC):
    """
    Abstract interface for the expenses table.

    There is no physical delete: soft deletes are updates.
    """

    @abstractmethod
    async def insert_expense(self, expense: Expense) -> Expense:
        """
        Insert a new expense.

        Raises:
            DuplicateError: If the id already exists
        """
        pass

    @abstractmethod
    async def get_expense(self, expense_id: UUID) -> Optional[Expense]:
        """Return the expense, or None if it doesn't exist."""
        pass

    @abstractmethod
    async def update_expense(self, expense: Expense) -> Expense:
        """
        Replace a stored expense.

        Raises:
            NotFoundError: If the expense doesn't exist
        """
        pass

    @abstractmethod
    async def list_expenses(
        self,
        user_id: UUID,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        category_id: Optional[UUID] = None,
        include_deleted: bool = True,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> list[Expense]:
        """
        List a user's expenses with optional filters.

        Args:
            user_id: Owner whose rows are returned
            date_from: Include expenses on or after this date
            date_to: Include expenses on or before this date
            category_id: Filter by category
            include_deleted: Whether soft-deleted rows are returned
            offset: Number of results to skip
            limit: Maximum number of results (None = all)

        Returns:
            Matching expenses, newest date first
            (ties broken by creation time, newest first)
        """
        pass

    @abstractmethod
    async def count_expenses(
        self,
        user_id: UUID,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        category_id: Optional[UUID] = None,
        include_deleted: bool = True,
    ) -> int:
        """Count the rows list_expenses would return without paging."""
        pass


class BudgetStorageInterface(ABC):
    """Abstract interface for the budgets table."""

    @abstractmethod
    async def list_budgets(self, user_id: UUID) -> list[Budget]:
        """Return every budget row of a user."""
        pass

    @abstractmethod
    async def insert_budget(self, budget: Budget) -> Budget:
        """
        Insert a budget row.

        Raises:
            DuplicateError: If the user already has a budget for the category
        """
        pass

    @abstractmethod
    async def delete_budgets(self, user_id: UUID) -> int:
        """Delete every budget row of a user. Returns the number deleted."""
        pass


class ActivityStorageInterface(ABC):
    """
    Abstract interface for the activity log.

    The activity log is append-only - we never delete or modify entries.
    """

    @abstractmethod
    async def append_entry(self, entry: ActivityLogEntry) -> ActivityLogEntry:
        """Append an entry to the log."""
        pass

    @abstractmethod
    async def list_entries(
        self,
        user_id: UUID,
        entity_id: Optional[UUID] = None,
    ) -> list[ActivityLogEntry]:
        """
        Return a user's entries, newest first.

        Args:
            user_id: Owner whose entries are returned
            entity_id: Only entries about this entity
        """
        pass


class UserStorageInterface(ABC):
    """Abstract interface for user accounts."""

    @abstractmethod
    async def insert_user(self, user: UserAccount) -> UserAccount:
        """
        Register a user.

        Raises:
            DuplicateError: If the email is already registered
        """
        pass

    @abstractmethod
    async def get_user_by_email(self, email: str) -> Optional[UserAccount]:
        """Look a user up by (case-insensitive) email."""
        pass


class StorageBackend:
    """All tables of one store, handed around as a unit."""

    def __init__(
        self,
        categories: CategoryStorageInterface,
        expenses: ExpenseStorageInterface,
        budgets: BudgetStorageInterface,
        activity: ActivityStorageInterface,
        users: UserStorageInterface,
    ):
        self.categories = categories
        self.expenses = expenses
        self.budgets = budgets
        self.activity = activity
        self.users = users


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
