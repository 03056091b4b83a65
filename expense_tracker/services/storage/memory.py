"""
In-Memory Storage Implementation

Used by the test suite and by the local demo mode
(STORAGE_BACKEND=memory). Data lives for the lifetime of the process.

Rows are copied on the way in and on the way out, so callers can never
mutate stored state without going through an update call.
"""

from datetime import date
from typing import Optional
from uuid import UUID

from expense_tracker.models.activity import ActivityLogEntry
from expense_tracker.models.expense import (
    Budget,
    Category,
    Expense,
    default_categories,
)
from expense_tracker.models.user import UserAccount
from expense_tracker.services.storage.interface import (
    ActivityStorageInterface,
    BudgetStorageInterface,
    CategoryStorageInterface,
    DuplicateError,
    ExpenseStorageInterface,
    NotFoundError,
    StorageBackend,
    UserStorageInterface,
)
from expense_tracker.services.storage.query import paginate, select_expenses


class InMemoryCategoryStorage(CategoryStorageInterface):

    def __init__(self, seed_defaults: bool = True):
        self._rows: dict[UUID, Category] = {}
        if seed_defaults:
            for category in default_categories():
                self._rows[category.id] = category

    async def insert_category(self, category: Category) -> Category:
        if category.id in self._rows:
            raise DuplicateError(f"Category already exists: {category.id}")
        self._rows[category.id] = category.model_copy(deep=True)
        return category.model_copy(deep=True)

    async def get_category(self, category_id: UUID) -> Optional[Category]:
        row = self._rows.get(category_id)
        return row.model_copy(deep=True) if row else None

    async def list_categories(self) -> list[Category]:
        rows = sorted(self._rows.values(), key=lambda c: c.name.lower())
        return [row.model_copy(deep=True) for row in rows]

    async def update_category(self, category: Category) -> Category:
        if category.id not in self._rows:
            raise NotFoundError(f"Category not found: {category.id}")
        self._rows[category.id] = category.model_copy(deep=True)
        return category.model_copy(deep=True)

    async def delete_category(self, category_id: UUID) -> bool:
        return self._rows.pop(category_id, None) is not None


class InMemoryExpenseStorage(ExpenseStorageInterface):

    def __init__(self):
        self._rows: dict[UUID, Expense] = {}

    async def insert_expense(self, expense: Expense) -> Expense:
        if expense.id in self._rows:
            raise DuplicateError(f"Expense already exists: {expense.id}")
        self._rows[expense.id] = expense.model_copy(deep=True)
        return expense.model_copy(deep=True)

    async def get_expense(self, expense_id: UUID) -> Optional[Expense]:
        row = self._rows.get(expense_id)
        return row.model_copy(deep=True) if row else None

    async def update_expense(self, expense: Expense) -> Expense:
        if expense.id not in self._rows:
            raise NotFoundError(f"Expense not found: {expense.id}")
        self._rows[expense.id] = expense.model_copy(deep=True)
        return expense.model_copy(deep=True)

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
        rows = select_expenses(
            self._rows.values(),
            user_id=user_id,
            date_from=date_from,
            date_to=date_to,
            category_id=category_id,
            include_deleted=include_deleted,
        )
        return [row.model_copy(deep=True) for row in paginate(rows, offset, limit)]

    async def count_expenses(
        self,
        user_id: UUID,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        category_id: Optional[UUID] = None,
        include_deleted: bool = True,
    ) -> int:
        return len(select_expenses(
            self._rows.values(),
            user_id=user_id,
            date_from=date_from,
            date_to=date_to,
            category_id=category_id,
            include_deleted=include_deleted,
        ))


class InMemoryBudgetStorage(BudgetStorageInterface):

    def __init__(self):
        self._rows: dict[UUID, Budget] = {}

    async def list_budgets(self, user_id: UUID) -> list[Budget]:
        return [
            row.model_copy(deep=True)
            for row in self._rows.values()
            if row.user_id == user_id
        ]

    async def insert_budget(self, budget: Budget) -> Budget:
        for row in self._rows.values():
            if row.user_id == budget.user_id and row.category_id == budget.category_id:
                raise DuplicateError(
                    f"Budget already exists for category {budget.category_id}"
                )
        self._rows[budget.id] = budget.model_copy(deep=True)
        return budget.model_copy(deep=True)

    async def delete_budgets(self, user_id: UUID) -> int:
        doomed = [key for key, row in self._rows.items() if row.user_id == user_id]
        for key in doomed:
            del self._rows[key]
        return len(doomed)


class InMemoryActivityStorage(ActivityStorageInterface):

    def __init__(self):
        self._entries: list[ActivityLogEntry] = []

    async def append_entry(self, entry: ActivityLogEntry) -> ActivityLogEntry:
        self._entries.append(entry.model_copy(deep=True))
        return entry.model_copy(deep=True)

    async def list_entries(
        self,
        user_id: UUID,
        entity_id: Optional[UUID] = None,
    ) -> list[ActivityLogEntry]:
        entries = [
            entry for entry in self._entries
            if entry.user_id == user_id
            and (entity_id is None or entry.entity_id == entity_id)
        ]
        entries.sort(key=lambda e: e.created_at, reverse=True)
        return [entry.model_copy(deep=True) for entry in entries]


class InMemoryUserStorage(UserStorageInterface):

    def __init__(self):
        self._rows: dict[str, UserAccount] = {}

    async def insert_user(self, user: UserAccount) -> UserAccount:
        if user.email in self._rows:
            raise DuplicateError(f"Email already registered: {user.email}")
        self._rows[user.email] = user.model_copy(deep=True)
        return user.model_copy(deep=True)

    async def get_user_by_email(self, email: str) -> Optional[UserAccount]:
        row = self._rows.get(email.strip().lower())
        return row.model_copy(deep=True) if row else None


def create_memory_backend(seed_defaults: bool = True) -> StorageBackend:
    """Fresh, empty store (plus default categories)."""
    return StorageBackend(
        categories=InMemoryCategoryStorage(seed_defaults=seed_defaults),
        expenses=InMemoryExpenseStorage(),
        budgets=InMemoryBudgetStorage(),
        activity=InMemoryActivityStorage(),
        users=InMemoryUserStorage(),
    )
