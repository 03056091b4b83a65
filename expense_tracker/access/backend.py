"""
Authorized Backend

Every view talks to storage through this class. It plays the part a
hosted database with row-level security would play:

- reads only return rows the select policy allows
- mutations are checked against the policy before storage is touched
- owner columns on expenses and activity entries are stamped with the
  actor's id on insert, whatever the caller sent
- updated_at is stamped on every expense update

One instance is bound to one session. Views never see raw storage.
"""

from datetime import date
from typing import Optional
from uuid import UUID

import structlog

from expense_tracker.access.policies import (
    AccessDeniedError,
    Entity,
    Operation,
    authorize,
    is_allowed,
)
from expense_tracker.models.activity import ActivityLogEntry
from expense_tracker.models.expense import Budget, Category, Expense, utcnow
from expense_tracker.models.user import UserSession
from expense_tracker.services.storage import NotFoundError, StorageBackend


logger = structlog.get_logger(__name__)


class AuthorizedBackend:
    """Policy-enforcing facade over a StorageBackend for one session."""

    def __init__(
        self,
        storage: StorageBackend,
        session: Optional[UserSession],
    ):
        self._storage = storage
        self._session = session

    @property
    def session(self) -> Optional[UserSession]:
        return self._session

    @property
    def actor(self) -> Optional[UUID]:
        return self._session.user_id if self._session else None

    def _require_actor(self, entity: Entity, operation: Operation) -> UUID:
        if self._session is None:
            logger.warning(
                "access_denied",
                entity=entity.value,
                operation=operation.value,
                reason="not_signed_in",
            )
            raise AccessDeniedError(entity, operation, "Not signed in")
        return self._session.user_id

    def _check(self, entity: Entity, operation: Operation, row) -> None:
        try:
            authorize(entity, operation, self.actor, row)
        except AccessDeniedError:
            logger.warning(
                "access_denied",
                entity=entity.value,
                operation=operation.value,
                row_id=str(row.id),
                actor=str(self.actor),
            )
            raise

    # -------------------------------------------------------------------------
    # Categories
    # -------------------------------------------------------------------------

    async def list_categories(self) -> list[Category]:
        """Default categories plus the actor's own, ordered by name."""
        actor = self._require_actor(Entity.CATEGORY, Operation.SELECT)
        return [
            category
            for category in await self._storage.categories.list_categories()
            if is_allowed(Entity.CATEGORY, Operation.SELECT, actor, category)
        ]

    async def get_category(self, category_id: UUID) -> Optional[Category]:
        actor = self._require_actor(Entity.CATEGORY, Operation.SELECT)
        category = await self._storage.categories.get_category(category_id)
        if category and is_allowed(Entity.CATEGORY, Operation.SELECT, actor, category):
            return category
        return None

    async def insert_category(self, category: Category) -> Category:
        self._require_actor(Entity.CATEGORY, Operation.INSERT)
        self._check(Entity.CATEGORY, Operation.INSERT, category)
        return await self._storage.categories.insert_category(category)

    async def update_category(self, category: Category) -> Category:
        self._require_actor(Entity.CATEGORY, Operation.UPDATE)
        existing = await self.get_category(category.id)
        if existing is None:
            raise NotFoundError(f"Category not found: {category.id}")
        self._check(Entity.CATEGORY, Operation.UPDATE, existing)
        self._check(Entity.CATEGORY, Operation.UPDATE, category)
        return await self._storage.categories.update_category(category)

    async def delete_category(self, category_id: UUID) -> bool:
        self._require_actor(Entity.CATEGORY, Operation.DELETE)
        existing = await self.get_category(category_id)
        if existing is None:
            raise NotFoundError(f"Category not found: {category_id}")
        self._check(Entity.CATEGORY, Operation.DELETE, existing)
        return await self._storage.categories.delete_category(category_id)

    # -------------------------------------------------------------------------
    # Expenses
    # -------------------------------------------------------------------------

    async def insert_expense(self, expense: Expense) -> Expense:
        """Insert an expense owned by the actor (client-sent owner ignored)."""
        actor = self._require_actor(Entity.EXPENSE, Operation.INSERT)
        now = utcnow()
        stamped = expense.model_copy(
            update={"user_id": actor, "created_at": now, "updated_at": now}
        )
        self._check(Entity.EXPENSE, Operation.INSERT, stamped)
        return await self._storage.expenses.insert_expense(stamped)

    async def get_expense(self, expense_id: UUID) -> Optional[Expense]:
        actor = self._require_actor(Entity.EXPENSE, Operation.SELECT)
        expense = await self._storage.expenses.get_expense(expense_id)
        if expense and is_allowed(Entity.EXPENSE, Operation.SELECT, actor, expense):
            return expense
        return None

    async def update_expense(self, expense: Expense) -> Expense:
        self._require_actor(Entity.EXPENSE, Operation.UPDATE)
        existing = await self.get_expense(expense.id)
        if existing is None:
            raise NotFoundError(f"Expense not found: {expense.id}")
        self._check(Entity.EXPENSE, Operation.UPDATE, existing)
        updated = expense.model_copy(
            update={"created_at": existing.created_at, "updated_at": utcnow()}
        )
        self._check(Entity.EXPENSE, Operation.UPDATE, updated)
        return await self._storage.expenses.update_expense(updated)

    async def list_expenses(
        self,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        category_id: Optional[UUID] = None,
        include_deleted: bool = True,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> list[Expense]:
        actor = self._require_actor(Entity.EXPENSE, Operation.SELECT)
        rows = await self._storage.expenses.list_expenses(
            user_id=actor,
            date_from=date_from,
            date_to=date_to,
            category_id=category_id,
            include_deleted=include_deleted,
            offset=offset,
            limit=limit,
        )
        return [
            row for row in rows
            if is_allowed(Entity.EXPENSE, Operation.SELECT, actor, row)
        ]

    async def count_expenses(
        self,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        category_id: Optional[UUID] = None,
        include_deleted: bool = True,
    ) -> int:
        actor = self._require_actor(Entity.EXPENSE, Operation.SELECT)
        return await self._storage.expenses.count_expenses(
            user_id=actor,
            date_from=date_from,
            date_to=date_to,
            category_id=category_id,
            include_deleted=include_deleted,
        )

    # -------------------------------------------------------------------------
    # Budgets
    # -------------------------------------------------------------------------

    async def list_budgets(self) -> list[Budget]:
        actor = self._require_actor(Entity.BUDGET, Operation.SELECT)
        return [
            budget
            for budget in await self._storage.budgets.list_budgets(actor)
            if is_allowed(Entity.BUDGET, Operation.SELECT, actor, budget)
        ]

    async def insert_budget(self, budget: Budget) -> Budget:
        self._require_actor(Entity.BUDGET, Operation.INSERT)
        self._check(Entity.BUDGET, Operation.INSERT, budget)
        return await self._storage.budgets.insert_budget(budget)

    async def delete_budgets(self) -> int:
        """Delete every budget row of the actor."""
        actor = self._require_actor(Entity.BUDGET, Operation.DELETE)
        for budget in await self.list_budgets():
            self._check(Entity.BUDGET, Operation.DELETE, budget)
        return await self._storage.budgets.delete_budgets(actor)

    # -------------------------------------------------------------------------
    # Activity log
    # -------------------------------------------------------------------------

    async def append_activity(self, entry: ActivityLogEntry) -> ActivityLogEntry:
        """Append an entry owned by the actor (client-sent owner ignored)."""
        actor = self._require_actor(Entity.ACTIVITY, Operation.INSERT)
        stamped = entry.model_copy(update={"user_id": actor})
        self._check(Entity.ACTIVITY, Operation.INSERT, stamped)
        return await self._storage.activity.append_entry(stamped)

    async def list_activity(
        self,
        entity_id: Optional[UUID] = None,
    ) -> list[ActivityLogEntry]:
        """The actor's entries, newest first."""
        actor = self._require_actor(Entity.ACTIVITY, Operation.SELECT)
        return [
            entry
            for entry in await self._storage.activity.list_entries(actor, entity_id)
            if is_allowed(Entity.ACTIVITY, Operation.SELECT, actor, entry)
        ]
