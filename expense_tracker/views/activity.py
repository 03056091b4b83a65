"""
Activity log: the user's add/delete history, newest first.

Each entry shows the expense as it is now. When the expense can no
longer be read, the entry falls back to the snapshot taken when the
action happened.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from expense_tracker.models.activity import (
    ActivityAction,
    ExpenseStatus,
    fold_expense_status,
)
from expense_tracker.models.expense import Expense
from expense_tracker.views.base import BaseView, ViewState


class ActivityRow(BaseModel):
    """One rendered log entry."""

    id: UUID
    action: ActivityAction
    created_at: datetime
    expense_id: UUID
    amount: Optional[Decimal] = None
    description: Optional[str] = None
    category_name: Optional[str] = None
    from_snapshot: bool = False
    status: Optional[ExpenseStatus] = None


class ActivityLogState(ViewState):
    rows: list[ActivityRow] = Field(default_factory=list)


class ActivityLogView(BaseView):

    def __init__(self, backend, today=None):
        super().__init__(backend, today)
        self.state = ActivityLogState()

    async def load(self) -> ActivityLogState:
        self.state.clear_messages()
        try:
            entries = await self._backend.list_activity()
            categories = {c.id: c for c in await self._backend.list_categories()}
            expenses: dict[UUID, Optional[Expense]] = {}
            for entry in entries:
                if entry.entity_id not in expenses:
                    expenses[entry.entity_id] = await self._backend.get_expense(entry.entity_id)
        except Exception as e:
            self._fail(self.state, "activity_load", "load activity", e)
            return self.state

        statuses = fold_expense_status(entries)
        rows = []
        for entry in entries:
            expense = expenses.get(entry.entity_id)
            row = ActivityRow(
                id=entry.id,
                action=entry.action,
                created_at=entry.created_at,
                expense_id=entry.entity_id,
                status=statuses.get(entry.entity_id),
            )
            category = categories.get(expense.category_id) if expense else None
            if expense is not None and category is not None:
                row.amount = expense.amount
                row.description = expense.description
                row.category_name = category.name
            else:
                row.amount = entry.snapshot_amount
                row.description = entry.details.get("description")
                row.category_name = entry.details.get("category")
                row.from_snapshot = True
            rows.append(row)

        self.state.rows = rows
        return self.state
