"""
Row selection shared by the storage implementations.

Neither backend can push filters down (Sheets has no query language,
memory has nothing to push to), so both filter in Python here.
"""

from datetime import date
from typing import Iterable, Optional
from uuid import UUID

from expense_tracker.models.expense import Expense


def expense_sort_key(expense: Expense) -> tuple:
    """Key for newest-first ordering: date, then creation time."""
    return (expense.date, expense.created_at)


def select_expenses(
    expenses: Iterable[Expense],
    user_id: UUID,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    category_id: Optional[UUID] = None,
    include_deleted: bool = True,
) -> list[Expense]:
    """Filter expenses and order them newest first."""
    selected = []
    for expense in expenses:
        if expense.user_id != user_id:
            continue
        if date_from and expense.date < date_from:
            continue
        if date_to and expense.date > date_to:
            continue
        if category_id and expense.category_id != category_id:
            continue
        if not include_deleted and expense.is_deleted:
            continue
        selected.append(expense)

    selected.sort(key=expense_sort_key, reverse=True)
    return selected


def paginate(rows: list, offset: int = 0, limit: Optional[int] = None) -> list:
    if limit is None:
        return rows[offset:]
    return rows[offset:offset + limit]
