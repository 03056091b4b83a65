"""
Expense list: filter, paginate, soft delete, budget highlighting.

Rows are ordered by date (newest first), ties by creation time. Deleted
rows stay in the list, marked, but never count towards a total.
"""

import html
from datetime import date
from decimal import Decimal
from typing import Callable, Optional
from uuid import UUID

from pydantic import Field

from expense_tracker.audit.logger import ActivityLogger
from expense_tracker.models.expense import (
    Category,
    Expense,
    ExpenseFilter,
    ExpensePage,
    page_bounds,
    utcnow,
)
from expense_tracker.queries.aggregations import OverBudget, month_start
from expense_tracker.queries.executor import SpendingQueries
from expense_tracker.services.storage import NotFoundError
from expense_tracker.validation import FormValidator, ValidationError
from expense_tracker.views.base import BaseView, ViewState


def over_budget_banner(item: OverBudget, money: Callable[[Decimal], str]) -> str:
    """Warning banner markup for one over-budget category. The name is escaped."""
    return (
        '<div class="warning-box">'
        f"⚠️ <strong>{html.escape(item.category_name)}</strong> is over budget by {money(item.excess)} "
        f"({money(item.spent)} of {money(item.budget)})"
        "</div>"
    )


class ExpenseListState(ViewState):
    filters: ExpenseFilter
    page: int = Field(default=1, ge=1)
    result: Optional[ExpensePage] = None
    categories: dict[UUID, Category] = Field(default_factory=dict)
    over_budget: list[OverBudget] = Field(default_factory=list)

    @property
    def start_date(self) -> date:
        return self.filters.start_date

    @property
    def end_date(self) -> date:
        return self.filters.end_date

    @property
    def category_id(self) -> Optional[UUID]:
        return self.filters.category_id

    @property
    def rows(self) -> list[Expense]:
        return self.result.rows if self.result else []

    @property
    def total_pages(self) -> int:
        return self.result.total_pages if self.result else 0

    @property
    def page_total(self) -> Decimal:
        """Sum of the non-deleted rows on the current page."""
        return self.result.active_total if self.result else Decimal("0")


class ExpenseListView(BaseView):

    def __init__(
        self,
        backend,
        activity_logger: ActivityLogger,
        queries: SpendingQueries,
        page_size: int = 10,
        today=None,
    ):
        super().__init__(backend, today)
        self._activity = activity_logger
        self._queries = queries
        self._page_size = page_size
        self.state = self.default_state()

    def default_state(self) -> ExpenseListState:
        """First day of the current month to today, all categories."""
        today = self.today
        return ExpenseListState(
            filters=ExpenseFilter(start_date=month_start(today), end_date=today)
        )

    def category_name(self, expense: Expense) -> str:
        category = self.state.categories.get(expense.category_id)
        return category.name if category else "Unknown"

    def is_over_budget(self, expense: Expense) -> bool:
        """Whether this row's category is over budget this month."""
        if expense.is_deleted:
            return False
        return any(item.category_id == expense.category_id for item in self.state.over_budget)

    async def load(self) -> ExpenseListState:
        """Fetch the current page, the category names and the over-budget list."""
        state = self.state
        filters = state.filters.query_args()
        offset, stop = page_bounds(state.page, self._page_size)
        try:
            total_count = await self._backend.count_expenses(**filters)
            rows = await self._backend.list_expenses(
                **filters, offset=offset, limit=stop - offset
            )
            categories = await self._queries.categories_by_id()
            over_budget = await self._queries.over_budget(self.today)
        except Exception as e:
            self._fail(state, "expenses_load", "load expenses", e)
            return state

        state.result = ExpensePage(
            rows=rows,
            page=state.page,
            page_size=self._page_size,
            total_count=total_count,
        )
        state.categories = categories
        state.over_budget = over_budget
        return state

    async def set_filter(
        self,
        start_date: date,
        end_date: date,
        category_id: Optional[UUID] = None,
    ) -> ExpenseListState:
        """Apply a new filter and go back to page 1."""
        self.state.clear_messages()
        validator = FormValidator(today=self.today)
        try:
            validator.require(validator.validate_date_range(start_date, end_date))
        except ValidationError as e:
            self.state.error = str(e)
            return self.state

        self.state.filters = ExpenseFilter(
            start_date=start_date,
            end_date=end_date,
            category_id=category_id,
        )
        self.state.page = 1
        return await self.load()

    async def go_to_page(self, page: int) -> ExpenseListState:
        """Move to another page, clamped to the pages that exist."""
        self.state.clear_messages()
        last = max(self.state.total_pages, 1)
        self.state.page = min(max(page, 1), last)
        return await self.load()

    async def delete(self, expense_id: UUID) -> bool:
        """
        Soft delete an expense and record a `delete` activity entry.

        Deleting an expense that is already deleted changes nothing and
        logs nothing.
        """
        self.state.clear_messages()
        try:
            expense = await self._backend.get_expense(expense_id)
            if expense is None:
                raise NotFoundError(f"Expense not found: {expense_id}")
            if expense.is_deleted:
                return True
            category = (
                self.state.categories.get(expense.category_id)
                or await self._backend.get_category(expense.category_id)
            )
            deleted = await self._backend.update_expense(
                expense.model_copy(update={"is_deleted": True, "deleted_at": utcnow()})
            )
        except Exception as e:
            self._fail(self.state, "expense_delete", "delete expense", e)
            return False

        logged = await self._activity.log_expense_deleted(
            deleted, category.name if category else None
        )

        await self.load()
        if not logged:
            self.state.notice = "Expense deleted, but it could not be recorded in the activity log."
        return True
