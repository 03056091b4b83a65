"""
Spending Query Execution

DESIGN DECISION: Statistics are computed from stored rows only.
Each query fetches the rows for its date window through the authorized
backend (so only the actor's rows are ever seen) and hands them to the
pure reductions in aggregations.py.
"""

from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from expense_tracker.access.backend import AuthorizedBackend
from expense_tracker.models.expense import Category
from expense_tracker.queries.aggregations import (
    ZERO,
    BudgetUsage,
    CategoryTotal,
    MonthlyTotal,
    OverBudget,
    Timeframe,
    budget_overview,
    category_totals,
    describe_range,
    month_end,
    month_start,
    monthly_totals,
    over_budget_categories,
    timeframe_range,
    totals_by_category,
    trailing_window,
)


class CategoryStatistics(BaseModel):
    """Category totals for one timeframe."""

    timeframe: Timeframe
    date_from: date
    date_to: date
    total: Decimal = ZERO
    rows: list[CategoryTotal] = Field(default_factory=list)

    @property
    def description(self) -> str:
        return f"Spending {describe_range(self.date_from, self.date_to)}"


class SpendingQueries:
    """
    Runs the statistics and budget queries for one session.

    GUARANTEES:
    - Only rows visible to the session are read
    - Deleted expenses never count towards a total
    """

    def __init__(
        self,
        backend: AuthorizedBackend,
        trailing_months: int = 12,
        warning_ratio: float = 0.8,
    ):
        self._backend = backend
        self._trailing_months = trailing_months
        self._warning_ratio = warning_ratio

    async def categories_by_id(self) -> dict[UUID, Category]:
        return {category.id: category for category in await self._backend.list_categories()}

    async def _active_rows(self, date_from: date, date_to: date):
        return await self._backend.list_expenses(
            date_from=date_from,
            date_to=date_to,
            include_deleted=False,
        )

    async def category_statistics(
        self,
        timeframe: Timeframe,
        today: date,
    ) -> CategoryStatistics:
        """Category totals for the current calendar month or year."""
        date_from, date_to = timeframe_range(timeframe, today)
        rows = category_totals(
            await self._active_rows(date_from, date_to),
            await self.categories_by_id(),
        )
        return CategoryStatistics(
            timeframe=timeframe,
            date_from=date_from,
            date_to=date_to,
            total=sum((row.total for row in rows), ZERO),
            rows=rows,
        )

    async def monthly_statistics(
        self,
        today: date,
        months: Optional[int] = None,
    ) -> list[MonthlyTotal]:
        """Trailing monthly totals, current month first."""
        months = months or self._trailing_months
        date_from, date_to = trailing_window(today, months)
        return monthly_totals(
            await self._active_rows(date_from, date_to),
            await self.categories_by_id(),
            today,
            months,
        )

    async def current_month_totals(self, today: date) -> dict[UUID, Decimal]:
        """Per-category spend for today's month, ignoring any list filter or page."""
        return totals_by_category(
            await self._active_rows(month_start(today), month_end(today))
        )

    async def over_budget(self, today: date) -> list[OverBudget]:
        return over_budget_categories(
            await self.current_month_totals(today),
            await self._backend.list_budgets(),
            await self.categories_by_id(),
        )

    async def budget_overview(self, today: date) -> list[BudgetUsage]:
        return budget_overview(
            await self.current_month_totals(today),
            await self._backend.list_budgets(),
            await self.categories_by_id(),
            self._warning_ratio,
        )
