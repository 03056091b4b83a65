"""
Spending Aggregations

Pure reductions over expense rows the data source has already filtered
by owner and date range. Nothing here touches storage.

Deleted expenses are skipped by every reduction: they stay visible in
the list but never count towards a total.
"""

import calendar
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Iterable, Mapping, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from expense_tracker.models.expense import Budget, Category, Expense


UNKNOWN_CATEGORY = "Unknown"
ZERO = Decimal("0")


class Timeframe(str, Enum):
    """Periods the statistics view can cover."""
    MONTH = "month"
    YEAR = "year"


class CategoryTotal(BaseModel):
    """Spend in one category over a period."""

    category_id: UUID
    category_name: str
    icon: Optional[str] = None
    total: Decimal
    percentage: float = Field(
        default=0.0,
        description="Share of the period's grand total, 0-100"
    )


class MonthlyTotal(BaseModel):
    """Spend in one calendar month with its per-category breakdown."""

    month: date = Field(..., description="First day of the month")
    total: Decimal
    breakdown: list[CategoryTotal] = Field(default_factory=list)

    @property
    def label(self) -> str:
        return self.month.strftime("%b %Y")


class BudgetStatus(str, Enum):
    """How close a category is to its budget."""
    OK = "ok"
    WARNING = "warning"
    OVER = "over"


class BudgetUsage(BaseModel):
    """Current-month spend against the budget of one category."""

    category_id: UUID
    category_name: str
    budget: Decimal
    spent: Decimal
    remaining: Decimal
    percentage_used: float
    status: BudgetStatus


class OverBudget(BaseModel):
    """A category whose current-month spend exceeds its budget."""

    category_id: UUID
    category_name: str
    budget: Decimal
    spent: Decimal

    @property
    def excess(self) -> Decimal:
        return self.spent - self.budget


# =============================================================================
# DATE RANGES
# =============================================================================

def month_start(day: date) -> date:
    return day.replace(day=1)


def month_end(day: date) -> date:
    return day.replace(day=calendar.monthrange(day.year, day.month)[1])


def shift_months(day: date, months: int) -> date:
    """First day of the month `months` away from day's month."""
    index = day.year * 12 + (day.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def timeframe_range(timeframe: Timeframe, today: date) -> tuple[date, date]:
    """Inclusive (start, end) of the current calendar month or year."""
    if timeframe == Timeframe.YEAR:
        return date(today.year, 1, 1), date(today.year, 12, 31)
    return month_start(today), month_end(today)


def trailing_months(today: date, count: int) -> list[date]:
    """First days of the last `count` months, current month first."""
    return [shift_months(today, -offset) for offset in range(count)]


def trailing_window(today: date, count: int) -> tuple[date, date]:
    """Inclusive date range covered by trailing_months(today, count)."""
    return shift_months(today, -(count - 1)), month_end(today)


def describe_range(date_from: Optional[date], date_to: Optional[date]) -> str:
    """Format a date range for a heading."""
    if date_from and date_to:
        if date_from == date_to:
            return f"on {date_from.strftime('%d %b %Y')}"
        elif date_from.month == date_to.month and date_from.year == date_to.year:
            return f"in {date_from.strftime('%B %Y')}"
        elif date_from.year == date_to.year:
            return f"from {date_from.strftime('%b')} to {date_to.strftime('%b %Y')}"
        else:
            return f"from {date_from.strftime('%b %Y')} to {date_to.strftime('%b %Y')}"
    elif date_from:
        return f"from {date_from.strftime('%d %b %Y')}"
    elif date_to:
        return f"until {date_to.strftime('%d %b %Y')}"
    return ""


# =============================================================================
# REDUCTIONS
# =============================================================================

def _active(expenses: Iterable[Expense]) -> list[Expense]:
    return [expense for expense in expenses if not expense.is_deleted]


def totals_by_category(expenses: Iterable[Expense]) -> dict[UUID, Decimal]:
    """Sum of non-deleted amounts per category id."""
    totals: dict[UUID, Decimal] = {}
    for expense in _active(expenses):
        totals[expense.category_id] = totals.get(expense.category_id, ZERO) + expense.amount
    return totals


def category_totals(
    expenses: Iterable[Expense],
    categories: Mapping[UUID, Category],
) -> list[CategoryTotal]:
    """
    Group non-deleted expenses by category.

    Ordered by total (largest first), then name. Percentages are of the
    grand total and are 0 when nothing was spent.
    """
    totals = totals_by_category(expenses)
    grand_total = sum(totals.values(), ZERO)

    results = []
    for category_id, total in totals.items():
        category = categories.get(category_id)
        percentage = float(total / grand_total * 100) if grand_total else 0.0
        results.append(CategoryTotal(
            category_id=category_id,
            category_name=category.name if category else UNKNOWN_CATEGORY,
            icon=category.icon if category else None,
            total=total,
            percentage=percentage,
        ))

    results.sort(key=lambda row: (-row.total, row.category_name))
    return results


def monthly_totals(
    expenses: Iterable[Expense],
    categories: Mapping[UUID, Category],
    today: date,
    months: int = 12,
) -> list[MonthlyTotal]:
    """
    Totals for the trailing `months` calendar months ending with today's.

    Every month appears, with 0 when nothing was spent. Most recent first.
    """
    by_month: dict[date, list[Expense]] = {start: [] for start in trailing_months(today, months)}
    for expense in _active(expenses):
        key = month_start(expense.date)
        if key in by_month:
            by_month[key].append(expense)

    return [
        MonthlyTotal(
            month=start,
            total=sum((expense.amount for expense in rows), ZERO),
            breakdown=category_totals(rows, categories),
        )
        for start, rows in by_month.items()
    ]


def _positive_budgets(budgets: Iterable[Budget]) -> dict[UUID, Decimal]:
    return {budget.category_id: budget.amount for budget in budgets if budget.amount > 0}


def over_budget_categories(
    month_totals: Mapping[UUID, Decimal],
    budgets: Iterable[Budget],
    categories: Mapping[UUID, Category],
) -> list[OverBudget]:
    """
    Categories whose spend strictly exceeds a positive budget.

    Ordered by excess, largest first.
    """
    results = []
    for category_id, limit in _positive_budgets(budgets).items():
        spent = month_totals.get(category_id, ZERO)
        if spent > limit:
            category = categories.get(category_id)
            results.append(OverBudget(
                category_id=category_id,
                category_name=category.name if category else UNKNOWN_CATEGORY,
                budget=limit,
                spent=spent,
            ))
    results.sort(key=lambda row: (-row.excess, row.category_name))
    return results


def budget_status(spent: Decimal, limit: Decimal, warning_ratio: float = 0.8) -> BudgetStatus:
    """ok below warning_ratio of the budget, warning below 100%, over from 100%."""
    ratio = spent / limit
    if ratio >= 1:
        return BudgetStatus.OVER
    if ratio >= Decimal(str(warning_ratio)):
        return BudgetStatus.WARNING
    return BudgetStatus.OK


def budget_overview(
    month_totals: Mapping[UUID, Decimal],
    budgets: Iterable[Budget],
    categories: Mapping[UUID, Category],
    warning_ratio: float = 0.8,
) -> list[BudgetUsage]:
    """Spend against budget for every category with a positive budget, by name."""
    results = []
    for category_id, limit in _positive_budgets(budgets).items():
        spent = month_totals.get(category_id, ZERO)
        category = categories.get(category_id)
        results.append(BudgetUsage(
            category_id=category_id,
            category_name=category.name if category else UNKNOWN_CATEGORY,
            budget=limit,
            spent=spent,
            remaining=limit - spent,
            percentage_used=float(spent / limit * 100),
            status=budget_status(spent, limit, warning_ratio),
        ))
    results.sort(key=lambda row: row.category_name)
    return results
