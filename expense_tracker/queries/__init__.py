"""Spending statistics package."""

from expense_tracker.queries.aggregations import (
    BudgetStatus,
    BudgetUsage,
    CategoryTotal,
    MonthlyTotal,
    OverBudget,
    Timeframe,
    budget_overview,
    budget_status,
    category_totals,
    monthly_totals,
    over_budget_categories,
    timeframe_range,
    totals_by_category,
    trailing_months,
)
from expense_tracker.queries.executor import CategoryStatistics, SpendingQueries

__all__ = [
    "BudgetStatus",
    "BudgetUsage",
    "CategoryStatistics",
    "CategoryTotal",
    "MonthlyTotal",
    "OverBudget",
    "SpendingQueries",
    "Timeframe",
    "budget_overview",
    "budget_status",
    "category_totals",
    "monthly_totals",
    "over_budget_categories",
    "timeframe_range",
    "totals_by_category",
    "trailing_months",
]
