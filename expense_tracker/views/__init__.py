"""View controllers behind the Streamlit pages."""

from expense_tracker.views.activity import ActivityLogState, ActivityLogView, ActivityRow
from expense_tracker.views.base import BaseView, ViewState, failure_message
from expense_tracker.views.budgets import BudgetManagerState, BudgetManagerView
from expense_tracker.views.categories import CategoryManagerState, CategoryManagerView
from expense_tracker.views.expense_form import ExpenseFormState, ExpenseFormView
from expense_tracker.views.expense_list import (
    ExpenseListState,
    ExpenseListView,
    over_budget_banner,
)
from expense_tracker.views.statistics import (
    BudgetOverviewState,
    BudgetOverviewView,
    StatisticsState,
    StatisticsView,
)

__all__ = [
    "ActivityLogState",
    "ActivityLogView",
    "ActivityRow",
    "BaseView",
    "BudgetManagerState",
    "BudgetManagerView",
    "BudgetOverviewState",
    "BudgetOverviewView",
    "CategoryManagerState",
    "CategoryManagerView",
    "ExpenseFormState",
    "ExpenseFormView",
    "ExpenseListState",
    "ExpenseListView",
    "StatisticsState",
    "StatisticsView",
    "ViewState",
    "failure_message",
    "over_budget_banner",
]
