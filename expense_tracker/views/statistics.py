"""Statistics: category totals for a timeframe and trailing monthly totals."""

from typing import Optional

from pydantic import Field

from expense_tracker.queries.aggregations import BudgetUsage, MonthlyTotal, Timeframe
from expense_tracker.queries.executor import CategoryStatistics, SpendingQueries
from expense_tracker.views.base import BaseView, ViewState


class StatisticsState(ViewState):
    timeframe: Timeframe = Timeframe.MONTH
    categories: Optional[CategoryStatistics] = None
    monthly: list[MonthlyTotal] = Field(default_factory=list)


class StatisticsView(BaseView):

    def __init__(self, backend, queries: SpendingQueries, today=None):
        super().__init__(backend, today)
        self._queries = queries
        self.state = StatisticsState()

    async def load(self, timeframe: Optional[Timeframe] = None) -> StatisticsState:
        self.state.clear_messages()
        if timeframe is not None:
            self.state.timeframe = timeframe
        try:
            self.state.categories = await self._queries.category_statistics(
                self.state.timeframe, self.today
            )
            self.state.monthly = await self._queries.monthly_statistics(self.today)
        except Exception as e:
            self._fail(self.state, "statistics_load", "load statistics", e)
        return self.state


class BudgetOverviewState(ViewState):
    rows: list[BudgetUsage] = Field(default_factory=list)


class BudgetOverviewView(BaseView):
    """Current-month spend against every positive budget."""

    def __init__(self, backend, queries: SpendingQueries, today=None):
        super().__init__(backend, today)
        self._queries = queries
        self.state = BudgetOverviewState()

    async def load(self) -> BudgetOverviewState:
        self.state.clear_messages()
        try:
            self.state.rows = await self._queries.budget_overview(self.today)
        except Exception as e:
            self._fail(self.state, "budget_overview_load", "load budget data", e)
        return self.state
