"""
Budget manager.

Budgets are edited locally and saved as a full replace: every budget
row of the user is deleted, then one row is inserted per category with
a positive amount. Two sessions saving at once race; the last save wins.
"""

from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import Field

from expense_tracker.models.expense import Budget
from expense_tracker.validation import ValidationError, parse_budget_amount
from expense_tracker.views.base import BaseView, ViewState


class BudgetManagerState(ViewState):
    amounts: dict[UUID, Decimal] = Field(
        default_factory=dict,
        description="category_id -> monthly budget, as edited"
    )
    dirty: bool = False


class BudgetManagerView(BaseView):

    def __init__(self, backend, today=None):
        super().__init__(backend, today)
        self.state = BudgetManagerState()

    async def load(self) -> BudgetManagerState:
        try:
            budgets = await self._backend.list_budgets()
        except Exception as e:
            self._fail(self.state, "budgets_load", "load budgets", e)
            return self.state
        self.state.amounts = {budget.category_id: budget.amount for budget in budgets}
        self.state.dirty = False
        return self.state

    def amount_for(self, category_id: UUID) -> Decimal:
        return self.state.amounts.get(category_id, Decimal("0"))

    def edit(self, category_id: UUID, raw: Optional[str]) -> bool:
        """
        Change one category's budget locally.

        Blank or unparsable input sets 0. Negative input is rejected and
        leaves the previous value in place.
        """
        try:
            value = parse_budget_amount(raw)
        except ValidationError as e:
            self.state.error = str(e)
            return False
        amounts = dict(self.state.amounts)
        amounts[category_id] = value
        self.state.amounts = amounts
        self.state.dirty = True
        self.state.error = None
        return True

    async def save(self) -> bool:
        """Replace the stored budgets with the positive local amounts."""
        self.state.clear_messages()
        rows = [
            Budget(category_id=category_id, user_id=self._backend.actor, amount=amount)
            for category_id, amount in self.state.amounts.items()
            if amount > 0
        ]
        try:
            await self._backend.delete_budgets()
            for row in rows:
                await self._backend.insert_budget(row)
        except Exception as e:
            self._fail(self.state, "budgets_save", "save budgets", e)
            return False

        await self.load()
        self.state.notice = "Budgets saved"
        return True
