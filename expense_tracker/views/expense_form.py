"""Add-expense form."""

from datetime import date
from typing import Optional
from uuid import UUID

from expense_tracker.audit.logger import ActivityLogger
from expense_tracker.models.expense import Expense
from expense_tracker.services.storage import NotFoundError
from expense_tracker.validation import (
    AmountInput,
    FormValidator,
    ValidationError,
    parse_amount,
)
from expense_tracker.views.base import BaseView, ViewState


ACTIVITY_NOT_RECORDED = (
    "Expense added, but it could not be recorded in the activity log."
)


class ExpenseFormState(ViewState):
    warning: Optional[str] = None
    last_saved: Optional[Expense] = None


class ExpenseFormView(BaseView):
    """
    Validates the form, inserts the expense, then writes the `add`
    activity entry.

    If the activity entry cannot be written the expense stays saved and
    the form reports success with a warning.
    """

    def __init__(self, backend, activity_logger: ActivityLogger, today=None):
        super().__init__(backend, today)
        self._activity = activity_logger
        self.state = ExpenseFormState()

    async def submit(
        self,
        amount: AmountInput,
        category_id: Optional[UUID],
        expense_date: Optional[date],
        description: Optional[str] = None,
    ) -> Optional[Expense]:
        self.state.clear_messages()
        self.state.warning = None

        validator = FormValidator(today=self.today)
        try:
            result = validator.require(
                validator.validate_expense(amount, category_id, expense_date, description)
            )
        except ValidationError as e:
            self.state.error = str(e)
            return None
        warnings = [i.message for i in result.issues if i.severity == "warning"]

        description = (description or "").strip() or None
        try:
            category = await self._backend.get_category(category_id)
            if category is None:
                raise NotFoundError(f"Category not found: {category_id}")
            expense = await self._backend.insert_expense(Expense(
                amount=parse_amount(amount),
                description=description,
                date=expense_date,
                category_id=category_id,
            ))
        except Exception as e:
            self._fail(self.state, "expense_add", "add expense", e)
            return None

        logged = await self._activity.log_expense_added(expense, category.name)
        if not logged:
            warnings.append(ACTIVITY_NOT_RECORDED)

        self.state.last_saved = expense
        self.state.notice = "Expense added"
        self.state.warning = " ".join(warnings) or None
        return expense
