"""Category manager: list, create and edit categories."""

from typing import Optional
from uuid import UUID

from pydantic import Field

from expense_tracker.access.policies import can_edit_category
from expense_tracker.models.expense import Category
from expense_tracker.services.storage import NotFoundError
from expense_tracker.validation import FormValidator, ValidationError
from expense_tracker.views.base import BaseView, ViewState


class CategoryManagerState(ViewState):
    categories: list[Category] = Field(default_factory=list)


class CategoryManagerView(BaseView):
    """
    Default categories are listed but never editable. Custom categories
    can be edited by their owner. There is no delete action.
    """

    def __init__(self, backend, today=None):
        super().__init__(backend, today)
        self.state = CategoryManagerState()
        self._validator = FormValidator()

    async def load(self) -> CategoryManagerState:
        try:
            self.state.categories = await self._backend.list_categories()
        except Exception as e:
            self._fail(self.state, "categories_load", "load categories", e)
        return self.state

    def can_edit(self, category: Category) -> bool:
        return can_edit_category(self._backend.actor, category)

    def _validate(self, name: Optional[str], icon: Optional[str]) -> bool:
        try:
            self._validator.require(self._validator.validate_category(name, icon))
        except ValidationError as e:
            self.state.error = str(e)
            return False
        return True

    async def create(self, name: Optional[str], icon: Optional[str]) -> Optional[Category]:
        """Add a custom category owned by the current user."""
        self.state.clear_messages()
        if not self._validate(name, icon):
            return None

        try:
            category = await self._backend.insert_category(Category(
                name=name.strip(),
                icon=icon.strip(),
                is_default=False,
                user_id=self._backend.actor,
            ))
        except Exception as e:
            self._fail(self.state, "category_add", "add category", e)
            return None

        self.state.notice = f"Added category {category.name}"
        await self.load()
        return category

    async def update(
        self,
        category_id: UUID,
        name: Optional[str],
        icon: Optional[str],
    ) -> Optional[Category]:
        """Rename or re-icon one of the user's own custom categories."""
        self.state.clear_messages()
        if not self._validate(name, icon):
            return None

        try:
            existing = await self._backend.get_category(category_id)
            if existing is None:
                raise NotFoundError(f"Category not found: {category_id}")
            category = await self._backend.update_category(
                existing.model_copy(update={"name": name.strip(), "icon": icon.strip()})
            )
        except Exception as e:
            self._fail(self.state, "category_update", "update category", e)
            return None

        self.state.notice = f"Updated category {category.name}"
        await self.load()
        return category
