"""
Core Data Models for Expense Tracker

These models define the strict schemas for all data flowing through the system.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Be serializable for storage and logging

DESIGN DECISION: Amounts are Decimal, never float. Totals shown to the
user must add up exactly to the rows they were computed from.
"""

import datetime as dt
import math
from decimal import Decimal
from typing import Annotated, Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)


# Largest amount an expense or budget may hold
MAX_AMOUNT = Decimal("999999999999.99")


def utcnow() -> dt.datetime:
    """Timezone-aware current time; every stored timestamp uses this."""
    return dt.datetime.now(dt.timezone.utc)


# =============================================================================
# CATEGORY
# =============================================================================

class Category(BaseModel):
    """
    An expense category.

    Default categories are shared by every user and have no owner.
    Custom categories belong to the user who created them.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique category ID"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=100,
        description="Display name"
    )
    icon: str = Field(
        ...,
        min_length=1,
        max_length=50,
        description="Icon identifier (Lucide icon name)"
    )
    is_default: bool = Field(
        default=False,
        description="Shared, immutable category"
    )
    user_id: Optional[UUID] = Field(
        default=None,
        description="Owner of a custom category; always None for defaults"
    )
    created_at: dt.datetime = Field(default_factory=utcnow)

    @model_validator(mode='after')
    def validate_owner(self) -> 'Category':
        """A default category is never owned."""
        if self.is_default and self.user_id is not None:
            raise ValueError("Default categories cannot have an owner")
        return self


# Seed rows for the categories table, in display order
DEFAULT_CATEGORIES: list[tuple[str, str]] = [
    ("Rent/Mortgage", "home"),
    ("Groceries", "shopping-cart"),
    ("Utilities", "plug"),
    ("Transportation", "car"),
    ("Insurance", "shield"),
    ("Dining Out", "utensils"),
    ("Entertainment", "tv"),
    ("Shopping", "shopping-bag"),
    ("Subscriptions", "repeat"),
    ("Health", "heart-pulse"),
    ("Education", "book-open"),
    ("Travel", "plane"),
    ("Gifts", "gift"),
    ("Pets", "paw-print"),
    ("Personal Care", "scissors"),
    ("Kids", "baby"),
    ("Taxes", "calculator"),
    ("Miscellaneous", "more-horizontal"),
    ("Savings", "piggy-bank"),
    ("Investment", "trending-up"),
]


def default_categories() -> list[Category]:
    """Build fresh default category records."""
    return [
        Category(name=name, icon=icon, is_default=True)
        for name, icon in DEFAULT_CATEGORIES
    ]


# =============================================================================
# EXPENSE
# =============================================================================

class Expense(BaseModel):
    """
    A single recorded expense.

    CRITICAL: Expenses are never physically deleted. Deleting one sets
    is_deleted/deleted_at; the row stays for history and the activity log.

    user_id is stamped by the backend on insert. Whatever the client
    sends is overwritten.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique expense ID"
    )
    amount: Annotated[
        Decimal,
        Field(gt=0, le=MAX_AMOUNT, decimal_places=2, description="Amount spent")
    ]
    description: Optional[str] = Field(
        default=None,
        max_length=500,
        description="Free text description"
    )
    date: dt.date = Field(
        ...,
        description="Day the money was spent"
    )
    category_id: UUID = Field(
        ...,
        description="Category this expense is filed under"
    )
    user_id: Optional[UUID] = Field(
        default=None,
        description="Owner (stamped by the backend)"
    )

    # Soft delete
    is_deleted: bool = False
    deleted_at: Optional[dt.datetime] = None

    created_at: dt.datetime = Field(default_factory=utcnow)
    updated_at: dt.datetime = Field(default_factory=utcnow)

    @model_validator(mode='after')
    def validate_deleted_state(self) -> 'Expense':
        """deleted_at is only meaningful on deleted rows."""
        if self.deleted_at is not None and not self.is_deleted:
            raise ValueError("deleted_at set on an expense that is not deleted")
        return self

    @property
    def is_active(self) -> bool:
        return not self.is_deleted


# =============================================================================
# BUDGET
# =============================================================================

class Budget(BaseModel):
    """
    Spending limit for one category, for one user.

    Unique per (category_id, user_id). There is no per-month budget:
    the same amount applies to every month.
    """

    id: UUID = Field(default_factory=uuid4)
    category_id: UUID
    user_id: Optional[UUID] = Field(
        default=None,
        description="Owner (stamped by the backend)"
    )
    amount: Annotated[
        Decimal,
        Field(ge=0, le=MAX_AMOUNT, decimal_places=2, description="Monthly limit")
    ]
    created_at: dt.datetime = Field(default_factory=utcnow)


# =============================================================================
# QUERY MODELS
# =============================================================================

class ExpenseFilter(BaseModel):
    """Filters for the expense list. Both dates are inclusive."""

    start_date: dt.date
    end_date: dt.date
    category_id: Optional[UUID] = None

    @model_validator(mode='after')
    def validate_range(self) -> 'ExpenseFilter':
        if self.end_date < self.start_date:
            raise ValueError("End date cannot be before start date")
        return self

    def query_args(self) -> dict:
        """Keyword arguments for list_expenses / count_expenses."""
        return {
            "date_from": self.start_date,
            "date_to": self.end_date,
            "category_id": self.category_id,
        }


class ExpensePage(BaseModel):
    """One page of the filtered, date-descending expense list."""

    rows: list[Expense] = Field(default_factory=list)
    page: int = Field(ge=1)
    page_size: int = Field(ge=1)
    total_count: int = Field(ge=0)

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.page_size)

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def active_total(self) -> Decimal:
        """Sum of the rows on this page that are not deleted."""
        return sum(
            (row.amount for row in self.rows if row.is_active),
            Decimal("0"),
        )


def page_bounds(page: int, page_size: int) -> tuple[int, int]:
    """
    Half-open row range [start, stop) for a 1-based page number.

    page 1 with size 10 is rows [0, 10).
    """
    if page < 1:
        raise ValueError("Page numbers start at 1")
    start = (page - 1) * page_size
    return start, start + page_size
