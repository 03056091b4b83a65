"""
Activity Log Models for Expense Tracker

Every add and delete of an expense is recorded here.
This provides:
1. A history the user can browse
2. The state of an expense reconstructed from its events

DESIGN DECISION: The activity log is append-only. We never delete or
modify entries. The current state of an expense can be derived by
folding its events in order.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from expense_tracker.models.expense import Expense, utcnow


class ActivityAction(str, Enum):
    """Actions that are logged."""
    ADD = "add"
    DELETE = "delete"


class EntityType(str, Enum):
    """Kinds of records the activity log can point at."""
    EXPENSE = "expense"


class ExpenseStatus(str, Enum):
    """Status of an expense as derived from its events."""
    ACTIVE = "active"
    DELETED = "deleted"


class ActivityLogEntry(BaseModel):
    """
    A single activity log entry.

    details is a snapshot taken when the action happened (amount,
    description, category name) so the entry stays readable even if
    the expense or its category changes later.
    """

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique entry identifier"
    )
    user_id: Optional[UUID] = Field(
        default=None,
        description="Owner (stamped by the backend)"
    )
    action: ActivityAction
    entity_type: EntityType = EntityType.EXPENSE
    entity_id: UUID = Field(
        ...,
        description="ID of the expense this entry is about"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Snapshot of the expense at the time of the action"
    )
    created_at: datetime = Field(
        default_factory=utcnow,
        description="When the action happened (UTC)"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "entry_id": str(self.id),
            "timestamp": self.created_at.isoformat(),
            "action": self.action.value,
            "entity_type": self.entity_type.value,
            "entity_id": str(self.entity_id),
            "user_id": str(self.user_id) if self.user_id else None,
            "details": self.details,
        }

    @property
    def snapshot_amount(self) -> Optional[Decimal]:
        raw = self.details.get("amount")
        return Decimal(str(raw)) if raw is not None else None


class ActivityEntryBuilder:
    """
    Helper class to build activity entries with common patterns.

    Usage:
        entry = ActivityEntryBuilder.expense_added(expense, "Groceries")
        entry = ActivityEntryBuilder.expense_deleted(expense, "Groceries")
    """

    @staticmethod
    def _snapshot(expense: Expense, category_name: Optional[str]) -> dict[str, Any]:
        return {
            "amount": str(expense.amount),
            "description": expense.description,
            "category": category_name,
        }

    @staticmethod
    def expense_added(
        expense: Expense,
        category_name: Optional[str],
    ) -> ActivityLogEntry:
        return ActivityLogEntry(
            action=ActivityAction.ADD,
            entity_id=expense.id,
            details=ActivityEntryBuilder._snapshot(expense, category_name),
        )

    @staticmethod
    def expense_deleted(
        expense: Expense,
        category_name: Optional[str],
    ) -> ActivityLogEntry:
        return ActivityLogEntry(
            action=ActivityAction.DELETE,
            entity_id=expense.id,
            details=ActivityEntryBuilder._snapshot(expense, category_name),
        )


def fold_expense_status(
    entries: Iterable[ActivityLogEntry],
) -> dict[UUID, ExpenseStatus]:
    """
    Derive the current status of every expense mentioned in the log.

    Entries are applied oldest first; the latest state-changing event wins.
    On equal timestamps a delete is applied after an add.
    """
    status: dict[UUID, ExpenseStatus] = {}
    ordered = sorted(
        entries,
        key=lambda e: (e.created_at, e.action == ActivityAction.DELETE),
    )
    for entry in ordered:
        if entry.entity_type != EntityType.EXPENSE:
            continue
        if entry.action == ActivityAction.ADD:
            status[entry.entity_id] = ExpenseStatus.ACTIVE
        elif entry.action == ActivityAction.DELETE:
            status[entry.entity_id] = ExpenseStatus.DELETED
    return status
