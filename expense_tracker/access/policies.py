"""
Row-Level Access Policies

DESIGN DECISION: Access control is a table of predicates, one per
(entity, operation), evaluated against (actor, row) before any read
result is returned or any mutation reaches storage.

    entity     select                  insert / update                 delete
    expense    own                     own (owner stamped on insert)   own
    category   default or own          own and not default             own and not default
    budget     own                     own and amount >= 0             own
    activity   own                     own on insert, never updated    never

An actor of None (not signed in) is denied everything.
"""

from enum import Enum
from typing import Callable, Optional, Union
from uuid import UUID

from expense_tracker.models.activity import ActivityLogEntry
from expense_tracker.models.expense import Budget, Category, Expense


Row = Union[Expense, Category, Budget, ActivityLogEntry]
Predicate = Callable[[Optional[UUID], Row], bool]


class Entity(str, Enum):
    """Tables guarded by a policy."""
    EXPENSE = "expense"
    CATEGORY = "category"
    BUDGET = "budget"
    ACTIVITY = "activity"


class Operation(str, Enum):
    """Operations a policy can allow."""
    SELECT = "select"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


class AccessDeniedError(Exception):
    """A policy rejected the request."""

    def __init__(self, entity: Entity, operation: Operation, message: Optional[str] = None):
        self.entity = entity
        self.operation = operation
        super().__init__(
            message or f"Not allowed to {operation.value} this {entity.value}"
        )


def _owns(actor: Optional[UUID], row: Row) -> bool:
    return actor is not None and row.user_id == actor


def _visible_category(actor: Optional[UUID], row: Category) -> bool:
    return actor is not None and (row.is_default or row.user_id == actor)


def _own_custom_category(actor: Optional[UUID], row: Category) -> bool:
    return _owns(actor, row) and not row.is_default


def _own_valid_budget(actor: Optional[UUID], row: Budget) -> bool:
    return _owns(actor, row) and row.amount >= 0


def _never(actor: Optional[UUID], row: Row) -> bool:
    return False


POLICIES: dict[tuple[Entity, Operation], Predicate] = {
    (Entity.EXPENSE, Operation.SELECT): _owns,
    (Entity.EXPENSE, Operation.INSERT): _owns,
    (Entity.EXPENSE, Operation.UPDATE): _owns,
    (Entity.EXPENSE, Operation.DELETE): _owns,

    (Entity.CATEGORY, Operation.SELECT): _visible_category,
    (Entity.CATEGORY, Operation.INSERT): _own_custom_category,
    (Entity.CATEGORY, Operation.UPDATE): _own_custom_category,
    (Entity.CATEGORY, Operation.DELETE): _own_custom_category,

    (Entity.BUDGET, Operation.SELECT): _owns,
    (Entity.BUDGET, Operation.INSERT): _own_valid_budget,
    (Entity.BUDGET, Operation.UPDATE): _own_valid_budget,
    (Entity.BUDGET, Operation.DELETE): _owns,

    (Entity.ACTIVITY, Operation.SELECT): _owns,
    (Entity.ACTIVITY, Operation.INSERT): _owns,
    (Entity.ACTIVITY, Operation.UPDATE): _never,
    (Entity.ACTIVITY, Operation.DELETE): _never,
}


def is_allowed(
    entity: Entity,
    operation: Operation,
    actor: Optional[UUID],
    row: Row,
) -> bool:
    """Evaluate the policy for one row. Unknown pairs are denied."""
    predicate = POLICIES.get((entity, operation), _never)
    return predicate(actor, row)


def authorize(
    entity: Entity,
    operation: Operation,
    actor: Optional[UUID],
    row: Row,
) -> None:
    """
    Raise AccessDeniedError unless the policy allows the operation.

    For updates, call once with the stored row and once with the new row.
    """
    if not is_allowed(entity, operation, actor, row):
        raise AccessDeniedError(entity, operation)


def can_edit_category(actor: Optional[UUID], category: Category) -> bool:
    """Whether the UI should offer an edit action for this category."""
    return is_allowed(Entity.CATEGORY, Operation.UPDATE, actor, category)
