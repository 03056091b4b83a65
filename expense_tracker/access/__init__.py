"""Row-level access control package."""

from expense_tracker.access.backend import AuthorizedBackend
from expense_tracker.access.policies import (
    POLICIES,
    AccessDeniedError,
    Entity,
    Operation,
    authorize,
    can_edit_category,
    is_allowed,
)

__all__ = [
    "AuthorizedBackend",
    "POLICIES",
    "AccessDeniedError",
    "Entity",
    "Operation",
    "authorize",
    "can_edit_category",
    "is_allowed",
]
