"""
Activity Logger

DESIGN DECISION: Every add and delete of an expense is logged.
This provides:
1. A history the user can browse
2. Debugging capability

The activity logger:
- Always writes the event to the structured local log
- Persists it through the authorized backend (owner stamped there)
- Gracefully handles failures (a failed log write never undoes the
  expense change it describes)
"""

from typing import Optional

import structlog

from expense_tracker.access.backend import AuthorizedBackend
from expense_tracker.models.activity import ActivityEntryBuilder, ActivityLogEntry
from expense_tracker.models.expense import Expense


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class ActivityLogger:
    """
    Central activity logging service.

    Logs entries both to:
    1. Structured local log (for debugging)
    2. The activity log table (for the user's history view)
    """

    def __init__(self, backend: Optional[AuthorizedBackend] = None):
        """
        Initialize activity logger.

        Args:
            backend: Authorized backend used for persistence.
                    If None, only logs locally.
        """
        self._backend = backend
        self._logger = structlog.get_logger()

    async def log(self, entry: ActivityLogEntry) -> bool:
        """
        Log an activity entry.

        Always logs locally. Persists through the backend if available.

        Returns True if the backend write succeeded (or no backend configured).
        """
        self._logger.info("activity_event", **entry.to_log_dict())

        if self._backend:
            try:
                await self._backend.append_activity(entry)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "activity_storage_failed",
                    error=str(e),
                    entry_id=str(entry.id),
                    entity_id=str(entry.entity_id),
                )
                return False

        return True

    async def log_expense_added(
        self,
        expense: Expense,
        category_name: Optional[str],
    ) -> bool:
        """Log creation of an expense."""
        return await self.log(ActivityEntryBuilder.expense_added(expense, category_name))

    async def log_expense_deleted(
        self,
        expense: Expense,
        category_name: Optional[str],
    ) -> bool:
        """Log soft deletion of an expense."""
        return await self.log(ActivityEntryBuilder.expense_deleted(expense, category_name))
