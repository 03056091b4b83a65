"""
Shared plumbing for the view controllers.

Each view owns a small pydantic state struct that the Streamlit page
renders. View methods never raise: failures end up in state.error as a
short message for the user, and the technical detail goes to the
structured log.
"""

from datetime import date
from typing import Callable, Optional

import structlog
from pydantic import BaseModel, ConfigDict

from expense_tracker.access.backend import AuthorizedBackend


Today = Callable[[], date]


def failure_message(action: str) -> str:
    """The generic message shown when a request fails."""
    return f"Failed to {action}. Please try again."


class ViewState(BaseModel):
    """Fields every view state carries."""
    model_config = ConfigDict(validate_assignment=True)

    error: Optional[str] = None
    notice: Optional[str] = None

    def clear_messages(self) -> None:
        self.error = None
        self.notice = None


class BaseView:
    """A controller bound to one session's authorized backend."""

    def __init__(
        self,
        backend: AuthorizedBackend,
        today: Optional[Today] = None,
    ):
        self._backend = backend
        self._today = today or date.today
        self._logger = structlog.get_logger(type(self).__module__)

    @property
    def today(self) -> date:
        return self._today()

    def _fail(
        self,
        state: ViewState,
        event: str,
        action: str,
        error: Exception,
    ) -> None:
        """Record a failed request: log the detail, show the generic message."""
        self._logger.error(
            f"{event}_failed",
            error=str(error),
            error_type=type(error).__name__,
            user_id=str(self._backend.actor),
        )
        state.error = failure_message(action)
