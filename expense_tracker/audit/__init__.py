"""Activity logging package."""

from expense_tracker.audit.logger import ActivityLogger

__all__ = ["ActivityLogger"]
