"""Authentication package."""

from expense_tracker.auth.identity import AuthenticationError, IdentityService

__all__ = ["AuthenticationError", "IdentityService"]
