"""
Main Orchestrator for Expense Tracker

This module ties together all the components:
1. App-wide: storage backend, identity service, settings
2. Per session: authorized backend, activity logger, queries and views

DESIGN DECISION: The orchestrator enforces the boundaries:
- Views only ever see an AuthorizedBackend bound to the signed-in user
- Every expense add and delete goes through the activity logger
- Without a session there are no views at all
"""

from typing import Optional

import structlog

from expense_tracker.access.backend import AuthorizedBackend
from expense_tracker.audit.logger import ActivityLogger
from expense_tracker.auth.identity import IdentityService
from expense_tracker.config import AppSettings, get_settings
from expense_tracker.models.user import UserSession
from expense_tracker.queries.executor import SpendingQueries
from expense_tracker.services.storage import (
    StorageBackend,
    create_memory_backend,
    create_sheets_backend,
)
from expense_tracker.views import (
    ActivityLogView,
    BudgetManagerView,
    BudgetOverviewView,
    CategoryManagerView,
    ExpenseFormView,
    ExpenseListView,
    StatisticsView,
)
from expense_tracker.views.base import Today


logger = structlog.get_logger(__name__)


class AppComponents:
    """Everything shared by all sessions of one running app."""

    def __init__(
        self,
        storage: StorageBackend,
        identity: IdentityService,
        settings: AppSettings,
        backend_name: str,
    ):
        self.storage = storage
        self.identity = identity
        self.settings = settings
        self.backend_name = backend_name


class SessionViews:
    """
    The view controllers of one signed-in user.

    Build a new one after every sign-in; drop it on sign-out.
    """

    def __init__(
        self,
        components: AppComponents,
        session: UserSession,
        today: Optional[Today] = None,
    ):
        settings = components.settings
        self.session = session
        self.backend = AuthorizedBackend(components.storage, session)
        self.activity_logger = ActivityLogger(self.backend)
        self.queries = SpendingQueries(
            self.backend,
            trailing_months=settings.trailing_months,
            warning_ratio=settings.budget_warning_ratio,
        )

        self.categories = CategoryManagerView(self.backend, today)
        self.budgets = BudgetManagerView(self.backend, today)
        self.expense_form = ExpenseFormView(self.backend, self.activity_logger, today)
        self.expense_list = ExpenseListView(
            self.backend,
            self.activity_logger,
            self.queries,
            page_size=settings.page_size,
            today=today,
        )
        self.statistics = StatisticsView(self.backend, self.queries, today)
        self.budget_overview = BudgetOverviewView(self.backend, self.queries, today)
        self.activity = ActivityLogView(self.backend, today)


def create_storage_backend(backend_name: str) -> tuple[StorageBackend, str]:
    """
    Build the configured storage backend.

    Falls back to in-memory storage if Google Sheets is not configured.

    Returns:
        (storage, name of the backend actually in use)
    """
    if backend_name == "sheets":
        try:
            return create_sheets_backend(), "sheets"
        except Exception as e:
            # Storage not configured - continue without it
            logger.warning("storage_not_configured", error=str(e), fallback="memory")
    return create_memory_backend(), "memory"


def create_app_components(
    settings: Optional[AppSettings] = None,
    storage: Optional[StorageBackend] = None,
    bcrypt_rounds: int = 12,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        settings: App settings. Loaded from the environment if None.
        storage: Pre-built storage (tests). Built from settings if None.
        bcrypt_rounds: Password hashing cost.
    """
    settings = settings or get_settings().app
    if storage is None:
        storage, backend_name = create_storage_backend(settings.storage_backend)
    else:
        backend_name = "custom"

    logger.info(
        "app_components_created",
        storage_backend=backend_name,
        environment=settings.app_environment,
    )
    return AppComponents(
        storage=storage,
        identity=IdentityService(storage.users, rounds=bcrypt_rounds),
        settings=settings,
        backend_name=backend_name,
    )
