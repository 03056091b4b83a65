"""
Shared fixtures.

Every test runs against a fresh in-memory store seeded with the default
categories. "Today" is pinned to 15 March 2025 so month and year
boundaries are predictable.
"""

from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

import pytest

from expense_tracker.access import AuthorizedBackend
from expense_tracker.config import AppSettings
from expense_tracker.models import Category, Expense, UserSession
from expense_tracker.orchestrator import SessionViews, create_app_components
from expense_tracker.services.storage import create_memory_backend


TODAY = date(2025, 3, 15)


def make_expense(
    amount: str,
    day: date,
    category_id: UUID,
    user_id: Optional[UUID] = None,
    description: Optional[str] = None,
    is_deleted: bool = False,
) -> Expense:
    return Expense(
        amount=Decimal(amount),
        date=day,
        category_id=category_id,
        user_id=user_id,
        description=description,
        is_deleted=is_deleted,
    )


def find_category(categories: list[Category], name: str) -> Category:
    return next(category for category in categories if category.name == name)


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def storage():
    return create_memory_backend()


@pytest.fixture
def alice() -> UserSession:
    return UserSession(user_id=uuid4(), email="alice@example.com")


@pytest.fixture
def bob() -> UserSession:
    return UserSession(user_id=uuid4(), email="bob@example.com")


@pytest.fixture
def backend(storage, alice) -> AuthorizedBackend:
    return AuthorizedBackend(storage, alice)


@pytest.fixture
def bob_backend(storage, bob) -> AuthorizedBackend:
    return AuthorizedBackend(storage, bob)


@pytest.fixture
def defaults(storage) -> dict[str, Category]:
    """Seeded default categories by name."""
    return {category.name: category for category in storage.categories._rows.values()}


@pytest.fixture
def groceries(defaults) -> Category:
    return defaults["Groceries"]


@pytest.fixture
def utilities(defaults) -> Category:
    return defaults["Utilities"]


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings(storage_backend="memory")


@pytest.fixture
def components(storage, settings):
    return create_app_components(settings=settings, storage=storage, bcrypt_rounds=4)


@pytest.fixture
def views(components, alice, today) -> SessionViews:
    return SessionViews(components, alice, today=lambda: today)
