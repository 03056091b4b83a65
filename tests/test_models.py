"""
Tests for Expense Tracker models

Test strategy:
1. Unit tests for individual components (models, policies, validators)
2. Flow tests for the views against in-memory storage
3. No real API calls in tests (the Sheets adapter runs on a fake worksheet)
"""

import pytest
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

from expense_tracker.models import (
    DEFAULT_CATEGORIES,
    MAX_AMOUNT,
    ActivityAction,
    ActivityEntryBuilder,
    ActivityLogEntry,
    Budget,
    Category,
    Expense,
    ExpenseFilter,
    ExpensePage,
    ExpenseStatus,
    UserAccount,
    ValidationIssue,
    ValidationResult,
    default_categories,
    fold_expense_status,
    page_bounds,
)

from conftest import make_expense


class TestCategoryModel:
    """Tests for the Category model."""

    def test_custom_category_creation(self):
        """Test a custom category keeps its owner."""
        owner = uuid4()
        category = Category(name="  Coffee  ", icon="coffee", user_id=owner)
        assert category.name == "Coffee"
        assert category.user_id == owner
        assert category.is_default is False

    def test_default_category_cannot_have_owner(self):
        """Test that a default category with an owner is rejected."""
        with pytest.raises(ValueError):
            Category(name="Groceries", icon="shopping-cart", is_default=True, user_id=uuid4())

    def test_blank_name_rejected(self):
        """Test that whitespace-only names are rejected."""
        with pytest.raises(ValueError):
            Category(name="   ", icon="coffee")

    def test_default_categories_seed(self):
        """Test the seed list builds unowned default categories."""
        categories = default_categories()
        assert len(categories) == len(DEFAULT_CATEGORIES) == 20
        assert all(c.is_default and c.user_id is None for c in categories)
        names = [c.name for c in categories]
        assert "Groceries" in names
        assert "Rent/Mortgage" in names
        assert len(set(names)) == len(names)


class TestExpenseModel:
    """Tests for the Expense model."""

    def test_expense_creation(self):
        """Test Expense model creation."""
        expense = make_expense("500.00", date(2025, 3, 1), uuid4(), description=" Milk ")
        assert expense.amount == Decimal("500.00")
        assert expense.description == "Milk"
        assert expense.is_active is True
        assert expense.created_at.tzinfo is not None

    def test_expense_rejects_zero_amount(self):
        """Test that zero amounts are rejected."""
        with pytest.raises(ValueError):
            make_expense("0", date(2025, 3, 1), uuid4())

    def test_expense_rejects_negative_amount(self):
        """Test that negative amounts are rejected."""
        with pytest.raises(ValueError):
            make_expense("-10", date(2025, 3, 1), uuid4())

    def test_expense_rejects_sub_cent_amount(self):
        """Test that more than two decimal places are rejected."""
        with pytest.raises(ValueError):
            make_expense("10.005", date(2025, 3, 1), uuid4())

    def test_amount_ceiling(self):
        """Test amounts above MAX_AMOUNT are rejected."""
        assert make_expense(str(MAX_AMOUNT), date(2025, 3, 1), uuid4()).amount == MAX_AMOUNT
        with pytest.raises(ValueError):
            make_expense("1e30", date(2025, 3, 1), uuid4())
        with pytest.raises(ValueError):
            Budget(category_id=uuid4(), amount=Decimal("1e30"))

    def test_deleted_at_requires_deleted_flag(self):
        """Test that deleted_at cannot be set on an active expense."""
        with pytest.raises(ValueError):
            Expense(
                amount=Decimal("10"),
                date=date(2025, 3, 1),
                category_id=uuid4(),
                deleted_at=datetime.now(timezone.utc),
            )

    def test_budget_allows_zero_but_not_negative(self):
        """Test budget amount bounds."""
        assert Budget(category_id=uuid4(), amount=Decimal("0")).amount == 0
        with pytest.raises(ValueError):
            Budget(category_id=uuid4(), amount=Decimal("-1"))


class TestExpenseQueries:
    """Tests for filters and pages."""

    def test_filter_rejects_inverted_range(self):
        """Test that end before start is rejected."""
        with pytest.raises(ValueError):
            ExpenseFilter(start_date=date(2025, 3, 10), end_date=date(2025, 3, 1))

    def test_filter_query_args(self):
        """Test the filter maps onto the list_expenses keywords."""
        wanted = uuid4()
        flt = ExpenseFilter(
            start_date=date(2025, 3, 1),
            end_date=date(2025, 3, 31),
            category_id=wanted,
        )
        assert flt.query_args() == {
            "date_from": date(2025, 3, 1),
            "date_to": date(2025, 3, 31),
            "category_id": wanted,
        }

    def test_filter_same_day_range(self):
        """Test a one-day window is allowed."""
        flt = ExpenseFilter(start_date=date(2025, 3, 1), end_date=date(2025, 3, 1))
        assert flt.query_args()["category_id"] is None

    def test_page_bounds(self):
        """Test page N covers rows [(N-1)*size, N*size)."""
        assert page_bounds(1, 10) == (0, 10)
        assert page_bounds(3, 10) == (20, 30)
        with pytest.raises(ValueError):
            page_bounds(0, 10)

    @pytest.mark.parametrize(
        "count, pages",
        [(0, 0), (1, 1), (10, 1), (11, 2), (25, 3), (30, 3)],
    )
    def test_total_pages_is_ceiling(self, count, pages):
        """Test total pages is ceil(count / page size)."""
        page = ExpensePage(rows=[], page=1, page_size=10, total_count=count)
        assert page.total_pages == pages

    def test_page_navigation_flags(self):
        """Test has_previous / has_next."""
        first = ExpensePage(rows=[], page=1, page_size=10, total_count=25)
        last = ExpensePage(rows=[], page=3, page_size=10, total_count=25)
        assert not first.has_previous and first.has_next
        assert last.has_previous and not last.has_next

    def test_active_total_skips_deleted_rows(self):
        """Test the page total ignores deleted rows."""
        category_id = uuid4()
        page = ExpensePage(
            rows=[
                make_expense("100", date(2025, 3, 2), category_id),
                make_expense("250.50", date(2025, 3, 1), category_id),
                make_expense("999", date(2025, 3, 1), category_id, is_deleted=True),
            ],
            page=1,
            page_size=10,
            total_count=3,
        )
        assert page.active_total == Decimal("350.50")


class TestActivityModels:
    """Tests for activity log entries and the event fold."""

    def test_builder_snapshots_expense(self):
        """Test the details snapshot."""
        expense = make_expense("500", date(2025, 3, 1), uuid4(), description="Milk")
        entry = ActivityEntryBuilder.expense_added(expense, "Groceries")
        assert entry.action == ActivityAction.ADD
        assert entry.entity_id == expense.id
        assert entry.details == {
            "amount": "500",
            "description": "Milk",
            "category": "Groceries",
        }
        assert entry.snapshot_amount == Decimal("500")

    def test_to_log_dict(self):
        """Test conversion for structured logging."""
        expense = make_expense("20", date(2025, 3, 1), uuid4())
        log_dict = ActivityEntryBuilder.expense_deleted(expense, None).to_log_dict()
        assert log_dict["action"] == "delete"
        assert log_dict["entity_type"] == "expense"
        assert log_dict["entity_id"] == str(expense.id)
        assert "timestamp" in log_dict

    def test_fold_latest_event_wins(self):
        """Test status is derived from events in chronological order."""
        expense_id = uuid4()
        other_id = uuid4()
        start = datetime(2025, 3, 1, tzinfo=timezone.utc)
        entries = [
            ActivityLogEntry(
                action=ActivityAction.DELETE,
                entity_id=expense_id,
                created_at=start + timedelta(minutes=5),
            ),
            ActivityLogEntry(
                action=ActivityAction.ADD,
                entity_id=expense_id,
                created_at=start,
            ),
            ActivityLogEntry(
                action=ActivityAction.ADD,
                entity_id=other_id,
                created_at=start + timedelta(minutes=1),
            ),
        ]
        status = fold_expense_status(entries)
        assert status[expense_id] == ExpenseStatus.DELETED
        assert status[other_id] == ExpenseStatus.ACTIVE

    def test_fold_delete_wins_timestamp_tie(self):
        """Test an add and a delete stamped at the same instant fold to deleted."""
        expense_id = uuid4()
        instant = datetime(2025, 3, 1, tzinfo=timezone.utc)
        newest_first = [
            ActivityLogEntry(action=ActivityAction.DELETE, entity_id=expense_id, created_at=instant),
            ActivityLogEntry(action=ActivityAction.ADD, entity_id=expense_id, created_at=instant),
        ]
        assert fold_expense_status(newest_first)[expense_id] == ExpenseStatus.DELETED
        assert fold_expense_status(reversed(newest_first))[expense_id] == ExpenseStatus.DELETED

    def test_fold_empty_log(self):
        assert fold_expense_status([]) == {}


class TestValidationResult:
    """Tests for ValidationResult model."""

    def test_validation_result_has_errors(self):
        """Test has_errors property."""
        result = ValidationResult(issues=[
            ValidationIssue(
                field="amount",
                issue_type="missing",
                message="Amount required",
                severity="error",
            ),
        ])
        assert result.has_errors is True
        assert result.error_count == 1
        assert result.first_error == "Amount required"

    def test_validation_result_warnings_only(self):
        """Test that warnings don't count as errors."""
        result = ValidationResult(issues=[
            ValidationIssue(
                field="date",
                issue_type="future_date",
                message="Date in future",
                severity="warning",
            ),
        ])
        assert result.has_errors is False
        assert result.is_valid is True
        assert result.first_error is None


class TestUserAccount:
    """Tests for the user account model."""

    def test_email_is_normalised(self):
        account = UserAccount(email="  Alice@Example.COM ", password_hash="x")
        assert account.email == "alice@example.com"

    def test_malformed_email_rejected(self):
        with pytest.raises(ValueError):
            UserAccount(email="not-an-email", password_hash="x")
