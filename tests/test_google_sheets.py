"""Tests for the Google Sheets storage, run against an in-process fake spreadsheet."""

import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

import gspread

from expense_tracker.config import GoogleSheetsSettings
from expense_tracker.models import ActivityAction, ActivityLogEntry, Budget, UserAccount
from expense_tracker.services.storage import (
    DuplicateError,
    GoogleSheetsClient,
    NotFoundError,
    create_sheets_backend,
)
from expense_tracker.services.storage.google_sheets import (
    CATEGORY_COLUMNS,
    EXPENSE_COLUMNS,
)

from conftest import find_category, make_expense


class FakeWorksheet:
    """Just enough of gspread.Worksheet, rows held as lists of strings."""

    def __init__(self, title):
        self.title = title
        self.rows = []

    def get_all_values(self):
        return [list(row) for row in self.rows]

    def append_row(self, row, value_input_option=None):
        self.rows.append([str(cell) for cell in row])

    def append_rows(self, rows, value_input_option=None):
        for row in rows:
            self.append_row(row)

    def update(self, range_name, values):
        row_number = int(range_name[1:])
        self.rows[row_number - 1] = [str(cell) for cell in values[0]]

    def delete_rows(self, index):
        del self.rows[index - 1]


class FakeSpreadsheet:
    def __init__(self):
        self.sheets = {}

    def worksheet(self, title):
        if title not in self.sheets:
            raise gspread.WorksheetNotFound(title)
        return self.sheets[title]

    def add_worksheet(self, title, rows, cols):
        self.sheets[title] = FakeWorksheet(title)
        return self.sheets[title]


@pytest.fixture
def spreadsheet():
    return FakeSpreadsheet()


@pytest.fixture
def sheets(spreadsheet):
    client = GoogleSheetsClient(
        GoogleSheetsSettings(credentials_path="missing.json", spreadsheet_id="x")
    )
    client._spreadsheet = spreadsheet
    return create_sheets_backend(client)


class TestWorksheetSetup:
    """Tests for first-use worksheet creation."""

    async def test_categories_sheet_seeded(self, sheets, spreadsheet):
        categories = await sheets.categories.list_categories()
        sheet = spreadsheet.sheets["Categories"]
        assert sheet.rows[0] == CATEGORY_COLUMNS
        assert len(sheet.rows) == 21
        assert len(categories) == 20
        assert all(c.is_default for c in categories)

    async def test_expenses_sheet_gets_header_only(self, sheets, spreadsheet):
        assert await sheets.expenses.list_expenses(uuid4()) == []
        assert spreadsheet.sheets["Expenses"].rows == [EXPENSE_COLUMNS]

    async def test_existing_sheet_reused(self, sheets, spreadsheet):
        await sheets.categories.list_categories()
        await sheets.categories.list_categories()
        assert len(spreadsheet.sheets["Categories"].rows) == 21


class TestSheetsStorage:
    """Tests for reading and writing rows."""

    async def test_expense_round_trip(self, sheets):
        owner = uuid4()
        categories = await sheets.categories.list_categories()
        groceries = find_category(categories, "Groceries")
        expense = make_expense("500.25", date(2025, 3, 1), groceries.id, user_id=owner, description="Milk")
        await sheets.expenses.insert_expense(expense)

        loaded = await sheets.expenses.get_expense(expense.id)
        assert loaded == expense
        assert await sheets.expenses.count_expenses(owner) == 1
        assert await sheets.expenses.count_expenses(uuid4()) == 0

    async def test_expense_duplicate_rejected(self, sheets):
        expense = make_expense("5", date(2025, 3, 1), uuid4(), user_id=uuid4())
        await sheets.expenses.insert_expense(expense)
        with pytest.raises(DuplicateError):
            await sheets.expenses.insert_expense(expense)

    async def test_soft_delete_rewrites_row(self, sheets, spreadsheet):
        owner = uuid4()
        expense = make_expense("5", date(2025, 3, 1), uuid4(), user_id=owner)
        await sheets.expenses.insert_expense(expense)
        await sheets.expenses.update_expense(expense.model_copy(update={"is_deleted": True}))

        assert len(spreadsheet.sheets["Expenses"].rows) == 2
        assert (await sheets.expenses.get_expense(expense.id)).is_deleted
        assert await sheets.expenses.count_expenses(owner, include_deleted=False) == 0

    async def test_update_missing_expense(self, sheets):
        with pytest.raises(NotFoundError):
            await sheets.expenses.update_expense(make_expense("5", date(2025, 3, 1), uuid4()))

    async def test_list_filters_and_orders(self, sheets):
        owner = uuid4()
        category_id = uuid4()
        for day in (date(2025, 3, 1), date(2025, 3, 20), date(2025, 2, 1)):
            await sheets.expenses.insert_expense(
                make_expense("5", day, category_id, user_id=owner)
            )
        rows = await sheets.expenses.list_expenses(
            owner, date_from=date(2025, 3, 1), date_to=date(2025, 3, 31)
        )
        assert [row.date for row in rows] == [date(2025, 3, 20), date(2025, 3, 1)]

    async def test_malformed_row_skipped(self, sheets, spreadsheet):
        owner = uuid4()
        await sheets.expenses.insert_expense(
            make_expense("5", date(2025, 3, 1), uuid4(), user_id=owner)
        )
        spreadsheet.sheets["Expenses"].append_row(
            [str(uuid4()), "not-a-number", "", "2025-03-02", str(uuid4()), str(owner)]
        )
        assert len(await sheets.expenses.list_expenses(owner)) == 1

    async def test_budgets_delete_per_user(self, sheets, spreadsheet):
        alice, bob = uuid4(), uuid4()
        category_id = uuid4()
        await sheets.budgets.insert_budget(Budget(category_id=category_id, user_id=alice, amount=Decimal("100")))
        await sheets.budgets.insert_budget(Budget(category_id=uuid4(), user_id=alice, amount=Decimal("50")))
        await sheets.budgets.insert_budget(Budget(category_id=category_id, user_id=bob, amount=Decimal("70")))
        with pytest.raises(DuplicateError):
            await sheets.budgets.insert_budget(Budget(category_id=category_id, user_id=alice, amount=Decimal("1")))

        assert await sheets.budgets.delete_budgets(alice) == 2
        assert await sheets.budgets.list_budgets(alice) == []
        remaining = await sheets.budgets.list_budgets(bob)
        assert [budget.amount for budget in remaining] == [Decimal("70")]

    async def test_activity_details_round_trip(self, sheets):
        owner = uuid4()
        entry = ActivityLogEntry(
            action=ActivityAction.ADD,
            entity_id=uuid4(),
            user_id=owner,
            details={"amount": "5", "category": "Groceries"},
        )
        await sheets.activity.append_entry(entry)
        entries = await sheets.activity.list_entries(owner)
        assert entries == [entry]
        assert await sheets.activity.list_entries(uuid4()) == []

    async def test_users(self, sheets):
        account = UserAccount(email="alice@example.com", password_hash="hash")
        await sheets.users.insert_user(account)
        assert (await sheets.users.get_user_by_email("ALICE@example.com")).id == account.id
        with pytest.raises(DuplicateError):
            await sheets.users.insert_user(
                UserAccount(email="alice@example.com", password_hash="other")
            )
