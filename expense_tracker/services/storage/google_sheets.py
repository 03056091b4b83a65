"""
Google Sheets storage.

DESIGN DECISION: One spreadsheet holds the whole database, one worksheet
per table, so a user can open and export their data directly. There are
no transactions: a budget save is delete-then-insert and the last save
wins. Every filter runs in Python after reading the whole worksheet.

Each table is one worksheet whose first row holds the column names.
A missing worksheet is created with its header row on first use; the
categories worksheet is also seeded with the default categories.
"""

import json
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Callable, Optional
from uuid import UUID

import gspread
import structlog
from google.oauth2.service_account import Credentials
from gspread.exceptions import APIError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from expense_tracker.config import GoogleSheetsSettings, get_settings
from expense_tracker.models.activity import (
    ActivityAction,
    ActivityLogEntry,
    EntityType,
)
from expense_tracker.models.expense import (
    Budget,
    Category,
    Expense,
    default_categories,
)
from expense_tracker.models.user import UserAccount
from expense_tracker.services.storage.interface import (
    ActivityStorageInterface,
    BudgetStorageInterface,
    CategoryStorageInterface,
    ConnectionError,
    DuplicateError,
    ExpenseStorageInterface,
    NotFoundError,
    StorageBackend,
    StorageError,
    UserStorageInterface,
)
from expense_tracker.services.storage.query import paginate, select_expenses


logger = structlog.get_logger(__name__)


# Column layouts, one per worksheet
CATEGORY_COLUMNS = [
    "id",
    "name",
    "icon",
    "is_default",
    "user_id",
    "created_at",
]

EXPENSE_COLUMNS = [
    "id",
    "amount",
    "description",
    "date",
    "category_id",
    "user_id",
    "is_deleted",
    "deleted_at",
    "created_at",
    "updated_at",
]

BUDGET_COLUMNS = [
    "id",
    "category_id",
    "user_id",
    "amount",
    "created_at",
]

ACTIVITY_COLUMNS = [
    "id",
    "user_id",
    "action",
    "entity_type",
    "entity_id",
    "details_json",
    "created_at",
]

USER_COLUMNS = [
    "id",
    "email",
    "password_hash",
    "created_at",
]


def _cell(row: list, index: int) -> str:
    """Read a cell, treating short rows as empty trailing cells."""
    try:
        return row[index] or ""
    except IndexError:
        return ""


def _uuid_or_none(value: str) -> Optional[UUID]:
    return UUID(value) if value else None


def _datetime_or_none(value: str) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


def _bool(value: str) -> bool:
    return value.strip().lower() == "true"


@retry(
    retry=retry_if_exception_type(APIError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
)
def _append_row(sheet: gspread.Worksheet, row: list) -> None:
    sheet.append_row(row, value_input_option="RAW")


def _data_rows(sheet: gspread.Worksheet) -> list[tuple[int, list]]:
    """
    All non-empty data rows with their 1-based sheet row number.

    Row 1 is the header, so the first data row is row 2.
    """
    rows = sheet.get_all_values()[1:]
    return [
        (index, row)
        for index, row in enumerate(rows, start=2)
        if row and row[0]
    ]


def _parse_rows(
    sheet: gspread.Worksheet,
    parse: Callable[[list], object],
    table: str,
) -> list:
    parsed = []
    for index, row in _data_rows(sheet):
        try:
            parsed.append(parse(row))
        except (ValueError, InvalidOperation) as e:
            logger.warning(
                "skipping_malformed_row",
                table=table,
                row_number=index,
                error=str(e),
            )
    return parsed


def _find_row_number(sheet: gspread.Worksheet, record_id: UUID) -> Optional[int]:
    for index, row in _data_rows(sheet):
        if row[0] == str(record_id):
            return index
    return None


def _replace_row(sheet: gspread.Worksheet, row_number: int, row: list) -> None:
    sheet.update(range_name=f"A{row_number}", values=[row])


class GoogleSheetsClient:
    """
    Owns the gspread connection and the worksheet handles.

    Worksheets are looked up once and cached; connecting is retried.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._worksheets: dict[str, gspread.Worksheet] = {}
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """Authorize with the service account key (once per client)."""
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """The spreadsheet named by GOOGLE_SHEETS_SPREADSHEET_ID."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def _worksheet(
        self,
        title: str,
        columns: list[str],
        seed_rows: Optional[Callable[[], list[list]]] = None,
    ) -> gspread.Worksheet:
        """Get or create a worksheet, writing the header (and seed) on creation."""
        if title in self._worksheets:
            return self._worksheets[title]

        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            logger.info("creating_worksheet", title=title)
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=1000,
                cols=len(columns),
            )
            sheet.append_row(columns)
            if seed_rows:
                sheet.append_rows(seed_rows(), value_input_option="RAW")

        self._worksheets[title] = sheet
        return sheet

    def categories_sheet(self) -> gspread.Worksheet:
        return self._worksheet(
            self._settings.categories_sheet_name,
            CATEGORY_COLUMNS,
            seed_rows=lambda: [
                GoogleSheetsCategoryStorage.to_row(category)
                for category in default_categories()
            ],
        )

    def expenses_sheet(self) -> gspread.Worksheet:
        return self._worksheet(self._settings.expenses_sheet_name, EXPENSE_COLUMNS)

    def budgets_sheet(self) -> gspread.Worksheet:
        return self._worksheet(self._settings.budgets_sheet_name, BUDGET_COLUMNS)

    def activity_sheet(self) -> gspread.Worksheet:
        return self._worksheet(self._settings.activity_sheet_name, ACTIVITY_COLUMNS)

    def users_sheet(self) -> gspread.Worksheet:
        return self._worksheet(self._settings.users_sheet_name, USER_COLUMNS)


class GoogleSheetsCategoryStorage(CategoryStorageInterface):
    """Categories, one per row."""

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    @staticmethod
    def to_row(category: Category) -> list:
        return [
            str(category.id),
            category.name,
            category.icon,
            str(category.is_default),
            str(category.user_id) if category.user_id else "",
            category.created_at.isoformat(),
        ]

    @staticmethod
    def from_row(row: list) -> Category:
        return Category(
            id=UUID(_cell(row, 0)),
            name=_cell(row, 1),
            icon=_cell(row, 2),
            is_default=_bool(_cell(row, 3)),
            user_id=_uuid_or_none(_cell(row, 4)),
            created_at=datetime.fromisoformat(_cell(row, 5)),
        )

    async def insert_category(self, category: Category) -> Category:
        try:
            sheet = self._client.categories_sheet()
            if _find_row_number(sheet, category.id) is not None:
                raise DuplicateError(f"Category already exists: {category.id}")
            _append_row(sheet, self.to_row(category))
            return category
        except DuplicateError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save category: {e}")

    async def get_category(self, category_id: UUID) -> Optional[Category]:
        try:
            for category in await self.list_categories():
                if category.id == category_id:
                    return category
            return None
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to get category: {e}")

    async def list_categories(self) -> list[Category]:
        try:
            sheet = self._client.categories_sheet()
            categories = _parse_rows(sheet, self.from_row, "categories")
            categories.sort(key=lambda c: c.name.lower())
            return categories
        except Exception as e:
            raise StorageError(f"Failed to list categories: {e}")

    async def update_category(self, category: Category) -> Category:
        try:
            sheet = self._client.categories_sheet()
            row_number = _find_row_number(sheet, category.id)
            if row_number is None:
                raise NotFoundError(f"Category not found: {category.id}")
            _replace_row(sheet, row_number, self.to_row(category))
            return category
        except NotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update category: {e}")

    async def delete_category(self, category_id: UUID) -> bool:
        try:
            sheet = self._client.categories_sheet()
            row_number = _find_row_number(sheet, category_id)
            if row_number is None:
                return False
            sheet.delete_rows(row_number)
            return True
        except Exception as e:
            raise StorageError(f"Failed to delete category: {e}")


class GoogleSheetsExpenseStorage(ExpenseStorageInterface):
    """
    Expenses, one per row.

    Soft-deleted expenses keep their row; only the flag columns change.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    @staticmethod
    def to_row(expense: Expense) -> list:
        return [
            str(expense.id),
            str(expense.amount),
            expense.description or "",
            expense.date.isoformat(),
            str(expense.category_id),
            str(expense.user_id) if expense.user_id else "",
            str(expense.is_deleted),
            expense.deleted_at.isoformat() if expense.deleted_at else "",
            expense.created_at.isoformat(),
            expense.updated_at.isoformat(),
        ]

    @staticmethod
    def from_row(row: list) -> Expense:
        return Expense(
            id=UUID(_cell(row, 0)),
            amount=Decimal(_cell(row, 1)),
            description=_cell(row, 2) or None,
            date=date.fromisoformat(_cell(row, 3)),
            category_id=UUID(_cell(row, 4)),
            user_id=_uuid_or_none(_cell(row, 5)),
            is_deleted=_bool(_cell(row, 6)),
            deleted_at=_datetime_or_none(_cell(row, 7)),
            created_at=datetime.fromisoformat(_cell(row, 8)),
            updated_at=datetime.fromisoformat(_cell(row, 9)),
        )

    def _all(self) -> list[Expense]:
        sheet = self._client.expenses_sheet()
        return _parse_rows(sheet, self.from_row, "expenses")

    async def insert_expense(self, expense: Expense) -> Expense:
        try:
            sheet = self._client.expenses_sheet()
            if _find_row_number(sheet, expense.id) is not None:
                raise DuplicateError(f"Expense already exists: {expense.id}")
            _append_row(sheet, self.to_row(expense))
            return expense
        except DuplicateError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save expense: {e}")

    async def get_expense(self, expense_id: UUID) -> Optional[Expense]:
        try:
            sheet = self._client.expenses_sheet()
            for _, row in _data_rows(sheet):
                if row[0] == str(expense_id):
                    return self.from_row(row)
            return None
        except Exception as e:
            raise StorageError(f"Failed to get expense: {e}")

    async def update_expense(self, expense: Expense) -> Expense:
        try:
            sheet = self._client.expenses_sheet()
            row_number = _find_row_number(sheet, expense.id)
            if row_number is None:
                raise NotFoundError(f"Expense not found: {expense.id}")
            _replace_row(sheet, row_number, self.to_row(expense))
            return expense
        except NotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update expense: {e}")

    async def list_expenses(
        self,
        user_id: UUID,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        category_id: Optional[UUID] = None,
        include_deleted: bool = True,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> list[Expense]:
        try:
            rows = select_expenses(
                self._all(),
                user_id=user_id,
                date_from=date_from,
                date_to=date_to,
                category_id=category_id,
                include_deleted=include_deleted,
            )
            return paginate(rows, offset, limit)
        except Exception as e:
            raise StorageError(f"Failed to list expenses: {e}")

    async def count_expenses(
        self,
        user_id: UUID,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        category_id: Optional[UUID] = None,
        include_deleted: bool = True,
    ) -> int:
        rows = await self.list_expenses(
            user_id=user_id,
            date_from=date_from,
            date_to=date_to,
            category_id=category_id,
            include_deleted=include_deleted,
        )
        return len(rows)


class GoogleSheetsBudgetStorage(BudgetStorageInterface):
    """Budgets, one row per (category, user)."""

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    @staticmethod
    def to_row(budget: Budget) -> list:
        return [
            str(budget.id),
            str(budget.category_id),
            str(budget.user_id) if budget.user_id else "",
            str(budget.amount),
            budget.created_at.isoformat(),
        ]

    @staticmethod
    def from_row(row: list) -> Budget:
        return Budget(
            id=UUID(_cell(row, 0)),
            category_id=UUID(_cell(row, 1)),
            user_id=_uuid_or_none(_cell(row, 2)),
            amount=Decimal(_cell(row, 3)),
            created_at=datetime.fromisoformat(_cell(row, 4)),
        )

    async def list_budgets(self, user_id: UUID) -> list[Budget]:
        try:
            sheet = self._client.budgets_sheet()
            budgets = _parse_rows(sheet, self.from_row, "budgets")
            return [budget for budget in budgets if budget.user_id == user_id]
        except Exception as e:
            raise StorageError(f"Failed to list budgets: {e}")

    async def insert_budget(self, budget: Budget) -> Budget:
        try:
            for existing in await self.list_budgets(budget.user_id):
                if existing.category_id == budget.category_id:
                    raise DuplicateError(
                        f"Budget already exists for category {budget.category_id}"
                    )
            _append_row(self._client.budgets_sheet(), self.to_row(budget))
            return budget
        except DuplicateError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save budget: {e}")

    async def delete_budgets(self, user_id: UUID) -> int:
        try:
            sheet = self._client.budgets_sheet()
            doomed = [
                index
                for index, row in _data_rows(sheet)
                if _cell(row, 2) == str(user_id)
            ]
            # Bottom-up so earlier row numbers stay valid
            for index in sorted(doomed, reverse=True):
                sheet.delete_rows(index)
            return len(doomed)
        except Exception as e:
            raise StorageError(f"Failed to delete budgets: {e}")


class GoogleSheetsActivityStorage(ActivityStorageInterface):
    """
    Google Sheets implementation of the activity log.

    Entries are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    @staticmethod
    def to_row(entry: ActivityLogEntry) -> list:
        return [
            str(entry.id),
            str(entry.user_id) if entry.user_id else "",
            entry.action.value,
            entry.entity_type.value,
            str(entry.entity_id),
            json.dumps(entry.details) if entry.details else "",
            entry.created_at.isoformat(),
        ]

    @staticmethod
    def from_row(row: list) -> ActivityLogEntry:
        details = _cell(row, 5)
        return ActivityLogEntry(
            id=UUID(_cell(row, 0)),
            user_id=_uuid_or_none(_cell(row, 1)),
            action=ActivityAction(_cell(row, 2)),
            entity_type=EntityType(_cell(row, 3)),
            entity_id=UUID(_cell(row, 4)),
            details=json.loads(details) if details else {},
            created_at=datetime.fromisoformat(_cell(row, 6)),
        )

    async def append_entry(self, entry: ActivityLogEntry) -> ActivityLogEntry:
        try:
            _append_row(self._client.activity_sheet(), self.to_row(entry))
            return entry
        except Exception as e:
            raise StorageError(f"Failed to write activity entry: {e}")

    async def list_entries(
        self,
        user_id: UUID,
        entity_id: Optional[UUID] = None,
    ) -> list[ActivityLogEntry]:
        try:
            sheet = self._client.activity_sheet()
            entries = [
                entry
                for entry in _parse_rows(sheet, self.from_row, "activity_log")
                if entry.user_id == user_id
                and (entity_id is None or entry.entity_id == entity_id)
            ]
            entries.sort(key=lambda e: e.created_at, reverse=True)
            return entries
        except Exception as e:
            raise StorageError(f"Failed to list activity entries: {e}")


class GoogleSheetsUserStorage(UserStorageInterface):
    """Registered users."""

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    @staticmethod
    def to_row(user: UserAccount) -> list:
        return [
            str(user.id),
            user.email,
            user.password_hash,
            user.created_at.isoformat(),
        ]

    @staticmethod
    def from_row(row: list) -> UserAccount:
        return UserAccount(
            id=UUID(_cell(row, 0)),
            email=_cell(row, 1),
            password_hash=_cell(row, 2),
            created_at=datetime.fromisoformat(_cell(row, 3)),
        )

    async def insert_user(self, user: UserAccount) -> UserAccount:
        try:
            if await self.get_user_by_email(user.email) is not None:
                raise DuplicateError(f"Email already registered: {user.email}")
            _append_row(self._client.users_sheet(), self.to_row(user))
            return user
        except DuplicateError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to register user: {e}")

    async def get_user_by_email(self, email: str) -> Optional[UserAccount]:
        try:
            wanted = email.strip().lower()
            sheet = self._client.users_sheet()
            for user in _parse_rows(sheet, self.from_row, "users"):
                if user.email == wanted:
                    return user
            return None
        except Exception as e:
            raise StorageError(f"Failed to look up user: {e}")


def create_sheets_backend(
    client: Optional[GoogleSheetsClient] = None,
) -> StorageBackend:
    """All tables backed by one spreadsheet."""
    client = client or GoogleSheetsClient()
    return StorageBackend(
        categories=GoogleSheetsCategoryStorage(client),
        expenses=GoogleSheetsExpenseStorage(client),
        budgets=GoogleSheetsBudgetStorage(client),
        activity=GoogleSheetsActivityStorage(client),
        users=GoogleSheetsUserStorage(client),
    )
