"""Services package."""

from expense_tracker.services.storage import (
    ConnectionError,
    DuplicateError,
    NotFoundError,
    StorageBackend,
    StorageError,
    create_memory_backend,
    create_sheets_backend,
)

__all__ = [
    "ConnectionError",
    "DuplicateError",
    "NotFoundError",
    "StorageBackend",
    "StorageError",
    "create_memory_backend",
    "create_sheets_backend",
]
