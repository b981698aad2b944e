"""
Storage Services Package

Provides the abstract record store contract and concrete implementations.
Google Sheets is the durable backend; the in-memory store backs local
development and tests.
"""

from budget_buddy.services.storage.interface import (
    ConnectionError,
    NotFoundError,
    RecordStoreInterface,
    StorageError,
    StoreAuthError,
)
from budget_buddy.services.storage.memory import InMemoryRecordStore
from budget_buddy.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsRecordStore,
)

__all__ = [
    # Interface
    "RecordStoreInterface",
    # Exceptions
    "ConnectionError",
    "NotFoundError",
    "StorageError",
    "StoreAuthError",
    # Implementations
    "InMemoryRecordStore",
    "GoogleSheetsClient",
    "GoogleSheetsRecordStore",
]
