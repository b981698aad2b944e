"""Services package."""

from budget_buddy.services.auth import (
    AuthError,
    AuthProviderInterface,
    DuplicateRegistrationError,
    InvalidCredentialsError,
    Principal,
)
from budget_buddy.services.csv_codec import (
    CsvImportResult,
    export_transactions,
    import_transactions,
    parse_transactions,
)
from budget_buddy.services.storage import (
    ConnectionError,
    GoogleSheetsClient,
    GoogleSheetsRecordStore,
    InMemoryRecordStore,
    NotFoundError,
    RecordStoreInterface,
    StorageError,
    StoreAuthError,
)

__all__ = [
    # Auth contract
    "AuthError",
    "AuthProviderInterface",
    "DuplicateRegistrationError",
    "InvalidCredentialsError",
    "Principal",
    # CSV
    "CsvImportResult",
    "export_transactions",
    "import_transactions",
    "parse_transactions",
    # Storage services
    "ConnectionError",
    "GoogleSheetsClient",
    "GoogleSheetsRecordStore",
    "InMemoryRecordStore",
    "NotFoundError",
    "RecordStoreInterface",
    "StorageError",
    "StoreAuthError",
]
