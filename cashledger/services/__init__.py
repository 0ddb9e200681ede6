"""Services package."""

from cashledger.services.storage import (
    AuditStorageInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsProfileStorage,
    GoogleSheetsTransactionStorage,
    InMemoryAuditStorage,
    InMemoryKeyValueStorage,
    InMemoryProfileStorage,
    InMemoryTransactionStorage,
    JsonFileKeyValueStorage,
    KeyValueStorageInterface,
    ProfileStorageInterface,
    RecordNotFoundError,
    RemoteFailure,
    StorageConnectionError,
    StorageError,
    StoragePermissionError,
    TransactionStorageInterface,
)

__all__ = [
    "AuditStorageInterface",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsProfileStorage",
    "GoogleSheetsTransactionStorage",
    "InMemoryAuditStorage",
    "InMemoryKeyValueStorage",
    "InMemoryProfileStorage",
    "InMemoryTransactionStorage",
    "JsonFileKeyValueStorage",
    "KeyValueStorageInterface",
    "ProfileStorageInterface",
    "RecordNotFoundError",
    "RemoteFailure",
    "StorageConnectionError",
    "StorageError",
    "StoragePermissionError",
    "TransactionStorageInterface",
]
