"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Transactions and profiles live in Google Sheets; categories and clients live
in a local JSON file; demo mode and tests use the in-memory implementations.
"""

from cashledger.services.storage.interface import (
    AuditStorageInterface,
    KeyValueStorageInterface,
    ProfileStorageInterface,
    RecordNotFoundError,
    RemoteFailure,
    StorageConnectionError,
    StorageError,
    StoragePermissionError,
    TransactionStorageInterface,
)
from cashledger.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryKeyValueStorage,
    InMemoryProfileStorage,
    InMemoryTransactionStorage,
)
from cashledger.services.storage.local_json import JsonFileKeyValueStorage
from cashledger.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsProfileStorage,
    GoogleSheetsTransactionStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "KeyValueStorageInterface",
    "ProfileStorageInterface",
    "TransactionStorageInterface",
    # Exceptions
    "RecordNotFoundError",
    "RemoteFailure",
    "StorageConnectionError",
    "StorageError",
    "StoragePermissionError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryKeyValueStorage",
    "InMemoryProfileStorage",
    "InMemoryTransactionStorage",
    # Local file implementation
    "JsonFileKeyValueStorage",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsProfileStorage",
    "GoogleSheetsTransactionStorage",
]
