"""
Storage Services Package

Provides the abstract account repository and its implementations.
The JSON document is the default backend; Google Sheets is optional
and only imported when asked for.
"""

from teller.services.storage.interface import (
    AccountRepository,
    LoadFailure,
    LoadResult,
    MalformedDocumentError,
    NotFoundError,
    SaveFailure,
    SaveResult,
    StorageError,
    StorageIOError,
)
from teller.services.storage.json_file import JsonFileAccountRepository

__all__ = [
    # Interface
    "AccountRepository",
    # Results
    "LoadFailure",
    "LoadResult",
    "SaveFailure",
    "SaveResult",
    # Exceptions
    "MalformedDocumentError",
    "NotFoundError",
    "StorageError",
    "StorageIOError",
    # JSON implementation
    "JsonFileAccountRepository",
]
