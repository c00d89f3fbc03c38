"""Services package."""

from teller.services.storage import (
    AccountRepository,
    JsonFileAccountRepository,
    LoadFailure,
    LoadResult,
    MalformedDocumentError,
    NotFoundError,
    SaveFailure,
    SaveResult,
    StorageError,
    StorageIOError,
)

__all__ = [
    "AccountRepository",
    "JsonFileAccountRepository",
    "LoadFailure",
    "LoadResult",
    "MalformedDocumentError",
    "NotFoundError",
    "SaveFailure",
    "SaveResult",
    "StorageError",
    "StorageIOError",
]
