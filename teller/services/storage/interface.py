"""
Abstract Storage Interface

DESIGN DECISION: The account is persisted through an abstract repository.
This allows us to:
1. Keep the JSON document as the default backend
2. Swap in Google Sheets (or a database) without touching the Account model
3. Use in-memory fakes in tests

The contract is whole-document: `save` always rewrites the entire
account, ledger included, and `load` always reads all of it back.

DESIGN DECISION: `load` and `save` never raise across the boundary.
Backends raise StorageError subclasses internally, and the base class
turns them into LoadResult / SaveResult values for the caller.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional

import structlog
from pydantic import BaseModel

from teller.models.account import Account


logger = structlog.get_logger(__name__)


class LoadFailure(str, Enum):
    """Why an account could not be loaded."""
    NOT_FOUND = "not_found"
    MALFORMED = "malformed"
    IO_FAULT = "io_fault"


class SaveFailure(str, Enum):
    """Why an account could not be saved."""
    IO_FAULT = "io_fault"


class LoadResult(BaseModel):
    """Outcome of loading an account. Exactly one of account/failure is set."""
    
    location: str
    account: Optional[Account] = None
    failure: Optional[LoadFailure] = None
    message: str = ""
    
    @property
    def success(self) -> bool:
        return self.account is not None


class SaveResult(BaseModel):
    """Outcome of saving an account."""
    
    location: str
    success: bool
    failure: Optional[SaveFailure] = None
    message: str = ""


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """No account document at the location."""
    pass


class MalformedDocumentError(StorageError):
    """Document exists but does not match the account schema."""
    pass


class StorageIOError(StorageError):
    """Any other read or write fault."""
    pass


_LOAD_FAILURES = {
    NotFoundError: LoadFailure.NOT_FOUND,
    MalformedDocumentError: LoadFailure.MALFORMED,
    StorageIOError: LoadFailure.IO_FAULT,
}


class AccountRepository(ABC):
    """
    Abstract persistence gateway for the single account.
    
    Implementations provide `_read` and `_write` and raise StorageError
    subclasses from them. They hold no state between calls.
    """
    
    @abstractmethod
    def _read(self, location: str) -> Account:
        """
        Read and decode the account stored at `location`.
        
        Raises:
            NotFoundError: Nothing stored at the location
            MalformedDocumentError: Stored data fails validation
            StorageIOError: Any other read fault
        """
        pass
    
    @abstractmethod
    def _write(self, location: str, account: Account) -> None:
        """
        Replace whatever is stored at `location` with `account`.
        
        Raises:
            StorageIOError: The write failed
        """
        pass
    
    def load(self, location: str) -> LoadResult:
        """
        Load the account stored at `location`.
        
        Returns:
            LoadResult carrying either the account or the failure reason
        """
        location = str(location)
        try:
            account = self._read(location)
        except StorageError as e:
            failure = next(
                (f for cls, f in _LOAD_FAILURES.items() if isinstance(e, cls)),
                LoadFailure.IO_FAULT,
            )
            logger.warning(
                "account_load_failed",
                location=location,
                failure=failure.value,
                error=str(e),
            )
            return LoadResult(location=location, failure=failure, message=str(e))
        
        logger.info(
            "account_loaded",
            location=location,
            ledger_size=len(account.transaction_history),
        )
        return LoadResult(location=location, account=account)
    
    def save(self, location: str, account: Account) -> SaveResult:
        """
        Overwrite the account stored at `location`.
        
        Returns:
            SaveResult; failure is always IO_FAULT
        """
        location = str(location)
        try:
            self._write(location, account)
        except StorageError as e:
            logger.error("account_save_failed", location=location, error=str(e))
            return SaveResult(
                location=location,
                success=False,
                failure=SaveFailure.IO_FAULT,
                message=str(e),
            )
        
        logger.debug(
            "account_saved",
            location=location,
            ledger_size=len(account.transaction_history),
        )
        return SaveResult(location=location, success=True)
