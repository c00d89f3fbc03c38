"""
JSON Document Storage

The account lives in a single JSON document whose field names
(FirstName, CardDetails, TransactionHistory, ...) are the external
contract. Existing documents load as-is and are written back in the
same layout: two-space indentation, same field order, decimals as
JSON numbers.

Decimals are read and written through simplejson's use_decimal mode,
so a balance is stored with exactly the digits it has in memory
(100.0 stays 100.0, 3.448275862068965517241379310 keeps all 28 digits).

DESIGN DECISION: Saves go to a temporary sibling file which is then
moved over the target with os.replace. A crash mid-write leaves the
previous document intact instead of a truncated one.
"""

import os
import tempfile
from pathlib import Path

import simplejson
import structlog
from pydantic import ValidationError

from teller.models.account import Account
from teller.services.storage.interface import (
    AccountRepository,
    MalformedDocumentError,
    NotFoundError,
    StorageIOError,
)


logger = structlog.get_logger(__name__)


def account_to_document(account: Account) -> dict:
    """Account as a plain dict keyed by document field names."""
    return account.model_dump(mode="python", by_alias=True)


def encode_document(account: Account) -> str:
    return simplejson.dumps(
        account_to_document(account),
        indent=2,
        ensure_ascii=False,
        use_decimal=True,
    )


def decode_document(text: str) -> Account:
    """
    Parse document text into an Account.
    
    Raises:
        MalformedDocumentError: Not JSON, not an object, or schema violation
    """
    try:
        data = simplejson.loads(text, use_decimal=True)
    except simplejson.JSONDecodeError as e:
        raise MalformedDocumentError(f"Account document is not valid JSON: {e}") from e
    
    if not isinstance(data, dict):
        raise MalformedDocumentError(
            f"Account document must be a JSON object, got {type(data).__name__}"
        )
    
    try:
        return Account.model_validate(data)
    except ValidationError as e:
        raise MalformedDocumentError(
            f"Account document failed validation ({e.error_count()} errors): {e}"
        ) from e


class JsonFileAccountRepository(AccountRepository):
    """
    Stores the account as a JSON file. `location` is a filesystem path.
    """
    
    def __init__(self, encoding: str = "utf-8"):
        self._encoding = encoding
    
    def _read(self, location: str) -> Account:
        path = Path(location)
        try:
            text = path.read_text(encoding=self._encoding)
        except FileNotFoundError as e:
            raise NotFoundError(f"Account document not found: {path}") from e
        except UnicodeDecodeError as e:
            raise MalformedDocumentError(
                f"Account document is not valid {self._encoding}: {path}"
            ) from e
        except OSError as e:
            raise StorageIOError(f"Could not read account document {path}: {e}") from e
        
        # A UTF-8 BOM is common in documents written on Windows
        return decode_document(text.lstrip("\ufeff"))
    
    def _write(self, location: str, account: Account) -> None:
        path = Path(location)
        payload = encode_document(account)
        
        tmp_name = None
        try:
            with tempfile.NamedTemporaryFile(
                "w",
                encoding=self._encoding,
                dir=path.parent,
                prefix=f".{path.name}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(payload)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, path)
        except OSError as e:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    logger.warning("temp_file_cleanup_failed", path=tmp_name)
            raise StorageIOError(f"Could not write account document {path}: {e}") from e
