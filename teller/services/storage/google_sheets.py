"""
Google Sheets Storage Implementation

An alternative backend for people who want to see their account in a
spreadsheet. `location` is the spreadsheet key.

Layout:
- Account sheet: header row + one row with identity, card and balances
- Transactions sheet: header row + one row per ledger entry, oldest first

TRADEOFFS:
- Saves rewrite two worksheets one after the other; there is no
  transaction spanning both, so an interrupted save can leave the
  ledger sheet behind the account sheet
- Each sheet is overwritten in place before surplus rows are trimmed,
  so a failed write leaves the previous values rather than a blank sheet
- Every save rewrites the full ledger (same contract as the JSON backend)

Values are written with value_input_option="RAW" so card numbers and
PINs with leading zeros are stored as text, not numbers.
"""

from decimal import InvalidOperation
from typing import Optional

import gspread
import structlog
from google.oauth2.service_account import Credentials
from gspread.exceptions import GSpreadException
from pydantic import ValidationError

from teller.config import GoogleSheetsSettings, get_settings
from teller.models.account import Account
from teller.models.transaction import TRANSACTION_DATE_FORMAT, Transaction
from teller.services.storage.interface import (
    AccountRepository,
    MalformedDocumentError,
    NotFoundError,
    StorageIOError,
)


logger = structlog.get_logger(__name__)


# Column mappings for the Account sheet
ACCOUNT_COLUMNS = [
    "FirstName",
    "LastName",
    "CardNumber",
    "ExpirationDate",
    "CVC",
    "CardBalance",
    "PinCode",
    "Balance",
    "BalanceUSD",
    "BalanceEUR",
]

# Column mappings for the Transactions sheet
TRANSACTION_COLUMNS = [
    "TransactionDate",
    "TransactionType",
    "Amount",
    "AmountUSD",
    "AmountEUR",
]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.
    
    Handles authentication and worksheet lookup.
    """
    
    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._settings = settings or get_settings().google_sheets
    
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.
        
        Uses service account credentials for authentication.
        """
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
                raise StorageIOError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise StorageIOError(f"Failed to connect to Google Sheets: {e}")
        
        return self._client
    
    def get_spreadsheet(self, key: str) -> gspread.Spreadsheet:
        """Open a spreadsheet by key."""
        try:
            return self.connect().open_by_key(key)
        except gspread.SpreadsheetNotFound:
            raise NotFoundError(f"Spreadsheet not found: {key}")
    
    def get_worksheet(self, key: str, title: str) -> gspread.Worksheet:
        """Get an existing worksheet; raises NotFoundError if missing."""
        spreadsheet = self.get_spreadsheet(key)
        try:
            return spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            raise NotFoundError(f"Worksheet '{title}' not found in spreadsheet {key}")
    
    def get_or_create_worksheet(
        self,
        key: str,
        title: str,
        cols: int,
    ) -> gspread.Worksheet:
        """Get or create a worksheet."""
        spreadsheet = self.get_spreadsheet(key)
        try:
            return spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            return spreadsheet.add_worksheet(title=title, rows=100, cols=cols)


def _account_to_row(account: Account) -> list:
    card = account.card_details
    return [
        account.first_name,
        account.last_name,
        card.card_number,
        card.expiration_date,
        card.cvc,
        str(card.balance),
        account.pin_code,
        str(account.balance),
        str(account.balance_usd),
        str(account.balance_eur),
    ]


def _transaction_to_row(transaction: Transaction) -> list:
    return [
        transaction.transaction_date.strftime(TRANSACTION_DATE_FORMAT),
        transaction.transaction_type.value,
        str(transaction.amount),
        str(transaction.amount_usd),
        str(transaction.amount_eur),
    ]


def _rows_to_account(account_rows: list[list], transaction_rows: list[list]) -> Account:
    """Build an Account from sheet values (header rows already removed)."""
    row = dict(zip(ACCOUNT_COLUMNS, account_rows[0]))
    if len(row) != len(ACCOUNT_COLUMNS):
        raise MalformedDocumentError(
            f"Account row has {len(row)} columns, expected {len(ACCOUNT_COLUMNS)}"
        )
    
    history = [
        dict(zip(TRANSACTION_COLUMNS, values))
        for values in transaction_rows
        if any(values)  # Skip blank rows
    ]
    
    document = {
        "FirstName": row["FirstName"],
        "LastName": row["LastName"],
        "CardDetails": {
            "CardNumber": row["CardNumber"],
            "ExpirationDate": row["ExpirationDate"],
            "CVC": row["CVC"],
            "Balance": row["CardBalance"] or "0",
        },
        "PinCode": row["PinCode"],
        "Balance": row["Balance"],
        "BalanceUSD": row["BalanceUSD"] or "0",
        "BalanceEUR": row["BalanceEUR"] or "0",
        "TransactionHistory": history,
    }
    
    try:
        return Account.model_validate(document)
    except (ValidationError, InvalidOperation) as e:
        raise MalformedDocumentError(f"Account sheet failed validation: {e}") from e


class GoogleSheetsAccountRepository(AccountRepository):
    """
    Google Sheets implementation of the account repository.
    """
    
    def __init__(
        self,
        client: Optional[GoogleSheetsClient] = None,
        account_sheet_name: Optional[str] = None,
        transactions_sheet_name: Optional[str] = None,
    ):
        self._client = client or GoogleSheetsClient()
        if account_sheet_name is None or transactions_sheet_name is None:
            settings = get_settings().google_sheets
            account_sheet_name = account_sheet_name or settings.account_sheet_name
            transactions_sheet_name = (
                transactions_sheet_name or settings.transactions_sheet_name
            )
        self._account_sheet_name = account_sheet_name
        self._transactions_sheet_name = transactions_sheet_name
    
    def _read(self, location: str) -> Account:
        try:
            account_sheet = self._client.get_worksheet(location, self._account_sheet_name)
            account_values = account_sheet.get_all_values()
            
            if len(account_values) < 2 or not any(account_values[1]):
                raise NotFoundError(f"No account row in spreadsheet {location}")
            if account_values[0] != ACCOUNT_COLUMNS:
                raise MalformedDocumentError(
                    f"Unexpected account sheet header: {account_values[0]}"
                )
            
            try:
                ledger_sheet = self._client.get_worksheet(
                    location, self._transactions_sheet_name
                )
                ledger_values = ledger_sheet.get_all_values()
            except NotFoundError:
                # An account saved before any transaction has no ledger sheet yet
                ledger_values = [TRANSACTION_COLUMNS]
            
            if ledger_values and ledger_values[0] != TRANSACTION_COLUMNS:
                raise MalformedDocumentError(
                    f"Unexpected transactions sheet header: {ledger_values[0]}"
                )
        except (GSpreadException, OSError) as e:
            raise StorageIOError(f"Failed to read spreadsheet {location}: {e}") from e
        
        return _rows_to_account(account_values[1:], ledger_values[1:])
    
    def _rewrite(self, worksheet: gspread.Worksheet, values: list[list]) -> None:
        """Overwrite in place, then trim leftover rows and columns."""
        rows, cols = len(values), len(values[0])
        if worksheet.row_count < rows or worksheet.col_count < cols:
            worksheet.resize(
                rows=max(worksheet.row_count, rows),
                cols=max(worksheet.col_count, cols),
            )
        worksheet.update(range_name="A1", values=values, value_input_option="RAW")
        worksheet.resize(rows=rows, cols=cols)
    
    def _write(self, location: str, account: Account) -> None:
        try:
            account_sheet = self._client.get_or_create_worksheet(
                location, self._account_sheet_name, len(ACCOUNT_COLUMNS)
            )
            ledger_sheet = self._client.get_or_create_worksheet(
                location, self._transactions_sheet_name, len(TRANSACTION_COLUMNS)
            )
            
            self._rewrite(account_sheet, [ACCOUNT_COLUMNS, _account_to_row(account)])
            self._rewrite(
                ledger_sheet,
                [TRANSACTION_COLUMNS]
                + [_transaction_to_row(t) for t in account.transaction_history],
            )
        except NotFoundError as e:
            # A missing spreadsheet on save is a write fault, not a lookup miss
            raise StorageIOError(str(e)) from e
        except (GSpreadException, OSError) as e:
            raise StorageIOError(f"Failed to write spreadsheet {location}: {e}") from e
