"""
Teller Session Orchestrator

Ties the pieces together for one card holder at the machine:
1. Load the account through the repository (a failed load ends here)
2. Authenticate card details and PIN
3. Run menu operations: validate input, call the account, save

DESIGN DECISION: The whole account is saved after EVERY dispatched
menu action, inquiries and rejected attempts included. Storage always
reflects what the card holder last saw, at the cost of rewriting the
full ledger each time.

The repository never retries. Whether a failed save is retried is
this layer's decision (StorageSettings.save_attempts, default 1).
"""

from enum import Enum
from typing import Callable, Optional, Union

from pydantic import BaseModel
from tenacity import (
    Retrying,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
)

from teller.audit import AuditLogger
from teller.auth import AuthenticationGate, AuthenticationResult
from teller.config import Settings, StorageSettings, get_settings
from teller.models.account import (
    Account,
    AccountFailure,
    BalanceSnapshot,
    ExchangeRates,
    OperationResult,
)
from teller.models.transaction import Transaction
from teller.services.storage import (
    AccountRepository,
    JsonFileAccountRepository,
    LoadResult,
    SaveFailure,
    SaveResult,
)
from teller.validation import (
    InputFailure,
    parse_amount,
    parse_currency_choice,
    validate_conversion_amount,
)


class MenuOption(str, Enum):
    """The teller's main menu."""
    CHECK_BALANCE = "1"
    WITHDRAW = "2"
    DEPOSIT = "3"
    CHANGE_PIN = "4"
    CONVERT_CURRENCY = "5"
    EXIT = "6"
    
    @property
    def label(self) -> str:
        return {
            MenuOption.CHECK_BALANCE: "Check Balance",
            MenuOption.WITHDRAW: "Withdraw Amount",
            MenuOption.DEPOSIT: "Deposit Amount",
            MenuOption.CHANGE_PIN: "Change PIN",
            MenuOption.CONVERT_CURRENCY: "Convert Currency",
            MenuOption.EXIT: "Exit",
        }[self]


class SessionFailure(str, Enum):
    """Why a session action did not change the account."""
    NOT_AUTHENTICATED = "not_authenticated"
    SESSION_CLOSED = "session_closed"
    INVALID_OPTION = "invalid_option"
    INVALID_AMOUNT = "invalid_amount"
    INVALID_CURRENCY = "invalid_currency"
    INSUFFICIENT_FUNDS = "insufficient_funds"


_FROM_ACCOUNT_FAILURE = {
    AccountFailure.INSUFFICIENT_FUNDS: SessionFailure.INSUFFICIENT_FUNDS,
    AccountFailure.INVALID_AMOUNT: SessionFailure.INVALID_AMOUNT,
}

_FROM_INPUT_FAILURE = {
    InputFailure.INVALID_AMOUNT: SessionFailure.INVALID_AMOUNT,
    InputFailure.INVALID_CURRENCY: SessionFailure.INVALID_CURRENCY,
    InputFailure.INSUFFICIENT_FUNDS: SessionFailure.INSUFFICIENT_FUNDS,
}


class SessionOutcome(BaseModel):
    """What the card holder is shown after a menu action."""
    
    success: bool
    message: str
    failure: Optional[SessionFailure] = None
    snapshot: Optional[BalanceSnapshot] = None
    transaction: Optional[Transaction] = None
    save: Optional[SaveResult] = None
    
    @property
    def saved(self) -> bool:
        return self.save is not None and self.save.success


class TellerSession:
    """
    One authenticated session against the single account.
    
    Every public operation returns a SessionOutcome; nothing here raises
    for bad input, failed operations or failed saves.
    """
    
    def __init__(
        self,
        account: Account,
        repository: AccountRepository,
        location: str,
        rates: Optional[ExchangeRates] = None,
        audit_logger: Optional[AuditLogger] = None,
        gate: Optional[AuthenticationGate] = None,
        save_attempts: int = 1,
        save_wait: Optional[Callable] = None,
    ):
        self._account = account
        self._repository = repository
        self._location = str(location)
        self._rates = rates or ExchangeRates()
        self._audit_logger = audit_logger or AuditLogger()
        self._gate = gate or AuthenticationGate()
        self._save_attempts = max(save_attempts, 1)
        self._save_wait = save_wait or wait_exponential(multiplier=0.5, min=0.5, max=4)
        self._authenticated = False
        self._closed = False
        self._operations = 0
    
    @property
    def account(self) -> Account:
        return self._account
    
    @property
    def location(self) -> str:
        return self._location
    
    @property
    def rates(self) -> ExchangeRates:
        return self._rates
    
    @property
    def audit_logger(self) -> AuditLogger:
        return self._audit_logger
    
    @property
    def is_authenticated(self) -> bool:
        return self._authenticated
    
    @property
    def is_locked(self) -> bool:
        return self._gate.is_locked
    
    @property
    def is_closed(self) -> bool:
        return self._closed
    
    # -------------------------------------------------------------------------
    # Authentication
    # -------------------------------------------------------------------------
    
    def authenticate(
        self,
        card_number: str,
        cvc: str,
        expiration_date: str,
        pin: str,
    ) -> AuthenticationResult:
        """Sign the card holder in. Reads the account, never changes it."""
        result = self._gate.authenticate(
            self._account,
            card_number=card_number,
            cvc=cvc,
            expiration_date=expiration_date,
            pin=pin,
        )
        self._authenticated = result.authenticated
        self._audit_logger.log_authentication(
            succeeded=result.authenticated,
            reason=result.failure.value if result.failure else None,
            failed_attempts=self._gate.failed_attempts,
        )
        if self._gate.is_locked:
            self._audit_logger.log_session_locked(self._gate.failed_attempts)
        return result
    
    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------
    
    def save(self) -> SaveResult:
        """
        Save the whole account, retrying up to `save_attempts` times.
        
        Returns the last SaveResult; a failure is logged, not raised.
        """
        attempts = 0

        def attempt() -> SaveResult:
            nonlocal attempts
            attempts += 1
            try:
                return self._repository.save(self._location, self._account)
            except Exception as e:
                # Repositories map StorageError themselves; anything else is a bug
                self._audit_logger.log_error(
                    error_type=type(e).__name__,
                    error_message=str(e),
                    details={"location": self._location, "attempt": attempts},
                )
                return SaveResult(
                    location=self._location,
                    success=False,
                    failure=SaveFailure.IO_FAULT,
                    message=f"Unexpected error while saving: {e}",
                )

        retrying = Retrying(
            stop=stop_after_attempt(self._save_attempts),
            wait=self._save_wait,
            retry=retry_if_result(lambda result: not result.success),
            retry_error_callback=lambda state: state.outcome.result(),
        )
        result = retrying(attempt)

        if not result.success:
            self._audit_logger.log_save_failed(
                location=self._location,
                message=result.message,
                attempts=attempts,
            )
        return result
    
    # -------------------------------------------------------------------------
    # Outcome helpers
    # -------------------------------------------------------------------------
    
    def _blocked(self, operation: str) -> Optional[SessionOutcome]:
        """Refuse to run before sign-in or after exit. Nothing is saved."""
        if self._closed:
            return SessionOutcome(
                success=False,
                failure=SessionFailure.SESSION_CLOSED,
                message="The session has ended.",
            )
        if not self._authenticated:
            self._audit_logger.log_operation_rejected(
                operation, SessionFailure.NOT_AUTHENTICATED.value
            )
            return SessionOutcome(
                success=False,
                failure=SessionFailure.NOT_AUTHENTICATED,
                message="Please authenticate first.",
            )
        return None
    
    def _rejected(
        self,
        operation: str,
        failure: SessionFailure,
        message: str,
        details: Optional[dict] = None,
    ) -> SessionOutcome:
        self._operations += 1
        self._audit_logger.log_operation_rejected(operation, failure.value, details)
        return SessionOutcome(
            success=False,
            failure=failure,
            message=message,
            snapshot=self._account.snapshot(),
            save=self.save(),
        )
    
    def _finish(self, operation: str, result: OperationResult) -> SessionOutcome:
        if not result.success:
            return self._rejected(
                operation,
                _FROM_ACCOUNT_FAILURE[result.failure],
                result.message,
            )
        
        self._operations += 1
        self._audit_logger.log_operation_completed(
            operation=operation,
            transaction_type=result.transaction.transaction_type.value,
            amount=str(result.transaction.amount),
        )
        return SessionOutcome(
            success=True,
            message=result.message,
            snapshot=self._account.snapshot(),
            transaction=result.transaction,
            save=self.save(),
        )
    
    # -------------------------------------------------------------------------
    # Menu operations
    # -------------------------------------------------------------------------
    
    def check_balance(self) -> SessionOutcome:
        blocked = self._blocked("check_balance")
        if blocked:
            return blocked
        
        snapshot = self._account.check_balance()
        transaction = self._account.transaction_history.last
        self._operations += 1
        self._audit_logger.log_operation_completed(
            operation="check_balance",
            transaction_type=transaction.transaction_type.value,
            amount="0",
        )
        return SessionOutcome(
            success=True,
            message=(
                f"Balance: {snapshot.home}\n"
                f"BalanceUSD: {snapshot.usd}\n"
                f"BalanceEUR: {snapshot.eur}"
            ),
            snapshot=snapshot,
            transaction=transaction,
            save=self.save(),
        )
    
    def withdraw(self, raw_amount: Union[str, int, None]) -> SessionOutcome:
        blocked = self._blocked("withdraw")
        if blocked:
            return blocked
        
        validation = parse_amount(raw_amount)
        if not validation.is_valid:
            return self._rejected(
                "withdraw",
                _FROM_INPUT_FAILURE[validation.failure],
                validation.message,
                {"input": str(raw_amount)},
            )
        return self._finish("withdraw", self._account.withdraw(validation.amount))
    
    def deposit(self, raw_amount: Union[str, int, None]) -> SessionOutcome:
        blocked = self._blocked("deposit")
        if blocked:
            return blocked
        
        validation = parse_amount(raw_amount)
        if not validation.is_valid:
            return self._rejected(
                "deposit",
                _FROM_INPUT_FAILURE[validation.failure],
                validation.message,
                {"input": str(raw_amount)},
            )
        return self._finish("deposit", self._account.deposit(validation.amount))
    
    def change_pin(self, new_pin: str) -> SessionOutcome:
        blocked = self._blocked("change_pin")
        if blocked:
            return blocked
        return self._finish("change_pin", self._account.change_pin(new_pin))
    
    def convert(
        self,
        raw_currency: Optional[str],
        raw_amount: Union[str, int, None],
    ) -> SessionOutcome:
        blocked = self._blocked("convert")
        if blocked:
            return blocked
        
        target = parse_currency_choice(raw_currency)
        if target is None:
            return self._rejected(
                "convert",
                SessionFailure.INVALID_CURRENCY,
                "Invalid currency choice. Please try again.",
                {"input": str(raw_currency)},
            )
        
        validation = validate_conversion_amount(raw_amount, self._account)
        if not validation.is_valid:
            return self._rejected(
                "convert",
                _FROM_INPUT_FAILURE[validation.failure],
                validation.message,
                {"input": str(raw_amount), "currency": target.value},
            )
        
        return self._finish(
            "convert",
            self._account.convert(target, validation.amount, self._rates),
        )
    
    def exit(self) -> SessionOutcome:
        """End the session. The account is saved one last time."""
        blocked = self._blocked("exit")
        if blocked:
            return blocked
        
        self._closed = True
        self._audit_logger.log_session_ended(self._operations)
        return SessionOutcome(
            success=True,
            message="Thank you for banking with us. Goodbye!",
            snapshot=self._account.snapshot(),
            save=self.save(),
        )
    
    def dispatch(
        self,
        choice: Union[str, MenuOption],
        amount: Union[str, int, None] = None,
        currency: Optional[str] = None,
        new_pin: Optional[str] = None,
    ) -> SessionOutcome:
        """Run a menu choice by its number ("1".."6")."""
        blocked = self._blocked("dispatch")
        if blocked:
            return blocked
        
        try:
            option = MenuOption(str(getattr(choice, "value", choice)).strip())
        except ValueError:
            return self._rejected(
                "dispatch",
                SessionFailure.INVALID_OPTION,
                "Invalid option, please try again.",
                {"input": str(choice)},
            )
        
        if option == MenuOption.CHECK_BALANCE:
            return self.check_balance()
        if option == MenuOption.WITHDRAW:
            return self.withdraw(amount)
        if option == MenuOption.DEPOSIT:
            return self.deposit(amount)
        if option == MenuOption.CHANGE_PIN:
            return self.change_pin(new_pin or "")
        if option == MenuOption.CONVERT_CURRENCY:
            return self.convert(currency, amount)
        return self.exit()
    
    def statement(self, limit: Optional[int] = None) -> list[Transaction]:
        """
        Most recent ledger entries, newest first.
        
        Read-only: records nothing and saves nothing.
        """
        if not self._authenticated:
            return []
        entries = list(reversed(self._account.transaction_history.entries))
        return entries[:limit] if limit is not None else entries


def open_session(
    repository: AccountRepository,
    location: str,
    audit_logger: Optional[AuditLogger] = None,
    rates: Optional[ExchangeRates] = None,
    gate: Optional[AuthenticationGate] = None,
    save_attempts: int = 1,
    save_wait: Optional[Callable] = None,
) -> tuple[Optional[TellerSession], LoadResult]:
    """
    Load the account and start a session.
    
    Returns:
        (session, load_result); session is None when the load failed
    """
    audit_logger = audit_logger or AuditLogger()
    result = repository.load(location)
    
    if not result.success:
        audit_logger.log_load_failed(
            location=result.location,
            failure=result.failure.value,
            message=result.message,
        )
        return None, result
    
    audit_logger.log_account_loaded(
        location=result.location,
        card_number=result.account.card_details.card_number,
        ledger_size=len(result.account.transaction_history),
    )
    session = TellerSession(
        account=result.account,
        repository=repository,
        location=result.location,
        rates=rates,
        audit_logger=audit_logger,
        gate=gate,
        save_attempts=save_attempts,
        save_wait=save_wait,
    )
    return session, result


def create_repository(
    storage: StorageSettings,
    settings: Optional[Settings] = None,
) -> tuple[AccountRepository, str]:
    """
    Build the configured repository and the location it reads from.
    
    Returns:
        (repository, location)
    """
    if storage.backend == "google_sheets":
        from teller.services.storage.google_sheets import (
            GoogleSheetsAccountRepository,
            GoogleSheetsClient,
        )
        
        sheets = (settings or get_settings()).google_sheets
        repository = GoogleSheetsAccountRepository(
            client=GoogleSheetsClient(sheets),
            account_sheet_name=sheets.account_sheet_name,
            transactions_sheet_name=sheets.transactions_sheet_name,
        )
        return repository, sheets.spreadsheet_id
    
    return JsonFileAccountRepository(), str(storage.data_file)


def create_app_components(
    settings: Optional[Settings] = None,
) -> tuple[Optional[TellerSession], LoadResult]:
    """
    Factory function wiring configuration, storage and audit logging.
    
    Returns:
        (session, load_result) as from open_session
    """
    settings = settings or get_settings()
    storage = settings.storage
    app = settings.app
    
    repository, location = create_repository(storage, settings)
    return open_session(
        repository=repository,
        location=location,
        audit_logger=AuditLogger(),
        rates=settings.rates.to_rates(),
        gate=AuthenticationGate(max_attempts=app.max_auth_attempts),
        save_attempts=storage.save_attempts,
    )
