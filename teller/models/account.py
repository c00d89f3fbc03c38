"""
Account Domain Model

The Account is the only component with business rules. It owns the
balances, the PIN and the Ledger, and every operation either fully
succeeds (state and Ledger both updated) or fully fails (neither touched).

DESIGN DECISION: Operations report failures as values (OperationResult)
instead of raising. The teller shell always needs to show a message and
persist afterwards, so a failure is an ordinary outcome, not an exception.

DESIGN DECISION: Exchange rates are passed in, never hard-coded here.
They are configuration (see teller.config), not business logic.
"""

from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from teller.models.transaction import Ledger, Transaction, TransactionType


Amount = Union[Decimal, int, str]


def as_decimal(value: Amount) -> Optional[Decimal]:
    """
    Coerce an amount to Decimal without going through float.
    
    Returns None for anything that is not a finite number
    ("abc", "NaN", "Infinity", None).
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, float):
        value = str(value)
    try:
        amount = value if isinstance(value, Decimal) else Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        return None
    return amount if amount.is_finite() else None


# =============================================================================
# CURRENCIES AND RATES
# =============================================================================

class Currency(str, Enum):
    """Foreign currencies the account can hold."""
    USD = "USD"
    EUR = "EUR"


class ExchangeRates(BaseModel):
    """
    Fixed conversion divisors: home amount / rate = foreign amount.
    
    These are static policy values, not market data.
    """
    model_config = ConfigDict(frozen=True)
    
    usd: Decimal = Field(default=Decimal("2.6"), gt=0)
    eur: Decimal = Field(default=Decimal("2.9"), gt=0)
    
    def rate_for(self, currency: Currency) -> Decimal:
        if currency == Currency.USD:
            return self.usd
        return self.eur


DEFAULT_EXCHANGE_RATES = ExchangeRates()


# =============================================================================
# RESULT TYPES
# =============================================================================

class AccountFailure(str, Enum):
    """Reasons an account operation can be rejected."""
    INSUFFICIENT_FUNDS = "insufficient_funds"
    INVALID_AMOUNT = "invalid_amount"


class BalanceSnapshot(BaseModel):
    """Point-in-time view of the three balances."""
    model_config = ConfigDict(frozen=True)
    
    home: Decimal
    usd: Decimal
    eur: Decimal


class OperationResult(BaseModel):
    """Outcome of a single account operation."""
    
    success: bool
    failure: Optional[AccountFailure] = None
    message: str
    transaction: Optional[Transaction] = None
    
    @classmethod
    def ok(cls, message: str, transaction: Transaction) -> "OperationResult":
        return cls(success=True, message=message, transaction=transaction)
    
    @classmethod
    def rejected(cls, failure: AccountFailure, message: str) -> "OperationResult":
        return cls(success=False, failure=failure, message=message)


# =============================================================================
# ACCOUNT
# =============================================================================

class CardDetails(BaseModel):
    """
    Card identity used only for authentication matching.
    
    `balance` exists in stored documents but nothing reads or writes it;
    it is carried along unchanged so saves do not drop data.
    """
    model_config = ConfigDict(populate_by_name=True)
    
    card_number: str = Field(..., alias="CardNumber")
    expiration_date: str = Field(..., alias="ExpirationDate")
    cvc: str = Field(..., alias="CVC")
    balance: Decimal = Field(default=Decimal("0"), alias="Balance")


class Account(BaseModel):
    """
    The single account holder's aggregate.
    
    Field aliases are the persisted document's field names, and field
    order matches the document layout.
    """
    model_config = ConfigDict(
        populate_by_name=True,
        validate_assignment=True,
    )
    
    first_name: str = Field(..., alias="FirstName")
    last_name: str = Field(..., alias="LastName")
    card_details: CardDetails = Field(..., alias="CardDetails")
    pin_code: str = Field(..., alias="PinCode")
    balance: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        alias="Balance",
        description="Home currency balance"
    )
    balance_usd: Decimal = Field(default=Decimal("0"), ge=0, alias="BalanceUSD")
    balance_eur: Decimal = Field(default=Decimal("0"), ge=0, alias="BalanceEUR")
    transaction_history: Ledger = Field(
        default_factory=Ledger,
        alias="TransactionHistory",
    )
    
    @field_validator("transaction_history", mode="before")
    @classmethod
    def null_history_is_empty(cls, v):
        # Older documents may carry "TransactionHistory": null
        return [] if v is None else v
    
    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
    
    def snapshot(self) -> BalanceSnapshot:
        """Current balances, without recording an inquiry."""
        return BalanceSnapshot(
            home=self.balance,
            usd=self.balance_usd,
            eur=self.balance_eur,
        )
    
    def _record(
        self,
        transaction_type: TransactionType,
        amount: Decimal = Decimal("0"),
    ) -> Transaction:
        transaction = Transaction.record(transaction_type, amount)
        self.transaction_history.append(transaction)
        return transaction
    
    # -------------------------------------------------------------------------
    # Balance operations
    # -------------------------------------------------------------------------
    
    def check_balance(self) -> BalanceSnapshot:
        """Return all balances and record a Balance Inquiry."""
        self._record(TransactionType.BALANCE_INQUIRY)
        return self.snapshot()
    
    def withdraw(self, amount: Amount) -> OperationResult:
        """Debit the home balance if it covers the amount."""
        amount = as_decimal(amount)
        if amount is None or amount <= 0:
            return OperationResult.rejected(
                AccountFailure.INVALID_AMOUNT,
                "Withdrawal amount must be a positive number.",
            )
        if amount > self.balance:
            return OperationResult.rejected(
                AccountFailure.INSUFFICIENT_FUNDS,
                "Insufficient balance.",
            )
        
        self.balance = self.balance - amount
        transaction = self._record(TransactionType.WITHDRAWAL, amount)
        return OperationResult.ok(
            f"Withdrawal successful. New balance: {self.balance}",
            transaction,
        )
    
    def deposit(self, amount: Amount) -> OperationResult:
        """Credit the home balance."""
        amount = as_decimal(amount)
        if amount is None or amount <= 0:
            return OperationResult.rejected(
                AccountFailure.INVALID_AMOUNT,
                "Deposit amount must be a positive number.",
            )
        
        self.balance = self.balance + amount
        transaction = self._record(TransactionType.DEPOSIT, amount)
        return OperationResult.ok(
            f"Deposit successful. New balance: {self.balance}",
            transaction,
        )
    
    def change_pin(self, new_pin: str) -> OperationResult:
        """
        Replace the PIN unconditionally.
        
        PIN format policy, if any, belongs to the caller.
        """
        self.pin_code = new_pin
        transaction = self._record(TransactionType.PIN_CHANGE)
        return OperationResult.ok("PIN changed successfully.", transaction)
    
    # -------------------------------------------------------------------------
    # Currency conversion
    # -------------------------------------------------------------------------
    
    def convert(
        self,
        target: Currency,
        amount: Amount,
        rates: Optional[ExchangeRates] = None,
    ) -> OperationResult:
        """
        Move `amount` of home currency into the `target` holding.
        
        The foreign holding is credited `amount / rate`, the home balance
        is debited `amount`, and the ledger records the converted amount.
        """
        target = Currency(target)
        amount = as_decimal(amount)
        rates = rates or DEFAULT_EXCHANGE_RATES
        
        if amount is None or amount <= 0:
            return OperationResult.rejected(
                AccountFailure.INVALID_AMOUNT,
                "Conversion amount must be a positive number.",
            )
        if amount > self.balance:
            return OperationResult.rejected(
                AccountFailure.INSUFFICIENT_FUNDS,
                "Insufficient balance.",
            )
        
        converted = amount / rates.rate_for(target)
        
        if target == Currency.USD:
            self.balance_usd = self.balance_usd + converted
            new_holding = self.balance_usd
        else:
            self.balance_eur = self.balance_eur + converted
            new_holding = self.balance_eur
        self.balance = self.balance - amount
        
        transaction = self._record(
            TransactionType.conversion_to(target.value),
            converted,
        )
        return OperationResult.ok(
            f"Converted to {target.value}. New {target.value} balance: {new_holding}",
            transaction,
        )
