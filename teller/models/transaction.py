"""
Transaction and Ledger Models

Every action taken at the teller produces exactly one Transaction,
and the Ledger keeps them in the order they happened.

DESIGN DECISION: Transactions are frozen once created and the Ledger
only ever grows. There is no edit, remove or reorder operation anywhere
in the codebase - the audit trail is only trustworthy if it is append-only.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Iterator, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    RootModel,
    field_serializer,
    field_validator,
)


# Wire format of TransactionDate in the persisted document
TRANSACTION_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def now_to_the_second() -> datetime:
    """Local wall-clock time truncated to second precision."""
    return datetime.now().replace(microsecond=0)


class TransactionType(str, Enum):
    """
    Kinds of ledger entries.
    
    The values are the exact strings stored in TransactionType,
    so existing documents load without translation.
    """
    BALANCE_INQUIRY = "Balance Inquiry"
    WITHDRAWAL = "Withdrawal"
    DEPOSIT = "Deposit"
    PIN_CHANGE = "Change PIN"
    CONVERTED_TO_USD = "Converted to USD"
    CONVERTED_TO_EUR = "Converted to EUR"
    
    @property
    def is_conversion(self) -> bool:
        return self in (
            TransactionType.CONVERTED_TO_USD,
            TransactionType.CONVERTED_TO_EUR,
        )
    
    @property
    def target_currency(self) -> Optional[str]:
        """Currency code a conversion credited, None for other kinds."""
        if not self.is_conversion:
            return None
        return self.value.rsplit(" ", 1)[-1]
    
    @classmethod
    def conversion_to(cls, currency_code: str) -> "TransactionType":
        """Conversion kind for a target currency code (e.g. 'USD')."""
        return cls(f"Converted to {currency_code}")


class Transaction(BaseModel):
    """
    A single ledger entry.
    
    `amount` is in home currency for deposits and withdrawals, zero for
    inquiries and PIN changes, and the converted (foreign) amount for
    conversions. `amount_usd` / `amount_eur` are kept for document
    compatibility only; the teller never writes them.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)
    
    transaction_date: datetime = Field(
        default_factory=now_to_the_second,
        alias="TransactionDate",
        description="When the action happened (second precision)"
    )
    transaction_type: TransactionType = Field(
        ...,
        alias="TransactionType",
        description="Kind of action"
    )
    amount: Decimal = Field(
        default=Decimal("0"),
        alias="Amount",
        description="Amount associated with the action"
    )
    amount_usd: Decimal = Field(
        default=Decimal("0"),
        alias="AmountUSD",
    )
    amount_eur: Decimal = Field(
        default=Decimal("0"),
        alias="AmountEUR",
    )
    
    @field_validator("transaction_date", mode="before")
    @classmethod
    def parse_transaction_date(cls, v):
        """Stored dates must use the fixed 'yyyy-MM-dd HH:mm:ss' layout."""
        if isinstance(v, str):
            return datetime.strptime(v, TRANSACTION_DATE_FORMAT)
        return v
    
    @field_serializer("transaction_date")
    def serialize_transaction_date(self, v: datetime) -> str:
        return v.strftime(TRANSACTION_DATE_FORMAT)
    
    @classmethod
    def record(
        cls,
        transaction_type: TransactionType,
        amount: Decimal = Decimal("0"),
    ) -> "Transaction":
        """Create an entry stamped with the current time."""
        return cls(transaction_type=transaction_type, amount=amount)


class Ledger(RootModel[list[Transaction]]):
    """
    Append-only, chronological sequence of transactions.
    
    Serializes as a plain JSON array so it maps directly onto
    TransactionHistory in the persisted document.
    """
    root: list[Transaction] = Field(default_factory=list)
    
    def append(self, transaction: Transaction) -> None:
        self.root.append(transaction)
    
    def __iter__(self) -> Iterator[Transaction]:  # type: ignore[override]
        return iter(self.root)
    
    def __len__(self) -> int:
        return len(self.root)
    
    def __getitem__(self, index: int) -> Transaction:
        return self.root[index]
    
    @property
    def entries(self) -> tuple[Transaction, ...]:
        """Snapshot of all entries, oldest first."""
        return tuple(self.root)
    
    @property
    def last(self) -> Optional[Transaction]:
        return self.root[-1] if self.root else None
