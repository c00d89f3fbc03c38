"""
Data Models Package

This package contains all Pydantic models used by the teller.
The persisted account document is defined entirely by these schemas.
"""

from teller.models.account import (
    DEFAULT_EXCHANGE_RATES,
    Account,
    AccountFailure,
    BalanceSnapshot,
    CardDetails,
    Currency,
    ExchangeRates,
    OperationResult,
)
from teller.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)
from teller.models.transaction import (
    TRANSACTION_DATE_FORMAT,
    Ledger,
    Transaction,
    TransactionType,
)

__all__ = [
    # Account models
    "DEFAULT_EXCHANGE_RATES",
    "Account",
    "AccountFailure",
    "BalanceSnapshot",
    "CardDetails",
    "Currency",
    "ExchangeRates",
    "OperationResult",
    # Ledger models
    "TRANSACTION_DATE_FORMAT",
    "Ledger",
    "Transaction",
    "TransactionType",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
