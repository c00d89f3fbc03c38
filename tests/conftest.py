"""Shared fixtures for teller tests."""

from decimal import Decimal
from typing import Optional

import pytest

from teller.config import get_settings
from teller.models.account import Account, CardDetails
from teller.services.storage import (
    AccountRepository,
    NotFoundError,
    StorageIOError,
)
from teller.services.storage.json_file import decode_document, encode_document


# Layout written by the older console teller (Newtonsoft-style floats)
SAMPLE_DOCUMENT = """{
  "FirstName": "Nino",
  "LastName": "Beridze",
  "CardDetails": {
    "CardNumber": "4111-1111-1111-1111",
    "ExpirationDate": "12/27",
    "CVC": "123",
    "Balance": 0.0
  },
  "PinCode": "1234",
  "Balance": 100.0,
  "BalanceUSD": 0.0,
  "BalanceEUR": 0.0,
  "TransactionHistory": [
    {
      "TransactionDate": "2024-06-01 10:15:00",
      "TransactionType": "Deposit",
      "Amount": 100.0,
      "AmountUSD": 0.0,
      "AmountEUR": 0.0
    }
  ]
}"""


def make_account(
    balance: str = "100",
    usd: str = "0",
    eur: str = "0",
    pin: str = "1234",
) -> Account:
    return Account(
        first_name="Nino",
        last_name="Beridze",
        card_details=CardDetails(
            card_number="4111-1111-1111-1111",
            expiration_date="12/27",
            cvc="123",
        ),
        pin_code=pin,
        balance=Decimal(balance),
        balance_usd=Decimal(usd),
        balance_eur=Decimal(eur),
    )


class InMemoryAccountRepository(AccountRepository):
    """Stores encoded documents in a dict; can be told to fail saves."""
    
    def __init__(self, documents: Optional[dict[str, str]] = None):
        self.documents = dict(documents or {})
        self.save_calls = 0
        self.failures_left = 0
    
    def _read(self, location: str) -> Account:
        if location not in self.documents:
            raise NotFoundError(f"nothing at {location}")
        return decode_document(self.documents[location])
    
    def _write(self, location: str, account: Account) -> None:
        self.save_calls += 1
        if self.failures_left:
            self.failures_left -= 1
            raise StorageIOError("disk full")
        self.documents[location] = encode_document(account)


@pytest.fixture
def account() -> Account:
    return make_account()


@pytest.fixture
def sample_file(tmp_path):
    path = tmp_path / "UserData.json"
    path.write_text(SAMPLE_DOCUMENT, encoding="utf-8")
    return path


@pytest.fixture
def memory_repository() -> InMemoryAccountRepository:
    return InMemoryAccountRepository({"atm": SAMPLE_DOCUMENT})


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Keep TELLER_* variables from the host out of every test."""
    import os
    
    for name in list(os.environ):
        if name.startswith("TELLER_"):
            monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def account_factory():
    return make_account


@pytest.fixture
def sample_document() -> str:
    return SAMPLE_DOCUMENT


@pytest.fixture
def repository_factory():
    return InMemoryAccountRepository
