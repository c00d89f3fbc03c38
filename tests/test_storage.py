"""Tests for the JSON document repository."""

import json
import os

import pytest
from decimal import Decimal

from teller.models.account import Currency
from teller.models.transaction import TransactionType
from teller.services.storage import (
    JsonFileAccountRepository,
    LoadFailure,
    SaveFailure,
)
from teller.services.storage.json_file import encode_document


@pytest.fixture
def repository():
    return JsonFileAccountRepository()


class TestLoad:
    """Tests for reading the JSON document."""
    
    def test_loads_existing_document(self, repository, sample_file):
        result = repository.load(sample_file)
        
        assert result.success is True
        assert result.failure is None
        account = result.account
        assert account.first_name == "Nino"
        assert account.card_details.cvc == "123"
        assert account.pin_code == "1234"
        assert account.balance == Decimal("100.0")
        assert len(account.transaction_history) == 1
        assert account.transaction_history[0].transaction_type == TransactionType.DEPOSIT
    
    def test_decimals_are_not_floats(self, repository, tmp_path, sample_document):
        path = tmp_path / "doc.json"
        path.write_text(sample_document.replace("100.0,", "0.1,", 1), encoding="utf-8")
        account = repository.load(path).account
        assert account.balance == Decimal("0.1")
    
    def test_missing_file_is_not_found(self, repository, tmp_path):
        result = repository.load(tmp_path / "missing.json")
        assert result.success is False
        assert result.account is None
        assert result.failure == LoadFailure.NOT_FOUND
        assert "missing.json" in result.message
    
    @pytest.mark.parametrize("content", [
        "{not json",
        "[]",
        '"just a string"',
        "",
    ])
    def test_unparseable_document_is_malformed(self, repository, tmp_path, content):
        path = tmp_path / "bad.json"
        path.write_text(content, encoding="utf-8")
        result = repository.load(path)
        assert result.failure == LoadFailure.MALFORMED
        assert result.account is None
    
    def test_schema_violation_is_malformed(self, repository, tmp_path, sample_document):
        document = json.loads(sample_document)
        del document["PinCode"]
        path = tmp_path / "bad.json"
        path.write_text(json.dumps(document), encoding="utf-8")
        assert repository.load(path).failure == LoadFailure.MALFORMED
    
    def test_negative_balance_is_malformed(self, repository, tmp_path, sample_document):
        path = tmp_path / "bad.json"
        path.write_text(sample_document.replace('"Balance": 100.0', '"Balance": -1.0'), encoding="utf-8")
        assert repository.load(path).failure == LoadFailure.MALFORMED
    
    def test_bad_transaction_date_is_malformed(self, repository, tmp_path, sample_document):
        path = tmp_path / "bad.json"
        path.write_text(
            sample_document.replace("2024-06-01 10:15:00", "06/01/2024"),
            encoding="utf-8",
        )
        assert repository.load(path).failure == LoadFailure.MALFORMED
    
    def test_invalid_encoding_is_malformed(self, repository, tmp_path):
        path = tmp_path / "bad.json"
        path.write_bytes(b"\xff\xfe\x00garbage")
        assert repository.load(path).failure == LoadFailure.MALFORMED
    
    def test_directory_is_io_fault(self, repository, tmp_path):
        result = repository.load(tmp_path)
        assert result.failure == LoadFailure.IO_FAULT
    
    def test_byte_order_mark_is_accepted(self, repository, tmp_path, sample_document):
        path = tmp_path / "bom.json"
        path.write_text("\ufeff" + sample_document, encoding="utf-8")
        assert repository.load(path).success is True


class TestSave:
    """Tests for writing the JSON document."""
    
    def test_round_trip_is_byte_identical(self, repository, sample_file, sample_document):
        """Test save(load(x)) reproduces the stored document."""
        account = repository.load(sample_file).account
        result = repository.save(sample_file, account)
        
        assert result.success is True
        assert sample_file.read_text(encoding="utf-8") == sample_document
    
    def test_round_trip_of_own_output_is_stable(self, repository, tmp_path, account_factory):
        account = account_factory(balance="100")
        account.convert(Currency.EUR, Decimal("10"))
        account.deposit(Decimal("12.34"))
        path = tmp_path / "doc.json"
        
        repository.save(path, account)
        first = path.read_text(encoding="utf-8")
        repository.save(path, repository.load(path).account)
        assert path.read_text(encoding="utf-8") == first
    
    def test_field_names_and_order(self, repository, tmp_path, account):
        account.deposit(Decimal("5"))
        path = tmp_path / "doc.json"
        repository.save(path, account)
        
        document = json.loads(path.read_text(encoding="utf-8"))
        assert list(document) == [
            "FirstName", "LastName", "CardDetails", "PinCode",
            "Balance", "BalanceUSD", "BalanceEUR", "TransactionHistory",
        ]
        assert list(document["CardDetails"]) == ["CardNumber", "ExpirationDate", "CVC", "Balance"]
        entry = document["TransactionHistory"][0]
        assert entry["TransactionType"] == "Deposit"
        assert entry["Amount"] == 5
        assert entry["AmountUSD"] == 0
    
    def test_decimals_written_as_numbers(self, account_factory):
        account = account_factory(balance="74")
        account.balance_usd = Decimal("10.5")
        document = json.loads(encode_document(account))
        assert document["Balance"] == 74
        assert isinstance(document["Balance"], int)
        assert document["BalanceUSD"] == 10.5
    
    def test_money_survives_round_trip_exactly(self, repository, tmp_path, account_factory):
        """Test large balances and repeating conversion results keep every digit."""
        account = account_factory(balance="1234567890123456.78")
        account.deposit(Decimal("0.01"))
        account.convert(Currency.EUR, Decimal("10"))
        path = tmp_path / "doc.json"
    
        repository.save(path, account)
        loaded = repository.load(path).account
    
        assert loaded.balance == Decimal("1234567890123446.79")
        assert loaded.balance_eur == Decimal("10") / Decimal("2.9")
        assert loaded.transaction_history[-1].amount == account.transaction_history[-1].amount
        assert loaded == account
        assert "3.448275862068965517241379310" in path.read_text(encoding="utf-8")
    
    def test_save_rewrites_whole_document(self, repository, tmp_path, account):
        """Test every save carries the full ledger from its first entry."""
        path = tmp_path / "doc.json"
        account.deposit(Decimal("1"))
        repository.save(path, account)
        account.withdraw(Decimal("1"))
        repository.save(path, account)
        
        document = json.loads(path.read_text(encoding="utf-8"))
        assert [t["TransactionType"] for t in document["TransactionHistory"]] == [
            "Deposit", "Withdrawal",
        ]
    
    def test_creates_missing_file(self, repository, tmp_path, account):
        path = tmp_path / "new.json"
        assert repository.save(path, account).success is True
        assert repository.load(path).account == account
    
    def test_missing_directory_is_io_fault(self, repository, tmp_path, account):
        result = repository.save(tmp_path / "no" / "such" / "dir.json", account)
        assert result.success is False
        assert result.failure == SaveFailure.IO_FAULT
    
    def test_interrupted_save_keeps_previous_document(
        self, repository, sample_file, sample_document, monkeypatch
    ):
        """Test a crash before the final rename leaves the old document intact."""
        account = repository.load(sample_file).account
        account.deposit(Decimal("50"))
        
        def crash(src, dst):
            raise OSError("power cut")
        
        monkeypatch.setattr("teller.services.storage.json_file.os.replace", crash)
        result = repository.save(sample_file, account)
        
        assert result.failure == SaveFailure.IO_FAULT
        assert sample_file.read_text(encoding="utf-8") == sample_document
        assert os.listdir(sample_file.parent) == [sample_file.name]
    
    def test_repository_is_stateless(self, tmp_path, account_factory):
        """Test separate repository instances see each other's saves."""
        path = tmp_path / "doc.json"
        JsonFileAccountRepository().save(path, account_factory(balance="42"))
        assert JsonFileAccountRepository().load(path).account.balance == Decimal("42")
