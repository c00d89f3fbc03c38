"""Tests for Account operations: balances, PIN and currency conversion."""

import pytest
from decimal import Decimal

from teller.models.account import (
    AccountFailure,
    Currency,
    ExchangeRates,
)
from teller.models.transaction import TransactionType


AMOUNTS = ["0.01", "1", "26", "49.99", "50"]
NOT_A_NUMBER = ["Infinity", "-Infinity", "NaN", "abc", "", None, Decimal("NaN")]


class TestCheckBalance:
    
    def test_returns_all_three_balances(self, account_factory):
        account = account_factory(balance="100", usd="10", eur="5")
        snapshot = account.check_balance()
        assert (snapshot.home, snapshot.usd, snapshot.eur) == (
            Decimal("100"), Decimal("10"), Decimal("5"),
        )
    
    def test_records_inquiry_with_zero_amount(self, account):
        account.check_balance()
        entry = account.transaction_history.last
        assert entry.transaction_type == TransactionType.BALANCE_INQUIRY
        assert entry.amount == 0
    
    def test_does_not_change_balances(self, account):
        before = account.snapshot()
        account.check_balance()
        assert account.snapshot() == before


class TestWithdraw:
    
    @pytest.mark.parametrize("amount", AMOUNTS)
    def test_debits_and_records(self, account_factory, amount):
        """Test post-balance = pre-balance - amount, one Withdrawal entry."""
        account = account_factory(balance="50")
        result = account.withdraw(Decimal(amount))
        
        assert result.success is True
        assert account.balance == Decimal("50") - Decimal(amount)
        assert len(account.transaction_history) == 1
        assert account.transaction_history.last.transaction_type == TransactionType.WITHDRAWAL
        assert account.transaction_history.last.amount == Decimal(amount)
        assert result.transaction == account.transaction_history.last
    
    @pytest.mark.parametrize("amount", ["50.01", "100", "1000000"])
    def test_insufficient_funds_is_a_no_op(self, account_factory, amount):
        """Test amounts over the balance change nothing."""
        account = account_factory(balance="50")
        result = account.withdraw(Decimal(amount))
        
        assert result.success is False
        assert result.failure == AccountFailure.INSUFFICIENT_FUNDS
        assert result.transaction is None
        assert account.balance == Decimal("50")
        assert len(account.transaction_history) == 0
    
    def test_withdraw_entire_balance(self, account_factory):
        account = account_factory(balance="50")
        assert account.withdraw(Decimal("50")).success is True
        assert account.balance == 0
    
    @pytest.mark.parametrize("amount", ["0", "-5"])
    def test_non_positive_amount_rejected(self, account, amount):
        result = account.withdraw(Decimal(amount))
        assert result.failure == AccountFailure.INVALID_AMOUNT
        assert account.balance == Decimal("100")
        assert len(account.transaction_history) == 0
    
    @pytest.mark.parametrize("amount", NOT_A_NUMBER)
    def test_non_finite_amount_rejected(self, account, amount):
        result = account.withdraw(amount)
        assert result.failure == AccountFailure.INVALID_AMOUNT
        assert account.balance == Decimal("100")
        assert len(account.transaction_history) == 0
    
    def test_foreign_balances_untouched(self, account_factory):
        account = account_factory(balance="50", usd="3", eur="4")
        account.withdraw(Decimal("20"))
        assert account.balance_usd == Decimal("3")
        assert account.balance_eur == Decimal("4")
    
    def test_accepts_int_and_string_amounts(self, account):
        assert account.withdraw(10).success is True
        assert account.withdraw("5.5").success is True
        assert account.balance == Decimal("84.5")


class TestDeposit:
    
    @pytest.mark.parametrize("amount", AMOUNTS + ["1000000"])
    def test_credits_and_records(self, account_factory, amount):
        account = account_factory(balance="50")
        result = account.deposit(Decimal(amount))
        
        assert result.success is True
        assert account.balance == Decimal("50") + Decimal(amount)
        assert len(account.transaction_history) == 1
        assert account.transaction_history.last.transaction_type == TransactionType.DEPOSIT
        assert account.transaction_history.last.amount == Decimal(amount)
    
    def test_message_shows_new_balance(self, account_factory):
        account = account_factory(balance="50")
        result = account.deposit(Decimal("25"))
        assert result.message == "Deposit successful. New balance: 75"
    
    def test_non_positive_amount_rejected(self, account):
        result = account.deposit(Decimal("0"))
        assert result.failure == AccountFailure.INVALID_AMOUNT
        assert len(account.transaction_history) == 0
    
    @pytest.mark.parametrize("amount", NOT_A_NUMBER)
    def test_non_finite_amount_rejected(self, account, amount):
        """Test unparseable or infinite amounts are refused without raising."""
        result = account.deposit(amount)
        assert result.success is False
        assert result.failure == AccountFailure.INVALID_AMOUNT
        assert account.balance == Decimal("100")
        assert len(account.transaction_history) == 0


class TestChangePin:
    
    def test_overwrites_pin_and_records(self, account):
        result = account.change_pin("9876")
        assert result.success is True
        assert account.pin_code == "9876"
        entry = account.transaction_history.last
        assert entry.transaction_type == TransactionType.PIN_CHANGE
        assert entry.amount == 0
    
    def test_no_format_validation(self, account):
        """Test the core accepts any PIN; format policy is the caller's."""
        assert account.change_pin("").success is True
        assert account.change_pin("not-a-pin").success is True
        assert account.pin_code == "not-a-pin"
        assert len(account.transaction_history) == 2


class TestConvert:
    
    def test_usd_scenario(self, account_factory):
        """Test balance 100, rate 2.6: convert 26 -> home 74, USD 10.0."""
        account = account_factory(balance="100")
        result = account.convert(Currency.USD, Decimal("26"))
        
        assert result.success is True
        assert account.balance == Decimal("74")
        assert account.balance_usd == Decimal("10.0")
        assert account.balance_eur == 0
        entry = account.transaction_history.last
        assert len(account.transaction_history) == 1
        assert entry.transaction_type == TransactionType.CONVERTED_TO_USD
        assert entry.amount == Decimal("10.0")
    
    @pytest.mark.parametrize("amount", AMOUNTS)
    def test_usd_credit_is_amount_over_rate(self, account_factory, amount):
        account = account_factory(balance="50", usd="1")
        account.convert(Currency.USD, Decimal(amount))
        assert account.balance == Decimal("50") - Decimal(amount)
        assert account.balance_usd == Decimal("1") + Decimal(amount) / Decimal("2.6")
    
    def test_eur_uses_eur_rate(self, account_factory):
        account = account_factory(balance="100")
        account.convert(Currency.EUR, Decimal("29"))
        assert account.balance == Decimal("71")
        assert account.balance_eur == Decimal("10")
        assert account.balance_usd == 0
        assert account.transaction_history.last.transaction_type == TransactionType.CONVERTED_TO_EUR
    
    def test_injected_rates(self, account_factory):
        account = account_factory(balance="100")
        rates = ExchangeRates(usd=Decimal("2"), eur=Decimal("4"))
        account.convert(Currency.USD, Decimal("10"), rates)
        account.convert(Currency.EUR, Decimal("10"), rates)
        assert account.balance_usd == Decimal("5")
        assert account.balance_eur == Decimal("2.5")
        assert account.balance == Decimal("80")
    
    def test_accepts_currency_code_string(self, account):
        assert account.convert("EUR", Decimal("2.9")).success is True
        assert account.balance_eur == Decimal("1")
    
    def test_insufficient_funds_is_a_no_op(self, account_factory):
        account = account_factory(balance="20")
        result = account.convert(Currency.USD, Decimal("20.01"))
        assert result.failure == AccountFailure.INSUFFICIENT_FUNDS
        assert account.balance == Decimal("20")
        assert account.balance_usd == 0
        assert len(account.transaction_history) == 0
    
    @pytest.mark.parametrize("amount", NOT_A_NUMBER + ["0", "-1"])
    def test_invalid_amount_rejected(self, account, amount):
        result = account.convert(Currency.EUR, amount)
        assert result.failure == AccountFailure.INVALID_AMOUNT
        assert account.balance == Decimal("100")
        assert account.balance_eur == 0
        assert len(account.transaction_history) == 0
    
    def test_legacy_amount_fields_stay_zero(self, account):
        account.convert(Currency.USD, Decimal("26"))
        entry = account.transaction_history.last
        assert entry.amount_usd == 0
        assert entry.amount_eur == 0


class TestLedgerGrowth:
    
    def test_every_successful_operation_adds_exactly_one_entry(self, account):
        operations = [
            lambda: account.check_balance(),
            lambda: account.deposit(Decimal("10")),
            lambda: account.withdraw(Decimal("5")),
            lambda: account.change_pin("4321"),
            lambda: account.convert(Currency.USD, Decimal("2.6")),
            lambda: account.convert(Currency.EUR, Decimal("2.9")),
        ]
        for expected, operation in enumerate(operations, start=1):
            operation()
            assert len(account.transaction_history) == expected
    
    def test_failed_operations_never_shrink_or_grow_the_ledger(self, account_factory):
        account = account_factory(balance="10")
        account.deposit(Decimal("1"))
        account.withdraw(Decimal("500"))
        account.convert(Currency.EUR, Decimal("500"))
        assert len(account.transaction_history) == 1
    
    def test_entries_are_chronological(self, account):
        account.deposit(Decimal("1"))
        account.withdraw(Decimal("1"))
        account.check_balance()
        dates = [t.transaction_date for t in account.transaction_history]
        assert dates == sorted(dates)
        assert [t.transaction_type for t in account.transaction_history] == [
            TransactionType.DEPOSIT,
            TransactionType.WITHDRAWAL,
            TransactionType.BALANCE_INQUIRY,
        ]
