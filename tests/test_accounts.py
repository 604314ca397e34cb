"""
Test suite for accounts module

Tests balance mutation rules, the record-per-mutation contract, history
snapshots and per-account serialization under concurrent deposits.
"""

import math
import threading

import pytest

from bank_ledger.accounts import Account, AccountCategory, is_positive_amount
from bank_ledger.errors import (
    ErrorKind, InvalidAmountError, InsufficientFundsError, InvalidArgumentError
)
from bank_ledger.transactions import TransactionType


def assert_last_record_matches(account: Account):
    history = account.get_history()
    assert history[-1].resulting_balance == account.get_balance()


class TestAccountCreation:
    """Test account construction and the OPENING record"""

    def test_opening_record(self):
        """Test a new account records its initial balance"""
        account = Account(1, "Alice", AccountCategory.SAVINGS, 250.0)

        assert account.account_id == 1
        assert account.owner == "Alice"
        assert account.category == AccountCategory.SAVINGS
        assert account.is_savings
        assert account.get_balance() == 250.0

        history = account.get_history()
        assert len(history) == 1
        assert history[0].transaction_type == TransactionType.OPENING
        assert history[0].amount == 250.0
        assert history[0].resulting_balance == 250.0

    def test_negative_initial_balance_clamped(self):
        """Test a negative initial balance becomes zero"""
        account = Account(2, "Bob", AccountCategory.CURRENT, -50.0)

        assert account.get_balance() == 0.0
        history = account.get_history()
        assert len(history) == 1
        assert history[0].transaction_type == TransactionType.OPENING
        assert history[0].amount == 0.0
        assert history[0].resulting_balance == 0.0

    def test_default_initial_balance(self):
        account = Account(3, "Carol", AccountCategory.CURRENT)
        assert account.get_balance() == 0.0
        assert not account.is_savings

    def test_string_representation(self):
        account = Account(7, "Dana", AccountCategory.CURRENT, 12.5)
        assert str(account) == "ID:7 - Dana (CURRENT) - Balance: 12.50"
        assert account.to_dict() == {
            'account_id': 7,
            'owner': "Dana",
            'category': "current",
            'balance': 12.5,
            'transactions': 1
        }


class TestDeposit:
    """Test deposits"""

    def test_deposit_updates_balance_and_history(self):
        account = Account(1, "Alice", AccountCategory.CURRENT, 100.0)

        new_balance = account.deposit(50.0)

        assert new_balance == 150.0
        assert account.get_balance() == 150.0
        last = account.get_history()[-1]
        assert last.transaction_type == TransactionType.DEPOSIT
        assert last.amount == 50.0
        assert last.resulting_balance == 150.0

    @pytest.mark.parametrize("amount", [0, -10.0, math.nan, math.inf, "10", None, True])
    def test_deposit_rejects_invalid_amount(self, amount):
        """Test non-positive and non-numeric amounts are rejected"""
        account = Account(1, "Alice", AccountCategory.CURRENT, 100.0)

        with pytest.raises(InvalidAmountError) as exc_info:
            account.deposit(amount)

        assert exc_info.value.kind == ErrorKind.INVALID_AMOUNT
        assert account.get_balance() == 100.0
        assert len(account.get_history()) == 1

    def test_public_mutations_always_record(self):
        """Test every public balance change leaves a record matching the balance"""
        account = Account(1, "Alice", AccountCategory.CURRENT, 100.0)

        account.deposit(50.0)
        account.withdraw(20.0)

        history = account.get_history()
        assert account.get_balance() == 130.0
        assert len(history) == 3
        assert history[-1].resulting_balance == 130.0
        assert [entry.transaction_type for entry in history] == [
            TransactionType.OPENING, TransactionType.DEPOSIT, TransactionType.WITHDRAWAL
        ]

    @pytest.mark.parametrize("operation", ["deposit", "withdraw"])
    def test_record_flag_not_accepted(self, operation):
        account = Account(1, "Alice", AccountCategory.CURRENT, 100.0)

        with pytest.raises(TypeError):
            getattr(account, operation)(10.0, record=False)

        assert account.get_balance() == 100.0
        assert len(account.get_history()) == 1


class TestWithdraw:
    """Test withdrawals"""

    def test_withdraw_updates_balance_and_history(self):
        account = Account(1, "Alice", AccountCategory.CURRENT, 100.0)

        assert account.withdraw(40.0) == 60.0

        last = account.get_history()[-1]
        assert last.transaction_type == TransactionType.WITHDRAWAL
        assert last.amount == -40.0
        assert last.resulting_balance == 60.0

    def test_withdraw_entire_balance(self):
        account = Account(1, "Alice", AccountCategory.CURRENT, 100.0)
        assert account.withdraw(100.0) == 0.0

    def test_insufficient_funds_leaves_state_unchanged(self):
        """Test overdrawing fails without touching balance or history"""
        account = Account(1, "Alice", AccountCategory.CURRENT, 100.0)
        history_before = account.get_history()

        with pytest.raises(InsufficientFundsError) as exc_info:
            account.withdraw(100.01)

        assert exc_info.value.kind == ErrorKind.INSUFFICIENT_FUNDS
        assert account.get_balance() == 100.0
        assert account.get_history() == history_before

    def test_withdraw_rejects_non_positive(self):
        account = Account(1, "Alice", AccountCategory.CURRENT, 100.0)

        with pytest.raises(InvalidAmountError):
            account.withdraw(0)
        with pytest.raises(InvalidAmountError):
            account.withdraw(-5)

    def test_deposit_then_withdraw_restores_balance(self):
        account = Account(1, "Alice", AccountCategory.CURRENT, 80.0)

        account.deposit(35.5)
        account.withdraw(35.5)

        assert account.get_balance() == 80.0
        assert len(account.get_history()) == 3
        assert_last_record_matches(account)


class TestInterestAndCharges:
    """Test interest and charge application"""

    def test_apply_interest(self):
        account = Account(1, "Saver", AccountCategory.SAVINGS, 1000.0)

        interest = account.apply_interest(5)

        assert interest == 50.0
        assert account.get_balance() == 1050.0
        last = account.get_history()[-1]
        assert last.transaction_type == TransactionType.INTEREST
        assert last.amount == 50.0
        assert last.resulting_balance == 1050.0
        assert "5.00%" in last.description

    def test_interest_allowed_on_current_account(self):
        """Test category eligibility is not the account's concern"""
        account = Account(1, "Alice", AccountCategory.CURRENT, 200.0)
        account.apply_interest(10)
        assert account.get_balance() == 220.0

    def test_interest_rejects_non_positive_rate(self):
        account = Account(1, "Saver", AccountCategory.SAVINGS, 1000.0)

        with pytest.raises(InvalidAmountError):
            account.apply_interest(0)

        assert account.get_balance() == 1000.0

    def test_apply_charge(self):
        account = Account(1, "Alice", AccountCategory.CURRENT, 30.0)

        assert account.apply_charge(10) == 20.0

        last = account.get_history()[-1]
        assert last.transaction_type == TransactionType.CHARGE
        assert last.amount == -10.0
        assert last.resulting_balance == 20.0

    def test_charge_exceeding_balance(self):
        account = Account(1, "Alice", AccountCategory.CURRENT, 5.0)

        with pytest.raises(InsufficientFundsError):
            account.apply_charge(10)

        assert account.get_balance() == 5.0
        assert len(account.get_history()) == 1

    def test_charge_rejects_non_positive(self):
        account = Account(1, "Alice", AccountCategory.CURRENT, 5.0)
        with pytest.raises(InvalidAmountError):
            account.apply_charge(-1)


class TestRecordTransfer:
    """Test transfer audit records"""

    def test_sent_and_received_records(self):
        account = Account(1, "Alice", AccountCategory.CURRENT, 100.0)

        sent = account.record_transfer(TransactionType.TRANSFER_SENT, 30.0, 2)
        received = account.record_transfer(TransactionType.TRANSFER_RECEIVED, 10.0, 3)

        assert sent.amount == -30.0
        assert sent.description == "Transfer to account 2"
        assert received.amount == 10.0
        assert received.description == "Transfer from account 3"
        # Records only; the balance is moved by the ledger
        assert account.get_balance() == 100.0
        assert len(account.get_history()) == 3

    def test_rejects_non_transfer_direction(self):
        account = Account(1, "Alice", AccountCategory.CURRENT, 100.0)

        with pytest.raises(InvalidArgumentError):
            account.record_transfer(TransactionType.DEPOSIT, 30.0, 2)

        assert len(account.get_history()) == 1


class TestHistorySnapshot:
    """Test the history cannot be mutated through the returned sequence"""

    def test_history_is_immutable_snapshot(self):
        account = Account(1, "Alice", AccountCategory.CURRENT, 100.0)
        snapshot = account.get_history()

        assert isinstance(snapshot, tuple)
        with pytest.raises(AttributeError):
            snapshot.append("bogus")

        account.deposit(1.0)
        assert len(snapshot) == 1
        assert len(account.get_history()) == 2

    def test_records_are_frozen(self):
        account = Account(1, "Alice", AccountCategory.CURRENT, 100.0)
        record = account.get_history()[0]

        with pytest.raises(AttributeError):
            record.amount = 1_000_000.0

    def test_last_record_matches_balance_after_mixed_operations(self):
        account = Account(1, "Alice", AccountCategory.SAVINGS, 500.0)

        account.deposit(100)
        account.withdraw(50)
        account.apply_interest(2)
        account.apply_charge(3)
        with pytest.raises(InsufficientFundsError):
            account.withdraw(10_000)

        assert len(account.get_history()) == 5
        assert_last_record_matches(account)


class TestConcurrency:
    """Test per-account serialization"""

    def test_concurrent_deposits_are_not_lost(self):
        """Test N concurrent unit deposits add exactly N and N records"""
        account = Account(1, "Alice", AccountCategory.CURRENT, 100.0)
        threads_count = 8
        deposits_per_thread = 250
        errors = []

        def deposit_many():
            try:
                for _ in range(deposits_per_thread):
                    account.deposit(1)
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=deposit_many) for _ in range(threads_count)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        total = threads_count * deposits_per_thread
        assert errors == []
        assert account.get_balance() == 100.0 + total

        history = account.get_history()
        assert len(history) == 1 + total
        assert all(entry.transaction_type == TransactionType.DEPOSIT for entry in history[1:])
        # Each record saw a distinct balance: nothing interleaved
        assert [entry.resulting_balance for entry in history[1:]] == [
            100.0 + i for i in range(1, total + 1)
        ]


class TestIsPositiveAmount:

    @pytest.mark.parametrize("value,expected", [
        (1, True),
        (0.01, True),
        (0, False),
        (-1, False),
        (math.nan, False),
        (math.inf, False),
        (False, False),
        ("5", False),
    ])
    def test_values(self, value, expected):
        assert is_positive_amount(value) is expected
