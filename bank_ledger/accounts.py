"""
Account Module

An account owns its balance and its append-only transaction history.
Every mutation updates the balance and appends the matching record under
the account's lock, so readers never see one without the other.
"""

import math
import threading
from enum import Enum
from typing import Any, Dict, List, Tuple

from .errors import InvalidAmountError, InsufficientFundsError, InvalidArgumentError
from .transactions import TransactionRecord, TransactionType
from .logging_config import get_logger, log_action


logger = get_logger("bank_ledger.accounts")


class AccountCategory(Enum):
    """Account categories"""
    CURRENT = "current"   # Pays a periodic charge
    SAVINGS = "savings"   # Earns periodic interest


def is_positive_amount(value: Any) -> bool:
    """Check for a finite, strictly positive number"""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and value > 0


def _require_positive(value: Any, message: str) -> float:
    if not is_positive_amount(value):
        raise InvalidAmountError(message)
    return float(value)


class Account:
    """
    Balance-holding account with its own transaction history
    """

    def __init__(
        self,
        account_id: int,
        owner: str,
        category: AccountCategory,
        initial_balance: float = 0.0
    ):
        self._account_id = account_id
        self._owner = owner
        self._category = category
        self._lock = threading.RLock()
        self._history: List[TransactionRecord] = []

        # Negative opening balances are clamped, never rejected
        self._balance = max(0.0, float(initial_balance))
        self._append(TransactionType.OPENING, self._balance, "Account opened")

    @property
    def account_id(self) -> int:
        return self._account_id

    @property
    def owner(self) -> str:
        return self._owner

    @property
    def category(self) -> AccountCategory:
        return self._category

    @property
    def lock(self) -> threading.RLock:
        """Per-account lock, also taken by the ledger during transfers"""
        return self._lock

    @property
    def is_savings(self) -> bool:
        return self._category == AccountCategory.SAVINGS

    def get_balance(self) -> float:
        """Get the current balance"""
        with self._lock:
            return self._balance

    def get_history(self) -> Tuple[TransactionRecord, ...]:
        """Get a snapshot of the transaction history, oldest first"""
        with self._lock:
            return tuple(self._history)

    def deposit(self, amount: float) -> float:
        """
        Deposit funds into the account

        Args:
            amount: Amount to add, must be positive

        Returns:
            New balance

        Raises:
            InvalidAmountError: If amount is not positive
        """
        with self._lock:
            balance = self._credit(amount)
            self._append(TransactionType.DEPOSIT, float(amount), "Deposit")
            return balance

    def withdraw(self, amount: float) -> float:
        """
        Withdraw funds from the account

        Raises:
            InvalidAmountError: If amount is not positive
            InsufficientFundsError: If amount exceeds the balance
        """
        with self._lock:
            balance = self._debit(amount)
            self._append(TransactionType.WITHDRAWAL, -float(amount), "Withdrawal")
            return balance

    def _credit(self, amount: float) -> float:
        """
        Add to the balance without recording

        Used directly only by the ledger's transfer protocol, which holds
        the lock and appends the transfer record itself.
        """
        amount = _require_positive(amount, "Deposit amount must be greater than 0")
        with self._lock:
            self._balance += amount
            return self._balance

    def _debit(self, amount: float) -> float:
        """Subtract from the balance without recording"""
        amount = _require_positive(amount, "Withdrawal amount must be greater than 0")
        with self._lock:
            if amount > self._balance:
                raise InsufficientFundsError(
                    f"Insufficient funds in account {self._account_id}: "
                    f"balance {self._balance:.2f}, requested {amount:.2f}"
                )
            self._balance -= amount
            return self._balance

    def apply_interest(self, rate: float) -> float:
        """
        Credit interest of ``balance * rate / 100``

        Category eligibility is the caller's concern.

        Returns:
            Interest credited
        """
        rate = _require_positive(rate, "Interest rate must be greater than 0")
        with self._lock:
            interest = self._balance * rate / 100
            self._balance += interest
            self._append(TransactionType.INTEREST, interest, f"Interest applied {rate:.2f}%")
            return interest

    def apply_charge(self, charge: float) -> float:
        """
        Debit a fixed charge

        Raises:
            InvalidAmountError: If charge is not positive
            InsufficientFundsError: If charge exceeds the balance
        """
        charge = _require_positive(charge, "Charge must be greater than 0")
        with self._lock:
            if charge > self._balance:
                raise InsufficientFundsError(
                    f"Insufficient funds in account {self._account_id} to apply charge "
                    f"of {charge:.2f}"
                )
            self._balance -= charge
            self._append(TransactionType.CHARGE, -charge, "Monthly charge applied")
            return self._balance

    def record_transfer(
        self,
        direction: TransactionType,
        amount: float,
        counterparty_id: int
    ) -> TransactionRecord:
        """
        Append the audit record of a transfer leg

        The balance has already been moved by the ledger; this only records it.
        """
        amount = _require_positive(amount, "Transfer amount must be greater than 0")
        with self._lock:
            if direction == TransactionType.TRANSFER_SENT:
                return self._append(direction, -amount, f"Transfer to account {counterparty_id}")
            if direction == TransactionType.TRANSFER_RECEIVED:
                return self._append(direction, amount, f"Transfer from account {counterparty_id}")
        raise InvalidArgumentError(f"Not a transfer direction: {direction}")

    def _append(
        self,
        transaction_type: TransactionType,
        amount: float,
        description: str
    ) -> TransactionRecord:
        # Caller holds self._lock (or is the constructor)
        entry = TransactionRecord(
            transaction_type=transaction_type,
            amount=amount,
            resulting_balance=self._balance,
            description=description
        )
        self._history.append(entry)
        log_action(
            logger, "debug", f"{transaction_type.name} {amount:.2f}",
            account_id=self._account_id, action=transaction_type.value,
            extra={"resulting_balance": self._balance}
        )
        return entry

    def to_dict(self) -> Dict[str, Any]:
        """Summary for logging and events"""
        with self._lock:
            return {
                'account_id': self._account_id,
                'owner': self._owner,
                'category': self._category.value,
                'balance': self._balance,
                'transactions': len(self._history)
            }

    def __repr__(self) -> str:
        return f"Account(account_id={self._account_id!r}, owner={self._owner!r}, category={self._category.name})"

    def __str__(self) -> str:
        return (
            f"ID:{self._account_id} - {self._owner} ({self._category.name}) - "
            f"Balance: {self.get_balance():.2f}"
        )
