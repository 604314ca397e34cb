"""
Transaction Record Module

Immutable entries of an account's append-only history. Each record describes
one balance change, its cause and the balance right after it was applied.
"""

from datetime import datetime, timezone
from dataclasses import dataclass, field
from typing import Dict, Any
from enum import Enum


class TransactionType(Enum):
    """Causes of a balance change"""
    OPENING = "opening"                      # Synthetic record at account creation
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    INTEREST = "interest"                    # Savings interest credit
    CHARGE = "charge"                        # Current account fee
    TRANSFER_SENT = "transfer_sent"
    TRANSFER_RECEIVED = "transfer_received"


@dataclass(frozen=True)
class TransactionRecord:
    """
    One entry in an account history

    Amounts are signed: positive for credits, negative for debits.
    OPENING carries the (clamped) initial balance.
    """
    transaction_type: TransactionType
    amount: float
    resulting_balance: float
    description: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_credit(self) -> bool:
        """Check if this record increased the balance"""
        return self.amount > 0

    @property
    def is_debit(self) -> bool:
        """Check if this record decreased the balance"""
        return self.amount < 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging and events"""
        return {
            'transaction_type': self.transaction_type.value,
            'amount': self.amount,
            'resulting_balance': self.resulting_balance,
            'description': self.description,
            'timestamp': self.timestamp.isoformat()
        }

    def __str__(self) -> str:
        sign = "+" if self.amount >= 0 else ""
        return (
            f"[{self.timestamp.strftime('%d/%m/%Y %H:%M:%S')}] "
            f"{self.transaction_type.name}: {sign}{self.amount:.2f} | "
            f"Balance: {self.resulting_balance:.2f}"
        )
