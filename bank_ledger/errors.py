"""
Error Taxonomy Module

Every failure raised by the ledger carries an explicit ErrorKind so callers
(and batch results) can branch on the kind instead of the exception class.
"""

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """Kinds of ledger failures"""
    INVALID_AMOUNT = "invalid_amount"          # Non-positive amount, rate or charge
    INSUFFICIENT_FUNDS = "insufficient_funds"  # Amount exceeds available balance
    INVALID_ARGUMENT = "invalid_argument"      # Unknown id, self-transfer, bad batch params
    ROLLBACK_FAILED = "rollback_failed"        # Transfer compensation itself failed


class LedgerError(Exception):
    """Base exception for all ledger errors."""

    kind: ErrorKind = ErrorKind.INVALID_ARGUMENT

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidAmountError(LedgerError):
    """Raised when an amount, rate or charge is not a positive number."""

    kind = ErrorKind.INVALID_AMOUNT


class InsufficientFundsError(LedgerError):
    """Raised when an amount exceeds the account balance."""

    kind = ErrorKind.INSUFFICIENT_FUNDS


class InvalidArgumentError(LedgerError):
    """Raised for unknown accounts, self-transfers and malformed batch parameters."""

    kind = ErrorKind.INVALID_ARGUMENT


class TransferRollbackError(LedgerError):
    """
    Raised when a failed transfer could not be compensated.

    The source account has been debited with no matching credit anywhere,
    so this is never swallowed.
    """

    kind = ErrorKind.ROLLBACK_FAILED

    def __init__(
        self,
        from_id: int,
        to_id: int,
        amount: float,
        original_error: Optional[BaseException] = None
    ):
        super().__init__(
            f"Transfer of {amount:.2f} from account {from_id} to account {to_id} "
            f"failed and could not be rolled back"
        )
        self.from_id = from_id
        self.to_id = to_id
        self.amount = amount
        self.original_error = original_error
