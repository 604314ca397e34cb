"""
Ledger Module

Registry of all accounts. Creates and looks up accounts, moves money
between two accounts with compensation on partial failure, and applies
the periodic interest/charge batch.

Transfers lock only the two participating accounts, always in ascending
id order, so unrelated transfers run concurrently and opposite-direction
transfers cannot deadlock.
"""

import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from .accounts import Account, AccountCategory, is_positive_amount
from .errors import ErrorKind, InvalidArgumentError, LedgerError, TransferRollbackError
from .events import DomainEvent, EventDispatcher, EventPayload
from .logging_config import get_logger, log_action
from .transactions import TransactionRecord, TransactionType


AccountFactory = Callable[[int, str, AccountCategory, float], Account]


@dataclass(frozen=True)
class BatchFailure:
    """One account the batch could not process"""
    account_id: int
    kind: Optional[ErrorKind]  # None for errors outside the ledger taxonomy
    message: str


@dataclass
class BatchResult:
    """Outcome of an interest/charge batch"""
    applied: List[int] = field(default_factory=list)
    failures: List[BatchFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        """Check if every account was processed"""
        return not self.failures

    @property
    def failed_ids(self) -> List[int]:
        return [failure.account_id for failure in self.failures]


class Ledger:
    """
    In-memory registry that owns every account
    """

    def __init__(
        self,
        event_dispatcher: Optional[EventDispatcher] = None,
        account_factory: AccountFactory = Account
    ):
        self._accounts: Dict[int, Account] = {}
        self._next_id = 1
        self._lock = threading.Lock()  # Guards the registry and the id counter
        self._account_factory = account_factory
        self._event_dispatcher = event_dispatcher
        self.logger = get_logger("bank_ledger.ledger")

    def _publish_event(self, event_type: DomainEvent, entity_type: str, entity_id, data: Dict) -> None:
        """Publish a domain event if event dispatcher is available"""
        if self._event_dispatcher:
            self._event_dispatcher.publish(EventPayload(
                event_type=event_type,
                entity_type=entity_type,
                entity_id=str(entity_id),
                data=data
            ))

    def create_account(
        self,
        owner: str,
        category: AccountCategory,
        initial_balance: float = 0.0
    ) -> Account:
        """
        Create and register a new account

        A negative initial balance is clamped to zero.

        Returns:
            Created Account with a fresh, never reused id
        """
        with self._lock:
            account_id = self._next_id
            self._next_id += 1
            account = self._account_factory(account_id, owner, category, initial_balance)
            self._accounts[account_id] = account

        log_action(
            self.logger, "info", f"Account {account_id} created",
            account_id=account_id, action="create_account",
            extra={"owner": owner, "category": category.value, "balance": account.get_balance()}
        )
        self._publish_event(DomainEvent.ACCOUNT_CREATED, "account", account_id, account.to_dict())
        return account

    def get_account(self, account_id: int) -> Optional[Account]:
        """Get account by id, None if unknown"""
        with self._lock:
            return self._accounts.get(account_id)

    def list_accounts(self) -> Tuple[Account, ...]:
        """Get all accounts in creation order"""
        with self._lock:
            return tuple(self._accounts.values())

    def get_history(self, account_id: int) -> Tuple[TransactionRecord, ...]:
        """Get an account's history, empty if the id is unknown"""
        account = self.get_account(account_id)
        if account is None:
            return ()
        return account.get_history()

    def total_balance(self) -> float:
        """Sum of all account balances"""
        return sum(account.get_balance() for account in self.list_accounts())

    def transfer(self, from_id: int, to_id: int, amount: float) -> None:
        """
        Move funds from one account to another

        Withdraws from the source, deposits into the destination and, if the
        deposit fails, re-credits the source before re-raising the
        destination's error. Each account gains exactly one record
        (TRANSFER_SENT / TRANSFER_RECEIVED) on success and none on failure.
        Every failure, validation included, is logged and published as
        TRANSFER_FAILED before it propagates.

        Raises:
            InvalidArgumentError: Non-positive amount, unknown account or self-transfer
            InsufficientFundsError: Source balance is below amount
            TransferRollbackError: The compensating re-credit itself failed
        """
        transfer_data = {"from_id": from_id, "to_id": to_id, "amount": amount}

        try:
            source, destination = self._validate_transfer(from_id, to_id, amount)
            first, second = sorted((source, destination), key=lambda account: account.account_id)
            with first.lock, second.lock:
                self._move_funds(source, destination, amount)
                source.record_transfer(TransactionType.TRANSFER_SENT, amount, to_id)
                destination.record_transfer(TransactionType.TRANSFER_RECEIVED, amount, from_id)
        except Exception as e:
            log_action(
                self.logger, "warning", f"Transfer {from_id} -> {to_id} failed: {e}",
                account_id=from_id, action="transfer", extra=transfer_data
            )
            self._publish_event(
                DomainEvent.TRANSFER_FAILED, "transfer", f"{from_id}->{to_id}",
                {**transfer_data, "error": str(e), "kind": getattr(getattr(e, "kind", None), "value", None)}
            )
            raise

        log_action(
            self.logger, "info", f"Transferred {amount:.2f} from {from_id} to {to_id}",
            account_id=from_id, action="transfer", extra=transfer_data
        )
        self._publish_event(DomainEvent.TRANSFER_COMPLETED, "transfer", f"{from_id}->{to_id}", transfer_data)

    def _validate_transfer(self, from_id: int, to_id: int, amount: float) -> Tuple[Account, Account]:
        if not is_positive_amount(amount):
            raise InvalidArgumentError("Transfer amount must be greater than 0")

        source = self.get_account(from_id)
        destination = self.get_account(to_id)

        if source is None:
            raise InvalidArgumentError(f"Source account {from_id} not found")
        if destination is None:
            raise InvalidArgumentError(f"Destination account {to_id} not found")
        if from_id == to_id:
            raise InvalidArgumentError("Cannot transfer to the same account")
        return source, destination

    def _move_funds(self, source: Account, destination: Account, amount: float) -> None:
        # Caller holds both account locks
        source._debit(amount)
        try:
            destination._credit(amount)
        except Exception as deposit_error:
            try:
                source._credit(amount)
            except Exception as rollback_error:
                self.logger.critical(
                    f"Rollback failed: account {source.account_id} debited {amount:.2f} "
                    f"with no matching credit (deposit error: {deposit_error}, "
                    f"rollback error: {rollback_error})"
                )
                raise TransferRollbackError(
                    source.account_id, destination.account_id, amount,
                    original_error=deposit_error
                ) from rollback_error
            raise

    def apply_interest_and_charges(self, savings_rate: float, current_charge: float) -> BatchResult:
        """
        Apply interest to SAVINGS accounts and a charge to CURRENT accounts

        Best effort: a failing account is reported in the result and the
        batch carries on with the others.

        Raises:
            InvalidArgumentError: If either parameter is not a positive number.
                Raised before any account is touched.
        """
        if not is_positive_amount(savings_rate):
            raise InvalidArgumentError(f"Savings rate must be a positive number, got {savings_rate!r}")
        if not is_positive_amount(current_charge):
            raise InvalidArgumentError(f"Current account charge must be a positive number, got {current_charge!r}")

        result = BatchResult()
        for account in self.list_accounts():
            try:
                if account.category == AccountCategory.SAVINGS:
                    account.apply_interest(savings_rate)
                else:
                    account.apply_charge(current_charge)
                result.applied.append(account.account_id)
            except Exception as e:
                kind = e.kind if isinstance(e, LedgerError) else None
                result.failures.append(BatchFailure(account.account_id, kind, str(e)))
                log_action(
                    self.logger, "warning", f"Batch failed for account {account.account_id}: {e}",
                    account_id=account.account_id, action="apply_interest_and_charges",
                    extra={"kind": kind.value if kind else type(e).__name__}
                )
                self._publish_event(
                    DomainEvent.BATCH_ACCOUNT_FAILED, "account", account.account_id,
                    {"error": str(e), "kind": kind.value if kind else None}
                )

        self.logger.info(
            f"Interest and charges applied: {len(result.applied)} ok, {len(result.failures)} failed"
        )
        return result
