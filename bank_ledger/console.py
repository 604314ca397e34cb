"""
Console Module

Text menu that drives a Ledger. Parses what the user types, calls the
ledger and prints the outcome; no ledger rules live here.
"""

from typing import Callable, Optional

from .accounts import Account, AccountCategory
from .config import LedgerConfig, get_config
from .errors import LedgerError
from .events import EventDispatcher
from .ledger import Ledger
from .logging_config import get_logger, setup_logging


MENU = """
********************
1 - Create account
2 - Show balance
3 - Withdraw
4 - Deposit
5 - List accounts
6 - Transfer between accounts
7 - Show transaction history
8 - Apply interest and charges
9 - Exit"""


class BankConsole:
    """
    Interactive menu over a Ledger

    ``input_func`` and ``output_func`` default to the builtins and are
    swapped out in tests.
    """

    def __init__(
        self,
        ledger: Ledger,
        input_func: Callable[[str], str] = input,
        output_func: Callable[[str], None] = print,
        config: Optional[LedgerConfig] = None
    ):
        self.ledger = ledger
        self._input = input_func
        self._output = output_func
        self.config = config or get_config()
        self._actions = {
            1: self.create_account_flow,
            2: self.show_balance_flow,
            3: self.withdraw_flow,
            4: self.deposit_flow,
            5: self.list_flow,
            6: self.transfer_flow,
            7: self.history_flow,
            8: self.apply_interest_and_charges_flow,
        }

    def _ask(self, prompt: str) -> str:
        return self._input(prompt).strip()

    def _ask_float(self, prompt: str) -> float:
        return float(self._ask(prompt))

    def run(self) -> None:
        """Show the menu until the user exits or input runs out"""
        while True:
            self._output(MENU)
            try:
                line = self._ask("Select option: ")
            except EOFError:
                self._output("Exiting...")
                return

            if not line:
                continue
            try:
                option = int(line)
            except ValueError:
                self._output("Invalid option.")
                continue

            if option == 9:
                self._output("Exiting...")
                return

            action = self._actions.get(option)
            if action is None:
                self._output("Invalid option.")
                continue

            try:
                action()
            except EOFError:
                self._output("Exiting...")
                return
            except ValueError:
                self._output("Error: invalid input, a number was expected")
            except LedgerError as e:
                self._output(f"Error: {e}")

    def _select_account(self) -> Optional[Account]:
        account_id = int(self._ask("Account ID: "))
        account = self.ledger.get_account(account_id)
        if account is None:
            self._output("Account not found.")
        return account

    def create_account_flow(self) -> None:
        owner = self._ask("Owner name: ")
        if not owner:
            self._output("Owner name cannot be empty.")
            return

        choice = self._ask("Type (1=Current, 2=Savings): ")
        category = AccountCategory.SAVINGS if choice == "2" else AccountCategory.CURRENT
        initial_balance = self._ask_float("Initial balance: ")

        account = self.ledger.create_account(owner, category, initial_balance)
        self._output(f"Account created: {account}")

    def show_balance_flow(self) -> None:
        account = self._select_account()
        if account is not None:
            self._output(f"Balance: {account.get_balance():.2f}")

    def withdraw_flow(self) -> None:
        account = self._select_account()
        if account is None:
            return
        balance = account.withdraw(self._ask_float("Amount to withdraw: "))
        self._output(f"Withdrawal successful. New balance: {balance:.2f}")

    def deposit_flow(self) -> None:
        account = self._select_account()
        if account is None:
            return
        balance = account.deposit(self._ask_float("Amount to deposit: "))
        self._output(f"Deposit successful. New balance: {balance:.2f}")

    def list_flow(self) -> None:
        accounts = self.ledger.list_accounts()
        if not accounts:
            self._output("No accounts.")
            return
        for account in accounts:
            self._output(str(account))
        self._output(f"Total: {self.ledger.total_balance():.2f}")

    def transfer_flow(self) -> None:
        from_id = int(self._ask("Source account ID: "))
        to_id = int(self._ask("Destination account ID: "))
        amount = self._ask_float("Amount to transfer: ")
        self.ledger.transfer(from_id, to_id, amount)
        self._output("Transfer successful.")

    def history_flow(self) -> None:
        account_id = int(self._ask("Account ID: "))
        history = self.ledger.get_history(account_id)
        if not history:
            self._output("Account not found or no transactions.")
            return
        self._output("Transaction history:")
        for entry in history:
            self._output(str(entry))

    def apply_interest_and_charges_flow(self) -> None:
        rate = self._ask(f"Savings interest rate % [{self.config.default_savings_rate}]: ")
        charge = self._ask(f"Current account charge [{self.config.default_current_charge}]: ")
        savings_rate = float(rate) if rate else self.config.default_savings_rate
        current_charge = float(charge) if charge else self.config.default_current_charge

        result = self.ledger.apply_interest_and_charges(savings_rate, current_charge)
        for failure in result.failures:
            self._output(f"Error in account {failure.account_id}: {failure.message}")
        self._output(
            f"Interest and charges applied to {len(result.applied)} account(s), "
            f"{len(result.failures)} failed."
        )


def main() -> None:
    """Configure logging from the environment and run the console"""
    config = get_config()
    setup_logging(config.log_level, config.log_format, config.log_file)
    dispatcher = None
    if config.enable_events:
        dispatcher = EventDispatcher()
        event_logger = get_logger("bank_ledger.console")
        dispatcher.subscribe_all(
            lambda event: event_logger.debug(f"Event {event.event_type.value}: {event.data}")
        )
    BankConsole(Ledger(event_dispatcher=dispatcher), config=config).run()
