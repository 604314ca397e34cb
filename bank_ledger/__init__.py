"""
Bank Ledger

An in-memory ledger of current and savings accounts with an append-only
transaction history, compensated transfers and batch interest/charges.
"""

__version__ = "1.0.0"
