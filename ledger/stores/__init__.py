"""State stores: the only owners of mutable ledger data."""

from ledger.stores.budgets import BudgetStore
from ledger.stores.salaries import SalaryStore
from ledger.stores.statements import StatementStore
from ledger.stores.transactions import TransactionNotFoundError, TransactionStore

__all__ = [
    "BudgetStore",
    "SalaryStore",
    "StatementStore",
    "TransactionNotFoundError",
    "TransactionStore",
]
