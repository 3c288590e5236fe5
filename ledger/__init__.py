"""
Household Ledger - Source Package

A personal finance tracker for cash and credit-card spending with
statement reconciliation, monthly budgets and installment tracking.

DESIGN PRINCIPLES:
1. One cycle definition shared by every view
2. Derived numbers are pure functions of the current snapshot
3. Mutations go through named store operations
4. Every mutation is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Household Ledger Team"
