"""
Budgetframes - Budgeting and Expense Splitting Backend

Money is tracked per group in frames (budgeting periods). Shared expenses
are split between two friends as a pair of linked transactions, and a
running balance records who owes whom.

DESIGN PRINCIPLES:
1. Money is exact: decimal strings in storage, two places, half-up rounding
2. Requests are validated before anything is written
3. One database transaction per request
4. Every change is auditable
"""

__version__ = "1.0.0"
__author__ = "Budgetframes Team"
