"""
Expense Tracker - Source Package

A personal expense tracker: record expenses against categories, set
per-category budgets, review spending statistics and the history of
add/delete actions.

DESIGN PRINCIPLES:
1. Every request goes through the authorization layer
2. Expenses are never physically deleted
3. Every add/delete is written to the activity log
4. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Expense Tracker Team"
