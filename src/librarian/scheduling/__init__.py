"""Loan scheduling module.

Provides functionality for:
- Deciding whether a date range fits an item's loan history
- Building an item's loan index
- Due date and lateness arithmetic
"""

from .due import days_until_due, describe_due, is_late
from .engine import LoanInterval, build_loan_index, can_schedule, find_interval_at

__all__ = [
    "LoanInterval",
    "build_loan_index",
    "can_schedule",
    "find_interval_at",
    "days_until_due",
    "describe_due",
    "is_late",
]
