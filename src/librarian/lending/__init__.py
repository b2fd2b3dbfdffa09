"""Item lending module.

Provides functionality for:
- Scheduling loans and handing items over
- Returning items, on time or late
- Renewing loans
- Overdue reports

LendingManager lives in lending.manager.
"""

from .models import Loan, LoanRenewal
from .schemas import (
    LoanResponse,
    LoanStatus,
    LoanSummary,
    OverdueReport,
    RenewalResponse,
)

__all__ = [
    "Loan",
    "LoanRenewal",
    "LoanResponse",
    "LoanStatus",
    "LoanSummary",
    "OverdueReport",
    "RenewalResponse",
]
