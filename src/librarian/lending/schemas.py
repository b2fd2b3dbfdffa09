"""Pydantic schemas for lending."""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class LoanStatus(str, Enum):
    """Status of a loan.

    SCHEDULED -> ON_LOAN -> RETURNED | RETURNED_LATE | RETURNED_LATE_WITH_FINE
    """

    SCHEDULED = "scheduled"
    ON_LOAN = "on_loan"
    RETURNED = "returned"
    RETURNED_LATE = "returned_late"
    RETURNED_LATE_WITH_FINE = "returned_late_with_fine"

    @property
    def label(self) -> str:
        return _LOAN_STATUS_LABELS[self]

    @property
    def is_returned(self) -> bool:
        return self in (
            LoanStatus.RETURNED,
            LoanStatus.RETURNED_LATE,
            LoanStatus.RETURNED_LATE_WITH_FINE,
        )


_LOAN_STATUS_LABELS = {
    LoanStatus.SCHEDULED: "Scheduled",
    LoanStatus.ON_LOAN: "On Loan",
    LoanStatus.RETURNED: "Returned",
    LoanStatus.RETURNED_LATE: "Returned Late",
    LoanStatus.RETURNED_LATE_WITH_FINE: "Returned Late (with fine)",
}


class RenewalResponse(BaseModel):
    """One renewal of a loan."""

    renewed_at: datetime
    previous_end: datetime

    model_config = {"from_attributes": True}


class LoanResponse(BaseModel):
    """Schema for loan responses."""

    id: UUID
    item_id: UUID
    member_id: UUID
    status: LoanStatus
    start: datetime
    end: Optional[datetime]
    loaned_at: Optional[datetime]
    returned_at: Optional[datetime]
    fine_id: Optional[UUID]
    renewals: list[RenewalResponse] = Field(default_factory=list)

    model_config = {"from_attributes": True}


class LoanSummary(BaseModel):
    """Summary of a loan for listing."""

    id: UUID
    item_title: str
    member_name: str
    status: LoanStatus
    end: Optional[datetime]
    days_until_due: Optional[int]


class OverdueReport(BaseModel):
    """Report of overdue loans."""

    loans: list[LoanSummary]
    total_overdue: int
    oldest_overdue_days: int
