"""SQLAlchemy models for lending.

Tables:
- loans: Scheduled or realized borrowing of an item by a member
- loan_renewals: Due date extensions of a loan, in order
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..clock import parse_timestamp
from ..db.models import Base, generate_uuid, utc_now_iso
from .schemas import LoanStatus


class Loan(Base):
    """Loan model - one item lent to one member over a date range."""

    __tablename__ = "loans"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)

    item_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("items.id"), nullable=False, index=True
    )
    member_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("members.id"), nullable=False, index=True
    )

    status: Mapped[str] = mapped_column(
        String(30), default=LoanStatus.SCHEDULED.value, index=True
    )

    # Dates (ISO timestamps)
    start_date: Mapped[str] = mapped_column(String(32), nullable=False)
    end_date: Mapped[Optional[str]] = mapped_column(String(32))  # due back
    loaned_date: Mapped[Optional[str]] = mapped_column(String(32))  # given to member
    returned_date: Mapped[Optional[str]] = mapped_column(String(32))

    # Set once a fine has been charged for this loan
    fine_id: Mapped[Optional[str]] = mapped_column(String(36))

    # Timestamps
    created_at: Mapped[str] = mapped_column(String(32), default=utc_now_iso)
    updated_at: Mapped[str] = mapped_column(
        String(32), default=utc_now_iso, onupdate=utc_now_iso
    )

    renewals: Mapped[list["LoanRenewal"]] = relationship(
        "LoanRenewal",
        back_populates="loan",
        cascade="all, delete-orphan",
        order_by="LoanRenewal.id",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Loan(id={self.id}, item_id={self.item_id}, status={self.status})>"

    @property
    def start(self) -> datetime:
        return parse_timestamp(self.start_date)

    @property
    def end(self) -> Optional[datetime]:
        return parse_timestamp(self.end_date)

    @property
    def loaned_at(self) -> Optional[datetime]:
        return parse_timestamp(self.loaned_date)

    @property
    def returned_at(self) -> Optional[datetime]:
        return parse_timestamp(self.returned_date)

    @property
    def effective_start(self) -> datetime:
        """When the item actually left, falling back to the scheduled start."""
        return self.loaned_at or self.start

    @property
    def effective_end(self) -> Optional[datetime]:
        """When the item actually came back, falling back to the due date."""
        return self.returned_at or self.end

    @property
    def renewal_count(self) -> int:
        return len(self.renewals)

    @property
    def is_open(self) -> bool:
        """Check if the item is currently out on this loan."""
        return self.status == LoanStatus.ON_LOAN.value


class LoanRenewal(Base):
    """One extension of a loan's due date."""

    __tablename__ = "loan_renewals"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    loan_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("loans.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    renewed_at: Mapped[str] = mapped_column(String(32), nullable=False)
    previous_end: Mapped[str] = mapped_column(String(32), nullable=False)

    loan: Mapped["Loan"] = relationship("Loan", back_populates="renewals")

    def __repr__(self) -> str:
        return f"<LoanRenewal(loan_id={self.loan_id}, previous_end={self.previous_end})>"
