"""SQLAlchemy models for fines.

Tables:
- fines: Charges for returning items late
"""

from decimal import Decimal

from sqlalchemy import ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from ..db.models import Base, generate_uuid, utc_now_iso
from .schemas import FineStatus


class Fine(Base):
    """Fine model - a charge against a member for a late loan."""

    __tablename__ = "fines"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)

    item_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("items.id"), nullable=False, index=True
    )
    loan_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("loans.id"), nullable=False, index=True
    )
    member_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("members.id"), nullable=False, index=True
    )

    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), default=FineStatus.ACTIVE.value, index=True
    )

    # Timestamps
    created_at: Mapped[str] = mapped_column(String(32), default=utc_now_iso)
    updated_at: Mapped[str] = mapped_column(
        String(32), default=utc_now_iso, onupdate=utc_now_iso
    )

    def __repr__(self) -> str:
        return f"<Fine(id={self.id}, amount={self.amount}, status={self.status})>"

    @property
    def is_active(self) -> bool:
        return self.status == FineStatus.ACTIVE.value
