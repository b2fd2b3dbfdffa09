"""SQLAlchemy models for the catalog.

Tables:
- items: Lendable media
- members: Borrowers
"""

from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ..db.models import Base, generate_uuid, utc_now_iso


class Member(Base):
    """Member model - people who borrow items."""

    __tablename__ = "members"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    email: Mapped[Optional[str]] = mapped_column(String(200))
    phone: Mapped[Optional[str]] = mapped_column(String(50))

    # Archived members keep their history but cannot borrow
    archived: Mapped[bool] = mapped_column(Boolean, default=False, index=True)

    # Running total of active fines, never negative
    owed: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))

    # Timestamps
    created_at: Mapped[str] = mapped_column(String(32), default=utc_now_iso)
    updated_at: Mapped[str] = mapped_column(
        String(32), default=utc_now_iso, onupdate=utc_now_iso
    )

    def __repr__(self) -> str:
        return f"<Member(id={self.id}, name='{self.name}')>"


class Item(Base):
    """Item model - a lendable catalog entry."""

    __tablename__ = "items"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    title: Mapped[str] = mapped_column(String(500), nullable=False, index=True)
    author: Mapped[Optional[str]] = mapped_column(String(500))
    isbn: Mapped[Optional[str]] = mapped_column(String(13), index=True)
    notes: Mapped[Optional[str]] = mapped_column(Text)

    loanable: Mapped[bool] = mapped_column(Boolean, default=True)
    condition: Mapped[Optional[int]] = mapped_column(Integer)  # ItemCondition

    # Cached pointers, set while the item is physically with a member.
    # Only the lending manager writes these.
    current_member_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("members.id"), index=True
    )
    current_loan_id: Mapped[Optional[str]] = mapped_column(String(36))

    # Timestamps
    created_at: Mapped[str] = mapped_column(String(32), default=utc_now_iso)
    updated_at: Mapped[str] = mapped_column(
        String(32), default=utc_now_iso, onupdate=utc_now_iso
    )

    def __repr__(self) -> str:
        return f"<Item(id={self.id}, title='{self.title}')>"

    @property
    def on_loan(self) -> bool:
        """Whether the item is currently with a member."""
        return self.current_member_id is not None
