"""Pydantic schemas for fines."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from pydantic import BaseModel


class FineStatus(str, Enum):
    """Status of a fine. Cancelled fines never become active again."""

    ACTIVE = "active"
    CANCELLED = "cancelled"

    @property
    def label(self) -> str:
        return self.value.title()


class FineResponse(BaseModel):
    """Schema for fine responses."""

    id: UUID
    item_id: UUID
    loan_id: UUID
    member_id: UUID
    amount: Decimal
    status: FineStatus
    created_at: datetime

    model_config = {"from_attributes": True}


class MemberBalance(BaseModel):
    """Fines position of a member."""

    member_id: UUID
    owed: Decimal
    active_fines: int
    cancelled_fines: int
