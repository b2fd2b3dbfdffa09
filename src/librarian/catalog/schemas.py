"""Pydantic schemas for items and members."""

from datetime import datetime
from decimal import Decimal
from enum import Enum, IntEnum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class ItemCondition(IntEnum):
    """Physical condition of an item."""

    VERY_POOR = 0
    POOR = 1
    FAIR = 2
    GOOD = 3
    EXCELLENT = 4

    @property
    def label(self) -> str:
        """Formatted condition, e.g. '4 - Excellent'."""
        return f"{self.value} - {self.name.replace('_', ' ').title()}"


class ObjectType(str, Enum):
    """Kinds of library object."""

    ITEM = "item"
    MEMBER = "member"
    LOAN = "loan"
    FINE = "fine"


class ItemBase(BaseModel):
    """Base item fields."""

    title: str = Field(..., min_length=1, max_length=500)
    author: Optional[str] = Field(None, max_length=500)
    isbn: Optional[str] = None
    notes: Optional[str] = None
    loanable: bool = True
    condition: Optional[ItemCondition] = None

    @field_validator("isbn")
    @classmethod
    def clean_isbn(cls, v):
        """Strip separators and check length."""
        if v is None:
            return v
        cleaned = "".join(ch for ch in v if ch.isdigit() or ch in "Xx").upper()
        if len(cleaned) not in (10, 13):
            raise ValueError("isbn must have 10 or 13 digits")
        return cleaned


class ItemCreate(ItemBase):
    """Schema for creating an item."""

    pass


class ItemUpdate(BaseModel):
    """Schema for updating an item."""

    title: Optional[str] = Field(None, min_length=1, max_length=500)
    author: Optional[str] = Field(None, max_length=500)
    notes: Optional[str] = None
    loanable: Optional[bool] = None
    condition: Optional[ItemCondition] = None


class ItemResponse(BaseModel):
    """Schema for item responses."""

    id: UUID
    title: str
    author: Optional[str]
    isbn: Optional[str]
    notes: Optional[str]
    loanable: bool
    condition: Optional[ItemCondition]
    current_member_id: Optional[UUID]
    current_loan_id: Optional[UUID]
    on_loan: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class MemberBase(BaseModel):
    """Base member fields."""

    name: str = Field(..., min_length=1, max_length=200)
    email: Optional[str] = Field(None, max_length=200)
    phone: Optional[str] = Field(None, max_length=50)

    @field_validator("phone")
    @classmethod
    def clean_phone(cls, v):
        """Keep digits, spaces and a leading plus."""
        if v is None:
            return v
        return "".join(ch for ch in v if ch.isdigit() or ch in " +").strip()


class MemberCreate(MemberBase):
    """Schema for creating a member."""

    pass


class MemberUpdate(BaseModel):
    """Schema for updating a member."""

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    email: Optional[str] = Field(None, max_length=200)
    phone: Optional[str] = Field(None, max_length=50)


class MemberResponse(MemberBase):
    """Schema for member responses."""

    id: UUID
    archived: bool
    owed: Decimal
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class DependentObject(BaseModel):
    """A library object found while walking dependents."""

    id: str
    type: ObjectType

    model_config = {"frozen": True}
