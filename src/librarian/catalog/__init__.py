"""Library catalog module.

Provides functionality for:
- Items that can be lent
- Members who borrow them
- Finding objects that depend on another before deleting it

CatalogManager lives in catalog.manager.
"""

from .models import Item, Member
from .schemas import (
    DependentObject,
    ItemCondition,
    ItemCreate,
    ItemResponse,
    ItemUpdate,
    MemberCreate,
    MemberResponse,
    MemberUpdate,
    ObjectType,
)

__all__ = [
    "Item",
    "Member",
    "DependentObject",
    "ItemCondition",
    "ItemCreate",
    "ItemResponse",
    "ItemUpdate",
    "MemberCreate",
    "MemberResponse",
    "MemberUpdate",
    "ObjectType",
]
