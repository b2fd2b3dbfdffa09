"""Fines ledger module.

Provides functionality for:
- Charging fines for late items
- Cancelling fines
- Recording payments against a member's balance

FineManager lives in fines.manager.
"""

from .models import Fine
from .schemas import FineResponse, FineStatus, MemberBalance

__all__ = [
    "Fine",
    "FineResponse",
    "FineStatus",
    "MemberBalance",
]
