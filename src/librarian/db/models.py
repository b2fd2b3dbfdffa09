"""SQLAlchemy declarative base shared by all library models.

Feature packages define their own tables against this base:
- catalog: items, members
- lending: loans, loan_renewals
- fines: fines
"""

from datetime import datetime, timezone
from uuid import uuid4

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


def generate_uuid() -> str:
    """Generate a UUID string for primary keys."""
    return str(uuid4())


def utc_now_iso() -> str:
    """Current UTC time as an ISO string, for created/updated columns."""
    return datetime.now(timezone.utc).isoformat()
