"""Session-level lookups shared by the managers.

Each loader raises the matching NotFoundError instead of returning None.
"""

from sqlalchemy import select
from sqlalchemy.orm import Session

from .catalog.models import Item, Member
from .errors import FineNotFound, ItemNotFound, LoanNotFound, MemberNotFound
from .fines.models import Fine
from .lending.models import Loan


def load_item(session: Session, item_id: str, for_update: bool = False) -> Item:
    """Load an item, optionally locking its row until the transaction ends."""
    stmt = select(Item).where(Item.id == str(item_id))
    if for_update:
        stmt = stmt.with_for_update()
    item = session.execute(stmt).scalar_one_or_none()
    if item is None:
        raise ItemNotFound(f"No item found with ID {item_id}")
    return item


def load_member(session: Session, member_id: str) -> Member:
    member = session.get(Member, str(member_id))
    if member is None:
        raise MemberNotFound(f"No member found with ID {member_id}")
    return member


def load_loan(session: Session, loan_id: str) -> Loan:
    loan = session.get(Loan, str(loan_id))
    if loan is None:
        raise LoanNotFound(f"No loan found with ID {loan_id}")
    return loan


def load_fine(session: Session, fine_id: str) -> Fine:
    fine = session.get(Fine, str(fine_id))
    if fine is None:
        raise FineNotFound(f"No fine found with ID {fine_id}")
    return fine


def loans_for_item(session: Session, item_id: str) -> list[Loan]:
    """All loans of an item, in no particular order."""
    stmt = select(Loan).where(Loan.item_id == str(item_id))
    return list(session.execute(stmt).scalars().all())


def detach(session: Session, *objects) -> None:
    """Flush pending changes and detach objects so they outlive the session."""
    session.flush()
    for obj in objects:
        if obj is not None:
            session.expunge(obj)
