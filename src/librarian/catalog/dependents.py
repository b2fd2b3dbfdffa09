"""Discovery of library objects that depend on another object.

References only point one way (items and members <- loans <- fines), so a
depth first walk cannot cycle:
- item or member: every loan of it, then each loan's dependents
- loan: its fine, if any
- fine: its loan, unless already found
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..errors import ObjectNotFound
from ..fines.models import Fine
from ..lending.models import Loan
from .models import Item, Member
from .schemas import DependentObject, ObjectType

MODELS = {
    ObjectType.ITEM: Item,
    ObjectType.MEMBER: Member,
    ObjectType.LOAN: Loan,
    ObjectType.FINE: Fine,
}


def get_object_type(session: Session, obj_id: str) -> ObjectType:
    """Work out which kind of library object an ID belongs to."""
    for obj_type, model in MODELS.items():
        if session.get(model, str(obj_id)) is not None:
            return obj_type
    raise ObjectNotFound()


def fetch_dependent_objects(
    session: Session,
    obj_id: str,
    obj_type: Optional[ObjectType] = None,
    found: Optional[list[DependentObject]] = None,
) -> list[DependentObject]:
    """Find every object depending, directly or not, on the given object.

    Args:
        session: Open session
        obj_id: ID of the object being inspected
        obj_type: Its type, looked up if not given
        found: Objects already discovered, extended in place

    Returns:
        Discovered objects in discovery order, without the object itself
    """
    if found is None:
        found = []
    if obj_type is None:
        obj_type = get_object_type(session, obj_id)

    if obj_type in (ObjectType.ITEM, ObjectType.MEMBER):
        column = Loan.item_id if obj_type == ObjectType.ITEM else Loan.member_id
        loans = session.execute(
            select(Loan).where(column == str(obj_id)).order_by(Loan.created_at, Loan.id)
        ).scalars().all()

        for loan in loans:
            _add(found, loan.id, ObjectType.LOAN)
            fetch_dependent_objects(session, loan.id, ObjectType.LOAN, found)

    elif obj_type == ObjectType.LOAN:
        fines = session.execute(
            select(Fine.id).where(Fine.loan_id == str(obj_id)).order_by(Fine.created_at)
        ).scalars().all()
        for fine_id in fines:
            _add(found, fine_id, ObjectType.FINE)

    elif obj_type == ObjectType.FINE:
        fine = session.get(Fine, str(obj_id))
        if fine is not None:
            _add(found, fine.loan_id, ObjectType.LOAN)

    return found


def _add(found: list[DependentObject], obj_id: str, obj_type: ObjectType) -> None:
    entry = DependentObject(id=obj_id, type=obj_type)
    if entry not in found:
        found.append(entry)
