"""Catalog manager for items, members and deleting library objects.

Deleting anything that other objects depend on is guarded: the delete is
refused while an item is on loan or a fine is active, and otherwise needs
cascade=True to remove the dependents along with the object.
"""

import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ..db.sqlite import Database, get_db
from ..errors import ActiveFineExists, HasDependents, ItemOnLoan
from ..fines.models import Fine
from ..lending.models import Loan
from ..lookups import detach, load_member
from ..notify import NotificationSink, NullNotifier, Severity, report_errors
from ..permissions import ActorContext, require_librarian, require_library_admin
from .dependents import MODELS, fetch_dependent_objects, get_object_type
from .models import Item, Member
from .schemas import (
    DependentObject,
    ItemCreate,
    ItemUpdate,
    MemberCreate,
    MemberUpdate,
    ObjectType,
)

logger = logging.getLogger(__name__)


class CatalogManager:
    """Manages items, members and object deletion."""

    def __init__(
        self,
        db: Optional[Database] = None,
        notifier: Optional[NotificationSink] = None,
        actor: Optional[ActorContext] = None,
    ):
        """Initialize catalog manager.

        Args:
            db: Database instance
            notifier: Where user-visible outcomes are sent
            actor: User performing operations, None for system callers
        """
        self.db = db or get_db()
        self.notifier = notifier or NullNotifier()
        self.actor = actor

    # -------------------------------------------------------------------------
    # Items
    # -------------------------------------------------------------------------

    def create_item(self, data: ItemCreate) -> Item:
        """Add an item to the catalog.

        Args:
            data: Item creation data

        Returns:
            Created item
        """
        with report_errors(self.notifier):
            require_librarian(self.actor)
        with self.db.get_session() as session:
            item = Item(
                title=data.title,
                author=data.author,
                isbn=data.isbn,
                notes=data.notes,
                loanable=data.loanable,
                condition=data.condition.value if data.condition is not None else None,
            )
            session.add(item)
            session.commit()
            session.refresh(item)
            session.expunge(item)

        logger.info("Created item %s (%s)", item.id, item.title)
        return item

    def get_item(self, item_id: str) -> Optional[Item]:
        """Get an item by ID.

        Args:
            item_id: Item ID

        Returns:
            Item or None
        """
        with self.db.get_session() as session:
            item = session.get(Item, item_id)
            if item:
                session.expunge(item)
            return item

    def list_items(
        self,
        loanable_only: bool = False,
        on_loan: Optional[bool] = None,
    ) -> list[Item]:
        """List items ordered by title.

        Args:
            loanable_only: Only items that may be loaned
            on_loan: Only items with (True) or without (False) a holder

        Returns:
            List of items
        """
        with self.db.get_session() as session:
            stmt = select(Item)

            if loanable_only:
                stmt = stmt.where(Item.loanable == True)  # noqa: E712
            if on_loan is True:
                stmt = stmt.where(Item.current_member_id.isnot(None))
            elif on_loan is False:
                stmt = stmt.where(Item.current_member_id.is_(None))

            stmt = stmt.order_by(func.lower(Item.title).asc())

            items = session.execute(stmt).scalars().all()
            for item in items:
                session.expunge(item)
            return list(items)

    def update_item(self, item_id: str, data: ItemUpdate) -> Optional[Item]:
        """Update an item's details.

        The holder and loan pointers are not editable here.

        Args:
            item_id: Item ID
            data: Update data

        Returns:
            Updated item or None
        """
        with report_errors(self.notifier):
            require_librarian(self.actor)
        with self.db.get_session() as session:
            item = session.get(Item, item_id)
            if not item:
                return None

            update_data = data.model_dump(exclude_unset=True)
            for field, value in update_data.items():
                if field == "condition" and value is not None:
                    item.condition = int(value)
                elif hasattr(item, field):
                    setattr(item, field, value)

            session.commit()
            session.refresh(item)
            session.expunge(item)
            return item

    # -------------------------------------------------------------------------
    # Members
    # -------------------------------------------------------------------------

    def create_member(self, data: MemberCreate) -> Member:
        """Register a member.

        Args:
            data: Member creation data

        Returns:
            Created member
        """
        with report_errors(self.notifier):
            require_librarian(self.actor)
        with self.db.get_session() as session:
            member = Member(
                name=data.name,
                email=data.email,
                phone=data.phone,
                archived=False,
            )
            session.add(member)
            session.commit()
            session.refresh(member)
            session.expunge(member)

        logger.info("Created member %s (%s)", member.id, member.name)
        return member

    def get_member(self, member_id: str) -> Optional[Member]:
        """Get a member by ID.

        Args:
            member_id: Member ID

        Returns:
            Member or None
        """
        with self.db.get_session() as session:
            member = session.get(Member, member_id)
            if member:
                session.expunge(member)
            return member

    def list_members(self, include_archived: bool = False) -> list[Member]:
        """List members ordered by name."""
        with self.db.get_session() as session:
            stmt = select(Member)
            if not include_archived:
                stmt = stmt.where(Member.archived == False)  # noqa: E712
            stmt = stmt.order_by(func.lower(Member.name).asc())

            members = session.execute(stmt).scalars().all()
            for member in members:
                session.expunge(member)
            return list(members)

    def update_member(self, member_id: str, data: MemberUpdate) -> Optional[Member]:
        """Update a member's contact details.

        Args:
            member_id: Member ID
            data: Update data

        Returns:
            Updated member or None
        """
        with report_errors(self.notifier):
            require_librarian(self.actor)
        with self.db.get_session() as session:
            member = session.get(Member, member_id)
            if not member:
                return None

            for field, value in data.model_dump(exclude_unset=True).items():
                if hasattr(member, field):
                    setattr(member, field, value)

            session.commit()
            session.refresh(member)
            session.expunge(member)
            return member

    def archive_member(self, member_id: str, archived: bool = True) -> Member:
        """Archive a member, or restore one with archived=False.

        Archived members keep their loans and fines but cannot borrow.
        """
        with report_errors(self.notifier):
            require_librarian(self.actor)
            with self.db.get_session() as session:
                member = load_member(session, member_id)
                member.archived = archived
                detach(session, member)

        logger.info("Member %s archived=%s", member_id, archived)
        self.notifier.notify(
            "Member archived" if archived else "Member restored", Severity.SUCCESS
        )
        return member

    # -------------------------------------------------------------------------
    # Dependents and deletion
    # -------------------------------------------------------------------------

    def get_object_type(self, obj_id: str) -> ObjectType:
        """Work out which kind of library object an ID belongs to."""
        with report_errors(self.notifier):
            with self.db.get_session() as session:
                return get_object_type(session, obj_id)

    def get_dependents(
        self, obj_id: str, obj_type: Optional[ObjectType] = None
    ) -> list[DependentObject]:
        """List objects that would be affected by deleting the given object.

        Args:
            obj_id: Object ID
            obj_type: Object type, looked up if not given

        Returns:
            Dependent objects in discovery order
        """
        with report_errors(self.notifier):
            with self.db.get_session() as session:
                return fetch_dependent_objects(session, obj_id, obj_type)

    def delete_item(self, item_id: str, cascade: bool = False) -> bool:
        """Delete an item, and with cascade its loans and fines."""
        return self._delete(item_id, ObjectType.ITEM, cascade)

    def delete_member(self, member_id: str, cascade: bool = False) -> bool:
        """Delete a member, and with cascade their loans and fines."""
        return self._delete(member_id, ObjectType.MEMBER, cascade)

    def delete_loan(self, loan_id: str, cascade: bool = False) -> bool:
        """Delete a loan, and with cascade its fine."""
        return self._delete(loan_id, ObjectType.LOAN, cascade)

    def delete_fine(self, fine_id: str, cascade: bool = False) -> bool:
        """Delete a fine, and with cascade the loan it was charged on."""
        return self._delete(fine_id, ObjectType.FINE, cascade)

    def _delete(self, obj_id: str, obj_type: ObjectType, cascade: bool) -> bool:
        """Delete an object after checking what depends on it.

        Returns:
            True if deleted, False if no such object exists

        Raises:
            ItemOnLoan: The object or a dependent loan is on loan
            ActiveFineExists: The object or a dependent fine is active
            HasDependents: Dependents exist and cascade is False
        """
        with report_errors(self.notifier):
            require_library_admin(self.actor)
            with self.db.get_session() as session:
                obj = session.get(MODELS[obj_type], str(obj_id))
                if obj is None:
                    return False

                dependents = fetch_dependent_objects(session, obj.id, obj_type)
                self._check_deletable(session, obj, obj_type, dependents)
                if dependents and not cascade:
                    raise HasDependents(dependents)

                # Fines before loans before the object itself
                for dep in sorted(dependents, key=lambda d: d.type != ObjectType.FINE):
                    dep_obj = session.get(MODELS[dep.type], dep.id)
                    if dep_obj is not None:
                        session.delete(dep_obj)
                        session.flush()
                session.delete(obj)
                session.commit()

        logger.info(
            "Deleted %s %s with %d dependent object(s)", obj_type.value, obj_id, len(dependents)
        )
        self.notifier.notify(
            f"Deleted {obj_type.value} and {len(dependents)} dependent object(s)",
            Severity.SUCCESS,
        )
        return True

    def _check_deletable(
        self,
        session: Session,
        obj,
        obj_type: ObjectType,
        dependents: list[DependentObject],
    ) -> None:
        if obj_type == ObjectType.ITEM and obj.on_loan:
            raise ItemOnLoan()

        loan_ids = [d.id for d in dependents if d.type == ObjectType.LOAN]
        fine_ids = [d.id for d in dependents if d.type == ObjectType.FINE]
        if obj_type == ObjectType.LOAN:
            loan_ids.append(obj.id)
        elif obj_type == ObjectType.FINE:
            fine_ids.append(obj.id)

        loans = session.execute(select(Loan).where(Loan.id.in_(loan_ids))).scalars()
        if any(loan.is_open for loan in loans):
            raise ItemOnLoan()

        fines = session.execute(select(Fine).where(Fine.id.in_(fine_ids))).scalars()
        if any(fine.is_active for fine in fines):
            raise ActiveFineExists()
