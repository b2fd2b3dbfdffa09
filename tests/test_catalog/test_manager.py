"""Tests for CatalogManager."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from librarian.catalog.manager import CatalogManager
from librarian.catalog.schemas import (
    ItemCondition,
    ItemCreate,
    ItemResponse,
    ItemUpdate,
    MemberCreate,
    MemberResponse,
    MemberUpdate,
    ObjectType,
)
from librarian.errors import (
    ActiveFineExists,
    HasDependents,
    InsufficientPermissions,
    ItemOnLoan,
    MemberNotFound,
    ObjectNotFound,
)
from librarian.permissions import ActorContext, Role

NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def admin_catalog(db, notifier):
    """Catalog manager acting as a library administrator."""
    return CatalogManager(db, notifier, actor=ActorContext("admin", Role.ADMINISTRATOR))


@pytest.fixture
def fined_loan(lending, fines, clock, item, member):
    """A loan returned late with a fine of 6."""
    lending.loan_item(item.id, member.id)
    clock.advance(days=15)
    return fines.create_fine(item.id)


class TestItems:
    """Tests for item management."""

    def test_create_item(self, catalog):
        """Test creating an item."""
        item = catalog.create_item(
            ItemCreate(
                title="The Dispossessed",
                author="Ursula K. Le Guin",
                isbn="978-0-06-051275-4",
                condition=ItemCondition.GOOD,
            )
        )

        assert item.id is not None
        assert item.isbn == "9780060512754"
        assert item.loanable is True
        assert item.condition == 3
        assert item.on_loan is False

    def test_get_item_not_found(self, catalog):
        """Test getting a non-existent item."""
        assert catalog.get_item("non-existent") is None

    def test_update_item(self, catalog, item):
        """Test updating an item."""
        updated = catalog.update_item(
            item.id, ItemUpdate(notes="Spine cracked", condition=ItemCondition.POOR)
        )

        assert updated.notes == "Spine cracked"
        assert updated.condition == 1
        # Unchanged field
        assert updated.title == item.title

    def test_update_item_not_found(self, catalog):
        """Test updating a non-existent item."""
        assert catalog.update_item("non-existent", ItemUpdate(title="X")) is None

    def test_list_items(self, catalog, lending, item, member):
        """Test listing with filters."""
        catalog.create_item(ItemCreate(title="a Wizard of Earthsea"))
        catalog.create_item(ItemCreate(title="Reference Only", loanable=False))
        lending.loan_item(item.id, member.id)

        titles = [i.title for i in catalog.list_items()]
        assert titles == ["a Wizard of Earthsea", "Reference Only", "The Left Hand of Darkness"]
        assert len(catalog.list_items(loanable_only=True)) == 2
        assert [i.id for i in catalog.list_items(on_loan=True)] == [item.id]
        assert len(catalog.list_items(on_loan=False)) == 2

    def test_item_response(self, catalog, item):
        """Test items convert to response schemas."""
        response = ItemResponse.model_validate(item)

        assert str(response.id) == item.id
        assert response.on_loan is False
        assert response.current_member_id is None


class TestMembers:
    """Tests for member management."""

    def test_create_member(self, catalog):
        """Test creating a member."""
        member = catalog.create_member(MemberCreate(name="Octavia", phone="+44 (0)20 7946"))

        assert member.archived is False
        assert member.owed == Decimal("0")
        assert member.phone == "+44 020 7946"

    def test_update_member(self, catalog, member):
        """Test updating a member."""
        updated = catalog.update_member(member.id, MemberUpdate(email="new@example.com"))

        assert updated.email == "new@example.com"
        assert updated.name == member.name

    def test_archive_and_restore(self, catalog, member):
        """Test archiving hides a member from the default listing."""
        archived = catalog.archive_member(member.id)
        assert archived.archived is True
        assert catalog.list_members() == []
        assert len(catalog.list_members(include_archived=True)) == 1

        restored = catalog.archive_member(member.id, archived=False)
        assert restored.archived is False

    def test_archive_unknown(self, catalog):
        """Test archiving a member that does not exist."""
        with pytest.raises(MemberNotFound):
            catalog.archive_member("non-existent")

    def test_list_members_sorted(self, catalog):
        """Test members are ordered by name."""
        for name in ["charlie", "Alice", "bob"]:
            catalog.create_member(MemberCreate(name=name))

        assert [m.name for m in catalog.list_members()] == ["Alice", "bob", "charlie"]

    def test_member_response(self, catalog, member):
        """Test members convert to response schemas."""
        response = MemberResponse.model_validate(member)
        assert response.owed == Decimal("0")
        assert response.name == "Ada Palmer"


class TestDeletion:
    """Tests for guarded deletion."""

    def test_delete_unused_member(self, admin_catalog, member):
        """Test deleting a member with no history."""
        assert admin_catalog.delete_member(member.id) is True
        assert admin_catalog.get_member(member.id) is None

    def test_delete_missing(self, admin_catalog):
        """Test deleting an object that does not exist."""
        assert admin_catalog.delete_item("non-existent") is False

    def test_delete_item_on_loan(self, admin_catalog, lending, item, member):
        """Test an item on loan cannot be deleted."""
        lending.loan_item(item.id, member.id)

        with pytest.raises(ItemOnLoan):
            admin_catalog.delete_item(item.id, cascade=True)

    def test_delete_member_holding_item(self, admin_catalog, lending, item, member):
        """Test a member holding an item cannot be deleted."""
        lending.loan_item(item.id, member.id)

        with pytest.raises(ItemOnLoan):
            admin_catalog.delete_member(member.id, cascade=True)

    def test_delete_with_active_fine(self, admin_catalog, fined_loan, item):
        """Test an active fine blocks deletion."""
        with pytest.raises(ActiveFineExists):
            admin_catalog.delete_item(item.id, cascade=True)

        with pytest.raises(ActiveFineExists):
            admin_catalog.delete_loan(fined_loan.id, cascade=True)

    def test_delete_needs_cascade(self, admin_catalog, fines, fined_loan, item):
        """Test dependents are reported unless cascading."""
        fines.cancel_fine(fined_loan.fine_id)

        with pytest.raises(HasDependents) as exc_info:
            admin_catalog.delete_item(item.id)

        types = [d.type for d in exc_info.value.dependents]
        assert types == [ObjectType.LOAN, ObjectType.FINE]
        assert admin_catalog.get_item(item.id) is not None

    def test_cascade_delete(self, admin_catalog, lending, fines, fined_loan, item):
        """Test cascading removes the object and everything depending on it."""
        fines.cancel_fine(fined_loan.fine_id)

        assert admin_catalog.delete_item(item.id, cascade=True) is True

        assert admin_catalog.get_item(item.id) is None
        assert lending.get_loan(fined_loan.id) is None
        assert fines.get_fine(fined_loan.fine_id) is None

    def test_delete_scheduled_loan(self, admin_catalog, lending, item, member):
        """Test a loan with no fine deletes without cascading."""
        loan = lending.schedule_loan(
            item.id, member.id, NOW + timedelta(days=2), NOW + timedelta(days=5)
        )

        assert admin_catalog.delete_loan(loan.id) is True
        assert lending.get_loan(loan.id) is None

    def test_delete_renewed_loan(self, admin_catalog, lending, clock, item, member):
        """Test a loan's renewals go with it."""
        loan = lending.loan_item(item.id, member.id)
        lending.renew_item(loan.id, NOW + timedelta(days=20))
        clock.advance(days=3)
        lending.return_item(item.id)

        assert admin_catalog.delete_loan(loan.id) is True

    def test_delete_fine_reports_loan(self, admin_catalog, fines, fined_loan):
        """Test deleting a fine counts its loan as a dependent."""
        fines.cancel_fine(fined_loan.fine_id)

        with pytest.raises(HasDependents) as exc_info:
            admin_catalog.delete_fine(fined_loan.fine_id)

        assert [d.id for d in exc_info.value.dependents] == [fined_loan.id]

    def test_requires_admin(self, db, member):
        """Test librarians cannot delete."""
        manager = CatalogManager(db, actor=ActorContext("u1", Role.LIBRARIAN))

        with pytest.raises(InsufficientPermissions):
            manager.delete_member(member.id)

    def test_get_dependents(self, catalog, fined_loan, item):
        """Test listing dependents through the manager."""
        found = catalog.get_dependents(item.id)
        assert [d.id for d in found] == [fined_loan.id, fined_loan.fine_id]

        assert catalog.get_object_type(fined_loan.id) == ObjectType.LOAN
        with pytest.raises(ObjectNotFound):
            catalog.get_object_type("non-existent")
