"""Tests for Pydantic schemas and status enums."""

import pytest
from pydantic import ValidationError

from librarian.catalog.schemas import (
    DependentObject,
    ItemCondition,
    ItemCreate,
    MemberCreate,
    ObjectType,
)
from librarian.fines.schemas import FineStatus
from librarian.lending.schemas import LoanStatus


class TestItemCreate:
    """Tests for ItemCreate schema."""

    def test_create_minimal_item(self):
        """Test creating an item with only required fields."""
        item = ItemCreate(title="Ubik")
        assert item.title == "Ubik"
        assert item.loanable is True  # default
        assert item.isbn is None
        assert item.condition is None

    def test_empty_title_rejected(self):
        """Test that empty title is rejected."""
        with pytest.raises(ValidationError):
            ItemCreate(title="")

    def test_isbn_cleaning(self):
        """Test separators are stripped from ISBNs."""
        assert ItemCreate(title="T", isbn="0-385-35059-7").isbn == "0385350597"
        assert ItemCreate(title="T", isbn="080442957x").isbn == "080442957X"

    def test_isbn_length(self):
        """Test ISBNs must have 10 or 13 digits."""
        with pytest.raises(ValidationError):
            ItemCreate(title="T", isbn="12345")

    def test_condition_range(self):
        """Test conditions outside the scale are rejected."""
        assert ItemCreate(title="T", condition=4).condition == ItemCondition.EXCELLENT
        with pytest.raises(ValidationError):
            ItemCreate(title="T", condition=7)


class TestMemberCreate:
    """Tests for MemberCreate schema."""

    def test_empty_name_rejected(self):
        """Test that empty name is rejected."""
        with pytest.raises(ValidationError):
            MemberCreate(name="")


class TestLabels:
    """Tests for display labels."""

    @pytest.mark.parametrize(
        "status,label",
        [
            (LoanStatus.SCHEDULED, "Scheduled"),
            (LoanStatus.ON_LOAN, "On Loan"),
            (LoanStatus.RETURNED, "Returned"),
            (LoanStatus.RETURNED_LATE, "Returned Late"),
            (LoanStatus.RETURNED_LATE_WITH_FINE, "Returned Late (with fine)"),
        ],
    )
    def test_loan_status_labels(self, status, label):
        """Test loan status labels."""
        assert status.label == label

    def test_returned_states(self):
        """Test which loan statuses count as returned."""
        assert LoanStatus.RETURNED_LATE.is_returned is True
        assert LoanStatus.ON_LOAN.is_returned is False

    def test_fine_status_labels(self):
        """Test fine status labels."""
        assert FineStatus.ACTIVE.label == "Active"
        assert FineStatus.CANCELLED.label == "Cancelled"

    def test_condition_labels(self):
        """Test condition labels."""
        assert ItemCondition.EXCELLENT.label == "4 - Excellent"
        assert ItemCondition.VERY_POOR.label == "0 - Very Poor"


class TestDependentObject:
    """Tests for DependentObject."""

    def test_equality(self):
        """Test equal ids and types compare equal."""
        a = DependentObject(id="x", type=ObjectType.LOAN)
        assert a == DependentObject(id="x", type="loan")
        assert a != DependentObject(id="x", type=ObjectType.FINE)
