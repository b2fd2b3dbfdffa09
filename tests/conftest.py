"""Pytest configuration and shared fixtures.

This module provides fixtures for testing the librarian package: an
in-memory database, a pinned clock, managers wired to both, and sample
items and members.
"""

from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Generator

import pytest

from librarian.catalog.manager import CatalogManager
from librarian.catalog.schemas import ItemCreate, MemberCreate
from librarian.clock import FixedClock
from librarian.config import Config, reset_config
from librarian.db.sqlite import Database, reset_db
from librarian.fines.manager import FineManager
from librarian.lending.manager import LendingManager
from librarian.notify import MemoryNotifier

NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


# ============================================================================
# Infrastructure Fixtures
# ============================================================================


@pytest.fixture(scope="function")
def db() -> Generator[Database, None, None]:
    """Create an in-memory database for testing."""
    reset_db()
    reset_config()

    database = Database(":memory:")
    database.create_tables()
    yield database

    reset_db()


@pytest.fixture
def clock() -> FixedClock:
    """Clock pinned to NOW."""
    return FixedClock(NOW)


@pytest.fixture
def config() -> Config:
    """Library options with a 2.00 daily fine and unlimited renewals."""
    return Config(
        db_path=Path(":memory:"),
        default_loan_length_days=12,
        renewal_limit=0,
        daily_fine_rate=Decimal("2"),
    )


@pytest.fixture
def notifier() -> MemoryNotifier:
    """Notifier that records messages."""
    return MemoryNotifier()


# ============================================================================
# Manager Fixtures
# ============================================================================


@pytest.fixture
def lending(db, config, clock, notifier) -> LendingManager:
    """Create a LendingManager with test database and clock."""
    return LendingManager(db, config, clock, notifier)


@pytest.fixture
def fines(db, config, clock, notifier, lending) -> FineManager:
    """Create a FineManager sharing the lending manager."""
    return FineManager(db, config, clock, notifier, lending=lending)


@pytest.fixture
def catalog(db, notifier) -> CatalogManager:
    """Create a CatalogManager with test database."""
    return CatalogManager(db, notifier)


# ============================================================================
# Sample Data Fixtures
# ============================================================================


@pytest.fixture
def item(catalog):
    """Create a loanable item."""
    return catalog.create_item(
        ItemCreate(title="The Left Hand of Darkness", author="Ursula K. Le Guin")
    )


@pytest.fixture
def member(catalog):
    """Create a member."""
    return catalog.create_member(MemberCreate(name="Ada Palmer", email="ada@example.com"))


@pytest.fixture
def other_member(catalog):
    """Create a second member."""
    return catalog.create_member(MemberCreate(name="Gene Wolfe"))
