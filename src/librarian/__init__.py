"""Librarian - lending engine for a library of physical items.

Schedules loans without overlaps, tracks items through their loan
lifecycle, charges and cancels fines, and guards deletion of objects that
others depend on.
"""

__version__ = "0.1.0"

from .catalog.manager import CatalogManager
from .clock import Clock, FixedClock, SystemClock
from .config import Config, get_config, reset_config
from .db import Database, get_db, reset_db
from .errors import (
    ConflictError,
    ConsistencyError,
    LibraryError,
    NotFoundError,
    PreconditionError,
    ValidationError,
)
from .fines.manager import FineManager
from .lending.manager import LendingManager
from .notify import ConsoleNotifier, MemoryNotifier, NullNotifier, Severity
from .permissions import ActorContext, Role

__all__ = [
    "__version__",
    "CatalogManager",
    "FineManager",
    "LendingManager",
    "Clock",
    "FixedClock",
    "SystemClock",
    "Config",
    "get_config",
    "reset_config",
    "Database",
    "get_db",
    "reset_db",
    "LibraryError",
    "ValidationError",
    "PreconditionError",
    "ConflictError",
    "ConsistencyError",
    "NotFoundError",
    "ConsoleNotifier",
    "MemoryNotifier",
    "NullNotifier",
    "Severity",
    "ActorContext",
    "Role",
]
