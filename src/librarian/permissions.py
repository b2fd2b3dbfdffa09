"""Role checks for the acting user.

Roles are looked up by the host application and handed in as an
ActorContext; this module only compares levels.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional

from .errors import InsufficientPermissions


class Role(IntEnum):
    """Library role levels. Higher levels include lower ones."""

    NONE = 0
    LIBRARIAN = 5
    ADMINISTRATOR = 10

    @property
    def label(self) -> str:
        return {Role.NONE: "", Role.LIBRARIAN: "Librarian", Role.ADMINISTRATOR: "Administrator"}[self]


@dataclass(frozen=True)
class ActorContext:
    """The user performing an operation."""

    user_id: str
    role: int = Role.NONE

    @property
    def is_librarian(self) -> bool:
        return self.role >= Role.LIBRARIAN

    @property
    def is_library_admin(self) -> bool:
        return self.role >= Role.ADMINISTRATOR


def require_librarian(actor: Optional[ActorContext]) -> None:
    """Raise unless the actor may perform librarian actions.

    A missing actor is a trusted system caller.
    """
    if actor is not None and not actor.is_librarian:
        raise InsufficientPermissions(f"{Role.LIBRARIAN.label} role required")


def require_library_admin(actor: Optional[ActorContext]) -> None:
    """Raise unless the actor may perform administrative actions."""
    if actor is not None and not actor.is_library_admin:
        raise InsufficientPermissions(f"{Role.ADMINISTRATOR.label} role required")
