"""Tests for role checks."""

import pytest

from librarian.errors import InsufficientPermissions
from librarian.permissions import (
    ActorContext,
    Role,
    require_librarian,
    require_library_admin,
)


class TestActorContext:
    """Tests for ActorContext."""

    @pytest.mark.parametrize(
        "role,librarian,admin",
        [
            (Role.NONE, False, False),
            (Role.LIBRARIAN, True, False),
            (7, True, False),
            (Role.ADMINISTRATOR, True, True),
        ],
    )
    def test_levels(self, role, librarian, admin):
        """Test higher roles include lower ones."""
        actor = ActorContext("u1", role)
        assert actor.is_librarian is librarian
        assert actor.is_library_admin is admin

    def test_role_labels(self):
        """Test role labels."""
        assert Role.LIBRARIAN.label == "Librarian"
        assert Role.ADMINISTRATOR.label == "Administrator"


class TestRequire:
    """Tests for require_librarian and require_library_admin."""

    def test_system_caller(self):
        """Test a missing actor is trusted."""
        require_librarian(None)
        require_library_admin(None)

    def test_librarian(self):
        """Test librarians pass the librarian check only."""
        actor = ActorContext("u1", Role.LIBRARIAN)
        require_librarian(actor)

        with pytest.raises(InsufficientPermissions):
            require_library_admin(actor)

    def test_no_role(self):
        """Test users without a role fail both checks."""
        actor = ActorContext("u1")

        with pytest.raises(InsufficientPermissions):
            require_librarian(actor)
        with pytest.raises(InsufficientPermissions):
            require_library_admin(actor)

    def test_message_names_required_role(self):
        """Test the refusal names the role that was missing."""
        actor = ActorContext("u1")

        with pytest.raises(InsufficientPermissions, match="Librarian role required"):
            require_librarian(actor)
        with pytest.raises(InsufficientPermissions, match="Administrator role required"):
            require_library_admin(actor)
