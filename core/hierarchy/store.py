"""
Query interface the hierarchy engine uses to read memberships.

The production implementation lives in ``database.membership_store``; the
in-memory store below backs tests and offline tooling.
"""

from typing import Iterable, Optional, Protocol

from core.hierarchy.models import Membership


class MembershipStore(Protocol):
    """Read-only view over recruiter memberships."""

    async def find_membership(self, user_id: str) -> Optional[Membership]:
        """Return the membership for ``user_id`` regardless of its state."""
        ...

    async def find_active_reports_of(self, user_id: str) -> list[Membership]:
        """Return active memberships whose manager is ``user_id``."""
        ...

    async def find_active_memberships(self) -> list[Membership]:
        """Return every active membership."""
        ...


class InMemoryMembershipStore:
    """Dictionary-backed store keyed by user id."""

    def __init__(self, memberships: Iterable[Membership] = ()):
        self._by_user: dict[str, Membership] = {}
        for membership in memberships:
            self.put(membership)

    def put(self, membership: Membership) -> None:
        self._by_user[membership.user_id] = membership

    def remove(self, user_id: str) -> None:
        self._by_user.pop(user_id, None)

    async def find_membership(self, user_id: str) -> Optional[Membership]:
        return self._by_user.get(user_id)

    async def find_active_reports_of(self, user_id: str) -> list[Membership]:
        return [
            m for m in self._by_user.values()
            if m.is_active and m.manager_id == user_id
        ]

    async def find_active_memberships(self) -> list[Membership]:
        return [m for m in self._by_user.values() if m.is_active]
