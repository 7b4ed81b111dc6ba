"""
Access authority: decides which record owners a caller may read or write.

Every CRUD route scopes its queries through ``visible_owner_ids`` and
gates mutations with ``can_access`` / ``filter_accessible_record_ids``.
A caller without an active membership degrades to "own records only",
never to "all records".
"""

import logging
from typing import Any, Callable, Iterable, Optional

from core.hierarchy.errors import AccessDenied, AdminRequired, MembershipRequired
from core.hierarchy.models import AccessPartition, Membership, VisibilityScope
from core.hierarchy.resolver import HierarchyResolver

logger = logging.getLogger(__name__)


class AccessAuthority:
    """Answers visibility and ownership questions for a caller."""

    def __init__(self, resolver: HierarchyResolver):
        self.resolver = resolver

    async def visible_owner_ids(self, caller_user_id: str) -> VisibilityScope:
        """
        Get the set of owner ids whose records the caller may access.

        Args:
            caller_user_id: Authenticated user id

        Returns:
            VisibilityScope; admins see their whole team, everyone else
            sees only themselves
        """
        membership = await self.resolver.get_membership(caller_user_id)

        if membership is None or not membership.is_active:
            return VisibilityScope(ids=frozenset({caller_user_id}))

        if membership.is_admin:
            team = await self.resolver.resolve_team(caller_user_id)
            return VisibilityScope(
                ids=team,
                is_admin=True,
                hierarchy_level=0 if membership.manager_id is None else 1,
            )

        return VisibilityScope(ids=frozenset({caller_user_id}))

    async def can_access(self, caller_user_id: str, target_user_id: str) -> bool:
        if caller_user_id == target_user_id:
            return True

        scope = await self.visible_owner_ids(caller_user_id)
        return target_user_id in scope.ids

    async def filter_accessible_record_ids(
        self,
        record_ids: Iterable[Any],
        caller_user_id: str,
        owner_of: Callable[[Any], Optional[str]],
    ) -> AccessPartition:
        """
        Partition record ids by whether their owner is visible to the caller.

        Records whose owner cannot be determined are denied.

        Args:
            record_ids: Record identifiers to check
            caller_user_id: Authenticated user id
            owner_of: Maps a record id to its owner's user id

        Returns:
            AccessPartition preserving input order
        """
        scope = await self.visible_owner_ids(caller_user_id)

        accessible = []
        denied = []
        for record_id in record_ids:
            owner_id = owner_of(record_id)
            if owner_id is not None and owner_id in scope.ids:
                accessible.append(record_id)
            else:
                denied.append(record_id)

        if denied:
            logger.warning(
                f"User {caller_user_id} denied access to {len(denied)} of "
                f"{len(accessible) + len(denied)} records"
            )

        return AccessPartition(accessible=accessible, denied=denied)

    async def require_membership(self, caller_user_id: str) -> Membership:
        """
        Get the caller's active membership.

        Raises:
            MembershipRequired: If the caller has no active membership
        """
        membership = await self.resolver.get_membership(caller_user_id)
        if membership is None or not membership.is_active:
            logger.warning(f"User {caller_user_id} has no active recruiter membership")
            raise MembershipRequired(
                "Recruiter profile not found or inactive", user_id=caller_user_id
            )
        return membership

    async def require_admin(self, caller_user_id: str) -> Membership:
        """
        Get the caller's active admin membership.

        Raises:
            MembershipRequired: If the caller has no active membership
            AdminRequired: If the caller is not an admin
        """
        membership = await self.require_membership(caller_user_id)
        if not membership.is_admin:
            logger.warning(
                f"User {caller_user_id} with role {membership.role.value} "
                f"attempted an admin-only action"
            )
            raise AdminRequired("Admin access required", user_id=caller_user_id)
        return membership

    async def require_access(self, caller_user_id: str, target_user_id: str) -> None:
        """
        Raises:
            AccessDenied: If ``target_user_id`` is outside the caller's scope
        """
        if not await self.can_access(caller_user_id, target_user_id):
            logger.warning(
                f"User {caller_user_id} denied access to records of {target_user_id}"
            )
            raise AccessDenied(
                f"User {target_user_id} is outside your team",
                user_id=caller_user_id,
                denied_ids=[target_user_id],
            )

    async def require_all_accessible(
        self,
        record_ids: Iterable[Any],
        caller_user_id: str,
        owner_of: Callable[[Any], Optional[str]],
    ) -> list[Any]:
        """
        Check a whole batch before any side effect.

        Returns:
            The accessible ids when every record is accessible

        Raises:
            AccessDenied: Listing every denied id if any record is out of scope
        """
        partition = await self.filter_accessible_record_ids(
            record_ids, caller_user_id, owner_of
        )
        if not partition.all_accessible:
            raise AccessDenied(
                f"Access denied to {len(partition.denied)} record(s)",
                user_id=caller_user_id,
                denied_ids=[str(record_id) for record_id in partition.denied],
            )
        return partition.accessible

    async def describe(self, caller_user_id: str) -> dict[str, Any]:
        """Summarize the caller's position in the hierarchy for debugging."""
        membership = await self.resolver.get_membership(caller_user_id)
        scope = await self.visible_owner_ids(caller_user_id)

        return {
            "user_id": caller_user_id,
            "role": membership.role.value if membership else None,
            "is_active": membership.is_active if membership else False,
            "is_admin": scope.is_admin,
            "is_root_admin": membership.is_root_admin if membership else False,
            "level": scope.hierarchy_level,
            "depth": await self.resolver.hierarchy_depth(caller_user_id),
            "team_size": scope.team_size,
        }
