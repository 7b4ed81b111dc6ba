"""
Team hierarchy resolution over the "managed by" relation.

Every traversal keeps an explicit visited set or a hop cap so that cycles
and dangling manager references left behind by concurrent team edits end
the walk instead of hanging the request.
"""

import logging
from typing import Optional

from core.hierarchy.models import Membership, MembershipRole, TeamNode
from core.hierarchy.store import MembershipStore

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 10


class HierarchyResolver:
    """
    Computes team membership from the raw admin-link graph.

    Args:
        store: Membership store to read from
        max_depth: Cap on upward walks and nested tree depth
    """

    def __init__(self, store: MembershipStore, max_depth: int = DEFAULT_MAX_DEPTH):
        self.store = store
        self.max_depth = max_depth

    async def get_membership(self, user_id: str) -> Optional[Membership]:
        return await self.store.find_membership(user_id)

    async def resolve_team(self, root_user_id: str) -> frozenset[str]:
        """
        Get every user whose manager chain leads back to ``root_user_id``.

        The root is always part of its own team. Inactive members are never
        pushed onto the stack, so a deactivated admin cuts off their subtree.

        Args:
            root_user_id: User at the top of the team

        Returns:
            Frozen set of user ids including the root
        """
        visited: set[str] = set()
        to_visit = [root_user_id]

        while to_visit:
            current = to_visit.pop()
            if current in visited:
                continue
            visited.add(current)

            for report in await self.store.find_active_reports_of(current):
                if report.user_id not in visited:
                    to_visit.append(report.user_id)

        return frozenset(visited)

    async def resolve_direct_reports(
        self,
        root_user_id: str,
        include_self: bool = True,
    ) -> frozenset[str]:
        """
        Get immediate reports of ``root_user_id`` without recursing.

        Args:
            root_user_id: Manager user id
            include_self: Add the root when it is itself an active admin

        Returns:
            Frozen set of user ids
        """
        ids = {
            report.user_id
            for report in await self.store.find_active_reports_of(root_user_id)
            if report.user_id != root_user_id
        }

        if include_self:
            root = await self.store.find_membership(root_user_id)
            if root is not None and root.is_available_approver:
                ids.add(root_user_id)

        return frozenset(ids)

    async def is_root_admin(self, user_id: str) -> bool:
        membership = await self.store.find_membership(user_id)
        return membership is not None and membership.is_root_admin

    async def hierarchy_depth(self, user_id: str) -> int:
        """
        Count manager hops from ``user_id`` to the top of its chain.

        Returns 0 for unknown users and for anyone without a manager. The
        walk stops at ``max_depth`` on malformed (cyclic) data.
        """
        membership = await self.store.find_membership(user_id)
        if membership is None or membership.manager_id is None:
            return 0

        depth = 1
        current_manager_id = membership.manager_id
        capped = False

        while True:
            manager = await self.store.find_membership(current_manager_id)
            if manager is None or manager.manager_id is None:
                break
            if depth >= self.max_depth:
                capped = True
                break
            current_manager_id = manager.manager_id
            depth += 1

        if capped:
            logger.warning(
                f"Hierarchy depth for user {user_id} reached cap {self.max_depth}; "
                f"manager chain may contain a cycle"
            )

        return depth

    async def team_tree(
        self,
        root_user_id: str,
        max_depth: Optional[int] = None,
    ) -> list[TeamNode]:
        """
        Build a nested view of the active team under ``root_user_id``.

        Only admin members are expanded further. Children are ordered admins
        first, then by user id.

        Args:
            root_user_id: Manager at the top of the tree
            max_depth: Levels to expand (defaults to the resolver's cap)

        Returns:
            List of top-level nodes (the root itself is not included)
        """
        depth = self.max_depth if max_depth is None else max_depth
        return await self._build_subtree(root_user_id, depth, {root_user_id})

    async def _build_subtree(
        self,
        manager_id: str,
        remaining: int,
        seen: set[str],
    ) -> list[TeamNode]:
        if remaining <= 0:
            return []

        reports = [
            r for r in await self.store.find_active_reports_of(manager_id)
            if r.user_id not in seen
        ]
        reports.sort(key=lambda m: (m.role != MembershipRole.ADMIN, m.user_id))
        seen.update(r.user_id for r in reports)

        nodes = []
        for report in reports:
            node = TeamNode(membership=report)
            if report.is_admin:
                node.subordinates = await self._build_subtree(
                    report.user_id, remaining - 1, seen
                )
            nodes.append(node)
        return nodes
