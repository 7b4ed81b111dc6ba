"""
Escalation router for time-entry approvals.

Walks upward from a submitter to the nearest active admin so approval
authority never vanishes when an intermediate manager is deactivated.
"""

import logging
from typing import Optional

from core.hierarchy.models import ApprovalDecision, EscalationTarget, ManagerSubmitters
from core.hierarchy.store import MembershipStore

logger = logging.getLogger(__name__)

DEFAULT_MAX_HOPS = 5


class EscalationRouter:
    """
    Finds who should receive and who may act on approval requests.

    Args:
        store: Membership store to read from
        max_hops: Cap on upward steps
    """

    def __init__(self, store: MembershipStore, max_hops: int = DEFAULT_MAX_HOPS):
        self.store = store
        self.max_hops = max_hops

    async def find_available_manager(
        self, submitter_user_id: str
    ) -> Optional[EscalationTarget]:
        """
        Find the nearest active admin above the submitter.

        Args:
            submitter_user_id: User whose request needs an approver

        Returns:
            EscalationTarget, or None when the chain ends or the hop cap is hit
        """
        current_user_id = submitter_user_id
        hops = 0

        while hops < self.max_hops:
            current = await self.store.find_membership(current_user_id)
            if current is None or current.manager_id is None:
                break

            candidate_id = current.manager_id
            candidate = await self.store.find_membership(candidate_id)

            # Deliberately stricter than a plain upward walk: a self-managed admin
            # or a chain looping back to the submitter never approves itself
            if (
                candidate is not None
                and candidate.is_available_approver
                and candidate_id != submitter_user_id
            ):
                target = EscalationTarget(
                    manager_id=candidate_id,
                    level=hops + 1,
                    escalated=hops > 0,
                )
                if target.escalated:
                    logger.info(
                        f"Approval for user {submitter_user_id} escalated to "
                        f"{candidate_id} at level {target.level}"
                    )
                return target

            current_user_id = candidate_id
            hops += 1

        logger.info(f"No available manager found for user {submitter_user_id}")
        return None

    async def can_approve(
        self, approver_user_id: str, submitter_user_id: str
    ) -> ApprovalDecision:
        """
        Check whether ``approver_user_id`` may approve for the submitter.

        The direct manager always may; anyone else only when the request
        escalated to them.
        """
        submitter = await self.store.find_membership(submitter_user_id)
        if submitter is not None and submitter.manager_id == approver_user_id:
            return ApprovalDecision(can_approve=True, is_escalated=False, level=1)

        target = await self.find_available_manager(submitter_user_id)
        escalated_to_approver = (
            target is not None
            and target.escalated
            and target.manager_id == approver_user_id
        )

        if not escalated_to_approver:
            logger.warning(
                f"User {approver_user_id} may not approve requests of {submitter_user_id}"
            )

        return ApprovalDecision(
            can_approve=escalated_to_approver,
            is_escalated=escalated_to_approver,
            level=target.level if target else 0,
        )

    async def manager_visible_submitters(self, manager_user_id: str) -> ManagerSubmitters:
        """
        Get users whose time entries ``manager_user_id`` may review.

        Escalated users are found by scanning every active membership, which
        is O(active members) walks per call.
        """
        active = await self.store.find_active_memberships()

        direct_reports = frozenset(
            m.user_id for m in active
            if m.manager_id == manager_user_id and m.user_id != manager_user_id
        )

        escalated = set()
        for membership in active:
            if membership.user_id in direct_reports or membership.user_id == manager_user_id:
                continue
            target = await self.find_available_manager(membership.user_id)
            if target and target.escalated and target.manager_id == manager_user_id:
                escalated.add(membership.user_id)

        return ManagerSubmitters(
            direct_reports=direct_reports,
            escalated_users=frozenset(escalated),
        )
