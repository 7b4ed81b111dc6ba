"""
Team hierarchy and access authority.

- Hierarchy resolution over the recruiter "managed by" relation
- Record visibility and ownership checks for CRUD routes
- Approval escalation to the nearest available admin
"""

from core.hierarchy.models import (
    AccessPartition,
    ApprovalDecision,
    EscalationTarget,
    ManagerSubmitters,
    Membership,
    MembershipRole,
    TeamNode,
    VisibilityScope,
)
from core.hierarchy.errors import (
    AccessDenied,
    AdminRequired,
    AuthorizationError,
    MembershipRequired,
    ResourceNotFound,
)
from core.hierarchy.store import InMemoryMembershipStore, MembershipStore
from core.hierarchy.resolver import HierarchyResolver
from core.hierarchy.access import AccessAuthority
from core.hierarchy.escalation import EscalationRouter

__all__ = [
    # Values
    "AccessPartition",
    "ApprovalDecision",
    "EscalationTarget",
    "ManagerSubmitters",
    "Membership",
    "MembershipRole",
    "TeamNode",
    "VisibilityScope",
    # Errors
    "AccessDenied",
    "AdminRequired",
    "AuthorizationError",
    "MembershipRequired",
    "ResourceNotFound",
    # Services
    "AccessAuthority",
    "EscalationRouter",
    "HierarchyResolver",
    "InMemoryMembershipStore",
    "MembershipStore",
]
