"""
Value types shared by the hierarchy resolver, access authority and
escalation router.

Memberships are read from a store and never mutated by the core; every
derived value here is immutable so it can be handed back to route
handlers without defensive copies.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class MembershipRole(str, Enum):
    """Role of a recruiter inside a team."""

    ADMIN = "ADMIN"
    CONTRIBUTOR = "CONTRIBUTOR"


@dataclass(frozen=True)
class Membership:
    """A recruiter profile as seen by the hierarchy engine."""

    id: str
    user_id: str
    is_active: bool
    role: MembershipRole
    manager_id: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role == MembershipRole.ADMIN

    @property
    def is_root_admin(self) -> bool:
        return self.is_admin and self.manager_id is None

    @property
    def is_available_approver(self) -> bool:
        """Active and admin-typed, i.e. able to receive approval requests."""
        return self.is_active and self.is_admin


@dataclass(frozen=True)
class VisibilityScope:
    """Set of owner ids whose records a caller may access."""

    ids: frozenset[str]
    is_admin: bool = False
    hierarchy_level: int = 0

    @property
    def team_size(self) -> int:
        return len(self.ids)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self.ids


@dataclass(frozen=True)
class EscalationTarget:
    """Who should receive an approval request for a submitter."""

    manager_id: str
    level: int
    escalated: bool


@dataclass(frozen=True)
class ApprovalDecision:
    can_approve: bool
    is_escalated: bool
    level: int


@dataclass(frozen=True)
class AccessPartition:
    """Result of checking a batch of record ids against a caller's scope."""

    accessible: list[str]
    denied: list[str]

    @property
    def all_accessible(self) -> bool:
        return not self.denied


@dataclass(frozen=True)
class ManagerSubmitters:
    """Users whose time entries a manager may review."""

    direct_reports: frozenset[str]
    escalated_users: frozenset[str]

    @property
    def all_user_ids(self) -> frozenset[str]:
        return self.direct_reports | self.escalated_users


@dataclass
class TeamNode:
    """One member in a nested team view."""

    membership: Membership
    subordinates: list["TeamNode"] = field(default_factory=list)

    @property
    def subordinate_count(self) -> int:
        return len(self.subordinates)

    @property
    def total_team_size(self) -> int:
        return self.subordinate_count + sum(
            sub.total_team_size for sub in self.subordinates
        )

    def to_dict(self) -> dict:
        return {
            "user_id": self.membership.user_id,
            "role": self.membership.role.value,
            "is_active": self.membership.is_active,
            "manager_id": self.membership.manager_id,
            "subordinates": [sub.to_dict() for sub in self.subordinates],
            "subordinate_count": self.subordinate_count,
            "total_team_size": self.total_team_size,
        }
