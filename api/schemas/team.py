"""Team hierarchy API schemas."""

from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator

from core.hierarchy.models import MembershipRole


class VisibilityScopeResponse(BaseModel):
    """Owner ids whose records the caller may access."""

    user_id: str
    ids: list[str]
    is_admin: bool
    hierarchy_level: int
    team_size: int


class MemberResponse(BaseModel):
    """A recruiter membership."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    name: Optional[str] = None
    email: Optional[str] = None
    department: Optional[str] = None
    role: MembershipRole
    is_active: bool
    admin_id: Optional[str] = Field(None, description="User id of the managing admin")
    deactivated_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class TeamNodeResponse(BaseModel):
    user_id: str
    role: MembershipRole
    is_active: bool
    manager_id: Optional[str] = None
    subordinates: list["TeamNodeResponse"] = Field(default_factory=list)
    subordinate_count: int = 0
    total_team_size: int = 0


class HierarchySummary(BaseModel):
    user_id: str
    role: Optional[MembershipRole] = None
    is_active: bool
    is_admin: bool
    is_root_admin: bool
    level: int
    depth: int
    team_size: int


class HierarchyResponse(BaseModel):
    summary: HierarchySummary
    hierarchy: list[TeamNodeResponse]


class PendingRequestsSummary(BaseModel):
    total: int
    direct_requests: int
    general_requests: int


class PendingRequestsResponse(BaseModel):
    requests: list[MemberResponse]
    summary: PendingRequestsSummary


class RequestDecision(BaseModel):
    """Approve or reject a pending join request."""

    action: Literal["approve", "reject"]


class RequestDecisionResponse(BaseModel):
    message: str
    member: Optional[MemberResponse] = None


class MemberUpdate(BaseModel):
    """Fields an admin may change on a team member."""

    role: Optional[MembershipRole] = None
    department: Optional[str] = Field(None, max_length=100)
    is_active: Optional[bool] = None
    manager_id: Optional[str] = Field(None, min_length=1, max_length=36)

    @model_validator(mode="after")
    def require_change(self) -> "MemberUpdate":
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided")
        return self


class MemberListStats(BaseModel):
    total: int
    active: int
    inactive: int
    role_distribution: dict[str, int]


class MemberListResponse(BaseModel):
    members: list[MemberResponse]
    stats: MemberListStats
    is_root_admin: bool


class AdminOption(BaseModel):
    """An active admin a join request can be addressed to."""

    model_config = ConfigDict(from_attributes=True)

    user_id: str
    name: Optional[str] = None
    email: Optional[str] = None
    department: Optional[str] = None


class JoinRequestCreate(BaseModel):
    """
    Ask to join a team.

    Choosing the ADMIN role creates an active root admin at once. Any other
    role creates a pending request, addressed to ``admin_id`` when given.
    """

    role: MembershipRole
    admin_id: Optional[str] = Field(None, min_length=1, max_length=36)
    department: Optional[str] = Field(None, max_length=100)
    message: Optional[str] = Field(None, max_length=500)


class JoinRequestStatusResponse(BaseModel):
    request: Optional[MemberResponse] = None
    admins: list[AdminOption]


class JoinRequestResponse(BaseModel):
    message: str
    request: MemberResponse
    is_active: bool
