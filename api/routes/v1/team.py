"""
Team hierarchy endpoints.

Scope lookup for the caller, the nested team view and member list, join
requests and their approval, and member updates.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import (
    get_access_authority,
    get_current_user_id,
    require_active_membership,
    require_admin_membership,
)
from api.schemas.team import (
    HierarchyResponse,
    JoinRequestCreate,
    JoinRequestResponse,
    JoinRequestStatusResponse,
    MemberListResponse,
    MemberResponse,
    MemberUpdate,
    PendingRequestsResponse,
    RequestDecision,
    RequestDecisionResponse,
    VisibilityScopeResponse,
)
from api.services import team as team_service
from core.hierarchy import AccessAuthority, Membership, MembershipRole
from database.engine import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/team", tags=["team"])


@router.get(
    "/scope",
    response_model=VisibilityScopeResponse,
    summary="Get Visibility Scope",
    description="User ids whose records the caller may access.",
)
async def get_scope(
    membership: Membership = Depends(require_active_membership),
    authority: AccessAuthority = Depends(get_access_authority),
):
    return await team_service.get_scope(authority, membership.user_id)


@router.get(
    "/hierarchy",
    response_model=HierarchyResponse,
    summary="Get Team Hierarchy",
    description="Nested view of the caller's team. Requires admin.",
)
async def get_hierarchy(
    membership: Membership = Depends(require_admin_membership),
    authority: AccessAuthority = Depends(get_access_authority),
):
    return await team_service.get_hierarchy(authority, membership.user_id)


@router.get(
    "/members",
    response_model=MemberListResponse,
    summary="List Team Members",
    description="Everyone in the caller's team plus members they removed. Requires admin.",
)
async def list_members(
    is_active: Optional[bool] = Query(None, description="Only active or only removed members"),
    role: Optional[MembershipRole] = Query(None),
    department: Optional[str] = Query(None, description="Case-insensitive substring"),
    membership: Membership = Depends(require_admin_membership),
    authority: AccessAuthority = Depends(get_access_authority),
    db: AsyncSession = Depends(get_db),
):
    return await team_service.list_members(
        db,
        authority,
        membership.user_id,
        is_active=is_active,
        role=role,
        department=department,
    )


@router.get(
    "/pending",
    response_model=PendingRequestsResponse,
    summary="List Pending Join Requests",
    description="Requests addressed to the caller plus unassigned requests. Requires admin.",
)
async def list_pending_requests(
    membership: Membership = Depends(require_admin_membership),
    db: AsyncSession = Depends(get_db),
):
    direct, general = await team_service.list_pending_requests(db, membership.user_id)
    return {
        "requests": direct + general,
        "summary": {
            "total": len(direct) + len(general),
            "direct_requests": len(direct),
            "general_requests": len(general),
        },
    }


@router.post(
    "/requests/{membership_id}/decision",
    response_model=RequestDecisionResponse,
    summary="Decide Join Request",
    description="Approve (caller becomes manager) or reject a pending request. Requires admin.",
)
async def decide_request(
    decision: RequestDecision,
    membership_id: str = Path(..., description="Recruiter profile id of the request"),
    membership: Membership = Depends(require_admin_membership),
    db: AsyncSession = Depends(get_db),
):
    profile = await team_service.decide_request(
        db, membership.user_id, membership_id, decision.action
    )
    if profile is None:
        return RequestDecisionResponse(message="Request rejected successfully")
    return RequestDecisionResponse(
        message="Request approved successfully",
        member=MemberResponse.model_validate(profile),
    )


@router.patch(
    "/members/{user_id}",
    response_model=MemberResponse,
    summary="Update Team Member",
    description=(
        "Change role, department, active flag or manager of a member in the caller's "
        "team, or re-activate a member the caller removed. Only root admins assign ADMIN."
    ),
)
async def update_member(
    update: MemberUpdate,
    user_id: str = Path(..., description="User id of the member"),
    membership: Membership = Depends(require_admin_membership),
    authority: AccessAuthority = Depends(get_access_authority),
    db: AsyncSession = Depends(get_db),
):
    profile = await team_service.update_member(
        db, authority, membership.user_id, user_id, update
    )
    return MemberResponse.model_validate(profile)


@router.get(
    "/request",
    response_model=JoinRequestStatusResponse,
    summary="Get My Join Request",
    description="The caller's own profile, if any, and the active admins they can ask to join.",
)
async def get_join_request(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await team_service.get_join_request_status(db, user_id)


@router.post(
    "/request",
    response_model=JoinRequestResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Request To Join A Team",
    description="Choosing ADMIN creates a root admin at once; other roles wait for approval.",
)
async def submit_join_request(
    request: JoinRequestCreate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    profile = await team_service.submit_join_request(db, user_id, request)
    if profile.is_active:
        message = "Admin access granted successfully"
    else:
        message = "Access request submitted successfully"
    return JoinRequestResponse(
        message=message,
        request=MemberResponse.model_validate(profile),
        is_active=profile.is_active,
    )
