"""Team management service functions."""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
import logging

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.hierarchy import (
    AccessAuthority,
    AccessDenied,
    MembershipRole,
    ResourceNotFound,
)
from database.models.notifications import Notification, NotificationType
from database.models.recruiters import RecruiterProfile
from api.schemas.team import JoinRequestCreate, MemberUpdate

logger = logging.getLogger(__name__)


async def get_scope(authority: AccessAuthority, user_id: str) -> Dict[str, Any]:
    """Get the caller's visible-owner set."""
    scope = await authority.visible_owner_ids(user_id)
    return {
        "user_id": user_id,
        "ids": sorted(scope.ids),
        "is_admin": scope.is_admin,
        "hierarchy_level": scope.hierarchy_level,
        "team_size": scope.team_size,
    }


async def get_hierarchy(authority: AccessAuthority, user_id: str) -> Dict[str, Any]:
    """Get the nested team under the caller plus a summary of their position."""
    tree = await authority.resolver.team_tree(user_id)
    return {
        "summary": await authority.describe(user_id),
        "hierarchy": [node.to_dict() for node in tree],
    }


async def list_pending_requests(
    db: AsyncSession,
    admin_user_id: str,
) -> Tuple[List[RecruiterProfile], List[RecruiterProfile]]:
    """
    Get join requests waiting for approval.

    Removed members are inactive too but are not requests; they are
    re-activated through ``update_member``.

    Returns:
        (requests addressed to this admin, requests without a chosen admin)
    """
    result = await db.execute(
        select(RecruiterProfile)
        .where(
            RecruiterProfile.is_active.is_(False),
            RecruiterProfile.deactivated_at.is_(None),
            RecruiterProfile.admin_id == admin_user_id,
        )
        .order_by(RecruiterProfile.created_at.desc())
    )
    direct = list(result.scalars().all())

    result = await db.execute(
        select(RecruiterProfile)
        .where(
            RecruiterProfile.is_active.is_(False),
            RecruiterProfile.deactivated_at.is_(None),
            RecruiterProfile.admin_id.is_(None),
        )
        .order_by(RecruiterProfile.created_at.desc())
    )
    general = list(result.scalars().all())

    return direct, general


async def decide_request(
    db: AsyncSession,
    admin_user_id: str,
    membership_id: str,
    action: str,
) -> RecruiterProfile | None:
    """
    Approve or reject a pending join request.

    Approval activates the membership, makes the admin its manager and
    notifies the member in a single commit. Rejection removes the request.

    Args:
        db: Database session
        admin_user_id: Deciding admin
        membership_id: Recruiter profile id of the request
        action: "approve" or "reject"

    Returns:
        The approved profile, or None when rejected

    Raises:
        ResourceNotFound: If the request doesn't exist
        AccessDenied: If the request was addressed to another admin
        ValueError: If the request was already approved or belongs to a removed member
    """
    result = await db.execute(
        select(RecruiterProfile).where(RecruiterProfile.id == membership_id)
    )
    profile = result.scalar_one_or_none()

    if profile is None:
        raise ResourceNotFound("Join request", membership_id)

    if profile.is_active:
        raise ValueError("Request has already been approved")

    if profile.deactivated_at is not None:
        raise ValueError(
            "This member was removed from a team; re-activate them from the team view"
        )

    if profile.admin_id not in (None, admin_user_id):
        raise AccessDenied(
            "This request was addressed to another admin",
            user_id=admin_user_id,
            denied_ids=[membership_id],
        )

    if action == "reject":
        await db.delete(profile)
        await db.commit()
        logger.info(f"Admin {admin_user_id} rejected join request {membership_id}")
        return None

    profile.is_active = True
    profile.admin_id = admin_user_id
    db.add(
        Notification(
            title="Access Approved!",
            message="Your recruiter access has been approved. You can now access the recruiting dashboard.",
            type=NotificationType.SUCCESS,
            receiver_id=profile.user_id,
            sender_id=admin_user_id,
        )
    )
    await db.commit()
    await db.refresh(profile)

    logger.info(f"Admin {admin_user_id} approved join request {membership_id}")
    return profile


async def list_members(
    db: AsyncSession,
    authority: AccessAuthority,
    admin_user_id: str,
    is_active: Optional[bool] = None,
    role: Optional[MembershipRole] = None,
    department: Optional[str] = None,
) -> Dict[str, Any]:
    """
    List the admin's team, including members they removed.

    Stats always cover the whole team; the filters only narrow ``members``.
    """
    team = sorted(await authority.resolver.resolve_team(admin_user_id))

    result = await db.execute(
        select(RecruiterProfile)
        .where(
            or_(
                RecruiterProfile.user_id.in_(team),
                and_(
                    RecruiterProfile.admin_id.in_(team),
                    RecruiterProfile.deactivated_at.is_not(None),
                ),
            )
        )
        .order_by(RecruiterProfile.created_at.asc(), RecruiterProfile.user_id.asc())
    )
    everyone = list(result.scalars().all())

    members = everyone
    if is_active is not None:
        members = [m for m in members if m.is_active == is_active]
    if role is not None:
        members = [m for m in members if m.role == role]
    if department:
        needle = department.lower()
        members = [m for m in members if m.department and needle in m.department.lower()]

    distribution: Dict[str, int] = {}
    for member in everyone:
        distribution[member.role.value] = distribution.get(member.role.value, 0) + 1

    active = sum(1 for m in everyone if m.is_active)
    return {
        "members": members,
        "stats": {
            "total": len(everyone),
            "active": active,
            "inactive": len(everyone) - active,
            "role_distribution": distribution,
        },
        "is_root_admin": await authority.resolver.is_root_admin(admin_user_id),
    }


async def update_member(
    db: AsyncSession,
    authority: AccessAuthority,
    admin_user_id: str,
    target_user_id: str,
    update: MemberUpdate,
) -> RecruiterProfile:
    """
    Update a team member the admin manages.

    Removed members drop out of every team, so their direct manager keeps
    the right to edit and re-activate them. Only root admins may hand out
    the admin role.

    Raises:
        ValueError: If the admin edits themselves, the target is a pending
            join request, or the new manager is invalid
        AccessDenied: If the member or new manager is outside the admin's
            team, or a sub-admin assigns the admin role
        ResourceNotFound: If the member doesn't exist
    """
    if admin_user_id == target_user_id:
        raise ValueError("You cannot modify your own membership")

    result = await db.execute(
        select(RecruiterProfile).where(RecruiterProfile.user_id == target_user_id)
    )
    profile = result.scalar_one_or_none()
    if profile is None:
        raise ResourceNotFound("Team member", target_user_id)

    if not profile.is_active and profile.deactivated_at is None:
        raise ValueError("Pending join requests are approved or rejected, not edited")

    if profile.admin_id != admin_user_id:
        await authority.require_access(admin_user_id, target_user_id)

    if (
        update.role == MembershipRole.ADMIN
        and profile.role != MembershipRole.ADMIN
        and not await authority.resolver.is_root_admin(admin_user_id)
    ):
        logger.warning(f"Sub-admin {admin_user_id} tried to promote {target_user_id} to admin")
        raise AccessDenied(
            "Only root admins can assign the admin role",
            user_id=admin_user_id,
            denied_ids=[target_user_id],
        )

    if update.manager_id is not None and update.manager_id != profile.admin_id:
        await _check_new_manager(authority, admin_user_id, target_user_id, update.manager_id)
        profile.admin_id = update.manager_id

    if update.role is not None:
        profile.role = update.role
    if update.department is not None:
        profile.department = update.department
    if update.is_active is not None and update.is_active != profile.is_active:
        profile.is_active = update.is_active
        # Removal deactivates and never deletes
        profile.deactivated_at = None if update.is_active else datetime.now(timezone.utc)

    await db.commit()
    await db.refresh(profile)

    logger.info(
        f"Admin {admin_user_id} updated member {target_user_id}: "
        f"{update.model_dump(exclude_unset=True)}"
    )
    return profile


async def _check_new_manager(
    authority: AccessAuthority,
    admin_user_id: str,
    target_user_id: str,
    manager_id: str,
) -> None:
    await authority.require_access(admin_user_id, manager_id)

    manager = await authority.resolver.get_membership(manager_id)
    if manager is None or not manager.is_available_approver:
        raise ValueError("New manager must be an active admin")

    # Placing a member under their own subordinate would close a cycle
    subtree = await authority.resolver.resolve_team(target_user_id)
    if manager_id in subtree:
        raise ValueError("A member cannot be managed by someone in their own team")


async def get_join_request_status(db: AsyncSession, user_id: str) -> Dict[str, Any]:
    """Get the caller's own profile, if any, and the admins they can ask to join."""
    result = await db.execute(
        select(RecruiterProfile).where(RecruiterProfile.user_id == user_id)
    )
    own = result.scalar_one_or_none()

    result = await db.execute(
        select(RecruiterProfile)
        .where(
            RecruiterProfile.role == MembershipRole.ADMIN,
            RecruiterProfile.is_active.is_(True),
        )
        .order_by(RecruiterProfile.name.asc(), RecruiterProfile.user_id.asc())
    )
    return {"request": own, "admins": list(result.scalars().all())}


async def submit_join_request(
    db: AsyncSession,
    user_id: str,
    request: JoinRequestCreate,
) -> RecruiterProfile:
    """
    Create or refresh the caller's join request.

    The ADMIN role needs no approval and makes the caller a root admin.
    Other roles stay inactive until an admin approves; the request is
    addressed to ``admin_id`` or, without one, left open to every admin.

    Raises:
        ValueError: If the caller is already active or was removed from a team
        ResourceNotFound: If the chosen admin is missing or not an active admin
    """
    result = await db.execute(
        select(RecruiterProfile).where(RecruiterProfile.user_id == user_id)
    )
    profile = result.scalar_one_or_none()

    if profile is not None and profile.is_active:
        raise ValueError("You already have an active recruiter profile")
    if profile is not None and profile.deactivated_at is not None:
        raise ValueError("Your membership was deactivated; ask your manager to re-activate it")

    is_admin_role = request.role == MembershipRole.ADMIN
    admin_id = None if is_admin_role else request.admin_id

    if admin_id is not None:
        result = await db.execute(
            select(RecruiterProfile).where(
                RecruiterProfile.user_id == admin_id,
                RecruiterProfile.role == MembershipRole.ADMIN,
                RecruiterProfile.is_active.is_(True),
            )
        )
        if result.scalar_one_or_none() is None:
            raise ResourceNotFound("Admin", admin_id)

    if profile is None:
        profile = RecruiterProfile(user_id=user_id)
        db.add(profile)

    profile.role = request.role
    profile.department = request.department
    profile.admin_id = admin_id
    profile.is_active = is_admin_role

    if is_admin_role:
        db.add(
            Notification(
                title="Admin Access Granted",
                message=(
                    "Welcome! You have been granted admin access to the recruiting "
                    "platform. You can now manage team members and access all features."
                ),
                type=NotificationType.SUCCESS,
                receiver_id=user_id,
            )
        )
    else:
        if admin_id is not None:
            text = (
                f"{profile.name or user_id} has requested to join your recruiting team "
                f"as a {request.role.value}."
            )
            if request.message:
                text += f' Message: "{request.message}"'
            db.add(
                Notification(
                    title="New Team Access Request",
                    message=text,
                    type=NotificationType.APPROVAL_REQUEST,
                    receiver_id=admin_id,
                    sender_id=user_id,
                )
            )
        db.add(
            Notification(
                title="Access Request Submitted",
                message=(
                    "Your request to join the recruiting team has been submitted. "
                    "You will be notified once an admin approves it."
                ),
                type=NotificationType.INFO,
                receiver_id=user_id,
            )
        )

    await db.commit()
    await db.refresh(profile)

    logger.info(
        f"User {user_id} submitted a join request as {request.role.value}"
        f"{f' to admin {admin_id}' if admin_id else ''}"
    )
    return profile
