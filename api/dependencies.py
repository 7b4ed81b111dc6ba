"""FastAPI dependencies for dependency injection."""

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from core.config import settings
from core.hierarchy import (
    AccessAuthority,
    EscalationRouter,
    HierarchyResolver,
    Membership,
    MembershipStore,
)
from database.engine import get_db
from database.membership_store import SQLAlchemyMembershipStore


async def get_current_user_id(request: Request) -> str:
    """
    Get the authenticated caller's user id.

    An upstream authentication layer may set ``request.state.user_id``;
    otherwise the trusted identity header is used.
    """
    user_id = getattr(request.state, "user_id", None) or request.headers.get(
        settings.identity_header
    )

    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )

    request.state.user_id = user_id
    return user_id


def get_membership_store(db: AsyncSession = Depends(get_db)) -> MembershipStore:
    """Request-scoped membership store."""
    return SQLAlchemyMembershipStore(db)


def get_hierarchy_resolver(
    store: MembershipStore = Depends(get_membership_store),
) -> HierarchyResolver:
    return HierarchyResolver(store, max_depth=settings.hierarchy_max_depth)


def get_access_authority(
    resolver: HierarchyResolver = Depends(get_hierarchy_resolver),
) -> AccessAuthority:
    return AccessAuthority(resolver)


def get_escalation_router(
    store: MembershipStore = Depends(get_membership_store),
) -> EscalationRouter:
    return EscalationRouter(store, max_hops=settings.escalation_max_hops)


async def require_active_membership(
    user_id: str = Depends(get_current_user_id),
    authority: AccessAuthority = Depends(get_access_authority),
) -> Membership:
    """Require the caller to have an active recruiter membership."""
    return await authority.require_membership(user_id)


async def require_admin_membership(
    user_id: str = Depends(get_current_user_id),
    authority: AccessAuthority = Depends(get_access_authority),
) -> Membership:
    """Require the caller to be an active admin."""
    return await authority.require_admin(user_id)
