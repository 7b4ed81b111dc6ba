"""
Candidate endpoints.

Listing is limited to candidates owned by the caller's visible team; bulk
operations are all-or-nothing.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import (
    get_access_authority,
    require_active_membership,
    require_admin_membership,
)
from api.schemas.candidates import (
    BulkOperationsRequest,
    BulkOperationsResponse,
    CandidateResponse,
)
from api.schemas.common import PaginatedResponse, PaginationParams
from api.services import candidates as candidate_service
from core.hierarchy import AccessAuthority, Membership
from database.engine import get_db
from database.models.candidates import CandidateStatus

router = APIRouter(prefix="/candidates", tags=["candidates"])


@router.get(
    "",
    response_model=PaginatedResponse[CandidateResponse],
    summary="List Candidates",
    description="Candidates added by anyone in the caller's team.",
)
async def list_candidates(
    status: Optional[CandidateStatus] = Query(None, description="Filter by status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    membership: Membership = Depends(require_active_membership),
    authority: AccessAuthority = Depends(get_access_authority),
    db: AsyncSession = Depends(get_db),
):
    """Retrieve a paginated list of visible candidates."""
    pagination = PaginationParams(page=page, page_size=page_size)
    scope = await authority.visible_owner_ids(membership.user_id)

    items, total = await candidate_service.list_candidates(
        db,
        scope,
        status=status,
        limit=pagination.page_size,
        offset=pagination.offset,
    )
    return PaginatedResponse[CandidateResponse].create(
        items=[CandidateResponse.model_validate(c) for c in items],
        total=total,
        pagination=pagination,
    )


@router.post(
    "/bulk",
    response_model=BulkOperationsResponse,
    summary="Bulk Candidate Operations",
    description=(
        "Update status, transfer ownership or delete candidates in one batch. "
        "Rejected as a whole if any candidate is outside the caller's team. Requires admin."
    ),
)
async def bulk_operations(
    request: BulkOperationsRequest,
    membership: Membership = Depends(require_admin_membership),
    authority: AccessAuthority = Depends(get_access_authority),
    db: AsyncSession = Depends(get_db),
):
    results = await candidate_service.apply_bulk_operations(
        db, authority, membership.user_id, request.operations
    )
    return BulkOperationsResponse(
        message=f"Completed {len(results)} bulk operations",
        results=results,
        success_count=len(results),
    )
