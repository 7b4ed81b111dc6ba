"""
Time entry endpoints.

Recruiters log hours; the nearest available admin above them reviews.
"""

from datetime import date
from typing import Annotated, Optional

from fastapi import APIRouter, Body, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.dependencies import (
    get_escalation_router,
    require_active_membership,
    require_admin_membership,
)
from api.schemas.time_entries import (
    BulkTimeEntryRequest,
    MessageResponse,
    PendingTimeEntriesResponse,
    ReviewRequest,
    ReviewResponse,
    TimeEntryItem,
    TimeEntryListResponse,
    TimeEntrySubmission,
    TimeEntrySubmissionResponse,
    TimeEntryUpdateResponse,
)
from api.services import time_entries as time_entry_service
from core.config import settings
from core.hierarchy import EscalationRouter, Membership
from database.engine import get_db

router = APIRouter(prefix="/time-entries", tags=["time-entries"])


@router.get(
    "",
    response_model=TimeEntryListResponse,
    summary="List My Time Entries",
)
async def list_time_entries(
    start_date: Optional[date] = Query(None, description="Earliest date (inclusive)"),
    end_date: Optional[date] = Query(None, description="Latest date (inclusive)"),
    membership: Membership = Depends(require_active_membership),
    db: AsyncSession = Depends(get_db),
):
    return await time_entry_service.list_own_entries(
        db, membership.user_id, start_date=start_date, end_date=end_date
    )


@router.post(
    "",
    response_model=TimeEntrySubmissionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit Time Entries",
    description=(
        "Log hours for one day (kind=single) or many (kind=bulk). The approval "
        "request goes to the nearest active admin above the caller."
    ),
)
async def submit_time_entries(
    submission: Annotated[TimeEntrySubmission, Body(discriminator="kind")],
    membership: Membership = Depends(require_active_membership),
    escalation: EscalationRouter = Depends(get_escalation_router),
    db: AsyncSession = Depends(get_db),
):
    is_bulk = isinstance(submission, BulkTimeEntryRequest)
    items = submission.entries if is_bulk else [submission]

    result = await time_entry_service.submit_entries(
        db,
        escalation,
        membership,
        items,
        max_hours=settings.max_hours_per_entry,
        is_bulk=is_bulk,
    )

    created = result["created"]
    target = result["approver"]
    message = f"Created {len(created)} time entr{'y' if len(created) == 1 else 'ies'}"
    if target is not None and target.escalated:
        message += f" (escalated to level {target.level} manager)"

    return TimeEntrySubmissionResponse(
        message=message,
        created=created,
        errors=result["errors"],
        approver=(
            {"manager_id": target.manager_id, "level": target.level, "escalated": target.escalated}
            if target is not None
            else None
        ),
    )


@router.get(
    "/pending",
    response_model=PendingTimeEntriesResponse,
    summary="List Pending Approvals",
    description="Pending entries from direct reports and escalated submitters. Requires admin.",
)
async def list_pending_time_entries(
    membership: Membership = Depends(require_admin_membership),
    escalation: EscalationRouter = Depends(get_escalation_router),
    db: AsyncSession = Depends(get_db),
):
    return await time_entry_service.list_pending_for_manager(
        db, escalation, membership.user_id
    )


@router.put(
    "/{entry_id}/review",
    response_model=ReviewResponse,
    summary="Review Time Entry",
    description="Approve or reject a pending entry the caller is allowed to approve.",
)
async def review_time_entry(
    review: ReviewRequest,
    entry_id: str = Path(..., description="Time entry id"),
    membership: Membership = Depends(require_active_membership),
    escalation: EscalationRouter = Depends(get_escalation_router),
    db: AsyncSession = Depends(get_db),
):
    result = await time_entry_service.review_entry(
        db,
        escalation,
        membership.user_id,
        entry_id,
        review.status,
        comments=review.comments,
    )
    message = f"Time entry {review.status.lower()} successfully"
    if result["is_escalated"]:
        message += " (escalated approval)"
    return ReviewResponse(
        message=message,
        entry=result["entry"],
        is_escalated=result["is_escalated"],
    )


@router.put(
    "/{entry_id}",
    response_model=TimeEntryUpdateResponse,
    summary="Edit Time Entry",
    description="Edit one of the caller's rejected entries and resubmit it for approval.",
)
async def update_time_entry(
    item: TimeEntryItem,
    entry_id: str = Path(..., description="Time entry id"),
    membership: Membership = Depends(require_active_membership),
    escalation: EscalationRouter = Depends(get_escalation_router),
    db: AsyncSession = Depends(get_db),
):
    result = await time_entry_service.update_entry(
        db,
        escalation,
        membership,
        entry_id,
        item,
        max_hours=settings.max_hours_per_entry,
    )
    target = result["approver"]
    return TimeEntryUpdateResponse(
        message="Time entry updated successfully",
        entry=result["entry"],
        approver=(
            {"manager_id": target.manager_id, "level": target.level, "escalated": target.escalated}
            if target is not None
            else None
        ),
    )


@router.delete(
    "/{entry_id}",
    response_model=MessageResponse,
    summary="Delete Time Entry",
    description="Delete one of the caller's entries that hasn't been approved.",
)
async def delete_time_entry(
    entry_id: str = Path(..., description="Time entry id"),
    membership: Membership = Depends(require_active_membership),
    db: AsyncSession = Depends(get_db),
):
    await time_entry_service.delete_entry(db, membership.user_id, entry_id)
    return MessageResponse(message="Time entry deleted successfully")
