"""
Time entry service functions.

Submissions are routed to the nearest available admin through the
escalation router; reviews are authorized by the same router.
"""

from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Sequence
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.hierarchy import (
    AccessDenied,
    AuthorizationError,
    EscalationRouter,
    EscalationTarget,
    Membership,
    ResourceNotFound,
)
from database.models.notifications import Notification, NotificationType
from database.models.recruiters import RecruiterProfile
from database.models.time_entries import TimeEntry, TimeEntryStatus
from api.schemas.time_entries import TimeEntryItem

logger = logging.getLogger(__name__)

ESCALATION_REASON = "Immediate manager unavailable"


def build_approval_notification(
    submitter_id: str,
    submitter_name: str,
    target: EscalationTarget,
    entries: Sequence[TimeEntry],
    resubmitted: bool = False,
) -> Notification:
    """
    Build the approval request sent to the resolved manager.

    Args:
        submitter_id: User who logged the time
        submitter_name: Display name for the message
        target: Resolved approver
        entries: Newly created entries (one or many)
        resubmitted: The entry was edited after a rejection

    Returns:
        Unsaved Notification
    """
    is_bulk = len(entries) > 1
    noun = "Bulk Time Entries" if is_bulk else "Time Entry"

    if target.escalated:
        title = f"Escalated {noun} for Approval (Level {target.level})"
    elif resubmitted:
        title = f"Updated {noun} for Approval"
    else:
        title = f"New {noun} for Approval"
    verb = "updated and resubmitted" if resubmitted else "submitted"

    if is_bulk:
        total_hours = sum(entry.hours for entry in entries)
        message = (
            f"{submitter_name} {verb} {len(entries)} time entries "
            f"totaling {total_hours:g} hours"
        )
    else:
        entry = entries[0]
        message = f"{submitter_name} {verb} {entry.hours:g} hours for {entry.date.isoformat()}"

    if target.escalated:
        message += ". Escalated to you because immediate manager is unavailable."

    return Notification(
        title=title,
        message=message,
        type=NotificationType.APPROVAL_REQUEST,
        receiver_id=target.manager_id,
        sender_id=submitter_id,
    )


def build_review_notification(
    entry: TimeEntry,
    reviewer_id: str,
    comments: Optional[str],
) -> Notification:
    approved = entry.status == TimeEntryStatus.APPROVED
    summary = f"Your time entry for {entry.date.isoformat()} ({entry.hours:g}h)"

    if approved:
        message = f"{summary} has been approved."
    else:
        message = f"{summary} has been rejected."
        if comments:
            message += f" Reason: {comments}"

    return Notification(
        title="Time Entry Approved" if approved else "Time Entry Rejected",
        message=message,
        type=NotificationType.SUCCESS if approved else NotificationType.WARNING,
        receiver_id=entry.user_id,
        sender_id=reviewer_id,
    )


async def list_own_entries(
    db: AsyncSession,
    user_id: str,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> Dict[str, Any]:
    """List the caller's time entries with hour totals."""
    query = select(TimeEntry).where(TimeEntry.user_id == user_id)
    if start_date:
        query = query.where(TimeEntry.date >= start_date)
    if end_date:
        query = query.where(TimeEntry.date <= end_date)

    result = await db.execute(query.order_by(TimeEntry.date.desc()))
    entries = list(result.scalars().all())

    def hours_with(status: Optional[TimeEntryStatus] = None) -> float:
        return round(
            sum(e.hours for e in entries if status is None or e.status == status), 2
        )

    return {
        "entries": entries,
        "summary": {
            "total_hours": hours_with(),
            "approved_hours": hours_with(TimeEntryStatus.APPROVED),
            "pending_hours": hours_with(TimeEntryStatus.PENDING),
            "entry_count": len(entries),
        },
    }


async def submit_entries(
    db: AsyncSession,
    router: EscalationRouter,
    membership: Membership,
    items: List[TimeEntryItem],
    max_hours: float,
    is_bulk: bool = False,
) -> Dict[str, Any]:
    """
    Create pending time entries and notify the resolved approver.

    A single submission fails as a whole on any invalid item. A bulk
    submission skips invalid items and reports them, failing only when no
    item is valid.

    Raises:
        AuthorizationError: If the submitter is a root admin
        ValueError: If nothing valid remains to be created
    """
    user_id = membership.user_id
    if membership.is_root_admin:
        raise AuthorizationError(
            "Main administrators cannot log time entries. Only approve time for team members.",
            user_id=user_id,
        )

    result = await db.execute(
        select(TimeEntry.date).where(
            TimeEntry.user_id == user_id,
            TimeEntry.date.in_([item.date for item in items]),
        )
    )
    taken_dates = set(result.scalars().all())

    valid: List[TimeEntryItem] = []
    errors: List[str] = []
    for item in items:
        if item.hours > max_hours:
            errors.append(f"Invalid hours for {item.date.isoformat()}: {item.hours:g}")
        elif item.date in taken_dates:
            errors.append(f"Time entry already exists for {item.date.isoformat()}")
        else:
            taken_dates.add(item.date)
            valid.append(item)

    if errors and (not is_bulk or not valid):
        raise ValueError("; ".join(errors))

    target = await router.find_available_manager(user_id)

    entries = [
        TimeEntry(
            user_id=user_id,
            date=item.date,
            hours=item.hours,
            description=item.description,
            project=item.project,
            status=TimeEntryStatus.PENDING,
            is_escalated=bool(target and target.escalated),
            escalation_level=target.level if target else 0,
        )
        for item in valid
    ]
    db.add_all(entries)

    if target is not None:
        name = await _display_name(db, user_id)
        db.add(build_approval_notification(user_id, name, target, entries))
    else:
        logger.warning(f"No approver available for time entries of user {user_id}")

    await db.commit()
    for entry in entries:
        await db.refresh(entry)

    logger.info(f"User {user_id} submitted {len(entries)} time entries")
    return {"created": entries, "errors": errors, "approver": target}


async def list_pending_for_manager(
    db: AsyncSession,
    router: EscalationRouter,
    manager_user_id: str,
) -> Dict[str, Any]:
    """Get pending entries the manager may review, oldest first."""
    submitters = await router.manager_visible_submitters(manager_user_id)

    result = await db.execute(
        select(TimeEntry)
        .where(
            TimeEntry.user_id.in_(sorted(submitters.all_user_ids)),
            TimeEntry.status == TimeEntryStatus.PENDING,
        )
        .order_by(TimeEntry.submitted_at.asc(), TimeEntry.date.asc())
    )
    pending = list(result.scalars().all())

    entries = []
    by_user: Dict[str, Dict[str, Any]] = {}
    for entry in pending:
        escalated = entry.user_id in submitters.escalated_users
        entries.append({
            "id": entry.id,
            "user_id": entry.user_id,
            "date": entry.date,
            "hours": entry.hours,
            "description": entry.description,
            "project": entry.project,
            "status": entry.status,
            "is_escalated": escalated,
            "escalation_level": entry.escalation_level,
            "submitted_at": entry.submitted_at,
            "escalation_reason": ESCALATION_REASON if escalated else None,
        })

        totals = by_user.setdefault(entry.user_id, {
            "user_id": entry.user_id,
            "entry_count": 0,
            "total_hours": 0.0,
            "is_escalated": escalated,
        })
        totals["entry_count"] += 1
        totals["total_hours"] += entry.hours

    return {
        "entries": entries,
        "by_user": list(by_user.values()),
        "summary": {
            "total_pending_hours": round(sum(e.hours for e in pending), 2),
            "entry_count": len(pending),
            "direct_report_count": len(submitters.direct_reports),
            "escalated_user_count": len(submitters.escalated_users),
        },
    }


async def review_entry(
    db: AsyncSession,
    router: EscalationRouter,
    reviewer_user_id: str,
    entry_id: str,
    status: str,
    comments: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Approve or reject a pending entry.

    The status change and the submitter's notification are committed
    together.

    Raises:
        ResourceNotFound: If the entry doesn't exist
        AccessDenied: If the reviewer may not approve for the submitter
        ValueError: If the entry is no longer pending
    """
    result = await db.execute(select(TimeEntry).where(TimeEntry.id == entry_id))
    entry = result.scalar_one_or_none()
    if entry is None:
        raise ResourceNotFound("Time entry", entry_id)

    decision = await router.can_approve(reviewer_user_id, entry.user_id)
    if not decision.can_approve:
        raise AccessDenied(
            "You can only review entries from your direct reports or escalated requests",
            user_id=reviewer_user_id,
            denied_ids=[entry_id],
        )

    if entry.status != TimeEntryStatus.PENDING:
        raise ValueError("Only pending entries can be approved or rejected")

    entry.status = TimeEntryStatus(status)
    entry.reviewed_at = datetime.now(timezone.utc)
    entry.reviewed_by_id = reviewer_user_id
    entry.review_comments = comments
    db.add(build_review_notification(entry, reviewer_user_id, comments))

    await db.commit()
    await db.refresh(entry)

    logger.info(
        f"User {reviewer_user_id} {status.lower()} time entry {entry_id}"
        f"{' (escalated)' if decision.is_escalated else ''}"
    )
    return {"entry": entry, "is_escalated": decision.is_escalated}


async def update_entry(
    db: AsyncSession,
    router: EscalationRouter,
    membership: Membership,
    entry_id: str,
    item: TimeEntryItem,
    max_hours: float,
) -> Dict[str, Any]:
    """
    Edit a rejected entry and send it back for approval.

    The entry returns to PENDING with its review cleared, and is routed
    again through the escalation router since the chain may have changed.

    Raises:
        ResourceNotFound: If the entry doesn't exist
        AccessDenied: If the entry belongs to someone else
        ValueError: If the entry isn't rejected, the hours are out of range,
            or the new date is already taken
    """
    user_id = membership.user_id
    entry = await _own_entry(db, user_id, entry_id, "edit")

    if entry.status != TimeEntryStatus.REJECTED:
        raise ValueError("Cannot edit approved or pending entries")
    if item.hours > max_hours:
        raise ValueError(f"Hours must be a valid number between 0 and {max_hours:g}")

    if item.date != entry.date:
        result = await db.execute(
            select(TimeEntry.id).where(
                TimeEntry.user_id == user_id,
                TimeEntry.date == item.date,
            )
        )
        if result.scalar_one_or_none() is not None:
            raise ValueError(f"Time entry already exists for {item.date.isoformat()}")

    target = await router.find_available_manager(user_id)

    entry.date = item.date
    entry.hours = item.hours
    entry.description = item.description
    entry.project = item.project
    entry.status = TimeEntryStatus.PENDING
    entry.submitted_at = datetime.now(timezone.utc)
    entry.reviewed_at = None
    entry.reviewed_by_id = None
    entry.review_comments = None
    entry.is_escalated = bool(target and target.escalated)
    entry.escalation_level = target.level if target else 0

    if target is not None:
        name = await _display_name(db, user_id)
        db.add(build_approval_notification(user_id, name, target, [entry], resubmitted=True))
    else:
        logger.warning(f"No approver available for resubmitted entry {entry_id}")

    await db.commit()
    await db.refresh(entry)

    logger.info(f"User {user_id} resubmitted time entry {entry_id}")
    return {"entry": entry, "approver": target}


async def delete_entry(db: AsyncSession, user_id: str, entry_id: str) -> None:
    """
    Delete one of the caller's entries that hasn't been approved.

    Raises:
        ResourceNotFound: If the entry doesn't exist
        AccessDenied: If the entry belongs to someone else
        ValueError: If the entry is approved
    """
    entry = await _own_entry(db, user_id, entry_id, "delete")

    if entry.status == TimeEntryStatus.APPROVED:
        raise ValueError("Cannot delete approved entries")

    await db.delete(entry)
    await db.commit()
    logger.info(f"User {user_id} deleted time entry {entry_id}")


async def _own_entry(db: AsyncSession, user_id: str, entry_id: str, verb: str) -> TimeEntry:
    result = await db.execute(select(TimeEntry).where(TimeEntry.id == entry_id))
    entry = result.scalar_one_or_none()
    if entry is None:
        raise ResourceNotFound("Time entry", entry_id)
    if entry.user_id != user_id:
        raise AccessDenied(
            f"You can only {verb} your own time entries",
            user_id=user_id,
            denied_ids=[entry_id],
        )
    return entry


async def _display_name(db: AsyncSession, user_id: str) -> str:
    result = await db.execute(
        select(RecruiterProfile.name).where(RecruiterProfile.user_id == user_id)
    )
    return result.scalar_one_or_none() or user_id
