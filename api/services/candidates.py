"""Candidate service functions."""

from typing import Any, Dict, List, Optional, Tuple
import logging

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.hierarchy import AccessAuthority, AccessDenied, VisibilityScope
from database.models.candidates import Candidate, CandidateStatus
from api.schemas.candidates import (
    BulkDeleteOperation,
    TransferOwnershipOperation,
    UpdateStatusOperation,
)

logger = logging.getLogger(__name__)


def referenced_candidate_ids(operations: List[Any]) -> List[str]:
    """Collect candidate ids touched by a batch, in first-seen order."""
    ids: List[str] = []
    for operation in operations:
        if isinstance(operation, BulkDeleteOperation):
            ids.extend(operation.candidate_ids)
        else:
            ids.append(operation.candidate_id)
    return list(dict.fromkeys(ids))


async def list_candidates(
    db: AsyncSession,
    scope: VisibilityScope,
    status: Optional[CandidateStatus] = None,
    limit: int = 20,
    offset: int = 0,
) -> Tuple[List[Candidate], int]:
    """List candidates owned by anyone in the caller's visible set."""
    query = select(Candidate).where(Candidate.added_by_id.in_(sorted(scope.ids)))
    if status:
        query = query.where(Candidate.status == status)

    total_result = await db.execute(select(func.count()).select_from(query.subquery()))
    total = total_result.scalar() or 0

    result = await db.execute(
        query.order_by(Candidate.created_at.desc(), Candidate.id).limit(limit).offset(offset)
    )
    return list(result.scalars().all()), total


async def apply_bulk_operations(
    db: AsyncSession,
    authority: AccessAuthority,
    caller_user_id: str,
    operations: List[Any],
) -> List[Dict[str, Any]]:
    """
    Apply a batch of candidate operations all-or-nothing.

    Every referenced candidate and every transfer target is checked before
    the first write; one denial rejects the whole batch.

    Raises:
        AccessDenied: Listing every out-of-scope candidate or owner
    """
    candidate_ids = referenced_candidate_ids(operations)

    result = await db.execute(
        select(Candidate.id, Candidate.added_by_id).where(Candidate.id.in_(candidate_ids))
    )
    owners = {row.id: row.added_by_id for row in result.all()}

    await authority.require_all_accessible(candidate_ids, caller_user_id, owners.get)

    scope = await authority.visible_owner_ids(caller_user_id)
    foreign_owners = [
        op.new_owner_id for op in operations
        if isinstance(op, TransferOwnershipOperation) and op.new_owner_id not in scope.ids
    ]
    if foreign_owners:
        raise AccessDenied(
            "Candidates can only be transferred within your team",
            user_id=caller_user_id,
            denied_ids=foreign_owners,
        )

    candidates = {}
    if candidate_ids:
        result = await db.execute(select(Candidate).where(Candidate.id.in_(candidate_ids)))
        candidates = {c.id: c for c in result.scalars().all()}

    results = []
    deleted: set[str] = set()
    for operation in operations:
        if isinstance(operation, UpdateStatusOperation):
            _live(candidates, deleted, operation.candidate_id).status = operation.status
            touched = [operation.candidate_id]
        elif isinstance(operation, TransferOwnershipOperation):
            _live(candidates, deleted, operation.candidate_id).added_by_id = operation.new_owner_id
            touched = [operation.candidate_id]
        else:
            touched = list(dict.fromkeys(operation.candidate_ids))
            for candidate_id in touched:
                _live(candidates, deleted, candidate_id)
            await db.execute(delete(Candidate).where(Candidate.id.in_(touched)))
            deleted.update(touched)

        results.append({"type": operation.type, "candidate_ids": touched, "success": True})

    await db.commit()

    logger.info(
        f"User {caller_user_id} applied {len(results)} bulk operations "
        f"to {len(candidate_ids)} candidates"
    )
    return results


def _live(candidates: Dict[str, Candidate], deleted: set, candidate_id: str) -> Candidate:
    if candidate_id in deleted:
        raise ValueError(f"Candidate {candidate_id} is deleted earlier in the same batch")
    return candidates[candidate_id]
