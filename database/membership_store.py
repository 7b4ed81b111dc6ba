"""SQLAlchemy-backed implementation of the membership store."""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.hierarchy.models import Membership
from database.models.recruiters import RecruiterProfile


class SQLAlchemyMembershipStore:
    """
    Reads recruiter profiles through a request-scoped session.

    Args:
        session: Async session owned by the current request
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_membership(self, user_id: str) -> Optional[Membership]:
        result = await self.session.execute(
            select(RecruiterProfile).where(RecruiterProfile.user_id == user_id)
        )
        profile = result.scalar_one_or_none()
        return profile.to_membership() if profile else None

    async def find_active_reports_of(self, user_id: str) -> list[Membership]:
        result = await self.session.execute(
            select(RecruiterProfile).where(
                RecruiterProfile.admin_id == user_id,
                RecruiterProfile.is_active.is_(True),
            )
        )
        return [profile.to_membership() for profile in result.scalars().all()]

    async def find_active_memberships(self) -> list[Membership]:
        result = await self.session.execute(
            select(RecruiterProfile).where(RecruiterProfile.is_active.is_(True))
        )
        return [profile.to_membership() for profile in result.scalars().all()]
