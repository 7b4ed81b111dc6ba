"""
Recruiter profile model.

Each profile is a team membership: an active flag, a role and an optional
link to the admin who manages it. The ``admin_id`` links form the team
hierarchy that ``core.hierarchy`` traverses.
"""

import uuid
from datetime import datetime

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import (
    String,
    Boolean,
    ForeignKey,
    DateTime,
    func,
    Enum as SQLEnum,
    Index,
)

from core.hierarchy.models import Membership, MembershipRole
from database.engine import Base


class RecruiterProfile(Base):
    """A recruiter's membership in an agency team."""

    __tablename__: str = "recruiter_profiles"
    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id: Mapped[str] = mapped_column(String(36), unique=True, nullable=False, index=True)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    department: Mapped[str | None] = mapped_column(String(100), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    role: Mapped[MembershipRole] = mapped_column(
        SQLEnum(MembershipRole, native_enum=False, length=20),
        nullable=False,
        default=MembershipRole.CONTRIBUTOR,
    )
    # Managing admin; null for root admins and unassigned join requests
    admin_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("recruiter_profiles.user_id"), nullable=True
    )
    # Set when an admin removes an approved member; distinguishes them from join requests
    deactivated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    __table_args__ = (
        Index("idx_recruiter_admin_active", "admin_id", "is_active"),
    )

    def to_membership(self) -> Membership:
        return Membership(
            id=self.id,
            user_id=self.user_id,
            is_active=self.is_active,
            role=self.role,
            manager_id=self.admin_id,
        )
