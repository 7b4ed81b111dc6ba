"""
Candidate Models

Candidates are owned by the recruiter who added them; ownership decides
which team members can see and edit them.
"""

import uuid
from datetime import datetime

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import (
    String,
    DateTime,
    func,
    Enum as SQLEnum,
    Index,
)
from enum import Enum as PyEnum

from database.engine import Base


# ==================== Candidate Enums ===================== #
class CandidateStatus(str, PyEnum):
    """Status of a candidate profile."""

    ACTIVE = "ACTIVE"
    PLACED = "PLACED"
    INACTIVE = "INACTIVE"
    DO_NOT_CONTACT = "DO_NOT_CONTACT"


class Candidate(Base):
    __tablename__: str = "candidates"
    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    status: Mapped[CandidateStatus] = mapped_column(
        SQLEnum(CandidateStatus, native_enum=False, length=30),
        nullable=False,
        default=CandidateStatus.ACTIVE,
    )
    # Owning recruiter's user id
    added_by_id: Mapped[str] = mapped_column(String(36), nullable=False)
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
        Index("idx_candidate_owner_status", "added_by_id", "status"),
    )
