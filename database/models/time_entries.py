"""
Time entry model.

Recruiters log hours per day; each entry waits for approval by the nearest
available admin above the submitter.
"""

import uuid
import datetime

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import (
    String,
    Boolean,
    Date,
    DateTime,
    Float,
    Integer,
    Text,
    func,
    Enum as SQLEnum,
    UniqueConstraint,
)
from enum import Enum as PyEnum

from database.engine import Base


# ==================== Enums ===================== #
class TimeEntryStatus(str, PyEnum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class TimeEntry(Base):
    """Hours logged by a recruiter for a single day."""

    __tablename__: str = "time_entries"
    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    hours: Mapped[float] = mapped_column(Float, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    project: Mapped[str | None] = mapped_column(String(255), nullable=True)
    status: Mapped[TimeEntryStatus] = mapped_column(
        SQLEnum(TimeEntryStatus, native_enum=False, length=20),
        nullable=False,
        default=TimeEntryStatus.PENDING,
        index=True,
    )
    # Set when the approval request skipped an unavailable manager
    is_escalated: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    escalation_level: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    submitted_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    reviewed_at: Mapped[datetime.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    reviewed_by_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    review_comments: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("user_id", "date", name="uq_time_entry_user_date"),
    )
