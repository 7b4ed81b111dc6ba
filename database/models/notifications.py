"""In-app notification model."""

import uuid
from datetime import datetime

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import (
    String,
    Boolean,
    DateTime,
    Text,
    func,
    Enum as SQLEnum,
)
from enum import Enum as PyEnum

from database.engine import Base


# ==================== Enums ===================== #
class NotificationType(str, PyEnum):
    APPROVAL_REQUEST = "APPROVAL_REQUEST"
    SUCCESS = "SUCCESS"
    WARNING = "WARNING"
    INFO = "INFO"


class Notification(Base):
    __tablename__: str = "notifications"
    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[NotificationType] = mapped_column(
        SQLEnum(NotificationType, native_enum=False, length=30),
        nullable=False,
        default=NotificationType.INFO,
    )
    receiver_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    sender_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
