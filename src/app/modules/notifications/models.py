"""
Notification Models

In-app notifications addressed to a school (directors) or to a student.
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, Index, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class NotificationType(str, enum.Enum):
    """What triggered a notification."""

    REQUEST = "request"
    ISSUANCE = "issuance"
    APPROVAL = "approval"


class Notification(Base):
    """
    A notification for one recipient.

    ``recipient`` is a school name for directors and an actor id for students.
    """

    __tablename__ = "notifications"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    notification_type: Mapped[NotificationType] = mapped_column(
        Enum(NotificationType, name="notification_type"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)

    recipient: Mapped[str] = mapped_column(String(200), nullable=False)
    sender: Mapped[str] = mapped_column(String(200), nullable=False)

    # Optional link to an issued document
    document_short_id: Mapped[str | None] = mapped_column(String(8), nullable=True)
    qr_payload: Mapped[str | None] = mapped_column(String(100), nullable=True)

    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (Index("ix_notifications_recipient", "recipient"),)
