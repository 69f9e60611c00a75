"""
Transfer Request Models

Database model for student transfer requests.
"""

import enum
import uuid
from datetime import date, datetime

from sqlalchemy import Date, DateTime, Enum, Index, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class TransferRequestStatus(str, enum.Enum):
    """Status of a transfer request."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class TransferRequest(Base):
    """
    A student's request to transfer from their school to another.

    Created by the student in pending state and decided by a director
    of the origin school.
    """

    __tablename__ = "transfer_requests"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # Public 8-character code shown to the student
    reference: Mapped[str] = mapped_column(String(8), nullable=False)

    origin_school: Mapped[str] = mapped_column(String(200), nullable=False)
    destination_school: Mapped[str] = mapped_column(String(200), nullable=False)

    # Requester snapshot taken from the student's profile
    requester_name: Mapped[str] = mapped_column(String(200), nullable=False)
    class_name: Mapped[str] = mapped_column(String(20), nullable=False, default="")
    grade: Mapped[str] = mapped_column(String(20), nullable=False, default="")
    national_id: Mapped[str] = mapped_column(String(30), nullable=False, default="")

    reason: Mapped[str] = mapped_column(Text, nullable=False)
    request_date: Mapped[date] = mapped_column(Date, nullable=False)

    status: Mapped[TransferRequestStatus] = mapped_column(
        Enum(TransferRequestStatus, name="transfer_request_status"),
        nullable=False,
        default=TransferRequestStatus.PENDING,
    )

    requested_by: Mapped[str] = mapped_column(String(100), nullable=False)
    decided_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    decided_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    decision_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Audit timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __table_args__ = (
        Index("ix_transfer_requests_reference", "reference", unique=True),
        Index("ix_transfer_requests_origin_school", "origin_school"),
        Index("ix_transfer_requests_requested_by", "requested_by"),
        Index("ix_transfer_requests_status", "status"),
    )
