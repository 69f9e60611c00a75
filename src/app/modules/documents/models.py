"""
Transfer Document Models

Database model for issued school transfer documents.
Each row is one document, keyed publicly by its short identifier.
"""

import enum
import uuid
from datetime import date, datetime

from sqlalchemy import JSON, Date, DateTime, Enum, Index, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base
from app.modules.documents.integrity import encode_qr_payload


class AcademicTrack(str, enum.Enum):
    """Academic track of a student."""

    PRIMARY = "primary"
    SECONDARY = "secondary"


class IssuedDocument(Base):
    """
    A transfer document issued by a school director.

    The embedded student data is stored exactly as it was hashed at
    issuance; the digest column must match a recomputation over
    (student, issue_date, short_id) for the document to be authentic.
    """

    __tablename__ = "issued_documents"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    short_id: Mapped[str] = mapped_column(String(8), nullable=False)

    # Canonical student mapping (browser-app keys, insertion order preserved)
    student: Mapped[dict] = mapped_column(JSON, nullable=False)

    issue_date: Mapped[date] = mapped_column(Date, nullable=False)
    origin_school: Mapped[str] = mapped_column(String(200), nullable=False)
    origin_city: Mapped[str] = mapped_column(String(100), nullable=False)
    academic_track: Mapped[AcademicTrack] = mapped_column(
        Enum(AcademicTrack, name="academic_track"), nullable=False
    )
    digest: Mapped[str] = mapped_column(String(64), nullable=False)

    issued_by: Mapped[str | None] = mapped_column(String(100), nullable=True)

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
        Index("ix_issued_documents_short_id", "short_id", unique=True),
        Index("ix_issued_documents_origin_school", "origin_school"),
    )

    @property
    def qr_payload(self) -> str:
        """Verification string printed as a QR code on the document."""
        return encode_qr_payload(self.short_id, self.digest)
