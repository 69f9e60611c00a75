"""
Transfer Document Schemas

Pydantic schemas for request validation and response serialization.
"""

import enum
from datetime import date, datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.modules.documents.models import AcademicTrack


class Subject(BaseModel):
    key: str
    label: str


SUBJECTS_BY_TRACK: dict[AcademicTrack, list[Subject]] = {
    AcademicTrack.PRIMARY: [
        Subject(key="matematica", label="Matemática"),
        Subject(key="portugues", label="Português"),
        Subject(key="ciencias_naturais", label="Ciências Naturais"),
        Subject(key="ciencias_sociais", label="Ciências Sociais"),
        Subject(key="ingles", label="Inglês"),
        Subject(key="ed_moral_civica", label="Ed Moral Cívica"),
        Subject(key="oficios", label="Ofícios"),
        Subject(key="ed_visual", label="Ed Visual"),
        Subject(key="ed_fisica", label="Ed Física"),
    ],
    AcademicTrack.SECONDARY: [
        Subject(key="matematica", label="Matemática"),
        Subject(key="portugues", label="Português"),
        Subject(key="fisica", label="Física"),
        Subject(key="ed_visual", label="Ed Visual"),
        Subject(key="biologia", label="Biologia"),
        Subject(key="quimica", label="Química"),
        Subject(key="historia", label="História"),
        Subject(key="ingles", label="Inglês"),
        Subject(key="filosofia", label="Filosofia"),
        Subject(key="empreendedorismo", label="Empreendedorismo"),
        Subject(key="ed_fisica", label="Ed Física"),
        Subject(key="tics", label="TICS"),
    ],
}


class SubjectListResponse(BaseModel):
    """Subjects graded on a transfer document, per academic track."""

    tracks: dict[AcademicTrack, list[Subject]]


class StudentRecord(BaseModel):
    """Student data embedded (and hashed) in a transfer document."""

    model_config = ConfigDict(frozen=True)

    full_name: str = Field(..., min_length=1, max_length=200)
    national_id: str = Field(..., min_length=1, max_length=30)
    enrollment_date: date
    grade_level: str = Field(..., min_length=1, max_length=20)
    academic_track: AcademicTrack
    grades: dict[str, str] = Field(default_factory=dict)
    remarks: str = Field("", max_length=2000)

    @field_validator("full_name", "national_id", "grade_level", mode="before")
    @classmethod
    def strip_required_text(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip()
        return value

    @field_validator("grades")
    @classmethod
    def validate_scores(cls, grades: dict[str, str]) -> dict[str, str]:
        for subject, score in grades.items():
            if len(score) > 5:
                raise ValueError(f"Score for '{subject}' is too long")
        return grades

    @model_validator(mode="after")
    def validate_subjects(self) -> "StudentRecord":
        """Grade keys must belong to the student's track."""
        allowed = {subject.key for subject in SUBJECTS_BY_TRACK[self.academic_track]}
        unknown = sorted(set(self.grades) - allowed)
        if unknown:
            raise ValueError(
                f"Unknown subjects for {self.academic_track.value} track: {', '.join(unknown)}"
            )
        return self

    def to_canonical(self) -> dict[str, Any]:
        """
        Mapping persisted in the store and covered by the digest.

        Key order is significant; see integrity.STUDENT_KEY_ORDER.
        """
        return {
            "nomeCompleto": self.full_name,
            "numeroBi": self.national_id,
            "dataMatricula": self.enrollment_date.isoformat(),
            "classe": self.grade_level,
            "nivelAcademico": self.academic_track.value,
            "notas": dict(self.grades),
            "observacoes": self.remarks,
        }

    @classmethod
    def from_canonical(cls, data: dict[str, Any]) -> "StudentRecord":
        """
        Rebuild a StudentRecord from its stored mapping.

        Raises:
            pydantic.ValidationError: If the stored mapping is malformed
        """
        return cls.model_validate(
            {
                "full_name": data.get("nomeCompleto"),
                "national_id": data.get("numeroBi"),
                "enrollment_date": data.get("dataMatricula"),
                "grade_level": data.get("classe"),
                "academic_track": data.get("nivelAcademico"),
                "grades": data.get("notas") or {},
                "remarks": data.get("observacoes") or "",
            }
        )


class DocumentIssueRequest(BaseModel):
    """Request body for POST /documents.

    The origin school and city are taken from the issuing director.
    """

    student: StudentRecord


class StudentAmendRequest(BaseModel):
    """Request body for PUT /documents/{short_id}/student."""

    student: StudentRecord


class DocumentRecord(BaseModel):
    """An issued transfer document."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    short_id: str
    student: StudentRecord
    issue_date: date
    origin_school: str
    origin_city: str
    academic_track: AcademicTrack
    digest: str
    qr_payload: str
    issued_by: str | None = None
    created_at: datetime | None = None


class DocumentListResponse(BaseModel):
    documents: list[DocumentRecord]
    total: int


class VerificationStatus(str, enum.Enum):
    """Outcome of a document verification."""

    NOT_FOUND = "not_found"
    VALID = "valid"
    TAMPERED = "tampered"


class VerificationResult(BaseModel):
    """Response of the public verification endpoints.

    ``record`` is present for both valid and tampered documents so the
    verifier can inspect what is stored.
    """

    status: VerificationStatus
    short_id: str
    message: str
    record: DocumentRecord | None = None

    @property
    def is_valid(self) -> bool:
        return self.status == VerificationStatus.VALID


class QRVerifyRequest(BaseModel):
    """Request body for POST /verify/qr."""

    payload: str = Field(..., min_length=1, max_length=200)
