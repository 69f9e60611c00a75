"""
Transfer Request Schemas

Pydantic schemas for request validation and response serialization.
"""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.modules.transfer_requests.models import TransferRequestStatus

# Schools of the network a student can transfer to
SYSTEM_SCHOOLS: tuple[str, ...] = (
    "Escola Primária São João",
    "Escola Secundária Machel",
    "Escola Técnica de Gaza",
    "Instituto Técnico Moçambicano",
    "Escola Industrial",
    "Escola Comercial Central",
    "Colégio Dom Bosco",
)

_SCHOOLS_BY_KEY = {school.casefold(): school for school in SYSTEM_SCHOOLS}


class SchoolListResponse(BaseModel):
    """Schools accepted as a transfer destination."""

    schools: list[str]


class TransferRequestCreate(BaseModel):
    """Request body for POST /transfer-requests.

    Origin school and student details come from the student's profile.
    """

    destination_school: str = Field(..., min_length=1, max_length=200)
    reason: str = Field(..., min_length=1, max_length=2000)

    @field_validator("destination_school", "reason")
    @classmethod
    def strip_and_require(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("destination_school")
    @classmethod
    def validate_destination(cls, value: str) -> str:
        """Resolve the destination to its registered name, ignoring case."""
        school = _SCHOOLS_BY_KEY.get(value.casefold())
        if school is None:
            raise ValueError(f"Unknown school: {value}")
        return school


class TransferDecisionRequest(BaseModel):
    """Optional body for approve/reject."""

    reason: str | None = Field(None, max_length=2000)


class TransferRequestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    reference: str
    origin_school: str
    destination_school: str
    requester_name: str
    class_name: str
    grade: str
    national_id: str
    reason: str
    request_date: date
    status: TransferRequestStatus
    decided_at: datetime | None = None
    decision_reason: str | None = None


class TransferRequestListResponse(BaseModel):
    requests: list[TransferRequestResponse]
    total: int


class TransferRequestSummary(BaseModel):
    """Request counts per status, as shown on the requests screen."""

    total: int
    pending: int
    approved: int
    rejected: int
