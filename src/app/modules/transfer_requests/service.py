"""
Transfer Requests Service Layer

Business logic for student transfer requests.

This module implements:
1. Submission (students):
   - Origin school and student details are taken from the profile
   - The destination must differ from the origin school
   - The origin school is notified

2. Listing:
   - Students see their own requests
   - Directors see requests leaving their school
   - Optional status filter, text search and per-status summary

3. Decision (directors of the origin school):
   - pending -> approved | rejected, guarded by the repository state machine
   - The requesting student is notified
"""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import Actor
from app.modules.documents.integrity import generate_short_id
from app.modules.notifications import service as notifications
from app.modules.transfer_requests import repository
from app.modules.transfer_requests.models import TransferRequest, TransferRequestStatus
from app.modules.transfer_requests.repository import InvalidStatusTransitionError
from app.modules.transfer_requests.schemas import (
    TransferRequestCreate,
    TransferRequestListResponse,
    TransferRequestResponse,
    TransferRequestSummary,
)

logger = logging.getLogger(__name__)

MAX_REFERENCE_ATTEMPTS = 10


class TransferRequestServiceError(Exception):
    """Base exception for transfer request service errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class TransferRequestNotFoundError(TransferRequestServiceError):
    """Raised when a transfer request is not found."""

    def __init__(self, request_id: UUID | None = None):
        message = (
            f"Transfer request {request_id} not found" if request_id else "Transfer request not found"
        )
        super().__init__(
            message=message,
            error_code="TRANSFER_REQUEST_NOT_FOUND",
            status_code=404,
        )


class SameSchoolTransferError(TransferRequestServiceError):
    """Raised when the destination is the student's current school."""

    def __init__(self):
        super().__init__(
            message="The destination school must differ from your current school.",
            error_code="SAME_SCHOOL_TRANSFER",
            status_code=400,
        )


class TransferRequestAccessDeniedError(TransferRequestServiceError):
    """Raised when a director decides a request of another school."""

    def __init__(self):
        super().__init__(
            message="Only the origin school can decide this request.",
            error_code="TRANSFER_REQUEST_ACCESS_DENIED",
            status_code=403,
        )


class RequestAlreadyDecidedError(TransferRequestServiceError):
    """Raised when a request is no longer pending."""

    def __init__(self, current_status: TransferRequestStatus):
        super().__init__(
            message=f"This request has already been {current_status.value}.",
            error_code="REQUEST_ALREADY_DECIDED",
            status_code=409,
        )


class ReferenceGenerationError(TransferRequestServiceError):
    """Raised when no free request reference was found."""

    def __init__(self):
        super().__init__(
            message="Could not allocate a request reference. Please try again.",
            error_code="REFERENCE_EXHAUSTED",
            status_code=503,
        )


async def _allocate_reference(db: AsyncSession) -> str:
    for _ in range(MAX_REFERENCE_ATTEMPTS):
        reference = generate_short_id()
        if not await repository.reference_exists(db, reference):
            return reference
    raise ReferenceGenerationError()


async def submit_request(
    db: AsyncSession, actor: Actor, data: TransferRequestCreate
) -> TransferRequestResponse:
    """
    Submit a transfer request on behalf of a student.

    Raises:
        SameSchoolTransferError: If the destination is the current school
        ReferenceGenerationError: If no free reference could be allocated
    """
    if data.destination_school.casefold() == actor.school.casefold():
        raise SameSchoolTransferError()

    reference = await _allocate_reference(db)

    request = await repository.create(
        db,
        reference=reference,
        origin_school=actor.school,
        destination_school=data.destination_school,
        requester_name=actor.name,
        class_name=actor.class_name or "",
        grade=actor.grade or "",
        national_id=actor.national_id or "",
        reason=data.reason,
        requested_by=actor.id,
    )

    logger.info(f"Transfer request {reference} submitted from {actor.school}")

    await notifications.notify_request_submitted(
        db,
        origin_school=request.origin_school,
        student_name=request.requester_name,
        destination_school=request.destination_school,
        reference=reference,
    )

    return TransferRequestResponse.model_validate(request)


async def _visible_requests(
    db: AsyncSession,
    actor: Actor,
    status: TransferRequestStatus | None = None,
    search: str | None = None,
) -> list[TransferRequest]:
    if actor.is_director:
        return await repository.list_by_origin_school(
            db, actor.school, status=status, search=search
        )
    return await repository.list_by_requester(db, actor.id, status=status, search=search)


async def list_requests(
    db: AsyncSession,
    actor: Actor,
    status: TransferRequestStatus | None = None,
    search: str | None = None,
) -> TransferRequestListResponse:
    requests = await _visible_requests(db, actor, status=status, search=search)
    return TransferRequestListResponse(
        requests=[TransferRequestResponse.model_validate(r) for r in requests],
        total=len(requests),
    )


async def get_request_summary(db: AsyncSession, actor: Actor) -> TransferRequestSummary:
    requests = await _visible_requests(db, actor)
    counts = {status: 0 for status in TransferRequestStatus}
    for request in requests:
        counts[request.status] += 1

    return TransferRequestSummary(
        total=len(requests),
        pending=counts[TransferRequestStatus.PENDING],
        approved=counts[TransferRequestStatus.APPROVED],
        rejected=counts[TransferRequestStatus.REJECTED],
    )


async def decide_request(
    db: AsyncSession,
    actor: Actor,
    request_id: UUID,
    *,
    approve: bool,
    reason: str | None = None,
) -> TransferRequestResponse:
    """
    Approve or reject a pending request.

    Raises:
        TransferRequestNotFoundError: If the request does not exist
        TransferRequestAccessDeniedError: If the director is from another school
        RequestAlreadyDecidedError: If the request is not pending
    """
    request = await repository.get_by_id(db, request_id)
    if request is None:
        raise TransferRequestNotFoundError(request_id)

    if request.origin_school != actor.school:
        logger.warning(f"{actor} tried to decide request {request.reference}")
        raise TransferRequestAccessDeniedError()

    new_status = TransferRequestStatus.APPROVED if approve else TransferRequestStatus.REJECTED

    try:
        request = await repository.update_status(
            db,
            request_id,
            new_status,
            decided_by=actor.id,
            decision_reason=reason,
        )
    except InvalidStatusTransitionError as e:
        logger.warning(str(e))
        raise RequestAlreadyDecidedError(e.current_status) from e

    logger.info(f"Transfer request {request.reference} {new_status.value} by {actor}")

    await notifications.notify_request_decided(
        db,
        student_id=request.requested_by,
        director_name=actor.name,
        destination_school=request.destination_school,
        reference=request.reference,
        approved=approve,
    )

    return TransferRequestResponse.model_validate(request)
