"""
Transfer Request Repository

Database operations for transfer requests, including the status state
machine that guards every status change.
"""

from datetime import UTC, date, datetime
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import TransferRequest, TransferRequestStatus


async def create(
    db: AsyncSession,
    *,
    reference: str,
    origin_school: str,
    destination_school: str,
    requester_name: str,
    class_name: str,
    grade: str,
    national_id: str,
    reason: str,
    requested_by: str,
    request_date: date | None = None,
) -> TransferRequest:
    """Create a pending transfer request."""
    request = TransferRequest(
        reference=reference,
        origin_school=origin_school,
        destination_school=destination_school,
        requester_name=requester_name,
        class_name=class_name,
        grade=grade,
        national_id=national_id,
        reason=reason,
        request_date=request_date or date.today(),
        status=TransferRequestStatus.PENDING,
        requested_by=requested_by,
    )

    db.add(request)
    await db.commit()
    await db.refresh(request)

    return request


async def get_by_id(db: AsyncSession, id: UUID) -> TransferRequest | None:
    """Get request by ID."""
    return await db.get(TransferRequest, id)


async def reference_exists(db: AsyncSession, reference: str) -> bool:
    result = await db.execute(
        select(func.count())
        .select_from(TransferRequest)
        .where(TransferRequest.reference == reference)
    )
    return result.scalar_one() > 0


async def list_by_requester(
    db: AsyncSession,
    requested_by: str,
    status: TransferRequestStatus | None = None,
    search: str | None = None,
) -> list[TransferRequest]:
    """A student's own requests, newest first."""
    query = select(TransferRequest).where(TransferRequest.requested_by == requested_by)
    return await _list(db, query, status, search)


async def list_by_origin_school(
    db: AsyncSession,
    school: str,
    status: TransferRequestStatus | None = None,
    search: str | None = None,
) -> list[TransferRequest]:
    """Requests leaving a school, newest first."""
    query = select(TransferRequest).where(TransferRequest.origin_school == school)
    return await _list(db, query, status, search)


async def _list(
    db: AsyncSession,
    query: Select,
    status: TransferRequestStatus | None,
    search: str | None,
) -> list[TransferRequest]:
    """
    Apply the status filter and the text search to a listing query.

    ``search`` is a case-insensitive substring match on reference,
    destination school, reason or requester name.
    """
    if status is not None:
        query = query.where(TransferRequest.status == status)

    result = await db.execute(query.order_by(TransferRequest.created_at.desc()))
    requests = list(result.scalars().all())

    if not search:
        return requests

    needle = search.strip().lower()
    return [request for request in requests if _matches(request, needle)]


def _matches(request: TransferRequest, needle: str) -> bool:
    return any(
        needle in value.lower()
        for value in (
            request.reference,
            request.destination_school,
            request.reason,
            request.requester_name,
        )
    )


# Valid status transitions - a request is decided exactly once
VALID_STATUS_TRANSITIONS: dict[TransferRequestStatus, set[TransferRequestStatus]] = {
    TransferRequestStatus.PENDING: {
        TransferRequestStatus.APPROVED,
        TransferRequestStatus.REJECTED,
    },
    # Terminal states - no transitions allowed
    TransferRequestStatus.APPROVED: set(),
    TransferRequestStatus.REJECTED: set(),
}


class InvalidStatusTransitionError(ValueError):
    """Raised when an invalid status transition is attempted."""

    def __init__(
        self,
        current_status: TransferRequestStatus,
        new_status: TransferRequestStatus,
    ):
        self.current_status = current_status
        self.new_status = new_status
        valid_transitions = VALID_STATUS_TRANSITIONS.get(current_status, set())
        super().__init__(
            f"Invalid status transition: {current_status.value} -> {new_status.value}. "
            f"Valid transitions: {sorted(s.value for s in valid_transitions)}"
        )


async def update_status(
    db: AsyncSession,
    id: UUID,
    status: TransferRequestStatus,
    *,
    decided_by: str | None = None,
    decision_reason: str | None = None,
) -> TransferRequest:
    """
    Move a request to a new status.

    Raises:
        ValueError: If request not found
        InvalidStatusTransitionError: If the transition is not allowed
    """
    request = await get_by_id(db, id)
    if not request:
        raise ValueError(f"Transfer request {id} not found")

    if status not in VALID_STATUS_TRANSITIONS.get(request.status, set()):
        raise InvalidStatusTransitionError(request.status, status)

    request.status = status
    request.decided_by = decided_by
    request.decided_at = datetime.now(UTC)
    request.decision_reason = decision_reason

    await db.commit()
    await db.refresh(request)

    return request
