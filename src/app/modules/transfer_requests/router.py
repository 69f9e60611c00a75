"""
Transfer Requests Router

Endpoints:
- POST /transfer-requests - Submit a transfer request (student)
- GET /transfer-requests/schools - Schools accepted as a destination
- GET /transfer-requests - List visible requests (optional status filter and search)
- GET /transfer-requests/summary - Counts per status
- POST /transfer-requests/{id}/approve - Approve (origin school director)
- POST /transfer-requests/{id}/reject - Reject (origin school director)
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import Actor, get_current_actor, get_current_director, get_current_student
from app.core.database import get_db
from app.modules.transfer_requests import service
from app.modules.transfer_requests.models import TransferRequestStatus
from app.modules.transfer_requests.schemas import (
    SYSTEM_SCHOOLS,
    SchoolListResponse,
    TransferDecisionRequest,
    TransferRequestCreate,
    TransferRequestListResponse,
    TransferRequestResponse,
    TransferRequestSummary,
)
from app.modules.transfer_requests.service import TransferRequestServiceError

logger = logging.getLogger(__name__)

router = APIRouter()


def _service_error(e: TransferRequestServiceError) -> HTTPException:
    logger.warning(f"Transfer request service error: {e.message}")
    return HTTPException(
        status_code=e.status_code,
        detail={"error": e.error_code, "message": e.message},
    )


@router.post(
    "",
    response_model=TransferRequestResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit Transfer Request",
    responses={
        400: {"description": "Destination is the current school"},
        403: {"description": "Actor is not a student"},
    },
)
async def submit_request(
    data: TransferRequestCreate,
    student: Actor = Depends(get_current_student),
    db: AsyncSession = Depends(get_db),
) -> TransferRequestResponse:
    """Submit a request to transfer from the student's school to another."""
    try:
        return await service.submit_request(db, student, data)
    except TransferRequestServiceError as e:
        raise _service_error(e) from e


@router.get("/schools", response_model=SchoolListResponse, summary="List Destination Schools")
async def list_schools() -> SchoolListResponse:
    """Schools of the network a student can request a transfer to."""
    return SchoolListResponse(schools=list(SYSTEM_SCHOOLS))


@router.get("", response_model=TransferRequestListResponse, summary="List Transfer Requests")
async def list_requests(
    status_filter: TransferRequestStatus | None = Query(None, alias="status"),
    search: str | None = Query(
        None, max_length=100, description="Reference, destination, reason or student name"
    ),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
) -> TransferRequestListResponse:
    """Students see their own requests; directors see requests leaving their school."""
    return await service.list_requests(db, actor, status=status_filter, search=search)


@router.get("/summary", response_model=TransferRequestSummary, summary="Transfer Request Summary")
async def request_summary(
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
) -> TransferRequestSummary:
    return await service.get_request_summary(db, actor)


async def _decide(
    request_id: UUID,
    approve: bool,
    data: TransferDecisionRequest | None,
    director: Actor,
    db: AsyncSession,
) -> TransferRequestResponse:
    try:
        return await service.decide_request(
            db,
            director,
            request_id,
            approve=approve,
            reason=data.reason if data else None,
        )
    except TransferRequestServiceError as e:
        raise _service_error(e) from e


@router.post(
    "/{request_id}/approve",
    response_model=TransferRequestResponse,
    summary="Approve Transfer Request",
    responses={
        403: {"description": "Director of another school"},
        404: {"description": "Request not found"},
        409: {"description": "Request already decided"},
    },
)
async def approve_request(
    request_id: UUID,
    data: TransferDecisionRequest | None = Body(None),
    director: Actor = Depends(get_current_director),
    db: AsyncSession = Depends(get_db),
) -> TransferRequestResponse:
    return await _decide(request_id, True, data, director, db)


@router.post(
    "/{request_id}/reject",
    response_model=TransferRequestResponse,
    summary="Reject Transfer Request",
    responses={
        403: {"description": "Director of another school"},
        404: {"description": "Request not found"},
        409: {"description": "Request already decided"},
    },
)
async def reject_request(
    request_id: UUID,
    data: TransferDecisionRequest | None = Body(None),
    director: Actor = Depends(get_current_director),
    db: AsyncSession = Depends(get_db),
) -> TransferRequestResponse:
    return await _decide(request_id, False, data, director, db)
