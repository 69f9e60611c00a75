"""
Transfer Documents Router

Endpoints:
- GET /documents/subjects - Subjects graded per academic track
- POST /documents - Issue a transfer document (director)
- GET /documents - List the director's school documents
- GET /documents/{short_id} - Get one document (issuing director)
- PUT /documents/{short_id}/student - Amend student data (issuing director)
- DELETE /documents/{short_id} - Delete a document (issuing director)

Public verification (no authentication, rate limited per client IP):
- GET /verify/{short_id} - Verify by the 8-character document id
- POST /verify/qr - Verify a scanned QR payload
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import Actor, get_current_director
from app.core.database import get_db
from app.core.rate_limit import client_ip_key, rate_limit
from app.modules.documents import service
from app.modules.documents.schemas import (
    SUBJECTS_BY_TRACK,
    DocumentIssueRequest,
    DocumentListResponse,
    DocumentRecord,
    QRVerifyRequest,
    StudentAmendRequest,
    SubjectListResponse,
    VerificationResult,
)
from app.modules.documents.service import DocumentServiceError

logger = logging.getLogger(__name__)

router = APIRouter()
verify_router = APIRouter()


def _service_error(e: DocumentServiceError) -> HTTPException:
    if e.status_code >= 500:
        logger.error(f"Document service error: {e.message}")
    else:
        logger.warning(f"Document service error: {e.message}")
    return HTTPException(
        status_code=e.status_code,
        detail={"error": e.error_code, "message": e.message},
    )


def _internal_error(e: Exception, action: str) -> HTTPException:
    logger.exception(f"Unexpected error while {action}: {e}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={
            "error": "INTERNAL_ERROR",
            "message": "An unexpected error occurred. Please try again later.",
        },
    )


@router.get("/subjects", response_model=SubjectListResponse, summary="List Graded Subjects")
async def list_subjects() -> SubjectListResponse:
    """Subjects whose grades appear on a transfer document, per track."""
    return SubjectListResponse(tracks=SUBJECTS_BY_TRACK)


@router.post(
    "",
    response_model=DocumentRecord,
    status_code=status.HTTP_201_CREATED,
    summary="Issue Transfer Document",
    description="""
Issue a transfer document for a student of the director's school.

The response carries the 8-character document id, the SHA-256 digest of the
document and the QR payload (`ID|digest`) to print on the document.
""",
    responses={
        401: {"description": "Missing or invalid token"},
        403: {"description": "Actor is not a director"},
        503: {"description": "No free document id could be allocated"},
    },
)
async def issue_document(
    data: DocumentIssueRequest,
    director: Actor = Depends(get_current_director),
    db: AsyncSession = Depends(get_db),
) -> DocumentRecord:
    try:
        record = await service.issue_document(
            db,
            data.student,
            origin_school=director.school,
            origin_city=director.city,
            issued_by=director,
        )
        logger.info(f"Document issued: short_id={record.short_id}, school={director.school}")
        return record
    except DocumentServiceError as e:
        raise _service_error(e) from e
    except HTTPException:
        raise
    except Exception as e:
        raise _internal_error(e, "issuing a document") from e


@router.get("", response_model=DocumentListResponse, summary="List Issued Documents")
async def list_documents(
    search: str | None = Query(None, max_length=100, description="Name, document id or BI"),
    director: Actor = Depends(get_current_director),
    db: AsyncSession = Depends(get_db),
) -> DocumentListResponse:
    """List documents issued by the director's school, newest first."""
    return await service.list_documents(db, director.school, search=search)


@router.get(
    "/{short_id}",
    response_model=DocumentRecord,
    summary="Get Issued Document",
    responses={404: {"description": "Document not found"}},
)
async def get_document(
    short_id: str,
    director: Actor = Depends(get_current_director),
    db: AsyncSession = Depends(get_db),
) -> DocumentRecord:
    try:
        return await service.get_document(db, short_id, director)
    except DocumentServiceError as e:
        raise _service_error(e) from e


@router.put(
    "/{short_id}/student",
    response_model=DocumentRecord,
    summary="Amend Student Data",
    description="""
Replace the student data of an issued document.

The document is **not** re-signed: it keeps its original digest and will
verify as `tampered` from then on. Issue a new document instead when the
change must be verifiable.
""",
    responses={404: {"description": "Document not found"}},
)
async def amend_document(
    short_id: str,
    data: StudentAmendRequest,
    director: Actor = Depends(get_current_director),
    db: AsyncSession = Depends(get_db),
) -> DocumentRecord:
    try:
        return await service.amend_document(db, short_id, data.student, director)
    except DocumentServiceError as e:
        raise _service_error(e) from e


@router.delete(
    "/{short_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Issued Document",
    responses={404: {"description": "Document not found"}},
)
async def delete_document(
    short_id: str,
    director: Actor = Depends(get_current_director),
    db: AsyncSession = Depends(get_db),
) -> Response:
    try:
        await service.delete_document(db, short_id, director)
    except DocumentServiceError as e:
        raise _service_error(e) from e
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@verify_router.get(
    "/{short_id}",
    response_model=VerificationResult,
    summary="Verify Document",
    description="""
Check the authenticity of a transfer document by its 8-character id.

- `valid`: the stored document matches its digest
- `tampered`: the document was altered after issuance (record still returned)
- `not_found`: no document with this id exists
""",
    responses={429: {"description": "Too many verification requests"}},
)
@rate_limit(window_seconds=60, key_func=client_ip_key)
async def verify_document(
    request: Request,
    short_id: str,
    db: AsyncSession = Depends(get_db),
) -> VerificationResult:
    try:
        result = await service.verify_document(db, short_id)
    except Exception as e:
        raise _internal_error(e, "verifying a document") from e

    logger.info(f"Verification {result.short_id}: {result.status.value}")
    return result


@verify_router.post(
    "/qr",
    response_model=VerificationResult,
    summary="Verify QR Payload",
    description="""
Verify the payload read from a document's QR code (`ID|digest`).

In addition to the id-based check, the digest printed in the QR code must
match the stored document.
""",
    responses={
        400: {"description": "Malformed QR payload"},
        429: {"description": "Too many verification requests"},
    },
)
@rate_limit(window_seconds=60, key_func=client_ip_key)
async def verify_qr(
    request: Request,
    data: QRVerifyRequest,
    db: AsyncSession = Depends(get_db),
) -> VerificationResult:
    try:
        result = await service.verify_qr_payload(db, data.payload)
    except DocumentServiceError as e:
        raise _service_error(e) from e
    except Exception as e:
        raise _internal_error(e, "verifying a QR payload") from e

    logger.info(f"QR verification {result.short_id}: {result.status.value}")
    return result
