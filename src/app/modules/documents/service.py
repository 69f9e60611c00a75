"""
Transfer Documents Service Layer

Business logic for issuing, verifying and managing school transfer documents.

This module implements:
1. Issuance:
   - Generate a short id not yet present in the store
   - Hash the student data, issue date and short id (SHA-256)
   - Persist the document and notify the issuing school

2. Verification:
   - Look up by short id (case-insensitive)
   - Recompute the digest from what is stored and compare
   - Report not_found / valid / tampered; tampered documents are still
     returned so the verifier can inspect them
   - QR payloads are additionally checked against the printed digest

3. Management (issuing school's director only):
   - Listing with search, in-place amendment of student data, deletion

Notes:
- Amending a document does NOT re-hash it. The stored digest keeps
  describing the data as issued, so an amended document verifies as
  tampered.
- A stored student mapping that no longer validates is logged and skipped
  in listings; on verification it is reported as tampered without a record.
"""

import logging
from datetime import date

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import Actor
from app.modules.documents import repository
from app.modules.documents.integrity import (
    InvalidQRPayloadError as QRPayloadFormatError,
)
from app.modules.documents.integrity import (
    decode_qr_payload,
    document_digest,
    encode_qr_payload,
    generate_short_id,
    normalize_short_id,
)
from app.modules.documents.models import IssuedDocument
from app.modules.documents.schemas import (
    DocumentListResponse,
    DocumentRecord,
    StudentRecord,
    VerificationResult,
    VerificationStatus,
)
from app.modules.notifications import service as notifications

logger = logging.getLogger(__name__)

# Constants
MAX_SHORT_ID_ATTEMPTS = 10

MESSAGE_NOT_FOUND = "Document not found in the system."
MESSAGE_VALID = "Document verified successfully."
MESSAGE_TAMPERED = "WARNING: this document was altered after it was issued."
MESSAGE_QR_MISMATCH = "WARNING: the QR code does not match the stored document."


class DocumentServiceError(Exception):
    """Base exception for document service errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class DocumentNotFoundError(DocumentServiceError):
    """Raised when a document is not found."""

    def __init__(self, short_id: str | None = None):
        message = f"Document {short_id} not found" if short_id else "Document not found"
        super().__init__(
            message=message,
            error_code="DOCUMENT_NOT_FOUND",
            status_code=404,
        )


class DocumentAccessDeniedError(DocumentServiceError):
    """Raised when a director acts on another school's document."""

    def __init__(self):
        super().__init__(
            message="Only the issuing school can manage this document.",
            error_code="DOCUMENT_ACCESS_DENIED",
            status_code=403,
        )


class ShortIdGenerationError(DocumentServiceError):
    """Raised when no free short id was found."""

    def __init__(self):
        super().__init__(
            message="Could not allocate a document id. Please try again.",
            error_code="SHORT_ID_EXHAUSTED",
            status_code=503,
        )


class InvalidQRPayloadError(DocumentServiceError):
    """Raised when a scanned QR payload is malformed."""

    def __init__(self, detail: str):
        super().__init__(
            message=f"Invalid QR code: {detail}",
            error_code="INVALID_QR_PAYLOAD",
            status_code=400,
        )


class CorruptedDocumentError(DocumentServiceError):
    """Raised when a stored document can no longer be read."""

    def __init__(self, short_id: str):
        super().__init__(
            message=f"Document {short_id} is corrupted and cannot be displayed.",
            error_code="DOCUMENT_CORRUPTED",
            status_code=409,
        )


def _to_record(document: IssuedDocument) -> DocumentRecord:
    """
    Build the response record of a stored document.

    Raises:
        pydantic.ValidationError: If the stored student mapping is malformed
    """
    return DocumentRecord(
        id=document.id,
        short_id=document.short_id,
        student=StudentRecord.from_canonical(document.student),
        issue_date=document.issue_date,
        origin_school=document.origin_school,
        origin_city=document.origin_city,
        academic_track=document.academic_track,
        digest=document.digest,
        qr_payload=document.qr_payload,
        issued_by=document.issued_by,
        created_at=document.created_at,
    )


def _to_record_or_none(document: IssuedDocument) -> DocumentRecord | None:
    try:
        return _to_record(document)
    except (ValidationError, TypeError, AttributeError) as e:
        logger.error(f"Stored document {document.short_id} has malformed student data: {e}")
        return None


def _recompute_digest(document: IssuedDocument) -> str:
    student = document.student if isinstance(document.student, dict) else {}
    return document_digest(student, document.issue_date, document.short_id)


async def _allocate_short_id(db: AsyncSession) -> str:
    """
    Generate a short id that is not yet used in the store.

    Raises:
        ShortIdGenerationError: After MAX_SHORT_ID_ATTEMPTS collisions
    """
    for _ in range(MAX_SHORT_ID_ATTEMPTS):
        short_id = generate_short_id()
        if not await repository.exists(db, short_id):
            return short_id
        logger.warning("Short id collision, generating another one")

    raise ShortIdGenerationError()


def _ensure_issuer(document: IssuedDocument, actor: Actor) -> None:
    if document.origin_school != actor.school:
        logger.warning(f"{actor} tried to manage document {document.short_id}")
        raise DocumentAccessDeniedError()


async def issue_document(
    db: AsyncSession,
    student: StudentRecord,
    origin_school: str,
    origin_city: str,
    issued_by: Actor | None = None,
) -> DocumentRecord:
    """
    Issue a transfer document.

    Args:
        db: Database session
        student: Validated student data
        origin_school: Issuing school name
        origin_city: Issuing school city
        issued_by: Director issuing the document (optional)

    Returns:
        The persisted document, including its digest and QR payload

    Raises:
        ShortIdGenerationError: If no free short id could be allocated
    """
    short_id = await _allocate_short_id(db)
    issue_date = date.today()

    canonical = student.to_canonical()
    digest = document_digest(canonical, issue_date, short_id)

    document = IssuedDocument(
        short_id=short_id,
        student=canonical,
        issue_date=issue_date,
        origin_school=origin_school,
        origin_city=origin_city,
        academic_track=student.academic_track,
        digest=digest,
        issued_by=issued_by.id if issued_by else None,
    )
    document = await repository.put(db, document)

    logger.info(f"Issued document {short_id} at {origin_school}")
    record = _to_record(document)

    # The document is already stored; a lost notification must not fail issuance
    try:
        await notifications.notify_document_issued(
            db,
            origin_school=origin_school,
            director_name=issued_by.name if issued_by else origin_school,
            student_name=student.full_name,
            short_id=short_id,
            qr_payload=record.qr_payload,
        )
    except Exception as e:
        logger.error(f"Failed to record issuance notification for document {short_id}: {e}")
        await db.rollback()

    return record


async def verify_document(db: AsyncSession, short_id: str) -> VerificationResult:
    """
    Verify a document by short id.

    Returns:
        not_found when nothing is stored under the id, valid when the
        recomputed digest equals the stored one, tampered otherwise
    """
    short_id = normalize_short_id(short_id)

    document = await repository.get(db, short_id)
    if document is None:
        logger.info(f"Verification of unknown document {short_id}")
        return VerificationResult(
            status=VerificationStatus.NOT_FOUND,
            short_id=short_id,
            message=MESSAGE_NOT_FOUND,
        )

    record = _to_record_or_none(document)
    recomputed = _recompute_digest(document)

    if record is not None and recomputed == document.digest:
        return VerificationResult(
            status=VerificationStatus.VALID,
            short_id=short_id,
            message=MESSAGE_VALID,
            record=record,
        )

    logger.warning(f"Integrity mismatch for document {short_id}")
    return VerificationResult(
        status=VerificationStatus.TAMPERED,
        short_id=short_id,
        message=MESSAGE_TAMPERED,
        record=record,
    )


async def verify_qr_payload(db: AsyncSession, payload: str) -> VerificationResult:
    """
    Verify a scanned QR payload (SHORTID|digest).

    On top of verify_document, a payload whose digest differs from the
    stored document's digest is reported as tampered.

    Raises:
        InvalidQRPayloadError: If the payload is malformed
    """
    try:
        short_id, printed_digest = decode_qr_payload(payload)
    except QRPayloadFormatError as e:
        raise InvalidQRPayloadError(str(e)) from e

    result = await verify_document(db, short_id)

    if result.status == VerificationStatus.VALID and result.record.digest != printed_digest:
        logger.warning(f"QR digest mismatch for document {short_id}")
        return result.model_copy(
            update={"status": VerificationStatus.TAMPERED, "message": MESSAGE_QR_MISMATCH}
        )

    return result


async def get_document(db: AsyncSession, short_id: str, actor: Actor) -> DocumentRecord:
    """
    Fetch a document for its issuing school.

    Raises:
        DocumentNotFoundError: If no such document exists
        DocumentAccessDeniedError: If the actor's school did not issue it
        CorruptedDocumentError: If the stored data cannot be read
    """
    short_id = normalize_short_id(short_id)
    document = await repository.get(db, short_id)
    if document is None:
        raise DocumentNotFoundError(short_id)

    _ensure_issuer(document, actor)

    record = _to_record_or_none(document)
    if record is None:
        raise CorruptedDocumentError(short_id)
    return record


async def list_documents(
    db: AsyncSession, school: str, search: str | None = None
) -> DocumentListResponse:
    """List a school's documents, skipping rows that cannot be read."""
    documents = await repository.list_by_school(db, school, search=search)

    records = [record for doc in documents if (record := _to_record_or_none(doc)) is not None]

    return DocumentListResponse(documents=records, total=len(records))


async def amend_document(
    db: AsyncSession, short_id: str, student: StudentRecord, actor: Actor
) -> DocumentRecord:
    """
    Replace a document's student data in place.

    The digest is kept, so the document will verify as tampered afterwards.

    Raises:
        DocumentNotFoundError: If no such document exists
        DocumentAccessDeniedError: If the actor's school did not issue it
    """
    short_id = normalize_short_id(short_id)
    document = await repository.get(db, short_id)
    if document is None:
        raise DocumentNotFoundError(short_id)

    _ensure_issuer(document, actor)

    document = await repository.update_student(
        db, short_id, student.to_canonical(), student.academic_track
    )
    if document is None:
        raise DocumentNotFoundError(short_id)

    logger.warning(
        f"Document {short_id} amended by {actor}; it no longer matches its issued digest"
    )
    return _to_record(document)


async def delete_document(db: AsyncSession, short_id: str, actor: Actor) -> None:
    """
    Delete a document.

    Raises:
        DocumentNotFoundError: If no such document exists
        DocumentAccessDeniedError: If the actor's school did not issue it
    """
    short_id = normalize_short_id(short_id)
    document = await repository.get(db, short_id)
    if document is None:
        raise DocumentNotFoundError(short_id)

    _ensure_issuer(document, actor)

    await repository.delete(db, short_id)
    logger.info(f"Document {short_id} deleted by {actor}")
