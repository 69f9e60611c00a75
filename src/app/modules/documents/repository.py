"""
Transfer Document Repository

The document record store: issued documents keyed by short identifier.

Design Principles:
- Single responsibility - only database operations, no hashing or policy
- Every write is its own transaction on one row (no whole-collection rewrite)
- put() overwrites unconditionally; last write wins
"""

import logging

from sqlalchemy import delete as sa_delete
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import AcademicTrack, IssuedDocument

logger = logging.getLogger(__name__)


async def get(db: AsyncSession, short_id: str) -> IssuedDocument | None:
    """Get a document by exact short id."""
    result = await db.execute(select(IssuedDocument).where(IssuedDocument.short_id == short_id))
    return result.scalar_one_or_none()


async def exists(db: AsyncSession, short_id: str) -> bool:
    """Check whether a short id is already taken."""
    result = await db.execute(
        select(func.count()).select_from(IssuedDocument).where(IssuedDocument.short_id == short_id)
    )
    return result.scalar_one() > 0


async def put(db: AsyncSession, document: IssuedDocument) -> IssuedDocument:
    """
    Insert a document, or overwrite the one stored under the same short id.

    No optimistic concurrency check is made.
    """
    existing = await get(db, document.short_id)

    if existing is None:
        db.add(document)
        target = document
    else:
        existing.student = document.student
        existing.issue_date = document.issue_date
        existing.origin_school = document.origin_school
        existing.origin_city = document.origin_city
        existing.academic_track = document.academic_track
        existing.digest = document.digest
        existing.issued_by = document.issued_by
        target = existing
        logger.info(f"Overwriting stored document {document.short_id}")

    await db.commit()
    await db.refresh(target)
    return target


async def update_student(
    db: AsyncSession, short_id: str, student: dict, academic_track: AcademicTrack
) -> IssuedDocument | None:
    """
    Replace the embedded student mapping in place.

    The academic track column follows the new student data; the digest is
    left untouched.

    Returns:
        The updated document, or None if not found
    """
    document = await get(db, short_id)
    if document is None:
        return None

    document.student = student
    document.academic_track = academic_track
    await db.commit()
    await db.refresh(document)
    return document


async def delete(db: AsyncSession, short_id: str) -> bool:
    """
    Remove a document.

    Returns:
        True if a row was deleted
    """
    result = await db.execute(sa_delete(IssuedDocument).where(IssuedDocument.short_id == short_id))
    await db.commit()
    return result.rowcount > 0


async def list_all(db: AsyncSession) -> list[IssuedDocument]:
    """Full scan, newest first."""
    result = await db.execute(
        select(IssuedDocument).order_by(
            IssuedDocument.created_at.desc(), IssuedDocument.short_id
        )
    )
    return list(result.scalars().all())


async def list_by_school(
    db: AsyncSession, school: str, search: str | None = None
) -> list[IssuedDocument]:
    """
    Documents issued by one school, newest first.

    ``search`` is a case-insensitive substring match on student name, short
    id or BI. Name and BI live in the JSON column, so it is applied in Python.
    """
    result = await db.execute(
        select(IssuedDocument)
        .where(IssuedDocument.origin_school == school)
        .order_by(IssuedDocument.created_at.desc(), IssuedDocument.short_id)
    )
    documents = list(result.scalars().all())

    if not search:
        return documents

    needle = search.strip().lower()
    return [doc for doc in documents if _matches(doc, needle)]


def _matches(document: IssuedDocument, needle: str) -> bool:
    student = document.student if isinstance(document.student, dict) else {}
    name = str(student.get("nomeCompleto") or "").lower()
    national_id = str(student.get("numeroBi") or "").lower()
    return needle in name or needle in document.short_id.lower() or needle in national_id

