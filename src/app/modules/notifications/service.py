"""
Notifications Service Layer

Creates notifications for transfer-request and document events, and
lets an actor read and manage the notifications addressed to them.

Recipients:
- directors receive notifications addressed to their school name
- students receive notifications addressed to their actor id
"""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import Actor
from app.modules.notifications import repository
from app.modules.notifications.models import Notification, NotificationType
from app.modules.notifications.schemas import (
    MarkAllReadResponse,
    NotificationListResponse,
    NotificationResponse,
    UnreadCountResponse,
)

logger = logging.getLogger(__name__)


class NotificationServiceError(Exception):
    """Base exception for notification service errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class NotificationNotFoundError(NotificationServiceError):
    """Raised when a notification does not exist or belongs to someone else."""

    def __init__(self, notification_id: UUID | None = None):
        message = (
            f"Notification {notification_id} not found"
            if notification_id
            else "Notification not found"
        )
        super().__init__(
            message=message,
            error_code="NOTIFICATION_NOT_FOUND",
            status_code=404,
        )


def recipient_for(actor: Actor) -> str:
    """The recipient key under which an actor's notifications are stored."""
    return actor.school if actor.is_director else actor.id


async def notify_request_submitted(
    db: AsyncSession,
    *,
    origin_school: str,
    student_name: str,
    destination_school: str,
    reference: str,
) -> Notification:
    """Tell the origin school that a student asked for a transfer."""
    return await repository.create(
        db,
        notification_type=NotificationType.REQUEST,
        title="New transfer request",
        message=(
            f"{student_name} requested a transfer to {destination_school} "
            f"(request {reference})."
        ),
        recipient=origin_school,
        sender=student_name,
    )


async def notify_request_decided(
    db: AsyncSession,
    *,
    student_id: str,
    director_name: str,
    destination_school: str,
    reference: str,
    approved: bool,
) -> Notification:
    """Tell a student that their transfer request was approved or rejected."""
    outcome = "approved" if approved else "rejected"
    return await repository.create(
        db,
        notification_type=NotificationType.APPROVAL,
        title=f"Transfer request {outcome}",
        message=f"Your transfer request {reference} to {destination_school} was {outcome}.",
        recipient=student_id,
        sender=director_name,
    )


async def notify_document_issued(
    db: AsyncSession,
    *,
    origin_school: str,
    director_name: str,
    student_name: str,
    short_id: str,
    qr_payload: str,
) -> Notification:
    """Record on the issuing school's feed that a document was issued."""
    return await repository.create(
        db,
        notification_type=NotificationType.ISSUANCE,
        title="Transfer document issued",
        message=f"Transfer document {short_id} was issued for {student_name}.",
        recipient=origin_school,
        sender=director_name,
        document_short_id=short_id,
        qr_payload=qr_payload,
    )


async def list_notifications(
    db: AsyncSession, actor: Actor, unread_only: bool = False
) -> NotificationListResponse:
    recipient = recipient_for(actor)
    notifications = await repository.list_for_recipient(db, recipient, unread_only=unread_only)
    unread = await repository.count_unread(db, recipient)

    return NotificationListResponse(
        notifications=[NotificationResponse.model_validate(n) for n in notifications],
        unread_count=unread,
    )


async def get_unread_count(db: AsyncSession, actor: Actor) -> UnreadCountResponse:
    return UnreadCountResponse(unread_count=await repository.count_unread(db, recipient_for(actor)))


async def _get_owned(db: AsyncSession, actor: Actor, notification_id: UUID) -> Notification:
    notification = await repository.get_by_id(db, notification_id)
    # Someone else's notification is reported as missing
    if notification is None or notification.recipient != recipient_for(actor):
        raise NotificationNotFoundError(notification_id)
    return notification


async def mark_as_read(
    db: AsyncSession, actor: Actor, notification_id: UUID
) -> NotificationResponse:
    """
    Mark one notification as read.

    Raises:
        NotificationNotFoundError: If missing or not addressed to the actor
    """
    notification = await _get_owned(db, actor, notification_id)
    if not notification.is_read:
        notification = await repository.mark_as_read(db, notification)
    return NotificationResponse.model_validate(notification)


async def mark_all_as_read(db: AsyncSession, actor: Actor) -> MarkAllReadResponse:
    updated = await repository.mark_all_as_read(db, recipient_for(actor))
    logger.info(f"Marked {updated} notification(s) as read for {actor}")
    return MarkAllReadResponse(updated=updated)


async def delete_notification(db: AsyncSession, actor: Actor, notification_id: UUID) -> None:
    """
    Delete one notification.

    Raises:
        NotificationNotFoundError: If missing or not addressed to the actor
    """
    await _get_owned(db, actor, notification_id)
    await repository.delete(db, notification_id)
