"""
Notification Repository

Database operations for notifications. Each call commits its own
transaction.
"""

from uuid import UUID

from sqlalchemy import delete as sa_delete
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Notification, NotificationType


async def create(
    db: AsyncSession,
    *,
    notification_type: NotificationType,
    title: str,
    message: str,
    recipient: str,
    sender: str,
    document_short_id: str | None = None,
    qr_payload: str | None = None,
) -> Notification:
    """Create an unread notification."""
    notification = Notification(
        notification_type=notification_type,
        title=title,
        message=message,
        recipient=recipient,
        sender=sender,
        document_short_id=document_short_id,
        qr_payload=qr_payload,
        is_read=False,
    )

    db.add(notification)
    await db.commit()
    await db.refresh(notification)

    return notification


async def get_by_id(db: AsyncSession, id: UUID) -> Notification | None:
    return await db.get(Notification, id)


async def list_for_recipient(
    db: AsyncSession, recipient: str, unread_only: bool = False
) -> list[Notification]:
    """Notifications for a recipient, newest first."""
    query = select(Notification).where(Notification.recipient == recipient)
    if unread_only:
        query = query.where(Notification.is_read == False)  # noqa: E712

    result = await db.execute(query.order_by(Notification.created_at.desc()))
    return list(result.scalars().all())


async def count_unread(db: AsyncSession, recipient: str) -> int:
    result = await db.execute(
        select(func.count())
        .select_from(Notification)
        .where(
            Notification.recipient == recipient,
            Notification.is_read == False,  # noqa: E712
        )
    )
    return result.scalar_one()


async def mark_as_read(db: AsyncSession, notification: Notification) -> Notification:
    notification.is_read = True
    await db.commit()
    await db.refresh(notification)
    return notification


async def mark_all_as_read(db: AsyncSession, recipient: str) -> int:
    """
    Mark every unread notification of a recipient as read.

    Returns:
        Number of notifications updated
    """
    result = await db.execute(
        update(Notification)
        .where(
            Notification.recipient == recipient,
            Notification.is_read == False,  # noqa: E712
        )
        .values(is_read=True)
    )
    await db.commit()
    return result.rowcount


async def delete(db: AsyncSession, id: UUID) -> bool:
    result = await db.execute(sa_delete(Notification).where(Notification.id == id))
    await db.commit()
    return result.rowcount > 0
