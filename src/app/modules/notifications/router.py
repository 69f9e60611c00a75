"""
Notifications Router

Endpoints for the authenticated actor's notifications.

Endpoints:
- GET /notifications - List notifications (newest first)
- GET /notifications/unread-count - Unread counter for the badge
- POST /notifications/read-all - Mark every notification as read
- POST /notifications/{id}/read - Mark one notification as read
- DELETE /notifications/{id} - Delete one notification
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import Actor, get_current_actor
from app.core.database import get_db
from app.modules.notifications import service
from app.modules.notifications.schemas import (
    MarkAllReadResponse,
    NotificationListResponse,
    NotificationResponse,
    UnreadCountResponse,
)
from app.modules.notifications.service import NotificationServiceError

logger = logging.getLogger(__name__)

router = APIRouter()


def _service_error(e: NotificationServiceError) -> HTTPException:
    logger.warning(f"Notification service error: {e.message}")
    return HTTPException(
        status_code=e.status_code,
        detail={"error": e.error_code, "message": e.message},
    )


@router.get("", response_model=NotificationListResponse, summary="List Notifications")
async def list_notifications(
    unread_only: bool = Query(False, description="Only return unread notifications"),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
) -> NotificationListResponse:
    """List the actor's notifications, newest first."""
    return await service.list_notifications(db, actor, unread_only=unread_only)


@router.get("/unread-count", response_model=UnreadCountResponse, summary="Unread Count")
async def unread_count(
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
) -> UnreadCountResponse:
    return await service.get_unread_count(db, actor)


@router.post("/read-all", response_model=MarkAllReadResponse, summary="Mark All As Read")
async def mark_all_as_read(
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
) -> MarkAllReadResponse:
    return await service.mark_all_as_read(db, actor)


@router.post(
    "/{notification_id}/read",
    response_model=NotificationResponse,
    summary="Mark As Read",
    responses={404: {"description": "Notification not found"}},
)
async def mark_as_read(
    notification_id: UUID,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
) -> NotificationResponse:
    try:
        return await service.mark_as_read(db, actor, notification_id)
    except NotificationServiceError as e:
        raise _service_error(e) from e


@router.delete(
    "/{notification_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Notification",
    responses={404: {"description": "Notification not found"}},
)
async def delete_notification(
    notification_id: UUID,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db),
) -> Response:
    try:
        await service.delete_notification(db, actor, notification_id)
    except NotificationServiceError as e:
        raise _service_error(e) from e
    return Response(status_code=status.HTTP_204_NO_CONTENT)
