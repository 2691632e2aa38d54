import math
import uuid
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from fieldforce.auth.dependencies import current_user
from fieldforce.auth.models import CurrentUser
from fieldforce.common.utils import success_response
from fieldforce.db.dependencies import get_session
from fieldforce.notifications.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, logger
from fieldforce.notifications.exceptions import NotificationNotFound
from fieldforce.notifications.models import NotificationFilters, serialize_notification
from fieldforce.notifications.repository import count_unread, list_notifications, mark_all_read, mark_read
from fieldforce.schema.full_schema import NotificationType

notifications_router = APIRouter()


@notifications_router.get("")
async def get_notifications(
    type: Optional[NotificationType] = Query(None),
    salesman_id: Optional[uuid.UUID] = Query(None),
    client_id: Optional[uuid.UUID] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    user: CurrentUser = Depends(current_user),
    session: AsyncSession = Depends(get_session)):

    filters = NotificationFilters(type=type, salesman_id=salesman_id, client_id=client_id, page=page, limit=limit)
    rows, total = await list_notifications(session, user, filters)

    return success_response({
        "notifications": [serialize_notification(r) for r in rows],
        "total_pages": math.ceil(total / limit),
        "current_page": page,
        "total": total,
    }, 200)


@notifications_router.get("/unread-count")
async def get_unread_count(user: CurrentUser = Depends(current_user), session: AsyncSession = Depends(get_session)):
    count = await count_unread(session, user)
    return success_response({"count": count}, 200)


@notifications_router.patch("/read-all")
async def read_all(user: CurrentUser = Depends(current_user), session: AsyncSession = Depends(get_session)):
    updated = await mark_all_read(session, user)
    logger.info("notifications.read_all", extra={"updated": updated})
    return success_response({"message": "All notifications marked as read", "updated": updated}, 200)


@notifications_router.patch("/{notification_id}/read")
async def read_one(notification_id: uuid.UUID, user: CurrentUser = Depends(current_user),
                   session: AsyncSession = Depends(get_session)):
    notification = await mark_read(session, user, notification_id)
    if notification is None:
        raise NotificationNotFound()
    return success_response({
        "message": "Notification marked as read",
        "notification": {"id": str(notification.public_id), "is_read": notification.is_read},
    }, 200)
