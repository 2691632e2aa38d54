import uuid
from typing import List, Optional, Tuple
from sqlalchemy import func, select, update
from fieldforce.auth.models import CurrentUser
from fieldforce.notifications.models import NotificationFilters
from fieldforce.schema.full_schema import Client, Notification, OtpRecord, Users


def _scope(stmt, actor: CurrentUser, salesman_public_id: Optional[uuid.UUID] = None):
    # salesmen only ever see their own events, admins may narrow to one salesman
    if not actor.is_admin:
        return stmt.where(Notification.salesman_id == actor.id)
    if salesman_public_id is not None:
        return stmt.where(Notification.salesman_id.in_(
            select(Users.id).where(Users.public_id == salesman_public_id)))
    return stmt


def _filtered(stmt, actor: CurrentUser, filters: NotificationFilters):
    stmt = _scope(stmt, actor, filters.salesman_id)
    if filters.type is not None:
        stmt = stmt.where(Notification.type == filters.type)
    if filters.client_id is not None:
        stmt = stmt.where(Notification.client_id.in_(
            select(Client.id).where(Client.public_id == filters.client_id)))
    return stmt


async def list_notifications(session, actor: CurrentUser, filters: NotificationFilters) -> Tuple[List, int]:
    stmt = (
        select(Notification,
               Users.public_id.label("salesman_public_id"),
               Client.public_id.label("client_public_id"),
               OtpRecord.public_id.label("otp_public_id"),
               OtpRecord.expires_at.label("otp_expires_at"),
               OtpRecord.is_used.label("otp_is_used"))
        .join(Users, Users.id == Notification.salesman_id)
        .join(Client, Client.id == Notification.client_id)
        .outerjoin(OtpRecord, OtpRecord.id == Notification.otp_id)
    )
    stmt = _filtered(stmt, actor, filters)
    stmt = (stmt.order_by(Notification.created_at.desc(), Notification.id.desc())
            .offset((filters.page - 1) * filters.limit).limit(filters.limit))
    res = await session.execute(stmt)
    rows = res.all()

    count_stmt = _filtered(select(func.count(Notification.id)), actor, filters)
    total = (await session.execute(count_stmt)).scalar_one()
    return rows, int(total)


async def count_unread(session, actor: CurrentUser) -> int:
    stmt = _scope(select(func.count(Notification.id)).where(Notification.is_read.is_(False)), actor)
    res = await session.execute(stmt)
    return int(res.scalar_one())


async def mark_read(session, actor: CurrentUser, notification_public_id: uuid.UUID) -> Optional[Notification]:
    stmt = _scope(select(Notification).where(Notification.public_id == notification_public_id), actor)
    res = await session.execute(stmt)
    notification = res.scalar_one_or_none()
    if notification is None:
        return None
    notification.is_read = True
    await session.commit()
    return notification


async def mark_all_read(session, actor: CurrentUser) -> int:
    stmt = _scope(update(Notification).where(Notification.is_read.is_(False)), actor).values(is_read=True)
    res = await session.execute(stmt.execution_options(synchronize_session=False))
    await session.commit()
    return res.rowcount or 0
