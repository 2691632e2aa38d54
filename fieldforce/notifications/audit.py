from typing import Optional
from fieldforce.auth.models import CurrentUser
from fieldforce.notifications.constants import logger
from fieldforce.schema.full_schema import Notification, NotificationStatus, NotificationType


class AuditSink:
    """
    Append-only audit log of otp actions.

    Writes go through their own session and commit so an audit failure can never
    roll back or fail the otp operation that produced it.
    """

    def __init__(self, session_maker):
        self.session_maker = session_maker

    async def record(self, *, event_type: NotificationType, actor: CurrentUser, client, message: str,
                     otp_id: Optional[int] = None, status: NotificationStatus = NotificationStatus.SUCCESS,
                     delivery_method: str = "WhatsApp") -> Optional[Notification]:
        try:
            async with self.session_maker() as session:
                event = Notification(
                    type=event_type,
                    salesman_id=actor.id,
                    salesman_name=actor.full_name,
                    client_id=client.id,
                    client_name=client.name,
                    client_phone=client.phone,
                    message=message,
                    status=status,
                    otp_id=otp_id,
                    delivery_method=delivery_method,
                )
                session.add(event)
                await session.commit()
        except Exception:
            logger.exception("audit.record.failed", extra={"event_type": event_type.value,
                                                           "client_public_id": str(client.public_id)})
            return None

        logger.debug("audit.record.success", extra={"event_type": event_type.value,
                                                    "notification_public_id": str(event.public_id)})
        return event
