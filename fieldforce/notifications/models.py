import uuid
from typing import Optional
from pydantic import BaseModel, Field
from fieldforce.notifications.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from fieldforce.schema.full_schema import NotificationType


class NotificationFilters(BaseModel):
    type: Optional[NotificationType] = None
    salesman_id: Optional[uuid.UUID] = None
    client_id: Optional[uuid.UUID] = None
    page: int = Field(1, ge=1)
    limit: int = Field(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)


def serialize_notification(row) -> dict:
    # row: (Notification, salesman public id, client public id, otp public id, otp expires_at, otp is_used)
    n = row.Notification
    otp = None
    if row.otp_public_id is not None:
        otp = {"id": str(row.otp_public_id), "expires_at": row.otp_expires_at, "is_used": row.otp_is_used}
    return {
        "id": str(n.public_id),
        "type": n.type.value,
        "message": n.message,
        "status": n.status.value,
        "delivery_method": n.delivery_method,
        "is_read": n.is_read,
        "created_at": n.created_at,
        "salesman": {"id": str(row.salesman_public_id), "name": n.salesman_name},
        "client": {"id": str(row.client_public_id), "name": n.client_name, "phone": n.client_phone},
        "otp": otp,
    }
