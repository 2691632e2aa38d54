from fastapi import status
from fieldforce.common.custom_exceptions import AppError


class NotificationNotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOTIFICATION_NOT_FOUND"
    message = "Notification not found"
