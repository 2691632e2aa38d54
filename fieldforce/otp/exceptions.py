from fastapi import status
from fieldforce.common.custom_exceptions import AppError


class ClientNotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "CLIENT_NOT_FOUND"
    message = "Client not found"


class NoPhoneOnFile(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "NO_PHONE_ON_FILE"
    message = "Client does not have a phone number"


class InvalidOtp(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "INVALID_OTP"
    message = "Invalid OTP"

    def __init__(self, attempts_left=None):
        extra = {"attempts_left": attempts_left} if attempts_left is not None else None
        super().__init__(extra=extra)
        self.attempts_left = attempts_left


class OtpExpired(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "OTP_EXPIRED"
    message = "OTP has expired or exceeded maximum attempts"


class OtpRateLimited(AppError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    code = "RATE_LIMITED"

    def __init__(self, wait_time: int):
        super().__init__(f"Please wait {wait_time} seconds before requesting another OTP",
                         extra={"wait_time": wait_time},
                         headers={"Retry-After": str(wait_time)})
        self.wait_time = wait_time
