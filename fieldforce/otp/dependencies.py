from fastapi import Request
from fieldforce.otp.services import OtpManager


def get_otp_manager(request: Request) -> OtpManager:
    return request.app.state.otp_manager
