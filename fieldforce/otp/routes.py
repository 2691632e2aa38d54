import uuid
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from fieldforce.auth.dependencies import current_user
from fieldforce.auth.models import CurrentUser
from fieldforce.common.utils import success_response
from fieldforce.config.otp_config import otp_settings
from fieldforce.db.dependencies import get_session
from fieldforce.otp.dependencies import get_otp_manager
from fieldforce.otp.models import SendOtpIn, VerifyOtpIn
from fieldforce.otp.services import OtpManager
from fieldforce.rate_limiting.dependencies import rate_limit_dependency

otp_router = APIRouter()

send_rate_limit = rate_limit_dependency(limit=otp_settings.OTP_SEND_RATE_LIMIT,
                                        window=otp_settings.OTP_SEND_RATE_WINDOW, route_key="otp_send")


@otp_router.post("/send", dependencies=[Depends(send_rate_limit)])
async def send_otp(payload: SendOtpIn, user: CurrentUser = Depends(current_user),
                   manager: OtpManager = Depends(get_otp_manager),
                   session: AsyncSession = Depends(get_session)):

    result = await manager.issue_otp(session, payload.client_id, user)
    return success_response(result.to_public(), 200)


@otp_router.post("/resend", dependencies=[Depends(send_rate_limit)])
async def resend_otp(payload: SendOtpIn, user: CurrentUser = Depends(current_user),
                     manager: OtpManager = Depends(get_otp_manager),
                     session: AsyncSession = Depends(get_session)):

    result = await manager.resend_otp(session, payload.client_id, user)
    return success_response(result.to_public(), 200)


@otp_router.post("/verify")
async def verify_otp(payload: VerifyOtpIn, user: CurrentUser = Depends(current_user),
                     manager: OtpManager = Depends(get_otp_manager),
                     session: AsyncSession = Depends(get_session)):

    verified = await manager.verify_otp(session, payload.client_id, payload.otp, user)
    return success_response(verified.to_public(), 200)


@otp_router.get("/status/{client_id}")
async def otp_status(client_id: uuid.UUID, manager: OtpManager = Depends(get_otp_manager),
                     session: AsyncSession = Depends(get_session)):

    status = await manager.get_otp_status(session, client_id)
    return success_response(status.to_public(), 200)
