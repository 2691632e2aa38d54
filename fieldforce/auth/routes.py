from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import  AsyncSession
from fieldforce.auth.constants import ACCESS_TOKEN_TTL_SECONDS, logger
from fieldforce.auth.dependencies import current_user
from fieldforce.auth.models import CurrentUser, SignIn
from fieldforce.auth.services import issue_access_token
from fieldforce.common.utils import success_response
from fieldforce.db.dependencies import get_session

auth_router = APIRouter()


@auth_router.post("/login")
async def login_user(payload:SignIn, session: AsyncSession = Depends(get_session)):
    
    logger.info("login.attempt", extra={"email": payload.email})

    access,user=await issue_access_token(session,payload)

    logger.info("login.success", extra={"email": payload.email})
    return success_response({
        "access_token": access,
        "token_type": "bearer",
        "expires_in": ACCESS_TOKEN_TTL_SECONDS,
        "user": {
            "public_id": str(user.public_id),
            "email": user.email,
            "name": user.full_name,
            "role": user.role,
        },
    }, 200)


@auth_router.get("/me")
async def get_me(user: CurrentUser = Depends(current_user)):
    return success_response({
        "public_id": str(user.public_id),
        "email": user.email,
        "name": user.full_name,
        "role": user.role,
    }, 200)
