from sqlalchemy import select
from fieldforce.auth.constants import logger
from fieldforce.auth.utils import verify_password
from fieldforce.common.custom_exceptions import AuthError
from fieldforce.schema.full_schema import Users


async def user_by_email(session,email):
    stmt=select(Users).where(Users.email==email)
    result=await session.execute(stmt)
    return result.scalar_one_or_none()


async def identify_user(session,email,password):
    email = email.strip().lower()
    user=await user_by_email(session,email)

    if not user or not user.is_active:
        logger.warning("auth.user.not_found_or_inactive", extra={"email": email})
        raise AuthError("Invalid credentials")

    if not verify_password(password, user.password_hash):
        logger.warning("auth.user.invalid_credentials", extra={"email": email, "user_public_id": str(user.public_id)})
        raise AuthError("Invalid credentials")

    return user


async def active_user_by_public_id(session,user_pid):
    stmt=select(Users).where(Users.public_id==user_pid,Users.is_active.is_(True))
    res=await session.execute(stmt)
    return res.scalar_one_or_none()
