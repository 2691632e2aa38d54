from fieldforce.auth.constants import logger
from fieldforce.auth.repository import identify_user
from fieldforce.auth.utils import create_access_token


async def issue_access_token(session,payload):

    user=await identify_user(session,payload.email,payload.password)
    role = user.role.value if hasattr(user.role, "value") else user.role
    access_token = create_access_token(user_id=user.public_id,role=role)

    logger.info("auth.tokens.issued", extra={"user_public_id": str(user.public_id), "role": role})
    return access_token,user
