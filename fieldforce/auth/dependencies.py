from typing import Optional
from fastapi import Request
from fastapi.security import HTTPBearer
from fieldforce.auth.models import CurrentUser
from fieldforce.auth.utils import decode_token
from fieldforce.common.custom_exceptions import AuthError


class Authentication(HTTPBearer):
    def __init__(self,auto_error=False):
        super().__init__(auto_error=auto_error)

    async def __call__(self, request:Request) -> dict:
        auth_creds=await super().__call__(request)
        if auth_creds is None:
            raise AuthError("Missing or Invalid Auth Headers")

        decoded_token=decode_token(auth_creds.credentials)

        if not decoded_token or not decoded_token.get("sub"):
            raise AuthError("Invalid or expired token provided.")
        
        return decoded_token


def current_user(request: Request) -> CurrentUser:
    user: Optional[CurrentUser] = getattr(request.state, "user", None)
    if user is None:
        raise AuthError("User not authenticated")
    return user
