import uuid
from typing import Iterable
from fastapi import Request, status
from starlette.middleware.base import BaseHTTPMiddleware
from fieldforce.auth.dependencies import Authentication
from fieldforce.auth.models import CurrentUser
from fieldforce.auth.repository import active_user_by_public_id
from fieldforce.common.custom_exceptions import AuthError
from fieldforce.common.utils import build_error, json_error
from fieldforce.common.constants import request_id_ctx
from fieldforce.middlewares.constants import logger


class AuthenticationMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, *, session_maker, paths:Iterable[str]):
        super().__init__(app)
        self.session_maker = session_maker
        self.paths = tuple(paths)   # public path prefixes which skip authentication

    async def dispatch(self, request: Request, call_next):
        
        if request.url.path.startswith(self.paths):
            return await call_next(request)
     
        logger.debug("auth.middleware.attempt", extra={
            "path": request.url.path,
            "method": request.method
        })
        
        try:
            auth_token = await Authentication()(request) 
        except AuthError as e:
            logger.warning("auth.middleware.failed", extra={
                "reason": e.message,
                "path": request.url.path,
                "method": request.method
            })
            payload = build_error(code="INVALID_AUTH", details={"message":"Missing or Invalid Auth Headers"},
                                  request_id=request_id_ctx.get())
            return json_error(payload, status_code=status.HTTP_401_UNAUTHORIZED)

        user_pid = auth_token.get("sub")

        async with self.session_maker() as session:
            user=await active_user_by_public_id(session,_as_uuid(user_pid))

        if not user:
            logger.warning("auth.middleware.user_not_found", extra={
                "user_public_id": user_pid,
                "path": request.url.path
            })
            payload = build_error(code="INVALID_AUTH", details={"message":"Invalid token or user inactive"},
                                  request_id=request_id_ctx.get())
            return json_error(payload, status_code=status.HTTP_401_UNAUTHORIZED)

        role = user.role.value if hasattr(user.role, "value") else str(user.role)
        request.state.user = CurrentUser(id=user.id, public_id=user.public_id, email=user.email,
                                         role=role, full_name=user.full_name)
        request.state.user_identifier = user.id

        return await call_next(request)


def _as_uuid(value):
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        return None
