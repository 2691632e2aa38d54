import time
from typing import Optional
from fastapi import HTTPException, Request, status
from fieldforce.config.settings import config_settings
from fieldforce.rate_limiting.constants import RATE_LIMIT_PREFIX, logger
from fieldforce.rate_limiting.rate_limit_fixed_window import redis_allow
from fieldforce.rate_limiting.utils import _identifier_from_request


def rate_limit_dependency(limit: int = 10, window: int = 60, route_key: Optional[str] = None):
    async def _dep(request: Request):
        if not config_settings.RATE_LIMIT_ENABLED:
            return
        key_route = route_key or request.url.path
        identifier, scope = _identifier_from_request(request)
        key = f"{RATE_LIMIT_PREFIX}:{scope}:{identifier}:{key_route}"
        allowed, remaining, reset = await redis_allow(key, limit, window)
        request.state.rate_limit = {"limit": limit, "remaining": remaining, "reset": reset}
        if not allowed:
            retry_after = max(0, reset - int(time.time()))
            logger.info("rate_limit.rejected", extra={"scope": scope, "route": key_route, "retry_after": retry_after})
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many requests",
                headers={"Retry-After": str(retry_after)}
            )
    return _dep
