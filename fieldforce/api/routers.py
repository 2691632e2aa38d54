from fastapi import APIRouter
from fieldforce.api import version_prefix
from fieldforce.auth.routes import auth_router
from fieldforce.common.routes import home_router
from fieldforce.notifications.routes import notifications_router
from fieldforce.otp.routes import otp_router

public_routers = APIRouter(prefix=version_prefix)

public_routers.include_router(auth_router, prefix="/auth", tags=["auth"])
public_routers.include_router(otp_router, prefix="/otp", tags=["otp"])
public_routers.include_router(notifications_router, prefix="/notifications", tags=["notifications"])
public_routers.include_router(home_router, tags=["home"])

# reachable without a bearer token
public_paths = [
    f"{version_prefix}/auth/login",
    f"{version_prefix}/health",
    f"{version_prefix}/otp/status",
    "/docs",
    "/openapi.json",
]
