from typing import Any, Dict, Optional
from fastapi import FastAPI, HTTPException, Request,status
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import SQLAlchemyError
from fieldforce.common import logger
from fieldforce.common.utils import build_error, json_error
from fieldforce.common.constants import request_id_ctx


class AppError(Exception):
    """Base for errors that map onto a structured client-facing payload."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "BAD_REQUEST"
    message: str = "Bad request"

    def __init__(self, message: Optional[str] = None, *, extra: Optional[Dict[str, Any]] = None,
                 headers: Optional[Dict[str, str]] = None):
        self.message = message or self.message
        self.extra = extra or {}
        self.headers = headers
        super().__init__(self.message)

    def details(self) -> Dict[str, Any]:
        return {"message": self.message, **self.extra}


class AuthError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "INVALID_AUTH"
    message = "Missing or Invalid Auth Headers"


async def app_error_handler(request: Request, exc: AppError):
    rid = request_id_ctx.get(None)

    logger.info(
        "request.domain_error",
        extra={"code": exc.code, "path": request.url.path, "status_code": exc.status_code},
    )

    payload = build_error(code=exc.code, details=exc.details(), request_id=rid)
    return json_error(payload, status_code=exc.status_code, headers=exc.headers)


async def persistence_error_handler(request: Request, exc: SQLAlchemyError):
    rid = request_id_ctx.get(None)

    # cause stays server side
    logger.error(
        "persistence.failure",
        extra={"path": request.url.path, "method": request.method},
        exc_info=exc,
    )

    payload = build_error(code="SERVER_ERROR", details={"message": "Internal Server Error"}, request_id=rid)
    return json_error(payload, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


async def fallback_handler(request: Request, exc: Exception):

    rid = request_id_ctx.get(None)

    logger.error(
        "unexpected.exception",
        extra={
            "path": request.url.path,
            "method": request.method,
        },
        exc_info=exc,
    )

    payload = build_error(code="SERVER_ERROR", details={"message": "Internal Server Error"}, request_id=rid)
    return json_error(payload, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    rid = request_id_ctx.get(None)
    logger.warning(
        "request.validation_failed",
        extra={
            "errors": exc.errors(),
            "path": request.url.path,
        },
    )

    payload = build_error(code="UNPROCESSABLE_ENTITY", details={"message":"invalid request"}, request_id=rid)
    return json_error(payload, status_code=status.HTTP_422_UNPROCESSABLE_ENTITY)


async def http_exception_handler(request: Request, exc: HTTPException):

    rid = request_id_ctx.get(None)

    error_code = f"HTTP_{exc.status_code}"
    payload = build_error(code=error_code, details={"message":exc.detail}, request_id=rid)
    return json_error(payload, status_code=exc.status_code, headers=getattr(exc, "headers", None))


def register_all_exceptions(app: FastAPI):

    app.add_exception_handler(
        Exception, # catch all unidentified/unhandled exceptions
        fallback_handler
    )

    app.add_exception_handler(
        AppError,
        app_error_handler
    )

    app.add_exception_handler(
        SQLAlchemyError,
        persistence_error_handler
    )

    app.add_exception_handler(
        RequestValidationError,
        validation_exception_handler
    )

    app.add_exception_handler(
        HTTPException,
        http_exception_handler
    )
