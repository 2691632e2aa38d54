from contextlib import asynccontextmanager
from fastapi import FastAPI
from fieldforce.api import cur_version
from fieldforce.api.routers import public_paths, public_routers
from fieldforce.cache._cache import close_redis
from fieldforce.common.custom_exceptions import register_all_exceptions
from fieldforce.common.logging_setup import get_logger, setup_logging, teardown_logging
from fieldforce.config.otp_config import check_otp_settings, otp_settings
from fieldforce.config.settings import config_settings
from fieldforce.config.whatsapp_config import whatsapp_settings
from fieldforce.db.connection import async_engine, async_session
from fieldforce.db.schema import create_tables
from fieldforce.messaging.whatsapp import WhatsAppDelivery
from fieldforce.middlewares.auth_middleware import AuthenticationMiddleware
from fieldforce.middlewares.request_id_middleware import RequestIdMiddleware
from fieldforce.notifications.audit import AuditSink
from fieldforce.otp.services import OtpManager

logger = get_logger("fieldforce.app")


@asynccontextmanager
async def app_lifespan(app: FastAPI):
    setup_logging()
    check_otp_settings(otp_settings)

    if config_settings.AUTO_CREATE_TABLES:
        await create_tables(async_engine)

    if not whatsapp_settings.configured and otp_settings.OTP_DELIVERY_ENABLED:
        logger.warning("startup.whatsapp_not_configured")

    app.state.otp_manager = OtpManager(delivery=WhatsAppDelivery(whatsapp_settings),
                                       audit=AuditSink(async_session),
                                       settings=otp_settings)
    logger.info("startup.complete")

    try:
        yield
    finally:
        # requests have stopped being accepted at this point
        await async_engine.dispose()
        await close_redis()
        teardown_logging()


def create_app():
    app = FastAPI(
        title="Fieldforce",
        version=cur_version,
        lifespan=app_lifespan)

    app.include_router(public_routers)

    app.add_middleware(AuthenticationMiddleware, session_maker=async_session, paths=public_paths)
    app.add_middleware(RequestIdMiddleware)
    register_all_exceptions(app)

    return app


app = create_app()
