from contextlib import asynccontextmanager
from fastapi import FastAPI
from storefront.api import cur_version
from storefront.api.routers import public_routers,admin_routers
from storefront.common.custom_exceptions import register_all_exceptions
from storefront.common.logging_setup import get_logger, setup_logging, shutdown_logging
from storefront.config.admin_config import admin_config
from storefront.config.settings import config_settings
from storefront.db.connection import async_engine,async_session
from storefront.middlewares.request_id_middleware import RequestIdMiddleware
from storefront.otp.worker import OtpPurgeWorker

logger = get_logger("storefront.app")


@asynccontextmanager
async def app_lifespan(app: FastAPI):
    setup_logging()

    otp_purge = None
    if config_settings.OTP_PURGE_ENABLED:
        otp_purge = OtpPurgeWorker(async_session,
                                   interval_seconds=config_settings.OTP_PURGE_INTERVAL_SECONDS,
                                   retention_minutes=config_settings.OTP_RETENTION_MINUTES)
        otp_purge.start()
    app.state.otp_purge = otp_purge
    logger.info("app.started", extra={"env": admin_config.ENV, "admin_enabled": admin_config.ENABLE_ADMIN})

    try:
        yield
    finally:
        # at this point new requests accept has been stopped already before calling shutdown
        if otp_purge is not None:
            await otp_purge.shutdown()
        # safe to dispose DB engine after workers exit
        await async_engine.dispose()
        logger.info("app.stopped")
        shutdown_logging()


def create_app():
    app=FastAPI(
        title="Storefront",
        version=cur_version,
        lifespan=app_lifespan)

    app.include_router(public_routers)

    if admin_config.ENABLE_ADMIN:
        app.include_router(admin_routers)      # mounts /api/v1/admin, guarded by X-Admin-Secret

    app.add_middleware(RequestIdMiddleware)
    register_all_exceptions(app)

    return app

app=create_app()
