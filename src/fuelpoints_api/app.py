from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from fuelpoints_api.core.settings import settings
from fuelpoints_api.db.session import async_session, engine, init_models
from fuelpoints_api.services.station_settings import StationSettingsService
from .api.errors import register_exception_handlers
from .api.v1 import router as api_router
from .core.logging import configure_logging
from .observability.tracing import configure_tracing


APP_VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.database_url.startswith("sqlite"):
        await init_models()
        logger.info("Local sqlite schema ensured", database_url=settings.database_url)

    async with async_session() as session:
        await StationSettingsService(session).get()
        await session.commit()

    logger.info("Fuel station API started", environment=settings.environment, version=APP_VERSION)
    try:
        yield
    finally:
        await engine.dispose()
        logger.info("Fuel station API stopped")


def create_app() -> FastAPI:
    """Application factory for the fuel station loyalty API."""
    configure_logging(
        service_name=settings.service_name,
        environment=settings.environment,
        version=APP_VERSION,
        level=settings.log_level,
    )

    app = FastAPI(
        title="Fuel Points API",
        version=APP_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if settings.tracing_enabled:
        configure_tracing(
            app,
            service_name=settings.service_name,
            service_version=APP_VERSION,
            environment=settings.environment,
        )

    register_exception_handlers(app)
    app.include_router(api_router, prefix=settings.api_prefix)

    return app
