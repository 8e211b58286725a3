"""HealthNet Pro API application."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator
from starlette.exceptions import HTTPException as StarletteHTTPException

from healthnet.api.start_conversation import router as start_conversation_router
from healthnet.api.v1.router import api_router
from healthnet.config import settings
from healthnet.core.exceptions import AppException
from healthnet.core.firebase import initialize_firebase
from healthnet.core.redis_client import check_redis_connection, close_redis_connection
from healthnet.database import check_database_connection, dispose_engines
from healthnet.middleware.error_handler import (
    app_exception_handler,
    general_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from healthnet.middleware.logging import LoggingMiddleware, configure_logging

configure_logging()
logger = structlog.get_logger()


async def _report_backing_services() -> None:
    """Log whether PostgreSQL and Redis answer; the app starts either way."""
    checks = {
        "database": await check_database_connection(),
        "redis": await check_redis_connection(),
    }
    for service, healthy in checks.items():
        if healthy:
            logger.info("backing_service_ready", service=service)
        else:
            logger.error("backing_service_unavailable", service=service)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    logger.info("application_startup", environment=settings.environment)

    try:
        initialize_firebase()
    except (ValueError, OSError) as e:
        # Everything except sign-in keeps working with our own JWTs
        logger.warning("firebase_initialization_failed", error=str(e))

    await _report_backing_services()

    yield

    await dispose_engines()
    close_redis_connection()
    logger.info("application_shutdown")


def _register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppException, app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(
        StarletteHTTPException, http_exception_handler  # type: ignore[arg-type]
    )
    app.add_exception_handler(
        RequestValidationError, validation_exception_handler  # type: ignore[arg-type]
    )
    app.add_exception_handler(Exception, general_exception_handler)


def create_app() -> FastAPI:
    """Assemble middleware, routers and metrics."""
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Professional network, job board and messaging for healthcare workers",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware)
    _register_exception_handlers(app)

    app.include_router(api_router, prefix=settings.api_v1_prefix)
    # Start-conversation is served unversioned at /api/start-conversation
    app.include_router(start_conversation_router, prefix="/api")

    Instrumentator(
        should_group_status_codes=True,
        should_instrument_requests_inprogress=True,
        excluded_handlers=["/docs", "/redoc", "/openapi.json", "/metrics"],
        inprogress_labels=True,
    ).instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)

    @app.get("/", tags=["Root"], include_in_schema=False)
    async def root() -> dict[str, str]:
        return {"name": settings.app_name, "version": settings.app_version, "docs": "/docs"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "healthnet.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
        log_level=settings.log_level.lower(),
    )
