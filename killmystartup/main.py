"""FastAPI application factory."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from killmystartup.api.v1.router import api_router
from killmystartup.config import Settings, get_settings
from killmystartup.core.errors import IntelError, ProviderError, Unauthorized
from killmystartup.core.logging import get_logger, setup_logging
from killmystartup.core.middleware import ObservabilityMiddleware
from killmystartup.database import build_session_factory, create_all, create_engine
from killmystartup.services.perplexity import PerplexityClient

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    setup_logging()

    engine = create_engine(settings.database_url, echo=settings.database_echo)
    if settings.database_url.startswith("sqlite"):
        # Local development without Alembic
        await create_all(engine)

    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.provider = PerplexityClient(settings)

    logger.info(
        "app_started",
        provider_configured=app.state.provider.configured,
        industries=len(settings.monitored_industries),
    )

    yield

    await app.state.provider.close()
    await engine.dispose()
    logger.info("app_stopped")


async def _unauthorized_handler(request: Request, exc: Unauthorized) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_401_UNAUTHORIZED, content={"error": "Unauthorized"})


async def _provider_error_handler(request: Request, exc: ProviderError) -> JSONResponse:
    logger.error("provider_request_failed", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": str(exc), "details": exc.__class__.__name__},
    )


async def _intel_error_handler(request: Request, exc: IntelError) -> JSONResponse:
    logger.error("request_failed", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error", "details": str(exc)},
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()

    app = FastAPI(
        title="Kill My Startup Intel",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(ObservabilityMiddleware)
    app.add_exception_handler(Unauthorized, _unauthorized_handler)
    app.add_exception_handler(ProviderError, _provider_error_handler)
    app.add_exception_handler(IntelError, _intel_error_handler)

    app.include_router(api_router, prefix="/api/v1")
    return app
