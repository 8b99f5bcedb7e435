from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from asgi_correlation_id import CorrelationIdMiddleware, correlation_id
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.middleware.base import RequestResponseEndpoint

from src.scenevault.api.router import api_router
from src.scenevault.core.config import Settings, get_settings
from src.scenevault.core.exceptions import setup_exception_handlers
from src.scenevault.core.logging import (
    bind_request_context,
    clear_request_context,
    get_logger,
    setup_logging,
)
from src.scenevault.core.rate_limit import limiter
from src.scenevault.core.security import SecurityHeadersMiddleware
from src.scenevault.core.state import AppState

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Application lifespan - load storage on startup, drain mutations on shutdown."""
    settings: Settings = app.state.settings
    setup_logging(settings.debug)
    logger.info(f"Starting {settings.app_name}")

    state = await AppState.open(settings)
    app.state.scenevault = state

    yield

    await state.close()
    logger.info("Shutdown complete")


OPENAPI_TAGS = [
    {"name": "auth", "description": "Registration, login and sessions"},
    {"name": "projects", "description": "Projects, scenes, backups and revert"},
]


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Project and scene version store for the level editor",
        version="0.1.0",
        openapi_tags=OPENAPI_TAGS,
        lifespan=lifespan,
        docs_url="/docs" if settings.enable_openapi else None,
        redoc_url="/redoc" if settings.enable_openapi else None,
        openapi_url="/openapi.json" if settings.enable_openapi else None,
    )
    app.state.settings = settings

    setup_exception_handlers(app)

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)  # type: ignore[arg-type]

    @app.middleware("http")
    async def logging_context_middleware(
        request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        """Bind request_id to log context for all requests."""
        clear_request_context()
        bind_request_context(correlation_id.get())
        try:
            response = await call_next(request)
            return response
        finally:
            clear_request_context()

    app.add_middleware(
        SecurityHeadersMiddleware,
        strict_transport_security=(
            "max-age=31536000; includeSubDomains" if settings.cookie_secure else None
        ),
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
    )

    # Added last so it is outermost and the id is set before anything else runs
    app.add_middleware(CorrelationIdMiddleware)

    app.include_router(api_router)

    @app.get("/health")
    async def health(request: Request) -> JSONResponse:
        """Liveness plus storage drain status."""
        state: AppState | None = getattr(request.app.state, "scenevault", None)
        if state is None:
            return JSONResponse(content={"status": "starting"}, status_code=503)

        if state.tracker.is_shutting_down:
            return JSONResponse(
                content={
                    "status": "draining",
                    "in_flight_mutations": state.tracker.in_flight_count,
                    "message": "Server is shutting down",
                },
                status_code=503,
            )

        return JSONResponse(
            content={
                "status": "healthy",
                "in_flight_mutations": state.tracker.in_flight_count,
            }
        )

    return app


app = create_app()
