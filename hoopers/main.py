import hmac
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from hoopers.api.routes.clients import router as clients_router
from hoopers.api.routes.games import router as games_router
from hoopers.api.routes.health import router as health_router
from hoopers.api.routes.profiles import router as profiles_router
from hoopers.api.routes.runs import router as runs_router
from hoopers.core.config import settings
from hoopers.core.errors import HoopersError, SourceUnavailableError, get_status_code
from hoopers.core.observability import (
    ObservabilityMiddleware,
    configure_structured_logging,
    metrics_endpoint,
    request_log_context,
)
from hoopers.core.telemetry import init_telemetry, instrument_fastapi, shutdown_telemetry

if settings.observability_structured_logs:
    configure_structured_logging(settings.app_log_level)

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"
ROUTERS = (health_router, profiles_router, runs_router, games_router, clients_router)


def _error_body(error: str, message: str, details: dict | None = None) -> dict:
    return {"error": error, "message": message, "details": details or {}}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    init_telemetry()
    instrument_fastapi(app)
    yield
    shutdown_telemetry()


def register_exception_handlers(app: FastAPI) -> None:
    """Translate errors into `{error, message, details}` responses."""

    @app.exception_handler(HoopersError)
    async def hoopers_error_handler(request: Request, exc: HoopersError) -> JSONResponse:
        status_code = get_status_code(exc)
        name = type(exc).__name__
        log = logger.error if status_code >= 500 else logger.warning
        context = {"details": exc.details, **request_log_context(request)}
        log("%s: %s", name, exc.message, extra=context)

        # Source failures only expose a generic message, never driver or SQL text
        if isinstance(exc, SourceUnavailableError):
            body = _error_body(name, exc.public_message)
        else:
            body = _error_body(name, exc.message, exc.details)
        return JSONResponse(status_code=status_code, content=body)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(
                "HTTP %s: %s", exc.status_code, exc.detail, extra=request_log_context(request)
            )
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body("HTTPException", exc.detail),
            headers=exc.headers,
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "Unhandled exception: %s",
            type(exc).__name__,
            exc_info=True,
            extra=request_log_context(request),
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body("InternalServerError", "An unexpected error occurred"),
        )


async def protected_metrics(request: Request) -> Response:
    """
    Prometheus scrape endpoint.

    Disabled (404) unless METRICS_TOKEN is configured; the caller must then
    present the same value in X-Metrics-Token (403 otherwise).
    """
    if not settings.metrics_token:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Metrics endpoint is not enabled"
        )

    presented = request.headers.get("X-Metrics-Token") or ""
    if not hmac.compare_digest(presented, settings.metrics_token):
        logger.warning(
            "Rejected metrics scrape",
            extra={"client_ip": request.client.host if request.client else "unknown"},
        )
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid metrics token")

    return metrics_endpoint()


def create_app() -> FastAPI:
    """
    Build the Hoopers API application.

    Tracing starts in the lifespan hook. When observability is enabled the
    request middleware and the token-guarded /metrics route are installed.
    """
    app = FastAPI(
        title="Hoopers API",
        description="Pickup basketball scheduling API with keyset-paginated listings",
        version="0.1.0",
        lifespan=lifespan,
    )

    if settings.observability_enabled:
        app.add_middleware(
            ObservabilityMiddleware, request_id_header=settings.observability_request_id_header
        )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    for router in ROUTERS:
        app.include_router(router, prefix=API_PREFIX)

    if settings.observability_enabled:
        app.add_route("/metrics", protected_metrics)

    return app


app = create_app()
