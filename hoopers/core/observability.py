"""
Observability for the Hoopers API.

Provides:
- JSON log formatting carrying the request id and trace context
- Request id assignment and propagation through a ContextVar
- Prometheus metrics for HTTP traffic and keyset pagination
- Middleware tying the three together for every request

Usage:
    from hoopers.core.observability import (
        configure_structured_logging,
        get_request_id,
        pagination_metrics,
    )
"""

import json
import logging
import time
import uuid
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

from fastapi import Request, Response
from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

request_logger = logging.getLogger("hoopers.request")

_request_id_ctx: ContextVar[str] = ContextVar("request_id", default="")


def generate_request_id() -> str:
    """New random correlation id."""
    return str(uuid.uuid4())


def get_request_id() -> str:
    """Correlation id of the request being served, or "" outside a request."""
    return _request_id_ctx.get()


def set_correlation_id(request_id: str) -> None:
    _request_id_ctx.set(request_id)


# Attributes every LogRecord carries; anything else came in through `extra=`
_STANDARD_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


class StructuredFormatter(logging.Formatter):
    """
    Render each record as one JSON object.

    Keys: timestamp, level, logger, message, function, line, plus request_id,
    trace_id and span_id when known, `exception` ({type, message}) when the
    record carries exc_info, and `extra` for fields passed via `extra=`.
    """

    def format(self, record: logging.LogRecord) -> str:
        from hoopers.core.telemetry import get_span_id, get_trace_id

        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "function": record.funcName,
            "line": record.lineno,
        }

        context = {
            "request_id": get_request_id(),
            "trace_id": get_trace_id(),
            "span_id": get_span_id(),
        }
        entry.update({key: value for key, value in context.items() if value})

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, _ = record.exc_info
            entry["exception"] = {"type": exc_type.__name__, "message": str(exc_value)}

        extra = {k: v for k, v in vars(record).items() if k not in _STANDARD_RECORD_ATTRS}
        if extra:
            entry["extra"] = extra

        return json.dumps(entry, default=str)


def configure_structured_logging(level: str = "INFO") -> None:
    """Replace root handlers with a single JSON stream handler at `level`."""
    handler = logging.StreamHandler()
    handler.setFormatter(StructuredFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.getLevelNamesMapping().get(level.upper(), logging.INFO))


# Private registry: /metrics exposes only these collectors
_registry = CollectorRegistry()


class Metrics:
    """Prometheus collectors, bound to one registry."""

    def __init__(self, registry: CollectorRegistry) -> None:
        self.registry = registry

        # HTTP
        self.http_requests_total = Counter(
            "http_requests_total",
            "HTTP requests by route and status",
            ["method", "route", "status_code"],
            registry=registry,
        )
        self.http_request_duration_seconds = Histogram(
            "http_request_duration_seconds",
            "HTTP request latency in seconds",
            ["method", "route"],
            buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
            registry=registry,
        )
        self.http_unhandled_exceptions_total = Counter(
            "http_unhandled_exceptions_total",
            "Exceptions that escaped the route handlers",
            ["route", "exception_type"],
            registry=registry,
        )

        # Keyset pagination
        self.pagination_pages_total = Counter(
            "pagination_pages_total",
            "Total keyset pages served",
            ["entity", "direction"],
            registry=registry,
        )
        self.pagination_cursor_decode_failures_total = Counter(
            "pagination_cursor_decode_failures_total",
            "Cursors that could not be decoded and were treated as a first page",
            ["entity"],
            registry=registry,
        )
        self.pagination_sort_fallbacks_total = Counter(
            "pagination_sort_fallbacks_total",
            "Requests whose sort field was replaced by the entity default",
            ["entity"],
            registry=registry,
        )
        self.pagination_fetch_duration_seconds = Histogram(
            "pagination_fetch_duration_seconds",
            "Entity source fetch duration in seconds",
            ["entity"],
            buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
            registry=registry,
        )
        self.pagination_source_errors_total = Counter(
            "pagination_source_errors_total",
            "Entity source fetch failures",
            ["entity", "kind"],
            registry=registry,
        )


metrics = Metrics(_registry)


class PaginationMetrics:
    """
    Records keyset pagination metrics.

    Usage in the paginator:
        with pagination_metrics.track_fetch("profile"):
            rows = await source.execute(timeout=...)
    """

    def __init__(self, metrics_instance: Metrics | None = None) -> None:
        self.metrics = metrics_instance or metrics

    def page_served(self, entity: str, direction: str) -> None:
        self.metrics.pagination_pages_total.labels(entity=entity, direction=direction).inc()

    def cursor_rejected(self, entity: str) -> None:
        self.metrics.pagination_cursor_decode_failures_total.labels(entity=entity).inc()

    def sort_fallback(self, entity: str) -> None:
        self.metrics.pagination_sort_fallbacks_total.labels(entity=entity).inc()

    @contextmanager
    def track_fetch(self, entity: str) -> Iterator[None]:
        """Time an entity source fetch and count its failures by error type."""
        start = time.perf_counter()
        try:
            yield
        except Exception as exc:
            self.metrics.pagination_source_errors_total.labels(
                entity=entity, kind=type(exc).__name__
            ).inc()
            raise
        finally:
            self.metrics.pagination_fetch_duration_seconds.labels(entity=entity).observe(
                time.perf_counter() - start
            )


pagination_metrics = PaginationMetrics()


class ObservabilityMiddleware(BaseHTTPMiddleware):
    """
    Per-request correlation id, access log and HTTP metrics.

    The incoming request id header is reused when present, otherwise a new
    id is generated; either way it is echoed on the response. Probe and
    scrape paths are measured but not access-logged.
    """

    QUIET_PATHS = ("/api/v1/health", "/api/v1/readyz", "/metrics")

    def __init__(
        self,
        app: ASGIApp,
        metrics_instance: Metrics | None = None,
        request_id_header: str = "X-Request-ID",
    ) -> None:
        super().__init__(app)
        self.metrics = metrics_instance or metrics
        self.request_id_header = request_id_header

    @staticmethod
    def _route_label(request: Request) -> str:
        # Templated path, e.g. /api/v1/profiles/{profile_id}
        route = request.scope.get("route")
        return getattr(route, "path", None) or request.url.path

    def _observe(self, request: Request, route: str, status_code: int, elapsed: float) -> None:
        self.metrics.http_requests_total.labels(
            method=request.method, route=route, status_code=status_code
        ).inc()
        self.metrics.http_request_duration_seconds.labels(
            method=request.method, route=route
        ).observe(elapsed)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(self.request_id_header) or generate_request_id()
        set_correlation_id(request_id)
        start = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as exc:
            route = self._route_label(request)
            self._observe(request, route, 500, time.perf_counter() - start)
            self.metrics.http_unhandled_exceptions_total.labels(
                route=route, exception_type=type(exc).__name__
            ).inc()
            request_logger.exception(
                "%s %s failed", request.method, route, extra={"route": route, "status_code": 500}
            )
            raise

        elapsed = time.perf_counter() - start
        route = self._route_label(request)
        self._observe(request, route, response.status_code, elapsed)
        response.headers[self.request_id_header] = request_id

        if not route.startswith(self.QUIET_PATHS):
            request_logger.info(
                "%s %s %s",
                request.method,
                route,
                response.status_code,
                extra={
                    "route": route,
                    "status_code": response.status_code,
                    "latency_ms": round(elapsed * 1000, 2),
                },
            )
        return response


def metrics_endpoint() -> Response:
    """Prometheus metrics in text format for scraping."""
    return Response(
        content=generate_latest(_registry),
        media_type="text/plain; version=0.0.4; charset=utf-8",
    )


def request_log_context(request: Request) -> dict[str, Any]:
    """Fields identifying a request in error logs."""
    return {"request_id": get_request_id(), "method": request.method, "path": request.url.path}
