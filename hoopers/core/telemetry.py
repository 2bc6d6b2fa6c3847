"""
OpenTelemetry tracing for the Hoopers API.

Spans come from three places:
- FastAPI instrumentation (one server span per request)
- SQLAlchemy instrumentation (one span per statement)
- `keyset.fetch` spans opened by the paginator through `get_tracer`

Settings (environment variables):
- OTEL_ENABLED: turn tracing on (default: false)
- OTEL_SERVICE_NAME: service.name resource attribute (default: hoopers-api)
- OTEL_EXPORTER_OTLP_ENDPOINT: OTLP gRPC collector (default: http://localhost:4317)
- OTEL_EXPORTER_OTLP_HEADERS: "key=value,key=value" sent with every export
- OTEL_TRACES_SAMPLER: always_on | always_off | traceidratio | parent_trace_always
- OTEL_TRACES_SAMPLER_ARG: ratio for the ratio-based samplers (default: 1.0)

With tracing off every helper here is a no-op and `get_tracer` hands out
the API's non-recording tracer.
"""

import logging
from typing import Any

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.resources import DEPLOYMENT_ENVIRONMENT, SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.trace.sampling import (
    ALWAYS_OFF,
    ALWAYS_ON,
    ParentBased,
    Sampler,
    TraceIdRatioBased,
)

from hoopers.core.config import settings

logger = logging.getLogger(__name__)

SERVICE_VERSION = "0.1.0"

_tracer_provider: TracerProvider | None = None


def _parse_headers(raw: str | None) -> dict[str, str]:
    """Parse "k1=v1,k2=v2"; entries without "=" are dropped."""
    pairs = (item.split("=", 1) for item in (raw or "").split(",") if "=" in item)
    return {key.strip(): value.strip() for key, value in pairs}


def _build_sampler(name: str, ratio: float) -> Sampler:
    fixed = {"always_on": ALWAYS_ON, "always_off": ALWAYS_OFF}
    if name in fixed:
        return fixed[name]
    if name == "traceidratio":
        return TraceIdRatioBased(ratio)
    # parent_trace_always and anything unrecognised
    return ParentBased(root=TraceIdRatioBased(ratio))


def _build_provider() -> TracerProvider:
    resource = Resource.create(
        {
            SERVICE_NAME: settings.otel_service_name,
            DEPLOYMENT_ENVIRONMENT: settings.app_env.value,
            "service.version": SERVICE_VERSION,
        }
    )
    provider = TracerProvider(
        resource=resource,
        sampler=_build_sampler(settings.otel_traces_sampler, settings.otel_traces_sampler_arg),
    )
    exporter = OTLPSpanExporter(
        endpoint=settings.otel_exporter_otlp_endpoint,
        headers=_parse_headers(settings.otel_exporter_otlp_headers),
    )
    provider.add_span_processor(BatchSpanProcessor(exporter))
    return provider


def init_telemetry() -> TracerProvider | None:
    """
    Install the global tracer provider when OTEL_ENABLED is set.

    A provider that fails to build is logged and tracing stays off; the API
    keeps serving.
    """
    global _tracer_provider

    if not settings.otel_enabled:
        logger.info("OpenTelemetry tracing is disabled")
        return None

    try:
        provider = _build_provider()
    except Exception:
        logger.error("Failed to initialize OpenTelemetry", exc_info=True)
        return None

    trace.set_tracer_provider(provider)
    _tracer_provider = provider
    logger.info(
        "OpenTelemetry initialized",
        extra={
            "service_name": settings.otel_service_name,
            "endpoint": settings.otel_exporter_otlp_endpoint,
            "sampler": settings.otel_traces_sampler,
        },
    )
    return provider


def instrument_fastapi(app: Any) -> None:
    if not settings.otel_enabled:
        return
    try:
        FastAPIInstrumentor.instrument_app(app)
    except Exception:
        logger.error("Failed to instrument FastAPI", exc_info=True)


def instrument_sqlalchemy(engine: Any) -> None:
    """Trace statements on `engine` (pass the sync engine behind an AsyncEngine)."""
    if not settings.otel_enabled:
        return
    try:
        SQLAlchemyInstrumentor().instrument(engine=engine, enable_commenter=True)
    except Exception:
        logger.error("Failed to instrument SQLAlchemy", exc_info=True)


def shutdown_telemetry() -> None:
    """Flush pending spans and drop the provider."""
    global _tracer_provider

    if _tracer_provider is None:
        return
    provider, _tracer_provider = _tracer_provider, None
    try:
        provider.shutdown()
    except Exception:
        logger.error("Error during OpenTelemetry shutdown", exc_info=True)


def get_tracer(name: str) -> trace.Tracer:
    return trace.get_tracer(name)


def _recording_span_context() -> trace.SpanContext | None:
    span = trace.get_current_span()
    return span.get_span_context() if span.is_recording() else None


def get_trace_id() -> str | None:
    """Hex trace id of the active span, or None outside a recording span."""
    context = _recording_span_context()
    return format(context.trace_id, "032x") if context else None


def get_span_id() -> str | None:
    """Hex span id of the active span, or None outside a recording span."""
    context = _recording_span_context()
    return format(context.span_id, "016x") if context else None
