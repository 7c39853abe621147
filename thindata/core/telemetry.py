"""Tracing for data source loads, exported over OTLP when enabled."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.propagate import set_global_textmap
from opentelemetry.propagators.b3 import B3MultiFormat
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from thindata.core.config import Settings

logger = logging.getLogger(__name__)

TRACER_NAME = "thindata"
LOAD_SPAN_NAME = "thindata.load"
SOURCE_ATTRIBUTE = "thindata.source"
STATUS_ATTRIBUTE = "thindata.status"
OUTCOME_ATTRIBUTE = "thindata.outcome"


def configure_opentelemetry(settings: Settings) -> bool:
    """Install an OTLP-exporting tracer provider when ``settings`` enable tracing.

    Returns whether a provider was installed. Failures are logged and leave
    the service running untraced.
    """
    if not settings.otel_enabled:
        logger.info("OpenTelemetry tracing is disabled")
        return False

    try:
        set_global_textmap(B3MultiFormat())

        provider = TracerProvider(
            resource=Resource.create({
                "service.name": settings.otel_service_name,
                "service.version": settings.otel_service_version,
                "service.namespace": "thindata",
            })
        )
        trace.set_tracer_provider(provider)
        provider.add_span_processor(
            BatchSpanProcessor(
                OTLPSpanExporter(
                    endpoint=settings.otel_exporter_otlp_endpoint,
                    headers=settings.otel_exporter_otlp_headers,
                )
            )
        )

        logger.info(
            "Exporting traces of '%s' to %s",
            settings.otel_service_name,
            settings.otel_exporter_otlp_endpoint,
        )
        return True

    except Exception as e:
        logger.warning("Failed to configure OpenTelemetry, continuing without tracing: %s", e)
        return False


def instrument_fastapi(app: Any, enabled: bool = False) -> None:
    """Trace incoming API requests."""
    if not enabled:
        return

    try:
        FastAPIInstrumentor.instrument_app(app)
    except Exception as e:
        logger.warning("Failed to instrument FastAPI: %s", e)


def instrument_httpx(enabled: bool = False) -> None:
    """Trace the outbound requests of remote source fetchers."""
    if not enabled:
        return

    try:
        HTTPXClientInstrumentor().instrument()
    except Exception as e:
        logger.warning("Failed to instrument HTTPX: %s", e)


def get_tracer() -> trace.Tracer:
    return trace.get_tracer(TRACER_NAME)


@contextmanager
def load_span(source_name: str, loading_status: str) -> Iterator[trace.Span]:
    """Open the span of one load of ``source_name``.

    Callers record how the load ended with :func:`set_load_outcome`.
    """
    with get_tracer().start_as_current_span(LOAD_SPAN_NAME) as span:
        span.set_attribute(SOURCE_ATTRIBUTE, source_name)
        span.set_attribute(STATUS_ATTRIBUTE, loading_status)
        yield span


def set_load_outcome(span: trace.Span, outcome: str) -> None:
    span.set_attribute(OUTCOME_ATTRIBUTE, outcome)
