"""
Optional OpenTelemetry tracing for ingestion runs and the admin API.

Tracing is off unless ``TRACING_ENABLED`` is set; until setup_tracing()
runs, get_tracer() hands out no-op tracers and traced() costs nothing.

Span layout of one run:

    ingestion.run
      ingestion.feed          (one per feed, feed.id attribute)
        enrichment.fetch      (one per article page fetched)

Usage:
    setup_tracing("ky-news", "http://otel-collector:4317")
    tracer = get_tracer("ingestion")

    with traced(tracer, "ingestion.feed", {"feed.id": feed.id}):
        ...

    shutdown_tracing()
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    SimpleSpanProcessor,
    SpanExporter,
)
from opentelemetry.trace import StatusCode, Tracer
from opentelemetry.trace.propagation import get_current_span

logger = logging.getLogger(__name__)

_provider: TracerProvider | None = None


def setup_tracing(
    service_name: str,
    otlp_endpoint: str | None = None,
    *,
    exporter: SpanExporter | None = None,
) -> TracerProvider:
    """
    Install a global TracerProvider.

    Spans go to an OTLP gRPC collector in batches, or synchronously to
    ``exporter`` when one is given (tests pass an InMemorySpanExporter).
    OpenTelemetry accepts only the first global provider per process.
    """
    global _provider

    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    if exporter is not None:
        provider.add_span_processor(SimpleSpanProcessor(exporter))
    else:
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (
            OTLPSpanExporter,
        )

        endpoint = otlp_endpoint or "http://localhost:4317"
        provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint, insecure=True))
        )
    trace.set_tracer_provider(provider)
    _provider = provider

    logger.info(
        "Tracing enabled for %s (%s)",
        service_name,
        otlp_endpoint or ("custom exporter" if exporter else "default collector"),
    )
    return provider


def shutdown_tracing() -> None:
    """Flush pending spans; safe to call when tracing was never set up."""
    global _provider
    if _provider is None:
        return
    _provider.shutdown()
    _provider = None


def is_tracing_enabled() -> bool:
    return _provider is not None


def get_tracer(name: str) -> Tracer:
    """Named tracer; a no-op tracer until setup_tracing() has run."""
    return trace.get_tracer(name)


def current_trace_id() -> str | None:
    """Hex trace id of the active span, or None outside a recorded span."""
    ctx = get_current_span().get_span_context()
    return f"{ctx.trace_id:032x}" if ctx.is_valid else None


@contextmanager
def traced(
    tracer: Tracer,
    name: str,
    attributes: dict[str, Any] | None = None,
):
    """
    Run a block inside a span.

    None-valued attributes are dropped. An exception marks the span as
    failed, is recorded on it with its class name, and propagates.
    """
    with tracer.start_as_current_span(name) as span:
        for key, value in (attributes or {}).items():
            if value is not None:
                span.set_attribute(key, value)
        try:
            yield span
        except Exception as exc:
            span.set_status(StatusCode.ERROR, str(exc))
            span.set_attribute("error.type", type(exc).__name__)
            span.record_exception(exc)
            raise


def add_trace_context(
    logger_: Any, method: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """structlog processor: attach trace_id and span_id inside a span."""
    ctx = get_current_span().get_span_context()
    if ctx.is_valid:
        event_dict["trace_id"] = f"{ctx.trace_id:032x}"
        event_dict["span_id"] = f"{ctx.span_id:016x}"
    return event_dict
