"""
OpenTelemetry tracing for the submission and alert pipelines.

A critical submission and the admin notification it triggers run in
different processes. The W3C trace context travels between them as extra
fields on the Redis stream entry, so the worker's ``notify_admin`` span
lands in the same trace as the API's ``submit_feedback`` span.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any

from opentelemetry import trace
from opentelemetry.context import Context
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    SimpleSpanProcessor,
    SpanExporter,
)
from opentelemetry.trace import Span, StatusCode, Tracer
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator

logger = logging.getLogger(__name__)

TRACE_PARENT_FIELD = "traceparent"
TRACE_STATE_FIELD = "tracestate"
TRACE_FIELDS = (TRACE_PARENT_FIELD, TRACE_STATE_FIELD)

_propagator = TraceContextTextMapPropagator()
_tracing_enabled = False


def setup_tracing(
    service_name: str,
    otlp_endpoint: str | None = None,
    *,
    exporter: SpanExporter | None = None,
) -> TracerProvider:
    """
    Install the global TracerProvider.

    Spans go to an OTLP gRPC collector in batches unless ``exporter`` is
    given, in which case they are exported synchronously (tests pass an
    InMemorySpanExporter here).
    """
    global _tracing_enabled

    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    endpoint = otlp_endpoint or "http://localhost:4317"

    if exporter is not None:
        provider.add_span_processor(SimpleSpanProcessor(exporter))
    else:
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (
            OTLPSpanExporter,
        )

        provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint, insecure=True))
        )

    trace.set_tracer_provider(provider)
    _tracing_enabled = True
    logger.info(
        "Tracing enabled for %s (exporter: %s)",
        service_name,
        type(exporter).__name__ if exporter is not None else endpoint,
    )
    return provider


def get_tracer(name: str) -> Tracer:
    """Named tracer; a no-op tracer until setup_tracing() has run."""
    return trace.get_tracer(name)


def is_tracing_enabled() -> bool:
    return _tracing_enabled


# ── Stream propagation ───────────────────────────────────


def inject_trace_context() -> dict[str, str]:
    """
    Current trace context as stream entry fields.

    Empty when no span is active, so untraced publishes add nothing.
    """
    carrier: dict[str, str] = {}
    _propagator.inject(carrier)
    return carrier


def extract_trace_context(fields: Mapping[str, str]) -> Context | None:
    """Parent context encoded in a stream entry, or None if absent or malformed."""
    carrier = {k: fields[k] for k in TRACE_FIELDS if fields.get(k)}
    if TRACE_PARENT_FIELD not in carrier:
        return None

    ctx = _propagator.extract(carrier)
    if not trace.get_current_span(ctx).get_span_context().is_valid:
        logger.debug("Ignoring malformed traceparent: %s", carrier[TRACE_PARENT_FIELD])
        return None
    return ctx


@contextmanager
def traced(
    tracer: Tracer,
    name: str,
    attributes: dict[str, Any] | None = None,
    parent_context: Context | None = None,
) -> Iterator[Span]:
    """
    Run the block inside a span, marking it ERROR if the block raises.

        with traced(get_tracer(__name__), "submit_feedback", {"feedback.score": 2}):
            ...
    """
    with tracer.start_as_current_span(
        name,
        context=parent_context,
        attributes=attributes,
        record_exception=False,
        set_status_on_exception=False,
    ) as span:
        try:
            yield span
        except Exception as exc:
            span.set_status(StatusCode.ERROR, str(exc))
            span.record_exception(exc)
            raise


def add_trace_context(
    logger_: Any, method: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """structlog processor adding trace_id and span_id of the active span."""
    ctx = trace.get_current_span().get_span_context()
    if ctx.is_valid:
        event_dict["trace_id"] = f"{ctx.trace_id:032x}"
        event_dict["span_id"] = f"{ctx.span_id:016x}"
    return event_dict
