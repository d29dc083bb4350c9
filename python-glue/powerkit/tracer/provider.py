"""Adapter over the OpenTelemetry tracing API"""

import json
import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional, Union

from opentelemetry import context as otel_context
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import SpanProcessor, TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.trace import Span, Status, StatusCode

logger = logging.getLogger(__name__)

AnnotationValue = Union[str, int, float, bool]


class TraceProvider:
    """Open spans and attach data to them.

    A subsegment maps to an OpenTelemetry span; the segment is whatever span
    is current in the active context. The context lives in contextvars, so it
    follows the caller across ``await`` boundaries.
    """

    def __init__(self, tracer: Optional[trace.Tracer] = None, name: str = "powerkit"):
        self._tracer = tracer or trace.get_tracer(name)

    @contextmanager
    def in_subsegment(self, name: str) -> Iterator[Span]:
        """Open a span, make it current, and restore the previous one on exit"""
        with self._tracer.start_as_current_span(
            name,
            record_exception=False,
            set_status_on_exception=False,
        ) as span:
            yield span

    def get_segment(self) -> Span:
        return trace.get_current_span()

    def set_segment(self, span: Span) -> object:
        """Make ``span`` current; returns a token for ``restore_segment``"""
        return otel_context.attach(trace.set_span_in_context(span))

    def restore_segment(self, token: object) -> None:
        otel_context.detach(token)

    def put_annotation(self, key: str, value: AnnotationValue) -> None:
        self.get_segment().set_attribute(key, value)

    def put_metadata(self, key: str, value: Any, namespace: str) -> None:
        # Span attributes only hold primitives, so metadata travels as JSON
        try:
            serialized = json.dumps(value, default=str)
        except (TypeError, ValueError) as error:
            logger.warning("Metadata %s is not JSON serializable, storing str(): %s", key, error)
            serialized = str(value)
        self.get_segment().set_attribute(f"{namespace}.{key}", serialized)

    def record_error(self, error: BaseException, record_exception: bool = True) -> None:
        span = self.get_segment()
        if record_exception:
            span.record_exception(error)
        span.set_status(Status(StatusCode.ERROR, str(error)))


def setup_tracing(
    service_name: str,
    endpoint: Optional[str] = None,
    console: bool = False,
    span_processor: Optional[SpanProcessor] = None,
) -> TracerProvider:
    """Install an SDK tracer provider as the global OpenTelemetry provider.

    Spans are exported over OTLP when ``endpoint`` is given and printed when
    ``console`` is set. If an SDK provider is already installed it is
    returned unchanged.
    """
    current = trace.get_tracer_provider()
    if isinstance(current, TracerProvider):
        return current

    resource = Resource.create({
        "service.name": service_name,
    })

    provider = TracerProvider(resource=resource)

    if endpoint:
        provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint)))

    if console:
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))

    if span_processor:
        provider.add_span_processor(span_processor)

    trace.set_tracer_provider(provider)
    logger.debug("Installed tracer provider for service %s", service_name)
    return provider
