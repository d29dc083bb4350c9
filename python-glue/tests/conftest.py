"""Pytest configuration and fixtures"""

import io
import json
from dataclasses import dataclass
from typing import Any, Dict, List

import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from powerkit.logger import logger as logger_module
from powerkit.metrics import metrics as metrics_module
from powerkit.tracer import tracer as tracer_module
from powerkit.tracer import TraceProvider

ENVIRONMENT_VARIABLES = (
    "POWERTOOLS_SERVICE_NAME",
    "POWERTOOLS_LOG_LEVEL",
    "LOG_LEVEL",
    "POWERTOOLS_LOGGER_SAMPLE_RATE",
    "POWERTOOLS_LOGGER_LOG_EVENT",
    "POWERTOOLS_METRICS_NAMESPACE",
    "POWERTOOLS_METRICS_DISABLED",
    "POWERTOOLS_TRACE_ENABLED",
    "POWERTOOLS_TRACER_CAPTURE_RESPONSE",
    "POWERTOOLS_TRACER_CAPTURE_ERROR",
    "POWERTOOLS_DEV",
    "AWS_LAMBDA_FUNCTION_NAME",
    "AWS_EXECUTION_ENV",
    "AWS_SAM_LOCAL",
    "_X_AMZN_TRACE_ID",
    "OTEL_EXPORTER_OTLP_ENDPOINT",
)


@dataclass
class FakeLambdaContext:
    """Stand-in for the runtime context object"""
    function_name: str = "test-function"
    function_version: str = "$LATEST"
    invoked_function_arn: str = "arn:aws:lambda:eu-west-1:123456789012:function:test-function"
    memory_limit_in_mb: int = 128
    aws_request_id: str = "c6af9ac6-7b61-11e6-9a41-93e812345678"


class LambdaContextBuilder:
    """Builder for creating test runtime contexts"""

    def __init__(self):
        self._fields: Dict[str, Any] = {}

    def with_function_name(self, name: str):
        self._fields["function_name"] = name
        return self

    def with_request_id(self, request_id: str):
        self._fields["aws_request_id"] = request_id
        return self

    def with_memory(self, memory_mb: int):
        self._fields["memory_limit_in_mb"] = memory_mb
        return self

    def build(self) -> FakeLambdaContext:
        return FakeLambdaContext(**self._fields)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Start every test without any utility configured from the environment"""
    for name in ENVIRONMENT_VARIABLES:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def cold_process():
    """Every test starts as the first invocation of a fresh process"""
    logger_module._cold_start.reset()
    metrics_module._cold_start.reset()
    tracer_module._cold_start.reset()
    yield


@pytest.fixture
def lambda_context():
    return LambdaContextBuilder().build()


@pytest.fixture
def context_builder():
    return LambdaContextBuilder()


@pytest.fixture
def stream():
    """In-memory replacement for standard output"""
    return io.StringIO()


def parse_lines(stream: io.StringIO) -> List[Dict[str, Any]]:
    return [json.loads(line) for line in stream.getvalue().splitlines() if line.strip()]


@pytest.fixture
def records(stream):
    """Callable returning every JSON line written to ``stream`` so far"""
    return lambda: parse_lines(stream)


@pytest.fixture
def span_exporter():
    return InMemorySpanExporter()


@pytest.fixture
def trace_provider(span_exporter):
    """TraceProvider exporting finished spans to memory"""
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(span_exporter))
    return TraceProvider(provider.get_tracer("tests"))
