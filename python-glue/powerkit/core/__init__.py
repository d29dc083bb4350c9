"""Shared building blocks: runtime context, cold start state, errors"""

from .cold_start import ColdStart
from .context import LambdaContext, parse_trace_header
from .exceptions import (
    PowerkitError,
    InvalidLoggerSamplingRateError,
    MetricUnitError,
    MetricResolutionError,
    MetricValueError,
    SchemaValidationError,
)

__all__ = [
    "ColdStart",
    "LambdaContext",
    "parse_trace_header",
    "PowerkitError",
    "InvalidLoggerSamplingRateError",
    "MetricUnitError",
    "MetricResolutionError",
    "MetricValueError",
    "SchemaValidationError",
]
