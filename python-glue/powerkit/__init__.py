"""Logging, metrics and tracing utilities for serverless function handlers"""

from .logger import Logger
from .metrics import Metrics, MetricUnit, MetricResolution, single_metric
from .tracer import Tracer

__version__ = "0.1.0"

__all__ = [
    "Logger",
    "Metrics",
    "MetricUnit",
    "MetricResolution",
    "single_metric",
    "Tracer",
]
