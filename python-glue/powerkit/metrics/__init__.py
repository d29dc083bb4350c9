"""Embedded metric format metrics for function handlers"""

from .units import MetricUnit, MetricResolution
from .metrics import (
    MAX_DIMENSIONS,
    MAX_METRICS,
    MAX_METRIC_VALUES,
    MAX_METRIC_NAME_LENGTH,
    Metrics,
    SingleMetric,
    single_metric,
)

__all__ = [
    "MetricUnit",
    "MetricResolution",
    "MAX_DIMENSIONS",
    "MAX_METRICS",
    "MAX_METRIC_VALUES",
    "MAX_METRIC_NAME_LENGTH",
    "Metrics",
    "SingleMetric",
    "single_metric",
]
