"""Metric buffering and embedded metric format serialization"""

import functools
import json
import logging
import numbers
import sys
import time
import warnings
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional, TextIO, Union

from ..config import MetricsSettings, RuntimeSettings, load_settings
from ..core.cold_start import ColdStart
from ..core.context import LambdaContext
from ..core.exceptions import (
    MetricResolutionError,
    MetricUnitError,
    MetricValueError,
    SchemaValidationError,
)
from ..core.handler import is_async, optional_args_decorator
from .units import MetricResolution, MetricUnit, resolve_resolution, resolve_unit

logger = logging.getLogger(__name__)

# The service dimension is always added on top of these
MAX_DIMENSIONS = 29
MAX_METRICS = 100
MAX_METRIC_VALUES = 100
MAX_METRIC_NAME_LENGTH = 255

COLD_START_METRIC = "ColdStart"

_cold_start = ColdStart()


@dataclass
class MetricEntry:
    """Values recorded under one metric name"""
    unit: MetricUnit
    resolution: MetricResolution
    values: List[Union[int, float]] = field(default_factory=list)

    def definition(self, name: str) -> Dict[str, Any]:
        definition: Dict[str, Any] = {"Name": name, "Unit": self.unit.value}
        if self.resolution is MetricResolution.HIGH:
            definition["StorageResolution"] = self.resolution.value
        return definition

    def serialized_value(self) -> Union[int, float, List[Union[int, float]]]:
        if len(self.values) == 1:
            return self.values[0]
        return list(self.values)


class Metrics:
    """Buffer metrics and flush them as one embedded metric format record.

    Example::

        metrics = Metrics(namespace="ServerlessAirline", service="booking")

        @metrics.log_metrics(capture_cold_start_metric=True)
        def handler(event, context):
            metrics.add_dimension("environment", "prod")
            metrics.add_metric("SuccessfulBooking", MetricUnit.COUNT, 1)

    Metrics, dimensions and metadata are cleared after every publish. Default
    dimensions are kept until ``clear_default_dimensions`` is called.
    """

    def __init__(
        self,
        namespace: Optional[str] = None,
        service: Optional[str] = None,
        default_dimensions: Optional[Dict[str, str]] = None,
        raise_on_empty_metrics: bool = False,
        stream: Optional[TextIO] = None,
    ):
        settings = load_settings(MetricsSettings)

        self.namespace = namespace or settings.namespace
        self.service = service or settings.service_name
        self.disabled = settings.disabled
        self.raise_on_empty_metrics = raise_on_empty_metrics
        self._stream = stream
        self._json_indent = 4 if settings.dev else None

        self.metric_set: Dict[str, MetricEntry] = {}
        self.dimension_set: Dict[str, str] = {}
        self.metadata_set: Dict[str, Any] = {}
        self.default_dimensions: Dict[str, str] = {}

        if default_dimensions:
            self.set_default_dimensions(**default_dimensions)

    # ------------------------------------------------------------------
    # Metrics
    # ------------------------------------------------------------------

    def add_metric(
        self,
        name: str,
        unit: Union[MetricUnit, str],
        value: Union[int, float],
        resolution: Union[MetricResolution, int] = MetricResolution.STANDARD,
    ) -> None:
        """Record a value under ``name``.

        Raises:
            SchemaValidationError: name is empty or too long
            MetricUnitError: unknown unit, or a unit different from the one
                already recorded for ``name``
            MetricResolutionError: unknown resolution
            MetricValueError: value is not a number
        """
        self._validate_metric_name(name)
        metric_unit = resolve_unit(unit)
        metric_resolution = resolve_resolution(resolution)

        if isinstance(value, bool) or not isinstance(value, numbers.Real):
            raise MetricValueError(f"Metric '{name}' value must be a number, got {value!r}")

        entry = self.metric_set.get(name)
        if entry is None:
            entry = MetricEntry(unit=metric_unit, resolution=metric_resolution)
            self.metric_set[name] = entry
        elif entry.unit is not metric_unit:
            raise MetricUnitError(
                f"Metric '{name}' has already been added with unit '{entry.unit.value}', "
                f"but received unit '{metric_unit.value}'"
            )
        elif entry.resolution is not metric_resolution:
            raise MetricResolutionError(
                f"Metric '{name}' has already been added with resolution "
                f"{entry.resolution.value}, but received {metric_resolution.value}"
            )

        entry.values.append(value)

        if len(self.metric_set) >= MAX_METRICS or len(entry.values) >= MAX_METRIC_VALUES:
            logger.debug("Metric buffer is full, flushing %d metrics", len(self.metric_set))
            self._flush_metrics_only()

    @staticmethod
    def _validate_metric_name(name: Any) -> None:
        if not isinstance(name, str) or not name.strip():
            raise SchemaValidationError("Metric name must be a non-empty string")
        if len(name) > MAX_METRIC_NAME_LENGTH:
            raise SchemaValidationError(
                f"Metric name '{name[:32]}...' exceeds {MAX_METRIC_NAME_LENGTH} characters"
            )

    def clear_metrics(self) -> None:
        """Drop buffered metrics, dimensions and metadata"""
        self.metric_set.clear()
        self.dimension_set.clear()
        self.metadata_set.clear()

    # ------------------------------------------------------------------
    # Dimensions and metadata
    # ------------------------------------------------------------------

    def _dimension_count(self) -> int:
        return len({**self.default_dimensions, **self.dimension_set})

    def _checked_dimension(self, name: Any, value: Any) -> Optional[tuple]:
        name = str(name).strip() if name is not None else ""
        value = str(value).strip() if value is not None else ""
        if not name or not value:
            warnings.warn(
                f"Dimension '{name}' has an empty name or value and was not added",
                stacklevel=3,
            )
            return None

        known = name in self.default_dimensions or name in self.dimension_set
        if not known and self._dimension_count() >= MAX_DIMENSIONS:
            raise SchemaValidationError(
                f"Maximum number of dimensions exceeded ({MAX_DIMENSIONS}), "
                f"cannot add dimension '{name}'"
            )
        return name, value

    def add_dimension(self, name: str, value: str) -> None:
        """Add a dimension to every metric in the next publish.

        Raises:
            SchemaValidationError: the dimension would exceed MAX_DIMENSIONS
        """
        checked = self._checked_dimension(name, value)
        if checked:
            self.dimension_set[checked[0]] = checked[1]

    def set_default_dimensions(self, **dimensions: str) -> None:
        """Add dimensions kept across publishes"""
        for name, value in dimensions.items():
            checked = self._checked_dimension(name, value)
            if checked:
                self.default_dimensions[checked[0]] = checked[1]

    def clear_default_dimensions(self) -> None:
        self.default_dimensions.clear()

    def add_metadata(self, key: str, value: Any) -> None:
        """Attach a searchable, non-dimension field to the next publish"""
        if not isinstance(key, str) or not key:
            raise SchemaValidationError("Metadata key must be a non-empty string")
        self.metadata_set[key] = value

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def serialize_metric_set(self) -> Dict[str, Any]:
        """Build the embedded metric format record for the buffered metrics.

        Raises:
            SchemaValidationError: no namespace configured or no metrics buffered
        """
        if not self.namespace:
            raise SchemaValidationError(
                "Metrics namespace is required, pass namespace= or set POWERTOOLS_METRICS_NAMESPACE"
            )
        if not self.metric_set:
            raise SchemaValidationError("Must contain at least one metric")

        dimensions = {"service": self.service}
        dimensions.update(self.default_dimensions)
        dimensions.update(self.dimension_set)

        definitions = [entry.definition(name) for name, entry in self.metric_set.items()]
        values = {name: entry.serialized_value() for name, entry in self.metric_set.items()}

        return {
            "_aws": {
                "Timestamp": int(time.time() * 1000),
                "CloudWatchMetrics": [
                    {
                        "Namespace": self.namespace,
                        "Dimensions": [list(dimensions.keys())],
                        "Metrics": definitions,
                    }
                ],
            },
            **dimensions,
            **self.metadata_set,
            **values,
        }

    def _emit(self, record: Dict[str, Any]) -> None:
        stream = self._stream or sys.stdout
        print(json.dumps(record, default=str, indent=self._json_indent), file=stream, flush=True)

    def _flush_metrics_only(self) -> None:
        """Publish buffered metrics but keep dimensions and metadata"""
        try:
            if not self.disabled:
                self._emit(self.serialize_metric_set())
        finally:
            self.metric_set.clear()

    def publish_stored_metrics(self, raise_on_empty_metrics: Optional[bool] = None) -> None:
        """Print the buffered metrics as one record and clear the buffer.

        An empty buffer only warns unless ``raise_on_empty_metrics`` is set.
        The buffer is cleared even when serialization fails.
        """
        if raise_on_empty_metrics is None:
            raise_on_empty_metrics = self.raise_on_empty_metrics

        if not self.metric_set:
            self.clear_metrics()
            if raise_on_empty_metrics:
                raise SchemaValidationError("Must contain at least one metric")
            warnings.warn(
                "No application metrics to publish. The cold-start metric may be "
                "published if enabled.",
                stacklevel=2,
            )
            return

        try:
            if self.disabled:
                logger.debug("Metrics are disabled, dropping %d metrics", len(self.metric_set))
            else:
                self._emit(self.serialize_metric_set())
        finally:
            self.clear_metrics()

    # ------------------------------------------------------------------
    # Single metric and handler integration
    # ------------------------------------------------------------------

    def single_metric(
        self,
        name: str,
        unit: Union[MetricUnit, str],
        value: Union[int, float],
        resolution: Union[MetricResolution, int] = MetricResolution.STANDARD,
        default_dimensions: Optional[Dict[str, str]] = None,
    ):
        """Context manager publishing one metric with its own dimensions"""
        return single_metric(
            name,
            unit,
            value,
            resolution=resolution,
            namespace=self.namespace,
            service=self.service,
            default_dimensions=default_dimensions,
            stream=self._stream,
        )

    def capture_cold_start_metric(self, context: Any) -> None:
        """Publish a ColdStart metric on the first invocation only"""
        if not _cold_start.consume():
            return

        function_name = LambdaContext.from_object(context).function_name
        if not function_name:
            function_name = load_settings(RuntimeSettings).function_name

        default_dimensions = dict(self.default_dimensions)
        if function_name and "function_name" not in default_dimensions:
            # function_name takes the last free dimension slot
            while len(default_dimensions) >= MAX_DIMENSIONS:
                dropped, _ = default_dimensions.popitem()
                logger.warning(
                    "Dimension '%s' dropped from the %s metric to make room for function_name",
                    dropped,
                    COLD_START_METRIC,
                )

        logger.debug("Adding cold start metric and function_name dimension")
        with self.single_metric(
            COLD_START_METRIC,
            MetricUnit.COUNT,
            1,
            default_dimensions=default_dimensions,
        ) as metric:
            if function_name:
                metric.add_dimension("function_name", function_name)

    @optional_args_decorator
    def log_metrics(
        self,
        handler: Callable,
        capture_cold_start_metric: bool = False,
        raise_on_empty_metrics: Optional[bool] = None,
        default_dimensions: Optional[Dict[str, str]] = None,
    ) -> Callable:
        """Decorate a handler so buffered metrics are published when it returns.

        Metrics are also published when the handler raises; the handler's
        exception is then re-raised.
        """
        if default_dimensions:
            self.set_default_dimensions(**default_dimensions)

        if is_async(handler):
            @functools.wraps(handler)
            async def async_wrapper(event, context, *args, **kwargs):
                try:
                    if capture_cold_start_metric:
                        self.capture_cold_start_metric(context)
                    return await handler(event, context, *args, **kwargs)
                finally:
                    self.publish_stored_metrics(raise_on_empty_metrics=raise_on_empty_metrics)

            return async_wrapper

        @functools.wraps(handler)
        def wrapper(event, context, *args, **kwargs):
            try:
                if capture_cold_start_metric:
                    self.capture_cold_start_metric(context)
                return handler(event, context, *args, **kwargs)
            finally:
                self.publish_stored_metrics(raise_on_empty_metrics=raise_on_empty_metrics)

        return wrapper


class SingleMetric(Metrics):
    """A Metrics buffer that holds exactly one metric name.

    Dimensions added to the parent Metrics object never reach a SingleMetric;
    only the service dimension, explicitly passed default dimensions and the
    dimensions added to the SingleMetric itself are published with it.
    """

    def add_metric(
        self,
        name: str,
        unit: Union[MetricUnit, str],
        value: Union[int, float],
        resolution: Union[MetricResolution, int] = MetricResolution.STANDARD,
    ) -> None:
        if self.metric_set and name not in self.metric_set:
            raise SchemaValidationError(
                f"Single metric already holds '{next(iter(self.metric_set))}', cannot add '{name}'"
            )
        super().add_metric(name, unit, value, resolution)


@contextmanager
def single_metric(
    name: str,
    unit: Union[MetricUnit, str],
    value: Union[int, float],
    resolution: Union[MetricResolution, int] = MetricResolution.STANDARD,
    namespace: Optional[str] = None,
    service: Optional[str] = None,
    default_dimensions: Optional[Dict[str, str]] = None,
    stream: Optional[TextIO] = None,
) -> Iterator[SingleMetric]:
    """Publish one metric immediately, isolated from any other buffer.

    Example::

        with single_metric("Retries", MetricUnit.COUNT, 1, namespace="Orders") as metric:
            metric.add_dimension("queue", "priority")
    """
    metric = SingleMetric(
        namespace=namespace,
        service=service,
        default_dimensions=default_dimensions,
        stream=stream,
    )
    metric.add_metric(name, unit, value, resolution)
    try:
        yield metric
    finally:
        metric.publish_stored_metrics()
